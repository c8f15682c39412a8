class ProxyError(Exception):
    status_code = 400


class InvalidTarget(ProxyError):
    status_code = 400


class AllUpstreamsForbidden(ProxyError):
    status_code = 403

    def __init__(self, message="Forbidden by upstream server"):
        super().__init__(message)


class UpstreamUnreachable(ProxyError):
    status_code = 502


class RedirectLoop(UpstreamUnreachable):
    pass


class StreamError(UpstreamUnreachable):
    """Upstream body could not be read before anything was sent to the client."""
