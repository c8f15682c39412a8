import logging

import httpx
from fastapi import Request, Response
from fastapi.responses import PlainTextResponse

from hls_proxy.codec import decode_target
from hls_proxy.config import PROXY_ROUTES, UPSTREAM_TIMEOUT
from hls_proxy.errors import ProxyError
from hls_proxy.fallback import resolve
from hls_proxy.fetcher import IDENTITIES
from hls_proxy.relay import cors_headers, relay

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "HEAD", "OPTIONS")


class HLSProxyMiddleware:
    """ASGI middleware answering the HLS proxy routes.

    Anything outside ``routes`` is handed to the wrapped app untouched.
    """

    def __init__(self, app, client: httpx.AsyncClient | None = None, routes=PROXY_ROUTES, identities=IDENTITIES):
        self.app = app
        self.routes = frozenset(routes)
        self.identities = tuple(identities)
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=UPSTREAM_TIMEOUT)
        return self._client

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or scope["path"] not in self.routes:
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        response = await self.handle(request)
        await response(scope, receive, send)

    async def handle(self, request: Request) -> Response:
        method = request.method
        if method == "OPTIONS":
            return Response(status_code=204, headers=cors_headers())
        if method not in ALLOWED_METHODS:
            return PlainTextResponse("Method Not Allowed", status_code=405, headers=cors_headers())

        target_url = None
        try:
            target_url = decode_target(request.query_params)
            upstream = await resolve(self.client, target_url, request.headers, self.identities)
            response = await relay(upstream, target_url, method)
        except ProxyError as e:
            logger.info("%s %s -> %s (%s)", method, target_url, e.status_code, e)
            return self._error(e.status_code, e)
        except Exception as e:
            logger.exception("Unexpected proxy failure for %s", target_url)
            return self._error(400, e)

        logger.info("%s %s -> %s", method, target_url, response.status_code)
        return response

    @staticmethod
    def _error(status_code: int, error: Exception) -> Response:
        if status_code == 400:
            message = f"Invalid proxy request: {error}"
        else:
            message = str(error)
        return PlainTextResponse(message, status_code=status_code, headers=cors_headers())
