"""URL <-> token codec shared by the rewriter, the router and any client
building proxied links.

A token is the unpadded base64url encoding of the target URL's UTF-8 bytes.
"""
import base64
import binascii
import ipaddress
import re
from urllib.parse import urlsplit

from hls_proxy.config import MOUNT_PATH
from hls_proxy.errors import InvalidTarget

_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]*$")
_HOST_RE = re.compile(r"^[A-Za-z0-9._-]+$")
ALLOWED_SCHEMES = ("http", "https")


def encode_target(url: str) -> str:
    return base64.urlsafe_b64encode(url.encode("utf-8")).decode("ascii").rstrip("=")


def decode_token(token: str) -> str:
    if not _TOKEN_RE.match(token) or len(token) % 4 == 1:
        raise InvalidTarget("Malformed b64 token")
    padded = token + "=" * (-len(token) % 4)
    try:
        return base64.urlsafe_b64decode(padded).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise InvalidTarget(f"Malformed b64 token: {e}") from e


def _check_host(parts) -> None:
    host = parts.hostname
    if not host:
        raise InvalidTarget("Invalid URL: missing host")

    if parts.netloc.rpartition("@")[2].startswith("["):
        try:
            ipaddress.IPv6Address(host)
        except ValueError as e:
            raise InvalidTarget(f"Invalid URL: bad IPv6 host {host!r}") from e
        return

    try:
        ascii_host = host.encode("idna").decode("ascii")
    except UnicodeError as e:
        raise InvalidTarget(f"Invalid URL: bad host {host!r}") from e
    if not _HOST_RE.match(ascii_host):
        raise InvalidTarget(f"Invalid URL: bad host {host!r}")


def validate_target(url: str) -> str:
    if any(ch.isspace() or ord(ch) < 0x20 or ord(ch) == 0x7F for ch in url):
        raise InvalidTarget("Invalid URL: contains whitespace or control characters")

    try:
        parts = urlsplit(url)
        parts.port
    except ValueError as e:
        raise InvalidTarget(f"Invalid URL: {e}") from e

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidTarget("Only HTTP(S) URLs are supported")
    _check_host(parts)
    return url


def decode_target(params) -> str:
    """Recover the target URL from a request's query parameters.

    ``b64`` wins over the legacy ``url`` form. ``params`` is any mapping with
    ``.get`` (Starlette ``QueryParams``, a dict); values are expected to be
    percent-decoded already.
    """
    token = params.get("b64")
    raw = params.get("url")

    if token:
        decoded = decode_token(token)
    elif raw:
        # Already percent-decoded once by the query parser; not decoded again
        decoded = raw
    else:
        decoded = ""

    if not decoded:
        raise InvalidTarget("Missing target URL")
    return validate_target(decoded)


def build_proxy_url(url: str, mount_path: str = MOUNT_PATH) -> str:
    # Already routed through the proxy, don't wrap twice
    if url.startswith(f"{mount_path}?"):
        return url
    return f"{mount_path}?b64={encode_target(url)}"
