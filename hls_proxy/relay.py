import logging

import httpx
from fastapi import Response
from fastapi.responses import StreamingResponse

from hls_proxy.config import CHUNK_SIZE
from hls_proxy.errors import StreamError
from hls_proxy.manifest import is_manifest, rewrite_manifest

logger = logging.getLogger(__name__)

MANIFEST_CONTENT_TYPE = "application/vnd.apple.mpegurl"

HOP_BY_HOP_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
})

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,HEAD,OPTIONS",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Expose-Headers": "Content-Length,Content-Range,Accept-Ranges,Content-Type",
}
_CORS_HEADER_NAMES = frozenset(name.lower() for name in CORS_HEADERS)


def cors_headers() -> dict:
    return dict(CORS_HEADERS)


def filter_upstream_headers(headers: httpx.Headers) -> list:
    """Raw upstream header pairs safe to forward, minus the CORS ones we set ourselves."""
    pairs = []
    for name, value in headers.raw:
        lowered = name.decode("latin-1").lower()
        if lowered in HOP_BY_HOP_HEADERS or lowered in _CORS_HEADER_NAMES:
            continue
        pairs.append((lowered.encode("latin-1"), value))
    return pairs


def _set_raw_headers(response: Response, upstream_headers: httpx.Headers) -> Response:
    cors = [(name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in CORS_HEADERS.items()]
    response.raw_headers = cors + filter_upstream_headers(upstream_headers)
    return response


async def _stream_body(upstream: httpx.Response, target_url: str):
    try:
        async for chunk in upstream.aiter_raw(CHUNK_SIZE):
            yield chunk
    except httpx.HTTPError as e:
        # Headers are already out, all we can do is drop the connection
        logger.warning("Stream interrupted for %s: %s", target_url, e)
        raise
    finally:
        await upstream.aclose()


async def relay_manifest(upstream: httpx.Response, target_url: str) -> Response:
    try:
        body = await upstream.aread()
    except httpx.HTTPError as e:
        logger.warning("Failed reading manifest %s: %s", target_url, e)
        raise StreamError(f"Proxy stream error: {e}") from e
    finally:
        await upstream.aclose()

    rewritten = rewrite_manifest(body.decode("utf-8", errors="replace"), target_url)
    headers = cors_headers()
    headers["Content-Type"] = MANIFEST_CONTENT_TYPE
    headers["Cache-Control"] = "no-store"
    return Response(content=rewritten, status_code=upstream.status_code, headers=headers)


async def relay(upstream: httpx.Response, target_url: str, method: str = "GET") -> Response:
    """Turn the chosen upstream response into the client response."""
    if is_manifest(target_url, upstream.headers.get("content-type")):
        return await relay_manifest(upstream, target_url)

    if method == "HEAD":
        await upstream.aclose()
        return _set_raw_headers(Response(status_code=upstream.status_code), upstream.headers)

    response = StreamingResponse(_stream_body(upstream, target_url), status_code=upstream.status_code)
    return _set_raw_headers(response, upstream.headers)
