import logging
from dataclasses import dataclass
from urllib.parse import urljoin, urlsplit

import httpx

from hls_proxy.config import ACCEPT_LANGUAGE, MAX_REDIRECTS, REFERERS, UPSTREAM_TIMEOUT, USER_AGENT
from hls_proxy.errors import RedirectLoop, UpstreamUnreachable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Client context presented to the origin (User-Agent, Referer, Origin)."""

    referer: str
    user_agent: str = USER_AGENT

    @property
    def origin(self) -> str:
        parts = urlsplit(self.referer)
        return f"{parts.scheme}://{parts.netloc}"


IDENTITIES = tuple(Identity(referer=ref) for ref in REFERERS)


def build_upstream_headers(identity: Identity, inbound_headers=None) -> dict:
    inbound = httpx.Headers(inbound_headers or {})
    headers = {
        "User-Agent": identity.user_agent,
        "Referer": identity.referer,
        "Origin": identity.origin,
        "Accept": inbound.get("accept", "*/*"),
        "Accept-Language": ACCEPT_LANGUAGE,
        # No transport compression: manifest text and byte ranges stay as served
        "Accept-Encoding": "identity",
    }
    if "range" in inbound:
        headers["Range"] = inbound["range"]
    return headers


async def discard(response: httpx.Response) -> None:
    """Drain and release an upstream response nobody is going to relay."""
    try:
        await response.aread()
    except httpx.HTTPError as e:
        logger.debug("Could not drain discarded response from %s: %s", response.url, e)
    finally:
        await response.aclose()


async def fetch(
    client: httpx.AsyncClient,
    target_url: str,
    identity: Identity,
    inbound_headers=None,
    redirect_depth: int = 0,
) -> httpx.Response:
    """GET ``target_url`` as ``identity``, chasing redirects by hand.

    The returned response is opened in streaming mode; the caller owns it and
    must read or close it.
    """
    if redirect_depth > MAX_REDIRECTS:
        logger.warning("Too many redirects fetching %s", target_url)
        raise RedirectLoop("Too many redirects")

    logger.debug("GET %s as %s (depth %d)", target_url, identity.referer, redirect_depth)
    headers = build_upstream_headers(identity, inbound_headers)
    try:
        request = client.build_request("GET", target_url, headers=headers, timeout=UPSTREAM_TIMEOUT)
        response = await client.send(request, stream=True, follow_redirects=False)
    except (httpx.TransportError, httpx.InvalidURL) as e:
        logger.warning("Upstream unreachable %s: %s", target_url, e)
        raise UpstreamUnreachable(f"Upstream unreachable: {e}") from e

    location = response.headers.get("location")
    if 300 <= response.status_code < 400 and location:
        await discard(response)
        redirected_to = urljoin(target_url, location)
        logger.debug("Redirect %s %s -> %s", response.status_code, target_url, redirected_to)
        return await fetch(client, redirected_to, identity, inbound_headers, redirect_depth + 1)

    return response
