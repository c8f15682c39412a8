import logging

import httpx

from hls_proxy.errors import AllUpstreamsForbidden
from hls_proxy.fetcher import IDENTITIES, discard, fetch

logger = logging.getLogger(__name__)


async def resolve(client: httpx.AsyncClient, target_url: str, inbound_headers=None, identities=IDENTITIES) -> httpx.Response:
    # Origins gating by Referer/Origin answer 403; rotate identity instead of retrying
    for identity in identities:
        response = await fetch(client, target_url, identity, inbound_headers)
        if response.status_code != 403:
            return response

        logger.warning("Upstream rejected referer %s for %s", identity.referer, target_url)
        await discard(response)

    raise AllUpstreamsForbidden()
