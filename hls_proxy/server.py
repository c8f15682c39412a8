# Host application: FastAPI + the proxy middleware
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from hls_proxy.config import MOUNT_PATH, UPSTREAM_TIMEOUT
from hls_proxy.proxy import HLSProxyMiddleware

LANDING_HTML = (
    "<h1>HLS Relay</h1>"
    f"<p>Append <code>{MOUNT_PATH}?b64=&lt;base64url target&gt;</code> "
    f"or <code>{MOUNT_PATH}?url=&lt;percent-encoded target&gt;</code></p>"
)


def create_app(client: httpx.AsyncClient | None = None) -> FastAPI:
    client = client or httpx.AsyncClient(timeout=UPSTREAM_TIMEOUT)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await client.aclose()

    app = FastAPI(title="HLS Relay", lifespan=lifespan)
    app.add_middleware(HLSProxyMiddleware, client=client)

    @app.get("/", response_class=HTMLResponse)
    async def index():
        return LANDING_HTML

    return app
