import httpx
import pytest
from fastapi.testclient import TestClient

from hls_proxy.server import create_app


class Body(httpx.AsyncByteStream):
    """Unread upstream body, the way a real transport hands it over.

    Remembers whether it was read to the end and whether it was closed.
    """

    def __init__(self, data: bytes = b"", chunk_size: int = 4096):
        self.data = data
        self.chunk_size = chunk_size
        self.drained = False
        self.closed = False

    async def __aiter__(self):
        for start in range(0, len(self.data), self.chunk_size):
            yield self.data[start:start + self.chunk_size]
        self.drained = True

    async def aclose(self):
        self.closed = True


class Upstream:
    """Records outbound requests and answers them from a routing function."""

    def __init__(self, handler):
        self.handler = handler
        self.requests = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def proxy():
    """Factory: proxy(handler) -> (TestClient, Upstream)."""
    clients = []

    def _make(handler):
        upstream = Upstream(handler)
        test_client = TestClient(create_app(client=upstream.client()))
        test_client.__enter__()
        clients.append(test_client)
        return test_client, upstream

    yield _make

    for test_client in clients:
        test_client.__exit__(None, None, None)
