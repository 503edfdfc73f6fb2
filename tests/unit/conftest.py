import asyncio

import httpx
import pytest

from victorops.services.victorops_client import VictorOpsClient

BASE_URL = "https://api.victorops.test"


def make_client(handler, **kwargs) -> VictorOpsClient:
    return VictorOpsClient(
        "test-api-id",
        "test-api-key",
        BASE_URL,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.fixture
def requests_seen() -> list[httpx.Request]:
    return []


@pytest.fixture
def api():
    """Run one client call against a mocked transport and return its result."""

    def _run(handler, call):
        async def _invoke():
            async with make_client(handler) as client:
                return await call(client)

        return asyncio.run(_invoke())

    return _run


@pytest.fixture
def respond(requests_seen):
    """Build a transport handler that records requests and returns a canned response."""

    def _build(status_code: int = 200, text: str = "{}"):
        def handler(request: httpx.Request) -> httpx.Response:
            requests_seen.append(request)
            return httpx.Response(status_code, text=text)

        return handler

    return _build
