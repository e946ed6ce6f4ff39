"""Pytest configuration and fixtures"""
import asyncio
import json
import os

import httpx
import pytest

# Set test environment variables before shophub.config reads them
os.environ.setdefault("SHOPHUB_API_URL", "https://api.test")
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "https://redis.test")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "test_token")

from shophub.cart import CartController, LineItem  # noqa: E402
from shophub.checkout import CheckoutStagingClient  # noqa: E402
from shophub.config import TTL  # noqa: E402
from shophub.storage import EphemeralStore, MemoryBackend  # noqa: E402

BASE_URL = "https://api.test"
START_MS = 1_700_000_000_000


class InspectableBackend(MemoryBackend):
    """MemoryBackend with synchronous access and switchable outages."""

    def __init__(self):
        super().__init__()
        self.failing_gets = 0
        self.fail_deletes = False

    async def get(self, key):
        if self.failing_gets:
            self.failing_gets -= 1
            raise ConnectionError("redis down")
        return await super().get(key)

    async def delete(self, key):
        if self.fail_deletes:
            raise ConnectionError("redis down")
        await super().delete(key)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def raw(self, key: str):
        return self._data.get(key)

    def put_raw(self, key: str, value: str) -> None:
        self._data[key] = value


class FakeClock:
    """Epoch-millis clock that only moves when told to."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class StagingServer:
    """Records staging requests and answers with a canned response.

    With a gate, each request waits for gate.set() before answering and
    signals `entered` once it has arrived.
    """

    def __init__(self, response=None, error: Exception | None = None, gate: asyncio.Event | None = None):
        self.requests: list[httpx.Request] = []
        self.response = response if response is not None else httpx.Response(
            200,
            json={
                "status": "success",
                "message": "Order staged successfully",
                "checkoutUrl": "https://wa.me/xyz",
            },
        )
        self.error = error
        self.gate = gate
        self.entered = asyncio.Event()

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        if self.gate is not None:
            return self._gated()
        return self._respond()

    async def _gated(self) -> httpx.Response:
        self.entered.set()
        await self.gate.wait()
        return self._respond()

    def _respond(self) -> httpx.Response:
        if self.error is not None:
            raise self.error
        # Fresh copy per request; httpx binds a response to its request
        return httpx.Response(
            self.response.status_code,
            headers=self.response.headers,
            content=self.response.content,
        )

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return InspectableBackend()


@pytest.fixture
def store(backend):
    return EphemeralStore(backend, default_ttl_ms=TTL.CART_MS)


@pytest.fixture
def controller(store, clock):
    return CartController(store, clock=clock)


@pytest.fixture
def server():
    return StagingServer()


@pytest.fixture
def stager(controller, server):
    return CheckoutStagingClient(controller, base_url=BASE_URL, http_client=server.client())


@pytest.fixture
def item_a():
    """Sample product A"""
    return LineItem(
        product_id="prod-a",
        name="Ankara Tote",
        thumbnail="https://cdn.test/a.png",
        unit_price=1000,
    )


@pytest.fixture
def item_b():
    """Sample product B, on promotion"""
    return LineItem(
        product_id="prod-b",
        name="Leather Sandals",
        thumbnail="https://cdn.test/b.png",
        unit_price="2500.50",
        old_price=3000,
        is_deal=True,
        description="Handmade leather sandals",
    )


@pytest.fixture
def make_stager(controller):
    """Build a staging client answered by the given StagingServer."""
    def _make(server: StagingServer) -> CheckoutStagingClient:
        return CheckoutStagingClient(controller, base_url=BASE_URL, http_client=server.client())
    return _make


@pytest.fixture
def staging_server():
    """The StagingServer class, for tests that need a custom response."""
    return StagingServer
