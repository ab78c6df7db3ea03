import asyncio
from datetime import datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from citizen_portal.api import PortalState, create_app
from citizen_portal.api.state import DEFAULT_TOKEN
from citizen_portal.services.portal_api import PortalAPIClient
from citizen_portal.utils.local_storage import LocalStorage, TokenStore

FIXED_NOW = datetime(2025, 3, 4, 12, 0, tzinfo=timezone.utc)
STUB_BASE_URL = "http://portal.test/api"


class RecordingNotifier:
    def __init__(self):
        self.successes: list[str] = []
        self.errors: list[str] = []

    def success(self, message: str) -> None:
        self.successes.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


class ManualClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualTimer:
    """Drop-in for ``asyncio.sleep`` whose sleeps end only on ``advance``."""

    def __init__(self):
        self.sleeps: list[float] = []
        self._waiters: list[asyncio.Future] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        await waiter

    def advance(self) -> None:
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)


async def settle(rounds: int = 10) -> None:
    """Let ready tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def token_store():
    store = TokenStore(LocalStorage(None))
    store.set_token(DEFAULT_TOKEN)
    return store


@pytest.fixture
def portal_state():
    return PortalState(now=FIXED_NOW)


@pytest.fixture
def stub_app(portal_state):
    return create_app(portal_state)


@pytest.fixture
def api_client(token_store, stub_app):
    return PortalAPIClient(
        token_store=token_store,
        base_url=STUB_BASE_URL,
        transport=httpx.ASGITransport(app=stub_app),
    )


@pytest.fixture
def http_client(stub_app):
    client = TestClient(stub_app)
    client.headers.update({"Authorization": f"Bearer {DEFAULT_TOKEN}"})
    return client


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def timer():
    return ManualTimer()
