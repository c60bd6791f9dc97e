from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from placeport.config import Settings
from placeport.main import create_app


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(stats_backend="memory", environment="test")


@pytest.fixture
def app(settings, clock):
    return create_app(settings, clock=clock)


@pytest_asyncio.fixture
async def client(app) -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client
