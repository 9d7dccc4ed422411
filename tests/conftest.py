"""Shared fakes for volume monitor tests."""
from datetime import datetime, timedelta
from typing import Dict, List

import pytest

from core.models import MonitorConfig


class FakeResponse:
    """Async context manager standing in for aiohttp.ClientResponse."""

    def __init__(self, status: int = 200, payload=None):
        self.status = status
        self.payload = payload

    async def json(self, content_type=None):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Routes GET requests by URL path suffix to canned responses or exceptions."""

    def __init__(self, routes: Dict[str, object]):
        self.routes = routes
        self.calls: List[tuple] = []
        self.closed = False

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        for path, result in self.routes.items():
            if url.endswith(path):
                if isinstance(result, Exception):
                    raise result
                return result
        return FakeResponse(status=404, payload={})

    async def close(self):
        self.closed = True


class FakeMarketData:
    """Market data router returning a scripted result per symbol per cycle."""

    def __init__(self, script: Dict[str, list], volume_24h: float = 1_500_000.0):
        self.script = {symbol: list(items) for symbol, items in script.items()}
        self.volume_24h = volume_24h
        self.calls: List[str] = []

    async def fetch_recent_volume_series(self, symbol, market_type, interval_minutes=5, count=12):
        self.calls.append(symbol)
        item = self.script[symbol].pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def fetch_24h_volume(self, symbol, market_type):
        return self.volume_24h

    async def close(self):
        pass


class FakeScheduler:
    """Records sleeps without waiting; cancels itself after N poll-interval sleeps."""

    def __init__(self, poll_seconds: float = 60.0, stop_after_cycles: int = 1):
        self.poll_seconds = poll_seconds
        self.stop_after_cycles = stop_after_cycles
        self.sleeps: List[float] = []
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self):
        self._cancelled = True

    async def sleep(self, seconds: float) -> bool:
        self.sleeps.append(seconds)
        if seconds == self.poll_seconds and self.sleeps.count(self.poll_seconds) >= self.stop_after_cycles:
            self._cancelled = True
        return self._cancelled


class SteppingClock:
    """Clock that advances by `step` on every call."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 12, 0, 0), step: timedelta = timedelta(seconds=60)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now += self.step
        return current


@pytest.fixture
def make_config():
    def _make(**overrides) -> MonitorConfig:
        values = dict(
            symbols=["BTCUSDT"],
            volume_multiplier=2.0,
            poll_interval_ms=60_000,
            history_size=3,
            symbol_delay_ms=1_000,
        )
        values.update(overrides)
        return MonitorConfig(**values)

    return _make


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_market_data():
    return FakeMarketData


@pytest.fixture
def fake_scheduler():
    return FakeScheduler


@pytest.fixture
def stepping_clock():
    return SteppingClock()
