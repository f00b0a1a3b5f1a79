"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import asyncio

import pytest

from finalboss.config import FinalBossConfig
from finalboss.engine.errors import RosterFetchError


def run_async(coro):
    """Run an async coroutine in a new event loop (no pytest-asyncio)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubFetcher:
    """Async roster fetcher returning scripted results.

    Each call pops the next entry of ``results``; an exception instance is
    raised instead of returned.  The last entry repeats once the script
    runs out.
    """

    def __init__(self, *results) -> None:
        self.results = list(results)
        self.calls = 0
        self.gate: asyncio.Event | None = None

    async def __call__(self):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fetch_error() -> RosterFetchError:
    return RosterFetchError("WOM returned HTTP 503")


def make_config(**overrides) -> FinalBossConfig:
    values = {
        "clan_name": "Final Boss",
        "wom_group_id": 1234,
        "api_url": "https://example.supabase.co",
        "api_key": "anon-key",
    }
    values.update(overrides)
    return FinalBossConfig(**values)
