"""
tests/test_companion.py — Companion Session Wiring
===================================================
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import StubFetcher, make_config, run_async

from finalboss.companion import FinalBossCompanion
from finalboss.engine.roster import RosterCache
from finalboss.services.drop_service import LootEvent, LootItem


@pytest.fixture
def backend() -> MagicMock:
    b = MagicMock()
    b.is_configured = True
    b.upsert_status = AsyncMock(return_value=True)
    b.insert_drop = AsyncMock(return_value=True)
    b.get_statuses = AsyncMock(return_value=[])
    return b


def _companion(fetcher, clock, backend, **cfg) -> FinalBossCompanion:
    roster = RosterCache(fetcher, ttl=300, clock=clock)
    return FinalBossCompanion(make_config(**cfg), roster=roster, backend=backend)


class TestVerificationFlow:
    def test_chat_code_then_verify(self, clock, backend):
        fb = _companion(StubFetcher(["Iron Man"]), clock, backend)
        code = fb.start_code_verification()
        ok = run_async(fb.on_chat_message("Iron_Man", f"verifying {code}", "Iron Man"))
        assert ok is True
        assert fb.gate.current_identity() == "Iron Man"

    def test_chat_code_for_non_member(self, clock, backend):
        fb = _companion(StubFetcher(["Zezima"]), clock, backend)
        code = fb.start_code_verification()
        assert run_async(fb.on_chat_message("Woox", code, "Woox")) is False
        assert not fb.gate.is_verified()

    def test_unrelated_chat_does_nothing(self, clock, backend):
        fetcher = StubFetcher(["Zezima"])
        fb = _companion(fetcher, clock, backend)
        fb.start_code_verification()
        assert run_async(fb.on_chat_message("Zezima", "gz!", "Zezima")) is False
        assert fetcher.calls == 0

    def test_logout_clears_gate_and_challenge(self, clock, backend):
        fb = _companion(StubFetcher(["Zezima"]), clock, backend)
        run_async(fb.verify("Zezima"))
        fb.start_code_verification()
        fb.logout()
        assert not fb.gate.is_verified()
        assert not fb.challenge.pending


class TestRefreshRoster:
    def test_success_message(self, clock, backend):
        fb = _companion(StubFetcher(["a", "b"]), clock, backend)
        assert run_async(fb.refresh_roster()) == "Roster refreshed: 2 members."

    def test_failure_message_is_user_friendly(self, clock, backend, fetch_error):
        fb = _companion(StubFetcher(fetch_error), clock, backend)
        message = run_async(fb.refresh_roster())
        assert "try again" in message
        assert "503" not in message


class TestGatedWrites:
    def test_status_requires_verification(self, clock, backend):
        fb = _companion(StubFetcher(["Zezima"]), clock, backend)
        assert run_async(fb.set_status("Bossing")) is False
        run_async(fb.verify("zezima"))
        assert run_async(fb.set_status("Bossing")) is True
        assert backend.upsert_status.await_args.args[0].rsn == "zezima"

    def test_status_sync_disabled(self, clock, backend):
        fb = _companion(StubFetcher(["Zezima"]), clock, backend, sync_status=False)
        run_async(fb.verify("Zezima"))
        assert run_async(fb.set_status("Bossing")) is False
        backend.upsert_status.assert_not_called()

    def test_drops_use_configured_threshold(self, clock, backend):
        fb = _companion(StubFetcher(["Zezima"]), clock, backend, drop_threshold=100)
        run_async(fb.verify("Zezima"))
        event = LootEvent(source="Zulrah", items=[
            LootItem(item_id=1, quantity=1, name="Scales", ge_price=50),
            LootItem(item_id=2, quantity=1, name="Tanzanite fang", ge_price=1_500_000),
        ])
        logged = run_async(fb.process_loot(event))
        assert [d.item_name for d in logged] == ["Tanzanite fang"]

    def test_revocation_blocks_writes(self, clock, backend):
        fetcher = StubFetcher(["Zezima"])
        fb = _companion(fetcher, clock, backend)
        run_async(fb.verify("Zezima"))
        run_async(fb.verify("Woox"))
        assert run_async(fb.set_status("AFK")) is False


class TestBackgroundRefresh:
    def test_disabled_by_default(self, clock, backend):
        fb = _companion(StubFetcher(["Zezima"]), clock, backend)

        async def scenario():
            fb.start_background_refresh()
            return fb._refresh_task

        assert run_async(scenario()) is None

    def test_refreshes_and_survives_failures(self, clock, backend, fetch_error):
        fetcher = StubFetcher(fetch_error, ["Zezima"])
        fb = _companion(fetcher, clock, backend)

        async def scenario():
            fb.start_background_refresh(interval=0.01)
            await asyncio.sleep(0.1)
            fb.stop_background_refresh()
            await asyncio.sleep(0.01)

        run_async(scenario())
        assert fetcher.calls >= 2
        assert fb.roster.current_size() == 1
