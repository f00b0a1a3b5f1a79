"""
tests/test_services.py — Gated Status & Drop Services
======================================================

Both services must refuse to write unless the gate is verified, and must
attribute every write to the gate's verified RSN.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import StubFetcher, run_async

from finalboss.engine.gate import VerificationGate
from finalboss.engine.roster import RosterCache
from finalboss.services.drop_service import DropService, LootEvent, LootItem
from finalboss.services.models import StatusRecord
from finalboss.services.status_service import StatusService

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)


@pytest.fixture
def gate(clock) -> VerificationGate:
    return VerificationGate(RosterCache(StubFetcher(["Iron Man"]), clock=clock))


@pytest.fixture
def backend() -> MagicMock:
    b = MagicMock()
    b.is_configured = True
    b.upsert_status = AsyncMock(return_value=True)
    b.insert_drop = AsyncMock(return_value=True)
    b.get_statuses = AsyncMock(return_value=[])
    return b


# ---------------------------------------------------------------------------
# StatusService
# ---------------------------------------------------------------------------
class TestStatusService:
    def _service(self, gate, backend, **kw) -> StatusService:
        return StatusService(gate, backend, now=lambda: NOW, **kw)

    def test_unverified_refused(self, gate, backend):
        svc = self._service(gate, backend)
        assert run_async(svc.set_status("Bossing")) is False
        backend.upsert_status.assert_not_called()

    def test_verified_attributed_to_gate_identity(self, gate, backend):
        run_async(gate.verify("iron_man"))
        svc = self._service(gate, backend, default_ttl_minutes=30)
        assert run_async(svc.set_status("TOB", note="learner")) is True

        record = backend.upsert_status.await_args.args[0]
        assert record.rsn == "iron_man"
        assert record.status == "TOB"
        assert record.note == "learner"
        assert record.expires_at == NOW + timedelta(minutes=30)

    def test_zero_ttl_never_expires(self, gate, backend):
        run_async(gate.verify("Iron Man"))
        svc = self._service(gate, backend)
        run_async(svc.set_status("AFK", ttl_minutes=0))
        assert backend.upsert_status.await_args.args[0].expires_at is None

    def test_unknown_status_refused(self, gate, backend):
        run_async(gate.verify("Iron Man"))
        svc = self._service(gate, backend)
        assert run_async(svc.set_status("Botting")) is False
        backend.upsert_status.assert_not_called()

    def test_unconfigured_backend_refused(self, gate, backend):
        run_async(gate.verify("Iron Man"))
        backend.is_configured = False
        assert run_async(self._service(gate, backend).set_status("AFK")) is False

    def test_revoked_gate_refused(self, gate, backend):
        run_async(gate.verify("Iron Man"))
        gate.clear()
        assert run_async(self._service(gate, backend).set_status("AFK")) is False

    def test_active_statuses_drops_expired(self, gate, backend):
        backend.get_statuses.return_value = [
            StatusRecord(rsn="a", status="AFK"),
            StatusRecord(rsn="b", status="TOB", expires_at=NOW - timedelta(minutes=1)),
            StatusRecord(rsn="c", status="COX", expires_at=NOW + timedelta(minutes=1)),
        ]
        active = run_async(self._service(gate, backend).active_statuses())
        assert [s.rsn for s in active] == ["a", "c"]


# ---------------------------------------------------------------------------
# DropService
# ---------------------------------------------------------------------------
def _event(*items: LootItem, source: str = "Vorkath") -> LootEvent:
    return LootEvent(source=source, items=list(items))


class TestLootItem:
    def test_value_prefers_ge_price(self):
        assert LootItem(item_id=1, quantity=2, ge_price=100, ha_price=50).value == 200

    def test_value_falls_back_to_high_alch(self):
        assert LootItem(item_id=1, quantity=3, ge_price=0, ha_price=50).value == 150


class TestDropService:
    def test_unverified_submits_nothing(self, gate, backend):
        svc = DropService(gate, backend, threshold=0)
        event = _event(LootItem(item_id=1, quantity=1, name="Visage", ge_price=5_000_000))
        assert run_async(svc.process_loot(event)) == []
        backend.insert_drop.assert_not_called()

    def test_disabled_submits_nothing(self, gate, backend):
        run_async(gate.verify("Iron Man"))
        svc = DropService(gate, backend, threshold=0, enabled=False)
        event = _event(LootItem(item_id=1, quantity=1, name="Visage", ge_price=5_000_000))
        assert run_async(svc.process_loot(event)) == []

    def test_threshold_and_attribution(self, gate, backend):
        run_async(gate.verify("IRON MAN"))
        svc = DropService(gate, backend, threshold=1_000_000)
        event = _event(
            LootItem(item_id=11286, quantity=1, name="Draconic visage", ge_price=5_000_000),
            LootItem(item_id=536, quantity=2, name="Dragon bones", ge_price=2_000),
            LootItem(item_id=0, quantity=0, name="Ghost", ge_price=9_999_999),
        )
        logged = run_async(svc.process_loot(event))
        assert [d.item_name for d in logged] == ["Draconic visage"]
        assert logged[0].rsn == "IRON MAN"
        assert logged[0].source == "Vorkath"
        assert logged[0].value == 5_000_000
        backend.insert_drop.assert_awaited_once()

    def test_zero_threshold_logs_everything(self, gate, backend):
        run_async(gate.verify("Iron Man"))
        svc = DropService(gate, backend, threshold=0)
        event = _event(LootItem(item_id=995, quantity=10, name="Coins", ge_price=1))
        assert len(run_async(svc.process_loot(event))) == 1

    def test_missing_name_uses_placeholder(self, gate, backend):
        run_async(gate.verify("Iron Man"))
        svc = DropService(gate, backend, threshold=0)
        logged = run_async(svc.process_loot(_event(LootItem(item_id=1, quantity=1, ge_price=5))))
        assert logged[0].item_name == "Unknown Item"

    def test_backend_rejection_excluded(self, gate, backend):
        run_async(gate.verify("Iron Man"))
        backend.insert_drop.side_effect = [False, True]
        svc = DropService(gate, backend, threshold=0)
        event = _event(
            LootItem(item_id=1, quantity=1, name="A", ge_price=10),
            LootItem(item_id=2, quantity=1, name="B", ge_price=10),
        )
        assert [d.item_name for d in run_async(svc.process_loot(event))] == ["B"]

    def test_none_or_empty_event(self, gate, backend):
        run_async(gate.verify("Iron Man"))
        svc = DropService(gate, backend)
        assert run_async(svc.process_loot(None)) == []
        assert run_async(svc.process_loot(_event())) == []
