"""
finalboss.services.drop_service — Gated Drop Logging
=====================================================

Turns a loot event from the game client into :class:`DropRecord` rows.
Items below the value threshold are ignored.  Nothing is submitted
unless drop logging is enabled and the session is verified; every row
is attributed to the gate's verified RSN.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from finalboss.engine.gate import VerificationGate
from finalboss.services.backend_client import BackendClient
from finalboss.services.models import DropRecord

__all__ = ["DropService", "LootEvent", "LootItem"]

logger = logging.getLogger(__name__)

UNKNOWN_ITEM = "Unknown Item"


@dataclass(frozen=True, slots=True)
class LootItem:
    """One item stack as reported by the client.  Prices are per item."""

    item_id: int
    quantity: int
    name: str | None = None
    ge_price: int = 0
    ha_price: int = 0

    @property
    def value(self) -> int:
        """Stack value: Grand Exchange price, falling back to high-alch."""
        ge_total = self.ge_price * self.quantity
        return ge_total if ge_total > 0 else self.ha_price * self.quantity


@dataclass(frozen=True, slots=True)
class LootEvent:
    source: str | None
    items: list[LootItem] = field(default_factory=list)


class DropService:
    def __init__(
        self,
        gate: VerificationGate,
        backend: BackendClient,
        *,
        threshold: int = 1_000_000,
        enabled: bool = True,
    ) -> None:
        self.gate = gate
        self.backend = backend
        self.threshold = threshold
        self.enabled = enabled

    def build_records(self, event: LootEvent, rsn: str) -> list[DropRecord]:
        """Records for every item in *event* that clears the threshold."""
        records: list[DropRecord] = []
        for item in event.items:
            if item.quantity <= 0:
                continue
            value = item.value
            name = item.name or UNKNOWN_ITEM
            if self.threshold > 0 and value < self.threshold:
                logger.debug(
                    "Drop below threshold: %s x%d = %d gp (threshold: %d)",
                    name, item.quantity, value, self.threshold,
                )
                continue
            records.append(
                DropRecord(
                    rsn=rsn,
                    item_id=item.item_id,
                    item_name=name,
                    quantity=item.quantity,
                    value=value,
                    source=event.source,
                )
            )
        return records

    async def process_loot(self, event: LootEvent | None) -> list[DropRecord]:
        """Submit qualifying drops; return the ones the backend accepted."""
        if event is None or not event.items:
            return []
        if not self.enabled:
            return []
        if not self.gate.is_verified():
            logger.debug("Skipping drop logging: not verified")
            return []
        if not self.backend.is_configured:
            logger.warning("Cannot log drops: backend not configured")
            return []

        rsn = self.gate.current_identity()
        logged: list[DropRecord] = []
        for record in self.build_records(event, rsn):
            logger.info(
                "Notable drop: %s x%d (%d gp) from %s",
                record.item_name, record.quantity, record.value, record.source,
            )
            if await self.backend.insert_drop(record):
                logged.append(record)
            else:
                logger.warning("Failed to log drop %s", record.item_name)
        return logged
