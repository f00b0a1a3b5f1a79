"""
finalboss.services.models — Backend Records
============================================

pydantic models mirroring the ``statuses`` and ``drops`` tables.  Field
names match the PostgREST column names so records serialize straight
into request bodies.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

__all__ = ["STATUS_CHOICES", "DropRecord", "StatusRecord", "format_gp"]

STATUS_CHOICES: tuple[str, ...] = (
    "Available",
    "Bossing",
    "TOB",
    "COX",
    "TOA",
    "Skilling",
    "AFK",
)


def format_gp(value: int) -> str:
    """Compact GP display: ``1.23B``, ``1.5M``, ``500K``, ``999gp``."""
    if value >= 1_000_000_000:
        return f"{value / 1_000_000_000:.2f}B"
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.0f}K"
    return f"{value}gp"


class StatusRecord(BaseModel):
    rsn: str
    status: str
    note: str | None = None
    updated_at: datetime | None = None
    expires_at: datetime | None = None  # None = never expires

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(UTC)
        expires = self.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=UTC)
        return now >= expires


class DropRecord(BaseModel):
    """One notable drop.  ``value`` is the total for the whole stack."""

    rsn: str
    item_id: int
    item_name: str
    quantity: int = Field(default=1, ge=1)
    value: int | None = Field(default=0, ge=0)
    source: str | None = None
    id: str | None = None
    created_at: datetime | None = None

    @property
    def formatted_value(self) -> str:
        return format_gp(self.value or 0)

    def to_payload(self) -> dict:
        """Insert body; server-assigned columns are omitted."""
        return self.model_dump(mode="json", exclude={"id", "created_at"})
