"""
finalboss.services.status_service — Gated Status Sharing
=========================================================

Publishes the session's activity status ("Bossing", "TOB", …) for other
clan members to see.  Only a verified session may publish, and the row
is always attributed to the gate's verified RSN.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from finalboss.engine.gate import VerificationGate
from finalboss.services.backend_client import BackendClient
from finalboss.services.models import STATUS_CHOICES, StatusRecord

__all__ = ["StatusService"]

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class StatusService:
    def __init__(
        self,
        gate: VerificationGate,
        backend: BackendClient,
        *,
        default_ttl_minutes: int = 30,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.gate = gate
        self.backend = backend
        self.default_ttl_minutes = default_ttl_minutes
        self._now = now

    async def set_status(
        self,
        status: str,
        note: str | None = None,
        ttl_minutes: int | None = None,
    ) -> bool:
        """Publish *status* for the verified RSN.

        *ttl_minutes* defaults to the configured status timeout; 0 means
        the status never expires.  Returns False without touching the
        backend if the session is unverified, the backend is not
        configured, or *status* is not a known choice.
        """
        if not self.gate.is_verified():
            logger.warning("Cannot set status: not verified as a clan member")
            return False
        if not self.backend.is_configured:
            logger.warning("Cannot set status: backend not configured")
            return False
        if status not in STATUS_CHOICES:
            logger.warning("Cannot set status: unknown status %r", status)
            return False

        ttl = self.default_ttl_minutes if ttl_minutes is None else ttl_minutes
        now = self._now()
        record = StatusRecord(
            rsn=self.gate.current_identity(),
            status=status,
            note=note or None,
            updated_at=now,
            expires_at=now + timedelta(minutes=ttl) if ttl > 0 else None,
        )
        logger.info("Setting status for %r: %s (ttl=%d min)", record.rsn, status, ttl)
        return await self.backend.upsert_status(record)

    async def active_statuses(self) -> list[StatusRecord]:
        """Everyone's statuses, minus the ones that have expired."""
        now = self._now()
        records = await self.backend.get_statuses()
        return [r for r in records if not r.is_expired(now)]
