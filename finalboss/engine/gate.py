"""
finalboss.engine.gate — Verification Gate
==========================================

The single source of truth for "may this session write?".  Holds at most
one verified RSN.  Status updates and drop submissions check
:meth:`VerificationGate.is_verified` and attribute their writes to
:meth:`VerificationGate.current_identity`; nothing else performs its own
membership check.

State machine::

    UNVERIFIED ──verify() ok──▶ VERIFIED
        ▲                          │
        └── verify() fails / clear()

A failed re-verification revokes an earlier success.
"""

from __future__ import annotations

import enum
import logging

from finalboss.engine.names import normalize_rsn
from finalboss.engine.roster import RosterCache

__all__ = ["GateState", "VerificationGate"]

logger = logging.getLogger(__name__)


class GateState(enum.Enum):
    UNVERIFIED = "unverified"
    VERIFIED = "verified"


class VerificationGate:
    """Single-slot verification state backed by a :class:`RosterCache`.

    Concurrent :meth:`verify` calls are not serialized; the last one to
    finish wins.  Callers that need strict ordering should serialize
    ``verify`` per session.
    """

    def __init__(self, roster: RosterCache) -> None:
        self._roster = roster
        self._identity: str | None = None

    @property
    def roster(self) -> RosterCache:
        return self._roster

    @property
    def state(self) -> GateState:
        return GateState.VERIFIED if self._identity is not None else GateState.UNVERIFIED

    def is_verified(self) -> bool:
        return self._identity is not None

    def current_identity(self) -> str | None:
        """The verified RSN exactly as it was passed to :meth:`verify`."""
        return self._identity

    async def verify(self, identity: str | None) -> bool:
        """Check *identity* against the roster and update the slot.

        Empty or blank input returns False without consulting the roster
        and leaves the current state alone.
        """
        if not normalize_rsn(identity):
            logger.debug("verify() called with empty RSN; ignoring")
            return False

        if await self._roster.is_member(identity):
            self._transition(identity)
            return True

        logger.warning("RSN %r is not on the clan roster", identity)
        self._transition(None)
        return False

    def clear(self) -> None:
        """Drop any verified identity (e.g. on logout)."""
        self._transition(None)

    def _transition(self, identity: str | None) -> None:
        previous = self._identity
        self._identity = identity
        if previous == identity:
            return
        if identity is None:
            logger.info("Verification revoked for %r", previous)
        elif previous is None:
            logger.info("Verified RSN %r", identity)
        else:
            logger.info("Verified RSN changed from %r to %r", previous, identity)
