"""
finalboss.engine.errors — Domain Exceptions
============================================

Failures below the roster cache boundary are absorbed there; only an
explicit, user-initiated refresh surfaces :class:`RosterRefreshError`.
"""

from __future__ import annotations

__all__ = ["FinalBossError", "RosterFetchError", "RosterRefreshError"]


class FinalBossError(Exception):
    """Base class for all FinalBoss errors."""


class RosterFetchError(FinalBossError):
    """The roster source could not be reached or returned invalid data."""


class RosterRefreshError(FinalBossError):
    """A forced roster refresh failed.

    The message is safe to show to an end user; the underlying
    :class:`RosterFetchError` is chained as ``__cause__``.
    """

    def __init__(self, message: str = "Could not refresh the clan roster, try again.") -> None:
        super().__init__(message)
