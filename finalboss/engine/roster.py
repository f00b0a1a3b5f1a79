"""
finalboss.engine.roster — TTL Roster Cache
===========================================

Holds the last-fetched clan roster as an immutable :class:`RosterSnapshot`
and answers membership queries against it.  A snapshot is fresh for
``ttl`` seconds; after that the next query triggers a refresh through the
injected fetcher.

The current snapshot is replaced wholesale by a single attribute
assignment, so concurrent readers see either the old roster or the new
one, never a mix.  Concurrent refreshes share one in-flight task.

Usage::

    cache = RosterCache(wom.fetch_roster, ttl=300)
    if await cache.is_member("Iron_Man"):
        ...
    size = await cache.refresh()   # raises RosterRefreshError on failure
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from finalboss.engine.errors import RosterFetchError, RosterRefreshError
from finalboss.engine.names import normalize_rsn

__all__ = [
    "DEFAULT_FETCH_TIMEOUT",
    "DEFAULT_TTL_SECONDS",
    "Clock",
    "RosterCache",
    "RosterFetcher",
    "RosterSnapshot",
]

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_FETCH_TIMEOUT = 30.0

RosterFetcher = Callable[[], Awaitable[Sequence[str]]]
Clock = Callable[[], float]


# ---------------------------------------------------------------------------
# RosterSnapshot: one immutable fetch result
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class RosterSnapshot:
    """An ordered roster captured at ``fetched_at``.

    ``keys`` holds the normalized form of every member so lookups don't
    re-normalize the whole roster on each query.
    """

    members: tuple[str, ...]
    fetched_at: float
    expires_at: float
    keys: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        keys = frozenset(normalize_rsn(m) for m in self.members)
        object.__setattr__(self, "keys", keys - {""})

    @classmethod
    def capture(cls, members: Sequence[str], now: float, ttl: float) -> RosterSnapshot:
        return cls(members=tuple(members), fetched_at=now, expires_at=now + ttl)

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at

    def contains(self, identity: str | None) -> bool:
        key = normalize_rsn(identity)
        return bool(key) and key in self.keys

    def __len__(self) -> int:
        return len(self.members)


# ---------------------------------------------------------------------------
# RosterCache
# ---------------------------------------------------------------------------
class RosterCache:
    """Membership cache over a slowly-changing remote roster.

    Parameters
    ----------
    fetcher:
        Async callable returning the raw member names.  May raise; any
        failure (including a timeout or a malformed result) is treated as
        a :class:`RosterFetchError`.
    ttl:
        Seconds a snapshot stays fresh.
    fetch_timeout:
        Upper bound on a single fetch, in seconds.
    clock:
        Monotonic time source; injectable for tests.
    """

    def __init__(
        self,
        fetcher: RosterFetcher,
        *,
        ttl: float = DEFAULT_TTL_SECONDS,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
        clock: Clock = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        self._fetcher = fetcher
        self._ttl = ttl
        self._fetch_timeout = fetch_timeout
        self._clock = clock

        self._snapshot: RosterSnapshot | None = None
        self._inflight: asyncio.Task[RosterSnapshot] | None = None

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    @property
    def snapshot(self) -> RosterSnapshot | None:
        return self._snapshot

    @property
    def ttl(self) -> float:
        return self._ttl

    def current_size(self) -> int:
        """Number of members in the current snapshot (0 if none).  No I/O."""
        snap = self._snapshot
        return len(snap) if snap is not None else 0

    def is_fresh(self) -> bool:
        snap = self._snapshot
        return snap is not None and snap.is_fresh(self._clock())

    async def is_member(self, identity: str | None) -> bool:
        """Return True if *identity* is on the roster.

        Answers from a fresh snapshot without I/O.  Otherwise refreshes
        first; if that fails, falls back to the stale snapshot, or False
        when nothing has ever been fetched.  Never raises on fetch failure.
        """
        if not normalize_rsn(identity):
            return False

        snap = self._snapshot
        if snap is None or not snap.is_fresh(self._clock()):
            try:
                snap = await self._refresh()
            except RosterFetchError:
                snap = self._snapshot
                if snap is None:
                    logger.debug("No roster available; %r is not a member", identity)
                    return False
                logger.debug("Answering from stale roster (%d members)", len(snap))

        found = snap.contains(identity)
        logger.debug("Roster membership for %r: %s", identity, found)
        return found

    # -------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------
    async def refresh(self) -> int:
        """Force a refresh regardless of freshness; return the new size.

        Raises
        ------
        RosterRefreshError
            If the fetch failed.  The previous snapshot is kept.
        """
        try:
            snap = await self._refresh()
        except RosterFetchError as exc:
            raise RosterRefreshError() from exc
        return len(snap)

    async def _refresh(self) -> RosterSnapshot:
        """Join the in-flight refresh, or start one.

        Waiters are shielded so a cancelled caller doesn't cancel the
        fetch; it still completes and populates the cache for others.
        """
        task = self._inflight
        if task is None or task.done():
            task = asyncio.ensure_future(self._fetch_and_install())
            task.add_done_callback(self._on_refresh_done)
            self._inflight = task
        return await asyncio.shield(task)

    def _on_refresh_done(self, task: asyncio.Task[RosterSnapshot]) -> None:
        if self._inflight is task:
            self._inflight = None
        # Retrieve the exception so an unawaited failure isn't reported
        # as "never retrieved" when every waiter was cancelled.
        if not task.cancelled():
            task.exception()

    async def _fetch_and_install(self) -> RosterSnapshot:
        try:
            raw = await asyncio.wait_for(self._fetcher(), timeout=self._fetch_timeout)
        except RosterFetchError as exc:
            logger.warning("Roster fetch failed: %s", exc)
            raise
        except TimeoutError as exc:
            logger.warning("Roster fetch timed out after %.1fs", self._fetch_timeout)
            raise RosterFetchError(
                f"roster fetch timed out after {self._fetch_timeout}s"
            ) from exc
        except Exception as exc:
            logger.exception("Roster fetcher raised unexpectedly")
            raise RosterFetchError(str(exc) or type(exc).__name__) from exc

        members = _validate_members(raw)
        snap = RosterSnapshot.capture(members, self._clock(), self._ttl)
        self._snapshot = snap
        logger.info("Roster refreshed: %d members", len(snap))
        return snap


def _validate_members(raw: object) -> tuple[str, ...]:
    """Reject results that aren't a sequence of strings."""
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence):
        logger.warning("Roster fetcher returned %s, expected a sequence", type(raw).__name__)
        raise RosterFetchError(f"malformed roster: {type(raw).__name__}")
    if not all(isinstance(m, str) for m in raw):
        logger.warning("Roster contained non-string entries")
        raise RosterFetchError("malformed roster: non-string entries")
    return tuple(raw)
