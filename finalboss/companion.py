"""
finalboss.companion — One Companion Session
============================================

Wires the roster cache, verification gate, chat-code challenge and the
gated services into the object a game-client plugin holds for the
lifetime of a session.  Nothing here is a process-wide singleton; build
one :class:`FinalBossCompanion` per session.

Flow::

    code = companion.start_code_verification()   # show to the player
    await companion.on_chat_message(sender, text, local_player)
    # → challenge matched → gate.verify(rsn)
    await companion.set_status("Bossing", note="Vorkath")
    await companion.process_loot(event)
"""

from __future__ import annotations

import asyncio
import logging

from finalboss.config import FinalBossConfig
from finalboss.engine.challenge import CodeChallenge
from finalboss.engine.errors import RosterRefreshError
from finalboss.engine.gate import VerificationGate
from finalboss.engine.roster import RosterCache
from finalboss.services.backend_client import BackendClient
from finalboss.services.drop_service import DropService, LootEvent
from finalboss.services.models import DropRecord, StatusRecord
from finalboss.services.status_service import StatusService
from finalboss.services.wom_client import WomClient

__all__ = ["FinalBossCompanion"]

logger = logging.getLogger(__name__)


class FinalBossCompanion:
    """Per-session facade over the gate and the gated write services."""

    def __init__(
        self,
        cfg: FinalBossConfig,
        *,
        roster: RosterCache,
        backend: BackendClient,
    ) -> None:
        self.cfg = cfg
        self.roster = roster
        self.backend = backend
        self.gate = VerificationGate(roster)
        self.challenge = CodeChallenge()
        self.statuses = StatusService(
            self.gate, backend, default_ttl_minutes=cfg.status_timeout_minutes,
        )
        self.drops = DropService(
            self.gate, backend, threshold=cfg.drop_threshold, enabled=cfg.log_drops,
        )
        self._refresh_task: asyncio.Task | None = None

    @classmethod
    def from_config(cls, cfg: FinalBossConfig) -> FinalBossCompanion:
        """Build a session talking to the real WOM and Supabase endpoints."""
        wom = WomClient(cfg.wom_group_id, timeout=cfg.roster_fetch_timeout)
        roster = RosterCache(
            wom.fetch_roster,
            ttl=cfg.roster_ttl_seconds,
            fetch_timeout=cfg.roster_fetch_timeout,
        )
        backend = BackendClient(cfg.api_url, cfg.api_key)
        return cls(cfg, roster=roster, backend=backend)

    # -------------------------------------------------------------------
    # Verification
    # -------------------------------------------------------------------
    async def verify(self, rsn: str | None) -> bool:
        return await self.gate.verify(rsn)

    def logout(self) -> None:
        self.challenge.cancel()
        self.gate.clear()

    def start_code_verification(self) -> str:
        return self.challenge.start()

    def cancel_code_verification(self) -> None:
        self.challenge.cancel()

    async def on_chat_message(
        self,
        sender: str | None,
        message: str | None,
        local_player: str | None,
        *,
        clan_chat: bool = True,
    ) -> bool:
        """Feed a chat line to the challenge; verify the RSN once it matches.

        Returns True only if the message completed the challenge and the
        RSN is on the roster.
        """
        rsn = self.challenge.match(sender, message, local_player, clan_chat=clan_chat)
        if rsn is None:
            return False
        return await self.gate.verify(rsn)

    async def refresh_roster(self) -> str:
        """User-initiated refresh.  Returns a message fit for display."""
        try:
            size = await self.roster.refresh()
        except RosterRefreshError as exc:
            logger.warning("Manual roster refresh failed: %s", exc.__cause__)
            return str(exc)
        return f"Roster refreshed: {size} members."

    # -------------------------------------------------------------------
    # Gated writes
    # -------------------------------------------------------------------
    async def set_status(
        self, status: str, note: str | None = None, ttl_minutes: int | None = None,
    ) -> bool:
        if not self.cfg.sync_status:
            logger.debug("Status sync disabled; not publishing %s", status)
            return False
        return await self.statuses.set_status(status, note, ttl_minutes)

    async def active_statuses(self) -> list[StatusRecord]:
        return await self.statuses.active_statuses()

    async def process_loot(self, event: LootEvent | None) -> list[DropRecord]:
        return await self.drops.process_loot(event)

    # -------------------------------------------------------------------
    # Background refresh
    # -------------------------------------------------------------------
    def start_background_refresh(self, interval: float | None = None) -> None:
        """Keep the roster warm by refreshing every *interval* seconds.

        Defaults to ``cfg.roster_refresh_interval``; a non-positive
        interval leaves the task off.  Must be called from a running loop.
        """
        interval = self.cfg.roster_refresh_interval if interval is None else interval
        if interval <= 0 or self._refresh_task is not None:
            return

        async def _refresh_loop() -> None:
            while True:
                try:
                    await self.roster.refresh()
                except RosterRefreshError as exc:
                    logger.warning("Background roster refresh failed: %s", exc.__cause__)
                except Exception:
                    logger.exception("Background roster refresh error")
                await asyncio.sleep(interval)

        self._refresh_task = asyncio.get_running_loop().create_task(
            _refresh_loop(), name="roster-refresh",
        )

    def stop_background_refresh(self) -> None:
        if self._refresh_task:
            self._refresh_task.cancel()
            self._refresh_task = None
