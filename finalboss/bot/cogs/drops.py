"""
finalboss.bot.cogs.drops — Drop Announcer
==========================================

Polls the backend for drops logged since the last poll and posts each
one at or above ``announce_threshold`` to the announcement channel,
through the per-channel throttle.

Only drops logged after the cog loads are announced; history is never
replayed on restart.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from discord.ext import commands, tasks

from finalboss.services.embeds import build_drop_embed
from finalboss.services.models import DropRecord

if TYPE_CHECKING:
    from finalboss.bot.core import FinalBossBot

logger = logging.getLogger(__name__)


def _as_utc(ts: datetime | None) -> datetime | None:
    if ts is not None and ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts


class DropAnnouncer(commands.Cog, name="Drops"):
    """Mirrors newly logged drops into Discord."""

    def __init__(self, bot: FinalBossBot) -> None:
        self.bot = bot
        self.since: datetime = datetime.now(UTC)
        self._seen_ids: set[str] = set()

    async def cog_load(self) -> None:
        if not self.bot.cfg.announce_drops:
            logger.info("Drop announcements disabled in config")
            return
        self.poll_loop.change_interval(seconds=self.bot.cfg.drop_poll_seconds)
        self.poll_loop.start()

    async def cog_unload(self) -> None:
        self.poll_loop.cancel()

    def should_announce(self, drop: DropRecord) -> bool:
        threshold = self.bot.cfg.announce_threshold
        return threshold <= 0 or (drop.value or 0) >= threshold

    async def poll_once(self) -> int:
        """Fetch new drops and announce them.  Returns how many were announced."""
        drops = await self.bot.backend.get_drops_since(self.since)
        if not drops:
            return 0

        channel = await self.bot.resolve_announce_channel()
        announced = 0
        for drop in drops:
            created = _as_utc(drop.created_at)
            if created is not None and created > self.since:
                self.since = created
            if drop.id is not None:
                if drop.id in self._seen_ids:
                    continue
                self._seen_ids.add(drop.id)
            if channel is None or not self.should_announce(drop):
                continue

            embed = build_drop_embed(drop, self.bot.cfg.clan_name)
            await self.bot.throttle.submit(self.bot.cfg.announce_channel_id, channel, embed)
            logger.info("Announced drop: %s by %s", drop.item_name, drop.rsn)
            announced += 1

        if channel is None:
            logger.warning("No announcement channel configured; skipped %d drop(s)", len(drops))
        # The backend bound is inclusive, so only ids at the cursor can reappear.
        if len(self._seen_ids) > 500:
            self._seen_ids = {
                d.id for d in drops
                if d.id is not None and _as_utc(d.created_at) == self.since
            }
        return announced

    @tasks.loop(seconds=30)
    async def poll_loop(self):
        try:
            await self.poll_once()
        except Exception:
            logger.exception("Drop poll failed", extra={"task": "drop_poll"})

    @poll_loop.before_loop
    async def _wait_poll(self):
        await self.bot.wait_until_ready()


async def setup(bot: FinalBossBot) -> None:
    await bot.add_cog(DropAnnouncer(bot))
