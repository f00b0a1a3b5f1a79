"""
finalboss.bot.core — Bot Instance & Cog Loader
===============================================

:class:`FinalBossBot` is a ``commands.Bot`` subclass that carries the
shared state every cog reads through ``self.bot``:

- ``cfg``      — the parsed :class:`FinalBossConfig`
- ``backend``  — Supabase client the drop announcer polls
- ``roster``   — the clan roster cache behind /roster-check
- ``throttle`` — per-channel announcement throttle

Cogs in ``finalboss/bot/cogs/`` are loaded in :meth:`setup_hook`.
"""

from __future__ import annotations

import logging
import os

import discord
from discord.ext import commands

from finalboss.config import FinalBossConfig
from finalboss.engine.roster import RosterCache
from finalboss.services.backend_client import BackendClient
from finalboss.services.throttle import AnnouncementThrottle

logger = logging.getLogger(__name__)

EXTENSIONS: list[str] = [
    "finalboss.bot.cogs.drops",
    "finalboss.bot.cogs.roster",
]


class FinalBossBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state."""

    def __init__(
        self,
        cfg: FinalBossConfig,
        backend: BackendClient,
        roster: RosterCache,
        throttle: AnnouncementThrottle | None = None,
    ) -> None:
        intents = discord.Intents.default()
        intents.message_content = False

        super().__init__(
            command_prefix=cfg.bot_prefix,
            intents=intents,
            description=f"{cfg.clan_name} drop announcer",
        )

        self.cfg = cfg
        self.backend = backend
        self.roster = roster
        self.throttle = throttle or AnnouncementThrottle()

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load cogs; one broken cog shouldn't take the whole bot down."""
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        assert self.user is not None  # guaranteed after on_ready
        logger.info("Logged in as %s (ID: %s)", self.user.name, self.user.id)
        logger.info("Serving %d guild(s)", len(self.guilds))

        dev_guild_id = os.getenv("DEV_GUILD_ID")
        if dev_guild_id:
            guild = discord.Object(id=int(dev_guild_id))
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info("Synced %d commands to dev guild %s", len(synced), dev_guild_id)
        else:
            synced = await self.tree.sync()
            logger.info("Synced %d commands globally", len(synced))

        self.throttle.start()

    async def close(self) -> None:
        logger.info("Bot shutting down…")
        self.throttle.stop()
        await super().close()

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------
    async def resolve_announce_channel(self) -> discord.abc.Messageable | None:
        """The configured announcement channel, or None if unusable."""
        channel_id = self.cfg.announce_channel_id
        if not channel_id:
            return None
        channel = self.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.fetch_channel(channel_id)
            except discord.HTTPException:
                logger.error("Announcement channel %d could not be fetched", channel_id)
                return None
        if not isinstance(channel, discord.abc.Messageable):
            logger.error("Announcement channel %d is not a text channel", channel_id)
            return None
        return channel
