"""
finalboss.services.throttle — Per-Channel Announcement Throttle
================================================================

A raid-chest can log several drops within a second.  This throttle caps
announcements per channel within a sliding window and parks the
overflow on a queue that a background task drains every few seconds.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict, deque
from collections.abc import Callable

import discord
from discord.abc import Messageable

logger = logging.getLogger(__name__)


class AnnouncementThrottle:
    """Sliding-window limit of ``max_per_window`` sends per ``window`` seconds."""

    def __init__(
        self,
        max_per_window: int = 5,
        window: float = 60.0,
        *,
        drain_interval: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_per_window = max_per_window
        self.window = window
        self.drain_interval = drain_interval
        self._clock = clock
        self._sent: dict[int, deque[float]] = defaultdict(deque)
        self._queues: dict[int, deque[tuple[Messageable, discord.Embed]]] = defaultdict(deque)
        self._drain_task: asyncio.Task | None = None

    def is_allowed(self, channel_id: int) -> bool:
        """Claim a send slot for *channel_id* if one is free."""
        now = self._clock()
        stamps = self._sent[channel_id]
        while stamps and stamps[0] <= now - self.window:
            stamps.popleft()
        if len(stamps) >= self.max_per_window:
            return False
        stamps.append(now)
        return True

    def pending(self, channel_id: int | None = None) -> int:
        if channel_id is not None:
            return len(self._queues.get(channel_id, ()))
        return sum(len(q) for q in self._queues.values())

    async def submit(self, channel_id: int, channel: Messageable, embed: discord.Embed) -> bool:
        """Send now if allowed, else queue.  Returns True if sent immediately."""
        if self._queues.get(channel_id) or not self.is_allowed(channel_id):
            self._queues[channel_id].append((channel, embed))
            logger.debug("Announcement queued for channel %d", channel_id)
            return False
        await self._send(channel_id, channel, embed)
        return True

    async def drain_once(self) -> int:
        """Send queued embeds for channels whose window has reopened."""
        sent = 0
        for ch_id, queue in list(self._queues.items()):
            while queue and self.is_allowed(ch_id):
                channel, embed = queue.popleft()
                await self._send(ch_id, channel, embed)
                sent += 1
        return sent

    async def _send(self, channel_id: int, channel: Messageable, embed: discord.Embed) -> None:
        try:
            await channel.send(embed=embed)
        except discord.HTTPException:
            logger.exception("Failed to send announcement to channel %d", channel_id)

    def start(self) -> None:
        """Start the background drain task on the running loop."""
        if self._drain_task is not None:
            return

        async def _drain_loop() -> None:
            while True:
                await asyncio.sleep(self.drain_interval)
                try:
                    await self.drain_once()
                except Exception:
                    logger.exception("Throttle drain error")

        self._drain_task = asyncio.get_running_loop().create_task(
            _drain_loop(), name="announce-drain",
        )

    def stop(self) -> None:
        if self._drain_task:
            self._drain_task.cancel()
            self._drain_task = None
