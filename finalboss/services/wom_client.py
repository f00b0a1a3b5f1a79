"""
finalboss.services.wom_client — Wise Old Man Roster Fetcher
============================================================

Fetches the clan's group roster from the Wise Old Man v2 API.  Its
:meth:`WomClient.fetch_roster` is the fetcher handed to
:class:`~finalboss.engine.roster.RosterCache`; every failure mode
(transport error, non-200, unparseable body) surfaces as
:class:`~finalboss.engine.errors.RosterFetchError`.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel, ConfigDict, Field

from finalboss.engine.errors import RosterFetchError

__all__ = ["WOM_API_URL", "WomClient", "WomGroup"]

logger = logging.getLogger(__name__)

WOM_API_URL = "https://api.wiseoldman.net/v2"
USER_AGENT = "FinalBoss-Companion"


# ---------------------------------------------------------------------------
# Response shape: only the fields we read
# ---------------------------------------------------------------------------
class WomPlayer(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    display_name: str | None = Field(default=None, alias="displayName")


class WomMembership(BaseModel):
    player: WomPlayer | None = None


class WomGroup(BaseModel):
    id: int | None = None
    name: str | None = None
    memberships: list[WomMembership]

    def display_names(self) -> list[str]:
        """Member names in roster order; memberships without a name are skipped."""
        return [
            m.player.display_name
            for m in self.memberships
            if m.player is not None and m.player.display_name
        ]


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------
class WomClient:
    """Read-only client for one WOM group.

    *transport* lets tests swap in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        group_id: int,
        *,
        base_url: str = WOM_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.group_id = group_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def fetch_group(self) -> WomGroup:
        url = f"{self.base_url}/groups/{self.group_id}"
        transport = self._transport or httpx.AsyncHTTPTransport(retries=1)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=transport) as client:
                resp = await client.get(url, headers={"User-Agent": USER_AGENT})
        except httpx.HTTPError as exc:
            logger.error("WOM request to %s failed: %s", url, exc)
            raise RosterFetchError(f"WOM request failed: {exc}") from exc

        if resp.status_code != 200:
            logger.error("WOM returned HTTP %d for group %d", resp.status_code, self.group_id)
            raise RosterFetchError(f"WOM returned HTTP {resp.status_code}")

        try:
            return WomGroup.model_validate(resp.json())
        except ValueError as exc:
            # Covers both JSONDecodeError and pydantic's ValidationError.
            logger.error("Unparseable WOM response for group %d: %s", self.group_id, exc)
            raise RosterFetchError("WOM response could not be parsed") from exc

    async def fetch_roster(self) -> list[str]:
        group = await self.fetch_group()
        names = group.display_names()
        logger.info("Fetched %d members from WOM group %d", len(names), self.group_id)
        return names
