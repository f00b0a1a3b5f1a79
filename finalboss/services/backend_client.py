"""
finalboss.services.backend_client — Supabase REST Client
=========================================================

Thin async client over the PostgREST endpoints of the hosted backend.
Reads degrade to empty results; writes return ``False`` on failure.
Neither raises for transport or HTTP errors — callers log and move on.

Writes are only reachable through the gated services
(:mod:`finalboss.services.status_service`,
:mod:`finalboss.services.drop_service`).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from finalboss.services.models import DropRecord, StatusRecord

__all__ = ["BackendClient"]

logger = logging.getLogger(__name__)

_STATUS_LIST = TypeAdapter(list[StatusRecord])
_DROP_LIST = TypeAdapter(list[DropRecord])


class BackendClient:
    """Supabase PostgREST client authenticated with the anon key."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = (api_url or "").rstrip("/")
        self.api_key = api_key or ""
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_url and self.api_key)

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response | None:
        """Send one request; return the response on 2xx, else None."""
        url = f"{self.api_url}/rest/v1/{path}"
        transport = self._transport or httpx.AsyncHTTPTransport(retries=1)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=transport) as client:
                resp = await client.request(
                    method, url, params=params, json=json, headers=self._headers(prefer),
                )
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            return None

        if not resp.is_success:
            logger.error("HTTP %d for %s %s: %s", resp.status_code, method, path, resp.text)
            return None
        return resp

    # -------------------------------------------------------------------
    # Statuses
    # -------------------------------------------------------------------
    async def get_statuses(self) -> list[StatusRecord]:
        if not self.is_configured:
            logger.debug("Backend not configured, returning no statuses")
            return []

        resp = await self._request("GET", "statuses", params={"select": "*"})
        if resp is None:
            return []
        try:
            return _STATUS_LIST.validate_python(resp.json() or [])
        except (ValueError, ValidationError):
            logger.exception("Failed to parse statuses response")
            return []

    async def upsert_status(self, record: StatusRecord) -> bool:
        """Insert or replace the status row for ``record.rsn``."""
        resp = await self._request(
            "POST",
            "statuses",
            params={"on_conflict": "rsn"},
            json=record.model_dump(mode="json", exclude={"updated_at"}),
            prefer="resolution=merge-duplicates,return=minimal",
        )
        if resp is None:
            return False
        logger.info("Status for %r set to %s", record.rsn, record.status)
        return True

    # -------------------------------------------------------------------
    # Drops
    # -------------------------------------------------------------------
    async def insert_drop(self, record: DropRecord) -> bool:
        resp = await self._request(
            "POST", "drops", json=record.to_payload(), prefer="return=minimal",
        )
        if resp is None:
            return False
        logger.info(
            "Drop logged: %s x%d (%s) from %s",
            record.item_name, record.quantity, record.formatted_value, record.source,
        )
        return True

    async def get_drops_since(
        self, since: datetime | None, *, limit: int = 25,
    ) -> list[DropRecord]:
        """Drops created at or after *since*, oldest first.

        The bound is inclusive so rows sharing the cursor timestamp across a
        page boundary come back; callers dedupe by id.
        """
        if not self.is_configured:
            return []

        params: dict[str, Any] = {
            "select": "*",
            "order": "created_at.asc",
            "limit": limit,
        }
        if since is not None:
            params["created_at"] = f"gte.{since.isoformat()}"

        resp = await self._request("GET", "drops", params=params)
        if resp is None:
            return []
        try:
            return _DROP_LIST.validate_python(resp.json() or [])
        except (ValueError, ValidationError):
            logger.exception("Failed to parse drops response")
            return []
