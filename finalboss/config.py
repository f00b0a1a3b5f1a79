"""
finalboss.config — YAML Configuration Loader
=============================================

Reads ``config.yaml`` for the non-secret settings shared by the companion
session and the Discord bot (WOM group, thresholds, cache timings,
announcement channel).  Secrets (Discord token, Supabase URL and anon
key) come from the environment; entry points load them from ``.env``.

Usage::

    from finalboss.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.wom_group_id)      # 1234
    print(cfg.drop_threshold)    # 1000000
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from finalboss.engine.roster import DEFAULT_FETCH_TIMEOUT, DEFAULT_TTL_SECONDS


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class FinalBossConfig:
    """Immutable configuration loaded from ``config.yaml`` + environment."""

    # Clan identity
    clan_name: str
    wom_group_id: int

    # Roster cache
    roster_ttl_seconds: float = DEFAULT_TTL_SECONDS
    roster_fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    roster_refresh_interval: float = 0.0  # 0 disables the background refresh

    # Status
    sync_status: bool = True
    status_timeout_minutes: int = 30  # 0 = never expires

    # Drops
    log_drops: bool = True
    drop_threshold: int = 1_000_000  # gp; 0 logs everything

    # Discord bot
    announce_drops: bool = True
    announce_channel_id: int | None = None
    announce_threshold: int = 0
    drop_poll_seconds: int = 30
    bot_prefix: str = "!"

    # Backend (from environment)
    api_url: str = ""
    api_key: str = ""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> FinalBossConfig:
    """Read *path* and return a :class:`FinalBossConfig` instance.

    ``SUPABASE_URL`` and ``SUPABASE_ANON_KEY`` are read from the
    environment; call ``load_dotenv()`` first if they live in ``.env``.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    ValueError
        If a numeric setting is out of range.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    cfg = FinalBossConfig(
        clan_name=raw["clan_name"],
        wom_group_id=int(raw["wom_group_id"]),
        roster_ttl_seconds=float(raw.get("roster_ttl_seconds", DEFAULT_TTL_SECONDS)),
        roster_fetch_timeout=float(raw.get("roster_fetch_timeout", DEFAULT_FETCH_TIMEOUT)),
        roster_refresh_interval=float(raw.get("roster_refresh_interval", 0)),
        sync_status=bool(raw.get("sync_status", True)),
        status_timeout_minutes=int(raw.get("status_timeout_minutes", 30)),
        log_drops=bool(raw.get("log_drops", True)),
        drop_threshold=int(raw.get("drop_threshold", 1_000_000)),
        announce_drops=bool(raw.get("announce_drops", True)),
        announce_channel_id=(
            int(raw["announce_channel_id"]) if raw.get("announce_channel_id") else None
        ),
        announce_threshold=int(raw.get("announce_threshold", 0)),
        drop_poll_seconds=int(raw.get("drop_poll_seconds", 30)),
        bot_prefix=raw.get("bot_prefix", "!"),
        api_url=os.getenv("SUPABASE_URL", "").strip().rstrip("/"),
        api_key=os.getenv("SUPABASE_ANON_KEY", "").strip(),
    )

    if cfg.roster_ttl_seconds <= 0:
        raise ValueError("roster_ttl_seconds must be positive")
    if cfg.roster_fetch_timeout <= 0:
        raise ValueError("roster_fetch_timeout must be positive")
    if cfg.drop_threshold < 0 or cfg.status_timeout_minutes < 0:
        raise ValueError("drop_threshold and status_timeout_minutes must be >= 0")
    if cfg.drop_poll_seconds <= 0:
        raise ValueError("drop_poll_seconds must be positive")

    return cfg
