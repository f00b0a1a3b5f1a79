"""
finalboss.bot.__main__ — Entry point for ``python -m finalboss.bot``
=====================================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (soft settings).
3. Build the WOM roster cache and the Supabase client.
4. Create the FinalBossBot and run it (blocking).

Run with::

    uv run python -m finalboss.bot
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from finalboss.bot.core import FinalBossBot
from finalboss.config import load_config
from finalboss.engine.roster import RosterCache
from finalboss.services.backend_client import BackendClient
from finalboss.services.wom_client import WomClient

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("finalboss")


def main() -> None:
    """Bootstrap and run the FinalBoss bot."""

    # 1. Environment variables (secrets).
    load_dotenv()

    token = os.getenv("DISCORD_TOKEN")
    if not token or token == "your-discord-bot-token-here":
        logger.critical(
            "DISCORD_TOKEN is not set.  "
            "Copy .env.example → .env and paste your bot token."
        )
        sys.exit(1)

    # 2. Soft configuration.
    cfg = load_config(os.getenv("FINALBOSS_CONFIG", "config.yaml"))
    logger.info("Config loaded — Clan: %s (WOM group %d)", cfg.clan_name, cfg.wom_group_id)

    # 3. Collaborators.
    backend = BackendClient(cfg.api_url, cfg.api_key)
    if not backend.is_configured:
        logger.warning("SUPABASE_URL / SUPABASE_ANON_KEY not set — no drops will be announced.")
    wom = WomClient(cfg.wom_group_id, timeout=cfg.roster_fetch_timeout)
    roster = RosterCache(
        wom.fetch_roster,
        ttl=cfg.roster_ttl_seconds,
        fetch_timeout=cfg.roster_fetch_timeout,
    )

    # 4. Run (blocks until Ctrl+C or SIGTERM).
    bot = FinalBossBot(cfg=cfg, backend=backend, roster=roster)
    logger.info("Starting FinalBoss bot…")
    try:
        bot.run(token, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()
