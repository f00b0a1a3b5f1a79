"""
FinalBoss — Clan Companion Toolkit
===================================
Roster-gated status sharing and drop logging for the Final Boss clan,
plus a Discord bot that mirrors logged drops into a chat channel.
Membership is checked against the clan's Wise Old Man group; writes go
to a hosted Supabase backend.

Package layout::

    finalboss/
    ├── config.py          # YAML → typed Python config
    ├── companion.py       # One plugin session: gate + services wiring
    ├── engine/
    │   ├── names.py       # RSN normalization (the only identity equality)
    │   ├── roster.py      # TTL roster cache with coalesced refresh
    │   ├── gate.py        # Single-slot verification gate
    │   ├── challenge.py   # FB-XXXX chat-code ownership challenge
    │   └── errors.py      # Domain exceptions
    ├── services/
    │   ├── models.py          # Status / drop records (pydantic)
    │   ├── wom_client.py      # Wise Old Man roster fetcher
    │   ├── backend_client.py  # Supabase REST write sink
    │   ├── status_service.py  # Gated status updates
    │   ├── drop_service.py    # Gated drop logging
    │   ├── embeds.py          # Drop announcement embed
    │   └── throttle.py        # Per-channel announcement throttle
    └── bot/
        ├── core.py        # Bot subclass, cog loader
        └── cogs/
            ├── drops.py   # Poll backend, announce new drops
            └── roster.py  # /roster-refresh, /roster-check
"""

__version__ = "0.1.0"
