"""
finalboss.engine.names — RSN Normalization
===========================================

RuneScape treats spaces, underscores and hyphens in player names as the
same character, and names are case-insensitive.  Every identity
comparison in FinalBoss goes through :func:`normalize_rsn`; raw strings
are never compared directly.

Separators are swapped, not removed: ``"Iron Man"`` and ``"IronMan"``
are different players.
"""

from __future__ import annotations

__all__ = ["normalize_rsn", "same_rsn"]

# NBSP shows up in names copied from the game client's chat widgets.
_SEPARATORS = str.maketrans({"\u00a0": " ", "_": " ", "-": " "})


def normalize_rsn(raw: str | None) -> str:
    """Return the comparison key for *raw*.

    ``None`` and empty input return ``""``, which never matches anything.
    """
    if not raw:
        return ""
    return raw.translate(_SEPARATORS).lower().strip()


def same_rsn(a: str | None, b: str | None) -> bool:
    """True if *a* and *b* name the same player.  Empty names never match."""
    key = normalize_rsn(a)
    return bool(key) and key == normalize_rsn(b)
