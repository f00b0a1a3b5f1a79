"""
finalboss.engine.challenge — Chat-Code Ownership Challenge
===========================================================

Before a session verifies an RSN against the roster, the player proves
they control that character: the companion shows a short code such as
``FB-7KQP`` and the player types it into clan chat.  When the local
player's own clan-chat message contains the code, the challenge
completes and yields the RSN to verify.
"""

from __future__ import annotations

import logging
import re
import secrets

from finalboss.engine.names import same_rsn

__all__ = [
    "CODE_CHARS",
    "CODE_LENGTH",
    "CODE_PREFIX",
    "CodeChallenge",
    "generate_code",
    "is_valid_code_format",
]

logger = logging.getLogger(__name__)

CODE_PREFIX = "FB-"
CODE_LENGTH = 4
# No I/O/1/0, they read ambiguously in the game font.
CODE_CHARS = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

_CODE_PATTERN = re.compile(r"FB-[A-Z0-9]{4}", re.IGNORECASE)


def generate_code() -> str:
    return CODE_PREFIX + "".join(secrets.choice(CODE_CHARS) for _ in range(CODE_LENGTH))


def is_valid_code_format(code: str | None) -> bool:
    return bool(code) and _CODE_PATTERN.fullmatch(code) is not None


class CodeChallenge:
    """One pending code at a time; starting again replaces the old code."""

    def __init__(self) -> None:
        self._code: str | None = None

    @property
    def code(self) -> str | None:
        return self._code

    @property
    def pending(self) -> bool:
        return self._code is not None

    def start(self) -> str:
        self._code = generate_code()
        logger.info("Verification challenge started: %s", self._code)
        return self._code

    def cancel(self) -> None:
        if self._code is not None:
            logger.info("Verification challenge cancelled")
        self._code = None

    def match(
        self,
        sender: str | None,
        message: str | None,
        local_player: str | None,
        *,
        clan_chat: bool = True,
    ) -> str | None:
        """Return the local player's RSN if this message completes the challenge."""
        if self._code is None or not clan_chat:
            return None
        if not same_rsn(sender, local_player):
            return None
        if not message or self._code.upper() not in message.upper():
            return None

        logger.info("Verification code seen from %r", local_player)
        self._code = None
        return local_player
