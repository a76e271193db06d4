"""
Parser for right-to-erasure notification text.

The notification body looks like::

    You have received a Right to Erasure request for the following
    User Id: 123456 in the following game(s) with Ids: 111, 222

and the embed footer carries ``Roblox-Signature: <b64>, Timestamp: <digits>``.

Known limitation: the user id runs from ``User Id:`` up to the first
lowercase ``i`` (normally the ``in`` that follows the number). Ids that
contain an ``i``, or bodies where no ``i`` follows, are cut short or run
long. The cutoff is kept as-is because the sender's grammar is not
documented; see DESIGN.md.
"""

import re
from dataclasses import dataclass

from forgetbridge.erasure.models import DeletionIntent

USER_ID_MARKER = "User Id:"
GAME_IDS_MARKER = "game(s) with Ids:"

USER_ID_PATTERN = re.compile(r"User Id:\s*([^i]+)")
GAME_IDS_PATTERN = re.compile(r"game\(s\) with Ids:\s*(\S+)")
SIGNATURE_PATTERN = re.compile(r"Roblox-Signature: ([^,]+)")
TIMESTAMP_PATTERN = re.compile(r"Timestamp: (\d+)")


@dataclass(frozen=True)
class FooterAuth:
    """Authentication fields carried in the embed footer."""

    signature: str | None
    timestamp: str | None


def is_deletion_request(description: str) -> bool:
    """Return True when the text carries both deletion-request markers."""
    return USER_ID_MARKER in description and GAME_IDS_MARKER in description


def parse_footer(footer_text: str) -> FooterAuth:
    """Extract signature and timestamp; either is ``None`` when absent."""
    signature_match = SIGNATURE_PATTERN.search(footer_text)
    timestamp_match = TIMESTAMP_PATTERN.search(footer_text)

    signature = signature_match.group(1).strip() if signature_match else ""
    return FooterAuth(
        signature=signature or None,
        timestamp=timestamp_match.group(1) if timestamp_match else None,
    )


def parse_universe_ids(description: str) -> list[str] | None:
    """Return the comma-separated ids after the game marker, trimmed."""
    match = GAME_IDS_PATTERN.search(description)
    if match is None:
        return None
    return [part.strip() for part in match.group(1).split(",")]


def first_universe_id(description: str) -> str:
    universe_ids = parse_universe_ids(description)
    return universe_ids[0] if universe_ids else ""


def parse_deletion_intent(description: str) -> DeletionIntent | None:
    """Build a DeletionIntent from notification text.

    Args:
        description: Embed description.

    Returns:
        The intent, or None when the user id or the id list cannot be
        extracted. Callers treat None as "not a deletion request".
    """
    user_match = USER_ID_PATTERN.search(description)
    universe_ids = parse_universe_ids(description)
    if user_match is None or universe_ids is None:
        return None

    user_id = user_match.group(1).strip()
    if not user_id:
        return None

    return DeletionIntent(user_id=user_id, universe_ids=tuple(universe_ids))
