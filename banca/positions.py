"""Prize position tokens ("1", "1st", "1-5", "1º ao 5º" style input).

``prize_tiers`` is permissive: stored bets with a token it cannot read cover
no prize tier. ``parse_position_range`` is the strict variant used for new
bets.
"""

from __future__ import annotations

import logging
import re

from banca.errors import InvalidPositionRange

logger = logging.getLogger(__name__)

MIN_TIER = 1
MAX_TIER = 7

_SINGLE = re.compile(r"^(\d+)(?:st|nd|rd|th)?$")
_RANGE = re.compile(r"^(\d+)(?:st|nd|rd|th)?-(\d+)(?:st|nd|rd|th)?$")


def _clean(token: str) -> str:
    cleaned = re.sub(r"\s+", "", token.replace("º", "").replace("°", "")).lower()
    return cleaned.replace("ao", "-")


def prize_tiers(token: str | None) -> list[int]:
    """Return the prize tiers a position token covers, or [] if unparsable."""

    if not token:
        return []

    cleaned = _clean(str(token))

    tiers: list[int] = []
    single = _SINGLE.match(cleaned)
    if single:
        tiers = [int(single.group(1))]
    else:
        ranged = _RANGE.match(cleaned)
        if ranged:
            lo, hi = int(ranged.group(1)), int(ranged.group(2))
            tiers = list(range(lo, hi + 1))

    if not tiers or tiers[0] < MIN_TIER or tiers[-1] > MAX_TIER:
        logger.warning("Unparsable position token %r, covering no prize tier", token)
        return []
    return tiers


def parse_position_range(token: str | None) -> tuple[int, int]:
    tiers = prize_tiers(token)
    if not tiers:
        raise InvalidPositionRange(
            message=f"Invalid position: {token!r}",
            details={"position": [f"Use a tier or range between {MIN_TIER} and {MAX_TIER}, e.g. '1' or '1-5'"]},
        )
    return tiers[0], tiers[-1]


def covers(token: str | None, prize_tier: int) -> bool:
    return prize_tier in prize_tiers(token)


def format_position(position_from: int, position_to: int) -> str:
    if position_from == position_to:
        return f"{position_from}º"
    return f"{position_from}º ao {position_to}º"
