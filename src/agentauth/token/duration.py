"""Lifetime strings for tokens: ``<positive integer><unit>``.

Units: ``s`` (1), ``m`` (60), ``h`` (3600), ``d`` (86400) seconds.
"""
from __future__ import annotations

import re

from agentauth.errors import InvalidDurationFormatError

_DURATION_PATTERN = re.compile(r"^(\d+)([smhd])$")

UNIT_SECONDS: dict[str, int] = {
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
}


def parse_duration(expires_in: str) -> int:
    """Convert a lifetime string such as ``"1h"`` or ``"7d"`` into seconds.

    Raises
    ------
    InvalidDurationFormatError
        For any other shape: missing or unknown unit, a sign, whitespace,
        a zero count, or a non-string value.
    """
    match = _DURATION_PATTERN.match(expires_in) if isinstance(expires_in, str) else None
    if not match:
        raise InvalidDurationFormatError(
            f"Invalid expiry format {expires_in!r} (use: 30s, 15m, 1h, 24h, 7d)",
            context={"value": expires_in},
        )
    count = int(match.group(1))
    if count <= 0:
        raise InvalidDurationFormatError(
            f"Expiry must be positive, got {expires_in!r}", context={"value": expires_in}
        )
    return count * UNIT_SECONDS[match.group(2)]


__all__ = ["UNIT_SECONDS", "parse_duration"]
