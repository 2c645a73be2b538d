"""
Helpers for the HH:mm time-of-day strings stored on bookings.
"""

import re
from datetime import datetime
from typing import Optional

HHMM_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"
_HHMM_RE = re.compile(HHMM_PATTERN)


def is_hhmm(value: Optional[str]) -> bool:
    return bool(value) and _HHMM_RE.match(value) is not None


def to_hhmm(value: str) -> Optional[str]:
    """
    Normalise a time-of-day to HH:mm.
    Accepts "9:05" / "09:05" or an ISO datetime ("2024-06-05T18:30:00Z").
    Returns None when the value cannot be parsed.
    """
    if not value:
        return None
    value = value.strip()
    if _HHMM_RE.match(value):
        hours, minutes = value.split(":")
        return f"{int(hours):02d}:{minutes}"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed.strftime("%H:%M")
