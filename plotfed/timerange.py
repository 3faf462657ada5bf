"""
Time range helpers.

Ranges are whitespace separated `<count><unit>` chunks, units being y, mo, d,
h, m and s. A leading "-" negates the whole range: "-1y 3h 126s" goes back one
year, three hours and 126 seconds.
"""

import re
from datetime import datetime
from typing import Dict

import pandas as pd

from .errors import InvalidArgument

RANGE_CHUNK = re.compile(r"^(\d+)(y|mo|d|h|m|s)$")

OFFSET_KEYS = {
    "y": "years",
    "mo": "months",
    "d": "days",
    "h": "hours",
    "m": "minutes",
    "s": "seconds",
}


def parse_range(range_str: str) -> Dict[str, int]:
    """Parse a range into signed DateOffset keyword arguments."""
    text = (range_str or "").strip()
    sign = 1
    if text.startswith("-"):
        sign = -1
        text = text[1:].strip()

    if not text:
        raise InvalidArgument(f"invalid time range `{range_str}'")

    offset: Dict[str, int] = {}
    for chunk in text.split():
        match = RANGE_CHUNK.match(chunk)
        if not match:
            raise InvalidArgument(f"invalid time range chunk `{chunk}' in `{range_str}'")
        key = OFFSET_KEYS[match.group(2)]
        offset[key] = offset.get(key, 0) + sign * int(match.group(1))

    return offset


def apply_range(ref_time: datetime, range_str: str) -> datetime:
    """Apply a range to a reference time (calendar arithmetic for years and months)."""
    offset = parse_range(range_str)
    return (pd.Timestamp(ref_time) + pd.DateOffset(**offset)).to_pydatetime()


def duration_to_range(seconds: float) -> str:
    """Render a duration as a range string, e.g. -97326 -> "-1d 3h 2m 6s"."""
    total = int(round(seconds))
    prefix = "-" if total < 0 else ""
    total = abs(total)

    chunks = []
    for unit, size in (("d", 86400), ("h", 3600), ("m", 60), ("s", 1)):
        count, total = divmod(total, size)
        if count:
            chunks.append(f"{count}{unit}")

    if not chunks:
        return "0s"
    return prefix + " ".join(chunks)
