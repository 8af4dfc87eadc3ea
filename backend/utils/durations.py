"""
Duration parsing and formatting.

YouTube reports ISO-8601 durations (``PT1H2M3S``); the API stores them as
clock strings (``1:02:03``). Course totals are rendered as ``8h 30m``.
"""

import re
from typing import Iterable, Optional


_ISO_DURATION = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")
_HOURS = re.compile(r"(\d+)h")
_MINUTES = re.compile(r"(\d+)m")


def parse_iso_duration(duration: Optional[str]) -> str:
    """Convert ``PT1H2M3S`` into ``1:02:03`` (or ``M:SS`` under an hour)."""
    match = _ISO_DURATION.match(duration or "")
    if not match:
        return "0:00"

    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    seconds = int(match.group(3) or 0)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def parse_clock_minutes(duration: Optional[str]) -> float:
    """Minutes in a ``H:MM:SS`` or ``M:SS`` string, 0 when unparseable."""
    if not duration:
        return 0.0
    try:
        parts = [int(p) for p in duration.split(":")]
    except ValueError:
        return 0.0

    if len(parts) == 3:
        return parts[0] * 60 + parts[1] + parts[2] / 60
    if len(parts) == 2:
        return parts[0] + parts[1] / 60
    return 0.0


def duration_to_minutes(duration: Optional[str]) -> float:
    """Minutes in either a clock string or an ``Xh Ym`` string."""
    if not duration:
        return 0.0
    if ":" in duration:
        return parse_clock_minutes(duration)

    hours = _HOURS.search(duration)
    minutes = _MINUTES.search(duration)
    return (int(hours.group(1)) if hours else 0) * 60 + (int(minutes.group(1)) if minutes else 0)


def format_total_duration(durations: Iterable[Optional[str]]) -> str:
    """Sum durations and render them as ``Xh Ym`` or ``Ym``."""
    total_minutes = int(sum(duration_to_minutes(d) for d in durations))
    hours, mins = divmod(total_minutes, 60)
    return f"{hours}h {mins}m" if hours > 0 else f"{mins}m"
