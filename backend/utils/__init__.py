"""
Utility helpers exports.
"""

from .text import slugify, to_base36, unique_slug, strip_html, make_excerpt, truncate
from .numbers import round_half_up, clamp
from .pagination import page_skip, pagination_meta
from .durations import (
    parse_iso_duration,
    parse_clock_minutes,
    duration_to_minutes,
    format_total_duration,
)

__all__ = [
    "round_half_up",
    "clamp",
    "page_skip",
    "pagination_meta",
    "slugify",
    "to_base36",
    "unique_slug",
    "strip_html",
    "make_excerpt",
    "truncate",
    "parse_iso_duration",
    "parse_clock_minutes",
    "duration_to_minutes",
    "format_total_duration",
]
