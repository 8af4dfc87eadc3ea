"""
Text helpers: slugs, excerpts and truncation.
"""

import re
import string
import time
from datetime import datetime
from typing import Optional


_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_HTML_TAG = re.compile(r"<[^>]+>")
_BASE36_DIGITS = string.digits + string.ascii_lowercase


def slugify(text: str) -> str:
    """Lower-case text and collapse every non-alphanumeric run into a dash."""
    return _NON_ALNUM.sub("-", text.lower()).strip("-")


def to_base36(number: int) -> str:
    """Render a non-negative integer in base 36."""
    if number < 0:
        raise ValueError("number must be non-negative")
    if number == 0:
        return "0"

    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def unique_slug(text: str, now: Optional[datetime] = None) -> str:
    """Slug followed by a base-36 millisecond timestamp, e.g. ``ai-hackathon-lq2k9x1a``."""
    if now is None:
        millis = int(time.time() * 1000)
    else:
        millis = int(now.timestamp() * 1000)
    return f"{slugify(text)}-{to_base36(millis)}"


def strip_html(text: str) -> str:
    return _HTML_TAG.sub("", text)


def make_excerpt(text: str, limit: int = 250) -> str:
    """Plain-text excerpt of ``limit`` characters, with an ellipsis when cut."""
    plain = strip_html(text)
    if len(plain) > limit:
        return plain[:limit] + "..."
    return plain


def truncate(text: Optional[str], limit: int) -> str:
    if not text:
        return ""
    return text[:limit]
