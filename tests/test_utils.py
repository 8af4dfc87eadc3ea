"""Tests for text, number, duration and pagination helpers."""

from datetime import datetime, timezone

from backend.utils import (
    clamp,
    duration_to_minutes,
    format_total_duration,
    make_excerpt,
    pagination_meta,
    parse_clock_minutes,
    parse_iso_duration,
    round_half_up,
    slugify,
    to_base36,
    truncate,
    unique_slug,
)


class TestSlugs:
    """Slug generation."""

    def test_slugify_collapses_non_alphanumerics(self):
        assert slugify("Harvard edX - CS50: Intro to C!") == "harvard-edx-cs50-intro-to-c"

    def test_slugify_strips_edge_dashes(self):
        assert slugify("  --Hello World--  ") == "hello-world"

    def test_to_base36(self):
        assert to_base36(0) == "0"
        assert to_base36(35) == "z"
        assert to_base36(36) == "10"

    def test_unique_slug_appends_timestamp(self):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        millis = int(now.timestamp() * 1000)
        assert unique_slug("AI Hackathon", now) == f"ai-hackathon-{to_base36(millis)}"


class TestText:
    """Excerpts and truncation."""

    def test_excerpt_strips_html(self):
        assert make_excerpt("<p>Hello <b>world</b></p>") == "Hello world"

    def test_excerpt_truncates_with_ellipsis(self):
        excerpt = make_excerpt("a" * 300)
        assert excerpt == "a" * 250 + "..."

    def test_excerpt_keeps_short_text(self):
        assert make_excerpt("a" * 250) == "a" * 250

    def test_truncate_handles_none(self):
        assert truncate(None, 10) == ""
        assert truncate("abcdef", 3) == "abc"


class TestNumbers:
    """Rounding and clamping."""

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.49) == 2

    def test_clamp(self):
        assert clamp(150) == 100
        assert clamp(-3) == 0
        assert clamp(7, 0, 10) == 7


class TestDurations:
    """ISO-8601, clock and "Xh Ym" durations."""

    def test_parse_iso_duration_with_hours(self):
        assert parse_iso_duration("PT1H2M3S") == "1:02:03"

    def test_parse_iso_duration_minutes_only(self):
        assert parse_iso_duration("PT4M5S") == "4:05"
        assert parse_iso_duration("PT45S") == "0:45"

    def test_parse_iso_duration_invalid(self):
        assert parse_iso_duration(None) == "0:00"
        assert parse_iso_duration("garbage") == "0:00"

    def test_parse_clock_minutes(self):
        assert parse_clock_minutes("1:05:30") == 65.5
        assert parse_clock_minutes("12:30") == 12.5
        assert parse_clock_minutes("bad") == 0.0

    def test_duration_to_minutes_hours_minutes_form(self):
        assert duration_to_minutes("2h 15m") == 135
        assert duration_to_minutes("45m") == 45

    def test_format_total_duration(self):
        assert format_total_duration(["1:05:30", "12:40", "2h 15m"]) == "3h 33m"
        assert format_total_duration(["12:00", None]) == "12m"


class TestPagination:
    """Pagination metadata."""

    def test_pages_round_up(self):
        meta = pagination_meta(page=1, limit=12, total=25, returned=12)
        assert meta["pages"] == 3
        assert meta["has_more"] is True

    def test_last_page_has_no_more(self):
        meta = pagination_meta(page=3, limit=12, total=25, returned=1)
        assert meta["has_more"] is False
