# Unit tests for titlestamp.moment_tokens.
# These tests validate format string tokenization and rendering.

from __future__ import annotations

from datetime import date, datetime

import pytest

from titlestamp.moment_tokens import (
    MOMENT_TOKENS,
    filter_tokens,
    format_moment,
    has_date_tokens,
    has_time_tokens,
    locale_week,
    ordinal,
    parse_format_string,
    tokens_by_category,
)

# A Tuesday afternoon.
INSTANT = datetime(2024, 3, 5, 14, 7, 9)


# ---------------------------------------------------------------------------
# Tokenizing
# ---------------------------------------------------------------------------


def test_parse_format_string_splits_tokens_and_literals() -> None:
    parts = parse_format_string("YYYY-MM-DD")
    assert [(p.type, p.value, p.start, p.end) for p in parts] == [
        ("token", "YYYY", 0, 4),
        ("literal", "-", 4, 5),
        ("token", "MM", 5, 7),
        ("literal", "-", 7, 8),
        ("token", "DD", 8, 10),
    ]


def test_parse_format_string_prefers_longest_token() -> None:
    assert [p.value for p in parse_format_string("YYYYMMDD")] == ["YYYY", "MM", "DD"]
    assert [p.value for p in parse_format_string("MMMM")] == ["MMMM"]


def test_parse_format_string_parts_are_contiguous() -> None:
    fmt = "MMM DD, YYYY [at] h:mm A"
    parts = parse_format_string(fmt)
    assert "".join(p.value for p in parts) == fmt
    assert parts[0].start == 0
    assert parts[-1].end == len(fmt)
    for prev, cur in zip(parts, parts[1:]):
        assert prev.end == cur.start


def test_parse_format_string_merges_adjacent_literals() -> None:
    parts = parse_format_string("--/")
    assert len(parts) == 1
    assert parts[0].value == "--/"
    assert not parts[0].is_token


def test_has_date_and_time_tokens() -> None:
    assert has_date_tokens("YYYY") is True
    assert has_date_tokens("HH:mm") is False
    assert has_time_tokens("HH:mm") is True
    assert has_time_tokens("YYYY-MM-DD") is False


# ---------------------------------------------------------------------------
# Token table
# ---------------------------------------------------------------------------


def test_filter_tokens_empty_query_returns_everything() -> None:
    assert len(filter_tokens("")) == len(MOMENT_TOKENS)


def test_filter_tokens_matches_prefix() -> None:
    tokens = [t.token for t in filter_tokens("MMM")]
    assert "MMMM" in tokens
    assert "MMM" in tokens


def test_tokens_by_category() -> None:
    assert [t.token for t in tokens_by_category("ampm")] == ["A", "a"]


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("fmt", "expected"),
    [
        ("YYYY-MM-DD", "2024-03-05"),
        ("MMM Do, YYYY", "Mar 5th, 2024"),
        ("MMMM D", "March 5"),
        ("h:mm A", "2:07 PM"),
        ("HH-mm-ss", "14-07-09"),
        ("dddd", "Tuesday"),
        ("ddd", "Tue"),
        ("DDDD", "065"),
        ("Q", "1"),
        ("w", "10"),
        ("YY", "24"),
    ],
)
def test_format_moment(fmt: str, expected: str) -> None:
    assert format_moment(INSTANT, fmt) == expected


def test_format_moment_kk_uses_24_for_midnight() -> None:
    assert format_moment(datetime(2024, 3, 5, 0, 0), "kk") == "24"


def test_ordinal() -> None:
    assert [ordinal(n) for n in (1, 2, 3, 4, 11, 12, 13, 21, 22, 111)] == [
        "1st", "2nd", "3rd", "4th", "11th", "12th", "13th", "21st", "22nd", "111th",
    ]


def test_locale_week_wraps_into_next_year() -> None:
    # Week 1 is the week holding January 1st, weeks starting on Sunday.
    assert locale_week(date(2024, 1, 1)) == (2024, 1)
    assert locale_week(date(2023, 12, 31)) == (2024, 1)
