# Unit tests for titlestamp.naming.
# These tests validate filename sanitization rules.

from __future__ import annotations

import pytest

from titlestamp.naming import (
    has_invalid_value_chars,
    sanitize_filename,
    sanitize_for_pattern,
)


def test_sanitize_filename_substitutes_colon_and_pipe() -> None:
    assert sanitize_filename("Meeting: Q1 | Plan") == "Meeting⦂ Q1 ∣ Plan"


def test_sanitize_filename_removes_invalid_chars() -> None:
    assert sanitize_filename('a*b"c\\d/e<f>g?h') == "abcdefgh"


def test_sanitize_filename_removes_control_chars() -> None:
    assert sanitize_filename("a\x00b\x7fc") == "abc"


def test_sanitize_filename_collapses_whitespace() -> None:
    assert sanitize_filename("  Hello \t  World  ") == "Hello World"


def test_sanitize_filename_strips_dots_and_spaces_at_the_ends() -> None:
    assert sanitize_filename("..hidden..") == "hidden"
    assert sanitize_filename(" . x . ") == "x"


@pytest.mark.parametrize(
    "raw",
    [
        "Meeting: Q1 | Plan",
        " . x . ",
        "a. .",
        "  spaced   out  ",
        'odd/"chars"?',
    ],
)
def test_sanitize_filename_is_idempotent(raw: str) -> None:
    once = sanitize_filename(raw)
    assert sanitize_filename(once) == once


def test_sanitize_for_pattern_keeps_whitespace() -> None:
    assert sanitize_for_pattern(" a: b ") == " a⦂ b "


def test_has_invalid_value_chars() -> None:
    assert has_invalid_value_chars("a:b") is True
    assert has_invalid_value_chars("a|b") is True
    assert has_invalid_value_chars("plain text") is False
