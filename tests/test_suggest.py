# Unit tests for titlestamp.suggest.
# These tests validate cursor context detection and the suggestions offered.

from __future__ import annotations

from datetime import datetime

import pytest

from titlestamp.moment_tokens import DATE_CATEGORIES
from titlestamp.suggest import get_suggestion_context, get_suggestions, suggest

INSTANT = datetime(2024, 3, 5, 14, 7, 9)


# ---------------------------------------------------------------------------
# Context detection
# ---------------------------------------------------------------------------


def test_variable_context() -> None:
    text = "Title {{da"
    context = get_suggestion_context(text)
    assert context.kind == "variable"
    assert context.query == "da"
    assert context.start == len(text) - 2


@pytest.mark.parametrize("text", ["{%", "{%?", "x {% "])
def test_opening_context(text: str) -> None:
    assert get_suggestion_context(text).kind == "opening"


def test_name_context() -> None:
    context = get_suggestion_context("{% Proj")
    assert context.kind == "name"
    assert context.query == "Proj"


def test_value_type_context() -> None:
    context = get_suggestion_context("{% Due:da")
    assert context.kind == "value_type"
    assert context.name == "Due"
    assert context.query == "da"


def test_format_context() -> None:
    context = get_suggestion_context("{% Due:date:")
    assert context.kind == "format"
    assert context.value_type == "date"
    assert context.after_comma is False


def test_format_context_after_datetime_comma() -> None:
    context = get_suggestion_context("{% When:datetime:ISO,")
    assert context.kind == "format"
    assert context.after_comma is True


def test_format_token_context() -> None:
    context = get_suggestion_context("{% Due:date:format(MMM D")
    assert context.kind == "format_token"
    assert context.format_content == "MMM D"
    assert context.query == "D"


def test_only_the_current_line_counts() -> None:
    assert get_suggestion_context("{{da\nplain") is None


def test_no_context_inside_code_block() -> None:
    assert get_suggestion_context("```\n{{da") is None
    assert get_suggestions(None) == []


def test_context_after_closed_code_block() -> None:
    assert get_suggestion_context("```\na\n```\n{{da").kind == "variable"


def test_plain_text_has_no_context() -> None:
    assert get_suggestion_context("hello world") is None


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------


def test_variable_suggestions() -> None:
    items = suggest("{{da", INSTANT)
    assert [s.label for s in items] == ["date", "datetime", "day"]
    assert items[0].insert_text == "date}}"
    assert items[0].example == "2024-03-05"


def test_opening_suggestions() -> None:
    items = suggest("{%", INSTANT)
    assert items[0].label == "{% Name %}"
    assert items[0].insert_text == " Name %}"
    assert items[1].insert_text == " Name ?%}"
    assert len(items) == 9


def test_name_suggestions_filter_on_the_typed_text() -> None:
    assert [s.label for s in suggest("{% num", INSTANT)] == [":number %}"]
    assert get_suggestions(get_suggestion_context("{% Title"), INSTANT) == []


def test_value_type_suggestions() -> None:
    assert [s.label for s in suggest("{% Due:da", INSTANT)] == ["date", "datetime"]
    assert len(suggest("{% Due:", INSTANT)) == 7


def test_date_format_suggestions() -> None:
    items = suggest("{% Due:date:", INSTANT)
    assert items[0].label == "ISO"
    assert items[0].insert_text == "ISO %}"
    assert items[0].example == "2024-03-05"
    assert items[-1].insert_text == "format("
    assert len(items) == 7


def test_datetime_format_suggestions_switch_to_time_after_comma() -> None:
    first = suggest("{% When:datetime:", INSTANT)
    assert first[0].insert_text == "ISO,"

    second = suggest("{% When:datetime:ISO,", INSTANT)
    assert [s.label for s in second] == ["ISO", "24-hour", "24-compact", "12-hour", "12-padded"]
    assert second[0].insert_text == "ISO %}"


def test_time_format_suggestions_filter_by_label() -> None:
    assert [s.label for s in suggest("{% T:time:24", INSTANT)] == ["24-hour", "24-compact"]


def test_format_token_suggestions_start_with_preview() -> None:
    items = suggest("{% Due:date:format(MMM D", INSTANT)
    preview = items[0]
    assert preview.is_preview is True
    assert preview.label == "Preview: Mar 5"
    assert preview.description == "Current format: MMM D"
    assert preview.insert_text == ""

    assert items[1].token_category in DATE_CATEGORIES
    assert "DD" in [s.label for s in items]


def test_format_token_suggestions_without_content_have_no_preview() -> None:
    items = suggest("{% Due:time:format(", INSTANT)
    assert items[0].is_preview is False
    assert items[0].token_category == "hour"
