# Unit tests for titlestamp.prompts.
# These tests validate prompt location, parsing, syntax generation,
# and merging with saved prompt settings.

from __future__ import annotations

import pytest

from titlestamp.models import (
    CUSTOM,
    DateConfig,
    ListConfig,
    PromptDescriptor,
    Span,
    TimeConfig,
    ValueType,
)
from titlestamp.prompts import (
    count_prompts,
    create_full_prompt_syntax,
    create_prompt_syntax,
    extract_prompts,
    extract_prompts_from_content,
    find_prompt_matches,
    get_prompt_name,
    has_prompts,
    has_prompts_in_content,
    parse_prompt_content,
    parse_prompt_syntax,
    rewrite_prompt_syntax,
    sync_prompts_with_pattern,
    validate_prompt_name,
)


# ---------------------------------------------------------------------------
# Locating prompts
# ---------------------------------------------------------------------------


def test_find_prompt_matches_positions() -> None:
    matches = find_prompt_matches("Hello {% Name %} world")
    assert len(matches) == 1
    m = matches[0]
    assert (m.start, m.end) == (6, 16)
    assert m.content == " Name"
    assert m.content_start == 8
    assert m.is_optional is False


def test_find_prompt_matches_optional_markers() -> None:
    m = find_prompt_matches("{%? Note ?%}")[0]
    assert m.open_marker == Span(2, 3)
    assert m.close_marker == Span(9, 10)
    assert (m.start, m.end) == (0, 12)
    assert m.is_optional is True


@pytest.mark.parametrize("text", ["{%? Note %}", "{% Note ?%}"])
def test_one_sided_marker_is_not_optional(text: str) -> None:
    assert find_prompt_matches(text)[0].is_optional is False


def test_find_prompt_matches_can_skip_code_blocks() -> None:
    text = "{% A %}\n```\n{% B %}\n```"
    assert len(find_prompt_matches(text)) == 2
    assert len(find_prompt_matches(text, skip_code_blocks=True)) == 1


# ---------------------------------------------------------------------------
# Part positions
# ---------------------------------------------------------------------------


def test_parse_prompt_content_custom_format_positions() -> None:
    text = "{% Date:date:format(MMM DD, YYYY) %}"
    m = find_prompt_matches(text)[0]
    parts = parse_prompt_content(m.content, m.content_start)

    assert parts.name == Span(3, 7)
    assert parts.colons == [7, 12]
    assert parts.type == Span(8, 12)
    assert parts.format == Span(13, 33)
    assert parts.format_wrapper is not None
    assert parts.format_wrapper.func == Span(13, 20)
    assert parts.format_wrapper.paren_close == Span(32, 33)
    assert [(p.type, p.value, p.start, p.end) for p in parts.format_tokens] == [
        ("token", "MMM", 20, 23),
        ("literal", " ", 23, 24),
        ("token", "DD", 24, 26),
        ("literal", ", ", 26, 28),
        ("token", "YYYY", 28, 32),
    ]
    assert parts.commas == []


def test_parse_prompt_content_list_positions() -> None:
    text = "{% Status:list:Open, Closed %}"
    m = find_prompt_matches(text)[0]
    parts = parse_prompt_content(m.content, m.content_start)

    assert parts.name == Span(3, 9)
    assert parts.type == Span(10, 14)
    assert parts.options == [Span(15, 19), Span(21, 27)]
    assert parts.commas == [19]


def test_parse_prompt_content_empty() -> None:
    parts = parse_prompt_content("   ", 5)
    assert parts.name == Span(5, 5)
    assert parts.colons == []


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------


def test_parse_prompt_syntax_plain_name() -> None:
    prompt = parse_prompt_syntax(" Title ")
    assert prompt == PromptDescriptor("Title")
    assert prompt.is_inline_configured is False


def test_parse_prompt_syntax_number() -> None:
    prompt = parse_prompt_syntax("Count:number")
    assert prompt.value_type is ValueType.numeric
    assert prompt.is_inline_configured is True


def test_parse_prompt_syntax_type_is_case_insensitive() -> None:
    assert parse_prompt_syntax("Due:DATE").value_type is ValueType.date


def test_parse_prompt_syntax_unknown_type_falls_back_to_text() -> None:
    prompt = parse_prompt_syntax("Name:whatever")
    assert prompt.value_type is ValueType.text
    assert prompt.is_inline_configured is False


@pytest.mark.parametrize("preset", ["EU", "eu", "DD-MM-YYYY"])
def test_parse_prompt_syntax_date_preset(preset: str) -> None:
    prompt = parse_prompt_syntax(f"Due:date:{preset}")
    assert prompt.date_config == DateConfig("DD-MM-YYYY")


def test_parse_prompt_syntax_custom_date_format() -> None:
    prompt = parse_prompt_syntax("Date:date:format(MMM DD, YYYY)")
    assert prompt.value_type is ValueType.date
    assert prompt.date_config == DateConfig(CUSTOM, "MMM DD, YYYY")
    assert prompt.date_config.effective_format == "MMM DD, YYYY"


def test_parse_prompt_syntax_time_preset() -> None:
    prompt = parse_prompt_syntax("Meet:time:24-hour")
    assert prompt.time_config == TimeConfig("HH:mm")


def test_parse_prompt_syntax_datetime_pair() -> None:
    prompt = parse_prompt_syntax("When:datetime:ISO,12-hour")
    assert prompt.date_config == DateConfig("YYYY-MM-DD")
    assert prompt.time_config == TimeConfig("h:mm A")


def test_parse_prompt_syntax_datetime_single_preset_applies_to_both() -> None:
    prompt = parse_prompt_syntax("When:datetime:ISO")
    assert prompt.date_config == DateConfig("YYYY-MM-DD")
    assert prompt.time_config == TimeConfig("HH:mm:ss")


def test_parse_prompt_syntax_multilist_options_are_trimmed() -> None:
    prompt = parse_prompt_syntax("Tags:multilist:a, b ,c")
    assert prompt.value_type is ValueType.multilist
    assert prompt.list_config == ListConfig(["a", "b", "c"])


def test_parse_prompt_syntax_date_defaults() -> None:
    prompt = parse_prompt_syntax("Due:date")
    assert prompt.date_config == DateConfig()
    assert prompt.time_config is None


def test_get_prompt_name() -> None:
    assert get_prompt_name(" Project Name : text ") == "Project Name"


def test_extract_prompts_dedupes_case_insensitively() -> None:
    prompts = extract_prompts("{% A %} {% a %} {% B:number %}")
    assert [p.name for p in prompts] == ["A", "B"]
    assert all(p.id.startswith("prompt-") for p in prompts)
    assert prompts[0].id != prompts[1].id


def test_extract_prompts_from_content_skips_code_blocks() -> None:
    content = "{% A %}\n```\n{% B %}\n```"
    assert [p.name for p in extract_prompts_from_content(content)] == ["A"]
    assert [p.name for p in extract_prompts(content)] == ["A", "B"]


def test_has_and_count_prompts() -> None:
    assert has_prompts("{%  %}") is False
    assert has_prompts("x {% Y %}") is True
    assert count_prompts("{% A %} {% a %} {% B %}") == 2


def test_has_prompts_in_content_ignores_fenced_prompts() -> None:
    assert has_prompts_in_content("```\n{% A %}\n```\n~~~\n{% B %}\n~~~") is False
    assert has_prompts_in_content("intro\n```\n{% A %}") is False
    assert has_prompts_in_content("{% A %}\n```\n{% B %}") is True
    assert has_prompts_in_content("```\n{% A %}\n```\n{% B %}") is True


# ---------------------------------------------------------------------------
# Writing syntax
# ---------------------------------------------------------------------------


def test_create_prompt_syntax() -> None:
    assert create_prompt_syntax("X") == "{% X %}"
    assert create_prompt_syntax("X", optional=True) == "{%? X ?%}"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("{% Title %}", "{% Title %}"),
        ("{%? Title ?%}", "{%? Title ?%}"),
        ("{% Count:number %}", "{% Count:number %}"),
        ("{% Due:date %}", "{% Due:date %}"),
        ("{% Due:date:EU %}", "{% Due:date:EU %}"),
        ("{% Due:date:format(MMM DD) %}", "{% Due:date:format(MMM DD) %}"),
        ("{% When:datetime:EU,24-hour %}", "{% When:datetime:EU,24-hour %}"),
        ("{% When:datetime:ISO,12-hour %}", "{% When:datetime %}"),
        ("{% When:datetime:ISO %}", "{% When:datetime:ISO %}"),
        ("{% S:list:a, b %}", "{% S:list:a,b %}"),
    ],
)
def test_create_full_prompt_syntax_round_trips(text: str, expected: str) -> None:
    m = find_prompt_matches(text)[0]
    prompt = parse_prompt_syntax(m.content, m.is_optional)

    created = create_full_prompt_syntax(prompt)
    assert created == expected

    again = find_prompt_matches(created)[0]
    assert parse_prompt_syntax(again.content, again.is_optional) == prompt


def test_rewrite_prompt_syntax_leaves_code_blocks_alone() -> None:
    text = "Hi {% Name %} and {% name %}\n```\n{% Name %}\n```"
    out = rewrite_prompt_syntax(text, "Name", PromptDescriptor("Name", ValueType.numeric))
    assert out == "Hi {% Name:number %} and {% Name:number %}\n```\n{% Name %}\n```"


def test_validate_prompt_name() -> None:
    assert validate_prompt_name("") == "Prompt name cannot be empty"
    assert validate_prompt_name("   ") == "Prompt name cannot be empty"
    assert validate_prompt_name("a{b") is not None
    assert "colon" in validate_prompt_name("a:b")
    assert validate_prompt_name("Fine name") is None


@pytest.mark.parametrize("name", ["Urgent?", "?Urgent", " Urgent? "])
def test_validate_prompt_name_rejects_marker_question_marks(name: str) -> None:
    assert "?" in validate_prompt_name(name)


def test_validate_prompt_name_allows_inner_question_mark() -> None:
    assert validate_prompt_name("Why? Because") is None
    prompt = PromptDescriptor("Why? Because")
    assert extract_prompts(create_full_prompt_syntax(prompt)) == [prompt]


def test_datetime_pair_keeps_custom_halves_that_look_like_presets() -> None:
    prompt = PromptDescriptor(
        "When",
        ValueType.datetime,
        date_config=DateConfig(CUSTOM, "YYYY-MM-DD"),
        time_config=TimeConfig(CUSTOM, "h:mm A"),
    )
    created = create_full_prompt_syntax(prompt)
    assert created == "{% When:datetime:YYYY-MM-DD,h:mm A %}"
    assert extract_prompts(created) == [prompt]


def test_datetime_pair_still_reads_preset_names() -> None:
    prompt = parse_prompt_syntax("When:datetime:eu,12-hour")
    assert prompt.date_config == DateConfig("DD-MM-YYYY")
    assert prompt.time_config == TimeConfig("h:mm A")


# ---------------------------------------------------------------------------
# Syncing with saved settings
# ---------------------------------------------------------------------------


def _saved_due() -> PromptDescriptor:
    return PromptDescriptor(
        "Due",
        ValueType.date,
        date_config=DateConfig("DD-MM-YYYY"),
        id="prompt-saved",
    )


def test_sync_keeps_saved_configuration_and_id() -> None:
    merged = sync_prompts_with_pattern("{%? due ?%} {% New %}", [_saved_due()])

    assert [p.name for p in merged] == ["due", "New"]
    assert merged[0].id == "prompt-saved"
    assert merged[0].value_type is ValueType.date
    assert merged[0].date_config == DateConfig("DD-MM-YYYY")
    assert merged[0].is_optional is True
    assert merged[1].value_type is ValueType.text


def test_sync_inline_configuration_wins() -> None:
    merged = sync_prompts_with_pattern("{% Due:number %}", [_saved_due()])
    assert merged[0].value_type is ValueType.numeric
    assert merged[0].id == "prompt-saved"


def test_sync_drops_prompts_missing_from_pattern() -> None:
    merged = sync_prompts_with_pattern("No prompts here", [_saved_due()])
    assert merged == []
