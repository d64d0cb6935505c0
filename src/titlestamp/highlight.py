# Syntax highlighting spans for titlestamp templates.
# Produces non-overlapping (start, end, kind) spans over prompts and
# variables; an editor or the CLI maps each kind to a style.
#
# Prompts and variables inside fenced code blocks are left alone.

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from rich.text import Text

from titlestamp.codeblocks import find_code_block_ranges, is_inside_code_block
from titlestamp.models import LIST_VALUE_TYPES, PromptMatch, resolve_value_type
from titlestamp.prompts import find_prompt_matches, parse_prompt_content
from titlestamp.variables import find_variable_matches

BRACKET = "bracket"
OPTIONAL_MARKER = "optional-marker"
NAME = "name"
COLON = "colon"
TYPE = "type"
FORMAT = "format"
FORMAT_TOKEN = "format-token"
FORMAT_LITERAL = "format-literal"
OPTION = "option"
COMMA = "comma"
VARIABLE = "variable"

# Used by `titlestamp check` to render a highlighted pattern.
RICH_STYLES: Dict[str, str] = {
    BRACKET: "bold magenta",
    OPTIONAL_MARKER: "magenta",
    NAME: "bold cyan",
    COLON: "dim",
    TYPE: "green",
    FORMAT: "yellow",
    FORMAT_TOKEN: "bold yellow",
    FORMAT_LITERAL: "yellow",
    OPTION: "blue",
    COMMA: "dim",
    VARIABLE: "bold green",
}


@dataclass(frozen=True)
class HighlightSpan:
    start: int
    end: int
    kind: str


def _trimmed_pieces(text: str, start: int, end: int, cuts: List[int]) -> List[HighlightSpan]:
    # Split [start, end) at the given comma positions; whitespace is not styled.
    spans: List[HighlightSpan] = []
    bounds = [start - 1] + [c for c in cuts if start <= c < end] + [end]
    for left, right in zip(bounds, bounds[1:]):
        piece = text[left + 1:right]
        lead = len(piece) - len(piece.lstrip())
        stripped = piece.strip()
        if stripped:
            s = left + 1 + lead
            spans.append(HighlightSpan(s, s + len(stripped), FORMAT))
    return spans


def _prompt_spans(text: str, match: PromptMatch) -> List[HighlightSpan]:
    spans = [HighlightSpan(match.start, match.start + 2, BRACKET)]
    if match.open_marker is not None:
        spans.append(HighlightSpan(match.open_marker.start, match.open_marker.end, OPTIONAL_MARKER))
    if match.close_marker is not None:
        spans.append(HighlightSpan(match.close_marker.start, match.close_marker.end, OPTIONAL_MARKER))
    spans.append(HighlightSpan(match.end - 2, match.end, BRACKET))

    parts = parse_prompt_content(match.content, match.content_start)
    if parts.name.end > parts.name.start:
        spans.append(HighlightSpan(parts.name.start, parts.name.end, NAME))
    for colon in parts.colons:
        spans.append(HighlightSpan(colon, colon + 1, COLON))
    if parts.type is not None and parts.type.end > parts.type.start:
        spans.append(HighlightSpan(parts.type.start, parts.type.end, TYPE))

    value_type = resolve_value_type(text[parts.type.start:parts.type.end]) if parts.type else None

    if parts.format_wrapper is not None:
        wrapper = parts.format_wrapper
        spans.append(HighlightSpan(wrapper.func.start, wrapper.func.end, FORMAT))
        for part in parts.format_tokens:
            kind = FORMAT_TOKEN if part.is_token else FORMAT_LITERAL
            spans.append(HighlightSpan(part.start, part.end, kind))
        spans.append(HighlightSpan(wrapper.paren_close.start, wrapper.paren_close.end, FORMAT))
    elif value_type in LIST_VALUE_TYPES:
        for option in parts.options:
            spans.append(HighlightSpan(option.start, option.end, OPTION))
        for comma in parts.commas:
            spans.append(HighlightSpan(comma, comma + 1, COMMA))
    elif parts.format is not None:
        spans.extend(_trimmed_pieces(text, parts.format.start, parts.format.end, parts.commas))
        for comma in parts.commas:
            spans.append(HighlightSpan(comma, comma + 1, COMMA))

    return spans


def build_highlight_spans(text: str) -> List[HighlightSpan]:
    """Return highlight spans for every prompt and variable in ``text``.

    Spans are sorted by start offset. Variables that fall inside a prompt
    are not reported separately. Nothing inside a fenced code block is
    highlighted.
    """
    code_ranges = find_code_block_ranges(text)
    spans: List[HighlightSpan] = []
    prompt_ranges = []
    for match in find_prompt_matches(text):
        if code_ranges and is_inside_code_block(match.start, code_ranges):
            continue
        spans.extend(_prompt_spans(text, match))
        prompt_ranges.append((match.start, match.end))

    # Both lists are in document order, so one moving index is enough.
    idx = 0
    for var in find_variable_matches(text):
        while idx < len(prompt_ranges) and prompt_ranges[idx][1] <= var.start:
            idx += 1
        if idx < len(prompt_ranges) and prompt_ranges[idx][0] <= var.start:
            continue
        if code_ranges and is_inside_code_block(var.start, code_ranges):
            continue
        spans.append(HighlightSpan(var.start, var.end, VARIABLE))

    spans.sort(key=lambda s: (s.start, s.end))
    return spans


def highlight_text(text: str) -> Text:
    # rich Text with RICH_STYLES applied.
    rendered = Text(text)
    for span in build_highlight_spans(text):
        rendered.stylize(RICH_STYLES[span.kind], span.start, span.end)
    return rendered
