# Completion support for titlestamp syntax.
# get_suggestion_context looks at the text before the cursor and decides
# what the user is typing; get_suggestions turns that into candidates.
#
# Both are pure. An editor integration only has to call them on each
# keystroke and apply the chosen insert_text at context.start.

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from titlestamp.codeblocks import find_code_block_ranges, is_inside_code_block
from titlestamp.models import DATE_FORMAT_PRESETS, TIME_FORMAT_PRESETS
from titlestamp.moment_tokens import (
    DATE_CATEGORIES,
    MOMENT_TOKENS,
    TIME_CATEGORIES,
    format_moment,
    token_example,
)
from titlestamp.variables import SUPPORTED_VARIABLES, VARIABLE_DESCRIPTIONS, get_template_variables

# Checked against the current line, in this order. format( is matched
# case-sensitively, like the grammar.
_VARIABLE_RE = re.compile(r"\{\{(\w*)$")
_OPENING_RE = re.compile(r"\{%\??\s*$")
_FORMAT_TOKEN_RE = re.compile(
    r"\{%\??\s*([^:%]+):(date|time|datetime):(?-i:format)\(([^)]*)$", re.IGNORECASE
)
_VALUE_TYPE_RE = re.compile(r"\{%\??\s*([^:%]+):\s*([a-z]*)$", re.IGNORECASE)
_FORMAT_RE = re.compile(
    r"\{%\??\s*([^:%]+):(date|time|datetime):\s*((?:[A-Za-z0-9-]+,)?)([A-Za-z0-9-]*)$",
    re.IGNORECASE,
)
_NAME_RE = re.compile(r"\{%\??\s+([^\s:%]*)$")
_TRAILING_LETTERS_RE = re.compile(r"[A-Za-z]*$")


@dataclass(frozen=True)
class SuggestionContext:
    kind: str  # variable, opening, name, value_type, format, format_token
    query: str
    start: int  # where the query starts in the text before the cursor
    name: Optional[str] = None
    value_type: Optional[str] = None
    format_content: Optional[str] = None
    after_comma: bool = False


@dataclass(frozen=True)
class Suggestion:
    label: str
    description: str
    insert_text: str
    kind: str
    example: Optional[str] = None
    token_category: Optional[str] = None
    is_preview: bool = False


def get_suggestion_context(text_before_cursor: str) -> Optional[SuggestionContext]:
    # None when nothing should be suggested, including inside a fenced block.
    cursor = len(text_before_cursor)
    ranges = find_code_block_ranges(text_before_cursor)
    if ranges and is_inside_code_block(cursor, ranges):
        return None

    line_start = text_before_cursor.rfind("\n") + 1
    line = text_before_cursor[line_start:]

    m = _VARIABLE_RE.search(line)
    if m:
        query = m.group(1)
        return SuggestionContext("variable", query, cursor - len(query))

    if _OPENING_RE.search(line):
        return SuggestionContext("opening", "", cursor)

    m = _FORMAT_TOKEN_RE.search(line)
    if m:
        content = m.group(3)
        query = _TRAILING_LETTERS_RE.search(content).group(0)
        return SuggestionContext(
            "format_token",
            query,
            cursor - len(query),
            name=m.group(1).strip(),
            value_type=m.group(2).lower(),
            format_content=content,
        )

    m = _VALUE_TYPE_RE.search(line)
    if m:
        query = m.group(2)
        return SuggestionContext("value_type", query, cursor - len(query), name=m.group(1).strip())

    m = _FORMAT_RE.search(line)
    if m:
        query = m.group(4)
        return SuggestionContext(
            "format",
            query,
            cursor - len(query),
            name=m.group(1).strip(),
            value_type=m.group(2).lower(),
            after_comma=bool(m.group(3)),
        )

    m = _NAME_RE.search(line)
    if m:
        query = m.group(1)
        return SuggestionContext("name", query, cursor - len(query))

    return None


def _filter(suggestions: List[Suggestion], query: str) -> List[Suggestion]:
    # Label prefix or description substring, case-insensitive.
    q = query.lower()
    if not q:
        return suggestions
    return [
        s for s in suggestions
        if s.label.lower().startswith(q) or q in s.description.lower()
    ]


def _syntax_suggestions() -> List[Suggestion]:
    templates = [
        ("{% Name %}", "Required text prompt", " Name %}"),
        ("{%? Name ?%}", "Optional text prompt (use {%? to start)", " Name ?%}"),
        ("{% Name:text %}", "Explicit text type", " Name:text %}"),
        ("{% Name:number %}", "Numeric input only", " Name:number %}"),
        ("{% Name:date %}", "Date picker input", " Name:date %}"),
        ("{% Name:time %}", "Time picker input", " Name:time %}"),
        ("{% Name:datetime %}", "Date and time picker", " Name:datetime %}"),
        ("{% Name:list:a,b %}", "Pick one option", " Name:list:a,b %}"),
        ("{% Name:multilist:a,b %}", "Pick several options", " Name:multilist:a,b %}"),
    ]
    return [Suggestion(label, desc, insert, "syntax") for label, desc, insert in templates]


def _name_suggestions(query: str) -> List[Suggestion]:
    suggestions = [
        Suggestion("%}", "Close prompt (text type)", " %}", "syntax"),
        Suggestion(":text %}", "Text type with explicit closing", ":text %}", "syntax"),
        Suggestion(":number %}", "Numeric input", ":number %}", "syntax"),
        Suggestion(":date", "Date picker (add format after)", ":date:", "syntax"),
        Suggestion(":time", "Time picker (add format after)", ":time:", "syntax"),
        Suggestion(":datetime", "DateTime picker (add format after)", ":datetime:", "syntax"),
        Suggestion(":list", "Single choice (add options after)", ":list:", "syntax"),
        Suggestion(":multilist", "Multiple choice (add options after)", ":multilist:", "syntax"),
    ]
    q = query.lower()
    if not q:
        return suggestions
    return [s for s in suggestions if q in s.label.lower() or q in s.description.lower()]


def _value_type_suggestions(query: str) -> List[Suggestion]:
    types = [
        ("text", "Free-form text input", "text %}"),
        ("number", "Numeric input only", "number %}"),
        ("date", "Date picker (continue typing : for format)", "date:"),
        ("time", "Time picker (continue typing : for format)", "time:"),
        ("datetime", "Date and time picker (continue typing : for format)", "datetime:"),
        ("list", "Single choice from options (add :a,b,c)", "list:"),
        ("multilist", "Multiple choices from options (add :a,b,c)", "multilist:"),
    ]
    return _filter([Suggestion(l, d, i, "valueType") for l, d, i in types], query)


def _format_suggestions(context: SuggestionContext, instant: datetime) -> List[Suggestion]:
    value_type = context.value_type or ""
    suggestions: List[Suggestion] = []

    if value_type in ("date", "datetime") and not context.after_comma:
        for preset, fmt in DATE_FORMAT_PRESETS.items():
            suggestions.append(Suggestion(
                preset,
                f"Date format: {fmt}",
                f"{preset}," if value_type == "datetime" else f"{preset} %}}",
                "dateFormat",
                example=format_moment(instant, fmt),
            ))
        suggestions.append(Suggestion(
            "format(...)", "Custom date format string", "format(", "customFormat",
            example="e.g., format(MMM DD)",
        ))

    if value_type == "time" or (value_type == "datetime" and context.after_comma):
        for preset, fmt in TIME_FORMAT_PRESETS.items():
            suggestions.append(Suggestion(
                preset,
                f"Time format: {fmt}",
                f"{preset} %}}",
                "timeFormat",
                example=format_moment(instant, fmt),
            ))
        if value_type == "time":
            suggestions.append(Suggestion(
                "format(...)", "Custom time format string", "format(", "customFormat",
                example="e.g., format(H:mm)",
            ))

    return _filter(suggestions, context.query)


def _format_token_suggestions(context: SuggestionContext, instant: datetime) -> List[Suggestion]:
    # Tokens relevant to the prompt's type come first; sorting is stable.
    if context.value_type == "date":
        preferred = DATE_CATEGORIES
    elif context.value_type == "time":
        preferred = TIME_CATEGORIES
    else:
        preferred = ()
    tokens = sorted(MOMENT_TOKENS, key=lambda t: 0 if t.category in preferred else 1)

    q = context.query.lower()
    if q:
        tokens = [
            t for t in tokens
            if t.token.lower().startswith(q) or q in t.description.lower()
        ]

    suggestions: List[Suggestion] = []
    if context.format_content:
        preview = format_moment(instant, context.format_content)
        suggestions.append(Suggestion(
            f"Preview: {preview}",
            f"Current format: {context.format_content}",
            "",
            "preview",
            is_preview=True,
        ))

    for t in tokens:
        suggestions.append(Suggestion(
            t.token,
            t.description,
            t.token,
            "formatToken",
            example=token_example(t, instant),
            token_category=t.category,
        ))
    return suggestions


def _variable_suggestions(query: str, instant: datetime) -> List[Suggestion]:
    examples = get_template_variables(instant)
    q = query.lower()
    return [
        Suggestion(
            name,
            VARIABLE_DESCRIPTIONS[name],
            f"{name}}}}}",
            "variable",
            example=examples.get(name, "1"),
        )
        for name in SUPPORTED_VARIABLES
        if name.startswith(q)
    ]


def get_suggestions(
    context: Optional[SuggestionContext],
    instant: Optional[datetime] = None,
) -> List[Suggestion]:
    if context is None:
        return []
    instant = instant or datetime.now()

    if context.kind == "variable":
        return _variable_suggestions(context.query, instant)
    if context.kind == "opening":
        return _syntax_suggestions()
    if context.kind == "name":
        return _name_suggestions(context.query)
    if context.kind == "value_type":
        return _value_type_suggestions(context.query)
    if context.kind == "format":
        return _format_suggestions(context, instant)
    if context.kind == "format_token":
        return _format_token_suggestions(context, instant)
    return []


def suggest(text_before_cursor: str, instant: Optional[datetime] = None) -> List[Suggestion]:
    return get_suggestions(get_suggestion_context(text_before_cursor), instant)
