# Built-in {{variable}} resolution for titlestamp.
# Variables are resolved from the clock and the running counter; prompts
# from user-entered values. When a pattern holds both, prompts take
# priority and their values are inserted verbatim, never rescanned.
#
# Unknown variables are left exactly as written.

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from titlestamp.models import DateTimeSettings, PromptDescriptor
from titlestamp.moment_tokens import format_moment
from titlestamp.naming import sanitize_filename
from titlestamp.prompts import find_prompt_matches, get_prompt_name, validate_prompt_name
from titlestamp.substitution import PromptResolver, PromptValues, prompt_resolver

VARIABLE_RE = re.compile(r"\{\{(\w+)(?::([^}]+))?\}\}")
COUNTER_RE = re.compile(r"\{\{counter\}\}", re.IGNORECASE)

SUPPORTED_VARIABLES = (
    "date",
    "time",
    "datetime",
    "timestamp",
    "year",
    "month",
    "day",
    "counter",
)
# {{title}} only means something inside a new note's content.
CONTENT_VARIABLES = SUPPORTED_VARIABLES + ("title",)

VARIABLE_DESCRIPTIONS = {
    "date": "Current date (settings format, or {{date:FORMAT}})",
    "time": "Current time (HH-mm-ss in titles, or {{time:FORMAT}})",
    "datetime": "Date and time (or {{datetime:FORMAT}})",
    "timestamp": "Milliseconds since the Unix epoch",
    "year": "4-digit year",
    "month": "Month (zero-padded)",
    "day": "Day of month (zero-padded)",
    "counter": "Next free number for this title",
}

DEFAULT_DATE_FORMAT = "YYYY-MM-DD"
DEFAULT_TIME_FORMAT = "HH:mm"
# Colons are not allowed in filenames, so titles use hyphens.
DEFAULT_FILENAME_TIME_FORMAT = "HH-mm-ss"
COUNTER_PLACEHOLDER = "#"


@dataclass(frozen=True)
class VariableMatch:
    start: int
    end: int
    name: str  # lowercased
    format: Optional[str]


def find_variable_matches(text: str) -> List[VariableMatch]:
    return [
        VariableMatch(m.start(), m.end(), m.group(1).lower(), m.group(2))
        for m in VARIABLE_RE.finditer(text)
    ]


def render_variable(
    name: str,
    fmt: Optional[str],
    settings: DateTimeSettings,
    instant: datetime,
    counter: Optional[int] = None,
    for_filename: bool = True,
    title: Optional[str] = None,
) -> Optional[str]:
    # Value for one variable, or None when the name is not recognized here.
    name = name.lower()

    if name == "date":
        return format_moment(instant, fmt or settings.date_format)
    if name == "time":
        default = DEFAULT_FILENAME_TIME_FORMAT if for_filename else settings.time_format
        return format_moment(instant, fmt or default)
    if name == "datetime":
        if fmt:
            return format_moment(instant, fmt)
        date_part = format_moment(instant, settings.date_format)
        if for_filename:
            return f"{date_part}_{format_moment(instant, DEFAULT_FILENAME_TIME_FORMAT)}"
        return f"{date_part} {format_moment(instant, settings.time_format)}"
    if name == "timestamp":
        return str(int(instant.timestamp() * 1000))
    if name == "year":
        return format_moment(instant, "YYYY")
    if name == "month":
        return format_moment(instant, "MM")
    if name == "day":
        return format_moment(instant, "DD")
    if name == "counter":
        if counter is not None:
            return str(counter)
        return COUNTER_PLACEHOLDER if for_filename else None
    if name == "title" and not for_filename and title is not None:
        return title
    return None


def _resolve(
    text: str,
    render,
    resolve_prompt: Optional[PromptResolver] = None,
) -> str:
    # One left-to-right pass over prompts and variables. Where they overlap
    # the earlier occurrence wins; unresolved occurrences stay verbatim.
    spans = [(v.start, v.end, v) for v in find_variable_matches(text)]
    if resolve_prompt is not None:
        spans += [(p.start, p.end, p) for p in find_prompt_matches(text)]
    spans.sort(key=lambda s: s[0])

    out: List[str] = []
    pos = 0
    for start, end, item in spans:
        if start < pos:
            continue
        if isinstance(item, VariableMatch):
            value = render(item)
        else:
            value = resolve_prompt(item)
        out.append(text[pos:start])
        out.append(text[start:end] if value is None else value)
        pos = end
    out.append(text[pos:])
    return "".join(out)


def parse_title_template(
    pattern: str,
    settings: Optional[DateTimeSettings] = None,
    instant: Optional[datetime] = None,
    counter: Optional[int] = None,
    prompts: Optional[Sequence[PromptDescriptor]] = None,
    values: Optional[PromptValues] = None,
) -> str:
    # Render a title pattern; missing prompt values become "".
    settings = settings or DateTimeSettings()
    instant = instant or datetime.now()
    resolver = prompt_resolver(prompts, values or {}) if prompts else None
    return _resolve(
        pattern,
        lambda v: render_variable(v.name, v.format, settings, instant, counter),
        resolver,
    )


def parse_title_template_to_filename(
    pattern: str,
    settings: Optional[DateTimeSettings] = None,
    instant: Optional[datetime] = None,
    counter: Optional[int] = None,
    prompts: Optional[Sequence[PromptDescriptor]] = None,
    values: Optional[PromptValues] = None,
) -> str:
    return sanitize_filename(
        parse_title_template(pattern, settings, instant, counter, prompts, values)
    )


def preview_title(
    pattern: str,
    settings: Optional[DateTimeSettings] = None,
    instant: Optional[datetime] = None,
    counter: Optional[int] = None,
    prompts: Optional[Sequence[PromptDescriptor]] = None,
    values: Optional[PromptValues] = None,
) -> str:
    # Work-in-progress title: unfilled prompts show as [Name].
    settings = settings or DateTimeSettings()
    instant = instant or datetime.now()
    resolver = prompt_resolver(prompts, values or {}, preview=True) if prompts else None
    return _resolve(
        pattern,
        lambda v: render_variable(v.name, v.format, settings, instant, counter),
        resolver,
    )


def process_template_content(
    content: str,
    title: str,
    settings: Optional[DateTimeSettings] = None,
    instant: Optional[datetime] = None,
    counter: Optional[int] = None,
) -> str:
    # Resolve variables inside a new note's body. {{time}} uses the
    # configured time format here since colons are fine in content.
    settings = settings or DateTimeSettings()
    instant = instant or datetime.now()
    return _resolve(
        content,
        lambda v: render_variable(
            v.name, v.format, settings, instant, counter, for_filename=False, title=title
        ),
    )


def get_template_variables(
    instant: Optional[datetime] = None,
    settings: Optional[DateTimeSettings] = None,
) -> Dict[str, str]:
    settings = settings or DateTimeSettings()
    instant = instant or datetime.now()
    return {
        name: render_variable(name, None, settings, instant) or ""
        for name in SUPPORTED_VARIABLES
        if name != "counter"
    }


def extract_variables(pattern: str) -> List[str]:
    # Lowercased names in order of first appearance.
    names: List[str] = []
    for v in find_variable_matches(pattern):
        if v.name not in names:
            names.append(v.name)
    return names


def validate_template(pattern: str) -> List[str]:
    # Names that are not built-in variables.
    return [name for name in extract_variables(pattern) if name not in SUPPORTED_VARIABLES]


def has_counter_variable(pattern: str) -> bool:
    return COUNTER_RE.search(pattern) is not None


def count_counter_variables(pattern: str) -> int:
    return len(COUNTER_RE.findall(pattern))


def validate_title_pattern(pattern: str) -> List[str]:
    # Human-readable problems with a title pattern; empty when it is usable.
    errors: List[str] = []

    if not pattern.strip():
        errors.append("Title pattern cannot be empty")

    for name in validate_template(pattern):
        errors.append(f"Unknown variable: {{{{{name}}}}}")

    if count_counter_variables(pattern) > 1:
        errors.append("Only one {{counter}} is allowed in a title pattern")

    for match in find_prompt_matches(pattern):
        name = get_prompt_name(match.content)
        problem = validate_prompt_name(name)
        if problem:
            errors.append(f"{problem}: {pattern[match.start:match.end]}")

    return errors
