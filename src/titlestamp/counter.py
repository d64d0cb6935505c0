# Counter inference for titlestamp.
# A title pattern with one {{counter}} is turned into a regex that pulls
# the counter back out of existing filenames; the next value is max + 1.
#
# How much of the pattern the regex pins down depends on what surrounds
# the counter:
#
#   static before, static after    ^before(\d+)after$
#   static before, dynamic after   ^before(\d+).*$
#   dynamic before, static after   ^.*?(\d+)after$
#   dynamic on both sides          every part translated precisely
#
# Only the dynamic-both case depends on date formats, so files survive
# most edits to dates and prompt values in their titles.

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Pattern, Union

from rich.console import Console
from rich.markup import escape

from titlestamp.models import DateTimeSettings, TitleTemplate
from titlestamp.moment_tokens import parse_format_string
from titlestamp.naming import COLON_SUBSTITUTE, PIPE_SUBSTITUTE, sanitize_for_pattern
from titlestamp.prompts import PROMPT_RE, find_prompt_matches
from titlestamp.storage import Storage
from titlestamp.variables import (
    COUNTER_RE,
    DEFAULT_FILENAME_TIME_FORMAT,
    VARIABLE_RE,
    VariableMatch,
    find_variable_matches,
    has_counter_variable,
)

_err = Console(stderr=True)

_REGEX_SPECIAL = frozenset(".*+?^${}()|[]\\")

# Characters sanitize_for_pattern deletes outright.
_DROPPED_CHARS_RE = re.compile(r'[*"\\/<>?\x00-\x1F\x7F]')

_COUNTER_GROUP = r"(\d+)"

# Regex for the text each token can produce.
_TOKEN_REGEX = {
    "YYYY": r"\d{4}",
    "YY": r"\d{2}",
    "MMMM": r"[A-Za-z]+",
    "MMM": r"[A-Za-z]{3}",
    "MM": r"\d{2}",
    "Mo": r"\d{1,2}(?:st|nd|rd|th)",
    "M": r"\d{1,2}",
    "DDDD": r"\d{3}",
    "DDD": r"\d{1,3}",
    "DD": r"\d{2}",
    "Do": r"\d{1,2}(?:st|nd|rd|th)",
    "D": r"\d{1,2}",
    "dddd": r"[A-Za-z]+",
    "ddd": r"[A-Za-z]{3}",
    "dd": r"[A-Za-z]{2}",
    "do": r"\d(?:st|nd|rd|th)",
    "d": r"\d",
    "e": r"\d",
    "E": r"\d",
    "HH": r"\d{2}",
    "H": r"\d{1,2}",
    "hh": r"\d{2}",
    "h": r"\d{1,2}",
    "kk": r"\d{2}",
    "k": r"\d{1,2}",
    "mm": r"\d{2}",
    "m": r"\d{1,2}",
    "ss": r"\d{2}",
    "s": r"\d{1,2}",
    "SSS": r"\d{3}",
    "SS": r"\d{2}",
    "S": r"\d",
    "A": r"[AP]M",
    "a": r"[ap]m",
    "ww": r"\d{2}",
    "wo": r"\d{1,2}(?:st|nd|rd|th)",
    "w": r"\d{1,2}",
    "WW": r"\d{2}",
    "Wo": r"\d{1,2}(?:st|nd|rd|th)",
    "W": r"\d{1,2}",
    "Qo": r"[1-4](?:st|nd|rd|th)",
    "Q": r"[1-4]",
    "X": r"\d+",
    "x": r"\d+",
    "ZZ": r"[+-]\d{4}",
    "Z": r"[+-]\d{2}[:⦂]\d{2}",
    "zz": r"[A-Za-z]*",
    "z": r"[A-Za-z]*",
    "gggg": r"\d{4}",
    "gg": r"\d{2}",
    "GGGG": r"\d{4}",
    "GG": r"\d{2}",
}


class CounterStrategy(str, Enum):
    exact = "static-both-sides"
    static_prefix = "static-prefix"
    static_suffix = "static-suffix"
    full_precision = "full-precision"


@dataclass(frozen=True)
class CounterMatchPattern:
    # The regex always has exactly one capturing group: the counter digits.
    regex: Pattern[str]
    strategy: CounterStrategy

    def match(self, filename: str):
        return self.regex.match(filename)


def escape_regex(text: str) -> str:
    return "".join("\\" + ch if ch in _REGEX_SPECIAL else ch for ch in text)


def _literal_regex(text: str) -> str:
    # Pattern text as it appears on disk, escaped.
    return escape_regex(sanitize_for_pattern(text))


def _format_literal_regex(text: str) -> str:
    # Literal part of a date format. Colons and pipes may appear raw or
    # substituted; characters sanitization deletes are skipped.
    out: List[str] = []
    for ch in text:
        if ch == ":":
            out.append(f"[:{COLON_SUBSTITUTE}]")
        elif ch == "|":
            out.append(f"[|{PIPE_SUBSTITUTE}]")
        elif _DROPPED_CHARS_RE.match(ch):
            continue
        else:
            out.append(escape_regex(ch))
    return "".join(out)


def moment_format_to_regex(fmt: str) -> str:
    return "".join(
        _TOKEN_REGEX.get(part.value, ".*?") if part.is_token else _format_literal_regex(part.value)
        for part in parse_format_string(fmt)
    )


def get_variable_regex_pattern(
    name: str,
    fmt: Optional[str] = None,
    settings: Optional[DateTimeSettings] = None,
) -> str:
    # Mirrors the defaults used when rendering titles, so a file named by
    # one title pattern matches the regex built from it.
    settings = settings or DateTimeSettings()
    name = name.lower()

    if name == "counter":
        return r"\d+"
    if name == "date":
        return moment_format_to_regex(fmt or settings.date_format)
    if name == "time":
        return moment_format_to_regex(fmt or DEFAULT_FILENAME_TIME_FORMAT)
    if name == "datetime":
        if fmt:
            return moment_format_to_regex(fmt)
        return (
            moment_format_to_regex(settings.date_format)
            + "_"
            + moment_format_to_regex(DEFAULT_FILENAME_TIME_FORMAT)
        )
    if name == "timestamp":
        return r"\d{10,13}"
    if name == "year":
        return r"\d{4}"
    if name in ("month", "day"):
        return r"\d{2}"
    return ".*?"


def _has_dynamic_content(text: str) -> bool:
    return VARIABLE_RE.search(text) is not None or PROMPT_RE.search(text) is not None


def _full_precision_regex(pattern: str, settings: DateTimeSettings) -> str:
    # Translate every part. The first {{counter}} is the capturing group.
    spans = [(v.start, v.end, v) for v in find_variable_matches(pattern)]
    spans += [(p.start, p.end, p) for p in find_prompt_matches(pattern)]
    spans.sort(key=lambda s: s[0])

    out: List[str] = ["^"]
    pos = 0
    captured = False
    for start, end, item in spans:
        if start < pos:
            continue
        out.append(_literal_regex(pattern[pos:start]))
        if isinstance(item, VariableMatch):
            if item.name == "counter" and item.format is None and not captured:
                out.append(_COUNTER_GROUP)
                captured = True
            else:
                out.append(get_variable_regex_pattern(item.name, item.format, settings))
        else:
            out.append(".*?")
        pos = end
    out.append(_literal_regex(pattern[pos:]))
    out.append("$")
    return "".join(out)


def build_matching_pattern(
    title_pattern: str,
    settings: Optional[DateTimeSettings] = None,
) -> Optional[CounterMatchPattern]:
    """Build the filename regex for a title pattern, or None without a counter.

    Callers are expected to reject patterns with more than one {{counter}};
    only the first one is captured here.
    """
    m = COUNTER_RE.search(title_pattern)
    if m is None:
        return None

    settings = settings or DateTimeSettings()
    before = title_pattern[:m.start()]
    after = title_pattern[m.end():]
    before_dynamic = _has_dynamic_content(before)
    after_dynamic = _has_dynamic_content(after)

    if not before_dynamic and not after_dynamic:
        source = f"^{_literal_regex(before)}{_COUNTER_GROUP}{_literal_regex(after)}$"
        strategy = CounterStrategy.exact
    elif not before_dynamic:
        source = f"^{_literal_regex(before)}{_COUNTER_GROUP}.*$"
        strategy = CounterStrategy.static_prefix
    elif not after_dynamic:
        # Non-greedy so the digits captured are the ones right before the suffix.
        source = f"^.*?{_COUNTER_GROUP}{_literal_regex(after)}$"
        strategy = CounterStrategy.static_suffix
    else:
        source = _full_precision_regex(title_pattern, settings)
        strategy = CounterStrategy.full_precision

    return CounterMatchPattern(re.compile(source), strategy)


def extract_counter_from_filename(
    filename: str,
    pattern: Union[CounterMatchPattern, Pattern[str]],
) -> Optional[int]:
    m = pattern.match(filename)
    if m is None:
        return None
    try:
        return int(m.group(1), 10)
    except (IndexError, TypeError, ValueError):
        return None


def get_counter_values_from_folder(
    storage: Storage,
    title_pattern: str,
    folder: str,
    settings: Optional[DateTimeSettings] = None,
) -> List[int]:
    # Counter values of the markdown files directly inside `folder`.
    pattern = build_matching_pattern(title_pattern, settings)
    if pattern is None:
        return []

    if not storage.exists(folder) or not storage.is_folder(folder):
        _err.print(f"[dim]Folder not found, no existing counters: {escape(folder)}[/dim]")
        return []

    values: List[int] = []
    for entry in storage.list_children(folder):
        if entry.is_folder or entry.extension != "md":
            continue
        value = extract_counter_from_filename(entry.basename, pattern)
        if value is not None:
            values.append(value)
    return values


def get_next_counter_value(
    storage: Storage,
    template: TitleTemplate,
    folder: str,
    settings: Optional[DateTimeSettings] = None,
) -> int:
    # max + 1 over existing files; gaps are never reused.
    start = template.counter_starts_at
    if not has_counter_variable(template.title_pattern):
        return start
    values = get_counter_values_from_folder(storage, template.title_pattern, folder, settings)
    if not values:
        return start
    return max(values) + 1


class CounterService:
    # Binds storage and date/time settings for repeated lookups.
    def __init__(self, storage: Storage, settings: Optional[DateTimeSettings] = None):
        self.storage = storage
        self.settings = settings or DateTimeSettings()

    def build_pattern(self, title_pattern: str) -> Optional[CounterMatchPattern]:
        return build_matching_pattern(title_pattern, self.settings)

    def get_counter_values(self, title_pattern: str, folder: str) -> List[int]:
        return get_counter_values_from_folder(self.storage, title_pattern, folder, self.settings)

    def get_next_counter_value(self, template: TitleTemplate, folder: str) -> int:
        return get_next_counter_value(self.storage, template, folder, self.settings)
