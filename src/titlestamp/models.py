# Shared data models for titlestamp.
# Lives in its own module to avoid circular imports between the parsing
# modules, core, and cli.
#
# Lookup tables here are read-only after import.

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional


class ValueType(str, Enum):
    text = "text"
    numeric = "numeric"
    date = "date"
    time = "time"
    datetime = "datetime"
    list = "list"
    multilist = "multilist"


# Type names accepted inside a prompt, matched case-insensitively.
VALUE_TYPE_ALIASES: Mapping[str, ValueType] = MappingProxyType({
    "text": ValueType.text,
    "number": ValueType.numeric,
    "numeric": ValueType.numeric,
    "date": ValueType.date,
    "time": ValueType.time,
    "datetime": ValueType.datetime,
    "list": ValueType.list,
    "multilist": ValueType.multilist,
})

# Insertion order is the order presets are offered to the user.
DATE_FORMAT_PRESETS: Mapping[str, str] = MappingProxyType({
    "ISO": "YYYY-MM-DD",
    "compact": "YYYYMMDD",
    "US": "MM-DD-YYYY",
    "EU": "DD-MM-YYYY",
    "short": "MMM DD, YYYY",
    "long": "MMMM DD, YYYY",
})

TIME_FORMAT_PRESETS: Mapping[str, str] = MappingProxyType({
    "ISO": "HH:mm:ss",
    "24-hour": "HH:mm",
    "24-compact": "HHmm",
    "12-hour": "h:mm A",
    "12-padded": "hh:mm A",
})

CUSTOM = "custom"
DEFAULT_DATE_OUTPUT = DATE_FORMAT_PRESETS["ISO"]
DEFAULT_TIME_OUTPUT = TIME_FORMAT_PRESETS["12-hour"]

DATE_VALUE_TYPES = (ValueType.date, ValueType.datetime)
TIME_VALUE_TYPES = (ValueType.time, ValueType.datetime)
LIST_VALUE_TYPES = (ValueType.list, ValueType.multilist)


def resolve_value_type(name: str) -> Optional[ValueType]:
    # Return None for unknown names so callers can tell "text" from "fallback".
    return VALUE_TYPE_ALIASES.get(name.strip().lower())


@dataclass(frozen=True)
class Span:
    start: int
    end: int

    def shift(self, offset: int) -> "Span":
        return Span(self.start + offset, self.end + offset)


@dataclass(frozen=True)
class FormatPart:
    type: str  # "token" or "literal"
    value: str
    start: int
    end: int

    @property
    def is_token(self) -> bool:
        return self.type == "token"


@dataclass
class DateConfig:
    output_format: str = DEFAULT_DATE_OUTPUT
    custom_format: Optional[str] = None

    @property
    def effective_format(self) -> str:
        if self.output_format == CUSTOM and self.custom_format:
            return self.custom_format
        if self.output_format == CUSTOM:
            return DEFAULT_DATE_OUTPUT
        return self.output_format


@dataclass
class TimeConfig:
    output_format: str = DEFAULT_TIME_OUTPUT
    custom_format: Optional[str] = None

    @property
    def effective_format(self) -> str:
        if self.output_format == CUSTOM and self.custom_format:
            return self.custom_format
        if self.output_format == CUSTOM:
            return DEFAULT_TIME_OUTPUT
        return self.output_format


@dataclass
class ListConfig:
    options: List[str] = field(default_factory=list)


@dataclass
class PromptDescriptor:
    # One resolved {% %} occurrence.
    # id and is_inline_configured are bookkeeping and do not take part in equality.
    name: str
    value_type: ValueType = ValueType.text
    is_optional: bool = False
    date_config: Optional[DateConfig] = None
    time_config: Optional[TimeConfig] = None
    list_config: Optional[ListConfig] = None
    id: str = field(default="", compare=False)
    is_inline_configured: bool = field(default=False, compare=False)

    @property
    def key(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class FormatWrapper:
    func: Span  # "format("
    paren_close: Span  # ")"


@dataclass
class PromptParts:
    # Absolute positions of every sub-part of one prompt's content.
    name: Span
    colons: List[int] = field(default_factory=list)
    type: Optional[Span] = None
    format: Optional[Span] = None
    format_wrapper: Optional[FormatWrapper] = None
    format_tokens: List[FormatPart] = field(default_factory=list)
    options: List[Span] = field(default_factory=list)
    commas: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class PromptMatch:
    # One {% ... %} occurrence located in source text.
    start: int
    end: int
    content: str
    content_start: int
    open_marker: Optional[Span]
    close_marker: Optional[Span]

    @property
    def is_optional(self) -> bool:
        # Optionality requires the marker on both ends.
        return self.open_marker is not None and self.close_marker is not None


@dataclass
class TitleTemplate:
    id: str
    name: str
    title_pattern: str
    folder: str = "current"
    file_template: Optional[str] = None
    counter_starts_at: int = 1
    user_prompts: List[PromptDescriptor] = field(default_factory=list)


@dataclass(frozen=True)
class DateTimeSettings:
    date_format: str = "YYYY-MM-DD"
    time_format: str = "HH:mm"


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class CreateFileResult:
    path: str
    filename: str
    conflict_resolved: bool
