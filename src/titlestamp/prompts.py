# Prompt grammar for titlestamp.
# A prompt is "{% content %}" (required) or "{%? content ?%}" (optional).
# Content is one of:
#
#   Name
#   Name:Type
#   Name:Type:Preset            (date, time)
#   Name:Type:Preset,Preset     (datetime)
#   Name:Type:format(Custom)    (date, time, datetime)
#   Name:list:opt1,opt2,...     (list, multilist)
#
# Parsing happens in two stages: PROMPT_RE finds the delimiters and the
# optional markers, then _split_content walks the content once and records
# the offset of every part. Both the descriptor and the highlight positions
# are derived from that single walk.
#
# Nothing in this module raises on malformed input. Half-typed syntax either
# fails to match or degrades to a text prompt.

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Tuple

from titlestamp.codeblocks import find_code_block_ranges, is_inside_code_block
from titlestamp.models import (
    CUSTOM,
    DATE_FORMAT_PRESETS,
    DATE_VALUE_TYPES,
    LIST_VALUE_TYPES,
    TIME_FORMAT_PRESETS,
    TIME_VALUE_TYPES,
    DateConfig,
    FormatPart,
    FormatWrapper,
    ListConfig,
    PromptDescriptor,
    PromptMatch,
    PromptParts,
    Span,
    TimeConfig,
    ValueType,
    resolve_value_type,
)
from titlestamp.moment_tokens import parse_format_string

# Content is anything but "%", taken as short as possible so that an
# optional "?" and trailing spaces belong to the closing delimiter.
PROMPT_RE = re.compile(r"\{%(\?)?([^%]+?)(\?)?\s*%\}")

_CUSTOM_FORMAT_OPEN = "format("

# Characters that cannot appear in a prompt name.
_NAME_FORBIDDEN = ("%", "{", "}")


@dataclass
class _Segment:
    # A trimmed slice of the content; start/end are relative to the content.
    text: str
    start: int
    end: int


@dataclass
class _SplitContent:
    name: _Segment
    colons: List[int] = field(default_factory=list)
    type: Optional[_Segment] = None
    rest: Optional[_Segment] = None
    custom: Optional[_Segment] = None  # inside format(...)
    func: Optional[_Segment] = None  # the "format(" text itself
    paren_close: Optional[int] = None
    items: List[_Segment] = field(default_factory=list)
    commas: List[int] = field(default_factory=list)


def _trimmed(content: str, start: int, end: int) -> _Segment:
    raw = content[start:end]
    lead = len(raw) - len(raw.lstrip())
    text = raw.strip()
    return _Segment(text, start + lead, start + lead + len(text))


def _split_items(content: str, seg: _Segment) -> Tuple[List[_Segment], List[int]]:
    # Comma-split a segment, keeping trimmed non-empty items and every comma.
    items: List[_Segment] = []
    commas: List[int] = []
    pos = seg.start
    while True:
        comma = content.find(",", pos, seg.end)
        stop = seg.end if comma == -1 else comma
        item = _trimmed(content, pos, stop)
        if item.text:
            items.append(item)
        if comma == -1:
            break
        commas.append(comma)
        pos = comma + 1
    return items, commas


def _split_content(content: str) -> _SplitContent:
    whole = _trimmed(content, 0, len(content))
    if not whole.text:
        return _SplitContent(name=_Segment("", 0, 0))

    first = content.find(":", whole.start, whole.end)
    if first == -1:
        return _SplitContent(name=whole)

    split = _SplitContent(name=_trimmed(content, whole.start, first), colons=[first])

    second = content.find(":", first + 1, whole.end)
    if second == -1:
        split.type = _trimmed(content, first + 1, whole.end)
        return split

    split.type = _trimmed(content, first + 1, second)
    split.colons.append(second)
    split.rest = _trimmed(content, second + 1, whole.end)
    value_type = resolve_value_type(split.type.text)

    rest = split.rest
    if (
        value_type in DATE_VALUE_TYPES + TIME_VALUE_TYPES
        and rest.text.startswith(_CUSTOM_FORMAT_OPEN)
        and rest.text.endswith(")")
        and len(rest.text) > len(_CUSTOM_FORMAT_OPEN) + 1
    ):
        # format(...) keeps its inner text verbatim; colons and commas are literal there.
        inner_start = rest.start + len(_CUSTOM_FORMAT_OPEN)
        split.func = _Segment(_CUSTOM_FORMAT_OPEN, rest.start, inner_start)
        split.custom = _Segment(content[inner_start:rest.end - 1], inner_start, rest.end - 1)
        split.paren_close = rest.end - 1
        return split

    if value_type in LIST_VALUE_TYPES or value_type is ValueType.datetime:
        split.items, split.commas = _split_items(content, rest)

    return split


# ---------------------------------------------------------------------------
# Locating prompts
# ---------------------------------------------------------------------------


def find_prompt_matches(text: str, skip_code_blocks: bool = False) -> List[PromptMatch]:
    # All prompt occurrences in document order, with absolute positions.
    ranges = find_code_block_ranges(text) if skip_code_blocks else []
    matches: List[PromptMatch] = []

    for m in PROMPT_RE.finditer(text):
        if ranges and is_inside_code_block(m.start(), ranges):
            continue
        matches.append(
            PromptMatch(
                start=m.start(),
                end=m.end(),
                content=m.group(2),
                content_start=m.start(2),
                open_marker=Span(m.start(1), m.end(1)) if m.group(1) else None,
                close_marker=Span(m.start(3), m.end(3)) if m.group(3) else None,
            )
        )

    return matches


def parse_prompt_content(content: str, content_start: int = 0) -> PromptParts:
    """Resolve every part of a prompt's content to absolute offsets.

    ``content_start`` is the position of ``content`` within the source text.
    All spans are half-open and exclude surrounding whitespace.
    """
    split = _split_content(content)

    def span(seg: _Segment) -> Span:
        return Span(seg.start + content_start, seg.end + content_start)

    if not split.name.text and not split.colons:
        return PromptParts(name=Span(content_start, content_start))

    parts = PromptParts(
        name=span(split.name),
        colons=[c + content_start for c in split.colons],
    )
    if split.type is not None:
        parts.type = span(split.type)
    if split.rest is not None:
        parts.format = span(split.rest)

    if split.custom is not None and split.func is not None and split.paren_close is not None:
        close = split.paren_close + content_start
        parts.format_wrapper = FormatWrapper(func=span(split.func), paren_close=Span(close, close + 1))
        offset = split.custom.start + content_start
        parts.format_tokens = [
            FormatPart(p.type, p.value, p.start + offset, p.end + offset)
            for p in parse_format_string(split.custom.text)
        ]

    if split.type is not None and resolve_value_type(split.type.text) in LIST_VALUE_TYPES:
        parts.options = [span(item) for item in split.items]
    parts.commas = [c + content_start for c in split.commas]

    return parts


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------


def generate_prompt_id() -> str:
    return f"prompt-{uuid.uuid4().hex[:12]}"


def _lookup_preset(
    value: str,
    presets: Mapping[str, str],
    match_formats: bool = True,
) -> Optional[str]:
    # Exact preset name, then case-insensitive name, then (when match_formats)
    # a preset's own format string.
    if value in presets:
        return presets[value]
    lowered = value.lower()
    for name, fmt in presets.items():
        if name.lower() == lowered:
            return fmt
    if match_formats and value in presets.values():
        return value
    return None


def _date_config(value: str, match_formats: bool = True) -> DateConfig:
    if not value:
        return DateConfig()
    fmt = _lookup_preset(value, DATE_FORMAT_PRESETS, match_formats)
    return DateConfig(fmt) if fmt else DateConfig(CUSTOM, value)


def _time_config(value: str, match_formats: bool = True) -> TimeConfig:
    if not value:
        return TimeConfig()
    fmt = _lookup_preset(value, TIME_FORMAT_PRESETS, match_formats)
    return TimeConfig(fmt) if fmt else TimeConfig(CUSTOM, value)


def _descriptor_from_split(split: _SplitContent, is_optional: bool) -> PromptDescriptor:
    resolved = resolve_value_type(split.type.text) if split.type is not None else None
    value_type = resolved or ValueType.text
    prompt = PromptDescriptor(
        name=split.name.text,
        value_type=value_type,
        is_optional=is_optional,
        is_inline_configured=resolved is not None,
    )

    if split.custom is not None:
        custom = split.custom.text
        if value_type in DATE_VALUE_TYPES:
            prompt.date_config = DateConfig(CUSTOM, custom)
        if value_type in TIME_VALUE_TYPES:
            prompt.time_config = TimeConfig(CUSTOM, custom)
    elif split.rest is not None and split.rest.text:
        rest = split.rest.text
        if value_type is ValueType.date:
            prompt.date_config = _date_config(rest)
        elif value_type is ValueType.time:
            prompt.time_config = _time_config(rest)
        elif value_type is ValueType.datetime:
            if "," in rest:
                # Custom halves are written as bare format strings here, so
                # only a preset name selects a preset.
                date_part, time_part = rest.split(",", 1)
                prompt.date_config = _date_config(date_part.strip(), match_formats=False)
                prompt.time_config = _time_config(time_part.strip(), match_formats=False)
            else:
                date_fmt = _lookup_preset(rest, DATE_FORMAT_PRESETS)
                time_fmt = _lookup_preset(rest, TIME_FORMAT_PRESETS)
                if date_fmt is None and time_fmt is None:
                    # One literal format describes the whole value.
                    prompt.date_config = DateConfig(CUSTOM, rest)
                    prompt.time_config = TimeConfig(CUSTOM, rest)
                else:
                    prompt.date_config = DateConfig(date_fmt) if date_fmt else DateConfig()
                    prompt.time_config = TimeConfig(time_fmt) if time_fmt else TimeConfig()
        elif value_type in LIST_VALUE_TYPES:
            prompt.list_config = ListConfig([item.text for item in split.items])

    if value_type in DATE_VALUE_TYPES and prompt.date_config is None:
        prompt.date_config = DateConfig()
    if value_type in TIME_VALUE_TYPES and prompt.time_config is None:
        prompt.time_config = TimeConfig()
    if value_type in LIST_VALUE_TYPES and prompt.list_config is None:
        prompt.list_config = ListConfig()

    return prompt


def parse_prompt_syntax(content: str, is_optional: bool = False) -> PromptDescriptor:
    # Descriptor for the inner text of one prompt. The id is left empty.
    return _descriptor_from_split(_split_content(content), is_optional)


def get_prompt_name(content: str) -> str:
    return _split_content(content).name.text


def _descriptors(matches: Iterable[PromptMatch]) -> List[PromptDescriptor]:
    # First occurrence of a name wins; later ones only repeat it.
    seen = set()
    prompts: List[PromptDescriptor] = []
    for match in matches:
        prompt = parse_prompt_syntax(match.content, match.is_optional)
        if not prompt.name or prompt.key in seen:
            continue
        seen.add(prompt.key)
        prompt.id = generate_prompt_id()
        prompts.append(prompt)
    return prompts


def extract_prompts(pattern: str) -> List[PromptDescriptor]:
    return _descriptors(find_prompt_matches(pattern))


def extract_prompts_from_content(content: str) -> List[PromptDescriptor]:
    # Same as extract_prompts, but prompts inside fenced code blocks are ignored.
    return _descriptors(find_prompt_matches(content, skip_code_blocks=True))


def has_prompts(pattern: str) -> bool:
    return any(get_prompt_name(m.content) for m in find_prompt_matches(pattern))


def has_prompts_in_content(content: str) -> bool:
    return any(
        get_prompt_name(m.content)
        for m in find_prompt_matches(content, skip_code_blocks=True)
    )


def count_prompts(pattern: str) -> int:
    # Unique names, compared case-insensitively.
    return len(extract_prompts(pattern))


# ---------------------------------------------------------------------------
# Writing syntax
# ---------------------------------------------------------------------------


def create_prompt_syntax(name: str, optional: bool = False) -> str:
    if optional:
        return f"{{%? {name} ?%}}"
    return f"{{% {name} %}}"


def _preset_name(fmt: str, presets: Mapping[str, str]) -> Optional[str]:
    for name, preset_fmt in presets.items():
        if preset_fmt == fmt:
            return name
    return None


def _format_token(config, presets: Mapping[str, str]) -> str:
    # Preset name when one exists, otherwise the literal format string.
    if config.output_format == CUSTOM:
        return config.custom_format or ""
    return _preset_name(config.output_format, presets) or config.output_format


def _format_segment(prompt: PromptDescriptor) -> Optional[str]:
    date_config = prompt.date_config or DateConfig()
    time_config = prompt.time_config or TimeConfig()

    if prompt.value_type is ValueType.date:
        if date_config.output_format == CUSTOM:
            return f"format({date_config.custom_format or ''})"
        if date_config == DateConfig():
            return None
        return _format_token(date_config, DATE_FORMAT_PRESETS)

    if prompt.value_type is ValueType.time:
        if time_config.output_format == CUSTOM:
            return f"format({time_config.custom_format or ''})"
        if time_config == TimeConfig():
            return None
        return _format_token(time_config, TIME_FORMAT_PRESETS)

    if prompt.value_type is ValueType.datetime:
        date_custom = date_config.output_format == CUSTOM
        time_custom = time_config.output_format == CUSTOM
        if date_custom and time_custom and date_config.custom_format == time_config.custom_format:
            return f"format({date_config.custom_format or ''})"
        if date_config == DateConfig() and time_config == TimeConfig():
            return None
        date_token = _format_token(date_config, DATE_FORMAT_PRESETS)
        time_token = _format_token(time_config, TIME_FORMAT_PRESETS)
        if date_token == time_token:
            # A name present in both preset tables applies to both halves.
            return date_token
        return f"{date_token},{time_token}"

    if prompt.value_type in LIST_VALUE_TYPES:
        options = prompt.list_config.options if prompt.list_config else []
        return ",".join(options) if options else None

    return None


_TYPE_SYNTAX = {
    ValueType.text: "text",
    ValueType.numeric: "number",
    ValueType.date: "date",
    ValueType.time: "time",
    ValueType.datetime: "datetime",
    ValueType.list: "list",
    ValueType.multilist: "multilist",
}


def create_full_prompt_syntax(prompt: PromptDescriptor) -> str:
    # Inverse of parse_prompt_syntax: the shortest syntax that parses back
    # to an equal descriptor.
    content = prompt.name
    if prompt.value_type is not ValueType.text:
        content += f":{_TYPE_SYNTAX[prompt.value_type]}"
        segment = _format_segment(prompt)
        if segment:
            content += f":{segment}"
    return create_prompt_syntax(content, prompt.is_optional)


def rewrite_prompt_syntax(
    text: str,
    name: str,
    prompt: PromptDescriptor,
    skip_code_blocks: bool = True,
) -> str:
    # Replace every occurrence of the named prompt with the syntax for `prompt`.
    # Occurrences inside fenced code blocks are kept unless skip_code_blocks is False.
    target = name.strip().lower()
    replacement = create_full_prompt_syntax(prompt)
    out: List[str] = []
    pos = 0

    for match in find_prompt_matches(text, skip_code_blocks=skip_code_blocks):
        if get_prompt_name(match.content).lower() != target:
            continue
        out.append(text[pos:match.start])
        out.append(replacement)
        pos = match.end

    out.append(text[pos:])
    return "".join(out)


def validate_prompt_name(name: str) -> Optional[str]:
    # Return an error message, or None when the name is usable.
    if not name or not name.strip():
        return "Prompt name cannot be empty"
    if any(ch in name for ch in _NAME_FORBIDDEN):
        return "Prompt name cannot contain %, { or }"
    if ":" in name:
        return "Prompt name cannot contain a colon (used for type syntax)"
    stripped = name.strip()
    if stripped.startswith("?") or stripped.endswith("?"):
        return "Prompt name cannot start or end with ? (used for optional markers)"
    return None


def sync_prompts_with_pattern(
    pattern: str,
    saved: List[PromptDescriptor],
) -> List[PromptDescriptor]:
    """Merge prompts found in a pattern with previously saved prompt settings.

    Saved ids are kept so stored values stay attached. Optionality always
    comes from the pattern. When the pattern gives a type inline, its
    configuration wins; otherwise the saved configuration is kept. Saved
    prompts that no longer appear in the pattern are dropped.
    """
    by_key = {p.key: p for p in saved}
    merged: List[PromptDescriptor] = []

    for prompt in extract_prompts(pattern):
        existing = by_key.get(prompt.key)
        if existing is None:
            merged.append(prompt)
            continue

        if prompt.is_inline_configured:
            prompt.id = existing.id or prompt.id
            merged.append(prompt)
            continue

        merged.append(
            PromptDescriptor(
                name=prompt.name,
                value_type=existing.value_type,
                is_optional=prompt.is_optional,
                date_config=existing.date_config,
                time_config=existing.time_config,
                list_config=existing.list_config,
                id=existing.id or prompt.id,
                is_inline_configured=False,
            )
        )

    return merged
