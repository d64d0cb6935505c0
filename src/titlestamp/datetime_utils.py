# Date/time parsing and output formatting for prompt values.
# Raw prompt values arrive in picker shapes (YYYY-MM-DD, HH:mm, h:mm AM,
# YYYY-MM-DDTHH:mm) and leave in the format the prompt is configured for.
#
# Parsers return None instead of raising; validation builds on that.

from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Optional

from titlestamp.models import (
    CUSTOM,
    DateConfig,
    PromptDescriptor,
    TimeConfig,
    ValueType,
)
from titlestamp.moment_tokens import format_moment, has_time_tokens

_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_TIME_24_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_TIME_12_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*(AM|PM)$", re.IGNORECASE)
_DATETIME_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})T(\d{2}):(\d{2})(?::(\d{2}))?$")


def parse_date(value: str) -> Optional[date]:
    # Only the ISO picker shape is accepted; impossible dates (Feb 30) are rejected.
    if not value:
        return None
    m = _DATE_RE.match(value)
    if not m:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def parse_time(value: str) -> Optional[time]:
    if not value:
        return None

    m = _TIME_24_RE.match(value)
    if m:
        hours, minutes = int(m.group(1)), int(m.group(2))
        if 0 <= hours <= 23 and 0 <= minutes <= 59:
            return time(hours, minutes)

    m = _TIME_12_RE.match(value)
    if m:
        hours, minutes = int(m.group(1)), int(m.group(2))
        ampm = m.group(3).upper()
        if 1 <= hours <= 12 and 0 <= minutes <= 59:
            if ampm == "PM" and hours != 12:
                hours += 12
            elif ampm == "AM" and hours == 12:
                hours = 0
            return time(hours, minutes)

    return None


def parse_datetime(value: str) -> Optional[datetime]:
    if not value:
        return None
    m = _DATETIME_RE.match(value)
    if not m:
        return None

    day = parse_date(m.group(1))
    if day is None:
        return None

    hours, minutes = int(m.group(2)), int(m.group(3))
    seconds = int(m.group(4) or 0)
    if hours > 23 or minutes > 59 or seconds > 59:
        return None
    return datetime.combine(day, time(hours, minutes, seconds))


def is_valid_date(value: str) -> bool:
    return parse_date(value) is not None


def is_valid_time(value: str) -> bool:
    return parse_time(value) is not None


def is_valid_datetime(value: str) -> bool:
    return parse_datetime(value) is not None


def format_date_output(day: date, config: Optional[DateConfig] = None) -> str:
    config = config or DateConfig()
    instant = day if isinstance(day, datetime) else datetime.combine(day, time())
    return format_moment(instant, config.effective_format)


def format_time_output(clock: time, config: Optional[TimeConfig] = None) -> str:
    config = config or TimeConfig()
    return format_moment(datetime.combine(date.today(), clock), config.effective_format)


def format_datetime_output(
    instant: datetime,
    date_config: Optional[DateConfig] = None,
    time_config: Optional[TimeConfig] = None,
) -> str:
    # "T" joins the two halves only when both are the ISO shapes.
    date_config = date_config or DateConfig()
    time_config = time_config or TimeConfig()
    date_fmt = date_config.effective_format
    time_fmt = time_config.effective_format
    separator = "T" if date_fmt == "YYYY-MM-DD" and time_fmt == "HH:mm:ss" else " "
    return f"{format_moment(instant, date_fmt)}{separator}{format_moment(instant, time_fmt)}"


def format_prompt_value(
    prompt: PromptDescriptor,
    value: str,
    now: Optional[datetime] = None,
) -> str:
    """Convert a raw prompt value into the prompt's configured output format.

    Values that do not parse are returned unchanged so that a typed value
    still reaches the filename. Non date/time prompts pass through.
    """
    if not value:
        return value

    if prompt.value_type is ValueType.date:
        day = parse_date(value)
        if day is None:
            return value
        config = prompt.date_config or DateConfig()
        if config.output_format == CUSTOM and has_time_tokens(config.effective_format):
            # A custom date format asking for time gets the current clock.
            clock = (now or datetime.now()).time()
            return format_moment(datetime.combine(day, clock), config.effective_format)
        return format_date_output(day, config)

    if prompt.value_type is ValueType.time:
        clock = parse_time(value)
        if clock is None:
            return value
        return format_time_output(clock, prompt.time_config)

    if prompt.value_type is ValueType.datetime:
        instant = parse_datetime(value)
        if instant is None:
            return value
        date_config = prompt.date_config or DateConfig()
        time_config = prompt.time_config or TimeConfig()
        date_custom = date_config.output_format == CUSTOM
        time_custom = time_config.output_format == CUSTOM

        if not date_custom and not time_custom:
            return format_datetime_output(instant, date_config, time_config)

        date_fmt = date_config.effective_format
        time_fmt = time_config.effective_format
        if date_custom and time_custom and date_fmt == time_fmt:
            # format(...) on a datetime prompt sets one string for both halves.
            return format_moment(instant, date_fmt)
        return f"{format_moment(instant, date_fmt)} {format_moment(instant, time_fmt)}"

    return value
