# Moment-style date/time format tokens for titlestamp.
# Format strings such as "MMM DD, YYYY" are split into token and literal
# spans here, and rendered against a datetime.
#
# Highlighting, suggestions, and counter regex synthesis all tokenize
# through parse_format_string so they agree on where tokens are.

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from titlestamp.models import FormatPart


@dataclass(frozen=True)
class MomentToken:
    token: str
    description: str
    example: str
    category: str


MOMENT_TOKENS: Tuple[MomentToken, ...] = (
    # Year
    MomentToken("YYYY", "4-digit year", "2026", "year"),
    MomentToken("YY", "2-digit year", "26", "year"),
    # Month
    MomentToken("MMMM", "Full month name", "January", "month"),
    MomentToken("MMM", "Abbreviated month", "Jan", "month"),
    MomentToken("MM", "Month (zero-padded)", "01", "month"),
    MomentToken("Mo", "Month with ordinal", "1st", "month"),
    MomentToken("M", "Month", "1", "month"),
    # Day of month / year
    MomentToken("DDDD", "Day of year (padded)", "018", "day"),
    MomentToken("DDD", "Day of year", "18", "day"),
    MomentToken("DD", "Day (zero-padded)", "05", "day"),
    MomentToken("Do", "Day with ordinal", "5th", "day"),
    MomentToken("D", "Day", "5", "day"),
    # Weekday
    MomentToken("dddd", "Full weekday name", "Monday", "day"),
    MomentToken("ddd", "Abbreviated weekday", "Mon", "day"),
    MomentToken("dd", "Min weekday name", "Mo", "day"),
    MomentToken("do", "Day of week ordinal", "1st", "day"),
    MomentToken("d", "Day of week (0-6)", "1", "day"),
    MomentToken("e", "Day of week (locale)", "1", "day"),
    MomentToken("E", "Day of week (ISO)", "1", "day"),
    # Hour
    MomentToken("HH", "Hour 24h (zero-padded)", "14", "hour"),
    MomentToken("H", "Hour 24h", "14", "hour"),
    MomentToken("hh", "Hour 12h (zero-padded)", "02", "hour"),
    MomentToken("h", "Hour 12h", "2", "hour"),
    MomentToken("kk", "Hour 1-24 (zero-padded)", "14", "hour"),
    MomentToken("k", "Hour 1-24", "14", "hour"),
    # Minute
    MomentToken("mm", "Minutes (zero-padded)", "05", "minute"),
    MomentToken("m", "Minutes", "5", "minute"),
    # Second
    MomentToken("ss", "Seconds (zero-padded)", "09", "second"),
    MomentToken("s", "Seconds", "9", "second"),
    MomentToken("SSS", "Milliseconds (3 digits)", "123", "second"),
    MomentToken("SS", "Milliseconds (2 digits)", "12", "second"),
    MomentToken("S", "Milliseconds (1 digit)", "1", "second"),
    # AM/PM
    MomentToken("A", "AM/PM uppercase", "PM", "ampm"),
    MomentToken("a", "am/pm lowercase", "pm", "ampm"),
    # Week
    MomentToken("ww", "Week of year (padded)", "03", "other"),
    MomentToken("wo", "Week of year ordinal", "3rd", "other"),
    MomentToken("w", "Week of year", "3", "other"),
    MomentToken("WW", "ISO week (padded)", "03", "other"),
    MomentToken("Wo", "ISO week ordinal", "3rd", "other"),
    MomentToken("W", "ISO week", "3", "other"),
    # Quarter
    MomentToken("Qo", "Quarter ordinal", "1st", "other"),
    MomentToken("Q", "Quarter", "1", "other"),
    # Unix time
    MomentToken("X", "Unix timestamp (seconds)", "1737208800", "other"),
    MomentToken("x", "Unix timestamp (ms)", "1737208800000", "other"),
    # Timezone
    MomentToken("ZZ", "Timezone offset", "+0500", "timezone"),
    MomentToken("Z", "Timezone offset (:)", "+05:00", "timezone"),
    MomentToken("zz", "Timezone name", "EST", "timezone"),
    MomentToken("z", "Timezone abbr", "EST", "timezone"),
    # Week year
    MomentToken("gggg", "Locale week year", "2026", "year"),
    MomentToken("gg", "Locale week year (2 digit)", "26", "year"),
    MomentToken("GGGG", "ISO week year", "2026", "year"),
    MomentToken("GG", "ISO week year (2 digit)", "26", "year"),
)

# Longest first so "YYYY" wins over "YY" and "MMMM" over "MMM".
# sorted() is stable, so equal-length tokens keep table order.
TOKENS_BY_LENGTH: Tuple[str, ...] = tuple(
    t.token for t in sorted(MOMENT_TOKENS, key=lambda t: -len(t.token))
)

DATE_CATEGORIES = ("year", "month", "day")
TIME_CATEGORIES = ("hour", "minute", "second", "ampm")

_MONTH_NAMES = tuple(calendar.month_name[i] for i in range(1, 13))
_MONTH_ABBR = tuple(calendar.month_abbr[i] for i in range(1, 13))
# Sunday first, matching the 0-6 numbering of the "d" token.
_WEEKDAY_NAMES = (
    "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday",
)


def parse_format_string(fmt: str) -> List[FormatPart]:
    # Split a format string into contiguous token/literal spans.
    # Every character ends up in exactly one span; adjacent literals merge.
    parts: List[FormatPart] = []
    pos = 0
    length = len(fmt)

    while pos < length:
        matched = None
        for token in TOKENS_BY_LENGTH:
            if fmt.startswith(token, pos):
                matched = token
                break

        if matched is not None:
            parts.append(FormatPart("token", matched, pos, pos + len(matched)))
            pos += len(matched)
            continue

        prev = parts[-1] if parts else None
        if prev is not None and not prev.is_token and prev.end == pos:
            parts[-1] = FormatPart("literal", prev.value + fmt[pos], prev.start, pos + 1)
        else:
            parts.append(FormatPart("literal", fmt[pos], pos, pos + 1))
        pos += 1

    return parts


def has_date_tokens(fmt: str) -> bool:
    return any(
        p.is_token and _category(p.value) in DATE_CATEGORIES
        for p in parse_format_string(fmt)
    )


def has_time_tokens(fmt: str) -> bool:
    return any(
        p.is_token and _category(p.value) in TIME_CATEGORIES
        for p in parse_format_string(fmt)
    )


def filter_tokens(query: str) -> List[MomentToken]:
    # Match on the token prefix or anywhere in the description.
    q = query.lower()
    if not q:
        return list(MOMENT_TOKENS)
    return [
        t for t in MOMENT_TOKENS
        if t.token.lower().startswith(q) or q in t.description.lower()
    ]


def tokens_by_category(category: str) -> List[MomentToken]:
    return [t for t in MOMENT_TOKENS if t.category == category]


def token_example(token: MomentToken, instant: Optional[datetime] = None) -> str:
    # Live example for the given instant, falling back to the static one.
    rendered = format_moment(instant or datetime.now(), token.token)
    return rendered or token.example


def _category(symbol: str) -> str:
    for t in MOMENT_TOKENS:
        if t.token == symbol:
            return t.category
    return "other"


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


_ORDINAL_SUFFIXES = {1: "st", 2: "nd", 3: "rd"}


def ordinal(n: int) -> str:
    if 11 <= n % 100 <= 13:
        return f"{n}th"
    return f"{n}{_ORDINAL_SUFFIXES.get(n % 10, 'th')}"


def _js_weekday(d: date) -> int:
    # 0 = Sunday .. 6 = Saturday
    return (d.weekday() + 1) % 7


def _first_week_offset(year: int, dow: int, doy: int) -> int:
    # Offset of the first day of week 1 relative to Jan 1 (0-based day of year).
    fwd = 7 + dow - doy
    fwdlw = (7 + _js_weekday(date(year, 1, fwd)) - dow) % 7
    return -fwdlw + fwd - 1


def _weeks_in_year(year: int, dow: int, doy: int) -> int:
    days = 366 if calendar.isleap(year) else 365
    offset = _first_week_offset(year, dow, doy)
    offset_next = _first_week_offset(year + 1, dow, doy)
    return (days - offset + offset_next) // 7


def locale_week(d: date, dow: int = 0, doy: int = 6) -> Tuple[int, int]:
    # Week-of-year for an English locale: weeks start on Sunday and week 1
    # is the week containing January 1st. Returns (week_year, week).
    offset = _first_week_offset(d.year, dow, doy)
    week = (d.timetuple().tm_yday - offset - 1) // 7 + 1

    if week < 1:
        year = d.year - 1
        return year, week + _weeks_in_year(year, dow, doy)

    weeks = _weeks_in_year(d.year, dow, doy)
    if week > weeks:
        return d.year + 1, week - weeks
    return d.year, week


def _offset(instant: datetime, sep: str) -> str:
    aware = instant if instant.tzinfo is not None else instant.astimezone()
    delta = aware.utcoffset() or timedelta(0)
    minutes = int(delta.total_seconds() // 60)
    sign = "-" if minutes < 0 else "+"
    hours, mins = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}{sep}{mins:02d}"


def _tz_name(instant: datetime) -> str:
    aware = instant if instant.tzinfo is not None else instant.astimezone()
    return aware.tzname() or ""


def _hour12(instant: datetime) -> int:
    return instant.hour % 12 or 12


_RENDERERS: Dict[str, Callable[[datetime], str]] = {
    "YYYY": lambda t: f"{t.year:04d}",
    "YY": lambda t: f"{t.year % 100:02d}",
    "MMMM": lambda t: _MONTH_NAMES[t.month - 1],
    "MMM": lambda t: _MONTH_ABBR[t.month - 1],
    "MM": lambda t: f"{t.month:02d}",
    "Mo": lambda t: ordinal(t.month),
    "M": lambda t: str(t.month),
    "DDDD": lambda t: f"{t.timetuple().tm_yday:03d}",
    "DDD": lambda t: str(t.timetuple().tm_yday),
    "DD": lambda t: f"{t.day:02d}",
    "Do": lambda t: ordinal(t.day),
    "D": lambda t: str(t.day),
    "dddd": lambda t: _WEEKDAY_NAMES[_js_weekday(t)],
    "ddd": lambda t: _WEEKDAY_NAMES[_js_weekday(t)][:3],
    "dd": lambda t: _WEEKDAY_NAMES[_js_weekday(t)][:2],
    "do": lambda t: ordinal(_js_weekday(t)),
    "d": lambda t: str(_js_weekday(t)),
    "e": lambda t: str(_js_weekday(t)),
    "E": lambda t: str(t.isoweekday()),
    "HH": lambda t: f"{t.hour:02d}",
    "H": lambda t: str(t.hour),
    "hh": lambda t: f"{_hour12(t):02d}",
    "h": lambda t: str(_hour12(t)),
    "kk": lambda t: f"{t.hour or 24:02d}",
    "k": lambda t: str(t.hour or 24),
    "mm": lambda t: f"{t.minute:02d}",
    "m": lambda t: str(t.minute),
    "ss": lambda t: f"{t.second:02d}",
    "s": lambda t: str(t.second),
    "SSS": lambda t: f"{t.microsecond // 1000:03d}",
    "SS": lambda t: f"{t.microsecond // 10000:02d}",
    "S": lambda t: str(t.microsecond // 100000),
    "A": lambda t: "AM" if t.hour < 12 else "PM",
    "a": lambda t: "am" if t.hour < 12 else "pm",
    "ww": lambda t: f"{locale_week(t)[1]:02d}",
    "wo": lambda t: ordinal(locale_week(t)[1]),
    "w": lambda t: str(locale_week(t)[1]),
    "WW": lambda t: f"{t.isocalendar()[1]:02d}",
    "Wo": lambda t: ordinal(t.isocalendar()[1]),
    "W": lambda t: str(t.isocalendar()[1]),
    "Qo": lambda t: ordinal((t.month - 1) // 3 + 1),
    "Q": lambda t: str((t.month - 1) // 3 + 1),
    "X": lambda t: str(int(t.timestamp())),
    "x": lambda t: str(int(t.timestamp() * 1000)),
    "ZZ": lambda t: _offset(t, ""),
    "Z": lambda t: _offset(t, ":"),
    "zz": _tz_name,
    "z": _tz_name,
    "gggg": lambda t: f"{locale_week(t)[0]:04d}",
    "gg": lambda t: f"{locale_week(t)[0] % 100:02d}",
    "GGGG": lambda t: f"{t.isocalendar()[0]:04d}",
    "GG": lambda t: f"{t.isocalendar()[0] % 100:02d}",
}


def format_moment(instant: datetime, fmt: str) -> str:
    # Render a moment-style format string. Literal spans pass through untouched.
    out: List[str] = []
    for part in parse_format_string(fmt):
        if part.is_token:
            out.append(_RENDERERS[part.value](instant))
        else:
            out.append(part.value)
    return "".join(out)
