# Prompt value validation for titlestamp.
# Every check returns a ValidationResult; nothing here raises on bad input.
#
# Date, time and list values come from constrained pickers and are exempt
# from the filename character check.

from __future__ import annotations

import re
from typing import Dict, List, Mapping, Sequence

from titlestamp.datetime_utils import is_valid_date, is_valid_datetime, is_valid_time
from titlestamp.models import PromptDescriptor, ValidationResult, ValueType
from titlestamp.naming import has_invalid_value_chars

# Plain decimal numbers with an optional sign and exponent.
_NUMBER_RE = re.compile(r"^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?\s*$")

EMPTY_ERROR = "Value cannot be empty"
NUMBER_ERROR = "Value must be a number"
DATE_ERROR = "Must be a valid date (YYYY-MM-DD)"
TIME_ERROR = "Must be a valid time (HH:MM)"
DATETIME_ERROR = "Must be a valid date and time"
INVALID_CHARS_ERROR = 'Value contains invalid characters (* " \\ / < > ? | :)'
NO_OPTIONS_ERROR = "No options configured"

_VALID = ValidationResult(True)


def _invalid(error: str) -> ValidationResult:
    return ValidationResult(False, error)


def split_multilist_value(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def validate_prompt_value(value: str, prompt: PromptDescriptor) -> ValidationResult:
    if not value or not value.strip():
        # Optional prompts may be left blank.
        return _VALID if prompt.is_optional else _invalid(EMPTY_ERROR)

    vt = prompt.value_type

    if vt is ValueType.numeric and not _NUMBER_RE.match(value):
        return _invalid(NUMBER_ERROR)
    if vt is ValueType.date and not is_valid_date(value):
        return _invalid(DATE_ERROR)
    if vt is ValueType.time and not is_valid_time(value):
        return _invalid(TIME_ERROR)
    if vt is ValueType.datetime and not is_valid_datetime(value):
        return _invalid(DATETIME_ERROR)

    if vt in (ValueType.list, ValueType.multilist):
        options = prompt.list_config.options if prompt.list_config else []
        if not options:
            return _invalid(NO_OPTIONS_ERROR)

        if vt is ValueType.list:
            # Exact, case-sensitive match against a configured option.
            if value not in options:
                return _invalid(f"Must be one of: {', '.join(options)}")
            return _VALID

        entries = split_multilist_value(value)
        if not entries:
            return _VALID if prompt.is_optional else _invalid(EMPTY_ERROR)
        for entry in entries:
            if entry not in options:
                return _invalid(f'Invalid option: "{entry}"')
        return _VALID

    if vt in (ValueType.text, ValueType.numeric) and has_invalid_value_chars(value):
        return _invalid(INVALID_CHARS_ERROR)

    return _VALID


def validate_all_prompt_values(
    prompts: Sequence[PromptDescriptor],
    values: Mapping[str, str],
) -> Dict[str, ValidationResult]:
    # Keyed by prompt id; a missing value is validated as "".
    return {p.id: validate_prompt_value(values.get(p.id, ""), p) for p in prompts}


def all_prompts_valid(
    prompts: Sequence[PromptDescriptor],
    values: Mapping[str, str],
) -> bool:
    return all(r.valid for r in validate_all_prompt_values(prompts, values).values())
