# Filename sanitization for titlestamp.
# This module is pure logic and must remain side-effect free.
#
# The counter scanner relies on sanitize_for_pattern applying exactly the
# same character substitutions as sanitize_filename.

from __future__ import annotations

import re

# Colon and pipe are swapped for look-alikes so the text stays readable.
COLON_SUBSTITUTE = "\u2982"  # ⦂
PIPE_SUBSTITUTE = "\u2223"  # ∣

_SUBSTITUTIONS = str.maketrans({":": COLON_SUBSTITUTE, "|": PIPE_SUBSTITUTE})

# Characters rejected in Windows filenames, minus the two substituted above.
_INVALID_CHARS_RE = re.compile(r'[*"\\/<>?]')

# Control characters.
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1F\x7F]")

# Whitespace normalization used for title cleanup.
_MULTISPACE_RE = re.compile(r"\s+")

# Free-text prompt values are rejected, not rewritten, when they contain these.
INVALID_VALUE_CHARS_RE = re.compile(r'[*"\\/<>?|:\x00-\x1F]')


def sanitize_for_pattern(text: str) -> str:
    # Character-level part of sanitize_filename, without trimming or
    # whitespace changes. Used on literal fragments of a title pattern.
    text = text.translate(_SUBSTITUTIONS)
    text = _INVALID_CHARS_RE.sub("", text)
    return _CONTROL_CHARS_RE.sub("", text)


def sanitize_filename(name: str) -> str:
    # Normalize a rendered title into a safe, portable filename stem.
    # This function must not add extensions.
    t = sanitize_for_pattern(name)

    # Collapse internal whitespace to keep names consistent.
    t = _MULTISPACE_RE.sub(" ", t)

    # Leading dots hide files; trailing dots are dropped by Windows.
    # Stripping both together keeps the function idempotent.
    return t.strip(" .")


def has_invalid_value_chars(value: str) -> bool:
    return bool(INVALID_VALUE_CHARS_RE.search(value))
