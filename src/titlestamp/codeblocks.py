# Fenced code block detection for titlestamp.
# Prompt syntax shown inside ``` or ~~~ fences is documentation, not a
# prompt; substitution, suggestions and highlighting all skip it.
#
# Ranges are computed in one pass over the text and queried by bisection,
# so callers can re-run this on every keystroke.

from __future__ import annotations

import re
from bisect import bisect_right
from typing import List, NamedTuple, Sequence

_FENCE_RE = re.compile(r"^(`{3,}|~{3,})")


class CodeBlockRange(NamedTuple):
    # Both ends are inclusive: a position equal to ``end`` is inside.
    start: int
    end: int


def find_code_block_ranges(text: str) -> List[CodeBlockRange]:
    # A fence must start the line. It closes on a later line starting with
    # the same character repeated at least as many times.
    ranges: List[CodeBlockRange] = []
    in_block = False
    block_start = 0
    fence_char = ""
    fence_len = 0
    pos = 0

    for line in text.split("\n"):
        m = _FENCE_RE.match(line)
        if m:
            fence = m.group(1)
            if not in_block:
                in_block = True
                block_start = pos
                fence_char = fence[0]
                fence_len = len(fence)
            elif fence[0] == fence_char and len(fence) >= fence_len:
                ranges.append(CodeBlockRange(block_start, pos + len(line)))
                in_block = False
        pos += len(line) + 1

    # Unterminated fences run to the end of the document.
    if in_block:
        ranges.append(CodeBlockRange(block_start, len(text)))

    return ranges


def is_inside_code_block(pos: int, ranges: Sequence[CodeBlockRange]) -> bool:
    # ranges must be sorted and non-overlapping, as find_code_block_ranges returns them.
    idx = bisect_right(ranges, (pos, float("inf"))) - 1
    if idx < 0:
        return False
    start, end = ranges[idx]
    return start <= pos <= end
