# Prompt value substitution for titlestamp.
# Values are keyed by prompt id; occurrences are matched to prompts by
# case-insensitive name.
#
# Occurrences that do not resolve (empty name, unknown prompt) are left
# exactly as written.

from __future__ import annotations

from typing import Callable, Dict, List, Mapping, Optional, Sequence

from titlestamp.models import PromptDescriptor, PromptMatch
from titlestamp.prompts import find_prompt_matches, get_prompt_name

PromptValues = Mapping[str, str]

# Returns the replacement text for one occurrence, or None to keep it verbatim.
PromptResolver = Callable[[PromptMatch], Optional[str]]


def prompt_resolver(
    prompts: Sequence[PromptDescriptor],
    values: PromptValues,
    preview: bool = False,
) -> PromptResolver:
    # Missing values become "" for real output, "[Name]" in preview.
    by_key = {p.key: p for p in prompts}

    def resolve(match: PromptMatch) -> Optional[str]:
        name = get_prompt_name(match.content)
        if not name:
            return None
        prompt = by_key.get(name.lower())
        if prompt is None:
            return None
        value = values.get(prompt.id)
        if preview and not value:
            return f"[{prompt.name}]"
        return value or ""

    return resolve


def apply_prompt_resolver(
    text: str,
    resolve: PromptResolver,
    skip_code_blocks: bool = False,
) -> str:
    out: List[str] = []
    pos = 0
    for match in find_prompt_matches(text, skip_code_blocks=skip_code_blocks):
        replacement = resolve(match)
        if replacement is None:
            continue
        out.append(text[pos:match.start])
        out.append(replacement)
        pos = match.end
    out.append(text[pos:])
    return "".join(out)


def substitute_prompts(
    pattern: str,
    prompts: Sequence[PromptDescriptor],
    values: PromptValues,
) -> str:
    return apply_prompt_resolver(pattern, prompt_resolver(prompts, values))


def substitute_prompts_in_content(
    content: str,
    prompts: Sequence[PromptDescriptor],
    values: PromptValues,
) -> str:
    # Document variant: prompts inside fenced code blocks stay untouched.
    return apply_prompt_resolver(
        content, prompt_resolver(prompts, values), skip_code_blocks=True
    )


def preview_with_prompts(
    pattern: str,
    prompts: Sequence[PromptDescriptor],
    values: PromptValues,
) -> str:
    return apply_prompt_resolver(pattern, prompt_resolver(prompts, values, preview=True))


def values_from_names(
    prompts: Sequence[PromptDescriptor],
    named: Mapping[str, str],
) -> Dict[str, str]:
    # Re-key a {name: value} mapping by prompt id. Names compare case-insensitively;
    # names without a matching prompt are dropped.
    by_key = {p.key: p for p in prompts}
    values: Dict[str, str] = {}
    for name, value in named.items():
        prompt = by_key.get(name.strip().lower())
        if prompt is not None:
            values[prompt.id] = value
    return values
