# Core orchestration logic for titlestamp.
# This file ties prompts, variables, counters and storage together into
# the two user-facing flows: creating a note from a template, and filling
# the prompts of an existing note.
#
# It intentionally contains no CLI parsing and no prompting for input.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence

from rich.console import Console
from rich.markup import escape

from titlestamp.counter import get_next_counter_value
from titlestamp.datetime_utils import format_prompt_value
from titlestamp.files import FileService
from titlestamp.models import CreateFileResult, DateTimeSettings, PromptDescriptor, TitleTemplate
from titlestamp.naming import sanitize_filename
from titlestamp.prompts import extract_prompts_from_content, sync_prompts_with_pattern
from titlestamp.storage import ROOT, Storage, normalize_path
from titlestamp.substitution import substitute_prompts_in_content
from titlestamp.variables import (
    has_counter_variable,
    parse_title_template,
    preview_title,
    process_template_content,
)

_err = Console(stderr=True)

CURRENT_FOLDER = "current"


@dataclass
class CreationPlan:
    # Everything known about a new note before prompt values are entered.
    template: TitleTemplate
    folder: str
    counter: Optional[int] = None
    title_prompts: List[PromptDescriptor] = field(default_factory=list)
    file_prompts: List[PromptDescriptor] = field(default_factory=list)
    template_content: Optional[str] = None

    @property
    def all_prompts(self) -> List[PromptDescriptor]:
        return self.title_prompts + self.file_prompts


def resolve_target_folder(
    template: TitleTemplate,
    folder_override: Optional[str] = None,
    current_folder: str = ROOT,
) -> str:
    # Priority: explicit override, then "current", then the template's folder.
    if folder_override:
        return normalize_path(folder_override)
    if template.folder == CURRENT_FOLDER:
        return normalize_path(current_folder)
    return normalize_path(template.folder)


def _read_template(files: FileService, path: Optional[str]) -> Optional[str]:
    # Accept the path with or without its .md extension.
    if not path:
        return None
    content = files.get_template_content(path)
    if content is None and not path.endswith(".md"):
        content = files.get_template_content(f"{path}.md")
    if content is None:
        _err.print(f"[dim]Template file not found: {escape(path)}[/dim]")
    return content


def plan_file_creation(
    storage: Storage,
    template: TitleTemplate,
    date_time: Optional[DateTimeSettings] = None,
    folder_override: Optional[str] = None,
    current_folder: str = ROOT,
) -> CreationPlan:
    files = FileService(storage)
    folder = resolve_target_folder(template, folder_override, current_folder)

    # Pattern is the source of truth; saved prompt settings fill the gaps.
    title_prompts = sync_prompts_with_pattern(template.title_pattern, template.user_prompts)

    content = _read_template(files, template.file_template)
    file_prompts = extract_prompts_from_content(content) if content else []

    counter = None
    if has_counter_variable(template.title_pattern):
        counter = get_next_counter_value(storage, template, folder, date_time)

    return CreationPlan(
        template=template,
        folder=folder,
        counter=counter,
        title_prompts=title_prompts,
        file_prompts=file_prompts,
        template_content=content,
    )


def format_values(
    prompts: Sequence[PromptDescriptor],
    values: Mapping[str, str],
    now: Optional[datetime] = None,
) -> Dict[str, str]:
    # Raw picker-shaped values to each prompt's configured output format.
    return {
        p.id: format_prompt_value(p, values[p.id], now)
        for p in prompts
        if p.id in values
    }


def render_title(
    plan: CreationPlan,
    date_time: Optional[DateTimeSettings] = None,
    title_values: Optional[Mapping[str, str]] = None,
    now: Optional[datetime] = None,
    preview: bool = False,
) -> str:
    now = now or datetime.now()
    values = format_values(plan.title_prompts, title_values or {}, now)
    render = preview_title if preview else parse_title_template
    return render(
        plan.template.title_pattern,
        date_time,
        now,
        plan.counter,
        plan.title_prompts,
        values,
    )


def render_content(
    plan: CreationPlan,
    title: str,
    date_time: Optional[DateTimeSettings] = None,
    file_values: Optional[Mapping[str, str]] = None,
    now: Optional[datetime] = None,
) -> str:
    # Prompts first, then {{title}}/{{date}}/... in what is left.
    if not plan.template_content:
        return ""
    now = now or datetime.now()
    content = plan.template_content
    if plan.file_prompts:
        values = format_values(plan.file_prompts, file_values or {}, now)
        content = substitute_prompts_in_content(content, plan.file_prompts, values)
    return process_template_content(content, title, date_time, now, plan.counter)


def create_file_from_template(
    storage: Storage,
    plan: CreationPlan,
    date_time: Optional[DateTimeSettings] = None,
    title_values: Optional[Mapping[str, str]] = None,
    file_values: Optional[Mapping[str, str]] = None,
    now: Optional[datetime] = None,
) -> CreateFileResult:
    """Create the note described by ``plan``.

    Prompt values are keyed by prompt id. Storage errors propagate.
    """
    now = now or datetime.now()
    title = sanitize_filename(render_title(plan, date_time, title_values, now))
    content = render_content(plan, title, date_time, file_values, now)
    return FileService(storage).create_file(plan.folder, title, content)


def get_file_prompts(storage: Storage, path: str) -> List[PromptDescriptor]:
    # Prompts still waiting to be filled in an existing note.
    return extract_prompts_from_content(storage.read(path))


def enter_file_prompts(
    storage: Storage,
    path: str,
    prompts: Sequence[PromptDescriptor],
    values: Mapping[str, str],
    now: Optional[datetime] = None,
) -> str:
    # Fill prompts in place and return the new content.
    content = storage.read(path)
    formatted = format_values(prompts, values, now)
    updated = substitute_prompts_in_content(content, prompts, formatted)
    if updated != content:
        storage.modify(path, updated)
    return updated
