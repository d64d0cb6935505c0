# Command-line interface definition for titlestamp.
# This file is responsible only for argument parsing, asking for prompt
# values, and dispatch into core application logic.
#
# No template parsing or filesystem layout decisions should live here.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path as FSPath
from typing import Dict, List, Optional, Sequence, Tuple

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from titlestamp import __version__
from titlestamp.core import (
    create_file_from_template,
    enter_file_prompts,
    get_file_prompts,
    plan_file_creation,
    render_title,
)
from titlestamp.highlight import highlight_text
from titlestamp.models import DateTimeSettings, PromptDescriptor, TitleTemplate, ValueType
from titlestamp.naming import sanitize_filename
from titlestamp.prompts import extract_prompts
from titlestamp.settings import (
    DEFAULT_SETTINGS_NAME,
    PluginSettings,
    find_template,
    load_date_time_settings,
    load_settings,
)
from titlestamp.storage import ROOT, LocalVault, normalize_path
from titlestamp.substitution import values_from_names
from titlestamp.suggest import suggest
from titlestamp.validation import validate_prompt_value
from titlestamp.variables import (
    extract_variables,
    has_counter_variable,
    preview_title,
    validate_title_pattern,
)

app = typer.Typer(
    add_completion=False,
    help="Create notes from title templates with {{variables}}, {% prompts %} and counters.",
)
console = Console()

# Shown next to the input line so users know what shape to type.
_INPUT_HINTS = {
    ValueType.numeric: "number",
    ValueType.date: "YYYY-MM-DD",
    ValueType.time: "HH:mm",
    ValueType.datetime: "YYYY-MM-DDTHH:mm",
}


@dataclass
class CliState:
    vault: FSPath
    settings_path: FSPath


# Simple counters used for the summary block of `fill`.
@dataclass
class Counters:
    filled: int = 0
    skipped: int = 0
    failed: int = 0


def _version_callback(value: bool) -> None:
    # Handle version early and exit cleanly.
    if value:
        console.print(__version__)
        raise typer.Exit(code=0)


@app.callback()
def main(
    ctx: typer.Context,
    vault: FSPath = typer.Option(
        FSPath("."), "--vault",
        help="Vault root directory.",
        file_okay=False,
    ),
    settings_path: Optional[FSPath] = typer.Option(
        None, "--settings",
        help=f"Settings file. Defaults to {DEFAULT_SETTINGS_NAME} in the vault root.",
    ),
    version: bool = typer.Option(
        False, "--version",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
):
    ctx.obj = CliState(
        vault=vault,
        settings_path=settings_path or vault / DEFAULT_SETTINGS_NAME,
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load(state: CliState) -> Tuple[LocalVault, PluginSettings, DateTimeSettings]:
    # Storage, settings and date/time formats, or a clean exit on a bad settings file.
    if not state.vault.is_dir():
        console.print(f"[red]FAILED:[/red] vault not found: {escape(str(state.vault))}")
        raise typer.Exit(code=1)
    try:
        settings = load_settings(state.settings_path)
    except ValueError as exc:
        console.print(f"[red]FAILED:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    return LocalVault(state.vault), settings, load_date_time_settings(state.vault, settings)


def _parse_assignments(items: Sequence[str]) -> Dict[str, str]:
    # "--set Name=Value" pairs; the first "=" separates name from value.
    named: Dict[str, str] = {}
    for item in items:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Expected Name=Value, got {item!r}", param_hint="--set")
        named[name.strip()] = value
    return named


def _current_folder(storage: LocalVault) -> str:
    # The working directory as a vault folder; the root when outside the vault.
    try:
        return storage.to_vault(FSPath.cwd())
    except ValueError:
        return ROOT


def _get_template(settings: PluginSettings, key: str) -> TitleTemplate:
    template = find_template(settings, key)
    if template is None:
        raise typer.BadParameter(f"No template named {key!r}", param_hint="TEMPLATE")
    return template


def _prompt_label(prompt: PromptDescriptor) -> str:
    hint = _INPUT_HINTS.get(prompt.value_type)
    if prompt.value_type in (ValueType.list, ValueType.multilist) and prompt.list_config:
        hint = " | ".join(prompt.list_config.options)
        if prompt.value_type is ValueType.multilist:
            hint += ", comma separated"
    label = escape(prompt.name)
    if hint:
        label += f" [dim]({escape(hint)})[/dim]"
    if prompt.is_optional:
        label += " [dim]optional[/dim]"
    return label


def _ask(prompt: PromptDescriptor) -> str:
    # Keep asking until the value validates.
    while True:
        value = console.input(f"{_prompt_label(prompt)}: ").strip()
        result = validate_prompt_value(value, prompt)
        if result.valid:
            return value
        console.print(f"[red]{escape(result.error or 'Invalid value')}[/red]")


def _collect_values(
    prompts: Sequence[PromptDescriptor],
    named: Dict[str, str],
    interactive: bool,
) -> Dict[str, str]:
    """Return prompt values keyed by prompt id.

    Values given on the command line are validated; the rest are asked for
    interactively, or treated as blank when input is disabled.
    """
    values = values_from_names(prompts, named)
    errors: List[str] = []

    for prompt in prompts:
        if prompt.id in values:
            result = validate_prompt_value(values[prompt.id], prompt)
            if not result.valid:
                errors.append(f"{prompt.name}: {result.error}")
            continue
        if interactive:
            values[prompt.id] = _ask(prompt)
            continue
        result = validate_prompt_value("", prompt)
        if not result.valid:
            errors.append(f"{prompt.name}: {result.error}")

    if errors:
        raise typer.BadParameter("; ".join(errors), param_hint="--set")
    return values


def _to_vault_path(storage: LocalVault, path: str) -> str:
    # Accept a filesystem path to a note, or a vault-relative one.
    fs_path = FSPath(path)
    if fs_path.exists():
        try:
            return storage.to_vault(fs_path)
        except ValueError:
            raise typer.BadParameter(f"{path} is outside the vault", param_hint="FILES")
    return normalize_path(path)


def _print_summary(counters: Counters) -> None:
    console.print()
    console.print("[bold]Summary[/bold]")
    console.print(f"Filled:  {counters.filled}")
    console.print(f"Skipped: {counters.skipped}")
    console.print(f"Failed:  {counters.failed}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("list", help="List configured title templates.")
def list_templates(ctx: typer.Context):
    _, settings, _ = _load(ctx.obj)
    if not settings.templates:
        console.print("No templates configured.")
        return

    table = Table()
    table.add_column("Name", style="bold")
    table.add_column("Title pattern")
    table.add_column("Folder")
    table.add_column("File template")
    table.add_column("Prompts", justify="right")
    for t in settings.templates:
        table.add_row(
            escape(t.name),
            highlight_text(t.title_pattern),
            escape(t.folder),
            escape(t.file_template or "-"),
            str(len(extract_prompts(t.title_pattern))),
        )
    console.print(table)


@app.command(help="Create a new note from a title template.")
def new(
    ctx: typer.Context,
    template_key: str = typer.Argument(..., metavar="TEMPLATE", help="Template name or id."),
    folder: Optional[str] = typer.Option(
        None, "--folder",
        help="Target folder, overriding the template's folder.",
    ),
    assignments: List[str] = typer.Option(
        [], "--set",
        help="Prompt value as Name=Value. Repeatable.",
        rich_help_panel="Prompt Values",
    ),
    no_input: bool = typer.Option(
        False, "--no-input",
        help="Never ask for values; missing optional prompts stay blank.",
        rich_help_panel="Prompt Values",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run",
        help="Show the note that would be created without creating it.",
        rich_help_panel="Safety & UX",
    ),
):
    storage, settings, date_time = _load(ctx.obj)
    template = _get_template(settings, template_key)

    problems = validate_title_pattern(template.title_pattern)
    if problems:
        for problem in problems:
            console.print(f"[red]FAILED:[/red] {escape(problem)}")
        raise typer.Exit(code=1)

    named = _parse_assignments(assignments)
    try:
        plan = plan_file_creation(storage, template, date_time, folder, _current_folder(storage))
    except (OSError, ValueError) as exc:
        console.print(f"[red]FAILED:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    interactive = not no_input
    title_values = _collect_values(plan.title_prompts, named, interactive)
    file_values = _collect_values(plan.file_prompts, named, interactive)
    now = datetime.now()

    if dry_run:
        title = sanitize_filename(render_title(plan, date_time, title_values, now))
        console.print(f"DRY RUN: would create {escape(plan.folder)} -> {escape(title)}.md")
        return

    try:
        result = create_file_from_template(storage, plan, date_time, title_values, file_values, now)
    except (OSError, ValueError) as exc:
        console.print(f"[red]FAILED:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    console.print(f"Created: {escape(result.path)}")
    if result.conflict_resolved:
        console.print("[dim]Name was taken; a numeric suffix was added.[/dim]")


@app.command(help="Fill the remaining {% prompts %} in existing notes.")
def fill(
    ctx: typer.Context,
    files: List[str] = typer.Argument(..., help="Notes to fill, as filesystem or vault paths."),
    assignments: List[str] = typer.Option(
        [], "--set",
        help="Prompt value as Name=Value. Repeatable.",
        rich_help_panel="Prompt Values",
    ),
    no_input: bool = typer.Option(
        False, "--no-input",
        help="Never ask for values; missing optional prompts become blank.",
        rich_help_panel="Prompt Values",
    ),
):
    storage, _, _ = _load(ctx.obj)
    named = _parse_assignments(assignments)
    counters = Counters()

    for file in files:
        path = file
        try:
            path = _to_vault_path(storage, file)
            prompts = get_file_prompts(storage, path)
            if not prompts:
                console.print(f"No prompts, skipping: {escape(path)}")
                counters.skipped += 1
                continue
            console.print(f"[bold]{escape(path)}[/bold]")
            values = _collect_values(prompts, named, not no_input)
            enter_file_prompts(storage, path, prompts, values)
            console.print(f"Filled: {escape(path)}")
            counters.filled += 1
        except (OSError, ValueError, typer.BadParameter) as exc:
            # One bad note never stops the rest.
            counters.failed += 1
            console.print(f"[red]FAILED:[/red] {escape(path)} ({escape(str(exc))})")

    _print_summary(counters)
    if counters.failed:
        raise typer.Exit(code=1)


@app.command(help="Preview the title a pattern produces right now.")
def preview(
    ctx: typer.Context,
    pattern: str = typer.Argument(..., help="Title pattern."),
    counter: Optional[int] = typer.Option(
        None, "--counter",
        help="Value for {{counter}}. Shown as # when omitted.",
    ),
    assignments: List[str] = typer.Option(
        [], "--set",
        help="Prompt value as Name=Value. Repeatable.",
    ),
):
    _, _, date_time = _load(ctx.obj)
    prompts = extract_prompts(pattern)
    values = values_from_names(prompts, _parse_assignments(assignments))
    title = preview_title(pattern, date_time, datetime.now(), counter, prompts, values)
    console.print(title, markup=False, highlight=False)


@app.command("next-counter", help="Print the next {{counter}} value for a template.")
def next_counter(
    ctx: typer.Context,
    template_key: str = typer.Argument(..., metavar="TEMPLATE", help="Template name or id."),
    folder: Optional[str] = typer.Option(
        None, "--folder",
        help="Folder to scan, overriding the template's folder.",
    ),
):
    storage, settings, date_time = _load(ctx.obj)
    template = _get_template(settings, template_key)
    if not has_counter_variable(template.title_pattern):
        raise typer.BadParameter(
            f"Template {template.name!r} has no {{{{counter}}}}", param_hint="TEMPLATE"
        )
    try:
        plan = plan_file_creation(storage, template, date_time, folder, _current_folder(storage))
    except (OSError, ValueError) as exc:
        console.print(f"[red]FAILED:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    console.print(str(plan.counter))


@app.command(help="Validate a title pattern and show how it is read.")
def check(
    pattern: str = typer.Argument(..., help="Title pattern."),
):
    console.print(highlight_text(pattern))

    variables = extract_variables(pattern)
    prompts = extract_prompts(pattern)
    if variables:
        console.print(f"Variables: {escape(', '.join(variables))}")
    for prompt in prompts:
        kind = prompt.value_type.value + (", optional" if prompt.is_optional else "")
        console.print(f"Prompt: {escape(prompt.name)} [dim]({kind})[/dim]")

    problems = validate_title_pattern(pattern)
    if problems:
        for problem in problems:
            console.print(f"[red]ERROR:[/red] {escape(problem)}")
        raise typer.Exit(code=1)
    console.print("[green]OK[/green]")


@app.command(help="Show completions for a partly typed pattern.")
def complete(
    text: str = typer.Argument(..., help="Pattern text up to the cursor."),
):
    items = suggest(text, datetime.now())
    if not items:
        console.print("[dim]No suggestions.[/dim]")
        return

    table = Table()
    table.add_column("Label", style="bold")
    table.add_column("Inserts")
    table.add_column("Example")
    table.add_column("Description")
    for item in items:
        table.add_row(
            escape(item.label),
            escape(item.insert_text),
            escape(item.example or ""),
            escape(item.description),
        )
    console.print(table)


if __name__ == "__main__":
    app()
