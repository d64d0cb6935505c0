# Settings persistence for titlestamp.
# Templates and formatting defaults live in a JSON file at the vault root.
# This module owns reading and writing it; nothing else touches the file.
#
# Date/time defaults fall back to the note app's own templates.json so
# titles agree with the app's core Templates feature.

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape

from titlestamp.models import (
    DateConfig,
    DateTimeSettings,
    ListConfig,
    PromptDescriptor,
    TimeConfig,
    TitleTemplate,
    ValueType,
)

DEFAULT_SETTINGS_NAME = ".titlestamp.json"
DEFAULT_TEMPLATE_FOLDER = "Templates"

# Written by the note app's core Templates plugin.
APP_TEMPLATES_CONFIG = Path(".obsidian") / "templates.json"

_err = Console(stderr=True)


@dataclass
class PluginSettings:
    templates: List[TitleTemplate] = field(default_factory=list)
    template_folder: str = DEFAULT_TEMPLATE_FOLDER
    date_format: Optional[str] = None
    time_format: Optional[str] = None


def _prompt_to_dict(prompt: PromptDescriptor) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": prompt.id,
        "name": prompt.name,
        "value_type": prompt.value_type.value,
        "is_optional": prompt.is_optional,
    }
    if prompt.date_config is not None:
        data["date_config"] = {
            "output_format": prompt.date_config.output_format,
            "custom_format": prompt.date_config.custom_format,
        }
    if prompt.time_config is not None:
        data["time_config"] = {
            "output_format": prompt.time_config.output_format,
            "custom_format": prompt.time_config.custom_format,
        }
    if prompt.list_config is not None:
        data["list_config"] = {"options": list(prompt.list_config.options)}
    return data


def _prompt_from_dict(data: Dict[str, Any]) -> PromptDescriptor:
    date_config = data.get("date_config")
    time_config = data.get("time_config")
    list_config = data.get("list_config")
    return PromptDescriptor(
        name=str(data["name"]),
        value_type=ValueType(data.get("value_type", "text")),
        is_optional=bool(data.get("is_optional", False)),
        date_config=DateConfig(**date_config) if date_config else None,
        time_config=TimeConfig(**time_config) if time_config else None,
        list_config=ListConfig(list(list_config.get("options", []))) if list_config else None,
        id=str(data.get("id", "")),
    )


def _template_to_dict(template: TitleTemplate) -> Dict[str, Any]:
    return {
        "id": template.id,
        "name": template.name,
        "title_pattern": template.title_pattern,
        "folder": template.folder,
        "file_template": template.file_template,
        "counter_starts_at": template.counter_starts_at,
        "user_prompts": [_prompt_to_dict(p) for p in template.user_prompts],
    }


def _template_from_dict(data: Dict[str, Any]) -> TitleTemplate:
    return TitleTemplate(
        id=str(data.get("id") or data["name"]),
        name=str(data["name"]),
        title_pattern=str(data["title_pattern"]),
        folder=str(data.get("folder") or "current"),
        file_template=data.get("file_template") or None,
        counter_starts_at=int(data.get("counter_starts_at", 1)),
        user_prompts=[_prompt_from_dict(p) for p in data.get("user_prompts", [])],
    )


def settings_to_dict(settings: PluginSettings) -> Dict[str, Any]:
    return {
        "template_folder": settings.template_folder,
        "date_format": settings.date_format,
        "time_format": settings.time_format,
        "templates": [_template_to_dict(t) for t in settings.templates],
    }


def settings_from_dict(data: Dict[str, Any]) -> PluginSettings:
    return PluginSettings(
        templates=[_template_from_dict(t) for t in data.get("templates", [])],
        template_folder=str(data.get("template_folder") or DEFAULT_TEMPLATE_FOLDER),
        date_format=data.get("date_format") or None,
        time_format=data.get("time_format") or None,
    )


def load_settings(path: Path) -> PluginSettings:
    # A missing file means defaults; a broken one is an error.
    if not path.exists():
        _err.print(f"[dim]No settings at {escape(str(path))}; using defaults.[/dim]")
        return PluginSettings()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("top level must be an object")
        return settings_from_dict(data)
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid settings file {path}: {exc}") from exc


def save_settings(settings: PluginSettings, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(settings_to_dict(settings), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )


def load_date_time_settings(vault_root: Path, settings: Optional[PluginSettings] = None) -> DateTimeSettings:
    """Resolve the date/time formats used by {{date}}, {{time}} and friends.

    Priority: explicit values in our settings file, then the note app's
    templates.json, then built-in defaults.
    """
    defaults = DateTimeSettings()
    app_date: Optional[str] = None
    app_time: Optional[str] = None

    app_config = vault_root / APP_TEMPLATES_CONFIG
    if app_config.is_file():
        try:
            data = json.loads(app_config.read_text(encoding="utf-8"))
            app_date = data.get("dateFormat") or None
            app_time = data.get("timeFormat") or None
        except (json.JSONDecodeError, AttributeError) as exc:
            # Fall back to our own defaults.
            _err.print(f"[dim]Ignoring unreadable {escape(str(app_config))}: {escape(str(exc))}[/dim]")

    return DateTimeSettings(
        date_format=(settings.date_format if settings else None) or app_date or defaults.date_format,
        time_format=(settings.time_format if settings else None) or app_time or defaults.time_format,
    )


def find_template(settings: PluginSettings, key: str) -> Optional[TitleTemplate]:
    # Look a template up by id, then by case-insensitive name.
    for template in settings.templates:
        if template.id == key:
            return template
    lowered = key.lower()
    for template in settings.templates:
        if template.name.lower() == lowered:
            return template
    return None
