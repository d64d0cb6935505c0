# Unit tests for titlestamp.settings.
# These tests validate settings persistence and date/time format resolution.

from __future__ import annotations

import json
from pathlib import Path

import pytest

from titlestamp.models import (
    CUSTOM,
    DateConfig,
    ListConfig,
    PromptDescriptor,
    TitleTemplate,
    ValueType,
)
from titlestamp.settings import (
    APP_TEMPLATES_CONFIG,
    PluginSettings,
    find_template,
    load_date_time_settings,
    load_settings,
    save_settings,
    settings_from_dict,
)


def _settings() -> PluginSettings:
    return PluginSettings(
        templates=[
            TitleTemplate(
                id="daily",
                name="Daily",
                title_pattern="{{date}} {% Mood:list:Good,Bad %}",
                folder="Journal",
                file_template="Templates/Daily.md",
                counter_starts_at=2,
                user_prompts=[
                    PromptDescriptor(
                        "Mood",
                        ValueType.list,
                        list_config=ListConfig(["Good", "Bad"]),
                        id="prompt-mood",
                    ),
                    PromptDescriptor(
                        "Due",
                        ValueType.date,
                        is_optional=True,
                        date_config=DateConfig(CUSTOM, "MMM D"),
                        id="prompt-due",
                    ),
                ],
            )
        ],
        date_format="DD.MM.YYYY",
    )


def test_load_settings_missing_file_gives_defaults(tmp_path: Path) -> None:
    assert load_settings(tmp_path / "nope.json") == PluginSettings()


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "sub" / "settings.json"
    save_settings(_settings(), path)

    loaded = load_settings(path)
    assert loaded == _settings()
    assert [p.id for p in loaded.templates[0].user_prompts] == ["prompt-mood", "prompt-due"]


def test_load_settings_rejects_malformed_json(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(path)


def test_load_settings_rejects_non_object(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(path)


def test_settings_from_dict_defaults() -> None:
    settings = settings_from_dict({"templates": [{"name": "N", "title_pattern": "{{date}}"}]})
    template = settings.templates[0]
    assert template.id == "N"
    assert template.folder == "current"
    assert template.counter_starts_at == 1
    assert template.file_template is None


def test_load_date_time_settings_priority(tmp_path: Path) -> None:
    config = tmp_path / APP_TEMPLATES_CONFIG
    config.parent.mkdir()
    config.write_text(json.dumps({"dateFormat": "YYYY/MM/DD", "timeFormat": "h:mm"}), encoding="utf-8")

    from_app = load_date_time_settings(tmp_path)
    assert from_app.date_format == "YYYY/MM/DD"
    assert from_app.time_format == "h:mm"

    ours = load_date_time_settings(tmp_path, _settings())
    assert ours.date_format == "DD.MM.YYYY"
    assert ours.time_format == "h:mm"


def test_load_date_time_settings_ignores_broken_app_config(tmp_path: Path) -> None:
    config = tmp_path / APP_TEMPLATES_CONFIG
    config.parent.mkdir()
    config.write_text("{broken", encoding="utf-8")

    result = load_date_time_settings(tmp_path)
    assert result.date_format == "YYYY-MM-DD"
    assert result.time_format == "HH:mm"


def test_find_template() -> None:
    settings = _settings()
    assert find_template(settings, "daily").name == "Daily"
    assert find_template(settings, "DAILY").id == "daily"
    assert find_template(settings, "weekly") is None
