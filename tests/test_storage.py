# Unit tests for titlestamp.storage.
# These tests validate vault path handling and the on-disk storage.

from __future__ import annotations

from pathlib import Path

import pytest

from titlestamp.storage import ROOT, Entry, LocalVault, is_root, join_path, normalize_path


def test_normalize_path() -> None:
    assert normalize_path("/a//b/") == "a/b"
    assert normalize_path("./a") == "a"
    assert normalize_path("a\\b") == "a/b"
    assert normalize_path("") == ROOT
    assert normalize_path("/") == ROOT


def test_join_path() -> None:
    assert join_path(ROOT, "x.md") == "x.md"
    assert join_path("a/", "x.md") == "a/x.md"
    assert is_root("") is True
    assert is_root("a") is False


def test_entry_name_parts() -> None:
    entry = Entry("a/b.md", False)
    assert entry.name == "b.md"
    assert entry.extension == "md"
    assert entry.basename == "b"
    assert Entry("a/archive.tar.gz", False).extension == "gz"
    assert Entry("a/folder.d", True).extension == ""
    assert Entry("README", False).basename == "README"


def test_local_vault_create_read_modify(tmp_path: Path) -> None:
    vault = LocalVault(tmp_path)
    vault.create("note.md", "one")
    assert vault.exists("note.md") is True
    assert vault.read("note.md") == "one"

    vault.modify("note.md", "two")
    assert (tmp_path / "note.md").read_text(encoding="utf-8") == "two"


def test_local_vault_create_never_overwrites(tmp_path: Path) -> None:
    vault = LocalVault(tmp_path)
    vault.create("note.md", "one")
    with pytest.raises(FileExistsError):
        vault.create("note.md", "two")


def test_local_vault_modify_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        LocalVault(tmp_path).modify("missing.md", "x")


def test_local_vault_refuses_paths_outside(tmp_path: Path) -> None:
    vault = LocalVault(tmp_path / "vault")
    (tmp_path / "vault").mkdir()
    with pytest.raises(ValueError):
        vault.to_fs("../outside.md")


def test_local_vault_list_children_sorted_and_hides_dot_entries(tmp_path: Path) -> None:
    (tmp_path / "b.md").write_text("", encoding="utf-8")
    (tmp_path / "a.md").write_text("", encoding="utf-8")
    (tmp_path / ".obsidian").mkdir()
    (tmp_path / "folder").mkdir()

    entries = LocalVault(tmp_path).list_children(ROOT)
    assert [(e.path, e.is_folder) for e in entries] == [
        ("a.md", False),
        ("b.md", False),
        ("folder", True),
    ]


def test_local_vault_folders(tmp_path: Path) -> None:
    vault = LocalVault(tmp_path)
    vault.create_folder("a/b")
    assert vault.is_folder("a/b") is True
    assert vault.to_vault(tmp_path / "a" / "b") == "a/b"
    assert vault.to_vault(tmp_path) == ROOT
