# Vault storage access for titlestamp.
# The parsing and counter code only sees the Storage protocol; LocalVault
# maps it onto a directory on disk.
#
# Paths are vault-relative with forward slashes. The vault root is "/".

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Protocol

ROOT = "/"


def normalize_path(path: str) -> str:
    # Collapse separators and strip leading/trailing slashes; "" becomes the root.
    parts = [p for p in path.replace("\\", "/").split("/") if p and p != "."]
    return "/".join(parts) or ROOT


def join_path(folder: str, name: str) -> str:
    folder = normalize_path(folder)
    if folder == ROOT:
        return normalize_path(name)
    return normalize_path(f"{folder}/{name}")


def is_root(folder: str) -> bool:
    return normalize_path(folder) == ROOT


@dataclass(frozen=True)
class Entry:
    path: str
    is_folder: bool

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def extension(self) -> str:
        if self.is_folder or "." not in self.name:
            return ""
        return self.name.rsplit(".", 1)[1]

    @property
    def basename(self) -> str:
        # Name without its extension.
        if not self.extension:
            return self.name
        return self.name[: -len(self.extension) - 1]


class Storage(Protocol):
    def list_children(self, folder: str) -> List[Entry]:
        ...

    def read(self, path: str) -> str:
        ...

    def create(self, path: str, content: str) -> None:
        ...

    def modify(self, path: str, content: str) -> None:
        ...

    def exists(self, path: str) -> bool:
        ...

    def is_folder(self, path: str) -> bool:
        ...

    def create_folder(self, path: str) -> None:
        ...


class LocalVault:
    # Storage backed by a directory. Dot-prefixed entries (.obsidian, .git,
    # settings files) are hidden from listings, as the note app hides them.
    def __init__(self, root: Path):
        self.root = Path(root)

    def to_fs(self, path: str) -> Path:
        # Resolve a vault path, refusing anything that escapes the vault.
        rel = normalize_path(path)
        target = self.root if rel == ROOT else self.root / rel
        resolved = target.resolve()
        root = self.root.resolve()
        if resolved != root and root not in resolved.parents:
            raise ValueError(f"Path escapes the vault: {path}")
        return target

    def to_vault(self, fs_path: Path) -> str:
        rel = Path(fs_path).resolve().relative_to(self.root.resolve())
        return normalize_path(rel.as_posix())

    def list_children(self, folder: str) -> List[Entry]:
        # Direct children only, sorted by name for stable output.
        base = self.to_fs(folder)
        entries: List[Entry] = []
        for p in sorted(base.iterdir()):
            if p.name.startswith("."):
                continue
            if p.is_dir():
                entries.append(Entry(join_path(folder, p.name), True))
            elif p.is_file():
                entries.append(Entry(join_path(folder, p.name), False))
        return entries

    def read(self, path: str) -> str:
        return self.to_fs(path).read_text(encoding="utf-8")

    def modify(self, path: str, content: str) -> None:
        # Replace the content of an existing note.
        target = self.to_fs(path)
        if not target.is_file():
            raise FileNotFoundError(path)
        target.write_text(content, encoding="utf-8")

    def create(self, path: str, content: str) -> None:
        # Never overwrite: "x" mode raises FileExistsError on a race.
        with self.to_fs(path).open("x", encoding="utf-8") as fh:
            fh.write(content)

    def exists(self, path: str) -> bool:
        return self.to_fs(path).exists()

    def is_folder(self, path: str) -> bool:
        return self.to_fs(path).is_dir()

    def create_folder(self, path: str) -> None:
        self.to_fs(path).mkdir(parents=True, exist_ok=True)
