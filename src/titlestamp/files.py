# Note creation on top of the Storage protocol.
# Owns the only retry loop in titlestamp: picking a free filename when the
# desired one is taken.
#
# Storage errors are not caught here; callers report them.

from __future__ import annotations

from typing import List, Optional

from titlestamp.models import CreateFileResult
from titlestamp.naming import sanitize_filename
from titlestamp.storage import ROOT, Storage, is_root, join_path, normalize_path

NOTE_EXTENSION = "md"

# Upper bound on " 1", " 2", ... suffixes tried before giving up.
MAX_CONFLICT_ATTEMPTS = 1000

UNTITLED = "Untitled"


class FileService:
    def __init__(self, storage: Storage):
        self.storage = storage

    def note_path(self, folder: str, filename: str) -> str:
        return join_path(folder, f"{filename}.{NOTE_EXTENSION}")

    def ensure_folder(self, folder: str) -> None:
        # The vault root always exists.
        if is_root(folder):
            return
        if not self.storage.exists(folder):
            self.storage.create_folder(folder)
        elif not self.storage.is_folder(folder):
            raise NotADirectoryError(folder)

    def resolve_filename_conflict(self, folder: str, filename: str) -> str:
        # First free name among: filename, "filename 1", "filename 2", ...
        if not self.storage.exists(self.note_path(folder, filename)):
            return filename

        for counter in range(1, MAX_CONFLICT_ATTEMPTS):
            candidate = f"{filename} {counter}"
            if not self.storage.exists(self.note_path(folder, candidate)):
                return candidate

        raise FileExistsError(
            f"No free filename for {filename!r} in {folder!r} after "
            f"{MAX_CONFLICT_ATTEMPTS} attempts"
        )

    def create_file(self, folder: str, filename: str, content: str = "") -> CreateFileResult:
        # Sanitize, make sure the folder exists, dodge collisions, create.
        wanted = sanitize_filename(filename) or UNTITLED
        self.ensure_folder(folder)
        final = self.resolve_filename_conflict(folder, wanted)
        path = self.note_path(folder, final)
        self.storage.create(path, content)
        return CreateFileResult(path=path, filename=final, conflict_resolved=final != wanted)

    def get_template_content(self, path: Optional[str]) -> Optional[str]:
        # None when no template is set, the path is missing, or it is a folder.
        if not path:
            return None
        if not self.storage.exists(path) or self.storage.is_folder(path):
            return None
        return self.storage.read(path)

    def get_all_folders(self) -> List[str]:
        # Every folder in the vault, root first, then sorted.
        folders: List[str] = []
        pending = [ROOT]
        while pending:
            folder = pending.pop()
            for entry in self.storage.list_children(folder):
                if entry.is_folder:
                    folders.append(entry.path)
                    pending.append(entry.path)
        return [ROOT] + sorted(folders)

    def get_markdown_files(self, folder: str = ROOT) -> List[str]:
        # Markdown files under `folder`, recursively, sorted by path.
        files: List[str] = []
        pending = [normalize_path(folder)]
        while pending:
            current = pending.pop()
            for entry in self.storage.list_children(current):
                if entry.is_folder:
                    pending.append(entry.path)
                elif entry.extension == NOTE_EXTENSION:
                    files.append(entry.path)
        return sorted(files)
