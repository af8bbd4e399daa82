from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

PARENT_NAME = ".."


class FileEntryKind(Enum):
    UP = "up"
    DIR = "dir"
    FILE = "file"


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    path: Path
    is_dir: bool
    is_parent: bool = False

    @property
    def kind(self) -> FileEntryKind:
        if self.is_parent:
            return FileEntryKind.UP
        if self.is_dir:
            return FileEntryKind.DIR
        return FileEntryKind.FILE


def list_directory(path: Path) -> list[DirectoryEntry]:
    """List one level of ``path``: ``..`` first, then directories, then files.

    Raises NotADirectoryError (or FileNotFoundError) when ``path`` is not a
    directory, and OSError when it cannot be read.
    """
    path = path.absolute()
    if not path.exists():
        raise FileNotFoundError(f"No such directory: {path}")
    if not path.is_dir():
        raise NotADirectoryError(f"Not a directory: {path}")
    directories: list[DirectoryEntry] = []
    files: list[DirectoryEntry] = []
    with os.scandir(path) as iterator:
        for entry in iterator:
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError:
                is_dir = False
            item = DirectoryEntry(name=entry.name, path=Path(entry.path), is_dir=is_dir)
            (directories if is_dir else files).append(item)
    directories.sort(key=entry_sort_key)
    files.sort(key=entry_sort_key)
    entries: list[DirectoryEntry] = []
    parent = path.parent
    if parent != path:
        entries.append(DirectoryEntry(PARENT_NAME, parent, is_dir=True, is_parent=True))
    entries.extend(directories)
    entries.extend(files)
    return entries


def entry_sort_key(entry: DirectoryEntry) -> tuple[str, str]:
    return (entry.name.casefold(), entry.name)


def listing_signature(entries: tuple[DirectoryEntry, ...] | list[DirectoryEntry]) -> tuple[object, ...]:
    return tuple((entry.name, entry.is_dir) for entry in entries)


def display_path(path: Path, home: Path | None = None) -> str:
    if home is None:
        try:
            home = Path.home()
        except RuntimeError:
            return str(path)
    if path == home:
        return "~"
    try:
        relative = path.relative_to(home)
    except ValueError:
        return str(path)
    return str(Path("~") / relative)
