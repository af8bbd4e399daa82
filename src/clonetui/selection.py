from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Iterator

from .directory import DirectoryEntry

AUDIO_EXTENSIONS = frozenset({".mp3", ".m4a", ".wav"})


class ToggleResult(Enum):
    ADDED = "added"
    REMOVED = "removed"
    IGNORED = "ignored"
    REJECTED = "rejected"


def is_audio_file(path: Path) -> bool:
    return path.suffix.lower() in AUDIO_EXTENSIONS


class SelectionSet:
    """Audio files marked for cloning, iterated in the order they were picked."""

    def __init__(self) -> None:
        # dict keys double as the membership set and the insertion order.
        self._paths: dict[Path, None] = {}

    def toggle(self, entry: DirectoryEntry) -> ToggleResult:
        if entry.is_dir:
            return ToggleResult.IGNORED
        if not is_audio_file(entry.path):
            return ToggleResult.REJECTED
        if entry.path in self._paths:
            del self._paths[entry.path]
            return ToggleResult.REMOVED
        self._paths[entry.path] = None
        return ToggleResult.ADDED

    def is_selected(self, path: Path) -> bool:
        return path in self._paths

    def ordered_paths(self) -> tuple[Path, ...]:
        return tuple(self._paths)

    def clear(self) -> None:
        self._paths.clear()

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def __iter__(self) -> Iterator[Path]:
        return iter(tuple(self._paths))

    def __len__(self) -> int:
        return len(self._paths)
