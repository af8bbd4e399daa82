from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Union

from .directory import DirectoryEntry
from .pipeline import CloneRun, JobOutcome


class ExportOrigin(Enum):
    AUTO = "auto"
    MANUAL = "manual"


@dataclass(frozen=True)
class KeyPressed:
    key: str


@dataclass(frozen=True)
class CredentialsSubmitted:
    api_key: str
    group_id: str


@dataclass(frozen=True)
class Resized:
    width: int
    height: int


@dataclass(frozen=True)
class QuitRequested:
    pass


@dataclass(frozen=True)
class DirectoryLoaded:
    path: Path
    entries: tuple[DirectoryEntry, ...]


@dataclass(frozen=True)
class DirectoryLoadFailed:
    path: Path
    error: str


@dataclass(frozen=True)
class CloneJobFinished:
    outcome: JobOutcome


@dataclass(frozen=True)
class RunFinished:
    succeeded: int
    failed: int


@dataclass(frozen=True)
class ExportFinished:
    origin: ExportOrigin
    path: Path | None = None
    error: str | None = None
    run: CloneRun | None = field(default=None, repr=False, compare=False)


Event = Union[
    KeyPressed,
    CredentialsSubmitted,
    Resized,
    QuitRequested,
    DirectoryLoaded,
    DirectoryLoadFailed,
    CloneJobFinished,
    RunFinished,
    ExportFinished,
]
