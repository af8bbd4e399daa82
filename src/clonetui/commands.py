from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from .directory import list_directory
from .events import (
    CloneJobFinished,
    DirectoryLoaded,
    DirectoryLoadFailed,
    Event,
    ExportFinished,
    ExportOrigin,
)
from .exports import ExportError, ResultRecord, export_records
from .pipeline import CloneClient, CloneRun, failed_outcome, run_clone_job

# Commands run off the UI thread. ``execute`` reports every expected failure as
# an event; ``failure`` builds the event for anything unexpected.


@dataclass(frozen=True)
class LoadDirectory:
    path: Path

    def execute(self) -> Event:
        path = self.path.absolute()
        try:
            entries = list_directory(path)
        except OSError as exc:
            return DirectoryLoadFailed(path, _describe_os_error(exc))
        return DirectoryLoaded(path, tuple(entries))

    def failure(self, message: str) -> Event:
        return DirectoryLoadFailed(self.path, message)


@dataclass(frozen=True)
class RunCloneJob:
    path: Path
    client: CloneClient = field(repr=False, compare=False)

    def execute(self) -> Event:
        return CloneJobFinished(run_clone_job(self.client, self.path))

    def failure(self, message: str) -> Event:
        return CloneJobFinished(failed_outcome(self.path, message))


@dataclass(frozen=True)
class ExportRecords:
    records: tuple[ResultRecord, ...]
    export_dir: Path
    origin: ExportOrigin
    run: CloneRun | None = field(default=None, repr=False, compare=False)

    def execute(self) -> Event:
        try:
            path = export_records(self.records, self.export_dir)
        except ExportError as exc:
            return ExportFinished(self.origin, error=str(exc), run=self.run)
        return ExportFinished(self.origin, path=path, run=self.run)

    def failure(self, message: str) -> Event:
        return ExportFinished(self.origin, error=message, run=self.run)


@dataclass(frozen=True)
class Quit:
    pass


Command = Union[LoadDirectory, RunCloneJob, ExportRecords, Quit]


def _describe_os_error(exc: OSError) -> str:
    if isinstance(exc, NotADirectoryError):
        return str(exc)
    if exc.strerror and exc.filename:
        return f"{exc.strerror}: {exc.filename}"
    return str(exc)
