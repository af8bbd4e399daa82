from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Protocol

from .exports import JobStatus, ResultRecord
from .logbuffer import LogLine
from .voice_api import (
    CloneResponse,
    UploadedFile,
    VoiceApiError,
    VoiceFingerprint,
    fingerprint_file,
)

log = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Fingerprinter = Callable[[Path], VoiceFingerprint]


class CloneClient(Protocol):
    def upload_file(self, path: Path) -> UploadedFile: ...

    def clone_voice(self, file_id: int, voice_id: str) -> CloneResponse: ...


@dataclass
class RunCounters:
    succeeded: int = 0
    failed: int = 0

    @property
    def completed(self) -> int:
        return self.succeeded + self.failed


@dataclass(frozen=True)
class JobOutcome:
    path: Path
    record: ResultRecord
    lines: tuple[LogLine, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.record.succeeded


def _now() -> datetime:
    return datetime.now().astimezone()


def run_clone_job(
    client: CloneClient,
    path: Path,
    *,
    clock: Clock = _now,
    fingerprint: Fingerprinter = fingerprint_file,
) -> JobOutcome:
    """Fingerprint, upload and clone one file. Failures become a failed record."""
    lines: list[LogLine] = []

    def say(text: str) -> None:
        lines.append(LogLine(text, clock()))

    say(f"Processing {path.name}")
    try:
        identity = fingerprint(path)
    except OSError as exc:
        log.error("voice id derivation failed for %s: %s", path, exc)
        say(f"  ✗ Cannot derive voice ID: {exc}")
        return _failed(path, str(exc), lines, clock)
    log.debug("fingerprint %s sha256=%s", path, identity.digest)
    say(f"  → Voice ID: {identity.voice_id}")

    say("  → Uploading file...")
    try:
        uploaded = client.upload_file(path)
    except (VoiceApiError, OSError) as exc:
        log.error("upload failed for %s: %s", path, exc)
        say(f"  ✗ Upload failed: {exc}")
        return _failed(path, str(exc), lines, clock)
    file_id = str(uploaded.file_id)
    log.debug("uploaded %s as %s (%s bytes)", path, uploaded.filename or path.name, uploaded.size)
    say(f"  ✓ Uploaded, file ID: {file_id}")

    say(f"  → Cloning voice {identity.voice_id}...")
    try:
        response = client.clone_voice(uploaded.file_id, identity.voice_id)
    except (VoiceApiError, OSError) as exc:
        log.error("clone failed for %s (file %s): %s", path, file_id, exc)
        say(f"  ✗ Clone failed: {exc}")
        return _failed(
            path,
            str(exc),
            lines,
            clock,
            file_id=file_id,
            voice_id=identity.voice_id,
        )

    say(f"  ✓ Cloned, voice ID: {identity.voice_id}")
    if response.status_message:
        say(f"    Remote status: {response.status_message}")
    if response.demo_audio:
        say(f"    Demo audio: {response.demo_audio}")
    log.info("clone succeeded for %s voice_id=%s file_id=%s", path, identity.voice_id, file_id)
    record = ResultRecord(
        file_path=path,
        status=JobStatus.SUCCESS,
        remote_file_id=file_id,
        remote_voice_id=identity.voice_id,
        updated_at=clock(),
    )
    return JobOutcome(path=path, record=record, lines=tuple(lines))


def failed_outcome(path: Path, reason: str, *, clock: Clock = _now) -> JobOutcome:
    lines = [
        LogLine(f"Processing {path.name}", clock()),
        LogLine(f"  ✗ Job failed: {reason}", clock()),
    ]
    return _failed(path, reason, lines, clock)


def _failed(
    path: Path,
    reason: str,
    lines: list[LogLine],
    clock: Clock,
    *,
    file_id: str = "",
    voice_id: str = "",
) -> JobOutcome:
    record = ResultRecord(
        file_path=path,
        status=JobStatus.FAILED,
        remote_file_id=file_id,
        remote_voice_id=voice_id,
        error_reason=reason,
        updated_at=clock(),
    )
    return JobOutcome(path=path, record=record, lines=tuple(lines))


@dataclass
class CloneRun:
    """One pass over a frozen queue; jobs are handed out strictly one at a time."""

    queue: tuple[Path, ...]
    counters: RunCounters = field(default_factory=RunCounters)
    records: list[ResultRecord] = field(default_factory=list)
    _next_index: int = field(default=0, init=False, repr=False)
    _in_flight: Path | None = field(default=None, init=False, repr=False)

    @classmethod
    def from_paths(cls, paths: Iterable[Path]) -> CloneRun:
        return cls(queue=tuple(paths))

    @property
    def total(self) -> int:
        return len(self.queue)

    @property
    def in_flight(self) -> Path | None:
        return self._in_flight

    @property
    def is_complete(self) -> bool:
        return self._in_flight is None and self._next_index >= len(self.queue)

    def next_job(self) -> Path | None:
        if self._in_flight is not None:
            raise RuntimeError(f"Job already in flight: {self._in_flight}")
        if self._next_index >= len(self.queue):
            return None
        path = self.queue[self._next_index]
        self._next_index += 1
        self._in_flight = path
        return path

    def absorb(self, outcome: JobOutcome) -> None:
        if outcome.path != self._in_flight:
            raise ValueError(f"Outcome for {outcome.path} does not match job in flight")
        self._in_flight = None
        self.records.append(outcome.record)
        if outcome.succeeded:
            self.counters.succeeded += 1
        else:
            self.counters.failed += 1
