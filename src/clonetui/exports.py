from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable, Sequence

RESULT_FIELDS = [
    "file_path",
    "remote_file_id",
    "remote_voice_id",
    "status",
    "error_reason",
    "updated_at",
]

EXPORT_PREFIX = "voice_clone_export"


class JobStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"


class ExportError(RuntimeError):
    """Raised when result records cannot be written out."""


@dataclass(frozen=True)
class ResultRecord:
    file_path: Path
    status: JobStatus
    remote_file_id: str = ""
    remote_voice_id: str = ""
    error_reason: str = ""
    updated_at: datetime | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == JobStatus.SUCCESS


def records_to_csv(records: Iterable[ResultRecord]) -> str:
    buffer = io.StringIO(newline="")
    writer = csv.DictWriter(buffer, fieldnames=RESULT_FIELDS)
    writer.writeheader()
    for record in records:
        writer.writerow(_record_csv_row(record))
    return buffer.getvalue()


def export_records(
    records: Sequence[ResultRecord],
    export_dir: Path,
    *,
    now: datetime | None = None,
) -> Path:
    if not records:
        raise ExportError("No clone results to export")
    try:
        export_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ExportError(f"Cannot create export directory {export_dir}: {exc}") from exc
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    path = _unique_child_path(export_dir, f"{EXPORT_PREFIX}_{stamp}.csv")
    try:
        path.write_text(records_to_csv(records), encoding="utf-8", newline="")
    except OSError as exc:
        raise ExportError(f"Cannot write {path}: {exc}") from exc
    return path


def _record_csv_row(record: ResultRecord) -> dict[str, str]:
    return {
        "file_path": str(record.file_path),
        "remote_file_id": record.remote_file_id,
        "remote_voice_id": record.remote_voice_id,
        "status": record.status.value,
        "error_reason": " ".join(record.error_reason.split()),
        "updated_at": record.updated_at.isoformat(timespec="seconds") if record.updated_at else "",
    }


def _unique_child_path(root: Path, filename: str) -> Path:
    candidate = root / filename
    if not candidate.exists():
        return candidate
    stem = candidate.stem
    suffix = candidate.suffix
    counter = 2
    while True:
        candidate = root / f"{stem}_{counter}{suffix}"
        if not candidate.exists():
            return candidate
        counter += 1
