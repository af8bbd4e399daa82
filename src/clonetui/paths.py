from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_path, user_data_path

APP_NAME = "clonetui"
CONFIG_FILENAME = "config.json"
LOG_FILENAME = "clonetui.log"


@dataclass(frozen=True)
class AppPaths:
    config_dir: Path
    config_file: Path
    data_dir: Path
    logs_dir: Path
    log_file: Path
    export_dir: Path

    def required_dirs(self) -> list[Path]:
        return [self.config_dir, self.data_dir, self.logs_dir, self.export_dir]


def config_root() -> Path:
    return user_config_path(APP_NAME)


def data_root() -> Path:
    return user_data_path(APP_NAME)


def config_path() -> Path:
    return config_root() / CONFIG_FILENAME


def resolve_paths(export_dir: Path | None = None) -> AppPaths:
    config_dir = config_root()
    data_dir = data_root()
    logs_dir = data_dir / "logs"
    return AppPaths(
        config_dir=config_dir,
        config_file=config_dir / CONFIG_FILENAME,
        data_dir=data_dir,
        logs_dir=logs_dir,
        log_file=logs_dir / LOG_FILENAME,
        export_dir=export_dir.expanduser() if export_dir else data_dir / "exports",
    )


def ensure_dirs(paths: AppPaths) -> None:
    """Create every directory the app writes to; OSError propagates to the caller."""
    for directory in paths.required_dirs():
        directory.mkdir(parents=True, exist_ok=True)
