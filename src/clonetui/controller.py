"""Application state machine.

Every key press and every worker completion goes through
:meth:`Controller.dispatch`, which is the only place that mutates state. It
returns the commands the shell should run next; their results come back as
events through ``dispatch`` again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, ClassVar, Union

from .commands import Command, ExportRecords, LoadDirectory, Quit, RunCloneJob
from .config import AppConfig, save_config
from .directory import DirectoryEntry, listing_signature
from .events import (
    CloneJobFinished,
    CredentialsSubmitted,
    DirectoryLoaded,
    DirectoryLoadFailed,
    Event,
    ExportFinished,
    ExportOrigin,
    KeyPressed,
    QuitRequested,
    Resized,
    RunFinished,
)
from .exports import ResultRecord
from .logbuffer import LogBuffer
from .paths import AppPaths
from .pipeline import CloneClient, CloneRun
from .selection import SelectionSet, ToggleResult
from .voice_api import VoiceCloneClient

log = logging.getLogger(__name__)

ClientFactory = Callable[[str, str], CloneClient]
ConfigSaver = Callable[[AppConfig, Path], "str | None"]

BROWSER_HELP = (
    "space/x select · enter open · backspace parent · c clone · "
    "C credentials · e export · q quit"
)
PAGE_SIZE = 10

TOGGLE_KEYS = {"space", " ", "x"}
ENTER_KEYS = {"enter", "right", "l"}
PARENT_KEYS = {"left", "h", "backspace"}
UP_KEYS = {"up", "k"}
DOWN_KEYS = {"down", "j"}
ACCEPT_KEYS = {"enter", "y"}
REJECT_KEYS = {"escape", "n"}
DISMISS_KEYS = {"q", "escape", "enter"}


class AppState(Enum):
    CONFIG = "config"
    BROWSER = "browser"
    CONFIRM = "confirm"
    CLONING = "cloning"
    SUMMARY = "summary"
    EXPORTING = "exporting"


@dataclass
class ConfigView:
    state: ClassVar[AppState] = AppState.CONFIG
    api_key: str = ""
    group_id: str = ""


@dataclass
class BrowserView:
    state: ClassVar[AppState] = AppState.BROWSER


@dataclass
class ConfirmView:
    state: ClassVar[AppState] = AppState.CONFIRM
    paths: tuple[Path, ...] = ()


@dataclass
class CloningView:
    state: ClassVar[AppState] = AppState.CLONING
    run: CloneRun = field(default_factory=lambda: CloneRun(()))


@dataclass
class SummaryView:
    state: ClassVar[AppState] = AppState.SUMMARY
    run: CloneRun = field(default_factory=lambda: CloneRun(()))
    export_pending: bool = True
    export_path: Path | None = None
    export_error: str | None = None


@dataclass
class ExportingView:
    state: ClassVar[AppState] = AppState.EXPORTING
    record_count: int = 0


View = Union[ConfigView, BrowserView, ConfirmView, CloningView, SummaryView, ExportingView]


def _default_client(api_key: str, group_id: str) -> CloneClient:
    return VoiceCloneClient(api_key, group_id)


class Controller:
    def __init__(
        self,
        config: AppConfig,
        paths: AppPaths,
        start_dir: Path,
        *,
        client_factory: ClientFactory = _default_client,
        config_saver: ConfigSaver = save_config,
    ) -> None:
        self.config = config
        self.paths = paths
        self.current_dir = start_dir.absolute()
        self.entries: tuple[DirectoryEntry, ...] = ()
        self.cursor = 0
        self.selection = SelectionSet()
        self.log = LogBuffer()
        self.results: list[ResultRecord] = []
        self.width = 0
        self.height = 0
        self.status_message = BROWSER_HELP
        self.error_message = ""
        self._client_factory = client_factory
        self._config_saver = config_saver
        self._client: CloneClient | None = None
        self._latest_run: CloneRun | None = None
        if config.is_complete():
            self._client = client_factory(config.api_key or "", config.group_id or "")
            self.view: View = BrowserView()
        else:
            self.view = self._config_view()
            self.status_message = "Enter your voice API credentials to continue."

    @property
    def state(self) -> AppState:
        return self.view.state

    @property
    def current_entry(self) -> DirectoryEntry | None:
        if 0 <= self.cursor < len(self.entries):
            return self.entries[self.cursor]
        return None

    @property
    def active_run(self) -> CloneRun | None:
        if isinstance(self.view, (CloningView, SummaryView)):
            return self.view.run
        return None

    def startup(self) -> list[Command]:
        if self.state == AppState.BROWSER:
            return [LoadDirectory(self.current_dir)]
        return []

    def dispatch(self, event: Event) -> list[Command]:
        if isinstance(event, QuitRequested):
            return self._quit()
        if isinstance(event, Resized):
            self.width = event.width
            self.height = event.height
            return []
        if isinstance(event, DirectoryLoaded):
            return self._on_directory_loaded(event)
        if isinstance(event, DirectoryLoadFailed):
            self.error_message = f"Cannot open directory: {event.error}"
            log.warning("directory load failed for %s: %s", event.path, event.error)
            return []
        if isinstance(event, CloneJobFinished):
            return self._on_job_finished(event)
        if isinstance(event, RunFinished):
            return self._on_run_finished(event)
        if isinstance(event, ExportFinished):
            return self._on_export_finished(event)
        if isinstance(event, CredentialsSubmitted):
            if self.state == AppState.CONFIG:
                return self._save_credentials(event)
            return []
        if isinstance(event, KeyPressed):
            return self._on_key(event.key)
        log.warning("unhandled event %r", event)
        return []

    # Input

    def _on_key(self, key: str) -> list[Command]:
        if key in {"ctrl+c", "ctrl+q"}:
            return self._quit()
        handler = {
            AppState.CONFIG: self._config_key,
            AppState.BROWSER: self._browser_key,
            AppState.CONFIRM: self._confirm_key,
            AppState.SUMMARY: self._summary_key,
        }.get(self.state)
        if handler is None:
            return []
        return handler(key)

    def _config_key(self, key: str) -> list[Command]:
        if key != "escape":
            return []
        if not self.config.is_complete():
            self.error_message = "Credentials are required before browsing files."
            return []
        self.error_message = ""
        self.status_message = BROWSER_HELP
        self.view = BrowserView()
        return [LoadDirectory(self.current_dir)]

    def _save_credentials(self, event: CredentialsSubmitted) -> list[Command]:
        api_key = event.api_key.strip()
        group_id = event.group_id.strip()
        if isinstance(self.view, ConfigView):
            self.view.api_key = api_key
            self.view.group_id = group_id
        if not api_key or not group_id:
            self.error_message = "Enter both the API key and the group ID."
            return []
        config = AppConfig(version=self.config.version, api_key=api_key, group_id=group_id)
        error = self._config_saver(config, self.paths.config_file)
        if error:
            log.error("saving credentials failed: %s", error)
            self.error_message = error
            return []
        log.info("credentials saved to %s", self.paths.config_file)
        self.config = config
        self._client = self._client_factory(api_key, group_id)
        self.view = BrowserView()
        self.status_message = "Credentials saved."
        self.error_message = ""
        return [LoadDirectory(self.current_dir)]

    def _browser_key(self, key: str) -> list[Command]:
        if key == "q":
            return self._quit()
        if key == "c":
            return self._request_clone()
        if key == "C":
            self.view = self._config_view()
            self.status_message = "Edit credentials · enter to save · esc to cancel"
            self.error_message = ""
            return []
        if key == "e":
            return self._request_export()
        if key in TOGGLE_KEYS:
            self._toggle_current()
            return []
        if key in ENTER_KEYS:
            entry = self.current_entry
            if entry is not None and entry.is_dir:
                return [LoadDirectory(entry.path)]
            return []
        if key in PARENT_KEYS:
            parent = self.current_dir.parent
            if parent == self.current_dir:
                return []
            return [LoadDirectory(parent)]
        self._move_cursor(key)
        return []

    def _move_cursor(self, key: str) -> None:
        if not self.entries:
            return
        last = len(self.entries) - 1
        if key in UP_KEYS:
            self.cursor = max(0, self.cursor - 1)
        elif key in DOWN_KEYS:
            self.cursor = min(last, self.cursor + 1)
        elif key in {"home", "g"}:
            self.cursor = 0
        elif key in {"end", "G"}:
            self.cursor = last
        elif key == "pageup":
            self.cursor = max(0, self.cursor - PAGE_SIZE)
        elif key == "pagedown":
            self.cursor = min(last, self.cursor + PAGE_SIZE)

    def _toggle_current(self) -> None:
        entry = self.current_entry
        if entry is None:
            return
        result = self.selection.toggle(entry)
        if result == ToggleResult.REJECTED:
            self.error_message = "Only mp3, m4a and wav files can be selected."
        elif result != ToggleResult.IGNORED:
            self.error_message = ""

    def _request_clone(self) -> list[Command]:
        if not len(self.selection):
            self.error_message = "Select at least one audio file first."
            return []
        self.error_message = ""
        self.view = ConfirmView(paths=self.selection.ordered_paths())
        return []

    def _request_export(self) -> list[Command]:
        if not self.results:
            self.error_message = "No clone results to export yet."
            return []
        self.error_message = ""
        self.status_message = "Exporting CSV..."
        self.view = ExportingView(record_count=len(self.results))
        return [ExportRecords(tuple(self.results), self.paths.export_dir, ExportOrigin.MANUAL)]

    def _confirm_key(self, key: str) -> list[Command]:
        assert isinstance(self.view, ConfirmView)
        if key in ACCEPT_KEYS:
            return self._start_run(self.view.paths)
        if key in REJECT_KEYS:
            self.view = BrowserView()
            self.status_message = BROWSER_HELP
        return []

    def _summary_key(self, key: str) -> list[Command]:
        if key not in DISMISS_KEYS:
            return []
        self.view = BrowserView()
        self.log.clear()
        self.selection.clear()
        self.status_message = BROWSER_HELP
        self.error_message = ""
        return [LoadDirectory(self.current_dir)]

    # Pipeline

    def _start_run(self, paths: tuple[Path, ...]) -> list[Command]:
        run = CloneRun.from_paths(paths)
        self.results = run.records
        self._latest_run = run
        self.log.clear()
        self.error_message = ""
        self.status_message = "Running clone jobs..."
        self.view = CloningView(run=run)
        log.info("clone run started with %d file(s)", run.total)
        return self._schedule_next(run)

    def _schedule_next(self, run: CloneRun) -> list[Command]:
        path = run.next_job()
        if path is None:
            return self.dispatch(RunFinished(run.counters.succeeded, run.counters.failed))
        if self._client is None:
            raise RuntimeError("Clone run started without a client")
        return [RunCloneJob(path, self._client)]

    def _on_job_finished(self, event: CloneJobFinished) -> list[Command]:
        view = self.view
        if not isinstance(view, CloningView) or view.run.in_flight != event.outcome.path:
            log.warning("ignoring stale job result for %s", event.outcome.path)
            return []
        view.run.absorb(event.outcome)
        self.log.extend(event.outcome.lines)
        return self._schedule_next(view.run)

    def _on_run_finished(self, event: RunFinished) -> list[Command]:
        view = self.view
        if not isinstance(view, CloningView):
            return []
        log.info("clone run finished: %d succeeded, %d failed", event.succeeded, event.failed)
        self.log.append(f"Run finished: {event.succeeded} succeeded, {event.failed} failed")
        self.view = SummaryView(run=view.run)
        self.status_message = (
            f"Clone finished: {event.succeeded} succeeded · {event.failed} failed · exporting..."
        )
        records = tuple(view.run.records)
        return [ExportRecords(records, self.paths.export_dir, ExportOrigin.AUTO, run=view.run)]

    # Export

    def _on_export_finished(self, event: ExportFinished) -> list[Command]:
        if event.origin == ExportOrigin.AUTO:
            self._on_auto_export(event)
            return []
        if not isinstance(self.view, ExportingView):
            return []
        self.view = BrowserView()
        if event.error:
            log.error("manual export failed: %s", event.error)
            self.status_message = BROWSER_HELP
            self.error_message = f"Export failed: {event.error}"
        else:
            log.info("manual export written to %s", event.path)
            self.status_message = f"Exported: {event.path}"
            self.error_message = ""
        return []

    def _on_auto_export(self, event: ExportFinished) -> None:
        if event.run is None or event.run is not self._latest_run:
            log.info("ignoring automatic export from an earlier run: %s", event.path or event.error)
            return
        if event.error:
            log.error("automatic export failed: %s", event.error)
            self.log.append(f"✗ Automatic export failed: {event.error}")
        else:
            log.info("results exported to %s", event.path)
            self.log.append(f"✓ Results exported: {event.path}")
        view = self.view
        if isinstance(view, SummaryView) and view.run is event.run:
            view.export_pending = False
            view.export_path = event.path
            view.export_error = event.error
            counters = view.run.counters
            outcome = f"CSV: {event.path}" if event.path else "export failed"
            self.status_message = (
                f"Clone finished: {counters.succeeded} succeeded · {counters.failed} failed · "
                f"{outcome} (q to return)"
            )
            return
        # Summary already dismissed; surface the result in the browser lines.
        if event.error:
            self.error_message = f"Automatic export failed: {event.error}"
        else:
            self.status_message = f"Exported: {event.path}"

    # Directory

    def _on_directory_loaded(self, event: DirectoryLoaded) -> list[Command]:
        self.error_message = ""
        if event.path == self.current_dir and listing_signature(event.entries) == listing_signature(
            self.entries
        ):
            return []
        same_dir = event.path == self.current_dir
        self.current_dir = event.path
        self.entries = event.entries
        if same_dir:
            self.cursor = min(self.cursor, max(0, len(self.entries) - 1))
        else:
            self.cursor = 0
        return []

    def _quit(self) -> list[Command]:
        run = self.active_run
        if run is not None and run.in_flight is not None:
            log.warning("quitting with a job in flight; abandoning %s", run.in_flight)
        return [Quit()]

    def _config_view(self) -> ConfigView:
        return ConfigView(api_key=self.config.api_key or "", group_id=self.config.group_id or "")
