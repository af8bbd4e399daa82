from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
from conftest import FakeCloneClient

from clonetui import app as app_module
from clonetui.app import CloneTuiApp
from clonetui.commands import LoadDirectory, RunCloneJob
from clonetui.config import AppConfig
from clonetui.controller import Controller
from clonetui.events import CloneJobFinished, DirectoryLoaded
from clonetui.exports import JobStatus
from clonetui.paths import resolve_paths


class _InlineThread:
    def __init__(self, target, daemon: bool = False) -> None:
        self._target = target

    def start(self) -> None:
        self._target()


class _CrashingCloneJob(RunCloneJob):
    def execute(self):
        raise KeyError("boom")


@pytest.fixture
def shell(tmp_path, monkeypatch):
    controller = Controller(
        AppConfig(api_key="k", group_id="g"),
        resolve_paths(tmp_path / "exports"),
        tmp_path,
        client_factory=lambda api_key, group_id: FakeCloneClient(),
    )
    app = CloneTuiApp(controller)
    posted: list[object] = []
    state = SimpleNamespace(running=True, posted=posted)
    monkeypatch.setattr(app_module, "threading", SimpleNamespace(Thread=_InlineThread))
    monkeypatch.setattr(CloneTuiApp, "is_running", property(lambda self: state.running))
    monkeypatch.setattr(app, "call_from_thread", lambda callback, event: posted.append(event))
    return app, state


def test_worker_turns_crash_into_failed_outcome(shell) -> None:
    app, state = shell
    path = Path("/voices/a.mp3")
    app._start_worker(_CrashingCloneJob(path, FakeCloneClient()))
    assert len(state.posted) == 1
    event = state.posted[0]
    assert isinstance(event, CloneJobFinished)
    assert event.outcome.path == path
    assert event.outcome.record.status == JobStatus.FAILED
    assert "boom" in event.outcome.record.error_reason


def test_worker_posts_command_result(shell, tmp_path) -> None:
    app, state = shell
    (tmp_path / "a.mp3").write_bytes(b"a")
    app._start_worker(LoadDirectory(tmp_path))
    event = state.posted[0]
    assert isinstance(event, DirectoryLoaded)
    assert "a.mp3" in [entry.name for entry in event.entries]


def test_worker_drops_result_after_exit(shell, tmp_path) -> None:
    app, state = shell
    state.running = False
    app._start_worker(LoadDirectory(tmp_path))
    assert state.posted == []
