from __future__ import annotations

from pathlib import Path

import pytest

from clonetui import paths


@pytest.fixture
def fake_roots(tmp_path, monkeypatch) -> Path:
    monkeypatch.setattr(paths, "user_config_path", lambda name: tmp_path / "config" / name)
    monkeypatch.setattr(paths, "user_data_path", lambda name: tmp_path / "data" / name)
    return tmp_path


def test_resolve_paths_uses_platform_roots(fake_roots) -> None:
    resolved = paths.resolve_paths()
    assert resolved.config_file == fake_roots / "config" / "clonetui" / "config.json"
    assert resolved.log_file == fake_roots / "data" / "clonetui" / "logs" / "clonetui.log"
    assert resolved.export_dir == fake_roots / "data" / "clonetui" / "exports"
    assert not resolved.config_dir.exists()


def test_resolve_paths_export_override(fake_roots) -> None:
    resolved = paths.resolve_paths(fake_roots / "csv")
    assert resolved.export_dir == fake_roots / "csv"


def test_ensure_dirs_creates_everything(fake_roots) -> None:
    resolved = paths.resolve_paths()
    paths.ensure_dirs(resolved)
    for directory in resolved.required_dirs():
        assert directory.is_dir()


def test_ensure_dirs_propagates_errors(fake_roots) -> None:
    blocker = fake_roots / "blocker"
    blocker.write_text("", encoding="utf-8")
    resolved = paths.resolve_paths(blocker / "exports")
    with pytest.raises(OSError):
        paths.ensure_dirs(resolved)
