from __future__ import annotations

import json
import os
import sys

import pytest

from clonetui.config import AppConfig, load_config, save_config


def test_load_config_missing_file(tmp_path) -> None:
    path = tmp_path / "config.json"
    config, error = load_config(path)
    assert error is None
    assert config == AppConfig()
    assert not config.is_complete()


def test_load_config_empty_file(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text("  \n", encoding="utf-8")
    config, error = load_config(path)
    assert error is None
    assert config == AppConfig()


def test_save_and_load_config_roundtrip(tmp_path) -> None:
    path = tmp_path / "nested" / "config.json"
    config = AppConfig(api_key="sk-test", group_id="1234")
    error = save_config(config, path)
    assert error is None
    loaded, error = load_config(path)
    assert error is None
    assert loaded == config
    assert loaded.is_complete()
    assert json.loads(path.read_text(encoding="utf-8")) == {
        "version": 1,
        "api_key": "sk-test",
        "group_id": "1234",
    }


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX permissions")
def test_save_config_restricts_permissions(tmp_path) -> None:
    path = tmp_path / "config.json"
    assert save_config(AppConfig(api_key="k", group_id="g"), path) is None
    assert os.stat(path).st_mode & 0o777 == 0o600


def test_load_config_invalid_json(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not-json", encoding="utf-8")
    config, error = load_config(path)
    assert config == AppConfig()
    assert error is not None


def test_load_config_rejects_non_object(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text("[1, 2]", encoding="utf-8")
    _, error = load_config(path)
    assert error is not None
    assert "JSON object" in error


def test_load_config_ignores_wrong_types(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"api_key": 42, "group_id": "  "}), encoding="utf-8")
    config, error = load_config(path)
    assert error is None
    assert config.api_key is None
    assert config.group_id is None


def test_save_config_reports_write_failure(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    error = save_config(AppConfig(api_key="k", group_id="g"), blocker / "config.json")
    assert error is not None
