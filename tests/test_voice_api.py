from __future__ import annotations

import hashlib
import json
from pathlib import Path

import httpx
import pytest

from clonetui.voice_api import (
    VoiceApiError,
    VoiceCloneClient,
    fingerprint_file,
    voice_id_for_digest,
)


def _client(handler, **kwargs) -> VoiceCloneClient:
    return VoiceCloneClient(
        "sk-test",
        "group-1",
        base_url="https://voice.test",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _audio(tmp_path: Path, name: str = "a.mp3", data: bytes = b"ID3 audio") -> Path:
    path = tmp_path / name
    path.write_bytes(data)
    return path


def test_fingerprint_depends_only_on_content(tmp_path) -> None:
    one = _audio(tmp_path, "one.mp3", b"same bytes")
    (tmp_path / "sub").mkdir()
    two = _audio(tmp_path / "sub", "two.wav", b"same bytes")
    other = _audio(tmp_path, "other.mp3", b"different")
    assert fingerprint_file(one) == fingerprint_file(two)
    assert fingerprint_file(one).voice_id != fingerprint_file(other).voice_id


def test_fingerprint_uses_sha256(tmp_path) -> None:
    path = _audio(tmp_path, data=b"hello")
    fingerprint = fingerprint_file(path)
    digest = hashlib.sha256(b"hello").hexdigest()
    assert fingerprint.digest == digest
    assert fingerprint.voice_id == "minimax-voice-" + digest[:16]
    assert voice_id_for_digest(digest) == fingerprint.voice_id


def test_upload_file_sends_multipart(tmp_path) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        request.read()
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "file": {"file_id": 7, "filename": "a.mp3", "bytes": 9},
                "base_resp": {"status_code": 0, "status_msg": "success"},
            },
        )

    uploaded = _client(handler).upload_file(_audio(tmp_path))
    assert uploaded.file_id == 7
    assert uploaded.filename == "a.mp3"
    assert uploaded.size == 9
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/files/upload"
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    assert b'name="purpose"' in request.content
    assert b"voice_clone" in request.content
    assert b'filename="a.mp3"' in request.content


def test_clone_voice_posts_json(tmp_path) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"base_resp": {"status_code": 0, "status_msg": "ok"}})

    response = _client(handler).clone_voice(7, "minimax-voice-abc")
    assert response.status_message == "ok"
    request = seen[0]
    assert request.url.path == "/v1/voice_clone"
    assert request.url.params["GroupId"] == "group-1"
    assert json.loads(request.content) == {"file_id": 7, "voice_id": "minimax-voice-abc"}


def test_non_zero_status_code_is_an_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"base_resp": {"status_code": 2013, "status_msg": "invalid params"}}
        )

    with pytest.raises(VoiceApiError, match="2013 invalid params"):
        _client(handler).clone_voice(7, "minimax-voice-abc")


def test_http_error_status_is_an_error(tmp_path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    with pytest.raises(VoiceApiError, match="HTTP 500 boom"):
        _client(handler).upload_file(_audio(tmp_path))


def test_transport_error_is_wrapped(tmp_path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("network error", request=request)

    with pytest.raises(VoiceApiError, match="network error"):
        _client(handler).upload_file(_audio(tmp_path))


def test_undecodable_body_is_an_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>")

    with pytest.raises(VoiceApiError, match="decode"):
        _client(handler).clone_voice(7, "minimax-voice-abc")


def test_upload_without_file_id_is_an_error(tmp_path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"base_resp": {"status_code": 0}})

    with pytest.raises(VoiceApiError, match="no file id"):
        _client(handler).upload_file(_audio(tmp_path))


def test_missing_credentials_fail_before_request(tmp_path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    client = VoiceCloneClient("", None, transport=httpx.MockTransport(handler))
    with pytest.raises(VoiceApiError):
        client.upload_file(_audio(tmp_path))
    with pytest.raises(VoiceApiError):
        client.clone_voice(1, "minimax-voice-abc")


def test_unreadable_file_is_an_error(tmp_path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(VoiceApiError, match="Cannot read"):
        _client(handler).upload_file(tmp_path / "missing.mp3")


def test_invalid_utf8_body_is_an_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b'{"a": "\x80"}')

    with pytest.raises(VoiceApiError, match="decode"):
        _client(handler).clone_voice(7, "minimax-voice-abc")
