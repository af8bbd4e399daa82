from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

log = logging.getLogger(__name__)

API_BASE_URL = "https://api.minimaxi.com"
UPLOAD_PATH = "/v1/files/upload"
CLONE_PATH = "/v1/voice_clone"
UPLOAD_PURPOSE = "voice_clone"
DEFAULT_TIMEOUT = 45.0
VOICE_ID_PREFIX = "minimax-voice-"
VOICE_ID_DIGITS = 16

_HASH_CHUNK = 1024 * 1024
_BODY_PREVIEW = 200


class VoiceApiError(RuntimeError):
    """Raised when the voice service rejects a request or cannot be reached."""


@dataclass(frozen=True)
class VoiceFingerprint:
    digest: str
    voice_id: str


@dataclass(frozen=True)
class UploadedFile:
    file_id: int
    filename: str | None = None
    size: int | None = None


@dataclass(frozen=True)
class CloneResponse:
    status_message: str
    demo_audio: str | None = None


def fingerprint_file(path: Path) -> VoiceFingerprint:
    """Hash the file contents; the name and location of the file do not matter."""
    hasher = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(_HASH_CHUNK), b""):
            hasher.update(chunk)
    digest = hasher.hexdigest()
    return VoiceFingerprint(digest=digest, voice_id=voice_id_for_digest(digest))


def voice_id_for_digest(digest: str) -> str:
    return f"{VOICE_ID_PREFIX}{digest[:VOICE_ID_DIGITS]}"


class VoiceCloneClient:
    def __init__(
        self,
        api_key: str | None,
        group_id: str | None,
        *,
        base_url: str = API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or ""
        self.group_id = group_id or ""
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    def upload_file(self, path: Path) -> UploadedFile:
        if not self.api_key:
            raise VoiceApiError("Missing API key")
        path = path.absolute()
        try:
            with path.open("rb") as handle, self._client() as client:
                response = client.post(
                    UPLOAD_PATH,
                    data={"purpose": UPLOAD_PURPOSE},
                    files={"file": (path.name, handle)},
                )
        except OSError as exc:
            raise VoiceApiError(f"Cannot read {path.name}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise VoiceApiError(f"Upload request failed: {exc}") from exc
        payload = _decode_response(response, "upload")
        _check_base_resp(payload, "upload")
        file_info = payload.get("file")
        if not isinstance(file_info, dict) or file_info.get("file_id") is None:
            raise VoiceApiError("Upload response has no file id")
        try:
            file_id = int(file_info["file_id"])
        except (TypeError, ValueError) as exc:
            raise VoiceApiError(f"Upload returned an invalid file id: {file_info['file_id']!r}") from exc
        log.debug("uploaded %s as file %s", path, file_id)
        return UploadedFile(
            file_id=file_id,
            filename=_as_str(file_info.get("filename")),
            size=_as_int(file_info.get("bytes")),
        )

    def clone_voice(self, file_id: int, voice_id: str) -> CloneResponse:
        if not self.api_key or not self.group_id:
            raise VoiceApiError("Missing API credentials")
        try:
            with self._client() as client:
                response = client.post(
                    CLONE_PATH,
                    params={"GroupId": self.group_id},
                    json={"file_id": file_id, "voice_id": voice_id},
                )
        except httpx.HTTPError as exc:
            raise VoiceApiError(f"Clone request failed: {exc}") from exc
        payload = _decode_response(response, "clone")
        status_message = _check_base_resp(payload, "clone")
        log.debug("cloned file %s as %s", file_id, voice_id)
        return CloneResponse(
            status_message=status_message,
            demo_audio=_as_str(payload.get("demo_audio")),
        )

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Authorization": f"Bearer {self.api_key}"},
            transport=self._transport,
        )


def _decode_response(response: httpx.Response, action: str) -> dict[str, Any]:
    if response.status_code != httpx.codes.OK:
        body = _body_preview(response.text)
        raise VoiceApiError(f"{action.capitalize()} failed: HTTP {response.status_code} {body}".rstrip())
    try:
        payload = response.json()
    except ValueError as exc:
        raise VoiceApiError(f"Cannot decode {action} response") from exc
    if not isinstance(payload, dict):
        raise VoiceApiError(f"Unexpected {action} response")
    return payload


def _check_base_resp(payload: dict[str, Any], action: str) -> str:
    base = payload.get("base_resp")
    if not isinstance(base, dict):
        return ""
    code = _as_int(base.get("status_code")) or 0
    message = _as_str(base.get("status_msg")) or ""
    if code != 0:
        raise VoiceApiError(f"{action.capitalize()} rejected: {code} {message}".rstrip())
    return message


def _body_preview(text: str) -> str:
    line = " ".join(text.split())
    return (line[: _BODY_PREVIEW - 3] + "...") if len(line) > _BODY_PREVIEW else line


def _as_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None
