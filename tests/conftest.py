from __future__ import annotations

from pathlib import Path

import pytest

from clonetui.voice_api import CloneResponse, UploadedFile, VoiceApiError


class FakeCloneClient:
    """In-memory stand-in for the voice API; failures are keyed by file name."""

    def __init__(
        self,
        upload_errors: dict[str, str] | None = None,
        clone_errors: dict[str, str] | None = None,
        status_message: str = "ok",
    ) -> None:
        self.upload_errors = upload_errors or {}
        self.clone_errors = clone_errors or {}
        self.status_message = status_message
        self.uploads: list[Path] = []
        self.clones: list[tuple[int, str]] = []
        self._names: dict[int, str] = {}

    def upload_file(self, path: Path) -> UploadedFile:
        self.uploads.append(path)
        if path.name in self.upload_errors:
            raise VoiceApiError(self.upload_errors[path.name])
        file_id = len(self.uploads) + 6
        self._names[file_id] = path.name
        return UploadedFile(file_id=file_id, filename=path.name)

    def clone_voice(self, file_id: int, voice_id: str) -> CloneResponse:
        self.clones.append((file_id, voice_id))
        name = self._names[file_id]
        if name in self.clone_errors:
            raise VoiceApiError(self.clone_errors[name])
        return CloneResponse(status_message=self.status_message)


@pytest.fixture
def fake_client() -> FakeCloneClient:
    return FakeCloneClient()


@pytest.fixture
def audio_dir(tmp_path) -> Path:
    root = tmp_path / "voices"
    root.mkdir()
    for name, data in (("a.mp3", b"aaa"), ("b.wav", b"bbb"), ("c.m4a", b"ccc")):
        (root / name).write_bytes(data)
    (root / "notes.txt").write_text("hi", encoding="utf-8")
    (root / "sub").mkdir()
    return root
