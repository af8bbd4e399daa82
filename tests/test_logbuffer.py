from __future__ import annotations

from datetime import datetime

from clonetui.logbuffer import LogBuffer, LogLine


def test_log_line_renders_timestamp() -> None:
    line = LogLine("Processing a.mp3", datetime(2024, 1, 2, 3, 4, 5))
    assert line.render() == "[03:04:05] Processing a.mp3"


def test_append_and_since() -> None:
    buffer = LogBuffer()
    buffer.append("one", datetime(2024, 1, 1, 9, 0, 0))
    buffer.extend([LogLine("two", datetime(2024, 1, 1, 9, 0, 1))])
    assert len(buffer) == 2
    assert buffer.since(1) == ["[09:00:01] two"]
    assert buffer.render() == "[09:00:00] one\n[09:00:01] two"


def test_clear_bumps_generation() -> None:
    buffer = LogBuffer()
    buffer.append("one")
    generation = buffer.generation
    buffer.clear()
    assert buffer.lines == ()
    assert buffer.generation == generation + 1
