from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

TIME_FORMAT = "%H:%M:%S"


@dataclass(frozen=True)
class LogLine:
    text: str
    at: datetime = field(default_factory=datetime.now)

    def render(self) -> str:
        return f"[{self.at.strftime(TIME_FORMAT)}] {self.text}"


class LogBuffer:
    """Append-only run log. ``generation`` changes on every clear."""

    def __init__(self) -> None:
        self._lines: list[str] = []
        self.generation = 0

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def append(self, text: str, at: datetime | None = None) -> str:
        line = LogLine(text, at or datetime.now()).render()
        self._lines.append(line)
        return line

    def extend(self, lines: Iterable[LogLine]) -> None:
        self._lines.extend(line.render() for line in lines)

    def clear(self) -> None:
        self._lines.clear()
        self.generation += 1

    def since(self, count: int) -> list[str]:
        return self._lines[count:]

    def render(self) -> str:
        return "\n".join(self._lines)

    def __len__(self) -> int:
        return len(self._lines)
