"""Source text and span tracking for diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Span:
    """A range within a source file. Lines and columns are 1-indexed."""

    file: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def __str__(self) -> str:
        return f"{self.file}:{self.start_line}:{self.start_col}"

    @property
    def location(self) -> str:
        return f"line {self.start_line}, column {self.start_col}"

    def to(self, other: Span) -> Span:
        """Span covering from the start of this one to the end of ``other``."""
        return Span(
            self.file, self.start_line, self.start_col,
            other.end_line, other.end_col,
        )


class SourceFile:
    """A named piece of Dragon source with line access for diagnostics."""

    def __init__(self, name: str, text: str) -> None:
        self.name = name
        self.text = text
        self.lines = text.splitlines()

    @classmethod
    def load(cls, path: Path) -> SourceFile:
        return cls(str(path), path.read_text(encoding="utf-8"))

    def line_at(self, n: int) -> str | None:
        """Return the 1-indexed line, or None if out of range."""
        if 1 <= n <= len(self.lines):
            return self.lines[n - 1]
        return None
