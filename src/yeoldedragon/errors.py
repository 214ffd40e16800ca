"""Compile errors and Rust-style colored diagnostic rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from yeoldedragon.source import SourceFile, Span


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",    # bold red
    Severity.WARNING: "\033[1;33m",  # bold yellow
    Severity.NOTE: "\033[1;36m",     # bold cyan
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass(frozen=True)
class DiagnosticLabel:
    """Points to a specific source location."""

    span: Span
    message: str = ""


@dataclass
class Diagnostic:
    """A single diagnostic message with labels and trailing notes."""

    severity: Severity
    code: str
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    @property
    def span(self) -> Span | None:
        return self.labels[0].span if self.labels else None


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format with colors."""

    def __init__(
        self, *, color: bool = True, sources: dict[str, SourceFile] | None = None,
    ) -> None:
        self.color = color
        self._sources = dict(sources or {})
        self._file_cache: dict[str, list[str]] = {}

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def _get_source_line(self, filename: str, line_num: int) -> str | None:
        if filename in self._sources:
            return self._sources[filename].line_at(line_num)
        if filename not in self._file_cache:
            path = Path(filename)
            try:
                lines = path.read_text().splitlines() if path.is_file() else []
            except OSError:
                lines = []
            self._file_cache[filename] = lines
        lines = self._file_cache[filename]
        if 1 <= line_num <= len(lines):
            return lines[line_num - 1]
        return None

    def render(self, diag: Diagnostic) -> str:
        lines: list[str] = []
        color = _COLORS[diag.severity]
        bar = f"{self._c(_BLUE)}   |{self._c(_RESET)}"

        # error[E321]: message
        lines.append(
            f"{self._c(color)}{diag.severity.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )

        for label in diag.labels:
            span = label.span
            lines.append(f"  {self._c(_BLUE)}-->{self._c(_RESET)} {span}")
            lines.append(f"  {bar}")

            source_line = self._get_source_line(span.file, span.start_line)
            if source_line is not None:
                gutter = f"{span.start_line:>4}"
                lines.append(
                    f"  {self._c(_BLUE)}{gutter} |{self._c(_RESET)} {source_line}"
                )
                if span.start_line == span.end_line:
                    width = max(1, span.end_col - span.start_col + 1)
                else:
                    width = max(1, len(source_line) - span.start_col + 1)
                lines.append(
                    f"  {bar} {' ' * (span.start_col - 1)}"
                    f"{self._c(color)}{'^' * width}{self._c(_RESET)}"
                )

            if label.message:
                lines.append(
                    f"  {bar}   {self._c(color)}{label.message}{self._c(_RESET)}"
                )

        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")

        return "\n".join(lines)


class CompileError(Exception):
    """Compilation error carrying the diagnostics that stopped it."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        messages = [d.message for d in diagnostics]
        super().__init__(f"{len(diagnostics)} error(s): {'; '.join(messages)}")


class _LocatedError(CompileError):
    code = "E000"

    def __init__(self, message: str, span: Span, *, code: str | None = None,
                 notes: list[str] | None = None) -> None:
        self.message = message
        self.span = span
        diag = Diagnostic(
            severity=Severity.ERROR,
            code=code or self.code,
            message=message,
            labels=[DiagnosticLabel(span=span)],
            notes=list(notes or []),
        )
        super().__init__([diag])

    @property
    def diagnostic(self) -> Diagnostic:
        return self.diagnostics[0]

    def __str__(self) -> str:
        return f"{self.span.location}: {self.message}"


class DragonSyntaxError(_LocatedError):
    """Raised by the lexer and parser at the first malformed construct."""

    code = "E200"


class SemanticError(_LocatedError):
    """Raised by the analyzer at the first violated static rule."""

    code = "E300"
