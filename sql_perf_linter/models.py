"""Data models for findings and lint reports."""

from __future__ import annotations

import bisect
import enum
from dataclasses import dataclass, field


class Severity(enum.Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    def __lt__(self, other):
        order = {Severity.CRITICAL: 0, Severity.WARNING: 1, Severity.INFO: 2}
        return order[self] < order[other]

    @classmethod
    def parse(cls, value: str) -> Severity:
        """Look up a severity by name, case-insensitively."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown severity '{value}' (expected one of: {choices})") from None


@dataclass(frozen=True)
class SourceSpan:
    """A region of the script: character offsets plus line/column and UTF-8 bytes.

    ``start``/``end`` index into the decoded text; ``byte_start``/``byte_end``
    index into its UTF-8 encoding. Lines and columns are 1-based.
    """

    start: int
    end: int
    line: int = 1
    column: int = 1
    end_line: int = 1
    end_column: int = 1
    byte_start: int = 0
    byte_end: int = 0

    @property
    def byte_range(self) -> tuple[int, int]:
        return (self.byte_start, self.byte_end)


class SourceMap:
    """Translate character offsets in a script into :class:`SourceSpan` values."""

    def __init__(self, text: str):
        self.text = text
        self._line_starts = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                self._line_starts.append(i + 1)
        self._ascii = text.isascii()
        # UTF-8 offset of each line start
        self._line_byte_starts = [0]
        if not self._ascii:
            for line_start, next_start in zip(self._line_starts, self._line_starts[1:]):
                line_bytes = len(text[line_start:next_start].encode("utf-8"))
                self._line_byte_starts.append(self._line_byte_starts[-1] + line_bytes)

    def line_col(self, offset: int) -> tuple[int, int]:
        idx = bisect.bisect_right(self._line_starts, offset) - 1
        return idx + 1, offset - self._line_starts[idx] + 1

    def byte_offset(self, offset: int) -> int:
        if self._ascii:
            return offset
        idx = bisect.bisect_right(self._line_starts, offset) - 1
        partial = self.text[self._line_starts[idx] : offset]
        return self._line_byte_starts[idx] + len(partial.encode("utf-8"))

    def span(self, start: int, end: int) -> SourceSpan:
        start = max(0, min(start, len(self.text)))
        end = max(start, min(end, len(self.text)))
        line, column = self.line_col(start)
        end_line, end_column = self.line_col(end)
        return SourceSpan(
            start=start,
            end=end,
            line=line,
            column=column,
            end_line=end_line,
            end_column=end_column,
            byte_start=self.byte_offset(start),
            byte_end=self.byte_offset(end),
        )


@dataclass(frozen=True)
class Finding:
    rule_id: str
    severity: Severity
    message: str
    position: SourceSpan
    suggested_fix: str = ""
    lock_mode: str = ""
    causes_table_rewrite: bool = False
    category: str = ""
    object_name: str = ""
    operation: str = ""


@dataclass
class LintReport:
    path: str
    findings: list[Finding] = field(default_factory=list)
    statement_count: int = 0

    @property
    def critical_count(self) -> int:
        return sum(1 for f in self.findings if f.severity == Severity.CRITICAL)

    @property
    def warning_count(self) -> int:
        return sum(1 for f in self.findings if f.severity == Severity.WARNING)

    @property
    def info_count(self) -> int:
        return sum(1 for f in self.findings if f.severity == Severity.INFO)

    def rule_ids(self) -> list[str]:
        return [f.rule_id for f in self.findings]

    def has_findings_at(self, severity: Severity) -> bool:
        """True if any finding is at least as severe as ``severity``."""
        return any(f.severity == severity or f.severity < severity for f in self.findings)
