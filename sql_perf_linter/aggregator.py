"""Collect findings for one file and order them deterministically."""

from __future__ import annotations

from sql_perf_linter.errors import LintError
from sql_perf_linter.models import Finding, Severity, SourceMap

# Lex and parse errors sort ahead of rule findings for the same position.
ERROR_RANK = -1


class FindingAggregator:
    """Ordered, unfiltered list of findings for a single file.

    Findings are ordered by the start of the statement they belong to, then
    by the rank of the rule that produced them, then by arrival.
    """

    def __init__(self):
        self._entries: list[tuple[int, int, int, Finding]] = []

    def add(self, finding: Finding, rank: int, anchor: int | None = None) -> None:
        start = finding.position.start if anchor is None else anchor
        self._entries.append((start, rank, len(self._entries), finding))

    def add_error(self, error: LintError, source: SourceMap) -> None:
        """Record a lex or parse error as a critical finding at its position."""
        finding = Finding(
            rule_id=error.rule_id,
            severity=Severity.CRITICAL,
            message=error.message,
            position=source.span(error.start, error.end),
            category="syntax",
        )
        self.add(finding, ERROR_RANK)

    def findings(self) -> list[Finding]:
        return [entry[3] for entry in sorted(self._entries, key=lambda e: e[:3])]

    def __len__(self) -> int:
        return len(self._entries)
