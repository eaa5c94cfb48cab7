"""Plain-text report renderer, one line per finding."""

from __future__ import annotations

from sql_perf_linter.models import LintReport, Severity

_LABELS = {
    Severity.CRITICAL: "CRITICAL",
    Severity.WARNING: "WARNING",
    Severity.INFO: "INFO",
}


def render(reports: list[LintReport]) -> str:
    """Render lint reports as ``path:line:column: SEVERITY [rule_id] message`` lines.

    Suggested fixes follow their finding on an indented line. A summary line
    closes the report.
    """
    lines: list[str] = []
    for report in reports:
        for f in report.findings:
            pos = f.position
            lines.append(f"{report.path}:{pos.line}:{pos.column}: {_LABELS[f.severity]} [{f.rule_id}] {f.message}")
            if f.suggested_fix:
                lines.append(f"    fix: {f.suggested_fix}")

    critical = sum(r.critical_count for r in reports)
    warnings = sum(r.warning_count for r in reports)
    info = sum(r.info_count for r in reports)
    total = critical + warnings + info
    if total:
        lines.append("")
    lines.append(
        f"{len(reports)} file(s) checked: {total} finding(s) "
        f"({critical} critical, {warnings} warnings, {info} info)"
    )
    return "\n".join(lines) + "\n"
