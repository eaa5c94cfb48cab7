"""JSON report renderer."""

from __future__ import annotations

import json

from sql_perf_linter import __version__
from sql_perf_linter.models import Finding, LintReport


def finding_to_dict(finding: Finding) -> dict:
    pos = finding.position
    return {
        "file_position": {
            "line": pos.line,
            "column": pos.column,
            "byte_range": list(pos.byte_range),
        },
        "rule_id": finding.rule_id,
        "severity": finding.severity.value,
        "message": finding.message,
        "suggested_fix": finding.suggested_fix,
        "lock_mode": finding.lock_mode,
        "causes_table_rewrite": finding.causes_table_rewrite,
        "category": finding.category,
        "object_name": finding.object_name,
        "operation": finding.operation,
    }


def render(reports: list[LintReport]) -> str:
    """Render lint reports as a JSON string."""
    data = {
        "meta": {
            "tool": "sql-perf-linter",
            "version": __version__,
            "target": "PostgreSQL 9.6",
        },
        "summary": {
            "files": len(reports),
            "statements": sum(r.statement_count for r in reports),
            "critical": sum(r.critical_count for r in reports),
            "warnings": sum(r.warning_count for r in reports),
            "info": sum(r.info_count for r in reports),
        },
        "files": [],
    }

    for report in reports:
        data["files"].append(
            {
                "path": report.path,
                "statements": report.statement_count,
                "findings": [finding_to_dict(f) for f in report.findings],
            }
        )

    return json.dumps(data, indent=2)
