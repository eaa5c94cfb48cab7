"""Shared fixtures for sql-perf-linter tests."""

from __future__ import annotations

import pytest

from sql_perf_linter.config import Config, RuleConfig
from sql_perf_linter.linter import lint_text
from sql_perf_linter.models import Finding, LintReport, Severity, SourceSpan
from sql_perf_linter.operations import LockMode


def make_span(start: int = 0, end: int = 10, line: int = 1, column: int = 1) -> SourceSpan:
    """Factory for SourceSpan instances on a single ASCII line."""
    return SourceSpan(
        start=start,
        end=end,
        line=line,
        column=column,
        end_line=line,
        end_column=column + (end - start),
        byte_start=start,
        byte_end=end,
    )


def make_finding(
    severity: Severity = Severity.INFO,
    rule_id: str = "test_rule",
    message: str = "Test finding",
    position: SourceSpan | None = None,
    **kwargs,
) -> Finding:
    """Factory for creating Finding instances with sensible defaults."""
    return Finding(
        rule_id=rule_id,
        severity=severity,
        message=message,
        position=position or make_span(),
        **kwargs,
    )


def make_config(
    exclude: set[str] | None = None,
    include_only: set[str] | None = None,
    enable: set[str] | None = None,
    severity: dict[str, Severity] | None = None,
    lock_threshold: LockMode = LockMode.SHARE_UPDATE_EXCLUSIVE,
) -> Config:
    """Factory for Config instances."""
    return Config(
        rules=RuleConfig(
            exclude=exclude or set(),
            include_only=include_only,
            enable=enable or set(),
            severity=severity or {},
        ),
        lock_threshold=lock_threshold,
    )


def lint(sql: str, **config_kwargs) -> LintReport:
    """Lint a script with a config built from ``config_kwargs``."""
    return lint_text(sql, path="migration.sql", config=make_config(**config_kwargs))


@pytest.fixture
def empty_report() -> LintReport:
    """LintReport with no findings."""
    return LintReport(path="empty.sql", statement_count=2)


@pytest.fixture
def sample_report() -> LintReport:
    """LintReport with one finding of each severity."""
    return LintReport(
        path="001_add_orders.sql",
        statement_count=4,
        findings=[
            make_finding(
                severity=Severity.CRITICAL,
                rule_id="table_rewrite",
                message="AddColumnWithDefault rewrites table 'orders'",
                position=make_span(0, 50),
                suggested_fix="Add the column without a default",
                lock_mode="ACCESS EXCLUSIVE",
                causes_table_rewrite=True,
                category="rewrite",
                object_name="orders",
                operation="AddColumnWithDefault",
            ),
            make_finding(
                severity=Severity.WARNING,
                rule_id="non_concurrent_index",
                message="CREATE INDEX on 'orders' blocks writes",
                position=make_span(51, 90, line=2),
                suggested_fix="Use CREATE INDEX CONCURRENTLY",
                lock_mode="SHARE",
                category="indexes",
                object_name="orders",
                operation="CreateIndexPlain",
            ),
            make_finding(
                severity=Severity.INFO,
                rule_id="rename_object",
                message="Renaming column a to b",
                position=make_span(91, 130, line=3),
                category="compatibility",
            ),
        ],
    )


@pytest.fixture
def mixed_script() -> str:
    """A migration that trips most default rules."""
    return (
        "SET statement_timeout = 0;\n"
        "ALTER TABLE orders ADD COLUMN status text NOT NULL DEFAULT 'new';\n"
        "CREATE INDEX orders_status_idx ON orders (status);\n"
        "ALTER TABLE orders ADD CONSTRAINT orders_user_fk FOREIGN KEY (user_id) REFERENCES users (id);\n"
        "ALTER TABLE orders ADD CONSTRAINT orders_total_chk CHECK (total >= 0),\n"
        "    ALTER COLUMN note SET NOT NULL;\n"
        "BEGIN;\n"
        "ALTER TABLE users RENAME COLUMN login TO username;\n"
        "CREATE INDEX users_username_idx ON users (username);\n"
        "CREATE INDEX CONCURRENTLY users_email_idx ON users (email);\n"
        "COMMIT;\n"
        "ALTER TABLE accounts ADD PRIMARY KEY (id);\n"
        "VACUUM FULL accounts;\n"
    )
