"""Flag operations that rewrite a whole table."""

from sql_perf_linter.models import Finding, Severity
from sql_perf_linter.operations import OperationKind
from sql_perf_linter.rules.base import BaseRule

_FIXES = {
    OperationKind.ADD_COLUMN_WITH_DEFAULT: (
        "Add the column without a default, set the default with a separate "
        "ALTER COLUMN ... SET DEFAULT, then backfill existing rows in batches."
    ),
    OperationKind.ALTER_COLUMN_TYPE: (
        "Add a new column of the target type, backfill it in batches, then "
        "swap the columns in a short transaction."
    ),
    OperationKind.SET_TABLESPACE: (
        "Move the table during a maintenance window, or rebuild it online with pg_repack."
    ),
    OperationKind.SET_LOGGED: (
        "Change the persistence of large tables only during a maintenance window."
    ),
    OperationKind.SET_WITH_OIDS: (
        "Adding OIDs rewrites every row to make room for the oid column; use a "
        "serial or bigserial key column instead of OIDs."
    ),
    OperationKind.VACUUM_FULL: (
        "Use plain VACUUM, or pg_repack to reclaim space without holding ACCESS EXCLUSIVE."
    ),
    OperationKind.CLUSTER: (
        "Use pg_repack with --order-by to recluster the table online."
    ),
}


class TableRewriteRule(BaseRule):
    name = "table_rewrite"
    category = "rewrite"
    description = "Operations that rewrite every row of a table under ACCESS EXCLUSIVE"
    severity = Severity.CRITICAL
    operation_kinds = frozenset(k for k in OperationKind if k.meta.rewrites_table)

    def evaluate(self, statement, operations, context) -> list[Finding]:
        findings = []
        for op in self.matching(operations, context):
            where = f"table '{op.target}'" if op.target else "every table in the database"
            findings.append(
                self.finding(
                    statement,
                    f"{op.kind.value} rewrites {where} while holding an "
                    f"{op.lock_mode.value} lock; reads and writes block for the whole rewrite",
                    operation=op,
                    suggested_fix=_FIXES.get(op.kind, ""),
                )
            )
        return findings
