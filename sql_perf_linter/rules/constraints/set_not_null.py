"""Flag SET NOT NULL, which scans the table in 9.6."""

from sql_perf_linter.models import Finding, Severity
from sql_perf_linter.operations import OperationKind
from sql_perf_linter.rules.base import BaseRule


class SetNotNullRule(BaseRule):
    name = "set_not_null"
    category = "constraints"
    description = "ALTER COLUMN ... SET NOT NULL scans the whole table under ACCESS EXCLUSIVE"
    severity = Severity.WARNING
    operation_kinds = frozenset({OperationKind.SET_NOT_NULL})

    def evaluate(self, statement, operations, context) -> list[Finding]:
        return [
            self.finding(
                statement,
                f"{op.detail} on '{op.target}' scans every row while holding an "
                f"{op.lock_mode.value} lock",
                operation=op,
                suggested_fix=(
                    "Enforce the rule with a CHECK (column IS NOT NULL) NOT VALID "
                    "constraint and validate it separately; PostgreSQL 9.6 cannot "
                    "skip the scan for SET NOT NULL."
                ),
            )
            for op in self.matching(operations, context)
        ]
