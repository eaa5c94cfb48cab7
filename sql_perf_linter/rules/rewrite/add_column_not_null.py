"""Flag NOT NULL columns added without a default."""

from sql_perf_linter.models import Finding, Severity
from sql_perf_linter.operations import OperationKind
from sql_perf_linter.rules.base import BaseRule


class AddColumnNotNullNoDefaultRule(BaseRule):
    name = "add_column_not_null_no_default"
    category = "rewrite"
    description = "NOT NULL column added without a default; fails on any table that has rows"
    severity = Severity.WARNING
    operation_kinds = frozenset({OperationKind.ADD_COLUMN_NOT_NULL_NO_DEFAULT})

    def evaluate(self, statement, operations, context) -> list[Finding]:
        """
        Report each NOT NULL column added to an existing table without a default.

        PostgreSQL fills existing rows with NULL, so the statement errors out
        as soon as the table is not empty.
        """
        return [
            self.finding(
                statement,
                f"Adding {op.detail} to '{op.target}' as NOT NULL without a default "
                "fails if the table has any rows",
                operation=op,
                suggested_fix=(
                    "Add the column as nullable, backfill it in batches, then add "
                    "the NOT NULL constraint."
                ),
            )
            for op in self.matching(operations, context)
        ]
