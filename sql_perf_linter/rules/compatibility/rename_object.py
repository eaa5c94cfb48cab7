"""Flag renames that break clients still using the old name."""

from sql_perf_linter.models import Finding, Severity
from sql_perf_linter.operations import OperationKind
from sql_perf_linter.rules.base import BaseRule


class RenameObjectRule(BaseRule):
    name = "rename_object"
    category = "compatibility"
    description = "Renamed tables, columns and constraints break code that still uses the old name"
    severity = Severity.INFO
    operation_kinds = frozenset({OperationKind.RENAME_OBJECT})

    def evaluate(self, statement, operations, context) -> list[Finding]:
        return [
            self.finding(
                statement,
                f"Renaming {op.detail} on '{op.target}' breaks application code that "
                "still refers to the old name during a rolling deploy",
                operation=op,
                suggested_fix=(
                    "Deploy code that works with both names first, or add a view or "
                    "column alias for the transition."
                ),
            )
            for op in self.matching(operations, context)
        ]
