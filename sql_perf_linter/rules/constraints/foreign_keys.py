"""Flag foreign keys that validate existing rows while locked."""

from sql_perf_linter.models import Finding, Severity
from sql_perf_linter.operations import OperationKind
from sql_perf_linter.rules.base import BaseRule


class ForeignKeyValidationRule(BaseRule):
    name = "foreign_key_validation"
    category = "constraints"
    description = "FOREIGN KEY added without NOT VALID scans the table under SHARE ROW EXCLUSIVE"
    severity = Severity.WARNING
    operation_kinds = frozenset({OperationKind.ADD_FOREIGN_KEY})

    def evaluate(self, statement, operations, context) -> list[Finding]:
        return [
            self.finding(
                statement,
                f"Adding {op.detail} to '{op.target}' validates every existing row while "
                f"holding {op.lock_mode.value} on it and on the referenced table; "
                "writes to both block until the scan completes",
                operation=op,
                suggested_fix=(
                    "Add the constraint with NOT VALID, then run ALTER TABLE ... "
                    "VALIDATE CONSTRAINT in a separate transaction."
                ),
            )
            for op in self.matching(operations, context)
        ]
