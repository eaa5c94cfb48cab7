"""Flag CHECK constraints that validate existing rows while locked."""

from sql_perf_linter.models import Finding, Severity
from sql_perf_linter.operations import OperationKind
from sql_perf_linter.rules.base import BaseRule


class CheckConstraintValidationRule(BaseRule):
    name = "check_constraint_validation"
    category = "constraints"
    description = "CHECK constraint added without NOT VALID scans the table under ACCESS EXCLUSIVE"
    severity = Severity.WARNING
    operation_kinds = frozenset({OperationKind.ADD_CHECK_CONSTRAINT_VALIDATED})

    def evaluate(self, statement, operations, context) -> list[Finding]:
        return [
            self.finding(
                statement,
                f"Adding {op.detail} to '{op.target}' checks every existing row while "
                f"holding an {op.lock_mode.value} lock",
                operation=op,
                suggested_fix=(
                    "Add the constraint with NOT VALID, then run ALTER TABLE ... "
                    "VALIDATE CONSTRAINT, which only takes SHARE UPDATE EXCLUSIVE."
                ),
            )
            for op in self.matching(operations, context)
        ]
