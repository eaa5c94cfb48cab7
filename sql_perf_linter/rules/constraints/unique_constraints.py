"""Flag constraints that build their index under ACCESS EXCLUSIVE."""

from sql_perf_linter.models import Finding, Severity
from sql_perf_linter.operations import OperationKind
from sql_perf_linter.rules.base import BaseRule


class UniqueConstraintIndexBuildRule(BaseRule):
    name = "unique_constraint_index_build"
    category = "constraints"
    description = "UNIQUE, PRIMARY KEY or EXCLUDE constraint builds its index under ACCESS EXCLUSIVE"
    severity = Severity.WARNING
    operation_kinds = frozenset(
        {
            OperationKind.ADD_UNIQUE_CONSTRAINT,
            OperationKind.ADD_PRIMARY_KEY,
            OperationKind.ADD_EXCLUSION_CONSTRAINT,
        }
    )

    def evaluate(self, statement, operations, context) -> list[Finding]:
        findings = []
        for op in self.matching(operations, context):
            if op.kind == OperationKind.ADD_EXCLUSION_CONSTRAINT:
                fix = "Add exclusion constraints to large tables only during a maintenance window."
            else:
                fix = (
                    "Build the index first with CREATE UNIQUE INDEX CONCURRENTLY, then "
                    "attach it with ADD CONSTRAINT ... USING INDEX."
                )
            findings.append(
                self.finding(
                    statement,
                    f"Adding {op.detail} to '{op.target}' builds an index while holding "
                    f"an {op.lock_mode.value} lock; reads and writes block for the whole build",
                    operation=op,
                    suggested_fix=fix,
                )
            )
        return findings
