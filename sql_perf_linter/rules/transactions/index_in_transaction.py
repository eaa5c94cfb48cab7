"""Flag plain index builds that share a transaction with other DDL."""

from sql_perf_linter.models import Finding, Severity
from sql_perf_linter.operations import OperationKind
from sql_perf_linter.rules.base import BaseRule


class IndexInTransactionRule(BaseRule):
    name = "index_in_transaction"
    category = "transactions"
    description = "CREATE INDEX in a transaction block with other schema changes holds every lock until COMMIT"
    severity = Severity.WARNING
    operation_kinds = frozenset({OperationKind.CREATE_INDEX_PLAIN})

    def applies(self, statement, operations, context) -> bool:
        return context.explicit and super().applies(statement, operations, context)

    def evaluate(self, statement, operations, context) -> list[Finding]:
        others = context.other_schema_changes()
        if not others:
            return []
        findings = []
        for op in self.matching(operations, context):
            findings.append(
                self.finding(
                    statement,
                    f"CREATE INDEX on '{op.target}' shares a transaction with "
                    f"{len(others)} other schema change(s); the index build and every "
                    "lock taken by the other statements are held until COMMIT",
                    operation=op,
                    suggested_fix=(
                        "Split the index into its own non-transactional migration and "
                        "build it with CREATE INDEX CONCURRENTLY."
                    ),
                )
            )
        return findings
