"""Flag statements that PostgreSQL refuses to run inside a transaction block."""

from sql_perf_linter.models import Finding, Severity
from sql_perf_linter.operations import OperationKind
from sql_perf_linter.rules.base import BaseRule

_LABELS = {
    OperationKind.CREATE_INDEX_CONCURRENTLY: "CREATE INDEX CONCURRENTLY",
    OperationKind.DROP_INDEX_CONCURRENTLY: "DROP INDEX CONCURRENTLY",
    OperationKind.VACUUM: "VACUUM",
    OperationKind.VACUUM_FULL: "VACUUM",
    OperationKind.ALTER_TYPE_ADD_VALUE: "ALTER TYPE ... ADD VALUE",
    OperationKind.CLUSTER: "CLUSTER without a table name",
    OperationKind.REINDEX: "REINDEX SCHEMA/DATABASE/SYSTEM",
}


class ConcurrentlyInTransactionRule(BaseRule):
    name = "concurrently_in_transaction"
    category = "transactions"
    description = "Non-transactional statements (CONCURRENTLY, VACUUM, ADD VALUE) inside BEGIN ... COMMIT"
    severity = Severity.CRITICAL
    exempt_new_tables = False
    operation_kinds = frozenset(_LABELS)

    def applies(self, statement, operations, context) -> bool:
        return context.explicit and any(not op.transactional for op in operations)

    def evaluate(self, statement, operations, context) -> list[Finding]:
        findings = []
        for op in operations:
            if op.transactional:
                continue
            label = _LABELS.get(op.kind, op.kind.value)
            findings.append(
                self.finding(
                    statement,
                    f"{label} cannot run inside a transaction block; "
                    "PostgreSQL rejects the statement and the migration fails",
                    operation=op,
                    suggested_fix="Run this statement in its own migration, outside BEGIN ... COMMIT.",
                )
            )
        return findings
