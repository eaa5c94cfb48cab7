"""Flag index builds that block writes."""

from sql_perf_linter.models import Finding, Severity
from sql_perf_linter.operations import OperationKind
from sql_perf_linter.rules.base import BaseRule


class NonConcurrentIndexRule(BaseRule):
    name = "non_concurrent_index"
    category = "indexes"
    description = "CREATE INDEX without CONCURRENTLY blocks writes for the whole build"
    severity = Severity.WARNING
    operation_kinds = frozenset({OperationKind.CREATE_INDEX_PLAIN})

    def evaluate(self, statement, operations, context) -> list[Finding]:
        return [
            self.finding(
                statement,
                f"CREATE INDEX on '{op.target}' holds a {op.lock_mode.value} lock for the "
                "whole index build; INSERT, UPDATE and DELETE block until it finishes",
                operation=op,
                suggested_fix="Use CREATE INDEX CONCURRENTLY, outside of a transaction block.",
            )
            for op in self.matching(operations, context)
        ]
