"""Flag long-lock operations that run without a lock or statement timeout."""

from sql_perf_linter.models import Finding, Severity
from sql_perf_linter.operations import OperationKind
from sql_perf_linter.rules.base import BaseRule


class MissingLockTimeoutRule(BaseRule):
    name = "missing_lock_timeout"
    category = "settings"
    description = "Rewrite or scan under a write-blocking lock with no lock_timeout/statement_timeout set"
    severity = Severity.WARNING
    default_enabled = False
    operation_kinds = frozenset(
        k for k in OperationKind if k.meta.long_running and k.meta.lock_mode.blocks_writes
    )

    def evaluate(self, statement, operations, context) -> list[Finding]:
        if context.has_timeout():
            return []
        ops = self.matching(operations, context)
        if not ops:
            return []
        # One finding per statement; the strongest lock is what queues behind others
        op = max(ops, key=lambda o: o.lock_mode.strength)
        fix = "Run SET lock_timeout = '5s' (or SET LOCAL inside the transaction) first."
        if context.has_session_timeout():
            fix = "A timeout set outside this transaction does not apply here; add SET LOCAL lock_timeout = '5s' inside it."
        return [
            self.finding(
                statement,
                f"{op.kind.value} on '{op.target}' waits for an {op.lock_mode.value} lock "
                "with no lock_timeout or statement_timeout in effect; while it waits, "
                "every later query on the table queues behind it",
                operation=op,
                suggested_fix=fix,
            )
        ]
