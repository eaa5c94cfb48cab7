"""Flag operations whose lock is stronger than a configured threshold."""

from sql_perf_linter.models import Finding, Severity
from sql_perf_linter.operations import LockMode, OperationKind
from sql_perf_linter.rules.base import BaseRule


class LockModeThresholdRule(BaseRule):
    name = "lock_mode_threshold"
    category = "locking"
    description = "Operation takes a lock stronger than the configured lock_threshold"
    severity = Severity.WARNING
    default_enabled = False
    operation_kinds = frozenset(k for k in OperationKind if k.meta.lock_mode != LockMode.NONE)

    def __init__(self, threshold: LockMode = LockMode.SHARE_UPDATE_EXCLUSIVE):
        self.threshold = threshold

    def configure(self, config) -> None:
        self.threshold = config.lock_threshold

    def applies(self, statement, operations, context) -> bool:
        return any(self.threshold < op.lock_mode for op in operations)

    def evaluate(self, statement, operations, context) -> list[Finding]:
        ops = [
            op
            for op in operations
            if self.threshold < op.lock_mode and not self.on_new_table(op, context)
        ]
        if not ops:
            return []
        op = max(ops, key=lambda o: o.lock_mode.strength)
        return [
            self.finding(
                statement,
                f"{op.kind.value} on '{op.target or statement.snippet(40)}' takes "
                f"{op.lock_mode.value}, stronger than the configured threshold "
                f"{self.threshold.value}",
                operation=op,
            )
        ]
