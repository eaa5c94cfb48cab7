"""Base class for all lint rules."""

from __future__ import annotations

import abc

from sql_perf_linter.context import TransactionContext
from sql_perf_linter.models import Finding, Severity
from sql_perf_linter.operations import Operation, OperationKind
from sql_perf_linter.statements import Statement, StatementKind


class BaseRule(abc.ABC):
    """Abstract base class for all migration lint rules.

    To add a rule, subclass this, implement `evaluate()` and list the class
    in `sql_perf_linter.registry.RULES`.

    Attributes:
        name: Stable rule id, used by configuration and in findings.
        category: Grouping category (rewrite, indexes, transactions, ...).
        description: Human-readable summary of what this rule flags.
        severity: Severity of the findings this rule produces.
        default_enabled: Whether the rule runs without being asked for.
        operation_kinds: Operations the default `applies()` looks for.
        exempt_new_tables: Skip operations on tables created earlier in the
            same file; they hold no rows yet, so long locks cost nothing.
    """

    name: str = ""
    category: str = ""
    description: str = ""
    severity: Severity = Severity.WARNING
    default_enabled: bool = True
    operation_kinds: frozenset[OperationKind] = frozenset()
    exempt_new_tables: bool = True

    def configure(self, config) -> None:
        """Pick up rule-specific options from a loaded `Config`."""

    def applies(
        self, statement: Statement, operations: tuple[Operation, ...], context: TransactionContext
    ) -> bool:
        return any(op.kind in self.operation_kinds for op in operations)

    @abc.abstractmethod
    def evaluate(
        self, statement: Statement, operations: tuple[Operation, ...], context: TransactionContext
    ) -> list[Finding]:
        """Check one statement.

        Args:
            statement: The statement under inspection.
            operations: What the statement does, as classified.
            context: Transaction scope and settings around the statement.

        Returns:
            List of Finding objects. Empty list means the statement passed.
        """
        ...

    def matching(
        self, operations: tuple[Operation, ...], context: TransactionContext
    ) -> list[Operation]:
        """Operations of interest to this rule, minus those on newly created tables."""
        return [
            op
            for op in operations
            if op.kind in self.operation_kinds and not (self.exempt_new_tables and self.on_new_table(op, context))
        ]

    @staticmethod
    def on_new_table(op: Operation, context: TransactionContext) -> bool:
        if op.statement.kind == StatementKind.CREATE_TABLE:
            return True
        return context.is_new_table(op.target)

    def finding(
        self,
        statement: Statement,
        message: str,
        *,
        operation: Operation | None = None,
        suggested_fix: str = "",
    ) -> Finding:
        return Finding(
            rule_id=self.name,
            severity=self.severity,
            message=message,
            position=statement.span,
            suggested_fix=suggested_fix,
            lock_mode=operation.lock_mode.value if operation is not None else "",
            causes_table_rewrite=operation.rewrites_table if operation is not None else False,
            category=self.category,
            object_name=(operation.target or "") if operation is not None else (statement.target or ""),
            operation=operation.kind.value if operation is not None else "",
        )

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if not cls.name:
            cls.name = cls.__name__

    def __repr__(self):
        return f"<{self.__class__.__name__} [{self.category}] {self.name} ({self.severity.value})>"
