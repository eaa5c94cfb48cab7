"""Static registration of lint rules."""

from __future__ import annotations

from collections.abc import Iterable

from sql_perf_linter.rules.base import BaseRule
from sql_perf_linter.rules.compatibility.rename_object import RenameObjectRule
from sql_perf_linter.rules.constraints.check_constraints import CheckConstraintValidationRule
from sql_perf_linter.rules.constraints.foreign_keys import ForeignKeyValidationRule
from sql_perf_linter.rules.constraints.set_not_null import SetNotNullRule
from sql_perf_linter.rules.constraints.unique_constraints import UniqueConstraintIndexBuildRule
from sql_perf_linter.rules.indexes.non_concurrent_index import NonConcurrentIndexRule
from sql_perf_linter.rules.locking.lock_threshold import LockModeThresholdRule
from sql_perf_linter.rules.rewrite.add_column_not_null import AddColumnNotNullNoDefaultRule
from sql_perf_linter.rules.rewrite.table_rewrite import TableRewriteRule
from sql_perf_linter.rules.settings.lock_timeout import MissingLockTimeoutRule
from sql_perf_linter.rules.transactions.concurrently_in_transaction import ConcurrentlyInTransactionRule
from sql_perf_linter.rules.transactions.index_in_transaction import IndexInTransactionRule

# Registration order is the secondary sort key for findings on one statement.
RULES: tuple[type[BaseRule], ...] = (
    TableRewriteRule,
    AddColumnNotNullNoDefaultRule,
    NonConcurrentIndexRule,
    ConcurrentlyInTransactionRule,
    IndexInTransactionRule,
    ForeignKeyValidationRule,
    CheckConstraintValidationRule,
    UniqueConstraintIndexBuildRule,
    SetNotNullRule,
    RenameObjectRule,
    MissingLockTimeoutRule,
    LockModeThresholdRule,
)


def rule_ids() -> list[str]:
    return [cls.name for cls in RULES]


def rule_catalog() -> dict[str, str]:
    """Map every registered rule id to its description, in registration order."""
    return {cls.name: cls.description for cls in RULES}


def validate_rule_ids(names: Iterable[str], source: str = "configuration") -> None:
    """Raise ValueError if any of ``names`` is not a registered rule id."""
    known = set(rule_ids())
    unknown = sorted(set(names) - known)
    if unknown:
        raise ValueError(
            f"Unknown rule id(s) in {source}: {', '.join(unknown)} "
            f"(run 'sql-perf-linter list-rules' to see available rules)"
        )


def discover_rules(
    categories: list[str] | None = None,
    exclude: set[str] | None = None,
    include_only: set[str] | None = None,
    enable: set[str] | None = None,
) -> list[BaseRule]:
    """
    Instantiate the registered rules that should run, in registration order.

    Parameters:
        categories (list[str] | None): If provided, only include rules whose `category` is in this list.
        exclude (set[str] | None): Rule ids to drop; applied last, so it wins over everything else.
        include_only (set[str] | None): If provided, run exactly these rules, including ones that are
            off by default.
        enable (set[str] | None): Off-by-default rules to switch on in addition to the defaults.

    Returns:
        list[BaseRule]: Rule instances, in registration order.

    Raises:
        ValueError: If any id in `exclude`, `include_only` or `enable` is not registered.
    """
    exclude = exclude or set()
    enable = enable or set()
    validate_rule_ids(exclude | enable | (include_only or set()))

    instances = []
    for cls in RULES:
        if categories and cls.category not in categories:
            continue
        if include_only is not None:
            if cls.name not in include_only:
                continue
        elif not cls.default_enabled and cls.name not in enable:
            continue
        if cls.name in exclude:
            continue
        instances.append(cls())
    return instances
