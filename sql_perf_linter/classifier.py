"""Map parsed statements to canonical operations."""

from __future__ import annotations

from sql_perf_linter.operations import LockMode, Operation, OperationKind
from sql_perf_linter.statements import (
    AlterAction,
    AlterActionType,
    AlterTableDetail,
    AlterTypeDetail,
    ColumnDef,
    ConstraintDef,
    ConstraintType,
    CreateIndexDetail,
    DropDetail,
    Statement,
    StatementKind,
    TableCommandDetail,
)

_SIMPLE_ACTIONS = {
    AlterActionType.DROP_COLUMN: OperationKind.DROP_COLUMN,
    AlterActionType.ALTER_COLUMN_TYPE: OperationKind.ALTER_COLUMN_TYPE,
    AlterActionType.SET_DEFAULT: OperationKind.ALTER_COLUMN_DEFAULT,
    AlterActionType.DROP_DEFAULT: OperationKind.ALTER_COLUMN_DEFAULT,
    AlterActionType.SET_NOT_NULL: OperationKind.SET_NOT_NULL,
    AlterActionType.DROP_NOT_NULL: OperationKind.DROP_NOT_NULL,
    AlterActionType.SET_STATISTICS: OperationKind.SET_STATISTICS,
    AlterActionType.VALIDATE_CONSTRAINT: OperationKind.VALIDATE_CONSTRAINT,
    AlterActionType.DROP_CONSTRAINT: OperationKind.DROP_CONSTRAINT,
    AlterActionType.RENAME: OperationKind.RENAME_OBJECT,
    AlterActionType.SET_TABLESPACE: OperationKind.SET_TABLESPACE,
    AlterActionType.SET_LOGGED: OperationKind.SET_LOGGED,
    AlterActionType.SET_UNLOGGED: OperationKind.SET_LOGGED,
    AlterActionType.SET_WITH_OIDS: OperationKind.SET_WITH_OIDS,
    AlterActionType.OTHER: OperationKind.ALTER_TABLE_OTHER,
}


def classify(statement: Statement) -> tuple[Operation, ...]:
    """Return the operations ``statement`` performs.

    Opaque and malformed statements classify as a single ``OTHER`` operation.
    """
    if statement.is_opaque:
        return (Operation(OperationKind.OTHER, statement),)

    kind = statement.kind
    detail = statement.detail
    target = statement.target

    if kind == StatementKind.ALTER_TABLE and isinstance(detail, AlterTableDetail):
        ops: list[Operation] = []
        for action in detail.actions:
            ops.extend(_classify_action(statement, action))
        return tuple(ops)

    if kind == StatementKind.CREATE_INDEX and isinstance(detail, CreateIndexDetail):
        op_kind = (
            OperationKind.CREATE_INDEX_CONCURRENTLY if detail.concurrently else OperationKind.CREATE_INDEX_PLAIN
        )
        label = detail.name or "(unnamed)"
        return (Operation(op_kind, statement, target, detail=f"index {label}"),)

    if kind == StatementKind.CREATE_TABLE:
        return (Operation(OperationKind.CREATE_TABLE, statement, target),)

    if kind == StatementKind.DROP_TABLE:
        return (Operation(OperationKind.DROP_TABLE, statement, target),)

    if kind == StatementKind.DROP_INDEX and isinstance(detail, DropDetail):
        op_kind = OperationKind.DROP_INDEX_CONCURRENTLY if detail.concurrently else OperationKind.DROP_INDEX
        return (Operation(op_kind, statement, target),)

    if kind == StatementKind.DROP_OTHER:
        return (Operation(OperationKind.DROP_OTHER, statement, target),)

    if kind == StatementKind.ALTER_TYPE and isinstance(detail, AlterTypeDetail):
        if detail.add_value:
            return (Operation(OperationKind.ALTER_TYPE_ADD_VALUE, statement, target, detail=f"type {target}"),)
        return (Operation(OperationKind.OTHER, statement, target),)

    if isinstance(detail, TableCommandDetail):
        return _classify_table_command(statement, detail)

    return (Operation(OperationKind.OTHER, statement, target),)


def _classify_action(statement: Statement, action: AlterAction) -> list[Operation]:
    target = statement.target
    if action.action == AlterActionType.ADD_COLUMN and action.column is not None:
        return _classify_add_column(statement, action.column)
    if action.action == AlterActionType.ADD_CONSTRAINT and action.constraint is not None:
        return [_classify_constraint(statement, action.constraint)]
    op_kind = _SIMPLE_ACTIONS[action.action]
    if action.action == AlterActionType.RENAME:
        old = action.column_name or action.constraint_name or target or ""
        detail = f"{action.rename_kind} {old} to {action.new_name}"
    else:
        label = action.column_name or action.constraint_name or action.new_name
        detail = f"{action.action.value} {label}".strip()
    return [Operation(op_kind, statement, target, detail=detail)]


def _classify_add_column(statement: Statement, column: ColumnDef) -> list[Operation]:
    target = statement.target
    if column.has_default:
        op_kind = OperationKind.ADD_COLUMN_WITH_DEFAULT
    elif column.requires_not_null:
        op_kind = OperationKind.ADD_COLUMN_NOT_NULL_NO_DEFAULT
    else:
        op_kind = OperationKind.ADD_COLUMN
    ops = [Operation(op_kind, statement, target, detail=f"column {column.name}")]
    for constraint in column.constraints:
        ops.append(_classify_constraint(statement, constraint))
    return ops


def _classify_constraint(statement: Statement, constraint: ConstraintDef) -> Operation:
    ctype = constraint.constraint_type
    if constraint.using_index:
        op_kind = OperationKind.ADD_CONSTRAINT_USING_INDEX
    elif ctype == ConstraintType.FOREIGN_KEY:
        op_kind = OperationKind.ADD_FOREIGN_KEY_NOT_VALID if constraint.not_valid else OperationKind.ADD_FOREIGN_KEY
    elif ctype == ConstraintType.CHECK:
        op_kind = (
            OperationKind.ADD_CHECK_CONSTRAINT_NOT_VALID
            if constraint.not_valid
            else OperationKind.ADD_CHECK_CONSTRAINT_VALIDATED
        )
    elif ctype == ConstraintType.UNIQUE:
        op_kind = OperationKind.ADD_UNIQUE_CONSTRAINT
    elif ctype == ConstraintType.PRIMARY_KEY:
        op_kind = OperationKind.ADD_PRIMARY_KEY
    elif ctype == ConstraintType.EXCLUDE:
        op_kind = OperationKind.ADD_EXCLUSION_CONSTRAINT
    else:
        op_kind = OperationKind.ALTER_TABLE_OTHER
    label = constraint.name or ", ".join(constraint.columns) or ctype.value
    return Operation(op_kind, statement, statement.target, detail=f"{ctype.value} {label}")


def _classify_table_command(statement: Statement, detail: TableCommandDetail) -> tuple[Operation, ...]:
    kind = statement.kind
    target = statement.target
    if kind == StatementKind.VACUUM:
        op_kind = OperationKind.VACUUM_FULL if detail.full else OperationKind.VACUUM
        return (Operation(op_kind, statement, target),)
    if kind == StatementKind.CLUSTER:
        # CLUSTER without a table reclusters every table and cannot run in a block
        transactional = None if detail.tables else False
        return (Operation(OperationKind.CLUSTER, statement, target, transactional_override=transactional),)
    if kind == StatementKind.REINDEX:
        transactional = False if detail.object_type in ("DATABASE", "SYSTEM", "SCHEMA") else None
        return (
            Operation(
                OperationKind.REINDEX,
                statement,
                target,
                detail=f"{detail.object_type.lower()} {target}",
                transactional_override=transactional,
            ),
        )
    if kind == StatementKind.TRUNCATE:
        return (Operation(OperationKind.TRUNCATE, statement, target),)
    if kind == StatementKind.LOCK_TABLE:
        try:
            mode = LockMode.parse(detail.lock_mode)
        except ValueError:
            mode = None
        return (Operation(OperationKind.LOCK_TABLE, statement, target, lock_mode_override=mode),)
    return (Operation(OperationKind.OTHER, statement, target),)
