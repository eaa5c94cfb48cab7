"""Immutable statement model produced by the parser."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Union

from sql_perf_linter.models import SourceSpan


class StatementKind(enum.Enum):
    ALTER_TABLE = "ALTER TABLE"
    ALTER_TYPE = "ALTER TYPE"
    CREATE_INDEX = "CREATE INDEX"
    CREATE_TABLE = "CREATE TABLE"
    DROP_TABLE = "DROP TABLE"
    DROP_INDEX = "DROP INDEX"
    DROP_OTHER = "DROP"
    SET = "SET"
    BEGIN = "BEGIN"
    COMMIT = "COMMIT"
    ROLLBACK = "ROLLBACK"
    VACUUM = "VACUUM"
    CLUSTER = "CLUSTER"
    REINDEX = "REINDEX"
    TRUNCATE = "TRUNCATE"
    LOCK_TABLE = "LOCK"
    OTHER = "OTHER"


TRANSACTION_CONTROL = frozenset({StatementKind.BEGIN, StatementKind.COMMIT, StatementKind.ROLLBACK})


class AlterActionType(enum.Enum):
    ADD_COLUMN = "ADD COLUMN"
    DROP_COLUMN = "DROP COLUMN"
    ALTER_COLUMN_TYPE = "ALTER COLUMN TYPE"
    SET_DEFAULT = "SET DEFAULT"
    DROP_DEFAULT = "DROP DEFAULT"
    SET_NOT_NULL = "SET NOT NULL"
    DROP_NOT_NULL = "DROP NOT NULL"
    SET_STATISTICS = "SET STATISTICS"
    ADD_CONSTRAINT = "ADD CONSTRAINT"
    VALIDATE_CONSTRAINT = "VALIDATE CONSTRAINT"
    DROP_CONSTRAINT = "DROP CONSTRAINT"
    RENAME = "RENAME"
    SET_TABLESPACE = "SET TABLESPACE"
    SET_LOGGED = "SET LOGGED"
    SET_UNLOGGED = "SET UNLOGGED"
    SET_WITH_OIDS = "SET WITH OIDS"
    OTHER = "OTHER"


class ConstraintType(enum.Enum):
    PRIMARY_KEY = "PRIMARY KEY"
    UNIQUE = "UNIQUE"
    FOREIGN_KEY = "FOREIGN KEY"
    CHECK = "CHECK"
    EXCLUDE = "EXCLUDE"
    NOT_NULL = "NOT NULL"


@dataclass(frozen=True)
class ConstraintDef:
    constraint_type: ConstraintType
    name: str = ""
    columns: tuple[str, ...] = ()
    ref_table: str = ""
    not_valid: bool = False
    using_index: str = ""


@dataclass(frozen=True)
class ColumnDef:
    name: str
    data_type: str = ""
    default_expr: str | None = None
    not_null: bool = False
    constraints: tuple[ConstraintDef, ...] = ()

    @property
    def is_serial(self) -> bool:
        return self.data_type.lower() in _SERIAL_TYPES

    @property
    def has_default(self) -> bool:
        """True when adding this column fills existing rows with a non-NULL value."""
        if self.is_serial:
            return True
        if self.default_expr is None:
            return False
        return not _is_null_expr(self.default_expr)

    @property
    def requires_not_null(self) -> bool:
        return (
            self.not_null
            or self.is_serial
            or any(c.constraint_type == ConstraintType.PRIMARY_KEY for c in self.constraints)
        )


_SERIAL_TYPES = frozenset({"serial", "serial4", "bigserial", "serial8", "smallserial", "serial2"})


def _is_null_expr(expr: str) -> bool:
    head = expr.strip().split("::", 1)[0].strip().strip("()").strip()
    return head.upper() == "NULL"


@dataclass(frozen=True)
class AlterAction:
    action: AlterActionType
    text: str = ""
    column: ColumnDef | None = None
    column_name: str = ""
    data_type: str = ""
    using: str = ""
    default_expr: str = ""
    constraint: ConstraintDef | None = None
    constraint_name: str = ""
    rename_kind: str = ""
    new_name: str = ""


@dataclass(frozen=True)
class AlterTableDetail:
    actions: tuple[AlterAction, ...] = ()
    only: bool = False
    if_exists: bool = False


@dataclass(frozen=True)
class CreateIndexDetail:
    name: str
    table: str
    unique: bool = False
    concurrently: bool = False
    if_not_exists: bool = False
    method: str = "btree"
    columns: tuple[str, ...] = ()
    where: str = ""


@dataclass(frozen=True)
class CreateTableDetail:
    name: str
    temporary: bool = False
    unlogged: bool = False
    if_not_exists: bool = False
    columns: tuple[ColumnDef, ...] = ()
    constraints: tuple[ConstraintDef, ...] = ()
    as_query: bool = False


@dataclass(frozen=True)
class DropDetail:
    object_type: str
    names: tuple[str, ...] = ()
    concurrently: bool = False
    if_exists: bool = False
    cascade: bool = False


@dataclass(frozen=True)
class SettingDetail:
    name: str
    value: str | None = None
    local: bool = False
    reset: bool = False


@dataclass(frozen=True)
class TableCommandDetail:
    """VACUUM, CLUSTER, REINDEX, TRUNCATE and LOCK share this shape."""

    tables: tuple[str, ...] = ()
    full: bool = False
    object_type: str = ""
    lock_mode: str = ""


@dataclass(frozen=True)
class AlterTypeDetail:
    name: str
    add_value: bool = False


StatementDetail = Union[
    AlterTableDetail,
    CreateIndexDetail,
    CreateTableDetail,
    DropDetail,
    SettingDetail,
    TableCommandDetail,
    AlterTypeDetail,
    None,
]


@dataclass(frozen=True)
class Statement:
    """One top-level statement of a migration script.

    ``OTHER`` statements are opaque: only their text and span are known.
    ``malformed`` statements had a lex or parse error and are never classified.
    """

    kind: StatementKind
    text: str
    span: SourceSpan
    target: str | None = None
    detail: StatementDetail = field(default=None, compare=False)
    malformed: bool = False

    @property
    def is_opaque(self) -> bool:
        return self.kind == StatementKind.OTHER or self.malformed

    @property
    def is_transaction_control(self) -> bool:
        return self.kind in TRANSACTION_CONTROL

    @property
    def is_schema_change(self) -> bool:
        """DDL that touches a relation; excludes SET, transaction control and opaque statements."""
        return not self.is_opaque and not self.is_transaction_control and self.kind != StatementKind.SET

    def snippet(self, width: int = 80) -> str:
        flat = " ".join(self.text.split())
        return flat if len(flat) <= width else flat[: width - 3] + "..."
