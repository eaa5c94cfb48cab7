"""Canonical operation taxonomy with PostgreSQL 9.6 locking semantics.

Lock modes and rewrite behavior follow the 9.6 documentation for
``ALTER TABLE``, ``CREATE INDEX``, ``VACUUM``, ``CLUSTER``, ``REINDEX`` and
the "Explicit Locking" chapter. Every :class:`OperationKind` member must have
an entry in :data:`OPERATION_METADATA`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from sql_perf_linter.statements import Statement


class LockMode(enum.Enum):
    NONE = "NONE"
    ACCESS_SHARE = "ACCESS SHARE"
    ROW_SHARE = "ROW SHARE"
    ROW_EXCLUSIVE = "ROW EXCLUSIVE"
    SHARE_UPDATE_EXCLUSIVE = "SHARE UPDATE EXCLUSIVE"
    SHARE = "SHARE"
    SHARE_ROW_EXCLUSIVE = "SHARE ROW EXCLUSIVE"
    EXCLUSIVE = "EXCLUSIVE"
    ACCESS_EXCLUSIVE = "ACCESS EXCLUSIVE"

    @property
    def strength(self) -> int:
        return _LOCK_ORDER.index(self)

    def __lt__(self, other):
        return self.strength < other.strength

    @property
    def blocks_writes(self) -> bool:
        """SHARE and stronger conflict with ROW EXCLUSIVE (INSERT/UPDATE/DELETE)."""
        return self.strength >= LockMode.SHARE.strength

    @classmethod
    def parse(cls, value: str) -> LockMode:
        normalized = " ".join(value.replace("_", " ").upper().split())
        if normalized.endswith(" LOCK"):
            normalized = normalized[: -len(" LOCK")]
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown lock mode '{value}' (expected one of: {choices})") from None


_LOCK_ORDER = list(LockMode)


class OperationKind(enum.Enum):
    ADD_COLUMN = "AddColumn"
    ADD_COLUMN_WITH_DEFAULT = "AddColumnWithDefault"
    ADD_COLUMN_NOT_NULL_NO_DEFAULT = "AddColumnNotNullNoDefault"
    DROP_COLUMN = "DropColumn"
    ALTER_COLUMN_TYPE = "AlterColumnType"
    ALTER_COLUMN_DEFAULT = "AlterColumnDefault"
    SET_NOT_NULL = "SetNotNull"
    DROP_NOT_NULL = "DropNotNull"
    SET_STATISTICS = "SetStatistics"
    ADD_FOREIGN_KEY = "AddForeignKey"
    ADD_FOREIGN_KEY_NOT_VALID = "AddForeignKeyNotValid"
    ADD_CHECK_CONSTRAINT_VALIDATED = "AddCheckConstraintValidated"
    ADD_CHECK_CONSTRAINT_NOT_VALID = "AddCheckConstraintNotValid"
    ADD_UNIQUE_CONSTRAINT = "AddUniqueConstraint"
    ADD_PRIMARY_KEY = "AddPrimaryKey"
    ADD_CONSTRAINT_USING_INDEX = "AddConstraintUsingIndex"
    ADD_EXCLUSION_CONSTRAINT = "AddExclusionConstraint"
    VALIDATE_CONSTRAINT = "ValidateConstraint"
    DROP_CONSTRAINT = "DropConstraint"
    RENAME_OBJECT = "RenameObject"
    SET_TABLESPACE = "SetTablespace"
    SET_LOGGED = "SetLogged"
    SET_WITH_OIDS = "SetWithOids"
    ALTER_TABLE_OTHER = "AlterTableOther"
    CREATE_TABLE = "CreateTable"
    CREATE_INDEX_PLAIN = "CreateIndexPlain"
    CREATE_INDEX_CONCURRENTLY = "CreateIndexConcurrently"
    DROP_TABLE = "DropTable"
    DROP_INDEX = "DropIndex"
    DROP_INDEX_CONCURRENTLY = "DropIndexConcurrently"
    DROP_OTHER = "DropOther"
    TRUNCATE = "Truncate"
    VACUUM = "Vacuum"
    VACUUM_FULL = "VacuumFull"
    CLUSTER = "Cluster"
    REINDEX = "Reindex"
    LOCK_TABLE = "LockTable"
    ALTER_TYPE_ADD_VALUE = "AlterTypeAddValue"
    OTHER = "Other"

    @property
    def meta(self) -> OperationMeta:
        return OPERATION_METADATA[self]


@dataclass(frozen=True)
class OperationMeta:
    """Static 9.6 behavior of an operation.

    Attributes:
        lock_mode: Strongest table-level lock the operation acquires.
        rewrites_table: Every row is copied into a new heap under the lock.
        scans_table: The lock is held for a full scan or index build, so its
            duration grows with table size even without a rewrite.
        transactional: May run inside an explicit transaction block.
    """

    lock_mode: LockMode
    rewrites_table: bool = False
    scans_table: bool = False
    transactional: bool = True

    @property
    def long_running(self) -> bool:
        return self.rewrites_table or self.scans_table


_AE = LockMode.ACCESS_EXCLUSIVE

OPERATION_METADATA: dict[OperationKind, OperationMeta] = {
    OperationKind.ADD_COLUMN: OperationMeta(_AE),
    OperationKind.ADD_COLUMN_WITH_DEFAULT: OperationMeta(_AE, rewrites_table=True),
    OperationKind.ADD_COLUMN_NOT_NULL_NO_DEFAULT: OperationMeta(_AE),
    OperationKind.DROP_COLUMN: OperationMeta(_AE),
    OperationKind.ALTER_COLUMN_TYPE: OperationMeta(_AE, rewrites_table=True),
    OperationKind.ALTER_COLUMN_DEFAULT: OperationMeta(_AE),
    OperationKind.SET_NOT_NULL: OperationMeta(_AE, scans_table=True),
    OperationKind.DROP_NOT_NULL: OperationMeta(_AE),
    OperationKind.SET_STATISTICS: OperationMeta(LockMode.SHARE_UPDATE_EXCLUSIVE),
    OperationKind.ADD_FOREIGN_KEY: OperationMeta(LockMode.SHARE_ROW_EXCLUSIVE, scans_table=True),
    OperationKind.ADD_FOREIGN_KEY_NOT_VALID: OperationMeta(LockMode.SHARE_ROW_EXCLUSIVE),
    OperationKind.ADD_CHECK_CONSTRAINT_VALIDATED: OperationMeta(_AE, scans_table=True),
    OperationKind.ADD_CHECK_CONSTRAINT_NOT_VALID: OperationMeta(_AE),
    OperationKind.ADD_UNIQUE_CONSTRAINT: OperationMeta(_AE, scans_table=True),
    OperationKind.ADD_PRIMARY_KEY: OperationMeta(_AE, scans_table=True),
    OperationKind.ADD_CONSTRAINT_USING_INDEX: OperationMeta(_AE),
    OperationKind.ADD_EXCLUSION_CONSTRAINT: OperationMeta(_AE, scans_table=True),
    OperationKind.VALIDATE_CONSTRAINT: OperationMeta(LockMode.SHARE_UPDATE_EXCLUSIVE, scans_table=True),
    OperationKind.DROP_CONSTRAINT: OperationMeta(_AE),
    OperationKind.RENAME_OBJECT: OperationMeta(_AE),
    OperationKind.SET_TABLESPACE: OperationMeta(_AE, rewrites_table=True),
    OperationKind.SET_LOGGED: OperationMeta(_AE, rewrites_table=True),
    OperationKind.SET_WITH_OIDS: OperationMeta(_AE, rewrites_table=True),
    OperationKind.ALTER_TABLE_OTHER: OperationMeta(_AE),
    OperationKind.CREATE_TABLE: OperationMeta(_AE),
    OperationKind.CREATE_INDEX_PLAIN: OperationMeta(LockMode.SHARE, scans_table=True),
    OperationKind.CREATE_INDEX_CONCURRENTLY: OperationMeta(
        LockMode.SHARE_UPDATE_EXCLUSIVE, transactional=False
    ),
    OperationKind.DROP_TABLE: OperationMeta(_AE),
    OperationKind.DROP_INDEX: OperationMeta(_AE),
    OperationKind.DROP_INDEX_CONCURRENTLY: OperationMeta(
        LockMode.SHARE_UPDATE_EXCLUSIVE, transactional=False
    ),
    OperationKind.DROP_OTHER: OperationMeta(_AE),
    OperationKind.TRUNCATE: OperationMeta(_AE),
    OperationKind.VACUUM: OperationMeta(LockMode.SHARE_UPDATE_EXCLUSIVE, transactional=False),
    OperationKind.VACUUM_FULL: OperationMeta(_AE, rewrites_table=True, transactional=False),
    OperationKind.CLUSTER: OperationMeta(_AE, rewrites_table=True),
    OperationKind.REINDEX: OperationMeta(LockMode.SHARE, scans_table=True),
    OperationKind.LOCK_TABLE: OperationMeta(_AE),
    OperationKind.ALTER_TYPE_ADD_VALUE: OperationMeta(LockMode.NONE, transactional=False),
    OperationKind.OTHER: OperationMeta(LockMode.NONE),
}


@dataclass(frozen=True)
class Operation:
    """One classified unit of work inside a statement.

    A multi-clause ``ALTER TABLE`` yields one operation per clause. ``lock_mode``
    and ``transactional`` override the static metadata for statement forms
    whose behavior depends on their arguments (``LOCK ... IN x MODE``,
    ``CLUSTER`` without a table, ``REINDEX DATABASE``).
    """

    kind: OperationKind
    statement: Statement
    target: str | None = None
    detail: str = ""
    lock_mode_override: LockMode | None = None
    transactional_override: bool | None = None

    @property
    def meta(self) -> OperationMeta:
        return self.kind.meta

    @property
    def lock_mode(self) -> LockMode:
        return self.lock_mode_override or self.meta.lock_mode

    @property
    def rewrites_table(self) -> bool:
        return self.meta.rewrites_table

    @property
    def scans_table(self) -> bool:
        return self.meta.scans_table

    @property
    def transactional(self) -> bool:
        if self.transactional_override is not None:
            return self.transactional_override
        return self.meta.transactional
