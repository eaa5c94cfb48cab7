"""Tests for sql_perf_linter.classifier and the 9.6 operation table."""

from __future__ import annotations

import pytest

from sql_perf_linter.classifier import classify
from sql_perf_linter.operations import OPERATION_METADATA, LockMode, OperationKind
from sql_perf_linter.parser import parse_script


def ops_for(sql):
    result = parse_script(sql)
    assert len(result.statements) == 1
    return classify(result.statements[0])


def kinds_for(sql):
    return [op.kind for op in ops_for(sql)]


class TestOperationTable:
    def test_every_kind_has_metadata(self):
        assert set(OPERATION_METADATA) == set(OperationKind)

    def test_rewrites_hold_access_exclusive(self):
        for kind, meta in OPERATION_METADATA.items():
            if meta.rewrites_table:
                assert meta.lock_mode == LockMode.ACCESS_EXCLUSIVE, kind

    def test_lock_mode_ordering(self):
        assert LockMode.ACCESS_SHARE < LockMode.SHARE_UPDATE_EXCLUSIVE < LockMode.SHARE
        assert LockMode.SHARE < LockMode.ACCESS_EXCLUSIVE
        assert not LockMode.SHARE_UPDATE_EXCLUSIVE.blocks_writes
        assert LockMode.SHARE.blocks_writes
        assert LockMode.ACCESS_EXCLUSIVE.blocks_writes

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("access exclusive", LockMode.ACCESS_EXCLUSIVE),
            ("SHARE_UPDATE_EXCLUSIVE", LockMode.SHARE_UPDATE_EXCLUSIVE),
            ("Share Lock", LockMode.SHARE),
        ],
    )
    def test_lock_mode_parse(self, text, expected):
        assert LockMode.parse(text) == expected

    def test_lock_mode_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown lock mode"):
            LockMode.parse("super exclusive")


class TestAddColumn:
    def test_nullable_no_default_is_metadata_only(self):
        (op,) = ops_for("ALTER TABLE t ADD COLUMN c int")
        assert op.kind == OperationKind.ADD_COLUMN
        assert not op.rewrites_table
        assert op.lock_mode == LockMode.ACCESS_EXCLUSIVE

    def test_non_null_default_rewrites(self):
        (op,) = ops_for("ALTER TABLE t ADD COLUMN c int NOT NULL DEFAULT 5")
        assert op.kind == OperationKind.ADD_COLUMN_WITH_DEFAULT
        assert op.rewrites_table
        assert op.target == "t"

    def test_default_null_does_not_rewrite(self):
        assert kinds_for("ALTER TABLE t ADD COLUMN c int DEFAULT NULL") == [OperationKind.ADD_COLUMN]

    def test_not_null_without_default(self):
        assert kinds_for("ALTER TABLE t ADD COLUMN c int NOT NULL") == [
            OperationKind.ADD_COLUMN_NOT_NULL_NO_DEFAULT
        ]

    def test_serial_rewrites(self):
        assert kinds_for("ALTER TABLE t ADD COLUMN id serial") == [OperationKind.ADD_COLUMN_WITH_DEFAULT]

    def test_inline_constraints_yield_their_own_operations(self):
        assert kinds_for("ALTER TABLE t ADD COLUMN u int REFERENCES users (id) CHECK (u > 0) UNIQUE") == [
            OperationKind.ADD_COLUMN,
            OperationKind.ADD_FOREIGN_KEY,
            OperationKind.ADD_CHECK_CONSTRAINT_VALIDATED,
            OperationKind.ADD_UNIQUE_CONSTRAINT,
        ]


class TestAlterTableClauses:
    def test_one_operation_per_clause(self):
        assert kinds_for(
            "ALTER TABLE t ALTER COLUMN a TYPE bigint, ALTER COLUMN b SET DEFAULT 0, "
            "ALTER COLUMN c DROP NOT NULL, SET TABLESPACE fast"
        ) == [
            OperationKind.ALTER_COLUMN_TYPE,
            OperationKind.ALTER_COLUMN_DEFAULT,
            OperationKind.DROP_NOT_NULL,
            OperationKind.SET_TABLESPACE,
        ]

    def test_set_not_null_scans(self):
        (op,) = ops_for("ALTER TABLE t ALTER COLUMN c SET NOT NULL")
        assert op.kind == OperationKind.SET_NOT_NULL
        assert op.scans_table
        assert not op.rewrites_table

    def test_set_statistics(self):
        (op,) = ops_for("ALTER TABLE t ALTER COLUMN c SET STATISTICS 500")
        assert op.lock_mode == LockMode.SHARE_UPDATE_EXCLUSIVE

    def test_unlogged_rewrites(self):
        (op,) = ops_for("ALTER TABLE t SET UNLOGGED")
        assert op.kind == OperationKind.SET_LOGGED
        assert op.rewrites_table

    def test_with_oids_is_its_own_kind(self):
        (op,) = ops_for("ALTER TABLE t SET WITH OIDS")
        assert op.kind == OperationKind.SET_WITH_OIDS
        assert op.rewrites_table
        assert op.lock_mode == LockMode.ACCESS_EXCLUSIVE

    @pytest.mark.parametrize(
        "clause, expected",
        [
            ("ADD CONSTRAINT fk FOREIGN KEY (a) REFERENCES b (id)", OperationKind.ADD_FOREIGN_KEY),
            ("ADD CONSTRAINT fk FOREIGN KEY (a) REFERENCES b (id) NOT VALID", OperationKind.ADD_FOREIGN_KEY_NOT_VALID),
            ("ADD CONSTRAINT ck CHECK (a > 0)", OperationKind.ADD_CHECK_CONSTRAINT_VALIDATED),
            ("ADD CONSTRAINT ck CHECK (a > 0) NOT VALID", OperationKind.ADD_CHECK_CONSTRAINT_NOT_VALID),
            ("ADD UNIQUE (a)", OperationKind.ADD_UNIQUE_CONSTRAINT),
            ("ADD PRIMARY KEY (a)", OperationKind.ADD_PRIMARY_KEY),
            ("ADD CONSTRAINT pk PRIMARY KEY USING INDEX t_pkey", OperationKind.ADD_CONSTRAINT_USING_INDEX),
            ("ADD CONSTRAINT ex EXCLUDE USING gist (r WITH &&)", OperationKind.ADD_EXCLUSION_CONSTRAINT),
            ("VALIDATE CONSTRAINT fk", OperationKind.VALIDATE_CONSTRAINT),
            ("DROP CONSTRAINT fk", OperationKind.DROP_CONSTRAINT),
            ("RENAME TO u", OperationKind.RENAME_OBJECT),
            ("OWNER TO admin", OperationKind.ALTER_TABLE_OTHER),
        ],
    )
    def test_constraint_and_misc_clauses(self, clause, expected):
        assert kinds_for(f"ALTER TABLE t {clause}") == [expected]

    def test_foreign_key_lock(self):
        (op,) = ops_for("ALTER TABLE t ADD FOREIGN KEY (a) REFERENCES b (id)")
        assert op.lock_mode == LockMode.SHARE_ROW_EXCLUSIVE
        assert op.scans_table

    def test_validate_constraint_lock(self):
        (op,) = ops_for("ALTER TABLE t VALIDATE CONSTRAINT fk")
        assert op.lock_mode == LockMode.SHARE_UPDATE_EXCLUSIVE

    def test_rename_detail(self):
        (op,) = ops_for("ALTER TABLE t RENAME COLUMN a TO b")
        assert op.detail == "column a to b"


class TestOtherStatements:
    def test_create_index(self):
        (op,) = ops_for("CREATE INDEX i ON t (c)")
        assert op.kind == OperationKind.CREATE_INDEX_PLAIN
        assert op.lock_mode == LockMode.SHARE
        assert op.transactional

    def test_create_index_concurrently(self):
        (op,) = ops_for("CREATE INDEX CONCURRENTLY i ON t (c)")
        assert op.kind == OperationKind.CREATE_INDEX_CONCURRENTLY
        assert op.lock_mode == LockMode.SHARE_UPDATE_EXCLUSIVE
        assert not op.transactional

    def test_drop_index_concurrently(self):
        (op,) = ops_for("DROP INDEX CONCURRENTLY i")
        assert op.kind == OperationKind.DROP_INDEX_CONCURRENTLY
        assert not op.transactional

    def test_vacuum(self):
        assert kinds_for("VACUUM t") == [OperationKind.VACUUM]
        (op,) = ops_for("VACUUM FULL t")
        assert op.kind == OperationKind.VACUUM_FULL
        assert op.rewrites_table
        assert not op.transactional

    def test_cluster(self):
        (op,) = ops_for("CLUSTER t USING t_idx")
        assert op.rewrites_table
        assert op.transactional
        (op,) = ops_for("CLUSTER")
        assert not op.transactional

    def test_reindex(self):
        (op,) = ops_for("REINDEX TABLE t")
        assert op.lock_mode == LockMode.SHARE
        assert op.transactional
        (op,) = ops_for("REINDEX DATABASE app")
        assert not op.transactional

    def test_lock_table_mode_override(self):
        (op,) = ops_for("LOCK TABLE t IN ROW EXCLUSIVE MODE")
        assert op.kind == OperationKind.LOCK_TABLE
        assert op.lock_mode == LockMode.ROW_EXCLUSIVE

    def test_alter_type_add_value(self):
        (op,) = ops_for("ALTER TYPE mood ADD VALUE 'meh'")
        assert op.kind == OperationKind.ALTER_TYPE_ADD_VALUE
        assert not op.transactional

    def test_create_table(self):
        assert kinds_for("CREATE TABLE t (id int)") == [OperationKind.CREATE_TABLE]

    @pytest.mark.parametrize("sql", ["BEGIN", "COMMIT", "SET lock_timeout = '1s'", "SELECT 1", "CREATE VIEW v AS SELECT 1"])
    def test_unclassified_statements_are_other(self, sql):
        assert kinds_for(sql) == [OperationKind.OTHER]

    def test_malformed_statement_is_other(self):
        result = parse_script("ALTER TABLE t;")
        assert [op.kind for op in classify(result.statements[0])] == [OperationKind.OTHER]
