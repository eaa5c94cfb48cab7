"""Tests for sql_perf_linter.parser: statement splitting, modeled forms, recovery."""

from __future__ import annotations

import pytest

from sql_perf_linter.errors import LexError, ParseError
from sql_perf_linter.parser import parse_script
from sql_perf_linter.statements import (
    AlterActionType,
    ConstraintType,
    StatementKind,
)


def parse_one(sql):
    result = parse_script(sql)
    assert not result.errors, result.errors
    assert len(result.statements) == 1
    return result.statements[0]


VALID_SCRIPT = """
-- 0042_orders.sql
SET lock_timeout = '5s';
BEGIN;
CREATE TABLE orders (
    id bigserial PRIMARY KEY,
    user_id int NOT NULL REFERENCES users (id) ON DELETE SET NULL,
    note text DEFAULT 'a;b',
    CONSTRAINT orders_note_chk CHECK (char_length(note) < 500)
);
CREATE UNIQUE INDEX CONCURRENTLY IF NOT EXISTS orders_user_idx ON orders USING btree (user_id) WHERE note IS NOT NULL;
ALTER TABLE ONLY public.orders ADD COLUMN total numeric(10, 2), DROP COLUMN IF EXISTS legacy;
CREATE FUNCTION touch() RETURNS trigger AS $$
BEGIN
    NEW.updated_at := now();
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;
/* block ; comment */
DROP INDEX CONCURRENTLY IF EXISTS old_idx;
COMMIT;
VACUUM (FULL, ANALYZE) orders;
"""


class TestSplitting:
    def test_valid_script_statement_count(self):
        result = parse_script(VALID_SCRIPT)
        assert result.errors == []
        assert len(result.statements) == 9

    def test_statement_kinds(self):
        result = parse_script(VALID_SCRIPT)
        assert [s.kind for s in result.statements] == [
            StatementKind.SET,
            StatementKind.BEGIN,
            StatementKind.CREATE_TABLE,
            StatementKind.CREATE_INDEX,
            StatementKind.ALTER_TABLE,
            StatementKind.OTHER,
            StatementKind.DROP_INDEX,
            StatementKind.COMMIT,
            StatementKind.VACUUM,
        ]

    def test_spans_increase_and_do_not_overlap(self):
        statements = parse_script(VALID_SCRIPT).statements
        for prev, cur in zip(statements, statements[1:]):
            assert prev.span.end <= cur.span.start

    def test_last_statement_without_semicolon(self):
        result = parse_script("BEGIN; COMMIT")
        assert [s.kind for s in result.statements] == [StatementKind.BEGIN, StatementKind.COMMIT]

    def test_empty_statements_skipped(self):
        result = parse_script(";;  ; BEGIN;;")
        assert len(result.statements) == 1

    def test_empty_input(self):
        result = parse_script("  -- nothing here\n")
        assert result.statements == []
        assert result.errors == []

    def test_create_rule_with_nested_semicolons(self):
        sql = (
            "CREATE RULE r AS ON INSERT TO t DO INSTEAD "
            "(INSERT INTO a VALUES (1); INSERT INTO b VALUES (2));"
        )
        stmt = parse_one(sql)
        assert stmt.kind == StatementKind.OTHER

    def test_span_line_and_column(self):
        result = parse_script("BEGIN;\n  CREATE INDEX i ON t (c);")
        span = result.statements[1].span
        assert (span.line, span.column) == (2, 3)

    def test_statement_text_includes_terminator(self):
        stmt = parse_one("  VACUUM t ;")
        assert stmt.text == "VACUUM t ;"


class TestTransactionControl:
    def test_begin_variants(self):
        for sql in ("BEGIN", "BEGIN WORK", "START TRANSACTION", "BEGIN ISOLATION LEVEL SERIALIZABLE"):
            assert parse_one(sql).kind == StatementKind.BEGIN, sql

    def test_commit_variants(self):
        for sql in ("COMMIT", "COMMIT WORK", "END", "END TRANSACTION", "PREPARE TRANSACTION 'x'"):
            assert parse_one(sql).kind == StatementKind.COMMIT, sql

    def test_rollback_variants(self):
        for sql in ("ROLLBACK", "ABORT", "ROLLBACK AND NO CHAIN"):
            assert parse_one(sql).kind == StatementKind.ROLLBACK, sql

    def test_rollback_to_savepoint_is_opaque(self):
        assert parse_one("ROLLBACK TO SAVEPOINT s1").kind == StatementKind.OTHER

    def test_commit_prepared_is_opaque(self):
        assert parse_one("COMMIT PREPARED 'x'").kind == StatementKind.OTHER

    def test_trailing_junk_after_commit(self):
        result = parse_script("COMMIT foo;")
        assert len(result.errors) == 1
        assert isinstance(result.errors[0], ParseError)
        assert result.statements[0].malformed


class TestSet:
    def test_set_equals(self):
        stmt = parse_one("SET lock_timeout = '5s'")
        assert stmt.kind == StatementKind.SET
        assert stmt.detail.name == "lock_timeout"
        assert stmt.detail.value == "5s"
        assert not stmt.detail.local

    def test_set_local_to(self):
        stmt = parse_one("SET LOCAL statement_timeout TO 0")
        assert stmt.detail.local
        assert stmt.detail.value == "0"

    def test_set_default_is_reset(self):
        assert parse_one("SET lock_timeout TO DEFAULT").detail.reset

    def test_reset(self):
        stmt = parse_one("RESET lock_timeout")
        assert stmt.detail.reset
        assert stmt.detail.name == "lock_timeout"

    def test_reset_all(self):
        assert parse_one("RESET ALL").detail.name == "all"

    def test_set_time_zone(self):
        assert parse_one("SET TIME ZONE 'UTC'").detail.name == "timezone"

    def test_set_timezone_to(self):
        stmt = parse_one("SET timezone TO 'UTC'")
        assert stmt.detail.name == "timezone"
        assert stmt.detail.value == "UTC"

    @pytest.mark.parametrize(
        "sql, name, value",
        [
            ("SET NAMES 'UTF8'", "client_encoding", "UTF8"),
            ("SET SCHEMA 'public'", "search_path", "public"),
            ("SET XML OPTION DOCUMENT", "xmloption", "DOCUMENT"),
            ("SET SESSION XML OPTION CONTENT", "xmloption", "CONTENT"),
        ],
    )
    def test_keyword_forms(self, sql, name, value):
        result = parse_script(sql + ";")
        assert result.errors == []
        (stmt,) = result.statements
        assert stmt.kind == StatementKind.SET
        assert stmt.detail.name == name
        assert stmt.detail.value == value

    def test_set_transaction_is_opaque(self):
        assert parse_one("SET TRANSACTION ISOLATION LEVEL SERIALIZABLE").kind == StatementKind.OTHER

    def test_set_without_value_is_error(self):
        result = parse_script("SET lock_timeout;")
        assert len(result.errors) == 1
        assert result.statements[0].malformed


class TestAlterTable:
    def test_multiple_actions(self):
        stmt = parse_one("ALTER TABLE t ADD COLUMN a int, DROP COLUMN b, ALTER COLUMN c SET NOT NULL")
        actions = [a.action for a in stmt.detail.actions]
        assert actions == [
            AlterActionType.ADD_COLUMN,
            AlterActionType.DROP_COLUMN,
            AlterActionType.SET_NOT_NULL,
        ]
        assert stmt.target == "t"

    def test_add_column_with_default(self):
        stmt = parse_one("ALTER TABLE t ADD COLUMN c int NOT NULL DEFAULT 5")
        column = stmt.detail.actions[0].column
        assert column.name == "c"
        assert column.data_type == "int"
        assert column.default_expr == "5"
        assert column.not_null
        assert column.has_default

    def test_default_null_is_no_default(self):
        column = parse_one("ALTER TABLE t ADD c int DEFAULT NULL").detail.actions[0].column
        assert column.default_expr == "NULL"
        assert not column.has_default

    def test_default_expression_with_function_call(self):
        column = parse_one("ALTER TABLE t ADD c timestamptz DEFAULT now() NOT NULL").detail.actions[0].column
        assert column.default_expr == "now()"
        assert column.not_null

    def test_serial_counts_as_default(self):
        column = parse_one("ALTER TABLE t ADD COLUMN id bigserial").detail.actions[0].column
        assert column.is_serial
        assert column.has_default

    def test_inline_references(self):
        column = parse_one(
            "ALTER TABLE t ADD COLUMN user_id int REFERENCES users (id) ON DELETE SET NULL"
        ).detail.actions[0].column
        assert [c.constraint_type for c in column.constraints] == [ConstraintType.FOREIGN_KEY]
        assert column.constraints[0].ref_table == "users"

    def test_alter_column_type_using(self):
        action = parse_one("ALTER TABLE t ALTER COLUMN c TYPE bigint USING c::bigint").detail.actions[0]
        assert action.action == AlterActionType.ALTER_COLUMN_TYPE
        assert action.data_type == "bigint"
        assert action.using == "c::bigint"

    def test_set_data_type(self):
        action = parse_one("ALTER TABLE t ALTER c SET DATA TYPE varchar(20)").detail.actions[0]
        assert action.action == AlterActionType.ALTER_COLUMN_TYPE
        assert action.data_type == "varchar(20)"

    def test_foreign_key_not_valid(self):
        action = parse_one(
            "ALTER TABLE orders ADD CONSTRAINT fk FOREIGN KEY (user_id) REFERENCES users (id) NOT VALID"
        ).detail.actions[0]
        assert action.action == AlterActionType.ADD_CONSTRAINT
        constraint = action.constraint
        assert constraint.constraint_type == ConstraintType.FOREIGN_KEY
        assert constraint.name == "fk"
        assert constraint.columns == ("user_id",)
        assert constraint.ref_table == "users"
        assert constraint.not_valid

    def test_unique_using_index(self):
        constraint = parse_one(
            "ALTER TABLE t ADD CONSTRAINT t_u UNIQUE USING INDEX t_u_idx"
        ).detail.actions[0].constraint
        assert constraint.constraint_type == ConstraintType.UNIQUE
        assert constraint.using_index == "t_u_idx"

    def test_rename_column(self):
        action = parse_one("ALTER TABLE t RENAME COLUMN a TO b").detail.actions[0]
        assert action.action == AlterActionType.RENAME
        assert (action.rename_kind, action.column_name, action.new_name) == ("column", "a", "b")

    def test_qualified_and_quoted_names(self):
        stmt = parse_one('ALTER TABLE IF EXISTS Public."Orders" DROP COLUMN x')
        assert stmt.target == "public.Orders"
        assert stmt.detail.if_exists

    def test_missing_action_is_error(self):
        result = parse_script("ALTER TABLE t;")
        assert len(result.errors) == 1
        assert result.statements[0].malformed
        assert result.statements[0].kind == StatementKind.OTHER

    def test_alter_type_add_value(self):
        stmt = parse_one("ALTER TYPE mood ADD VALUE 'meh'")
        assert stmt.kind == StatementKind.ALTER_TYPE
        assert stmt.detail.add_value


class TestCreate:
    def test_create_index(self):
        stmt = parse_one("CREATE UNIQUE INDEX CONCURRENTLY idx ON public.t USING gin (a, lower(b)) WHERE a > 0")
        d = stmt.detail
        assert stmt.kind == StatementKind.CREATE_INDEX
        assert stmt.target == "public.t"
        assert (d.name, d.unique, d.concurrently, d.method) == ("idx", True, True, "gin")
        assert d.columns == ("a", "lower(b)")
        assert d.where == "a > 0"

    def test_create_index_without_name(self):
        stmt = parse_one("CREATE INDEX ON t (c)")
        assert stmt.detail.name == ""
        assert stmt.target == "t"

    def test_create_index_missing_on_is_error(self):
        result = parse_script("CREATE INDEX idx t (c);")
        assert len(result.errors) == 1
        assert isinstance(result.errors[0], ParseError)
        assert result.statements[0].malformed

    def test_create_table(self):
        stmt = parse_one(
            "CREATE TABLE IF NOT EXISTS t (id serial PRIMARY KEY, name text NOT NULL, UNIQUE (name))"
        )
        d = stmt.detail
        assert stmt.kind == StatementKind.CREATE_TABLE
        assert d.if_not_exists
        assert [c.name for c in d.columns] == ["id", "name"]
        assert {c.constraint_type for c in d.constraints} == {ConstraintType.PRIMARY_KEY, ConstraintType.UNIQUE}

    def test_create_temp_table_as(self):
        stmt = parse_one("CREATE TEMP TABLE t AS SELECT 1")
        assert stmt.detail.temporary
        assert stmt.detail.as_query

    def test_unmodeled_create_is_opaque(self):
        assert parse_one("CREATE VIEW v AS SELECT 1").kind == StatementKind.OTHER


class TestDropAndMaintenance:
    def test_drop_table(self):
        stmt = parse_one("DROP TABLE IF EXISTS a, b CASCADE")
        assert stmt.kind == StatementKind.DROP_TABLE
        assert stmt.detail.names == ("a", "b")
        assert stmt.detail.if_exists and stmt.detail.cascade

    def test_drop_index_concurrently(self):
        stmt = parse_one("DROP INDEX CONCURRENTLY idx")
        assert stmt.kind == StatementKind.DROP_INDEX
        assert stmt.detail.concurrently

    def test_drop_other(self):
        stmt = parse_one("DROP MATERIALIZED VIEW mv")
        assert stmt.kind == StatementKind.DROP_OTHER
        assert stmt.detail.object_type == "MATERIALIZED VIEW"

    def test_vacuum_full(self):
        stmt = parse_one("VACUUM FULL VERBOSE t")
        assert stmt.detail.full
        assert stmt.target == "t"

    def test_vacuum_option_list(self):
        assert parse_one("VACUUM (VERBOSE, FULL) t").detail.full

    def test_plain_vacuum(self):
        assert not parse_one("VACUUM ANALYZE t").detail.full

    def test_cluster_old_syntax(self):
        stmt = parse_one("CLUSTER idx ON t")
        assert stmt.kind == StatementKind.CLUSTER
        assert stmt.target == "t"

    def test_cluster_all(self):
        stmt = parse_one("CLUSTER")
        assert stmt.detail.tables == ()

    def test_reindex(self):
        stmt = parse_one("REINDEX DATABASE app")
        assert stmt.detail.object_type == "DATABASE"

    def test_lock_mode(self):
        stmt = parse_one("LOCK TABLE t IN SHARE ROW EXCLUSIVE MODE NOWAIT")
        assert stmt.kind == StatementKind.LOCK_TABLE
        assert stmt.detail.lock_mode == "SHARE ROW EXCLUSIVE"

    def test_lock_default_mode(self):
        assert parse_one("LOCK t").detail.lock_mode == "ACCESS EXCLUSIVE"

    def test_truncate(self):
        stmt = parse_one("TRUNCATE TABLE a, b")
        assert stmt.detail.tables == ("a", "b")


class TestRecovery:
    def test_lex_error_marks_statement_malformed_and_continues(self):
        result = parse_script("ALTER TABLE t ADD COLUMN `c` int;\nCREATE INDEX i ON t (c);")
        assert len(result.statements) == 2
        assert result.statements[0].malformed
        assert result.statements[1].kind == StatementKind.CREATE_INDEX
        assert [type(e) for e in result.errors] == [LexError, LexError]

    def test_unbalanced_parentheses(self):
        result = parse_script("CREATE INDEX i ON t (c;\nCREATE INDEX j ON t (d);")
        assert len(result.statements) == 2
        assert result.statements[0].malformed
        assert result.statements[1].kind == StatementKind.CREATE_INDEX
        assert len(result.errors) == 1
        assert "unbalanced" in result.errors[0].message

    def test_unterminated_string_stops_parsing(self):
        sql = "CREATE INDEX i ON t (c);\nSELECT 'oops;\nCREATE INDEX j ON t (d);"
        result = parse_script(sql)
        assert [s.kind for s in result.statements] == [StatementKind.CREATE_INDEX]
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.fatal
        assert error.start == sql.index("'")
