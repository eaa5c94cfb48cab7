"""Parse a migration script into an ordered list of :class:`Statement` objects.

Parsing is partial. The DDL forms that matter for lock analysis
(``ALTER TABLE``, ``CREATE INDEX``, ``CREATE TABLE``, ``DROP``, ``SET``,
transaction control and the maintenance commands) are modeled; everything
else becomes an opaque ``OTHER`` statement carrying only its text and span.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from sql_perf_linter.errors import LexError, LintError, ParseError
from sql_perf_linter.lexer import Lexer, Token, TokenKind
from sql_perf_linter.models import SourceMap, SourceSpan
from sql_perf_linter.statements import (
    AlterAction,
    AlterActionType,
    AlterTableDetail,
    AlterTypeDetail,
    ColumnDef,
    ConstraintDef,
    ConstraintType,
    CreateIndexDetail,
    CreateTableDetail,
    DropDetail,
    SettingDetail,
    Statement,
    StatementKind,
    TableCommandDetail,
)

logger = logging.getLogger(__name__)


@dataclass
class ParseResult:
    statements: list[Statement] = field(default_factory=list)
    errors: list[LintError] = field(default_factory=list)
    source: SourceMap | None = None


def parse_script(text: str) -> ParseResult:
    """Parse ``text`` into statements, collecting lex and parse errors."""
    return ScriptParser(text).parse()


class ScriptParser:
    """Split a token stream at top-level semicolons and parse each statement."""

    def __init__(self, text: str):
        self.text = text
        self.source = SourceMap(text)
        self.lexer = Lexer(text)
        self._lex_errors_seen = 0

    def parse(self) -> ParseResult:
        result = ParseResult(source=self.source)
        try:
            for tokens, terminator, depth in self._split(self.lexer.tokens()):
                self._emit(result, tokens, terminator, depth)
        except ParseError as exc:
            # Raised by the lexer: nothing after the opening delimiter is usable.
            result.errors.extend(self._drain_lex_errors())
            result.errors.append(exc)
            logger.debug("fatal parse error at offset %d: %s", exc.start, exc.message)
        return result

    def _split(self, tokens: Iterable[Token]) -> Iterator[tuple[list[Token], Token | None, int]]:
        current: list[Token] = []
        depth = 0
        for tok in tokens:
            if tok.is_punct("("):
                depth += 1
            elif tok.is_punct(")"):
                depth -= 1
            elif tok.is_punct(";"):
                if depth > 0 and _is_create_rule(current):
                    current.append(tok)
                    continue
                yield current, tok, depth
                current = []
                depth = 0
                continue
            current.append(tok)
        if current:
            yield current, None, depth

    def _drain_lex_errors(self) -> list[LexError]:
        new = self.lexer.errors[self._lex_errors_seen :]
        self._lex_errors_seen = len(self.lexer.errors)
        return new

    def _emit(
        self, result: ParseResult, tokens: list[Token], terminator: Token | None, depth: int
    ) -> None:
        lex_errors = self._drain_lex_errors()
        if not tokens:
            return
        start = tokens[0].start
        end = terminator.end if terminator is not None else tokens[-1].end
        span = self.source.span(start, end)
        text = self.text[start:end]

        error: ParseError | None = None
        if depth != 0:
            error = ParseError("unbalanced parentheses in statement", start=start, end=end)

        statement = None
        if not lex_errors and error is None:
            try:
                statement = _StatementParser(tokens, self.text, text, span).parse()
            except ParseError as exc:
                # Sub-cursors over an empty token run report offset 0
                error = ParseError(exc.message, start=min(max(exc.start, start), end), end=end)

        if statement is None:
            statement = Statement(
                kind=StatementKind.OTHER, text=text, span=span, malformed=True
            )
        result.errors.extend(lex_errors)
        if error is not None:
            result.errors.append(error)
        result.statements.append(statement)


def _is_create_rule(tokens: list[Token]) -> bool:
    words = [t for t in tokens[:5] if t.is_name]
    if len(words) < 2 or not words[0].is_word("CREATE"):
        return False
    if words[1].is_word("RULE"):
        return True
    return len(words) >= 4 and words[1].is_word("OR") and words[3].is_word("RULE")


# ---------------------------------------------------------------------------
# Token cursor
# ---------------------------------------------------------------------------

_CONSTRAINT_START = ("CONSTRAINT", "PRIMARY", "UNIQUE", "CHECK", "FOREIGN", "EXCLUDE")

_COLUMN_CONSTRAINT_WORDS = (
    "CONSTRAINT",
    "NOT",
    "NULL",
    "DEFAULT",
    "CHECK",
    "UNIQUE",
    "PRIMARY",
    "REFERENCES",
    "COLLATE",
    "DEFERRABLE",
    "INITIALLY",
)


class _Cursor:
    def __init__(self, tokens: list[Token], script: str):
        self.tokens = tokens
        self.script = script
        self.pos = 0

    def peek(self, offset: int = 0) -> Token | None:
        idx = self.pos + offset
        return self.tokens[idx] if idx < len(self.tokens) else None

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def _error_pos(self) -> int:
        tok = self.peek()
        if tok is not None:
            return tok.start
        return self.tokens[-1].end if self.tokens else 0

    def error(self, message: str) -> ParseError:
        return ParseError(message, start=self._error_pos())

    def next(self) -> Token:
        tok = self.peek()
        if tok is None:
            raise self.error("unexpected end of statement")
        self.pos += 1
        return tok

    def peek_word(self, *words: str, offset: int = 0) -> bool:
        tok = self.peek(offset)
        return tok is not None and tok.is_word(*words)

    def accept(self, *words: str) -> Token | None:
        if self.peek_word(*words):
            return self.next()
        return None

    def accept_seq(self, *words: str) -> bool:
        for i, word in enumerate(words):
            if not self.peek_word(word, offset=i):
                return False
        self.pos += len(words)
        return True

    def expect(self, *words: str) -> Token:
        tok = self.accept(*words)
        if tok is None:
            found = self.peek()
            got = f"'{found.text}'" if found is not None else "end of statement"
            raise self.error(f"expected {' or '.join(words)}, found {got}")
        return tok

    def accept_punct(self, *chars: str) -> Token | None:
        tok = self.peek()
        if tok is not None and tok.is_punct(*chars):
            self.pos += 1
            return tok
        return None

    def name_part(self, what: str = "name") -> str:
        tok = self.peek()
        if tok is None or not tok.is_name:
            raise self.error(f"expected {what}")
        self.pos += 1
        return tok.value if tok.quoted else tok.value.lower()

    def qualified_name(self, what: str = "name") -> str:
        parts = [self.name_part(what)]
        while self.peek() is not None and self.peek().is_punct(".") and self._name_follows():
            self.pos += 1
            parts.append(self.name_part(what))
        return ".".join(parts)

    def _name_follows(self) -> bool:
        tok = self.peek(1)
        return tok is not None and tok.is_name

    def group(self) -> list[Token]:
        """Consume a balanced parenthesized group and return the tokens inside it."""
        if self.accept_punct("(") is None:
            raise self.error("expected '('")
        start = self.pos
        depth = 1
        while not self.at_end:
            tok = self.next()
            if tok.is_punct("("):
                depth += 1
            elif tok.is_punct(")"):
                depth -= 1
                if depth == 0:
                    return self.tokens[start : self.pos - 1]
        raise self.error("unbalanced parentheses")

    def take_until(self, stop, first_may_stop: bool = True) -> list[Token]:
        """Consume tokens up to (not including) the first depth-0 token matching ``stop``."""
        taken: list[Token] = []
        depth = 0
        while not self.at_end:
            tok = self.peek()
            if depth == 0 and (taken or first_may_stop) and stop(self, tok):
                break
            if tok.is_punct("("):
                depth += 1
            elif tok.is_punct(")"):
                depth -= 1
            taken.append(self.next())
        return taken

    def rest(self) -> list[Token]:
        taken = self.tokens[self.pos :]
        self.pos = len(self.tokens)
        return taken

    def text_of(self, tokens: list[Token]) -> str:
        if not tokens:
            return ""
        return self.script[tokens[0].start : tokens[-1].end]


def _split_commas(tokens: list[Token]) -> list[list[Token]]:
    parts: list[list[Token]] = []
    current: list[Token] = []
    depth = 0
    for tok in tokens:
        if tok.is_punct("("):
            depth += 1
        elif tok.is_punct(")"):
            depth -= 1
        elif tok.is_punct(",") and depth == 0:
            parts.append(current)
            current = []
            continue
        current.append(tok)
    if current:
        parts.append(current)
    return parts


def _has_word_seq(tokens: list[Token], *words: str) -> bool:
    depth = 0
    for i, tok in enumerate(tokens):
        if tok.is_punct("("):
            depth += 1
        elif tok.is_punct(")"):
            depth -= 1
        elif depth == 0 and all(
            i + j < len(tokens) and tokens[i + j].is_word(w) for j, w in enumerate(words)
        ):
            return True
    return False


def _literal_value(tokens: list[Token], cursor: _Cursor) -> str:
    if len(tokens) == 1 and tokens[0].kind in (TokenKind.LITERAL, TokenKind.IDENTIFIER, TokenKind.KEYWORD):
        return tokens[0].value if tokens[0].kind == TokenKind.LITERAL else tokens[0].text
    return cursor.text_of(tokens)


# ---------------------------------------------------------------------------
# Statement parser
# ---------------------------------------------------------------------------


class _StatementParser:
    def __init__(self, tokens: list[Token], script: str, text: str, span: SourceSpan):
        self.c = _Cursor(tokens, script)
        self.text = text
        self.span = span

    def _make(self, kind: StatementKind, target: str | None = None, detail=None) -> Statement:
        return Statement(kind=kind, text=self.text, span=self.span, target=target, detail=detail)

    def _opaque(self) -> Statement:
        return self._make(StatementKind.OTHER)

    def parse(self) -> Statement:
        c = self.c
        head = c.peek()
        if head is None or not head.is_name:
            return self._opaque()
        word = head.value.upper()
        handler = getattr(self, f"_parse_{word.lower()}", None)
        if handler is None:
            return self._opaque()
        return handler()

    # -- transaction control -------------------------------------------------

    def _parse_begin(self) -> Statement:
        self.c.next()
        return self._make(StatementKind.BEGIN)

    def _parse_start(self) -> Statement:
        c = self.c
        c.next()
        if not c.accept("TRANSACTION"):
            return self._opaque()
        return self._make(StatementKind.BEGIN)

    def _finish_txn(self, kind: StatementKind) -> Statement:
        c = self.c
        c.next()
        if c.peek_word("PREPARED"):
            return self._opaque()
        c.accept("WORK", "TRANSACTION")
        if kind == StatementKind.ROLLBACK and c.peek_word("TO"):
            return self._opaque()  # ROLLBACK TO SAVEPOINT keeps the block open
        if not c.accept_seq("AND", "NO", "CHAIN"):
            c.accept_seq("AND", "CHAIN")
        if not c.at_end and not c.peek().is_punct(";"):
            raise c.error(f"unexpected '{c.peek().text}' after {kind.value}")
        return self._make(kind)

    def _parse_commit(self) -> Statement:
        return self._finish_txn(StatementKind.COMMIT)

    def _parse_end(self) -> Statement:
        return self._finish_txn(StatementKind.COMMIT)

    def _parse_rollback(self) -> Statement:
        return self._finish_txn(StatementKind.ROLLBACK)

    def _parse_abort(self) -> Statement:
        return self._finish_txn(StatementKind.ROLLBACK)

    def _parse_prepare(self) -> Statement:
        c = self.c
        c.next()
        if c.accept("TRANSACTION"):
            return self._make(StatementKind.COMMIT)
        return self._opaque()

    # -- settings ------------------------------------------------------------

    def _parse_set(self) -> Statement:
        c = self.c
        c.next()
        local = False
        if c.accept("LOCAL"):
            local = True
        elif c.peek_word("SESSION") and not c.peek_word("AUTHORIZATION", "CHARACTERISTICS", offset=1):
            c.next()
        if c.peek_word("TRANSACTION", "CONSTRAINTS", "SESSION"):
            return self._opaque()
        # Keyword forms take their value directly, without TO or =
        keyword_form = True
        if c.accept_seq("TIME", "ZONE"):
            name = "timezone"
        elif c.accept_seq("XML", "OPTION"):
            name = "xmloption"
        elif c.accept("NAMES"):
            name = "client_encoding"
        elif c.accept("SCHEMA"):
            name = "search_path"
        elif c.peek() is not None and c.peek().is_name:
            name = c.qualified_name("setting name")
            keyword_form = name == "role"
        else:
            raise c.error("expected setting name after SET")
        if not keyword_form and not (c.accept("TO") or c.accept_punct("=")):
            raise c.error(f"expected TO or = after SET {name}")
        value_tokens = c.rest()
        if value_tokens and value_tokens[-1].is_punct(";"):
            value_tokens = value_tokens[:-1]
        if not value_tokens:
            raise c.error(f"expected a value for SET {name}")
        if len(value_tokens) == 1 and value_tokens[0].is_word("DEFAULT"):
            detail = SettingDetail(name=name, local=local, reset=True)
        else:
            detail = SettingDetail(name=name, value=_literal_value(value_tokens, c), local=local)
        return self._make(StatementKind.SET, target=name, detail=detail)

    def _parse_reset(self) -> Statement:
        c = self.c
        c.next()
        if c.accept("ALL"):
            name = "all"
        elif c.accept_seq("TIME", "ZONE"):
            name = "timezone"
        else:
            name = c.qualified_name("setting name")
        return self._make(StatementKind.SET, target=name, detail=SettingDetail(name=name, reset=True))

    # -- ALTER -----------------------------------------------------------------

    def _parse_alter(self) -> Statement:
        c = self.c
        c.next()
        if c.accept("TABLE"):
            return self._alter_table()
        if c.accept("TYPE"):
            name = c.qualified_name("type name")
            add_value = c.accept_seq("ADD", "VALUE")
            return self._make(
                StatementKind.ALTER_TYPE, target=name, detail=AlterTypeDetail(name=name, add_value=add_value)
            )
        return self._opaque()

    def _alter_table(self) -> Statement:
        c = self.c
        if_exists = c.accept_seq("IF", "EXISTS")
        if c.peek_word("ALL") and c.peek_word("IN", offset=1):
            return self._opaque()
        only = c.accept("ONLY") is not None
        name = c.qualified_name("table name")
        c.accept_punct("*")
        body = c.rest()
        if not body or (len(body) == 1 and body[0].is_punct(";")):
            raise ParseError(f"expected an action after ALTER TABLE {name}", start=self.span.end)
        if body[-1].is_punct(";"):
            body = body[:-1]
        actions = tuple(self._alter_action(chunk) for chunk in _split_commas(body))
        detail = AlterTableDetail(actions=actions, only=only, if_exists=if_exists)
        return self._make(StatementKind.ALTER_TABLE, target=name, detail=detail)

    def _alter_action(self, tokens: list[Token]) -> AlterAction:
        c = _Cursor(tokens, self.c.script)
        text = c.text_of(tokens)
        if c.accept("ADD"):
            if c.peek_word(*_CONSTRAINT_START):
                return AlterAction(AlterActionType.ADD_CONSTRAINT, text, constraint=self._table_constraint(c))
            c.accept("COLUMN")
            c.accept_seq("IF", "NOT", "EXISTS")
            column = self._column_def(c)
            return AlterAction(AlterActionType.ADD_COLUMN, text, column=column, column_name=column.name)
        if c.accept("DROP"):
            if c.accept("CONSTRAINT"):
                c.accept_seq("IF", "EXISTS")
                return AlterAction(
                    AlterActionType.DROP_CONSTRAINT, text, constraint_name=c.name_part("constraint name")
                )
            c.accept("COLUMN")
            c.accept_seq("IF", "EXISTS")
            return AlterAction(AlterActionType.DROP_COLUMN, text, column_name=c.name_part("column name"))
        if c.accept("ALTER"):
            if c.accept("CONSTRAINT"):
                return AlterAction(AlterActionType.OTHER, text, constraint_name=c.name_part("constraint name"))
            c.accept("COLUMN")
            column_name = c.name_part("column name")
            return self._alter_column(c, text, column_name)
        if c.accept("VALIDATE"):
            c.expect("CONSTRAINT")
            return AlterAction(
                AlterActionType.VALIDATE_CONSTRAINT, text, constraint_name=c.name_part("constraint name")
            )
        if c.accept("RENAME"):
            if c.accept("TO"):
                return AlterAction(AlterActionType.RENAME, text, rename_kind="table", new_name=c.name_part())
            if c.accept("CONSTRAINT"):
                old = c.name_part("constraint name")
                c.expect("TO")
                return AlterAction(
                    AlterActionType.RENAME, text, rename_kind="constraint",
                    constraint_name=old, new_name=c.name_part(),
                )
            c.accept("COLUMN")
            old = c.name_part("column name")
            c.expect("TO")
            return AlterAction(
                AlterActionType.RENAME, text, rename_kind="column", column_name=old, new_name=c.name_part()
            )
        if c.accept("SET"):
            if c.accept("TABLESPACE"):
                return AlterAction(AlterActionType.SET_TABLESPACE, text, new_name=c.name_part("tablespace"))
            if c.accept("LOGGED"):
                return AlterAction(AlterActionType.SET_LOGGED, text)
            if c.accept("UNLOGGED"):
                return AlterAction(AlterActionType.SET_UNLOGGED, text)
            if c.accept_seq("WITH", "OIDS"):
                return AlterAction(AlterActionType.SET_WITH_OIDS, text)
            if c.accept("SCHEMA"):
                return AlterAction(AlterActionType.RENAME, text, rename_kind="schema", new_name=c.name_part())
        if c.at_end:
            raise c.error("expected an ALTER TABLE action")
        return AlterAction(AlterActionType.OTHER, text)

    def _alter_column(self, c: _Cursor, text: str, column_name: str) -> AlterAction:
        if c.accept_seq("SET", "DATA", "TYPE") or c.accept("TYPE"):
            type_tokens = c.take_until(lambda cur, tok: tok.is_word("COLLATE", "USING"))
            if not type_tokens:
                raise c.error(f"expected a data type for column {column_name}")
            using = ""
            while not c.at_end:
                if c.accept("USING"):
                    using = c.text_of(c.rest())
                elif c.accept("COLLATE"):
                    c.qualified_name("collation")
                else:
                    c.next()
            return AlterAction(
                AlterActionType.ALTER_COLUMN_TYPE, text, column_name=column_name,
                data_type=c.text_of(type_tokens), using=using,
            )
        if c.accept_seq("SET", "DEFAULT"):
            expr = c.text_of(c.rest())
            if not expr:
                raise c.error(f"expected a default expression for column {column_name}")
            return AlterAction(AlterActionType.SET_DEFAULT, text, column_name=column_name, default_expr=expr)
        if c.accept_seq("DROP", "DEFAULT"):
            return AlterAction(AlterActionType.DROP_DEFAULT, text, column_name=column_name)
        if c.accept_seq("SET", "NOT", "NULL"):
            return AlterAction(AlterActionType.SET_NOT_NULL, text, column_name=column_name)
        if c.accept_seq("DROP", "NOT", "NULL"):
            return AlterAction(AlterActionType.DROP_NOT_NULL, text, column_name=column_name)
        if c.accept_seq("SET", "STATISTICS"):
            return AlterAction(AlterActionType.SET_STATISTICS, text, column_name=column_name)
        if c.at_end:
            raise c.error(f"expected an action for column {column_name}")
        return AlterAction(AlterActionType.OTHER, text, column_name=column_name)

    # -- column and constraint definitions -------------------------------------

    def _column_def(self, c: _Cursor) -> ColumnDef:
        name = c.name_part("column name")
        type_tokens = c.take_until(lambda cur, tok: tok.is_word(*_COLUMN_CONSTRAINT_WORDS))
        if not type_tokens:
            raise c.error(f"expected a data type for column {name}")
        default_expr: str | None = None
        not_null = False
        constraints: list[ConstraintDef] = []
        constraint_name = ""
        while not c.at_end:
            if c.accept("CONSTRAINT"):
                constraint_name = c.name_part("constraint name")
                continue
            if c.accept_seq("NOT", "NULL"):
                not_null = True
            elif c.accept("NULL"):
                pass
            elif c.accept("DEFAULT"):
                expr = c.take_until(_ends_default_expr, first_may_stop=False)
                if not expr:
                    raise c.error(f"expected a default expression for column {name}")
                default_expr = c.text_of(expr)
            elif c.accept("CHECK"):
                c.group()
                c.accept_seq("NO", "INHERIT")
                constraints.append(ConstraintDef(ConstraintType.CHECK, name=constraint_name, columns=(name,)))
            elif c.accept("UNIQUE"):
                constraints.append(ConstraintDef(ConstraintType.UNIQUE, name=constraint_name, columns=(name,)))
                self._skip_to_column_constraint(c)
            elif c.accept_seq("PRIMARY", "KEY"):
                constraints.append(
                    ConstraintDef(ConstraintType.PRIMARY_KEY, name=constraint_name, columns=(name,))
                )
                self._skip_to_column_constraint(c)
            elif c.accept("REFERENCES"):
                ref_table = c.qualified_name("referenced table")
                constraints.append(
                    ConstraintDef(
                        ConstraintType.FOREIGN_KEY, name=constraint_name, columns=(name,), ref_table=ref_table
                    )
                )
                self._skip_to_column_constraint(c)
            elif c.accept("COLLATE"):
                c.qualified_name("collation")
            else:
                c.next()
            constraint_name = ""
        return ColumnDef(
            name=name,
            data_type=c.text_of(type_tokens),
            default_expr=default_expr,
            not_null=not_null,
            constraints=tuple(constraints),
        )

    def _skip_to_column_constraint(self, c: _Cursor) -> None:
        # ON DELETE SET NULL / SET DEFAULT belong to the REFERENCES clause
        c.take_until(
            lambda cur, tok: tok.is_word(*_COLUMN_CONSTRAINT_WORDS)
            and not cur.tokens[cur.pos - 1].is_word("SET")
        )

    def _table_constraint(self, c: _Cursor) -> ConstraintDef:
        name = ""
        if c.accept("CONSTRAINT"):
            name = c.name_part("constraint name")
        using_index = ""
        columns: tuple[str, ...] = ()
        ref_table = ""
        if c.accept("CHECK"):
            ctype = ConstraintType.CHECK
            c.group()
        elif c.accept("UNIQUE") or c.accept_seq("PRIMARY", "KEY"):
            ctype = ConstraintType.UNIQUE if c.tokens[c.pos - 1].is_word("UNIQUE") else ConstraintType.PRIMARY_KEY
            if c.accept_seq("USING", "INDEX"):
                using_index = c.name_part("index name")
            else:
                columns = _column_names(c.group())
        elif c.accept("EXCLUDE"):
            ctype = ConstraintType.EXCLUDE
        elif c.accept_seq("FOREIGN", "KEY"):
            ctype = ConstraintType.FOREIGN_KEY
            columns = _column_names(c.group())
            c.expect("REFERENCES")
            ref_table = c.qualified_name("referenced table")
        else:
            raise c.error("expected a table constraint")
        not_valid = _has_word_seq(c.rest(), "NOT", "VALID")
        return ConstraintDef(
            ctype, name=name, columns=columns, ref_table=ref_table, not_valid=not_valid, using_index=using_index
        )

    # -- CREATE ----------------------------------------------------------------

    def _parse_create(self) -> Statement:
        c = self.c
        c.next()
        if c.peek_word("UNIQUE", "INDEX"):
            return self._create_index()
        c.accept("GLOBAL", "LOCAL")
        temporary = c.accept("TEMP", "TEMPORARY") is not None
        unlogged = c.accept("UNLOGGED") is not None
        if c.accept("TABLE"):
            return self._create_table(temporary, unlogged)
        return self._opaque()

    def _create_index(self) -> Statement:
        c = self.c
        unique = c.accept("UNIQUE") is not None
        c.expect("INDEX")
        concurrently = c.accept("CONCURRENTLY") is not None
        if_not_exists = c.accept_seq("IF", "NOT", "EXISTS")
        name = ""
        if not c.peek_word("ON"):
            name = c.name_part("index name")
        c.expect("ON")
        c.accept("ONLY")
        table = c.qualified_name("table name")
        method = "btree"
        if c.accept("USING"):
            method = c.name_part("index method")
        columns = tuple(c.text_of(part) for part in _split_commas(c.group()))
        if not columns:
            raise c.error("expected at least one index column")
        where = ""
        remaining = c.rest()
        for i, tok in enumerate(remaining):
            if tok.is_word("WHERE"):
                body = remaining[i + 1 :]
                if body and body[-1].is_punct(";"):
                    body = body[:-1]
                where = c.text_of(body)
                break
        detail = CreateIndexDetail(
            name=name,
            table=table,
            unique=unique,
            concurrently=concurrently,
            if_not_exists=if_not_exists,
            method=method.lower(),
            columns=columns,
            where=where,
        )
        return self._make(StatementKind.CREATE_INDEX, target=table, detail=detail)

    def _create_table(self, temporary: bool, unlogged: bool) -> Statement:
        c = self.c
        if_not_exists = c.accept_seq("IF", "NOT", "EXISTS")
        name = c.qualified_name("table name")
        columns: list[ColumnDef] = []
        constraints: list[ConstraintDef] = []
        as_query = False
        if c.peek() is not None and c.peek().is_punct("("):
            elements = c.group()
            if c.peek_word("AS", "WITH") and _has_word_seq(c.tokens[c.pos :], "AS"):
                as_query = True
            else:
                for element in _split_commas(elements):
                    ec = _Cursor(element, c.script)
                    if ec.peek_word(*_CONSTRAINT_START):
                        constraints.append(self._table_constraint(ec))
                    elif ec.peek_word("LIKE"):
                        continue
                    else:
                        column = self._column_def(ec)
                        columns.append(column)
                        constraints.extend(column.constraints)
        elif _has_word_seq(c.tokens[c.pos :], "AS"):
            as_query = True
        elif not c.peek_word("OF", "PARTITION"):
            raise c.error(f"expected column list after CREATE TABLE {name}")
        detail = CreateTableDetail(
            name=name,
            temporary=temporary,
            unlogged=unlogged,
            if_not_exists=if_not_exists,
            columns=tuple(columns),
            constraints=tuple(constraints),
            as_query=as_query,
        )
        return self._make(StatementKind.CREATE_TABLE, target=name, detail=detail)

    # -- DROP ------------------------------------------------------------------

    def _parse_drop(self) -> Statement:
        c = self.c
        c.next()
        if c.accept("TABLE"):
            kind, object_type = StatementKind.DROP_TABLE, "TABLE"
        elif c.accept("INDEX"):
            kind, object_type = StatementKind.DROP_INDEX, "INDEX"
        else:
            words = []
            while c.peek() is not None and c.peek().is_name and not c.peek_word("IF") and len(words) < 3:
                words.append(c.next().value.upper())
                if words[-1] not in ("MATERIALIZED", "FOREIGN", "EVENT", "TEXT", "SEARCH", "ACCESS"):
                    break
            if not words:
                raise c.error("expected an object type after DROP")
            return self._make(StatementKind.DROP_OTHER, detail=DropDetail(object_type=" ".join(words)))
        concurrently = kind == StatementKind.DROP_INDEX and c.accept("CONCURRENTLY") is not None
        if_exists = c.accept_seq("IF", "EXISTS")
        names = [c.qualified_name(f"{object_type.lower()} name")]
        while c.accept_punct(","):
            names.append(c.qualified_name(f"{object_type.lower()} name"))
        cascade = c.accept("CASCADE") is not None
        detail = DropDetail(
            object_type=object_type,
            names=tuple(names),
            concurrently=concurrently,
            if_exists=if_exists,
            cascade=cascade,
        )
        return self._make(kind, target=names[0], detail=detail)

    # -- maintenance -------------------------------------------------------------

    def _table_list(self) -> tuple[str, ...]:
        c = self.c
        tables: list[str] = []
        while c.peek() is not None and c.peek().is_name:
            c.accept("ONLY")
            tables.append(c.qualified_name("table name"))
            c.accept_punct("*")
            if c.peek() is not None and c.peek().is_punct("("):
                c.group()
            if not c.accept_punct(","):
                break
        return tuple(tables)

    def _parse_vacuum(self) -> Statement:
        c = self.c
        c.next()
        full = False
        if c.peek() is not None and c.peek().is_punct("("):
            full = any(t.is_word("FULL") for t in c.group())
        while True:
            tok = c.accept("FULL", "FREEZE", "VERBOSE", "ANALYZE", "ANALYSE")
            if tok is None:
                break
            full = full or tok.is_word("FULL")
        tables = self._table_list()
        detail = TableCommandDetail(tables=tables, full=full)
        return self._make(StatementKind.VACUUM, target=tables[0] if tables else None, detail=detail)

    def _parse_cluster(self) -> Statement:
        c = self.c
        c.next()
        c.accept("VERBOSE")
        tables: tuple[str, ...] = ()
        if c.peek() is not None and c.peek().is_name:
            first = c.qualified_name("table name")
            if c.accept("ON"):
                first = c.qualified_name("table name")
            tables = (first,)
        detail = TableCommandDetail(tables=tables, full=True)
        return self._make(StatementKind.CLUSTER, target=tables[0] if tables else None, detail=detail)

    def _parse_reindex(self) -> Statement:
        c = self.c
        c.next()
        if c.peek() is not None and c.peek().is_punct("("):
            c.group()
        object_type = c.expect("INDEX", "TABLE", "SCHEMA", "DATABASE", "SYSTEM").value.upper()
        name = c.qualified_name(f"{object_type.lower()} name")
        detail = TableCommandDetail(tables=(name,), object_type=object_type)
        return self._make(StatementKind.REINDEX, target=name, detail=detail)

    def _parse_truncate(self) -> Statement:
        c = self.c
        c.next()
        c.accept("TABLE")
        tables = self._table_list()
        if not tables:
            raise c.error("expected a table name after TRUNCATE")
        detail = TableCommandDetail(tables=tables)
        return self._make(StatementKind.TRUNCATE, target=tables[0], detail=detail)

    def _parse_lock(self) -> Statement:
        c = self.c
        c.next()
        c.accept("TABLE")
        tables = self._table_list()
        if not tables:
            raise c.error("expected a table name after LOCK")
        lock_mode = "ACCESS EXCLUSIVE"
        if c.accept("IN"):
            words = c.take_until(lambda cur, tok: tok.is_word("MODE"))
            c.expect("MODE")
            lock_mode = " ".join(t.value.upper() for t in words)
        detail = TableCommandDetail(tables=tables, lock_mode=lock_mode)
        return self._make(StatementKind.LOCK_TABLE, target=tables[0], detail=detail)


def _ends_default_expr(cursor: _Cursor, tok: Token) -> bool:
    if tok.is_word("NOT"):
        return cursor.peek_word("NULL", "DEFERRABLE", offset=1)
    return tok.is_word(
        "CONSTRAINT", "NULL", "CHECK", "UNIQUE", "PRIMARY", "REFERENCES", "COLLATE", "DEFERRABLE", "INITIALLY"
    )


def _column_names(tokens: list[Token]) -> tuple[str, ...]:
    names = []
    for part in _split_commas(tokens):
        if part and part[0].is_name:
            names.append(part[0].value if part[0].quoted else part[0].value.lower())
    return tuple(names)
