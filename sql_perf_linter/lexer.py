"""Tokenize PostgreSQL script text.

The lexer follows PostgreSQL's own scanner closely enough to find statement
boundaries reliably: standard, escape (``E''``) and dollar-quoted strings,
quoted identifiers, nested block comments and line comments are all consumed
as units, so semicolons inside them never end a statement.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Iterator
from dataclasses import dataclass

from sql_perf_linter.errors import LexError, ParseError


class TokenKind(enum.Enum):
    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    LITERAL = "literal"
    PUNCTUATION = "punctuation"
    INVALID = "invalid"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    value: str
    start: int
    end: int
    quoted: bool = False

    def is_word(self, *words: str) -> bool:
        """True for an unquoted keyword or identifier spelled like one of ``words``."""
        if self.quoted or self.kind not in (TokenKind.KEYWORD, TokenKind.IDENTIFIER):
            return False
        return self.value.upper() in words

    def is_punct(self, *chars: str) -> bool:
        return self.kind == TokenKind.PUNCTUATION and self.text in chars

    @property
    def is_name(self) -> bool:
        return self.kind in (TokenKind.KEYWORD, TokenKind.IDENTIFIER)


# Words reported as KEYWORD tokens. PostgreSQL lets most of these double as
# names, so the parser matches words by spelling rather than by token kind.
KEYWORDS = frozenset(
    {
        "ABORT", "ACCESS", "ADD", "ALL", "ALTER", "ALWAYS", "ANALYZE", "AND", "AS", "ASC",
        "BEGIN", "BIGSERIAL", "BY", "CASCADE", "CHECK", "CLUSTER", "COLLATE", "COLUMN",
        "COMMIT", "CONCURRENTLY", "CONSTRAINT", "CREATE", "DATA", "DATABASE", "DEFAULT",
        "DEFERRABLE", "DELETE", "DESC", "DISABLE", "DO", "DROP", "ENABLE", "END", "EXCLUDE",
        "EXCLUSIVE", "EXISTS", "FALSE", "FOREIGN", "FREEZE", "FROM", "FULL", "GLOBAL",
        "IF", "IN", "INDEX", "INHERIT", "INITIALLY", "INSERT", "INTO", "IS", "KEY", "LOCAL",
        "LOCK", "LOGGED", "MODE", "NO", "NOT", "NOWAIT", "NULL", "OF", "OIDS", "ON", "ONLY",
        "OR", "OWNER", "PREPARE", "PRIMARY", "REFERENCES", "REINDEX", "RENAME", "RESET",
        "RESTRICT", "ROLLBACK", "ROW", "RULE", "SAVEPOINT", "SCHEMA", "SELECT", "SERIAL",
        "SESSION", "SET", "SHARE", "START", "STATISTICS", "STORAGE", "SYSTEM", "TABLE",
        "TABLESPACE", "TEMP", "TEMPORARY", "TO", "TRANSACTION", "TRIGGER", "TRUE",
        "TRUNCATE", "TYPE", "UNIQUE", "UNLOGGED", "UPDATE", "USING", "VACUUM", "VALID",
        "VALIDATE", "VALUE", "VERBOSE", "VIEW", "WHERE", "WITH", "WITHOUT", "WORK", "ZONE",
    }
)

_RE_WHITESPACE = re.compile(r"\s+")
_RE_WORD = re.compile(r"[^\W\d][\w$]*")
_RE_NUMBER = re.compile(r"(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_RE_DOLLAR_TAG = re.compile(r"\$(?:[^\W\d]\w*)?\$")
_RE_PARAM = re.compile(r"\$\d+")

_OPERATOR_CHARS = frozenset("+-*/<>=~!@#%^&|?")
_SINGLE_PUNCT = frozenset("(),;[]")


class Lexer:
    """Produce :class:`Token` objects from script text.

    Invalid characters become ``INVALID`` tokens and are recorded in
    :attr:`errors`; the stream continues past them. An unterminated literal,
    quoted identifier or block comment raises a fatal :class:`ParseError`
    from the iterator, positioned at the opening delimiter.
    """

    def __init__(self, text: str):
        self.text = text
        self.errors: list[LexError] = []

    def __iter__(self) -> Iterator[Token]:
        return self.tokens()

    def tokens(self) -> Iterator[Token]:
        text = self.text
        n = len(text)
        pos = 0
        while True:
            pos = self._skip_trivia(pos)
            if pos >= n:
                return
            token = self._next_token(pos)
            pos = token.end
            yield token

    # -- trivia ------------------------------------------------------------

    def _skip_trivia(self, pos: int) -> int:
        text = self.text
        while pos < len(text):
            m = _RE_WHITESPACE.match(text, pos)
            if m:
                pos = m.end()
                continue
            if text.startswith("--", pos):
                nl = text.find("\n", pos)
                pos = len(text) if nl < 0 else nl + 1
                continue
            if text.startswith("/*", pos):
                pos = self._skip_block_comment(pos)
                continue
            break
        return pos

    def _skip_block_comment(self, start: int) -> int:
        text = self.text
        depth = 0
        pos = start
        while pos < len(text):
            if text.startswith("/*", pos):
                depth += 1
                pos += 2
            elif text.startswith("*/", pos):
                depth -= 1
                pos += 2
                if depth == 0:
                    return pos
            else:
                pos += 1
        raise ParseError("unterminated block comment", start=start, end=len(text), fatal=True)

    # -- tokens ------------------------------------------------------------

    def _next_token(self, pos: int) -> Token:
        text = self.text
        ch = text[pos]
        nxt = text[pos + 1] if pos + 1 < len(text) else ""

        if ch == "'":
            return self._string(pos, pos)
        if ch in "eE" and nxt == "'":
            return self._string(pos, pos + 1, backslash_escapes=True)
        if ch in "bBxXnN" and nxt == "'":
            return self._string(pos, pos + 1)
        if ch in "uU" and text[pos + 1 : pos + 3] == "&'":
            return self._string(pos, pos + 2)
        if ch in "uU" and text[pos + 1 : pos + 3] == '&"':
            return self._quoted_identifier(pos, pos + 2)
        if ch == '"':
            return self._quoted_identifier(pos, pos)
        if ch == "$":
            return self._dollar(pos)

        m = _RE_WORD.match(text, pos)
        if m:
            word = m.group(0)
            upper = word.upper()
            if upper in KEYWORDS:
                return Token(TokenKind.KEYWORD, word, upper, pos, m.end())
            return Token(TokenKind.IDENTIFIER, word, word.lower(), pos, m.end())

        m = _RE_NUMBER.match(text, pos)
        if m:
            return Token(TokenKind.LITERAL, m.group(0), m.group(0), pos, m.end())

        if ch in _SINGLE_PUNCT or ch == ".":
            return Token(TokenKind.PUNCTUATION, ch, ch, pos, pos + 1)
        if ch == ":":
            end = pos + 2 if nxt in ":=" and nxt else pos + 1
            return Token(TokenKind.PUNCTUATION, text[pos:end], text[pos:end], pos, end)
        if ch in _OPERATOR_CHARS:
            return self._operator(pos)

        self.errors.append(LexError(f"unexpected character {ch!r}", start=pos, end=pos + 1))
        return Token(TokenKind.INVALID, ch, ch, pos, pos + 1)

    def _operator(self, pos: int) -> Token:
        text = self.text
        end = pos
        while end < len(text) and text[end] in _OPERATOR_CHARS:
            if end > pos and (text.startswith("--", end) or text.startswith("/*", end)):
                break
            end += 1
        op = text[pos:end]
        return Token(TokenKind.PUNCTUATION, op, op, pos, end)

    def _string(self, start: int, quote: int, backslash_escapes: bool = False) -> Token:
        text = self.text
        pos = quote + 1
        chunks: list[str] = []
        while True:
            if pos >= len(text):
                raise ParseError(
                    "unterminated quoted string", start=quote, end=len(text), fatal=True
                )
            ch = text[pos]
            if backslash_escapes and ch == "\\":
                chunks.append(text[pos : pos + 2])
                pos += 2
                continue
            if ch == "'":
                if text.startswith("''", pos):
                    chunks.append("'")
                    pos += 2
                    continue
                pos += 1
                break
            chunks.append(ch)
            pos += 1
        return Token(TokenKind.LITERAL, text[start:pos], "".join(chunks), start, pos)

    def _quoted_identifier(self, start: int, quote: int) -> Token:
        text = self.text
        pos = quote + 1
        chunks: list[str] = []
        while True:
            end = text.find('"', pos)
            if end < 0:
                raise ParseError(
                    "unterminated quoted identifier", start=quote, end=len(text), fatal=True
                )
            chunks.append(text[pos:end])
            if text.startswith('""', end):
                chunks.append('"')
                pos = end + 2
                continue
            pos = end + 1
            break
        value = "".join(chunks)
        if not value:
            self.errors.append(LexError("zero-length delimited identifier", start=start, end=pos))
            return Token(TokenKind.INVALID, text[start:pos], value, start, pos)
        return Token(TokenKind.IDENTIFIER, text[start:pos], value, start, pos, quoted=True)

    def _dollar(self, start: int) -> Token:
        text = self.text
        m = _RE_PARAM.match(text, start)
        if m:
            return Token(TokenKind.LITERAL, m.group(0), m.group(0), start, m.end())
        m = _RE_DOLLAR_TAG.match(text, start)
        if not m:
            self.errors.append(LexError("unexpected character '$'", start=start, end=start + 1))
            return Token(TokenKind.INVALID, "$", "$", start, start + 1)
        tag = m.group(0)
        close = text.find(tag, m.end())
        if close < 0:
            raise ParseError(
                "unterminated dollar-quoted string", start=start, end=len(text), fatal=True
            )
        end = close + len(tag)
        return Token(TokenKind.LITERAL, text[start:end], text[m.end() : close], start, end)


def tokenize(text: str) -> list[Token]:
    """Tokenize ``text`` eagerly. Raises :class:`ParseError` on unterminated input."""
    return list(Lexer(text))
