"""Error types raised while linting a migration script.

None of these escape :func:`sql_perf_linter.linter.lint_text`: lex and parse
errors are turned into findings anchored at the offending position, and rule
failures are caught per rule and per statement by the rule engine.
"""

from __future__ import annotations


class LintError(Exception):
    """Base class for errors recorded against a position in the script.

    Attributes:
        message: Human-readable error description.
        start: 0-based character offset where the error was detected.
        end: 0-based character offset just past the offending region.
    """

    rule_id = "lint_error"

    def __init__(self, message: str, *, start: int = 0, end: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.start = start
        self.end = start if end is None else end


class LexError(LintError):
    """A character sequence PostgreSQL's lexer would reject."""

    rule_id = "lex_error"


class ParseError(LintError):
    """Unexpected syntax at a statement boundary.

    ``fatal`` is set for unterminated literals, quoted identifiers and block
    comments: nothing after the opening delimiter can be recovered.
    """

    rule_id = "parse_error"

    def __init__(
        self,
        message: str,
        *,
        start: int = 0,
        end: int | None = None,
        fatal: bool = False,
    ) -> None:
        super().__init__(message, start=start, end=end)
        self.fatal = fatal


class RuleEvaluationError(LintError):
    """A rule's internal assumption did not hold for a statement."""

    def __init__(self, rule_name: str, cause: BaseException, *, start: int = 0, end: int | None = None) -> None:
        super().__init__(f"{type(cause).__name__}: {cause}", start=start, end=end)
        self.rule_name = rule_name
