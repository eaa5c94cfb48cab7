"""Transaction scopes and GUC settings visible to each statement."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from sql_perf_linter.statements import SettingDetail, Statement, StatementKind

logger = logging.getLogger(__name__)

TIMEOUT_SETTINGS = ("lock_timeout", "statement_timeout")

_RE_ZERO = re.compile(r"^0+(?:\.0*)?\s*(?:us|ms|s|min|h|d)?$", re.IGNORECASE)


def normalize_table_name(name: str | None) -> str:
    """Fold an unqualified and a ``public.``-qualified name to the same key."""
    if not name:
        return ""
    if name.startswith("public."):
        return name[len("public.") :]
    return name


def setting_disabled(value: str | None) -> bool:
    """True when a timeout value turns the timeout off (``0``, ``'0ms'``...)."""
    if value is None:
        return True
    return bool(_RE_ZERO.match(value.strip().strip("'\"").strip()))


@dataclass(frozen=True)
class TransactionContext:
    """What a rule can see about the scope around one statement.

    Attributes:
        explicit: The statement sits inside a ``BEGIN`` ... ``COMMIT`` block
            (the ``BEGIN`` and the closing statement included).
        scope: Every statement of the scope, in order. A statement outside any
            explicit block is a scope of its own.
        index: Position of the current statement within ``scope``.
        settings: GUC values set earlier in the same scope, by ``SET`` or
            ``SET LOCAL``. Empty for a statement outside an explicit block.
        session_settings: Values of plain ``SET`` statements that ran in
            earlier, committed scopes. Informational only; rules that need a
            setting in effect for the transaction read ``settings``.
        created_tables: Tables created earlier in the file and not dropped
            or rolled back since.
    """

    explicit: bool
    scope: tuple[Statement, ...]
    index: int
    settings: Mapping[str, str] = field(default_factory=dict, hash=False)
    session_settings: Mapping[str, str] = field(default_factory=dict, hash=False)
    created_tables: frozenset[str] = frozenset()

    @property
    def statement(self) -> Statement:
        return self.scope[self.index]

    @property
    def preceding(self) -> tuple[Statement, ...]:
        return self.scope[: self.index]

    @property
    def following(self) -> tuple[Statement, ...]:
        return self.scope[self.index + 1 :]

    def setting(self, name: str) -> str | None:
        return self.settings.get(name.lower())

    def has_timeout(self) -> bool:
        """True if ``lock_timeout`` or ``statement_timeout`` is set to a non-zero value in this scope."""
        return any(not setting_disabled(self.setting(name)) for name in TIMEOUT_SETTINGS)

    def has_session_timeout(self) -> bool:
        return any(not setting_disabled(self.session_settings.get(name)) for name in TIMEOUT_SETTINGS)

    def is_new_table(self, name: str | None) -> bool:
        return bool(name) and normalize_table_name(name) in self.created_tables

    def other_schema_changes(self) -> list[Statement]:
        """Schema-changing statements in the scope other than the current one."""
        return [s for i, s in enumerate(self.scope) if i != self.index and s.is_schema_change]


class TransactionTracker:
    """Build one :class:`TransactionContext` per statement.

    The first pass groups statements into scopes; the second replays ``SET``,
    ``RESET``, ``CREATE TABLE`` and ``DROP TABLE`` in order so that each
    context sees the state in effect when its statement runs. Scope settings
    start empty at every scope and are dropped at ``COMMIT``/``ROLLBACK``.
    Plain ``SET`` values are also kept as session settings, which survive
    ``COMMIT`` and are undone by ``ROLLBACK``.
    """

    def track(self, statements: Sequence[Statement]) -> list[TransactionContext]:
        scopes = self._scopes(statements)
        contexts: list[TransactionContext] = []

        session: dict[str, str] = {}
        created: set[str] = set()
        for explicit, scope in scopes:
            scoped: dict[str, str] = {}
            saved_session = dict(session)
            saved_created = set(created)
            for index, stmt in enumerate(scope):
                contexts.append(
                    TransactionContext(
                        explicit=explicit,
                        scope=scope,
                        index=index,
                        settings=dict(scoped),
                        session_settings=dict(session),
                        created_tables=frozenset(created),
                    )
                )
                self._apply(stmt, explicit, session, scoped, created)
            if explicit and scope[-1].kind == StatementKind.ROLLBACK:
                logger.debug("rollback at offset %d discards scope state", scope[-1].span.start)
                session = saved_session
                created = saved_created
        return contexts

    def _scopes(self, statements: Sequence[Statement]) -> list[tuple[bool, tuple[Statement, ...]]]:
        scopes: list[tuple[bool, tuple[Statement, ...]]] = []
        current: list[Statement] | None = None
        for stmt in statements:
            if current is None:
                if stmt.kind == StatementKind.BEGIN:
                    current = [stmt]
                else:
                    scopes.append((False, (stmt,)))
                continue
            current.append(stmt)
            if stmt.kind in (StatementKind.COMMIT, StatementKind.ROLLBACK):
                scopes.append((True, tuple(current)))
                current = None
        if current is not None:
            # BEGIN without COMMIT: the block is still open at end of file
            scopes.append((True, tuple(current)))
        return scopes

    def _apply(
        self,
        stmt: Statement,
        explicit: bool,
        session: dict[str, str],
        scoped: dict[str, str],
        created: set[str],
    ) -> None:
        if stmt.malformed:
            return
        detail = stmt.detail
        if stmt.kind == StatementKind.SET and isinstance(detail, SettingDetail):
            name = detail.name.lower()
            if detail.reset:
                if name == "all":
                    session.clear()
                    scoped.clear()
                else:
                    session.pop(name, None)
                    scoped.pop(name, None)
            elif detail.local:
                # SET LOCAL outside a transaction block has no effect
                if explicit:
                    scoped[name] = detail.value or ""
            else:
                session[name] = detail.value or ""
                scoped[name] = detail.value or ""
        elif stmt.kind == StatementKind.CREATE_TABLE and stmt.target:
            created.add(normalize_table_name(stmt.target))
        elif stmt.kind == StatementKind.DROP_TABLE and stmt.detail is not None:
            for name in stmt.detail.names:
                created.discard(normalize_table_name(name))
