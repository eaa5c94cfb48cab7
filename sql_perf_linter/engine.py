"""Rule engine: evaluate every active rule against every statement."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence

from sql_perf_linter.aggregator import FindingAggregator
from sql_perf_linter.classifier import classify
from sql_perf_linter.context import TransactionContext
from sql_perf_linter.errors import RuleEvaluationError
from sql_perf_linter.models import Finding, Severity
from sql_perf_linter.rules.base import BaseRule
from sql_perf_linter.statements import Statement

logger = logging.getLogger(__name__)


class RuleEngine:
    """Run a fixed list of rules over classified statements.

    Args:
        rules: Active rules, in registration order.
        severity_overrides: Rule id -> severity replacing the rule's own.
    """

    def __init__(self, rules: Sequence[BaseRule], severity_overrides: dict[str, Severity] | None = None):
        self.rules = list(rules)
        self.severity_overrides = dict(severity_overrides or {})

    def run(
        self,
        statements: Sequence[Statement],
        contexts: Sequence[TransactionContext],
        aggregator: FindingAggregator,
    ) -> None:
        for statement, context in zip(statements, contexts):
            if statement.malformed:
                continue
            operations = classify(statement)
            for rank, rule in enumerate(self.rules):
                for finding in self._evaluate(rule, statement, operations, context):
                    aggregator.add(finding, rank, anchor=statement.span.start)

    def _evaluate(self, rule: BaseRule, statement, operations, context) -> list[Finding]:
        try:
            if not rule.applies(statement, operations, context):
                return []
            findings = rule.evaluate(statement, operations, context)
        except Exception as exc:
            error = RuleEvaluationError(
                rule.name, exc, start=statement.span.start, end=statement.span.end
            )
            logger.warning(
                "rule %s failed on statement at line %d: %s",
                error.rule_name,
                statement.span.line,
                error.message,
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            return [
                Finding(
                    rule_id=error.rule_name,
                    severity=Severity.WARNING,
                    message=f"Rule {error.rule_name} could not evaluate this statement ({error.message})",
                    position=statement.span,
                    category="internal",
                    object_name=statement.target or "",
                )
            ]

        override = self.severity_overrides.get(rule.name)
        if override is not None:
            findings = [dataclasses.replace(f, severity=override) for f in findings]
        return findings
