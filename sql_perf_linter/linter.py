"""Linter orchestrator: script text in, ordered findings out."""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from concurrent.futures import ProcessPoolExecutor, as_completed

from sql_perf_linter.aggregator import FindingAggregator
from sql_perf_linter.config import Config
from sql_perf_linter.context import TransactionTracker
from sql_perf_linter.engine import RuleEngine
from sql_perf_linter.models import Finding, LintReport, Severity, SourceSpan
from sql_perf_linter.parser import parse_script
from sql_perf_linter.registry import discover_rules, validate_rule_ids
from sql_perf_linter.rules.base import BaseRule

logger = logging.getLogger(__name__)


def build_rules(config: Config) -> list[BaseRule]:
    """Instantiate and configure the rules selected by ``config``."""
    rule_cfg = config.rules
    validate_rule_ids(rule_cfg.severity, source="severity overrides")
    rules = discover_rules(
        exclude=rule_cfg.exclude,
        include_only=rule_cfg.include_only,
        enable=rule_cfg.enable,
    )
    for rule in rules:
        rule.configure(config)
    return rules


def lint_text(text: str, path: str = "<string>", config: Config | None = None) -> LintReport:
    """Lint one migration script.

    Never raises for bad SQL: lex and parse errors come back as findings.
    A fatal parse error (unterminated literal, identifier or comment) stops
    parsing; statements before it are still linted.

    Args:
        text: Script contents.
        path: Display path recorded on the report.
        config: Rule selection and overrides. Defaults to ``Config()``.

    Returns:
        LintReport with findings ordered by statement position, then rule order.
    """
    config = config or Config()
    rules = build_rules(config)

    result = parse_script(text)
    aggregator = FindingAggregator()
    for error in result.errors:
        aggregator.add_error(error, result.source)

    contexts = TransactionTracker().track(result.statements)
    RuleEngine(rules, config.rules.severity).run(result.statements, contexts, aggregator)

    report = LintReport(path=path, findings=aggregator.findings(), statement_count=len(result.statements))
    logger.debug("%s: %d statements, %d findings", path, report.statement_count, len(report.findings))
    return report


def lint_file(path: str, config: Config | None = None) -> LintReport:
    """Read ``path`` as UTF-8 and lint it; unreadable files yield a ``file_error`` finding."""
    try:
        with open(path, encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("cannot read %s: %s", path, exc)
        return LintReport(path=path, findings=[_file_error(exc)])
    return lint_text(text, path=path, config=config)


def _file_error(exc: Exception) -> Finding:
    if isinstance(exc, UnicodeDecodeError):
        message = f"File is not valid UTF-8 (byte {exc.start}: {exc.reason})"
    else:
        message = f"Cannot read file: {exc.strerror or exc}"
    return Finding(
        rule_id="file_error",
        severity=Severity.CRITICAL,
        message=message,
        position=SourceSpan(start=0, end=0),
        category="io",
    )


def lint_files(
    paths: Sequence[str],
    config: Config | None = None,
    jobs: int = 1,
    verbose: bool = False,
) -> list[LintReport]:
    """Lint many files, optionally in parallel worker processes.

    Every file is processed independently; the returned reports follow the
    order of ``paths`` regardless of completion order.
    """
    config = config or Config()
    # Fail on bad rule ids here rather than once per worker
    build_rules(config)
    total = len(paths)

    if verbose:
        print(f"Linting {total} file(s) with {max(jobs, 1)} job(s)...", file=sys.stderr)

    reports: list[LintReport | None] = [None] * total
    if jobs <= 1 or total <= 1:
        for i, path in enumerate(paths):
            reports[i] = lint_file(path, config)
            _progress(verbose, i + 1, total, reports[i])
    else:
        with ProcessPoolExecutor(max_workers=jobs) as executor:
            futures = {executor.submit(lint_file, path, config): i for i, path in enumerate(paths)}
            done = 0
            for future in as_completed(futures):
                i = futures[future]
                reports[i] = future.result()
                done += 1
                _progress(verbose, done, total, reports[i])

    if verbose:
        critical = sum(r.critical_count for r in reports)
        warnings = sum(r.warning_count for r in reports)
        info = sum(r.info_count for r in reports)
        print(f"Done. {critical} critical, {warnings} warnings, {info} info.", file=sys.stderr)

    return reports


def _progress(verbose: bool, index: int, total: int, report: LintReport) -> None:
    if verbose:
        print(
            f"  [{index}/{total}] {report.path}: {len(report.findings)} finding(s)",
            file=sys.stderr,
        )
