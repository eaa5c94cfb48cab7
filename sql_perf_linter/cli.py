"""CLI entry point for sql-perf-linter."""

from __future__ import annotations

import argparse
import logging
import os
import sys

from sql_perf_linter import __version__
from sql_perf_linter.models import Severity
from sql_perf_linter.operations import LockMode

EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_USAGE = 2

_KNOWN_COMMANDS = {"lint", "list-rules"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sql-perf-linter",
        description="Find long-held locks and table rewrites in PostgreSQL 9.6 migration scripts.",
    )
    parser.add_argument("--version", action="version", version=f"sql-perf-linter {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands (default: lint)")

    # -- lint --
    lint_parser = subparsers.add_parser("lint", help="Lint migration files or directories of *.sql files")
    lint_parser.add_argument("paths", nargs="+", metavar="PATH", help="SQL file or directory")
    _add_output_args(lint_parser)
    _add_rule_args(lint_parser)
    lint_parser.add_argument("--config", "-c", help="Path to sql-perf-linter.yaml (default: auto-discover)")
    lint_parser.add_argument(
        "--fail-on",
        choices=[s.value for s in Severity],
        default=None,
        help="Exit with status 1 when a finding at or above this severity exists (default: warning)",
    )
    lint_parser.add_argument(
        "--lock-threshold",
        default=None,
        help="Strongest lock mode allowed by lock_mode_threshold (default: 'SHARE UPDATE EXCLUSIVE')",
    )
    lint_parser.add_argument(
        "--jobs", "-j", type=int, default=1, help="Number of files to lint in parallel (default: 1)"
    )
    lint_parser.add_argument(
        "--verbose", "-v", action="count", default=0, help="Print progress (-vv for debug logging)"
    )

    # -- list-rules --
    list_parser = subparsers.add_parser("list-rules", help="List all available rules")
    list_parser.add_argument(
        "--categories",
        help="Comma-separated list of categories to filter",
    )

    return parser


def _add_output_args(parser: argparse.ArgumentParser):
    grp = parser.add_argument_group("output")
    grp.add_argument(
        "--format",
        "-f",
        choices=["text", "json"],
        default="text",
        help="Report format (default: text)",
    )
    grp.add_argument("--output", "-o", help="Output file path (default: stdout)")


def _add_rule_args(parser: argparse.ArgumentParser):
    grp = parser.add_argument_group("rules")
    grp.add_argument("--exclude", help="Comma-separated rule ids to skip")
    grp.add_argument("--include-only", help="Comma-separated rule ids to run, and nothing else")
    grp.add_argument("--enable", help="Comma-separated off-by-default rule ids to switch on")


def main(argv: list[str] | None = None):
    parser = build_parser()

    # Default to "lint" when no subcommand is given but arguments are present
    raw_args = argv if argv is not None else sys.argv[1:]
    if raw_args and raw_args[0] not in _KNOWN_COMMANDS and raw_args[0] not in ("--version", "--help", "-h"):
        raw_args = ["lint"] + list(raw_args)
    elif not raw_args:
        parser.print_help()
        sys.exit(EXIT_USAGE)

    args = parser.parse_args(raw_args)

    if not args.command:
        parser.print_help()
        sys.exit(EXIT_USAGE)

    if args.command == "list-rules":
        _cmd_list_rules(args)
    elif args.command == "lint":
        sys.exit(_cmd_lint(args))


def _configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def _cmd_list_rules(args):
    from sql_perf_linter.registry import RULES

    categories = args.categories.split(",") if args.categories else None
    rules = [cls for cls in RULES if not categories or cls.category in categories]

    if not rules:
        print("No rules found.")
        return

    for category in sorted({cls.category for cls in rules}):
        print(f"\n[{category}]")
        for cls in rules:
            if cls.category != category:
                continue
            flag = "" if cls.default_enabled else "[off]"
            print(f"  {cls.name:32s} {cls.severity.value:9s}{flag:6s} {cls.description}")


def _cmd_lint(args) -> int:
    from sql_perf_linter.config import load_config, merge_cli_with_config
    from sql_perf_linter.linter import lint_files

    _configure_logging(args.verbose)

    try:
        config = load_config(args.config)
        config = merge_cli_with_config(
            config,
            cli_exclude=_split_ids(args.exclude),
            cli_include_only=_split_ids(args.include_only),
            cli_enable=_split_ids(args.enable),
            cli_fail_on=Severity.parse(args.fail_on) if args.fail_on else None,
            cli_lock_threshold=LockMode.parse(args.lock_threshold) if args.lock_threshold else None,
        )
        paths = expand_paths(args.paths)
        reports = lint_files(paths, config, jobs=args.jobs, verbose=args.verbose > 0)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    output = _render_report(reports, args.format)
    _write_output(output, args)

    failing = any(report.has_findings_at(config.fail_on) for report in reports)
    return EXIT_FINDINGS if failing else EXIT_OK


def _split_ids(value: str | None) -> set[str] | None:
    if value is None:
        return None
    return {part.strip() for part in value.split(",") if part.strip()}


def expand_paths(paths: list[str]) -> list[str]:
    """Expand directories to the ``*.sql`` files beneath them, sorted by path.

    Other arguments are kept as given, in order; a missing file is reported
    by the linter as a ``file_error`` finding.
    """
    result: list[str] = []
    for path in paths:
        if os.path.isdir(path):
            found = []
            for root, _dirs, files in os.walk(path):
                found.extend(os.path.join(root, name) for name in files if name.endswith(".sql"))
            result.extend(sorted(found))
        else:
            result.append(path)
    return result


def _write_output(output: str, args):
    """Write report to a file or stdout."""
    if not args.output:
        sys.stdout.write(output)
        return

    parent = os.path.dirname(args.output)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(args.output, "w", encoding="utf-8") as f:
        f.write(output)
    print(f"Report written to {args.output}", file=sys.stderr)


def _render_report(reports, fmt: str) -> str:
    if fmt == "json":
        from sql_perf_linter.reporters.json_reporter import render
    elif fmt == "text":
        from sql_perf_linter.reporters.text_reporter import render
    else:
        raise ValueError(f"Unknown format: {fmt}")
    return render(reports)
