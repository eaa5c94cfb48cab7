"""Static analyzer for PostgreSQL 9.6 schema-migration scripts."""

__version__ = "0.1.0"

from sql_perf_linter.linter import lint_file, lint_files, lint_text  # noqa: E402
from sql_perf_linter.registry import rule_catalog  # noqa: E402

__all__ = ["__version__", "lint_file", "lint_files", "lint_text", "rule_catalog"]
