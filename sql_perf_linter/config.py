"""Configuration loading and management for sql-perf-linter."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

import yaml

from sql_perf_linter.models import Severity
from sql_perf_linter.operations import LockMode

CONFIG_FILENAME = "sql-perf-linter.yaml"


@dataclass
class RuleConfig:
    """Configuration for which rules run and how severe their findings are."""

    exclude: set[str] = field(default_factory=set)
    include_only: set[str] | None = None  # None = no whitelist, run defaults minus exclude
    enable: set[str] = field(default_factory=set)  # off-by-default rules to switch on
    severity: dict[str, Severity] = field(default_factory=dict)


@dataclass
class Config:
    """Complete configuration for sql-perf-linter."""

    rules: RuleConfig = field(default_factory=RuleConfig)
    lock_threshold: LockMode = LockMode.SHARE_UPDATE_EXCLUSIVE
    fail_on: Severity = Severity.WARNING


def find_config_file() -> str | None:
    """Search for sql-perf-linter.yaml in cwd, then home dir.

    Returns:
        Path to config file if found, None otherwise.
    """
    cwd_config = Path.cwd() / CONFIG_FILENAME
    if cwd_config.is_file():
        return str(cwd_config)

    home_config = Path.home() / CONFIG_FILENAME
    if home_config.is_file():
        return str(home_config)

    return None


def load_config(config_path: str | None = None, auto_discover: bool = True) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Explicit path to config file. If None and auto_discover is True,
                     searches default locations.
        auto_discover: If True and config_path is None, search for config file.

    Returns:
        Config object. Returns default config if no file found.

    Raises:
        FileNotFoundError: An explicit config_path does not exist.
        ValueError: The file is not a mapping or holds an invalid value.
    """
    if config_path is None and auto_discover:
        config_path = find_config_file()

    if config_path is None:
        return Config()

    if not os.path.isfile(config_path):
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping at the top level")
    return _parse_config(data)


def _parse_config(data: dict) -> Config:
    """Parse YAML data into Config object."""
    config = Config()

    if "rules" in data:
        config.rules = _parse_rule_config(data["rules"] or {})

    if "lock_threshold" in data:
        config.lock_threshold = LockMode.parse(str(data["lock_threshold"]))

    if "fail_on" in data:
        config.fail_on = Severity.parse(str(data["fail_on"]))

    return config


def _parse_rule_config(data: dict) -> RuleConfig:
    """Parse the rules section."""
    exclude = set(data.get("exclude") or [])
    enable = set(data.get("enable") or [])

    include_only = None
    if "include_only" in data:
        include_only = set(data["include_only"] or [])

    severity = {
        str(rule_id): Severity.parse(str(level))
        for rule_id, level in (data.get("severity") or {}).items()
    }

    return RuleConfig(exclude=exclude, include_only=include_only, enable=enable, severity=severity)


def merge_cli_with_config(
    config: Config,
    cli_exclude: set[str] | None = None,
    cli_include_only: set[str] | None = None,
    cli_enable: set[str] | None = None,
    cli_fail_on: Severity | None = None,
    cli_lock_threshold: LockMode | None = None,
) -> Config:
    """Merge CLI arguments with config file settings.

    CLI arguments take precedence over config file.

    Args:
        config: Loaded configuration.
        cli_exclude: Rules to exclude (from --exclude flag).
        cli_include_only: Rules to include only (from --include-only flag).
        cli_enable: Off-by-default rules to switch on (from --enable flag).
        cli_fail_on: Exit-code threshold (from --fail-on flag).
        cli_lock_threshold: Threshold for lock_mode_threshold (from --lock-threshold flag).

    Returns:
        A new Config with merged settings.
    """
    rule_cfg = config.rules

    # CLI exclude and enable add to the config file's sets
    if cli_exclude:
        rule_cfg = replace(rule_cfg, exclude=rule_cfg.exclude | cli_exclude)
    if cli_enable:
        rule_cfg = replace(rule_cfg, enable=rule_cfg.enable | cli_enable)

    # CLI include_only completely overrides config
    if cli_include_only is not None:
        rule_cfg = replace(rule_cfg, include_only=cli_include_only)

    return Config(
        rules=rule_cfg,
        lock_threshold=cli_lock_threshold or config.lock_threshold,
        fail_on=cli_fail_on or config.fail_on,
    )
