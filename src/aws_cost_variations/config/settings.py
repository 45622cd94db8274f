"""YAML config loading with defaults and environment variable overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

VALID_SOURCES = ("cost-explorer", "local")
VALID_DAILY_BUCKET_POLICIES = ("end-day", "range")


class ConfigError(Exception):
    """Raised for invalid configuration."""

    pass


@dataclass
class DatabaseConfig:
    path: str = "./data/costs.duckdb"


@dataclass
class CostExplorerConfig:
    region: str = "us-east-1"
    lookback_days: int = 180


@dataclass
class ReportConfig:
    output_path: str = "./cost_variations.xlsx"
    source: str = "cost-explorer"
    max_workers: int = 1
    daily_bucket_policy: str = "end-day"


@dataclass
class AccountEntry:
    """One billing account to include in the report."""

    id: str
    label: str = ""


@dataclass
class Settings:
    database: DatabaseConfig = field(
        default_factory=DatabaseConfig
    )
    cost_explorer: CostExplorerConfig = field(
        default_factory=CostExplorerConfig
    )
    report: ReportConfig = field(default_factory=ReportConfig)
    accounts: list[AccountEntry] = field(default_factory=list)
    aws_profile: str = ""


def _safe_int(value, name: str) -> int:
    """Convert value to a positive int with helpful error."""
    try:
        result = int(value)
    except (TypeError, ValueError):
        raise ConfigError(
            f"Config '{name}' must be an integer, "
            f"got: {value!r}"
        )
    if result < 1:
        raise ConfigError(
            f"Config '{name}' must be >= 1, got: {result}"
        )
    return result


def _choice(value, name: str, choices: tuple[str, ...]) -> str:
    result = str(value)
    if result not in choices:
        raise ConfigError(
            f"Config '{name}' must be one of "
            f"{', '.join(choices)}, got: {result!r}"
        )
    return result


def _load_raw(config_path: str | Path | None) -> dict:
    raw: dict = {}
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(
                f"Config file not found: {config_path}"
            )
        try:
            raw = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Invalid YAML in {config_path}: {e}"
            )
    elif Path("config.yaml").exists():
        try:
            text = Path("config.yaml").read_text()
            raw = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Invalid YAML in config.yaml: {e}"
            )

    if not isinstance(raw, dict):
        raise ConfigError(
            "Config file must contain a YAML mapping"
        )
    return raw


def _load_accounts(raw_accounts) -> list[AccountEntry]:
    if not isinstance(raw_accounts, list):
        raise ConfigError("Config 'accounts' must be a list")
    accounts: list[AccountEntry] = []
    for entry in raw_accounts:
        if isinstance(entry, (str, int)):
            entry = {"id": entry}
        if not isinstance(entry, dict):
            raise ConfigError(
                "Each accounts entry must be a mapping or an account id"
            )
        account_id = entry.get("id")
        if account_id is None or str(account_id) == "":
            raise ConfigError("Each accounts entry requires 'id'")
        # YAML 1.1 reads unquoted ids as decimal or octal integers, so the
        # original digits cannot be recovered.
        if isinstance(account_id, int):
            raise ConfigError(
                f"Config account ids must be quoted strings, got: {account_id!r}"
            )
        accounts.append(
            AccountEntry(
                id=str(account_id),
                label=str(entry.get("label", "") or ""),
            )
        )
    return accounts


def load_settings(
    config_path: str | Path | None = None,
) -> Settings:
    """Load settings from YAML config with env var overrides.

    Raises ConfigError for invalid config values.
    """
    raw = _load_raw(config_path)

    db_raw = raw.get("database", {}) or {}
    db = DatabaseConfig(
        path=os.environ.get(
            "AWS_COST_DB_PATH",
            str(db_raw.get("path", "./data/costs.duckdb")),
        ),
    )

    ce_raw = raw.get("cost_explorer", {}) or {}
    ce_lookback = _safe_int(
        ce_raw.get("lookback_days", 180),
        "cost_explorer.lookback_days",
    )
    if ce_lookback > 365:
        raise ConfigError(
            "cost_explorer.lookback_days must be <= 365"
        )
    cost_explorer = CostExplorerConfig(
        region=os.environ.get(
            "AWS_COST_EXPLORER_REGION",
            str(ce_raw.get("region", "us-east-1")),
        ),
        lookback_days=ce_lookback,
    )

    report_raw = raw.get("report", {}) or {}
    report = ReportConfig(
        output_path=os.environ.get(
            "AWS_COST_REPORT_OUTPUT",
            str(report_raw.get("output_path", "./cost_variations.xlsx")),
        ),
        source=_choice(
            report_raw.get("source", "cost-explorer"),
            "report.source",
            VALID_SOURCES,
        ),
        max_workers=_safe_int(
            report_raw.get("max_workers", 1),
            "report.max_workers",
        ),
        daily_bucket_policy=_choice(
            report_raw.get("daily_bucket_policy", "end-day"),
            "report.daily_bucket_policy",
            VALID_DAILY_BUCKET_POLICIES,
        ),
    )

    return Settings(
        database=db,
        cost_explorer=cost_explorer,
        report=report,
        accounts=_load_accounts(raw.get("accounts", []) or []),
        aws_profile=os.environ.get(
            "AWS_PROFILE", str(raw.get("aws_profile", "") or "")
        ),
    )
