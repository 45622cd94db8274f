"""Tests for config loading and validation."""

from __future__ import annotations

import tempfile

import pytest

from aws_cost_variations.config.settings import (
    AccountEntry,
    ConfigError,
    Settings,
    load_settings,
)

_ENV_VARS = (
    "AWS_COST_DB_PATH",
    "AWS_COST_EXPLORER_REGION",
    "AWS_COST_REPORT_OUTPUT",
    "AWS_PROFILE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write(text: str) -> str:
    with tempfile.NamedTemporaryFile(
        mode="w", suffix=".yaml", delete=False
    ) as f:
        f.write(text)
        f.flush()
        return f.name


def test_load_nonexistent_config_raises():
    """Explicit config path that doesn't exist raises."""
    with pytest.raises(ConfigError, match="not found"):
        load_settings("/nonexistent/path/config.yaml")


def test_defaults_without_config_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    settings = load_settings()
    assert settings == Settings()
    assert settings.report.source == "cost-explorer"
    assert settings.report.daily_bucket_policy == "end-day"
    assert settings.report.max_workers == 1
    assert settings.cost_explorer.lookback_days == 180
    assert settings.accounts == []


def test_reads_config_yaml_from_cwd(tmp_path, monkeypatch):
    (tmp_path / "config.yaml").write_text(
        "report:\n  output_path: ./out.xlsx\n"
    )
    monkeypatch.chdir(tmp_path)
    assert load_settings().report.output_path == "./out.xlsx"


def test_load_valid_yaml():
    settings = load_settings(
        _write(
            "database:\n"
            "  path: /tmp/costs.duckdb\n"
            "cost_explorer:\n"
            "  region: us-west-2\n"
            "  lookback_days: 30\n"
            "report:\n"
            "  output_path: ./reports/costs.xlsx\n"
            "  source: local\n"
            "  max_workers: 4\n"
            "  daily_bucket_policy: range\n"
            "aws_profile: billing\n"
        )
    )
    assert settings.database.path == "/tmp/costs.duckdb"
    assert settings.cost_explorer.region == "us-west-2"
    assert settings.cost_explorer.lookback_days == 30
    assert settings.report.output_path == "./reports/costs.xlsx"
    assert settings.report.source == "local"
    assert settings.report.max_workers == 4
    assert settings.report.daily_bucket_policy == "range"
    assert settings.aws_profile == "billing"


def test_accounts():
    settings = load_settings(
        _write(
            "accounts:\n"
            '  - id: "111111111111"\n'
            "    label: Production\n"
            "  - '222222222222'\n"
        )
    )
    assert settings.accounts == [
        AccountEntry(id="111111111111", label="Production"),
        AccountEntry(id="222222222222", label=""),
    ]


@pytest.mark.parametrize(
    "entry",
    [
        "  - id: 012345670123\n",  # octal in YAML 1.1
        "  - id: 111111111111\n",
        "  - 222222222222\n",
    ],
)
def test_unquoted_account_id_rejected(entry):
    with pytest.raises(ConfigError, match="must be quoted strings"):
        load_settings(_write("accounts:\n" + entry))


def test_account_without_id():
    with pytest.raises(ConfigError, match="requires 'id'"):
        load_settings(_write("accounts:\n  - label: Production\n"))


def test_accounts_not_a_list():
    with pytest.raises(ConfigError, match="must be a list"):
        load_settings(_write("accounts:\n  id: '111111111111'\n"))


def test_load_invalid_yaml():
    with pytest.raises(ConfigError, match="YAML mapping"):
        load_settings(_write("- just\n- a\n- list\n"))


def test_malformed_yaml():
    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_settings(_write("report: [unclosed\n"))


def test_bad_int_value():
    with pytest.raises(ConfigError, match="integer"):
        load_settings(_write("report:\n  max_workers: abc\n"))


def test_zero_workers():
    with pytest.raises(ConfigError, match=">= 1"):
        load_settings(_write("report:\n  max_workers: 0\n"))


def test_lookback_upper_bound():
    with pytest.raises(ConfigError, match="<= 365"):
        load_settings(_write("cost_explorer:\n  lookback_days: 400\n"))


def test_bad_source():
    with pytest.raises(ConfigError, match="report.source"):
        load_settings(_write("report:\n  source: cur\n"))


def test_bad_daily_bucket_policy():
    with pytest.raises(ConfigError, match="daily_bucket_policy"):
        load_settings(_write("report:\n  daily_bucket_policy: weekly\n"))


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("AWS_COST_DB_PATH", "/env/costs.duckdb")
    monkeypatch.setenv("AWS_COST_EXPLORER_REGION", "eu-west-1")
    monkeypatch.setenv("AWS_COST_REPORT_OUTPUT", "/env/out.xlsx")
    monkeypatch.setenv("AWS_PROFILE", "env-profile")
    settings = load_settings(
        _write(
            "database:\n  path: /yaml/costs.duckdb\n"
            "report:\n  output_path: /yaml/out.xlsx\n"
            "aws_profile: yaml-profile\n"
        )
    )
    assert settings.database.path == "/env/costs.duckdb"
    assert settings.cost_explorer.region == "eu-west-1"
    assert settings.report.output_path == "/env/out.xlsx"
    assert settings.aws_profile == "env-profile"
