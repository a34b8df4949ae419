"""
Tests for inventory_advisor/config.py.

What we test
------------
load_config():
  - Committed config/default.toml loads and matches the model defaults.
  - Explicit TOML path overrides defaults; local.toml beside it is merged.
  - Explicit missing path → FileNotFoundError.
  - INVENTORY_ADVISOR_* environment variables override file values.

Sub-config validation:
  - Probability outside [0, 1], non-positive timeout, top-N < 1 and unknown
    log levels raise pydantic.ValidationError.
  - AdvisoryConfig.generate_url / is_configured.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from inventory_advisor.config import (
    AdvisoryConfig,
    LoggingConfig,
    ReportConfig,
    RulesConfig,
    load_config,
)

_ENV_VARS = (
    "INVENTORY_ADVISOR_ADVISORY_API_KEY",
    "INVENTORY_ADVISOR_ADVISORY_MODEL",
    "INVENTORY_ADVISOR_ADVISORY_ENABLED",
    "INVENTORY_ADVISOR_LOG_LEVEL",
    "INVENTORY_ADVISOR_DEBUG",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:
    def test_default_toml(self) -> None:
        config = load_config()
        assert config.rules == RulesConfig()
        assert config.report == ReportConfig()
        assert config.advisory.model == "gemini-pro"
        assert config.dashboard.snapshot_path == "data/sample_inventory.json"
        assert config.debug is False

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.toml"
        path.write_text(
            "[rules]\nstale_restock_days = 30\n\n[report]\nrecommendations_limit = 3\n",
            encoding="utf-8",
        )
        config = load_config(path)
        assert config.rules.stale_restock_days == 30
        assert config.rules.supplier_nudge_probability == 0.2
        assert config.report.recommendations_limit == 3

    def test_local_toml_merged(self, tmp_path: Path) -> None:
        path = tmp_path / "default.toml"
        path.write_text("[rules]\nstale_restock_days = 30\nimminent_stockout_days = 2.0\n", encoding="utf-8")
        (tmp_path / "local.toml").write_text("[rules]\nstale_restock_days = 60\n", encoding="utf-8")
        config = load_config(path)
        assert config.rules.stale_restock_days == 60
        assert config.rules.imminent_stockout_days == 2.0

    def test_missing_explicit_path(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.toml")

    def test_env_overrides(self, tmp_path: Path, monkeypatch) -> None:
        path = tmp_path / "c.toml"
        path.write_text("[advisory]\nenabled = false\n", encoding="utf-8")
        monkeypatch.setenv("INVENTORY_ADVISOR_ADVISORY_API_KEY", "secret")
        monkeypatch.setenv("INVENTORY_ADVISOR_ADVISORY_MODEL", "gemini-1.5-flash")
        monkeypatch.setenv("INVENTORY_ADVISOR_ADVISORY_ENABLED", "true")
        monkeypatch.setenv("INVENTORY_ADVISOR_LOG_LEVEL", "debug")
        monkeypatch.setenv("INVENTORY_ADVISOR_DEBUG", "1")

        config = load_config(path)

        assert config.advisory.api_key == "secret"
        assert config.advisory.model == "gemini-1.5-flash"
        assert config.advisory.is_configured
        assert config.logging.level == "DEBUG"
        assert config.debug is True

    def test_invalid_value_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text("[rules]\nsupplier_nudge_probability = 1.5\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_config(path)


class TestValidation:
    @pytest.mark.parametrize("value", [-0.1, 1.01])
    def test_probability_range(self, value) -> None:
        with pytest.raises(ValidationError):
            RulesConfig(supplier_nudge_probability=value)

    def test_negative_day_threshold(self) -> None:
        with pytest.raises(ValidationError):
            RulesConfig(stale_restock_days=-1)

    def test_timeout_positive(self) -> None:
        with pytest.raises(ValidationError):
            AdvisoryConfig(timeout_seconds=0)

    def test_report_limit(self) -> None:
        with pytest.raises(ValidationError):
            ReportConfig(action_items_limit=0)

    def test_log_level(self) -> None:
        assert LoggingConfig(level="warning").level == "WARNING"
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")


class TestAdvisoryConfig:
    def test_generate_url(self) -> None:
        config = AdvisoryConfig(base_url="https://example.test/v1beta/", model="m1")
        assert config.generate_url == "https://example.test/v1beta/models/m1:generateContent"

    def test_is_configured(self) -> None:
        assert not AdvisoryConfig().is_configured
        assert not AdvisoryConfig(api_key="").is_configured
        assert not AdvisoryConfig(api_key="k", enabled=False).is_configured
        assert AdvisoryConfig(api_key="k").is_configured

    def test_api_key_not_in_repr(self) -> None:
        assert "secret" not in repr(AdvisoryConfig(api_key="secret"))
