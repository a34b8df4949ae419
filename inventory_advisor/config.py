"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``INVENTORY_ADVISOR_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The advisory API key is never stored in a committed file: it is read from
``INVENTORY_ADVISOR_ADVISORY_API_KEY`` (usually set in ``.env``).

Every rule threshold below carries the literal default the rules were
designed around; they are configuration so deployments can tune them
without touching the evaluator.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class RulesConfig(BaseModel):
    """Thresholds for the seven rule-based recommendation checks."""

    model_config = ConfigDict(frozen=True)

    low_stock_high_priority_days: int = 3
    slow_moving_max_daily_sales: float = 0.5
    slow_moving_stock_multiple: float = 2.0
    fast_moving_min_daily_sales: float = 3.0
    fast_moving_stock_multiple: float = 1.5
    stale_restock_days: int = 45
    price_review_min_price: float = 50.0
    price_review_max_daily_sales: float = 1.0
    imminent_stockout_days: float = 3.0
    supplier_nudge_probability: float = 0.2

    @field_validator("supplier_nudge_probability")
    @classmethod
    def validate_probability(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(
                f"supplier_nudge_probability must be in [0.0, 1.0], got {v}."
            )
        return v

    @field_validator(
        "low_stock_high_priority_days", "stale_restock_days", "imminent_stockout_days",
    )
    @classmethod
    def validate_non_negative_days(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"Day thresholds must be non-negative, got {v}.")
        return v


class AdvisoryConfig(BaseModel):
    """External text-generation endpoint used for advisory recommendations."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    model: str = "gemini-pro"
    api_key: Optional[str] = Field(default=None, repr=False)
    timeout_seconds: float = 20.0
    min_recommendations: int = 5

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {v}.")
        return v

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def generate_url(self) -> str:
        """Full ``generateContent`` URL for the configured model."""
        return f"{self.base_url}/models/{self.model}:generateContent"

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.api_key)


class ReportConfig(BaseModel):
    """Sizes of the bounded slices in the aggregated report."""

    model_config = ConfigDict(frozen=True)

    action_items_limit: int = 5
    recommendations_limit: int = 10
    no_depletion_days: int = 999

    @field_validator("action_items_limit", "recommendations_limit")
    @classmethod
    def validate_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Report limits must be >= 1, got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class DashboardConfig(BaseModel):
    """Streamlit dashboard defaults."""

    model_config = ConfigDict(frozen=True)

    snapshot_path: str = "data/sample_inventory.json"
    use_advisory: bool = False
    freshness_hours: float = 24.0


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + environment.
    """

    model_config = ConfigDict(frozen=True)

    rules: RulesConfig = RulesConfig()
    advisory: AdvisoryConfig = AdvisoryConfig()
    report: ReportConfig = ReportConfig()
    logging: LoggingConfig = LoggingConfig()
    dashboard: DashboardConfig = DashboardConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent

_ENV_PREFIX = "INVENTORY_ADVISOR_"


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``; when that default file is
            absent the built-in defaults are used.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If an explicitly given ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    raw: dict[str, Any] = {}
    if config_path is None:
        default_path = root / "config" / "default.toml"
        if default_path.exists():
            config_path = default_path
    else:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

    if config_path is not None:
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)

        local_config_path = config_path.parent / "local.toml"
        if local_config_path.exists():
            with open(local_config_path, "rb") as f:
                local_raw: dict[str, Any] = tomllib.load(f)
            raw = _deep_merge(raw, local_raw)

    # 3. Apply INVENTORY_ADVISOR_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _env_flag(value: str) -> bool:
    return value.lower() in ("1", "true", "yes")


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply INVENTORY_ADVISOR_* env vars to the raw config dict.

    Supported overrides:
      INVENTORY_ADVISOR_ADVISORY_API_KEY  → raw["advisory"]["api_key"]
      INVENTORY_ADVISOR_ADVISORY_MODEL    → raw["advisory"]["model"]
      INVENTORY_ADVISOR_ADVISORY_ENABLED  → raw["advisory"]["enabled"]
      INVENTORY_ADVISOR_LOG_LEVEL         → raw["logging"]["level"]
      INVENTORY_ADVISOR_DEBUG             → raw["debug"]
    """
    if api_key := os.environ.get(f"{_ENV_PREFIX}ADVISORY_API_KEY"):
        raw.setdefault("advisory", {})["api_key"] = api_key

    if model := os.environ.get(f"{_ENV_PREFIX}ADVISORY_MODEL"):
        raw.setdefault("advisory", {})["model"] = model

    if enabled := os.environ.get(f"{_ENV_PREFIX}ADVISORY_ENABLED"):
        raw.setdefault("advisory", {})["enabled"] = _env_flag(enabled)

    if log_level := os.environ.get(f"{_ENV_PREFIX}LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get(f"{_ENV_PREFIX}DEBUG"):
        raw["debug"] = _env_flag(debug)

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        rules=RulesConfig(**raw.get("rules", {})),
        advisory=AdvisoryConfig(**raw.get("advisory", {})),
        report=ReportConfig(**raw.get("report", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        dashboard=DashboardConfig(**raw.get("dashboard", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
