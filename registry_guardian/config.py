"""
Registry Guardian — Configuration System

All configuration is Pydantic-validated and loaded from:
1. default.yaml (defaults)
2. REGISTRY_* environment switches (enforcement rollout gates)
3. REGISTRY_GUARDIAN_* environment variables (everything else)

The resulting config is frozen. It is built once at process start and
handed to each component, never read ad hoc from the environment.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from registry_guardian.primitives.common import Collection, EnforcementLevel

_TRUTHY = ("true", "1", "yes")


def _lower(value: Any) -> Any:
    return value.strip().lower() if isinstance(value, str) else value


# ─── Sub-configs ──────────────────────────────────────────────────


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ServerConfig(_Frozen):
    host: str = "0.0.0.0"
    port: int = 8000
    # Header carrying the caller's already-resolved role
    role_header: str = "X-Registry-Role"
    # Upper bound on one store call in the write pipeline
    write_timeout_s: float = 5.0


class ValidationConfig(_Frozen):
    # Global kill switch. Always wins over every other setting.
    disable_all: bool = False
    # Emergency bypass: every collection skips schema evaluation
    emergency_bypass: bool = False
    default_level: EnforcementLevel | None = None
    levels: Mapping[Collection, EnforcementLevel] = Field(default_factory=dict)
    bypassed_collections: frozenset[Collection] = frozenset()

    @field_validator("default_level", mode="before")
    @classmethod
    def _normalise_default(cls, v: Any) -> Any:
        return _lower(v) or None

    @field_validator("levels", mode="before")
    @classmethod
    def _normalise_levels(cls, v: Any) -> Any:
        if isinstance(v, Mapping):
            return {_lower(k): _lower(level) for k, level in v.items()}
        return v

    @field_validator("bypassed_collections", mode="before")
    @classmethod
    def _normalise_bypassed(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple, set, frozenset)):
            return frozenset(_lower(c) for c in v)
        return v


class ConsistencyConfig(_Frozen):
    enabled: bool = True
    interval_s: float = 3600.0
    initial_delay_s: float = 5.0
    check_timeout_s: float = 30.0
    alert_timeout_s: float = 10.0
    parallel: bool = False
    # Static-bypass heuristics. Tunable, not business rules.
    economic_coverage_threshold: float = 0.8
    min_trainers: int = 1
    # Liveness probes. When base_url is empty, probes run in-process.
    endpoint_base_url: str = ""
    endpoint_paths: tuple[str, ...] = ("/api/v1/agents", "/api/v1/docs", "/api/v1/status")
    endpoint_timeout_s: float = 5.0


class ScoringConfig(_Frozen):
    # Cohorts that get the relaxed launch policy
    bootstrap_cohorts: frozenset[str] = frozenset({"genesis"})
    # After this instant every agent is scored under the standard policy
    bootstrap_expires_at: datetime | None = None
    recent_activity_days: int = 7
    staleness_days: int = 14
    fetch_timeout_s: float = 5.0


class WebhookConfig(_Frozen):
    url: str = ""
    secret: str = ""
    timeout_s: float = 5.0


class MetricsConfig(_Frozen):
    flush_interval_ms: int = 1000
    batch_size: int = 100


class LoggingConfig(_Frozen):
    level: str = "INFO"
    format: str = "console"  # "console" | "json"


# ─── Root Configuration ──────────────────────────────────────────


class RegistryGuardianConfig(BaseSettings):
    """
    Root configuration. Loads from YAML, overridable by env vars.
    """

    model_config = SettingsConfigDict(
        env_prefix="REGISTRY_GUARDIAN_",
        env_nested_delimiter="__",
        extra="ignore",
        frozen=True,
    )

    instance_id: str = "registry-guardian"
    # Optional YAML file of rows loaded into the in-memory store at startup
    seed_path: str = ""

    server: ServerConfig = Field(default_factory=ServerConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    consistency: ConsistencyConfig = Field(default_factory=ConsistencyConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    webhooks: WebhookConfig = Field(default_factory=WebhookConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _validation_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """
    Translate the REGISTRY_* rollout switches into a validation sub-config.

      REGISTRY_VALIDATION_DISABLE=true        → disable_all
      REGISTRY_EMERGENCY_BYPASS=true          → emergency_bypass
      REGISTRY_VALIDATION_DEFAULT=warn        → default_level
      REGISTRY_VALIDATION_<COLLECTION>=off    → levels[collection]
      REGISTRY_BYPASS_<COLLECTION>=true       → bypassed_collections
    """
    out: dict[str, Any] = {}

    if (flag := environ.get("REGISTRY_VALIDATION_DISABLE")) is not None:
        out["disable_all"] = flag.lower() in _TRUTHY
    if (flag := environ.get("REGISTRY_EMERGENCY_BYPASS")) is not None:
        out["emergency_bypass"] = flag.lower() in _TRUTHY
    if default := environ.get("REGISTRY_VALIDATION_DEFAULT"):
        out["default_level"] = default

    levels: dict[str, str] = {}
    bypassed: list[str] = []
    for collection in Collection:
        if level := environ.get(f"REGISTRY_VALIDATION_{collection.env_suffix}"):
            levels[collection.value] = level
        if environ.get(f"REGISTRY_BYPASS_{collection.env_suffix}", "").lower() in _TRUTHY:
            bypassed.append(collection.value)
    if levels:
        out["levels"] = levels
    if bypassed:
        out["bypassed_collections"] = bypassed

    return out


def load_config(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> RegistryGuardianConfig:
    """
    Load configuration from YAML file, then apply environment variable overrides.
    """
    env = os.environ if environ is None else environ
    raw: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                raw = yaml.safe_load(f) or {}

    if overrides := _validation_overrides(env):
        raw = _deep_merge(raw, {"validation": overrides})
    if instance_id := env.get("REGISTRY_GUARDIAN_INSTANCE_ID"):
        raw["instance_id"] = instance_id
    if webhook_url := env.get("REGISTRY_WEBHOOK_URL"):
        raw.setdefault("webhooks", {})["url"] = webhook_url
    if webhook_secret := env.get("REGISTRY_WEBHOOK_SECRET"):
        raw.setdefault("webhooks", {})["secret"] = webhook_secret

    return RegistryGuardianConfig(**raw)


# ─── Seed Data ───────────────────────────────────────────────────


class SeedData(BaseModel):
    """Initial store contents: table name → rows. Each row needs an ``id``."""

    tables: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)


def load_seed(seed_path: str | Path) -> SeedData:
    """Load seed rows for the in-memory store."""
    path = Path(seed_path)
    if not path.exists():
        raise FileNotFoundError(f"Seed data not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    return SeedData(**raw)
