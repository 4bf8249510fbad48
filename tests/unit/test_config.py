"""
Tests for configuration loading.

Covers:
  - Defaults without a file or environment
  - YAML loading and REGISTRY_* switch overrides
  - Rejection of unknown enforcement levels
  - Frozen config
  - Seed data loading
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from registry_guardian.config import load_config, load_seed
from registry_guardian.primitives.common import Collection, EnforcementLevel


def _write(path: Path, text: str) -> Path:
    path.write_text(text)
    return path


class TestLoadConfig:
    def test_defaults(self):
        config = load_config(None, environ={})
        assert config.validation.disable_all is False
        assert config.validation.default_level is None
        assert config.consistency.interval_s == 3600.0
        assert config.scoring.bootstrap_cohorts == frozenset({"genesis"})
        assert config.webhooks.url == ""

    def test_missing_file_falls_back_to_defaults(self, tmp_path: Path):
        config = load_config(tmp_path / "absent.yaml", environ={})
        assert config.server.port == 8000

    def test_yaml_values(self, tmp_path: Path):
        path = _write(tmp_path / "config.yaml", (
            "instance_id: guardian-test\n"
            "validation:\n"
            "  default_level: warn\n"
            "  levels:\n"
            "    economics: enforce\n"
            "consistency:\n"
            "  parallel: true\n"
            "scoring:\n"
            "  bootstrap_cohorts: [genesis, pilot]\n"
        ))
        config = load_config(path, environ={})
        assert config.instance_id == "guardian-test"
        assert config.validation.default_level == EnforcementLevel.WARN
        assert config.validation.levels[Collection.ECONOMICS] == EnforcementLevel.ENFORCE
        assert config.consistency.parallel is True
        assert config.scoring.bootstrap_cohorts == frozenset({"genesis", "pilot"})

    def test_env_switches(self):
        config = load_config(None, environ={
            "REGISTRY_VALIDATION_DISABLE": "true",
            "REGISTRY_EMERGENCY_BYPASS": "1",
            "REGISTRY_VALIDATION_DEFAULT": "WARN",
            "REGISTRY_VALIDATION_PROFILE": "off",
            "REGISTRY_VALIDATION_AGENT_STATUS": "enforce",
            "REGISTRY_BYPASS_LORE": "yes",
            "REGISTRY_BYPASS_PERSONA": "false",
        })
        validation = config.validation
        assert validation.disable_all is True
        assert validation.emergency_bypass is True
        assert validation.default_level == EnforcementLevel.WARN
        assert validation.levels[Collection.PROFILE] == EnforcementLevel.OFF
        assert validation.levels[Collection.AGENT_STATUS] == EnforcementLevel.ENFORCE
        assert validation.bypassed_collections == frozenset({Collection.LORE})

    def test_env_overrides_yaml(self, tmp_path: Path):
        path = _write(tmp_path / "config.yaml", "validation:\n  levels:\n    lore: warn\n    profile: warn\n")
        config = load_config(path, environ={"REGISTRY_VALIDATION_LORE": "enforce"})
        assert config.validation.levels[Collection.LORE] == EnforcementLevel.ENFORCE
        assert config.validation.levels[Collection.PROFILE] == EnforcementLevel.WARN

    def test_webhook_env(self):
        config = load_config(None, environ={
            "REGISTRY_WEBHOOK_URL": "https://hooks.example/registry",
            "REGISTRY_WEBHOOK_SECRET": "s3cret",
        })
        assert config.webhooks.url == "https://hooks.example/registry"
        assert config.webhooks.secret == "s3cret"

    def test_unknown_level_rejected(self):
        with pytest.raises(ValidationError):
            load_config(None, environ={"REGISTRY_VALIDATION_AGENT": "loud"})

    def test_unknown_collection_rejected(self, tmp_path: Path):
        path = _write(tmp_path / "config.yaml", "validation:\n  levels:\n    artworks: warn\n")
        with pytest.raises(ValidationError):
            load_config(path, environ={})

    def test_config_is_frozen(self):
        config = load_config(None, environ={})
        with pytest.raises(ValidationError):
            config.validation.disable_all = True


class TestLoadSeed:
    def test_loads_tables(self, tmp_path: Path):
        path = _write(tmp_path / "seed.yaml", (
            "tables:\n"
            "  agents:\n"
            "    - id: abraham\n"
            "      handle: abraham\n"
            "      status: ACTIVE\n"
        ))
        seed = load_seed(path)
        assert seed.tables["agents"][0]["handle"] == "abraham"

    def test_missing_seed_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_seed(tmp_path / "missing.yaml")
