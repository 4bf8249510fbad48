"""
Tests for the ValidationGate.

Covers:
  - Level resolution: global disable, per-collection, default
  - ENFORCE rejects, WARN passes with warnings, OFF skips the schema
  - Emergency and per-collection bypass
  - Observability records per call
  - assert_valid
  - status() and system_health()
"""

from __future__ import annotations

import pytest

from registry_guardian.config import ValidationConfig
from registry_guardian.primitives.common import Collection, EnforcementLevel
from registry_guardian.primitives.errors import ConfigurationError, RegistryValidationError, UnknownCollectionError
from registry_guardian.systems.validation import SchemaRegistry, ValidationGate
from registry_guardian.systems.validation.registry import DEFAULT_SCHEMAS
from registry_guardian.telemetry.metrics import MetricCollector


def _make_gate(metrics: MetricCollector | None = None, **overrides) -> ValidationGate:
    return ValidationGate(ValidationConfig(**overrides), metrics=metrics)


def _valid_agent() -> dict:
    return {
        "handle": "abraham",
        "displayName": "Abraham",
        "role": "TRAINER",
        "timezone": "America/New_York",
        "configHash": "sha256:abc",
    }


class TestResolveLevel:
    def test_defaults_to_enforce(self):
        assert _make_gate().resolve_level(Collection.AGENT) == EnforcementLevel.ENFORCE

    def test_default_level_applies_without_override(self):
        gate = _make_gate(default_level="warn")
        assert gate.resolve_level(Collection.LORE) == EnforcementLevel.WARN

    def test_collection_override_beats_default(self):
        gate = _make_gate(default_level="warn", levels={"profile": "enforce"})
        assert gate.resolve_level(Collection.PROFILE) == EnforcementLevel.ENFORCE
        assert gate.resolve_level(Collection.PERSONA) == EnforcementLevel.WARN

    def test_global_disable_wins(self):
        gate = _make_gate(disable_all=True, levels={"agent": "enforce"})
        assert gate.resolve_level(Collection.AGENT) == EnforcementLevel.OFF

    def test_unknown_collection_raises(self):
        with pytest.raises(UnknownCollectionError):
            _make_gate().resolve_level("artworks")


class TestValidate:
    def test_enforce_rejects_empty_agent(self):
        outcome = _make_gate().validate(Collection.AGENT, {})
        assert outcome.valid is False
        assert outcome.level == EnforcementLevel.ENFORCE
        paths = {e.path for e in outcome.errors}
        assert "handle" in paths
        assert "displayName" in paths

    def test_enforce_accepts_valid_agent(self):
        outcome = _make_gate().validate(Collection.AGENT, _valid_agent())
        assert outcome.valid is True
        assert outcome.errors == []
        assert outcome.bypassed is False

    def test_warn_passes_with_warnings(self):
        outcome = _make_gate(levels={"agent": "warn"}).validate(Collection.AGENT, {})
        assert outcome.valid is True
        assert outcome.errors
        assert "handle: Field required" in outcome.warnings

    def test_off_never_evaluates_schema(self):
        outcome = _make_gate(levels={"agent": "off"}).validate(Collection.AGENT, None)
        assert outcome.valid is True
        assert outcome.bypassed is True
        assert outcome.errors == []
        assert outcome.warnings == []

    def test_emergency_bypass_passes_anything(self):
        outcome = _make_gate(emergency_bypass=True).validate(Collection.ECONOMICS, {"wallet": "nope"})
        assert outcome.valid is True
        assert outcome.bypassed is True
        assert outcome.warnings == ["Validation bypassed for economics"]

    def test_collection_bypass_is_scoped(self):
        gate = _make_gate(bypassed_collections=["lore"])
        assert gate.validate(Collection.LORE, {}).valid is True
        assert gate.validate(Collection.PROFILE, {}).valid is False

    def test_non_object_payload_is_a_root_error(self):
        outcome = _make_gate().validate(Collection.PROFILE, ["not", "a", "dict"])
        assert outcome.valid is False
        assert outcome.errors[0].path == "(root)"
        assert "Expected an object" in outcome.errors[0].message

    def test_emits_one_record_per_call(self):
        metrics = MetricCollector()
        gate = _make_gate(metrics=metrics)
        gate.validate(Collection.AGENT, {}, context={"source": "ui"})
        gate.validate(Collection.AGENT, _valid_agent())

        records = metrics.recent(event="validation_result")
        assert len(records) == 2
        assert records[0]["valid"] is False
        assert records[0]["error_count"] > 0
        assert records[0]["context"] == {"source": "ui"}
        assert records[1]["valid"] is True
        assert records[1]["level"] == "enforce"

    def test_bypass_is_recorded(self):
        metrics = MetricCollector()
        _make_gate(metrics=metrics, emergency_bypass=True).validate(Collection.LORE, {})
        assert metrics.recent(event="validation_result")[-1]["bypassed"] is True


class TestAssertValid:
    def test_returns_payload_when_valid(self):
        payload = _valid_agent()
        assert _make_gate().assert_valid(Collection.AGENT, payload) is payload

    def test_raises_when_rejected(self):
        with pytest.raises(RegistryValidationError) as exc_info:
            _make_gate().assert_valid(Collection.AGENT, {})
        assert exc_info.value.outcome.valid is False
        assert "handle" in str(exc_info.value)

    def test_warn_does_not_raise(self):
        gate = _make_gate(levels={"agent": "warn"})
        assert gate.assert_valid(Collection.AGENT, {}) == {}


class TestIntrospection:
    def test_status_covers_every_collection(self):
        status = _make_gate(levels={"lore": "warn"}, bypassed_collections=["persona"]).status()
        assert set(status) == set(Collection)
        assert status[Collection.LORE].level == EnforcementLevel.WARN
        assert status[Collection.PERSONA].can_bypass is True
        assert status[Collection.AGENT].can_bypass is False
        assert status[Collection.AGENT_STATUS].env_var == "REGISTRY_VALIDATION_AGENT_STATUS"

    def test_healthy_by_default(self):
        health = _make_gate().system_health()
        assert health.healthy is True
        assert health.issues == []

    def test_emergency_bypass_is_an_issue(self):
        health = _make_gate(emergency_bypass=True).system_health()
        assert health.healthy is False
        assert "Emergency bypass is active - all validation disabled" in health.issues
        assert "Remove REGISTRY_EMERGENCY_BYPASS=true from environment" in health.recommendations

    def test_bypassed_collections_are_listed(self):
        health = _make_gate(bypassed_collections=["lore"]).system_health()
        assert "Collections with validation bypassed: lore" in health.issues
        assert "Remove bypass flags: REGISTRY_BYPASS_LORE=false" in health.recommendations

    def test_global_disable_is_an_issue(self):
        health = _make_gate(disable_all=True).system_health()
        assert "Validation is globally disabled" in health.issues

    def test_warn_level_recommends_upgrade_without_issue(self):
        health = _make_gate(levels={"profile": "warn"}).system_health()
        assert health.healthy is True
        assert "Consider upgrading to ENFORCE: profile" in health.recommendations


class TestSchemaRegistry:
    def test_missing_schema_is_a_configuration_error(self):
        partial = {c: s for c, s in DEFAULT_SCHEMAS.items() if c != Collection.PRACTICE}
        with pytest.raises(ConfigurationError):
            SchemaRegistry(partial)

    def test_every_collection_has_a_schema(self):
        registry = SchemaRegistry()
        for collection in Collection:
            assert registry.schema_for(collection) is DEFAULT_SCHEMAS[collection]
