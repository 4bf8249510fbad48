"""
Registry Guardian — Validation Gate

Progressive schema enforcement for registry writes.

Each collection runs at one of three levels:
  OFF      schema never evaluated, everything passes
  WARN     schema evaluated, failures are reported but the write passes
  ENFORCE  schema evaluated, failures block the write

Levels and bypass flags come from the frozen ValidationConfig. Rollout moves
a collection OFF → WARN → ENFORCE without a code change.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from registry_guardian.primitives.common import Collection, EnforcementLevel, parse_collection
from registry_guardian.primitives.errors import RegistryValidationError
from registry_guardian.systems.validation.registry import SchemaRegistry
from registry_guardian.systems.validation.types import (
    CollectionStatus,
    ValidationHealth,
    ValidationOutcome,
)

if TYPE_CHECKING:
    from registry_guardian.config import ValidationConfig
    from registry_guardian.telemetry.metrics import MetricCollector

logger = structlog.get_logger()


class ValidationGate:
    """
    Synchronous, stateless apart from frozen config. Safe to share across
    request threads.
    """

    system_id: str = "validation"

    def __init__(
        self,
        config: ValidationConfig,
        schemas: SchemaRegistry | None = None,
        metrics: MetricCollector | None = None,
    ) -> None:
        self._config = config
        self._schemas = schemas or SchemaRegistry()
        self._metrics = metrics
        self._logger = logger.bind(system="validation")

    # ─── Policy ─────────────────────────────────────────────────────

    def resolve_level(self, collection: Collection | str) -> EnforcementLevel:
        """Global disable → per-collection override → default → ENFORCE."""
        coll = parse_collection(collection)
        if self._config.disable_all:
            return EnforcementLevel.OFF
        if (level := self._config.levels.get(coll)) is not None:
            return level
        return self._config.default_level or EnforcementLevel.ENFORCE

    def _can_bypass(self, coll: Collection) -> bool:
        return self._config.emergency_bypass or coll in self._config.bypassed_collections

    def is_bypassed(self, collection: Collection | str) -> bool:
        coll = parse_collection(collection)
        if self._config.emergency_bypass:
            self._logger.warning("validation_emergency_bypass", collection=coll.value)
            return True
        if coll in self._config.bypassed_collections:
            self._logger.warning("validation_bypassed", collection=coll.value)
            return True
        return False

    # ─── Validation ─────────────────────────────────────────────────

    def validate(
        self,
        collection: Collection | str,
        payload: Any,
        context: dict[str, Any] | None = None,
    ) -> ValidationOutcome:
        coll = parse_collection(collection)
        level = self.resolve_level(coll)
        bypassed = self.is_bypassed(coll)

        if level == EnforcementLevel.OFF or bypassed:
            outcome = ValidationOutcome(
                valid=True,
                level=level,
                collection=coll,
                bypassed=True,
                warnings=[f"Validation bypassed for {coll.value}"] if bypassed else [],
            )
            self._emit(outcome, context)
            return outcome

        errors = self._schemas.check(coll, payload)

        if not errors:
            outcome = ValidationOutcome(valid=True, level=level, collection=coll)
        elif level == EnforcementLevel.WARN:
            self._logger.warning(
                "validation_warnings",
                collection=coll.value,
                errors=[e.render() for e in errors],
            )
            outcome = ValidationOutcome(
                valid=True,
                errors=errors,
                warnings=[e.render() for e in errors],
                level=level,
                collection=coll,
            )
        else:
            self._logger.info(
                "validation_rejected",
                collection=coll.value,
                error_count=len(errors),
                errors=[e.render() for e in errors],
            )
            outcome = ValidationOutcome(valid=False, errors=errors, level=level, collection=coll)

        self._emit(outcome, context)
        return outcome

    def assert_valid(
        self,
        collection: Collection | str,
        payload: Any,
        context: dict[str, Any] | None = None,
    ) -> Any:
        """Return ``payload`` unchanged, or raise RegistryValidationError when it is rejected."""
        outcome = self.validate(collection, payload, context)
        if not outcome.valid:
            raise RegistryValidationError(outcome)
        return payload

    def _emit(self, outcome: ValidationOutcome, context: dict[str, Any] | None) -> None:
        if self._metrics is None:
            return
        self._metrics.record_event(self.system_id, "validation_result", {
            "collection": outcome.collection.value,
            "level": outcome.level.value,
            "valid": outcome.valid,
            "bypassed": outcome.bypassed,
            "error_count": len(outcome.errors),
            "warning_count": len(outcome.warnings),
            "context": dict(context or {}),
        })

    # ─── Introspection ──────────────────────────────────────────────

    def status(self) -> dict[Collection, CollectionStatus]:
        return {
            coll: CollectionStatus(
                level=self.resolve_level(coll),
                can_bypass=self._can_bypass(coll),
                env_var=f"REGISTRY_VALIDATION_{coll.env_suffix}",
            )
            for coll in Collection
        }

    def system_health(self) -> ValidationHealth:
        issues: list[str] = []
        recommendations: list[str] = []

        if self._config.emergency_bypass:
            issues.append("Emergency bypass is active - all validation disabled")
            recommendations.append("Remove REGISTRY_EMERGENCY_BYPASS=true from environment")

        bypassed = [c for c in Collection if c in self._config.bypassed_collections]
        if bypassed:
            issues.append(f"Collections with validation bypassed: {', '.join(c.value for c in bypassed)}")
            flags = ", ".join(f"REGISTRY_BYPASS_{c.env_suffix}=false" for c in bypassed)
            recommendations.append(f"Remove bypass flags: {flags}")

        if self._config.disable_all:
            issues.append("Validation is globally disabled")
            recommendations.append("Remove REGISTRY_VALIDATION_DISABLE=true from environment")

        warn_level = [c for c in Collection if self.resolve_level(c) == EnforcementLevel.WARN]
        if warn_level:
            recommendations.append(f"Consider upgrading to ENFORCE: {', '.join(c.value for c in warn_level)}")

        return ValidationHealth(healthy=not issues, issues=issues, recommendations=recommendations)
