"""
Registry Guardian — Validation Types
"""

from __future__ import annotations

from pydantic import Field

from registry_guardian.primitives.common import Collection, EnforcementLevel, GuardianBaseModel


class FieldError(GuardianBaseModel):
    """One schema violation. ``path`` is dot-joined, using wire (camelCase) names."""

    path: str
    message: str
    type: str = "value_error"

    def render(self) -> str:
        return f"{self.path}: {self.message}"


class ValidationOutcome(GuardianBaseModel):
    """
    Result of one ValidationGate.validate() call.

    OFF or bypass: valid and bypassed, schema never ran.
    WARN: always valid, schema errors are also rendered into ``warnings``.
    ENFORCE: ``valid`` is schema conformance.
    """

    valid: bool
    errors: list[FieldError] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    level: EnforcementLevel
    collection: Collection
    bypassed: bool = False


class CollectionStatus(GuardianBaseModel):
    level: EnforcementLevel
    can_bypass: bool
    env_var: str


class ValidationHealth(GuardianBaseModel):
    healthy: bool
    issues: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
