"""
Registry Guardian — Authorization Types
"""

from __future__ import annotations

from pydantic import ConfigDict

from registry_guardian.primitives.common import Collection, GuardianBaseModel, Role, WriteOperation


class WriteRule(GuardianBaseModel):
    """Minimum role for one (collection, operation). Registered once, never mutated."""

    model_config = ConfigDict(frozen=True)

    collection: Collection
    operation: WriteOperation
    minimum_role: Role
    description: str


class WriteGateResult(GuardianBaseModel):
    allowed: bool
    reason: str | None = None
    required_role: Role | None = None


class OperationGate(GuardianBaseModel):
    required_role: Role
    description: str


class CollectionGates(GuardianBaseModel):
    collection: Collection
    operations: dict[WriteOperation, OperationGate]
