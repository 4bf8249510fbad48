"""Registry Guardian — Validation: collection schemas and progressive enforcement."""

from registry_guardian.systems.validation.gates import ValidationGate
from registry_guardian.systems.validation.registry import SchemaRegistry
from registry_guardian.systems.validation.types import FieldError, ValidationOutcome

__all__ = [
    "FieldError",
    "SchemaRegistry",
    "ValidationGate",
    "ValidationOutcome",
]
