"""
Registry Guardian — Error Taxonomy

Decisions (validation, authorization) are returned as data. Exceptions are
reserved for configuration/programmer errors, store transport faults, and
the explicit ``assert_*`` fail-fast wrappers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from registry_guardian.systems.authorization.types import WriteGateResult
    from registry_guardian.systems.validation.types import ValidationOutcome


class RegistryGuardianError(Exception):
    """Root of every error raised by the guardian."""


# ─── Configuration / programmer errors ────────────────────────────


class ConfigurationError(RegistryGuardianError):
    """A deployment or programming mistake. Must fail loudly."""


class UnknownCollectionError(ConfigurationError):
    def __init__(self, collection: str) -> None:
        self.collection = collection
        super().__init__(f"Unknown registry collection: {collection!r}")


class UnknownRoleError(ConfigurationError):
    def __init__(self, role: str) -> None:
        self.role = role
        super().__init__(f"Unknown role: {role!r}")


class NoWriteGatesError(ConfigurationError):
    def __init__(self, collection: str) -> None:
        self.collection = collection
        super().__init__(f"No write gates defined for collection: {collection}")


class UnknownCheckError(ConfigurationError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Check '{name}' not found")


# ─── Fail-fast wrappers ───────────────────────────────────────────


class RegistryValidationError(RegistryGuardianError):
    """Raised by assert_valid when a payload is rejected."""

    def __init__(self, outcome: ValidationOutcome) -> None:
        self.outcome = outcome
        detail = ", ".join(f"{e.path}: {e.message}" for e in outcome.errors)
        super().__init__(
            f"Registry validation failed for {outcome.collection.value}: {detail}"
        )


class WriteAccessDenied(RegistryGuardianError):
    """Raised by assert_write_permission when a write is not allowed."""

    def __init__(self, result: WriteGateResult) -> None:
        self.result = result
        super().__init__(f"Write access denied: {result.reason}")


# ─── Infrastructure ───────────────────────────────────────────────


class StoreUnavailableError(RegistryGuardianError):
    """The backing store could not be reached or did not answer in time."""
