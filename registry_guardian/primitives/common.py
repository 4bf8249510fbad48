"""
Registry Guardian — Common Primitives

Shared enums, base classes, and utilities used across all systems.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from pydantic import BaseModel
from ulid import ULID

from registry_guardian.primitives.errors import UnknownCollectionError


def new_id() -> str:
    """Generate a new ULID string. Time-sortable, globally unique."""
    return str(ULID())


def utc_now() -> datetime:
    """Current UTC time, timezone-aware."""
    return datetime.now(timezone.utc)


# ─── Enums ────────────────────────────────────────────────────────


class Collection(enum.StrEnum):
    """
    The closed set of registry collections the guardian knows about.

    Each member has exactly one schema in the SchemaRegistry. Free-form
    strings are converted through ``parse_collection`` so typos fail loudly
    instead of falling through to an ambiguous allow/deny.
    """

    AGENT = "agent"
    AGENT_STATUS = "agent_status"
    LORE = "lore"
    PROFILE = "profile"
    PERSONA = "persona"
    ECONOMICS = "economics"
    PRACTICE = "practice"
    CAPABILITIES = "capabilities"

    @property
    def env_suffix(self) -> str:
        return self.value.upper()


class EnforcementLevel(enum.StrEnum):
    OFF = "off"
    WARN = "warn"
    ENFORCE = "enforce"


class WriteOperation(enum.StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class Role(enum.StrEnum):
    GUEST = "GUEST"
    TRAINER = "TRAINER"
    COLLECTOR = "COLLECTOR"
    INVESTOR = "INVESTOR"
    CURATOR = "CURATOR"
    ADMIN = "ADMIN"


class AgentStatus(enum.StrEnum):
    INVITED = "INVITED"
    APPLYING = "APPLYING"
    ONBOARDING = "ONBOARDING"
    ACTIVE = "ACTIVE"
    GRADUATED = "GRADUATED"
    ARCHIVED = "ARCHIVED"


class CohortPolicy(enum.StrEnum):
    RELAXED = "relaxed"    # Bootstrap cohort
    STANDARD = "standard"  # Everyone else


class HealthStatus(enum.StrEnum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


def parse_collection(value: Collection | str) -> Collection:
    """
    Resolve a collection name to the closed enum.
    Raises UnknownCollectionError for anything unregistered.
    """
    if isinstance(value, Collection):
        return value
    try:
        return Collection(str(value).strip().lower())
    except ValueError:
        raise UnknownCollectionError(str(value)) from None


# ─── Base Models ──────────────────────────────────────────────────


class GuardianBaseModel(BaseModel):
    """Base model for all guardian primitives."""

    model_config = {"populate_by_name": True, "from_attributes": True}
