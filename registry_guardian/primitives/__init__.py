"""Registry Guardian — shared primitives."""

from registry_guardian.primitives.common import (
    AgentStatus,
    CohortPolicy,
    Collection,
    EnforcementLevel,
    GuardianBaseModel,
    HealthStatus,
    Role,
    WriteOperation,
    new_id,
    parse_collection,
    utc_now,
)
from registry_guardian.primitives.records import AgentRecord

__all__ = [
    "AgentRecord",
    "AgentStatus",
    "CohortPolicy",
    "Collection",
    "EnforcementLevel",
    "GuardianBaseModel",
    "HealthStatus",
    "Role",
    "WriteOperation",
    "new_id",
    "parse_collection",
    "utc_now",
]
