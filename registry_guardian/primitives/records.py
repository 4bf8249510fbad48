"""
Registry Guardian — Agent Snapshot Records

Read-only views of an agent and its related rows, assembled from the store
before any scoring happens. Scoring works purely on these snapshots.

Store rows use camelCase names; the snapshot models accept either form.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from registry_guardian.primitives.common import AgentStatus


class _Row(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="ignore",
    )

    @field_validator("created_at", check_fields=False)
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        # Store rows written without an offset are UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class ProfileSnapshot(_Row):
    statement: str | None = None
    manifesto: str | None = None
    tags: list[str] = Field(default_factory=list)
    economic_data: dict[str, Any] | None = None


class CreationSnapshot(_Row):
    id: str
    status: str = "DRAFT"
    created_at: datetime

    @property
    def is_published(self) -> bool:
        return self.status.upper() == "PUBLISHED"


class ChecklistSnapshot(_Row):
    # Fraction complete, 0.0 – 1.0
    percent: float = 0.0


class AgentRecord(_Row):
    """Everything the scoring gates look at for one agent."""

    id: str
    handle: str = ""
    display_name: str = ""
    status: AgentStatus = AgentStatus.INVITED
    cohort: str | None = None
    agent_number: int | None = None
    created_at: datetime | None = None

    profile: ProfileSnapshot | None = None
    creations: list[CreationSnapshot] = Field(default_factory=list)
    persona_ids: list[str] = Field(default_factory=list)
    checklists: list[ChecklistSnapshot] = Field(default_factory=list)
    social_accounts: list[str] = Field(default_factory=list)

    @property
    def checklist_percent(self) -> float:
        return self.checklists[0].percent if self.checklists else 0.0

    def creations_since(self, since: datetime) -> list[CreationSnapshot]:
        return [c for c in self.creations if c.created_at > since]

    def latest_creation(self) -> CreationSnapshot | None:
        if not self.creations:
            return None
        return max(self.creations, key=lambda c: c.created_at)
