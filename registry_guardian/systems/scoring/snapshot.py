"""
Registry Guardian — Agent Snapshot Loader

Fetches an agent and its related rows in one time-bounded step so the
scoring gates can run purely on the result.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog

from registry_guardian.primitives.errors import StoreUnavailableError
from registry_guardian.primitives.records import (
    AgentRecord,
    ChecklistSnapshot,
    CreationSnapshot,
    ProfileSnapshot,
)

if TYPE_CHECKING:
    from registry_guardian.clients.store import RegistryStore

logger = structlog.get_logger()


class SnapshotLoader:
    def __init__(self, store: RegistryStore, timeout_s: float = 5.0) -> None:
        self._store = store
        self._timeout_s = timeout_s

    async def load(self, agent_id: str) -> AgentRecord | None:
        """
        The agent's snapshot, or None if it does not exist.
        Raises StoreUnavailableError when the store times out.
        """
        try:
            return await asyncio.wait_for(self._fetch(agent_id), timeout=self._timeout_s)
        except TimeoutError:
            logger.warning("snapshot_fetch_timeout", agent_id=agent_id, timeout_s=self._timeout_s)
            raise StoreUnavailableError(
                f"Snapshot fetch for {agent_id} timed out after {self._timeout_s:g}s"
            ) from None

    async def _fetch(self, agent_id: str) -> AgentRecord | None:
        agent = await self._store.get("agents", agent_id)
        if agent is None:
            return None

        profiles, creations, personas, checklists, socials = await asyncio.gather(
            self._store.list("profiles", agentId=agent_id),
            self._store.list("creations", agentId=agent_id),
            self._store.list("personas", agentId=agent_id),
            self._store.list("checklists", agentId=agent_id),
            self._store.list("social_accounts", agentId=agent_id),
        )
        return build_record(agent, profiles, creations, personas, checklists, socials)


def build_record(
    agent: dict[str, Any],
    profiles: list[dict[str, Any]],
    creations: list[dict[str, Any]],
    personas: list[dict[str, Any]],
    checklists: list[dict[str, Any]],
    socials: list[dict[str, Any]],
) -> AgentRecord:
    record = AgentRecord.model_validate(agent)
    return record.model_copy(update={
        "profile": ProfileSnapshot.model_validate(profiles[0]) if profiles else None,
        "creations": [CreationSnapshot.model_validate(c) for c in creations],
        "persona_ids": [str(p.get("id", "")) for p in personas],
        "checklists": [ChecklistSnapshot.model_validate(c) for c in checklists],
        "social_accounts": [str(s.get("platform") or s.get("id", "")) for s in socials],
    })
