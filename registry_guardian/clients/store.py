"""
Registry Guardian — Registry Store Client

The guardian never talks to a database engine directly. It reads and writes
through ``RegistryStore``: an async, keyed, table-of-rows interface. Rows are
plain dicts using the registry's camelCase field names.

Tables used by the guardian:
  agents, trainers, agent_trainers, profiles, creations, personas,
  checklists, social_accounts, lore, economics, practice_contracts,
  capability_sets

``InMemoryRegistryStore`` is the reference implementation, used by tests
and by single-process deployments.
"""

from __future__ import annotations

import copy
import threading
from typing import Any, Protocol

import structlog

from registry_guardian.primitives.common import Collection

logger = structlog.get_logger()

# Where each collection's writes land
COLLECTION_TABLES: dict[Collection, str] = {
    Collection.AGENT: "agents",
    Collection.AGENT_STATUS: "agents",
    Collection.LORE: "lore",
    Collection.PROFILE: "profiles",
    Collection.PERSONA: "personas",
    Collection.ECONOMICS: "economics",
    Collection.PRACTICE: "practice_contracts",
    Collection.CAPABILITIES: "capability_sets",
}


class RegistryStore(Protocol):
    """Async keyed store. Implementations must be safe for concurrent use."""

    async def get(self, table: str, key: str) -> dict[str, Any] | None: ...

    async def list(self, table: str, **filters: Any) -> list[dict[str, Any]]: ...

    async def count(self, table: str, **filters: Any) -> int: ...

    async def put(self, table: str, key: str, row: dict[str, Any]) -> None: ...

    async def delete(self, table: str, key: str) -> bool: ...

    async def ping(self) -> bool: ...


def _matches(row: dict[str, Any], filters: dict[str, Any]) -> bool:
    for field, expected in filters.items():
        actual = row.get(field)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


class InMemoryRegistryStore:
    """
    Dict-backed RegistryStore.

    Filters are equality matches; a list/tuple/set filter value means
    "field is one of". Rows are deep-copied in and out so callers can never
    mutate stored state through a returned reference.
    """

    def __init__(self, tables: dict[str, dict[str, dict[str, Any]]] | None = None) -> None:
        self._tables: dict[str, dict[str, dict[str, Any]]] = copy.deepcopy(tables) if tables else {}
        self._lock = threading.Lock()

    async def get(self, table: str, key: str) -> dict[str, Any] | None:
        with self._lock:
            row = self._tables.get(table, {}).get(key)
            return copy.deepcopy(row) if row is not None else None

    async def list(self, table: str, **filters: Any) -> list[dict[str, Any]]:
        with self._lock:
            rows = list(self._tables.get(table, {}).values())
            return [copy.deepcopy(r) for r in rows if _matches(r, filters)]

    async def count(self, table: str, **filters: Any) -> int:
        with self._lock:
            rows = self._tables.get(table, {}).values()
            return sum(1 for r in rows if _matches(r, filters))

    async def put(self, table: str, key: str, row: dict[str, Any]) -> None:
        with self._lock:
            self._tables.setdefault(table, {})[key] = copy.deepcopy(row)

    async def delete(self, table: str, key: str) -> bool:
        with self._lock:
            return self._tables.get(table, {}).pop(key, None) is not None

    async def ping(self) -> bool:
        return True

    # ─── Convenience (seeding / tests) ──────────────────────────────

    def seed(self, table: str, rows: list[dict[str, Any]], key_field: str = "id") -> None:
        """Synchronously load rows into a table."""
        with self._lock:
            target = self._tables.setdefault(table, {})
            for row in rows:
                target[str(row[key_field])] = copy.deepcopy(row)
        logger.debug("store_seeded", table=table, rows=len(rows))
