"""
Registry Guardian — Consistency Checks

Audits of stored registry data. Each check reads the store and returns a
ConsistencyResult. Checks never write.

Five checks ship by default:
  trainer-relationships         (critical)  active agents have a trainer
  economic-data-integrity       (critical)  active agents have economic data
  static-data-bypass-detection              signs of consumers reading static data
  database-schema-health        (critical)  agents exist, no orphaned links
  api-endpoint-health           (critical)  read endpoints respond
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import httpx

from registry_guardian.primitives.common import AgentStatus
from registry_guardian.primitives.errors import StoreUnavailableError
from registry_guardian.systems.consistency.types import ConsistencyResult

if TYPE_CHECKING:
    from registry_guardian.clients.store import RegistryStore
    from registry_guardian.config import ConsistencyConfig


class ConsistencyCheck(ABC):
    """
    Base class for a scheduled audit.

    ``schedule`` is informational (cron syntax). The monitor runs every
    check on each tick.
    """

    name: str = ""
    description: str = ""
    critical: bool = False
    schedule: str = ""

    @abstractmethod
    async def evaluate(self, store: RegistryStore) -> ConsistencyResult:
        ...


def _by_agent(rows: list[dict[str, Any]]) -> dict[str, dict[str, Any]]:
    return {str(r["agentId"]): r for r in rows if r.get("agentId") is not None}


def _is_active(agent: dict[str, Any]) -> bool:
    return str(agent.get("status", "")).upper() == AgentStatus.ACTIVE


# ─── Trainer relationships ────────────────────────────────────────


class TrainerRelationshipsCheck(ConsistencyCheck):
    name = "trainer-relationships"
    description = "Verify all agents have proper trainer relationships in Registry"
    critical = True
    schedule = "0 */6 * * *"

    async def evaluate(self, store: RegistryStore) -> ConsistencyResult:
        agents = await store.list("agents")
        links = await store.list("agent_trainers")

        trainer_counts: dict[str, int] = {}
        for link in links:
            agent_id = str(link.get("agentId"))
            trainer_counts[agent_id] = trainer_counts.get(agent_id, 0) + 1

        missing = [a for a in agents if _is_active(a) and trainer_counts.get(str(a["id"]), 0) == 0]
        with_trainers = sum(1 for a in agents if trainer_counts.get(str(a["id"]), 0) > 0)

        if missing:
            return ConsistencyResult(
                passed=False,
                details=f"{len(missing)} active agents lack trainer relationships",
                errors=[
                    f"Agent {a.get('handle')} ({a.get('displayName')}) has no assigned trainers"
                    for a in missing
                ],
                metrics={
                    "total_agents": len(agents),
                    "agents_with_trainers": with_trainers,
                    "agents_without_trainers": len(missing),
                },
            )

        total_links = sum(trainer_counts.get(str(a["id"]), 0) for a in agents)
        return ConsistencyResult(
            passed=True,
            details=f"All {len(agents)} agents have proper trainer relationships",
            metrics={
                "total_agents": len(agents),
                "agents_with_trainers": with_trainers,
                "average_trainers_per_agent": total_links / len(agents) if agents else 0.0,
            },
        )


# ─── Economic data ────────────────────────────────────────────────


class EconomicDataIntegrityCheck(ConsistencyCheck):
    name = "economic-data-integrity"
    description = "Verify economic data exists in Registry profiles"
    critical = True
    schedule = "0 */4 * * *"

    async def evaluate(self, store: RegistryStore) -> ConsistencyResult:
        agents = await store.list("agents")
        profiles = _by_agent(await store.list("profiles"))

        missing = [
            a for a in agents
            if _is_active(a) and not profiles.get(str(a["id"]), {}).get("economicData")
        ]

        if missing:
            return ConsistencyResult(
                passed=False,
                details=f"{len(missing)} active agents lack economic data in profiles",
                warnings=[f"Agent {a.get('handle')} missing economic data in profile" for a in missing],
                metrics={
                    "total_agents": len(agents),
                    "agents_with_economic_data": len(agents) - len(missing),
                    "agents_without_economic_data": len(missing),
                },
            )

        return ConsistencyResult(
            passed=True,
            details=f"All {len(agents)} agents have economic data in Registry profiles",
            metrics={
                "total_agents": len(agents),
                "agents_with_economic_data": len(agents),
            },
        )


# ─── Static data bypass ───────────────────────────────────────────


class StaticDataBypassCheck(ConsistencyCheck):
    """
    Heuristic: a registry with no trainers, or with economic data on only a
    small share of agents, suggests consumers are reading a static copy
    instead of the registry.
    """

    name = "static-data-bypass-detection"
    description = "Detect if consuming systems are bypassing Registry APIs"
    critical = False
    schedule = "0 */2 * * *"

    def __init__(self, coverage_threshold: float = 0.8, min_trainers: int = 1) -> None:
        self._coverage_threshold = coverage_threshold
        self._min_trainers = min_trainers

    async def evaluate(self, store: RegistryStore) -> ConsistencyResult:
        agents_count = await store.count("agents")
        trainers_count = await store.count("trainers")
        profiles = await store.list("profiles")
        with_economic = sum(1 for p in profiles if p.get("economicData"))

        warnings: list[str] = []
        if trainers_count == 0 and self._min_trainers > 0:
            warnings.append("No trainers found in Registry - possible static data bypass")
        elif trainers_count < self._min_trainers:
            warnings.append(
                f"Only {trainers_count} trainers found in Registry "
                f"(expected at least {self._min_trainers}) - possible static data bypass"
            )

        if with_economic < agents_count * self._coverage_threshold:
            warnings.append(
                f"Only {with_economic}/{agents_count} agents have economic data - possible static fallback usage"
            )

        coverage = (with_economic / agents_count) * 100 if agents_count else 100.0
        return ConsistencyResult(
            passed=not warnings,
            details=(
                f"Detected {len(warnings)} potential static data bypasses"
                if warnings
                else "No static data bypasses detected"
            ),
            warnings=warnings,
            metrics={
                "agents_count": agents_count,
                "trainers_count": trainers_count,
                "profiles_with_economic_data": with_economic,
                "economic_data_coverage": coverage,
            },
        )


# ─── Schema health ────────────────────────────────────────────────


class DatabaseSchemaHealthCheck(ConsistencyCheck):
    name = "database-schema-health"
    description = "Verify database schema integrity and relationships"
    critical = True
    schedule = "0 0 * * *"

    async def evaluate(self, store: RegistryStore) -> ConsistencyResult:
        try:
            agents = await store.list("agents")
            if not agents:
                return ConsistencyResult(
                    passed=False,
                    details="No agents found in database",
                    errors=["Database appears to be empty or corrupted"],
                )

            trainers = await store.list("trainers")
            links = await store.list("agent_trainers")
        except StoreUnavailableError as exc:
            return ConsistencyResult(
                passed=False,
                details="Database connectivity or schema error",
                errors=[str(exc)],
            )

        agent_ids = {str(a["id"]) for a in agents}
        trainer_ids = {str(t["id"]) for t in trainers}
        orphaned = sum(
            1 for link in links
            if str(link.get("agentId")) not in agent_ids or str(link.get("trainerId")) not in trainer_ids
        )

        if orphaned:
            return ConsistencyResult(
                passed=False,
                details=f"Found {orphaned} orphaned trainer relationships",
                errors=[f"{orphaned} AgentTrainer records have invalid references"],
                metrics={"orphaned_relationships": orphaned},
            )

        return ConsistencyResult(
            passed=True,
            details="Database schema integrity verified",
            metrics={
                "agents_count": len(agents),
                "trainers_count": len(trainers),
                "relationships_count": len(links),
            },
        )


# ─── Endpoint health ──────────────────────────────────────────────


class ApiEndpointHealthCheck(ConsistencyCheck):
    """
    Probes the registry's read endpoints.

    With a base URL the probe is a real GET through httpx. Without one, each
    path is mapped to the store query that backs it.
    """

    name = "api-endpoint-health"
    description = "Verify all critical Registry API endpoints are responding"
    critical = True
    schedule = "*/30 * * * *"

    def __init__(
        self,
        paths: tuple[str, ...] = ("/api/v1/agents", "/api/v1/docs", "/api/v1/status"),
        base_url: str = "",
        timeout_s: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._paths = paths
        self._base_url = base_url
        self._timeout_s = timeout_s
        self._client = client

    async def evaluate(self, store: RegistryStore) -> ConsistencyResult:
        results: list[tuple[str, bool, float, str]] = []

        if self._base_url or self._client is not None:
            client = self._client or httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout_s)
            try:
                for path in self._paths:
                    results.append(await self._probe_http(client, path))
            finally:
                if self._client is None:
                    await client.aclose()
        else:
            for path in self._paths:
                results.append(await self._probe_store(store, path))

        unhealthy = [r for r in results if not r[1]]
        return ConsistencyResult(
            passed=not unhealthy,
            details=(
                f"{len(unhealthy)}/{len(self._paths)} endpoints unhealthy"
                if unhealthy
                else f"All {len(self._paths)} API endpoints healthy"
            ),
            errors=[f"{path}: {error or 'unhealthy'}" for path, _, _, error in unhealthy],
            metrics={
                "total_endpoints": len(self._paths),
                "healthy_endpoints": len(results) - len(unhealthy),
                "average_response_time_ms": (
                    sum(r[2] for r in results) / len(results) if results else 0.0
                ),
            },
        )

    async def _probe_http(self, client: httpx.AsyncClient, path: str) -> tuple[str, bool, float, str]:
        start = time.monotonic()
        try:
            response = await client.get(path)
        except httpx.HTTPError as exc:
            return path, False, (time.monotonic() - start) * 1000, str(exc) or type(exc).__name__
        elapsed = (time.monotonic() - start) * 1000
        if response.status_code >= 400:
            return path, False, elapsed, f"HTTP {response.status_code}"
        return path, True, elapsed, ""

    async def _probe_store(self, store: RegistryStore, path: str) -> tuple[str, bool, float, str]:
        start = time.monotonic()
        try:
            if "agents" in path:
                healthy = await store.count("agents") > 0
            else:
                healthy = await store.ping()
        except StoreUnavailableError as exc:
            return path, False, (time.monotonic() - start) * 1000, str(exc)
        return path, healthy, (time.monotonic() - start) * 1000, ""


def default_checks(config: ConsistencyConfig) -> list[ConsistencyCheck]:
    return [
        TrainerRelationshipsCheck(),
        EconomicDataIntegrityCheck(),
        StaticDataBypassCheck(
            coverage_threshold=config.economic_coverage_threshold,
            min_trainers=config.min_trainers,
        ),
        DatabaseSchemaHealthCheck(),
        ApiEndpointHealthCheck(
            paths=config.endpoint_paths,
            base_url=config.endpoint_base_url,
            timeout_s=config.endpoint_timeout_s,
        ),
    ]
