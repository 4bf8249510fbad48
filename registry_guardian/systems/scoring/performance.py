"""
Registry Guardian — Performance Monitor

Continuous health scoring for launched agents. Each report carries a mean
score across demand, retention, and efficiency, a status label from fixed
breakpoints, and alerts.

Alerts are their own rule layer. A stale agent alerts even when its mean
score looks fine.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any, TypeVar

import structlog

from registry_guardian.primitives.common import AgentStatus, utc_now
from registry_guardian.primitives.errors import StoreUnavailableError
from registry_guardian.systems.scoring.engine import combine
from registry_guardian.systems.scoring.gates import (
    demand_performance,
    efficiency_performance,
    last_activity_days,
    performance_recommendations,
    retention_performance,
)
from registry_guardian.systems.scoring.types import (
    GateName,
    PerformanceDashboard,
    PerformanceReport,
    PerformanceStatus,
    Period,
    StatusDistribution,
)

if TYPE_CHECKING:
    from registry_guardian.clients.store import RegistryStore
    from registry_guardian.config import ScoringConfig
    from registry_guardian.primitives.records import AgentRecord
    from registry_guardian.systems.scoring.snapshot import SnapshotLoader
    from registry_guardian.telemetry.metrics import MetricCollector

logger = structlog.get_logger()

_MONITORED_STATUSES = [AgentStatus.ACTIVE.value, AgentStatus.ONBOARDING.value]

_T = TypeVar("_T")


def status_for(score: float) -> PerformanceStatus:
    if score >= 70:
        return PerformanceStatus.EXCELLENT
    if score >= 50:
        return PerformanceStatus.GOOD
    if score >= 30:
        return PerformanceStatus.CONCERNING
    return PerformanceStatus.CRITICAL


class PerformanceMonitor:
    system_id: str = "scoring"

    def __init__(
        self,
        config: ScoringConfig,
        store: RegistryStore | None = None,
        loader: SnapshotLoader | None = None,
        metrics: MetricCollector | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._config = config
        self._store = store
        self._loader = loader
        self._metrics = metrics
        self._clock = clock
        self._logger = logger.bind(system="scoring")

    def evaluate(self, record: AgentRecord, period: Period | str = Period.WEEKLY) -> PerformanceReport:
        period = Period(period)
        now = self._clock()
        card = combine([
            demand_performance(record, now, period.days),
            retention_performance(record, now, period.days),
            efficiency_performance(record, now, period.days),
        ])

        alerts: list[str] = []
        if card.score < 30:
            alerts.append("CRITICAL: Overall performance below 30%")
        if last_activity_days(record, now) > self._config.staleness_days:
            alerts.append(f"ALERT: No activity for over {self._config.staleness_days} days")
        if card.gate(GateName.DEMAND).score < 20:
            alerts.append("WARNING: Very low demand indicators")

        return PerformanceReport(
            agent_id=record.id,
            agent_number=record.agent_number,
            handle=record.handle,
            period=period,
            timestamp=now,
            gates=card.gates,
            overall_score=card.score,
            status=status_for(card.score),
            alerts=alerts,
            recommendations=performance_recommendations(card.gates),
        )

    async def report(self, agent_id: str, period: Period | str = Period.WEEKLY) -> PerformanceReport | None:
        """Fetch and evaluate one agent. None when the agent does not exist."""
        if self._loader is None:
            raise RuntimeError("PerformanceMonitor.report needs a SnapshotLoader")
        record = await self._loader.load(agent_id)
        if record is None:
            return None
        return self.evaluate(record, period)

    async def dashboard(self, period: Period | str = Period.WEEKLY) -> PerformanceDashboard:
        """
        Evaluate every ACTIVE or ONBOARDING agent, best first.

        Agents whose snapshot cannot be fetched are skipped and logged; the
        dashboard covers whatever could be read. Raises StoreUnavailableError
        when the agent list itself cannot be fetched in time.
        """
        if self._store is None or self._loader is None:
            raise RuntimeError("PerformanceMonitor.dashboard needs a store and a SnapshotLoader")
        period = Period(period)
        agents = await self._bounded(self._store.list("agents", status=_MONITORED_STATUSES))

        reports: list[PerformanceReport] = []
        for agent in agents:
            agent_id = str(agent["id"])
            try:
                record = await self._loader.load(agent_id)
            except StoreUnavailableError as exc:
                self._logger.warning("performance_snapshot_unavailable", agent_id=agent_id, error=str(exc))
                continue
            if record is None:
                continue
            report = self.evaluate(record, period)
            reports.append(report)
            self._emit(report)

        reports.sort(key=lambda r: r.overall_score, reverse=True)

        counts = Counter(r.status.value for r in reports)
        distribution = StatusDistribution(**{s.value: counts[s.value] for s in PerformanceStatus})

        dashboard = PerformanceDashboard(
            timestamp=self._clock(),
            period=period,
            total_agents=len(reports),
            average_score=sum(r.overall_score for r in reports) / len(reports) if reports else 0.0,
            status_distribution=distribution,
            agents=reports,
        )
        self._logger.info(
            "performance_dashboard",
            period=period.value,
            total_agents=dashboard.total_agents,
            average_score=round(dashboard.average_score, 1),
        )
        return dashboard

    async def health_check(self) -> dict[str, Any]:
        """Store reachability plus the number of monitored agents."""
        if self._store is None:
            return {"healthy": False, "details": {"error": "No store configured"}}
        try:
            reachable = await self._bounded(self._store.ping())
            active = await self._bounded(self._store.count("agents", status=_MONITORED_STATUSES))
        except StoreUnavailableError as exc:
            return {"healthy": False, "details": {"error": str(exc), "timestamp": self._clock().isoformat()}}
        return {
            "healthy": reachable,
            "details": {
                "database": "connected" if reachable else "unreachable",
                "active_agents": active,
                "recent_reports": len(self._metrics.recent(event="performance_report")) if self._metrics else 0,
                "timestamp": self._clock().isoformat(),
            },
        }

    async def _bounded(self, coro: Awaitable[_T]) -> _T:
        timeout_s = self._config.fetch_timeout_s
        try:
            return await asyncio.wait_for(coro, timeout=timeout_s)
        except TimeoutError:
            self._logger.warning("performance_store_timeout", timeout_s=timeout_s)
            raise StoreUnavailableError(f"Store did not respond within {timeout_s:g}s") from None

    def _emit(self, report: PerformanceReport) -> None:
        if self._metrics is None:
            return
        self._metrics.record_event(self.system_id, "performance_report", {
            "agent_id": report.agent_id,
            "period": report.period.value,
            "overall_score": report.overall_score,
            "status": report.status.value,
            "gate_scores": {g.name.value: g.score for g in report.gates},
            "alerts": report.alerts,
        })
