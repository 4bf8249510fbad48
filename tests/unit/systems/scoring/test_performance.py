"""
Tests for the PerformanceMonitor.

Covers:
  - Status breakpoints
  - Gate scoring for busy and idle agents
  - Alert rules, independent of the mean score
  - Per-agent reports and the dashboard
  - Store health check
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from registry_guardian.clients.store import InMemoryRegistryStore
from registry_guardian.config import ScoringConfig
from registry_guardian.primitives.common import AgentStatus
from registry_guardian.primitives.errors import StoreUnavailableError
from registry_guardian.primitives.records import AgentRecord, CreationSnapshot, ProfileSnapshot
from registry_guardian.systems.scoring import (
    PerformanceMonitor,
    PerformanceStatus,
    Period,
    SnapshotLoader,
    status_for,
)
from registry_guardian.systems.scoring.gates import NO_ACTIVITY_DAYS, last_activity_days
from registry_guardian.telemetry.metrics import MetricCollector

_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _clock() -> datetime:
    return _NOW


def _creations(count: int, age: timedelta, published: bool = True) -> list[CreationSnapshot]:
    return [
        CreationSnapshot(
            id=f"c{i}",
            status="PUBLISHED" if published else "DRAFT",
            created_at=_NOW - age - timedelta(minutes=i),
        )
        for i in range(count)
    ]


def _make_record(**overrides) -> AgentRecord:
    fields = {
        "id": "agent-1",
        "handle": "abraham",
        "display_name": "Abraham",
        "status": AgentStatus.ACTIVE,
        "agent_number": 1,
    }
    fields.update(overrides)
    return AgentRecord(**fields)


def _full_profile() -> ProfileSnapshot:
    return ProfileSnapshot(statement="I paint", manifesto="Art is work", tags=["painting"])


def _make_monitor(store=None, metrics=None, **config) -> PerformanceMonitor:
    loader = SnapshotLoader(store) if store is not None else None
    return PerformanceMonitor(ScoringConfig(**config), store=store, loader=loader, metrics=metrics, clock=_clock)


class _SlowStore(InMemoryRegistryStore):
    async def list(self, table, **filters):
        await asyncio.sleep(1)
        return []

    async def ping(self):
        await asyncio.sleep(1)
        return True


class TestStatusFor:
    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (100, PerformanceStatus.EXCELLENT),
            (70, PerformanceStatus.EXCELLENT),
            (69.9, PerformanceStatus.GOOD),
            (50, PerformanceStatus.GOOD),
            (49.9, PerformanceStatus.CONCERNING),
            (30, PerformanceStatus.CONCERNING),
            (29.9, PerformanceStatus.CRITICAL),
            (0, PerformanceStatus.CRITICAL),
        ],
    )
    def test_breakpoints(self, score: float, expected: PerformanceStatus):
        assert status_for(score) == expected


class TestLastActivity:
    def test_no_creations(self):
        assert last_activity_days(_make_record(), _NOW) == NO_ACTIVITY_DAYS

    def test_whole_days_since_latest(self):
        record = _make_record(creations=_creations(1, timedelta(days=3, hours=5)))
        assert last_activity_days(record, _NOW) == 3

    def test_offsetless_timestamp_is_read_as_utc(self):
        creation = CreationSnapshot.model_validate({"id": "c1", "createdAt": "2026-02-27T12:00:00"})
        assert creation.created_at.tzinfo is not None
        assert last_activity_days(_make_record(creations=[creation]), _NOW) == 2


class TestEvaluate:
    def test_busy_agent_is_excellent(self):
        record = _make_record(
            profile=_full_profile(),
            creations=_creations(8, timedelta(hours=1)),
            social_accounts=["twitter", "instagram"],
        )
        report = _make_monitor().evaluate(record, Period.WEEKLY)
        assert report.overall_score == 100
        assert report.status == PerformanceStatus.EXCELLENT
        assert report.alerts == []
        assert report.recommendations == []
        assert report.agent_number == 1

    def test_idle_agent_raises_every_alert(self):
        record = _make_record(creations=_creations(1, timedelta(days=20)))
        report = _make_monitor().evaluate(record, Period.WEEKLY)
        assert report.status == PerformanceStatus.CRITICAL
        assert report.alerts == [
            "CRITICAL: Overall performance below 30%",
            "ALERT: No activity for over 14 days",
            "WARNING: Very low demand indicators",
        ]
        assert "Increase creation portfolio" in report.recommendations

    def test_stale_alert_even_with_good_score(self):
        record = _make_record(
            profile=_full_profile(),
            creations=_creations(8, timedelta(days=16)),
            social_accounts=["twitter", "instagram"],
        )
        report = _make_monitor().evaluate(record, Period.MONTHLY)
        assert report.status == PerformanceStatus.EXCELLENT
        assert report.alerts == ["ALERT: No activity for over 14 days"]

    def test_staleness_window_is_configurable(self):
        record = _make_record(
            profile=_full_profile(),
            creations=_creations(8, timedelta(days=16)),
            social_accounts=["twitter"],
        )
        report = _make_monitor(staleness_days=30).evaluate(record, Period.MONTHLY)
        assert report.alerts == []

    def test_period_accepts_string(self):
        report = _make_monitor().evaluate(_make_record(), "daily")
        assert report.period == Period.DAILY

    def test_gate_scores_stay_in_range(self):
        record = _make_record(
            profile=_full_profile(),
            creations=_creations(50, timedelta(minutes=5)),
            social_accounts=[f"acct{i}" for i in range(10)],
        )
        report = _make_monitor().evaluate(record, Period.DAILY)
        assert all(0 <= g.score <= 100 for g in report.gates)


def _seeded_store() -> InMemoryRegistryStore:
    store = InMemoryRegistryStore()
    store.seed("agents", [
        {"id": "busy", "handle": "busy", "displayName": "Busy", "status": "ACTIVE", "agentNumber": 1},
        {"id": "idle", "handle": "idle", "displayName": "Idle", "status": "ONBOARDING", "agentNumber": 2},
        {"id": "gone", "handle": "gone", "displayName": "Gone", "status": "ARCHIVED", "agentNumber": 3},
    ])
    store.seed("profiles", [
        {"id": "p1", "agentId": "busy", "statement": "I paint", "manifesto": "Art", "tags": ["paint"]},
    ])
    store.seed("creations", [
        {
            "id": f"c{i}",
            "agentId": "busy",
            "status": "PUBLISHED",
            "createdAt": (_NOW - timedelta(hours=i + 1)).isoformat(),
        }
        for i in range(8)
    ])
    store.seed("social_accounts", [
        {"id": "s1", "agentId": "busy", "platform": "twitter"},
        {"id": "s2", "agentId": "busy", "platform": "instagram"},
    ])
    return store


class TestReports:
    @pytest.mark.asyncio
    async def test_report_for_one_agent(self):
        report = await _make_monitor(_seeded_store()).report("busy", Period.WEEKLY)
        assert report is not None
        assert report.handle == "busy"
        assert report.status == PerformanceStatus.EXCELLENT

    @pytest.mark.asyncio
    async def test_report_unknown_agent(self):
        assert await _make_monitor(_seeded_store()).report("ghost") is None

    @pytest.mark.asyncio
    async def test_dashboard_covers_active_and_onboarding_best_first(self):
        metrics = MetricCollector()
        dashboard = await _make_monitor(_seeded_store(), metrics=metrics).dashboard(Period.WEEKLY)

        assert dashboard.total_agents == 2
        assert [r.agent_id for r in dashboard.agents] == ["busy", "idle"]
        assert dashboard.status_distribution.excellent == 1
        assert dashboard.status_distribution.critical == 1
        assert dashboard.average_score == pytest.approx(
            sum(r.overall_score for r in dashboard.agents) / 2
        )
        assert len(metrics.recent(event="performance_report")) == 2

    @pytest.mark.asyncio
    async def test_dashboard_with_offsetless_creation_timestamp(self):
        store = _seeded_store()
        store.seed("creations", [{"id": "naive", "agentId": "idle", "createdAt": "2026-02-27T12:00:00"}])
        dashboard = await _make_monitor(store).dashboard(Period.WEEKLY)

        assert dashboard.total_agents == 2
        idle = next(r for r in dashboard.agents if r.agent_id == "idle")
        assert not any(a.startswith("ALERT: No activity") for a in idle.alerts)

    @pytest.mark.asyncio
    async def test_empty_dashboard(self):
        dashboard = await _make_monitor(InMemoryRegistryStore()).dashboard()
        assert dashboard.total_agents == 0
        assert dashboard.average_score == 0

    @pytest.mark.asyncio
    async def test_health_check(self):
        health = await _make_monitor(_seeded_store()).health_check()
        assert health["healthy"] is True
        assert health["details"]["active_agents"] == 2

    @pytest.mark.asyncio
    async def test_dashboard_store_timeout(self):
        with pytest.raises(StoreUnavailableError):
            await _make_monitor(_SlowStore(), fetch_timeout_s=0.05).dashboard()

    @pytest.mark.asyncio
    async def test_health_check_store_timeout(self):
        health = await _make_monitor(_SlowStore(), fetch_timeout_s=0.05).health_check()
        assert health["healthy"] is False
        assert "error" in health["details"]
