"""
Registry Guardian — Scoring Gates

Pure point rules. Every gate takes an AgentRecord snapshot plus the
evaluation instant and returns a GateResult; none of them touch the store.

Launch gates come in two tiers. RELAXED gives full credit for minimal
presence (binary checks) and passes at 40–50. STANDARD wants volume and
depth (graduated points per artifact, capped) and passes at 70–80.

Performance gates score the agent's activity within a period window and
pass at 50.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import datetime, timedelta

from registry_guardian.primitives.common import AgentStatus, CohortPolicy
from registry_guardian.primitives.records import AgentRecord
from registry_guardian.systems.scoring.types import GateName, GateResult

GateFn = Callable[[AgentRecord, datetime], GateResult]

PERFORMANCE_PASS = 50.0

# Days since last creation when an agent has never created anything
NO_ACTIVITY_DAYS = 999


def _gate(name: GateName, score: float, threshold: float, details: list[str], **signals: float) -> GateResult:
    score = min(float(score), 100.0)
    return GateResult(
        name=name,
        score=score,
        passed=score >= threshold,
        details="; ".join(details),
        signals=signals,
    )


def _pct(fraction: float) -> str:
    return f"{round(fraction * 100)}%"


# ─── Launch: RELAXED ──────────────────────────────────────────────


def demand_relaxed(record: AgentRecord, now: datetime) -> GateResult:
    score = 0
    if record.profile and record.profile.statement:
        score += 25
    if record.display_name and record.handle:
        score += 25
    if record.creations:
        score += 30
    if record.persona_ids:
        score += 20
    return _gate(GateName.DEMAND, score, 50, [f"Profile completeness: {score}/100"])


def retention_relaxed(record: AgentRecord, now: datetime) -> GateResult:
    score = min(record.checklist_percent * 60, 60)
    if record.social_accounts:
        score += 40
    return _gate(
        GateName.RETENTION,
        score,
        40,
        [
            f"Onboarding progress: {_pct(record.checklist_percent)}",
            f"Social accounts: {len(record.social_accounts)}",
        ],
    )


def efficiency_relaxed(record: AgentRecord, now: datetime) -> GateResult:
    if record.status == AgentStatus.ACTIVE:
        score = 60
    elif record.status == AgentStatus.ONBOARDING:
        score = 40
    else:
        score = 20
    if record.creations:
        score += 40
    return _gate(
        GateName.EFFICIENCY,
        score,
        50,
        [f"Status: {record.status.value}", f"Creations: {len(record.creations)}"],
    )


# ─── Launch: STANDARD ─────────────────────────────────────────────


def demand_standard(record: AgentRecord, now: datetime) -> GateResult:
    score = 0
    profile = record.profile
    if profile and profile.statement:
        score += 20
    if profile and profile.manifesto:
        score += 10
    if profile and profile.tags:
        score += 10
    score += min(len(record.creations) * 10, 40)
    score += min(len(record.persona_ids) * 10, 20)
    return _gate(GateName.DEMAND, score, 80, [f"Profile score: {score}/100"])


def retention_standard(record: AgentRecord, now: datetime, recent_days: int = 7) -> GateResult:
    recent = len(record.creations_since(now - timedelta(days=recent_days)))
    social = len(record.social_accounts)

    score = min(record.checklist_percent * 50, 50)
    score += min(social * 15, 30)
    score += min(recent * 10, 20)
    return _gate(
        GateName.RETENTION,
        score,
        70,
        [
            f"Onboarding: {_pct(record.checklist_percent)}",
            f"Social presence: {social} accounts",
            f"Recent activity: {recent} creations",
        ],
        recent_creations=recent,
    )


def efficiency_standard(record: AgentRecord, now: datetime) -> GateResult:
    score = 0
    if record.status == AgentStatus.ACTIVE:
        score += 60
    elif record.status == AgentStatus.ONBOARDING:
        score += 30
    published = sum(1 for c in record.creations if c.is_published)
    score += min(published * 10, 40)
    return _gate(
        GateName.EFFICIENCY,
        score,
        75,
        [f"Status: {record.status.value}", f"Published works: {published}"],
        published=published,
    )


def launch_gates(policy: CohortPolicy, recent_days: int = 7) -> tuple[GateFn, ...]:
    if policy == CohortPolicy.RELAXED:
        return (demand_relaxed, retention_relaxed, efficiency_relaxed)
    return (
        demand_standard,
        lambda record, now: retention_standard(record, now, recent_days),
        efficiency_standard,
    )


_LAUNCH_HINTS: dict[tuple[CohortPolicy, GateName], tuple[str, ...]] = {
    (CohortPolicy.RELAXED, GateName.DEMAND): (
        "Complete basic profile with statement and display name",
        "Add at least one persona or creative work",
    ),
    (CohortPolicy.RELAXED, GateName.RETENTION): (
        "Make progress on onboarding checklist",
        "Set up at least one social account",
    ),
    (CohortPolicy.RELAXED, GateName.EFFICIENCY): (
        "Ensure agent status is ONBOARDING or ACTIVE",
        "Create at least one work to demonstrate capability",
    ),
    (CohortPolicy.STANDARD, GateName.DEMAND): (
        "Enhance profile with manifesto and tags",
        "Build portfolio with multiple creative works",
    ),
    (CohortPolicy.STANDARD, GateName.RETENTION): (
        "Complete onboarding checklist fully",
        "Establish consistent creative output",
        "Build social media presence across platforms",
    ),
    (CohortPolicy.STANDARD, GateName.EFFICIENCY): (
        "Achieve ACTIVE status with full operational readiness",
        "Publish high-quality creative works consistently",
    ),
}


def launch_recommendations(policy: CohortPolicy, gates: list[GateResult]) -> list[str]:
    out: list[str] = []
    for gate in gates:
        if not gate.passed:
            out.extend(_LAUNCH_HINTS.get((policy, gate.name), ()))
    return out


# ─── Performance ──────────────────────────────────────────────────


def last_activity_days(record: AgentRecord, now: datetime) -> int:
    latest = record.latest_creation()
    if latest is None:
        return NO_ACTIVITY_DAYS
    return math.floor((now - latest.created_at).total_seconds() / 86400)


def demand_performance(record: AgentRecord, now: datetime, period_days: int) -> GateResult:
    recent = record.creations_since(now - timedelta(days=period_days))
    social = len(record.social_accounts)
    profile = record.profile

    score = 0
    if profile and profile.statement:
        score += 20
    if profile and profile.manifesto:
        score += 10
    if profile and profile.tags:
        score += 10
    score += min(len(recent) * 5, 40)
    score += min(social * 10, 20)
    return _gate(
        GateName.DEMAND,
        score,
        PERFORMANCE_PASS,
        [f"Recent creations: {len(recent)}", f"Social accounts: {social}"],
        recent_creations=len(recent),
        social_accounts=social,
    )


def retention_performance(record: AgentRecord, now: datetime, period_days: int) -> GateResult:
    recent = record.creations_since(now - timedelta(days=period_days))
    idle_days = last_activity_days(record, now)
    social_presence = bool(record.social_accounts)

    score = min(len(recent) * 10, 50)
    if idle_days <= 1:
        score += 30
    elif idle_days <= 3:
        score += 20
    elif idle_days <= 7:
        score += 10
    elif idle_days <= 14:
        score += 5
    if social_presence:
        score += 20
    return _gate(
        GateName.RETENTION,
        score,
        PERFORMANCE_PASS,
        [f"Creations in period: {len(recent)}", f"Last activity: {idle_days} days ago"],
        creations_count=len(recent),
        last_activity_days=idle_days,
        social_presence=float(social_presence),
    )


def efficiency_performance(record: AgentRecord, now: datetime, period_days: int) -> GateResult:
    recent = record.creations_since(now - timedelta(days=period_days))
    published = sum(1 for c in recent if c.is_published)
    creation_rate = len(recent) / (period_days / 7)  # per week
    published_ratio = published / len(recent) if recent else 0.0

    score = 0.0
    if creation_rate >= 2:
        score += 30
    elif creation_rate >= 1:
        score += 20
    elif creation_rate >= 0.5:
        score += 10
    score += published_ratio * 30
    if record.status == AgentStatus.ACTIVE:
        score += 40
    elif record.status == AgentStatus.ONBOARDING:
        score += 20
    return _gate(
        GateName.EFFICIENCY,
        score,
        PERFORMANCE_PASS,
        [f"Creation rate: {creation_rate:.1f}/week", f"Published ratio: {_pct(published_ratio)}"],
        creation_rate=creation_rate,
        published_ratio=published_ratio,
    )


_PERFORMANCE_HINTS: dict[GateName, tuple[str, ...]] = {
    GateName.DEMAND: (
        "Enhance profile with manifesto and tags",
        "Increase creation portfolio",
    ),
    GateName.RETENTION: (
        "Create more consistent content",
        "Maintain active social presence",
    ),
    GateName.EFFICIENCY: (
        "Focus on publishing completed works",
        "Improve creation quality and completion rate",
    ),
}


def performance_recommendations(gates: list[GateResult]) -> list[str]:
    out: list[str] = []
    for gate in gates:
        if gate.score < PERFORMANCE_PASS:
            out.extend(_PERFORMANCE_HINTS[gate.name])
    return out
