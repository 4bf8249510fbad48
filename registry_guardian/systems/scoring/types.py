"""
Registry Guardian — Scoring Types
"""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import Field

from registry_guardian.primitives.common import CohortPolicy, GuardianBaseModel, utc_now


class GateName(enum.StrEnum):
    DEMAND = "demand"
    RETENTION = "retention"
    EFFICIENCY = "efficiency"


class Period(enum.StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def days(self) -> int:
        return {"daily": 1, "weekly": 7, "monthly": 30}[self.value]


class PerformanceStatus(enum.StrEnum):
    EXCELLENT = "excellent"
    GOOD = "good"
    CONCERNING = "concerning"
    CRITICAL = "critical"


class GateResult(GuardianBaseModel):
    name: GateName
    score: float = Field(ge=0, le=100)
    passed: bool
    details: str = ""
    # Raw signals behind the score, for trend analysis
    signals: dict[str, float] = Field(default_factory=dict)


class ScoreCard(GuardianBaseModel):
    """Mean of gate scores, AND of gate passes."""

    score: float
    passed: bool
    gates: list[GateResult]

    def gate(self, name: GateName | str) -> GateResult:
        for g in self.gates:
            if g.name == name:
                return g
        raise KeyError(name)


class LaunchReadiness(GuardianBaseModel):
    agent_id: str
    policy: CohortPolicy
    is_valid: bool
    score: float
    gates: list[GateResult]
    recommendations: list[str] = Field(default_factory=list)
    requires_approval: bool
    evaluated_at: datetime = Field(default_factory=utc_now)


class PerformanceReport(GuardianBaseModel):
    agent_id: str
    agent_number: int | None = None
    handle: str = ""
    period: Period
    timestamp: datetime = Field(default_factory=utc_now)
    gates: list[GateResult]
    overall_score: float
    status: PerformanceStatus
    alerts: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class StatusDistribution(GuardianBaseModel):
    excellent: int = 0
    good: int = 0
    concerning: int = 0
    critical: int = 0


class PerformanceDashboard(GuardianBaseModel):
    timestamp: datetime = Field(default_factory=utc_now)
    period: Period
    total_agents: int
    average_score: float
    status_distribution: StatusDistribution
    agents: list[PerformanceReport] = Field(default_factory=list)
