"""
Registry Guardian — Consistency Types
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from registry_guardian.primitives.common import GuardianBaseModel, utc_now


class ConsistencyResult(GuardianBaseModel):
    passed: bool
    details: str
    metrics: dict[str, float] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class CheckRun(GuardianBaseModel):
    """One row of a ConsistencyReport."""

    name: str
    passed: bool
    details: str
    duration_ms: float
    critical: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    metrics: dict[str, float] = Field(default_factory=dict)


class ConsistencyReport(GuardianBaseModel):
    timestamp: datetime = Field(default_factory=utc_now)
    # Weighted, critical checks count double
    overall_health: int = Field(ge=0, le=100)
    check_results: list[CheckRun] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)

    @property
    def passed_count(self) -> int:
        return sum(1 for r in self.check_results if r.passed)


class CheckInfo(GuardianBaseModel):
    name: str
    description: str
    schedule: str
    critical: bool


class MonitorStatus(GuardianBaseModel):
    running: bool
    checks_count: int
    checks: list[CheckInfo] = Field(default_factory=list)
    last_report: ConsistencyReport | None = None
