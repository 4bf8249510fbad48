"""Registry Guardian — Scoring: launch readiness and ongoing performance."""

from registry_guardian.systems.scoring.engine import GateScoringEngine, combine
from registry_guardian.systems.scoring.launch import LaunchValidator
from registry_guardian.systems.scoring.performance import PerformanceMonitor, status_for
from registry_guardian.systems.scoring.policy import CohortPolicyResolver
from registry_guardian.systems.scoring.snapshot import SnapshotLoader
from registry_guardian.systems.scoring.types import (
    GateName,
    GateResult,
    LaunchReadiness,
    PerformanceDashboard,
    PerformanceReport,
    PerformanceStatus,
    Period,
)

__all__ = [
    "CohortPolicyResolver",
    "GateName",
    "GateResult",
    "GateScoringEngine",
    "LaunchReadiness",
    "LaunchValidator",
    "PerformanceDashboard",
    "PerformanceMonitor",
    "PerformanceReport",
    "PerformanceStatus",
    "Period",
    "SnapshotLoader",
    "combine",
    "status_for",
]
