"""Registry Guardian — Consistency: scheduled audits of stored registry data."""

from registry_guardian.systems.consistency.checks import ConsistencyCheck, default_checks
from registry_guardian.systems.consistency.monitor import ConsistencyMonitor, compute_health
from registry_guardian.systems.consistency.types import (
    CheckRun,
    ConsistencyReport,
    ConsistencyResult,
    MonitorStatus,
)

__all__ = [
    "CheckRun",
    "ConsistencyCheck",
    "ConsistencyMonitor",
    "ConsistencyReport",
    "ConsistencyResult",
    "MonitorStatus",
    "compute_health",
    "default_checks",
]
