"""
Registry Guardian — Cohort Policy

RELAXED applies to agents whose cohort is in the configured bootstrap set,
and only until the bootstrap window closes. Everyone else is STANDARD.
Membership is an explicit cohort lookup, never inferred from agent number,
creation date, or any other attribute.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from registry_guardian.primitives.common import CohortPolicy, utc_now

if TYPE_CHECKING:
    from registry_guardian.config import ScoringConfig
    from registry_guardian.primitives.records import AgentRecord


class CohortPolicyResolver:
    def __init__(self, config: ScoringConfig, clock: Callable[[], datetime] = utc_now) -> None:
        self._cohorts = frozenset(c.lower() for c in config.bootstrap_cohorts)
        expires_at = config.bootstrap_expires_at
        if expires_at is not None and expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        self._expires_at = expires_at
        self._clock = clock

    def bootstrap_open(self) -> bool:
        return self._expires_at is None or self._clock() < self._expires_at

    def resolve(self, record: AgentRecord) -> CohortPolicy:
        if record.cohort and record.cohort.lower() in self._cohorts and self.bootstrap_open():
            return CohortPolicy.RELAXED
        return CohortPolicy.STANDARD
