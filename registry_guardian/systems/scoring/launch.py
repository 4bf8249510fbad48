"""
Registry Guardian — Launch Readiness

Binary admit/deny for moving an agent into ACTIVE. Bootstrap-cohort agents
are scored under RELAXED rules and only need approval when they fail;
everyone else is scored under STANDARD rules and always needs approval.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from registry_guardian.primitives.common import CohortPolicy, utc_now
from registry_guardian.primitives.errors import StoreUnavailableError
from registry_guardian.systems.scoring.engine import GateScoringEngine
from registry_guardian.systems.scoring.gates import launch_gates, launch_recommendations
from registry_guardian.systems.scoring.policy import CohortPolicyResolver
from registry_guardian.systems.scoring.types import GateName, GateResult, LaunchReadiness

if TYPE_CHECKING:
    from registry_guardian.config import ScoringConfig
    from registry_guardian.primitives.records import AgentRecord
    from registry_guardian.systems.scoring.snapshot import SnapshotLoader
    from registry_guardian.telemetry.metrics import MetricCollector

logger = structlog.get_logger()


def _zero_result(agent_id: str, details: str, recommendation: str) -> LaunchReadiness:
    return LaunchReadiness(
        agent_id=agent_id,
        policy=CohortPolicy.STANDARD,
        is_valid=False,
        score=0.0,
        gates=[GateResult(name=name, score=0.0, passed=False, details=details) for name in GateName],
        recommendations=[recommendation],
        requires_approval=True,
    )


class LaunchValidator:
    system_id: str = "scoring"

    def __init__(
        self,
        config: ScoringConfig,
        loader: SnapshotLoader | None = None,
        metrics: MetricCollector | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._resolver = CohortPolicyResolver(config, clock=clock)
        self._engines = {
            policy: GateScoringEngine(launch_gates(policy, config.recent_activity_days))
            for policy in CohortPolicy
        }
        self._loader = loader
        self._metrics = metrics
        self._clock = clock
        self._logger = logger.bind(system="scoring")

    def evaluate(self, record: AgentRecord) -> LaunchReadiness:
        policy = self._resolver.resolve(record)
        card = self._engines[policy].evaluate(record, self._clock())
        readiness = LaunchReadiness(
            agent_id=record.id,
            policy=policy,
            is_valid=card.passed,
            score=card.score,
            gates=card.gates,
            recommendations=launch_recommendations(policy, card.gates),
            # Bootstrap agents only need approval when they fail
            requires_approval=not card.passed if policy == CohortPolicy.RELAXED else True,
        )
        self._logger.info(
            "launch_evaluated",
            agent_id=record.id,
            policy=policy.value,
            is_valid=readiness.is_valid,
            score=round(readiness.score, 1),
        )
        if self._metrics is not None:
            self._metrics.record(self.system_id, "launch_score", readiness.score, {"policy": policy.value})
        return readiness

    async def validate(self, agent_id: str) -> LaunchReadiness:
        """Fetch the agent's snapshot, then evaluate it. Faults score zero."""
        if self._loader is None:
            raise RuntimeError("LaunchValidator.validate needs a SnapshotLoader")
        try:
            record = await self._loader.load(agent_id)
        except StoreUnavailableError as exc:
            self._logger.warning("launch_snapshot_unavailable", agent_id=agent_id, error=str(exc))
            return _zero_result(agent_id, "Registry unavailable", "Retry once the Registry is reachable")

        if record is None:
            return _zero_result(agent_id, "Agent not found", "Agent must exist in Registry")
        return self.evaluate(record)
