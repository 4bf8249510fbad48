"""
Registry Guardian — Gate Scoring Engine

Combines gate results: the score is the arithmetic mean of gate scores and
the record passes only if every gate passes.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from registry_guardian.primitives.records import AgentRecord
from registry_guardian.systems.scoring.gates import GateFn
from registry_guardian.systems.scoring.types import GateResult, ScoreCard


def combine(gates: Sequence[GateResult]) -> ScoreCard:
    if not gates:
        return ScoreCard(score=0.0, passed=False, gates=[])
    return ScoreCard(
        score=sum(g.score for g in gates) / len(gates),
        passed=all(g.passed for g in gates),
        gates=list(gates),
    )


class GateScoringEngine:
    """Runs a fixed set of gates over one snapshot."""

    def __init__(self, gates: Sequence[GateFn]) -> None:
        self._gates = tuple(gates)

    def evaluate(self, record: AgentRecord, now: datetime) -> ScoreCard:
        return combine([gate(record, now) for gate in self._gates])
