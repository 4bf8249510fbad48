"""Registry Guardian — Authorization: role hierarchy and write gates."""

from registry_guardian.systems.authorization.roles import ROLE_RANKS, meets_minimum, parse_role, rank
from registry_guardian.systems.authorization.types import WriteGateResult, WriteRule
from registry_guardian.systems.authorization.write_gates import WRITE_RULES, WriteGate

__all__ = [
    "ROLE_RANKS",
    "WRITE_RULES",
    "WriteGate",
    "WriteGateResult",
    "WriteRule",
    "meets_minimum",
    "parse_role",
    "rank",
]
