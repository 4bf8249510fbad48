"""
Registry Guardian — Write Gates

Role-based write permissions per (collection, operation).

Content-authoring collections (lore, profile, persona, agent updates) are
open to TRAINER and above. Collections that control system behaviour or
money (agent lifecycle, status transitions, economics, capabilities) are
ADMIN only. Anything without a rule is denied.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType

import structlog

from registry_guardian.primitives.common import (
    Collection,
    Role,
    WriteOperation,
    parse_collection,
)
from registry_guardian.primitives.errors import (
    NoWriteGatesError,
    UnknownRoleError,
    WriteAccessDenied,
)
from registry_guardian.systems.authorization.roles import meets_minimum, parse_role, roles_ascending
from registry_guardian.systems.authorization.types import (
    CollectionGates,
    OperationGate,
    WriteGateResult,
    WriteRule,
)

logger = structlog.get_logger()

_C = Collection
_Op = WriteOperation


def _rule(collection: Collection, operation: WriteOperation, role: Role, description: str) -> WriteRule:
    return WriteRule(collection=collection, operation=operation, minimum_role=role, description=description)


WRITE_RULES: tuple[WriteRule, ...] = (
    # Lore: TRAINER+ writes, ADMIN deletes
    _rule(_C.LORE, _Op.CREATE, Role.TRAINER, "Lore creation"),
    _rule(_C.LORE, _Op.UPDATE, Role.TRAINER, "Lore update"),
    _rule(_C.LORE, _Op.DELETE, Role.ADMIN, "Lore deletion"),
    # Agent: ADMIN for lifecycle, TRAINER+ for updates
    _rule(_C.AGENT, _Op.CREATE, Role.ADMIN, "Agent creation"),
    _rule(_C.AGENT, _Op.UPDATE, Role.TRAINER, "Agent update"),
    _rule(_C.AGENT, _Op.DELETE, Role.ADMIN, "Agent deletion"),
    # Status transitions: ADMIN only
    _rule(_C.AGENT_STATUS, _Op.UPDATE, Role.ADMIN, "Agent status transition"),
    # Profile: TRAINER+ writes, ADMIN deletes
    _rule(_C.PROFILE, _Op.CREATE, Role.TRAINER, "Profile creation"),
    _rule(_C.PROFILE, _Op.UPDATE, Role.TRAINER, "Profile update"),
    _rule(_C.PROFILE, _Op.DELETE, Role.ADMIN, "Profile deletion"),
    # Persona: TRAINER+ writes, no deletes
    _rule(_C.PERSONA, _Op.CREATE, Role.TRAINER, "Persona creation"),
    _rule(_C.PERSONA, _Op.UPDATE, Role.TRAINER, "Persona update"),
    # Economics: ADMIN only
    _rule(_C.ECONOMICS, _Op.CREATE, Role.ADMIN, "Economics data creation"),
    _rule(_C.ECONOMICS, _Op.UPDATE, Role.ADMIN, "Economics data update"),
    _rule(_C.ECONOMICS, _Op.DELETE, Role.ADMIN, "Economics data deletion"),
    # Capabilities: ADMIN only, no deletes
    _rule(_C.CAPABILITIES, _Op.CREATE, Role.ADMIN, "Capability configuration"),
    _rule(_C.CAPABILITIES, _Op.UPDATE, Role.ADMIN, "Capability update"),
)


def _denial_reason(rule: WriteRule) -> str:
    suffix = "" if rule.minimum_role == Role.ADMIN else " or higher"
    return f"{rule.description} requires {rule.minimum_role.value} role{suffix}"


class WriteGate:
    """
    Evaluates write permissions against a static rule table.

    The table is indexed once at construction and exposed read-only, so a
    single WriteGate can be shared across request threads.
    """

    def __init__(self, rules: Iterable[WriteRule] = WRITE_RULES) -> None:
        index: dict[tuple[Collection, WriteOperation], WriteRule] = {}
        for rule in rules:
            key = (rule.collection, rule.operation)
            if key in index:
                raise ValueError(f"Duplicate write rule for {rule.operation.value} on {rule.collection.value}")
            index[key] = rule
        self._rules: Mapping[tuple[Collection, WriteOperation], WriteRule] = MappingProxyType(index)
        self._logger = logger.bind(system="authorization")

    @property
    def rules(self) -> Mapping[tuple[Collection, WriteOperation], WriteRule]:
        return self._rules

    def rule_for(self, collection: Collection | str, operation: WriteOperation | str) -> WriteRule | None:
        coll = parse_collection(collection)
        try:
            op = WriteOperation(str(operation).lower())
        except ValueError:
            return None
        return self._rules.get((coll, op))

    def check_write(
        self,
        collection: Collection | str,
        operation: WriteOperation | str,
        caller_role: Role | str,
    ) -> WriteGateResult:
        """
        Decide whether ``caller_role`` may perform ``operation`` on ``collection``.

        Unknown collections raise (configuration error). A missing rule, an
        unknown operation, or an unknown caller role all deny.
        """
        coll = parse_collection(collection)
        rule = self.rule_for(coll, operation)
        if rule is None:
            return WriteGateResult(
                allowed=False,
                reason=f"No write rule defined for {operation} on {coll.value}",
            )

        try:
            role = parse_role(caller_role)
        except UnknownRoleError:
            self._logger.warning(
                "write_gate_unknown_role",
                collection=coll.value,
                operation=rule.operation.value,
                role=str(caller_role),
            )
            return WriteGateResult(
                allowed=False,
                reason=f"Unknown caller role {str(caller_role)!r}; {_denial_reason(rule)}",
                required_role=rule.minimum_role,
            )

        if meets_minimum(role, rule.minimum_role):
            return WriteGateResult(allowed=True)

        self._logger.info(
            "write_denied",
            collection=coll.value,
            operation=rule.operation.value,
            role=role.value,
            required_role=rule.minimum_role.value,
        )
        return WriteGateResult(
            allowed=False,
            reason=_denial_reason(rule),
            required_role=rule.minimum_role,
        )

    def assert_write_permission(
        self,
        collection: Collection | str,
        operation: WriteOperation | str,
        caller_role: Role | str,
    ) -> None:
        """Fail-fast variant of check_write. Raises WriteAccessDenied on denial."""
        result = self.check_write(collection, operation, caller_role)
        if not result.allowed:
            raise WriteAccessDenied(result)

    # ─── Introspection ──────────────────────────────────────────────

    def describe_gates(self, collection: Collection | str) -> CollectionGates:
        """
        Minimum role per operation, found by probing each operation with
        every role from lowest to highest and keeping the first that passes.
        """
        coll = parse_collection(collection)
        if not any(c == coll for c, _ in self._rules):
            raise NoWriteGatesError(coll.value)

        operations: dict[WriteOperation, OperationGate] = {}
        for operation in WriteOperation:
            if (coll, operation) not in self._rules:
                continue
            for role in roles_ascending():
                if self.check_write(coll, operation, role).allowed:
                    operations[operation] = OperationGate(
                        required_role=role,
                        description=f"{operation.value} operations on {coll.value}",
                    )
                    break

        return CollectionGates(collection=coll, operations=operations)

    def summary(self) -> dict[Collection, CollectionGates]:
        """describe_gates for every collection that has at least one rule."""
        gated = sorted({c for c, _ in self._rules}, key=lambda c: c.value)
        return {c: self.describe_gates(c) for c in gated}
