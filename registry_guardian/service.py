"""
Registry Guardian — Guardian Service

Single entry point that wires the four systems together:
  write request → ValidationGate → WriteGate → store → write event

The consistency monitor polls the store on its own schedule and never sits
on the write path. Scoring reads snapshots and never writes.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Mapping
from typing import TYPE_CHECKING, Any, TypeVar

import structlog

from registry_guardian.clients.store import COLLECTION_TABLES
from registry_guardian.primitives.common import (
    Collection,
    GuardianBaseModel,
    HealthStatus,
    Role,
    WriteOperation,
    new_id,
    parse_collection,
    utc_now,
)
from registry_guardian.primitives.errors import StoreUnavailableError
from registry_guardian.systems.authorization import WriteGate, WriteGateResult
from registry_guardian.systems.consistency import ConsistencyMonitor
from registry_guardian.systems.scoring import LaunchValidator, PerformanceMonitor, SnapshotLoader
from registry_guardian.systems.validation import ValidationGate, ValidationOutcome

if TYPE_CHECKING:
    from registry_guardian.clients.store import RegistryStore
    from registry_guardian.clients.webhook import Notifier
    from registry_guardian.config import RegistryGuardianConfig
    from registry_guardian.telemetry.metrics import MetricCollector

logger = structlog.get_logger()

_T = TypeVar("_T")

_EVENT_SUFFIX: dict[WriteOperation, str] = {
    WriteOperation.CREATE: "created",
    WriteOperation.UPDATE: "updated",
    WriteOperation.DELETE: "deleted",
}


def write_event_name(collection: Collection, operation: WriteOperation) -> str:
    return f"registry:{collection.value}.{_EVENT_SUFFIX[operation]}"


def _store_failure_reason(exc: Exception) -> str:
    if isinstance(exc, TimeoutError):
        return "Store did not respond in time"
    if isinstance(exc, StoreUnavailableError):
        return f"Store unavailable: {exc}"
    return str(exc.args[0])


class WriteOutcome(GuardianBaseModel):
    accepted: bool
    collection: Collection
    operation: WriteOperation
    key: str | None = None
    reason: str | None = None
    validation: ValidationOutcome | None = None
    authorization: WriteGateResult | None = None


class GuardianService:
    """
    Owns the gates, the monitor, and the scoring components for one process.
    """

    system_id: str = "guardian"

    def __init__(
        self,
        config: RegistryGuardianConfig,
        store: RegistryStore,
        metrics: MetricCollector,
        notifier: Notifier | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._metrics = metrics
        self._notifier = notifier
        self._logger = logger.bind(system="guardian")

        self.validation = ValidationGate(config.validation, metrics=metrics)
        self.write_gate = WriteGate()
        self.monitor = ConsistencyMonitor(store, config.consistency, notifier=notifier, metrics=metrics)
        loader = SnapshotLoader(store, timeout_s=config.scoring.fetch_timeout_s)
        self.launch = LaunchValidator(config.scoring, loader=loader, metrics=metrics)
        self.performance = PerformanceMonitor(config.scoring, store=store, loader=loader, metrics=metrics)

    @property
    def store(self) -> RegistryStore:
        return self._store

    # ─── Lifecycle ──────────────────────────────────────────────────

    async def start(self, monitor: bool = True) -> None:
        await self._metrics.start_writer()
        if monitor:
            self.monitor.start()
        self._logger.info("guardian_started", monitor=monitor)

    async def shutdown(self) -> None:
        await self.monitor.close()
        await self._metrics.stop()
        self._logger.info("guardian_stopped")

    # ─── Write pipeline ─────────────────────────────────────────────

    async def submit_write(
        self,
        collection: Collection | str,
        operation: WriteOperation | str,
        payload: Mapping[str, Any] | None,
        caller_role: Role | str,
        key: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> WriteOutcome:
        """
        Validate, authorize, then persist one write.

        Rejections come back as data. Updates are validated as the merged
        document they will produce, so a partial payload is enough. Deletes
        skip schema validation since they carry no document.
        """
        coll = parse_collection(collection)
        op = WriteOperation(str(operation).lower())

        document: Any = payload
        if op == WriteOperation.UPDATE and coll != Collection.AGENT_STATUS and isinstance(payload, Mapping):
            try:
                key, document = await self._bounded(self._merge_existing(coll, dict(payload), key))
            except (TimeoutError, StoreUnavailableError, LookupError) as exc:
                return self._reject(coll, op, _store_failure_reason(exc))

        validation: ValidationOutcome | None = None
        if op != WriteOperation.DELETE:
            validation = self.validation.validate(coll, document, context)
            if not validation.valid:
                return self._reject(coll, op, "Validation failed", validation=validation)

        authorization = self.write_gate.check_write(coll, op, caller_role)
        if not authorization.allowed:
            return self._reject(coll, op, authorization.reason, validation, authorization)

        row = dict(document or {})
        try:
            stored_key = await self._bounded(self._persist(coll, op, row, key))
        except (TimeoutError, StoreUnavailableError, LookupError) as exc:
            return self._reject(coll, op, _store_failure_reason(exc), validation, authorization)

        self._metrics.record(self.system_id, "writes_accepted", 1.0, {"collection": coll.value, "operation": op.value})
        self._logger.info("write_committed", collection=coll.value, operation=op.value, key=stored_key)
        await self._publish(coll, op, stored_key, row, context)

        return WriteOutcome(
            accepted=True,
            collection=coll,
            operation=op,
            key=stored_key,
            validation=validation,
            authorization=authorization,
        )

    async def _bounded(self, coro: Awaitable[_T]) -> _T:
        return await asyncio.wait_for(coro, timeout=self._config.server.write_timeout_s)

    async def _merge_existing(
        self,
        coll: Collection,
        row: dict[str, Any],
        key: str | None,
    ) -> tuple[str, dict[str, Any]]:
        resolved = key or row.get("id") or row.get("agentId")
        if not resolved:
            raise LookupError("Update needs a key")
        existing = await self._store.get(COLLECTION_TABLES[coll], str(resolved))
        if existing is None:
            raise LookupError(f"No {coll.value} record with key {resolved}")
        return str(resolved), {**existing, **row}

    async def _persist(self, coll: Collection, op: WriteOperation, row: dict[str, Any], key: str | None) -> str:
        table = COLLECTION_TABLES[coll]

        if coll == Collection.AGENT_STATUS:
            if not row.get("agentId") or not row.get("status"):
                raise LookupError("Status update needs agentId and status")
            agent_id = str(row["agentId"])
            agent = await self._store.get(table, agent_id)
            if agent is None:
                raise LookupError(f"Agent {agent_id} not found")
            agent["status"] = row["status"]
            agent["updatedAt"] = utc_now().isoformat()
            await self._store.put(table, agent_id, agent)
            return agent_id

        resolved = key or row.get("id") or row.get("agentId")
        if op == WriteOperation.DELETE:
            if not resolved:
                raise LookupError("Delete needs a key")
            if not await self._store.delete(table, str(resolved)):
                raise LookupError(f"No {coll.value} record with key {resolved}")
            return str(resolved)

        if op == WriteOperation.CREATE:
            resolved = resolved or new_id()
            row.setdefault("id", resolved)

        await self._store.put(table, str(resolved), row)
        return str(resolved)

    async def _publish(
        self,
        coll: Collection,
        op: WriteOperation,
        key: str,
        row: dict[str, Any],
        context: dict[str, Any] | None,
    ) -> None:
        if self._notifier is None:
            return
        event = write_event_name(coll, op)
        data = {"collection": coll.value, "key": key, "context": dict(context or {})}
        if op != WriteOperation.DELETE:
            data["record"] = row
        try:
            await asyncio.wait_for(
                self._notifier.send(event, data),
                timeout=self._config.webhooks.timeout_s,
            )
        except (TimeoutError, Exception) as exc:
            self._logger.warning("write_event_failed", write_event=event, error=str(exc))

    def _reject(
        self,
        coll: Collection,
        op: WriteOperation,
        reason: str | None,
        validation: ValidationOutcome | None = None,
        authorization: WriteGateResult | None = None,
    ) -> WriteOutcome:
        self._metrics.record(self.system_id, "writes_rejected", 1.0, {"collection": coll.value, "operation": op.value})
        self._logger.info("write_rejected", collection=coll.value, operation=op.value, reason=reason)
        return WriteOutcome(
            accepted=False,
            collection=coll,
            operation=op,
            reason=reason,
            validation=validation,
            authorization=authorization,
        )

    # ─── Health ─────────────────────────────────────────────────────

    async def health(self) -> dict[str, Any]:
        validation = self.validation.system_health()
        monitor = self.monitor.status()
        try:
            store_ok = await asyncio.wait_for(self._store.ping(), timeout=self._config.server.write_timeout_s)
        except (TimeoutError, StoreUnavailableError):
            store_ok = False

        last = monitor.last_report
        status = HealthStatus.HEALTHY
        if not store_ok or (last is not None and last.overall_health < 50):
            status = HealthStatus.UNHEALTHY
        elif not validation.healthy or (last is not None and last.overall_health < 100):
            status = HealthStatus.DEGRADED

        return {
            "status": status.value,
            "instance_id": self._config.instance_id,
            "store": "connected" if store_ok else "unreachable",
            "validation": validation.model_dump(mode="json"),
            "consistency": {
                "running": monitor.running,
                "overall_health": last.overall_health if last else None,
                "last_run": last.timestamp.isoformat() if last else None,
            },
        }
