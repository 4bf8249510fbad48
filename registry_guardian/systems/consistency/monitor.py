"""
Registry Guardian — Consistency Monitor

Runs the consistency checks on a schedule, scores overall health, and
pushes alerts and reports to the notifier.

Health is weighted: a critical check counts twice, a non-critical check
once, and the score is the rounded share of passed weight. A check that
raises or times out is a failed check, never a crashed monitor.

Lifecycle: stopped → running → stopped. start() and stop() are idempotent.
stop() may be called from any thread; it prevents every future tick but
lets an in-flight run finish.
"""

from __future__ import annotations

import asyncio
import contextlib
import math
import threading
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from registry_guardian.clients.webhook import ALERT_EVENT, REPORT_EVENT
from registry_guardian.primitives.common import utc_now
from registry_guardian.primitives.errors import UnknownCheckError
from registry_guardian.systems.consistency.checks import ConsistencyCheck, default_checks
from registry_guardian.systems.consistency.types import (
    CheckInfo,
    CheckRun,
    ConsistencyReport,
    ConsistencyResult,
    MonitorStatus,
)

if TYPE_CHECKING:
    from registry_guardian.clients.store import RegistryStore
    from registry_guardian.clients.webhook import Notifier
    from registry_guardian.config import ConsistencyConfig
    from registry_guardian.telemetry.metrics import MetricCollector

logger = structlog.get_logger()

# Fixed remediation hint per failing check
_CHECK_HINTS: dict[str, str] = {
    "trainer-relationships": "Run trainer data migration",
    "economic-data-integrity": "Migrate economic data to Registry profiles",
    "static-data-bypass-detection": "Update Academy to use Registry SDK instead of static data",
}


def compute_health(runs: Sequence[CheckRun]) -> int:
    """round(100 * passed weight / total weight), half-up. 100 when nothing ran."""
    total = sum(2 if r.critical else 1 for r in runs)
    if total == 0:
        return 100
    passed = sum(2 if r.critical else 1 for r in runs if r.passed)
    return math.floor(100 * passed / total + 0.5)


def recommendations_for(runs: Sequence[CheckRun]) -> list[str]:
    failed = [r for r in runs if not r.passed]
    critical = [r for r in failed if r.critical]

    recommendations: list[str] = []
    if critical:
        recommendations.append(f"Address {len(critical)} critical consistency issues immediately")
    failed_names = {r.name for r in failed}
    for name, hint in _CHECK_HINTS.items():
        if name in failed_names:
            recommendations.append(hint)
    return recommendations


class ConsistencyMonitor:
    """
    Scheduled registry audits.

    One asyncio task per started monitor. The running flag lives behind a
    threading.Lock so request threads can read or clear it safely.
    """

    system_id: str = "consistency"

    def __init__(
        self,
        store: RegistryStore,
        config: ConsistencyConfig,
        notifier: Notifier | None = None,
        metrics: MetricCollector | None = None,
        checks: Sequence[ConsistencyCheck] | None = None,
    ) -> None:
        self._store = store
        self._config = config
        self._notifier = notifier
        self._metrics = metrics
        self._logger = logger.bind(system="consistency")

        self._checks: dict[str, ConsistencyCheck] = {}
        for check in checks if checks is not None else default_checks(config):
            if check.name in self._checks:
                raise ValueError(f"Duplicate consistency check: {check.name}")
            self._checks[check.name] = check

        self._lock = threading.Lock()
        self._running = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop_event: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None
        self._last_report: ConsistencyReport | None = None

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def last_report(self) -> ConsistencyReport | None:
        return self._last_report

    @property
    def checks(self) -> list[ConsistencyCheck]:
        return list(self._checks.values())

    # ─── Running checks ─────────────────────────────────────────────

    async def run_check(self, name: str) -> ConsistencyResult:
        """Run one check by name. Unknown names raise UnknownCheckError."""
        check = self._checks.get(name)
        if check is None:
            raise UnknownCheckError(name)
        result, _ = await self._execute(check)
        return result

    async def _execute(self, check: ConsistencyCheck) -> tuple[ConsistencyResult, float]:
        self._logger.debug("consistency_check_started", check=check.name)
        start = time.monotonic()
        try:
            result = await asyncio.wait_for(
                check.evaluate(self._store),
                timeout=self._config.check_timeout_s,
            )
        except TimeoutError:
            message = f"Check timed out after {self._config.check_timeout_s:g}s"
            result = ConsistencyResult(
                passed=False,
                details=f"Check execution failed: {message}",
                errors=[message],
            )
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            result = ConsistencyResult(
                passed=False,
                details=f"Check execution failed: {message}",
                errors=[message],
            )
        duration_ms = (time.monotonic() - start) * 1000

        if result.passed:
            self._logger.info(
                "consistency_check_passed",
                check=check.name,
                details=result.details,
                duration_ms=round(duration_ms, 1),
            )
        else:
            self._logger.warning(
                "consistency_check_failed",
                check=check.name,
                critical=check.critical,
                details=result.details,
                duration_ms=round(duration_ms, 1),
            )
            if check.critical:
                await self._send_alert(check, result)

        return result, duration_ms

    async def _run_timed(self, check: ConsistencyCheck) -> CheckRun:
        result, duration_ms = await self._execute(check)
        return CheckRun(
            name=check.name,
            passed=result.passed,
            details=result.details,
            duration_ms=duration_ms,
            critical=check.critical,
            errors=result.errors,
            warnings=result.warnings,
            metrics=result.metrics,
        )

    async def run_all(self, parallel: bool | None = None) -> ConsistencyReport:
        """
        Run every registered check and build a weighted report.

        Sequential by default. With ``parallel`` the checks are gathered;
        each is isolated, so one failure never cancels the others.
        """
        use_parallel = self._config.parallel if parallel is None else parallel
        checks = self.checks
        self._logger.info("consistency_run_started", checks=len(checks), parallel=use_parallel)

        if use_parallel:
            runs = list(await asyncio.gather(*(self._run_timed(c) for c in checks)))
        else:
            runs = [await self._run_timed(c) for c in checks]

        report = ConsistencyReport(
            timestamp=utc_now(),
            overall_health=compute_health(runs),
            check_results=runs,
            recommendations=recommendations_for(runs),
        )
        self._last_report = report

        self._logger.info(
            "consistency_report",
            overall_health=report.overall_health,
            passed=report.passed_count,
            total=len(runs),
            recommendations=report.recommendations,
        )
        self._emit_metrics(report)
        await self._send(REPORT_EVENT, report.model_dump(mode="json"))
        return report

    async def trigger(self) -> ConsistencyReport:
        """Run all checks now, outside the schedule."""
        return await self.run_all()

    # ─── Outbound ───────────────────────────────────────────────────

    async def _send_alert(self, check: ConsistencyCheck, result: ConsistencyResult) -> None:
        await self._send(ALERT_EVENT, {
            "check_name": check.name,
            "description": check.description,
            "critical": check.critical,
            "passed": result.passed,
            "details": result.details,
            "errors": result.errors,
            "warnings": result.warnings,
            "metrics": result.metrics,
            "timestamp": utc_now().isoformat(),
        })

    async def _send(self, event: str, data: dict) -> None:
        if self._notifier is None:
            return
        try:
            delivered = await asyncio.wait_for(
                self._notifier.send(event, data),
                timeout=self._config.alert_timeout_s,
            )
        except (TimeoutError, Exception) as exc:
            self._logger.warning("consistency_notify_failed", notification_event=event, error=str(exc))
            return
        if not delivered:
            self._logger.warning("consistency_notify_undelivered", notification_event=event)

    def _emit_metrics(self, report: ConsistencyReport) -> None:
        if self._metrics is None:
            return
        self._metrics.record(self.system_id, "overall_health", float(report.overall_health))
        self._metrics.record(
            self.system_id,
            "checks_failed",
            float(len(report.check_results) - report.passed_count),
        )
        self._metrics.record_event(self.system_id, "consistency_report", {
            "overall_health": report.overall_health,
            "checks_passed": report.passed_count,
            "checks_total": len(report.check_results),
            "failed_checks": [r.name for r in report.check_results if not r.passed],
        })

    # ─── Lifecycle ──────────────────────────────────────────────────

    def start(self) -> None:
        """
        Begin scheduled runs on the current event loop: one run after
        ``initial_delay_s``, then one every ``interval_s``.
        """
        with self._lock:
            if self._running:
                self._logger.warning("consistency_monitor_already_running")
                return
            self._running = True

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            with self._lock:
                self._running = False
            raise

        self._loop = loop
        self._stop_event = asyncio.Event()
        self._task = loop.create_task(self._schedule_loop(self._stop_event), name="consistency_monitor")
        self._logger.info(
            "consistency_monitor_started",
            interval_s=self._config.interval_s,
            initial_delay_s=self._config.initial_delay_s,
            checks=len(self._checks),
        )

    def stop(self) -> None:
        """Prevent every future tick. Safe from any thread; a running pass finishes."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            loop, event = self._loop, self._stop_event

        self._logger.info("consistency_monitor_stopping")
        if loop is None or event is None:
            return

        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None

        if current is loop:
            event.set()
        else:
            with contextlib.suppress(RuntimeError):  # loop already closed
                loop.call_soon_threadsafe(event.set)

    async def close(self) -> None:
        """stop(), then wait for the scheduling task to wind down."""
        self.stop()
        task, self._task = self._task, None
        if task is None or task.done():
            return
        if asyncio.get_running_loop() is not self._loop:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _schedule_loop(self, stop_event: asyncio.Event) -> None:
        delay = self._config.initial_delay_s
        while True:
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(stop_event.wait(), timeout=delay)
            if stop_event.is_set() or not self.is_running:
                break
            try:
                await self.run_all()
            except Exception as exc:
                self._logger.error("consistency_run_failed", error=str(exc))
            delay = self._config.interval_s
        self._logger.info("consistency_monitor_stopped")

    # ─── Introspection ──────────────────────────────────────────────

    def status(self) -> MonitorStatus:
        return MonitorStatus(
            running=self.is_running,
            checks_count=len(self._checks),
            checks=[
                CheckInfo(
                    name=c.name,
                    description=c.description,
                    schedule=c.schedule,
                    critical=c.critical,
                )
                for c in self._checks.values()
            ],
            last_report=self._last_report,
        )
