"""
Registry Guardian — Metric Collection

Central metric collector. Systems report metrics and structured records
here. Recording is synchronous and thread-safe so the request-path gates can
call it without awaiting; writes are batched and flushed to the configured
writer periodically.
"""

from __future__ import annotations

import asyncio
import contextlib
import threading
from collections import deque
from datetime import UTC, datetime
from typing import Any, Protocol

import structlog

logger = structlog.get_logger()

# Records kept for introspection after they have been flushed
_RECENT_SIZE = 500


class MetricWriter(Protocol):
    async def write_metrics(self, batch: list[dict[str, Any]]) -> None: ...


class LogMetricWriter:
    """Writes each record to the structured log. The default sink."""

    def __init__(self) -> None:
        self._logger = structlog.get_logger("registry_guardian.metrics")

    async def write_metrics(self, batch: list[dict[str, Any]]) -> None:
        for item in batch:
            fields = {k: v for k, v in item.items() if k not in ("time", "kind")}
            fields["recorded_at"] = item["time"].isoformat()
            self._logger.info("metric_record", **fields)


class MetricCollector:
    """
    Central metric collection service.

    Systems call record() for numeric data points and record_event() for
    structured records (one per validation call, one per consistency
    report). The collector batches writes and flushes either on a timer or
    when stop() is called.
    """

    def __init__(
        self,
        writer: MetricWriter | None = None,
        flush_interval_ms: int = 1000,
        batch_size: int = 100,
    ) -> None:
        self._writer: MetricWriter = writer or LogMetricWriter()
        self._flush_interval = flush_interval_ms / 1000.0
        self._batch_size = batch_size
        # Bounded: a stalled writer drops the oldest records rather than growing forever
        self._buffer: deque[dict[str, Any]] = deque(maxlen=batch_size * 10)
        self._recent: deque[dict[str, Any]] = deque(maxlen=_RECENT_SIZE)
        self._lock = threading.Lock()
        self._running = False
        self._task: asyncio.Task[None] | None = None

    def record(
        self,
        system: str,
        metric: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Record a metric data point."""
        self._append({
            "kind": "metric",
            "time": datetime.now(UTC),
            "system": system,
            "metric": metric,
            "value": value,
            "labels": labels or {},
        })

    def record_event(self, system: str, event: str, fields: dict[str, Any]) -> None:
        """Record a structured observability record."""
        self._append({
            "kind": "event",
            "time": datetime.now(UTC),
            "system": system,
            "event": event,
            **fields,
        })

    def _append(self, item: dict[str, Any]) -> None:
        with self._lock:
            self._buffer.append(item)
            self._recent.append(item)

    def recent(self, event: str | None = None, limit: int = 50) -> list[dict[str, Any]]:
        """Most recent records, newest last. Optionally filtered by event name."""
        with self._lock:
            items = list(self._recent)
        if event is not None:
            items = [i for i in items if i.get("event") == event]
        return items[-limit:]

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._buffer)

    async def flush(self) -> None:
        """Flush the buffer to the writer."""
        with self._lock:
            if not self._buffer:
                return
            batch = list(self._buffer)
            self._buffer.clear()

        try:
            await self._writer.write_metrics(batch)
        except Exception as e:
            logger.error("metric_flush_failed", error=str(e), batch_size=len(batch))
            # Put items back in buffer for retry (with size limit)
            with self._lock:
                retained = list(self._buffer)
                self._buffer.clear()
                self._buffer.extend(batch[: self._batch_size])
                self._buffer.extend(retained)

    async def start_writer(self) -> None:
        """Start the periodic flush task."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._flush_loop(), name="metric_flush")
        logger.info("metric_writer_started", interval_ms=int(self._flush_interval * 1000))

    async def _flush_loop(self) -> None:
        """Background loop that flushes periodically."""
        while self._running:
            await asyncio.sleep(self._flush_interval)
            await self.flush()

    async def stop(self) -> None:
        """Stop the writer and flush remaining metrics."""
        self._running = False
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        await self.flush()
        logger.info("metric_writer_stopped")
