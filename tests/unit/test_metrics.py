"""
Tests for the MetricCollector.

Covers:
  - record() and record_event() buffering
  - recent() filtering
  - flush to a writer, retention on writer failure
  - Writer lifecycle
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from registry_guardian.telemetry.metrics import MetricCollector


def _make_writer(**kwargs) -> AsyncMock:
    writer = AsyncMock()
    writer.write_metrics = AsyncMock(**kwargs)
    return writer


class TestRecording:
    def test_record_and_event_are_buffered(self):
        collector = MetricCollector(writer=_make_writer())
        collector.record("consistency", "overall_health", 75.0)
        collector.record_event("validation", "validation_result", {"collection": "agent", "valid": False})
        assert collector.pending == 2

    def test_recent_filters_by_event(self):
        collector = MetricCollector(writer=_make_writer())
        collector.record_event("validation", "validation_result", {"valid": True})
        collector.record_event("consistency", "consistency_report", {"overall_health": 100})
        collector.record("scoring", "launch_score", 55.0)

        assert len(collector.recent()) == 3
        reports = collector.recent(event="consistency_report")
        assert len(reports) == 1
        assert reports[0]["overall_health"] == 100

    def test_recent_limit_keeps_newest(self):
        collector = MetricCollector(writer=_make_writer())
        for i in range(10):
            collector.record("scoring", "launch_score", float(i))
        assert [r["value"] for r in collector.recent(limit=3)] == [7.0, 8.0, 9.0]


class TestFlush:
    @pytest.mark.asyncio
    async def test_flush_sends_batch(self):
        writer = _make_writer()
        collector = MetricCollector(writer=writer)
        collector.record("guardian", "writes_accepted", 1.0, {"collection": "lore"})
        await collector.flush()

        writer.write_metrics.assert_awaited_once()
        batch = writer.write_metrics.await_args.args[0]
        assert batch[0]["metric"] == "writes_accepted"
        assert batch[0]["labels"] == {"collection": "lore"}
        assert collector.pending == 0

    @pytest.mark.asyncio
    async def test_empty_flush_skips_writer(self):
        writer = _make_writer()
        await MetricCollector(writer=writer).flush()
        writer.write_metrics.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_flush_retains_records(self):
        writer = _make_writer(side_effect=RuntimeError("sink down"))
        collector = MetricCollector(writer=writer)
        collector.record("guardian", "writes_rejected", 1.0)
        await collector.flush()
        assert collector.pending == 1

    @pytest.mark.asyncio
    async def test_stop_flushes_remaining(self):
        writer = _make_writer()
        collector = MetricCollector(writer=writer, flush_interval_ms=60_000)
        await collector.start_writer()
        collector.record("guardian", "writes_accepted", 1.0)
        await collector.stop()
        writer.write_metrics.assert_awaited_once()
