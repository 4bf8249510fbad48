"""
Registry Guardian — Observability Infrastructure

Structured logging and metrics collection.
"""

from registry_guardian.telemetry.logging import setup_logging
from registry_guardian.telemetry.metrics import LogMetricWriter, MetricCollector, MetricWriter

__all__ = ["setup_logging", "LogMetricWriter", "MetricCollector", "MetricWriter"]
