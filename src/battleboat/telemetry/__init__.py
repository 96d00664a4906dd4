"""Public telemetry helpers for Battleboat."""

from __future__ import annotations

from .analytics import AnalyticsSink, NullAnalytics, RecordingAnalytics, TelemetryAnalytics
from .config import TelemetryConfig, init_telemetry, load_telemetry_config, shutdown_telemetry
from .logger import get_logger, init_logging
from .metrics import get_meter, init_metrics, record_game_metric
from .tracer import get_tracer, init_tracing

__all__ = [
    "AnalyticsSink",
    "NullAnalytics",
    "RecordingAnalytics",
    "TelemetryAnalytics",
    "TelemetryConfig",
    "get_logger",
    "get_tracer",
    "get_meter",
    "record_game_metric",
    "init_logging",
    "init_tracing",
    "init_metrics",
    "load_telemetry_config",
    "init_telemetry",
    "shutdown_telemetry",
]
