"""Metrics helper utilities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

from opentelemetry import metrics as otel_metrics
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.metrics import Counter, Histogram, Meter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

if TYPE_CHECKING:  # pragma: no cover
    from .config import TelemetryConfig

EXPORT_INTERVAL_MILLIS = 5000
# Metric names with these suffixes measure a distribution, not a running total.
DURATION_SUFFIXES = ("_seconds", "_ms")

_METER_PROVIDER: MeterProvider | None = None
_METER: Meter | None = None
_INSTRUMENTS: dict[str, Counter] = {}
_HISTOGRAMS: dict[str, Histogram] = {}

MetricAttributes = Mapping[str, str | bool | int | float]


def get_meter(name: str = "battleboat") -> Meter:
    """Return the meter used for game metrics.

    Before ``init_metrics`` runs this is the API's proxy meter, so instruments
    created at import time start exporting once a provider is installed.
    """
    global _METER
    if _METER is None:
        _METER = otel_metrics.get_meter(name)
    return _METER


def init_metrics(config: TelemetryConfig) -> Meter:
    global _METER_PROVIDER, _METER, _INSTRUMENTS, _HISTOGRAMS

    readers = []
    if config.otlp_metrics_endpoint:
        exporter = OTLPMetricExporter(endpoint=config.otlp_metrics_endpoint, insecure=True)
        readers.append(
            PeriodicExportingMetricReader(exporter, export_interval_millis=EXPORT_INTERVAL_MILLIS)
        )

    provider = MeterProvider(resource=Resource.create(config.resource_dict()), metric_readers=readers)
    otel_metrics.set_meter_provider(provider)

    _METER_PROVIDER = provider
    _METER = provider.get_meter(config.service_name)
    _INSTRUMENTS = {}
    _HISTOGRAMS = {}
    return _METER


def shutdown_metrics() -> None:
    """Export whatever the readers still hold and stop them."""
    global _METER_PROVIDER
    if _METER_PROVIDER is not None:
        _METER_PROVIDER.shutdown()
        _METER_PROVIDER = None


def record_game_metric(name: str, value: float, attrs: MetricAttributes | None = None) -> None:
    """Record ``value`` under ``name``, creating the instrument on first use.

    Durations (see ``DURATION_SUFFIXES``) go to a histogram, everything else
    is added to a counter.
    """
    attributes = attrs or {}
    if name.endswith(DURATION_SUFFIXES):
        histogram = _HISTOGRAMS.get(name)
        if histogram is None:
            histogram = get_meter().create_histogram(name)
            _HISTOGRAMS[name] = histogram
        histogram.record(value, attributes=attributes)
        return

    counter = _INSTRUMENTS.get(name)
    if counter is None:
        counter = get_meter().create_counter(name)
        _INSTRUMENTS[name] = counter
    counter.add(value, attributes=attributes)
