"""Product analytics boundary.

The game layer reports user-facing events (game started, shots, game over)
through an :class:`AnalyticsSink` handed to it at construction time. Nothing
in the engine talks to an analytics vendor directly; tests pass
:class:`RecordingAnalytics` and production code passes
:class:`TelemetryAnalytics`, which turns events into log lines and
OpenTelemetry counters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, runtime_checkable

from .metrics import record_game_metric

logger = logging.getLogger(__name__)

EventProperties = Mapping[str, Any]


@runtime_checkable
class AnalyticsSink(Protocol):
    """Narrow analytics capability consumed by the game session."""

    def track_event(self, name: str, properties: EventProperties | None = None) -> None: ...

    def track_screen(self, name: str) -> None: ...


class NullAnalytics:
    """Discards every event."""

    def track_event(self, name: str, properties: EventProperties | None = None) -> None:
        return None

    def track_screen(self, name: str) -> None:
        return None


@dataclass(frozen=True)
class TrackedEvent:
    name: str
    properties: dict[str, Any]


@dataclass
class RecordingAnalytics:
    """Keeps events in memory so callers can assert on them."""

    events: list[TrackedEvent] = field(default_factory=list)
    screens: list[str] = field(default_factory=list)

    def track_event(self, name: str, properties: EventProperties | None = None) -> None:
        self.events.append(TrackedEvent(name, dict(properties or {})))

    def track_screen(self, name: str) -> None:
        self.screens.append(name)

    def names(self) -> list[str]:
        return [event.name for event in self.events]


def _primitive_properties(properties: EventProperties) -> dict[str, str | bool | int | float]:
    return {
        key: value
        for key, value in properties.items()
        if isinstance(value, (str, bool, int, float))
    }


class TelemetryAnalytics:
    """Forwards analytics events to logging and OpenTelemetry metrics."""

    def __init__(self, prefix: str = "battleboat_analytics") -> None:
        self._prefix = prefix

    def track_event(self, name: str, properties: EventProperties | None = None) -> None:
        attributes = _primitive_properties(properties or {})
        extra = {f"event_{key}": value for key, value in attributes.items()}
        logger.info("analytics_event", extra={"event": name, **extra})
        record_game_metric(f"{self._prefix}_{name}_total", 1, attributes)

    def track_screen(self, name: str) -> None:
        logger.info("analytics_screen", extra={"screen": name})
        record_game_metric(f"{self._prefix}_screen_views_total", 1, {"screen": name})
