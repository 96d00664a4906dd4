"""Tests for the analytics sinks."""

from __future__ import annotations

import logging

import pytest

from battleboat.telemetry import analytics as analytics_module
from battleboat.telemetry.analytics import (
    AnalyticsSink,
    NullAnalytics,
    RecordingAnalytics,
    TelemetryAnalytics,
)


def test_sinks_satisfy_the_protocol() -> None:
    for sink in (NullAnalytics(), RecordingAnalytics(), TelemetryAnalytics()):
        assert isinstance(sink, AnalyticsSink)


def test_recording_analytics_keeps_a_copy_of_properties() -> None:
    sink = RecordingAnalytics()
    properties = {"row": 1}
    sink.track_event("player_shoot", properties)
    properties["row"] = 9
    sink.track_screen("game")

    assert sink.names() == ["player_shoot"]
    assert sink.events[0].properties == {"row": 1}
    assert sink.screens == ["game"]


def test_telemetry_analytics_counts_events(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[str, float, dict | None]] = []
    monkeypatch.setattr(
        analytics_module,
        "record_game_metric",
        lambda name, value, attrs=None: calls.append((name, value, attrs)),
    )

    sink = TelemetryAnalytics(prefix="test")
    sink.track_event("game_over", {"result": "draw", "turns": 12, "board": [1, 2]})
    sink.track_screen("menu")

    assert calls[0] == ("test_game_over_total", 1, {"result": "draw", "turns": 12})
    assert calls[1] == ("test_screen_views_total", 1, {"screen": "menu"})


def test_telemetry_analytics_logs_flat_attributes(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setattr(analytics_module, "record_game_metric", lambda *args, **kwargs: None)

    with caplog.at_level(logging.INFO, logger=analytics_module.__name__):
        TelemetryAnalytics().track_event("player_shoot", {"row": 2, "hit": True, "cells": [1]})

    record = next(r for r in caplog.records if r.getMessage() == "analytics_event")
    assert record.event == "player_shoot"
    assert record.event_row == 2
    assert record.event_hit is True
    assert not hasattr(record, "event_cells")
    assert not hasattr(record, "properties")
