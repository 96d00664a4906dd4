"""Battleboat game session with per-game tracing, metrics and logging."""

from __future__ import annotations

import time
from typing import Any

from battleboat.engine.game import BattleshipGame, GamePhase, Player, ShotReport
from battleboat.engine.ship import Coordinate
from battleboat.telemetry import get_logger, get_tracer, record_game_metric


class InstrumentedBattleshipGame(BattleshipGame):
    """Wraps BattleshipGame with tracing, metrics, and logging."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._logger = get_logger("battleboat.engine")
        self._tracer = get_tracer("battleboat.engine")
        self._game_span_cm = None
        self._game_span = None
        self._game_start_time: float | None = None
        self._game_id_counter = 0

    def setup_random(self) -> None:
        self._start_game_span()
        with self._tracer.start_as_current_span("battleboat.engine.setup_random") as span:
            self._logger.info("Random setup started")
            super().setup_random()
            ships = {player: len(self.fleets[player].vessels) for player in Player}
            span.set_attribute("player1_ships", ships[Player.PLAYER1])
            span.set_attribute("player2_ships", ships[Player.PLAYER2])
            record_game_metric(
                "battleboat_game_setup_total",
                1,
                {"difficulty": self.config.difficulty.value},
            )
            self._logger.info("Random setup finished")

    def start(self) -> None:
        super().start()
        self._start_game_span()
        self._logger.info("Manual setup complete, game started")

    def fire(self, player: Player, coord: Coordinate) -> ShotReport:
        with self._tracer.start_as_current_span("battleboat.engine.fire") as span:
            span.set_attribute("game.id", self._game_id_counter)
            span.set_attribute("player", player.name)
            span.set_attribute("coord.row", coord.row)
            span.set_attribute("coord.col", coord.col)
            try:
                report = super().fire(player, coord)
            except RuntimeError as exc:
                self._record_rejected(player, exc, span)
                raise
            self._record_shot(player, coord, report, span, source="player")
            return report

    def computer_turn(self, player: Player) -> tuple[Coordinate | None, ShotReport | None]:
        with self._tracer.start_as_current_span("battleboat.engine.computer_turn") as span:
            span.set_attribute("game.id", self._game_id_counter)
            span.set_attribute("player", player.name)
            try:
                target, report = super().computer_turn(player)
            except RuntimeError as exc:
                self._record_rejected(player, exc, span)
                raise
            if target is not None and report is not None:
                span.set_attribute("coord.row", target.row)
                span.set_attribute("coord.col", target.col)
                self._record_shot(player, target, report, span, source="computer")
            elif self.phase is GamePhase.FINISHED:
                self._finish_game()
            return target, report

    def _record_rejected(self, player: Player, exc: RuntimeError, span: Any) -> None:
        record_game_metric(
            "battleboat_game_invalid_moves_total",
            1,
            {"player": player.name, "reason": "rejected"},
        )
        span.record_exception(exc)
        span.set_attribute("error", True)
        self._logger.error("Rejected move from %s: %s", player.name, exc)

    def _record_shot(
        self, player: Player, coord: Coordinate, report: ShotReport, span: Any, source: str
    ) -> None:
        span.set_attribute("shot_outcome", report.outcome.name)
        span.set_attribute("hit", report.hit)
        span.set_attribute("sunk", report.sunk)

        record_game_metric("battleboat_shots_total", 1, {"player": player.name, "source": source})
        record_game_metric(
            "battleboat_shots_by_result_total",
            1,
            {"player": player.name, "result": report.outcome.value},
        )
        if report.sunk:
            record_game_metric("battleboat_ships_sunk_total", 1, {"player": player.name})

        self._logger.info(
            "fire player=%s coord=(%d,%d) outcome=%s",
            player.name,
            coord.row,
            coord.col,
            report.outcome.name,
        )

        if self.phase is GamePhase.FINISHED and self.result is not None:
            span.set_attribute("result", self.result.value)
            self._finish_game()

    def _start_game_span(self) -> None:
        self._close_game_span()
        self._game_start_time = time.perf_counter()
        self._game_id_counter += 1
        self._game_span_cm = self._tracer.start_as_current_span("battleboat.engine.game")
        self._game_span = self._game_span_cm.__enter__()
        self._game_span.set_attribute("game.id", self._game_id_counter)
        self._game_span.set_attribute("difficulty", self.config.difficulty.value)

    def _finish_game(self) -> None:
        duration = (time.perf_counter() - self._game_start_time) if self._game_start_time else 0.0
        result = self.result.value if self.result else "unknown"

        record_game_metric("battleboat_game_completed_total", 1, {"result": result})
        record_game_metric("battleboat_game_duration_seconds", duration, {"result": result})

        with self._tracer.start_as_current_span("battleboat.engine.game_complete") as span:
            span.set_attribute("game.id", self._game_id_counter)
            span.set_attribute("result", result)
            span.set_attribute("turns", self.turns)
            span.set_attribute("duration_ms", duration * 1000)

        if self._game_span is not None:
            self._game_span.set_attribute("result", result)
            self._game_span.set_attribute("turns", self.turns)
            self._game_span.set_attribute("duration_ms", duration * 1000)

        self._logger.info(
            "Game finished. Result=%s turns=%d duration_s=%.3f", result, self.turns, duration
        )
        self._close_game_span()

    def _close_game_span(self) -> None:
        if self._game_span_cm is not None:
            self._game_span_cm.__exit__(None, None, None)
            self._game_span_cm = None
            self._game_span = None
