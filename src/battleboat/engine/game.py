"""Two-sided Battleboat game session."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum

from battleboat.ai.targeting import TargetingEngine
from battleboat.config import GameConfig
from battleboat.stats import GameStats
from battleboat.telemetry import AnalyticsSink, NullAnalytics, get_meter, get_tracer

from .board import Board, ShotOutcome
from .fleet import Fleet, FleetStats
from .ship import Coordinate, Vessel

logger = logging.getLogger(__name__)
tracer = get_tracer("battleboat.engine.game")
meter = get_meter("battleboat.engine.game")

MOVE_COUNTER = meter.create_counter(
    "battleboat_engine_moves",
    unit="1",
    description="Number of shots resolved by BattleshipGame",
)


class GamePhase(Enum):
    """High-level lifecycle of a match."""

    SETUP = "setup"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class Player(Enum):
    """The two sides. PLAYER2 is always the computer."""

    PLAYER1 = "player1"
    PLAYER2 = "player2"

    def opponent(self) -> Player:
        return Player.PLAYER2 if self is Player.PLAYER1 else Player.PLAYER1


class GameResult(Enum):
    PLAYER1_WIN = "player1_win"
    PLAYER2_WIN = "player2_win"
    DRAW = "draw"

    @classmethod
    def win_for(cls, player: Player) -> GameResult:
        return cls.PLAYER1_WIN if player is Player.PLAYER1 else cls.PLAYER2_WIN


@dataclass(frozen=True)
class ShotReport:
    """What happened when a player fired one shot."""

    outcome: ShotOutcome
    vessel: Vessel | None = None
    sunk: bool = False

    @property
    def hit(self) -> bool:
        return self.outcome is ShotOutcome.HIT


@dataclass(frozen=True)
class SideSnapshot:
    board: Board
    fleet: FleetStats
    remaining: tuple[str, ...]


@dataclass(frozen=True)
class GameState:
    """Immutable snapshot of the current game."""

    phase: GamePhase
    current_player: Player
    result: GameResult | None
    turns: int
    sides: dict[Player, SideSnapshot]

    @property
    def winner(self) -> Player | None:
        if self.result is GameResult.PLAYER1_WIN:
            return Player.PLAYER1
        if self.result is GameResult.PLAYER2_WIN:
            return Player.PLAYER2
        return None


class BattleshipGame:
    """Coordinates play between two boards, their fleets and targeting engines.

    Each side owns a :class:`Board` with a bound :class:`Fleet`. Shots are
    resolved on the opponent's side; ``computer_turn`` lets a side's
    :class:`TargetingEngine` choose the shot. Only a shot that resolves a new
    cell (HIT or MISS) passes the turn.
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        analytics: AnalyticsSink | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or GameConfig()
        self.analytics: AnalyticsSink = analytics or NullAnalytics()
        self._rng = rng or random.Random(self.config.seed)
        self.boards: dict[Player, Board] = {}
        self.fleets: dict[Player, Fleet] = {}
        self.engines: dict[Player, TargetingEngine] = {}
        self.stats: dict[Player, GameStats] = {}
        for player in Player:
            board = Board(self.config.board_size, owner=player.value)
            self.boards[player] = board
            self.fleets[player] = Fleet(
                board=board,
                allow_adjacent=self.config.allow_adjacent,
                placement_attempts=self.config.placement_attempts,
                max_restarts=self.config.max_placement_restarts,
                owner=player.value,
            )
            self.engines[player] = TargetingEngine(
                board_size=self.config.board_size,
                difficulty=self.config.difficulty,
                config=self.config.engine_targeting,
                rng=self._rng,
                name=f"{player.value}_engine",
            )
            self.stats[player] = GameStats()
        self.phase = GamePhase.SETUP
        self.current_player = Player.PLAYER1
        self.result: GameResult | None = None
        self.turns = 0

    @property
    def winner(self) -> Player | None:
        if self.result is None or self.result is GameResult.DRAW:
            return None
        return Player.PLAYER1 if self.result is GameResult.PLAYER1_WIN else Player.PLAYER2

    def engine(self, player: Player) -> TargetingEngine:
        """The engine that picks shots for ``player`` against its opponent."""
        return self.engines[player]

    def setup_random(self) -> None:
        """Randomly place both fleets and start the game."""
        with tracer.start_as_current_span("game.setup_random"):
            self.restart()
            for player, fleet in self.fleets.items():
                if not fleet.auto_place_all(self._rng):
                    raise RuntimeError(f"Could not place the fleet for {player.value}.")
                self.analytics.track_event("random_ship_placement", {"player": player.value})
                logger.debug("game_random_placement", extra={"board_owner": player.value})
            self._begin()

    def start(self) -> None:
        """Start a game whose fleets were placed by hand."""
        if self.phase is not GamePhase.SETUP:
            raise RuntimeError("Game has already started.")
        for player, fleet in self.fleets.items():
            if not fleet.all_placed():
                logger.error("game_start_rejected_fleet_incomplete", extra={"player": player.value})
                raise RuntimeError(f"Fleet for {player.value} is not fully placed.")
        self._begin()

    def _begin(self) -> None:
        self.phase = GamePhase.IN_PROGRESS
        self.current_player = Player.PLAYER1
        self.result = None
        self.turns = 0
        self.analytics.track_event(
            "start_game",
            {
                "difficulty": self.config.difficulty.value,
                "board_size": self.config.board_size,
                "allow_adjacent": self.config.allow_adjacent,
            },
        )
        logger.info(
            "game_started",
            extra={"phase": self.phase.value, "current_player": self.current_player.value},
        )

    def fire(self, player: Player, coord: Coordinate) -> ShotReport:
        """Fire one shot chosen by ``player`` at the opponent's board."""
        return self._shoot(player, coord, event="player_shoot")

    def computer_turn(self, player: Player) -> tuple[Coordinate | None, ShotReport | None]:
        """Let ``player``'s engine choose a target, fire, and learn from the result.

        When the engine has nothing left to shoot at the game ends in a draw
        and ``(None, None)`` is returned.
        """
        self._check_turn(player)
        opponent = player.opponent()
        engine = self.engines[player]
        target = engine.next_target(self.boards[opponent], self.fleets[opponent].remaining_kinds())
        if target is None:
            logger.warning("computer_turn_no_target", extra={"player": player.value})
            self._finish(GameResult.DRAW)
            return None, None
        report = self._shoot(player, target, event="computer_shoot")
        engine.record_result(target, report.outcome, report.vessel if report.sunk else None)
        return target, report

    def _check_turn(self, player: Player) -> None:
        if self.phase is not GamePhase.IN_PROGRESS:
            logger.error(
                "move_rejected_game_not_in_progress",
                extra={"player": player.value, "phase": self.phase.value},
            )
            raise RuntimeError("Game is not in progress.")
        if player is not self.current_player:
            logger.error(
                "move_rejected_wrong_player",
                extra={"player": player.value, "current": self.current_player.value},
            )
            raise RuntimeError("It is not this player's turn.")

    def _shoot(self, player: Player, coord: Coordinate, event: str) -> ShotReport:
        with tracer.start_as_current_span("game.fire") as span:
            span.set_attribute("player", player.value)
            span.set_attribute("row", coord.row)
            span.set_attribute("col", coord.col)
            self._check_turn(player)

            opponent = player.opponent()
            board = self.boards[opponent]
            fleet = self.fleets[opponent]
            outcome = board.shoot_at(coord.row, coord.col)
            span.set_attribute("shot.outcome", outcome.value)
            MOVE_COUNTER.add(1, attributes={"result": outcome.value, "player": player.value})

            if outcome not in (ShotOutcome.HIT, ShotOutcome.MISS):
                logger.warning(
                    "shot_ignored",
                    extra={"player": player.value, "outcome": outcome.value},
                )
                return ShotReport(outcome)

            vessel = fleet.register_hit(coord) if outcome is ShotOutcome.HIT else None
            sunk = vessel is not None and vessel.is_sunk()
            if sunk and vessel is not None:
                board.mark_sunk(vessel.occupied_cells())
                self.stats[player].record_sink()
            self.stats[player].record_shot(outcome is ShotOutcome.HIT)
            self.turns += 1
            self.analytics.track_event(
                event,
                {
                    "player": player.value,
                    "row": coord.row,
                    "col": coord.col,
                    "hit": outcome is ShotOutcome.HIT,
                    "sunk": sunk,
                    "consecutive_hits": self.stats[player].consecutive_hits,
                },
            )

            if fleet.all_sunk():
                span.set_attribute("game.winner", player.value)
                self._finish(GameResult.win_for(player))
            else:
                self.current_player = opponent
                span.set_attribute("next_player", opponent.value)
            return ShotReport(outcome, vessel, sunk)

    def _finish(self, result: GameResult) -> None:
        self.phase = GamePhase.FINISHED
        self.result = result
        winner = self.winner
        self.analytics.track_event(
            "game_over",
            {
                "result": result.value,
                "turns": self.turns,
                **self.stats[Player.PLAYER1].as_dict(),
            },
        )
        for player, stats in self.stats.items():
            stats.end_game(won=player is winner)
        logger.info("game_finished", extra={"result": result.value, "turns": self.turns})

    def restart(self) -> None:
        """Clear both sides for a new game; running totals are kept."""
        for player in Player:
            self.fleets[player].reset()
            self.boards[player].clear()
            self.engines[player].reset()
            self.stats[player].reset_current_game()
        self.phase = GamePhase.SETUP
        self.current_player = Player.PLAYER1
        self.result = None
        self.turns = 0

    def valid_moves(self, player: Player) -> list[Coordinate]:
        """Every cell ``player`` may still fire at."""
        if self.phase is not GamePhase.IN_PROGRESS:
            return []
        return self.boards[player.opponent()].available_targets()

    def get_state(self) -> GameState:
        sides = {
            player: SideSnapshot(
                board=self.boards[player].copy(),
                fleet=self.fleets[player].stats(),
                remaining=tuple(kind.name for kind in self.fleets[player].remaining_kinds()),
            )
            for player in Player
        }
        return GameState(
            phase=self.phase,
            current_player=self.current_player,
            result=self.result,
            turns=self.turns,
            sides=sides,
        )
