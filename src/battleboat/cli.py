"""Command-line driver: play against the computer or benchmark its targeting."""

from __future__ import annotations

import argparse
import json
import logging
import random
import statistics
from dataclasses import asdict, dataclass
from typing import Sequence

import numpy as np

from battleboat.ai.targeting import TargetingEngine
from battleboat.config import MIN_BOARD_SIZE, Difficulty, GameConfig, TargetingConfig
from battleboat.engine.board import Board, CellState, ShotOutcome
from battleboat.engine.fleet import Fleet
from battleboat.engine.game import GamePhase, GameResult, Player, ShotReport
from battleboat.engine.instrumented_game import InstrumentedBattleshipGame
from battleboat.engine.ship import Coordinate, Orientation, ShipKind
from battleboat.telemetry import TelemetryAnalytics, init_telemetry, shutdown_telemetry
from battleboat.telemetry.logger import configure_console_logging

logger = logging.getLogger(__name__)

ROW_LABELS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
HEAT_SYMBOLS = " .:-=+*#%@"


def _coordinate_from_input(text: str, size: int) -> Coordinate:
    cleaned = text.strip().upper()
    if not cleaned:
        raise ValueError("Empty coordinate.")
    last_row = ROW_LABELS[size - 1]
    if cleaned[0].isalpha():
        if cleaned[0] not in ROW_LABELS[:size]:
            raise ValueError(f"Row must be between A and {last_row}.")
        row = ROW_LABELS.index(cleaned[0])
        try:
            col = int(cleaned[1:]) - 1
        except ValueError as exc:
            raise ValueError(f"Column must be a number between 1 and {size}.") from exc
    else:
        parts = cleaned.split()
        if len(parts) != 2:
            raise ValueError("Use formats like A5 or '1 5'.")
        try:
            row, col = (int(part) - 1 for part in parts)
        except ValueError as exc:
            raise ValueError("Row and column must be numbers.") from exc
    if row not in range(size) or col not in range(size):
        raise ValueError(f"Coordinates must be within the {size}x{size} board.")
    return Coordinate(row, col)


def _label(coord: Coordinate) -> str:
    return f"{ROW_LABELS[coord.row]}{coord.col + 1}"


def _format_board(board: Board, show_ships: bool) -> str:
    symbols_by_state = {
        CellState.EMPTY: ".",
        CellState.SHIP_PRESENT: "S" if show_ships else ".",
        CellState.HIT: "X",
        CellState.MISS: "o",
        CellState.SUNK: "#",
    }
    header = "    " + " ".join(f"{col + 1:>2}" for col in range(board.size))
    rows = [header]
    for row in range(board.size):
        symbols = [f"{symbols_by_state[board.cell_state(row, col)]:>2}" for col in range(board.size)]
        rows.append(f"{ROW_LABELS[row]} |" + " ".join(symbols))
    return "\n".join(rows)


def _format_heatmap(grid: np.ndarray) -> str:
    """Shade each cell by its share of the hottest cell's weight."""
    peak = float(grid.max()) if grid.size else 0.0
    header = "    " + " ".join(f"{col + 1:>2}" for col in range(grid.shape[1]))
    rows = [header]
    for row in range(grid.shape[0]):
        symbols = []
        for col in range(grid.shape[1]):
            level = 0 if peak <= 0 else int(grid[row, col] / peak * (len(HEAT_SYMBOLS) - 1))
            symbols.append(f"{HEAT_SYMBOLS[level]:>2}")
        rows.append(f"{ROW_LABELS[row]} |" + " ".join(symbols))
    return "\n".join(rows)


def _prompt_for_coordinate(valid: Sequence[Coordinate], size: int) -> Coordinate:
    valid_set = set(valid)
    while True:
        raw = input("Enter target coordinate (e.g., A5 or '1 5') or 'q' to quit: ").strip()
        if raw.lower() == "q":
            raise SystemExit("Goodbye!")
        try:
            coord = _coordinate_from_input(raw, size)
        except ValueError as exc:
            print(f"Invalid input: {exc}")
            continue
        if coord not in valid_set:
            print("That cell has already been targeted. Choose another.")
            continue
        return coord


def _describe_shot(player: Player, coord: Coordinate, report: ShotReport) -> str:
    who = "You" if player is Player.PLAYER1 else "The computer"
    outcome = "hit" if report.hit else "miss"
    if report.sunk and report.vessel is not None:
        outcome = f"sank a {report.vessel.kind.display_name.lower()}!"
    return f"{who} fired at {_label(coord)}: {outcome}"


def _prompt_orientation(kind: ShipKind) -> Orientation:
    while True:
        raw = (
            input(f"Place your {kind.display_name} (length {kind.size}). Orientation [H/V]: ")
            .strip()
            .upper()
        )
        if raw in {"H", "HOR", "HORIZONTAL"}:
            return Orientation.HORIZONTAL
        if raw in {"V", "VER", "VERTICAL"}:
            return Orientation.VERTICAL
        print("Please enter H for horizontal or V for vertical.")


def _manual_ship_placement(fleet: Fleet, board: Board) -> None:
    fleet.reset()
    for kind in fleet.kinds:
        while True:
            print("\nCurrent layout:")
            print(_format_board(board, show_ships=True))
            orientation = _prompt_orientation(kind)
            start_raw = input("Enter starting coordinate (e.g., A1): ")
            try:
                start = _coordinate_from_input(start_raw, board.size)
            except ValueError as exc:
                print(f"Invalid coordinate: {exc}")
                continue
            error = fleet.placement_error(kind, start, orientation)
            if error is None and fleet.try_place(kind, start, orientation):
                break
            reason = error.value.replace("_", " ") if error is not None else "rejected"
            print(f"Ship cannot be placed there ({reason}). Try again.")


def _prompt_manual_setup() -> bool:
    while True:
        raw = input("Would you like to place your ships manually? [Y/n]: ").strip().lower()
        if raw in {"", "y", "yes"}:
            return True
        if raw in {"n", "no"}:
            return False
        print("Please answer with 'y' or 'n'.")


def play_game(config: GameConfig, show_heatmap: bool = False) -> GameResult | None:
    print("Welcome to Battleboat!\n")
    rng = random.Random(config.seed)
    game = InstrumentedBattleshipGame(config=config, analytics=TelemetryAnalytics(), rng=rng)
    game.analytics.track_screen("game")

    if _prompt_manual_setup():
        game.restart()
        _manual_ship_placement(game.fleets[Player.PLAYER1], game.boards[Player.PLAYER1])
        if not game.fleets[Player.PLAYER2].auto_place_all(rng):
            raise SystemExit("Could not place the computer's fleet on this board.")
        game.start()
    else:
        game.setup_random()
        print("\nYour ships have been positioned automatically.")

    while game.phase is GamePhase.IN_PROGRESS:
        player = game.current_player
        if player is Player.PLAYER1:
            print("\nYour Board:")
            print(_format_board(game.boards[Player.PLAYER1], show_ships=True))
            print("\nEnemy Waters:")
            print(_format_board(game.boards[Player.PLAYER2], show_ships=False))
            coord = _prompt_for_coordinate(game.valid_moves(player), config.board_size)
            report = game.fire(player, coord)
            print(_describe_shot(player, coord, report))
        else:
            target, report = game.computer_turn(player)
            if target is not None and report is not None:
                print(_describe_shot(player, target, report))
            if show_heatmap:
                print("\nComputer's targeting heat map:")
                print(_format_heatmap(game.engine(player).probability_grid()))

    if game.result is GameResult.PLAYER1_WIN:
        print("\nCongratulations, you won!")
    elif game.result is GameResult.DRAW:
        print("\nThe battle ended in a draw.")
    else:
        print("\nThe computer won this time. Better luck next battle!")
    stats = game.stats[Player.PLAYER1]
    print(
        f"Games won: {stats.games_won} of {stats.games_played}, "
        f"accuracy {stats.overall_accuracy:.1f}%, level {stats.performance_level().value}"
    )
    return game.result


@dataclass(frozen=True)
class BenchmarkSummary:
    difficulty: str
    games: int
    mean_shots: float
    min_shots: int
    max_shots: int


def shots_to_sink_fleet(
    difficulty: Difficulty,
    rng: random.Random,
    board_size: int = 10,
    allow_adjacent: bool = False,
    targeting: TargetingConfig | None = None,
) -> int:
    """Play one engine against a random fleet; return the shots it needed."""
    board = Board(board_size, owner="benchmark")
    fleet = Fleet(board=board, allow_adjacent=allow_adjacent, owner="benchmark")
    if not fleet.auto_place_all(rng):
        raise RuntimeError("Could not place the benchmark fleet.")
    engine_config = (targeting or TargetingConfig()).for_placement(allow_adjacent)
    engine = TargetingEngine(board_size, difficulty=difficulty, config=engine_config, rng=rng)

    while not fleet.all_sunk():
        target = engine.next_target(board, fleet.remaining_kinds())
        if target is None:
            break
        outcome = board.shoot_at(target.row, target.col)
        sunk_vessel = None
        if outcome is ShotOutcome.HIT:
            vessel = fleet.register_hit(target)
            if vessel is not None and vessel.is_sunk():
                board.mark_sunk(vessel.occupied_cells())
                sunk_vessel = vessel
        engine.record_result(target, outcome, sunk_vessel)
    return engine.shots_taken


def run_benchmark(config: GameConfig, games: int) -> BenchmarkSummary:
    if games < 1:
        raise ValueError("games must be at least 1.")
    rng = random.Random(config.seed)
    shots = [
        shots_to_sink_fleet(
            config.difficulty,
            rng,
            board_size=config.board_size,
            allow_adjacent=config.allow_adjacent,
            targeting=config.targeting,
        )
        for _ in range(games)
    ]
    summary = BenchmarkSummary(
        difficulty=config.difficulty.value,
        games=games,
        mean_shots=statistics.fmean(shots),
        min_shots=min(shots),
        max_shots=max(shots),
    )
    logger.info("benchmark_complete", extra=asdict(summary))
    return summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Play Battleboat against the computer.")
    parser.add_argument(
        "--seed", type=int, default=None, help="Optional RNG seed for reproducibility."
    )
    parser.add_argument(
        "--difficulty",
        choices=[difficulty.value for difficulty in Difficulty],
        default=None,
        help="Computer difficulty (default: BATTLEBOAT_DIFFICULTY or medium).",
    )
    parser.add_argument(
        "--board-size", type=int, default=None, help="Board edge length (default 10)."
    )
    parser.add_argument(
        "--allow-adjacent",
        action="store_true",
        help="Let ships touch each other.",
    )
    parser.add_argument(
        "--show-heatmap",
        action="store_true",
        help="Print the computer's probability map after each of its shots.",
    )
    parser.add_argument(
        "--simulate",
        type=int,
        metavar="N",
        default=None,
        help="Benchmark the computer against N random fleets instead of playing.",
    )
    parser.add_argument("--json", action="store_true", help="Print benchmark results as JSON.")
    parser.add_argument("--verbose", action="store_true", help="Log engine events to stderr.")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.board_size is not None and not MIN_BOARD_SIZE <= args.board_size <= len(ROW_LABELS):
        parser.error(f"--board-size must be between {MIN_BOARD_SIZE} and {len(ROW_LABELS)}.")
    if args.simulate is not None and args.simulate < 1:
        parser.error("--simulate must be at least 1.")
    try:
        config = _config_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))
    configure_console_logging(logging.DEBUG if args.verbose else logging.WARNING)
    init_telemetry()
    try:
        _run(args, config)
    finally:
        shutdown_telemetry()


def _config_from_args(args: argparse.Namespace) -> GameConfig:
    overrides: dict[str, object] = {}
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.difficulty is not None:
        overrides["difficulty"] = Difficulty(args.difficulty)
    if args.board_size is not None:
        overrides["board_size"] = args.board_size
    if args.allow_adjacent:
        overrides["allow_adjacent"] = True
    return GameConfig.from_env(**overrides)


def _run(args: argparse.Namespace, config: GameConfig) -> None:
    if args.simulate is not None:
        summary = run_benchmark(config, args.simulate)
        if args.json:
            print(json.dumps(asdict(summary)))
        else:
            print(
                f"{summary.difficulty}: {summary.games} games, "
                f"mean {summary.mean_shots:.1f} shots (min {summary.min_shots}, "
                f"max {summary.max_shots})"
            )
        return

    play_game(config, show_heatmap=args.show_heatmap)


if __name__ == "__main__":
    main()
