"""Tests for the command-line driver."""

from __future__ import annotations

import json

import numpy as np
import pytest

from battleboat import cli
from battleboat.config import Difficulty, GameConfig
from battleboat.engine.board import Board
from battleboat.engine.ship import Coordinate


def test_coordinate_parsing() -> None:
    assert cli._coordinate_from_input("a5", 10) == Coordinate(0, 4)
    assert cli._coordinate_from_input("1 5", 10) == Coordinate(0, 4)
    assert cli._coordinate_from_input("3 7", 10) == Coordinate(2, 6)
    for raw in ("", "K1", "A11", "1 2 3", "Ax", "0 5", "11 1", "a b"):
        with pytest.raises(ValueError):
            cli._coordinate_from_input(raw, 10)


def test_format_board_hides_ships() -> None:
    board = Board(size=3)
    board.place([Coordinate(0, 0)])
    assert "S" not in cli._format_board(board, show_ships=False)
    assert "S" in cli._format_board(board, show_ships=True)


def test_run_benchmark_summarises_games() -> None:
    summary = cli.run_benchmark(GameConfig(seed=1, difficulty=Difficulty.HARD), games=3)
    assert summary.games == 3
    assert 17 <= summary.min_shots <= summary.mean_shots <= summary.max_shots <= 100


def test_main_simulate_prints_json(capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["--simulate", "2", "--seed", "3", "--difficulty", "easy", "--json"])
    payload = json.loads(capsys.readouterr().out)
    assert payload["difficulty"] == "easy"
    assert payload["games"] == 2


def test_format_heatmap_shades_relative_to_peak() -> None:
    grid = np.zeros((2, 2))
    grid[0, 0] = 4.0
    grid[1, 1] = 2.0
    lines = cli._format_heatmap(grid).splitlines()
    assert lines[1].endswith(f"{cli.HEAT_SYMBOLS[-1]:>2} {cli.HEAT_SYMBOLS[0]:>2}")
    assert cli.HEAT_SYMBOLS[4] in lines[2]


@pytest.mark.parametrize(
    "argv",
    [
        ["--board-size", "3", "--simulate", "1"],
        ["--board-size", "27"],
        ["--simulate", "0"],
    ],
)
def test_main_rejects_bad_arguments(argv: list[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)
    assert excinfo.value.code == 2


def test_main_rejects_bad_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BATTLEBOAT_BOARD_SIZE", "3")
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--simulate", "1"])
    assert excinfo.value.code == 2


def test_benchmark_engine_skips_damping_when_ships_touch(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[float] = []
    original = cli.TargetingEngine

    def recording_engine(*args, **kwargs):
        seen.append(kwargs["config"].sunk_damping)
        return original(*args, **kwargs)

    monkeypatch.setattr(cli, "TargetingEngine", recording_engine)
    cli.run_benchmark(GameConfig(seed=2, allow_adjacent=True), games=1)
    cli.run_benchmark(GameConfig(seed=2), games=1)
    assert seen == [1.0, 0.1]
