"""Tests for the Board mechanics."""

import pytest

from battleboat.engine.board import Board, CellState, PlacementError, ShotOutcome
from battleboat.engine.ship import Coordinate


def test_board_shot_tracking() -> None:
    board = Board()
    assert board.place([Coordinate(0, 0), Coordinate(0, 1)]) is None

    assert board.shoot_at(0, 0) is ShotOutcome.HIT
    assert board.cell_state(0, 0) is CellState.HIT

    assert board.shoot_at(5, 5) is ShotOutcome.MISS
    assert board.cell_state(5, 5) is CellState.MISS

    assert board.shoot_at(0, 0) is ShotOutcome.ALREADY_SHOT
    assert board.shoot_at(5, 5) is ShotOutcome.ALREADY_SHOT
    assert board.cell_state(0, 0) is CellState.HIT


def test_out_of_bounds_shot_changes_nothing() -> None:
    board = Board()
    before = board.copy()
    assert board.shoot_at(11, 11) is ShotOutcome.OUT_OF_BOUNDS
    assert board.shoot_at(-1, 0) is ShotOutcome.OUT_OF_BOUNDS
    assert board == before


def test_cell_state_outside_board_reads_empty() -> None:
    board = Board()
    assert board.cell_state(-1, 4) is CellState.EMPTY
    assert board.cell_state(4, 10) is CellState.EMPTY
    assert board.cell_state(4, 4) is CellState.EMPTY


def test_place_is_all_or_nothing() -> None:
    board = Board()
    board.place([Coordinate(2, 2)])
    assert board.place([Coordinate(2, 1), Coordinate(2, 2)]) is PlacementError.OVERLAP
    assert board.cell_state(2, 1) is CellState.EMPTY
    assert board.place([Coordinate(9, 9), Coordinate(9, 10)]) is PlacementError.OUT_OF_BOUNDS
    assert board.cell_state(9, 9) is CellState.EMPTY


def test_mark_sunk_only_converts_hits() -> None:
    board = Board()
    cells = [Coordinate(4, 4), Coordinate(4, 5)]
    board.place(cells)
    board.shoot_at(4, 4)
    board.mark_sunk(cells + [Coordinate(0, 0)])
    assert board.cell_state(4, 4) is CellState.SUNK
    assert board.cell_state(4, 5) is CellState.SHIP_PRESENT
    assert board.cell_state(0, 0) is CellState.EMPTY


def test_available_targets_excludes_resolved_cells() -> None:
    board = Board(size=3)
    board.shoot_at(0, 0)
    board.shoot_at(1, 1)
    targets = board.available_targets()
    assert len(targets) == 7
    assert Coordinate(0, 0) not in targets
    assert targets[0] == Coordinate(0, 1)


def test_neighbours_respect_board_edges() -> None:
    board = Board()
    assert board.neighbors4(0, 0) == [Coordinate(1, 0), Coordinate(0, 1)]
    assert len(board.neighbors4(5, 5)) == 4
    assert len(board.neighbors8(0, 0)) == 3
    assert len(board.neighbors8(5, 5)) == 8


def test_stats_and_render() -> None:
    board = Board(size=4)
    board.place([Coordinate(0, 0), Coordinate(0, 1)])
    board.shoot_at(0, 0)
    board.shoot_at(3, 3)
    stats = board.stats()
    assert (stats.ships, stats.hits, stats.misses, stats.sunk) == (1, 1, 1, 0)
    assert stats.hit_rate == pytest.approx(0.5)
    assert board.cells_in_state(CellState.MISS) == [Coordinate(3, 3)]

    hidden = board.render(show_ships=False)
    assert "S" not in hidden
    assert "X" in hidden and "o" in hidden
    assert "S" in board.render(show_ships=True)


def test_board_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError):
        Board(size=0)
