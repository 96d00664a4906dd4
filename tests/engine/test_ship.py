"""Tests for vessel and coordinate logic."""

import pytest

from battleboat.engine.ship import (
    CRUISER,
    DESTROYER,
    Coordinate,
    Direction,
    Orientation,
    ShipKind,
    Vessel,
)


def test_vessel_cells_horizontal_and_vertical() -> None:
    vessel = Vessel(DESTROYER)
    assert vessel.cells_for(Coordinate(0, 0), Orientation.HORIZONTAL) == [
        Coordinate(0, 0),
        Coordinate(0, 1),
    ]
    assert vessel.cells_for(Coordinate(0, 0), Orientation.VERTICAL) == [
        Coordinate(0, 0),
        Coordinate(1, 0),
    ]


def test_unplaced_vessel_occupies_nothing_and_is_not_sunk() -> None:
    vessel = Vessel(CRUISER)
    assert vessel.occupied_cells() == []
    assert vessel.is_sunk() is False
    assert vessel.damage_ratio() == 0.0


def test_place_rejects_out_of_bounds_and_second_placement() -> None:
    vessel = Vessel(CRUISER, board_size=10)
    assert vessel.place(Coordinate(0, 8), Orientation.HORIZONTAL) is False
    assert vessel.is_placed is False

    assert vessel.place(Coordinate(0, 7), Orientation.HORIZONTAL) is True
    assert vessel.place(Coordinate(5, 5), Orientation.VERTICAL) is False
    assert vessel.origin == Coordinate(0, 7)


def test_vessel_hit_and_sink() -> None:
    vessel = Vessel(CRUISER)
    vessel.place(Coordinate(3, 3), Orientation.VERTICAL)
    for idx, coord in enumerate(vessel.occupied_cells(), start=1):
        assert vessel.apply_hit(coord) is True
        assert vessel.is_sunk() is (idx == CRUISER.size)


def test_repeated_hits_count_once() -> None:
    vessel = Vessel(DESTROYER)
    vessel.place(Coordinate(0, 0), Orientation.HORIZONTAL)
    vessel.apply_hit(Coordinate(0, 0))
    vessel.apply_hit(Coordinate(0, 0))
    assert vessel.damage_count() == 1
    assert vessel.apply_hit(Coordinate(5, 5)) is False


def test_remove_clears_placement_and_damage() -> None:
    vessel = Vessel(DESTROYER)
    vessel.place(Coordinate(0, 0), Orientation.HORIZONTAL)
    vessel.apply_hit(Coordinate(0, 0))
    vessel.remove()
    assert vessel.is_placed is False
    assert vessel.damage_count() == 0


def test_copy_is_independent() -> None:
    vessel = Vessel(DESTROYER)
    vessel.place(Coordinate(0, 0), Orientation.HORIZONTAL)
    clone = vessel.copy()
    clone.apply_hit(Coordinate(0, 1))
    assert vessel.damage_count() == 0
    assert clone.damage_count() == 1


def test_ship_kind_rejects_empty_size() -> None:
    with pytest.raises(ValueError):
        ShipKind("RAFT", 0)
    assert ShipKind("PATROL", 2).display_name == "Patrol"


def test_direction_unit_and_negation() -> None:
    assert (Coordinate(3, 7) - Coordinate(3, 3)).unit() == Direction(0, 1)
    assert -Direction(0, 1) == Direction(0, -1)
    assert Coordinate(3, 3).step(Direction(1, 0), 2) == Coordinate(5, 3)
