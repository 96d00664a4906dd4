"""Cell-state grid for one side of a Battleboat game."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from battleboat.telemetry import get_meter, get_tracer

from .ship import DEFAULT_BOARD_SIZE, ORTHOGONAL_DIRECTIONS, Coordinate

logger = logging.getLogger(__name__)
tracer = get_tracer("battleboat.engine.board")
meter = get_meter("battleboat.engine.board")

SHOT_COUNTER = meter.create_counter(
    "battleboat_engine_shots",
    unit="1",
    description="Shots received by a board",
)


class CellState(Enum):
    """State of a single board cell."""

    EMPTY = "empty"
    SHIP_PRESENT = "ship"
    HIT = "hit"
    MISS = "miss"
    SUNK = "sunk"

    @property
    def resolved(self) -> bool:
        """True once the cell has been fired at."""
        return self in (CellState.HIT, CellState.MISS, CellState.SUNK)


class ShotOutcome(Enum):
    """Result of firing at a cell."""

    HIT = "hit"
    MISS = "miss"
    ALREADY_SHOT = "already_shot"
    OUT_OF_BOUNDS = "out_of_bounds"


class PlacementError(Enum):
    """Why a placement request was refused."""

    OUT_OF_BOUNDS = "out_of_bounds"
    OVERLAP = "overlap"
    ADJACENT = "adjacent"
    ALREADY_PLACED = "already_placed"
    UNKNOWN_KIND = "unknown_kind"


@dataclass(frozen=True)
class BoardStats:
    ships: int
    hits: int
    misses: int
    sunk: int

    @property
    def total_shots(self) -> int:
        return self.hits + self.misses + self.sunk

    @property
    def hit_rate(self) -> float:
        if self.total_shots == 0:
            return 0.0
        return (self.hits + self.sunk) / self.total_shots


_SYMBOLS = {
    CellState.EMPTY: ".",
    CellState.SHIP_PRESENT: "S",
    CellState.HIT: "X",
    CellState.MISS: "o",
    CellState.SUNK: "#",
}


class Board:
    """Square grid of :class:`CellState`, stored row-major in a flat list."""

    def __init__(self, size: int = DEFAULT_BOARD_SIZE, owner: str = "unknown") -> None:
        if size < 1:
            raise ValueError("Board size must be positive.")
        self.size = size
        self.owner = owner
        self._cells: list[CellState] = [CellState.EMPTY] * (size * size)

    def _index(self, row: int, col: int) -> int:
        return row * self.size + col

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def contains(self, coord: Coordinate) -> bool:
        return self.in_bounds(coord.row, coord.col)

    def cell_state(self, row: int, col: int) -> CellState:
        """State of a cell; out-of-range cells read as EMPTY."""
        if not self.in_bounds(row, col):
            return CellState.EMPTY
        return self._cells[self._index(row, col)]

    def state_at(self, coord: Coordinate) -> CellState:
        return self.cell_state(coord.row, coord.col)

    def is_resolved(self, row: int, col: int) -> bool:
        return self.cell_state(row, col).resolved

    def place(self, coords: Iterable[Coordinate]) -> PlacementError | None:
        """Mark ``coords`` as holding a ship; all or nothing."""
        cells = list(coords)
        for coord in cells:
            if not self.contains(coord):
                return PlacementError.OUT_OF_BOUNDS
            if self.state_at(coord) is not CellState.EMPTY:
                return PlacementError.OVERLAP
        for coord in cells:
            self._cells[self._index(coord.row, coord.col)] = CellState.SHIP_PRESENT
        return None

    def unplace(self, coords: Iterable[Coordinate]) -> None:
        """Undo a placement on cells that have not been fired at."""
        for coord in coords:
            if self.state_at(coord) is CellState.SHIP_PRESENT:
                self._cells[self._index(coord.row, coord.col)] = CellState.EMPTY

    def shoot_at(self, row: int, col: int) -> ShotOutcome:
        """Fire at a cell. Resolved cells are left untouched."""
        with tracer.start_as_current_span("board.shoot_at") as span:
            span.set_attribute("shot.row", row)
            span.set_attribute("shot.col", col)
            span.set_attribute("board.owner", self.owner)
            if not self.in_bounds(row, col):
                outcome = ShotOutcome.OUT_OF_BOUNDS
                logger.warning(
                    "shot_out_of_bounds", extra={"row": row, "col": col, "owner": self.owner}
                )
            else:
                index = self._index(row, col)
                state = self._cells[index]
                if state is CellState.SHIP_PRESENT:
                    self._cells[index] = CellState.HIT
                    outcome = ShotOutcome.HIT
                elif state is CellState.EMPTY:
                    self._cells[index] = CellState.MISS
                    outcome = ShotOutcome.MISS
                else:
                    outcome = ShotOutcome.ALREADY_SHOT
                logger.debug(
                    "shot_resolved",
                    extra={"row": row, "col": col, "outcome": outcome.value, "owner": self.owner},
                )
            span.set_attribute("shot.outcome", outcome.value)
            SHOT_COUNTER.add(1, attributes={"outcome": outcome.value, "owner": self.owner})
            return outcome

    def mark_sunk(self, coords: Iterable[Coordinate]) -> None:
        """Turn the HIT cells among ``coords`` into SUNK."""
        for coord in coords:
            if self.state_at(coord) is CellState.HIT:
                self._cells[self._index(coord.row, coord.col)] = CellState.SUNK

    def available_targets(self) -> list[Coordinate]:
        """Every cell that has not been fired at, in row-major order."""
        return [
            Coordinate(index // self.size, index % self.size)
            for index, state in enumerate(self._cells)
            if not state.resolved
        ]

    def cells_in_state(self, state: CellState) -> list[Coordinate]:
        return [
            Coordinate(index // self.size, index % self.size)
            for index, cell in enumerate(self._cells)
            if cell is state
        ]

    def neighbors4(self, row: int, col: int) -> list[Coordinate]:
        """Orthogonal in-bounds neighbours: up, down, left, right."""
        neighbours = []
        for direction in ORTHOGONAL_DIRECTIONS:
            r, c = row + direction.d_row, col + direction.d_col
            if self.in_bounds(r, c):
                neighbours.append(Coordinate(r, c))
        return neighbours

    def neighbors8(self, row: int, col: int) -> list[Coordinate]:
        """Orthogonal and diagonal in-bounds neighbours."""
        neighbours = []
        for delta_row in (-1, 0, 1):
            for delta_col in (-1, 0, 1):
                if delta_row == 0 and delta_col == 0:
                    continue
                r, c = row + delta_row, col + delta_col
                if self.in_bounds(r, c):
                    neighbours.append(Coordinate(r, c))
        return neighbours

    def clear(self) -> None:
        self._cells = [CellState.EMPTY] * (self.size * self.size)

    def stats(self) -> BoardStats:
        return BoardStats(
            ships=self._cells.count(CellState.SHIP_PRESENT),
            hits=self._cells.count(CellState.HIT),
            misses=self._cells.count(CellState.MISS),
            sunk=self._cells.count(CellState.SUNK),
        )

    def copy(self) -> Board:
        clone = Board(self.size, owner=self.owner)
        clone._cells = list(self._cells)
        return clone

    def render(self, show_ships: bool = True) -> str:
        """Text view of the board, one row per line."""
        header = "   " + " ".join(f"{col:>2}" for col in range(self.size))
        rows = [header]
        for row in range(self.size):
            symbols = []
            for col in range(self.size):
                state = self.cell_state(row, col)
                if state is CellState.SHIP_PRESENT and not show_ships:
                    state = CellState.EMPTY
                symbols.append(f"{_SYMBOLS[state]:>2}")
            rows.append(f"{row:>2} " + " ".join(symbols))
        return "\n".join(rows)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.size == other.size and self._cells == other._cells

    def __repr__(self) -> str:
        return f"Board(size={self.size}, owner={self.owner!r})"
