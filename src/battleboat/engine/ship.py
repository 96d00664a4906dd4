"""Vessel domain model for the Battleboat engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

DEFAULT_BOARD_SIZE = 10


@dataclass(frozen=True)
class Coordinate:
    """Immutable board coordinate."""

    row: int
    col: int

    def step(self, direction: Direction, distance: int = 1) -> Coordinate:
        """Return the coordinate ``distance`` cells away along ``direction``."""
        return Coordinate(
            self.row + direction.d_row * distance, self.col + direction.d_col * distance
        )

    def __sub__(self, other: Coordinate) -> Direction:
        return Direction(self.row - other.row, self.col - other.col)


@dataclass(frozen=True)
class Direction:
    """Displacement between two cells, in (row, col) order."""

    d_row: int
    d_col: int

    def __neg__(self) -> Direction:
        return Direction(-self.d_row, -self.d_col)

    def unit(self) -> Direction:
        """Clamp each component to -1, 0 or 1."""
        return Direction(_sign(self.d_row), _sign(self.d_col))

    def dot(self, other: Direction) -> int:
        return self.d_row * other.d_row + self.d_col * other.d_col


ORTHOGONAL_DIRECTIONS: tuple[Direction, ...] = (
    Direction(-1, 0),
    Direction(1, 0),
    Direction(0, -1),
    Direction(0, 1),
)


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


class Orientation(Enum):
    """Allowed vessel orientations."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @property
    def direction(self) -> Direction:
        return Direction(0, 1) if self is Orientation.HORIZONTAL else Direction(1, 0)


@dataclass(frozen=True)
class ShipKind:
    """A vessel class: identified by name, defined by its length."""

    name: str
    size: int
    display_name: str = ""

    def __post_init__(self) -> None:
        if self.size < 1:
            raise ValueError(f"Ship kind {self.name!r} must occupy at least one cell.")
        if not self.display_name:
            object.__setattr__(self, "display_name", self.name.title())


CARRIER = ShipKind("CARRIER", 5, "Carrier")
BATTLESHIP = ShipKind("BATTLESHIP", 4, "Battleship")
CRUISER = ShipKind("CRUISER", 3, "Cruiser")
SUBMARINE = ShipKind("SUBMARINE", 3, "Submarine")
DESTROYER = ShipKind("DESTROYER", 2, "Destroyer")

DEFAULT_FLEET: tuple[ShipKind, ...] = (CARRIER, BATTLESHIP, CRUISER, SUBMARINE, DESTROYER)


def run_cells(origin: Coordinate, orientation: Orientation, length: int) -> list[Coordinate]:
    """Return the ``length`` contiguous cells starting at ``origin``."""
    return [origin.step(orientation.direction, offset) for offset in range(length)]


@dataclass
class Vessel:
    """A single vessel instance: kind, placement and damage."""

    kind: ShipKind
    board_size: int = DEFAULT_BOARD_SIZE
    origin: Coordinate | None = None
    orientation: Orientation = Orientation.HORIZONTAL
    hit_cells: set[Coordinate] = field(default_factory=set)

    @property
    def size(self) -> int:
        return self.kind.size

    @property
    def is_placed(self) -> bool:
        return self.origin is not None

    def cells_for(self, origin: Coordinate, orientation: Orientation) -> list[Coordinate]:
        """Cells this vessel would cover if placed at ``origin``."""
        return run_cells(origin, orientation, self.size)

    def can_place_at(self, origin: Coordinate, orientation: Orientation) -> bool:
        """True when every covered cell lies on the board."""
        return all(
            0 <= cell.row < self.board_size and 0 <= cell.col < self.board_size
            for cell in self.cells_for(origin, orientation)
        )

    def place(self, origin: Coordinate, orientation: Orientation) -> bool:
        """Place the vessel; refuses a second placement without ``remove()``."""
        if self.is_placed or not self.can_place_at(origin, orientation):
            return False
        self.origin = origin
        self.orientation = orientation
        self.hit_cells = set()
        return True

    def remove(self) -> None:
        """Take the vessel off the board and forget its damage."""
        self.origin = None
        self.orientation = Orientation.HORIZONTAL
        self.hit_cells = set()

    def occupied_cells(self) -> list[Coordinate]:
        """Return the ordered cells occupied by this vessel (empty if unplaced)."""
        if self.origin is None:
            return []
        return self.cells_for(self.origin, self.orientation)

    def contains(self, coord: Coordinate) -> bool:
        return coord in self.occupied_cells()

    def apply_hit(self, coord: Coordinate) -> bool:
        """Record a hit if the coordinate belongs to this vessel."""
        if not self.contains(coord):
            return False
        self.hit_cells.add(coord)
        return True

    def damage_count(self) -> int:
        return len(self.hit_cells)

    def damage_ratio(self) -> float:
        if not self.is_placed:
            return 0.0
        return self.damage_count() / self.size

    def is_sunk(self) -> bool:
        """A vessel is sunk once every occupied cell has been hit."""
        return self.is_placed and self.damage_count() == self.size

    def copy(self) -> Vessel:
        return Vessel(
            kind=self.kind,
            board_size=self.board_size,
            origin=self.origin,
            orientation=self.orientation,
            hit_cells=set(self.hit_cells),
        )

    def __str__(self) -> str:
        if self.origin is None:
            return f"{self.kind.display_name} (unplaced)"
        return (
            f"{self.kind.display_name} at ({self.origin.row}, {self.origin.col}) "
            f"{self.orientation.value} - {self.damage_count()}/{self.size} hits"
        )
