"""Fleet management: placement rules and damage bookkeeping for one side."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Iterable, Sequence

from battleboat.telemetry import get_meter, get_tracer

from .board import Board, PlacementError
from .ship import DEFAULT_BOARD_SIZE, DEFAULT_FLEET, Coordinate, Orientation, ShipKind, Vessel

logger = logging.getLogger(__name__)
tracer = get_tracer("battleboat.engine.fleet")
meter = get_meter("battleboat.engine.fleet")

PLACEMENT_COUNTER = meter.create_counter(
    "battleboat_engine_ship_placements",
    unit="1",
    description="Number of attempted ship placements",
)

MIN_PLACEMENT_ATTEMPTS = 100
DEFAULT_MAX_RESTARTS = 1000


@dataclass(frozen=True)
class FleetStats:
    total_ships: int
    placed_ships: int
    sunk_ships: int
    remaining_ships: int
    total_hits: int
    total_size: int

    @property
    def damage_ratio(self) -> float:
        return self.total_hits / self.total_size if self.total_size else 0.0

    @property
    def is_defeated(self) -> bool:
        return self.total_ships > 0 and self.sunk_ships == self.total_ships


class Fleet:
    """Exactly one vessel per kind, placed under fleet-wide rules.

    With ``allow_adjacent=False`` vessels may not touch, not even diagonally.
    When a :class:`Board` is bound, placements and resets are mirrored onto it.
    """

    def __init__(
        self,
        kinds: Sequence[ShipKind] = DEFAULT_FLEET,
        board_size: int | None = None,
        allow_adjacent: bool = False,
        board: Board | None = None,
        placement_attempts: int = MIN_PLACEMENT_ATTEMPTS,
        max_restarts: int = DEFAULT_MAX_RESTARTS,
        owner: str = "unknown",
    ) -> None:
        if board is not None and board_size is not None and board.size != board_size:
            raise ValueError("Fleet board_size does not match the bound board.")
        size = board.size if board is not None else (board_size or DEFAULT_BOARD_SIZE)
        names = [kind.name for kind in kinds]
        if len(set(names)) != len(names):
            raise ValueError("Fleet kinds must be unique by name.")
        if kinds and max(kind.size for kind in kinds) > size:
            raise ValueError("Board is smaller than the largest ship.")
        if placement_attempts < MIN_PLACEMENT_ATTEMPTS:
            raise ValueError(f"placement_attempts must be at least {MIN_PLACEMENT_ATTEMPTS}.")

        self.board_size = size
        self.allow_adjacent = allow_adjacent
        self.board = board
        self.placement_attempts = placement_attempts
        self.max_restarts = max_restarts
        self.owner = owner
        self._vessels: list[Vessel] = [Vessel(kind, board_size=size) for kind in kinds]

    @property
    def vessels(self) -> list[Vessel]:
        return list(self._vessels)

    @property
    def kinds(self) -> list[ShipKind]:
        return [vessel.kind for vessel in self._vessels]

    def vessel(self, kind: ShipKind) -> Vessel | None:
        for vessel in self._vessels:
            if vessel.kind == kind:
                return vessel
        return None

    def vessel_at(self, coord: Coordinate) -> Vessel | None:
        for vessel in self._vessels:
            if vessel.contains(coord):
                return vessel
        return None

    def placement_error(
        self, kind: ShipKind, origin: Coordinate, orientation: Orientation
    ) -> PlacementError | None:
        """Reason ``kind`` cannot go at ``origin``/``orientation``, or None if it can."""
        vessel = self.vessel(kind)
        if vessel is None:
            return PlacementError.UNKNOWN_KIND
        if vessel.is_placed:
            return PlacementError.ALREADY_PLACED
        if not vessel.can_place_at(origin, orientation):
            return PlacementError.OUT_OF_BOUNDS

        cells = set(vessel.cells_for(origin, orientation))
        occupied = self._occupied_cells(exclude=vessel)
        if cells & occupied:
            return PlacementError.OVERLAP
        if not self.allow_adjacent and cells & self._halo(occupied):
            return PlacementError.ADJACENT
        return None

    def can_place(self, kind: ShipKind, origin: Coordinate, orientation: Orientation) -> bool:
        return self.placement_error(kind, origin, orientation) is None

    def try_place(self, kind: ShipKind, origin: Coordinate, orientation: Orientation) -> bool:
        """Place one vessel if every fleet rule allows it; otherwise change nothing."""
        vessel = self.vessel(kind)
        error = self.placement_error(kind, origin, orientation)
        if error is None and vessel is not None and self.board is not None:
            error = self.board.place(vessel.cells_for(origin, orientation))
        attributes = {"owner": self.owner, "ship_kind": kind.name}
        if error is not None or vessel is None:
            reason = error.value if error is not None else PlacementError.UNKNOWN_KIND.value
            PLACEMENT_COUNTER.add(1, attributes={**attributes, "result": reason})
            logger.debug(
                "ship_placement_rejected",
                extra={
                    **attributes,
                    "reason": reason,
                    "row": origin.row,
                    "col": origin.col,
                    "orientation": orientation.value,
                },
            )
            return False

        vessel.place(origin, orientation)
        PLACEMENT_COUNTER.add(1, attributes={**attributes, "result": "success"})
        logger.info(
            "ship_placed",
            extra={
                **attributes,
                "row": origin.row,
                "col": origin.col,
                "orientation": orientation.value,
            },
        )
        return True

    def remove(self, kind: ShipKind) -> None:
        """Take one vessel off the board."""
        vessel = self.vessel(kind)
        if vessel is None or not vessel.is_placed:
            return
        if self.board is not None:
            self.board.unplace(vessel.occupied_cells())
        vessel.remove()

    def reset(self) -> None:
        """Unplace every vessel."""
        for vessel in self._vessels:
            self.remove(vessel.kind)

    def auto_place_all(self, rng: random.Random) -> bool:
        """Randomly place the whole fleet.

        Vessels go largest first. A vessel that cannot be placed within
        ``placement_attempts`` draws restarts the whole batch, so the fleet is
        either fully placed or, after ``max_restarts`` batches, fully empty.
        """
        with tracer.start_as_current_span("fleet.auto_place_all") as span:
            span.set_attribute("fleet.owner", self.owner)
            order = sorted(self._vessels, key=lambda vessel: vessel.size, reverse=True)
            for batch in range(1, self.max_restarts + 1):
                self.reset()
                if all(self._place_randomly(vessel, rng) for vessel in order):
                    span.set_attribute("fleet.batches", batch)
                    logger.debug(
                        "fleet_auto_placed", extra={"owner": self.owner, "batches": batch}
                    )
                    return True
            self.reset()
            span.set_attribute("fleet.batches", self.max_restarts)
            logger.warning(
                "fleet_auto_placement_failed",
                extra={"owner": self.owner, "batches": self.max_restarts},
            )
            return False

    def _place_randomly(self, vessel: Vessel, rng: random.Random) -> bool:
        orientations = list(Orientation)
        for _ in range(self.placement_attempts):
            origin = Coordinate(rng.randrange(self.board_size), rng.randrange(self.board_size))
            if self.try_place(vessel.kind, origin, rng.choice(orientations)):
                return True
        return False

    def register_hit(self, coord: Coordinate) -> Vessel | None:
        """Apply a hit to whichever vessel occupies ``coord``."""
        vessel = self.vessel_at(coord)
        if vessel is not None:
            vessel.apply_hit(coord)
            if vessel.is_sunk():
                logger.info("ship_sunk", extra={"owner": self.owner, "ship_kind": vessel.kind.name})
        return vessel

    def all_placed(self) -> bool:
        return all(vessel.is_placed for vessel in self._vessels)

    def all_sunk(self) -> bool:
        """True once every placed vessel is sunk (and at least one was placed)."""
        placed = [vessel for vessel in self._vessels if vessel.is_placed]
        return bool(placed) and all(vessel.is_sunk() for vessel in placed)

    def remaining_kinds(self) -> list[ShipKind]:
        """Kinds still afloat: placed and not sunk."""
        return [
            vessel.kind for vessel in self._vessels if vessel.is_placed and not vessel.is_sunk()
        ]

    def sunk_vessels(self) -> list[Vessel]:
        return [vessel for vessel in self._vessels if vessel.is_sunk()]

    def occupied_cells(self) -> set[Coordinate]:
        return self._occupied_cells()

    def is_valid(self) -> bool:
        """All vessels placed, pairwise disjoint and, if required, not touching."""
        if not self.all_placed():
            return False
        for index, vessel in enumerate(self._vessels):
            cells = set(vessel.occupied_cells())
            for other in self._vessels[index + 1 :]:
                other_cells = set(other.occupied_cells())
                if cells & other_cells:
                    return False
                if not self.allow_adjacent and cells & self._halo(other_cells):
                    return False
        return True

    def stats(self) -> FleetStats:
        return FleetStats(
            total_ships=len(self._vessels),
            placed_ships=sum(1 for vessel in self._vessels if vessel.is_placed),
            sunk_ships=len(self.sunk_vessels()),
            remaining_ships=len(self.remaining_kinds()),
            total_hits=sum(vessel.damage_count() for vessel in self._vessels),
            total_size=sum(vessel.size for vessel in self._vessels),
        )

    def copy(self, board: Board | None = None) -> Fleet:
        """Deep copy; the clone is bound to ``board`` (or to nothing)."""
        clone = Fleet(
            kinds=self.kinds,
            board_size=None if board is not None else self.board_size,
            allow_adjacent=self.allow_adjacent,
            board=board,
            placement_attempts=self.placement_attempts,
            max_restarts=self.max_restarts,
            owner=self.owner,
        )
        clone._vessels = [vessel.copy() for vessel in self._vessels]
        return clone

    def _occupied_cells(self, exclude: Vessel | None = None) -> set[Coordinate]:
        coords: set[Coordinate] = set()
        for vessel in self._vessels:
            if vessel is not exclude:
                coords.update(vessel.occupied_cells())
        return coords

    def _halo(self, coords: Iterable[Coordinate]) -> set[Coordinate]:
        """The 8-neighbourhood of ``coords``, the cells themselves included."""
        halo: set[Coordinate] = set()
        for coord in coords:
            for delta_row in (-1, 0, 1):
                for delta_col in (-1, 0, 1):
                    halo.add(Coordinate(coord.row + delta_row, coord.col + delta_col))
        return halo

    def __str__(self) -> str:
        stats = self.stats()
        return f"Fleet: {stats.placed_ships}/{stats.total_ships} placed, {stats.sunk_ships} sunk"
