"""Computer targeting: probability-density search with directional hunting.

The engine alternates between two modes. In SEARCH it scores every untried
cell by how many feasible ship placements cover it and picks among the best
cells according to its difficulty. A hit switches it to HUNT: the neighbours
of that first hit (the anchor) are queued, a second hit fixes the axis of the
ship and queues runs in both directions, and a miss along the axis flips the
search to the other side of the anchor. Sinking the ship returns to SEARCH.

The probability map is rebuilt from the board on every call; the engine never
mutates the board or the fleet it is attacking.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence, TypeAlias

import numpy as np
import numpy.typing as npt

from battleboat.config import Difficulty, TargetingConfig
from battleboat.engine.board import Board, CellState, ShotOutcome
from battleboat.engine.ship import (
    DEFAULT_BOARD_SIZE,
    ORTHOGONAL_DIRECTIONS,
    Coordinate,
    Direction,
    Orientation,
    ShipKind,
    Vessel,
)
from battleboat.telemetry import get_meter, get_tracer

NDArrayFloat: TypeAlias = npt.NDArray[np.float64]
NDArrayBool: TypeAlias = npt.NDArray[np.bool_]

logger = logging.getLogger(__name__)
tracer = get_tracer("battleboat.ai.targeting")
meter = get_meter("battleboat.ai.targeting")

DECISION_COUNTER = meter.create_counter(
    "battleboat_targeting_decisions",
    unit="1",
    description="Targets chosen by the computer, by source",
)

_BLOCKING = (CellState.MISS, CellState.SUNK)


class EngineMode(Enum):
    SEARCH = "search"
    HUNT = "hunt"


@dataclass(frozen=True)
class EngineStats:
    shots_taken: int
    hits_taken: int
    difficulty: Difficulty
    hunting: bool

    @property
    def accuracy(self) -> float:
        return self.hits_taken / self.shots_taken if self.shots_taken else 0.0


def build_probability_map(
    board: Board,
    ship_sizes: Sequence[int],
    *,
    hunting: bool,
    shots_taken: int,
    config: TargetingConfig,
) -> NDArrayFloat:
    """Score every cell of ``board`` for the next shot.

    Each feasible straight placement of each remaining ship adds the ship's
    size to every cell it covers. A placement is feasible when it stays on the
    board and covers no MISS or SUNK cell; while hunting it must also cover at
    least one HIT cell. Resolved cells are then zeroed and the multipliers are
    applied in a fixed order: hit boost, sunk damping, parity bonus.
    """
    size = board.size
    states = [[board.cell_state(row, col) for col in range(size)] for row in range(size)]
    weights: NDArrayFloat = np.zeros((size, size), dtype=np.float64)

    for ship_size in ship_sizes:
        for orientation in Orientation:
            step = orientation.direction
            for row in range(size - step.d_row * (ship_size - 1)):
                for col in range(size - step.d_col * (ship_size - 1)):
                    cells = [
                        (row + step.d_row * offset, col + step.d_col * offset)
                        for offset in range(ship_size)
                    ]
                    covered = [states[r][c] for r, c in cells]
                    if any(state in _BLOCKING for state in covered):
                        continue
                    if hunting and CellState.HIT not in covered:
                        continue
                    for r, c in cells:
                        weights[r, c] += ship_size

    resolved: NDArrayBool = np.array(
        [[state.resolved for state in row_states] for row_states in states], dtype=bool
    )
    weights[resolved] = 0.0

    near_hit = np.zeros((size, size), dtype=bool)
    near_sunk = np.zeros((size, size), dtype=bool)
    for row in range(size):
        for col in range(size):
            if states[row][col] is CellState.HIT:
                for cell in board.neighbors4(row, col):
                    near_hit[cell.row, cell.col] = True
            elif states[row][col] is CellState.SUNK:
                for cell in board.neighbors8(row, col):
                    near_sunk[cell.row, cell.col] = True
    weights[near_hit & ~resolved] *= config.hunt_boost
    weights[near_sunk & ~resolved] *= config.sunk_damping

    rows, cols = np.indices((size, size))
    even = (rows + cols) % 2 == 0
    weights[even] *= config.parity_bonus
    if shots_taken < config.early_game_shots:
        weights[even] *= config.early_parity_bonus
    return weights


class TargetingEngine:
    """Chooses where the computer fires next on one opponent board."""

    def __init__(
        self,
        board_size: int = DEFAULT_BOARD_SIZE,
        difficulty: Difficulty = Difficulty.MEDIUM,
        config: TargetingConfig | None = None,
        rng: random.Random | None = None,
        name: str = "computer",
    ) -> None:
        self.config = config or TargetingConfig()
        self.difficulty = difficulty
        self.name = name
        self._rng = rng or random.Random()
        self._size = board_size
        self.reset()

    def reset(self) -> None:
        """Forget everything about the current game."""
        self._probability: NDArrayFloat = np.zeros((self._size, self._size), dtype=np.float64)
        self._mode = EngineMode.SEARCH
        self._pending: list[Coordinate] = []
        self._anchor: Coordinate | None = None
        self._axis: Direction | None = None
        self._last_hit: Coordinate | None = None
        self._fired: set[Coordinate] = set()
        self._blocked: set[Coordinate] = set()
        self.shots_taken = 0
        self.hits_taken = 0

    @property
    def mode(self) -> EngineMode:
        return self._mode

    @property
    def pending_targets(self) -> list[Coordinate]:
        return list(self._pending)

    @property
    def anchor_hit(self) -> Coordinate | None:
        return self._anchor

    @property
    def hunt_axis(self) -> Direction | None:
        return self._axis

    @property
    def last_hit(self) -> Coordinate | None:
        return self._last_hit

    def probability_at(self, row: int, col: int) -> float:
        if not (0 <= row < self._size and 0 <= col < self._size):
            return 0.0
        return float(self._probability[row, col])

    def probability_grid(self) -> NDArrayFloat:
        return self._probability.copy()

    def stats(self) -> EngineStats:
        return EngineStats(
            shots_taken=self.shots_taken,
            hits_taken=self.hits_taken,
            difficulty=self.difficulty,
            hunting=self._mode is EngineMode.HUNT,
        )

    def next_target(
        self, board: Board, remaining_kinds: Iterable[ShipKind]
    ) -> Coordinate | None:
        """Pick the next cell to fire at, or None once every cell is resolved."""
        with tracer.start_as_current_span("targeting.next_target") as span:
            if board.size != self._size:
                self._size = board.size
            self._probability = build_probability_map(
                board,
                [kind.size for kind in remaining_kinds],
                hunting=self._mode is EngineMode.HUNT,
                shots_taken=self.shots_taken,
                config=self.config,
            )
            span.set_attribute("engine.mode", self._mode.value)
            span.set_attribute("engine.difficulty", self.difficulty.value)

            source = "hunt_queue"
            target = None
            if self._mode is EngineMode.HUNT:
                target = self._pop_pending(board)
                if target is None and self._axis is None:
                    self._end_hunt("queue_exhausted")
            if target is None:
                source = "search"
                target = self._select_search_target(board)

            span.set_attribute("target.source", source)
            if target is None:
                logger.info("targeting_exhausted", extra={"engine": self.name})
                return None
            span.set_attribute("target.row", target.row)
            span.set_attribute("target.col", target.col)
            DECISION_COUNTER.add(
                1, attributes={"source": source, "difficulty": self.difficulty.value}
            )
            logger.debug(
                "target_selected",
                extra={
                    "engine": self.name,
                    "row": target.row,
                    "col": target.col,
                    "source": source,
                    "mode": self._mode.value,
                },
            )
            return target

    def record_result(
        self, target: Coordinate, outcome: ShotOutcome, sunk_vessel: Vessel | None = None
    ) -> None:
        """Update the hunt state with the outcome of firing at ``target``."""
        self.shots_taken += 1
        if outcome is ShotOutcome.MISS:
            self._fired.add(target)
            self._blocked.add(target)
            self._discard_pending(target)
            self._on_miss(target)
        elif outcome is ShotOutcome.HIT:
            self._fired.add(target)
            self._discard_pending(target)
            self.hits_taken += 1
            if sunk_vessel is not None and sunk_vessel.is_sunk():
                self._on_sunk(sunk_vessel)
            else:
                self._on_hit(target)

    def _on_miss(self, target: Coordinate) -> None:
        if self._mode is not EngineMode.HUNT or self._axis is None or self._anchor is None:
            return
        offset = target - self._anchor
        outward = self._axis if offset.dot(self._axis) >= 0 else -self._axis
        if offset.unit() == outward:
            # Nothing past a miss on the ship's line can belong to it.
            self._pending = [
                coord for coord in self._pending if (coord - target).unit() != outward
            ]
        reverse = self._anchor.step(-outward)
        if self._is_open(reverse):
            self._push_front([reverse])
        logger.debug(
            "hunt_reversed",
            extra={"engine": self.name, "row": reverse.row, "col": reverse.col},
        )
        self._axis = None

    def _on_hit(self, target: Coordinate) -> None:
        if self._mode is EngineMode.SEARCH or self._anchor is None:
            self._mode = EngineMode.HUNT
            self._anchor = target
            self._axis = None
            self._push_front(self._open_neighbours(target))
            logger.info(
                "hunt_started", extra={"engine": self.name, "row": target.row, "col": target.col}
            )
        elif self._axis is None:
            previous = self._last_hit or self._anchor
            axis = (target - previous).unit()
            if (axis.d_row == 0) != (axis.d_col == 0):
                self._axis = axis
                forward = self._run(target, axis)
                backward = self._run(self._anchor, -axis)
                self._push_front(forward + backward)
                logger.debug(
                    "hunt_axis_found",
                    extra={"engine": self.name, "d_row": axis.d_row, "d_col": axis.d_col},
                )
            else:
                # Not in line with the previous hit: probe around the new one.
                self._push_front(self._open_neighbours(target))
        else:
            outward = self._axis if (target - self._anchor).dot(self._axis) >= 0 else -self._axis
            self._push_front(self._run(target, outward))
        self._last_hit = target

    def _on_sunk(self, vessel: Vessel) -> None:
        cells = vessel.occupied_cells()
        self._fired.update(cells)
        self._blocked.update(cells)
        logger.info(
            "hunt_completed",
            extra={"engine": self.name, "ship_kind": vessel.kind.name, "shots": self.shots_taken},
        )
        self._mode = EngineMode.SEARCH
        self._pending.clear()
        self._anchor = None
        self._axis = None
        self._last_hit = None

    def _end_hunt(self, reason: str) -> None:
        logger.debug("hunt_abandoned", extra={"engine": self.name, "reason": reason})
        self._mode = EngineMode.SEARCH
        self._anchor = None
        self._axis = None
        self._last_hit = None

    def _select_search_target(self, board: Board) -> Coordinate | None:
        available = board.available_targets()
        if not available:
            return None

        if self.difficulty is Difficulty.EASY:
            sample_size = min(len(available), self.config.easy_sample_size)
            candidates = self._rng.sample(available, sample_size)
        elif self.difficulty is Difficulty.MEDIUM:
            ranked = sorted(available, key=self._weight, reverse=True)
            top_count = max(1, int(len(ranked) * self.config.medium_top_fraction))
            candidates = ranked[:top_count]
        else:
            best = max(self._weight(coord) for coord in available)
            candidates = [coord for coord in available if self._weight(coord) == best]
        return self._rng.choice(candidates)

    def _weight(self, coord: Coordinate) -> float:
        return float(self._probability[coord.row, coord.col])

    def _pop_pending(self, board: Board) -> Coordinate | None:
        while self._pending:
            target = self._pending.pop(0)
            if self._is_open(target) and not board.state_at(target).resolved:
                return target
        return None

    def _discard_pending(self, target: Coordinate) -> None:
        self._pending = [coord for coord in self._pending if coord != target]

    def _push_front(self, cells: Iterable[Coordinate]) -> None:
        """Queue ``cells`` ahead of everything else, keeping their order."""
        fresh: list[Coordinate] = []
        for cell in cells:
            if self._is_open(cell) and cell not in fresh:
                fresh.append(cell)
        self._pending = fresh + [coord for coord in self._pending if coord not in fresh]

    def _is_open(self, coord: Coordinate) -> bool:
        in_bounds = 0 <= coord.row < self._size and 0 <= coord.col < self._size
        return in_bounds and coord not in self._fired

    def _open_neighbours(self, coord: Coordinate) -> list[Coordinate]:
        return [
            neighbour
            for neighbour in (coord.step(direction) for direction in ORTHOGONAL_DIRECTIONS)
            if self._is_open(neighbour)
        ]

    def _run(self, start: Coordinate, direction: Direction) -> list[Coordinate]:
        """Up to ``run_length`` untried cells beyond ``start``.

        Known hits are stepped over; the board edge or a known miss ends the run.
        """
        cells: list[Coordinate] = []
        cursor = start
        while len(cells) < self.config.run_length:
            cursor = cursor.step(direction)
            if not (0 <= cursor.row < self._size and 0 <= cursor.col < self._size):
                break
            if cursor in self._blocked:
                break
            if cursor in self._fired:
                continue
            cells.append(cursor)
        return cells
