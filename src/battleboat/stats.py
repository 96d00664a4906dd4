"""In-memory shot and game statistics for one player."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

MIN_RATED_GAMES = 3


class PerformanceLevel(Enum):
    BEGINNER = "Beginner"
    NOVICE = "Novice"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"


# Minimum win percentage for each rated level, best first.
_LEVEL_THRESHOLDS: tuple[tuple[float, PerformanceLevel], ...] = (
    (70.0, PerformanceLevel.EXPERT),
    (50.0, PerformanceLevel.ADVANCED),
    (30.0, PerformanceLevel.INTERMEDIATE),
)


def _percentage(part: int, whole: int) -> float:
    return part / whole * 100.0 if whole else 0.0


@dataclass
class GameStats:
    """Current-game counters plus running totals across games.

    Per-game shots are folded into the totals when a game ends, so
    ``total_shots`` never includes the game in progress.
    """

    shots_taken: int = 0
    shots_hit: int = 0
    consecutive_hits: int = 0
    ships_sunk: int = 0
    games_played: int = 0
    games_won: int = 0
    total_shots: int = 0
    total_hits: int = 0
    total_ships_sunk: int = 0
    current_win_streak: int = 0
    longest_win_streak: int = 0

    def record_shot(self, hit: bool) -> None:
        self.shots_taken += 1
        if hit:
            self.shots_hit += 1
            self.consecutive_hits += 1
        else:
            self.consecutive_hits = 0

    def record_sink(self) -> None:
        self.ships_sunk += 1

    def end_game(self, won: bool) -> None:
        """Close the current game and fold it into the totals."""
        self.games_played += 1
        self.total_shots += self.shots_taken
        self.total_hits += self.shots_hit
        self.total_ships_sunk += self.ships_sunk
        if won:
            self.games_won += 1
            self.current_win_streak += 1
            self.longest_win_streak = max(self.longest_win_streak, self.current_win_streak)
        else:
            self.current_win_streak = 0
        logger.debug(
            "stats_game_recorded",
            extra={"won": won, "shots": self.shots_taken, "games_played": self.games_played},
        )
        self.reset_current_game()

    @property
    def games_lost(self) -> int:
        return self.games_played - self.games_won

    @property
    def current_accuracy(self) -> float:
        return _percentage(self.shots_hit, self.shots_taken)

    @property
    def overall_accuracy(self) -> float:
        return _percentage(self.total_hits, self.total_shots)

    @property
    def win_percentage(self) -> float:
        return _percentage(self.games_won, self.games_played)

    def performance_level(self) -> PerformanceLevel:
        if self.games_played < MIN_RATED_GAMES:
            return PerformanceLevel.BEGINNER
        for threshold, level in _LEVEL_THRESHOLDS:
            if self.win_percentage >= threshold:
                return level
        return PerformanceLevel.NOVICE

    def reset_current_game(self) -> None:
        self.shots_taken = 0
        self.shots_hit = 0
        self.consecutive_hits = 0
        self.ships_sunk = 0

    def reset_all(self) -> None:
        self.reset_current_game()
        self.games_played = 0
        self.games_won = 0
        self.total_shots = 0
        self.total_hits = 0
        self.total_ships_sunk = 0
        self.current_win_streak = 0
        self.longest_win_streak = 0

    def as_dict(self) -> dict[str, Any]:
        """Flat view used as analytics event properties."""
        return {
            "shots_taken": self.shots_taken,
            "shots_hit": self.shots_hit,
            "current_accuracy": self.current_accuracy,
            "consecutive_hits": self.consecutive_hits,
            "games_played": self.games_played,
            "games_won": self.games_won,
            "win_percentage": self.win_percentage,
            "total_shots": self.total_shots,
            "total_hits": self.total_hits,
            "overall_accuracy": self.overall_accuracy,
            "performance_level": self.performance_level().value,
        }
