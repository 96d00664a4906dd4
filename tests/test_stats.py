"""Tests for player statistics."""

import pytest

from battleboat.stats import GameStats, PerformanceLevel


def test_shots_and_streaks() -> None:
    stats = GameStats()
    for hit in (True, True, False, True):
        stats.record_shot(hit)
    assert stats.shots_taken == 4
    assert stats.shots_hit == 3
    assert stats.consecutive_hits == 1
    assert stats.current_accuracy == pytest.approx(75.0)


def test_end_game_folds_into_totals() -> None:
    stats = GameStats()
    stats.record_shot(True)
    stats.record_shot(False)
    stats.record_sink()
    stats.end_game(won=True)

    assert stats.shots_taken == 0
    assert stats.total_shots == 2
    assert stats.total_hits == 1
    assert stats.total_ships_sunk == 1
    assert stats.games_won == 1
    assert stats.overall_accuracy == pytest.approx(50.0)

    stats.end_game(won=False)
    assert stats.games_lost == 1
    assert stats.current_win_streak == 0
    assert stats.longest_win_streak == 1


@pytest.mark.parametrize(
    "wins, games, level",
    [
        (2, 2, PerformanceLevel.BEGINNER),
        (7, 10, PerformanceLevel.EXPERT),
        (5, 10, PerformanceLevel.ADVANCED),
        (3, 10, PerformanceLevel.INTERMEDIATE),
        (2, 10, PerformanceLevel.NOVICE),
    ],
)
def test_performance_level(wins: int, games: int, level: PerformanceLevel) -> None:
    stats = GameStats()
    for index in range(games):
        stats.end_game(won=index < wins)
    assert stats.performance_level() is level


def test_reset_all_and_as_dict() -> None:
    stats = GameStats()
    stats.record_shot(True)
    stats.end_game(won=True)
    assert stats.as_dict()["games_won"] == 1
    assert stats.as_dict()["performance_level"] == "Beginner"

    stats.reset_all()
    assert stats.as_dict()["games_played"] == 0
    assert stats.win_percentage == 0.0
