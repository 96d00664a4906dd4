"""Tests for game configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from battleboat import config as config_module
from battleboat.config import Difficulty, GameConfig, TargetingConfig


def test_defaults_match_the_classic_game() -> None:
    config = GameConfig()
    assert config.board_size == 10
    assert config.difficulty is Difficulty.MEDIUM
    assert config.allow_adjacent is False
    assert config.targeting.hunt_boost == 2.0
    assert config.targeting.early_game_shots == 20


def test_from_env_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BATTLEBOAT_BOARD_SIZE", "12")
    monkeypatch.setenv("BATTLEBOAT_DIFFICULTY", " Hard ")
    monkeypatch.setenv("BATTLEBOAT_ALLOW_ADJACENT", "true")
    monkeypatch.setenv("BATTLEBOAT_SEED", "7")

    config = GameConfig.from_env(seed=99)
    assert config.board_size == 12
    assert config.difficulty is Difficulty.HARD
    assert config.allow_adjacent is True
    assert config.seed == 99


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(ValidationError):
        GameConfig(board_size=4)
    with pytest.raises(ValidationError):
        GameConfig(placement_attempts=50)
    with pytest.raises(ValidationError):
        TargetingConfig(hunt_boost=1.0)
    with pytest.raises(ValidationError):
        TargetingConfig(medium_top_fraction=0.0)


def test_load_game_config_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    config_module.load_game_config.cache_clear()
    monkeypatch.setenv("BATTLEBOAT_DIFFICULTY", "easy")
    first = config_module.load_game_config()
    monkeypatch.setenv("BATTLEBOAT_DIFFICULTY", "hard")
    assert config_module.load_game_config() is first
    assert first.difficulty is Difficulty.EASY
    config_module.load_game_config.cache_clear()


def test_engine_targeting_follows_the_placement_rule() -> None:
    assert TargetingConfig(sunk_damping=1.0).sunk_damping == 1.0
    with pytest.raises(ValidationError):
        TargetingConfig(sunk_damping=1.5)

    strict = GameConfig(targeting=TargetingConfig(sunk_damping=0.2))
    assert strict.engine_targeting.sunk_damping == 0.2

    relaxed = GameConfig(allow_adjacent=True, targeting=TargetingConfig(sunk_damping=0.2))
    assert relaxed.engine_targeting.sunk_damping == 1.0
    assert relaxed.targeting.sunk_damping == 0.2
