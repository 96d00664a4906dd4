"""Game and targeting configuration."""

from __future__ import annotations

import os
from enum import Enum
from functools import lru_cache
from typing import Any, Dict

from pydantic import BaseModel, Field, model_validator

from battleboat.engine.ship import DEFAULT_BOARD_SIZE, DEFAULT_FLEET
from battleboat.telemetry.config import env_flag

MIN_BOARD_SIZE = max(kind.size for kind in DEFAULT_FLEET)


class Difficulty(Enum):
    """How strictly the computer follows its probability map while searching."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class TargetingConfig(BaseModel):
    """Tuning knobs of the targeting engine's probability map."""

    hunt_boost: float = Field(default=2.0, gt=1.0)
    sunk_damping: float = Field(default=0.1, ge=0.0, le=1.0)
    parity_bonus: float = Field(default=1.1, ge=1.0)
    early_parity_bonus: float = Field(default=1.25, ge=1.0)
    early_game_shots: int = Field(default=20, ge=0)
    easy_sample_size: int = Field(default=10, ge=1)
    medium_top_fraction: float = Field(default=0.3, gt=0.0, le=1.0)
    run_length: int = Field(default=4, ge=1)

    def for_placement(self, allow_adjacent: bool) -> "TargetingConfig":
        """Drop the sunk-ship damping when ships are allowed to touch."""

        if not allow_adjacent:
            return self
        return self.model_copy(update={"sunk_damping": 1.0})


class GameConfig(BaseModel):
    """Settings for one game session."""

    board_size: int = DEFAULT_BOARD_SIZE
    difficulty: Difficulty = Difficulty.MEDIUM
    allow_adjacent: bool = False
    placement_attempts: int = Field(default=100, ge=100)
    max_placement_restarts: int = Field(default=1000, ge=1)
    seed: int | None = None
    targeting: TargetingConfig = Field(default_factory=TargetingConfig)

    @model_validator(mode="after")
    def _board_fits_fleet(self) -> "GameConfig":
        if self.board_size < MIN_BOARD_SIZE:
            raise ValueError(f"board_size must be at least {MIN_BOARD_SIZE} to hold every ship.")
        return self

    @property
    def engine_targeting(self) -> TargetingConfig:
        """Targeting settings that agree with this game's placement rule."""

        return self.targeting.for_placement(self.allow_adjacent)

    @classmethod
    def from_env(cls, **overrides: Any) -> "GameConfig":
        """Construct config from `BATTLEBOAT_*` env vars; ``overrides`` win."""

        data: Dict[str, Any] = {}

        board_size = os.getenv("BATTLEBOAT_BOARD_SIZE")
        if board_size:
            data["board_size"] = int(board_size)

        difficulty = os.getenv("BATTLEBOAT_DIFFICULTY")
        if difficulty:
            data["difficulty"] = Difficulty(difficulty.strip().lower())

        allow_adjacent = env_flag("BATTLEBOAT_ALLOW_ADJACENT")
        if allow_adjacent is not None:
            data["allow_adjacent"] = allow_adjacent

        seed = os.getenv("BATTLEBOAT_SEED")
        if seed:
            data["seed"] = int(seed)

        data.update(overrides)
        return cls(**data)


@lru_cache(maxsize=1)
def load_game_config() -> GameConfig:
    """Load and cache the game config from the environment."""

    return GameConfig.from_env()
