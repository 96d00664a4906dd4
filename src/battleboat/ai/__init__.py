"""Computer opponent for Battleboat."""

from battleboat.config import Difficulty

from .targeting import EngineMode, EngineStats, TargetingEngine, build_probability_map

__all__ = [
    "Difficulty",
    "EngineMode",
    "EngineStats",
    "TargetingEngine",
    "build_probability_map",
]
