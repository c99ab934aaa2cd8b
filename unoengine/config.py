"""
Engine configuration.

Values are read from environment variables, falling back to defaults.
The CLI loads a .env file first, so variables set there apply as well.

Usage:
    from unoengine.config import EngineConfig
    config = EngineConfig.from_env()
    print(config.max_players)
"""

import os
from dataclasses import dataclass

from unoengine.engine.game_state import INITIAL_HAND_SIZE, MAX_PLAYERS, MIN_PLAYERS


def get_env(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.environ.get(key, default)


def get_env_int(key: str, default: int = 0) -> int:
    """Get integer environment variable."""
    raw = os.environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class EngineConfig:
    """Game rules and logging settings."""

    max_players: int = MAX_PLAYERS
    min_players: int = MIN_PLAYERS
    initial_hand_size: int = INITIAL_HAND_SIZE
    log_level: str = "INFO"
    log_format: str = "development"  # "development" or "json"

    def __post_init__(self) -> None:
        if self.min_players < 2:
            raise ValueError("min_players must be at least 2")
        if self.max_players < self.min_players:
            raise ValueError(
                f"max_players ({self.max_players}) must be at least "
                f"min_players ({self.min_players})"
            )
        if self.initial_hand_size < 1:
            raise ValueError("initial_hand_size must be positive")
        if self.log_format not in ("development", "json"):
            raise ValueError(f"Unknown log format: {self.log_format}")

    @classmethod
    def from_env(cls) -> "EngineConfig":
        return cls(
            max_players=get_env_int("UNO_MAX_PLAYERS", MAX_PLAYERS),
            min_players=get_env_int("UNO_MIN_PLAYERS", MIN_PLAYERS),
            initial_hand_size=get_env_int("UNO_INITIAL_HAND_SIZE", INITIAL_HAND_SIZE),
            log_level=get_env("UNO_LOG_LEVEL", "INFO").upper(),
            log_format=get_env("UNO_LOG_FORMAT", "development").lower(),
        )
