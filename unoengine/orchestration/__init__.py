"""Game orchestration."""

from unoengine.orchestration.game_runner import GameResult, GameRunner
from unoengine.orchestration.randomness import LocalRandomnessProvider, RandomnessProvider
from unoengine.orchestration.registry import GameRegistry
from unoengine.orchestration.tournament import TournamentResult, run_tournament

__all__ = [
    "GameRegistry",
    "GameResult",
    "GameRunner",
    "LocalRandomnessProvider",
    "RandomnessProvider",
    "TournamentResult",
    "run_tournament",
]
