"""Game engine for UNO."""

from unoengine.engine.card import PLAYABLE_COLORS, Card, CardColor, CardType
from unoengine.engine.errors import (
    AuthorizationError,
    GameFull,
    GameNotFound,
    GameNotInProgress,
    GameNotWaiting,
    IllegalPlay,
    InvalidState,
    NotEligible,
    NotEnoughPlayers,
    NotFound,
    NotYourTurn,
    PlayerAlreadyJoined,
    PlayerNotFound,
    RuleViolation,
    SetupPending,
    UnoEngineError,
)
from unoengine.engine.game_state import Game, GameStatus, GameView, Player
from unoengine.engine.rules import (
    Direction,
    SetupResult,
    apply_special_effect,
    derive_setup,
    is_legal_play,
    is_valid_seed,
    legal_cards,
    next_index,
)

__all__ = [
    "Card",
    "CardColor",
    "CardType",
    "PLAYABLE_COLORS",
    "Game",
    "GameStatus",
    "GameView",
    "Player",
    "Direction",
    "SetupResult",
    "apply_special_effect",
    "derive_setup",
    "is_legal_play",
    "is_valid_seed",
    "legal_cards",
    "next_index",
    "UnoEngineError",
    "NotFound",
    "InvalidState",
    "AuthorizationError",
    "RuleViolation",
    "GameNotFound",
    "GameNotWaiting",
    "GameFull",
    "GameNotInProgress",
    "SetupPending",
    "NotEnoughPlayers",
    "PlayerAlreadyJoined",
    "NotYourTurn",
    "PlayerNotFound",
    "IllegalPlay",
    "NotEligible",
]
