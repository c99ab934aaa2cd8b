"""Engine exceptions.

Every rejected operation raises one of these before touching game state.
The four families mirror how a caller is expected to react: the game does
not exist, the game is in the wrong phase, the caller may not act, or the
requested move breaks a rule.
"""

from typing import Optional


class UnoEngineError(Exception):
    """Base class for all engine errors."""

    def __init__(
        self,
        message: str,
        game_id: Optional[int] = None,
        actor: Optional[str] = None,
    ):
        super().__init__(message)
        self.game_id = game_id
        self.actor = actor


class NotFound(UnoEngineError):
    pass


class InvalidState(UnoEngineError):
    pass


class AuthorizationError(UnoEngineError):
    pass


class RuleViolation(UnoEngineError):
    pass


class GameNotFound(NotFound):
    pass


class GameNotWaiting(InvalidState):
    pass


class GameFull(InvalidState):
    pass


class GameNotInProgress(InvalidState):
    pass


class SetupPending(InvalidState):
    """The game has started but its random seed has not arrived yet."""


class NotEnoughPlayers(InvalidState):
    pass


class PlayerAlreadyJoined(InvalidState):
    pass


class NotYourTurn(AuthorizationError):
    pass


class PlayerNotFound(AuthorizationError):
    pass


class IllegalPlay(RuleViolation):
    pass


class NotEligible(RuleViolation):
    """Low-hand declaration by a player who does not hold exactly one card."""
