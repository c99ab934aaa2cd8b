"""Game state machine for UNO."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from unoengine.engine.card import Card, CardColor, CardType
from unoengine.engine.errors import (
    GameFull,
    GameNotInProgress,
    GameNotWaiting,
    IllegalPlay,
    NotEligible,
    NotEnoughPlayers,
    NotYourTurn,
    PlayerAlreadyJoined,
    PlayerNotFound,
    SetupPending,
)
from unoengine.engine.rules import (
    Direction,
    apply_special_effect,
    derive_setup,
    is_legal_play,
    next_index,
)


INITIAL_HAND_SIZE = 7
MIN_PLAYERS = 2
MAX_PLAYERS = 10


class GameStatus(str, Enum):
    """Lifecycle phase. Only ever moves forward."""

    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    ENDED = "ended"


@dataclass
class Player:
    """A seated player. Only the number of cards held is tracked."""

    identity: str
    hand_size: int = INITIAL_HAND_SIZE
    has_declared_low: bool = False


@dataclass
class Game:
    """Mutable state of one game.

    Methods validate everything first and mutate last, so a raised
    UnoEngineError leaves the game untouched. Callers are responsible for
    serializing access; see GameRegistry.
    """

    game_id: int
    capacity: int = MAX_PLAYERS
    initial_hand_size: int = INITIAL_HAND_SIZE
    min_players: int = MIN_PLAYERS
    players: List[Player] = field(default_factory=list)
    status: GameStatus = GameStatus.WAITING
    current_player_index: Optional[int] = None
    direction: Direction = Direction.FORWARD
    current_color: Optional[CardColor] = None
    top_card: Optional[Card] = None
    winner: Optional[str] = None
    history: List[str] = field(default_factory=list)  # Log of events

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.capacity

    @property
    def setup_pending(self) -> bool:
        """True between start and seed delivery."""
        return self.status == GameStatus.IN_PROGRESS and self.top_card is None

    @property
    def current_player(self) -> Optional[Player]:
        if self.current_player_index is None:
            return None
        return self.players[self.current_player_index]

    def find_player(self, identity: str) -> Optional[Player]:
        for player in self.players:
            if player.identity == identity:
                return player
        return None

    def ensure_can_add(self, identity: str) -> None:
        """Raise unless add_player(identity) would succeed."""
        if self.status != GameStatus.WAITING:
            raise GameNotWaiting(
                f"Game {self.game_id} is not accepting players",
                game_id=self.game_id,
                actor=identity,
            )
        if self.is_full:
            raise GameFull(
                f"Game {self.game_id} is full ({self.capacity} players)",
                game_id=self.game_id,
                actor=identity,
            )
        if self.find_player(identity) is not None:
            raise PlayerAlreadyJoined(
                f"{identity} already joined game {self.game_id}",
                game_id=self.game_id,
                actor=identity,
            )

    def add_player(self, identity: str) -> Player:
        """Seat a new player. Returns the created Player."""
        self.ensure_can_add(identity)
        player = Player(identity=identity, hand_size=self.initial_hand_size)
        self.players.append(player)
        self.history.append(f"{identity} joined")
        return player

    def ensure_can_begin(self) -> None:
        """Raise unless begin() would succeed."""
        if self.status != GameStatus.WAITING:
            raise GameNotWaiting(
                f"Game {self.game_id} has already started",
                game_id=self.game_id,
            )
        if len(self.players) < self.min_players:
            raise NotEnoughPlayers(
                f"Game {self.game_id} needs at least {self.min_players} players, "
                f"has {len(self.players)}",
                game_id=self.game_id,
            )

    def begin(self) -> None:
        """Move to IN_PROGRESS. Turn, color and top card stay unset until apply_seed."""
        self.ensure_can_begin()
        self.status = GameStatus.IN_PROGRESS
        self.history.append(f"game started with {len(self.players)} players")

    def apply_seed(self, seed: int) -> bool:
        """Initialize turn, color and top card from seed.

        Returns False (and changes nothing) when the game is not waiting for a
        seed, so duplicate or late deliveries are harmless.
        """
        if not self.setup_pending:
            return False

        setup = derive_setup(seed, len(self.players))
        self.current_player_index = setup.starting_index
        self.current_color = setup.starting_color
        self.top_card = setup.top_card
        self.history.append(
            f"setup: {setup.top_card} on top, "
            f"{self.players[setup.starting_index].identity} starts"
        )
        return True

    def play(
        self,
        actor: str,
        color: CardColor,
        card_type: CardType,
        rank: int = 0,
        chosen_color: Optional[CardColor] = None,
    ) -> Card:
        """Play a card for actor and advance the game. Returns the played card."""
        if self.status != GameStatus.IN_PROGRESS:
            raise GameNotInProgress(
                f"Game {self.game_id} is not in progress",
                game_id=self.game_id,
                actor=actor,
            )
        if self.setup_pending:
            raise SetupPending(
                f"Game {self.game_id} is waiting for its random seed",
                game_id=self.game_id,
                actor=actor,
            )
        player = self.players[self.current_player_index]
        if player.identity != actor:
            raise NotYourTurn(
                f"It is {player.identity}'s turn, not {actor}'s",
                game_id=self.game_id,
                actor=actor,
            )

        try:
            card = Card(color=CardColor(color), type=CardType(card_type), rank=rank)
            if chosen_color is not None:
                chosen_color = CardColor(chosen_color)
        except ValueError as e:
            raise IllegalPlay(str(e), game_id=self.game_id, actor=actor) from e
        if chosen_color is not None:
            if not card.is_wild:
                raise IllegalPlay(
                    "Only wild cards take a chosen color",
                    game_id=self.game_id,
                    actor=actor,
                )
            if chosen_color == CardColor.WILD:
                raise IllegalPlay(
                    "Chosen color must be red, blue, green or yellow",
                    game_id=self.game_id,
                    actor=actor,
                )
        if not is_legal_play(
            self.top_card,
            card.color,
            card.type,
            card.rank,
            current_color=self.current_color,
        ):
            raise IllegalPlay(
                f"{card} cannot be played on {self.top_card}",
                game_id=self.game_id,
                actor=actor,
            )

        self.top_card = card
        self.current_color = chosen_color or card.color
        player.hand_size -= 1

        action_desc = f"{actor} played {card}"
        if chosen_color is not None:
            action_desc += f" (chose {chosen_color.value})"
        self.history.append(action_desc)

        count = len(self.players)
        index, self.direction = apply_special_effect(
            card.type, self.current_player_index, count, self.direction
        )

        # Check win
        if player.hand_size == 0:
            self.status = GameStatus.ENDED
            self.winner = actor
            self.history.append(f"{actor} WON!")
            return card

        self.current_player_index = next_index(index, count, self.direction)
        return card

    def declare_low(self, actor: str) -> Player:
        """Record that actor declared holding a single card."""
        if self.status != GameStatus.IN_PROGRESS:
            raise GameNotInProgress(
                f"Game {self.game_id} is not in progress",
                game_id=self.game_id,
                actor=actor,
            )
        player = self.find_player(actor)
        if player is None:
            raise PlayerNotFound(
                f"{actor} is not seated in game {self.game_id}",
                game_id=self.game_id,
                actor=actor,
            )
        if player.hand_size != 1:
            raise NotEligible(
                f"{actor} holds {player.hand_size} cards, not 1",
                game_id=self.game_id,
                actor=actor,
            )

        player.has_declared_low = True
        self.history.append(f"{actor} declared low hand")
        return player


@dataclass(frozen=True)
class PlayerSnapshot:
    identity: str
    hand_size: int
    has_declared_low: bool


@dataclass(frozen=True)
class GameView:
    """Read-only snapshot of a game handed out to callers."""

    game_id: int
    status: GameStatus
    capacity: int
    players: tuple[PlayerSnapshot, ...]
    current_player_index: Optional[int]
    direction: Direction
    current_color: Optional[CardColor]
    top_card: Optional[Card]
    winner: Optional[str]
    setup_pending: bool
    history: tuple[str, ...]  # Recent game events

    @property
    def current_player(self) -> Optional[str]:
        if self.current_player_index is None:
            return None
        return self.players[self.current_player_index].identity

    def hand_size(self, identity: str) -> Optional[int]:
        for p in self.players:
            if p.identity == identity:
                return p.hand_size
        return None

    @classmethod
    def from_game(cls, game: Game, history_limit: int = 10) -> "GameView":
        """Create a snapshot of game, keeping the last history_limit events."""
        return cls(
            game_id=game.game_id,
            status=game.status,
            capacity=game.capacity,
            players=tuple(
                PlayerSnapshot(
                    identity=p.identity,
                    hand_size=p.hand_size,
                    has_declared_low=p.has_declared_low,
                )
                for p in game.players
            ),
            current_player_index=game.current_player_index,
            direction=game.direction,
            current_color=game.current_color,
            top_card=game.top_card,
            winner=game.winner,
            setup_pending=game.setup_pending,
            history=tuple(game.history[-history_limit:]) if history_limit else (),
        )
