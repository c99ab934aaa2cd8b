"""Game registry: owns every game and serializes access to each one."""

from __future__ import annotations

import itertools
import logging
import threading
import uuid
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Set

from unoengine.config import EngineConfig
from unoengine.engine.card import CardColor, CardType
from unoengine.engine.errors import GameNotFound, UnoEngineError
from unoengine.engine.game_state import Game, GameStatus, GameView
from unoengine.engine.rules import is_valid_seed
from unoengine.events import (
    CardPlayed,
    GameCreated,
    GameEnded,
    GameStarted,
    LowHandDeclared,
    NotificationSink,
    NullSink,
    PlayerJoined,
    emit,
)
from unoengine.orchestration.randomness import (
    LocalRandomnessProvider,
    RandomnessProvider,
)

logger = logging.getLogger(__name__)


class GameRegistry:
    """Maps game ids to games.

    Each game has its own lock, so operations on one game run one at a time
    while different games proceed in parallel. The registry lock only guards
    the game table, the id counter and the seed correlation map, and is
    never held while waiting for a game lock.

    Callers get GameView snapshots; the live Game objects never leave the
    registry.
    """

    def __init__(
        self,
        randomness: Optional[RandomnessProvider] = None,
        sink: Optional[NotificationSink] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.config = config or EngineConfig()
        self.randomness = randomness or LocalRandomnessProvider()
        self.randomness.bind(self.fulfill_seed)
        self._sink = sink or NullSink()

        self._ids = itertools.count(1)
        self._games: Dict[int, Game] = {}
        self._game_locks: Dict[int, threading.RLock] = {}
        self._pending_seeds: Dict[str, int] = {}  # request id -> game id
        self._early_seeds: Dict[str, int] = {}  # request id -> seed, game not begun yet
        self._requesting: Set[str] = set()  # ids inside provider.request_seed
        self._lock = threading.Lock()

    @contextmanager
    def _locked(self, game_id: int) -> Iterator[Game]:
        with self._lock:
            game = self._games.get(game_id)
            game_lock = self._game_locks.get(game_id)
        if game is None or game_lock is None:
            raise GameNotFound(f"Game {game_id} not found", game_id=game_id)

        with game_lock:
            try:
                yield game
            except UnoEngineError as e:
                logger.debug(
                    f"Rejected on game {game_id}: {type(e).__name__}: {e}",
                    extra={"game_id": game_id, "player_id": e.actor},
                )
                raise

    def create_game(self) -> int:
        """Create a game in the waiting state and return its id."""
        with self._lock:
            game_id = next(self._ids)
            self._games[game_id] = Game(
                game_id=game_id,
                capacity=self.config.max_players,
                initial_hand_size=self.config.initial_hand_size,
                min_players=self.config.min_players,
            )
            self._game_locks[game_id] = threading.RLock()
        logger.info(f"Game {game_id} created", extra={"game_id": game_id})
        emit(self._sink, GameCreated(game_id=game_id))
        return game_id

    def get_game(self, game_id: int) -> GameView:
        with self._locked(game_id) as game:
            return GameView.from_game(game)

    def list_games(self) -> List[GameView]:
        with self._lock:
            ids = sorted(self._games)
        views = []
        for game_id in ids:
            try:
                views.append(self.get_game(game_id))
            except GameNotFound:
                # Purged after the id list was taken
                continue
        return views

    def join(self, game_id: int, player: str) -> GameView:
        """Seat player. A game that reaches capacity starts automatically.

        The seed for an automatic start is requested before the player is
        seated, so a failing provider leaves the roster untouched.
        """
        with self._locked(game_id) as game:
            game.ensure_can_add(player)
            request_id = None
            if len(game.players) + 1 >= game.capacity:
                request_id = self._request_seed(game.game_id)
            game.add_player(player)
            logger.info(
                f"{player} joined game {game_id} ({len(game.players)}/{game.capacity})",
                extra={"game_id": game_id, "player_id": player},
            )
            emit(self._sink, PlayerJoined(game_id=game_id, player=player))
            if request_id is not None:
                self._begin_locked(game, request_id)
            return GameView.from_game(game)

    def start(self, game_id: int) -> GameView:
        """Start a waiting game and request its setup seed."""
        with self._locked(game_id) as game:
            game.ensure_can_begin()
            request_id = self._request_seed(game.game_id)
            self._begin_locked(game, request_id)
            return GameView.from_game(game)

    def _request_seed(self, game_id: int) -> str:
        """Register a request id for game_id, then ask the provider for a seed.

        The id is stored before the provider sees it, so a delivery arriving
        from another thread always finds its game. That thread then waits on
        the game lock until the caller has finished starting the game.
        """
        request_id = uuid.uuid4().hex
        with self._lock:
            self._pending_seeds[request_id] = game_id
            self._requesting.add(request_id)
        try:
            self.randomness.request_seed(request_id)
        except Exception:
            with self._lock:
                self._pending_seeds.pop(request_id, None)
                self._early_seeds.pop(request_id, None)
            logger.exception(
                f"Seed request for game {game_id} failed",
                extra={"game_id": game_id},
            )
            raise
        finally:
            with self._lock:
                self._requesting.discard(request_id)
        return request_id

    def _begin_locked(self, game: Game, request_id: str) -> None:
        game.begin()
        logger.info(
            f"Game {game.game_id} started, awaiting seed (request={request_id})",
            extra={"game_id": game.game_id},
        )
        emit(self._sink, GameStarted(game_id=game.game_id))
        with self._lock:
            early_seed = self._early_seeds.pop(request_id, None)
        if early_seed is not None:
            self._apply_seed_locked(game, early_seed)

    def fulfill_seed(self, request_id: str, seed: int) -> None:
        """Seed delivery callback for the randomness provider.

        The request id is consumed on the first valid delivery; unknown or
        repeated ids and malformed seeds are ignored. A seed delivered from
        inside request_seed, before the game has begun, is held and applied
        as soon as the game starts.
        """
        if not is_valid_seed(seed):
            logger.warning(f"Ignoring invalid seed {seed!r} for request {request_id}")
            return
        with self._lock:
            game_id = self._pending_seeds.pop(request_id, None)
        if game_id is None:
            logger.warning(f"Ignoring seed for unknown or used request {request_id}")
            return
        try:
            with self._locked(game_id) as game:
                if game.status == GameStatus.WAITING:
                    with self._lock:
                        if request_id in self._requesting:
                            self._early_seeds[request_id] = seed
                            return
                    logger.warning(
                        f"Ignoring seed for failed request {request_id}",
                        extra={"game_id": game_id},
                    )
                    return
                self._apply_seed_locked(game, seed)
        except GameNotFound:
            logger.warning(
                f"Ignoring seed for purged game {game_id}",
                extra={"game_id": game_id},
            )

    def apply_random_seed(self, game_id: int, seed: int) -> bool:
        """Initialize game_id from seed. Returns False if the seed was not applied."""
        with self._locked(game_id) as game:
            if not is_valid_seed(seed):
                logger.warning(
                    f"Ignoring invalid seed {seed!r} for game {game_id}",
                    extra={"game_id": game_id},
                )
                return False
            return self._apply_seed_locked(game, seed)

    def _apply_seed_locked(self, game: Game, seed: int) -> bool:
        game_id = game.game_id
        if not game.apply_seed(seed):
            logger.warning(
                f"Ignoring seed for game {game_id} in state {game.status.value}",
                extra={"game_id": game_id},
            )
            return False
        with self._lock:
            for request_id in [r for r, g in self._pending_seeds.items() if g == game_id]:
                del self._pending_seeds[request_id]
        logger.info(
            f"Game {game_id} set up: {game.top_card} on top, "
            f"{game.current_player.identity} to play",
            extra={"game_id": game_id},
        )
        return True

    def play_card(
        self,
        game_id: int,
        actor: str,
        color: CardColor,
        card_type: CardType,
        rank: int = 0,
        chosen_color: Optional[CardColor] = None,
    ) -> GameView:
        """Play a card for actor, who must be the current player."""
        with self._locked(game_id) as game:
            card = game.play(actor, color, card_type, rank, chosen_color=chosen_color)
            emit(
                self._sink,
                CardPlayed(
                    game_id=game_id,
                    player=actor,
                    color=card.color,
                    type=card.type,
                    rank=card.rank,
                    chosen_color=chosen_color,
                ),
            )
            if game.status == GameStatus.ENDED:
                logger.info(
                    f"Game {game_id} won by {actor}",
                    extra={"game_id": game_id, "player_id": actor},
                )
                emit(self._sink, GameEnded(game_id=game_id, winner=actor))
            return GameView.from_game(game)

    def declare_low(self, game_id: int, actor: str) -> GameView:
        with self._locked(game_id) as game:
            game.declare_low(actor)
            logger.info(
                f"{actor} declared a single card in game {game_id}",
                extra={"game_id": game_id, "player_id": actor},
            )
            emit(self._sink, LowHandDeclared(game_id=game_id, player=actor))
            return GameView.from_game(game)

    def purge_ended(self) -> List[int]:
        """Drop finished games. Returns the removed ids."""
        with self._lock:
            ended = [
                game_id
                for game_id, game in self._games.items()
                if game.status == GameStatus.ENDED
            ]
            for game_id in ended:
                del self._games[game_id]
                del self._game_locks[game_id]
            for request_id in [r for r, g in self._pending_seeds.items() if g in ended]:
                del self._pending_seeds[request_id]
        if ended:
            logger.info(f"Purged {len(ended)} ended games")
        return ended

    def __len__(self) -> int:
        with self._lock:
            return len(self._games)

    def __contains__(self, game_id: object) -> bool:
        with self._lock:
            return game_id in self._games
