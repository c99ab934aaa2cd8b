"""Single game runner."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from unoengine.config import EngineConfig
from unoengine.engine import GameStatus, IllegalPlay, legal_cards
from unoengine.events import NotificationSink
from unoengine.orchestration.randomness import LocalRandomnessProvider
from unoengine.orchestration.registry import GameRegistry

if TYPE_CHECKING:
    from unoengine.agent.protocol import AgentProtocol

logger = logging.getLogger(__name__)


@dataclass
class GameResult:
    """Result of a completed game."""

    winner: Optional[str]
    num_turns: int
    player_ids: tuple[str, ...]
    illegal_attempts: int = 0
    low_declarations: int = 0
    rejected_by_player: dict[str, int] = field(default_factory=dict)
    declarations_by_player: dict[str, int] = field(default_factory=dict)


class GameRunner:
    """Runs a single UNO game to completion against a private registry."""

    def __init__(
        self,
        agents: dict[str, "AgentProtocol"],
        seed: Optional[int] = None,
        config: Optional[EngineConfig] = None,
        sink: Optional[NotificationSink] = None,
        max_attempts: int = 3,
    ):
        self._agents = agents
        self._seed = seed
        self._config = config
        self._sink = sink
        self._max_attempts = max_attempts

    def run(self) -> GameResult:
        """Run the game and return the result."""
        player_ids = list(self._agents.keys())
        provider = LocalRandomnessProvider(random.Random(self._seed))
        registry = GameRegistry(randomness=provider, sink=self._sink, config=self._config)

        game_id = registry.create_game()
        for pid in player_ids:
            registry.join(game_id, pid)
        if registry.get_game(game_id).status == GameStatus.WAITING:
            registry.start(game_id)
        provider.deliver_pending()

        view = registry.get_game(game_id)
        num_turns = 0
        rejected: dict[str, int] = {pid: 0 for pid in player_ids}
        declarations: dict[str, int] = {pid: 0 for pid in player_ids}
        max_turns = len(player_ids) * registry.config.initial_hand_size

        while view.status == GameStatus.IN_PROGRESS and num_turns < max_turns:
            pid = view.current_player
            agent = self._agents[pid]

            for attempt in range(1, self._max_attempts + 1):
                play = agent.choose_card(view, pid)
                try:
                    view = registry.play_card(
                        game_id,
                        pid,
                        play.card.color,
                        play.card.type,
                        play.card.rank,
                        chosen_color=play.chosen_color,
                    )
                    break
                except IllegalPlay as e:
                    rejected[pid] += 1
                    logger.info(
                        f"[{agent.name}] Attempt {attempt} rejected: {e}",
                        extra={"game_id": game_id, "player_id": pid},
                    )
            else:
                # Fallback after retries: first legal card
                card = legal_cards(view.top_card, view.current_color)[0]
                logger.info(
                    f"[{agent.name}] All attempts rejected. Playing {card}.",
                    extra={"game_id": game_id, "player_id": pid},
                )
                view = registry.play_card(game_id, pid, card.color, card.type, card.rank)

            num_turns += 1
            if (
                view.status == GameStatus.IN_PROGRESS
                and view.hand_size(pid) == 1
                and agent.should_declare_low(view, pid)
            ):
                view = registry.declare_low(game_id, pid)
                declarations[pid] += 1

        return GameResult(
            winner=view.winner,
            num_turns=num_turns,
            player_ids=tuple(player_ids),
            illegal_attempts=sum(rejected.values()),
            low_declarations=sum(declarations.values()),
            rejected_by_player=rejected,
            declarations_by_player=declarations,
        )
