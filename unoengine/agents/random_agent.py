"""Random agent - plays a uniformly chosen legal card."""

import random
from typing import Optional

from unoengine.agent.protocol import PlayCard
from unoengine.engine import PLAYABLE_COLORS, GameView, legal_cards


class RandomAgent:
    """Agent that picks among the legal cards at random."""

    def __init__(
        self,
        name: str = "random",
        seed: Optional[int] = None,
        declare_probability: float = 1.0,
    ):
        self._name = name
        self._rng = random.Random(seed)
        self._declare_probability = declare_probability

    @property
    def name(self) -> str:
        return self._name

    def choose_card(self, view: GameView, player_id: str) -> PlayCard:
        if view.top_card is None:
            raise ValueError("Game has no top card yet")
        card = self._rng.choice(legal_cards(view.top_card, view.current_color))
        if card.is_wild:
            return PlayCard(card=card, chosen_color=self._rng.choice(PLAYABLE_COLORS))
        return PlayCard(card=card)

    def should_declare_low(self, view: GameView, player_id: str) -> bool:
        return self._rng.random() < self._declare_probability
