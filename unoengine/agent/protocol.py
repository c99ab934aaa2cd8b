"""Agent protocol - interface that simulated and human players implement."""

from dataclasses import dataclass
from typing import Optional, Protocol

from unoengine.engine import Card, CardColor, GameView


@dataclass(frozen=True)
class PlayCard:
    """A proposed play. For wilds, chosen_color sets the color to match next."""

    card: Card
    chosen_color: Optional[CardColor] = None


class AgentProtocol(Protocol):
    """Interface for UNO-playing agents."""

    @property
    def name(self) -> str:
        """Display name for the agent."""
        ...

    def choose_card(self, view: GameView, player_id: str) -> PlayCard:
        """Choose a card to play on the current top card.

        Args:
            view: Snapshot of the game; view.top_card and view.current_color
                decide what is legal.
            player_id: This agent's player ID.

        Returns:
            The proposed play. The engine rejects illegal proposals.
        """
        ...

    def should_declare_low(self, view: GameView, player_id: str) -> bool:
        """Whether to declare holding a single card. Asked only when that is true."""
        ...
