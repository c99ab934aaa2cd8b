"""Human agent - reads plays from terminal."""

from typing import Optional

from unoengine.agent.protocol import PlayCard
from unoengine.engine import Card, CardColor, GameView


class HumanAgent:
    """Agent that prompts the human for input via terminal."""

    def __init__(self, name: str = "human"):
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def choose_card(self, view: GameView, player_id: str) -> PlayCard:
        print("\n--- Your turn ---")
        print("Top card:", view.top_card)
        if view.current_color is not None:
            print("Color to match:", view.current_color.value)
        print("Cards left:", view.hand_size(player_id))
        print("Examples: red_5, blue_skip, green_reverse, yellow_draw_two, wild, wild_draw_four")

        while True:
            try:
                raw = input("Enter card: ").strip()
                card = Card.parse(raw)
                chosen: Optional[CardColor] = None
                if card.is_wild:
                    chosen = CardColor(input("Choose color (red/blue/green/yellow): ").strip().lower())
                    if chosen == CardColor.WILD:
                        raise ValueError("wild is not a color to match")
                return PlayCard(card=card, chosen_color=chosen)
            except ValueError as e:
                print(f"Invalid: {e}. Try again.")

    def should_declare_low(self, view: GameView, player_id: str) -> bool:
        raw = input("One card left! Declare low hand? [Y/n]: ").strip().lower()
        return raw in ("", "y", "yes")
