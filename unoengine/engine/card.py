"""Card, CardColor and CardType for UNO."""

from dataclasses import dataclass
from enum import Enum


class CardColor(str, Enum):
    """Card colors. WILD is only carried by wild cards."""

    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    WILD = "wild"


# Order matters: seed derivation indexes into this tuple.
PLAYABLE_COLORS = (
    CardColor.RED,
    CardColor.BLUE,
    CardColor.GREEN,
    CardColor.YELLOW,
)


class CardType(str, Enum):
    """Card types."""

    NUMBER = "number"
    SKIP = "skip"
    REVERSE = "reverse"
    DRAW_TWO = "draw_two"
    WILD = "wild"
    WILD_DRAW_FOUR = "wild_draw_four"


WILD_TYPES = (CardType.WILD, CardType.WILD_DRAW_FOUR)
ACTION_TYPES = (CardType.SKIP, CardType.REVERSE, CardType.DRAW_TWO)


@dataclass(frozen=True)
class Card:
    """An UNO card.

    For number cards: color is one of the four playable colors, rank is 0-9.
    For action cards: color is playable, type is skip/reverse/draw_two.
    For wild cards: color is CardColor.WILD, type is wild or wild_draw_four.
    Rank is only meaningful for number cards.
    """

    color: CardColor
    type: CardType
    rank: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.rank, int) or isinstance(self.rank, bool):
            raise ValueError(f"Card rank must be an int: {self.rank!r}")
        if not 0 <= self.rank <= 9:
            raise ValueError(f"Invalid card rank: {self.rank}")
        if self.type in WILD_TYPES and self.color is not CardColor.WILD:
            raise ValueError("Wild cards must have color=wild")
        if self.type not in WILD_TYPES and self.color is CardColor.WILD:
            raise ValueError("Non-wild cards must have a playable color")

    @property
    def is_wild(self) -> bool:
        return self.color is CardColor.WILD

    def __str__(self) -> str:
        if self.is_wild:
            return self.type.value
        if self.type is CardType.NUMBER:
            return f"{self.color.value}_{self.rank}"
        return f"{self.color.value}_{self.type.value}"

    @classmethod
    def parse(cls, text: str) -> "Card":
        """Parse the text form produced by ``str(card)``, e.g. ``red_5`` or ``wild``."""
        raw = text.strip().lower().replace("-", "_").replace(" ", "_")
        if raw in (CardType.WILD.value, CardType.WILD_DRAW_FOUR.value):
            return cls(color=CardColor.WILD, type=CardType(raw))

        color_part, sep, value = raw.partition("_")
        if not sep or not value:
            raise ValueError(f"Cannot parse card: {text!r}")
        try:
            color = CardColor(color_part)
        except ValueError:
            raise ValueError(f"Unknown card color in {text!r}") from None

        if value.isdigit():
            return cls(color=color, type=CardType.NUMBER, rank=int(value))
        try:
            card_type = CardType(value)
        except ValueError:
            raise ValueError(f"Unknown card value in {text!r}") from None
        return cls(color=color, type=card_type)
