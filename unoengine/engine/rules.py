"""UNO rules: play legality, turn order, special effects and seeded setup."""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from unoengine.engine.card import (
    ACTION_TYPES,
    PLAYABLE_COLORS,
    WILD_TYPES,
    Card,
    CardColor,
    CardType,
)


class Direction(str, Enum):
    """Seating traversal order."""

    FORWARD = "forward"
    REVERSE = "reverse"

    def reversed(self) -> "Direction":
        if self is Direction.FORWARD:
            return Direction.REVERSE
        return Direction.FORWARD


@dataclass(frozen=True)
class SetupResult:
    """Starting turn, color and top card derived from a random seed."""

    starting_index: int
    starting_color: CardColor
    top_card: Card


def is_legal_play(
    top_card: Card,
    color: CardColor,
    card_type: CardType,
    rank: int = 0,
    current_color: Optional[CardColor] = None,
) -> bool:
    """Check if a proposed card can be played on top_card.

    Wild-colored cards can always be played. Otherwise the card must match
    the top card by color, by action type, or by number. current_color is
    the color declared for a wild top card; when omitted the top card's own
    color is matched.
    """
    if color == CardColor.WILD:
        return True
    # Match by color
    if color == (current_color or top_card.color):
        return True
    # Action cards match by type alone
    if card_type == top_card.type and card_type != CardType.NUMBER:
        return True
    if card_type == CardType.NUMBER and top_card.type == CardType.NUMBER:
        return rank == top_card.rank
    return False


def legal_cards(
    top_card: Card,
    current_color: Optional[CardColor] = None,
) -> List[Card]:
    """Return every distinct card that may legally be played on top_card."""
    candidates: List[Card] = []
    for color in PLAYABLE_COLORS:
        for rank in range(10):
            candidates.append(Card(color=color, type=CardType.NUMBER, rank=rank))
        for card_type in ACTION_TYPES:
            candidates.append(Card(color=color, type=card_type))
    for card_type in WILD_TYPES:
        candidates.append(Card(color=CardColor.WILD, type=card_type))

    return [
        c for c in candidates
        if is_legal_play(top_card, c.color, c.type, c.rank, current_color)
    ]


def next_index(current_index: int, player_count: int, direction: Direction) -> int:
    """Seat index of the player after current_index in the given direction."""
    if player_count < 1:
        raise ValueError("player_count must be at least 1")
    if direction is Direction.FORWARD:
        return (current_index + 1) % player_count
    return (current_index + player_count - 1) % player_count


def apply_special_effect(
    card_type: CardType,
    current_index: int,
    player_count: int,
    direction: Direction,
) -> tuple[int, Direction]:
    """Apply a played card's effect to the turn pointer and direction.

    Skip and Draw Two consume one extra turn here, so the regular advance
    that follows lands one seat further. Reverse flips direction. Draw
    penalties are not handled at this layer.
    """
    if card_type in (CardType.SKIP, CardType.DRAW_TWO):
        return next_index(current_index, player_count, direction), direction
    if card_type == CardType.REVERSE:
        return current_index, direction.reversed()
    return current_index, direction


def is_valid_seed(seed: object) -> bool:
    """True for a non-negative int seed. Bools are not seeds."""
    return isinstance(seed, int) and not isinstance(seed, bool) and seed >= 0


def derive_setup(seed: int, player_count: int) -> SetupResult:
    """Derive the starting player, color and top card from a seed."""
    if player_count < 1:
        raise ValueError("player_count must be at least 1")
    if not is_valid_seed(seed):
        raise ValueError(f"seed must be a non-negative int, got {seed!r}")
    color = PLAYABLE_COLORS[seed % len(PLAYABLE_COLORS)]
    return SetupResult(
        starting_index=seed % player_count,
        starting_color=color,
        top_card=Card(color=color, type=CardType.NUMBER, rank=(seed // 100) % 10),
    )
