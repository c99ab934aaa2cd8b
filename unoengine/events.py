"""Notifications emitted by the registry.

Events are fire-and-forget: a sink that raises is logged and otherwise
ignored, because the operation that produced the event has already been
committed.
"""

import logging
import threading
from dataclasses import asdict, dataclass
from typing import List, Optional, Protocol, Union

from unoengine.engine.card import CardColor, CardType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameCreated:
    game_id: int


@dataclass(frozen=True)
class PlayerJoined:
    game_id: int
    player: str


@dataclass(frozen=True)
class GameStarted:
    game_id: int


@dataclass(frozen=True)
class CardPlayed:
    game_id: int
    player: str
    color: CardColor
    type: CardType
    rank: int
    chosen_color: Optional[CardColor] = None


@dataclass(frozen=True)
class LowHandDeclared:
    game_id: int
    player: str


@dataclass(frozen=True)
class GameEnded:
    game_id: int
    winner: str


Event = Union[
    GameCreated,
    PlayerJoined,
    GameStarted,
    CardPlayed,
    LowHandDeclared,
    GameEnded,
]


class NotificationSink(Protocol):
    """Receiver for engine events."""

    def notify(self, event: Event) -> None:
        ...


class NullSink:
    """Discards every event."""

    def notify(self, event: Event) -> None:
        pass


class RecordingSink:
    """Keeps events in memory, in emission order."""

    def __init__(self) -> None:
        self._events: List[Event] = []
        self._lock = threading.Lock()

    def notify(self, event: Event) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> List[Event]:
        with self._lock:
            return list(self._events)

    def of_type(self, event_type: type) -> List[Event]:
        return [e for e in self.events if isinstance(e, event_type)]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


class LoggingSink:
    """Writes one log line per event."""

    def __init__(self, level: int = logging.INFO):
        self._level = level

    def notify(self, event: Event) -> None:
        fields = asdict(event)
        logger.log(
            self._level,
            f"{type(event).__name__} {fields}",
            extra={
                "game_id": fields.get("game_id"),
                "player_id": fields.get("player") or fields.get("winner"),
            },
        )


def emit(sink: NotificationSink, event: Event) -> None:
    """Deliver event to sink without letting a sink failure escape."""
    try:
        sink.notify(event)
    except Exception:
        logger.exception(f"Notification sink failed on {type(event).__name__}")
