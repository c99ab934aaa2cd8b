"""Random seed providers for game setup.

The registry picks a request id, records which game it belongs to, and
passes it to ``request_seed``. The provider delivers the seed later, or
immediately from another thread, through the callback bound with
``bind``. A provider never needs to know about games.
"""

import logging
import random
import secrets
import threading
from collections import deque
from typing import Callable, Optional, Protocol, Union

logger = logging.getLogger(__name__)

SeedCallback = Callable[[str, int], None]


class RandomnessProvider(Protocol):
    """Source of unbiased seeds, delivered asynchronously."""

    def bind(self, callback: SeedCallback) -> None:
        """Register the function that receives (request_id, seed) deliveries."""
        ...

    def request_seed(self, request_id: str) -> None:
        """Request a seed to be delivered later under request_id."""
        ...


class LocalRandomnessProvider:
    """In-process provider that queues requests until deliver_pending is called.

    Seeds come from ``secrets.randbits(256)`` by default. Pass a
    ``random.Random`` or a zero-argument callable to make deliveries
    reproducible.
    """

    def __init__(
        self,
        source: Union[random.Random, Callable[[], int], None] = None,
        bits: int = 256,
    ):
        if isinstance(source, random.Random):
            rng = source
            self._next_seed: Callable[[], int] = lambda: rng.getrandbits(bits)
        elif source is not None:
            self._next_seed = source
        else:
            self._next_seed = lambda: secrets.randbits(bits)
        self._callback: Optional[SeedCallback] = None
        self._pending: deque[str] = deque()
        self._lock = threading.Lock()

    def bind(self, callback: SeedCallback) -> None:
        self._callback = callback

    def request_seed(self, request_id: str) -> None:
        with self._lock:
            self._pending.append(request_id)
        logger.debug(f"Seed requested, request={request_id}")

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def deliver_pending(self) -> int:
        """Deliver a seed for every queued request. Returns the number delivered."""
        if self._callback is None:
            raise RuntimeError("Provider is not bound to a seed callback")

        delivered = 0
        while True:
            with self._lock:
                if not self._pending:
                    break
                request_id = self._pending.popleft()
            self._callback(request_id, self._next_seed())
            delivered += 1
        return delivered
