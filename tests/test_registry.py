"""Tests for GameRegistry: lifecycle, seed routing, events and locking."""

import dataclasses
import threading

import pytest
from unoengine.config import EngineConfig
from unoengine.engine import (
    Card,
    CardColor,
    CardType,
    GameFull,
    GameNotFound,
    GameNotWaiting,
    GameStatus,
    InvalidState,
    NotFound,
    NotYourTurn,
    SetupPending,
    UnoEngineError,
)
from unoengine.events import (
    CardPlayed,
    GameCreated,
    GameEnded,
    GameStarted,
    LowHandDeclared,
    PlayerJoined,
    RecordingSink,
)
from unoengine.orchestration import GameRegistry, LocalRandomnessProvider


class ManualProvider:
    """Records request ids; the test delivers seeds itself."""

    def __init__(self):
        self.callback = None
        self.requests = []

    def bind(self, callback):
        self.callback = callback

    def request_seed(self, request_id: str) -> None:
        self.requests.append(request_id)


class ThreadedProvider(ManualProvider):
    """Delivers each seed from a new thread before request_seed returns."""

    def __init__(self, seed: int):
        super().__init__()
        self.seed = seed
        self.threads = []

    def request_seed(self, request_id: str) -> None:
        super().request_seed(request_id)
        entered = threading.Event()

        def deliver() -> None:
            entered.set()
            self.callback(request_id, self.seed)

        thread = threading.Thread(target=deliver)
        self.threads.append(thread)
        thread.start()
        entered.wait()

    def join_all(self) -> None:
        for thread in self.threads:
            thread.join(timeout=5)
            assert not thread.is_alive()


class SynchronousProvider(ManualProvider):
    """Delivers the seed on the calling thread, inside request_seed."""

    def __init__(self, seed: int):
        super().__init__()
        self.seed = seed

    def request_seed(self, request_id: str) -> None:
        super().request_seed(request_id)
        self.callback(request_id, self.seed)


class FailingProvider(ManualProvider):
    """Raises from request_seed while ``down`` is set."""

    def __init__(self):
        super().__init__()
        self.down = True

    def request_seed(self, request_id: str) -> None:
        super().request_seed(request_id)
        if self.down:
            raise RuntimeError("randomness service unavailable")


class BrokenSink:
    def notify(self, event):
        raise RuntimeError("sink is down")


def _registry(seed: int = 142, **config) -> tuple[GameRegistry, LocalRandomnessProvider, RecordingSink]:
    provider = LocalRandomnessProvider(lambda: seed)
    sink = RecordingSink()
    registry = GameRegistry(randomness=provider, sink=sink, config=EngineConfig(**config))
    return registry, provider, sink


def _two_player_game(registry: GameRegistry, provider: LocalRandomnessProvider) -> int:
    game_id = registry.create_game()
    registry.join(game_id, "A")
    registry.join(game_id, "B")
    registry.start(game_id)
    provider.deliver_pending()
    return game_id


def test_create_game_ids_increase() -> None:
    registry, _, _ = _registry()
    ids = [registry.create_game() for _ in range(5)]
    assert ids == sorted(ids)
    assert len(set(ids)) == 5
    assert all(registry.get_game(i).status == GameStatus.WAITING for i in ids)


def test_unknown_game_is_not_found() -> None:
    registry, _, _ = _registry()
    with pytest.raises(GameNotFound) as exc_info:
        registry.get_game(99)
    assert isinstance(exc_info.value, NotFound)
    assert not isinstance(exc_info.value, InvalidState)
    for call in (
        lambda: registry.join(99, "A"),
        lambda: registry.start(99),
        lambda: registry.play_card(99, "A", CardColor.RED, CardType.NUMBER, 1),
        lambda: registry.declare_low(99, "A"),
        lambda: registry.apply_random_seed(99, 142),
    ):
        with pytest.raises(GameNotFound):
            call()


def test_two_players_stay_waiting_until_start() -> None:
    registry, provider, _ = _registry()
    game_id = registry.create_game()
    registry.join(game_id, "A")
    view = registry.join(game_id, "B")
    assert view.status == GameStatus.WAITING
    assert provider.pending == 0

    view = registry.start(game_id)
    assert view.status == GameStatus.IN_PROGRESS
    assert view.setup_pending
    assert provider.pending == 1

    with pytest.raises(SetupPending):
        registry.play_card(game_id, "A", CardColor.GREEN, CardType.NUMBER, 1)

    assert provider.deliver_pending() == 1
    view = registry.get_game(game_id)
    assert not view.setup_pending
    assert view.current_player_index == 0
    assert view.current_player == "A"
    assert view.current_color == CardColor.GREEN
    assert view.top_card == Card(CardColor.GREEN, CardType.NUMBER, 1)


def test_join_at_capacity_starts_game() -> None:
    registry, provider, sink = _registry(max_players=3)
    game_id = registry.create_game()
    registry.join(game_id, "A")
    registry.join(game_id, "B")
    view = registry.join(game_id, "C")
    assert view.status == GameStatus.IN_PROGRESS
    assert provider.pending == 1
    assert len(sink.of_type(GameStarted)) == 1

    with pytest.raises(GameNotWaiting):
        registry.join(game_id, "D")
    with pytest.raises(GameNotWaiting):
        registry.start(game_id)
    assert len(registry.get_game(game_id).players) == 3


def test_seed_routed_to_originating_game() -> None:
    provider = ManualProvider()
    registry = GameRegistry(randomness=provider)
    first = registry.create_game()
    second = registry.create_game()
    for game_id in (first, second):
        registry.join(game_id, "A")
        registry.join(game_id, "B")
        registry.join(game_id, "C")
    registry.start(first)
    registry.start(second)
    latest = registry.create_game()

    # Deliver out of order
    first_request, second_request = provider.requests
    provider.callback(second_request, 301)
    provider.callback(first_request, 100)

    first_view = registry.get_game(first)
    second_view = registry.get_game(second)
    assert first_view.current_player_index == 100 % 3
    assert first_view.top_card == Card(CardColor.RED, CardType.NUMBER, 1)
    assert second_view.current_player_index == 301 % 3
    assert second_view.top_card == Card(CardColor.BLUE, CardType.NUMBER, 3)
    assert registry.get_game(latest).status == GameStatus.WAITING


def test_duplicate_and_unknown_seed_deliveries_ignored() -> None:
    provider = ManualProvider()
    registry = GameRegistry(randomness=provider)
    game_id = registry.create_game()
    registry.join(game_id, "A")
    registry.join(game_id, "B")
    registry.start(game_id)

    (request_id,) = provider.requests
    registry.fulfill_seed(request_id, 142)
    before = registry.get_game(game_id)
    registry.fulfill_seed(request_id, 3)
    registry.fulfill_seed("nope", 3)
    assert not registry.apply_random_seed(game_id, 3)
    assert registry.get_game(game_id) == before


def test_direct_seed_consumes_pending_request() -> None:
    provider = ManualProvider()
    registry = GameRegistry(randomness=provider)
    game_id = registry.create_game()
    registry.join(game_id, "A")
    registry.join(game_id, "B")
    registry.start(game_id)

    (request_id,) = provider.requests
    assert registry.apply_random_seed(game_id, 142)
    registry.fulfill_seed(request_id, 3)
    assert registry.get_game(game_id).top_card == Card(CardColor.GREEN, CardType.NUMBER, 1)


def test_seed_for_waiting_game_ignored() -> None:
    registry, _, _ = _registry()
    game_id = registry.create_game()
    registry.join(game_id, "A")
    assert not registry.apply_random_seed(game_id, 142)
    assert registry.get_game(game_id).top_card is None


def test_seed_delivered_from_another_thread_during_start() -> None:
    provider = ThreadedProvider(seed=142)
    registry = GameRegistry(randomness=provider)
    game_id = registry.create_game()
    registry.join(game_id, "A")
    registry.join(game_id, "B")
    registry.start(game_id)
    provider.join_all()

    view = registry.get_game(game_id)
    assert view.status == GameStatus.IN_PROGRESS
    assert not view.setup_pending
    assert view.current_player == "A"
    assert view.top_card == Card(CardColor.GREEN, CardType.NUMBER, 1)


def test_seed_delivered_from_another_thread_during_auto_start() -> None:
    provider = ThreadedProvider(seed=301)
    registry = GameRegistry(randomness=provider, config=EngineConfig(max_players=3))
    game_id = registry.create_game()
    for pid in ("A", "B", "C"):
        registry.join(game_id, pid)
    provider.join_all()

    view = registry.get_game(game_id)
    assert not view.setup_pending
    assert view.current_player == "B"
    assert view.top_card == Card(CardColor.BLUE, CardType.NUMBER, 3)


def test_seed_delivered_inside_request_seed() -> None:
    provider = SynchronousProvider(seed=142)
    sink = RecordingSink()
    registry = GameRegistry(randomness=provider, sink=sink, config=EngineConfig(max_players=2))
    game_id = registry.create_game()
    registry.join(game_id, "A")
    view = registry.join(game_id, "B")

    assert view.status == GameStatus.IN_PROGRESS
    assert not view.setup_pending
    assert view.top_card == Card(CardColor.GREEN, CardType.NUMBER, 1)
    assert [type(e) for e in sink.events][-1] == GameStarted
    registry.play_card(game_id, "A", CardColor.GREEN, CardType.NUMBER, 5)


def test_failed_seed_request_leaves_start_undone() -> None:
    provider = FailingProvider()
    sink = RecordingSink()
    registry = GameRegistry(randomness=provider, sink=sink)
    game_id = registry.create_game()
    registry.join(game_id, "A")
    registry.join(game_id, "B")
    before = registry.get_game(game_id)

    with pytest.raises(RuntimeError):
        registry.start(game_id)
    assert registry.get_game(game_id) == before
    assert sink.of_type(GameStarted) == []

    # The failed request is forgotten; a retry gets a fresh one
    failed_request = provider.requests[-1]
    registry.fulfill_seed(failed_request, 142)
    assert registry.get_game(game_id).status == GameStatus.WAITING

    provider.down = False
    registry.start(game_id)
    registry.fulfill_seed(provider.requests[-1], 142)
    assert not registry.get_game(game_id).setup_pending


def test_failed_seed_request_leaves_join_at_capacity_undone() -> None:
    provider = FailingProvider()
    sink = RecordingSink()
    registry = GameRegistry(randomness=provider, sink=sink, config=EngineConfig(max_players=2))
    game_id = registry.create_game()
    registry.join(game_id, "A")
    before = registry.get_game(game_id)

    with pytest.raises(RuntimeError):
        registry.join(game_id, "B")
    after = registry.get_game(game_id)
    assert after == before
    assert [p.identity for p in after.players] == ["A"]
    assert after.status == GameStatus.WAITING
    assert "B joined" not in after.history
    assert [e.player for e in sink.of_type(PlayerJoined)] == ["A"]
    assert sink.of_type(GameStarted) == []

    provider.down = False
    view = registry.join(game_id, "B")
    assert view.status == GameStatus.IN_PROGRESS
    assert [e.player for e in sink.of_type(PlayerJoined)] == ["A", "B"]
    assert len(sink.of_type(GameStarted)) == 1


@pytest.mark.parametrize("bad_seed", [-1, -142, True, 1.5, "142", None])
def test_invalid_seed_is_ignored_and_request_kept(bad_seed) -> None:
    provider = ManualProvider()
    registry = GameRegistry(randomness=provider)
    game_id = registry.create_game()
    registry.join(game_id, "A")
    registry.join(game_id, "B")
    registry.start(game_id)
    (request_id,) = provider.requests

    registry.fulfill_seed(request_id, bad_seed)
    assert registry.get_game(game_id).setup_pending
    assert not registry.apply_random_seed(game_id, bad_seed)
    assert registry.get_game(game_id).setup_pending

    registry.fulfill_seed(request_id, 142)
    assert registry.get_game(game_id).top_card == Card(CardColor.GREEN, CardType.NUMBER, 1)


def test_local_provider_with_bad_source_does_not_raise() -> None:
    provider = LocalRandomnessProvider(lambda: -7)
    registry = GameRegistry(randomness=provider)
    game_id = registry.create_game()
    registry.join(game_id, "A")
    registry.join(game_id, "B")
    registry.start(game_id)

    assert provider.deliver_pending() == 1
    assert registry.get_game(game_id).setup_pending


def test_play_and_events() -> None:
    registry, provider, sink = _registry(initial_hand_size=2)
    game_id = _two_player_game(registry, provider)

    with pytest.raises(NotYourTurn):
        registry.play_card(game_id, "B", CardColor.GREEN, CardType.NUMBER, 1)

    view = registry.play_card(game_id, "A", CardColor.GREEN, CardType.NUMBER, 7)
    assert view.current_player == "B"
    assert view.hand_size("A") == 1
    registry.declare_low(game_id, "A")
    registry.play_card(game_id, "B", CardColor.GREEN, CardType.SKIP)
    view = registry.play_card(game_id, "B", CardColor.WILD, CardType.WILD, chosen_color=CardColor.RED)
    assert view.status == GameStatus.ENDED
    assert view.winner == "B"

    kinds = [type(e) for e in sink.events]
    assert kinds == [
        GameCreated,
        PlayerJoined,
        PlayerJoined,
        GameStarted,
        CardPlayed,
        LowHandDeclared,
        CardPlayed,
        CardPlayed,
        GameEnded,
    ]
    last_play = sink.of_type(CardPlayed)[-1]
    assert last_play.player == "B"
    assert last_play.type == CardType.WILD
    assert last_play.chosen_color == CardColor.RED
    assert sink.of_type(GameEnded) == [GameEnded(game_id=game_id, winner="B")]

    with pytest.raises(UnoEngineError):
        registry.play_card(game_id, "A", CardColor.WILD, CardType.WILD)


def test_rejected_operations_emit_nothing() -> None:
    registry, provider, sink = _registry()
    game_id = _two_player_game(registry, provider)
    sink.clear()
    with pytest.raises(UnoEngineError):
        registry.play_card(game_id, "A", CardColor.RED, CardType.NUMBER, 9)
    with pytest.raises(UnoEngineError):
        registry.declare_low(game_id, "A")
    assert sink.events == []


def test_broken_sink_does_not_fail_operations() -> None:
    registry = GameRegistry(randomness=LocalRandomnessProvider(lambda: 142), sink=BrokenSink())
    game_id = registry.create_game()
    registry.join(game_id, "A")
    view = registry.join(game_id, "B")
    assert len(view.players) == 2


def test_views_are_snapshots() -> None:
    registry, provider, _ = _registry()
    game_id = _two_player_game(registry, provider)
    view = registry.get_game(game_id)
    with pytest.raises(dataclasses.FrozenInstanceError):
        view.status = GameStatus.ENDED  # type: ignore[misc]
    registry.play_card(game_id, "A", CardColor.GREEN, CardType.NUMBER, 4)
    assert view.hand_size("A") == 7
    assert registry.get_game(game_id).hand_size("A") == 6


def test_purge_ended() -> None:
    registry, provider, _ = _registry(initial_hand_size=1)
    finished = _two_player_game(registry, provider)
    running = _two_player_game(registry, provider)
    registry.play_card(finished, "A", CardColor.GREEN, CardType.NUMBER, 3)

    assert registry.purge_ended() == [finished]
    assert finished not in registry
    assert running in registry
    assert len(registry) == 1
    with pytest.raises(GameNotFound):
        registry.get_game(finished)
    assert [v.game_id for v in registry.list_games()] == [running]


def test_concurrent_joins_respect_capacity() -> None:
    registry, provider, sink = _registry(max_players=10)
    game_id = registry.create_game()
    barrier = threading.Barrier(20)
    outcomes = []
    outcomes_lock = threading.Lock()

    def join(pid: str) -> None:
        barrier.wait()
        try:
            registry.join(game_id, pid)
            result = "ok"
        except (GameFull, GameNotWaiting):
            result = "rejected"
        with outcomes_lock:
            outcomes.append(result)

    threads = [threading.Thread(target=join, args=(f"p{i}",)) for i in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("ok") == 10
    assert outcomes.count("rejected") == 10
    view = registry.get_game(game_id)
    assert len(view.players) == 10
    assert view.status == GameStatus.IN_PROGRESS
    assert len(sink.of_type(GameStarted)) == 1
    assert provider.pending == 1


def test_concurrent_plays_on_one_game_are_serialized() -> None:
    registry, provider, _ = _registry()
    game_id = _two_player_game(registry, provider)
    barrier = threading.Barrier(8)
    accepted = []
    accepted_lock = threading.Lock()

    def play() -> None:
        barrier.wait()
        try:
            registry.play_card(game_id, "A", CardColor.GREEN, CardType.NUMBER, 5)
        except NotYourTurn:
            return
        with accepted_lock:
            accepted.append(True)

    threads = [threading.Thread(target=play) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    # Only the first play by A is on turn; the rest hit B's turn
    assert len(accepted) == 1
    view = registry.get_game(game_id)
    assert view.hand_size("A") == 6
    assert view.current_player == "B"


def test_games_progress_independently_in_parallel() -> None:
    registry, provider, _ = _registry()
    errors = []

    def run_one() -> None:
        try:
            game_id = registry.create_game()
            registry.join(game_id, "A")
            registry.join(game_id, "B")
            registry.start(game_id)
        except UnoEngineError as e:
            errors.append(e)

    threads = [threading.Thread(target=run_one) for _ in range(12)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(registry) == 12
    assert provider.deliver_pending() == 12
    assert all(not v.setup_pending for v in registry.list_games())
