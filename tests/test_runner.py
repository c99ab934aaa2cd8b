"""Tests for the game runner and tournament."""

import pytest
from unoengine.agent.protocol import PlayCard
from unoengine.agents import RandomAgent
from unoengine.config import EngineConfig
from unoengine.engine import GameFull, GameView, is_legal_play
from unoengine.engine.card import PLAYABLE_COLORS, Card, CardType
from unoengine.events import CardPlayed, GameEnded, RecordingSink
from unoengine.orchestration import GameRunner, run_tournament


class StubbornAgent:
    """Always proposes a card that is illegal on the current top card."""

    name = "stubborn"

    def choose_card(self, view: GameView, player_id: str) -> PlayCard:
        for color in PLAYABLE_COLORS:
            for rank in range(10):
                card = Card(color, CardType.NUMBER, rank)
                if not is_legal_play(view.top_card, card.color, card.type, card.rank, view.current_color):
                    return PlayCard(card=card)
        raise AssertionError("no illegal card found")

    def should_declare_low(self, view: GameView, player_id: str) -> bool:
        return False


def _agents(n: int, seed: int = 0) -> dict:
    return {f"p{i}": RandomAgent(name=f"bot{i}", seed=seed + i) for i in range(n)}


def test_run_game_to_completion() -> None:
    sink = RecordingSink()
    result = GameRunner(_agents(4), seed=42, sink=sink).run()
    assert result.winner in result.player_ids
    assert result.player_ids == ("p0", "p1", "p2", "p3")
    assert 7 <= result.num_turns <= 4 * 7
    assert result.illegal_attempts == 0
    assert len(sink.of_type(CardPlayed)) == result.num_turns
    assert sink.of_type(GameEnded)[0].winner == result.winner


def test_runner_is_reproducible() -> None:
    first = GameRunner(_agents(3, seed=5), seed=7).run()
    second = GameRunner(_agents(3, seed=5), seed=7).run()
    assert first == second


def test_random_agents_declare_low() -> None:
    result = GameRunner(_agents(2), seed=1).run()
    # The winner passes through one card on the way to zero
    assert result.low_declarations >= 1


def test_game_at_capacity_starts_automatically() -> None:
    config = EngineConfig(max_players=3)
    result = GameRunner(_agents(3), seed=3, config=config).run()
    assert result.winner is not None


def test_too_many_agents() -> None:
    config = EngineConfig(max_players=2)
    with pytest.raises(GameFull):
        GameRunner(_agents(3), seed=3, config=config).run()


def test_rejected_plays_fall_back_to_legal_card() -> None:
    agents = {"bad": StubbornAgent(), "good": RandomAgent(seed=1)}
    result = GameRunner(agents, seed=11, max_attempts=2).run()
    assert result.winner in ("bad", "good")
    assert result.illegal_attempts > 0
    assert result.illegal_attempts % 2 == 0
    assert result.rejected_by_player == {"bad": result.illegal_attempts, "good": 0}


def test_tournament() -> None:
    results = run_tournament(_agents(3), num_games=6, seed=9)
    assert results.games_played == 6
    assert sum(results.wins.values()) == 6
    assert set(results.wins) <= {"p0", "p1", "p2"}
    assert {pid for pid, _ in results.standings()} == {"p0", "p1", "p2"}
    assert sum(results.rejected_plays.values()) == 0
    assert 7 <= results.average_turns <= 3 * 7
    assert sum(results.win_rate(pid) for pid in ("p0", "p1", "p2")) == pytest.approx(1.0)


def test_tournament_is_reproducible() -> None:
    first = run_tournament(_agents(2, seed=3), num_games=4, seed=21)
    second = run_tournament(_agents(2, seed=3), num_games=4, seed=21)
    assert first == second


def test_tournament_counts_rejected_plays_per_player() -> None:
    agents = {"bad": StubbornAgent(), "good": RandomAgent(seed=4)}
    results = run_tournament(agents, num_games=4, seed=2)
    assert results.rejected_plays["bad"] > 0
    assert results.rejected_plays["bad"] % 3 == 0
    assert results.rejected_plays["good"] == 0
    assert results.games_played == 4


def test_empty_tournament() -> None:
    results = run_tournament(_agents(2), num_games=0)
    assert results.games_played == 0
    assert results.average_turns == 0.0
    assert results.win_rate("p0") == 0.0
    assert results.standings() == [("p0", 0), ("p1", 0)]
