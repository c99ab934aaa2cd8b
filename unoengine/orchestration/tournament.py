"""Tournament - many games between the same agents, with per-player totals."""

from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from unoengine.config import EngineConfig
from unoengine.orchestration.game_runner import GameResult, GameRunner

if TYPE_CHECKING:
    from unoengine.agent.protocol import AgentProtocol

logger = logging.getLogger(__name__)


@dataclass
class TournamentResult:
    """Totals over every game of a tournament, keyed by player id."""

    player_ids: tuple[str, ...]
    games_played: int = 0
    total_turns: int = 0
    wins: Counter = field(default_factory=Counter)
    rejected_plays: Counter = field(default_factory=Counter)
    low_declarations: Counter = field(default_factory=Counter)

    def record(self, result: GameResult) -> None:
        self.games_played += 1
        self.total_turns += result.num_turns
        if result.winner is not None:
            self.wins[result.winner] += 1
        self.rejected_plays.update(result.rejected_by_player)
        self.low_declarations.update(result.declarations_by_player)

    @property
    def average_turns(self) -> float:
        if not self.games_played:
            return 0.0
        return self.total_turns / self.games_played

    def win_rate(self, player_id: str) -> float:
        if not self.games_played:
            return 0.0
        return self.wins[player_id] / self.games_played

    def standings(self) -> list[tuple[str, int]]:
        """(player_id, wins) for every player, most wins first, ties by seat."""
        return sorted(
            ((pid, self.wins[pid]) for pid in self.player_ids),
            key=lambda item: -item[1],
        )


def run_tournament(
    agents: dict[str, "AgentProtocol"],
    num_games: int = 100,
    seed: Optional[int] = None,
    config: Optional[EngineConfig] = None,
) -> TournamentResult:
    """Run num_games games between the same agents.

    Seating rotates by one place each game so every player opens from
    every seat. Each game gets its own seed drawn from ``seed``, which
    makes the whole tournament reproducible.
    """
    if num_games < 0:
        raise ValueError("num_games must be non-negative")
    player_ids = list(agents)
    totals = TournamentResult(player_ids=tuple(player_ids))

    rng = random.Random(seed)
    for g in range(num_games):
        shift = g % len(player_ids) if player_ids else 0
        order = player_ids[shift:] + player_ids[:shift]
        runner = GameRunner(
            {pid: agents[pid] for pid in order},
            seed=rng.randint(0, 2**31 - 1),
            config=config,
        )
        result = runner.run()
        totals.record(result)
        logger.debug(
            f"Tournament game {g + 1}/{num_games}: winner={result.winner} "
            f"turns={result.num_turns} rejected={result.illegal_attempts}"
        )

    logger.info(
        f"Tournament finished: {totals.games_played} games, "
        f"{totals.average_turns:.1f} turns on average"
    )
    return totals
