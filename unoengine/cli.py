"""CLI entry point."""

from __future__ import annotations

from typing import Optional

import typer
from dotenv import load_dotenv

from unoengine.config import EngineConfig
from unoengine.logging_config import setup_logging

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(help="UNO rules engine with simulated and human players")


def _load_config() -> EngineConfig:
    try:
        return EngineConfig.from_env()
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def _parse_agents(agent_specs: str, seed: Optional[int]) -> dict[str, "AgentProtocol"]:
    from unoengine.agent.protocol import AgentProtocol
    from unoengine.agents.human_agent import HumanAgent
    from unoengine.agents.random_agent import RandomAgent

    parts = [s.strip().lower() for s in agent_specs.split(",") if s.strip()]
    agents: dict[str, AgentProtocol] = {}
    for i, kind in enumerate(parts):
        pid = f"player_{i}"
        if kind == "random":
            agent_seed = None if seed is None else seed + i
            agents[pid] = RandomAgent(name=f"Random_{i}", seed=agent_seed)
        elif kind == "human":
            agents[pid] = HumanAgent(name=f"Human_{i}")
        else:
            raise typer.BadParameter(f"Unknown agent type: {kind}. Use 'random' or 'human'.")
    return agents


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", "-l", help="Override UNO_LOG_LEVEL (DEBUG, INFO, WARNING)"
    ),
) -> None:
    """Configure logging for every command."""
    config = _load_config()
    setup_logging(level=log_level or config.log_level, fmt=config.log_format)


@app.command()
def play(
    agents: str = typer.Option(
        "random,random,random,random",
        "--agents",
        "-a",
        help="Comma-separated: random or human (e.g. random,human,random)",
    ),
    seed: Optional[int] = typer.Option(None, "--seed", "-s", help="Random seed"),
) -> None:
    """Run a single UNO game."""
    from unoengine.engine import UnoEngineError
    from unoengine.events import LoggingSink
    from unoengine.orchestration.game_runner import GameRunner

    agent_map = _parse_agents(agents, seed)
    runner = GameRunner(agent_map, seed=seed, config=_load_config(), sink=LoggingSink())
    try:
        result = runner.run()
    except UnoEngineError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Winner: {result.winner or 'None'}")
    typer.echo(f"Turns: {result.num_turns}")
    typer.echo(f"Rejected plays: {result.illegal_attempts}")


@app.command()
def tournament(
    agents: str = typer.Option(
        "random,random",
        "--agents",
        "-a",
        help="Comma-separated agent types (random or human)",
    ),
    games: int = typer.Option(100, "--games", "-g", help="Number of games"),
    seed: Optional[int] = typer.Option(None, "--seed", "-s", help="Random seed"),
) -> None:
    """Run a tournament."""
    from unoengine.engine import UnoEngineError
    from unoengine.orchestration.tournament import run_tournament

    agent_map = _parse_agents(agents, seed)
    try:
        results = run_tournament(agent_map, num_games=games, seed=seed, config=_load_config())
    except UnoEngineError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Tournament results ({results.games_played} games):")
    for pid, w in results.standings():
        typer.echo(
            f"  {pid}: {w} wins ({results.win_rate(pid):.0%}), "
            f"{results.rejected_plays[pid]} rejected plays"
        )
    typer.echo(f"Average turns: {results.average_turns:.1f}")


@app.command()
def check(
    top: str = typer.Argument(..., help="Top card, e.g. red_5 or blue_skip"),
    card: str = typer.Argument(..., help="Proposed card, e.g. red_7 or wild"),
    color: Optional[str] = typer.Option(
        None, "--color", "-c", help="Color declared for a wild top card"
    ),
) -> None:
    """Check whether a card may be played on a top card."""
    from unoengine.engine import Card, CardColor, is_legal_play

    try:
        top_card = Card.parse(top)
        proposed = Card.parse(card)
        current_color = CardColor(color.lower()) if color else None
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    legal = is_legal_play(
        top_card, proposed.color, proposed.type, proposed.rank, current_color=current_color
    )
    typer.echo(f"{proposed} on {top_card}: {'legal' if legal else 'illegal'}")
    if not legal:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
