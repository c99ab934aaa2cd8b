"""Simulate a game with random agents and print every event."""

from unoengine.agents import RandomAgent
from unoengine.events import RecordingSink
from unoengine.orchestration.game_runner import GameRunner


def main():
    agents = {
        "p1": RandomAgent("Bot1", seed=1),
        "p2": RandomAgent("Bot2", seed=2),
        "p3": RandomAgent("Bot3", seed=3),
        "p4": RandomAgent("Bot4", seed=4),
    }

    sink = RecordingSink()
    runner = GameRunner(agents, seed=42, sink=sink)
    result = runner.run()

    for event in sink.events:
        print(f"> {event}")

    print(f"Game finished! Winner: {result.winner}")
    print(f"Turns: {result.num_turns}")


if __name__ == "__main__":
    main()
