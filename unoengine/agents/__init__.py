"""Built-in agents."""

from unoengine.agents.random_agent import RandomAgent
from unoengine.agents.human_agent import HumanAgent

__all__ = ["RandomAgent", "HumanAgent"]
