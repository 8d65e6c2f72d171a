"""Agents that play Creditopoly through the command API."""

from creditopoly.agents.base import Agent
from creditopoly.agents.policy import HeuristicAgent, decide, evaluate_trade

__all__ = ["Agent", "HeuristicAgent", "decide", "evaluate_trade"]
