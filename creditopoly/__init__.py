"""
Creditopoly Rules Engine

A deterministic Monopoly-style rules engine with a credit economy: bank
loans, IOUs, insurance, economic events and Chapter 11 restructuring.
"""

from .board import Board
from .config import GameConfig
from .game import GamePhase, GameState, create_game
from .player import Player, PlayerState
from .rules import Command, CommandType, apply_command, get_legal_commands
from .settings import EngineSettings, get_engine_settings

__all__ = [
    "Board",
    "Command",
    "CommandType",
    "EngineSettings",
    "GameConfig",
    "GamePhase",
    "GameState",
    "Player",
    "PlayerState",
    "apply_command",
    "create_game",
    "get_engine_settings",
    "get_legal_commands",
]
