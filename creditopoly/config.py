"""
Game configuration settings.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class GameConfig:
    """Fixed rules constants for a game."""

    starting_cash: int = 1500
    go_salary: int = 200
    max_go_salary: int = 350
    jail_fine: int = 50
    mortgage_interest_rate: float = 0.10

    house_limit: int = 32
    hotel_limit: int = 12

    max_jail_turns: int = 3
    max_consecutive_doubles: int = 3

    income_tax: int = 200

    min_players: int = 2
    max_players: int = 8

    seed: Optional[int] = None
