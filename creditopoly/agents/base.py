"""Base class for all Creditopoly agents."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from creditopoly.game import GameState
    from creditopoly.rules import Command


class Agent(ABC):
    """
    Abstract base class for agents.

    All agents must implement the `choose_command` method to select
    a command from the list of legal commands.

    Attributes:
        player_id: The player's index in the game (0, 1, 2, ...).
        name: The player's display name.
    """

    def __init__(self, player_id: int, name: str):
        self.player_id = player_id
        self.name = name

    @abstractmethod
    def choose_command(self, game: "GameState", legal_commands: List["Command"]) -> "Command":
        """
        Choose a command from the list of legal commands.

        Args:
            game: The current game state.
            legal_commands: Commands currently available to the player.

        Returns:
            The chosen command to execute.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(player_id={self.player_id}, name='{self.name}')"
