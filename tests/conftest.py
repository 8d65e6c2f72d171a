"""Shared test fixtures for Creditopoly tests."""

import pytest

from creditopoly import EngineSettings, GameConfig, Player, create_game


@pytest.fixture
def game_config():
    """Default game configuration with fixed seed for reproducibility."""
    return GameConfig(seed=42)


@pytest.fixture
def settings():
    """Engine settings with their defaults, independent of the environment."""
    return EngineSettings(_env_file=None)


@pytest.fixture
def two_players():
    """Two test players."""
    return [Player("Alice"), Player("Bob")]


@pytest.fixture
def four_players():
    """Four test players."""
    return [Player("Alice"), Player("Bob"), Player("Charlie"), Player("Diana")]


@pytest.fixture
def basic_game(game_config, two_players, settings):
    """Basic game with two players and fixed seed."""
    return create_game(game_config, two_players, settings)


@pytest.fixture
def three_player_game(game_config, settings):
    """Game with three players, so one bankruptcy does not end it."""
    return create_game(game_config, [Player("Alice"), Player("Bob"), Player("Charlie")], settings)


@pytest.fixture
def four_player_game(game_config, four_players, settings):
    """Game with four players and fixed seed."""
    return create_game(game_config, four_players, settings)


@pytest.fixture
def rig_dice(monkeypatch):
    """Make a game roll the given pairs, in order."""

    def rig(game, *rolls):
        queue = list(rolls)
        monkeypatch.setattr(game, "_roll_pair", lambda: queue.pop(0))

    return rig


@pytest.fixture
def give():
    """Hand properties to a player directly, bypassing purchase."""

    def assign(game, player_id, *positions):
        for position in positions:
            game.property_states[position].owner_id = player_id
            game.players[player_id].properties.add(position)

    return assign
