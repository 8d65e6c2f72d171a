"""
Tests for dice, movement, doubles, jail and turn order.
"""

import pytest

from creditopoly import EngineSettings, GameConfig, GamePhase, Player, create_game
from creditopoly.exceptions import GameSetupError
from creditopoly.money import EventType


def test_game_needs_at_least_two_players(game_config, settings):
    """A game cannot start with a single seat."""
    with pytest.raises(GameSetupError):
        create_game(game_config, [Player("Solo")], settings)


def test_new_game_starts_rolling(basic_game):
    """Everyone starts on GO with the starting cash; player 0 rolls first."""
    assert basic_game.phase == GamePhase.ROLLING
    assert basic_game.current_player_index == 0
    assert basic_game.turn == 1
    for player in basic_game.players.values():
        assert player.position == 0
        assert player.cash == 1500
    assert basic_game.event_log.get_events(EventType.GAME_START)


def test_same_seed_same_decks(settings, two_players):
    """Two games with the same seed shuffle their decks identically."""
    first = create_game(GameConfig(seed=7), two_players, settings)
    second = create_game(GameConfig(seed=7), two_players, settings)
    assert [c.card_id for c in first.chance_deck.cards] == [c.card_id for c in second.chance_deck.cards]
    assert [c.card_id for c in first.community_chest_deck.cards] == [
        c.card_id for c in second.community_chest_deck.cards
    ]


def test_passing_go_pays_salary(basic_game, rig_dice):
    """Moving 5 from position 38 wraps to 3 and collects the GO salary."""
    player = basic_game.players[0]
    player.position = 38
    rig_dice(basic_game, (2, 3))

    assert basic_game.roll_dice() == (2, 3)

    assert player.position == 3
    assert player.cash == 1700
    assert basic_game.passed_go is True
    assert basic_game.phase == GamePhase.AWAITING_BUY_DECISION


def test_roll_rejected_outside_rolling_phase(basic_game):
    basic_game.phase = GamePhase.RESOLVING_SPACE
    assert basic_game.roll_dice() is None
    assert basic_game.dice is None


def test_doubles_grant_another_roll(basic_game, rig_dice):
    """After doubles the same player rolls again."""
    rig_dice(basic_game, (3, 3))
    basic_game.roll_dice()
    assert basic_game.players[0].position == 6
    assert basic_game.buy_property(0)

    assert basic_game.end_turn()

    assert basic_game.current_player_index == 0
    assert basic_game.phase == GamePhase.ROLLING
    assert basic_game.turn == 1


def test_third_double_goes_to_jail(basic_game, rig_dice):
    """Three doubles in a row send the player to jail without moving."""
    rig_dice(basic_game, (3, 3), (2, 2), (4, 4))

    basic_game.roll_dice()
    basic_game.buy_property(0)
    basic_game.end_turn()
    basic_game.roll_dice()
    assert basic_game.players[0].position == 10
    basic_game.end_turn()
    basic_game.roll_dice()

    player = basic_game.players[0]
    assert player.position == 10
    assert player.in_jail is True
    assert player.jail_turns == 0
    assert basic_game.consecutive_doubles == 0
    assert basic_game.phase == GamePhase.RESOLVING_SPACE
    assert basic_game.event_log.get_events(EventType.TURN_PAUSE_SUGGESTED)

    basic_game.end_turn()
    assert basic_game.current_player_index == 1


def test_end_turn_passes_to_next_player(basic_game):
    basic_game.phase = GamePhase.RESOLVING_SPACE

    assert basic_game.end_turn()

    assert basic_game.current_player_index == 1
    assert basic_game.turn == 2
    assert basic_game.phase == GamePhase.ROLLING
    assert basic_game.event_log.get_events(EventType.TURN_START)[-1].player_id == 1


def test_end_turn_rejected_while_rolling(basic_game):
    assert basic_game.end_turn() is False
    assert basic_game.current_player_index == 0


def test_bankrupt_players_are_skipped(three_player_game):
    three_player_game.players[1].is_bankrupt = True
    three_player_game.phase = GamePhase.RESOLVING_SPACE

    three_player_game.end_turn()

    assert three_player_game.current_player_index == 2


def test_rounds_raise_go_salary(basic_game):
    """GO salary rises by 25 every two completed rounds."""
    for _ in range(4):
        basic_game.phase = GamePhase.RESOLVING_SPACE
        basic_game.end_turn()

    assert basic_game.rounds_completed == 2
    assert basic_game.current_go_salary == 225
    assert [row["round"] for row in basic_game.market_history] == [1, 2]
    assert basic_game.event_log.get_events(EventType.INFLATION)


def test_inflation_disabled_keeps_salary(game_config, two_players):
    game = create_game(game_config, two_players, EngineSettings(_env_file=None, enable_inflation=False))
    for _ in range(6):
        game.phase = GamePhase.RESOLVING_SPACE
        game.end_turn()
    assert game.rounds_completed == 3
    assert game.current_go_salary == 200


def test_landing_on_go_to_jail(basic_game):
    player = basic_game.players[0]
    player.position = 30
    basic_game.resolve_space(0)
    assert player.in_jail
    assert player.position == 10


def test_jailed_player_starts_in_jail_decision(basic_game):
    basic_game.players[1].in_jail = True
    basic_game.phase = GamePhase.RESOLVING_SPACE
    basic_game.end_turn()
    assert basic_game.phase == GamePhase.JAIL_DECISION


def _jail_current_player(game):
    player = game.current_player
    player.position = 10
    player.in_jail = True
    game.phase = GamePhase.JAIL_DECISION
    return player


def test_pay_jail_fine(basic_game):
    player = _jail_current_player(basic_game)

    assert basic_game.get_out_of_jail(0, "pay")

    assert player.cash == 1450
    assert not player.in_jail
    assert basic_game.phase == GamePhase.ROLLING


def test_use_jail_card(basic_game):
    player = _jail_current_player(basic_game)
    player.get_out_of_jail_cards = 1

    assert basic_game.get_out_of_jail(0, "card")

    assert player.get_out_of_jail_cards == 0
    assert not player.in_jail
    assert player.cash == 1500


def test_jail_card_required(basic_game):
    _jail_current_player(basic_game)
    assert basic_game.get_out_of_jail(0, "card") is False


def test_failed_jail_roll_ends_turn(basic_game, rig_dice):
    player = _jail_current_player(basic_game)
    rig_dice(basic_game, (1, 2))

    assert basic_game.get_out_of_jail(0, "roll")

    assert player.in_jail
    assert player.jail_turns == 1
    assert basic_game.current_player_index == 1


def test_jail_doubles_release_without_extra_roll(basic_game, rig_dice):
    player = _jail_current_player(basic_game)
    rig_dice(basic_game, (2, 2))

    basic_game.get_out_of_jail(0, "roll")

    assert not player.in_jail
    assert player.position == 14
    assert basic_game.extra_roll_pending is False
    assert basic_game.phase == GamePhase.AWAITING_BUY_DECISION


def test_third_failed_jail_roll_pays_fine_and_moves(basic_game, rig_dice):
    player = _jail_current_player(basic_game)
    player.jail_turns = 2
    rig_dice(basic_game, (1, 2))

    basic_game.get_out_of_jail(0, "roll")

    assert not player.in_jail
    assert player.cash == 1450
    assert player.position == 13


def test_subscribers_notified_once_per_command(basic_game, rig_dice):
    """Nested rule calls produce a single snapshot for the outer command."""
    received = []
    unsubscribe = basic_game.subscribe(received.append)
    rig_dice(basic_game, (2, 3))

    basic_game.roll_dice()
    assert len(received) == 1
    assert received[0]["players"][0]["position"] == 5

    unsubscribe()
    basic_game.buy_property(0)
    assert len(received) == 1


def test_rejected_command_does_not_notify(basic_game):
    received = []
    basic_game.subscribe(received.append)
    basic_game.end_turn()
    assert received == []


def test_failing_subscriber_does_not_break_command(basic_game):
    def broken(snapshot):
        raise RuntimeError("boom")

    basic_game.subscribe(broken)
    basic_game.phase = GamePhase.RESOLVING_SPACE
    assert basic_game.end_turn()
    assert basic_game.current_player_index == 1
