"""
Tests for economic events and property value drift.
"""

import random

from creditopoly import EngineSettings, GamePhase, create_game
from creditopoly import market
from creditopoly.economics import calculate_net_worth, market_price
from creditopoly.market import EconomicEventType
from creditopoly.money import EventType
from creditopoly.player import PropertyState


def test_stimulus_pays_every_solvent_player(three_player_game):
    three_player_game.players[2].is_bankrupt = True

    three_player_game.trigger_economic_event(EconomicEventType.ECONOMIC_STIMULUS)

    assert three_player_game.players[0].cash == 1600
    assert three_player_game.players[1].cash == 1600
    assert three_player_game.players[2].cash == 1500
    assert three_player_game.economic_events == []
    assert three_player_game.bank.injections["stimulus"] == 200


def test_timed_event_is_stored_and_extended(basic_game):
    basic_game.trigger_economic_event(EconomicEventType.RECESSION)
    assert [e.event_type for e in basic_game.economic_events] == [EconomicEventType.RECESSION]
    assert basic_game.economic_events[0].rounds_remaining == 3

    basic_game.trigger_economic_event(EconomicEventType.RECESSION)
    assert len(basic_game.economic_events) == 1
    assert basic_game.economic_events[0].rounds_remaining == 6


def test_events_expire_with_rounds(basic_game):
    basic_game.trigger_economic_event(EconomicEventType.TAX_HOLIDAY)

    for _ in range(4):
        basic_game.phase = GamePhase.RESOLVING_SPACE
        basic_game.end_turn()

    assert basic_game.economic_events == []
    ended = basic_game.event_log.get_events(EventType.ECONOMIC_EVENT_ENDED)
    assert ended[-1].details["event"] == "tax_holiday"


def test_tick_returns_ended_events():
    events = []
    market.activate(events, market.EVENT_TEMPLATES[EconomicEventType.BANKING_CRISIS])
    market.activate(events, market.EVENT_TEMPLATES[EconomicEventType.RECESSION])

    assert market.tick(events) == []
    ended = market.tick(events)

    assert [e.event_type for e in ended] == [EconomicEventType.BANKING_CRISIS]
    assert [e.event_type for e in events] == [EconomicEventType.RECESSION]


def test_market_crash_lowers_property_prices(basic_game, give):
    give(basic_game, 0, 39)
    assert calculate_net_worth(basic_game, 0) == 1900

    basic_game.trigger_economic_event(EconomicEventType.MARKET_CRASH)

    assert market_price(basic_game, 39) == 320
    assert calculate_net_worth(basic_game, 0) == 1820


def test_recession_wins_over_bull_market():
    events = []
    market.activate(events, market.EVENT_TEMPLATES[EconomicEventType.RECESSION])
    market.activate(events, market.EVENT_TEMPLATES[EconomicEventType.BULL_MARKET])
    assert market.rent_modifier(events) == 0.75
    assert market.building_cost_modifier(events) == 1.0
    assert market.loan_interest_modifier([]) == 1.0


def test_pick_event_is_seeded():
    first = market.pick_event(random.Random(3))
    second = market.pick_event(random.Random(3))
    assert first is second
    assert first.event_type in market.EVENT_TEMPLATES


def test_free_parking_triggers_event(basic_game):
    basic_game.players[0].position = 20
    basic_game.resolve_space(0)
    assert basic_game.event_log.get_events(EventType.ECONOMIC_EVENT)


def test_free_parking_quiet_when_events_disabled(game_config, two_players):
    game = create_game(game_config, two_players, EngineSettings(_env_file=None, enable_economic_events=False))
    game.players[0].position = 20
    game.resolve_space(0)
    assert not game.event_log.get_events(EventType.ECONOMIC_EVENT)
    assert game.players[0].cash == 1500


def test_tax_holiday_waives_income_tax(basic_game):
    basic_game.trigger_economic_event(EconomicEventType.TAX_HOLIDAY)
    basic_game.players[0].position = 4

    basic_game.resolve_space(0)

    assert basic_game.players[0].cash == 1500
    assert basic_game.phase != GamePhase.AWAITING_TAX_DECISION


def test_value_multiplier_is_clamped():
    states = [PropertyState(value_multiplier=1.98), PropertyState(value_multiplier=0.52)]

    market.appreciate(states[:1], 0.05)
    market.depreciate(states[1:], 0.05)

    assert states[0].value_multiplier == 2.0
    assert states[1].value_multiplier == 0.5
