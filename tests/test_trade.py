"""
Tests for trading between players.
"""

from creditopoly import GameConfig, GamePhase, Player, create_game
from creditopoly.money import EventType
from creditopoly.trade import TradeOffer, TradeStatus, validate_offer


def _brown_swap(game, give):
    """Alice owns Mediterranean, Bob owns Baltic."""
    give(game, 0, 1)
    give(game, 1, 3)
    return TradeOffer(from_player=0, to_player=1, cash_offered=100, properties_offered=[1], properties_requested=[3])


def test_propose_and_accept_trade(basic_game, give):
    offer = _brown_swap(basic_game, give)

    assert basic_game.propose_trade(0, offer)
    assert basic_game.phase == GamePhase.TRADING
    assert basic_game.trade.status == TradeStatus.PENDING
    assert basic_game.trade.awaiting_player == 1

    assert basic_game.accept_trade(1)

    alice, bob = basic_game.players[0], basic_game.players[1]
    assert alice.properties == {3}
    assert bob.properties == {1}
    assert basic_game.property_states[3].owner_id == 0
    assert alice.cash == 1400
    assert bob.cash == 1600
    assert basic_game.trade is None
    assert basic_game.phase == GamePhase.ROLLING
    assert basic_game.event_log.get_events(EventType.TRADE_ACCEPTED)


def test_only_receiver_accepts(basic_game, give):
    basic_game.propose_trade(0, _brown_swap(basic_game, give))
    assert basic_game.accept_trade(0) is False


def test_reject_trade_restores_phase(basic_game, give):
    basic_game.propose_trade(0, _brown_swap(basic_game, give))

    assert basic_game.reject_trade(1)

    assert basic_game.trade is None
    assert basic_game.phase == GamePhase.ROLLING
    assert basic_game.players[0].properties == {1}


def test_rejection_counts_ai_attempts(settings, give):
    game = create_game(GameConfig(seed=42), [Player("Bot", is_ai=True), Player("Bob")], settings)
    game.propose_trade(0, _brown_swap(game, give))

    game.reject_trade(1)

    assert game.players[0].trade_attempts == {3: 1}


def test_counter_offer_flow(basic_game, give):
    offer = _brown_swap(basic_game, give)
    basic_game.propose_trade(0, offer)
    counter = TradeOffer(
        from_player=1, to_player=0, cash_requested=150, properties_offered=[3], properties_requested=[1]
    )

    assert basic_game.counter_offer(1, counter)
    assert basic_game.trade.status == TradeStatus.COUNTER_PENDING
    assert basic_game.trade.awaiting_player == 0

    assert basic_game.accept_counter_offer(0)

    assert basic_game.players[0].properties == {3}
    assert basic_game.players[0].cash == 1350
    assert basic_game.players[1].cash == 1650


def test_only_one_counter_per_trade(basic_game, give):
    basic_game.propose_trade(0, _brown_swap(basic_game, give))
    counter = TradeOffer(
        from_player=1, to_player=0, cash_requested=150, properties_offered=[3], properties_requested=[1]
    )
    basic_game.counter_offer(1, counter)

    assert basic_game.reject_trade(0)
    assert basic_game.trade.status == TradeStatus.PENDING
    assert basic_game.trade.counter_offer is None
    assert basic_game.counter_offer(1, counter) is False


def test_counter_must_go_back_to_proposer(three_player_game, give):
    three_player_game.propose_trade(0, _brown_swap(three_player_game, give))
    counter = TradeOffer(from_player=1, to_player=2, cash_offered=10)
    assert three_player_game.counter_offer(1, counter) is False


def test_either_party_may_cancel(basic_game, give):
    basic_game.propose_trade(0, _brown_swap(basic_game, give))

    assert basic_game.cancel_trade(1)

    assert basic_game.trade is None
    assert basic_game.event_log.get_events(EventType.TRADE_CANCELLED)


def test_draft_editing(basic_game, give):
    _brown_swap(basic_game, give)

    assert basic_game.start_trade(0, 1)
    assert basic_game.trade.status == TradeStatus.DRAFT
    assert basic_game.update_trade_offer(0, cash_offered=50, properties_requested=[3])
    assert basic_game.update_trade_offer(0, owner=1) is False
    assert basic_game.update_trade_offer(1, cash_offered=10) is False

    assert basic_game.propose_trade(0)

    assert basic_game.trade.offer.cash_offered == 50
    assert basic_game.trade.offer.properties_requested == [3]
    assert basic_game.trade.status == TradeStatus.PENDING


def test_only_one_trade_at_a_time(three_player_game):
    assert three_player_game.start_trade(0, 1)
    assert three_player_game.start_trade(0, 2) is False


def test_invalid_offers(basic_game, give):
    offer = _brown_swap(basic_game, give)
    basic_game.property_states[1].houses = 1

    ok, reason = validate_offer(basic_game, offer)
    assert not ok
    assert "buildings" in reason
    assert basic_game.propose_trade(0, offer) is False
    assert basic_game.trade is None

    assert not validate_offer(basic_game, TradeOffer(0, 1))[0]
    assert not validate_offer(basic_game, TradeOffer(0, 0, cash_offered=10))[0]
    assert not validate_offer(basic_game, TradeOffer(0, 1, cash_offered=5000))[0]
    assert not validate_offer(basic_game, TradeOffer(0, 1, properties_requested=[39]))[0]
    assert not validate_offer(basic_game, TradeOffer(0, 1, jail_cards_offered=1))[0]


def test_stale_offer_fails_on_accept(basic_game, give):
    """Both sides are re-checked at acceptance; nothing moves if they no longer hold."""
    offer = _brown_swap(basic_game, give)
    basic_game.propose_trade(0, offer)
    basic_game.players[0].cash = 50

    assert basic_game.accept_trade(1)

    assert basic_game.trade is None
    assert basic_game.players[0].properties == {1}
    assert basic_game.players[1].properties == {3}
    assert basic_game.players[1].cash == 1500


def test_mortgage_and_jail_cards_change_hands(basic_game, give):
    give(basic_game, 1, 39)
    basic_game.property_states[39].is_mortgaged = True
    basic_game.players[0].get_out_of_jail_cards = 1
    offer = TradeOffer(from_player=0, to_player=1, jail_cards_offered=1, properties_requested=[39])
    basic_game.propose_trade(0, offer)

    basic_game.accept_trade(1)

    assert basic_game.property_states[39].owner_id == 0
    assert basic_game.property_states[39].is_mortgaged
    assert basic_game.players[0].get_out_of_jail_cards == 0
    assert basic_game.players[1].get_out_of_jail_cards == 1


def test_propose_sets_cooldown_turn(basic_game, give):
    basic_game.propose_trade(0, _brown_swap(basic_game, give))
    assert basic_game.players[0].last_trade_turn == basic_game.turn
