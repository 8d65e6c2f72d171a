"""
Tests for bank loans, rent negotiation, IOUs and Chapter 11 restructuring.
"""

import pytest

from creditopoly import EngineSettings, GamePhase, create_game
from creditopoly.debt import NegotiationStatus
from creditopoly.economics import max_loan
from creditopoly.market import EconomicEventType
from creditopoly.money import EventType
from creditopoly.rules import expected_actor


@pytest.fixture
def no_negotiation_game(game_config, two_players):
    return create_game(game_config, two_players, EngineSettings(_env_file=None, enable_rent_negotiation=False))


def _land_on_boardwalk_hotel(game, give, debtor_cash=100):
    """Player 0 lands on player 1's Boardwalk hotel (rent 2000) holding little cash."""
    give(game, 1, 39)
    game.property_states[39].hotel = True
    game.players[0].cash = debtor_cash
    game.players[0].position = 39
    game.resolve_space(0)


# Bank loans


def test_take_loan(basic_game):
    assert basic_game.take_loan(0, 200)

    player = basic_game.players[0]
    assert player.cash == 1700
    assert player.total_debt == 200
    assert basic_game.bank.injections["loan"] == 200


def test_loan_limit_is_half_of_net_worth(basic_game):
    assert max_loan(basic_game, 0) == 750
    assert basic_game.take_loan(0, 800) is False
    assert basic_game.take_loan(0, 40) is False


def test_existing_debt_reduces_loan_limit(basic_game):
    basic_game.take_loan(0, 500)
    assert max_loan(basic_game, 0) == 250


def test_loans_disabled(game_config, two_players):
    game = create_game(game_config, two_players, EngineSettings(_env_file=None, enable_bank_loans=False))
    assert game.take_loan(0, 100) is False


def test_loan_interest_accrues_at_end_of_turn(basic_game):
    basic_game.take_loan(0, 100)
    basic_game.phase = GamePhase.RESOLVING_SPACE

    basic_game.end_turn()

    assert basic_game.players[0].loans[0].total_owed == 110


def test_banking_crisis_doubles_loan_interest(basic_game):
    basic_game.take_loan(0, 100)
    basic_game.trigger_economic_event(EconomicEventType.BANKING_CRISIS)
    basic_game.phase = GamePhase.RESOLVING_SPACE

    basic_game.end_turn()

    assert basic_game.players[0].loans[0].total_owed == 120


def test_repay_loan(basic_game):
    basic_game.take_loan(0, 200)
    player = basic_game.players[0]
    loan_id = player.loans[0].loan_id

    assert basic_game.repay_loan(0, loan_id, 50)
    assert player.loans[0].total_owed == 150
    assert player.cash == 1650

    assert basic_game.repay_loan(0, loan_id, 500)
    assert player.loans == []
    assert player.cash == 1500


def test_repay_unknown_loan(basic_game):
    assert basic_game.repay_loan(0, 99, 50) is False


# Rent negotiation


def test_unaffordable_rent_opens_negotiation(basic_game, give):
    _land_on_boardwalk_hotel(basic_game, give)

    negotiation = basic_game.pending_rent_negotiation
    assert basic_game.phase == GamePhase.AWAITING_RENT_NEGOTIATION
    assert negotiation.debtor_id == 0
    assert negotiation.creditor_id == 1
    assert negotiation.rent_amount == 2000
    assert negotiation.status == NegotiationStatus.CREDITOR_DECISION
    assert expected_actor(basic_game) == 1


def test_creditor_forgives_rent(basic_game, give):
    _land_on_boardwalk_hotel(basic_game, give)

    assert basic_game.forgive_rent()

    assert basic_game.pending_rent_negotiation is None
    assert basic_game.phase == GamePhase.RESOLVING_SPACE
    assert basic_game.players[0].cash == 100
    assert basic_game.event_log.get_events(EventType.RENT_FORGIVEN)


def test_payment_plan_creates_iou(basic_game, give):
    _land_on_boardwalk_hotel(basic_game, give)

    assert basic_game.offer_payment_plan(100)
    assert basic_game.pending_rent_negotiation.status == NegotiationStatus.DEBTOR_DECISION
    assert expected_actor(basic_game) == 0
    assert basic_game.accept_payment_plan()

    debtor, creditor = basic_game.players[0], basic_game.players[1]
    assert debtor.cash == 0
    assert creditor.cash == 1600
    assert len(debtor.ious_payable) == 1
    iou = debtor.ious_payable[0]
    assert iou.current_amount == 1900
    assert creditor.ious_receivable == [iou]
    assert basic_game.phase == GamePhase.RESOLVING_SPACE


def test_rejected_plan_returns_to_creditor(basic_game, give):
    _land_on_boardwalk_hotel(basic_game, give)
    basic_game.offer_payment_plan(50)

    assert basic_game.reject_payment_plan()

    negotiation = basic_game.pending_rent_negotiation
    assert negotiation.status == NegotiationStatus.CREDITOR_DECISION
    assert negotiation.proposed_iou is None


def test_debtor_writes_own_iou(basic_game, give):
    _land_on_boardwalk_hotel(basic_game, give)
    basic_game.offer_payment_plan(100)

    assert basic_game.create_rent_iou(0, 50)

    assert basic_game.players[0].cash == 50
    assert basic_game.players[0].ious_payable[0].current_amount == 1950


def test_only_debtor_writes_rent_iou(basic_game, give):
    _land_on_boardwalk_hotel(basic_game, give)

    assert basic_game.create_rent_iou(1, 50) is False
    assert basic_game.pending_rent_negotiation is not None
    assert basic_game.create_rent_iou(0, 50)
    assert basic_game.players[0].ious_payable[0].current_amount == 1950


def test_property_in_lieu_of_rent(basic_game, give):
    """The creditor takes a property; rent above its value is paid from remaining cash."""
    give(basic_game, 0, 1)
    _land_on_boardwalk_hotel(basic_game, give)

    assert basic_game.demand_immediate_payment_or_property(1)

    assert basic_game.property_states[1].owner_id == 1
    assert basic_game.players[1].properties == {1, 39}
    assert basic_game.players[0].cash == 0
    assert basic_game.players[1].cash == 1600
    assert basic_game.pending_rent_negotiation is None


def test_demand_without_property_bankrupts_debtor(basic_game, give):
    _land_on_boardwalk_hotel(basic_game, give)

    basic_game.demand_immediate_payment_or_property()

    assert basic_game.players[0].is_bankrupt
    assert basic_game.players[1].cash == 1600
    assert basic_game.winner == 1


def test_demand_requires_debtor_property(basic_game, give):
    _land_on_boardwalk_hotel(basic_game, give)
    assert basic_game.demand_immediate_payment_or_property(3) is False


def test_iou_interest_skips_turn_of_creation(basic_game, give):
    _land_on_boardwalk_hotel(basic_game, give)
    basic_game.offer_payment_plan(100)
    basic_game.accept_payment_plan()
    iou = basic_game.players[0].ious_payable[0]

    basic_game.end_turn()
    assert iou.current_amount == 1900

    basic_game.phase = GamePhase.RESOLVING_SPACE
    basic_game.end_turn()
    basic_game.phase = GamePhase.RESOLVING_SPACE
    basic_game.end_turn()

    assert iou.current_amount == 1995


def test_pay_iou(basic_game, give):
    _land_on_boardwalk_hotel(basic_game, give)
    basic_game.offer_payment_plan(100)
    basic_game.accept_payment_plan()
    debtor, creditor = basic_game.players[0], basic_game.players[1]
    iou_id = debtor.ious_payable[0].iou_id
    debtor.cash = 2000

    assert basic_game.pay_iou(0, iou_id, 400)
    assert debtor.ious_payable[0].current_amount == 1500
    assert creditor.cash == 2000

    assert basic_game.pay_iou(0, iou_id)
    assert debtor.ious_payable == []
    assert creditor.ious_receivable == []
    assert debtor.cash == 100


def test_pay_iou_needs_cash(basic_game, give):
    _land_on_boardwalk_hotel(basic_game, give)
    basic_game.offer_payment_plan(0)
    basic_game.accept_payment_plan()
    debtor = basic_game.players[0]
    debtor.cash = 0

    assert basic_game.pay_iou(0, debtor.ious_payable[0].iou_id) is False


# Chapter 11


def test_insolvency_offers_restructuring(no_negotiation_game, give):
    game = no_negotiation_game
    give(game, 0, 1)
    _land_on_boardwalk_hotel(game, give)

    assert game.phase == GamePhase.AWAITING_BANKRUPTCY_DECISION
    assert game.pending_bankruptcy.debt_amount == 2000
    assert game.pending_bankruptcy.creditor_id == 1
    assert expected_actor(game) == 0


def test_enter_chapter_11(no_negotiation_game, give):
    game = no_negotiation_game
    give(game, 0, 1)
    _land_on_boardwalk_hotel(game, give)

    assert game.enter_chapter_11(0)

    player = game.players[0]
    assert player.in_chapter_11
    assert player.chapter_11_turns_remaining == 5
    assert player.chapter_11_debt_target == 2000
    assert game.phase == GamePhase.RESOLVING_SPACE

    game.end_turn()
    assert player.chapter_11_turns_remaining == 4


def test_chapter_11_exit_pays_creditor(no_negotiation_game, give):
    game = no_negotiation_game
    give(game, 0, 1)
    _land_on_boardwalk_hotel(game, give)
    game.enter_chapter_11(0)
    player = game.players[0]
    player.cash = 2500
    player.chapter_11_turns_remaining = 1

    game.end_turn()

    assert not player.in_chapter_11
    assert player.cash == 500
    assert game.players[1].cash == 3500
    assert game.event_log.get_events(EventType.CHAPTER_11_EXITED)


def test_chapter_11_failure_is_bankruptcy(no_negotiation_game, give):
    game = no_negotiation_game
    give(game, 0, 1)
    _land_on_boardwalk_hotel(game, give)
    game.enter_chapter_11(0)
    game.players[0].chapter_11_turns_remaining = 1

    game.end_turn()

    assert game.players[0].is_bankrupt
    assert game.winner == 1


def test_no_restructuring_without_property(no_negotiation_game, give):
    _land_on_boardwalk_hotel(no_negotiation_game, give)
    assert no_negotiation_game.players[0].is_bankrupt
    assert no_negotiation_game.players[1].cash == 1600


def test_decline_restructuring(no_negotiation_game, give):
    game = no_negotiation_game
    give(game, 0, 1)
    _land_on_boardwalk_hotel(game, give)

    assert game.decline_restructuring(0)

    assert game.players[0].is_bankrupt
    assert game.property_states[1].owner_id == 1
