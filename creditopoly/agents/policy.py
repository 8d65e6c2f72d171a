"""
Rule-based AI policy.

`decide` looks at the game and returns the next command for a player, or
None when the game is not waiting on that player. It never mutates the game;
the caller applies the command through `rules.apply_command`.
"""

import random
from typing import List, Optional

from creditopoly import economics
from creditopoly.agents.base import Agent
from creditopoly.debt import NegotiationStatus
from creditopoly.game import GamePhase, GameState
from creditopoly.rules import Command, CommandType, expected_actor, fallback_command
from creditopoly.trade import TradeOffer, TradeStatus, validate_offer

BUY_RESERVE = 100
AUCTION_RESERVE = 50
AUCTION_INCREMENT = 10
BUILD_RESERVE = 500
TRADE_RESERVE = 200
MAX_TRADE_ATTEMPTS = 3
TRADE_COOLDOWN_TURNS = 5
JAIL_CARD_VALUE = 50


def decide(game: GameState, player_id: int, rng: random.Random) -> Optional[Command]:
    """Next command for `player_id`, or None if the game is not waiting on them."""
    if game.game_over or expected_actor(game) != player_id:
        return None
    player = game.players[player_id]
    phase = game.phase

    if phase == GamePhase.AUCTION:
        return _auction_command(game, player_id)
    if phase == GamePhase.AWAITING_BUY_DECISION:
        space = game.board.get_ownable_space(player.position)
        if space is not None and player.cash >= space.price + BUY_RESERVE:
            return Command.of(CommandType.BUY_PROPERTY, position=player.position)
        return Command.of(CommandType.DECLINE_PROPERTY, position=player.position)
    if phase == GamePhase.AWAITING_TAX_DECISION:
        option, _ = economics.optimal_tax_choice(game, player_id)
        return Command.of(CommandType.CHOOSE_TAX_OPTION, option=option)
    if phase == GamePhase.AWAITING_RENT_NEGOTIATION:
        return _negotiation_command(game)
    if phase == GamePhase.AWAITING_BANKRUPTCY_DECISION:
        return Command.of(CommandType.ENTER_CHAPTER_11)
    if phase == GamePhase.TRADING:
        return _trade_response(game, player_id)

    raise_cash = _raise_cash_command(game, player_id)
    if raise_cash is not None:
        return raise_cash

    if phase == GamePhase.JAIL_DECISION:
        if player.get_out_of_jail_cards > 0:
            return Command.of(CommandType.GET_OUT_OF_JAIL, method="card")
        if player.cash >= game.config.jail_fine and player.jail_turns >= 1:
            return Command.of(CommandType.GET_OUT_OF_JAIL, method="pay")
        return Command.of(CommandType.GET_OUT_OF_JAIL, method="roll")

    if phase == GamePhase.ROLLING:
        proposal = _trade_proposal(game, player_id, rng)
        if proposal is not None:
            return proposal
        build = _build_command(game, player_id)
        if build is not None:
            return build
        return Command.of(CommandType.ROLL_DICE)

    return fallback_command(game, player_id)


def _auction_command(game: GameState, player_id: int) -> Command:
    auction = game.auction
    player = game.players[player_id]
    max_bid = min(player.cash - AUCTION_RESERVE, auction.property_price * 1.1)
    bid = auction.current_bid + AUCTION_INCREMENT
    if bid <= max_bid:
        return Command.of(CommandType.PLACE_BID, amount=bid)
    return Command.of(CommandType.PASS_AUCTION)


def _negotiation_command(game: GameState) -> Command:
    negotiation = game.pending_rent_negotiation
    if negotiation.status == NegotiationStatus.DEBTOR_DECISION:
        return Command.of(CommandType.ACCEPT_PAYMENT_PLAN)
    debtor = game.players[negotiation.debtor_id]
    if debtor.properties:
        best = max(sorted(debtor.properties), key=lambda pos: economics.effective_value(game, pos))
        return Command.of(CommandType.DEMAND_PROPERTY, position=best)
    return Command.of(CommandType.OFFER_PAYMENT_PLAN, partial_payment=debtor.cash)


def _raise_cash_command(game: GameState, player_id: int) -> Optional[Command]:
    """Sell buildings, then mortgage, while short of a Chapter 11 target."""
    player = game.players[player_id]
    if not player.in_chapter_11 or player.cash >= player.chapter_11_debt_target:
        return None
    for position in economics.owned_positions(game, player_id):
        state = game.property_states[position]
        if state.hotel:
            return Command.of(CommandType.SELL_HOTEL, position=position)
        if economics.can_sell_house(game, player_id, position)[0]:
            return Command.of(CommandType.SELL_HOUSE, position=position)
    for position in economics.owned_positions(game, player_id):
        state = game.property_states[position]
        if not state.is_mortgaged and not state.has_buildings():
            return Command.of(CommandType.MORTGAGE_PROPERTY, position=position)
    return None


def _build_command(game: GameState, player_id: int) -> Optional[Command]:
    """Develop the least built monopoly street while keeping a cash margin."""
    player = game.players[player_id]
    if player.cash <= BUILD_RESERVE:
        return None
    candidates = []
    for group in economics.monopolies(game, player_id):
        for position in game.board.get_group_positions(group):
            state = game.property_states[position]
            if not state.hotel and not state.is_mortgaged:
                candidates.append(position)
    candidates.sort(key=lambda pos: (game.property_states[pos].houses, pos))

    for position in candidates:
        if player.cash <= economics.building_cost(game, position) + BUILD_RESERVE:
            continue
        if game.property_states[position].houses == 4:
            if economics.can_build_hotel(game, player_id, position)[0]:
                return Command.of(CommandType.BUILD_HOTEL, position=position)
        elif economics.can_build_house(game, player_id, position)[0]:
            return Command.of(CommandType.BUILD_HOUSE, position=position)
    return None


def _trade_proposal(game: GameState, player_id: int, rng: random.Random) -> Optional[Command]:
    """
    Offer cash for the streets that would complete a color group.

    Only groups whose missing streets all belong to one solvent opponent are
    considered. The offer grows with each rejection and stops after a few.
    """
    player = game.players[player_id]
    if game.trade is not None or game.turn - player.last_trade_turn <= TRADE_COOLDOWN_TURNS:
        return None

    groups = list(game.board.color_groups)
    rng.shuffle(groups)
    for group in groups:
        positions = game.board.get_group_positions(group)
        owned = [pos for pos in positions if game.property_states[pos].owner_id == player_id]
        missing = [pos for pos in positions if game.property_states[pos].owner_id != player_id]
        if not owned or not missing:
            continue
        owners = {game.property_states[pos].owner_id for pos in missing}
        if len(owners) != 1 or None in owners:
            continue
        target_id = owners.pop()
        if game.players[target_id].is_bankrupt:
            continue

        attempts = max(player.trade_attempts.get(pos, 0) for pos in missing)
        if attempts >= MAX_TRADE_ATTEMPTS:
            continue
        market_value = sum(game.board.get_ownable_space(pos).price for pos in missing)
        cash_offered = int(market_value * (1.5 + 0.5 * attempts))
        if player.cash < cash_offered + TRADE_RESERVE:
            continue

        offer = TradeOffer(
            from_player=player_id,
            to_player=target_id,
            cash_offered=cash_offered,
            properties_requested=missing,
        )
        if validate_offer(game, offer)[0]:
            return Command.of(CommandType.PROPOSE_TRADE, offer=offer)
    return None


def _valuation(game: GameState, owner_id: int, cash: int, properties: List[int], jail_cards: int) -> float:
    value: float = cash + jail_cards * JAIL_CARD_VALUE
    for position in properties:
        space = game.board.get_ownable_space(position)
        if space is None:
            continue
        price: float = space.price
        group = game.board.get_group_positions(space.color_group)
        if group:
            others_owned = sum(
                1 for pos in group if pos != position and game.property_states[pos].owner_id == owner_id
            )
            if others_owned == len(group) - 1:
                price *= 3.0
            elif others_owned > 0:
                price *= 1.2
        value += price
    return value


def evaluate_trade(game: GameState, player_id: int, offer: TradeOffer) -> bool:
    """
    Accept when what `player_id` receives is worth at least 95% of what
    they give. Streets are weighted by how close they bring (or keep) the
    player to a full color group.
    """
    if offer.to_player != player_id:
        return False
    received = _valuation(game, player_id, offer.cash_offered, offer.properties_offered, offer.jail_cards_offered)
    given = _valuation(game, player_id, offer.cash_requested, offer.properties_requested, offer.jail_cards_requested)
    return received >= given * 0.95


def _trade_response(game: GameState, player_id: int) -> Command:
    trade = game.trade
    if trade.status == TradeStatus.PENDING:
        if evaluate_trade(game, player_id, trade.offer):
            return Command.of(CommandType.ACCEPT_TRADE)
        return Command.of(CommandType.REJECT_TRADE)
    if trade.status == TradeStatus.COUNTER_PENDING:
        if evaluate_trade(game, player_id, trade.counter_offer):
            return Command.of(CommandType.ACCEPT_COUNTER_OFFER)
        return Command.of(CommandType.REJECT_TRADE)
    return Command.of(CommandType.CANCEL_TRADE)


class HeuristicAgent(Agent):
    """Agent driven by the rule-based policy."""

    def __init__(self, player_id: int, name: str, seed: Optional[int] = None):
        super().__init__(player_id, name)
        self.rng = random.Random(seed)

    def choose_command(self, game: GameState, legal_commands: List[Command]) -> Command:
        command = decide(game, self.player_id, self.rng)
        if command is not None:
            return command
        return legal_commands[0]
