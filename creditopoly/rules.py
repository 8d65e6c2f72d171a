"""
High-level rules API for controlling game flow.

Controllers (people, AI agents, simulations) talk to the engine through
`Command` values: `get_legal_commands` lists what a player may do now, and
`apply_command` checks that the player is the one the game is waiting on
before dispatching to the matching `GameState` method.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from creditopoly import economics
from creditopoly.debt import NegotiationStatus
from creditopoly.exceptions import UnknownCommandError
from creditopoly.game import MANAGEMENT_PHASES, GamePhase, GameState
from creditopoly.trade import TradeOffer, TradeStatus

logger = logging.getLogger(__name__)


class CommandType(Enum):
    """Everything a player can ask the engine to do."""

    ROLL_DICE = "roll_dice"
    END_TURN = "end_turn"
    BUY_PROPERTY = "buy_property"
    DECLINE_PROPERTY = "decline_property"
    PLACE_BID = "place_bid"
    PASS_AUCTION = "pass_auction"
    GET_OUT_OF_JAIL = "get_out_of_jail"
    CHOOSE_TAX_OPTION = "choose_tax_option"
    START_BUILDING = "start_building"
    FINISH_BUILDING = "finish_building"
    BUILD_HOUSE = "build_house"
    BUILD_HOTEL = "build_hotel"
    SELL_HOUSE = "sell_house"
    SELL_HOTEL = "sell_hotel"
    MORTGAGE_PROPERTY = "mortgage_property"
    UNMORTGAGE_PROPERTY = "unmortgage_property"
    BUY_INSURANCE = "buy_insurance"
    TAKE_LOAN = "take_loan"
    REPAY_LOAN = "repay_loan"
    PAY_IOU = "pay_iou"
    FORGIVE_RENT = "forgive_rent"
    DEMAND_PROPERTY = "demand_immediate_payment_or_property"
    OFFER_PAYMENT_PLAN = "offer_payment_plan"
    ACCEPT_PAYMENT_PLAN = "accept_payment_plan"
    REJECT_PAYMENT_PLAN = "reject_payment_plan"
    CREATE_RENT_IOU = "create_rent_iou"
    ENTER_CHAPTER_11 = "enter_chapter_11"
    DECLINE_RESTRUCTURING = "decline_restructuring"
    DECLARE_BANKRUPTCY = "declare_bankruptcy"
    START_TRADE = "start_trade"
    UPDATE_TRADE_OFFER = "update_trade_offer"
    PROPOSE_TRADE = "propose_trade"
    ACCEPT_TRADE = "accept_trade"
    REJECT_TRADE = "reject_trade"
    CANCEL_TRADE = "cancel_trade"
    COUNTER_OFFER = "counter_offer"
    ACCEPT_COUNTER_OFFER = "accept_counter_offer"


class Command(BaseModel):
    """A command value: what to do and its parameters."""

    model_config = ConfigDict(frozen=True)

    command_type: CommandType
    params: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("command_type", mode="before")
    @classmethod
    def known_command(cls, value):
        if isinstance(value, CommandType):
            return value
        try:
            return CommandType(value)
        except ValueError:
            raise UnknownCommandError(f"Unknown command type: {value!r}") from None

    @classmethod
    def of(cls, command_type: Any, **params: Any) -> "Command":
        return cls(command_type=command_type, params=params)

    def __repr__(self) -> str:
        return f"Command({self.command_type.value}, {self.params})"


# Commands any party of the open trade may send, whoever the trade waits on
_EITHER_TRADE_PARTY = (CommandType.CANCEL_TRADE,)

# Commands the debtor may send at any point of a rent negotiation
_DEBTOR_ANY_TIME = (CommandType.CREATE_RENT_IOU,)

_NEGOTIATION_COMMANDS = {
    NegotiationStatus.CREDITOR_DECISION: (
        CommandType.FORGIVE_RENT,
        CommandType.DEMAND_PROPERTY,
        CommandType.OFFER_PAYMENT_PLAN,
    ),
    NegotiationStatus.DEBTOR_DECISION: (
        CommandType.ACCEPT_PAYMENT_PLAN,
        CommandType.REJECT_PAYMENT_PLAN,
    ),
}


def expected_actor(game: GameState) -> Optional[int]:
    """The player whose input the game is waiting for, or None once it is over."""
    if game.game_over:
        return None
    if game.phase == GamePhase.AUCTION and game.auction is not None:
        return game.auction.active_bidder_id
    if game.phase == GamePhase.TRADING and game.trade is not None:
        return game.trade.awaiting_player
    if game.phase == GamePhase.AWAITING_RENT_NEGOTIATION and game.pending_rent_negotiation is not None:
        negotiation = game.pending_rent_negotiation
        if negotiation.status == NegotiationStatus.CREDITOR_DECISION:
            return negotiation.creditor_id
        return negotiation.debtor_id
    if game.phase == GamePhase.AWAITING_BANKRUPTCY_DECISION and game.pending_bankruptcy is not None:
        return game.pending_bankruptcy.player_id
    if game.phase == GamePhase.AWAITING_TAX_DECISION and game.pending_tax_decision is not None:
        return game.pending_tax_decision.player_id
    return game.current_player_index


def _actor_allowed(game: GameState, command: Command, actor: int) -> bool:
    if command.command_type in _EITHER_TRADE_PARTY and game.trade is not None:
        return game.trade.involves(actor)
    if game.phase == GamePhase.AWAITING_RENT_NEGOTIATION and game.pending_rent_negotiation is not None:
        if command.command_type in _DEBTOR_ANY_TIME:
            return actor == game.pending_rent_negotiation.debtor_id
        allowed = _NEGOTIATION_COMMANDS[game.pending_rent_negotiation.status]
        if command.command_type not in allowed:
            return False
    return actor == expected_actor(game)


def _offer_param(value: Any) -> TradeOffer:
    if isinstance(value, TradeOffer):
        return value
    return TradeOffer(**value)


# Each handler receives (game, actor, params)
_HANDLERS: Dict[CommandType, Callable[[GameState, int, Dict[str, Any]], Any]] = {
    CommandType.ROLL_DICE: lambda g, a, p: g.roll_dice() is not None,
    CommandType.END_TURN: lambda g, a, p: g.end_turn(),
    CommandType.BUY_PROPERTY: lambda g, a, p: g.buy_property(a, p.get("position")),
    CommandType.DECLINE_PROPERTY: lambda g, a, p: g.decline_property(a, p.get("position")),
    CommandType.PLACE_BID: lambda g, a, p: g.place_bid(a, int(p["amount"])),
    CommandType.PASS_AUCTION: lambda g, a, p: g.pass_auction(a),
    CommandType.GET_OUT_OF_JAIL: lambda g, a, p: g.get_out_of_jail(a, p.get("method", "roll")),
    CommandType.CHOOSE_TAX_OPTION: lambda g, a, p: g.choose_tax_option(a, p["option"]),
    CommandType.START_BUILDING: lambda g, a, p: g.start_building(a),
    CommandType.FINISH_BUILDING: lambda g, a, p: g.finish_building(a),
    CommandType.BUILD_HOUSE: lambda g, a, p: g.build_house(a, p["position"]),
    CommandType.BUILD_HOTEL: lambda g, a, p: g.build_hotel(a, p["position"]),
    CommandType.SELL_HOUSE: lambda g, a, p: g.sell_house(a, p["position"]),
    CommandType.SELL_HOTEL: lambda g, a, p: g.sell_hotel(a, p["position"]),
    CommandType.MORTGAGE_PROPERTY: lambda g, a, p: g.mortgage_property(a, p["position"]),
    CommandType.UNMORTGAGE_PROPERTY: lambda g, a, p: g.unmortgage_property(a, p["position"]),
    CommandType.BUY_INSURANCE: lambda g, a, p: g.buy_insurance(a, p["position"]),
    CommandType.TAKE_LOAN: lambda g, a, p: g.take_loan(a, int(p["amount"])),
    CommandType.REPAY_LOAN: lambda g, a, p: g.repay_loan(a, p["loan_id"], int(p["amount"])),
    CommandType.PAY_IOU: lambda g, a, p: g.pay_iou(a, p["iou_id"], p.get("amount")),
    CommandType.FORGIVE_RENT: lambda g, a, p: g.forgive_rent(),
    CommandType.DEMAND_PROPERTY: lambda g, a, p: g.demand_immediate_payment_or_property(p.get("position")),
    CommandType.OFFER_PAYMENT_PLAN: lambda g, a, p: g.offer_payment_plan(
        int(p.get("partial_payment", 0)), p.get("interest_rate")
    ),
    CommandType.ACCEPT_PAYMENT_PLAN: lambda g, a, p: g.accept_payment_plan(),
    CommandType.REJECT_PAYMENT_PLAN: lambda g, a, p: g.reject_payment_plan(),
    CommandType.CREATE_RENT_IOU: lambda g, a, p: g.create_rent_iou(a, int(p.get("partial_payment", 0))),
    CommandType.ENTER_CHAPTER_11: lambda g, a, p: g.enter_chapter_11(a),
    CommandType.DECLINE_RESTRUCTURING: lambda g, a, p: g.decline_restructuring(a),
    CommandType.DECLARE_BANKRUPTCY: lambda g, a, p: g.declare_bankruptcy(a),
    CommandType.START_TRADE: lambda g, a, p: g.start_trade(a, p["to_player"]),
    CommandType.UPDATE_TRADE_OFFER: lambda g, a, p: g.update_trade_offer(a, **p),
    CommandType.PROPOSE_TRADE: lambda g, a, p: g.propose_trade(
        a, _offer_param(p["offer"]) if "offer" in p else None
    ),
    CommandType.ACCEPT_TRADE: lambda g, a, p: g.accept_trade(a),
    CommandType.REJECT_TRADE: lambda g, a, p: g.reject_trade(a),
    CommandType.CANCEL_TRADE: lambda g, a, p: g.cancel_trade(a),
    CommandType.COUNTER_OFFER: lambda g, a, p: g.counter_offer(a, _offer_param(p["offer"])),
    CommandType.ACCEPT_COUNTER_OFFER: lambda g, a, p: g.accept_counter_offer(a),
}


def apply_command(game: GameState, command: Command, actor: Optional[int] = None) -> bool:
    """
    Apply a command on behalf of `actor` (defaults to the player the game is
    waiting on).

    Returns True if the command changed the state, False if it was rejected.
    Raises UnknownCommandError for a command type without a handler.
    """
    handler = _HANDLERS.get(command.command_type)
    if handler is None:
        raise UnknownCommandError(f"No handler for {command.command_type}")
    if actor is None:
        actor = expected_actor(game)
        if actor is None:
            return False
    if not _actor_allowed(game, command, actor):
        logger.debug(f"Player {actor} may not {command.command_type.value} in phase {game.phase.value}")
        return False
    try:
        return bool(handler(game, actor, command.params))
    except (KeyError, TypeError, ValueError) as e:
        logger.debug(f"Malformed {command!r}: {e}")
        return False


def get_legal_commands(game: GameState, player_id: int) -> List[Command]:
    """
    Get the commands available to a player right now.

    Parameterised commands carry sensible defaults (the minimum bid, the
    position to build on...) that a controller may change.
    """
    player = game.players.get(player_id)
    if player is None or player.is_bankrupt or game.game_over:
        return []

    phase = game.phase
    trade = game.trade
    if phase == GamePhase.TRADING and trade is not None and trade.involves(player_id):
        commands = _trade_commands(game, player_id)
        commands.append(Command.of(CommandType.CANCEL_TRADE))
        return commands

    negotiation = game.pending_rent_negotiation
    if (
        phase == GamePhase.AWAITING_RENT_NEGOTIATION
        and negotiation is not None
        and negotiation.status == NegotiationStatus.CREDITOR_DECISION
        and negotiation.debtor_id == player_id
    ):
        return [Command.of(CommandType.CREATE_RENT_IOU, partial_payment=player.cash)]

    if player_id != expected_actor(game):
        return []

    if phase == GamePhase.AUCTION:
        commands = [Command.of(CommandType.PASS_AUCTION)]
        bid = game.auction.minimum_bid()
        if player.cash >= bid:
            commands.insert(0, Command.of(CommandType.PLACE_BID, amount=bid))
        return commands

    if phase == GamePhase.AWAITING_BUY_DECISION:
        commands = [Command.of(CommandType.DECLINE_PROPERTY, position=player.position)]
        space = game.board.get_ownable_space(player.position)
        if space is not None and player.cash >= space.price:
            commands.insert(0, Command.of(CommandType.BUY_PROPERTY, position=player.position))
        return commands

    if phase == GamePhase.AWAITING_TAX_DECISION:
        return [
            Command.of(CommandType.CHOOSE_TAX_OPTION, option="flat"),
            Command.of(CommandType.CHOOSE_TAX_OPTION, option="percentage"),
        ]

    if phase == GamePhase.AWAITING_RENT_NEGOTIATION:
        return _negotiation_commands(game)

    if phase == GamePhase.AWAITING_BANKRUPTCY_DECISION:
        return [Command.of(CommandType.ENTER_CHAPTER_11), Command.of(CommandType.DECLINE_RESTRUCTURING)]

    commands: List[Command] = []
    if phase == GamePhase.JAIL_DECISION:
        commands.append(Command.of(CommandType.GET_OUT_OF_JAIL, method="roll"))
        if player.cash >= game.config.jail_fine:
            commands.append(Command.of(CommandType.GET_OUT_OF_JAIL, method="pay"))
        if player.get_out_of_jail_cards > 0:
            commands.append(Command.of(CommandType.GET_OUT_OF_JAIL, method="card"))
    elif phase == GamePhase.ROLLING:
        commands.append(Command.of(CommandType.ROLL_DICE))
    elif phase == GamePhase.RESOLVING_SPACE:
        commands.append(Command.of(CommandType.END_TURN))
        commands.append(Command.of(CommandType.START_BUILDING))
    elif phase == GamePhase.BUILDING:
        commands.append(Command.of(CommandType.FINISH_BUILDING))
        commands.append(Command.of(CommandType.END_TURN))

    if phase in MANAGEMENT_PHASES:
        commands.extend(_management_commands(game, player_id))
        if trade is None:
            for other in game.get_active_players():
                if other.player_id != player_id:
                    commands.append(Command.of(CommandType.START_TRADE, to_player=other.player_id))
    return commands


def _management_commands(game: GameState, player_id: int) -> List[Command]:
    """Building, mortgage, insurance and credit commands."""
    commands: List[Command] = []
    player = game.players[player_id]

    for position in sorted(player.properties):
        state = game.property_states[position]
        if economics.can_build_house(game, player_id, position)[0]:
            if player.cash >= economics.building_cost(game, position):
                commands.append(Command.of(CommandType.BUILD_HOUSE, position=position))
        if economics.can_build_hotel(game, player_id, position)[0]:
            if player.cash >= economics.building_cost(game, position):
                commands.append(Command.of(CommandType.BUILD_HOTEL, position=position))
        if state.hotel:
            commands.append(Command.of(CommandType.SELL_HOTEL, position=position))
        elif economics.can_sell_house(game, player_id, position)[0]:
            commands.append(Command.of(CommandType.SELL_HOUSE, position=position))

        if state.is_mortgaged:
            if player.cash >= economics.unmortgage_cost(game, position):
                commands.append(Command.of(CommandType.UNMORTGAGE_PROPERTY, position=position))
        elif not state.has_buildings():
            commands.append(Command.of(CommandType.MORTGAGE_PROPERTY, position=position))

        if (
            game.settings.enable_property_insurance
            and not state.insured
            and player.cash >= game.insurance_premium(position)
        ):
            commands.append(Command.of(CommandType.BUY_INSURANCE, position=position))

    if game.settings.enable_bank_loans:
        limit = economics.max_loan(game, player_id)
        if limit >= game.settings.min_loan_amount:
            commands.append(Command.of(CommandType.TAKE_LOAN, amount=game.settings.min_loan_amount))
    for loan in player.loans:
        amount = min(loan.total_owed, player.cash)
        if amount > 0:
            commands.append(Command.of(CommandType.REPAY_LOAN, loan_id=loan.loan_id, amount=amount))
    for iou in player.ious_payable:
        if player.cash > 0:
            commands.append(Command.of(CommandType.PAY_IOU, iou_id=iou.iou_id))
    return commands


def _negotiation_commands(game: GameState) -> List[Command]:
    negotiation = game.pending_rent_negotiation
    if negotiation is None:
        return []
    if negotiation.status == NegotiationStatus.DEBTOR_DECISION:
        debtor_cash = game.players[negotiation.debtor_id].cash
        return [
            Command.of(CommandType.ACCEPT_PAYMENT_PLAN),
            Command.of(CommandType.REJECT_PAYMENT_PLAN),
            Command.of(CommandType.CREATE_RENT_IOU, partial_payment=debtor_cash),
        ]
    debtor = game.players[negotiation.debtor_id]
    commands = [
        Command.of(CommandType.FORGIVE_RENT),
        Command.of(CommandType.OFFER_PAYMENT_PLAN, partial_payment=debtor.cash),
    ]
    for position in sorted(debtor.properties):
        commands.append(Command.of(CommandType.DEMAND_PROPERTY, position=position))
    commands.append(Command.of(CommandType.DEMAND_PROPERTY))
    return commands


def _trade_commands(game: GameState, player_id: int) -> List[Command]:
    trade = game.trade
    if trade.awaiting_player != player_id:
        return []
    if trade.status == TradeStatus.DRAFT:
        return [Command.of(CommandType.UPDATE_TRADE_OFFER), Command.of(CommandType.PROPOSE_TRADE)]
    if trade.status == TradeStatus.PENDING:
        commands = [Command.of(CommandType.ACCEPT_TRADE), Command.of(CommandType.REJECT_TRADE)]
        if not trade.countered:
            commands.append(Command.of(CommandType.COUNTER_OFFER, offer=trade.offer.reversed()))
        return commands
    if trade.status == TradeStatus.COUNTER_PENDING:
        return [Command.of(CommandType.ACCEPT_COUNTER_OFFER), Command.of(CommandType.REJECT_TRADE)]
    return []


def fallback_command(game: GameState, player_id: int) -> Optional[Command]:
    """
    A safe default for a player who did not answer in time.

    Keeps the game moving without committing the player to new spending.
    """
    if game.game_over or player_id != expected_actor(game):
        return None
    player = game.players[player_id]
    phase = game.phase

    if phase == GamePhase.AUCTION:
        return Command.of(CommandType.PASS_AUCTION)
    if phase == GamePhase.AWAITING_BUY_DECISION:
        return Command.of(CommandType.DECLINE_PROPERTY)
    if phase == GamePhase.AWAITING_TAX_DECISION:
        option, _ = economics.optimal_tax_choice(game, player_id)
        return Command.of(CommandType.CHOOSE_TAX_OPTION, option=option)
    if phase == GamePhase.AWAITING_RENT_NEGOTIATION:
        negotiation = game.pending_rent_negotiation
        if negotiation.status == NegotiationStatus.CREDITOR_DECISION:
            debtor_cash = game.players[negotiation.debtor_id].cash
            return Command.of(CommandType.OFFER_PAYMENT_PLAN, partial_payment=debtor_cash)
        return Command.of(CommandType.ACCEPT_PAYMENT_PLAN)
    if phase == GamePhase.AWAITING_BANKRUPTCY_DECISION:
        return Command.of(CommandType.ENTER_CHAPTER_11)
    if phase == GamePhase.TRADING:
        if game.trade.status == TradeStatus.DRAFT:
            return Command.of(CommandType.CANCEL_TRADE)
        return Command.of(CommandType.REJECT_TRADE)
    if phase == GamePhase.JAIL_DECISION:
        if player.get_out_of_jail_cards > 0:
            return Command.of(CommandType.GET_OUT_OF_JAIL, method="card")
        return Command.of(CommandType.GET_OUT_OF_JAIL, method="roll")
    if phase == GamePhase.ROLLING:
        return Command.of(CommandType.ROLL_DICE)
    if phase in (GamePhase.RESOLVING_SPACE, GamePhase.BUILDING):
        return Command.of(CommandType.END_TURN)
    return None
