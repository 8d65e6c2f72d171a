"""
Main game engine and state management.

`GameState` is the single aggregate for a game. Every rule is a method that
returns True when it changed the state and False when its preconditions did
not hold, in which case nothing was modified. Subscribers receive a fresh
snapshot after each accepted top-level command.
"""

import functools
import logging
import math
import random
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from creditopoly import economics, market
from creditopoly.auction import Auction
from creditopoly.board import BOARD_SIZE, JAIL_POSITION, Board
from creditopoly.cards import Card, CardEffect, DeckType, create_chance_deck, create_community_chest_deck
from creditopoly.config import GameConfig
from creditopoly.debt import (
    IOU,
    BankLoan,
    NegotiationStatus,
    PendingBankruptcy,
    PendingTaxDecision,
    ProposedIOU,
    RentNegotiation,
)
from creditopoly.exceptions import GameSetupError
from creditopoly.money import Bank, EventLog, EventType
from creditopoly.player import Player, PlayerState, PropertyState
from creditopoly.settings import EngineSettings, get_engine_settings
from creditopoly.spaces import SpaceType, TaxSpace
from creditopoly.trade import Trade, TradeOffer, TradeStatus, validate_offer

logger = logging.getLogger(__name__)


class GamePhase(Enum):
    """Turn/phase state machine states."""

    SETUP = "setup"
    ROLLING = "rolling"
    MOVING = "moving"
    RESOLVING_SPACE = "resolving_space"
    AWAITING_BUY_DECISION = "awaiting_buy_decision"
    AWAITING_TAX_DECISION = "awaiting_tax_decision"
    AWAITING_RENT_NEGOTIATION = "awaiting_rent_negotiation"
    AWAITING_BANKRUPTCY_DECISION = "awaiting_bankruptcy_decision"
    AUCTION = "auction"
    TRADING = "trading"
    BUILDING = "building"
    JAIL_DECISION = "jail_decision"
    GAME_OVER = "game_over"


# Phases in which the current player may manage assets (build, mortgage, borrow...)
MANAGEMENT_PHASES = (GamePhase.ROLLING, GamePhase.RESOLVING_SPACE, GamePhase.BUILDING, GamePhase.JAIL_DECISION)

TRADE_EDITABLE_FIELDS = (
    "cash_offered",
    "cash_requested",
    "properties_offered",
    "properties_requested",
    "jail_cards_offered",
    "jail_cards_requested",
)


def command(method):
    """Mark a public command: subscribers are notified once the outermost command succeeds."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        self._command_depth += 1
        try:
            result = method(self, *args, **kwargs)
        finally:
            self._command_depth -= 1
        if result and self._command_depth == 0:
            self._notify()
        return result

    return wrapper


class GameState:
    """
    Represents the complete state of a game.
    This is the main interface for the rules engine.
    """

    def __init__(
        self,
        config: GameConfig,
        players: Sequence[Player],
        settings: Optional[EngineSettings] = None,
    ):
        self.config = config
        self.settings = settings if settings is not None else get_engine_settings()
        self._subscribers: List[Callable[[Dict[str, Any]], None]] = []
        self._command_depth = 0
        self._advancing_turn = False
        self.init_game(
            [p.name for p in players],
            [p.token for p in players],
            [p.is_ai for p in players],
        )

    # ------------------------------------------------------------------
    # Setup and helpers
    # ------------------------------------------------------------------

    @command
    def init_game(
        self,
        names: Sequence[str],
        tokens: Optional[Sequence[str]] = None,
        ai_flags: Optional[Sequence[bool]] = None,
    ) -> bool:
        """Reset the game with a fresh board, shuffled decks and seated players."""
        if not self.config.min_players <= len(names) <= self.config.max_players:
            raise GameSetupError(
                f"Need {self.config.min_players}-{self.config.max_players} players, got {len(names)}"
            )
        tokens = list(tokens) if tokens else [""] * len(names)
        ai_flags = list(ai_flags) if ai_flags else [False] * len(names)

        self.phase = GamePhase.SETUP
        self.rng = random.Random(self.config.seed)
        self.board = Board()
        self.bank = Bank(self.config.house_limit, self.config.hotel_limit)
        self.event_log = EventLog()

        self.players: Dict[int, PlayerState] = {
            index: PlayerState(index, name, self.config.starting_cash, tokens[index], bool(ai_flags[index]))
            for index, name in enumerate(names)
        }
        self.property_states: Dict[int, PropertyState] = {
            pos: PropertyState() for pos in self.board.get_ownable_positions()
        }

        self.chance_deck = create_chance_deck(self.rng, include_jackpot=self.settings.enable_jackpot)
        self.community_chest_deck = create_community_chest_deck(self.rng)

        self.current_player_index = 0
        self.turn = 1
        self.rounds_completed = 0
        self.current_go_salary = self.config.go_salary
        self.dice: Optional[Tuple[int, int]] = None
        self.consecutive_doubles = 0
        self.extra_roll_pending = False
        self.passed_go = False
        self.last_card_drawn: Optional[Card] = None
        self.previous_phase: Optional[GamePhase] = None

        self.auction: Optional[Auction] = None
        self.trade: Optional[Trade] = None
        self.pending_tax_decision: Optional[PendingTaxDecision] = None
        self.pending_rent_negotiation: Optional[RentNegotiation] = None
        self.pending_bankruptcy: Optional[PendingBankruptcy] = None

        self.economic_events: List[market.ActiveEvent] = []
        self.utility_multiplier_override: Optional[int] = None
        self.jackpot = 0
        self.market_history: List[Dict[str, Any]] = []
        self.winner: Optional[int] = None

        self._next_loan_id = 1
        self._next_iou_id = 1

        self.event_log.turn = self.turn
        self.event_log.log(
            EventType.GAME_START,
            players=list(names),
            starting_cash=self.config.starting_cash,
            seed=self.config.seed,
        )
        self.phase = GamePhase.ROLLING
        logger.info(f"Game started with {len(names)} players (seed={self.config.seed})")
        return True

    def subscribe(self, callback: Callable[[Dict[str, Any]], None]) -> Callable[[], None]:
        """
        Register a callback receiving a snapshot after every accepted command.
        Returns a function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        if not self._subscribers:
            return
        from creditopoly.snapshot import serialize_snapshot

        snapshot = serialize_snapshot(self)
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Snapshot subscriber failed")

    def _reject(self, reason: str) -> bool:
        logger.debug(f"Command rejected: {reason}")
        return False

    @property
    def current_player(self) -> PlayerState:
        return self.players[self.current_player_index]

    @property
    def game_over(self) -> bool:
        return self.phase == GamePhase.GAME_OVER

    def get_active_players(self) -> List[PlayerState]:
        """Get all non-bankrupt players in seat order."""
        return [p for _, p in sorted(self.players.items()) if not p.is_bankrupt]

    def _player(self, player_id: Optional[int]) -> Optional[PlayerState]:
        if player_id is None:
            return None
        return self.players.get(player_id)

    def _dice_total(self) -> int:
        return sum(self.dice) if self.dice else 7

    def _can_manage(self, player_id: int) -> bool:
        player = self._player(player_id)
        return player is not None and not player.is_bankrupt and self.phase in MANAGEMENT_PHASES

    def _take_buildings(self, houses: int = 0, hotels: int = 0) -> None:
        if self.settings.enable_housing_scarcity:
            self.bank.release(houses=houses, hotels=hotels)

    def _return_buildings(self, houses: int = 0, hotels: int = 0) -> None:
        if self.settings.enable_housing_scarcity:
            self.bank.restock(houses=houses, hotels=hotels)

    def _group_states(self, position: int) -> List[PropertyState]:
        space = self.board.get_property_space(position)
        if space is None:
            return []
        return [self.property_states[p] for p in self.board.get_group_positions(space.color_group)]

    # ------------------------------------------------------------------
    # Dice, movement and space resolution
    # ------------------------------------------------------------------

    def _roll_pair(self) -> Tuple[int, int]:
        return self.rng.randint(1, 6), self.rng.randint(1, 6)

    @command
    def roll_dice(self) -> Optional[Tuple[int, int]]:
        """
        Roll two dice for the current player and move them.
        A third consecutive double sends the player to jail instead of moving.
        """
        if self.phase != GamePhase.ROLLING:
            self._reject(f"roll_dice in phase {self.phase.value}")
            return None

        player = self.current_player
        die1, die2 = self._roll_pair()
        is_doubles = die1 == die2
        self.dice = (die1, die2)
        self.consecutive_doubles = self.consecutive_doubles + 1 if is_doubles else 0
        self.extra_roll_pending = is_doubles

        self.event_log.log(
            EventType.DICE_ROLL,
            player_id=player.player_id,
            die1=die1,
            die2=die2,
            total=die1 + die2,
            doubles=is_doubles,
        )

        if self.consecutive_doubles >= self.config.max_consecutive_doubles:
            self.go_to_jail(player.player_id)
            return (die1, die2)

        self.phase = GamePhase.MOVING
        self.move_player(player.player_id, die1 + die2)
        return (die1, die2)

    @command
    def move_player(self, player_id: int, steps: int) -> bool:
        """
        Move a player by `steps` spaces and resolve the space they land on.
        Passing or landing on GO while moving forward pays the GO salary.
        """
        player = self._player(player_id)
        if player is None or player.in_jail or player.is_bankrupt:
            return self._reject(f"move_player for jailed/bankrupt/unknown player {player_id}")

        old_position = player.position
        new_position = (old_position + steps) % BOARD_SIZE
        if steps > 0 and new_position < old_position:
            self._collect_go(player)

        player.position = new_position
        self.event_log.log(
            EventType.MOVE, player_id=player_id, from_position=old_position, to_position=new_position, spaces=steps
        )

        self.phase = GamePhase.RESOLVING_SPACE
        self.resolve_space(player_id)
        return True

    def _collect_go(self, player: PlayerState) -> None:
        self.bank.credit(player, self.current_go_salary, "go_salary")
        self.passed_go = True
        self.event_log.log(
            EventType.PASS_GO,
            player_id=player.player_id,
            amount=self.current_go_salary,
            new_balance=player.cash,
        )

    @command
    def resolve_space(self, player_id: int) -> bool:
        """Apply the effect of the space the player stands on."""
        player = self._player(player_id)
        if player is None or player.is_bankrupt:
            return self._reject(f"resolve_space for unknown/bankrupt player {player_id}")

        space = self.board.get_space(player.position)
        self.event_log.log(EventType.LAND, player_id=player_id, space=space.name, position=space.position)

        if space.is_ownable:
            state = self.property_states[space.position]
            if not state.is_owned():
                self.utility_multiplier_override = None
                self.phase = GamePhase.AWAITING_BUY_DECISION
            elif state.owner_id != player_id and not state.is_mortgaged:
                self.pay_rent(player_id, space.position, self._dice_total())
            else:
                self.utility_multiplier_override = None
        elif space.space_type == SpaceType.CHANCE:
            self.draw_card(player_id, DeckType.CHANCE)
        elif space.space_type == SpaceType.COMMUNITY_CHEST:
            self.draw_card(player_id, DeckType.COMMUNITY_CHEST)
        elif space.space_type == SpaceType.TAX:
            self._resolve_tax(player, space)
        elif space.space_type == SpaceType.GO_TO_JAIL:
            self.go_to_jail(player_id)
        elif space.space_type == SpaceType.FREE_PARKING:
            self._resolve_free_parking(player)
        return True

    def _resolve_free_parking(self, player: PlayerState) -> None:
        if self.settings.enable_economic_events:
            self.trigger_economic_event()
        if self.settings.enable_jackpot and self.jackpot > 0:
            if self.rng.random() < self.settings.jackpot_win_chance:
                amount = self.jackpot
                self.jackpot = 0
                self.bank.credit(player, amount, "jackpot")
                self.event_log.log(EventType.JACKPOT, player_id=player.player_id, amount=amount)

    # ------------------------------------------------------------------
    # Jail
    # ------------------------------------------------------------------

    @command
    def go_to_jail(self, player_id: int) -> bool:
        """Send a player directly to jail without passing GO."""
        player = self._player(player_id)
        if player is None or player.is_bankrupt:
            return self._reject(f"go_to_jail for unknown/bankrupt player {player_id}")

        player.position = JAIL_POSITION
        player.in_jail = True
        player.jail_turns = 0
        self.consecutive_doubles = 0
        self.extra_roll_pending = False
        self.dice = None
        self.phase = GamePhase.RESOLVING_SPACE

        self.event_log.log(EventType.GO_TO_JAIL, player_id=player_id)
        self.event_log.log(EventType.TURN_PAUSE_SUGGESTED, player_id=player_id, reason="jailed")
        return True

    @command
    def get_out_of_jail(self, player_id: int, method: str) -> bool:
        """
        Leave jail by paying the fine, using a card, or rolling.

        Rolling doubles releases the player and moves them by the roll (no
        extra roll). A failed roll ends the turn; after the third failed roll
        the fine is paid and the player moves by that roll.
        """
        player = self._player(player_id)
        if player is None or not player.in_jail or player.is_bankrupt:
            return self._reject(f"get_out_of_jail: player {player_id} is not in jail")
        if self.phase != GamePhase.JAIL_DECISION or player_id != self.current_player_index:
            return self._reject(f"get_out_of_jail in phase {self.phase.value}")

        if method == "pay":
            if player.cash < self.config.jail_fine:
                return self._reject("cannot afford jail fine")
            self.bank.debit(player, self.config.jail_fine, "jail_fine")
            self._release_from_jail(player, "fine")
            self.phase = GamePhase.ROLLING
            return True

        if method == "card":
            if player.get_out_of_jail_cards <= 0:
                return self._reject("no Get Out of Jail Free card")
            player.get_out_of_jail_cards -= 1
            self._release_from_jail(player, "card")
            self.phase = GamePhase.ROLLING
            return True

        if method != "roll":
            return self._reject(f"unknown jail method {method!r}")

        die1, die2 = self._roll_pair()
        self.dice = (die1, die2)
        self.extra_roll_pending = False
        player.jail_turns += 1
        self.event_log.log(
            EventType.JAIL_ATTEMPT,
            player_id=player_id,
            attempt=player.jail_turns,
            die1=die1,
            die2=die2,
            doubles=die1 == die2,
        )

        if die1 == die2:
            self._release_from_jail(player, "doubles")
            self.phase = GamePhase.MOVING
            self.move_player(player_id, die1 + die2)
        elif player.jail_turns >= self.config.max_jail_turns:
            if player.cash < self.config.jail_fine:
                self._handle_insolvency(player_id, None, self.config.jail_fine)
                return True
            self.bank.debit(player, self.config.jail_fine, "jail_fine")
            self._release_from_jail(player, "forced_fine")
            self.phase = GamePhase.MOVING
            self.move_player(player_id, die1 + die2)
        else:
            self._advance_turn()
        return True

    def _release_from_jail(self, player: PlayerState, method: str) -> None:
        player.in_jail = False
        player.jail_turns = 0
        self.event_log.log(EventType.JAIL_RELEASE, player_id=player.player_id, method=method)

    # ------------------------------------------------------------------
    # Purchases and auctions
    # ------------------------------------------------------------------

    def _pending_purchase_position(self, player_id: int, position: Optional[int]) -> Optional[int]:
        if self.phase != GamePhase.AWAITING_BUY_DECISION or player_id != self.current_player_index:
            return None
        player_position = self.players[player_id].position
        if position is not None and position != player_position:
            return None
        return player_position

    @command
    def buy_property(self, player_id: int, position: Optional[int] = None) -> bool:
        """
        Current player buys the unowned space they landed on at its printed price.
        Returns True if successful, False otherwise.
        """
        position = self._pending_purchase_position(player_id, position)
        if position is None:
            return self._reject("buy_property outside a pending purchase")
        space = self.board.get_ownable_space(position)
        state = self.property_states.get(position)
        if space is None or state is None or state.is_owned():
            return self._reject(f"position {position} cannot be bought")

        player = self.players[player_id]
        if player.cash < space.price:
            return self._reject(f"{player.name} cannot afford {space.name}")

        self.bank.debit(player, space.price, "purchase")
        state.owner_id = player_id
        player.properties.add(position)
        self.phase = GamePhase.RESOLVING_SPACE

        self.event_log.log(
            EventType.PURCHASE,
            player_id=player_id,
            property=space.name,
            position=position,
            price=space.price,
            new_balance=player.cash,
        )
        return True

    @command
    def decline_property(self, player_id: int, position: Optional[int] = None) -> bool:
        """Decline a purchase; the property goes to auction."""
        position = self._pending_purchase_position(player_id, position)
        if position is None:
            return self._reject("decline_property outside a pending purchase")
        return self.start_auction(position)

    @command
    def start_auction(self, position: int) -> bool:
        """Open bidding on an unowned space, starting with the current player."""
        space = self.board.get_ownable_space(position)
        if space is None or self.property_states[position].is_owned():
            return self._reject(f"cannot auction position {position}")
        if self.auction is not None or self.game_over:
            return self._reject("an auction is already running")

        bidders = [p.player_id for p in self.get_active_players()]
        self.auction = Auction(position, space.name, space.price, bidders, self.current_player_index, self.event_log)
        self.phase = GamePhase.AUCTION
        if self.auction.is_complete:
            self.end_auction()
        return True

    @command
    def place_bid(self, player_id: int, amount: int) -> bool:
        """Active bidder raises the bid. The bid must be affordable."""
        if self.auction is None:
            return self._reject("no auction running")
        player = self._player(player_id)
        if player is None or player.is_bankrupt or amount > player.cash:
            return self._reject(f"bid of {amount} not affordable")
        if not self.auction.place_bid(player_id, amount):
            return self._reject(f"bid of {amount} by player {player_id} refused")
        if self.auction.is_complete:
            self.end_auction()
        return True

    @command
    def pass_auction(self, player_id: int) -> bool:
        """Active bidder drops out; resolves the auction when one bidder remains."""
        if self.auction is None:
            return self._reject("no auction running")
        if not self.auction.pass_turn(player_id):
            return self._reject(f"player {player_id} cannot pass now")
        if self.auction.is_complete:
            self.end_auction()
        return True

    @command
    def end_auction(self) -> bool:
        """
        Award the property to the high bidder, who pays their bid.
        Without a bid the property stays with the bank.
        """
        auction = self.auction
        if auction is None:
            return self._reject("no auction running")

        winner_id = auction.high_bidder
        winner = self._player(winner_id)
        if winner is not None and auction.current_bid > 0 and winner.cash >= auction.current_bid:
            self.bank.debit(winner, auction.current_bid, "auction")
            self.property_states[auction.property_position].owner_id = winner_id
            winner.properties.add(auction.property_position)
        else:
            winner_id = None

        self.event_log.log(
            EventType.AUCTION_END,
            player_id=winner_id,
            property=auction.property_name,
            position=auction.property_position,
            winning_bid=auction.current_bid if winner_id is not None else 0,
            winner=winner_id,
        )
        self.auction = None
        self.phase = GamePhase.RESOLVING_SPACE
        return True

    # ------------------------------------------------------------------
    # Rent, taxes and bank charges
    # ------------------------------------------------------------------

    @command
    def pay_rent(self, payer_id: int, position: int, dice_total: Optional[int] = None) -> bool:
        """
        Charge rent for landing on an owned, unmortgaged space.
        Unaffordable rent opens a negotiation, a restructuring offer, or bankruptcy.
        """
        state = self.property_states.get(position)
        payer = self._player(payer_id)
        if state is None or payer is None or payer.is_bankrupt:
            return self._reject(f"pay_rent: invalid payer {payer_id} or position {position}")
        if not state.is_owned() or state.owner_id == payer_id or state.is_mortgaged:
            return self._reject(f"pay_rent: no rent due on position {position}")

        rent = economics.calculate_rent(self, position, dice_total)
        self.utility_multiplier_override = None
        owner = self.players[state.owner_id]
        if rent <= 0:
            return True

        if payer.cash >= rent:
            Bank.transfer(payer, owner, rent)
            self.event_log.log(
                EventType.RENT_PAYMENT,
                player_id=payer_id,
                owner=owner.player_id,
                position=position,
                amount=rent,
                payer_balance=payer.cash,
                owner_balance=owner.cash,
            )
            return True

        if self.settings.enable_rent_negotiation:
            self.pending_rent_negotiation = RentNegotiation(
                debtor_id=payer_id,
                creditor_id=owner.player_id,
                property_position=position,
                rent_amount=rent,
                debtor_cash=payer.cash,
            )
            self.phase = GamePhase.AWAITING_RENT_NEGOTIATION
            self.event_log.log(
                EventType.RENT_NEGOTIATION,
                player_id=payer_id,
                creditor=owner.player_id,
                position=position,
                amount=rent,
            )
        else:
            self._handle_insolvency(payer_id, owner.player_id, rent)
        return True

    def _resolve_tax(self, player: PlayerState, space: TaxSpace) -> None:
        if not space.is_income_tax:
            self.pay_tax(player.player_id, space.amount)
            return
        if market.is_active(self.economic_events, market.EconomicEventType.TAX_HOLIDAY):
            self.event_log.log(EventType.TAX_PAYMENT, player_id=player.player_id, amount=0, waived=True)
            return
        if not self.settings.enable_progressive_tax:
            self.pay_tax(player.player_id, self.config.income_tax)
            return
        if player.is_ai:
            _, amount = economics.optimal_tax_choice(self, player.player_id)
            self.pay_tax(player.player_id, amount)
            return
        self.pending_tax_decision = PendingTaxDecision(
            player_id=player.player_id,
            flat_amount=self.config.income_tax,
            percentage_amount=economics.ten_percent_tax(self, player.player_id),
        )
        self.phase = GamePhase.AWAITING_TAX_DECISION

    @command
    def choose_tax_option(self, player_id: int, option: str) -> bool:
        """Settle a pending income tax decision: 'flat' or 'percentage'."""
        pending = self.pending_tax_decision
        if pending is None or pending.player_id != player_id or self.phase != GamePhase.AWAITING_TAX_DECISION:
            return self._reject("no tax decision pending for this player")
        if option == "flat":
            amount = pending.flat_amount
        elif option == "percentage":
            amount = pending.percentage_amount
        else:
            return self._reject(f"unknown tax option {option!r}")

        self.pending_tax_decision = None
        self.phase = GamePhase.RESOLVING_SPACE
        self.event_log.log(EventType.TAX_DECISION, player_id=player_id, option=option, amount=amount)
        self.pay_tax(player_id, amount)
        return True

    @command
    def pay_tax(self, player_id: int, amount: int) -> bool:
        """Pay tax to the bank, or fall into restructuring/bankruptcy."""
        player = self._player(player_id)
        if player is None or player.is_bankrupt or amount < 0:
            return self._reject(f"pay_tax: invalid player {player_id} or amount {amount}")
        if self._charge_to_bank(player, amount, "tax"):
            self.event_log.log(EventType.TAX_PAYMENT, player_id=player_id, amount=amount, new_balance=player.cash)
        return True

    def _charge_to_bank(self, player: PlayerState, amount: int, reason: str) -> bool:
        """Debit the player, or route an unaffordable charge to insolvency. Returns True if paid."""
        if amount <= 0:
            return True
        if player.cash >= amount:
            self.bank.debit(player, amount, reason)
            return True
        self._handle_insolvency(player.player_id, None, amount)
        return False

    def _handle_insolvency(self, debtor_id: int, creditor_id: Optional[int], amount: int) -> None:
        if self.settings.enable_bankruptcy_restructuring:
            self.offer_restructuring(debtor_id, creditor_id, amount)
        else:
            self.declare_bankruptcy(debtor_id, creditor_id)

    # ------------------------------------------------------------------
    # Buildings, mortgages and insurance
    # ------------------------------------------------------------------

    @command
    def start_building(self, player_id: int) -> bool:
        """Enter the building phase from the current player's turn."""
        if player_id != self.current_player_index or self.phase not in (GamePhase.ROLLING, GamePhase.RESOLVING_SPACE):
            return self._reject("start_building outside the current player's turn")
        self.previous_phase = self.phase
        self.phase = GamePhase.BUILDING
        return True

    @command
    def finish_building(self, player_id: int) -> bool:
        if self.phase != GamePhase.BUILDING or player_id != self.current_player_index:
            return self._reject("finish_building outside the building phase")
        self.phase = self.previous_phase or GamePhase.RESOLVING_SPACE
        self.previous_phase = None
        return True

    def _appreciate_group(self, position: int, multiplier: float = 1.0) -> None:
        if not self.settings.enable_property_value_fluctuation:
            return
        space = self.board.get_property_space(position)
        market.appreciate(self._group_states(position), self.settings.appreciation_rate * multiplier)
        self.event_log.log(EventType.VALUE_CHANGE, group=space.color_group, direction="up")

    def _depreciate_group(self, position: int) -> None:
        if not self.settings.enable_property_value_fluctuation:
            return
        space = self.board.get_property_space(position)
        market.depreciate(self._group_states(position), self.settings.appreciation_rate)
        self.event_log.log(EventType.VALUE_CHANGE, group=space.color_group, direction="down")

    @command
    def build_house(self, player_id: int, position: int) -> bool:
        """
        Build one house. Requires the whole color group, even building,
        supply in the bank and cash for the (event-adjusted) building cost.
        """
        if not self._can_manage(player_id):
            return self._reject(f"build_house in phase {self.phase.value}")
        ok, reason = economics.can_build_house(self, player_id, position)
        if not ok:
            return self._reject(reason)
        cost = economics.building_cost(self, position)
        player = self.players[player_id]
        if player.cash < cost:
            return self._reject(f"{player.name} cannot afford a house")

        state = self.property_states[position]
        self.bank.debit(player, cost, "building")
        self._take_buildings(houses=1)
        state.houses += 1
        self._appreciate_group(position)

        self.event_log.log(
            EventType.BUILD_HOUSE,
            player_id=player_id,
            position=position,
            houses=state.houses,
            cost=cost,
            new_balance=player.cash,
        )
        return True

    @command
    def build_hotel(self, player_id: int, position: int) -> bool:
        """Replace four houses with a hotel; the houses return to the bank."""
        if not self._can_manage(player_id):
            return self._reject(f"build_hotel in phase {self.phase.value}")
        ok, reason = economics.can_build_hotel(self, player_id, position)
        if not ok:
            return self._reject(reason)
        cost = economics.building_cost(self, position)
        player = self.players[player_id]
        if player.cash < cost:
            return self._reject(f"{player.name} cannot afford a hotel")

        state = self.property_states[position]
        self.bank.debit(player, cost, "building")
        self._take_buildings(hotels=1)
        self._return_buildings(houses=4)
        state.houses = 0
        state.hotel = True
        self._appreciate_group(position, multiplier=2)

        self.event_log.log(
            EventType.BUILD_HOTEL, player_id=player_id, position=position, cost=cost, new_balance=player.cash
        )
        return True

    @command
    def sell_house(self, player_id: int, position: int) -> bool:
        """Sell one house back to the bank for half its cost."""
        if not self._can_manage(player_id):
            return self._reject(f"sell_house in phase {self.phase.value}")
        ok, reason = economics.can_sell_house(self, player_id, position)
        if not ok:
            return self._reject(reason)

        state = self.property_states[position]
        player = self.players[player_id]
        refund = economics.building_refund(self, position)
        state.houses -= 1
        self._return_buildings(houses=1)
        self.bank.credit(player, refund, "building_sale")
        self._depreciate_group(position)

        self.event_log.log(
            EventType.SELL_BUILDING,
            player_id=player_id,
            position=position,
            type="house",
            sale_price=refund,
            houses=state.houses,
            new_balance=player.cash,
        )
        return True

    @command
    def sell_hotel(self, player_id: int, position: int) -> bool:
        """
        Sell a hotel for half its cost, leaving four houses.
        Not possible while the bank cannot supply those four houses.
        """
        if not self._can_manage(player_id):
            return self._reject(f"sell_hotel in phase {self.phase.value}")
        state = self.property_states.get(position)
        if state is None or state.owner_id != player_id or not state.hotel:
            return self._reject(f"no hotel of player {player_id} on position {position}")
        if self.settings.enable_housing_scarcity and not self.bank.has_supply(houses=4):
            return self._reject("bank cannot supply four houses for the downgrade")

        player = self.players[player_id]
        refund = economics.building_refund(self, position)
        self._return_buildings(hotels=1)
        self._take_buildings(houses=4)
        state.hotel = False
        state.houses = 4
        self.bank.credit(player, refund, "building_sale")
        self._depreciate_group(position)

        self.event_log.log(
            EventType.SELL_BUILDING,
            player_id=player_id,
            position=position,
            type="hotel",
            sale_price=refund,
            houses=4,
            new_balance=player.cash,
        )
        return True

    @command
    def mortgage_property(self, player_id: int, position: int) -> bool:
        """
        Mortgage a property without buildings for its mortgage value.
        With the jackpot enabled part of the value is paid into the jackpot.
        """
        if not self._can_manage(player_id):
            return self._reject(f"mortgage_property in phase {self.phase.value}")
        state = self.property_states.get(position)
        if state is None or state.owner_id != player_id:
            return self._reject(f"player {player_id} does not own position {position}")
        if state.is_mortgaged or state.has_buildings():
            return self._reject("property is mortgaged or has buildings")

        player = self.players[player_id]
        value = economics.effective_mortgage_value(self, position)
        contribution = 0
        if self.settings.enable_jackpot:
            contribution = int(value * self.settings.jackpot_mortgage_share)
            self.jackpot += contribution
        self.bank.credit(player, value - contribution, "mortgage")
        state.is_mortgaged = True

        self.event_log.log(
            EventType.MORTGAGE,
            player_id=player_id,
            position=position,
            value=value,
            jackpot_contribution=contribution,
            new_balance=player.cash,
        )
        return True

    @command
    def unmortgage_property(self, player_id: int, position: int) -> bool:
        """Lift a mortgage by paying the mortgage value plus 10% interest (rounded down)."""
        if not self._can_manage(player_id):
            return self._reject(f"unmortgage_property in phase {self.phase.value}")
        state = self.property_states.get(position)
        if state is None or state.owner_id != player_id or not state.is_mortgaged:
            return self._reject(f"position {position} is not a mortgaged property of player {player_id}")

        cost = economics.unmortgage_cost(self, position)
        player = self.players[player_id]
        if player.cash < cost:
            return self._reject(f"{player.name} cannot afford to unmortgage")

        self.bank.debit(player, cost, "unmortgage")
        state.is_mortgaged = False
        self.event_log.log(
            EventType.UNMORTGAGE, player_id=player_id, position=position, cost=cost, new_balance=player.cash
        )
        return True

    def insurance_premium(self, position: int) -> int:
        space = self.board.get_ownable_space(position)
        if space is None:
            return 0
        return math.ceil(space.price * self.settings.insurance_cost_percent)

    @command
    def buy_insurance(self, player_id: int, position: int) -> bool:
        """Insure an owned property for a fixed number of rounds."""
        if not self.settings.enable_property_insurance:
            return self._reject("insurance is disabled")
        if not self._can_manage(player_id):
            return self._reject(f"buy_insurance in phase {self.phase.value}")
        state = self.property_states.get(position)
        if state is None or state.owner_id != player_id or state.insured:
            return self._reject(f"position {position} cannot be insured by player {player_id}")

        premium = self.insurance_premium(position)
        player = self.players[player_id]
        if player.cash < premium:
            return self._reject(f"{player.name} cannot afford the premium")

        self.bank.debit(player, premium, "insurance")
        state.insured = True
        state.insured_until = self.rounds_completed + self.settings.insurance_duration_rounds
        self.event_log.log(
            EventType.INSURANCE_PURCHASE,
            player_id=player_id,
            position=position,
            premium=premium,
            insured_until=state.insured_until,
        )
        return True

    def _expire_insurance(self) -> None:
        for position, state in self.property_states.items():
            if state.insured and state.insured_until <= self.rounds_completed:
                state.insured = False
                self.event_log.log(EventType.INSURANCE_EXPIRED, player_id=state.owner_id, position=position)

    # ------------------------------------------------------------------
    # Cards
    # ------------------------------------------------------------------

    @command
    def draw_card(self, player_id: int, deck_type: DeckType) -> Optional[Card]:
        """Draw the top card of a deck, apply it, and cycle it to the bottom."""
        player = self._player(player_id)
        if player is None or player.is_bankrupt:
            self._reject(f"draw_card for unknown/bankrupt player {player_id}")
            return None
        deck_type = DeckType(deck_type)
        deck = self.chance_deck if deck_type == DeckType.CHANCE else self.community_chest_deck
        card = deck.draw()
        self.last_card_drawn = card
        self.event_log.log(EventType.CARD_DRAW, player_id=player_id, deck=deck_type.value, card=card.text)
        self.apply_card_effect(card, player_id)
        return card

    @command
    def apply_card_effect(self, card: Card, player_id: int) -> bool:
        """Interpret a card's effect descriptor for a player."""
        player = self._player(player_id)
        if player is None or player.is_bankrupt:
            return self._reject(f"apply_card_effect for unknown/bankrupt player {player_id}")
        effect = card.effect
        self.event_log.log(EventType.CARD_EFFECT, player_id=player_id, card_id=card.card_id, card=card.text)

        if effect.jail_free_card:
            player.get_out_of_jail_cards += 1

        if effect.go_to_jail:
            self.go_to_jail(player_id)
            return True

        if effect.cash_change > 0:
            self.bank.credit(player, effect.cash_change, "card")
        elif effect.cash_change < 0:
            self._charge_to_bank(player, -effect.cash_change, "card")

        if effect.per_house_cost or effect.per_hotel_cost:
            repairs = self.repair_cost(player_id, effect.per_house_cost, effect.per_hotel_cost)
            self._charge_to_bank(player, repairs, "repairs")

        if effect.collect_from_each:
            for other in self.get_active_players():
                if other.player_id != player_id:
                    Bank.transfer(other, player, min(other.cash, effect.collect_from_each))

        if effect.pay_to_each:
            others = [p for p in self.get_active_players() if p.player_id != player_id]
            total = effect.pay_to_each * len(others)
            if player.cash >= total:
                for other in others:
                    Bank.transfer(player, other, effect.pay_to_each)
            else:
                self._handle_insolvency(player_id, None, total)

        if effect.jackpot_percentage and self.jackpot > 0:
            amount = int(self.jackpot * effect.jackpot_percentage)
            self.jackpot -= amount
            self.bank.credit(player, amount, "jackpot")
            self.event_log.log(EventType.JACKPOT, player_id=player_id, amount=amount)

        if effect.utility_multiplier is not None:
            self.utility_multiplier_override = effect.utility_multiplier

        if effect.moves_player and not player.is_bankrupt:
            self._move_by_card(player, effect)
        return True

    def repair_cost(self, player_id: int, per_house: int, per_hotel: int) -> int:
        """Repair bill for a player's buildings; insured properties may be exempt."""
        total = 0
        for position in economics.owned_positions(self, player_id):
            state = self.property_states[position]
            if state.insured and self.settings.insurance_covers_repairs:
                continue
            total += per_hotel if state.hotel else per_house * state.houses
        return total

    def _move_by_card(self, player: PlayerState, effect: CardEffect) -> None:
        old_position = player.position
        if effect.advance_to is not None:
            target = effect.advance_to
        elif effect.advance_to_nearest is not None:
            target = self.board.nearest_ahead(SpaceType(effect.advance_to_nearest), old_position)
        else:
            target = (old_position + effect.move_steps) % BOARD_SIZE

        absolute = effect.move_steps is None
        if absolute and effect.pass_go_bonus and target < old_position:
            self._collect_go(player)
        player.position = target
        self.event_log.log(
            EventType.MOVE, player_id=player.player_id, from_position=old_position, to_position=target, card=True
        )
        if effect.trigger_space_resolution:
            self.phase = GamePhase.RESOLVING_SPACE
            self.resolve_space(player.player_id)

    # ------------------------------------------------------------------
    # Economic events
    # ------------------------------------------------------------------

    @command
    def trigger_economic_event(self, event_type: Optional[market.EconomicEventType] = None) -> bool:
        """Put an economic event into force; a weighted random one unless given."""
        if event_type is None:
            template = market.pick_event(self.rng)
        else:
            template = market.EVENT_TEMPLATES[market.EconomicEventType(event_type)]

        if template.event_type == market.EconomicEventType.ECONOMIC_STIMULUS:
            for player in self.get_active_players():
                self.bank.credit(player, market.STIMULUS_AMOUNT, "stimulus")
            rounds = 0
        else:
            rounds = market.activate(self.economic_events, template).rounds_remaining

        self.event_log.log(
            EventType.ECONOMIC_EVENT,
            event=template.event_type.value,
            description=template.description,
            rounds_remaining=rounds,
        )
        return True

    # ------------------------------------------------------------------
    # Bank loans
    # ------------------------------------------------------------------

    @command
    def take_loan(self, player_id: int, amount: int) -> bool:
        """Borrow from the bank, up to a share of net worth less existing debt."""
        if not self.settings.enable_bank_loans:
            return self._reject("bank loans are disabled")
        if not self._can_manage(player_id):
            return self._reject(f"take_loan in phase {self.phase.value}")
        limit = economics.max_loan(self, player_id)
        if amount < self.settings.min_loan_amount or amount > limit:
            return self._reject(f"loan of {amount} outside [{self.settings.min_loan_amount}, {limit}]")

        player = self.players[player_id]
        loan = BankLoan(
            loan_id=self._next_loan_id,
            amount=amount,
            interest_rate=self.settings.loan_interest_rate,
            turn_taken=self.turn,
            total_owed=amount,
        )
        self._next_loan_id += 1
        player.loans.append(loan)
        self.bank.credit(player, amount, "loan")

        self.event_log.log(EventType.LOAN_TAKEN, player_id=player_id, loan_id=loan.loan_id, amount=amount)
        return True

    @command
    def repay_loan(self, player_id: int, loan_id: int, amount: int) -> bool:
        """Repay part or all of a loan. A fully repaid loan is closed."""
        player = self._player(player_id)
        if player is None or player.is_bankrupt:
            return self._reject(f"repay_loan for unknown/bankrupt player {player_id}")
        loan = next((l for l in player.loans if l.loan_id == loan_id), None)
        if loan is None:
            return self._reject(f"player {player_id} has no loan {loan_id}")
        payment = min(amount, loan.total_owed)
        if payment <= 0 or payment > player.cash:
            return self._reject(f"repayment of {amount} not possible")

        self.bank.debit(player, payment, "loan_repayment")
        loan.total_owed -= payment
        if loan.total_owed <= 0:
            player.loans.remove(loan)

        self.event_log.log(
            EventType.LOAN_REPAID,
            player_id=player_id,
            loan_id=loan_id,
            amount=payment,
            remaining=max(0, loan.total_owed),
        )
        return True

    def _apply_loan_interest(self, player: PlayerState) -> None:
        multiplier = market.loan_interest_modifier(self.economic_events)
        for loan in player.loans:
            interest = loan.interest_due(multiplier)
            loan.total_owed += interest
            self.event_log.log(
                EventType.LOAN_INTEREST,
                player_id=player.player_id,
                loan_id=loan.loan_id,
                interest=interest,
                total_owed=loan.total_owed,
            )

    # ------------------------------------------------------------------
    # Rent negotiation and IOUs
    # ------------------------------------------------------------------

    def _close_negotiation(self) -> None:
        self.pending_rent_negotiation = None
        if self.phase == GamePhase.AWAITING_RENT_NEGOTIATION:
            self.phase = GamePhase.RESOLVING_SPACE

    @command
    def forgive_rent(self) -> bool:
        """Creditor waives the unpaid rent."""
        negotiation = self.pending_rent_negotiation
        if negotiation is None or negotiation.status != NegotiationStatus.CREDITOR_DECISION:
            return self._reject("no rent negotiation awaiting the creditor")
        self.event_log.log(
            EventType.RENT_FORGIVEN,
            player_id=negotiation.creditor_id,
            debtor=negotiation.debtor_id,
            amount=negotiation.rent_amount,
        )
        self._close_negotiation()
        return True

    @command
    def demand_immediate_payment_or_property(self, position: Optional[int] = None) -> bool:
        """
        Creditor takes a property in lieu of rent, or forces bankruptcy.

        The property is valued at its mortgage value if mortgaged, else its
        price. Rent above that value is paid from whatever cash the debtor has.
        """
        negotiation = self.pending_rent_negotiation
        if negotiation is None or negotiation.status != NegotiationStatus.CREDITOR_DECISION:
            return self._reject("no rent negotiation awaiting the creditor")
        debtor = self.players[negotiation.debtor_id]
        creditor = self.players[negotiation.creditor_id]

        if position is None:
            self.pending_rent_negotiation = None
            self.declare_bankruptcy(debtor.player_id, creditor.player_id)
            return True

        state = self.property_states.get(position)
        if state is None or state.owner_id != debtor.player_id:
            return self._reject(f"debtor does not own position {position}")

        if state.is_mortgaged:
            value = economics.effective_mortgage_value(self, position)
        else:
            value = economics.effective_value(self, position)
        shortfall = max(0, negotiation.rent_amount - value)
        cash_paid = Bank.transfer(debtor, creditor, min(shortfall, debtor.cash))
        self._transfer_property(position, debtor, creditor)

        self.event_log.log(
            EventType.PROPERTY_IN_LIEU,
            player_id=debtor.player_id,
            creditor=creditor.player_id,
            position=position,
            value=value,
            cash_paid=cash_paid,
        )
        self._close_negotiation()
        return True

    @command
    def offer_payment_plan(self, partial_payment: int, interest_rate: Optional[float] = None) -> bool:
        """Creditor proposes cash now plus an IOU for the rest; the debtor decides."""
        negotiation = self.pending_rent_negotiation
        if negotiation is None or negotiation.status != NegotiationStatus.CREDITOR_DECISION:
            return self._reject("no rent negotiation awaiting the creditor")
        debtor = self.players[negotiation.debtor_id]
        partial = max(0, min(int(partial_payment), debtor.cash, negotiation.rent_amount))
        rate = self.settings.iou_interest_rate if interest_rate is None else interest_rate
        if rate < 0:
            return self._reject("negative interest rate")

        negotiation.proposed_iou = ProposedIOU(
            partial_payment=partial,
            iou_amount=negotiation.rent_amount - partial,
            interest_rate=rate,
        )
        negotiation.status = NegotiationStatus.DEBTOR_DECISION
        return True

    @command
    def accept_payment_plan(self) -> bool:
        negotiation = self.pending_rent_negotiation
        if negotiation is None or negotiation.status != NegotiationStatus.DEBTOR_DECISION:
            return self._reject("no payment plan awaiting the debtor")
        plan = negotiation.proposed_iou
        self._settle_with_iou(negotiation, plan.partial_payment, plan.interest_rate)
        return True

    @command
    def reject_payment_plan(self) -> bool:
        """Debtor refuses the plan; the decision returns to the creditor."""
        negotiation = self.pending_rent_negotiation
        if negotiation is None or negotiation.status != NegotiationStatus.DEBTOR_DECISION:
            return self._reject("no payment plan awaiting the debtor")
        negotiation.proposed_iou = None
        negotiation.status = NegotiationStatus.CREDITOR_DECISION
        return True

    @command
    def create_rent_iou(self, debtor_id: int, partial_payment: int) -> bool:
        """
        Debtor pays what they can now and owes the remainder as an IOU.

        Open to the debtor whether or not the creditor has decided yet.
        """
        negotiation = self.pending_rent_negotiation
        if negotiation is None:
            return self._reject("no rent negotiation pending")
        if negotiation.debtor_id != debtor_id:
            return self._reject(f"player {debtor_id} is not the debtor")
        self._settle_with_iou(negotiation, partial_payment, self.settings.iou_interest_rate)
        return True

    def _settle_with_iou(self, negotiation: RentNegotiation, partial_payment: int, rate: float) -> None:
        debtor = self.players[negotiation.debtor_id]
        creditor = self.players[negotiation.creditor_id]
        paid = Bank.transfer(debtor, creditor, max(0, min(int(partial_payment), debtor.cash)))
        remaining = negotiation.rent_amount - paid
        if remaining > 0:
            iou = IOU(
                iou_id=self._next_iou_id,
                debtor_id=debtor.player_id,
                creditor_id=creditor.player_id,
                original_amount=remaining,
                current_amount=remaining,
                interest_rate=rate,
                turn_created=self.turn,
                reason=f"Rent on {self.board.get_space(negotiation.property_position).name}",
            )
            self._next_iou_id += 1
            debtor.ious_payable.append(iou)
            creditor.ious_receivable.append(iou)
            self.event_log.log(
                EventType.IOU_CREATED,
                player_id=debtor.player_id,
                creditor=creditor.player_id,
                iou_id=iou.iou_id,
                amount=remaining,
                partial_payment=paid,
            )
        self._close_negotiation()

    @command
    def pay_iou(self, debtor_id: int, iou_id: int, amount: Optional[int] = None) -> bool:
        """Pay down an IOU, in full when no amount is given (capped at cash)."""
        debtor = self._player(debtor_id)
        if debtor is None or debtor.is_bankrupt:
            return self._reject(f"pay_iou for unknown/bankrupt player {debtor_id}")
        iou = next((i for i in debtor.ious_payable if i.iou_id == iou_id), None)
        if iou is None:
            return self._reject(f"player {debtor_id} owes no IOU {iou_id}")
        owed = iou.current_amount
        payment = int(min(amount if amount is not None else owed, owed, debtor.cash))
        if payment < 1:
            return self._reject("IOU payment must be at least 1")

        creditor = self.players[iou.creditor_id]
        Bank.transfer(debtor, creditor, payment)
        iou.current_amount -= payment
        if iou.current_amount <= 0:
            debtor.ious_payable.remove(iou)
            creditor.ious_receivable.remove(iou)

        self.event_log.log(
            EventType.IOU_PAYMENT,
            player_id=debtor_id,
            creditor=creditor.player_id,
            iou_id=iou_id,
            amount=payment,
            remaining=max(0, iou.current_amount),
        )
        return True

    def _accrue_iou_interest(self, player: PlayerState) -> None:
        for iou in player.ious_payable:
            if iou.turn_created >= self.turn:
                continue
            interest = iou.interest_due()
            if interest <= 0:
                continue
            iou.current_amount += interest
            self.event_log.log(
                EventType.IOU_INTEREST,
                player_id=player.player_id,
                iou_id=iou.iou_id,
                interest=interest,
                current_amount=iou.current_amount,
            )

    def _transfer_property(self, position: int, giver: PlayerState, receiver: PlayerState) -> None:
        """Hand a property over with its mortgage; any buildings go back to the bank."""
        state = self.property_states[position]
        if state.hotel:
            self._return_buildings(hotels=1)
            state.hotel = False
        elif state.houses:
            self._return_buildings(houses=state.houses)
            state.houses = 0
        state.owner_id = receiver.player_id
        giver.properties.discard(position)
        receiver.properties.add(position)

    # ------------------------------------------------------------------
    # Restructuring and bankruptcy
    # ------------------------------------------------------------------

    @command
    def offer_restructuring(self, player_id: int, creditor_id: Optional[int], debt_amount: int) -> bool:
        """
        Offer Chapter 11 to an insolvent player who still owns property.
        Without that option the player goes bankrupt immediately.
        """
        player = self._player(player_id)
        if player is None or player.is_bankrupt:
            return self._reject(f"offer_restructuring for unknown/bankrupt player {player_id}")
        if not self.settings.enable_bankruptcy_restructuring or player.in_chapter_11 or not player.properties:
            return self.declare_bankruptcy(player_id, creditor_id)

        self.pending_bankruptcy = PendingBankruptcy(player_id, creditor_id, debt_amount)
        self.phase = GamePhase.AWAITING_BANKRUPTCY_DECISION
        self.event_log.log(
            EventType.RESTRUCTURING_OFFERED,
            player_id=player_id,
            creditor=creditor_id,
            debt=debt_amount,
        )
        return True

    @command
    def enter_chapter_11(self, player_id: int) -> bool:
        """Accept restructuring: raise the debt target within a fixed number of turns."""
        pending = self.pending_bankruptcy
        if pending is None or pending.player_id != player_id:
            return self._reject(f"no restructuring offer for player {player_id}")

        player = self.players[player_id]
        player.in_chapter_11 = True
        player.chapter_11_turns_remaining = self.settings.chapter11_turns
        player.chapter_11_debt_target = pending.debt_amount
        player.chapter_11_creditor_id = pending.creditor_id
        self.pending_bankruptcy = None
        if self.trade is not None and self.trade.involves(player_id):
            self.trade = None
            self.previous_phase = None
        self.phase = GamePhase.RESOLVING_SPACE

        self.event_log.log(
            EventType.CHAPTER_11_ENTERED,
            player_id=player_id,
            debt_target=pending.debt_amount,
            turns=player.chapter_11_turns_remaining,
        )
        return True

    @command
    def decline_restructuring(self, player_id: int) -> bool:
        pending = self.pending_bankruptcy
        if pending is None or pending.player_id != player_id:
            return self._reject(f"no restructuring offer for player {player_id}")
        self.pending_bankruptcy = None
        self.phase = GamePhase.RESOLVING_SPACE
        return self.declare_bankruptcy(player_id, pending.creditor_id)

    def _check_chapter_11(self, player: PlayerState) -> None:
        player.chapter_11_turns_remaining -= 1
        if player.chapter_11_turns_remaining > 0:
            return

        if player.cash < player.chapter_11_debt_target:
            logger.info(f"{player.name} failed to meet the Chapter 11 target")
            self.declare_bankruptcy(player.player_id)
            return

        target = player.chapter_11_debt_target
        creditor = self._player(player.chapter_11_creditor_id)
        if creditor is not None and not creditor.is_bankrupt:
            Bank.transfer(player, creditor, target)
        else:
            self.bank.debit(player, target, "chapter_11")
        player.in_chapter_11 = False
        player.chapter_11_turns_remaining = 0
        player.chapter_11_debt_target = 0
        player.chapter_11_creditor_id = None
        self.event_log.log(EventType.CHAPTER_11_EXITED, player_id=player.player_id, paid=target)

    @command
    def declare_bankruptcy(self, player_id: int, creditor_id: Optional[int] = None) -> bool:
        """
        Remove a player from the game.

        Buildings go back to the bank supply. With a creditor, the creditor
        receives the player's cash, properties (unmortgaged), jail cards and
        IOUs owed to the player. Without one, properties return to the bank
        and the IOUs are dropped. Loans are written off either way.
        """
        player = self._player(player_id)
        if player is None or player.is_bankrupt:
            return self._reject(f"player {player_id} cannot go bankrupt")
        creditor = self._player(creditor_id)
        if creditor is not None and (creditor.is_bankrupt or creditor.player_id == player_id):
            creditor = None

        for position in sorted(player.properties):
            state = self.property_states[position]
            if state.hotel:
                self._return_buildings(hotels=1)
            elif state.houses:
                self._return_buildings(houses=state.houses)
            state.reset()
            if creditor is not None:
                state.owner_id = creditor.player_id
                creditor.properties.add(position)
        player.properties.clear()

        if creditor is not None:
            Bank.transfer(player, creditor, max(0, player.cash))
            creditor.get_out_of_jail_cards += player.get_out_of_jail_cards
            for iou in player.ious_receivable:
                if iou.debtor_id == creditor.player_id:
                    creditor.ious_payable.remove(iou)
                    continue
                iou.creditor_id = creditor.player_id
                creditor.ious_receivable.append(iou)
        else:
            self.bank.debit(player, player.cash, "bankruptcy")
            for iou in player.ious_receivable:
                debtor = self.players[iou.debtor_id]
                if iou in debtor.ious_payable:
                    debtor.ious_payable.remove(iou)
        for iou in player.ious_payable:
            holder = self.players[iou.creditor_id]
            if iou in holder.ious_receivable:
                holder.ious_receivable.remove(iou)

        player.cash = 0
        player.is_bankrupt = True
        player.in_jail = False
        player.get_out_of_jail_cards = 0
        player.loans.clear()
        player.ious_payable.clear()
        player.ious_receivable.clear()
        player.in_chapter_11 = False
        player.chapter_11_turns_remaining = 0
        player.chapter_11_debt_target = 0
        player.chapter_11_creditor_id = None

        self._clear_records_for(player_id)

        self.event_log.log(
            EventType.BANKRUPTCY,
            player_id=player_id,
            creditor=creditor.player_id if creditor else None,
        )
        logger.info(f"{player.name} went bankrupt (creditor={creditor.name if creditor else 'bank'})")

        self.check_win_condition()
        if not self.game_over and player_id == self.current_player_index and not self._advancing_turn:
            self._advance_turn()
        return True

    def _clear_records_for(self, player_id: int) -> None:
        """Drop trades, bids and pending decisions that involve a bankrupt player."""
        resume_phase = GamePhase.RESOLVING_SPACE
        if self.trade is not None and self.trade.involves(player_id):
            if self.phase == GamePhase.TRADING:
                resume_phase = self.trade.previous_phase
            self.trade = None
        if self.auction is not None:
            self.auction.withdraw(player_id)
            if self.auction.is_complete:
                self.end_auction()
        negotiation = self.pending_rent_negotiation
        if negotiation is not None and player_id in (negotiation.debtor_id, negotiation.creditor_id):
            self.pending_rent_negotiation = None
        if self.pending_bankruptcy is not None and self.pending_bankruptcy.player_id == player_id:
            self.pending_bankruptcy = None
        if self.pending_tax_decision is not None and self.pending_tax_decision.player_id == player_id:
            self.pending_tax_decision = None

        stale = {
            GamePhase.AUCTION: self.auction is None,
            GamePhase.TRADING: self.trade is None,
            GamePhase.AWAITING_BUY_DECISION: player_id == self.current_player_index,
            GamePhase.AWAITING_TAX_DECISION: self.pending_tax_decision is None,
            GamePhase.AWAITING_RENT_NEGOTIATION: self.pending_rent_negotiation is None,
            GamePhase.AWAITING_BANKRUPTCY_DECISION: self.pending_bankruptcy is None,
        }
        if stale.get(self.phase, False):
            self.phase = resume_phase if self.phase == GamePhase.TRADING else GamePhase.RESOLVING_SPACE
            self.previous_phase = None

    def check_win_condition(self) -> bool:
        """End the game when a single solvent player remains."""
        active = self.get_active_players()
        if len(active) != 1:
            return False
        self.winner = active[0].player_id
        self.phase = GamePhase.GAME_OVER
        self.auction = None
        self.trade = None
        self.event_log.log(EventType.GAME_END, player_id=self.winner, winner=active[0].name, turn=self.turn)
        logger.info(f"Game over: {active[0].name} wins after {self.turn} turns")
        return True

    # ------------------------------------------------------------------
    # Turn flow
    # ------------------------------------------------------------------

    @command
    def end_turn(self) -> bool:
        """
        Finish the current player's turn.

        After doubles the same player rolls again. Otherwise the ending player
        settles loan and IOU interest and Chapter 11, and play passes to the
        next solvent player.
        """
        if self.phase not in (GamePhase.RESOLVING_SPACE, GamePhase.BUILDING):
            return self._reject(f"end_turn in phase {self.phase.value}")
        self.previous_phase = None
        self._advance_turn()
        return True

    def _advance_turn(self) -> None:
        if self.game_over:
            return
        ending = self.current_player
        if self.extra_roll_pending and not ending.in_jail and not ending.is_bankrupt:
            self.extra_roll_pending = False
            self.passed_go = False
            self.last_card_drawn = None
            self.phase = GamePhase.ROLLING
            return

        self._advancing_turn = True
        try:
            if not ending.is_bankrupt:
                self._apply_loan_interest(ending)
                self._accrue_iou_interest(ending)
                if ending.in_chapter_11:
                    self._check_chapter_11(ending)
        finally:
            self._advancing_turn = False
        if self.game_over:
            return

        active = self.get_active_players()
        current_index = self.current_player_index
        seats = len(self.players)
        next_index = next(
            (current_index + step) % seats
            for step in range(1, seats + 1)
            if not self.players[(current_index + step) % seats].is_bankrupt
        )
        if next_index <= current_index and next_index == active[0].player_id and len(active) > 1:
            self._complete_round()

        self.current_player_index = next_index
        self.phase = GamePhase.JAIL_DECISION if self.current_player.in_jail else GamePhase.ROLLING
        self.dice = None
        self.consecutive_doubles = 0
        self.extra_roll_pending = False
        self.passed_go = False
        self.last_card_drawn = None
        self.turn += 1
        self.event_log.turn = self.turn
        self.event_log.log(EventType.TURN_START, player_id=next_index, round=self.rounds_completed + 1)

    def _complete_round(self) -> None:
        self.rounds_completed += 1
        if self.settings.enable_inflation:
            salary = economics.calculate_go_salary(
                self.rounds_completed, self.config.go_salary, self.config.max_go_salary
            )
            if salary > self.current_go_salary:
                self.event_log.log(EventType.INFLATION, go_salary=salary)
            self.current_go_salary = salary

        self.market_history.append(
            {
                "round": self.rounds_completed,
                "go_salary": self.current_go_salary,
                "gini": economics.gini_coefficient(self),
                "money_in_circulation": economics.money_in_circulation(self),
            }
        )
        for event in market.tick(self.economic_events):
            self.event_log.log(EventType.ECONOMIC_EVENT_ENDED, event=event.event_type.value)
        self._expire_insurance()
        self.event_log.log(EventType.ROUND_COMPLETE, round=self.rounds_completed)

    # ------------------------------------------------------------------
    # Trades
    # ------------------------------------------------------------------

    @command
    def start_trade(self, from_player: int, to_player: int) -> bool:
        """Open a draft offer between two solvent players."""
        if self.trade is not None or self.phase not in MANAGEMENT_PHASES:
            return self._reject(f"start_trade in phase {self.phase.value}")
        offer = TradeOffer(from_player=from_player, to_player=to_player)
        for pid in (from_player, to_player):
            player = self._player(pid)
            if player is None or player.is_bankrupt:
                return self._reject(f"player {pid} cannot trade")
        if from_player == to_player:
            return self._reject("cannot trade with yourself")

        self.trade = Trade(offer=offer, previous_phase=self.phase)
        self.phase = GamePhase.TRADING
        self.event_log.log(EventType.TRADE_STARTED, player_id=from_player, to_player=to_player)
        return True

    @command
    def update_trade_offer(self, player_id: int, **changes: Any) -> bool:
        """Edit the terms of a draft offer."""
        trade = self.trade
        if trade is None or trade.status != TradeStatus.DRAFT or trade.offer.from_player != player_id:
            return self._reject("no draft trade for this player")
        unknown = set(changes) - set(TRADE_EDITABLE_FIELDS)
        if unknown:
            return self._reject(f"cannot edit trade fields {sorted(unknown)}")
        for key in ("properties_offered", "properties_requested"):
            if key in changes:
                changes[key] = list(changes[key])
        trade.offer = trade.offer.updated(**changes)
        return True

    @command
    def propose_trade(self, player_id: int, offer: Optional[TradeOffer] = None) -> bool:
        """Send the draft (or a complete offer) to the other player."""
        if offer is not None and self.trade is None:
            if offer.from_player != player_id:
                return self._reject("offer must come from the proposing player")
            ok, reason = validate_offer(self, offer)
            if not ok:
                return self._reject(reason)
            if not self.start_trade(offer.from_player, offer.to_player):
                return False
        trade = self.trade
        if trade is None or trade.status != TradeStatus.DRAFT or trade.offer.from_player != player_id:
            return self._reject("no draft trade for this player")
        if offer is not None:
            if (offer.from_player, offer.to_player) != (trade.offer.from_player, trade.offer.to_player):
                return self._reject("offer does not match the open trade")
            trade.offer = offer
        ok, reason = validate_offer(self, trade.offer)
        if not ok:
            return self._reject(reason)

        trade.status = TradeStatus.PENDING
        self.players[player_id].last_trade_turn = self.turn
        self.event_log.log(EventType.TRADE_PROPOSED, player_id=player_id, offer=repr(trade.offer))
        return True

    @command
    def accept_trade(self, player_id: int) -> bool:
        """
        Receiver accepts. Both sides are validated against the current state
        and swapped in one step; a stale offer closes the trade instead.
        """
        trade = self.trade
        if trade is None or trade.status != TradeStatus.PENDING or trade.offer.to_player != player_id:
            return self._reject("no pending trade for this player")
        self._execute_trade(trade.offer)
        return True

    @command
    def reject_trade(self, player_id: int) -> bool:
        """
        Reject the offer awaiting this player. Rejecting a counter offer
        reinstates the original offer.
        """
        trade = self.trade
        if trade is None or trade.status not in (TradeStatus.PENDING, TradeStatus.COUNTER_PENDING):
            return self._reject("no trade to reject")
        if trade.awaiting_player != player_id:
            return self._reject(f"trade is not waiting on player {player_id}")

        if trade.status == TradeStatus.COUNTER_PENDING:
            trade.counter_offer = None
            trade.status = TradeStatus.PENDING
            self.event_log.log(EventType.TRADE_REJECTED, player_id=player_id, counter=True)
            return True

        initiator = self.players[trade.offer.from_player]
        if initiator.is_ai:
            for position in trade.offer.properties_requested:
                initiator.trade_attempts[position] = initiator.trade_attempts.get(position, 0) + 1
        self.event_log.log(EventType.TRADE_REJECTED, player_id=player_id, counter=False)
        self._close_trade()
        return True

    @command
    def cancel_trade(self, player_id: int) -> bool:
        """Either party withdraws; the trade is discarded."""
        trade = self.trade
        if trade is None or not trade.involves(player_id):
            return self._reject("no trade to cancel")
        self.event_log.log(EventType.TRADE_CANCELLED, player_id=player_id)
        self._close_trade()
        return True

    @command
    def counter_offer(self, player_id: int, counter: TradeOffer) -> bool:
        """The receiver answers a pending offer with different terms, once per trade."""
        trade = self.trade
        if trade is None or trade.status != TradeStatus.PENDING:
            return self._reject("no pending trade to counter")
        if trade.offer.to_player != player_id or counter.from_player != player_id:
            return self._reject("only the receiver can counter")
        if counter.to_player != trade.offer.from_player:
            return self._reject("counter offer must go back to the proposer")
        if trade.countered:
            return self._reject("a counter offer was already made")
        ok, reason = validate_offer(self, counter)
        if not ok:
            return self._reject(reason)

        trade.counter_offer = counter
        trade.countered = True
        trade.status = TradeStatus.COUNTER_PENDING
        self.event_log.log(EventType.TRADE_COUNTERED, player_id=player_id, offer=repr(counter))
        return True

    @command
    def accept_counter_offer(self, player_id: int) -> bool:
        trade = self.trade
        if trade is None or trade.status != TradeStatus.COUNTER_PENDING or trade.offer.from_player != player_id:
            return self._reject("no counter offer for this player")
        self._execute_trade(trade.counter_offer)
        return True

    def _execute_trade(self, offer: TradeOffer) -> None:
        ok, reason = validate_offer(self, offer)
        if not ok:
            logger.info(f"Trade failed validation: {reason}")
            self.event_log.log(EventType.TRADE_CANCELLED, player_id=offer.from_player, reason=reason)
            self._close_trade()
            return

        giver = self.players[offer.from_player]
        receiver = self.players[offer.to_player]
        Bank.transfer(giver, receiver, offer.cash_offered)
        Bank.transfer(receiver, giver, offer.cash_requested)
        giver.get_out_of_jail_cards += offer.jail_cards_requested - offer.jail_cards_offered
        receiver.get_out_of_jail_cards += offer.jail_cards_offered - offer.jail_cards_requested
        for position in offer.properties_offered:
            self._transfer_property(position, giver, receiver)
        for position in offer.properties_requested:
            self._transfer_property(position, receiver, giver)

        self.event_log.log(
            EventType.TRADE_ACCEPTED,
            player_id=offer.to_player,
            from_player=offer.from_player,
            offer=repr(offer),
        )
        self._close_trade()

    def _close_trade(self) -> None:
        previous = self.trade.previous_phase if self.trade is not None else None
        self.trade = None
        self.phase = previous or GamePhase.RESOLVING_SPACE


def create_game(
    config: GameConfig,
    players: Sequence[Player],
    settings: Optional[EngineSettings] = None,
) -> GameState:
    """Factory function to create a new game."""
    return GameState(config, players, settings)
