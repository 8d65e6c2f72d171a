"""
Money management and event logging.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from creditopoly.player import PlayerState


class EventType(Enum):
    """Types of game events."""

    GAME_START = "game_start"
    TURN_START = "turn_start"
    TURN_PAUSE_SUGGESTED = "turn_pause_suggested"
    ROUND_COMPLETE = "round_complete"
    DICE_ROLL = "dice_roll"
    MOVE = "move"
    PASS_GO = "pass_go"
    LAND = "land"

    PURCHASE = "purchase"
    AUCTION_START = "auction_start"
    AUCTION_BID = "auction_bid"
    AUCTION_PASS = "auction_pass"
    AUCTION_END = "auction_end"

    RENT_PAYMENT = "rent_payment"
    TAX_PAYMENT = "tax_payment"
    TAX_DECISION = "tax_decision"

    CARD_DRAW = "card_draw"
    CARD_EFFECT = "card_effect"

    BUILD_HOUSE = "build_house"
    BUILD_HOTEL = "build_hotel"
    SELL_BUILDING = "sell_building"

    MORTGAGE = "mortgage"
    UNMORTGAGE = "unmortgage"
    INSURANCE_PURCHASE = "insurance_purchase"
    INSURANCE_EXPIRED = "insurance_expired"

    GO_TO_JAIL = "go_to_jail"
    JAIL_ATTEMPT = "jail_attempt"
    JAIL_RELEASE = "jail_release"

    LOAN_TAKEN = "loan_taken"
    LOAN_REPAID = "loan_repaid"
    LOAN_INTEREST = "loan_interest"
    IOU_CREATED = "iou_created"
    IOU_PAYMENT = "iou_payment"
    IOU_INTEREST = "iou_interest"
    RENT_NEGOTIATION = "rent_negotiation"
    RENT_FORGIVEN = "rent_forgiven"
    PROPERTY_IN_LIEU = "property_in_lieu"

    RESTRUCTURING_OFFERED = "restructuring_offered"
    CHAPTER_11_ENTERED = "chapter_11_entered"
    CHAPTER_11_EXITED = "chapter_11_exited"

    ECONOMIC_EVENT = "economic_event"
    ECONOMIC_EVENT_ENDED = "economic_event_ended"
    VALUE_CHANGE = "value_change"
    JACKPOT = "jackpot"
    INFLATION = "inflation"

    BANKRUPTCY = "bankruptcy"
    GAME_END = "game_end"

    TRADE_STARTED = "trade_started"
    TRADE_PROPOSED = "trade_proposed"
    TRADE_COUNTERED = "trade_countered"
    TRADE_ACCEPTED = "trade_accepted"
    TRADE_REJECTED = "trade_rejected"
    TRADE_CANCELLED = "trade_cancelled"


@dataclass
class GameEvent:
    """A logged event in the game."""

    event_type: EventType
    turn: int = 0
    player_id: Optional[int] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        player_str = f"P{self.player_id}" if self.player_id is not None else "System"
        return f"[T{self.turn} {player_str}] {self.event_type.value}: {self.details}"


class EventLog:
    """Append-only game history."""

    def __init__(self):
        self.events: List[GameEvent] = []
        self.turn = 0

    def log(self, event_type: EventType, player_id: Optional[int] = None, **details: Any) -> None:
        """Log a game event."""
        self.events.append(GameEvent(event_type, self.turn, player_id, details))

    def get_events(self, event_type: Optional[EventType] = None) -> List[GameEvent]:
        """Get all logged events, optionally of a single type."""
        if event_type is None:
            return self.events.copy()
        return [e for e in self.events if e.event_type == event_type]


class Bank:
    """
    The bank: unlimited money, limited houses and hotels.

    Every payment between the bank and a player goes through `credit` or
    `debit` so that the ledger explains the money supply:

        sum(player cash) == starting cash + injected - collected
    """

    def __init__(self, house_limit: int = 32, hotel_limit: int = 12):
        self.houses_available = house_limit
        self.hotels_available = hotel_limit
        self.injected = 0
        self.collected = 0
        self.injections: Dict[str, int] = defaultdict(int)
        self.sinks: Dict[str, int] = defaultdict(int)

    def credit(self, player: PlayerState, amount: int, reason: str) -> int:
        """Pay a player from the bank."""
        if amount <= 0:
            return 0
        player.cash += amount
        self.injected += amount
        self.injections[reason] += amount
        return amount

    def debit(self, player: PlayerState, amount: int, reason: str) -> int:
        """Collect money from a player into the bank."""
        if amount <= 0:
            return 0
        player.cash -= amount
        self.collected += amount
        self.sinks[reason] += amount
        return amount

    @staticmethod
    def transfer(payer: PlayerState, payee: PlayerState, amount: int) -> int:
        """Move cash between players."""
        if amount <= 0:
            return 0
        payer.cash -= amount
        payee.cash += amount
        return amount

    # Building supply

    def has_supply(self, houses: int = 0, hotels: int = 0) -> bool:
        return self.houses_available >= houses and self.hotels_available >= hotels

    def release(self, houses: int = 0, hotels: int = 0) -> None:
        """Move buildings from the bank onto the board."""
        self.houses_available -= houses
        self.hotels_available -= hotels

    def restock(self, houses: int = 0, hotels: int = 0) -> None:
        """Return buildings from the board to the bank."""
        self.houses_available += houses
        self.hotels_available += hotels
