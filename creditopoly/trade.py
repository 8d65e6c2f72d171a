"""
Bilateral trades with a single counter-offer.

Flow:
1. The proposer opens a draft (`start_trade`) and edits it
2. The draft is proposed; the receiver accepts, rejects or counters once
3. A counter is accepted or rejected by the proposer
4. Acceptance swaps everything atomically after validating both sides
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:
    from creditopoly.game import GamePhase, GameState


class TradeStatus(Enum):
    DRAFT = "draft"
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COUNTER_PENDING = "counter_pending"


@dataclass
class TradeOffer:
    """What `from_player` gives and asks of `to_player`."""

    from_player: int
    to_player: int
    cash_offered: int = 0
    cash_requested: int = 0
    properties_offered: List[int] = field(default_factory=list)
    properties_requested: List[int] = field(default_factory=list)
    jail_cards_offered: int = 0
    jail_cards_requested: int = 0

    def is_empty(self) -> bool:
        return not (
            self.cash_offered
            or self.cash_requested
            or self.properties_offered
            or self.properties_requested
            or self.jail_cards_offered
            or self.jail_cards_requested
        )

    def reversed(self) -> "TradeOffer":
        """The same exchange seen from the other party."""
        return TradeOffer(
            from_player=self.to_player,
            to_player=self.from_player,
            cash_offered=self.cash_requested,
            cash_requested=self.cash_offered,
            properties_offered=list(self.properties_requested),
            properties_requested=list(self.properties_offered),
            jail_cards_offered=self.jail_cards_requested,
            jail_cards_requested=self.jail_cards_offered,
        )

    def updated(self, **changes) -> "TradeOffer":
        return replace(self, **changes)

    def __repr__(self) -> str:
        gives = _describe(self.cash_offered, self.properties_offered, self.jail_cards_offered)
        gets = _describe(self.cash_requested, self.properties_requested, self.jail_cards_requested)
        return f"TradeOffer(P{self.from_player} gives {gives} for {gets} from P{self.to_player})"


def _describe(cash: int, properties: List[int], jail_cards: int) -> str:
    items = []
    if cash > 0:
        items.append(f"${cash}")
    if properties:
        items.append(f"properties {sorted(properties)}")
    if jail_cards > 0:
        items.append(f"{jail_cards} jail cards")
    return " + ".join(items) if items else "nothing"


@dataclass
class Trade:
    """A negotiation in progress."""

    offer: TradeOffer
    previous_phase: "GamePhase"
    status: TradeStatus = TradeStatus.DRAFT
    counter_offer: Optional[TradeOffer] = None
    countered: bool = False

    def involves(self, player_id: int) -> bool:
        return player_id in (self.offer.from_player, self.offer.to_player)

    @property
    def awaiting_player(self) -> int:
        """Who must act next."""
        if self.status == TradeStatus.DRAFT:
            return self.offer.from_player
        if self.status == TradeStatus.COUNTER_PENDING:
            return self.offer.from_player
        return self.offer.to_player


def _validate_side(
    game: "GameState", giver: int, cash: int, properties: List[int], jail_cards: int
) -> Tuple[bool, str]:
    player = game.players[giver]
    if cash < 0 or jail_cards < 0:
        return False, "Trade amounts must not be negative"
    if cash > player.cash:
        return False, f"{player.name} has insufficient cash"
    if jail_cards > player.get_out_of_jail_cards:
        return False, f"{player.name} does not hold enough jail cards"
    if len(set(properties)) != len(properties):
        return False, "A property is listed twice"
    for pos in properties:
        state = game.property_states.get(pos)
        if state is None or state.owner_id != giver:
            return False, f"{player.name} does not own property {pos}"
        if state.has_buildings():
            return False, "Cannot trade properties with buildings"
    return True, ""


def validate_offer(game: "GameState", offer: TradeOffer) -> Tuple[bool, str]:
    """Check both sides of an offer against the current state."""
    if offer.from_player == offer.to_player:
        return False, "Cannot trade with yourself"
    for pid in (offer.from_player, offer.to_player):
        if pid not in game.players:
            return False, "Invalid players in trade"
        if game.players[pid].is_bankrupt:
            return False, "Bankrupt players cannot trade"
    if offer.is_empty():
        return False, "Trade is empty"
    ok, reason = _validate_side(
        game, offer.from_player, offer.cash_offered, offer.properties_offered, offer.jail_cards_offered
    )
    if not ok:
        return ok, reason
    return _validate_side(
        game, offer.to_player, offer.cash_requested, offer.properties_requested, offer.jail_cards_requested
    )
