from typing import List, Optional, Set

from creditopoly.money import EventLog, EventType


class Auction:
    """
    Bidding over a single property nobody bought.

    Bidders act in seat order starting with the player who declined. Each may
    bid above the current bid or pass; a pass is final. The auction is
    complete once at most one bidder has not passed.
    """

    def __init__(
        self,
        property_position: int,
        property_name: str,
        property_price: int,
        bidder_ids: List[int],
        starting_bidder_id: int,
        event_log: EventLog,
    ):
        self.property_position = property_position
        self.property_name = property_name
        self.property_price = property_price
        self.bidder_ids = list(bidder_ids)
        self.active_bidder_id = starting_bidder_id
        self.current_bid = 0
        self.high_bidder: Optional[int] = None
        self.passed: Set[int] = set()
        self.is_complete = False
        self.event_log = event_log

        self.event_log.log(
            EventType.AUCTION_START,
            property=property_name,
            position=property_position,
            bidders=self.bidder_ids,
        )
        self._check_completion()

    @property
    def remaining_bidders(self) -> List[int]:
        return [pid for pid in self.bidder_ids if pid not in self.passed]

    def minimum_bid(self) -> int:
        """Suggested next bid: 10% of price to open, then 10% over the current bid (at least 10)."""
        if self.current_bid == 0:
            return max(10, self.property_price // 10)
        return self.current_bid + max(10, self.current_bid // 10)

    def place_bid(self, player_id: int, amount: int) -> bool:
        """
        Bid for the active bidder.
        Returns True if accepted, False if out of turn or not above the current bid.
        """
        if self.is_complete or player_id != self.active_bidder_id:
            return False
        if amount <= self.current_bid:
            return False

        self.current_bid = amount
        self.high_bidder = player_id
        self.event_log.log(EventType.AUCTION_BID, player_id=player_id, property=self.property_name, amount=amount)
        self._advance()
        return True

    def pass_turn(self, player_id: int) -> bool:
        """Active bidder drops out. Returns False if it was not their turn."""
        if self.is_complete or player_id != self.active_bidder_id:
            return False
        self.passed.add(player_id)
        self.event_log.log(
            EventType.AUCTION_PASS,
            player_id=player_id,
            property=self.property_name,
            remaining_bidders=self.remaining_bidders,
        )
        if not self._check_completion():
            self._advance()
        return True

    def withdraw(self, player_id: int) -> None:
        """Remove a bidder who can no longer take part (e.g. went bankrupt)."""
        if player_id in self.bidder_ids:
            self.bidder_ids.remove(player_id)
            self.passed.discard(player_id)
            if self.high_bidder == player_id:
                self.high_bidder = None
                self.current_bid = 0
            if not self._check_completion() and self.active_bidder_id == player_id:
                self._advance()

    def _advance(self) -> None:
        """Hand the turn to the next bidder in seat order who has not passed."""
        remaining = self.remaining_bidders
        if not remaining:
            return
        order = sorted(set(self.bidder_ids) | {self.active_bidder_id})
        start = order.index(self.active_bidder_id)
        for step in range(1, len(order) + 1):
            candidate = order[(start + step) % len(order)]
            if candidate in remaining:
                self.active_bidder_id = candidate
                return

    def _check_completion(self) -> bool:
        if len(self.remaining_bidders) <= 1:
            self.is_complete = True
        return self.is_complete

    def get_winner(self) -> Optional[int]:
        if not self.is_complete:
            return None
        return self.high_bidder
