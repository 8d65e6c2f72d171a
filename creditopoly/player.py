"""
Player state and per-property state.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from creditopoly.debt import IOU, BankLoan


class PlayerState:
    """Represents the complete state of a player in the game."""

    def __init__(self, player_id: int, name: str, starting_cash: int, token: str = "", is_ai: bool = False):
        self.player_id = player_id
        self.name = name
        self.token = token
        self.is_ai = is_ai
        self.cash = starting_cash
        self.position = 0
        self.in_jail = False
        self.jail_turns = 0
        self.get_out_of_jail_cards = 0
        self.is_bankrupt = False
        self.properties: Set[int] = set()

        self.loans: List[BankLoan] = []
        self.ious_receivable: List[IOU] = []
        self.ious_payable: List[IOU] = []

        self.in_chapter_11 = False
        self.chapter_11_turns_remaining = 0
        self.chapter_11_debt_target = 0
        self.chapter_11_creditor_id: Optional[int] = None

        # AI trade bookkeeping
        self.last_trade_turn = -10
        self.trade_attempts: Dict[int, int] = {}

    @property
    def total_debt(self) -> int:
        """Outstanding bank debt."""
        return sum(loan.total_owed for loan in self.loans)

    @property
    def iou_debt(self) -> int:
        return sum(iou.current_amount for iou in self.ious_payable)

    def __repr__(self) -> str:
        return (
            f"PlayerState(id={self.player_id}, name='{self.name}', "
            f"cash={self.cash}, position={self.position}, bankrupt={self.is_bankrupt})"
        )


@dataclass
class PropertyState:
    """Mutable state of an ownable space."""

    owner_id: Optional[int] = None
    houses: int = 0
    hotel: bool = False
    is_mortgaged: bool = False
    insured: bool = False
    insured_until: int = 0
    value_multiplier: float = 1.0

    def is_owned(self) -> bool:
        return self.owner_id is not None

    def has_buildings(self) -> bool:
        return self.houses > 0 or self.hotel

    def building_count(self) -> int:
        """Houses, with a hotel counted as five buildings."""
        return 5 if self.hotel else self.houses

    def reset(self) -> None:
        """Return the property to the bank."""
        self.owner_id = None
        self.houses = 0
        self.hotel = False
        self.is_mortgaged = False
        self.insured = False
        self.insured_until = 0


@dataclass
class Player:
    """Seat information used to start a game."""

    name: str
    token: str = ""
    is_ai: bool = False
