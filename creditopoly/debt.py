"""
Credit records: bank loans, IOUs and the pending-decision records used by the
rent negotiation and restructuring workflows.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass
class BankLoan:
    """A loan from the bank. Interest is added to total_owed every borrower turn."""

    loan_id: int
    amount: int
    interest_rate: float
    turn_taken: int
    total_owed: int

    def interest_due(self, multiplier: float = 1.0) -> int:
        return math.ceil(self.total_owed * self.interest_rate * multiplier)


@dataclass
class IOU:
    """A deferred debt between two players."""

    iou_id: int
    debtor_id: int
    creditor_id: int
    original_amount: int
    current_amount: int
    interest_rate: float
    turn_created: int
    reason: str = ""

    def interest_due(self) -> int:
        return int(round(self.current_amount * self.interest_rate))


class NegotiationStatus(Enum):
    """Whose decision a rent negotiation is waiting on."""

    CREDITOR_DECISION = "creditor_decision"
    DEBTOR_DECISION = "debtor_decision"


@dataclass
class ProposedIOU:
    """Payment plan offered by a creditor: cash now, the rest as an IOU."""

    partial_payment: int
    iou_amount: int
    interest_rate: float


@dataclass
class RentNegotiation:
    """Unaffordable rent waiting for a negotiated resolution."""

    debtor_id: int
    creditor_id: int
    property_position: int
    rent_amount: int
    debtor_cash: int
    status: NegotiationStatus = NegotiationStatus.CREDITOR_DECISION
    proposed_iou: Optional[ProposedIOU] = None


@dataclass
class PendingBankruptcy:
    """Insolvent player choosing between Chapter 11 and bankruptcy."""

    player_id: int
    creditor_id: Optional[int]
    debt_amount: int


@dataclass
class PendingTaxDecision:
    """Income tax choice between a flat amount and a share of net worth."""

    player_id: int
    flat_amount: int
    percentage_amount: int
