"""Ledger event model shared by every stage of the statement pipeline."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, computed_field

from loanledger.services.statement.records import ZERO


class EventKind(str, Enum):
    """Closed set of ledger line types."""

    JOINING_FEE = "joining_fee"
    MOBILE_DEPOSIT = "mobile_deposit"
    MOBILE_DISBURSEMENT = "mobile_disbursement"
    PROCESSING_FEE = "processing_fee"
    LOAN_DISBURSEMENT = "loan_disbursement"
    PRINCIPAL_REPAYMENT = "principal_repayment"
    INTEREST_REPAYMENT = "interest_repayment"
    GENERIC_REPAYMENT = "generic_repayment"
    OPENING_BALANCE = "opening_balance"

    @property
    def label(self) -> str:
        return KIND_LABELS[self]

    @classmethod
    def for_payment_type(cls, payment_type: str | None) -> "EventKind":
        """Map a loan payment's declared type to its debit line."""

        if payment_type == "principal":
            return cls.PRINCIPAL_REPAYMENT
        if payment_type == "interest":
            return cls.INTEREST_REPAYMENT
        return cls.GENERIC_REPAYMENT


KIND_LABELS: dict[EventKind, str] = {
    EventKind.JOINING_FEE: "Joining Fee",
    EventKind.MOBILE_DEPOSIT: "Mobile Money Deposit",
    EventKind.MOBILE_DISBURSEMENT: "Mobile Money Disbursement",
    EventKind.PROCESSING_FEE: "Processing Fee",
    EventKind.LOAN_DISBURSEMENT: "Loan Disbursement",
    EventKind.PRINCIPAL_REPAYMENT: "Principal Repayment",
    EventKind.INTEREST_REPAYMENT: "Interest Repayment",
    EventKind.GENERIC_REPAYMENT: "Loan Repayment",
    EventKind.OPENING_BALANCE: "Balance B/F",
}

# Tie-break order among events sharing the same instant.
RANK_OPENING = 0
RANK_JOINING_FEE = 0
RANK_DEPOSIT = 1
RANK_DISBURSEMENT_CREDIT = 2
RANK_PROCESSING_FEE = 3
RANK_DISBURSEMENT_DEBIT = 4
RANK_PAYMENT_CREDIT = 5
RANK_PAYMENT_DEBIT_BASE = 6

NO_REFERENCE = "-"


class LedgerEvent(BaseModel):
    """One debit or credit line in the reconstructed account history."""

    model_config = ConfigDict(frozen=True)

    id: str
    occurred_at: datetime
    kind: EventKind
    reference: str = NO_REFERENCE
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    running_balance: Decimal = ZERO
    sequence_rank: int
    is_opening_balance: bool = False

    @computed_field
    @property
    def description(self) -> str:
        return self.kind.label

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return self.occurred_at, self.sequence_rank
