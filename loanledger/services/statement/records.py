"""Typed snapshots of the source tables a statement is built from.

Every record is a frozen pydantic model. Field defaults and numeric coercion are
resolved here, once, so the rest of the engine can rely on `Decimal` amounts and
timezone-aware timestamps without re-checking for nulls.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from loanledger.common.config import settings
from loanledger.common.logging import logger
from loanledger.common.metrics import malformed_amounts_total


ZERO = Decimal("0")
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def coerce_amount(value, field: str) -> Decimal:
    """Parse a monetary value, mapping null to zero and garbage to zero.

    Unparseable input (text, NaN, infinity) is a data-quality problem, not a
    statement failure: it is logged and counted, then treated as zero.
    """

    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        amount = None
    elif isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            amount = None
    if amount is None or not amount.is_finite():
        logger.warning("malformed_amount field=%s value=%r coerced_to=0", field, value)
        malformed_amounts_total.labels(service=settings.service_name, field=field).inc()
        return ZERO
    return amount


def coerce_optional_amount(value, field: str) -> Decimal | None:
    """Like `coerce_amount`, but an absent value stays `None`."""

    if value is None:
        return None
    return coerce_amount(value, field)


def missing_to_epoch(value, field: str):
    """A missing timestamp still replays, pinned to the epoch."""

    if value is None or value == "":
        logger.warning("missing_timestamp field=%s coerced_to=epoch", field)
        return EPOCH
    return value


def as_utc(value: datetime) -> datetime:
    """Naive timestamps from the store are UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def clean_reference(value: str | None) -> str | None:
    """Blank references behave like missing ones."""

    if value is None:
        return None
    value = str(value).strip()
    return value or None


class SourceRecord(BaseModel):
    """Base for read-only source rows."""

    model_config = ConfigDict(frozen=True, from_attributes=True)


class Customer(SourceRecord):
    id: int
    first_name: str | None = None
    surname: str | None = None
    mobile: str | None = None
    created_at: datetime = EPOCH

    @field_validator("created_at", mode="before")
    @classmethod
    def _missing_time(cls, value):
        return missing_to_epoch(value, "customers.created_at")

    @field_validator("created_at")
    @classmethod
    def _tz(cls, value):
        return as_utc(value)

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.surname) if part) or "Customer"


class Loan(SourceRecord):
    id: int
    customer_id: int
    scored_amount: Decimal = ZERO
    processing_fee: Decimal = ZERO
    registration_fee: Decimal = ZERO
    total_payable: Decimal = ZERO
    total_interest: Decimal = ZERO
    created_at: datetime | None = None

    @field_validator(
        "scored_amount",
        "processing_fee",
        "registration_fee",
        "total_payable",
        "total_interest",
        mode="before",
    )
    @classmethod
    def _amount(cls, value, info: ValidationInfo):
        return coerce_amount(value, f"loans.{info.field_name}")

    @field_validator("created_at")
    @classmethod
    def _tz(cls, value):
        return as_utc(value) if value is not None else None


class LoanPayment(SourceRecord):
    id: int
    loan_id: int
    installment_id: int | None = None
    paid_amount: Decimal = ZERO
    mpesa_receipt: str | None = None
    phone_number: str | None = None
    paid_at: datetime = EPOCH
    payment_type: str | None = None

    @field_validator("paid_amount", mode="before")
    @classmethod
    def _amount(cls, value):
        return coerce_amount(value, "loan_payments.paid_amount")

    @field_validator("mpesa_receipt", mode="before")
    @classmethod
    def _reference(cls, value):
        return clean_reference(value)

    @field_validator("paid_at", mode="before")
    @classmethod
    def _missing_time(cls, value):
        return missing_to_epoch(value, "loan_payments.paid_at")

    @field_validator("paid_at")
    @classmethod
    def _tz(cls, value):
        return as_utc(value)


class LoanInstallment(SourceRecord):
    id: int
    loan_id: int
    principal_paid: Decimal | None = None
    interest_paid: Decimal | None = None
    paid_amount: Decimal = ZERO
    status: str | None = None

    @field_validator("principal_paid", "interest_paid", mode="before")
    @classmethod
    def _breakdown(cls, value, info: ValidationInfo):
        return coerce_optional_amount(value, f"loan_installments.{info.field_name}")

    @field_validator("paid_amount", mode="before")
    @classmethod
    def _amount(cls, value):
        return coerce_amount(value, "loan_installments.paid_amount")

    @property
    def has_breakdown(self) -> bool:
        return self.principal_paid is not None or self.interest_paid is not None


class ExternalCollection(SourceRecord):
    """Inbound mobile-money (C2B) transfer."""

    id: int
    amount: Decimal = ZERO
    transaction_time: datetime = EPOCH
    transaction_id: str | None = None
    loan_id: int | None = None
    phone_number: str | None = None
    status: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, value):
        return coerce_amount(value, "mpesa_c2b_transactions.amount")

    @field_validator("transaction_id", mode="before")
    @classmethod
    def _reference(cls, value):
        return clean_reference(value)

    @field_validator("transaction_time", mode="before")
    @classmethod
    def _missing_time(cls, value):
        return missing_to_epoch(value, "mpesa_c2b_transactions.transaction_time")

    @field_validator("transaction_time")
    @classmethod
    def _tz(cls, value):
        return as_utc(value)


class WalletCredit(SourceRecord):
    """Manual credit entry on the customer's wallet."""

    id: int
    customer_id: int
    amount: Decimal = ZERO
    type: str | None = None
    created_at: datetime = EPOCH
    mpesa_reference: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, value):
        return coerce_amount(value, "customer_wallets.amount")

    @field_validator("mpesa_reference", mode="before")
    @classmethod
    def _reference(cls, value):
        return clean_reference(value)

    @field_validator("created_at", mode="before")
    @classmethod
    def _missing_time(cls, value):
        return missing_to_epoch(value, "customer_wallets.created_at")

    @field_validator("created_at")
    @classmethod
    def _tz(cls, value):
        return as_utc(value)


class DisbursementTransaction(SourceRecord):
    id: int
    loan_id: int
    amount: Decimal = ZERO
    transaction_id: str | None = None
    processed_at: datetime = EPOCH
    status: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, value):
        return coerce_amount(value, "loan_disbursement_transactions.amount")

    @field_validator("transaction_id", mode="before")
    @classmethod
    def _reference(cls, value):
        return clean_reference(value)

    @field_validator("processed_at", mode="before")
    @classmethod
    def _missing_time(cls, value):
        return missing_to_epoch(value, "loan_disbursement_transactions.processed_at")

    @field_validator("processed_at")
    @classmethod
    def _tz(cls, value):
        return as_utc(value)


class SourceSnapshot(BaseModel):
    """Everything known about one customer at statement time."""

    model_config = ConfigDict(frozen=True)

    customer: Customer
    loans: tuple[Loan, ...] = ()
    loan_payments: tuple[LoanPayment, ...] = ()
    loan_installments: tuple[LoanInstallment, ...] = ()
    external_collections: tuple[ExternalCollection, ...] = ()
    wallet_credits: tuple[WalletCredit, ...] = ()
    disbursements: tuple[DisbursementTransaction, ...] = ()
