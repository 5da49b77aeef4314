"""Turn raw source records into ledger events.

Each rule below is a generator over the snapshot; `normalize` chains them in
a fixed order and materializes the result. The only state shared between rules
is the dedup registry, which is created per call.
"""

from collections.abc import Iterator
from datetime import datetime
from decimal import Decimal
from itertools import chain
from typing import NamedTuple

from loanledger.common.config import settings
from loanledger.common.logging import logger
from loanledger.services.statement.dedup import DEPOSIT, LOAN_PAYMENT, DedupRegistry, exclude_collected_payments
from loanledger.services.statement.events import (
    NO_REFERENCE,
    RANK_DEPOSIT,
    RANK_DISBURSEMENT_CREDIT,
    RANK_DISBURSEMENT_DEBIT,
    RANK_JOINING_FEE,
    RANK_PAYMENT_CREDIT,
    RANK_PAYMENT_DEBIT_BASE,
    RANK_PROCESSING_FEE,
    EventKind,
    LedgerEvent,
)
from loanledger.services.statement.records import DisbursementTransaction, LoanPayment, SourceSnapshot, ZERO


class DepositCandidate(NamedTuple):
    source: str
    source_id: int
    amount: Decimal
    occurred_at: datetime
    reference: str


def joining_fee_events(snapshot: SourceSnapshot) -> Iterator[LedgerEvent]:
    """Registration fee of the customer's first loan, charged at sign-up."""

    if not snapshot.loans:
        return
    fee = snapshot.loans[0].registration_fee
    if fee <= ZERO:
        return
    yield LedgerEvent(
        id=f"reg-fee-{snapshot.customer.id}",
        occurred_at=snapshot.customer.created_at,
        kind=EventKind.JOINING_FEE,
        reference=NO_REFERENCE,
        debit=fee,
        sequence_rank=RANK_JOINING_FEE,
    )


def deposit_candidates(snapshot: SourceSnapshot) -> list[DepositCandidate]:
    """Wallet credits and unapplied C2B collections, oldest first."""

    wallet = [
        DepositCandidate("wallet", w.id, w.amount, w.created_at, w.mpesa_reference or NO_REFERENCE)
        for w in snapshot.wallet_credits
    ]
    collections = exclude_collected_payments(snapshot.external_collections, snapshot.loan_payments)
    c2b = [
        DepositCandidate("c2b", c.id, c.amount, c.transaction_time, c.transaction_id or NO_REFERENCE)
        for c in collections
    ]
    return sorted(wallet + c2b, key=lambda candidate: candidate.occurred_at)


def deposit_events(snapshot: SourceSnapshot, registry: DedupRegistry) -> Iterator[LedgerEvent]:
    """One credit per deposit reference; later duplicates are skipped."""

    for candidate in deposit_candidates(snapshot):
        if not registry.claim(DEPOSIT, candidate.reference):
            continue
        yield LedgerEvent(
            id=f"{candidate.source}-{candidate.source_id}",
            occurred_at=candidate.occurred_at,
            kind=EventKind.MOBILE_DEPOSIT,
            reference=candidate.reference,
            credit=candidate.amount,
            sequence_rank=RANK_DEPOSIT,
        )


def first_disbursement_by_loan(
    disbursements: tuple[DisbursementTransaction, ...],
) -> dict[int, DisbursementTransaction]:
    """First listed disbursement for each loan id."""

    matched: dict[int, DisbursementTransaction] = {}
    for disbursement in disbursements:
        matched.setdefault(disbursement.loan_id, disbursement)
    return matched


def disbursement_events(snapshot: SourceSnapshot) -> Iterator[LedgerEvent]:
    """Disbursement triad: money in, processing fee out, loan amount out.

    Loans without a successful disbursement produce nothing.
    """

    matched = first_disbursement_by_loan(snapshot.disbursements)
    for loan in snapshot.loans:
        disbursement = matched.get(loan.id)
        if disbursement is None:
            continue
        at = disbursement.processed_at
        yield LedgerEvent(
            id=f"disb-credit-{disbursement.id}",
            occurred_at=at,
            kind=EventKind.MOBILE_DISBURSEMENT,
            reference=disbursement.transaction_id or NO_REFERENCE,
            credit=disbursement.amount,
            sequence_rank=RANK_DISBURSEMENT_CREDIT,
        )
        if loan.processing_fee > ZERO:
            yield LedgerEvent(
                id=f"proc-fee-{loan.id}",
                occurred_at=at,
                kind=EventKind.PROCESSING_FEE,
                debit=loan.processing_fee,
                sequence_rank=RANK_PROCESSING_FEE,
            )
        yield LedgerEvent(
            id=f"loan-disb-{loan.id}",
            occurred_at=at,
            kind=EventKind.LOAN_DISBURSEMENT,
            debit=disbursement.amount,
            sequence_rank=RANK_DISBURSEMENT_DEBIT,
        )


def group_payments(payments: tuple[LoanPayment, ...], fallback_reference: str) -> dict[str, list[LoanPayment]]:
    """Group loan payments by M-Pesa receipt, keeping first-seen group order."""

    groups: dict[str, list[LoanPayment]] = {}
    for payment in payments:
        groups.setdefault(payment.mpesa_receipt or fallback_reference, []).append(payment)
    return groups


def payment_events(
    snapshot: SourceSnapshot, registry: DedupRegistry, fallback_reference: str
) -> Iterator[LedgerEvent]:
    """One credit per collection, then one debit per allocated payment row."""

    for reference, payments in group_payments(snapshot.loan_payments, fallback_reference).items():
        if not registry.claim(LOAN_PAYMENT, reference):
            continue
        at = min(p.paid_at for p in payments)
        yield LedgerEvent(
            id=f"payment-credit-{reference}",
            occurred_at=at,
            kind=EventKind.MOBILE_DEPOSIT,
            reference=reference,
            credit=sum((p.paid_amount for p in payments), ZERO),
            sequence_rank=RANK_PAYMENT_CREDIT,
        )
        for index, payment in enumerate(payments):
            if not payment.paid_amount:
                continue
            yield LedgerEvent(
                id=f"payment-debit-{payment.id}",
                occurred_at=at,
                kind=EventKind.for_payment_type(payment.payment_type),
                reference=reference,
                debit=payment.paid_amount,
                sequence_rank=RANK_PAYMENT_DEBIT_BASE + index,
            )


def normalize(snapshot: SourceSnapshot, fallback_reference: str | None = None) -> tuple[LedgerEvent, ...]:
    """Build the unordered event stream for one customer snapshot."""

    registry = DedupRegistry()
    events = tuple(
        chain(
            joining_fee_events(snapshot),
            deposit_events(snapshot, registry),
            disbursement_events(snapshot),
            payment_events(snapshot, registry, fallback_reference or settings.payment_fallback_reference),
        )
    )
    logger.debug(
        "events_normalized customer_id=%s events=%s dedup_keys=%s",
        snapshot.customer.id,
        len(events),
        len(registry),
    )
    return events
