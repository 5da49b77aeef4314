"""Suppression of money movements visible through more than one source table.

A single M-Pesa collection can show up both in the generic C2B feed and as one
or more loan-payment rows. The loan-payment side wins; the C2B row is dropped
before deposits are emitted. Within each emitting stage a `(kind, reference)`
key may be emitted only once.
"""

from collections.abc import Iterable

from loanledger.common.config import settings
from loanledger.common.logging import logger
from loanledger.common.metrics import duplicate_deposits_skipped_total
from loanledger.services.statement.records import ExternalCollection, LoanPayment


DEPOSIT = "deposit"
LOAN_PAYMENT = "loanpayment"


def loan_payment_references(payments: Iterable[LoanPayment]) -> frozenset[str]:
    """M-Pesa receipts already represented by loan-payment groups."""

    return frozenset(p.mpesa_receipt for p in payments if p.mpesa_receipt)


def exclude_collected_payments(
    collections: Iterable[ExternalCollection], payments: Iterable[LoanPayment]
) -> list[ExternalCollection]:
    """Drop C2B rows whose transaction id is a loan payment's receipt."""

    taken = loan_payment_references(payments)
    kept = []
    for collection in collections:
        if collection.transaction_id and collection.transaction_id in taken:
            logger.debug(
                "collection_already_applied transaction_id=%s collection_id=%s",
                collection.transaction_id,
                collection.id,
            )
            continue
        kept.append(collection)
    return kept


class DedupRegistry:
    """First-seen-wins register of emitted `(kind, reference)` keys."""

    def __init__(self) -> None:
        self._seen: set[str] = set()

    @staticmethod
    def key(kind: str, reference: str) -> str:
        """Flat `kind-reference` string, e.g. `deposit-QAB12`."""

        return f"{kind}-{reference}"

    def claim(self, kind: str, reference: str) -> bool:
        """Return True if the key is new; duplicates are counted and refused."""

        key = self.key(kind, reference)
        if key in self._seen:
            logger.debug("duplicate_skipped key=%s", key)
            duplicate_deposits_skipped_total.labels(service=settings.service_name, kind=kind).inc()
            return False
        self._seen.add(key)
        return True

    def __contains__(self, key: str) -> bool:
        return key in self._seen

    def __len__(self) -> int:
        return len(self._seen)
