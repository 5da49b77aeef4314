"""Chronological replay that stamps running balances onto ledger events."""

from collections.abc import Iterable
from decimal import Decimal

from loanledger.services.statement.events import LedgerEvent
from loanledger.services.statement.records import ZERO


def chronological(events: Iterable[LedgerEvent]) -> list[LedgerEvent]:
    """Order non-opening events by `(occurred_at, sequence_rank)`.

    The sort is stable, so events that tie on both keys keep emission order.
    """

    return sorted((e for e in events if not e.is_opening_balance), key=lambda e: e.sort_key)


def replay(events: Iterable[LedgerEvent]) -> list[LedgerEvent]:
    """Left fold from zero: balance += credit - debit, stamped on each event."""

    balance = ZERO
    stamped = []
    for event in chronological(events):
        balance += event.credit - event.debit
        stamped.append(event.model_copy(update={"running_balance": balance}))
    return stamped


def closing_balance(replayed: list[LedgerEvent]) -> Decimal:
    """Balance after the last replayed event, zero for an empty ledger."""

    return replayed[-1].running_balance if replayed else ZERO
