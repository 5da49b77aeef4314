"""Display ordering, opening balance row and statement period."""

from datetime import datetime, timezone
from decimal import Decimal

from conftest import NOW, at

from loanledger.services.statement.events import EventKind, LedgerEvent
from loanledger.services.statement.presenter import OPENING_BALANCE_ID, month_bounds, present, statement_period
from loanledger.services.statement.reducer import replay


def deposit(id, when, amount) -> LedgerEvent:
    return LedgerEvent(
        id=id,
        occurred_at=when,
        kind=EventKind.MOBILE_DEPOSIT,
        credit=Decimal(amount),
        sequence_rank=1,
    )


def test_opening_balance_is_first_even_when_events_are_in_the_future():
    """The Balance B/F row leads regardless of other timestamps."""

    future = datetime(2031, 1, 1, tzinfo=timezone.utc)
    replayed = replay([deposit("old", at(1), "10"), deposit("future", future, "5")])
    display = present(replayed, NOW)

    assert display[0].is_opening_balance
    assert display[0].id == OPENING_BALANCE_ID
    assert display[0].description == "Balance B/F"
    assert display[0].running_balance == Decimal("15")
    assert display[0].debit == display[0].credit == Decimal("0")
    assert display[0].occurred_at == NOW
    assert [e.id for e in display[1:]] == ["future", "old"]
    assert sum(e.is_opening_balance for e in display) == 1


def test_empty_account_has_only_the_opening_row():
    display = present([], NOW)
    assert len(display) == 1
    assert display[0].running_balance == Decimal("0")


def test_period_spans_the_events():
    replayed = replay([deposit("a", at(3), "1"), deposit("b", at(12, 18), "1")])
    period = statement_period(present(replayed, NOW), NOW, timezone.utc)

    assert period.start == at(3)
    assert period.end == at(12, 18)


def test_period_falls_back_to_current_month():
    period = statement_period(present([], NOW), NOW, timezone.utc)

    assert period == month_bounds(NOW, timezone.utc)
    assert period.start == datetime(2025, 5, 1, tzinfo=timezone.utc)
    assert period.end.date().isoformat() == "2025-05-31"
    assert period.end.hour == 23
