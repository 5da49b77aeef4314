"""Date windows, point search and pagination over the display list."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from conftest import NOW, at

from loanledger.services.statement.events import EventKind, LedgerEvent
from loanledger.services.statement.filters import (
    DateFilter,
    apply_date_filter,
    date_range,
    find_transaction,
    page_numbers,
    paginate,
)
from loanledger.services.statement.presenter import present
from loanledger.services.statement.reducer import replay


UTC = timezone.utc


def line(id, when, reference="-", kind=EventKind.MOBILE_DEPOSIT) -> LedgerEvent:
    return LedgerEvent(
        id=id,
        occurred_at=when,
        kind=kind,
        reference=reference,
        credit=Decimal("1"),
        sequence_rank=1,
    )


@pytest.fixture
def display():
    events = [
        line("jan", datetime(2025, 1, 20, tzinfo=UTC), "QJAN"),
        line("may-early", at(2), "QMAY1"),
        line("today", at(14, 8), "QTODAY"),
        line("fee", at(13), kind=EventKind.PROCESSING_FEE),
    ]
    return present(replay(events), NOW)


def test_windows_follow_the_calendar():
    """NOW is Wednesday 2025-05-14."""

    today = date_range(DateFilter.TODAY, NOW, UTC)
    assert (today.start.date(), today.end.date()) == (date(2025, 5, 14), date(2025, 5, 14))

    week = date_range(DateFilter.WEEK, NOW, UTC)
    assert (week.start.date(), week.end.date()) == (date(2025, 5, 11), date(2025, 5, 17))
    assert week.start.weekday() == 6

    month = date_range(DateFilter.MONTH, NOW, UTC)
    assert (month.start.date(), month.end.date()) == (date(2025, 5, 1), date(2025, 5, 31))

    quarter = date_range(DateFilter.QUARTER, NOW, UTC)
    assert (quarter.start.date(), quarter.end.date()) == (date(2025, 4, 1), date(2025, 6, 30))

    year = date_range(DateFilter.YEAR, NOW, UTC)
    assert (year.start.date(), year.end.date()) == (date(2025, 1, 1), date(2025, 12, 31))

    assert date_range(DateFilter.ALL, NOW, UTC) is None


def test_custom_window_defaults_and_end_of_day():
    window = date_range(DateFilter.CUSTOM, NOW, UTC, custom_end=date(2025, 5, 2))
    assert window.start.year == 1970
    assert at(2, 23, 59) in window

    bounded = date_range(DateFilter.CUSTOM, NOW, UTC, custom_start=date(2025, 5, 13))
    assert at(13, 0) in bounded
    assert bounded.end.date() == date(2025, 5, 14)


def test_week_starting_on_sunday():
    sunday = datetime(2025, 5, 11, 12, tzinfo=UTC)
    week = date_range(DateFilter.WEEK, sunday, UTC)
    assert week.start.date() == date(2025, 5, 11)


def test_date_filter_keeps_opening_balance_first(display):
    filtered = apply_date_filter(display, date_range(DateFilter.TODAY, NOW, UTC))
    assert [e.id for e in filtered] == ["balance-bf", "today"]

    nothing = apply_date_filter(display, date_range(DateFilter.CUSTOM, NOW, UTC, date(2020, 1, 1), date(2020, 1, 2)))
    assert [e.id for e in nothing] == ["balance-bf"]

    assert apply_date_filter(display, None) == display


def test_find_transaction_is_case_sensitive_substring(display):
    assert find_transaction(display, "QMAY").id == "may-early"
    assert find_transaction(display, "qmay") is None
    assert find_transaction(display, "Processing").id == "fee"
    assert find_transaction(display, "   ") is None
    assert find_transaction(display, None) is None


def test_search_can_hit_the_opening_row(display):
    assert find_transaction(display, "B/F").is_opening_balance


def test_paginate_slices_and_counts(display):
    first = paginate(display, page=1, page_size=2)
    assert [e.id for e in first.items] == ["balance-bf", "today"]
    assert (first.total, first.total_pages) == (5, 3)

    last = paginate(display, page=3, page_size=2)
    assert [e.id for e in last.items] == ["jan"]

    beyond = paginate(display, page=9, page_size=2)
    assert beyond.items == []
    assert beyond.total == 5


def test_paginate_rejects_bad_arguments(display):
    with pytest.raises(ValueError):
        paginate(display, page=0, page_size=10)
    with pytest.raises(ValueError):
        paginate(display, page=1, page_size=0)


def test_page_number_window():
    assert page_numbers(1, 0) == []
    assert page_numbers(2, 5) == [1, 2, 3, 4, 5]
    assert page_numbers(1, 10) == [1, 2, "...", 10]
    assert page_numbers(5, 10) == [1, "...", 4, 5, 6, "...", 10]
    assert page_numbers(10, 10) == [1, "...", 9, 10]
    assert page_numbers(3, 6) == [1, 2, 3, 4, "...", 6]
