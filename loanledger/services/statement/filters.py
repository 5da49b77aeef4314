"""Date-range filtering, point search and pagination over a display ledger.

All helpers take the display list (opening balance first, newest after) and
never drop the opening-balance row when filtering by date.
"""

import calendar
import math
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum

from pydantic import BaseModel, ConfigDict

from loanledger.services.statement.events import LedgerEvent
from loanledger.services.statement.records import EPOCH


GAP = "..."
MAX_VISIBLE_PAGES = 5


class DateFilter(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    CUSTOM = "custom"
    ALL = "all"


class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    def __contains__(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class Page(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: list[LedgerEvent]
    total: int
    page: int
    page_size: int
    total_pages: int
    page_numbers: list[int | str]


def _span(first: date, last: date, tz: tzinfo) -> DateRange:
    return DateRange(
        start=datetime.combine(first, time.min, tzinfo=tz),
        end=datetime.combine(last, time.max, tzinfo=tz),
    )


def date_range(
    selected: DateFilter,
    now: datetime,
    tz: tzinfo,
    custom_start: date | None = None,
    custom_end: date | None = None,
) -> DateRange | None:
    """Calendar window for a filter, evaluated in the statement timezone.

    Weeks run Sunday to Saturday. `ALL` has no window.
    """

    today = now.astimezone(tz).date()
    if selected is DateFilter.TODAY:
        return _span(today, today, tz)
    if selected is DateFilter.WEEK:
        sunday = today - timedelta(days=(today.weekday() + 1) % 7)
        return _span(sunday, sunday + timedelta(days=6), tz)
    if selected is DateFilter.MONTH:
        last_day = calendar.monthrange(today.year, today.month)[1]
        return _span(today.replace(day=1), today.replace(day=last_day), tz)
    if selected is DateFilter.QUARTER:
        first_month = (today.month - 1) // 3 * 3 + 1
        last_month = first_month + 2
        last_day = calendar.monthrange(today.year, last_month)[1]
        return _span(date(today.year, first_month, 1), date(today.year, last_month, last_day), tz)
    if selected is DateFilter.YEAR:
        return _span(date(today.year, 1, 1), date(today.year, 12, 31), tz)
    if selected is DateFilter.CUSTOM:
        start = datetime.combine(custom_start, time.min, tzinfo=tz) if custom_start else EPOCH
        end = datetime.combine(custom_end or today, time.max, tzinfo=tz)
        return DateRange(start=start, end=end)
    return None


def apply_date_filter(display_events: list[LedgerEvent], window: DateRange | None) -> list[LedgerEvent]:
    """Keep the opening balance on top and the in-window events after it."""

    opening = [e for e in display_events if e.is_opening_balance]
    others = [e for e in display_events if not e.is_opening_balance]
    if window is not None:
        others = [e for e in others if e.occurred_at in window]
    return opening + others


def find_transaction(display_events: list[LedgerEvent], term: str | None) -> LedgerEvent | None:
    """First event whose reference or description contains `term` (case-sensitive)."""

    if term is None or not term.strip():
        return None
    for event in display_events:
        if term in event.reference or term in event.description:
            return event
    return None


def page_numbers(current: int, total_pages: int) -> list[int | str]:
    """Pager labels: every page when few, else first, neighbours and last with gaps."""

    if total_pages <= MAX_VISIBLE_PAGES:
        return list(range(1, total_pages + 1))
    start = max(2, current - 1)
    end = min(total_pages - 1, current + 1)
    pages: list[int | str] = [1]
    if start > 2:
        pages.append(GAP)
    pages.extend(range(start, end + 1))
    if end < total_pages - 1:
        pages.append(GAP)
    pages.append(total_pages)
    return pages


def paginate(items: list[LedgerEvent], page: int, page_size: int) -> Page:
    """Slice one 1-based page; out-of-range pages come back empty."""

    if page < 1:
        raise ValueError("page must be >= 1")
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    total = len(items)
    total_pages = math.ceil(total / page_size)
    offset = (page - 1) * page_size
    return Page(
        items=items[offset : offset + page_size],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        page_numbers=page_numbers(page, total_pages),
    )
