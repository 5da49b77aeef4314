"""Display ordering and statement period for a replayed ledger."""

import calendar
from datetime import datetime, time, tzinfo

from pydantic import BaseModel, ConfigDict

from loanledger.services.statement.events import NO_REFERENCE, RANK_OPENING, EventKind, LedgerEvent
from loanledger.services.statement.reducer import closing_balance


OPENING_BALANCE_ID = "balance-bf"


class StatementPeriod(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime


def opening_balance(replayed: list[LedgerEvent], at: datetime) -> LedgerEvent:
    """Synthetic "Balance B/F" row carrying the closing balance."""

    return LedgerEvent(
        id=OPENING_BALANCE_ID,
        occurred_at=at,
        kind=EventKind.OPENING_BALANCE,
        reference=NO_REFERENCE,
        running_balance=closing_balance(replayed),
        sequence_rank=RANK_OPENING,
        is_opening_balance=True,
    )


def present(replayed: list[LedgerEvent], now: datetime) -> list[LedgerEvent]:
    """Newest first, with the opening balance pinned on top."""

    return [opening_balance(replayed, now), *reversed(replayed)]


def month_bounds(now: datetime, tz: tzinfo) -> StatementPeriod:
    """First instant to last instant of the calendar month containing `now`."""

    local = now.astimezone(tz)
    last_day = calendar.monthrange(local.year, local.month)[1]
    start = datetime.combine(local.date().replace(day=1), time.min, tzinfo=tz)
    end = datetime.combine(local.date().replace(day=last_day), time.max, tzinfo=tz)
    return StatementPeriod(start=start, end=end)


def statement_period(events: list[LedgerEvent], now: datetime, tz: tzinfo) -> StatementPeriod:
    """Span of the non-opening events, or the current calendar month if none."""

    stamps = [e.occurred_at for e in events if not e.is_opening_balance]
    if not stamps:
        return month_bounds(now, tz)
    return StatementPeriod(start=min(stamps), end=max(stamps))
