"""Statement value objects returned to callers and over HTTP."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, computed_field

from loanledger.services.statement.errors import SourceWarning
from loanledger.services.statement.events import LedgerEvent
from loanledger.services.statement.filters import DateFilter, DateRange, Page
from loanledger.services.statement.presenter import StatementPeriod
from loanledger.services.statement.records import Customer
from loanledger.services.statement.summary import StatementSummary


class Statement(BaseModel):
    """Reconstructed account history for one customer.

    `events` is chronological (oldest first) for audit and export;
    `display_events` is newest first with the opening balance on top.
    """

    model_config = ConfigDict(frozen=True)

    customer: Customer
    events: list[LedgerEvent]
    display_events: list[LedgerEvent]
    summary: StatementSummary
    period: StatementPeriod
    generated_at: datetime
    warnings: list[SourceWarning] = []

    @computed_field
    @property
    def is_partial(self) -> bool:
        return bool(self.warnings)

    @property
    def opening_balance(self) -> LedgerEvent:
        """The Balance B/F row at the top of the display list."""

        return self.display_events[0]


class StatementView(BaseModel):
    """One filtered, searched and paginated slice of a statement."""

    model_config = ConfigDict(frozen=True)

    filter: DateFilter
    window: DateRange | None = None
    custom_start: date | None = None
    custom_end: date | None = None
    search: str | None = None
    search_matched: bool | None = None
    page: Page


class StatementPage(BaseModel):
    """HTTP response body for `GET /customers/{customer_id}/statement`."""

    customer: Customer
    customer_name: str
    generated_at: datetime
    period: StatementPeriod
    summary: StatementSummary
    opening_balance: LedgerEvent
    warnings: list[SourceWarning]
    is_partial: bool
    view: StatementView
