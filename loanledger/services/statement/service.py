"""Statement generation pipeline.

collect -> normalize -> replay -> present -> summarize. Each stage is a plain
function over immutable values; this class wires them together with logging,
metrics and tracing, and applies the filter/search/pagination view.
"""

from datetime import date, datetime, timezone, tzinfo
from time import perf_counter
from zoneinfo import ZoneInfo

from loanledger.common.config import settings
from loanledger.common.logging import customer_context, logger
from loanledger.common.metrics import (
    statement_build_seconds,
    statement_failures_total,
    statement_partial_total,
    statement_requests_total,
)
from loanledger.common.tracing import tracer
from loanledger.services.statement.collector import Collector
from loanledger.services.statement.errors import CustomerNotFound, SourceUnavailable
from loanledger.services.statement.filters import (
    DateFilter,
    apply_date_filter,
    date_range,
    find_transaction,
    paginate,
)
from loanledger.services.statement.normalizer import normalize
from loanledger.services.statement.presenter import present, statement_period
from loanledger.services.statement.reducer import replay
from loanledger.services.statement.schemas import Statement, StatementView
from loanledger.services.statement.source import StatementSource
from loanledger.services.statement.summary import summarize


class StatementService:
    """Builds customer account statements from a `StatementSource`."""

    def __init__(
        self,
        source: StatementSource,
        service_name: str | None = None,
        timeout_seconds: float | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self.service_name = service_name or settings.service_name
        self.collector = Collector(source, timeout_seconds=timeout_seconds, service_name=self.service_name)
        self.tz = tz or ZoneInfo(settings.statement_timezone)

    async def build(self, customer_id: int, now: datetime | None = None) -> Statement:
        """Produce a statement; only a missing or unreadable customer raises."""

        now = now or datetime.now(timezone.utc)
        started = perf_counter()
        statement_requests_total.labels(service=self.service_name).inc()
        with customer_context(customer_id):
            try:
                statement = await self._assemble(customer_id, now)
            finally:
                statement_build_seconds.labels(service=self.service_name).observe(
                    max(0.0, perf_counter() - started)
                )
            if statement.is_partial:
                statement_partial_total.labels(service=self.service_name).inc()
                logger.warning(
                    "statement_partial customer_id=%s degraded=%s",
                    customer_id,
                    [w.source for w in statement.warnings],
                )
            logger.info(
                "statement_built customer_id=%s events=%s closing_balance=%s",
                customer_id,
                len(statement.events),
                statement.opening_balance.running_balance,
            )
            return statement

    async def _assemble(self, customer_id: int, now: datetime) -> Statement:
        with tracer.start_as_current_span("statement.build") as span:
            span.set_attribute("statement.customer_id", customer_id)
            try:
                snapshot, warnings = await self.collector.collect(customer_id)
            except CustomerNotFound:
                statement_failures_total.labels(service=self.service_name, reason="customer_not_found").inc()
                logger.info("statement_customer_not_found customer_id=%s", customer_id)
                raise
            except SourceUnavailable as exc:
                statement_failures_total.labels(service=self.service_name, reason="source_unavailable").inc()
                logger.error("statement_source_unavailable customer_id=%s error=%s", customer_id, exc)
                raise

            events = replay(normalize(snapshot))
            statement = Statement(
                customer=snapshot.customer,
                events=events,
                display_events=present(events, now),
                summary=summarize(snapshot.loans, snapshot.loan_payments, snapshot.loan_installments),
                period=statement_period(events, now, self.tz),
                generated_at=now,
                warnings=warnings,
            )
            span.set_attribute("statement.events", len(events))
            span.set_attribute("statement.partial", statement.is_partial)
            return statement

    def view(
        self,
        statement: Statement,
        date_filter: DateFilter = DateFilter.ALL,
        page: int = 1,
        page_size: int | None = None,
        search: str | None = None,
        custom_start: date | None = None,
        custom_end: date | None = None,
        now: datetime | None = None,
    ) -> StatementView:
        """Filter by date, or narrow to a single search hit, then paginate.

        A successful search replaces the date filter instead of composing with
        it; an unsuccessful one falls back to the date-filtered list.
        """

        now = now or datetime.now(timezone.utc)
        window = date_range(date_filter, now, self.tz, custom_start, custom_end)
        match = find_transaction(statement.display_events, search)
        if match is not None:
            visible = [match]
        else:
            visible = apply_date_filter(statement.display_events, window)
        searched = search is not None and bool(search.strip())
        return StatementView(
            filter=date_filter,
            window=window,
            custom_start=custom_start,
            custom_end=custom_end,
            search=search if searched else None,
            search_matched=(match is not None) if searched else None,
            page=paginate(visible, page, page_size or settings.default_page_size),
        )
