"""Two-wave concurrent retrieval of every record set a statement needs.

Wave 1 fetches the customer and their loans. Wave 2 fans out over everything
keyed by loan ids or by the customer's phone number. Each fetch runs in a
worker thread with its own timeout. Only the customer lookup is fatal; any
other failing fetch degrades to an empty set and is reported as a
`SourceWarning`.
"""

import asyncio
from collections.abc import Callable
from datetime import datetime
from time import perf_counter
from typing import Any, NamedTuple

from loanledger.common.config import settings
from loanledger.common.logging import logger
from loanledger.common.metrics import source_fetch_failures_total, source_fetch_seconds
from loanledger.common.tracing import tracer
from loanledger.services.statement.errors import CustomerNotFound, SourceUnavailable, SourceWarning
from loanledger.services.statement.records import EPOCH, SourceSnapshot
from loanledger.services.statement.source import StatementSource, mobile_variants


class FetchOutcome(NamedTuple):
    value: Any
    warning: SourceWarning | None


class CollectedSources(NamedTuple):
    snapshot: SourceSnapshot
    warnings: list[SourceWarning]


def missing_last(moment: datetime | None) -> tuple[bool, datetime]:
    """Ascending time key that puts missing (or epoch-pinned) timestamps last, like Postgres."""

    missing = moment is None or moment == EPOCH
    return missing, moment or EPOCH


def _error_type(exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "timeout"
    return type(exc).__name__


class Collector:
    """Fetches a `SourceSnapshot` for one customer from a `StatementSource`."""

    def __init__(
        self,
        source: StatementSource,
        timeout_seconds: float | None = None,
        calling_code: str | None = None,
        service_name: str | None = None,
    ) -> None:
        self.source = source
        self.timeout_seconds = timeout_seconds or settings.source_fetch_timeout_seconds
        self.calling_code = calling_code or settings.country_calling_code
        self.service_name = service_name or settings.service_name

    async def _attempt(self, name: str, fetch: Callable[..., Any], *args) -> FetchOutcome:
        """Run one blocking fetch off the event loop under the fetch timeout."""

        started = perf_counter()
        try:
            value = await asyncio.wait_for(asyncio.to_thread(fetch, *args), timeout=self.timeout_seconds)
            return FetchOutcome(value, None)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            error_type = _error_type(exc)
            logger.warning("source_fetch_failed source=%s error_type=%s error=%s", name, error_type, exc)
            source_fetch_failures_total.labels(
                service=self.service_name,
                source=name,
                error_type=error_type,
            ).inc()
            reason = str(exc) or error_type
            return FetchOutcome(None, SourceWarning(source=name, error_type=error_type, reason=reason))
        finally:
            source_fetch_seconds.labels(service=self.service_name, source=name).observe(
                max(0.0, perf_counter() - started)
            )

    async def _records(self, name: str, fetch: Callable[..., Any], *args) -> FetchOutcome:
        outcome = await self._attempt(name, fetch, *args)
        if outcome.warning is not None:
            return FetchOutcome((), outcome.warning)
        return FetchOutcome(tuple(outcome.value or ()), None)

    @staticmethod
    async def _skipped() -> FetchOutcome:
        return FetchOutcome((), None)

    async def collect(self, customer_id: int) -> CollectedSources:
        """Return the customer snapshot plus warnings for degraded sources.

        Raises `CustomerNotFound` when the customer does not exist and
        `SourceUnavailable` when the customer lookup itself fails.
        """

        with tracer.start_as_current_span("statement.collect.customer"):
            customer_outcome, loans_outcome = await asyncio.gather(
                self._attempt("customers", self.source.get_customer, customer_id),
                self._records("loans", self.source.list_loans, customer_id),
            )
        if customer_outcome.warning is not None:
            raise SourceUnavailable("customers", customer_outcome.warning.reason)
        customer = customer_outcome.value
        if customer is None:
            raise CustomerNotFound(customer_id)

        loans = tuple(sorted(loans_outcome.value, key=lambda loan: missing_last(loan.created_at)))
        loan_ids = [loan.id for loan in loans]
        mobiles = mobile_variants(customer.mobile, self.calling_code)

        with tracer.start_as_current_span("statement.collect.related"):
            payments, installments, collections, disbursements, wallet = await asyncio.gather(
                self._records("loan_payments", self.source.list_loan_payments, loan_ids)
                if loan_ids
                else self._skipped(),
                self._records("loan_installments", self.source.list_loan_installments, loan_ids)
                if loan_ids
                else self._skipped(),
                self._records("mpesa_c2b_transactions", self.source.list_external_collections, mobiles)
                if mobiles
                else self._skipped(),
                self._records("loan_disbursement_transactions", self.source.list_disbursements, loan_ids)
                if loan_ids
                else self._skipped(),
                self._records("customer_wallets", self.source.list_wallet_credits, customer_id),
            )

        warnings = [
            outcome.warning
            for outcome in (loans_outcome, payments, installments, collections, disbursements, wallet)
            if outcome.warning is not None
        ]
        snapshot = SourceSnapshot(
            customer=customer,
            loans=loans,
            loan_payments=tuple(sorted(payments.value, key=lambda p: missing_last(p.paid_at))),
            loan_installments=installments.value,
            external_collections=tuple(sorted(collections.value, key=lambda c: missing_last(c.transaction_time))),
            wallet_credits=wallet.value,
            disbursements=tuple(sorted(disbursements.value, key=lambda d: missing_last(d.processed_at))),
        )
        logger.info(
            "sources_collected customer_id=%s loans=%s payments=%s installments=%s collections=%s "
            "disbursements=%s wallet_credits=%s degraded=%s",
            customer_id,
            len(snapshot.loans),
            len(snapshot.loan_payments),
            len(snapshot.loan_installments),
            len(snapshot.external_collections),
            len(snapshot.disbursements),
            len(snapshot.wallet_credits),
            [w.source for w in warnings],
        )
        return CollectedSources(snapshot, warnings)
