"""HTTP surface for customer account statements.

Statements are rebuilt from the source tables on every request; nothing is
cached or written.
"""

from datetime import date
from time import perf_counter
from uuid import uuid4

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request

from loanledger.common.config import settings
from loanledger.common.db import SessionLocal
from loanledger.common.logging import configure_logging, trace_id_ctx
from loanledger.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from loanledger.common.startup import log_startup_config
from loanledger.common.tracing import current_trace_id, instrument_app, setup_tracing
from loanledger.services.statement.errors import CustomerNotFound, SourceUnavailable
from loanledger.services.statement.filters import DateFilter
from loanledger.services.statement.schemas import Statement, StatementPage
from loanledger.services.statement.service import StatementService
from loanledger.services.statement.source import SqlStatementSource

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(
    settings,
    [
        "service_name",
        "postgres_dsn",
        "source_fetch_timeout_seconds",
        "country_calling_code",
        "statement_timezone",
        "otel_enabled",
        "otel_sample_ratio",
    ],
)
service = StatementService(SqlStatementSource(SessionLocal))

app = FastAPI(title="Loan Ledger Statement Service")
instrument_app(app)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Record request count and latency for every HTTP call."""

    start = perf_counter()
    route = request.url.path
    method = request.method
    status_code = 500
    trace_token = trace_id_ctx.set(request.headers.get("x-trace-id") or current_trace_id() or str(uuid4()))
    try:
        response = await call_next(request)
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        return response
    finally:
        trace_id_ctx.reset(trace_token)
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()


def get_statement_service() -> StatementService:
    """Statement service used by the routes; overridden in tests."""

    return service


def enforce_api_key(x_api_key: str | None = Header(default=None)) -> None:
    """Reject requests that do not provide the configured API key."""

    if x_api_key != settings.api_key:
        raise HTTPException(status_code=401, detail="invalid API key")


async def _build(statements: StatementService, customer_id: int) -> Statement:
    """Build a statement, mapping fatal lookup errors to HTTP statuses."""

    try:
        return await statements.build(customer_id)
    except CustomerNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except SourceUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@app.get(
    "/customers/{customer_id}/statement",
    response_model=StatementPage,
    dependencies=[Depends(enforce_api_key)],
)
async def get_statement(
    customer_id: int,
    filter: DateFilter = DateFilter.ALL,
    page: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, ge=1, le=settings.max_page_size),
    search: str | None = None,
    start: date | None = None,
    end: date | None = None,
    statements: StatementService = Depends(get_statement_service),
):
    """Display-ordered statement page with summary and opening balance."""

    if start and end and start > end:
        raise HTTPException(status_code=422, detail="start must not be after end")
    statement = await _build(statements, customer_id)
    view = statements.view(
        statement,
        date_filter=filter,
        page=page,
        page_size=page_size,
        search=search,
        custom_start=start,
        custom_end=end,
        now=statement.generated_at,
    )
    return StatementPage(
        customer=statement.customer,
        customer_name=statement.customer.display_name,
        generated_at=statement.generated_at,
        period=statement.period,
        summary=statement.summary,
        opening_balance=statement.opening_balance,
        warnings=statement.warnings,
        is_partial=statement.is_partial,
        view=view,
    )


@app.get(
    "/customers/{customer_id}/statement/full",
    response_model=Statement,
    dependencies=[Depends(enforce_api_key)],
)
async def get_full_statement(
    customer_id: int,
    statements: StatementService = Depends(get_statement_service),
):
    """Complete statement (chronological and display lists) for exporters."""

    return await _build(statements, customer_id)


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}
