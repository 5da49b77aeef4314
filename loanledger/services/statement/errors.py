"""Failure taxonomy for statement generation.

Only the customer lookup can abort a statement. Every other anomaly is absorbed
with a fallback and reported as a `SourceWarning` or a log line.
"""

from pydantic import BaseModel, ConfigDict


class StatementError(Exception):
    """Base class for statement failures surfaced to callers."""


class CustomerNotFound(StatementError, LookupError):
    """The requested customer does not exist."""

    def __init__(self, customer_id: int) -> None:
        super().__init__(f"customer {customer_id} not found")
        self.customer_id = customer_id


class SourceUnavailable(StatementError):
    """The customer lookup itself failed or timed out."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source} unavailable: {reason}")
        self.source = source
        self.reason = reason


class SourceWarning(BaseModel):
    """A secondary source that degraded to empty (partial statement)."""

    model_config = ConfigDict(frozen=True)

    source: str
    error_type: str
    reason: str
