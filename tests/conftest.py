"""Shared fixtures: environment for settings and record factories."""

import os

os.environ.setdefault("POSTGRES_DSN", "sqlite://")
os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("OTEL_ENABLED", "false")
os.environ.setdefault("STATEMENT_TIMEZONE", "UTC")

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402

from loanledger.services.statement.records import (  # noqa: E402
    Customer,
    DisbursementTransaction,
    ExternalCollection,
    Loan,
    LoanInstallment,
    LoanPayment,
    SourceSnapshot,
    WalletCredit,
)
from loanledger.services.statement.source import InMemoryStatementSource  # noqa: E402


MOBILE = "0712345678"
NOW = datetime(2025, 5, 14, 9, 30, tzinfo=timezone.utc)


def at(day: int, hour: int = 10, minute: int = 0, month: int = 5) -> datetime:
    return datetime(2025, month, day, hour, minute, tzinfo=timezone.utc)


def make_customer(**overrides) -> Customer:
    fields = {"id": 1, "first_name": "Amina", "surname": "Otieno", "mobile": MOBILE, "created_at": at(1, 8)}
    fields.update(overrides)
    return Customer(**fields)


def make_loan(**overrides) -> Loan:
    fields = {
        "id": 10,
        "customer_id": 1,
        "scored_amount": "10000",
        "processing_fee": "0",
        "registration_fee": "0",
        "total_payable": "12000",
        "total_interest": "2000",
        "created_at": at(2),
    }
    fields.update(overrides)
    return Loan(**fields)


def make_payment(**overrides) -> LoanPayment:
    fields = {
        "id": 100,
        "loan_id": 10,
        "paid_amount": "300",
        "mpesa_receipt": "XYZ",
        "paid_at": at(10),
        "payment_type": "principal",
    }
    fields.update(overrides)
    return LoanPayment(**fields)


def make_collection(**overrides) -> ExternalCollection:
    fields = {
        "id": 500,
        "amount": "1000",
        "transaction_time": at(5),
        "transaction_id": "C2B001",
        "phone_number": "254712345678",
        "status": "applied",
    }
    fields.update(overrides)
    return ExternalCollection(**fields)


def make_wallet_credit(**overrides) -> WalletCredit:
    fields = {
        "id": 700,
        "customer_id": 1,
        "amount": "250",
        "type": "credit",
        "created_at": at(4),
        "mpesa_reference": "WAL001",
    }
    fields.update(overrides)
    return WalletCredit(**fields)


def make_disbursement(**overrides) -> DisbursementTransaction:
    fields = {
        "id": 900,
        "loan_id": 10,
        "amount": "10000",
        "transaction_id": "DISB001",
        "processed_at": at(3),
        "status": "success",
    }
    fields.update(overrides)
    return DisbursementTransaction(**fields)


def make_installment(**overrides) -> LoanInstallment:
    fields = {"id": 300, "loan_id": 10, "paid_amount": "0", "status": "pending"}
    fields.update(overrides)
    return LoanInstallment(**fields)


def snapshot(**sets) -> SourceSnapshot:
    sets.setdefault("customer", make_customer())
    return SourceSnapshot(**{key: tuple(value) if isinstance(value, list) else value for key, value in sets.items()})


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def busy_source() -> InMemoryStatementSource:
    """Customer with a fee, a disbursed loan, deposits, and grouped repayments."""

    return InMemoryStatementSource(
        customers=[make_customer()],
        loans=[make_loan(registration_fee="500", processing_fee="200")],
        loan_payments=[
            make_payment(id=100, paid_amount="300", payment_type="principal", mpesa_receipt="XYZ"),
            make_payment(id=101, paid_amount="100", payment_type="interest", mpesa_receipt="XYZ"),
        ],
        loan_installments=[make_installment(principal_paid="300", interest_paid="100")],
        external_collections=[
            make_collection(id=500, transaction_id="C2B001", amount="1000"),
            make_collection(id=501, transaction_id="XYZ", amount="400", transaction_time=at(10)),
            make_collection(id=502, transaction_id="C2B002", status="pending"),
        ],
        wallet_credits=[make_wallet_credit()],
        disbursements=[make_disbursement()],
    )
