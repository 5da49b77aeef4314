"""Data-access port for statement inputs and its implementations.

The collector depends only on `StatementSource`. `SqlStatementSource` reads the
production tables through SQLAlchemy; `InMemoryStatementSource` serves fixtures
with the same filter semantics (status flags, phone matching).
"""

import re
from collections.abc import Iterable, Sequence
from typing import Protocol

from sqlalchemy import select

from loanledger.common.config import settings
from loanledger.common.db import read_only_session
from loanledger.services.statement.models import (
    CustomerRow,
    CustomerWalletRow,
    LoanDisbursementTransactionRow,
    LoanInstallmentRow,
    LoanPaymentRow,
    LoanRow,
    MpesaC2BTransactionRow,
)
from loanledger.services.statement.records import (
    Customer,
    DisbursementTransaction,
    ExternalCollection,
    Loan,
    LoanInstallment,
    LoanPayment,
    WalletCredit,
)


COLLECTION_APPLIED = "applied"
DISBURSEMENT_SUCCESS = "success"
WALLET_CREDIT = "credit"

_LOCAL_PREFIX = re.compile(r"^\+?254|^0")


def normalize_mobile(mobile: str, calling_code: str | None = None) -> str:
    """Rewrite a leading `+254`, `254` or `0` to the bare calling code."""

    code = calling_code or settings.country_calling_code
    prefix = _LOCAL_PREFIX if code == "254" else re.compile(rf"^\+?{re.escape(code)}|^0")
    return prefix.sub(code, mobile.strip(), count=1)


def mobile_variants(mobile: str | None, calling_code: str | None = None) -> list[str]:
    """Registered number plus its normalized form, without duplicates."""

    if not mobile or not mobile.strip():
        return []
    variants = [mobile, normalize_mobile(mobile, calling_code)]
    return list(dict.fromkeys(variants))


class StatementSource(Protocol):
    """Read-only queries the statement engine needs from its environment."""

    def get_customer(self, customer_id: int) -> Customer | None: ...

    def list_loans(self, customer_id: int) -> Sequence[Loan]: ...

    def list_loan_payments(self, loan_ids: Sequence[int]) -> Sequence[LoanPayment]: ...

    def list_loan_installments(self, loan_ids: Sequence[int]) -> Sequence[LoanInstallment]: ...

    def list_external_collections(self, mobiles: Sequence[str]) -> Sequence[ExternalCollection]: ...

    def list_disbursements(self, loan_ids: Sequence[int]) -> Sequence[DisbursementTransaction]: ...

    def list_wallet_credits(self, customer_id: int) -> Sequence[WalletCredit]: ...


class SqlStatementSource:
    """`StatementSource` over the loan-origination Postgres tables."""

    def __init__(self, session_factory) -> None:
        self.session_factory = session_factory

    def get_customer(self, customer_id: int) -> Customer | None:
        with read_only_session(self.session_factory) as db:
            row = db.get(CustomerRow, customer_id)
            return Customer.model_validate(row) if row is not None else None

    def list_loans(self, customer_id: int) -> list[Loan]:
        with read_only_session(self.session_factory) as db:
            rows = db.execute(
                select(LoanRow).where(LoanRow.customer_id == customer_id).order_by(LoanRow.created_at.asc())
            ).scalars()
            return [Loan.model_validate(row) for row in rows]

    def list_loan_payments(self, loan_ids: Sequence[int]) -> list[LoanPayment]:
        with read_only_session(self.session_factory) as db:
            rows = db.execute(
                select(LoanPaymentRow)
                .where(LoanPaymentRow.loan_id.in_(loan_ids))
                .order_by(LoanPaymentRow.paid_at.asc())
            ).scalars()
            return [LoanPayment.model_validate(row) for row in rows]

    def list_loan_installments(self, loan_ids: Sequence[int]) -> list[LoanInstallment]:
        with read_only_session(self.session_factory) as db:
            rows = db.execute(select(LoanInstallmentRow).where(LoanInstallmentRow.loan_id.in_(loan_ids))).scalars()
            return [LoanInstallment.model_validate(row) for row in rows]

    def list_external_collections(self, mobiles: Sequence[str]) -> list[ExternalCollection]:
        with read_only_session(self.session_factory) as db:
            rows = db.execute(
                select(MpesaC2BTransactionRow)
                .where(
                    MpesaC2BTransactionRow.status == COLLECTION_APPLIED,
                    MpesaC2BTransactionRow.phone_number.in_(mobiles),
                )
                .order_by(MpesaC2BTransactionRow.transaction_time.asc())
            ).scalars()
            return [ExternalCollection.model_validate(row) for row in rows]

    def list_disbursements(self, loan_ids: Sequence[int]) -> list[DisbursementTransaction]:
        with read_only_session(self.session_factory) as db:
            rows = db.execute(
                select(LoanDisbursementTransactionRow)
                .where(
                    LoanDisbursementTransactionRow.status == DISBURSEMENT_SUCCESS,
                    LoanDisbursementTransactionRow.loan_id.in_(loan_ids),
                )
                .order_by(LoanDisbursementTransactionRow.processed_at.asc())
            ).scalars()
            return [DisbursementTransaction.model_validate(row) for row in rows]

    def list_wallet_credits(self, customer_id: int) -> list[WalletCredit]:
        with read_only_session(self.session_factory) as db:
            rows = db.execute(
                select(CustomerWalletRow).where(
                    CustomerWalletRow.customer_id == customer_id,
                    CustomerWalletRow.type == WALLET_CREDIT,
                    CustomerWalletRow.mpesa_reference.is_not(None),
                )
            ).scalars()
            return [WalletCredit.model_validate(row) for row in rows]


class InMemoryStatementSource:
    """`StatementSource` over plain record lists, for fixtures and offline tooling."""

    def __init__(
        self,
        customers: Iterable[Customer] = (),
        loans: Iterable[Loan] = (),
        loan_payments: Iterable[LoanPayment] = (),
        loan_installments: Iterable[LoanInstallment] = (),
        external_collections: Iterable[ExternalCollection] = (),
        wallet_credits: Iterable[WalletCredit] = (),
        disbursements: Iterable[DisbursementTransaction] = (),
    ) -> None:
        self.customers = {c.id: c for c in customers}
        self.loans = list(loans)
        self.loan_payments = list(loan_payments)
        self.loan_installments = list(loan_installments)
        self.external_collections = list(external_collections)
        self.wallet_credits = list(wallet_credits)
        self.disbursements = list(disbursements)

    def get_customer(self, customer_id: int) -> Customer | None:
        return self.customers.get(customer_id)

    def list_loans(self, customer_id: int) -> list[Loan]:
        return [loan for loan in self.loans if loan.customer_id == customer_id]

    def list_loan_payments(self, loan_ids: Sequence[int]) -> list[LoanPayment]:
        return [p for p in self.loan_payments if p.loan_id in loan_ids]

    def list_loan_installments(self, loan_ids: Sequence[int]) -> list[LoanInstallment]:
        return [i for i in self.loan_installments if i.loan_id in loan_ids]

    def list_external_collections(self, mobiles: Sequence[str]) -> list[ExternalCollection]:
        return [
            c
            for c in self.external_collections
            if c.status == COLLECTION_APPLIED and c.phone_number in mobiles
        ]

    def list_disbursements(self, loan_ids: Sequence[int]) -> list[DisbursementTransaction]:
        return [d for d in self.disbursements if d.status == DISBURSEMENT_SUCCESS and d.loan_id in loan_ids]

    def list_wallet_credits(self, customer_id: int) -> list[WalletCredit]:
        return [
            w
            for w in self.wallet_credits
            if w.customer_id == customer_id and w.type == WALLET_CREDIT and w.mpesa_reference is not None
        ]
