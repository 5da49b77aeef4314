"""Loan-level totals computed straight from the source record sets.

These figures are independent of the event stream: joining fees and free
deposits move the running balance but never the loan summary.
"""

from collections.abc import Iterable
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict

from loanledger.services.statement.records import ZERO, Loan, LoanInstallment, LoanPayment


class PaidSource(str, Enum):
    LOAN_PAYMENTS = "loan_payments"
    INSTALLMENT_BREAKDOWN = "installment_breakdown"
    INSTALLMENT_PAID_AMOUNT = "installment_paid_amount"
    NONE = "none"


class StatementSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_loan_amount: Decimal = ZERO
    principal: Decimal = ZERO
    interest: Decimal = ZERO
    total_paid: Decimal = ZERO
    outstanding_balance: Decimal = ZERO
    paid_source: PaidSource = PaidSource.NONE
    loan_payment_count: int = 0
    installment_count: int = 0


def _total(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def total_paid(
    payments: tuple[LoanPayment, ...], installments: tuple[LoanInstallment, ...]
) -> tuple[Decimal, PaidSource]:
    """Amount repaid, preferring loan payments over installment bookkeeping."""

    if payments:
        return _total(p.paid_amount for p in payments), PaidSource.LOAN_PAYMENTS
    if any(i.has_breakdown for i in installments):
        paid = _total((i.principal_paid or ZERO) + (i.interest_paid or ZERO) for i in installments)
        return paid, PaidSource.INSTALLMENT_BREAKDOWN
    if installments:
        return _total(i.paid_amount for i in installments), PaidSource.INSTALLMENT_PAID_AMOUNT
    return ZERO, PaidSource.NONE


def summarize(
    loans: tuple[Loan, ...],
    payments: tuple[LoanPayment, ...],
    installments: tuple[LoanInstallment, ...],
) -> StatementSummary:
    """Loan totals plus the repaid amount and what it was derived from."""

    total_loan_amount = _total(loan.total_payable for loan in loans)
    paid, source = total_paid(payments, installments)
    return StatementSummary(
        total_loan_amount=total_loan_amount,
        principal=_total(loan.scored_amount for loan in loans),
        interest=_total(loan.total_interest for loan in loans),
        total_paid=paid,
        # Overpayment shows as a negative outstanding balance.
        outstanding_balance=total_loan_amount - paid,
        paid_source=source,
        loan_payment_count=len(payments),
        installment_count=len(installments),
    )
