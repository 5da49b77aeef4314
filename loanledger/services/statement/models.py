"""ORM mappings for the externally-owned tables a statement reads.

The statement service never writes to these tables and does not own their
schema; only the columns it reads are mapped.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from loanledger.common.db import Base


class CustomerRow(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    first_name: Mapped[str | None] = mapped_column("Firstname", String, nullable=True)
    surname: Mapped[str | None] = mapped_column("Surname", String, nullable=True)
    mobile: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class LoanRow(Base):
    __tablename__ = "loans"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    customer_id: Mapped[int] = mapped_column(BigInteger, index=True)
    scored_amount: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    processing_fee: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    registration_fee: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    total_payable: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    total_interest: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class LoanPaymentRow(Base):
    __tablename__ = "loan_payments"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    loan_id: Mapped[int] = mapped_column(BigInteger, index=True)
    installment_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    paid_amount: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    mpesa_receipt: Mapped[str | None] = mapped_column(String, nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String, nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    payment_type: Mapped[str | None] = mapped_column(String, nullable=True)


class LoanInstallmentRow(Base):
    __tablename__ = "loan_installments"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    loan_id: Mapped[int] = mapped_column(BigInteger, index=True)
    principal_paid: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    interest_paid: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    paid_amount: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    status: Mapped[str | None] = mapped_column(String, nullable=True)


class MpesaC2BTransactionRow(Base):
    __tablename__ = "mpesa_c2b_transactions"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    amount: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    transaction_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    transaction_id: Mapped[str | None] = mapped_column(String, index=True, nullable=True)
    loan_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String, index=True, nullable=True)
    status: Mapped[str | None] = mapped_column(String, index=True, nullable=True)


class CustomerWalletRow(Base):
    __tablename__ = "customer_wallets"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    customer_id: Mapped[int] = mapped_column(BigInteger, index=True)
    amount: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    type: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    mpesa_reference: Mapped[str | None] = mapped_column(String, nullable=True)


class LoanDisbursementTransactionRow(Base):
    __tablename__ = "loan_disbursement_transactions"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    loan_id: Mapped[int] = mapped_column(BigInteger, index=True)
    amount: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    transaction_id: Mapped[str | None] = mapped_column(String, nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str | None] = mapped_column(String, index=True, nullable=True)
