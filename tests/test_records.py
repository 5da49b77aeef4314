"""Boundary coercion of raw source rows into typed records."""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from prometheus_client import REGISTRY

from conftest import make_customer, make_installment, make_loan, make_payment

from loanledger.common.config import settings
from loanledger.services.statement.records import EPOCH, ZERO, LoanPayment, coerce_amount


def test_null_and_blank_amounts_are_zero():
    """Missing monetary values resolve to zero once, at the boundary."""

    loan = make_loan(scored_amount=None, processing_fee="", total_payable=None)
    assert loan.scored_amount == ZERO
    assert loan.processing_fee == ZERO
    assert loan.total_payable == ZERO


def test_malformed_amounts_are_coerced_to_zero():
    """Garbage numbers never reach the running balance."""

    assert coerce_amount("12,5OO", "loans.scored_amount") == ZERO
    assert coerce_amount("NaN", "loans.scored_amount") == ZERO
    assert coerce_amount(float("inf"), "loans.scored_amount") == ZERO
    assert coerce_amount(True, "loans.scored_amount") == ZERO
    assert make_payment(paid_amount="abc").paid_amount == ZERO


def test_numeric_inputs_keep_decimal_precision():
    assert coerce_amount(0.1, "x") == Decimal("0.1")
    assert coerce_amount(" 250.50 ", "x") == Decimal("250.50")
    assert coerce_amount(7, "x") == Decimal("7")


def test_naive_timestamps_are_utc_and_missing_ones_pin_to_epoch():
    naive = make_payment(paid_at=datetime(2025, 5, 10, 10, 0))
    assert naive.paid_at == datetime(2025, 5, 10, 10, 0, tzinfo=timezone.utc)

    missing = LoanPayment(id=1, loan_id=1, paid_amount="5", paid_at=None)
    assert missing.paid_at == EPOCH


def test_blank_references_are_treated_as_missing():
    assert make_payment(mpesa_receipt="   ").mpesa_receipt is None
    assert make_payment(mpesa_receipt=" QAB12 ").mpesa_receipt == "QAB12"


def test_installment_breakdown_distinguishes_absent_from_zero():
    assert not make_installment().has_breakdown
    assert make_installment(principal_paid="0").has_breakdown


def test_display_name_skips_missing_parts():
    assert make_customer(surname=None).display_name == "Amina"
    assert make_customer(first_name=None, surname=None).display_name == "Customer"


def test_malformed_amount_is_logged_and_counted(caplog):
    """Each coerced value leaves a warning and a counter increment behind."""

    labels = {"service": settings.service_name, "field": "loans.total_interest"}
    before = REGISTRY.get_sample_value("malformed_amounts_total", labels) or 0.0

    with caplog.at_level(logging.WARNING, logger="loanledger"):
        loan = make_loan(total_interest="two thousand")

    assert loan.total_interest == ZERO
    assert REGISTRY.get_sample_value("malformed_amounts_total", labels) == before + 1
    assert any(
        "malformed_amount field=loans.total_interest" in record.getMessage() for record in caplog.records
    )
