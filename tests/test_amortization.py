"""Tests for PRICE amortization schedules."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerwise.domain.amortization import (
    amortization_and_interest_through_installment,
    installment_due_date,
    installments_due_by,
    is_installment_paid,
    loan_schedule,
    loan_summary,
    next_due_installment,
    outstanding_balance,
    overdue_installments,
    paid_installments_as_of,
    price_installment,
)
from ledgerwise.domain.entities import Loan, LoanStatus


def _loan(paid=0, **overrides):
    values = dict(
        id=1,
        contract="CDC-001",
        principal=Decimal("10000"),
        status=LoanStatus.ACTIVE,
        installment_amount=Decimal("945.60"),
        monthly_rate=Decimal("0.02"),
        term_months=12,
        start_date=date(2024, 1, 15),
        paid_installments=paid,
    )
    values.update(overrides)
    return Loan(**values)


class TestPriceInstallment:
    def test_reference_loan(self):
        assert price_installment(Decimal("10000"), Decimal("0.02"), 12) == Decimal("945.60")

    def test_zero_rate_divides_principal(self):
        assert price_installment(Decimal("1200"), Decimal("0"), 12) == Decimal("100.00")

    def test_rejects_invalid_terms(self):
        with pytest.raises(ValueError):
            price_installment(Decimal("1000"), Decimal("0.01"), 0)
        with pytest.raises(ValueError):
            price_installment(Decimal("1000"), Decimal("-0.01"), 12)


class TestSchedule:
    def test_first_row(self):
        first = loan_schedule(_loan())[0]
        assert first.installment_number == 1
        assert first.due_date == date(2024, 2, 15)
        assert first.interest == Decimal("200.00")
        assert first.amortization == Decimal("745.60")
        assert first.remaining_balance == Decimal("9254.40")

    def test_schedule_pays_off_principal(self):
        schedule = loan_schedule(_loan())
        assert len(schedule) == 12
        assert schedule[-1].remaining_balance == Decimal("0")
        total_amortization = sum(item.amortization for item in schedule)
        assert abs(total_amortization - Decimal("10000")) <= Decimal("1")

    def test_balance_never_increases(self):
        balances = [item.remaining_balance for item in loan_schedule(_loan())]
        assert balances == sorted(balances, reverse=True)
        assert all(balance >= 0 for balance in balances)

    def test_each_row_splits_the_installment(self):
        for item in loan_schedule(_loan()):
            assert abs(item.interest + item.amortization - item.installment) < Decimal("0.000001")

    def test_unconfigured_loan_has_empty_schedule(self):
        assert loan_schedule(_loan(term_months=0, status=LoanStatus.PENDING_CONFIGURATION)) == []
        assert loan_schedule(_loan(start_date=None)) == []

    @pytest.mark.parametrize(
        "overrides",
        [
            {"monthly_rate": Decimal("-0.5")},
            {"monthly_rate": Decimal("-0.5"), "installment_amount": None},
            {"installment_amount": Decimal("0")},
        ],
    )
    def test_unusable_terms_give_empty_schedule(self, overrides):
        loan = _loan(paid=2, **overrides)
        assert loan_schedule(loan) == []
        assert outstanding_balance(loan) == Decimal("10000")
        assert loan_summary(loan).remaining_installments == 0

    def test_installment_below_interest_gives_negative_amortization(self):
        schedule = loan_schedule(_loan(installment_amount=Decimal("150")))
        assert schedule[0].amortization == Decimal("-50.00")
        assert schedule[0].remaining_balance == Decimal("10050.00")

    def test_missing_installment_uses_price_value(self):
        schedule = loan_schedule(_loan(installment_amount=None))
        assert schedule[0].installment == Decimal("945.60")

    def test_due_dates_clamp_to_month_end(self):
        assert installment_due_date(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert installment_due_date(date(2024, 1, 31), 3) == date(2024, 4, 30)


class TestPaidInstallments:
    def test_paid_as_of_is_bounded_by_due_dates(self):
        loan = _loan(paid=5)
        assert installments_due_by(loan, date(2024, 4, 15)) == 3
        assert paid_installments_as_of(loan, date(2024, 4, 15)) == 3
        assert paid_installments_as_of(loan, date(2025, 1, 1)) == 5

    def test_paid_as_of_never_exceeds_counter(self):
        loan = _loan(paid=2)
        for month in range(1, 13):
            as_of = date(2024, month, 20)
            assert paid_installments_as_of(loan, as_of) <= loan.paid_installments

    def test_is_installment_paid(self):
        loan = _loan(paid=2)
        assert is_installment_paid(loan, 1)
        assert is_installment_paid(loan, 2)
        assert not is_installment_paid(loan, 3)
        assert not is_installment_paid(loan, 0)

    def test_next_due_and_overdue(self):
        loan = _loan(paid=1)
        assert next_due_installment(loan).installment_number == 2
        overdue = overdue_installments(loan, date(2024, 4, 20))
        assert [item.installment_number for item in overdue] == [2, 3]

    def test_settled_loan_has_nothing_due(self):
        loan = _loan(paid=12, status=LoanStatus.SETTLED)
        assert next_due_installment(loan) is None
        assert outstanding_balance(loan) == Decimal("0")


class TestOutstandingAndSummary:
    def test_outstanding_balance(self):
        assert outstanding_balance(_loan()) == Decimal("10000")
        assert outstanding_balance(_loan(paid=1)) == Decimal("9254.40")

    def test_outstanding_of_unconfigured_loan_is_principal(self):
        loan = _loan(term_months=0, status=LoanStatus.PENDING_CONFIGURATION, paid=3)
        assert outstanding_balance(loan) == Decimal("10000")

    def test_interest_through_installment(self):
        amortization, interest = amortization_and_interest_through_installment(_loan(), 1)
        assert amortization == Decimal("745.60")
        assert interest == Decimal("200.00")
        assert amortization_and_interest_through_installment(_loan(), 0) == (Decimal("0"), Decimal("0"))

    def test_summary(self):
        summary = loan_summary(_loan(paid=3))
        assert summary.paid_installments == 3
        assert summary.remaining_installments == 9
        assert summary.total_cost == Decimal("945.60") * 12
        assert abs(summary.interest_paid + summary.interest_remaining - summary.total_interest) < Decimal("0.000001")
        assert summary.percent_settled == Decimal("25.00")
        assert summary.next_due_date == date(2024, 5, 15)
