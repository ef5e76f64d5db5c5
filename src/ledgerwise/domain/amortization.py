"""PRICE (French) amortization schedules.

All functions take a Loan entity and return derived values; nothing here
touches the store. A loan without a term or start date yields an empty
schedule, which callers treat as "not yet configured".
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from ledgerwise.domain.entities import AmortizationItem, Loan, LoanSummary
from ledgerwise.utils.date_parser import add_months

ZERO = Decimal("0")
CENT = Decimal("0.01")


def price_installment(principal: Decimal, monthly_rate: Decimal, term_months: int) -> Decimal:
    """Fixed installment for a PRICE loan, rounded to cents.

    Uses P * i * (1 + i)^n / ((1 + i)^n - 1), or P / n at a zero rate.

    Raises:
        ValueError: If the term is not positive or the rate is negative
    """
    if term_months <= 0:
        raise ValueError("Term must be at least one month")
    if monthly_rate < 0:
        raise ValueError("Monthly rate must not be negative")

    if monthly_rate == 0:
        return (principal / term_months).quantize(CENT)

    factor = (1 + monthly_rate) ** term_months
    return (principal * monthly_rate * factor / (factor - 1)).quantize(CENT)


def installment_due_date(start_date: date, installment_number: int) -> date:
    """Installment k falls due k months after the start date."""
    return add_months(start_date, installment_number)


def loan_schedule(loan: Loan) -> list[AmortizationItem]:
    """Build the full payment schedule of a loan.

    For installment k: interest = balance(k-1) * rate, amortization =
    installment - interest, balance(k) = max(0, balance(k-1) - amortization).
    When the installment does not cover the interest the amortization comes
    out negative and is reported as such.

    Terms that cannot describe a schedule (a negative rate or a non-positive
    installment) are treated like missing ones and yield an empty list.
    """
    rate = loan.monthly_rate or ZERO
    if loan.term_months <= 0 or loan.start_date is None or rate < 0:
        return []
    if loan.installment_amount is not None and loan.installment_amount <= 0:
        return []

    installment = loan.installment_amount
    if installment is None:
        installment = price_installment(loan.principal, rate, loan.term_months)

    balance = loan.principal
    schedule = []
    for number in range(1, loan.term_months + 1):
        interest = balance * rate
        amortization = installment - interest
        balance = max(ZERO, balance - amortization)
        schedule.append(
            AmortizationItem(
                installment_number=number,
                due_date=installment_due_date(loan.start_date, number),
                installment=installment,
                interest=interest,
                amortization=amortization,
                remaining_balance=balance,
            )
        )
    return schedule


def installments_due_by(loan: Loan, as_of: date) -> int:
    """Number of installments whose due date is on or before ``as_of``."""
    return sum(1 for item in loan_schedule(loan) if item.due_date <= as_of)


def paid_installments_as_of(loan: Loan, as_of: date) -> int:
    """Installments both due by ``as_of`` and confirmed by the paid counter.

    The stored counter is authoritative; due dates only bound it.
    """
    return min(loan.paid_installments, installments_due_by(loan, as_of))


def is_installment_paid(loan: Loan, installment_number: int) -> bool:
    """Whether the paid counter covers an installment."""
    return 0 < installment_number <= loan.paid_installments


def next_due_installment(loan: Loan) -> Optional[AmortizationItem]:
    """First installment not covered by the paid counter."""
    for item in loan_schedule(loan):
        if not is_installment_paid(loan, item.installment_number):
            return item
    return None


def overdue_installments(loan: Loan, today: date) -> list[AmortizationItem]:
    """Unpaid installments whose due date has already passed."""
    return [
        item
        for item in loan_schedule(loan)
        if item.due_date < today and not is_installment_paid(loan, item.installment_number)
    ]


def outstanding_balance(loan: Loan) -> Decimal:
    """Remaining balance after the paid installments.

    Equals the schedule's remaining balance at the paid count, or the
    principal when nothing is paid or the loan is not configured.
    """
    schedule = loan_schedule(loan)
    paid = min(loan.paid_installments, len(schedule))
    if paid == 0:
        return loan.principal
    return schedule[paid - 1].remaining_balance


def amortization_and_interest_through_installment(
    loan: Loan, installment_number: int
) -> tuple[Decimal, Decimal]:
    """Total amortization and interest of installments 1..installment_number."""
    amortization = ZERO
    interest = ZERO
    for item in loan_schedule(loan)[: max(0, installment_number)]:
        amortization += item.amortization
        interest += item.interest
    return amortization, interest


def loan_summary(loan: Loan) -> LoanSummary:
    """Summarize cost, interest and progress of a loan."""
    schedule = loan_schedule(loan)
    paid = min(loan.paid_installments, len(schedule))

    total_interest = sum((item.interest for item in schedule), ZERO)
    total_cost = sum((item.installment for item in schedule), ZERO)
    _, interest_paid = amortization_and_interest_through_installment(loan, paid)

    percent_settled = ZERO
    if schedule:
        percent_settled = (Decimal(paid) * 100 / len(schedule)).quantize(CENT)

    next_item = next_due_installment(loan)
    return LoanSummary(
        loan_id=loan.id,
        paid_installments=paid,
        remaining_installments=len(schedule) - paid,
        outstanding_balance=outstanding_balance(loan),
        total_cost=total_cost,
        total_interest=total_interest,
        interest_paid=interest_paid,
        interest_remaining=total_interest - interest_paid,
        percent_settled=percent_settled,
        next_due_date=next_item.due_date if next_item else None,
    )
