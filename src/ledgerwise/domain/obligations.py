"""Projection of recurring obligations and the monthly bill list.

Loans, insurance contracts and fixed-expense categories are projected into
potential bills for a month. The user's bill tracker entries act as
overrides: they include projected bills in the month's list, exclude them,
or add bills nothing projects (ad-hoc bills and purchase installments).
Entries and projections are matched by ``(source_type, source_ref,
installment_number)``.
"""

import uuid
from datetime import date, timedelta
from decimal import Decimal, ROUND_DOWN
from typing import Iterable, Optional, Sequence

from ledgerwise.database.base import Database
from ledgerwise.domain import amortization, errors
from ledgerwise.domain.entities import (
    BillKey,
    BillSourceType,
    BillTrackerEntry,
    Category,
    FlowType,
    InsuranceContract,
    Loan,
    LoanStatus,
    OperationType,
    PotentialBill,
    PROJECTED_SOURCES,
    Transaction,
)
from ledgerwise.domain.insurance import insurance_installments
from ledgerwise.domain.loan import LoanService
from ledgerwise.log import get_logger
from ledgerwise.utils.date_parser import add_months, month_bounds

logger = get_logger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")

# Operations counted as money already spent in a month
PAID_OUTFLOWS = (OperationType.EXPENSE, OperationType.LOAN_PAYMENT)


def _in_window(day: date, start: date, end: Optional[date]) -> bool:
    return day >= start and (end is None or day <= end)


def _loan_bills(loan: Loan, start: date, end: Optional[date]) -> list[PotentialBill]:
    return [
        PotentialBill(
            source_type=BillSourceType.LOAN_INSTALLMENT,
            source_ref=str(loan.id),
            installment_number=item.installment_number,
            due_date=item.due_date,
            expected_amount=item.installment,
            description=f"{loan.contract} {item.installment_number}/{loan.term_months}",
            is_paid=amortization.is_installment_paid(loan, item.installment_number),
        )
        for item in amortization.loan_schedule(loan)
        if _in_window(item.due_date, start, end)
    ]


def _insurance_bills(
    contract: InsuranceContract, start: date, end: Optional[date]
) -> list[PotentialBill]:
    return [
        PotentialBill(
            source_type=BillSourceType.INSURANCE_INSTALLMENT,
            source_ref=str(contract.id),
            installment_number=number,
            due_date=due_date,
            expected_amount=contract.installment_amount,
            description=f"{contract.description} {number}/{contract.installment_count}",
            is_paid=number in contract.paid_installments,
        )
        for number, due_date in insurance_installments(contract)
        if _in_window(due_date, start, end)
    ]


def _fixed_expense_bills(
    categories: Iterable[Category],
    transactions: Iterable[Transaction],
    start: date,
    end: date,
) -> list[PotentialBill]:
    spent = {
        txn.category_id
        for txn in transactions
        if txn.operation_type == OperationType.EXPENSE
        and txn.category_id is not None
        and start <= txn.date <= end
    }
    return [
        PotentialBill(
            source_type=BillSourceType.FIXED_EXPENSE,
            source_ref=str(category.id),
            installment_number=None,
            due_date=start,
            expected_amount=category.typical_amount or ZERO,
            description=category.name,
        )
        for category in categories
        if category.is_fixed and category.id not in spent
    ]


def override_index(
    overrides: Iterable[BillTrackerEntry], month: date
) -> dict[BillKey, BillTrackerEntry]:
    """Index the entries that can shadow a projected bill of ``month``.

    Installment keys are unique across months. A fixed expense recurs every
    month under the same key, so its entries only count in the month they
    fall due.
    """
    start, end = month_bounds(month)
    index: dict[BillKey, BillTrackerEntry] = {}
    for entry in overrides:
        if entry.source_type not in PROJECTED_SOURCES:
            continue
        if entry.source_type == BillSourceType.FIXED_EXPENSE and not start <= entry.due_date <= end:
            continue
        index[entry.key] = entry
    return index


def _apply_overrides(
    bills: Iterable[PotentialBill], index: dict[BillKey, BillTrackerEntry]
) -> list[PotentialBill]:
    merged: dict[BillKey, PotentialBill] = {}
    for bill in bills:
        entry = index.get(bill.key)
        is_included = entry is not None and not entry.is_excluded
        is_paid = bill.is_paid or (entry is not None and entry.is_paid)
        merged[bill.key] = PotentialBill(
            source_type=bill.source_type,
            source_ref=bill.source_ref,
            installment_number=bill.installment_number,
            due_date=bill.due_date,
            expected_amount=bill.expected_amount,
            description=bill.description,
            is_paid=is_paid,
            is_included=is_included,
        )
    return sorted(merged.values(), key=lambda b: (b.due_date, b.description))


def potential_bills_for_month(
    month: date,
    loans: Iterable[Loan],
    insurances: Iterable[InsuranceContract],
    categories: Iterable[Category],
    transactions: Sequence[Transaction],
    overrides: Iterable[BillTrackerEntry],
) -> list[PotentialBill]:
    """Project the recurring obligations due in a month.

    Args:
        month: Any day of the month to project
        loans: Loans; only active ones are projected
        insurances: Insurance contracts; only active ones are projected
        categories: Categories; fixed-expense ones are projected
        transactions: Transaction log, used to skip fixed expenses already paid
        overrides: Bill tracker entries

    Returns:
        Potential bills sorted by due date, one per key, with inclusion and
        paid state resolved against the overrides
    """
    start, end = month_bounds(month)
    bills: list[PotentialBill] = []
    for loan in loans:
        if loan.status == LoanStatus.ACTIVE:
            bills.extend(_loan_bills(loan, start, end))
    for contract in insurances:
        if contract.active:
            bills.extend(_insurance_bills(contract, start, end))
    bills.extend(_fixed_expense_bills(categories, transactions, start, end))

    return _apply_overrides(bills, override_index(overrides, month))


def future_bills(
    month: date,
    loans: Iterable[Loan],
    insurances: Iterable[InsuranceContract],
    overrides: Iterable[BillTrackerEntry],
    include_paid: bool = False,
) -> list[PotentialBill]:
    """Installments falling due after ``month``, for paying ahead.

    Fixed expenses are not projected beyond the current month.
    """
    _, end = month_bounds(month)
    start = end + timedelta(days=1)

    bills: list[PotentialBill] = []
    for loan in loans:
        if loan.status == LoanStatus.ACTIVE:
            bills.extend(_loan_bills(loan, start, None))
    for contract in insurances:
        if contract.active:
            bills.extend(_insurance_bills(contract, start, None))

    index = {entry.key: entry for entry in overrides if entry.source_type in PROJECTED_SOURCES}
    merged = _apply_overrides(bills, index)
    return [bill for bill in merged if include_paid or not bill.is_paid]


def find_override(
    bill: PotentialBill, overrides: Iterable[BillTrackerEntry]
) -> Optional[BillTrackerEntry]:
    """Entry shadowing a potential bill, if any."""
    return override_index(overrides, bill.due_date).get(bill.key)


def is_pure_inclusion(entry: BillTrackerEntry, bill: PotentialBill) -> bool:
    """Whether an entry only records that a projected bill was included.

    Such an entry carries nothing the projection would not recreate, so it
    can be deleted instead of being kept as an exclusion marker.
    """
    return (
        not entry.is_paid
        and entry.payment_date is None
        and entry.transaction_id is None
        and entry.expected_amount == bill.expected_amount
        and entry.description == bill.description
    )


def split_purchase(total_amount: Decimal, installment_count: int) -> list[Decimal]:
    """Split a purchase into equal installments, the last one absorbing the cents left over."""
    if installment_count <= 0:
        raise ValueError("Installment count must be at least one")
    share = (total_amount / installment_count).quantize(CENT, rounding=ROUND_DOWN)
    amounts = [share] * installment_count
    amounts[-1] = total_amount - share * (installment_count - 1)
    return amounts


class BillTrackerService:
    """Service managing the monthly bill list."""

    def __init__(self, db: Database):
        """Initialize bill tracker service.

        Args:
            db: Database instance
        """
        self.db = db
        self.loans = LoanService(db)

    def get_bill(self, bill_id: int) -> BillTrackerEntry:
        """Get bill tracker entry by ID.

        Raises:
            NotFoundError: If the entry doesn't exist
        """
        bill = self.db.get_bill(bill_id)
        if bill is None:
            raise errors.NotFoundError(errors.bill_not_found(bill_id))
        return bill

    def potential_bills(self, month: date) -> list[PotentialBill]:
        """Recurring obligations due in a month, resolved against the bill list."""
        start, end = month_bounds(month)
        return potential_bills_for_month(
            month,
            self.db.list_loans(),
            self.db.list_insurances(),
            self.db.list_categories(),
            self.db.list_transactions(start_date=start, end_date=end),
            self.db.list_bills(),
        )

    def future_bills(self, month: date, include_paid: bool = False) -> list[PotentialBill]:
        """Installments due after a month."""
        return future_bills(
            month,
            self.db.list_loans(),
            self.db.list_insurances(),
            self.db.list_bills(),
            include_paid=include_paid,
        )

    def bills_for_month(self, month: date) -> list[BillTrackerEntry]:
        """Bills on the month's list: entries due in the month that are not excluded."""
        start, end = month_bounds(month)
        return [bill for bill in self.db.list_bills(start, end) if not bill.is_excluded]

    def toggle_bill_inclusion(
        self,
        bill: PotentialBill,
        include: bool,
        suggested_account_id: Optional[int] = None,
        suggested_category_id: Optional[int] = None,
    ) -> Optional[int]:
        """Include a projected bill in its month's list or take it out.

        Including creates an entry (or re-includes an excluded one). Excluding
        deletes an entry that only recorded the inclusion and otherwise marks
        the entry excluded.

        Returns:
            ID of the entry now shadowing the bill, or None when none remains

        Raises:
            PaidBillError: If excluding a bill that is already paid
        """
        entry = find_override(bill, self.db.list_bills())

        if include:
            if entry is None:
                bill_id = self.db.create_bill(
                    description=bill.description,
                    due_date=bill.due_date,
                    expected_amount=bill.expected_amount,
                    source_type=bill.source_type,
                    source_ref=bill.source_ref,
                    installment_number=bill.installment_number,
                    is_paid=bill.is_paid,
                    payment_date=bill.due_date if bill.is_paid else None,
                    suggested_account_id=suggested_account_id,
                    suggested_category_id=suggested_category_id,
                )
                logger.info("bill.included", bill_id=bill_id, source_type=bill.source_type.value)
                return bill_id
            if entry.is_excluded:
                self.db.update_bill(entry.id, is_excluded=False)
                logger.info("bill.reincluded", bill_id=entry.id)
            return entry.id

        if bill.is_paid or (entry is not None and entry.is_paid):
            raise errors.PaidBillError(errors.PAID_BILL_EXCLUSION)
        if entry is None:
            return None
        if is_pure_inclusion(entry, bill):
            self.db.delete_bill(entry.id)
            logger.info("bill.inclusion_removed", bill_id=entry.id)
            return None
        self.db.update_bill(entry.id, is_excluded=True)
        logger.info("bill.excluded", bill_id=entry.id)
        return entry.id

    def add_ad_hoc_bill(
        self,
        description: str,
        due_date: date,
        expected_amount: Decimal,
        suggested_account_id: Optional[int] = None,
        suggested_category_id: Optional[int] = None,
    ) -> int:
        """Add a one-off bill to the list.

        Raises:
            ValidationError: If the amount is negative
        """
        if expected_amount < 0:
            raise errors.ValidationError("Expected amount must not be negative")
        errors.require_cents(expected_amount, "Expected amount")
        bill_id = self.db.create_bill(
            description=description,
            due_date=due_date,
            expected_amount=expected_amount,
            source_type=BillSourceType.AD_HOC,
            suggested_account_id=suggested_account_id,
            suggested_category_id=suggested_category_id,
        )
        logger.info("bill.created", bill_id=bill_id)
        return bill_id

    def update_bill(
        self,
        bill_id: int,
        description: Optional[str] = None,
        due_date: Optional[date] = None,
        expected_amount: Optional[Decimal] = None,
        suggested_account_id: Optional[int] = None,
        suggested_category_id: Optional[int] = None,
    ) -> BillTrackerEntry:
        """Edit an entry's description, due date, amount or suggestions.

        Raises:
            NotFoundError: If the entry doesn't exist
            ValidationError: If the amount is negative
        """
        self.get_bill(bill_id)
        if expected_amount is not None and expected_amount < 0:
            raise errors.ValidationError("Expected amount must not be negative")
        if expected_amount is not None:
            errors.require_cents(expected_amount, "Expected amount")

        changes = {
            "description": description,
            "due_date": due_date,
            "expected_amount": expected_amount,
            "suggested_account_id": suggested_account_id,
            "suggested_category_id": suggested_category_id,
        }
        changes = {k: v for k, v in changes.items() if v is not None}
        if changes:
            self.db.update_bill(bill_id, **changes)
            logger.info("bill.updated", bill_id=bill_id, fields=sorted(changes))
        return self.get_bill(bill_id)

    def delete_bill(self, bill_id: int) -> None:
        """Delete an unpaid entry.

        Raises:
            NotFoundError: If the entry doesn't exist
            PaidBillError: If the entry is paid
        """
        bill = self.get_bill(bill_id)
        if bill.is_paid:
            raise errors.PaidBillError(errors.PAID_BILL_EXCLUSION)
        self.db.delete_bill(bill_id)
        logger.info("bill.deleted", bill_id=bill_id)

    def add_purchase_installments(
        self,
        description: str,
        total_amount: Decimal,
        installment_count: int,
        first_due_date: date,
        suggested_account_id: Optional[int] = None,
        suggested_category_id: Optional[int] = None,
    ) -> list[int]:
        """Spread a purchase over monthly bills.

        Installment k falls due k - 1 months after ``first_due_date``. All
        installments share one purchase reference.

        Returns:
            Entry IDs in installment order

        Raises:
            ValidationError: If the amount or count is not positive
        """
        if total_amount <= 0:
            raise errors.ValidationError("Total amount must be greater than zero")
        errors.require_cents(total_amount, "Total amount")
        if installment_count <= 0:
            raise errors.ValidationError("Installment count must be at least one")

        purchase_ref = uuid.uuid4().hex
        amounts = split_purchase(total_amount, installment_count)
        bill_ids = []
        with self.db.atomic():
            for number, amount in enumerate(amounts, start=1):
                bill_ids.append(
                    self.db.create_bill(
                        description=f"{description} ({number}/{installment_count})",
                        due_date=add_months(first_due_date, number - 1),
                        expected_amount=amount,
                        source_type=BillSourceType.PURCHASE_INSTALLMENT,
                        source_ref=purchase_ref,
                        installment_number=number,
                        suggested_account_id=suggested_account_id,
                        suggested_category_id=suggested_category_id,
                    )
                )
        logger.info("bill.purchase_split", purchase_ref=purchase_ref, installments=installment_count)
        return bill_ids

    def pay_bill(
        self,
        bill_id: int,
        account_id: Optional[int] = None,
        payment_date: Optional[date] = None,
        amount: Optional[Decimal] = None,
        category_id: Optional[int] = None,
    ) -> int:
        """Pay a bill from an account.

        Records the payment transaction (``loan_payment`` for loan
        installments, ``expense`` otherwise), marks the loan or insurance
        installment paid and stamps the entry, all in one unit.

        Args:
            bill_id: Entry ID
            account_id: Paying account; defaults to the entry's suggestion
            payment_date: Defaults to today
            amount: Defaults to the expected amount
            category_id: Defaults to the entry's suggestion

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If the entry or account doesn't exist
            ValidationError: If the bill is already paid or no account is given
        """
        bill = self.get_bill(bill_id)
        if bill.is_paid:
            raise errors.ValidationError(f"Bill {bill_id} is already paid")

        account_id = account_id if account_id is not None else bill.suggested_account_id
        if account_id is None:
            raise errors.ValidationError("An account is required to pay a bill")
        if self.db.get_account(account_id) is None:
            raise errors.NotFoundError(errors.account_not_found(account_id))

        payment_date = payment_date or date.today()
        amount = amount if amount is not None else bill.expected_amount
        if amount <= 0:
            raise errors.ValidationError("Amount must be greater than zero")
        errors.require_cents(amount)
        category_id = category_id if category_id is not None else bill.suggested_category_id
        if bill.source_type == BillSourceType.FIXED_EXPENSE and category_id is None:
            category_id = int(bill.source_ref)

        loan_id = None
        insurance_id = None
        operation_type = OperationType.EXPENSE
        if bill.source_type == BillSourceType.LOAN_INSTALLMENT:
            loan_id = int(bill.source_ref)
            operation_type = OperationType.LOAN_PAYMENT
        elif bill.source_type == BillSourceType.INSURANCE_INSTALLMENT:
            insurance_id = int(bill.source_ref)

        with self.db.atomic():
            transaction_id = self.db.create_transaction(
                account_id=account_id,
                date=payment_date,
                amount=amount,
                operation_type=operation_type,
                flow=FlowType.OUT,
                description=bill.description,
                category_id=category_id,
                loan_id=loan_id,
                installment_number=bill.installment_number if (loan_id or insurance_id) else None,
                insurance_id=insurance_id,
            )
            if loan_id is not None:
                self.loans.mark_installment_paid(loan_id, bill.installment_number)
            elif insurance_id is not None and bill.installment_number is not None:
                self.db.set_insurance_installment_paid(insurance_id, bill.installment_number, True)
            self.db.update_bill(
                bill_id,
                is_paid=True,
                payment_date=payment_date,
                transaction_id=transaction_id,
                is_excluded=False,
            )

        logger.info("bill.paid", bill_id=bill_id, transaction_id=transaction_id, amount=str(amount))
        return transaction_id

    def unpay_bill(self, bill_id: int) -> None:
        """Revert a bill to unpaid, stepping back the loan or insurance installment.

        The payment transaction stays in the ledger.

        Raises:
            NotFoundError: If the entry doesn't exist
        """
        bill = self.get_bill(bill_id)
        if not bill.is_paid:
            return

        with self.db.atomic():
            if bill.source_type == BillSourceType.LOAN_INSTALLMENT:
                self.loans.unmark_installment_paid(int(bill.source_ref))
            elif (
                bill.source_type == BillSourceType.INSURANCE_INSTALLMENT
                and bill.installment_number is not None
            ):
                self.db.set_insurance_installment_paid(
                    int(bill.source_ref), bill.installment_number, False
                )
            self.db.update_bill(bill_id, is_paid=False, payment_date=None, transaction_id=None)

        if bill.transaction_id is not None:
            logger.warning(
                "bill.unpaid_transaction_kept", bill_id=bill_id, transaction_id=bill.transaction_id
            )

    def other_paid_expenses_for_month(self, month: date) -> list[Transaction]:
        """Expenses and loan payments of a month that no bill accounts for."""
        start, end = month_bounds(month)
        tracked = {bill.transaction_id for bill in self.db.list_bills() if bill.transaction_id}
        return [
            txn
            for txn in self.db.list_transactions(start_date=start, end_date=end)
            if txn.operation_type in PAID_OUTFLOWS
            and txn.flow == FlowType.OUT
            and txn.id not in tracked
        ]
