"""Statement reconciliation.

Sums an account's transactions over a window into buckets, derives the
closing balance the ledger expects and classifies how far the balance
stated on a bank statement diverges from it.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ledgerwise.config import RECONCILIATION_TOLERANCE, Settings
from ledgerwise.database.base import Database
from ledgerwise.domain import errors
from ledgerwise.domain.entities import (
    Account,
    FlowType,
    OperationType,
    ReconciliationResult,
    ReconciliationStatus,
    Transaction,
)
from ledgerwise.domain.ledger import balance_as_of, find_account, starting_balance
from ledgerwise.log import get_logger

logger = get_logger(__name__)

ZERO = Decimal("0")

INCOME_OPERATIONS = (
    OperationType.INCOME,
    OperationType.YIELD,
    OperationType.LOAN_DISBURSEMENT,
    OperationType.VEHICLE_SALE,
)
EXPENSE_OPERATIONS = (
    OperationType.EXPENSE,
    OperationType.LOAN_PAYMENT,
    OperationType.VEHICLE_PURCHASE,
)


def classify_divergence(
    divergence: Decimal, tolerance: Decimal = RECONCILIATION_TOLERANCE
) -> ReconciliationStatus:
    """ok at zero, warning up to the tolerance, error above it."""
    if divergence == 0:
        return ReconciliationStatus.OK
    if divergence <= tolerance:
        return ReconciliationStatus.WARNING
    return ReconciliationStatus.ERROR


def reconcile(
    account_id: int,
    transactions: Sequence[Transaction],
    accounts: Iterable[Account],
    stated_opening: Optional[Decimal] = None,
    stated_closing: Optional[Decimal] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    tolerance: Decimal = RECONCILIATION_TOLERANCE,
) -> ReconciliationResult:
    """Compare a stated closing balance with the ledger.

    Args:
        account_id: Account to reconcile
        transactions: Transaction log
        accounts: Known accounts
        stated_opening: Opening balance from the statement; defaults to the
            ledger balance at ``start`` (the account's opening balance when
            no start is given)
        stated_closing: Closing balance from the statement; None compares
            the ledger with itself
        start: Inclusive first day of the window
        end: Inclusive last day of the window
        tolerance: Largest divergence classified as a warning

    Returns:
        Buckets, calculated closing, divergence and status. An unknown
        account reconciles as one with no transactions and a zero opening.
    """
    accounts = list(accounts)
    account = find_account(account_id, accounts)

    window = []
    if account is not None:
        window = [
            txn
            for txn in transactions
            if txn.account_id == account_id
            and (start is None or txn.date >= start)
            and (end is None or txn.date <= end)
        ]

    if stated_opening is not None:
        opening = stated_opening
    elif account is None:
        opening = ZERO
    else:
        if start is not None:
            opening = balance_as_of(account_id, start, transactions, accounts)
        else:
            opening = starting_balance(account, transactions)
        if not account.is_credit_card:
            opening += sum(
                (t.amount for t in window if t.operation_type == OperationType.OPENING_BALANCE),
                ZERO,
            )

    buckets = dict.fromkeys(
        ("income", "expense", "transfer_in", "transfer_out", "withdrawals", "contributions"), ZERO
    )
    for txn in window:
        if account.is_credit_card:
            # Card statements only move with purchases and payments
            if txn.operation_type == OperationType.EXPENSE:
                buckets["expense"] += txn.amount
            elif txn.operation_type == OperationType.TRANSFER:
                buckets["transfer_in"] += txn.amount
            continue

        if txn.operation_type in INCOME_OPERATIONS:
            buckets["income"] += txn.amount
        elif txn.operation_type in EXPENSE_OPERATIONS:
            buckets["expense"] += txn.amount
        elif txn.operation_type == OperationType.INVESTMENT_WITHDRAWAL:
            buckets["withdrawals"] += txn.amount
        elif txn.operation_type == OperationType.INVESTMENT_CONTRIBUTION:
            buckets["contributions"] += txn.amount
        elif txn.operation_type == OperationType.TRANSFER:
            if txn.flow == FlowType.TRANSFER_IN:
                buckets["transfer_in"] += txn.amount
            else:
                buckets["transfer_out"] += txn.amount

    calculated = (
        opening
        + buckets["income"]
        - buckets["expense"]
        + buckets["transfer_in"]
        - buckets["transfer_out"]
        + buckets["withdrawals"]
        - buckets["contributions"]
    )
    divergence = ZERO if stated_closing is None else abs(calculated - stated_closing)

    return ReconciliationResult(
        account_id=account_id,
        opening_balance=opening,
        income=buckets["income"],
        expense=buckets["expense"],
        transfer_in=buckets["transfer_in"],
        transfer_out=buckets["transfer_out"],
        withdrawals=buckets["withdrawals"],
        contributions=buckets["contributions"],
        calculated_closing=calculated,
        stated_closing=stated_closing,
        divergence=divergence,
        status=classify_divergence(divergence, tolerance),
    )


class ReconciliationService:
    """Service reconciling accounts against stored transactions."""

    def __init__(self, db: Database, settings: Optional[Settings] = None):
        """Initialize reconciliation service.

        Args:
            db: Database instance
            settings: Settings carrying the divergence tolerance
        """
        self.db = db
        self.settings = settings or Settings()

    def reconcile(
        self,
        account_id: int,
        stated_opening: Optional[Decimal] = None,
        stated_closing: Optional[Decimal] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> ReconciliationResult:
        """Reconcile one account; see ``reconcile`` for the arguments.

        Raises:
            NotFoundError: If the account doesn't exist
            ValidationError: If the window ends before it starts
        """
        if start is not None and end is not None and end < start:
            raise errors.ValidationError("End date must not be before start date")
        if self.db.get_account(account_id) is None:
            raise errors.NotFoundError(errors.account_not_found(account_id))

        result = reconcile(
            account_id,
            self.db.list_transactions(account_id=account_id),
            self.db.list_accounts(),
            stated_opening=stated_opening,
            stated_closing=stated_closing,
            start=start,
            end=end,
            tolerance=self.settings.reconciliation_tolerance,
        )
        log = logger.warning if result.status == ReconciliationStatus.ERROR else logger.info
        log(
            "reconciliation.checked",
            account_id=account_id,
            status=result.status.value,
            divergence=str(result.divergence),
        )
        return result
