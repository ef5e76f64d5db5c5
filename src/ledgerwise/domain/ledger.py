"""Balance calculation over the transaction log.

The functions in this module are pure: they read the transactions and
accounts they are given and keep no state between calls.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ledgerwise.database.base import Database
from ledgerwise.domain.entities import (
    Account,
    FlowType,
    OperationType,
    Transaction,
)
from ledgerwise.log import get_logger

logger = get_logger(__name__)

ZERO = Decimal("0")

INFLOWS = (FlowType.IN, FlowType.TRANSFER_IN)


def find_account(account_id: int, accounts: Iterable[Account]) -> Optional[Account]:
    """Return the account with the given ID, or None."""
    for account in accounts:
        if account.id == account_id:
            return account
    return None


def has_opening_transaction(account_id: int, transactions: Iterable[Transaction]) -> bool:
    """Check whether an account records its opening balance as a transaction."""
    return any(
        txn.account_id == account_id and txn.operation_type == OperationType.OPENING_BALANCE
        for txn in transactions
    )


def starting_balance(account: Account, transactions: Sequence[Transaction]) -> Decimal:
    """Return the static opening balance, or zero when a transaction carries it.

    An explicit ``opening_balance`` transaction always takes precedence over
    the account field so the two are never counted together.
    """
    if has_opening_transaction(account.id, transactions):
        return ZERO
    return account.opening_balance or ZERO


def signed_amount(txn: Transaction, account: Account) -> Decimal:
    """Return the effect of a transaction on its account's balance.

    Credit-card balances are negative while debt is owed: expenses push the
    balance down and transfers (statement payments) bring it back up. Every
    other operation is ignored on a credit card.
    """
    if account.is_credit_card:
        if txn.operation_type == OperationType.EXPENSE:
            return -txn.amount
        if txn.operation_type == OperationType.TRANSFER:
            return txn.amount
        return ZERO

    if txn.flow in INFLOWS or txn.operation_type == OperationType.OPENING_BALANCE:
        return txn.amount
    return -txn.amount


def ordered_transactions(
    account_id: int,
    transactions: Sequence[Transaction],
    cutoff_date: Optional[date] = None,
) -> list[Transaction]:
    """Select an account's transactions strictly before the cutoff, oldest first.

    Ties on the same date keep insertion order: store IDs first, then the
    position in the input sequence.
    """
    selected = [
        (position, txn)
        for position, txn in enumerate(transactions)
        if txn.account_id == account_id and (cutoff_date is None or txn.date < cutoff_date)
    ]
    selected.sort(
        key=lambda item: (
            item[1].date,
            item[1].id if item[1].id is not None else 0,
            item[0],
        )
    )
    return [txn for _, txn in selected]


def balance_as_of(
    account_id: int,
    cutoff_date: Optional[date],
    transactions: Sequence[Transaction],
    accounts: Iterable[Account],
) -> Decimal:
    """Compute an account's balance from the transaction log.

    Args:
        account_id: Account to compute
        cutoff_date: Only transactions dated strictly before this date count;
            None includes everything
        transactions: Transaction log (any order, any accounts)
        accounts: Known accounts

    Returns:
        Balance as a Decimal; zero for an unknown account
    """
    account = find_account(account_id, accounts)
    if account is None:
        logger.debug("balance.unknown_account", account_id=account_id)
        return ZERO

    balance = starting_balance(account, transactions)
    for txn in ordered_transactions(account_id, transactions, cutoff_date):
        balance += signed_amount(txn, account)
    return balance


def current_balance(
    account_id: int,
    transactions: Sequence[Transaction],
    accounts: Iterable[Account],
) -> Decimal:
    """Balance including every recorded transaction."""
    return balance_as_of(account_id, None, transactions, accounts)


def balance_series(
    account_id: int,
    dates: Iterable[date],
    transactions: Sequence[Transaction],
    accounts: Sequence[Account],
) -> list[tuple[date, Decimal]]:
    """Compute the balance at each of several cutoff dates."""
    return [
        (cutoff, balance_as_of(account_id, cutoff, transactions, accounts))
        for cutoff in dates
    ]


class LedgerService:
    """Service answering balance queries against the store."""

    def __init__(self, db: Database):
        """Initialize ledger service.

        Args:
            db: Database instance
        """
        self.db = db

    def balance_as_of(self, account_id: int, cutoff_date: Optional[date] = None) -> Decimal:
        """Balance of an account before ``cutoff_date`` (everything if None)."""
        return balance_as_of(
            account_id,
            cutoff_date,
            self.db.list_transactions(account_id=account_id),
            self.db.list_accounts(),
        )

    def current_balance(self, account_id: int) -> Decimal:
        """Balance of an account including all transactions."""
        return self.balance_as_of(account_id, None)

    def balances(self, cutoff_date: Optional[date] = None, include_hidden: bool = False) -> list[tuple[Account, Decimal]]:
        """Balance of every account, in account order."""
        accounts = self.db.list_accounts()
        transactions = self.db.list_transactions()
        return [
            (account, balance_as_of(account.id, cutoff_date, transactions, accounts))
            for account in accounts
            if include_hidden or not account.hidden
        ]

    def balance_series(self, account_id: int, dates: Iterable[date]) -> list[tuple[date, Decimal]]:
        """Balance of an account at several dates."""
        return balance_series(
            account_id,
            dates,
            self.db.list_transactions(account_id=account_id),
            self.db.list_accounts(),
        )
