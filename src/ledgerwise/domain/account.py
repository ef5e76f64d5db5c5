"""Account domain service."""

from datetime import date
from decimal import Decimal
from typing import Optional

from ledgerwise.database.base import Database
from ledgerwise.domain import errors
from ledgerwise.domain.entities import (
    Account as AccountEntity,
    AccountKind,
    FlowType,
    OperationType,
)
from ledgerwise.log import get_logger

logger = get_logger(__name__)


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(
        self,
        name: str,
        kind: AccountKind = AccountKind.CHECKING,
        opening_balance: Decimal = Decimal("0"),
        opening_date: Optional[date] = None,
    ) -> int:
        """Create a new account.

        A positive opening balance is recorded as an ``opening_balance``
        transaction dated ``opening_date`` (today by default). Credit-card and
        negative openings are kept on the account itself.

        Args:
            name: Account name
            kind: Account kind
            opening_balance: Opening balance (may be negative for credit cards)
            opening_date: Date of the opening balance

        Returns:
            Account ID

        Raises:
            ConflictError: If account name already exists
        """
        for acc in self.db.list_accounts():
            if acc.name == name:
                raise errors.ConflictError(f"Account with name '{name}' already exists")
        errors.require_cents(opening_balance, "Opening balance")

        opening_date = opening_date or date.today()
        # Opening-balance transactions always add and are ignored on credit
        # cards, so negative or credit-card openings stay on the account field
        as_transaction = opening_balance > 0 and kind != AccountKind.CREDIT_CARD
        with self.db.atomic():
            account_id = self.db.create_account(
                name=name,
                kind=kind,
                opening_balance=Decimal("0") if as_transaction else opening_balance,
                opening_date=opening_date,
            )
            if as_transaction:
                self.db.create_transaction(
                    account_id=account_id,
                    date=opening_date,
                    amount=opening_balance,
                    operation_type=OperationType.OPENING_BALANCE,
                    flow=FlowType.IN,
                    description="Opening balance",
                )

        logger.info("account.created", account_id=account_id, kind=kind.value)
        return account_id

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def list_accounts(self, include_hidden: bool = False) -> list[AccountEntity]:
        """List accounts.

        Args:
            include_hidden: If True, include hidden accounts

        Returns:
            List of account entities
        """
        return [acc for acc in self.db.list_accounts() if include_hidden or not acc.hidden]

    def set_hidden(self, account_id: int, hidden: bool) -> None:
        """Hide or show an account.

        Raises:
            NotFoundError: If account not found
        """
        if self.db.get_account(account_id) is None:
            raise errors.NotFoundError(errors.account_not_found(account_id))
        self.db.update_account_hidden(account_id, hidden)
        logger.info("account.visibility_changed", account_id=account_id, hidden=hidden)

    def delete_account(self, account_id: int) -> None:
        """Delete an account without transactions.

        Raises:
            NotFoundError: If account not found
            DependencyError: If the account has transactions
        """
        if self.db.get_account(account_id) is None:
            raise errors.NotFoundError(errors.account_not_found(account_id))

        transaction_count = self.db.get_account_transaction_count(account_id)
        if transaction_count > 0:
            raise errors.DependencyError(
                errors.account_delete_blocked(account_id, transaction_count)
            )

        self.db.delete_account(account_id)
        logger.info("account.deleted", account_id=account_id)
