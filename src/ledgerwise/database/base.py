"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Sequence

# Import entities directly; the domain package does not import the database
from ledgerwise.domain.entities import (
    Account,
    AccountKind,
    BillSourceType,
    BillTrackerEntry,
    Category,
    CategoryNature,
    FlowType,
    InsuranceContract,
    Loan,
    LoanStatus,
    OperationType,
    Transaction,
    TransactionRevision,
)


class Database(ABC):
    """Abstract database interface for ledgerwise."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Group several writes into one unit that commits or rolls back together.

        Units may nest; only the outermost one commits.
        """
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        name: str,
        kind: AccountKind,
        opening_balance: Decimal = Decimal("0"),
        opening_date: Optional[date] = None,
        hidden: bool = False,
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        """List all accounts, hidden ones included."""
        pass

    @abstractmethod
    def update_account_hidden(self, account_id: int, hidden: bool) -> None:
        """Show or hide an account."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account."""
        pass

    @abstractmethod
    def get_account_transaction_count(self, account_id: int) -> int:
        """Count transactions posted to an account."""
        pass

    # Category operations
    @abstractmethod
    def create_category(
        self, name: str, nature: CategoryNature, typical_amount: Optional[Decimal] = None
    ) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def get_category_by_name(self, name: str) -> Optional[Category]:
        """Get category by name."""
        pass

    @abstractmethod
    def list_categories(self) -> list[Category]:
        """List all categories."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        account_id: int,
        date: date,
        amount: Decimal,
        operation_type: OperationType,
        flow: FlowType,
        description: Optional[str] = None,
        category_id: Optional[int] = None,
        loan_id: Optional[int] = None,
        installment_number: Optional[int] = None,
        insurance_id: Optional[int] = None,
        investment_account_id: Optional[int] = None,
        transfer_group_id: Optional[str] = None,
    ) -> int:
        """Create a transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def replace_transaction(self, transaction: Transaction) -> None:
        """Replace the stored record with the same ID, keeping the prior version."""
        pass

    @abstractmethod
    def list_transaction_revisions(self, transaction_id: int) -> list[TransactionRevision]:
        """List prior versions of a transaction, oldest first."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category_id: Optional[int] = None,
        transfer_group_id: Optional[str] = None,
    ) -> list[Transaction]:
        """List transactions in insertion order within each date, oldest first.

        Args:
            account_id: Optional account ID filter
            start_date: Optional inclusive start date
            end_date: Optional inclusive end date
            category_id: Optional category ID filter
            transfer_group_id: Optional transfer group filter
        """
        pass

    # Loan operations
    @abstractmethod
    def create_loan(
        self,
        contract: str,
        principal: Decimal,
        account_id: Optional[int] = None,
        status: LoanStatus = LoanStatus.PENDING_CONFIGURATION,
    ) -> int:
        """Create a loan. Returns loan ID."""
        pass

    @abstractmethod
    def get_loan(self, loan_id: int) -> Optional[Loan]:
        """Get loan by ID."""
        pass

    @abstractmethod
    def list_loans(self, status: Optional[LoanStatus] = None) -> list[Loan]:
        """List loans, optionally filtered by status."""
        pass

    @abstractmethod
    def update_loan(self, loan_id: int, **changes: Any) -> None:
        """Update loan columns (terms, status, paid counter)."""
        pass

    # Insurance operations
    @abstractmethod
    def create_insurance(
        self,
        description: str,
        installment_count: int,
        installment_amount: Decimal,
        start_date: date,
    ) -> int:
        """Create an insurance contract. Returns contract ID."""
        pass

    @abstractmethod
    def get_insurance(self, insurance_id: int) -> Optional[InsuranceContract]:
        """Get insurance contract by ID."""
        pass

    @abstractmethod
    def list_insurances(self) -> list[InsuranceContract]:
        """List insurance contracts."""
        pass

    @abstractmethod
    def set_insurance_installment_paid(
        self, insurance_id: int, installment_number: int, paid: bool
    ) -> None:
        """Mark or unmark an insurance installment as paid."""
        pass

    # Bill tracker operations
    @abstractmethod
    def create_bill(
        self,
        description: str,
        due_date: date,
        expected_amount: Decimal,
        source_type: BillSourceType,
        source_ref: Optional[str] = None,
        installment_number: Optional[int] = None,
        is_paid: bool = False,
        payment_date: Optional[date] = None,
        suggested_account_id: Optional[int] = None,
        suggested_category_id: Optional[int] = None,
    ) -> int:
        """Create a bill tracker entry. Returns entry ID."""
        pass

    @abstractmethod
    def get_bill(self, bill_id: int) -> Optional[BillTrackerEntry]:
        """Get bill tracker entry by ID."""
        pass

    @abstractmethod
    def list_bills(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> list[BillTrackerEntry]:
        """List bill tracker entries, optionally by inclusive due date range."""
        pass

    @abstractmethod
    def update_bill(self, bill_id: int, **changes: Any) -> None:
        """Update bill tracker entry columns."""
        pass

    @abstractmethod
    def delete_bill(self, bill_id: int) -> None:
        """Physically delete a bill tracker entry."""
        pass

    # Snapshot operations
    @abstractmethod
    def load_snapshot(
        self,
        accounts: Sequence[Account],
        categories: Sequence[Category],
        transactions: Sequence[Transaction],
        loans: Sequence[Loan],
        insurances: Sequence[InsuranceContract],
        bills: Sequence[BillTrackerEntry],
    ) -> None:
        """Replace all stored records with the given ones, keeping their IDs.

        Transaction revision history is discarded.
        """
        pass
