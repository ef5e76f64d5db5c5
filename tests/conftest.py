"""Shared pytest fixtures for ledgerwise tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from ledgerwise.database.factories import create_sqlite_database
from ledgerwise.domain.account import AccountService
from ledgerwise.domain.category import CategoryService
from ledgerwise.domain.entities import AccountKind, CategoryNature
from ledgerwise.domain.insurance import InsuranceService
from ledgerwise.domain.ledger import LedgerService
from ledgerwise.domain.loan import LoanService
from ledgerwise.domain.obligations import BillTrackerService
from ledgerwise.domain.transaction import TransactionService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def ledger_service(temp_db):
    """Create a LedgerService with a temporary database."""
    return LedgerService(temp_db)


@pytest.fixture
def loan_service(temp_db):
    """Create a LoanService with a temporary database."""
    return LoanService(temp_db)


@pytest.fixture
def insurance_service(temp_db):
    """Create an InsuranceService with a temporary database."""
    return InsuranceService(temp_db)


@pytest.fixture
def bill_service(temp_db):
    """Create a BillTrackerService with a temporary database."""
    return BillTrackerService(temp_db)


@pytest.fixture
def sample_account(account_service):
    """Create a checking account with a 1000.00 opening balance on 2024-01-01."""
    account_id = account_service.create_account(
        name="Checking",
        kind=AccountKind.CHECKING,
        opening_balance=Decimal("1000.00"),
        opening_date=date(2024, 1, 1),
    )
    return account_service.get_account(account_id)


@pytest.fixture
def credit_card(account_service):
    """Create a credit card account with no opening balance."""
    account_id = account_service.create_account(
        name="Visa", kind=AccountKind.CREDIT_CARD, opening_date=date(2024, 1, 1)
    )
    return account_service.get_account(account_id)


@pytest.fixture
def sample_categories(category_service):
    """Create a few categories and return their IDs by name."""
    return {
        "Salary": category_service.create_category("Salary", CategoryNature.INCOME),
        "Groceries": category_service.create_category("Groceries", CategoryNature.VARIABLE_EXPENSE),
        "Rent": category_service.create_category(
            "Rent", CategoryNature.FIXED_EXPENSE, typical_amount=Decimal("1800.00")
        ),
    }


@pytest.fixture
def active_loan(loan_service, sample_account):
    """Disburse and configure a 10000 loan at 2% over 12 months starting 2024-01-15."""
    loan_id = loan_service.register_disbursement(
        contract="CDC-001",
        principal=Decimal("10000.00"),
        account_id=sample_account.id,
        disbursement_date=date(2024, 1, 10),
    )
    return loan_service.configure_terms(
        loan_id,
        monthly_rate=Decimal("0.02"),
        term_months=12,
        start_date=date(2024, 1, 15),
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
