"""Tests for database mappers."""

from datetime import datetime, date, UTC
from decimal import Decimal

from ledgerwise.database.models import (
    Account as ORMAccount,
    Category as ORMCategory,
    Transaction as ORMTransaction,
    TransactionRevision as ORMTransactionRevision,
    Loan as ORMLoan,
    InsuranceContract as ORMInsuranceContract,
    InsurancePayment as ORMInsurancePayment,
    BillTrackerEntry as ORMBillTrackerEntry,
)
from ledgerwise.database.mappers import (
    account_to_domain,
    category_to_domain,
    transaction_to_domain,
    revision_to_domain,
    loan_to_domain,
    insurance_to_domain,
    bill_to_domain,
)
from ledgerwise.domain.entities import (
    Account,
    AccountKind,
    BillSourceType,
    CategoryNature,
    FlowType,
    LoanStatus,
    OperationType,
)


class TestAccountMapper:
    """Tests for Account mapper."""

    def test_account_to_domain(self):
        """Test converting ORM Account to domain Account."""
        orm_account = ORMAccount(
            id=1,
            name="Visa",
            kind="credit_card",
            opening_balance=Decimal("-150.00"),
            opening_date=date(2024, 1, 1),
            hidden=False,
            created_at=datetime.now(UTC),
        )
        domain_account = account_to_domain(orm_account)

        assert isinstance(domain_account, Account)
        assert domain_account.id == 1
        assert domain_account.kind == AccountKind.CREDIT_CARD
        assert domain_account.is_credit_card
        assert domain_account.opening_balance == Decimal("-150.00")
        assert domain_account.opening_date == date(2024, 1, 1)
        assert domain_account.created_at == orm_account.created_at

    def test_missing_opening_balance_defaults_to_zero(self):
        orm_account = ORMAccount(id=2, name="Wallet", kind="checking", opening_balance=None, hidden=False)
        assert account_to_domain(orm_account).opening_balance == Decimal("0")


def test_category_to_domain():
    orm_category = ORMCategory(id=3, name="Rent", nature="fixed_expense", typical_amount=Decimal("1800.00"))

    category = category_to_domain(orm_category)

    assert category.nature == CategoryNature.FIXED_EXPENSE
    assert category.is_fixed
    assert category.typical_amount == Decimal("1800.00")


def test_transaction_to_domain_converts_float_amounts():
    orm_transaction = ORMTransaction(
        id=7,
        account_id=1,
        date=date(2024, 2, 15),
        amount=945.6,
        operation_type="loan_payment",
        flow="out",
        loan_id=2,
        installment_number=1,
    )

    txn = transaction_to_domain(orm_transaction)

    assert txn.amount == Decimal("945.6")
    assert txn.operation_type == OperationType.LOAN_PAYMENT
    assert txn.flow == FlowType.OUT
    assert txn.loan_id == 2
    assert txn.installment_number == 1
    assert txn.category_id is None


def test_revision_to_domain_rebuilds_previous_transaction():
    revised_at = datetime(2024, 2, 20, 10, 30)
    orm_revision = ORMTransactionRevision(
        id=1,
        transaction_id=7,
        revised_at=revised_at,
        account_id=1,
        date=date(2024, 2, 1),
        amount=Decimal("52.30"),
        operation_type="expense",
        flow="out",
        description="Market",
    )

    revision = revision_to_domain(orm_revision)

    assert revision.transaction_id == 7
    assert revision.revised_at == revised_at
    assert revision.previous.id == 7
    assert revision.previous.amount == Decimal("52.30")
    assert revision.previous.description == "Market"
    assert revision.previous.operation_type == OperationType.EXPENSE


def test_loan_to_domain_pending_configuration():
    orm_loan = ORMLoan(
        id=1,
        contract="CDC-001",
        account_id=1,
        principal=Decimal("10000.00"),
        term_months=0,
        status="pending_configuration",
        paid_installments=0,
    )

    loan = loan_to_domain(orm_loan)

    assert loan.status == LoanStatus.PENDING_CONFIGURATION
    assert loan.monthly_rate is None
    assert loan.installment_amount is None
    assert loan.start_date is None


def test_insurance_to_domain_collects_paid_installments():
    orm_contract = ORMInsuranceContract(
        id=4,
        description="Car insurance",
        installment_count=4,
        installment_amount=Decimal("182.40"),
        start_date=date(2024, 3, 10),
        active=True,
    )
    orm_contract.payments = [
        ORMInsurancePayment(installment_number=3),
        ORMInsurancePayment(installment_number=1),
    ]

    contract = insurance_to_domain(orm_contract)

    assert contract.paid_installments == frozenset({1, 3})
    assert contract.installment_amount == Decimal("182.40")


def test_bill_to_domain():
    orm_bill = ORMBillTrackerEntry(
        id=9,
        description="Laptop (1/3)",
        due_date=date(2024, 2, 5),
        expected_amount=Decimal("33.33"),
        source_type="purchase_installment",
        source_ref="abc123",
        installment_number=1,
        is_paid=False,
        is_excluded=False,
    )

    bill = bill_to_domain(orm_bill)

    assert bill.source_type == BillSourceType.PURCHASE_INSTALLMENT
    assert bill.source_ref == "abc123"
    assert bill.installment_number == 1
    assert not bill.is_paid
    assert bill.transaction_id is None
