"""Tests for the Database interface returning domain models."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from ledgerwise.database.base import Database
from ledgerwise.domain import entities, errors
from ledgerwise.domain.entities import (
    AccountKind,
    BillSourceType,
    CategoryNature,
    FlowType,
    LoanStatus,
    OperationType,
)


def _expense(db, account_id, day, amount, **kwargs):
    return db.create_transaction(
        account_id=account_id,
        date=day,
        amount=Decimal(amount),
        operation_type=OperationType.EXPENSE,
        flow=FlowType.OUT,
        **kwargs,
    )


def test_sqlalchemy_database_implements_interface(temp_db):
    assert isinstance(temp_db, Database)


class TestAccounts:
    def test_get_account_returns_domain_model(self, temp_db):
        account_id = temp_db.create_account(
            name="Visa", kind=AccountKind.CREDIT_CARD, opening_balance=Decimal("-20.50")
        )

        account = temp_db.get_account(account_id)

        assert isinstance(account, entities.Account)
        assert account.kind == AccountKind.CREDIT_CARD
        assert account.opening_balance == Decimal("-20.50")
        assert isinstance(account.created_at, datetime)

    def test_list_accounts_ordered_by_name(self, temp_db):
        temp_db.create_account(name="Savings", kind=AccountKind.SAVINGS)
        temp_db.create_account(name="Checking", kind=AccountKind.CHECKING)

        assert [a.name for a in temp_db.list_accounts()] == ["Checking", "Savings"]

    def test_hide_and_delete(self, temp_db):
        account_id = temp_db.create_account(name="Old", kind=AccountKind.CHECKING)
        temp_db.update_account_hidden(account_id, True)
        assert temp_db.get_account(account_id).hidden

        temp_db.delete_account(account_id)
        assert temp_db.get_account(account_id) is None

    def test_delete_with_transactions_is_blocked(self, temp_db, sample_account):
        with pytest.raises(errors.DependencyError, match="hide the account"):
            temp_db.delete_account(sample_account.id)

    def test_missing_account(self, temp_db):
        assert temp_db.get_account(999) is None
        with pytest.raises(errors.NotFoundError):
            temp_db.update_account_hidden(999, True)


def test_categories(temp_db):
    category_id = temp_db.create_category("Rent", CategoryNature.FIXED_EXPENSE, Decimal("1800.00"))

    category = temp_db.get_category_by_name("Rent")

    assert isinstance(category, entities.Category)
    assert category.id == category_id
    assert category.typical_amount == Decimal("1800.00")
    assert temp_db.get_category_by_name("Nope") is None


class TestTransactions:
    def test_list_filters_and_order(self, temp_db, sample_account):
        late = _expense(temp_db, sample_account.id, date(2024, 2, 10), "5.00")
        early = _expense(temp_db, sample_account.id, date(2024, 2, 1), "7.00")

        february = temp_db.list_transactions(
            account_id=sample_account.id, start_date=date(2024, 2, 1), end_date=date(2024, 2, 29)
        )

        assert [t.id for t in february] == [early, late]
        assert all(isinstance(t.amount, Decimal) for t in february)

    def test_replace_stores_revision(self, temp_db, sample_account):
        txn_id = _expense(temp_db, sample_account.id, date(2024, 2, 1), "52.30", description="Market")
        original = temp_db.get_transaction(txn_id)

        temp_db.replace_transaction(
            entities.Transaction(
                id=txn_id,
                account_id=sample_account.id,
                date=date(2024, 2, 2),
                amount=Decimal("48.90"),
                operation_type=OperationType.EXPENSE,
                flow=FlowType.OUT,
            )
        )

        current = temp_db.get_transaction(txn_id)
        assert current.amount == Decimal("48.90")
        assert current.description is None
        revisions = temp_db.list_transaction_revisions(txn_id)
        assert len(revisions) == 1
        assert revisions[0].previous.amount == original.amount
        assert revisions[0].previous.description == "Market"

    def test_replace_missing_transaction(self, temp_db, sample_account):
        ghost = entities.Transaction(
            id=999,
            account_id=sample_account.id,
            date=date(2024, 2, 2),
            amount=Decimal("1"),
            operation_type=OperationType.EXPENSE,
            flow=FlowType.OUT,
        )
        with pytest.raises(errors.NotFoundError):
            temp_db.replace_transaction(ghost)


class TestAtomic:
    def test_exception_rolls_back_every_write(self, temp_db):
        with pytest.raises(RuntimeError):
            with temp_db.atomic():
                temp_db.create_account(name="A", kind=AccountKind.CHECKING)
                temp_db.create_account(name="B", kind=AccountKind.CHECKING)
                raise RuntimeError("boom")

        assert temp_db.list_accounts() == []

    def test_nested_units_commit_once(self, temp_db):
        with temp_db.atomic():
            temp_db.create_account(name="A", kind=AccountKind.CHECKING)
            with temp_db.atomic():
                temp_db.create_account(name="B", kind=AccountKind.CHECKING)

        assert [a.name for a in temp_db.list_accounts()] == ["A", "B"]

    def test_inner_failure_rolls_back_outer_unit(self, temp_db):
        with pytest.raises(ValueError):
            with temp_db.atomic():
                temp_db.create_account(name="A", kind=AccountKind.CHECKING)
                with temp_db.atomic():
                    raise ValueError("inner")

        assert temp_db.list_accounts() == []


class TestLoansInsuranceBills:
    def test_update_loan(self, temp_db, sample_account):
        loan_id = temp_db.create_loan("CDC-001", Decimal("10000.00"), account_id=sample_account.id)

        temp_db.update_loan(loan_id, status=LoanStatus.ACTIVE, term_months=12)

        loan = temp_db.get_loan(loan_id)
        assert loan.status == LoanStatus.ACTIVE
        assert loan.term_months == 12
        assert [l.id for l in temp_db.list_loans(LoanStatus.SETTLED)] == []
        with pytest.raises(ValueError):
            temp_db.update_loan(loan_id, interest_free=True)
        with pytest.raises(errors.NotFoundError):
            temp_db.update_loan(999, term_months=1)

    def test_insurance_payments_toggle(self, temp_db):
        insurance_id = temp_db.create_insurance("Car insurance", 4, Decimal("182.40"), date(2024, 3, 10))

        temp_db.set_insurance_installment_paid(insurance_id, 2, True)
        temp_db.set_insurance_installment_paid(insurance_id, 2, True)
        assert temp_db.get_insurance(insurance_id).paid_installments == frozenset({2})

        temp_db.set_insurance_installment_paid(insurance_id, 2, False)
        assert temp_db.get_insurance(insurance_id).paid_installments == frozenset()

    def test_bills_by_due_date_window(self, temp_db):
        later = temp_db.create_bill("Gym", date(2024, 3, 20), Decimal("90"), BillSourceType.AD_HOC)
        earlier = temp_db.create_bill("IPTU", date(2024, 3, 10), Decimal("312"), BillSourceType.AD_HOC)
        temp_db.create_bill("April", date(2024, 4, 1), Decimal("1"), BillSourceType.AD_HOC)

        march = temp_db.list_bills(date(2024, 3, 1), date(2024, 3, 31))
        assert [b.id for b in march] == [earlier, later]

        temp_db.update_bill(later, is_excluded=True)
        assert temp_db.get_bill(later).is_excluded
        temp_db.delete_bill(earlier)
        assert temp_db.get_bill(earlier) is None
        with pytest.raises(errors.NotFoundError):
            temp_db.delete_bill(earlier)
