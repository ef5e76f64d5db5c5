"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so enum values and column types
stay out of the domain entities.
"""

from decimal import Decimal
from typing import Any, Optional

from ledgerwise.domain import entities as domain
from ledgerwise.database.models import (
    Account as ORMAccount,
    Category as ORMCategory,
    Transaction as ORMTransaction,
    TransactionRevision as ORMTransactionRevision,
    Loan as ORMLoan,
    InsuranceContract as ORMInsuranceContract,
    BillTrackerEntry as ORMBillTrackerEntry,
)


def _decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return value if isinstance(value, Decimal) else Decimal(str(value))


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        kind=domain.AccountKind(orm_account.kind),
        opening_balance=_decimal(orm_account.opening_balance) or Decimal("0"),
        opening_date=orm_account.opening_date,
        hidden=orm_account.hidden,
        created_at=orm_account.created_at,
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        nature=domain.CategoryNature(orm_category.nature),
        typical_amount=_decimal(orm_category.typical_amount),
        created_at=orm_category.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        date=orm_transaction.date,
        amount=_decimal(orm_transaction.amount),
        operation_type=domain.OperationType(orm_transaction.operation_type),
        flow=domain.FlowType(orm_transaction.flow),
        description=orm_transaction.description,
        category_id=orm_transaction.category_id,
        loan_id=orm_transaction.loan_id,
        installment_number=orm_transaction.installment_number,
        insurance_id=orm_transaction.insurance_id,
        investment_account_id=orm_transaction.investment_account_id,
        transfer_group_id=orm_transaction.transfer_group_id,
        created_at=orm_transaction.created_at,
    )


def loan_to_domain(orm_loan: ORMLoan) -> domain.Loan:
    """Convert SQLAlchemy Loan model to domain Loan entity."""
    return domain.Loan(
        id=orm_loan.id,
        contract=orm_loan.contract,
        principal=_decimal(orm_loan.principal),
        status=domain.LoanStatus(orm_loan.status),
        installment_amount=_decimal(orm_loan.installment_amount),
        monthly_rate=_decimal(orm_loan.monthly_rate),
        term_months=orm_loan.term_months,
        start_date=orm_loan.start_date,
        paid_installments=orm_loan.paid_installments,
        account_id=orm_loan.account_id,
        created_at=orm_loan.created_at,
    )


def insurance_to_domain(orm_contract: ORMInsuranceContract) -> domain.InsuranceContract:
    """Convert SQLAlchemy InsuranceContract model to domain entity."""
    return domain.InsuranceContract(
        id=orm_contract.id,
        description=orm_contract.description,
        installment_count=orm_contract.installment_count,
        installment_amount=_decimal(orm_contract.installment_amount),
        start_date=orm_contract.start_date,
        paid_installments=frozenset(p.installment_number for p in orm_contract.payments),
        active=orm_contract.active,
        created_at=orm_contract.created_at,
    )


def bill_to_domain(orm_bill: ORMBillTrackerEntry) -> domain.BillTrackerEntry:
    """Convert SQLAlchemy BillTrackerEntry model to domain entity."""
    return domain.BillTrackerEntry(
        id=orm_bill.id,
        description=orm_bill.description,
        due_date=orm_bill.due_date,
        expected_amount=_decimal(orm_bill.expected_amount),
        source_type=domain.BillSourceType(orm_bill.source_type),
        source_ref=orm_bill.source_ref,
        installment_number=orm_bill.installment_number,
        is_paid=orm_bill.is_paid,
        payment_date=orm_bill.payment_date,
        transaction_id=orm_bill.transaction_id,
        suggested_account_id=orm_bill.suggested_account_id,
        suggested_category_id=orm_bill.suggested_category_id,
        is_excluded=orm_bill.is_excluded,
        created_at=orm_bill.created_at,
    )


def revision_to_domain(orm_revision: ORMTransactionRevision) -> domain.TransactionRevision:
    """Convert a stored revision to a domain entity holding the prior transaction."""
    previous = domain.Transaction(
        id=orm_revision.transaction_id,
        account_id=orm_revision.account_id,
        date=orm_revision.date,
        amount=_decimal(orm_revision.amount),
        operation_type=domain.OperationType(orm_revision.operation_type),
        flow=domain.FlowType(orm_revision.flow),
        description=orm_revision.description,
        category_id=orm_revision.category_id,
        loan_id=orm_revision.loan_id,
        installment_number=orm_revision.installment_number,
        insurance_id=orm_revision.insurance_id,
        investment_account_id=orm_revision.investment_account_id,
        transfer_group_id=orm_revision.transfer_group_id,
    )
    return domain.TransactionRevision(
        id=orm_revision.id,
        transaction_id=orm_revision.transaction_id,
        revised_at=orm_revision.revised_at,
        previous=previous,
    )
