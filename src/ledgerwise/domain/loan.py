"""Loan domain service."""

from datetime import date
from decimal import Decimal
from typing import Optional

from ledgerwise.database.base import Database
from ledgerwise.domain import amortization, errors
from ledgerwise.domain.entities import (
    AmortizationItem,
    FlowType,
    Loan as LoanEntity,
    LoanStatus,
    LoanSummary,
    OperationType,
)
from ledgerwise.log import get_logger

logger = get_logger(__name__)


def status_for(loan: LoanEntity, paid_installments: int) -> LoanStatus:
    """Lifecycle status implied by a loan's terms and paid counter."""
    if loan.term_months <= 0:
        return LoanStatus.PENDING_CONFIGURATION
    if paid_installments >= loan.term_months:
        return LoanStatus.SETTLED
    return LoanStatus.ACTIVE


class LoanService:
    """Service for managing loans and their installments."""

    def __init__(self, db: Database):
        """Initialize loan service.

        Args:
            db: Database instance
        """
        self.db = db

    def get_loan(self, loan_id: int) -> LoanEntity:
        """Get loan by ID.

        Raises:
            NotFoundError: If loan doesn't exist
        """
        loan = self.db.get_loan(loan_id)
        if loan is None:
            raise errors.NotFoundError(errors.loan_not_found(loan_id))
        return loan

    def list_loans(self, status: Optional[LoanStatus] = None) -> list[LoanEntity]:
        """List loans, optionally filtered by status."""
        return self.db.list_loans(status=status)

    def register_disbursement(
        self,
        contract: str,
        principal: Decimal,
        account_id: int,
        disbursement_date: date,
        description: Optional[str] = None,
    ) -> int:
        """Record money received from a loan.

        Creates a loan pending configuration and the ``loan_disbursement``
        transaction crediting the account, in one unit.

        Args:
            contract: Contract identifier
            principal: Amount received
            account_id: Account credited with the principal
            disbursement_date: Date the money arrived
            description: Optional transaction description

        Returns:
            Loan ID

        Raises:
            ValidationError: If the principal is not positive
            NotFoundError: If the account doesn't exist
        """
        if principal <= 0:
            raise errors.ValidationError("Principal must be greater than zero")
        errors.require_cents(principal, "Principal")
        if self.db.get_account(account_id) is None:
            raise errors.NotFoundError(errors.account_not_found(account_id))

        with self.db.atomic():
            loan_id = self.db.create_loan(contract=contract, principal=principal, account_id=account_id)
            self.db.create_transaction(
                account_id=account_id,
                date=disbursement_date,
                amount=principal,
                operation_type=OperationType.LOAN_DISBURSEMENT,
                flow=FlowType.IN,
                description=description or f"Loan {contract}",
                loan_id=loan_id,
            )

        logger.info("loan.disbursed", loan_id=loan_id, principal=str(principal))
        return loan_id

    def configure_terms(
        self,
        loan_id: int,
        monthly_rate: Decimal,
        term_months: int,
        start_date: date,
        installment_amount: Optional[Decimal] = None,
    ) -> LoanEntity:
        """Supply the terms of a loan and activate it.

        Args:
            loan_id: Loan ID
            monthly_rate: Monthly interest rate as a fraction (0.02 for 2%)
            term_months: Number of monthly installments
            start_date: Installment k falls due k months after this date
            installment_amount: Contract installment; defaults to the PRICE value

        Returns:
            The configured loan

        Raises:
            NotFoundError: If loan doesn't exist
            ValidationError: If a term is out of range
        """
        loan = self.get_loan(loan_id)
        if term_months <= 0:
            raise errors.ValidationError("Term must be at least one month")
        if monthly_rate < 0:
            raise errors.ValidationError("Monthly rate must not be negative")
        if monthly_rate != monthly_rate.quantize(errors.RATE_STEP):
            raise errors.ValidationError(f"Monthly rate must have at most eight decimal places: {monthly_rate}")
        if installment_amount is not None and installment_amount <= 0:
            raise errors.ValidationError("Installment amount must be greater than zero")
        if installment_amount is not None:
            errors.require_cents(installment_amount, "Installment amount")

        if installment_amount is None:
            installment_amount = amortization.price_installment(loan.principal, monthly_rate, term_months)

        paid = min(loan.paid_installments, term_months)
        configured = LoanEntity(
            id=loan.id,
            contract=loan.contract,
            principal=loan.principal,
            installment_amount=installment_amount,
            monthly_rate=monthly_rate,
            term_months=term_months,
            start_date=start_date,
            paid_installments=paid,
            account_id=loan.account_id,
            created_at=loan.created_at,
        )
        status = status_for(configured, paid)
        self.db.update_loan(
            loan_id,
            monthly_rate=monthly_rate,
            term_months=term_months,
            start_date=start_date,
            installment_amount=installment_amount,
            paid_installments=paid,
            status=status,
        )
        logger.info(
            "loan.configured",
            loan_id=loan_id,
            term_months=term_months,
            installment=str(installment_amount),
        )
        return self.get_loan(loan_id)

    def _require_configured(self, loan: LoanEntity) -> None:
        if loan.status == LoanStatus.PENDING_CONFIGURATION or loan.term_months <= 0:
            raise errors.ValidationError(f"Loan {loan.id} has no terms configured yet")

    def mark_installment_paid(self, loan_id: int, installment_number: Optional[int] = None) -> LoanEntity:
        """Advance the paid counter for an installment.

        Installments are paid in order, so marking any installment beyond the
        counter advances it by one; marking an installment already covered
        changes nothing.

        Raises:
            NotFoundError: If loan doesn't exist
            ValidationError: If the loan is not configured or the number is out of range
        """
        loan = self.get_loan(loan_id)
        self._require_configured(loan)
        number = installment_number if installment_number is not None else loan.paid_installments + 1
        if not 1 <= number <= loan.term_months:
            raise errors.ValidationError(
                f"Installment {number} is outside 1..{loan.term_months} for loan {loan_id}"
            )

        if number <= loan.paid_installments:
            return loan

        paid = loan.paid_installments + 1
        self.db.update_loan(loan_id, paid_installments=paid, status=status_for(loan, paid))
        logger.info("loan.installment_paid", loan_id=loan_id, paid_installments=paid)
        return self.get_loan(loan_id)

    def unmark_installment_paid(self, loan_id: int) -> LoanEntity:
        """Step the paid counter back by one, reopening a settled loan.

        Raises:
            NotFoundError: If loan doesn't exist
            ValidationError: If the loan is not configured
        """
        loan = self.get_loan(loan_id)
        self._require_configured(loan)
        if loan.paid_installments == 0:
            return loan

        paid = loan.paid_installments - 1
        self.db.update_loan(loan_id, paid_installments=paid, status=status_for(loan, paid))
        logger.info("loan.installment_unpaid", loan_id=loan_id, paid_installments=paid)
        return self.get_loan(loan_id)

    def pay_installment(
        self,
        loan_id: int,
        account_id: int,
        payment_date: date,
        amount: Optional[Decimal] = None,
    ) -> int:
        """Pay the next installment from an account.

        Records a ``loan_payment`` transaction linked to the installment and
        advances the paid counter in one unit.

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If the loan or account doesn't exist
            ValidationError: If the loan is not configured or already settled
        """
        loan = self.get_loan(loan_id)
        self._require_configured(loan)
        if loan.paid_installments >= loan.term_months:
            raise errors.ValidationError(f"Loan {loan_id} is already settled")
        if self.db.get_account(account_id) is None:
            raise errors.NotFoundError(errors.account_not_found(account_id))

        number = loan.paid_installments + 1
        amount = amount if amount is not None else loan.installment_amount
        if amount is None or amount <= 0:
            raise errors.ValidationError("Amount must be greater than zero")
        errors.require_cents(amount)

        with self.db.atomic():
            transaction_id = self.db.create_transaction(
                account_id=account_id,
                date=payment_date,
                amount=amount,
                operation_type=OperationType.LOAN_PAYMENT,
                flow=FlowType.OUT,
                description=f"{loan.contract} installment {number}/{loan.term_months}",
                loan_id=loan_id,
                installment_number=number,
            )
            self.mark_installment_paid(loan_id, number)
        return transaction_id

    def schedule(self, loan_id: int) -> list[AmortizationItem]:
        """Full amortization schedule of a loan; empty while pending configuration."""
        return amortization.loan_schedule(self.get_loan(loan_id))

    def outstanding_balance(self, loan_id: int) -> Decimal:
        """Remaining balance after the paid installments."""
        return amortization.outstanding_balance(self.get_loan(loan_id))

    def summary(self, loan_id: int) -> LoanSummary:
        """Cost, interest and progress figures of a loan."""
        return amortization.loan_summary(self.get_loan(loan_id))

    def overdue(self, today: date) -> list[tuple[LoanEntity, AmortizationItem]]:
        """Unpaid installments past their due date across all active loans."""
        return [
            (loan, item)
            for loan in self.db.list_loans(status=LoanStatus.ACTIVE)
            for item in amortization.overdue_installments(loan, today)
        ]
