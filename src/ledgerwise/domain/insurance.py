"""Insurance contract domain service."""

from datetime import date
from decimal import Decimal

from ledgerwise.database.base import Database
from ledgerwise.domain import errors
from ledgerwise.domain.entities import InsuranceContract as InsuranceEntity
from ledgerwise.utils.date_parser import add_months
from ledgerwise.log import get_logger

logger = get_logger(__name__)


def insurance_due_date(contract: InsuranceEntity, installment_number: int) -> date:
    """Installment k of an insurance contract falls due k - 1 months after the start."""
    return add_months(contract.start_date, installment_number - 1)


def insurance_installments(contract: InsuranceEntity) -> list[tuple[int, date]]:
    """All (installment number, due date) pairs of a contract."""
    return [
        (number, insurance_due_date(contract, number))
        for number in range(1, contract.installment_count + 1)
    ]


class InsuranceService:
    """Service for managing insurance contracts."""

    def __init__(self, db: Database):
        """Initialize insurance service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_contract(
        self,
        description: str,
        installment_count: int,
        installment_amount: Decimal,
        start_date: date,
    ) -> int:
        """Create an insurance contract.

        Args:
            description: Contract description
            installment_count: Number of monthly installments
            installment_amount: Amount of each installment
            start_date: Due date of the first installment

        Returns:
            Contract ID

        Raises:
            ValidationError: If the count or amount is not positive
        """
        if installment_count <= 0:
            raise errors.ValidationError("Installment count must be at least one")
        if installment_amount <= 0:
            raise errors.ValidationError("Installment amount must be greater than zero")
        errors.require_cents(installment_amount, "Installment amount")

        insurance_id = self.db.create_insurance(
            description=description,
            installment_count=installment_count,
            installment_amount=installment_amount,
            start_date=start_date,
        )
        logger.info("insurance.created", insurance_id=insurance_id, installments=installment_count)
        return insurance_id

    def get_contract(self, insurance_id: int) -> InsuranceEntity:
        """Get contract by ID.

        Raises:
            NotFoundError: If contract doesn't exist
        """
        contract = self.db.get_insurance(insurance_id)
        if contract is None:
            raise errors.NotFoundError(errors.insurance_not_found(insurance_id))
        return contract

    def list_contracts(self, active_only: bool = False) -> list[InsuranceEntity]:
        """List insurance contracts."""
        return [c for c in self.db.list_insurances() if c.active or not active_only]

    def set_installment_paid(self, insurance_id: int, installment_number: int, paid: bool = True) -> None:
        """Mark or unmark one installment as paid.

        Raises:
            NotFoundError: If contract doesn't exist
            ValidationError: If the installment number is out of range
        """
        contract = self.get_contract(insurance_id)
        if not 1 <= installment_number <= contract.installment_count:
            raise errors.ValidationError(
                f"Installment {installment_number} is outside 1..{contract.installment_count} "
                f"for insurance {insurance_id}"
            )
        self.db.set_insurance_installment_paid(insurance_id, installment_number, paid)
        logger.info(
            "insurance.installment_paid" if paid else "insurance.installment_unpaid",
            insurance_id=insurance_id,
            installment_number=installment_number,
        )
