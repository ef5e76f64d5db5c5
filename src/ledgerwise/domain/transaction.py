"""Transaction domain service."""

import dataclasses
import uuid
from typing import Optional
from datetime import date
from decimal import Decimal
from ledgerwise.database.base import Database
from ledgerwise.domain import errors
from ledgerwise.domain.entities import (
    FlowType,
    OperationType,
    Transaction as TransactionEntity,
    TransactionRevision,
)
from ledgerwise.log import get_logger

logger = get_logger(__name__)

# Flows each operation type may be recorded with; the first is the default
ALLOWED_FLOWS: dict[OperationType, tuple[FlowType, ...]] = {
    OperationType.INCOME: (FlowType.IN,),
    OperationType.INVESTMENT_WITHDRAWAL: (FlowType.IN,),
    OperationType.LOAN_DISBURSEMENT: (FlowType.IN,),
    OperationType.VEHICLE_SALE: (FlowType.IN,),
    OperationType.YIELD: (FlowType.IN,),
    OperationType.OPENING_BALANCE: (FlowType.IN,),
    OperationType.EXPENSE: (FlowType.OUT,),
    OperationType.INVESTMENT_CONTRIBUTION: (FlowType.OUT,),
    OperationType.LOAN_PAYMENT: (FlowType.OUT,),
    OperationType.VEHICLE_PURCHASE: (FlowType.OUT,),
    OperationType.TRANSFER: (FlowType.TRANSFER_OUT, FlowType.TRANSFER_IN),
}


def default_flow(operation_type: OperationType) -> FlowType:
    """Return the flow an operation type is recorded with unless told otherwise."""
    return ALLOWED_FLOWS[operation_type][0]


def validate_flow(operation_type: OperationType, flow: FlowType) -> None:
    """Raise ValidationError if the flow contradicts the operation type."""
    if flow not in ALLOWED_FLOWS[operation_type]:
        raise errors.ValidationError(errors.flow_mismatch(operation_type.value, flow.value))


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def _validate(
        self,
        account_id: int,
        amount: Decimal,
        operation_type: OperationType,
        flow: FlowType,
        category_id: Optional[int],
    ) -> None:
        if amount <= 0:
            raise errors.ValidationError("Amount must be greater than zero")
        errors.require_cents(amount)

        if self.db.get_account(account_id) is None:
            raise errors.NotFoundError(errors.account_not_found(account_id))

        if category_id is not None and self.db.get_category(category_id) is None:
            raise errors.NotFoundError(errors.category_not_found(category_id))

        validate_flow(operation_type, flow)

    def create_transaction(
        self,
        account_id: int,
        date: date,
        amount: Decimal,
        operation_type: OperationType,
        flow: Optional[FlowType] = None,
        description: Optional[str] = None,
        category_id: Optional[int] = None,
        loan_id: Optional[int] = None,
        installment_number: Optional[int] = None,
        insurance_id: Optional[int] = None,
        investment_account_id: Optional[int] = None,
    ) -> int:
        """Create a transaction.

        Args:
            account_id: Account ID
            date: Transaction date
            amount: Positive magnitude; the sign follows from type and flow
            operation_type: Business operation
            flow: Direction of money; defaults to the operation's usual flow
            description: Optional description
            category_id: Optional category ID
            loan_id: Optional linked loan
            installment_number: Optional linked loan or insurance installment
            insurance_id: Optional linked insurance contract
            investment_account_id: Optional counterpart investment account

        Returns:
            Transaction ID

        Raises:
            ValidationError: If the amount is not positive or the flow is invalid
            NotFoundError: If the account or category doesn't exist
        """
        if operation_type == OperationType.TRANSFER and flow is None:
            raise errors.ValidationError("Transfers need an explicit flow; use create_transfer")
        flow = flow or default_flow(operation_type)
        self._validate(account_id, amount, operation_type, flow, category_id)

        transaction_id = self.db.create_transaction(
            account_id=account_id,
            date=date,
            amount=amount,
            operation_type=operation_type,
            flow=flow,
            description=description,
            category_id=category_id,
            loan_id=loan_id,
            installment_number=installment_number,
            insurance_id=insurance_id,
            investment_account_id=investment_account_id,
        )
        logger.info(
            "transaction.created",
            transaction_id=transaction_id,
            account_id=account_id,
            operation_type=operation_type.value,
            amount=str(amount),
        )
        return transaction_id

    def create_transfer(
        self,
        from_account_id: int,
        to_account_id: int,
        date: date,
        amount: Decimal,
        description: Optional[str] = None,
        category_id: Optional[int] = None,
    ) -> tuple[int, int]:
        """Move money between two accounts.

        Both legs share a transfer group id and are written in one unit, so
        either both exist or neither does.

        Returns:
            Tuple of (outgoing transaction ID, incoming transaction ID)

        Raises:
            ValidationError: If both accounts are the same or the amount is not positive
            NotFoundError: If either account doesn't exist
        """
        if from_account_id == to_account_id:
            raise errors.ValidationError("Cannot transfer to the same account")

        self._validate(from_account_id, amount, OperationType.TRANSFER, FlowType.TRANSFER_OUT, category_id)
        self._validate(to_account_id, amount, OperationType.TRANSFER, FlowType.TRANSFER_IN, category_id)

        group_id = uuid.uuid4().hex
        with self.db.atomic():
            out_id = self.db.create_transaction(
                account_id=from_account_id,
                date=date,
                amount=amount,
                operation_type=OperationType.TRANSFER,
                flow=FlowType.TRANSFER_OUT,
                description=description,
                category_id=category_id,
                transfer_group_id=group_id,
            )
            in_id = self.db.create_transaction(
                account_id=to_account_id,
                date=date,
                amount=amount,
                operation_type=OperationType.TRANSFER,
                flow=FlowType.TRANSFER_IN,
                description=description,
                category_id=category_id,
                transfer_group_id=group_id,
            )

        logger.info(
            "transfer.created",
            transfer_group_id=group_id,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=str(amount),
        )
        return out_id, in_id

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def update_transaction(
        self,
        transaction_id: int,
        date: Optional[date] = None,
        amount: Optional[Decimal] = None,
        description: Optional[str] = None,
        category_id: Optional[int] = None,
        clear_category: bool = False,
    ) -> TransactionEntity:
        """Replace a transaction with an edited copy.

        The stored record is replaced by id and its prior version is kept as a
        revision. Date and amount edits on a transfer leg are applied to the
        other leg as well.

        Args:
            transaction_id: Transaction ID to update
            date: Optional new date
            amount: Optional new amount
            description: Optional new description
            category_id: Optional new category ID
            clear_category: If True, clear the category (category_id must be None)

        Returns:
            The edited transaction

        Raises:
            NotFoundError: If transaction or category doesn't exist
            ValidationError: If the edit is invalid
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise errors.NotFoundError(errors.transaction_not_found(transaction_id))

        if clear_category and category_id is not None:
            raise errors.ValidationError("Cannot set both category_id and clear_category")

        changes = {}
        if date is not None:
            changes["date"] = date
        if amount is not None:
            changes["amount"] = amount
        if description is not None:
            changes["description"] = description
        if clear_category:
            changes["category_id"] = None
        elif category_id is not None:
            changes["category_id"] = category_id

        edited = dataclasses.replace(txn, **changes)
        self._validate(
            edited.account_id, edited.amount, edited.operation_type, edited.flow, edited.category_id
        )

        siblings = []
        if txn.transfer_group_id is not None:
            shared = {k: v for k, v in changes.items() if k in ("date", "amount")}
            if shared:
                siblings = [
                    dataclasses.replace(other, **shared)
                    for other in self.db.list_transactions(transfer_group_id=txn.transfer_group_id)
                    if other.id != txn.id
                ]

        with self.db.atomic():
            self.db.replace_transaction(edited)
            for sibling in siblings:
                self.db.replace_transaction(sibling)

        logger.info(
            "transaction.replaced",
            transaction_id=transaction_id,
            fields=sorted(changes),
            linked=[s.id for s in siblings],
        )
        return edited

    def list_revisions(self, transaction_id: int) -> list[TransactionRevision]:
        """List prior versions of a transaction, oldest first.

        Raises:
            NotFoundError: If transaction doesn't exist
        """
        if self.db.get_transaction(transaction_id) is None:
            raise errors.NotFoundError(errors.transaction_not_found(transaction_id))
        return self.db.list_transaction_revisions(transaction_id)

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category_name: Optional[str] = None,
        account_id: Optional[int] = None,
    ) -> list[TransactionEntity]:
        """List transactions with filters.

        Args:
            start_date: Optional inclusive start date
            end_date: Optional inclusive end date
            category_name: Optional category name filter
            account_id: Optional account ID filter

        Returns:
            List of transaction entities, oldest first
        """
        category_id = None
        if category_name is not None:
            category = self.db.get_category_by_name(category_name)
            if category is None:
                # Category doesn't exist, return empty list
                return []
            category_id = category.id

        return self.db.list_transactions(
            account_id=account_id,
            start_date=start_date,
            end_date=end_date,
            category_id=category_id,
        )
