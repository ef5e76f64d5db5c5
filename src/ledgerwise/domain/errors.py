"""Shared domain error messages and error types."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class PaidBillError(DomainError):
    """A paid bill cannot be excluded from the month's list."""


CENT = Decimal("0.01")
RATE_STEP = Decimal("0.00000001")


def require_cents(amount: Decimal, label: str = "Amount") -> None:
    """Raise ValidationError unless the amount fits in whole cents."""
    if not amount.is_finite() or amount != amount.quantize(CENT):
        raise ValidationError(f"{label} must have at most two decimal places: {amount}")


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def category_not_found(category_id: int) -> str:
    """Return message for missing category by ID."""
    return f"Category {category_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def loan_not_found(loan_id: int) -> str:
    """Return message for missing loan."""
    return f"Loan {loan_id} not found"


def insurance_not_found(insurance_id: int) -> str:
    """Return message for missing insurance contract."""
    return f"Insurance contract {insurance_id} not found"


def bill_not_found(bill_id: int) -> str:
    """Return message for missing bill tracker entry."""
    return f"Bill {bill_id} not found"


def flow_mismatch(operation_type: str, flow: str) -> str:
    """Return message for a flow that contradicts the operation type."""
    return f"Flow '{flow}' is not valid for operation '{operation_type}'"


def account_delete_blocked(account_id: int, transaction_count: int) -> str:
    """Return message when account has dependent transactions."""
    return (
        f"Cannot delete account {account_id}: it has {transaction_count} "
        f"transaction{'s' if transaction_count != 1 else ''}. "
        "Please hide the account instead."
    )


PAID_BILL_EXCLUSION = "cannot remove a paid bill here"
