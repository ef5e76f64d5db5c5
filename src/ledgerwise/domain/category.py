"""Category domain service."""

from decimal import Decimal
from typing import Optional

from ledgerwise.database.base import Database
from ledgerwise.domain import errors
from ledgerwise.domain.entities import Category as CategoryEntity, CategoryNature
from ledgerwise.log import get_logger

logger = get_logger(__name__)

# Default categories created by `ledgerwise category init`
INITIAL_CATEGORIES = [
    ("Salary", CategoryNature.INCOME, None),
    ("Freelance", CategoryNature.INCOME, None),
    ("Rent", CategoryNature.FIXED_EXPENSE, None),
    ("Utilities", CategoryNature.FIXED_EXPENSE, None),
    ("Internet", CategoryNature.FIXED_EXPENSE, None),
    ("Groceries", CategoryNature.VARIABLE_EXPENSE, None),
    ("Transport", CategoryNature.VARIABLE_EXPENSE, None),
    ("Leisure", CategoryNature.VARIABLE_EXPENSE, None),
    ("Health", CategoryNature.VARIABLE_EXPENSE, None),
    ("Insurance", CategoryNature.FINANCING, None),
    ("Loan", CategoryNature.FINANCING, None),
    ("Investments", CategoryNature.INVESTMENT, None),
    ("Transfer", CategoryNature.TRANSFER, None),
]


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_category(
        self,
        name: str,
        nature: CategoryNature = CategoryNature.VARIABLE_EXPENSE,
        typical_amount: Optional[Decimal] = None,
    ) -> int:
        """Create a category.

        Args:
            name: Category name
            nature: Accounting nature; FIXED_EXPENSE categories recur monthly
            typical_amount: Usual monthly amount of a fixed expense

        Returns:
            Category ID

        Raises:
            ConflictError: If a category with the same name exists
            ValidationError: If the typical amount is negative
        """
        if self.db.get_category_by_name(name) is not None:
            raise errors.ConflictError(f"Category '{name}' already exists")
        if typical_amount is not None and typical_amount < 0:
            raise errors.ValidationError("Typical amount must not be negative")
        if typical_amount is not None:
            errors.require_cents(typical_amount, "Typical amount")

        category_id = self.db.create_category(name=name, nature=nature, typical_amount=typical_amount)
        logger.info("category.created", category_id=category_id, nature=nature.value)
        return category_id

    def get_category(self, category_id: int) -> Optional[CategoryEntity]:
        """Get category by ID."""
        return self.db.get_category(category_id)

    def get_category_by_name(self, name: str) -> Optional[CategoryEntity]:
        """Get category by name."""
        return self.db.get_category_by_name(name)

    def list_categories(self, nature: Optional[CategoryNature] = None) -> list[CategoryEntity]:
        """List categories, optionally only those of one nature."""
        categories = self.db.list_categories()
        if nature is None:
            return categories
        return [cat for cat in categories if cat.nature == nature]

    def init_categories(self) -> int:
        """Create the default categories that do not exist yet.

        Returns:
            Number of categories created
        """
        created = 0
        for name, nature, typical_amount in INITIAL_CATEGORIES:
            if self.db.get_category_by_name(name) is None:
                self.db.create_category(name=name, nature=nature, typical_amount=typical_amount)
                created += 1
        return created
