"""Resolve account and category references given as names or IDs."""

from ledgerwise.domain import errors
from ledgerwise.domain.account import AccountService
from ledgerwise.domain.category import CategoryService


def _as_id(reference: str | int) -> int | None:
    if isinstance(reference, int):
        return reference
    text = reference.strip()
    return int(text) if text.isdigit() else None


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve an account name or ID to the account ID.

    Hidden accounts resolve too, so past transactions on them stay editable.

    Raises:
        NotFoundError: If no account matches
    """
    account_id = _as_id(account)
    if account_id is not None:
        if account_service.get_account(account_id) is None:
            raise errors.NotFoundError(errors.account_not_found(account_id))
        return account_id

    for acc in account_service.list_accounts(include_hidden=True):
        if acc.name == account:
            return acc.id
    raise errors.NotFoundError(f"Account '{account}' not found")


def resolve_category(category_service: CategoryService, category: str | int) -> int:
    """Resolve a category name or ID to the category ID.

    Raises:
        NotFoundError: If no category matches
    """
    category_id = _as_id(category)
    if category_id is not None:
        if category_service.get_category(category_id) is None:
            raise errors.NotFoundError(errors.category_not_found(category_id))
        return category_id

    found = category_service.get_category_by_name(category)
    if found is None:
        raise errors.NotFoundError(f"Category '{category}' not found")
    return found.id
