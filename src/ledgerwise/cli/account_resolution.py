"""CLI wrappers that turn unresolvable account and category references into CLI errors."""

from __future__ import annotations

import click
from ledgerwise.cli.error_handling import handle_domain_error
from ledgerwise.domain.account import AccountService
from ledgerwise.domain.category import CategoryService
from ledgerwise.utils.account_resolver import resolve_account, resolve_category


def resolve_account_or_exit(ctx: click.Context, account_service: AccountService, account: str | int) -> int:
    """Resolve account name or ID, or exit with a CLI error."""
    try:
        return resolve_account(account_service, account)
    except ValueError as exc:
        handle_domain_error(ctx, exc)


def resolve_category_or_exit(ctx: click.Context, category_service: CategoryService, category: str | int) -> int:
    """Resolve category name or ID, or exit with a CLI error."""
    try:
        return resolve_category(category_service, category)
    except ValueError as exc:
        handle_domain_error(ctx, exc)
