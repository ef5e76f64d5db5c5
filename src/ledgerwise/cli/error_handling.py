"""CLI error handling and output helpers."""

from decimal import Decimal

import click

from ledgerwise.domain.errors import DomainError
from ledgerwise.utils.amount_parser import parse_amount


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def format_money(amount: Decimal | None) -> str:
    """Format an amount with two decimals and thousands separators."""
    if amount is None:
        return "-"
    return f"{amount:,.2f}"


def parse_cli_amount(ctx: click.Context, value: str, label: str = "amount") -> Decimal:
    """Parse an amount option, or exit with a CLI error."""
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label} format: {e}", err=True)
        ctx.exit(1)
