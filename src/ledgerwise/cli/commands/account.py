"""Account management commands."""

import click
from ledgerwise.cli.account_resolution import resolve_account_or_exit
from ledgerwise.cli.date_filters import parse_cli_date
from ledgerwise.cli.error_handling import format_money, handle_domain_error, parse_cli_amount
from ledgerwise.domain.account import AccountService
from ledgerwise.domain.entities import AccountKind
from ledgerwise.domain.ledger import LedgerService

KIND_CHOICES = [kind.value for kind in AccountKind]


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--kind",
    type=click.Choice(KIND_CHOICES),
    default=AccountKind.CHECKING.value,
    show_default=True,
    help="Account kind; credit cards use the inverted sign convention",
)
@click.option("--opening-balance", default="0", help="Opening balance (negative for debt)")
@click.option("--opening-date", help="Date of the opening balance (default: today)")
@click.pass_context
def create_account(ctx, name: str, kind: str, opening_balance: str, opening_date: str | None):
    """Create a new account.

    Examples:
        ledgerwise account create "Checking" --opening-balance 1500
        ledgerwise account create "Visa" --kind credit_card --opening-balance -320.50
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    balance = parse_cli_amount(ctx, opening_balance, "opening balance")
    start = parse_cli_date(ctx, opening_date, "opening date")

    try:
        account_id = service.create_account(
            name=name, kind=AccountKind(kind), opening_balance=balance, opening_date=start
        )
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include hidden accounts")
@click.pass_context
def list_accounts(ctx, show_all: bool):
    """List accounts with their current balances."""
    db = ctx.obj["db"]
    ledger = LedgerService(db)

    balances = ledger.balances(include_hidden=show_all)
    if not balances:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for acc, balance in balances:
        hidden = " (hidden)" if acc.hidden else ""
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s} | {acc.kind.value:17s} | "
            f"{format_money(balance):>14s}{hidden}"
        )


@account_group.command("balance")
@click.argument("account", metavar="ACCOUNT")
@click.option("--as-of", help="Balance before this date (default: all transactions)")
@click.pass_context
def account_balance(ctx, account: str, as_of: str | None):
    """Show an account's balance.

    ACCOUNT can be an account name or ID. With --as-of, only transactions
    dated strictly before that date count.

    Examples:
        ledgerwise account balance Checking
        ledgerwise account balance 1 --as-of 2024-07-01
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    cutoff = parse_cli_date(ctx, as_of, "date")

    balance = LedgerService(db).balance_as_of(account_id, cutoff)
    label = f"before {cutoff}" if cutoff else "current"
    click.echo(f"Balance ({label}): {format_money(balance)}")


@account_group.command("hide")
@click.argument("account", metavar="ACCOUNT")
@click.option("--unhide", is_flag=True, help="Show the account again")
@click.pass_context
def hide_account(ctx, account: str, unhide: bool) -> None:
    """Hide an account from listings without touching its history.

    ACCOUNT can be an account name or ID.
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)

    try:
        service.set_hidden(account_id, not unhide)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"{'Unhid' if unhide else 'Hid'} account {account_id}")


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account that has no transactions.

    ACCOUNT can be an account name or ID. Accounts with history can only be
    hidden.
    """
    db = ctx.obj["db"]
    service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, service, account)
    account_obj = service.get_account(account_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete account '{account_obj.name}' (ID: {account_id})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(account_id)
        click.echo(f"Deleted account '{account_obj.name}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
