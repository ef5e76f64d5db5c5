"""Transaction management commands."""

import click
from datetime import date as date_type
from ledgerwise.cli.account_resolution import resolve_account_or_exit, resolve_category_or_exit
from ledgerwise.cli.date_filters import parse_cli_date, resolve_cli_date_range
from ledgerwise.cli.error_handling import format_money, handle_domain_error, parse_cli_amount
from ledgerwise.domain.account import AccountService
from ledgerwise.domain.category import CategoryService
from ledgerwise.domain.entities import FlowType, OperationType
from ledgerwise.domain.transaction import TransactionService

# Transfers have their own command so both legs are always written
OPERATION_CHOICES = [op.value for op in OperationType if op != OperationType.TRANSFER]


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--amount", required=True, help="Amount (positive magnitude)")
@click.option(
    "--type",
    "operation_type",
    type=click.Choice(OPERATION_CHOICES),
    default=OperationType.EXPENSE.value,
    show_default=True,
    help="Operation type",
)
@click.option("--date", "txn_date", help="Transaction date (YYYY-MM-DD or relative like 'today')")
@click.option("--description", help="Transaction description")
@click.option("--category", help="Category name or ID")
@click.option("--investment-account", help="Counterpart investment account name or ID")
@click.pass_context
def add_transaction(
    ctx,
    account: str,
    amount: str,
    operation_type: str,
    txn_date: str | None,
    description: str | None,
    category: str | None,
    investment_account: str | None,
):
    """Record a transaction.

    The flow direction follows from the operation type.

    Examples:
        ledgerwise txn add --account Checking --amount 52.30 --category Groceries
        ledgerwise txn add --account Checking --amount 4200 --type income --date 2024-06-05
    """
    db = ctx.obj["db"]
    account_service = AccountService(db)
    service = TransactionService(db)

    account_id = resolve_account_or_exit(ctx, account_service, account)
    category_id = None
    if category is not None:
        category_id = resolve_category_or_exit(ctx, CategoryService(db), category)
    investment_account_id = None
    if investment_account is not None:
        investment_account_id = resolve_account_or_exit(ctx, account_service, investment_account)

    txn_amount = parse_cli_amount(ctx, amount)
    when = parse_cli_date(ctx, txn_date) or date_type.today()

    try:
        transaction_id = service.create_transaction(
            account_id=account_id,
            date=when,
            amount=txn_amount,
            operation_type=OperationType(operation_type),
            description=description,
            category_id=category_id,
            investment_account_id=investment_account_id,
        )
        click.echo(f"Created transaction {transaction_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("transfer")
@click.option("--from", "from_account", required=True, help="Source account name or ID")
@click.option("--to", "to_account", required=True, help="Destination account name or ID")
@click.option("--amount", required=True, help="Amount to move")
@click.option("--date", "txn_date", help="Transfer date (default: today)")
@click.option("--description", help="Description for both legs")
@click.pass_context
def transfer(
    ctx, from_account: str, to_account: str, amount: str, txn_date: str | None, description: str | None
):
    """Move money between two accounts.

    Paying a credit card bill is a transfer from the paying account to the card.

    Examples:
        ledgerwise txn transfer --from Checking --to Savings --amount 500
    """
    db = ctx.obj["db"]
    account_service = AccountService(db)
    from_id = resolve_account_or_exit(ctx, account_service, from_account)
    to_id = resolve_account_or_exit(ctx, account_service, to_account)
    txn_amount = parse_cli_amount(ctx, amount)
    when = parse_cli_date(ctx, txn_date) or date_type.today()

    try:
        out_id, in_id = TransactionService(db).create_transfer(
            from_account_id=from_id,
            to_account_id=to_id,
            date=when,
            amount=txn_amount,
            description=description,
        )
        click.echo(f"Created transfer (transactions {out_id} and {in_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("edit")
@click.argument("transaction_id", type=int)
@click.option("--date", "txn_date", help="New date")
@click.option("--amount", help="New amount")
@click.option("--description", help="New description")
@click.option("--category", help="Category name or ID, or empty string to clear")
@click.pass_context
def edit_transaction(
    ctx,
    transaction_id: int,
    txn_date: str | None,
    amount: str | None,
    description: str | None,
    category: str | None,
) -> None:
    """Edit a transaction.

    The previous version is kept and can be shown with 'txn history'.
    Use --category "" to clear the category.

    Examples:
        ledgerwise txn edit 12 --amount 48.90
        ledgerwise txn edit 12 --category ""
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    new_date = parse_cli_date(ctx, txn_date)
    new_amount = parse_cli_amount(ctx, amount) if amount is not None else None

    category_id = None
    clear_category = False
    if category is not None:
        if category == "":
            clear_category = True
        else:
            category_id = resolve_category_or_exit(ctx, CategoryService(db), category)

    try:
        service.update_transaction(
            transaction_id=transaction_id,
            date=new_date,
            amount=new_amount,
            description=description,
            category_id=category_id,
            clear_category=clear_category,
        )
        click.echo(f"Updated transaction {transaction_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("history")
@click.argument("transaction_id", type=int)
@click.pass_context
def transaction_history(ctx, transaction_id: int) -> None:
    """Show earlier versions of an edited transaction."""
    db = ctx.obj["db"]
    try:
        revisions = TransactionService(db).list_revisions(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    if not revisions:
        click.echo("No earlier versions.")
        return
    for revision in revisions:
        prev = revision.previous
        click.echo(
            f"{revision.revised_at:%Y-%m-%d %H:%M} | {prev.date} | {format_money(prev.amount):>12s} | "
            f"{prev.description or ''}"
        )


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month', 'this year')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today', 'this month')")
@click.option("--this-month", is_flag=True, help="Only this month")
@click.option("--last-month", is_flag=True, help="Only last month")
@click.option("--this-year", is_flag=True, help="Only this year")
@click.option("--category", help="Category name")
@click.option("--account", help="Account name or ID")
@click.pass_context
def list_transactions(
    ctx,
    start_date: str | None,
    end_date: str | None,
    this_month: bool,
    last_month: bool,
    this_year: bool,
    category: str | None,
    account: str | None,
):
    """View transactions with optional filters, oldest first."""
    db = ctx.obj["db"]
    account_service = AccountService(db)

    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags={"this-month": this_month, "last-month": last_month, "this-year": this_year},
    )

    account_id = None
    if account:
        account_id = resolve_account_or_exit(ctx, account_service, account)

    transactions = TransactionService(db).list_transactions(
        start_date=start, end_date=end, category_name=category, account_id=account_id
    )
    if not transactions:
        click.echo("No transactions found.")
        return

    accounts = {acc.id: acc.name for acc in account_service.list_accounts(include_hidden=True)}
    categories = {cat.id: cat.name for cat in CategoryService(db).list_categories()}

    click.echo(
        f"{'ID':>5} | {'Date':10} | {'Account':15} | {'Type':23} | {'Flow':12} | "
        f"{'Amount':>12} | {'Category':15} | Description"
    )
    click.echo("-" * 130)
    for txn in transactions:
        sign = "-" if txn.flow in (FlowType.OUT, FlowType.TRANSFER_OUT) else ""
        click.echo(
            f"{txn.id:5d} | {txn.date} | {accounts.get(txn.account_id, 'Unknown'):15.15} | "
            f"{txn.operation_type.value:23} | {txn.flow.value:12} | "
            f"{sign + format_money(txn.amount):>12} | "
            f"{categories.get(txn.category_id, ''):15.15} | {txn.description or ''}"
        )


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="txn")
