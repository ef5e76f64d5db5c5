"""Monthly bill list commands."""

import click
from ledgerwise.cli.account_resolution import resolve_account_or_exit, resolve_category_or_exit
from ledgerwise.cli.date_filters import parse_cli_date, resolve_cli_month
from ledgerwise.cli.error_handling import format_money, handle_domain_error, parse_cli_amount
from ledgerwise.domain.account import AccountService
from ledgerwise.domain.category import CategoryService
from ledgerwise.domain.obligations import BillTrackerService

MONTH_HELP = "Month as YYYY-MM (default: this month)"


def _suggestions(ctx, db, account: str | None, category: str | None) -> tuple[int | None, int | None]:
    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    category_id = None
    if category is not None:
        category_id = resolve_category_or_exit(ctx, CategoryService(db), category)
    return account_id, category_id


def _potential_bill_or_exit(ctx, service: BillTrackerService, month, number: int):
    bills = service.potential_bills(month)
    if not 1 <= number <= len(bills):
        click.echo(
            f"Error: No potential bill #{number} in {month:%Y-%m} "
            f"(run 'bills potential' to list them)",
            err=True,
        )
        ctx.exit(1)
    return bills[number - 1]


@click.group()
def bills_group():
    """Manage the monthly bill list."""
    pass


@bills_group.command("potential")
@click.option("--month", help=MONTH_HELP)
@click.pass_context
def potential(ctx, month: str | None):
    """List loan, insurance and fixed-expense bills projected for a month.

    The number in the first column identifies the bill for 'bills include'
    and 'bills exclude'.
    """
    target = resolve_cli_month(ctx, month)
    bills = BillTrackerService(ctx.obj["db"]).potential_bills(target)
    if not bills:
        click.echo(f"No potential bills for {target:%Y-%m}.")
        return

    click.echo(f"\nPotential bills for {target:%Y-%m}:")
    for number, bill in enumerate(bills, start=1):
        state = "paid" if bill.is_paid else ("included" if bill.is_included else "")
        click.echo(
            f"{number:3d} | {bill.due_date} | {bill.source_type.value:21s} | "
            f"{bill.description:30.30s} | {format_money(bill.expected_amount):>12} | {state}"
        )


@bills_group.command("list")
@click.option("--month", help=MONTH_HELP)
@click.pass_context
def list_bills(ctx, month: str | None):
    """Show the bill list of a month with its totals."""
    target = resolve_cli_month(ctx, month)
    bills = BillTrackerService(ctx.obj["db"]).bills_for_month(target)
    if not bills:
        click.echo(f"No bills for {target:%Y-%m}.")
        return

    click.echo(f"\nBills for {target:%Y-%m}:")
    for bill in bills:
        state = f"paid {bill.payment_date}" if bill.is_paid else "open"
        click.echo(
            f"ID: {bill.id:4d} | {bill.due_date} | {bill.description:30.30s} | "
            f"{format_money(bill.expected_amount):>12} | {state}"
        )

    total = sum(bill.expected_amount for bill in bills)
    paid = sum(bill.expected_amount for bill in bills if bill.is_paid)
    click.echo("-" * 72)
    click.echo(f"Total: {format_money(total)} | Paid: {format_money(paid)} | Open: {format_money(total - paid)}")


@bills_group.command("future")
@click.option("--month", help="Show installments due after this month (default: this month)")
@click.option("--include-paid", is_flag=True, help="Also show installments already paid")
@click.pass_context
def future(ctx, month: str | None, include_paid: bool):
    """List loan and insurance installments due after a month."""
    target = resolve_cli_month(ctx, month)
    bills = BillTrackerService(ctx.obj["db"]).future_bills(target, include_paid=include_paid)
    if not bills:
        click.echo("No future installments.")
        return
    for bill in bills:
        click.echo(
            f"{bill.due_date} | {bill.description:30.30s} | {format_money(bill.expected_amount):>12}"
            f"{' | paid' if bill.is_paid else ''}"
        )


@bills_group.command("include")
@click.argument("number", type=int)
@click.option("--month", help=MONTH_HELP)
@click.option("--account", help="Suggested paying account")
@click.option("--category", help="Suggested category")
@click.pass_context
def include(ctx, number: int, month: str | None, account: str | None, category: str | None):
    """Put potential bill NUMBER on the month's bill list."""
    db = ctx.obj["db"]
    service = BillTrackerService(db)
    target = resolve_cli_month(ctx, month)
    bill = _potential_bill_or_exit(ctx, service, target, number)
    account_id, category_id = _suggestions(ctx, db, account, category)

    try:
        bill_id = service.toggle_bill_inclusion(
            bill, True, suggested_account_id=account_id, suggested_category_id=category_id
        )
        click.echo(f"Included '{bill.description}' (bill {bill_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@bills_group.command("exclude")
@click.argument("number", type=int)
@click.option("--month", help=MONTH_HELP)
@click.pass_context
def exclude(ctx, number: int, month: str | None):
    """Take potential bill NUMBER off the month's bill list."""
    service = BillTrackerService(ctx.obj["db"])
    target = resolve_cli_month(ctx, month)
    bill = _potential_bill_or_exit(ctx, service, target, number)

    try:
        service.toggle_bill_inclusion(bill, False)
        click.echo(f"Excluded '{bill.description}'")
    except ValueError as e:
        handle_domain_error(ctx, e)


@bills_group.command("add")
@click.argument("description")
@click.option("--amount", required=True, help="Expected amount")
@click.option("--due-date", required=True, help="Due date")
@click.option("--account", help="Suggested paying account")
@click.option("--category", help="Suggested category")
@click.pass_context
def add_bill(ctx, description: str, amount: str, due_date: str, account: str | None, category: str | None):
    """Add a one-off bill.

    Examples:
        ledgerwise bills add "IPTU" --amount 312.00 --due-date 2024-02-10
    """
    db = ctx.obj["db"]
    expected = parse_cli_amount(ctx, amount)
    due = parse_cli_date(ctx, due_date, "due date")
    account_id, category_id = _suggestions(ctx, db, account, category)

    try:
        bill_id = BillTrackerService(db).add_ad_hoc_bill(
            description,
            due,
            expected,
            suggested_account_id=account_id,
            suggested_category_id=category_id,
        )
        click.echo(f"Created bill {bill_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@bills_group.command("installments")
@click.argument("description")
@click.option("--total", required=True, help="Total purchase amount")
@click.option("--count", "installment_count", type=int, required=True, help="Number of installments")
@click.option("--first-due-date", required=True, help="Due date of the first installment")
@click.option("--account", help="Suggested paying account")
@click.option("--category", help="Suggested category")
@click.pass_context
def installments(
    ctx,
    description: str,
    total: str,
    installment_count: int,
    first_due_date: str,
    account: str | None,
    category: str | None,
):
    """Spread a purchase over monthly bills.

    Examples:
        ledgerwise bills installments "Laptop" --total 3000 --count 10 --first-due-date 2024-02-05
    """
    db = ctx.obj["db"]
    total_amount = parse_cli_amount(ctx, total, "total")
    first_due = parse_cli_date(ctx, first_due_date, "first due date")
    account_id, category_id = _suggestions(ctx, db, account, category)

    try:
        bill_ids = BillTrackerService(db).add_purchase_installments(
            description,
            total_amount,
            installment_count,
            first_due,
            suggested_account_id=account_id,
            suggested_category_id=category_id,
        )
        click.echo(f"Created {len(bill_ids)} installment bills ({bill_ids[0]}-{bill_ids[-1]})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@bills_group.command("pay")
@click.argument("bill_id", type=int)
@click.option("--account", help="Paying account (default: the bill's suggested account)")
@click.option("--date", "payment_date", help="Payment date (default: today)")
@click.option("--amount", help="Amount paid (default: the expected amount)")
@click.option("--category", help="Category of the payment")
@click.pass_context
def pay(
    ctx,
    bill_id: int,
    account: str | None,
    payment_date: str | None,
    amount: str | None,
    category: str | None,
):
    """Pay a bill, recording the payment transaction."""
    db = ctx.obj["db"]
    account_id, category_id = _suggestions(ctx, db, account, category)
    when = parse_cli_date(ctx, payment_date)
    paid_amount = parse_cli_amount(ctx, amount) if amount is not None else None

    try:
        transaction_id = BillTrackerService(db).pay_bill(
            bill_id,
            account_id=account_id,
            payment_date=when,
            amount=paid_amount,
            category_id=category_id,
        )
        click.echo(f"Paid bill {bill_id} (transaction {transaction_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@bills_group.command("unpay")
@click.argument("bill_id", type=int)
@click.pass_context
def unpay(ctx, bill_id: int):
    """Mark a bill unpaid again.

    The payment transaction is kept; delete or edit it separately if needed.
    """
    try:
        BillTrackerService(ctx.obj["db"]).unpay_bill(bill_id)
        click.echo(f"Bill {bill_id} is open again")
    except ValueError as e:
        handle_domain_error(ctx, e)


@bills_group.command("edit")
@click.argument("bill_id", type=int)
@click.option("--description", help="New description")
@click.option("--amount", help="New expected amount")
@click.option("--due-date", help="New due date")
@click.pass_context
def edit(ctx, bill_id: int, description: str | None, amount: str | None, due_date: str | None):
    """Edit a bill's description, amount or due date."""
    expected = parse_cli_amount(ctx, amount) if amount is not None else None
    due = parse_cli_date(ctx, due_date, "due date")
    try:
        BillTrackerService(ctx.obj["db"]).update_bill(
            bill_id, description=description, due_date=due, expected_amount=expected
        )
        click.echo(f"Updated bill {bill_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@bills_group.command("delete")
@click.argument("bill_id", type=int)
@click.pass_context
def delete(ctx, bill_id: int):
    """Delete an unpaid bill."""
    try:
        BillTrackerService(ctx.obj["db"]).delete_bill(bill_id)
        click.echo(f"Deleted bill {bill_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@bills_group.command("other")
@click.option("--month", help=MONTH_HELP)
@click.pass_context
def other(ctx, month: str | None):
    """List the month's expenses that no bill accounts for."""
    target = resolve_cli_month(ctx, month)
    transactions = BillTrackerService(ctx.obj["db"]).other_paid_expenses_for_month(target)
    if not transactions:
        click.echo(f"No other expenses in {target:%Y-%m}.")
        return
    for txn in transactions:
        click.echo(
            f"{txn.id:5d} | {txn.date} | {format_money(txn.amount):>12} | {txn.description or ''}"
        )
    click.echo(f"Total: {format_money(sum(txn.amount for txn in transactions))}")


def register_commands(cli):
    """Register bill commands with main CLI."""
    cli.add_command(bills_group, name="bills")
