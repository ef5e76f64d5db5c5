"""Loan commands: disbursement, terms, schedule and installment payments."""

from datetime import date as date_type

import click
from ledgerwise.cli.account_resolution import resolve_account_or_exit
from ledgerwise.cli.date_filters import parse_cli_date
from ledgerwise.cli.error_handling import format_money, handle_domain_error, parse_cli_amount
from ledgerwise.domain.account import AccountService
from ledgerwise.domain.entities import LoanStatus
from ledgerwise.domain.loan import LoanService
from ledgerwise.utils.amount_parser import parse_rate

STATUS_CHOICES = [status.value for status in LoanStatus]


@click.group()
def loan_group():
    """Manage loans and their installments."""
    pass


@loan_group.command("disburse")
@click.argument("contract")
@click.option("--principal", required=True, help="Amount received")
@click.option("--account", required=True, help="Account credited with the principal (name or ID)")
@click.option("--date", "disbursement_date", help="Date the money arrived (default: today)")
@click.option("--description", help="Description of the disbursement transaction")
@click.pass_context
def disburse(
    ctx,
    contract: str,
    principal: str,
    account: str,
    disbursement_date: str | None,
    description: str | None,
):
    """Register a loan disbursement.

    The loan stays pending until its terms are configured with 'loan configure'.

    Examples:
        ledgerwise loan disburse CDC-2024-01 --principal 10000 --account Checking
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    amount = parse_cli_amount(ctx, principal, "principal")
    when = parse_cli_date(ctx, disbursement_date) or date_type.today()

    try:
        loan_id = LoanService(db).register_disbursement(
            contract=contract,
            principal=amount,
            account_id=account_id,
            disbursement_date=when,
            description=description,
        )
        click.echo(f"Registered loan '{contract}' (ID: {loan_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@loan_group.command("configure")
@click.argument("loan_id", type=int)
@click.option("--rate", required=True, help="Monthly interest rate, e.g. '2%' or 0.02")
@click.option("--term", "term_months", type=int, required=True, help="Number of monthly installments")
@click.option("--start-date", required=True, help="Installment k falls due k months after this date")
@click.option("--installment", help="Contract installment (default: computed with the PRICE formula)")
@click.pass_context
def configure(
    ctx, loan_id: int, rate: str, term_months: int, start_date: str, installment: str | None
):
    """Configure the terms of a loan and activate it.

    Examples:
        ledgerwise loan configure 1 --rate 2% --term 12 --start-date 2024-01-15
    """
    db = ctx.obj["db"]
    try:
        monthly_rate = parse_rate(rate)
    except ValueError as e:
        click.echo(f"Error: Invalid rate: {e}", err=True)
        ctx.exit(1)
    start = parse_cli_date(ctx, start_date, "start date")
    installment_amount = None
    if installment is not None:
        installment_amount = parse_cli_amount(ctx, installment, "installment")

    try:
        loan = LoanService(db).configure_terms(
            loan_id,
            monthly_rate=monthly_rate,
            term_months=term_months,
            start_date=start,
            installment_amount=installment_amount,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(
        f"Configured loan {loan_id}: {loan.term_months} installments of "
        f"{format_money(loan.installment_amount)}"
    )


@loan_group.command("list")
@click.option("--status", type=click.Choice(STATUS_CHOICES), help="Only loans with this status")
@click.pass_context
def list_loans(ctx, status: str | None):
    """List loans with their progress."""
    service = LoanService(ctx.obj["db"])
    loans = service.list_loans(LoanStatus(status) if status else None)
    if not loans:
        click.echo("No loans found.")
        return

    click.echo("\nLoans:")
    for loan in loans:
        progress = f"{loan.paid_installments}/{loan.term_months}" if loan.term_months else "-"
        click.echo(
            f"ID: {loan.id:3d} | {loan.contract:20s} | {loan.status.value:21s} | "
            f"principal {format_money(loan.principal):>12s} | paid {progress}"
        )


@loan_group.command("schedule")
@click.argument("loan_id", type=int)
@click.pass_context
def schedule(ctx, loan_id: int):
    """Show the amortization schedule of a loan."""
    service = LoanService(ctx.obj["db"])
    try:
        loan = service.get_loan(loan_id)
        items = service.schedule(loan_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    if not items:
        click.echo(f"Loan {loan_id} has no terms configured yet.")
        return

    click.echo(
        f"{'#':>4} | {'Due':10} | {'Installment':>12} | {'Interest':>12} | "
        f"{'Amortization':>12} | {'Balance':>12} | Paid"
    )
    click.echo("-" * 84)
    for item in items:
        paid = "yes" if item.installment_number <= loan.paid_installments else ""
        click.echo(
            f"{item.installment_number:4d} | {item.due_date} | {format_money(item.installment):>12} | "
            f"{format_money(item.interest):>12} | {format_money(item.amortization):>12} | "
            f"{format_money(item.remaining_balance):>12} | {paid}"
        )


@loan_group.command("summary")
@click.argument("loan_id", type=int)
@click.pass_context
def summary(ctx, loan_id: int):
    """Show cost, interest and progress figures of a loan."""
    try:
        result = LoanService(ctx.obj["db"]).summary(loan_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Paid installments:    {result.paid_installments}")
    click.echo(f"Remaining:            {result.remaining_installments}")
    click.echo(f"Outstanding balance:  {format_money(result.outstanding_balance)}")
    click.echo(f"Total cost:           {format_money(result.total_cost)}")
    click.echo(f"Total interest:       {format_money(result.total_interest)}")
    click.echo(f"Interest paid:        {format_money(result.interest_paid)}")
    click.echo(f"Interest remaining:   {format_money(result.interest_remaining)}")
    click.echo(f"Settled:              {result.percent_settled}%")
    click.echo(f"Next due:             {result.next_due_date or '-'}")


@loan_group.command("pay")
@click.argument("loan_id", type=int)
@click.option("--account", required=True, help="Paying account name or ID")
@click.option("--date", "payment_date", help="Payment date (default: today)")
@click.option("--amount", help="Amount paid (default: the contract installment)")
@click.pass_context
def pay(ctx, loan_id: int, account: str, payment_date: str | None, amount: str | None):
    """Pay the next installment of a loan.

    Examples:
        ledgerwise loan pay 1 --account Checking
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    when = parse_cli_date(ctx, payment_date) or date_type.today()
    paid_amount = parse_cli_amount(ctx, amount) if amount is not None else None

    try:
        transaction_id = LoanService(db).pay_installment(
            loan_id, account_id=account_id, payment_date=when, amount=paid_amount
        )
        click.echo(f"Paid installment of loan {loan_id} (transaction {transaction_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@loan_group.command("mark-paid")
@click.argument("loan_id", type=int)
@click.option("--undo", is_flag=True, help="Step the paid counter back by one")
@click.pass_context
def mark_paid(ctx, loan_id: int, undo: bool):
    """Advance the paid counter without recording a payment.

    Useful when the installment was paid from an account not tracked here.
    """
    service = LoanService(ctx.obj["db"])
    try:
        loan = service.unmark_installment_paid(loan_id) if undo else service.mark_installment_paid(loan_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Loan {loan_id}: {loan.paid_installments}/{loan.term_months} paid ({loan.status.value})")


@loan_group.command("overdue")
@click.option("--as-of", help="Reference date (default: today)")
@click.pass_context
def overdue(ctx, as_of: str | None):
    """List unpaid installments past their due date."""
    today = parse_cli_date(ctx, as_of) or date_type.today()
    items = LoanService(ctx.obj["db"]).overdue(today)
    if not items:
        click.echo("No overdue installments.")
        return
    for loan, item in items:
        click.echo(
            f"{loan.contract:20s} | #{item.installment_number:<3d} | due {item.due_date} | "
            f"{format_money(item.installment):>12}"
        )


def register_commands(cli):
    """Register loan commands with main CLI."""
    cli.add_command(loan_group, name="loan")
