"""Insurance contract commands."""

from datetime import date as date_type

import click
from ledgerwise.cli.date_filters import parse_cli_date
from ledgerwise.cli.error_handling import format_money, handle_domain_error, parse_cli_amount
from ledgerwise.domain.insurance import InsuranceService, insurance_installments


@click.group()
def insurance_group():
    """Manage insurance contracts."""
    pass


@insurance_group.command("create")
@click.argument("description")
@click.option("--installments", "installment_count", type=int, required=True, help="Number of installments")
@click.option("--amount", required=True, help="Amount of each installment")
@click.option("--start-date", help="Due date of the first installment (default: today)")
@click.pass_context
def create_contract(ctx, description: str, installment_count: int, amount: str, start_date: str | None):
    """Create an insurance contract paid in monthly installments.

    Examples:
        ledgerwise insurance create "Car insurance" --installments 10 --amount 182.40 --start-date 2024-03-10
    """
    installment_amount = parse_cli_amount(ctx, amount)
    start = parse_cli_date(ctx, start_date, "start date") or date_type.today()

    try:
        insurance_id = InsuranceService(ctx.obj["db"]).create_contract(
            description=description,
            installment_count=installment_count,
            installment_amount=installment_amount,
            start_date=start,
        )
        click.echo(f"Created insurance '{description}' (ID: {insurance_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@insurance_group.command("list")
@click.option("--active", "active_only", is_flag=True, help="Only active contracts")
@click.pass_context
def list_contracts(ctx, active_only: bool):
    """List insurance contracts."""
    contracts = InsuranceService(ctx.obj["db"]).list_contracts(active_only=active_only)
    if not contracts:
        click.echo("No insurance contracts found.")
        return

    click.echo("\nInsurance contracts:")
    for contract in contracts:
        click.echo(
            f"ID: {contract.id:3d} | {contract.description:25s} | "
            f"{contract.installment_count} x {format_money(contract.installment_amount)} | "
            f"paid {len(contract.paid_installments)}/{contract.installment_count}"
        )


@insurance_group.command("show")
@click.argument("insurance_id", type=int)
@click.pass_context
def show_contract(ctx, insurance_id: int):
    """Show the installments of a contract."""
    try:
        contract = InsuranceService(ctx.obj["db"]).get_contract(insurance_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(contract.description)
    for number, due_date in insurance_installments(contract):
        paid = "paid" if number in contract.paid_installments else ""
        click.echo(f"{number:4d} | {due_date} | {format_money(contract.installment_amount):>12} | {paid}")


@insurance_group.command("mark-paid")
@click.argument("insurance_id", type=int)
@click.argument("installment_number", type=int)
@click.option("--undo", is_flag=True, help="Mark the installment unpaid again")
@click.pass_context
def mark_paid(ctx, insurance_id: int, installment_number: int, undo: bool):
    """Mark one installment paid without recording a payment."""
    try:
        InsuranceService(ctx.obj["db"]).set_installment_paid(insurance_id, installment_number, not undo)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    state = "unpaid" if undo else "paid"
    click.echo(f"Marked installment {installment_number} of insurance {insurance_id} {state}")


def register_commands(cli):
    """Register insurance commands with main CLI."""
    cli.add_command(insurance_group, name="insurance")
