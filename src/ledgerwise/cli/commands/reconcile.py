"""Statement reconciliation command."""

import click
from ledgerwise.cli.account_resolution import resolve_account_or_exit
from ledgerwise.cli.date_filters import parse_cli_date
from ledgerwise.cli.error_handling import format_money, handle_domain_error, parse_cli_amount
from ledgerwise.domain.account import AccountService
from ledgerwise.domain.entities import ReconciliationStatus
from ledgerwise.domain.reconciliation import ReconciliationService


@click.command("reconcile")
@click.argument("account", metavar="ACCOUNT")
@click.option("--closing", help="Closing balance stated on the statement")
@click.option("--opening", help="Opening balance stated on the statement (default: from the ledger)")
@click.option("--start-date", help="First day of the statement period")
@click.option("--end-date", help="Last day of the statement period")
@click.pass_context
def reconcile(
    ctx,
    account: str,
    closing: str | None,
    opening: str | None,
    start_date: str | None,
    end_date: str | None,
):
    """Compare a statement's closing balance with the ledger.

    Exits with status 2 when the divergence is above the tolerance
    (LEDGERWISE_RECONCILIATION_TOLERANCE, default 10).

    Examples:
        ledgerwise reconcile Checking --start-date 2024-06-01 --end-date 2024-06-30 --closing 2310.55
    """
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), account)
    stated_closing = parse_cli_amount(ctx, closing, "closing balance") if closing is not None else None
    stated_opening = parse_cli_amount(ctx, opening, "opening balance") if opening is not None else None
    start = parse_cli_date(ctx, start_date, "start date")
    end = parse_cli_date(ctx, end_date, "end date")

    try:
        result = ReconciliationService(db, ctx.obj["settings"]).reconcile(
            account_id,
            stated_opening=stated_opening,
            stated_closing=stated_closing,
            start=start,
            end=end,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Opening balance:     {format_money(result.opening_balance):>14}")
    click.echo(f"+ Income:            {format_money(result.income):>14}")
    click.echo(f"- Expense:           {format_money(result.expense):>14}")
    click.echo(f"+ Transfers in:      {format_money(result.transfer_in):>14}")
    click.echo(f"- Transfers out:     {format_money(result.transfer_out):>14}")
    click.echo(f"+ Withdrawals:       {format_money(result.withdrawals):>14}")
    click.echo(f"- Contributions:     {format_money(result.contributions):>14}")
    click.echo("-" * 35)
    click.echo(f"Calculated closing:  {format_money(result.calculated_closing):>14}")
    if result.stated_closing is not None:
        click.echo(f"Stated closing:      {format_money(result.stated_closing):>14}")
        click.echo(f"Divergence:          {format_money(result.divergence):>14}")
    click.echo(f"Status: {result.status.value}")

    if result.status == ReconciliationStatus.ERROR:
        ctx.exit(2)


def register_commands(cli):
    """Register reconcile command with main CLI."""
    cli.add_command(reconcile)
