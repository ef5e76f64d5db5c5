"""CLI helpers for dates, months and date ranges."""

from datetime import date

import click

from ledgerwise.utils.date_parser import PERIODS, get_date_range, parse_date, parse_month


def parse_cli_date(ctx, value: str | None, label: str = "date") -> date | None:
    """Parse an optional date option, or exit with a CLI error."""
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def resolve_cli_month(ctx, month: str | None) -> date:
    """Resolve a --month option to the first day of that month (default: this month)."""
    if month is None:
        return date.today().replace(day=1)
    try:
        return parse_month(month)
    except ValueError as e:
        click.echo(f"Error: Invalid month: {e}", err=True)
        ctx.exit(1)


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    default_range: tuple[date, date] | None = None,
) -> tuple[date | None, date | None]:
    """Resolve a date range from period flags or explicit --start-date/--end-date.

    Args:
        period_flags: Period name (see PERIODS) to whether its flag was given
        default_range: Range used when nothing was given
    """
    chosen = [period for period, is_set in period_flags.items() if is_set]
    flag_names = ", ".join(f"--{period}" for period in PERIODS)

    if len(chosen) > 1:
        click.echo(f"Error: Only one period option ({flag_names}) can be specified at a time.", err=True)
        ctx.exit(1)
    if chosen and (start_date or end_date):
        click.echo(
            f"Error: Period options ({flag_names}) cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if chosen:
        return get_date_range(chosen[0])

    start = parse_cli_date(ctx, start_date, "start date")
    end = parse_cli_date(ctx, end_date, "end date")
    if start is None and end is None and default_range is not None:
        return default_range
    return start, end
