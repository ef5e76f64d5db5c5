"""Main CLI entry point."""

import click
from ledgerwise.config import Settings
from ledgerwise.database.factories import create_sqlite_database
from ledgerwise.log import configure_logging

# Import and register all commands at module level
from ledgerwise.cli.commands import (
    account,
    bills,
    category,
    insurance,
    loan,
    reconcile,
    snapshot,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERWISE_DB_PATH environment variable)",
    envvar="LEDGERWISE_DB_PATH",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every change to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """Ledgerwise - personal ledger and obligation tracker.

    Derive account balances from the transaction log, follow loan
    amortization schedules, manage the monthly bill list and reconcile
    statements against the ledger.
    """
    ctx.ensure_object(dict)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    configure_logging("INFO" if verbose else settings.log_level)
    ctx.obj["settings"] = settings

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path or settings.database_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
transaction.register_commands(cli)
category.register_commands(cli)
loan.register_commands(cli)
insurance.register_commands(cli)
bills.register_commands(cli)
reconcile.register_commands(cli)
snapshot.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
