"""Export and import of the whole ledger."""

from pathlib import Path

import click
from ledgerwise.cli.error_handling import handle_domain_error
from ledgerwise.domain.snapshot import SnapshotService


@click.command("export")
@click.argument("path", type=click.Path(dir_okay=False, writable=True), required=False)
@click.pass_context
def export_snapshot(ctx, path: str | None):
    """Write every stored record as JSON to PATH (default: stdout)."""
    text = SnapshotService(ctx.obj["db"]).export_json()
    if path is None:
        click.echo(text, nl=False)
        return
    Path(path).write_text(text, encoding="utf-8")
    click.echo(f"Exported ledger to {path}")


@click.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def import_snapshot(ctx, path: str, yes: bool):
    """Replace everything stored with the snapshot in PATH."""
    if not yes and not click.confirm("This replaces all stored data. Continue?"):
        click.echo("Import cancelled.")
        return

    try:
        counts = SnapshotService(ctx.obj["db"]).import_json(Path(path).read_text(encoding="utf-8"))
    except ValueError as e:
        handle_domain_error(ctx, e)
        return
    click.echo("Imported " + ", ".join(f"{count} {section}" for section, count in counts.items()))


def register_commands(cli):
    """Register snapshot commands with main CLI."""
    cli.add_command(export_snapshot)
    cli.add_command(import_snapshot)
