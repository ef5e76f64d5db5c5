"""Category management commands."""

import click
from ledgerwise.cli.error_handling import format_money, handle_domain_error, parse_cli_amount
from ledgerwise.domain.category import CategoryService
from ledgerwise.domain.entities import CategoryNature

NATURE_CHOICES = [nature.value for nature in CategoryNature]


@click.group()
def category_group():
    """Manage categories."""
    pass


@category_group.command("list")
@click.option("--nature", type=click.Choice(NATURE_CHOICES, case_sensitive=False), help="Only this nature")
@click.pass_context
def list_categories(ctx, nature: str | None):
    """List all categories."""
    db = ctx.obj["db"]
    service = CategoryService(db)

    categories = service.list_categories(CategoryNature(nature.lower()) if nature else None)
    if not categories:
        click.echo("No categories found. Run 'category init' to create default categories.")
        return

    click.echo("\nCategories:")
    for cat in categories:
        typical = f" | typical {format_money(cat.typical_amount)}" if cat.typical_amount is not None else ""
        click.echo(f"ID: {cat.id:3d} | {cat.name:20s} | {cat.nature.value}{typical}")


@category_group.command("create")
@click.argument("name")
@click.option(
    "--nature",
    type=click.Choice(NATURE_CHOICES, case_sensitive=False),
    default=CategoryNature.VARIABLE_EXPENSE.value,
    show_default=True,
    help="Accounting nature; fixed_expense categories appear on every month's bill list",
)
@click.option("--typical-amount", help="Usual monthly amount of a fixed expense")
@click.pass_context
def create_category(ctx, name: str, nature: str, typical_amount: str | None):
    """Create a new category.

    Examples:
        ledgerwise category create Rent --nature fixed_expense --typical-amount 1800
    """
    db = ctx.obj["db"]
    service = CategoryService(db)

    amount = None
    if typical_amount is not None:
        amount = parse_cli_amount(ctx, typical_amount, "typical amount")

    try:
        category_id = service.create_category(
            name=name, nature=CategoryNature(nature.lower()), typical_amount=amount
        )
        click.echo(f"Created category '{name}' (ID: {category_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@category_group.command("init")
@click.pass_context
def init_categories(ctx):
    """Create the default set of categories."""
    created = CategoryService(ctx.obj["db"]).init_categories()
    click.echo(f"Created {created} categor{'y' if created == 1 else 'ies'}")


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
