"""Chart of accounts commands."""

import click
from ledgerimport.cli.error_handling import handle_domain_error
from ledgerimport.domain.account import AccountService
from ledgerimport.domain.entities import AccountType
from ledgerimport.domain.errors import DomainError
from ledgerimport.utils.encoding import decode


@click.group()
def account_group():
    """Manage the chart of accounts."""
    pass


@account_group.command("add")
@click.argument("number", metavar="NUMBER")
@click.argument("name", metavar="NAME")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([t.value for t in AccountType], case_sensitive=False),
    default=AccountType.ASSET.value,
    show_default=True,
    help="Account class",
)
@click.pass_context
def add_account(ctx, number: str, name: str, account_type: str):
    """Add an account to the chart.

    NUMBER is a hyphen-segmented account number. Deeper segments refine
    their parent, so 420-1-1 is an analytical account under 420.

    Examples:
        ledgerimport account add 100 "Cash"
        ledgerimport account add 420-1-1 "Office rent" --type expense
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        account_id = service.create_account(number=number, name=name, account_type=account_type)
        click.echo(f"Created account {number} '{name}' (ID: {account_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--prefix", help="Only show accounts under this number")
@click.pass_context
def list_accounts(ctx, prefix: str | None):
    """List the chart of accounts."""
    db = ctx.obj["db"]
    service = AccountService(db)

    accounts = service.list_accounts()
    if prefix:
        accounts = [
            acc for acc in accounts if acc.number == prefix or acc.number.startswith(prefix + "-")
        ]
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 60)
    for acc in accounts:
        click.echo(f"{acc.number:16s} | {acc.name:30s} | {acc.type.value}")


@account_group.command("show")
@click.argument("number", metavar="NUMBER")
@click.pass_context
def show_account(ctx, number: str):
    """Show one account by its exact number."""
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        acc = service.get_account_by_number(number)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"ID:     {acc.id}")
    click.echo(f"Number: {acc.number}")
    click.echo(f"Name:   {acc.name}")
    click.echo(f"Type:   {acc.type.value}")


@account_group.command("load")
@click.argument("chart_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def load_accounts(ctx, chart_file: str):
    """Load accounts from a delimited file.

    Each row holds number, name and type. A header row is skipped, as are
    numbers already present in the chart.

    Examples:
        ledgerimport account load chart.csv
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    with open(chart_file, "rb") as f:
        text = decode(f.read())

    created, errors = service.load_chart(text)
    click.echo(f"Created {created} account{'s' if created != 1 else ''}")
    for error in errors:
        click.echo(f"  {error}", err=True)


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
