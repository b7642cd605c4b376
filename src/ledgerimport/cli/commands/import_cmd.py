"""File import command."""

import os

import click
from ledgerimport.cli.error_handling import handle_domain_error
from ledgerimport.domain.entities import (
    ChartAccount,
    ColumnMapping,
    ImportBatch,
    ImportFormat,
    ImportOptions,
    ResolvedAccount,
)
from ledgerimport.domain.errors import DomainError, import_blocked
from ledgerimport.domain.importer import ImportService, guess_format, resolve_format
from ledgerimport.utils.date_parser import parse_date


def parse_mapping_options(values: tuple[str, ...]) -> ColumnMapping | None:
    """Turn repeated ROLE=COLUMN options into a ColumnMapping.

    Raises:
        ValueError: If an option is malformed or names an unknown role
    """
    if not values:
        return None
    roles = {}
    for value in values:
        role, sep, column = value.partition("=")
        if not sep:
            raise ValueError(f"Invalid mapping '{value}'. Use ROLE=COLUMN, e.g. amount=2")
        roles[role.strip().lower()] = column.strip()
    return ColumnMapping.from_roles(roles)


def account_label(account: ResolvedAccount) -> str:
    if isinstance(account, ChartAccount):
        return account.number
    return f"?{account.token}" if account.token else "?"


def print_batch(batch: ImportBatch) -> None:
    """Print a preview of the prepared entries."""
    if batch.document_name:
        click.echo(f"\n{batch.document_name}")
    if batch.mapping is not None:
        roles = ", ".join(
            f"{role}={column}" for role, column in batch.mapping.as_dict().items() if column
        )
        click.echo(f"Column mapping: {roles}")

    if not batch.entries:
        click.echo("No entries found.")
    else:
        click.echo("-" * 100)
        for entry in batch.entries:
            marker = "!" if entry.has_error else " "
            click.echo(
                f"{marker}{entry.display_order:4d} | {entry.date} | "
                f"{entry.description[:36]:36s} | {entry.amount:>12,.2f} | "
                f"{account_label(entry.debit_account):>14s} | "
                f"{account_label(entry.credit_account):>14s}"
            )
        click.echo("-" * 100)
        click.echo(f"Entries: {len(batch.entries)}  Total: {batch.total_amount:,.2f}")

    if batch.error_count:
        click.echo(f"Entries needing account completion: {batch.error_count}")
    if batch.discarded_rows:
        click.echo(f"Discarded rows: {batch.discarded_rows}")
    for diagnostic in batch.diagnostics:
        click.echo(f"Note: {diagnostic}")


@click.command("import")
@click.argument("source_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--format",
    "format_hint",
    help="File format: statement, delimited or form (guessed when omitted)",
)
@click.option(
    "--map",
    "mappings",
    multiple=True,
    metavar="ROLE=COLUMN",
    help="Column role for delimited files, e.g. --map amount=2 (repeatable)",
)
@click.option("--date", "document_date", help="Document date (default: today)")
@click.option(
    "--location",
    envvar="LEDGERIMPORT_LOCATION",
    default="",
    help="Location code used in the document number",
)
@click.option("--currency", default="PLN", show_default=True, help="Local currency")
@click.option("--bank-account", help="Chart account of the bank for statements")
@click.option("--counter-account", help="Counter account for entries without one")
@click.option("--name", "document_name", help="Document name")
@click.option("--dry-run", is_flag=True, help="Preview the entries without committing")
@click.option(
    "--yes",
    "assume_yes",
    is_flag=True,
    help="Commit with a guessed column mapping without asking",
)
@click.pass_context
def import_file(
    ctx,
    source_file: str,
    format_hint: str | None,
    mappings: tuple[str, ...],
    document_date: str | None,
    location: str,
    currency: str,
    bank_account: str | None,
    counter_account: str | None,
    document_name: str | None,
    dry_run: bool,
    assume_yes: bool,
):
    """Import a bank statement, delimited export or settlement form.

    Statements and delimited files are imported even when some accounts
    cannot be resolved; those entries are flagged for manual completion.
    A settlement form with any unresolved account is rejected as a whole.
    When a delimited file is imported without --map, the guessed column
    mapping is previewed and must be confirmed before anything is committed.

    Examples:
        ledgerimport import statement.sta --location 17 --bank-account 130-1
        ledgerimport import export.csv --map description=1 --map amount=3 --map account=2
        ledgerimport import settlement.xlsx
    """
    db = ctx.obj["db"]
    service = ImportService(db)

    with open(source_file, "rb") as f:
        data = f.read()

    try:
        fmt = resolve_format(format_hint or guess_format(os.path.basename(source_file), data))
        mapping = parse_mapping_options(mappings)
        options = ImportOptions(
            document_date=parse_date(document_date or "today"),
            location=location,
            currency=currency.upper(),
            bank_account=bank_account,
            counter_account=counter_account,
            document_name=document_name,
        )
        needs_confirmation = (
            fmt is ImportFormat.DELIMITED and mapping is None and not dry_run and not assume_yes
        )
        batch = service.import_file(
            data,
            fmt,
            mapping=mapping,
            options=options,
            commit=not dry_run and not needs_confirmation,
        )
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)
        return

    print_batch(batch)

    if batch.blocked:
        click.echo(f"Error: {import_blocked(batch.missing_accounts)}", err=True)
        for token in batch.missing_accounts:
            click.echo(f"  {token}", err=True)
        ctx.exit(1)

    if needs_confirmation and batch.entries:
        if not click.confirm("\nThe column mapping was guessed. Commit these entries?"):
            click.echo("Import cancelled.")
            return
        try:
            service.commit(batch, options)
        except DomainError as e:
            handle_domain_error(ctx, e)
            return

    if batch.committed:
        click.echo(f"\nCommitted as document {batch.document_number}")
    elif dry_run:
        click.echo("\nDry run, nothing was committed")


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_file)
