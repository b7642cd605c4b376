"""Ledger document commands."""

import click
from ledgerimport.cli.commands.import_cmd import print_batch
from ledgerimport.cli.error_handling import handle_domain_error
from ledgerimport.domain.errors import DomainError
from ledgerimport.domain.importer import ImportService


@click.group()
def document_group():
    """Inspect and re-derive ledger documents."""
    pass


@document_group.command("show")
@click.argument("document_number", metavar="NUMBER")
@click.pass_context
def show_document(ctx, document_number: str):
    """Show a committed document with its entries.

    Examples:
        ledgerimport document show 17/2024/03/001
    """
    db = ctx.obj["db"]

    document = db.get_document_by_number(document_number)
    if document is None:
        click.echo(f"Error: Document '{document_number}' not found", err=True)
        ctx.exit(1)

    click.echo(f"\n{document.document_number}: {document.name}")
    click.echo(f"Date: {document.document_date}  Location: {document.location}  "
               f"Currency: {document.currency}")
    click.echo("-" * 100)
    for entry in db.list_document_entries(document.id):
        marker = "!" if entry.has_error else " "
        click.echo(
            f"{marker}{entry.display_order:4d} | {entry.date} | {entry.description[:32]:32s} | "
            f"{entry.debit_amount:>12,.2f} {entry.debit_account_number or '?':>14s} | "
            f"{entry.credit_amount:>12,.2f} {entry.credit_account_number or '?':>14s}"
        )
        if entry.error_reason:
            click.echo(f"       {entry.error_reason}")


@document_group.command("rederive")
@click.argument("document_number", metavar="NUMBER")
@click.option("--commit", is_flag=True, help="Commit the result as a new document")
@click.option("--name", "document_name", help="Name of the new document")
@click.pass_context
def rederive_document(ctx, document_number: str, commit: bool, document_name: str | None):
    """Rebuild a document's entries against the current chart.

    Every posting becomes one balanced entry; postings with different debit
    and credit amounts collapse to the larger amount.

    Examples:
        ledgerimport document rederive 17/2024/03/001
        ledgerimport document rederive 17/2024/03/001 --commit
    """
    db = ctx.obj["db"]
    service = ImportService(db)

    try:
        batch = service.rederive_document(
            document_number, commit=commit, document_name=document_name
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    print_batch(batch)
    if batch.committed:
        click.echo(f"\nCommitted as document {batch.document_number}")


def register_commands(cli):
    """Register document commands with main CLI."""
    cli.add_command(document_group, name="document")
