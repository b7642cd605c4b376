"""Column mapping commands for delimited files."""

import click
from ledgerimport.domain.delimited import looks_like_header, suggest_mapping
from ledgerimport.utils.encoding import decode
from ledgerimport.utils.spreadsheet import read_delimited_rows


@click.group()
def mapping_group():
    """Inspect column mappings of delimited files."""
    pass


@mapping_group.command("suggest")
@click.argument("source_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--delimiter", help="Column delimiter (sniffed when omitted)")
@click.option("--no-date", is_flag=True, help="The file has no date column")
@click.pass_context
def suggest(ctx, source_file: str, delimiter: str | None, no_date: bool):
    """Suggest column roles for a delimited file.

    The suggestion comes from the header row when there is one, otherwise
    the positional layout is proposed. Pass the result to 'import' with
    --map ROLE=COLUMN to confirm or correct it.

    Examples:
        ledgerimport mapping suggest export.csv
    """
    with open(source_file, "rb") as f:
        text = decode(f.read())

    rows = read_delimited_rows(text, delimiter=delimiter)
    if not rows:
        click.echo("No rows found.")
        return

    header = rows[0]
    mapping = suggest_mapping(rows, include_date=not no_date)
    has_header = looks_like_header(header)
    click.echo("Header row detected" if has_header else "No header row, using positional layout")

    click.echo("-" * 60)
    for role, column in mapping.as_dict().items():
        if column is None:
            click.echo(f"{role:18s} | (not mapped)")
            continue
        label = header[column - 1] if has_header and column <= len(header) else ""
        click.echo(f"{role:18s} | {column:3d} | {label}")

    if not mapping.is_complete:
        click.echo("\nDescription, amount and account should all be mapped before importing.")


def register_commands(cli):
    """Register mapping commands with main CLI."""
    cli.add_command(mapping_group, name="mapping")
