"""Delimited text parser with positional column roles.

Delimited exports have no fixed header contract. Each logical role
(description, amount, account, ...) is mapped to a 1-based column position,
either supplied by the user or suggested from a header row. A suggestion is
only ever a proposal: it is returned with the batch so it can be confirmed
or corrected before anything is committed.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from ledgerimport.domain.entities import ColumnMapping, ImportFormat, RawEntry
from ledgerimport.domain.errors import ValidationError
from ledgerimport.domain.parsing import SourceParser
from ledgerimport.utils.amount_parser import parse_amount_or_zero
from ledgerimport.utils.date_parser import parse_date
from ledgerimport.utils.encoding import decode
from ledgerimport.utils.spreadsheet import read_delimited_rows

logger = logging.getLogger(__name__)

# More specific roles come first so "konto ma" is not claimed by "konto"
ROLE_SYNONYMS = (
    ("secondary_amount", ("kwota ma", "credit amount", "amount cr")),
    ("secondary_account", ("konto ma", "credit account", "account cr")),
    ("date", ("data", "date", "datum")),
    ("description", ("opis", "description", "tytuł", "title", "treść")),
    ("amount", ("kwota", "amount", "suma", "wartość", "value")),
    ("account", ("konto", "account", "rachunek", "nr konta")),
)


def guess_mapping(header: list[str], include_date: bool = True) -> ColumnMapping:
    """Guess column roles from header cells by case-insensitive substring match.

    For each role the synonyms are tried in order against the columns not
    yet claimed by another role. Roles without a match stay unset.

    Args:
        header: Cells of the header row
        include_date: False for the account-ledger layout, which has no date column
    """
    columns = [str(value or "").lower() for value in header]
    taken: set[int] = set()
    roles: dict[str, int] = {}

    for role, synonyms in ROLE_SYNONYMS:
        if role == "date" and not include_date:
            continue
        for synonym in synonyms:
            found = next(
                (i for i, name in enumerate(columns) if i not in taken and synonym in name),
                None,
            )
            if found is not None:
                taken.add(found)
                roles[role] = found + 1
                break

    return ColumnMapping(**roles)


def looks_like_header(row: list[str]) -> bool:
    """A row is a header when it names at least the description and amount roles."""
    guessed = guess_mapping(row)
    return guessed.description is not None and guessed.amount is not None


def suggest_mapping(rows: list[list[str]], include_date: bool = True) -> ColumnMapping:
    """Suggest a mapping from the first row, falling back to the positional layout."""
    if rows and looks_like_header(rows[0]):
        return guess_mapping(rows[0], include_date=include_date)
    return ColumnMapping.positional()


def _cell(row: list[str], column: Optional[int]) -> str:
    if column is None or column > len(row):
        return ""
    return row[column - 1].strip()


class DelimitedParser(SourceParser):
    """Parser for delimited exports with role-mapped columns.

    The account column is the debit side and the secondary account column the
    credit side; a negative amount without a secondary amount swaps the sides.
    """

    format = ImportFormat.DELIMITED

    def __init__(
        self,
        mapping: Optional[ColumnMapping] = None,
        default_date: Optional[date] = None,
        counter_account: Optional[str] = None,
        delimiter: Optional[str] = None,
        include_date: bool = True,
    ):
        """Initialize the parser.

        Args:
            mapping: Column roles; suggested from the file when None
            default_date: Date for rows without a date column or a valid date
            counter_account: Credit-side token for rows without a secondary account
            delimiter: Column delimiter; sniffed when None
            include_date: Whether header guessing looks for a date column
        """
        super().__init__()
        self.mapping = mapping
        self.default_date = default_date or date.today()
        self.counter_account = counter_account
        self.delimiter = delimiter
        self.include_date = include_date
        self.mapping_used: Optional[ColumnMapping] = None

    def read(self, data: bytes) -> str:
        return decode(data)

    def parse(self, source: str) -> list[RawEntry]:
        """Parse delimited text into raw entries.

        Rows with an empty description or only zero amounts are skipped and
        counted in ``discarded_rows``. File order is kept in ``source_row_index``.

        Raises:
            ValidationError: If the mapping lacks the description or amount role
        """
        self._reset_diagnostics()
        rows = read_delimited_rows(source, delimiter=self.delimiter, keep_blank=True)
        mapping = self.mapping or suggest_mapping(
            [row for row in rows if any(row)], include_date=self.include_date
        )
        if mapping.description is None or mapping.amount is None:
            raise ValidationError(
                "Column mapping must assign the description and amount roles"
            )
        self.mapping_used = mapping

        entries = []
        header_seen = False
        for row_number, row in enumerate(rows, start=1):
            if not any(row):
                continue
            if not header_seen:
                header_seen = True
                if looks_like_header(row):
                    logger.debug("Row %d treated as header", row_number)
                    continue

            entry = self._parse_row(row_number, row, mapping)
            if entry is not None:
                entries.append(entry)

        logger.info(
            "Parsed %d entries from delimited text (%d rows discarded)",
            len(entries),
            self.discarded_rows,
        )
        return entries

    def _parse_row(self, row_number: int, row: list[str], mapping: ColumnMapping) -> Optional[RawEntry]:
        description = _cell(row, mapping.description)
        primary = parse_amount_or_zero(_cell(row, mapping.amount))
        secondary_text = _cell(row, mapping.secondary_amount)
        secondary = parse_amount_or_zero(secondary_text) if secondary_text else None

        if not description:
            self._discard(row_number, "missing description")
            return None
        if not primary and not secondary:
            self._discard(row_number, "zero amount")
            return None

        debit_token = _cell(row, mapping.account) or None
        credit_token = _cell(row, mapping.secondary_account) or self.counter_account or None
        if primary < 0 and secondary is None:
            debit_token, credit_token = credit_token, debit_token
            primary = -primary

        return RawEntry(
            description=description,
            primary_amount=primary,
            secondary_amount=secondary,
            date=self._row_date(row_number, _cell(row, mapping.date)),
            source_row_index=row_number,
            primary_account_token=debit_token,
            secondary_account_token=credit_token,
        )

    def _row_date(self, row_number: int, value: str) -> date:
        if not value:
            return self.default_date
        try:
            return parse_date(value)
        except ValueError:
            self._note(f"Row {row_number}: invalid date '{value}', using {self.default_date}")
            return self.default_date
