"""Parser for the fixed-layout monthly settlement form.

The form is filled in by staff on a known template: meaning comes from cell
positions, not headers. The header block names the person, the location, the
cash or bank account and the period; line items sit in two parallel column
bands (income on the left, expenses on the right) starting at a fixed row.
Line items carry only the generic 3-digit ledger code; the location code from
the header is appended to it before resolution.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from openpyxl.utils import get_column_letter

from ledgerimport.domain.entities import FormHeader, ImportFormat, RawEntry
from ledgerimport.domain.parsing import SourceParser
from ledgerimport.domain.resolver import extend_code
from ledgerimport.utils.amount_parser import parse_amount_or_zero
from ledgerimport.utils.date_parser import period_date
from ledgerimport.utils.spreadsheet import cell_text, read_grid

logger = logging.getLogger(__name__)

Cell = tuple[int, int]

ITEM_CODE = re.compile(r"^\d{3}$")
LOCATION_CODE = re.compile(r"^\d+-\d+(-\d+)?$")

PAYMENT_METHODS = {
    "gotówka": "cash",
    "gotowka": "cash",
    "cash": "cash",
    "bank": "bank",
    "rachunek": "bank",
    "przelew": "bank",
}


@dataclass(frozen=True)
class ItemBand:
    """Columns (0-based) of one line-item band."""

    kind: str
    code_column: int
    description_column: int
    amount_column: int


@dataclass(frozen=True)
class FormTemplate:
    """Cell map of the settlement form, 0-based (row, column) addresses.

    Header fields list the primary cell first and fallback cells after it, for
    minor layout variants such as a label spanning two cells.
    """

    full_name: tuple[Cell, ...] = ((1, 1), (1, 2))
    location_name: tuple[Cell, ...] = ((2, 1), (2, 2))
    location_code: tuple[Cell, ...] = ((2, 4), (2, 5))
    payment_method: tuple[Cell, ...] = ((3, 1), (3, 2))
    cash_account: tuple[Cell, ...] = ((3, 4), (3, 5))
    month: tuple[Cell, ...] = ((4, 1), (4, 2))
    year: tuple[Cell, ...] = ((4, 4), (4, 5))
    item_start_row: int = 7
    income_band: ItemBand = ItemBand("income", 0, 1, 2)
    expense_band: ItemBand = ItemBand("expense", 4, 5, 6)

    @property
    def bands(self) -> tuple[ItemBand, ItemBand]:
        return (self.income_band, self.expense_band)


DEFAULT_TEMPLATE = FormTemplate()


def _first_value(grid: list[list[Any]], cells: tuple[Cell, ...]) -> str:
    for row, column in cells:
        value = cell_text(grid, row, column)
        if value:
            return value
    return ""


def _int_in_range(value: str, low: int, high: int) -> Optional[int]:
    try:
        number = int(float(value.replace(",", ".")))
    except ValueError:
        return None
    return number if low <= number <= high else None


def location_from_account(cash_account: str) -> str:
    """Derive the location code from a cash account number.

    ``100-2-17-1`` belongs to location ``2-17``.
    """
    parts = cash_account.split("-")
    if len(parts) >= 3:
        return f"{parts[1]}-{parts[2]}"
    return ""


class FixedLayoutParser(SourceParser):
    """Reads the settlement form from a cell grid."""

    format = ImportFormat.FIXED_LAYOUT

    def __init__(self, template: FormTemplate = DEFAULT_TEMPLATE, today: Optional[date] = None):
        """Initialize the parser.

        Args:
            template: Cell map of the form
            today: Reference date for month/year fallbacks
        """
        super().__init__()
        self.template = template
        self.today = today or date.today()
        self._header: Optional[FormHeader] = None

    @property
    def header(self) -> Optional[FormHeader]:
        return self._header

    def read(self, data: bytes) -> list[list[Any]]:
        return read_grid(data)

    def parse(self, source: list[list[Any]]) -> list[RawEntry]:
        _, entries = self.parse_form(source)
        return entries

    def parse_form(self, grid: list[list[Any]]) -> tuple[FormHeader, list[RawEntry]]:
        """Parse the header block and the line items of a form.

        Args:
            grid: Rectangular array of cell values, first row first

        Returns:
            Tuple of (form header, raw entries in reading order)
        """
        self._reset_diagnostics()
        header = self._parse_header(grid)
        self._header = header
        entry_date = period_date(header.year, header.month)

        entries = []
        for row in range(self.template.item_start_row, len(grid)):
            for band in self.template.bands:
                entry = self._parse_item(grid, row, band, header, entry_date, len(entries) + 1)
                if entry is not None:
                    entries.append(entry)

        logger.info(
            "Parsed %d line items from settlement form for location '%s'",
            len(entries),
            header.location_code,
        )
        return header, entries

    def _parse_header(self, grid: list[list[Any]]) -> FormHeader:
        template = self.template
        cash_account = _first_value(grid, template.cash_account)
        if not cash_account:
            self._note("Form header has no cash or bank account")

        location_code = _first_value(grid, template.location_code)
        if not LOCATION_CODE.match(location_code):
            location_code = location_from_account(cash_account)

        method_text = _first_value(grid, template.payment_method).lower()
        payment_method = next(
            (method for key, method in PAYMENT_METHODS.items() if key in method_text),
            "cash",
        )

        month = _int_in_range(_first_value(grid, template.month), 1, 12)
        if month is None:
            self._note(f"Invalid form month, using {self.today.month}")
            month = self.today.month
        year = _int_in_range(_first_value(grid, template.year), 2000, 2100)
        if year is None:
            self._note(f"Invalid form year, using {self.today.year}")
            year = self.today.year

        return FormHeader(
            full_name=_first_value(grid, template.full_name),
            location_name=_first_value(grid, template.location_name),
            location_code=location_code,
            payment_method=payment_method,
            cash_account=cash_account,
            month=month,
            year=year,
        )

    def _parse_item(
        self,
        grid: list[list[Any]],
        row: int,
        band: ItemBand,
        header: FormHeader,
        entry_date: date,
        position: int,
    ) -> Optional[RawEntry]:
        code = cell_text(grid, row, band.code_column)
        amount_text = cell_text(grid, row, band.amount_column)
        if not code and not amount_text:
            return None

        amount = parse_amount_or_zero(amount_text)
        if not ITEM_CODE.match(code) or not amount:
            self._discard(row + 1, f"{band.kind} item without a 3-digit code or amount")
            return None

        item_account = extend_code(code, header.location_code)
        if band.kind == "income":
            debit_token, credit_token = header.cash_account, item_account
        else:
            debit_token, credit_token = item_account, header.cash_account

        return RawEntry(
            description=cell_text(grid, row, band.description_column) or f"Account {code}",
            primary_amount=amount,
            secondary_amount=amount,
            date=entry_date,
            source_row_index=position,
            primary_account_token=debit_token or None,
            secondary_account_token=credit_token or None,
            reference=f"{get_column_letter(band.code_column + 1)}{row + 1}",
        )
