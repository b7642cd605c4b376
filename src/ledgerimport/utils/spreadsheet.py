"""Reading uploaded files into rectangular cell grids."""

import csv
import io
import logging
from typing import Any

from openpyxl import load_workbook

from ledgerimport.utils.encoding import decode

logger = logging.getLogger(__name__)

ZIP_MAGIC = b"PK\x03\x04"
DEFAULT_DELIMITER = ";"
CANDIDATE_DELIMITERS = ";,\t|"


def is_xlsx(data: bytes) -> bool:
    """Check whether the bytes look like an Office Open XML workbook."""
    return data.startswith(ZIP_MAGIC)


def sniff_delimiter(text: str) -> str:
    """Guess the delimiter from a sample, falling back to a semicolon.

    When several candidates split the sample consistently the semicolon wins,
    since local exports write amounts with decimal commas.
    """
    sample = text[:4096]
    sniffer = csv.Sniffer()
    sniffer.preferred = list(CANDIDATE_DELIMITERS)
    try:
        return sniffer.sniff(sample, delimiters=CANDIDATE_DELIMITERS).delimiter
    except csv.Error:
        return DEFAULT_DELIMITER


def read_delimited_rows(
    text: str, delimiter: str | None = None, keep_blank: bool = False
) -> list[list[str]]:
    """Split delimited text into rows of stripped cell strings.

    Blank lines are dropped unless ``keep_blank`` is set, which keeps row
    positions stable for fixed-layout forms. Quoting follows the csv module rules.
    """
    if not text.strip():
        return []
    if delimiter is None:
        delimiter = sniff_delimiter(text)
    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    rows = []
    for row in reader:
        cells = [value.strip() for value in row]
        if keep_blank or any(cells):
            rows.append(cells)
    return rows


def read_workbook_grid(data: bytes) -> list[list[Any]]:
    """Read the first worksheet of an xlsx workbook as a grid of cell values.

    Formula cells yield their cached values; empty cells yield None.
    """
    workbook = load_workbook(io.BytesIO(data), data_only=True, read_only=True)
    try:
        sheet = workbook.worksheets[0]
        grid = [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()
    logger.debug("Read %d rows from worksheet '%s'", len(grid), sheet.title)
    return grid


def read_grid(data: bytes) -> list[list[Any]]:
    """Read an uploaded form into a grid, from xlsx or from delimited text."""
    if is_xlsx(data):
        return read_workbook_grid(data)
    return read_delimited_rows(decode(data), keep_blank=True)


def cell(grid: list[list[Any]], row: int, column: int) -> Any:
    """Return the value at a 0-based address, or None outside the grid."""
    if row < 0 or column < 0 or row >= len(grid):
        return None
    cells = grid[row]
    if column >= len(cells):
        return None
    return cells[column]


def cell_text(grid: list[list[Any]], row: int, column: int) -> str:
    """Return the stripped string form of a cell ("" for empty cells).

    Whole-number floats are rendered without the trailing ".0".
    """
    value = cell(grid, row, column)
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()
