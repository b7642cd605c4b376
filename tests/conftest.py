"""Shared pytest fixtures for ledgerimport tests."""

import tempfile
import os
from pathlib import Path
import pytest

from ledgerimport.database.factories import create_sqlite_database
from ledgerimport.domain.account import AccountService
from ledgerimport.domain.importer import ImportService

CHART = [
    ("100", "Cash", "asset"),
    ("100-2-17-1", "Cash desk Krakow", "asset"),
    ("130-1", "Bank account", "asset"),
    ("401-2-17", "Materials Krakow", "expense"),
    ("420", "External services", "expense"),
    ("420-1-1-1", "Transport services", "expense"),
    ("700", "Sales revenue", "income"),
    ("711-2-17", "Donations Krakow", "income"),
]


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def import_service(temp_db):
    """Create an ImportService with a temporary database."""
    return ImportService(temp_db)


@pytest.fixture
def sample_chart(account_service):
    """Create the sample chart of accounts and return it ordered by number."""
    for number, name, account_type in CHART:
        account_service.create_account(number, name, account_type)
    return account_service.chart_snapshot()


@pytest.fixture
def chart_by_number(sample_chart):
    """Sample chart accounts keyed by number."""
    return {account.number: account for account in sample_chart}


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def make_form():
    """Return a factory building settlement form workbooks as xlsx bytes.

    ``items`` are (row, income, expense) tuples with 0-based row numbers; each
    side is a (code, description, amount) tuple or None.
    """
    from io import BytesIO
    from openpyxl import Workbook

    def build(
        items,
        location_code="2-17",
        cash_account="100-2-17-1",
        month=3,
        year=2024,
        payment_method="Gotówka",
    ):
        workbook = Workbook()
        sheet = workbook.active
        header = {
            (0, 0): "Rozliczenie miesięczne",
            (1, 0): "Imię i nazwisko",
            (1, 1): "Anna Nowak",
            (2, 0): "Placówka",
            (2, 1): "Krakow",
            (2, 3): "Kod",
            (2, 4): location_code,
            (3, 0): "Forma płatności",
            (3, 1): payment_method,
            (3, 3): "Konto",
            (3, 4): cash_account,
            (4, 0): "Miesiąc",
            (4, 1): month,
            (4, 3): "Rok",
            (4, 4): year,
            (6, 0): "Konto",
            (6, 1): "Przychody",
            (6, 2): "Kwota",
            (6, 4): "Konto",
            (6, 5): "Rozchody",
            (6, 6): "Kwota",
        }
        for (row, column), value in header.items():
            if value is not None:
                sheet.cell(row=row + 1, column=column + 1, value=value)
        for row, income, expense in items:
            for first_column, item in ((0, income), (4, expense)):
                if item is None:
                    continue
                for offset, value in enumerate(item):
                    sheet.cell(row=row + 1, column=first_column + offset + 1, value=value)
        buffer = BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    return build
