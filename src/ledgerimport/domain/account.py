"""Chart of accounts domain service."""

import re
from typing import Optional

from ledgerimport.database.base import Database
from ledgerimport.domain.entities import AccountType, ChartAccount
from ledgerimport.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    duplicate_account_number,
)
from ledgerimport.utils.spreadsheet import read_delimited_rows

ACCOUNT_NUMBER = re.compile(r"^[0-9A-Za-z]+(-[0-9A-Za-z]+)*$")


class AccountService:
    """Service for managing the chart of accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(self, number: str, name: str, account_type: AccountType | str) -> int:
        """Create a new chart account.

        Args:
            number: Hyphen-segmented account number, e.g. "420-1-1"
            name: Account name
            account_type: Account class

        Returns:
            Account ID

        Raises:
            ValidationError: If the number or type is invalid
            ConflictError: If the number already exists
        """
        number = number.strip()
        if not ACCOUNT_NUMBER.match(number):
            raise ValidationError(
                f"Invalid account number '{number}'. Use hyphen-separated segments, e.g. 420-1-1"
            )
        if isinstance(account_type, str):
            try:
                account_type = AccountType.parse(account_type)
            except ValueError as e:
                raise ValidationError(str(e))

        if self.db.get_account_by_number(number) is not None:
            raise ConflictError(duplicate_account_number(number))

        return self.db.create_account(number=number, name=name.strip(), account_type=account_type)

    def get_account(self, account_id: int) -> Optional[ChartAccount]:
        return self.db.get_account(account_id)

    def get_account_by_number(self, number: str) -> ChartAccount:
        """Get account by exact number.

        Raises:
            NotFoundError: If no account has this number
        """
        account = self.db.get_account_by_number(number.strip())
        if account is None:
            raise NotFoundError(account_not_found(number))
        return account

    def list_accounts(self) -> list[ChartAccount]:
        """List all accounts ordered by number."""
        return self.db.list_accounts()

    def chart_snapshot(self) -> tuple[ChartAccount, ...]:
        """Return an immutable copy of the current chart for one import run."""
        return tuple(self.db.list_accounts())

    def load_chart(self, text: str) -> tuple[int, list[str]]:
        """Create accounts from delimited text with number, name and type columns.

        Existing numbers are skipped.

        Returns:
            Tuple of (number of accounts created, list of row error messages)
        """
        created = 0
        errors = []
        for row_num, row in enumerate(read_delimited_rows(text), start=1):
            if len(row) < 3:
                errors.append(f"Row {row_num}: expected number, name and type")
                continue
            number, name, account_type = row[0], row[1], row[2]
            if row_num == 1 and number.lower() in ("number", "numer"):
                continue
            if self.db.get_account_by_number(number) is not None:
                continue
            try:
                self.create_account(number, name, account_type)
            except ValidationError as e:
                errors.append(f"Row {row_num}: {e}")
                continue
            created += 1
        return created, errors
