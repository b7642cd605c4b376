"""Abstract database interface.

This is the boundary to the ledger store: it serves the chart of accounts,
allocates document numbers and accepts committed batches.
"""

from abc import ABC, abstractmethod
from typing import Optional
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerimport.domain.entities import (
    AccountType,
    ChartAccount,
    Document,
    LedgerEntry,
    PostedEntry,
)


class Database(ABC):
    """Abstract database interface for ledgerimport."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Chart of accounts operations
    @abstractmethod
    def create_account(self, number: str, name: str, account_type: AccountType) -> int:
        """Create a chart account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[ChartAccount]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_number(self, number: str) -> Optional[ChartAccount]:
        """Get account by exact number."""
        pass

    @abstractmethod
    def list_accounts(self) -> list[ChartAccount]:
        """List the flat chart of accounts ordered by number."""
        pass

    # Document operations
    @abstractmethod
    def allocate_document_number(self, location: str, year: int, month: int) -> str:
        """Return the next free document number for a location and period."""
        pass

    @abstractmethod
    def commit_entries(
        self,
        document_number: str,
        name: str,
        document_date: date,
        location: str,
        currency: str,
        entries: list[LedgerEntry],
    ) -> int:
        """Create a document with all its entries in one transaction.

        Either the document and every entry are stored, or nothing is.
        Unresolved accounts are stored as null references. Returns document ID.
        """
        pass

    @abstractmethod
    def create_posting(
        self,
        document_id: int,
        description: str,
        date: date,
        debit_amount: Decimal,
        credit_amount: Decimal,
        debit_account_id: Optional[int] = None,
        credit_account_id: Optional[int] = None,
        currency: str = "PLN",
        exchange_rate: Decimal = Decimal("1"),
    ) -> int:
        """Append a single manual posting to a document. Returns entry ID."""
        pass

    @abstractmethod
    def get_document_by_number(self, document_number: str) -> Optional[Document]:
        """Get document by its number."""
        pass

    @abstractmethod
    def list_document_entries(self, document_id: int) -> list[PostedEntry]:
        """List a document's entries in display order."""
        pass
