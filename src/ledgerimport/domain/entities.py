"""Domain model entities for ledgerimport.

These are pure data classes representing the import pipeline, independent of
the database schema. Parsers produce ``RawEntry`` records, the resolver turns
account tokens into ``ChartAccount`` or ``Unresolved`` values and the builder
emits balanced ``LedgerEntry`` records collected in an ``ImportBatch``.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union


class AccountType(str, Enum):
    """Classification of a chart account."""

    ASSET = "asset"
    LIABILITY = "liability"
    INCOME = "income"
    EXPENSE = "expense"
    EQUITY = "equity"

    @classmethod
    def parse(cls, value: str) -> "AccountType":
        """Parse a case-insensitive type name."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ", ".join(t.value for t in cls)
            raise ValueError(f"Invalid account type '{value}'. Must be one of: {valid}")


class ImportFormat(str, Enum):
    """Supported source file formats."""

    STATEMENT = "statement"
    DELIMITED = "delimited"
    FIXED_LAYOUT = "form"

    @property
    def blocks_on_unresolved(self) -> bool:
        """Whether a single unresolved account blocks the whole batch."""
        return self is ImportFormat.FIXED_LAYOUT


@dataclass(frozen=True)
class ChartAccount:
    """Entry in the chart of accounts."""

    id: int
    number: str
    name: str
    type: AccountType

    def is_ancestor_of(self, number: str) -> bool:
        return number.startswith(self.number + "-")


@dataclass(frozen=True)
class Unresolved:
    """Account token that could not be matched against the chart."""

    token: str


ResolvedAccount = Union[ChartAccount, Unresolved]


def is_resolved(account: ResolvedAccount) -> bool:
    """Return True if the account was matched to a chart entry."""
    return isinstance(account, ChartAccount)


@dataclass(frozen=True)
class RawEntry:
    """Candidate transaction extracted from a source file.

    The primary amount and token describe the debit side, the secondary ones
    the credit side. Formats carrying a single amount use it for both.
    """

    description: str
    primary_amount: Decimal
    date: Optional[date]
    source_row_index: int
    secondary_amount: Optional[Decimal] = None
    primary_account_token: Optional[str] = None
    secondary_account_token: Optional[str] = None
    reference: Optional[str] = None
    counterparty: Optional[str] = None
    currency: Optional[str] = None

    def is_usable(self) -> bool:
        """Check that the entry carries an amount and a description or date."""
        has_amount = bool(self.primary_amount) or bool(self.secondary_amount)
        has_label = bool(self.description) or self.date is not None
        return has_amount and has_label


@dataclass(frozen=True)
class LedgerEntry:
    """Balanced two-sided ledger record produced by the import pipeline."""

    description: str
    date: date
    currency: str
    exchange_rate: Decimal
    debit_amount: Decimal
    credit_amount: Decimal
    debit_account: ResolvedAccount
    credit_account: ResolvedAccount
    display_order: int
    has_error: bool = False
    error_reason: Optional[str] = None
    reference: Optional[str] = None

    @property
    def amount(self) -> Decimal:
        return self.debit_amount


@dataclass(frozen=True)
class PostedEntry:
    """Ledger entry as stored by the ledger store.

    Manually entered postings may carry different debit and credit amounts.
    """

    id: int
    document_id: int
    description: str
    date: date
    currency: str
    exchange_rate: Decimal
    debit_amount: Decimal
    credit_amount: Decimal
    debit_account_number: Optional[str]
    credit_account_number: Optional[str]
    display_order: int
    has_error: bool
    error_reason: Optional[str]


@dataclass(frozen=True)
class Document:
    """Ledger document grouping the entries of one import."""

    id: int
    document_number: str
    name: str
    document_date: date
    location: str
    currency: str
    created_at: datetime


@dataclass(frozen=True)
class ColumnMapping:
    """Assignment of logical roles to 1-based column positions."""

    description: Optional[int] = None
    amount: Optional[int] = None
    account: Optional[int] = None
    secondary_amount: Optional[int] = None
    secondary_account: Optional[int] = None
    date: Optional[int] = None

    ROLES = (
        "description",
        "amount",
        "account",
        "secondary_amount",
        "secondary_account",
        "date",
    )

    @classmethod
    def positional(cls) -> "ColumnMapping":
        """Default layout: description, amount, account, second amount, second account."""
        return cls(description=1, amount=2, account=3, secondary_amount=4, secondary_account=5)

    @classmethod
    def from_roles(cls, roles: dict[str, Any], base: Optional["ColumnMapping"] = None) -> "ColumnMapping":
        """Build a mapping from a role -> column dict.

        Roles missing from ``roles`` keep the value from ``base``, or stay
        unassigned when no base is given.

        Raises:
            ValueError: If a role name is unknown, a column is not a positive
                integer, or two roles share a column
        """
        mapping = base if base is not None else cls()
        values = {}
        for role, column in roles.items():
            if role not in cls.ROLES:
                raise ValueError(
                    f"Invalid column role '{role}'. Must be one of: {', '.join(cls.ROLES)}"
                )
            if column is None:
                values[role] = None
                continue
            try:
                position = int(column)
            except (TypeError, ValueError):
                raise ValueError(f"Invalid column '{column}' for role '{role}'")
            if position < 1:
                raise ValueError(f"Column for role '{role}' must be 1 or greater")
            values[role] = position

        mapping = replace(mapping, **values)
        used: dict[int, str] = {}
        for role, column in mapping.as_dict().items():
            if column is None:
                continue
            if column in used:
                raise ValueError(
                    f"Column {column} is assigned to both '{used[column]}' and '{role}'"
                )
            used[column] = role
        return mapping

    def as_dict(self) -> dict[str, Optional[int]]:
        return {role: getattr(self, role) for role in self.ROLES}

    @property
    def is_complete(self) -> bool:
        return None not in (self.description, self.amount, self.account)


@dataclass(frozen=True)
class StatementHeader:
    """Statement-level data of a bank statement."""

    account_reference: str = ""
    statement_number: str = ""
    currency: Optional[str] = None
    opening_balance: Optional[Decimal] = None
    closing_balance: Optional[Decimal] = None


@dataclass(frozen=True)
class FormHeader:
    """Header block of a fixed-layout settlement form."""

    full_name: str
    location_name: str
    location_code: str
    payment_method: str
    cash_account: str
    month: int
    year: int

    @property
    def document_name(self) -> str:
        location = f" - {self.location_name}" if self.location_name else ""
        return f"Settlement{location} - {self.month}/{self.year}"


@dataclass(frozen=True)
class ImportOptions:
    """Per-run settings for an import."""

    document_date: date = field(default_factory=date.today)
    location: str = ""
    currency: str = "PLN"
    exchange_rate: Decimal = Decimal("1")
    bank_account: Optional[str] = None
    counter_account: Optional[str] = None
    document_name: Optional[str] = None


@dataclass
class ImportBatch:
    """Result of running one uploaded file through the pipeline.

    Lives only for the duration of preview and commit; only its accepted
    entries are persisted by the ledger store.
    """

    format: Optional[ImportFormat]
    entries: list[LedgerEntry] = field(default_factory=list)
    blocked: bool = False
    missing_accounts: list[str] = field(default_factory=list)
    mapping: Optional[ColumnMapping] = None
    header: Optional[Union[StatementHeader, FormHeader]] = None
    discarded_rows: int = 0
    diagnostics: list[str] = field(default_factory=list)
    document_name: Optional[str] = None
    document_number: Optional[str] = None
    committed: bool = False

    @property
    def error_count(self) -> int:
        """Number of entries that need manual account completion."""
        return sum(1 for entry in self.entries if entry.has_error)

    @property
    def total_amount(self) -> Decimal:
        return sum((entry.debit_amount for entry in self.entries), Decimal("0"))

    @property
    def committable_entries(self) -> list[LedgerEntry]:
        """Entries that would be written on commit under the format's policy."""
        if self.blocked:
            return []
        return list(self.entries)
