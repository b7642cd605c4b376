"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, making it easy to change when
the database schema changes.
"""

from decimal import Decimal

from ledgerimport.domain import entities as domain
from ledgerimport.database.models import (
    Account as ORMAccount,
    Document as ORMDocument,
    LedgerEntry as ORMLedgerEntry,
)


def account_to_domain(orm_account: ORMAccount) -> domain.ChartAccount:
    """Convert SQLAlchemy Account model to domain ChartAccount entity."""
    return domain.ChartAccount(
        id=orm_account.id,
        number=orm_account.number,
        name=orm_account.name,
        type=domain.AccountType(orm_account.account_type),
    )


def document_to_domain(orm_document: ORMDocument) -> domain.Document:
    """Convert SQLAlchemy Document model to domain Document entity."""
    return domain.Document(
        id=orm_document.id,
        document_number=orm_document.document_number,
        name=orm_document.name,
        document_date=orm_document.document_date,
        location=orm_document.location,
        currency=orm_document.currency,
        created_at=orm_document.created_at,
    )


def ledger_entry_to_domain(orm_entry: ORMLedgerEntry) -> domain.PostedEntry:
    """Convert SQLAlchemy LedgerEntry model to domain PostedEntry entity."""
    return domain.PostedEntry(
        id=orm_entry.id,
        document_id=orm_entry.document_id,
        description=orm_entry.description,
        date=orm_entry.date,
        currency=orm_entry.currency,
        exchange_rate=Decimal(orm_entry.exchange_rate),
        debit_amount=Decimal(orm_entry.debit_amount),
        credit_amount=Decimal(orm_entry.credit_amount),
        debit_account_number=orm_entry.debit_account.number if orm_entry.debit_account else None,
        credit_account_number=orm_entry.credit_account.number if orm_entry.credit_account else None,
        display_order=orm_entry.display_order,
        has_error=orm_entry.has_error,
        error_reason=orm_entry.error_reason,
    )


def account_id_of(account: domain.ResolvedAccount) -> int | None:
    """Return the stored account ID, or None for an unresolved side."""
    if isinstance(account, domain.ChartAccount):
        return account.id
    return None
