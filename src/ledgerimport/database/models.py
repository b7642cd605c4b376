"""SQLAlchemy models for the ledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Account(Base):
    """Chart of accounts entry."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    number = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    account_type = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class Document(Base):
    """Ledger document grouping the entries of one import or manual posting."""

    __tablename__ = "documents"

    id = Column(Integer, primary_key=True)
    document_number = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    document_date = Column(Date, nullable=False)
    location = Column(String, nullable=False)
    currency = Column(String, nullable=False, default="PLN")
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    entries = relationship(
        "LedgerEntry",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="LedgerEntry.display_order",
    )


class LedgerEntry(Base):
    """Ledger entry model. Account references are null for unresolved sides."""

    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True)
    document_id = Column(Integer, ForeignKey("documents.id"), nullable=False)
    display_order = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    currency = Column(String, nullable=False, default="PLN")
    exchange_rate = Column(Numeric(12, 6), nullable=False, default=1)
    debit_amount = Column(Numeric(14, 2), nullable=False)
    credit_amount = Column(Numeric(14, 2), nullable=False)
    debit_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    credit_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    has_error = Column(Boolean, default=False, nullable=False)
    error_reason = Column(String, nullable=True)
    reference = Column(String, nullable=True)

    # Relationships
    document = relationship("Document", back_populates="entries")
    debit_account = relationship("Account", foreign_keys=[debit_account_id])
    credit_account = relationship("Account", foreign_keys=[credit_account_id])


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
