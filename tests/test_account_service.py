"""Tests for the chart of accounts service."""

import pytest

from ledgerimport.domain.entities import AccountType
from ledgerimport.domain.errors import ConflictError, NotFoundError, ValidationError


def test_create_account(account_service):
    """Test creating and reading back an account."""
    account_id = account_service.create_account("420-1-1", "Office rent", "Expense")
    account = account_service.get_account(account_id)

    assert account.number == "420-1-1"
    assert account.name == "Office rent"
    assert account.type is AccountType.EXPENSE


def test_create_account_validates_number(account_service):
    """Test that malformed numbers are rejected."""
    for number in ["", "420--1", "420-", "420 1"]:
        with pytest.raises(ValidationError):
            account_service.create_account(number, "Bad", "asset")


def test_create_account_validates_type(account_service):
    """Test that unknown account types are rejected."""
    with pytest.raises(ValidationError):
        account_service.create_account("100", "Cash", "cash")


def test_duplicate_number(account_service):
    """Test that account numbers are unique."""
    account_service.create_account("100", "Cash", AccountType.ASSET)
    with pytest.raises(ConflictError):
        account_service.create_account("100", "Other cash", AccountType.ASSET)


def test_get_account_by_number(account_service, sample_chart):
    """Test exact lookup by number."""
    assert account_service.get_account_by_number("130-1").name == "Bank account"
    with pytest.raises(NotFoundError):
        account_service.get_account_by_number("130")


def test_chart_snapshot_is_ordered(account_service, sample_chart):
    """Test that the snapshot is an immutable, number-ordered chart."""
    snapshot = account_service.chart_snapshot()
    assert isinstance(snapshot, tuple)
    assert [account.number for account in snapshot] == sorted(account.number for account in snapshot)


def test_load_chart(account_service, fixtures_dir):
    """Test loading accounts from a delimited file."""
    text = (fixtures_dir / "chart.csv").read_text(encoding="utf-8")
    created, errors = account_service.load_chart(text)

    assert created == 5
    assert errors == []
    assert account_service.get_account_by_number("420-1-1-1").type is AccountType.EXPENSE

    created_again, _ = account_service.load_chart(text)
    assert created_again == 0


def test_load_chart_reports_bad_rows(account_service):
    """Test that invalid rows are reported and skipped."""
    created, errors = account_service.load_chart("100;Cash;asset\n200;Broken\n300;Bad;colour\n")
    assert created == 1
    assert len(errors) == 2
    assert errors[0].startswith("Row 2")
