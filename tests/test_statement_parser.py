"""Tests for the MT940 statement parser."""

from datetime import date
from decimal import Decimal

from ledgerimport.domain.statement import (
    PLACEHOLDER_DESCRIPTION,
    ParserState,
    StatementParser,
    parse_details,
)


def test_parse_statement_fixture(fixtures_dir):
    """Test parsing a complete statement file."""
    parser = StatementParser(local_account="130-1")
    entries = parser.parse_bytes((fixtures_dir / "statement.sta").read_bytes())

    assert len(entries) == 2
    incoming, outgoing = entries

    assert incoming.description == "Darowizna na cele statutowe"
    assert incoming.primary_amount == Decimal("500.00")
    assert incoming.secondary_amount == Decimal("500.00")
    assert incoming.date == date(2024, 3, 5)
    assert incoming.reference == "REF001"
    assert incoming.counterparty == "JAN KOWALSKI"
    assert incoming.currency == "PLN"
    assert incoming.primary_account_token == "130-1"
    assert incoming.secondary_account_token == "PL27114020040000300201355387"

    assert outgoing.description == "Faktura 12/2024"
    assert outgoing.primary_account_token == "PL83101010230000261395100000"
    assert outgoing.secondary_account_token == "130-1"
    assert outgoing.source_row_index > incoming.source_row_index

    assert parser.diagnostics == []


def test_statement_header(fixtures_dir):
    """Test the statement-level fields."""
    parser = StatementParser()
    parser.parse_bytes((fixtures_dir / "statement.sta").read_bytes())
    header = parser.header

    assert header.account_reference == "PL61109010140000071219812874"
    assert header.statement_number == "00042/001"
    assert header.currency == "PLN"
    assert header.opening_balance == Decimal("1000.00")
    assert header.closing_balance == Decimal("1300.00")


def test_local_account_defaults_to_statement_account(fixtures_dir):
    """Test that the :25: account is used when no bank account is configured."""
    parser = StatementParser()
    entries = parser.parse_bytes((fixtures_dir / "statement.sta").read_bytes())
    assert entries[0].primary_account_token == "PL61109010140000071219812874"


def test_counter_account_overrides_details():
    """Test that a configured counter account wins over the details account."""
    text = ":61:240305C100,00NTRF\n:86:^20Wplata^38PL27114020040000300201355387\n"
    parser = StatementParser(local_account="130-1", counter_account="700")
    entries = parser.parse(text)
    assert entries[0].secondary_account_token == "700"


def test_continuation_lines_join_purpose_subfields():
    """Test that the description joins purpose sub-fields across continuation lines."""
    text = "\n".join(
        [
            ":61:240305C100,00NTRFNONREF",
            ":86:020^00Przelew^20Czesc pierwsza",
            "^21czesc druga^32NAZWA",
            "^22czesc trzecia",
            ":61:240306D50,00NTRFNONREF",
            ":86:^20Druga",
        ]
    )
    entries = StatementParser().parse(text)

    assert len(entries) == 2
    assert entries[0].description == "Czesc pierwsza czesc druga czesc trzecia"
    assert entries[0].counterparty == "NAZWA"
    assert entries[1].description == "Druga"


def test_operation_subfield_is_fallback_description():
    """Test that sub-field 00 is used when no purpose sub-field is present."""
    fields = parse_details("020^00Oplata za prowadzenie rachunku^32BANK")
    assert fields.description == "Oplata za prowadzenie rachunku"


def test_details_without_subfields_are_verbatim():
    """Test that an untagged details body is used as the description."""
    fields = parse_details("Zwrot   kosztow")
    assert fields.description == "Zwrot kosztow"


def test_alternative_subfield_separators():
    """Test that ~ and < also open sub-fields."""
    assert parse_details("~20Pierwsza~21druga").description == "Pierwsza druga"
    assert parse_details("<20Pierwsza<21druga").description == "Pierwsza druga"


def test_feed_state_transitions():
    """Test the state machine driven line by line."""
    parser = StatementParser()
    assert parser.state is ParserState.IDLE

    parser.feed(":20:STMT")
    assert parser.state is ParserState.IDLE

    parser.feed(":61:240305C100,00NTRF")
    assert parser.state is ParserState.IN_TRANSACTION_HEADER

    parser.feed(":86:^20Opis")
    assert parser.state is ParserState.IN_DETAIL_FIELD

    parser.feed("^21dalszy ciag")
    assert parser.state is ParserState.IN_DETAIL_FIELD

    parser.feed("-")
    assert parser.state is ParserState.IDLE
    assert len(parser.entries) == 1
    assert parser.entries[0].description == "Opis dalszy ciag"


def test_finish_closes_open_buffers():
    """Test that input ending inside a details field still yields the entry."""
    parser = StatementParser()
    parser.feed(":61:240305C100,00NTRF")
    parser.feed(":86:^20Ostatni")
    entries = parser.finish()
    assert len(entries) == 1
    assert entries[0].description == "Ostatni"
    assert parser.state is ParserState.IDLE


def test_missing_details_use_placeholder():
    """Test that a transaction without details gets the placeholder description."""
    entries = StatementParser().parse(":61:240305D75,50NTRF\n:62F:C240331PLN0,00\n")
    assert entries[0].description == PLACEHOLDER_DESCRIPTION
    assert entries[0].primary_amount == Decimal("75.50")


def test_reversal_marks():
    """Test that RD counts as money in and RC as money out."""
    text = ":61:240305RD100,00NTRF\n:86:^20A\n:61:240306RC40,00NTRF\n:86:^20B\n"
    entries = StatementParser(local_account="130-1", counter_account="700").parse(text)
    assert entries[0].primary_account_token == "130-1"
    assert entries[1].primary_account_token == "700"
    assert entries[1].secondary_account_token == "130-1"


def test_reference_without_separator():
    """Test that the transaction type code is dropped from the reference."""
    entries = StatementParser().parse(":61:240305C100,00NTRFFAKTURA1\n")
    assert entries[0].reference == "FAKTURA1"


def test_malformed_lines_degrade():
    """Test that malformed dates and amounts degrade instead of raising."""
    parser = StatementParser(default_date=date(2024, 3, 31))
    entries = parser.parse(":61:241399C100,00NTRF\n:86:^20Zla data\n:61:garbage\n:86:^20Zla linia\n")

    assert len(entries) == 2
    assert entries[0].date == date(2024, 3, 31)
    assert entries[0].primary_amount == Decimal("100.00")
    assert entries[1].primary_amount == Decimal("0")
    assert len(parser.diagnostics) == 2


def test_balance_mismatch_is_reported():
    """Test the opening/closing balance continuity check."""
    text = "\n".join(
        [
            ":60F:C240301PLN1000,00",
            ":61:240305C500,00NTRF",
            ":62F:C240331PLN1400,00",
        ]
    )
    parser = StatementParser()
    parser.parse(text)
    assert any("does not match" in message for message in parser.diagnostics)


def test_parse_resets_between_runs(fixtures_dir):
    """Test that a parser instance can be reused."""
    parser = StatementParser()
    data = (fixtures_dir / "statement.sta").read_bytes()
    parser.parse_bytes(data)
    assert len(parser.parse_bytes(data)) == 2
