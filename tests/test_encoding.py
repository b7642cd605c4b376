"""Tests for byte encoding detection."""

import codecs

from ledgerimport.utils.encoding import decode, detect_encoding

POLISH_TEXT = "Zażółć gęślą jaźń"


def test_plain_ascii_is_utf8():
    """Test that ASCII input is decoded as UTF-8."""
    assert detect_encoding(b":20:STMT") == "utf-8"
    assert decode(b":20:STMT") == ":20:STMT"


def test_utf8_with_diacritics():
    """Test that valid UTF-8 with Polish characters is kept."""
    data = POLISH_TEXT.encode("utf-8")
    assert detect_encoding(data) == "utf-8"
    assert decode(data) == POLISH_TEXT


def test_utf8_bom_is_stripped():
    """Test that a UTF-8 byte-order mark is removed."""
    data = codecs.BOM_UTF8 + POLISH_TEXT.encode("utf-8")
    assert decode(data) == POLISH_TEXT


def test_utf16_bom():
    """Test decoding UTF-16 text announced by its byte-order mark."""
    data = codecs.BOM_UTF16_LE + POLISH_TEXT.encode("utf-16-le")
    assert detect_encoding(data) == "utf-16-le"
    assert decode(data) == POLISH_TEXT


def test_windows_1250_fallback():
    """Test that Windows-1250 text is detected when UTF-8 fails."""
    data = POLISH_TEXT.encode("cp1250")
    assert detect_encoding(data) == "cp1250"
    assert decode(data) == POLISH_TEXT


def test_iso_8859_2_fallback():
    """Test that bytes undefined in Windows-1250 fall through to ISO-8859-2."""
    data = "Łódź".encode("iso-8859-2") + b"\x81"
    assert detect_encoding(data) == "iso-8859-2"
    assert decode(data).startswith("Łódź")


def test_fallback_is_deterministic():
    """Test that undecodable input yields the same text on every call."""
    data = b"abc\x98\x81\xff\xfe"
    first = decode(data)
    assert all(decode(data) == first for _ in range(5))
    assert detect_encoding(data) == detect_encoding(data)


def test_empty_input():
    """Test that empty input decodes to an empty string."""
    assert decode(b"") == ""
