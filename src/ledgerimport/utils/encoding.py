"""Byte encoding detection for uploaded files.

Statement and spreadsheet exports come from banking and office software that
does not agree on an encoding. Decoding walks a fixed chain and the first
candidate that fits wins:

1. Unicode with a byte-order mark
2. strict UTF-8
3. Windows-1250
4. ISO-8859-2
5. UTF-8 with replacement characters (never fails)
"""

import codecs
import logging

logger = logging.getLogger(__name__)

# UTF-32 marks must be checked before UTF-16 ones, they share a prefix.
BYTE_ORDER_MARKS = (
    (codecs.BOM_UTF32_LE, "utf-32-le"),
    (codecs.BOM_UTF32_BE, "utf-32-be"),
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)

LEGACY_ENCODINGS = ("cp1250", "iso-8859-2")

POLISH_DIACRITICS = frozenset("ąćęłńóśźżĄĆĘŁŃÓŚŹŻ")

REPLACEMENT_CHARACTER = "\ufffd"


def _looks_like_target_text(text: str) -> bool:
    if any(char in POLISH_DIACRITICS for char in text):
        return True
    return REPLACEMENT_CHARACTER not in text


def detect_encoding(data: bytes) -> str:
    """Return the name of the encoding ``decode`` would use for ``data``.

    The fallback name ``"utf-8-replace"`` marks the lossy last resort.
    """
    for mark, encoding in BYTE_ORDER_MARKS:
        if data.startswith(mark):
            try:
                data[len(mark):].decode(encoding)
                return encoding
            except UnicodeDecodeError:
                break

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        pass
    else:
        if _looks_like_target_text(text):
            return "utf-8"

    for encoding in LEGACY_ENCODINGS:
        try:
            data.decode(encoding)
            return encoding
        except UnicodeDecodeError:
            continue

    return "utf-8-replace"


def decode(data: bytes) -> str:
    """Decode raw bytes into text using the first encoding that fits.

    Args:
        data: Raw file content

    Returns:
        Decoded text. Never raises for byte input; the last resort may contain
        replacement characters.
    """
    encoding = detect_encoding(data)
    logger.debug("Decoding %d bytes as %s", len(data), encoding)

    if encoding == "utf-8-replace":
        return data.decode("utf-8", errors="replace")

    for mark, bom_encoding in BYTE_ORDER_MARKS:
        if bom_encoding == encoding and data.startswith(mark):
            return data[len(mark):].decode(encoding)

    return data.decode(encoding)
