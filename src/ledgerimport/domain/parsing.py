"""Common interface of the source format parsers."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Union

from ledgerimport.domain.entities import FormHeader, ImportFormat, RawEntry, StatementHeader

logger = logging.getLogger(__name__)


class SourceParser(ABC):
    """Turns one uploaded file into raw entries.

    Resolution, construction and validation happen downstream and are shared
    by all formats, so a parser only has to read its source and emit
    ``RawEntry`` records in source order.
    """

    format: ImportFormat

    def __init__(self):
        self.diagnostics: list[str] = []
        self.discarded_rows = 0

    @property
    def header(self) -> Optional[Union[StatementHeader, FormHeader]]:
        """Document-level data found in the source, if the format has any."""
        return None

    @abstractmethod
    def read(self, data: bytes) -> Any:
        """Convert raw bytes into the parser's source (text or cell grid)."""
        pass

    @abstractmethod
    def parse(self, source: Any) -> list[RawEntry]:
        """Parse a source into raw entries, in source order."""
        pass

    def parse_bytes(self, data: bytes) -> list[RawEntry]:
        return self.parse(self.read(data))

    def _reset_diagnostics(self) -> None:
        self.diagnostics = []
        self.discarded_rows = 0

    def _note(self, message: str) -> None:
        logger.warning(message)
        self.diagnostics.append(message)

    def _discard(self, row: int, reason: str) -> None:
        self.discarded_rows += 1
        logger.debug("Row %d discarded: %s", row, reason)
