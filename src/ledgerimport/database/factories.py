"""Database factory functions for creating database instances."""

import logging
import os
from pathlib import Path
from typing import Optional

from ledgerimport.database.sqlalchemy_db import SQLAlchemyDatabase

logger = logging.getLogger(__name__)

DB_PATH_ENV = "LEDGERIMPORT_DB_PATH"
DEFAULT_DB_PATH = Path.home() / ".ledgerimport" / "ledger.db"
IN_MEMORY = ":memory:"


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite ledger store.

    Args:
        database_path: Path to the SQLite file, or ":memory:". When None, the
            LEDGERIMPORT_DB_PATH environment variable is used, then
            ~/.ledgerimport/ledger.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    database_path = database_path or os.environ.get(DB_PATH_ENV)

    if database_path == IN_MEMORY:
        return SQLAlchemyDatabase("sqlite://")

    path = Path(database_path).expanduser() if database_path else DEFAULT_DB_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.debug("Using ledger store at %s", path)
    return SQLAlchemyDatabase(f"sqlite:///{path}")
