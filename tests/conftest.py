import sqlite3
from collections.abc import Generator
from pathlib import Path

import pytest

from ravesql.resolver import OperationRegistry
from ravesql.storage import FileSystemResourceStore

here = Path(__file__).parent
root_path = here.parent
fixtures_path = here / "fixtures"


@pytest.fixture
def sql_root() -> Path:
    """Directory holding the ``sql/`` fixture tree."""
    return fixtures_path


@pytest.fixture
def fixture_store(sql_root: Path) -> FileSystemResourceStore:
    return FileSystemResourceStore(sql_root)


@pytest.fixture
def registry() -> OperationRegistry:
    """An isolated operation registry."""
    return OperationRegistry()


@pytest.fixture
def sqlite_connection(sql_root: Path) -> Generator[sqlite3.Connection, None, None]:
    """In-memory SQLite database with an empty ``person`` table."""
    connection = sqlite3.connect(":memory:")
    connection.execute((sql_root / "sql" / "person" / "create_table.sql").read_text())
    try:
        yield connection
    finally:
        connection.close()
