from typing import AsyncGenerator

import pytest

from ecole_manager.db.schema import open_database
from ecole_manager.db.session import Database
from ecole_manager.migration.legacy_store import MemoryLegacyStore
from tests.factories import TODAY


@pytest.fixture()
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'school.db'}"


@pytest.fixture()
async def database(database_url: str) -> AsyncGenerator[Database, None]:
    """A freshly provisioned store file per test."""
    db = await open_database(database_url, today=TODAY)
    yield db
    await db.dispose()


@pytest.fixture()
def legacy_store() -> MemoryLegacyStore:
    return MemoryLegacyStore()
