"""Shared fixtures: a SQLite store in a temp dir and a store that always fails."""

from pathlib import Path

import pytest
import pytest_asyncio

from database import MemoRepository
from models import MemoFormData
from sqlite_store import SQLiteTableStore
from table_store import StoreError, TableStore


class FailingStore(TableStore):
    """Every query fails the way a broken backend would."""

    name = "failing"

    def __init__(self, code: str = "500"):
        self.code = code
        self.queries = []

    async def execute(self, query):
        self.queries.append(query)
        raise StoreError("backend unavailable", code=self.code)


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> SQLiteTableStore:
    s = SQLiteTableStore(str(tmp_path / "memos.db"))
    await s.create_table("memos")
    return s


@pytest.fixture
def repo(store: SQLiteTableStore) -> MemoRepository:
    return MemoRepository(store)


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def failing_repo(failing_store: FailingStore) -> MemoRepository:
    return MemoRepository(failing_store)


def make_form(title="Title", content="Body", category="work", tags=None) -> MemoFormData:
    return MemoFormData(
        title=title,
        content=content,
        category=category,
        tags=["a", "b"] if tags is None else tags,
    )
