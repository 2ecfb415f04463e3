"""
The memo repository: named operations over the memos table.

Reads favour availability and fall back to empty results when the store
fails; writes favour correctness and re-raise so the caller knows the
change did not happen.
"""

import logging
from collections import Counter
from datetime import datetime

from models import Memo, MemoFormData, MemoStats
from table_store import NotFoundError, StoreError, TableStore

logger = logging.getLogger(__name__)

MEMOS_TABLE = "memos"

# category value meaning "no filter"
ALL_CATEGORIES = "all"

# bulk delete matches every row whose id differs from an id that cannot exist
NIL_ID = "00000000-0000-0000-0000-000000000000"

SEARCH_COLUMNS = ("title", "content")


def _parse_timestamp(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def row_to_memo(row: dict) -> Memo:
    """
    Converts a database row to a Memo object.
    """
    return Memo(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        category=row["category"],
        tags=list(row.get("tags") or []),
        created_at=_parse_timestamp(row["created_at"]),
        updated_at=_parse_timestamp(row["updated_at"]),
    )


def form_to_row(form: MemoFormData) -> dict:
    """
    The writable columns of a memo row. Used for both insert and update.
    """
    return {
        "title": form.title,
        "content": form.content,
        "category": form.category,
        "tags": list(form.tags),
    }


class MemoRepository:
    """
    A repository for managing memos in a table store.
    """

    def __init__(self, store: TableStore, table: str = MEMOS_TABLE):
        self.store = store
        self.table_name = table

    def _table(self):
        return self.store.table(self.table_name)

    async def get_all(self) -> list[Memo]:
        """
        All memos, newest first.
        """
        try:
            rows = await (
                self._table().select().order("created_at", ascending=False).execute()
            )
        except StoreError as e:
            logger.error("Failed to get memos: %s", e)
            return []
        return [row_to_memo(row) for row in rows or []]

    async def add(self, form: MemoFormData) -> Memo:
        try:
            row = await self._table().insert(form_to_row(form)).single().execute()
        except StoreError as e:
            logger.error("Failed to add memo: %s", e)
            raise
        return row_to_memo(row)

    async def update(self, memo_id: str, form: MemoFormData) -> Memo:
        """
        Replaces the writable fields of an existing memo.
        """
        try:
            row = await (
                self._table()
                .update(form_to_row(form))
                .eq("id", memo_id)
                .single()
                .execute()
            )
        except StoreError as e:
            logger.error("Failed to update memo %s: %s", memo_id, e)
            raise
        return row_to_memo(row)

    async def remove(self, memo_id: str) -> None:
        try:
            await self._table().delete().eq("id", memo_id).execute()
        except StoreError as e:
            logger.error("Failed to delete memo %s: %s", memo_id, e)
            raise

    async def get_by_id(self, memo_id: str) -> Memo | None:
        """
        The memo with this id, or None. Store failures also give None.
        """
        try:
            row = await self._table().select().eq("id", memo_id).single().execute()
        except NotFoundError:
            logger.debug("Memo %s not found", memo_id)
            return None
        except StoreError as e:
            logger.error("Failed to get memo by id %s: %s", memo_id, e)
            return None
        return row_to_memo(row) if row else None

    async def get_by_category(self, category: str) -> list[Memo]:
        if category == ALL_CATEGORIES:
            return await self.get_all()

        try:
            rows = await (
                self._table()
                .select()
                .eq("category", category)
                .order("created_at", ascending=False)
                .execute()
            )
        except StoreError as e:
            logger.error("Failed to get memos by category %r: %s", category, e)
            return []
        return [row_to_memo(row) for row in rows or []]

    async def search(self, query: str) -> list[Memo]:
        """
        Memos whose title or content contains the query, ignoring case.
        A blank query returns every memo.
        """
        query = query.strip()
        if not query:
            return await self.get_all()

        try:
            rows = await (
                self._table()
                .select()
                .match_any(SEARCH_COLUMNS, query)
                .order("created_at", ascending=False)
                .execute()
            )
        except StoreError as e:
            logger.error("Failed to search memos for %r: %s", query, e)
            return []
        return [row_to_memo(row) for row in rows or []]

    async def clear_all(self) -> None:
        try:
            await self._table().delete().neq("id", NIL_ID).execute()
        except StoreError as e:
            logger.error("Failed to clear all memos: %s", e)
            raise

    async def get_stats(self) -> MemoStats:
        try:
            rows = await self._table().select("category").execute()
        except StoreError as e:
            logger.error("Failed to get memo stats: %s", e)
            return MemoStats()

        rows = rows or []
        by_category = Counter(row["category"] for row in rows)
        return MemoStats(total=len(rows), by_category=dict(by_category))
