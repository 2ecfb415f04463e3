"""Tests for the SQLite table store."""

import asyncio
import uuid

import pytest

from sqlite_store import SQLiteTableStore
from table_store import NotFoundError, StoreError

ROW = {"title": "T", "content": "C", "category": "work", "tags": ["x", "y, z"]}


class TestSQLiteTableStore:
    @pytest.mark.asyncio
    async def test_insert_assigns_id_and_timestamps(self, store: SQLiteTableStore):
        row = await store.table("memos").insert(ROW).single().execute()

        uuid.UUID(row["id"])
        assert row["created_at"] == row["updated_at"]
        assert row["tags"] == ["x", "y, z"]

    @pytest.mark.asyncio
    async def test_update_refreshes_updated_at(self, store: SQLiteTableStore):
        row = await store.table("memos").insert(ROW).single().execute()
        await asyncio.sleep(0.01)

        updated = await (
            store.table("memos").update({"title": "new"}).eq("id", row["id"]).single().execute()
        )

        assert updated["title"] == "new"
        assert updated["created_at"] == row["created_at"]
        assert updated["updated_at"] > row["updated_at"]

    @pytest.mark.asyncio
    async def test_single_miss_raises_not_found(self, store: SQLiteTableStore):
        with pytest.raises(NotFoundError):
            await store.table("memos").select().eq("id", "missing").single().execute()

    @pytest.mark.asyncio
    async def test_update_without_match_raises_not_found(self, store: SQLiteTableStore):
        with pytest.raises(NotFoundError):
            await (
                store.table("memos").update({"title": "x"}).eq("id", "missing").single().execute()
            )

    @pytest.mark.asyncio
    async def test_unfiltered_delete_refused(self, store: SQLiteTableStore):
        await store.table("memos").insert(ROW).execute()

        with pytest.raises(StoreError) as exc_info:
            await store.table("memos").delete().execute()

        assert exc_info.value.code == "21000"
        assert len(await store.table("memos").select().execute()) == 1

    @pytest.mark.asyncio
    async def test_unfiltered_update_refused(self, store: SQLiteTableStore):
        with pytest.raises(StoreError) as exc_info:
            await store.table("memos").update({"title": "x"}).execute()
        assert exc_info.value.code == "21000"

    @pytest.mark.asyncio
    async def test_delete_returns_removed_rows(self, store: SQLiteTableStore):
        row = await store.table("memos").insert(ROW).single().execute()
        deleted = await store.table("memos").delete().eq("id", row["id"]).execute()
        assert [r["id"] for r in deleted] == [row["id"]]

    @pytest.mark.asyncio
    async def test_select_columns(self, store: SQLiteTableStore):
        await store.table("memos").insert(ROW).execute()
        rows = await store.table("memos").select("category").execute()
        assert rows == [{"category": "work"}]

    @pytest.mark.asyncio
    async def test_order_ascending(self, store: SQLiteTableStore):
        for title in ["a", "b", "c"]:
            await store.table("memos").insert({**ROW, "title": title}).execute()

        rows = await store.table("memos").select().order("created_at").execute()

        assert [r["title"] for r in rows] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_match_any(self, store: SQLiteTableStore):
        await store.table("memos").insert({**ROW, "title": "Hello"}).execute()
        await store.table("memos").insert({**ROW, "content": "say HELLO"}).execute()
        await store.table("memos").insert(ROW).execute()

        rows = await (
            store.table("memos").select().match_any(["title", "content"], "hello").execute()
        )

        assert len(rows) == 2

    @pytest.mark.asyncio
    async def test_error_codes(self, store: SQLiteTableStore):
        with pytest.raises(StoreError) as exc_info:
            await store.table("memos").insert({"title": "only"}).execute()
        assert exc_info.value.code == "23502"

        with pytest.raises(StoreError) as exc_info:
            await store.table("memos").insert({**ROW, "colour": "red"}).execute()
        assert exc_info.value.code == "42703"

        with pytest.raises(StoreError) as exc_info:
            await store.table("nothing_here").select().execute()
        assert exc_info.value.code == "42P01"

    @pytest.mark.asyncio
    async def test_duplicate_id(self, store: SQLiteTableStore):
        row = await store.table("memos").insert(ROW).single().execute()
        with pytest.raises(StoreError) as exc_info:
            await store.table("memos").insert({**ROW, "id": row["id"]}).execute()
        assert exc_info.value.code == "23505"

    @pytest.mark.asyncio
    async def test_create_table_is_idempotent(self, store: SQLiteTableStore):
        await store.table("memos").insert(ROW).execute()
        await store.create_table("memos")
        assert len(await store.table("memos").select().execute()) == 1
