"""
A local table store using SQLite.
"""

import json
import logging
import uuid
from datetime import datetime, timezone

import aiosqlite

from table_store import Query, StoreError, TableStore, check_identifier, one_row

logger = logging.getLogger(__name__)

JSON_COLUMNS = {"tags"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _icontains(value, needle) -> bool:
    if value is None or needle is None:
        return False
    return str(needle).casefold() in str(value).casefold()


def _error_code(exc: aiosqlite.Error) -> str | None:
    message = str(exc)
    if "NOT NULL constraint failed" in message:
        return "23502"
    if "UNIQUE constraint failed" in message:
        return "23505"
    if "no such column" in message or "has no column named" in message:
        return "42703"
    if "no such table" in message:
        return "42P01"
    return None


class SQLiteTableStore(TableStore):
    """
    A table store backed by an SQLite file. It keeps the same rules as the
    hosted store: the store owns ids and timestamps, and bulk update/delete
    needs a filter.
    """

    name = "sqlite"

    def __init__(self, filename: str = "memos.db"):
        self.db_name = filename

    async def create_table(self, name: str = "memos"):
        """
        Creates the memo table if it does not exist.
        """
        table = check_identifier(name)
        async with aiosqlite.connect(self.db_name) as db:
            await db.execute(f"""
                CREATE TABLE IF NOT EXISTS {table} (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                content TEXT NOT NULL,
                category TEXT NOT NULL,
                tags TEXT NOT NULL DEFAULT '[]',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
                )
            """)
            await db.execute(
                f"CREATE INDEX IF NOT EXISTS {table}_created_at_idx "
                f"ON {table} (created_at)"
            )
            await db.commit()

    async def execute(self, query: Query):
        try:
            async with aiosqlite.connect(self.db_name) as db:
                db.row_factory = aiosqlite.Row
                await db.create_function("icontains", 2, _icontains, deterministic=True)
                rows = await self._run(db, query)
                await db.commit()
        except aiosqlite.Error as exc:
            raise StoreError(str(exc), code=_error_code(exc)) from exc

        results = [self._row_to_dict(row) for row in rows]
        if query.single:
            return one_row(results)
        return results

    async def _run(self, db, query: Query):
        if query.action == "select":
            sql, params = self._select_sql(query)
        elif query.action == "insert":
            sql, params = self._insert_sql(query)
        elif query.action == "update":
            sql, params = self._update_sql(query)
        elif query.action == "delete":
            sql, params = self._delete_sql(query)
        else:
            raise StoreError(f"Unsupported action: {query.action}")

        logger.debug("sqlite: %s %s", sql, params)
        async with db.execute(sql, params) as cursor:
            return await cursor.fetchall()

    def _select_sql(self, query: Query):
        columns = ", ".join(query.columns) if query.columns else "*"
        where, params = self._where(query)
        sql = f"SELECT {columns} FROM {query.table}{where}"
        if query.order_by:
            direction = "ASC" if query.ascending else "DESC"
            # rowid keeps insertion order for equal timestamps
            sql += f" ORDER BY {query.order_by} {direction}, rowid {direction}"
        return sql, params

    def _insert_sql(self, query: Query):
        now = _now()
        row = {"id": str(uuid.uuid4()), "created_at": now, "updated_at": now}
        row.update(self._encode(query.values or {}))
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        sql = (
            f"INSERT INTO {query.table} ({columns}) VALUES ({placeholders}) "
            "RETURNING *"
        )
        return sql, list(row.values())

    def _update_sql(self, query: Query):
        self._require_filter(query, "UPDATE")
        values = self._encode(query.values or {})
        values["updated_at"] = _now()
        assignments = ", ".join(f"{column} = ?" for column in values)
        where, params = self._where(query)
        sql = f"UPDATE {query.table} SET {assignments}{where} RETURNING *"
        return sql, list(values.values()) + params

    def _delete_sql(self, query: Query):
        self._require_filter(query, "DELETE")
        where, params = self._where(query)
        return f"DELETE FROM {query.table}{where} RETURNING *", params

    @staticmethod
    def _require_filter(query: Query, verb: str):
        if not query.conditions and query.text_match is None:
            raise StoreError(f"{verb} requires a WHERE clause", code="21000")

    @staticmethod
    def _where(query: Query):
        clauses = []
        params = []
        for condition in query.conditions:
            if condition.op == "eq":
                clauses.append(f"{condition.column} = ?")
            elif condition.op == "neq":
                clauses.append(f"{condition.column} != ?")
            else:
                raise StoreError(f"Unsupported operator: {condition.op}")
            params.append(condition.value)

        if query.text_match is not None:
            match = query.text_match
            ors = " OR ".join(f"icontains({column}, ?)" for column in match.columns)
            clauses.append(f"({ors})")
            params.extend(match.text for _ in match.columns)

        if not clauses:
            return "", params
        return " WHERE " + " AND ".join(clauses), params

    @staticmethod
    def _encode(values: dict) -> dict:
        encoded = {}
        for column, value in values.items():
            if column in JSON_COLUMNS and value is not None:
                value = json.dumps(value)
            encoded[column] = value
        return encoded

    @staticmethod
    def _row_to_dict(row) -> dict:
        """
        Converts a database row to a plain dict, decoding JSON columns.
        """
        result = dict(row)
        for column in JSON_COLUMNS.intersection(result):
            raw = result[column]
            result[column] = json.loads(raw) if raw else []
        return result
