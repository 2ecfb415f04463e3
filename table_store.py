"""
The contract between the memo repository and a row-oriented table store.

A store hands out Table objects; each table builds a Query through a small
chainable builder and runs it with ``await builder.execute()``. Backends
(SQLite locally, Supabase when hosted) only have to implement
``TableStore.execute``.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

# PostgREST code for "a single row was requested but zero (or several) matched"
NO_ROWS_CODE = "PGRST116"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class StoreError(Exception):
    """
    Any failure reported by a table store.
    """

    def __init__(self, message: str, code: str | None = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class NotFoundError(StoreError):
    """
    A single-row query matched no row.
    """

    def __init__(self, message: str = "No rows returned", details: Any = None):
        super().__init__(message, code=NO_ROWS_CODE, details=details)


def one_row(rows: list[dict[str, Any]]) -> dict[str, Any]:
    """
    Enforce single-row semantics on a result set.
    """
    if len(rows) != 1:
        raise NotFoundError(
            "JSON object requested, multiple (or no) rows returned",
            details=f"The result contains {len(rows)} rows",
        )
    return rows[0]


def check_identifier(name: str) -> str:
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise StoreError(f"Invalid identifier: {name!r}", code="42602")
    return name


@dataclass(frozen=True)
class Condition:
    """
    column <op> value, where op is "eq" or "neq"
    """

    column: str
    op: str
    value: Any


@dataclass(frozen=True)
class TextMatch:
    """
    Case-insensitive substring match of ``text`` against any of ``columns``.
    """

    columns: tuple[str, ...]
    text: str


@dataclass
class Query:
    table: str
    action: str
    columns: tuple[str, ...] = ()
    values: dict[str, Any] | None = None
    conditions: list[Condition] = field(default_factory=list)
    text_match: TextMatch | None = None
    order_by: str | None = None
    ascending: bool = True
    single: bool = False


class QueryBuilder:
    """
    Chainable builder around a Query. Nothing is sent until execute().
    """

    def __init__(self, store: "TableStore", query: Query):
        self._store = store
        self.query = query

    def eq(self, column: str, value: Any) -> "QueryBuilder":
        self.query.conditions.append(Condition(check_identifier(column), "eq", value))
        return self

    def neq(self, column: str, value: Any) -> "QueryBuilder":
        self.query.conditions.append(Condition(check_identifier(column), "neq", value))
        return self

    def match_any(self, columns, text: str) -> "QueryBuilder":
        columns = tuple(check_identifier(c) for c in columns)
        if not columns:
            raise StoreError("match_any needs at least one column")
        self.query.text_match = TextMatch(columns, text)
        return self

    def order(self, column: str, ascending: bool = True) -> "QueryBuilder":
        self.query.order_by = check_identifier(column)
        self.query.ascending = ascending
        return self

    def single(self) -> "QueryBuilder":
        self.query.single = True
        return self

    async def execute(self):
        return await self._store.execute(self.query)


class Table:
    def __init__(self, store: "TableStore", name: str):
        self._store = store
        self.name = check_identifier(name)

    def _builder(self, action, **kwargs) -> QueryBuilder:
        return QueryBuilder(self._store, Query(table=self.name, action=action, **kwargs))

    def select(self, *columns: str) -> QueryBuilder:
        return self._builder(
            "select", columns=tuple(check_identifier(c) for c in columns)
        )

    def insert(self, row: dict[str, Any]) -> QueryBuilder:
        return self._builder("insert", values=self._checked(row))

    def update(self, values: dict[str, Any]) -> QueryBuilder:
        return self._builder("update", values=self._checked(values))

    def delete(self) -> QueryBuilder:
        return self._builder("delete")

    @staticmethod
    def _checked(values: dict[str, Any]) -> dict[str, Any]:
        for column in values:
            check_identifier(column)
        return dict(values)


class TableStore(ABC):
    """
    Base class for table store backends.
    """

    name = "table"

    def table(self, name: str) -> Table:
        return Table(self, name)

    @abstractmethod
    async def execute(self, query: Query):
        """
        Run one query. Returns a list of row dicts, or a single row dict when
        query.single is set. Failures are raised as StoreError.
        """

    async def close(self) -> None:
        pass
