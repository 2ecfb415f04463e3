"""
Table store backed by a hosted Supabase (PostgREST) project.
"""

import logging

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient

from table_store import (
    NO_ROWS_CODE,
    NotFoundError,
    Query,
    StoreError,
    TableStore,
    TextMatch,
    one_row,
)

logger = logging.getLogger(__name__)


def _like_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _quote(value: str) -> str:
    # PostgREST reserved characters (, . : ( ) ") are literal inside double quotes
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def text_match_filter(match: TextMatch) -> str:
    """
    Render a TextMatch as a PostgREST ``or`` filter of ilike terms, e.g.
    ``title.ilike."%foo%",content.ilike."%foo%"``.
    """
    pattern = _quote(f"%{_like_escape(match.text)}%")
    return ",".join(f"{column}.ilike.{pattern}" for column in match.columns)


class SupabaseTableStore(TableStore):
    """
    Runs queries through the supabase async client. Connection handling,
    auth and retries stay inside the client.
    """

    name = "supabase"

    def __init__(self, client: AsyncClient):
        self.client = client

    async def execute(self, query: Query):
        builder = self._build(query)
        try:
            response = await builder.execute()
        except APIError as exc:
            raise self._translate(exc) from exc
        except httpx.HTTPError as exc:
            raise StoreError(f"Request to Supabase failed: {exc}") from exc

        data = response.data
        if query.single:
            if query.action == "select":
                return data
            return one_row(data or [])
        return data or []

    def _build(self, query: Query):
        table = self.client.table(query.table)
        if query.action == "select":
            builder = table.select(",".join(query.columns) or "*")
        elif query.action == "insert":
            builder = table.insert(query.values)
        elif query.action == "update":
            builder = table.update(query.values)
        elif query.action == "delete":
            builder = table.delete()
        else:
            raise StoreError(f"Unsupported action: {query.action}")

        for condition in query.conditions:
            if condition.op == "eq":
                builder = builder.eq(condition.column, condition.value)
            elif condition.op == "neq":
                builder = builder.neq(condition.column, condition.value)
            else:
                raise StoreError(f"Unsupported operator: {condition.op}")

        if query.text_match is not None:
            builder = builder.or_(text_match_filter(query.text_match))
        if query.order_by:
            builder = builder.order(query.order_by, desc=not query.ascending)
        if query.single and query.action == "select":
            builder = builder.single()
        return builder

    @staticmethod
    def _translate(exc: APIError) -> StoreError:
        message = exc.message or str(exc)
        if exc.code == NO_ROWS_CODE:
            return NotFoundError(message, details=exc.details)
        return StoreError(message, code=exc.code, details=exc.details)
