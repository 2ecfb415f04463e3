"""Configuration loading from environment variables."""

import logging
import os
from dataclasses import dataclass

from table_store import TableStore

logger = logging.getLogger(__name__)

_URL_VARS = ("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL")
_KEY_VARS = ("SUPABASE_KEY", "SUPABASE_ANON_KEY", "NEXT_PUBLIC_SUPABASE_ANON_KEY")


class ConfigError(Exception):
    pass


@dataclass
class Settings:
    """Top-level memo store configuration."""

    supabase_url: str | None = None
    supabase_key: str | None = None
    table: str = "memos"
    sqlite_path: str = "memos.db"
    log_level: str = "INFO"

    @property
    def backend(self) -> str:
        if self.supabase_url and self.supabase_key:
            return "supabase"
        return "sqlite"


def _first_env(environ, names) -> str | None:
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return None


def load_settings(environ=None) -> Settings:
    """Load settings from the environment (os.environ by default)."""
    environ = os.environ if environ is None else environ

    url = _first_env(environ, _URL_VARS)
    key = _first_env(environ, _KEY_VARS)
    if bool(url) != bool(key):
        missing = "SUPABASE_KEY" if url else "SUPABASE_URL"
        raise ConfigError(f"Supabase is half configured: {missing} is not set")

    return Settings(
        supabase_url=url,
        supabase_key=key,
        table=environ.get("MEMO_TABLE", "memos"),
        sqlite_path=environ.get("MEMO_DB_PATH", "memos.db"),
        log_level=environ.get("LOG_LEVEL", "INFO"),
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


async def create_store(settings: Settings) -> TableStore:
    """Build the table store the settings point at."""
    if settings.backend == "supabase":
        from supabase import acreate_client

        from supabase_store import SupabaseTableStore

        client = await acreate_client(settings.supabase_url, settings.supabase_key)
        logger.info("Using Supabase store at %s", settings.supabase_url)
        return SupabaseTableStore(client)

    from sqlite_store import SQLiteTableStore

    store = SQLiteTableStore(settings.sqlite_path)
    await store.create_table(settings.table)
    logger.info("Using SQLite store at %s", settings.sqlite_path)
    return store
