from collections.abc import Generator
from contextlib import contextmanager
from importlib import resources
from typing import Any

import psycopg
from psycopg_pool import ConnectionPool

from intake.config.settings import Settings

_pool: ConnectionPool | None = None


def conninfo_from(settings: Settings) -> str:
    return (
        f"host={settings.db_host} "
        f"port={settings.db_port} "
        f"dbname={settings.db_database} "
        f"user={settings.db_username} "
        f"password={settings.db_password}"
    )


def init_pool(settings: Settings, min_size: int = 1, max_size: int = 10) -> None:
    """Open the process-wide pool; waits until the first connection succeeds."""
    global _pool  # noqa: PLW0603
    if _pool is not None:
        return
    pool = ConnectionPool(conninfo_from(settings), min_size=min_size, max_size=max_size, open=False)
    pool.open(wait=True, timeout=10.0)
    _pool = pool


def close_pool() -> None:
    global _pool  # noqa: PLW0603
    if _pool is not None:
        _pool.close()
        _pool = None


@contextmanager
def get_connection() -> Generator[psycopg.Connection[Any], None, None]:
    """Yield a pooled connection. Caller manages commit/rollback."""
    if _pool is None:
        raise RuntimeError("Connection pool not initialized. Call init_pool() first.")
    with _pool.connection() as conn:
        yield conn


def apply_schema() -> None:
    """Create the intake tables if they do not exist yet."""
    schema = resources.files("intake.database").joinpath("schema.sql").read_text("utf-8")
    with get_connection() as conn:
        conn.execute(schema)
        conn.commit()
