from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2

from ..config.loader import DatabaseConfig

"""psycopg2 connection handling for the CLI."""

__all__ = [
    "resolve_dsn",
    "db_cursor",
]


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    """Resolve connection parameters.

    Priority:
        1. DATABASE_URL / PGDSN (DSN 全体をそのまま使用)
        2. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
        3. the ``database`` section of the YAML config
    """
    dsn_env = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn_env:
        return dsn_env
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def db_cursor(db_cfg: DatabaseConfig) -> Iterator[Any]:
    """Yield a cursor inside one transaction; commit on success, rollback on error."""
    conn = psycopg2.connect(resolve_dsn(db_cfg))
    conn.autocommit = False
    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()
