"""
Dialect-aware ``INSERT .. ON CONFLICT`` construction.

PostgreSQL and SQLite both expose ``on_conflict_do_update`` on their own
``insert()``; pick the one matching the session's engine.
"""

from __future__ import annotations

from sqlalchemy import Table
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

UpsertInsert = postgresql.Insert | sqlite.Insert

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def dialect_insert(db: AsyncSession, table: Table) -> UpsertInsert:
    name = db.get_bind().dialect.name
    try:
        insert = _INSERTS[name]
    except KeyError:
        raise NotImplementedError(f"Upsert is not supported on {name}") from None
    return insert(table)
