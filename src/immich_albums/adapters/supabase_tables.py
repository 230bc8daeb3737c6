"""Table-wide helpers shared by the Supabase repositories."""

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from supabase import Client

PAGE_SIZE = 1000
INSERT_BATCH_SIZE = 500


def fetch_all(
    client: Client, table: str, order_by: str, desc: bool = False
) -> list[dict[str, Any]]:
    """Read every row of a table in ``PAGE_SIZE`` pages."""
    rows: list[dict[str, Any]] = []
    start = 0
    while True:
        response = (
            client.table(table)
            .select("*")
            .order(order_by, desc=desc)
            .range(start, start + PAGE_SIZE - 1)
            .execute()
        )
        page = response.data or []
        rows.extend(page)
        if len(page) < PAGE_SIZE:
            return rows
        start += PAGE_SIZE


def clear_table(client: Client, table: str, key: str, sentinel: object) -> None:
    """Delete every row; PostgREST refuses deletes without a filter."""
    client.table(table).delete().neq(key, sentinel).execute()


def insert_batches(
    client: Client, table: str, rows: Sequence[dict[str, Any]]
) -> list[dict[str, Any]]:
    """Insert rows in batches and return the stored rows."""
    stored: list[dict[str, Any]] = []
    for start in range(0, len(rows), INSERT_BATCH_SIZE):
        batch = list(rows[start : start + INSERT_BATCH_SIZE])
        response = client.table(table).insert(batch).execute()
        if not response.data:
            raise RuntimeError(f"Failed to insert rows into {table}")
        stored.extend(response.data)
    return stored


def parse_timestamp(value: str) -> datetime:
    """Parse a stored wall-clock timestamp into a naive datetime."""
    return datetime.fromisoformat(value).replace(tzinfo=None)
