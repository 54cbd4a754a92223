"""
Optimistic concurrency for array fields held in Supabase rows.

Rows that carry membership arrays (events, posts, user_profiles) have a
``version`` integer. A mutation reads the row, computes the new field values
from that snapshot and writes them only where ``version`` is unchanged; a
concurrent writer makes the guarded update match no rows, in which case the
row is read again and the mutation re-applied.
"""

from fastapi import HTTPException
from supabase import Client
from typing import Any, Callable, Dict, List, Optional
import logging

from app.config import settings

logger = logging.getLogger(__name__)

Mutation = Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]


def fetch_row(supabase: Client, table: str, row_id: str) -> Optional[Dict[str, Any]]:
    result = supabase.table(table)\
        .select("*")\
        .eq("id", row_id)\
        .maybe_single()\
        .execute()
    if not result or not result.data:
        return None
    return result.data


def optimistic_update(
    supabase: Client,
    table: str,
    row_id: str,
    mutate: Mutation,
    not_found: str = "Not found",
    attempts: Optional[int] = None,
) -> Dict[str, Any]:
    """Apply mutate(row) to a row guarded by its version column.

    mutate returns the changed fields, or None/{} when the row already has the
    desired state, in which case nothing is written. It may raise HTTPException
    to reject the mutation. Returns the row as stored after the update.
    """
    attempts = attempts or settings.optimistic_update_attempts
    for attempt in range(1, attempts + 1):
        row = fetch_row(supabase, table, row_id)
        if row is None:
            raise HTTPException(status_code=404, detail=not_found)
        changes = mutate(row)
        if not changes:
            return row
        version = row.get("version") or 0
        result = supabase.table(table)\
            .update({**changes, "version": version + 1})\
            .eq("id", row_id)\
            .eq("version", version)\
            .execute()
        if result.data:
            return result.data[0]
        logger.info(f"Version conflict on {table}/{row_id} (attempt {attempt}/{attempts})")
    raise HTTPException(status_code=409, detail="The record was modified concurrently, please retry")


def with_item(items: Optional[List[str]], item: str) -> List[str]:
    """Return a copy of items that contains item exactly once"""
    items = list(items or [])
    if item not in items:
        items.append(item)
    return items


def without_item(items: Optional[List[str]], item: str) -> List[str]:
    return [i for i in (items or []) if i != item]
