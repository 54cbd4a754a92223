"""
Opaque feed cursors.

A cursor is URL-safe base64 over a small JSON object that always carries the
sort it was issued for:

- recent: ``{"sort": "recent", "created_at": <iso>, "seen": [ids]}``; the next
  page starts at ``created_at`` and skips the ids already returned with that
  exact timestamp, so posts sharing a timestamp are neither lost nor repeated.
- popular: ``{"sort": "popular", "offset": <int>}``; like counts move while
  scrolling, so this order is paged by position.
"""

import base64
import json
from fastapi import HTTPException
from typing import Any, Dict, Iterable, List, Optional


def encode_cursor(sort: str, **payload: Any) -> str:
    raw = json.dumps({"sort": sort, **payload}, separators=(",", ":"), default=str)
    return base64.urlsafe_b64encode(raw.encode()).decode().rstrip("=")


def decode_cursor(cursor: Optional[str], sort: str) -> Optional[Dict[str, Any]]:
    """Decode a cursor issued for sort. None means first page."""
    if not cursor:
        return None
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded.encode()).decode())
    except (ValueError, UnicodeDecodeError):
        raise HTTPException(status_code=400, detail="Invalid cursor")
    if not isinstance(payload, dict) or "sort" not in payload:
        raise HTTPException(status_code=400, detail="Invalid cursor")
    if payload["sort"] != sort:
        raise HTTPException(
            status_code=400,
            detail=f"Cursor was issued for the '{payload['sort']}' feed, not '{sort}'"
        )
    return payload


def post_key(post: Any) -> tuple:
    if isinstance(post, dict):
        return post["event_id"], post["id"]
    return post.event_id, post.id


def merge_pages(existing: Iterable[Any], incoming: Iterable[Any]) -> List[Any]:
    """Append incoming posts to existing ones, keyed by (event_id, id).

    A post already present is replaced in place by its newer copy, so refreshed
    like counts win without moving the post.
    """
    merged: Dict[tuple, Any] = {}
    for post in existing:
        merged[post_key(post)] = post
    for post in incoming:
        merged[post_key(post)] = post
    return list(merged.values())
