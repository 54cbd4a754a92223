"""
Shared fixtures: an in-memory stand-in for the supabase client and a
TestClient wired to it through FastAPI dependency overrides.
"""

import copy
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import get_current_user, get_optional_user
from app.database.supabase_client import get_supabase
from app.main import app
from app.modules.event_wizard import image_search

Row = Dict[str, Any]

_BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _split_top_level(expr: str) -> List[str]:
    """Split a PostgREST or() expression on commas outside () and {}"""
    parts, depth, current = [], 0, ""
    for char in expr:
        if char in "({":
            depth += 1
        elif char in ")}":
            depth -= 1
        if char == "," and depth == 0:
            parts.append(current)
            current = ""
        else:
            current += char
    if current:
        parts.append(current)
    return parts


def _like(pattern: str) -> "re.Pattern":
    return re.compile("^" + ".*".join(re.escape(p) for p in pattern.split("%")) + "$", re.IGNORECASE | re.DOTALL)


def _condition(part: str) -> Callable[[Row], bool]:
    column, op, value = part.split(".", 2)
    if op == "eq":
        return lambda row: str(row.get(column)) == value
    if op == "cs":
        wanted = [v for v in value.strip("{}").split(",") if v]
        return lambda row: all(v in (row.get(column) or []) for v in wanted)
    if op == "in":
        allowed = [v for v in value.strip("()").split(",") if v]
        return lambda row: str(row.get(column)) in allowed
    if op == "ilike":
        pattern = _like(value)
        return lambda row: bool(pattern.match(str(row.get(column) or "")))
    raise NotImplementedError(f"or_ operator {op}")


class FakeResponse:
    def __init__(self, data: Any):
        self.data = data
        self.count = len(data) if isinstance(data, list) else None


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.operation = "select"
        self.payload: Any = None
        self.filters: List[Callable[[Row], bool]] = []
        self.orders: List[tuple] = []
        self._limit: Optional[int] = None
        self._offset = 0
        self._single: Optional[str] = None

    # operations
    def select(self, *columns, **kwargs):
        self.operation = "select"
        return self

    def insert(self, data):
        self.operation, self.payload = "insert", data
        return self

    def update(self, data):
        self.operation, self.payload = "update", data
        return self

    def delete(self):
        self.operation = "delete"
        return self

    # filters
    def _filter(self, predicate: Callable[[Row], bool]):
        self.filters.append(predicate)
        return self

    def eq(self, column, value):
        return self._filter(lambda row: row.get(column) == value)

    def neq(self, column, value):
        return self._filter(lambda row: row.get(column) != value)

    def in_(self, column, values):
        values = list(values)
        return self._filter(lambda row: row.get(column) in values)

    def contains(self, column, values):
        return self._filter(lambda row: all(v in (row.get(column) or []) for v in values))

    def gt(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row.get(column) > value)

    def gte(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row.get(column) >= value)

    def lt(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row.get(column) < value)

    def lte(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row.get(column) <= value)

    def ilike(self, column, pattern):
        regex = _like(pattern)
        return self._filter(lambda row: bool(regex.match(str(row.get(column) or ""))))

    def or_(self, expr):
        conditions = [_condition(part) for part in _split_top_level(expr)]
        return self._filter(lambda row: any(condition(row) for condition in conditions))

    # modifiers
    def order(self, column, desc=False, **kwargs):
        self.orders.append((column, desc))
        return self

    def limit(self, count):
        self._limit = count
        return self

    def offset(self, count):
        self._offset = count
        return self

    def range(self, start, end):
        self._offset, self._limit = start, end - start + 1
        return self

    def maybe_single(self):
        self._single = "maybe"
        return self

    def single(self):
        self._single = "single"
        return self

    def _matching(self) -> List[Row]:
        return [row for row in self.db.tables.setdefault(self.table_name, [])
                if all(f(row) for f in self.filters)]

    def execute(self) -> Optional[FakeResponse]:
        self.db.check_failure(self.table_name, self.operation)
        rows = self.db.tables.setdefault(self.table_name, [])
        if self.operation == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            created = [self.db.new_row(item) for item in items]
            rows.extend(created)
            return FakeResponse(copy.deepcopy(created))
        if self.operation == "update":
            matched = self._matching()
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return FakeResponse(copy.deepcopy(matched))
        if self.operation == "delete":
            matched = self._matching()
            self.db.tables[self.table_name] = [row for row in rows if row not in matched]
            return FakeResponse(copy.deepcopy(matched))

        result = copy.deepcopy(self._matching())
        for column, desc in reversed(self.orders):
            result.sort(key=lambda row: (row.get(column) is None, row.get(column)), reverse=desc)
        result = result[self._offset:]
        if self._limit is not None:
            result = result[:self._limit]
        if self._single == "maybe":
            return FakeResponse(result[0]) if result else None
        if self._single == "single":
            if len(result) != 1:
                raise Exception("JSON object requested, multiple (or no) rows returned")
            return FakeResponse(result[0])
        return FakeResponse(result)


class FakeSupabase:
    """Just enough of supabase.Client for the services: tables, plus mocked auth and storage"""

    def __init__(self):
        self.tables: Dict[str, List[Row]] = {}
        self.failures: Dict[tuple, Exception] = {}
        self._clock = 0
        self.auth = MagicMock()
        self.storage = MagicMock()
        bucket = self.storage.from_.return_value
        bucket.get_public_url.side_effect = lambda key: f"https://storage.test/{key}"

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def now(self) -> str:
        self._clock += 1
        return (_BASE_TIME + timedelta(seconds=self._clock)).isoformat()

    def new_row(self, item: Row) -> Row:
        row = copy.deepcopy(item)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("version", 0)
        if not row.get("created_at"):
            row["created_at"] = self.now()
        return row

    def seed(self, table: str, **fields) -> Row:
        row = self.new_row(fields)
        self.tables.setdefault(table, []).append(row)
        return row

    def rows(self, table: str, **match) -> List[Row]:
        return [row for row in self.tables.get(table, [])
                if all(row.get(k) == v for k, v in match.items())]

    def get(self, table: str, row_id: str) -> Optional[Row]:
        found = self.rows(table, id=row_id)
        return found[0] if found else None

    def fail_on(self, table: str, operation: str, error: Optional[Exception] = None) -> None:
        self.failures[(table, operation)] = error or Exception(f"{operation} on {table} failed")

    def check_failure(self, table: str, operation: str) -> None:
        error = self.failures.get((table, operation))
        if error is not None:
            raise error


def make_user(user_id: str, email: Optional[str] = None) -> Dict[str, Any]:
    return {"id": user_id, "email": email or f"{user_id}@example.com", "user_metadata": {}, "app_metadata": {}}


def seed_profile(db: FakeSupabase, user_id: str, **fields) -> Row:
    fields.setdefault("display_name", user_id.capitalize())
    fields.setdefault("email", f"{user_id}@example.com")
    fields.setdefault("followers", [])
    fields.setdefault("following", [])
    return db.seed("user_profiles", id=user_id, **fields)


def seed_event(db: FakeSupabase, owner_id: str = "owner", **fields) -> Row:
    fields.setdefault("title", "Launch Party")
    fields.setdefault("date", "2099-06-01")
    fields.setdefault("location", "Berlin")
    fields.setdefault("description", "")
    fields.setdefault("category", "General")
    fields.setdefault("visibility", "public")
    fields.setdefault("creator_name", owner_id.capitalize())
    fields.setdefault("organizers", [owner_id])
    fields.setdefault("invited_users", [])
    fields.setdefault("pending_invites", [])
    fields.setdefault("image", None)
    fields.setdefault("service", None)
    fields.setdefault("invite_link", f"https://eventify.com/invite/{uuid.uuid4().hex}")
    fields.setdefault("archived", False)
    return db.seed("events", user_id=owner_id, **fields)


def seed_post(db: FakeSupabase, event: Row, author_id: str, **fields) -> Row:
    fields.setdefault("media_url", "https://storage.test/posts/photo.jpg")
    fields.setdefault("media_key", None)
    fields.setdefault("type", "photo")
    fields.setdefault("visibility", event["visibility"])
    fields.setdefault("likes", [])
    fields.setdefault("like_count", len(fields["likes"]))
    fields.setdefault("comments", [])
    return db.seed("posts", event_id=event["id"], user_id=author_id, **fields)


@pytest.fixture
def db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture(autouse=True)
def _reset_image_cache():
    image_search.clear_cache()
    yield
    image_search.clear_cache()


class ApiClient:
    """TestClient whose caller can be switched between users"""

    def __init__(self, db: FakeSupabase):
        self.db = db
        self.current: Optional[Dict[str, Any]] = None
        app.state.limiter.enabled = False
        app.dependency_overrides[get_supabase] = lambda: db
        app.dependency_overrides[get_current_user] = self._current_user
        app.dependency_overrides[get_optional_user] = lambda: self.current
        self.http = TestClient(app)

    def _current_user(self) -> Dict[str, Any]:
        if self.current is None:
            from fastapi import HTTPException
            raise HTTPException(status_code=401, detail="Not authenticated")
        return self.current

    def as_user(self, user_id: Optional[str]) -> "ApiClient":
        self.current = make_user(user_id) if user_id else None
        return self

    def __getattr__(self, name):
        return getattr(self.http, name)


@pytest.fixture
def client(db):
    api = ApiClient(db)
    yield api
    app.dependency_overrides.clear()
