"""In-memory stand-in for the Supabase client's PostgREST query builder.

Implements only the builder calls the services make, with Postgres-like
defaults for the box drop schema, so lifecycle tests can assert on stored
state instead of mock call shapes.
"""

import copy
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional


@dataclass
class FakeResponse:
    data: list
    count: Optional[int] = None


def _table_defaults(table: str) -> dict:
    now = datetime.now(timezone.utc).isoformat()
    if table == "realtors":
        return {
            "last_name": None, "email": None, "phone": None, "company": None,
            "total_drops": 0, "total_conversions": 0,
            "created_at": now, "updated_at": now,
        }
    if table == "box_drops":
        return {
            "realtor_id": None, "homeowner_name": None, "homeowner_email": None,
            "homeowner_phone": None, "listing_status": "new_listing",
            "campaign_source": None, "status": "requested",
            "requested_date": date.today().isoformat(), "scheduled_date": None,
            "delivered_date": None, "delivery_notes": None,
            "followup_email_homeowner": False, "followup_email_realtor": False,
            "followup_text_homeowner": False, "followup_call_homeowner": False,
            "quote_requested": False, "booked": False, "revenue": None,
            "notes": None, "created_at": now, "updated_at": now,
        }
    if table in ("follow_up_templates", "automation_log"):
        return {"created_at": now}
    return {}


def _sort_key(value: Any):
    # NULLs sort last, as in Postgres ascending order
    return (value is None, value if value is not None else 0)


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.action = "select"
        self.columns: tuple = ("*",)
        self.count_mode: Optional[str] = None
        self.payload: Any = None
        self.filters: list[Callable[[dict], bool]] = []
        self.orders: list[tuple[str, bool]] = []
        self.row_range: Optional[tuple[int, int]] = None
        self.row_limit: Optional[int] = None

    # Actions

    def select(self, *columns, count=None):
        self.action = "select"
        self.columns = columns or ("*",)
        self.count_mode = count
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.action = "update"
        self.payload = payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    # Filters

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def is_(self, column, value):
        if value in ("null", None):
            self.filters.append(lambda row: row.get(column) is None)
        else:
            self.filters.append(lambda row: row.get(column) is value)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and str(row.get(column)) >= str(value))
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and str(row.get(column)) <= str(value))
        return self

    # Modifiers

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def range(self, start, end):
        self.row_range = (start, end)
        return self

    def limit(self, n):
        self.row_limit = n
        return self

    # Execution

    def _matching(self) -> list[dict]:
        rows = self.db.tables.setdefault(self.table, [])
        return [row for row in rows if all(f(row) for f in self.filters)]

    def _project(self, row: dict) -> dict:
        if "*" in self.columns:
            return copy.deepcopy(row)
        wanted = [c.strip() for col in self.columns for c in col.split(",")]
        return {c: copy.deepcopy(row.get(c)) for c in wanted}

    def execute(self) -> FakeResponse:
        self.db.executed.append((self.table, self.action))
        if self.table in self.db.fail_tables:
            raise RuntimeError(f"connection refused for {self.table}")

        if self.action == "insert":
            payloads = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for payload in payloads:
                row = {"id": self.db.next_id(self.table), **_table_defaults(self.table)}
                row.update(copy.deepcopy(payload))
                self.db.tables.setdefault(self.table, []).append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResponse(data=inserted)

        if self.action == "update":
            updated = []
            for row in self._matching():
                row.update(copy.deepcopy(self.payload))
                updated.append(copy.deepcopy(row))
            return FakeResponse(data=updated)

        if self.action == "delete":
            doomed = self._matching()
            self.db.tables[self.table] = [r for r in self.db.tables.get(self.table, []) if r not in doomed]
            return FakeResponse(data=[copy.deepcopy(r) for r in doomed])

        rows = self._matching()
        for column, desc in reversed(self.orders):
            rows = sorted(rows, key=lambda r: _sort_key(r.get(column)), reverse=desc)
        total = len(rows)
        if self.row_range is not None:
            start, end = self.row_range
            rows = rows[start:end + 1]
        if self.row_limit is not None:
            rows = rows[:self.row_limit]
        if self.db.max_rows is not None:
            rows = rows[:self.db.max_rows]
        return FakeResponse(
            data=[self._project(r) for r in rows],
            count=total if self.count_mode else None,
        )


class FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params: dict):
        self.db = db
        self.name = name
        self.params = params

    def execute(self) -> FakeResponse:
        self.db.rpc_calls.append((self.name, self.params))
        function = self.db.functions.get(self.name)
        if function is None:
            raise RuntimeError(f"Could not find the function public.{self.name}")
        return FakeResponse(data=function(self.db, **self.params))


class FakeSupabase:
    """Tables are plain lists of dicts; ids are assigned per table from 1."""

    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.functions: dict[str, Callable] = {}
        self.fail_tables: set[str] = set()
        self.executed: list[tuple[str, str]] = []
        self.rpc_calls: list[tuple[str, dict]] = []
        # Server-side cap on rows per select response, like PostgREST max_rows
        self.max_rows: Optional[int] = None
        self._ids: dict[str, int] = {}

    def next_id(self, table: str) -> int:
        self._ids[table] = self._ids.get(table, 0) + 1
        return self._ids[table]

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict) -> FakeRpc:
        return FakeRpc(self, name, params)

    def seed(self, table: str, *rows: dict) -> list[dict]:
        """Insert rows through the same defaults path as the services."""
        return [self.table(table).insert(dict(row)).execute().data[0] for row in rows]

    def row(self, table: str, row_id: int) -> Optional[dict]:
        return next((r for r in self.tables.get(table, []) if r["id"] == row_id), None)


def install_counter_function(db: FakeSupabase) -> None:
    """Register increment_realtor_counter as the database would define it."""
    def increment(db: FakeSupabase, p_realtor_id: int, p_counter: str):
        row = db.row("realtors", p_realtor_id)
        if row is not None:
            row[p_counter] = row.get(p_counter, 0) + 1
        return []
    db.functions["increment_realtor_counter"] = increment
