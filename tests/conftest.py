import copy
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from gymdesk.services.dashboard.repository import DashboardRepository

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)  # a Monday


class FakeQuery:
    """Just enough of the supabase-py table query builder for the repository."""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.filters = []
        self.order_by = None
        self.limit_n = None

    def select(self, columns="*", **kwargs):
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) >= value)
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) <= value)
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def execute(self):
        self.client.calls.append(("table", self.table))
        if self.table in self.client.failing_tables:
            raise RuntimeError(f"{self.table} unavailable")
        rows = [copy.deepcopy(r) for r in self.client.tables.get(self.table, []) if all(f(r) for f in self.filters)]
        if self.order_by:
            column, desc = self.order_by
            rows.sort(key=lambda r: r.get(column) or "", reverse=desc)
        if self.limit_n is not None:
            rows = rows[: self.limit_n]
        return SimpleNamespace(data=rows)


class FakeRpc:
    def __init__(self, client, name, params):
        self.client = client
        self.name = name
        self.params = params

    def execute(self):
        self.client.calls.append(("rpc", self.name, dict(self.params)))
        branch_id = self.params.get("p_branch")
        if branch_id in self.client.failing_pnl:
            raise RuntimeError(f"get_branch_pnl failed for {branch_id}")
        start, end = self.params.get("p_start"), self.params.get("p_end")
        rows = [
            r for r in self.client.pnl.get(branch_id, [])
            if (start is None or r["day"] >= start) and (end is None or r["day"] <= end)
        ]
        return SimpleNamespace(data=copy.deepcopy(rows))


class FakeAuth:
    def __init__(self, client):
        self.client = client

    def get_user(self, token):
        user = self.client.users.get(token)
        if user is None:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=user)


class FakeSupabase:
    def __init__(self):
        self.tables = {"branches": [], "members": [], "payments": []}
        self.pnl = {}
        self.users = {}
        self.failing_tables = set()
        self.failing_pnl = set()
        self.calls = []
        self.auth = FakeAuth(self)

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params):
        return FakeRpc(self, name, params)

    # --- seeding helpers ---
    def add_branch(self, id, name, gym_id="gym-1", status="active", **extra):
        row = {"id": id, "gym_id": gym_id, "name": name, "status": status, **extra}
        self.tables["branches"].append(row)
        return row

    def add_member(self, id, branch_id=None, gym_id="gym-1", start=None, end=None, created_at="2026-01-01T09:00:00+00:00"):
        row = {
            "id": id,
            "gym_id": gym_id,
            "branch_id": branch_id,
            "full_name": f"Member {id}",
            "membership_start_date": start,
            "membership_end_date": end,
            "created_at": created_at,
        }
        self.tables["members"].append(row)
        return row

    def add_payment(self, id, branch_id, amount, created_at, status="completed"):
        row = {"id": id, "branch_id": branch_id, "amount": amount, "status": status, "created_at": created_at}
        self.tables["payments"].append(row)
        return row

    def add_pnl(self, branch_id, day, income, expense):
        self.pnl.setdefault(branch_id, []).append(
            {"branch_id": branch_id, "day": day, "total_income": income, "total_expense": expense, "net_profit": None}
        )

    def add_user(self, token, **metadata):
        self.users[token] = SimpleNamespace(id=f"user-{token}", email=f"{token}@example.com", user_metadata=metadata)


@pytest.fixture
def sb():
    return FakeSupabase()


@pytest.fixture
def repo(sb):
    return DashboardRepository(sb)


@pytest.fixture
def now():
    return NOW
