"""
Dashboard Repository (Supabase/Postgres Adapter)
================================================

Read-only adapter over the tables and RPC the dashboards aggregate.
Designed around the supabase-py query builder; every method returns
normalized records from `models`, never raw rows.

Expected objects:
1) public.branches
   - id uuid, gym_id uuid, name text, address text, phone text,
     manager_name text, status text ('active' | 'inactive'),
     member_capacity int null

2) public.members
   - id uuid, gym_id uuid, branch_id uuid null,
     membership_start_date date null, membership_end_date date null,
     created_at timestamptz

3) public.payments
   - id uuid, branch_id uuid, amount numeric,
     status text ('pending' | 'completed' | 'failed' | 'refunded'),
     created_at timestamptz

4) public.get_branch_pnl(p_branch uuid, p_start date, p_end date)
   - returns rows (branch_id, day, total_income, total_expense, net_profit);
     null bounds mean "all time"

Errors from PostgREST are not caught here. Callers decide which failures
are fatal and which degrade to empty data.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from gymdesk.services.dashboard.models import BranchRecord, MemberRecord, PaymentRecord, PnlRow

BRANCH_COLUMNS = "id, gym_id, name, address, phone, manager_name, status"
MEMBER_COLUMNS = "id, branch_id, membership_start_date, membership_end_date, created_at"
PAYMENT_COLUMNS = "id, amount, status, created_at"
MEMBER_SAMPLE_COLUMNS = "id, full_name, membership_start_date, membership_end_date, branch_id, created_at"


def _rows(result: Any) -> List[Dict[str, Any]]:
    data = getattr(result, "data", None) or []
    if isinstance(data, dict):
        data = [data]
    return [r for r in data if isinstance(r, dict)]


class DashboardRepository:
    def __init__(
        self,
        supabase_client: Any,
        *,
        table_branches: str = "branches",
        table_members: str = "members",
        table_payments: str = "payments",
        pnl_function: str = "get_branch_pnl",
    ) -> None:
        self.sb = supabase_client
        self.table_branches = table_branches
        self.table_members = table_members
        self.table_payments = table_payments
        self.pnl_function = pnl_function

    # -----------------------------
    # Branches
    # -----------------------------
    def list_active_branches(self, gym_id: str) -> List[BranchRecord]:
        r = (
            self.sb.table(self.table_branches)
            .select(BRANCH_COLUMNS)
            .eq("gym_id", gym_id)
            .eq("status", "active")
            .order("name")
            .execute()
        )
        return [BranchRecord.from_row(row) for row in _rows(r)]

    def list_branch_ids(self, gym_id: str) -> List[str]:
        r = self.sb.table(self.table_branches).select("id").eq("gym_id", gym_id).execute()
        return [str(row["id"]) for row in _rows(r) if row.get("id")]

    def get_branch_row(self, branch_id: str) -> Optional[Dict[str, Any]]:
        r = self.sb.table(self.table_branches).select("*").eq("id", branch_id).limit(1).execute()
        rows = _rows(r)
        return rows[0] if rows else None

    def get_branch(self, branch_id: str) -> Optional[BranchRecord]:
        row = self.get_branch_row(branch_id)
        return BranchRecord.from_row(row) if row else None

    # -----------------------------
    # Members
    # -----------------------------
    def list_gym_members(self, gym_id: str) -> List[MemberRecord]:
        r = self.sb.table(self.table_members).select(MEMBER_COLUMNS).eq("gym_id", gym_id).execute()
        return [MemberRecord.from_row(row) for row in _rows(r)]

    def list_branch_members(self, branch_id: str) -> List[MemberRecord]:
        r = self.sb.table(self.table_members).select(MEMBER_COLUMNS).eq("branch_id", branch_id).execute()
        return [MemberRecord.from_row(row) for row in _rows(r)]

    def sample_members(self, *, gym_id: Optional[str] = None, branch_id: Optional[str] = None, limit: int = 20) -> List[Dict[str, Any]]:
        """Most recent raw member rows, for the dashboard debug view."""
        q = self.sb.table(self.table_members).select(MEMBER_SAMPLE_COLUMNS)
        if gym_id:
            q = q.eq("gym_id", gym_id)
        if branch_id:
            q = q.eq("branch_id", branch_id)
        r = q.order("created_at", desc=True).limit(limit).execute()
        return _rows(r)

    # -----------------------------
    # Payments
    # -----------------------------
    def list_branch_payments(
        self,
        branch_id: str,
        *,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[PaymentRecord]:
        q = self.sb.table(self.table_payments).select(PAYMENT_COLUMNS).eq("branch_id", branch_id)
        if since is not None:
            q = q.gte("created_at", since.isoformat())
        if until is not None:
            q = q.lte("created_at", until.isoformat())
        r = q.execute()
        return [PaymentRecord.from_row(row) for row in _rows(r)]

    def sample_payments(self, branch_id: str, limit: int = 20) -> List[Dict[str, Any]]:
        """Most recent raw payment rows for one branch, for the debug view."""
        r = (
            self.sb.table(self.table_payments)
            .select(PAYMENT_COLUMNS)
            .eq("branch_id", branch_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return _rows(r)

    # -----------------------------
    # Profit & loss
    # -----------------------------
    def get_branch_pnl(self, branch_id: str, start: Optional[date] = None, end: Optional[date] = None) -> List[PnlRow]:
        params = {
            "p_branch": branch_id,
            "p_start": start.isoformat() if start else None,
            "p_end": end.isoformat() if end else None,
        }
        r = self.sb.rpc(self.pnl_function, params).execute()
        return [PnlRow.from_row(row) for row in _rows(r)]
