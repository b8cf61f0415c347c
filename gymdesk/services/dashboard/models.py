"""
Dashboard Models
================

Fixed-shape records for everything the dashboard reads from Supabase, plus
the derived (never persisted) aggregates it returns.

Rows coming back from PostgREST are loosely typed dicts: numeric columns may
arrive as strings, ints or floats; dates as ISO strings or null. Every row is
normalized exactly once through the `from_row` constructors below, so the
aggregation code only ever does arithmetic on Decimal and compares real
date objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Union

ZERO = Decimal("0")

Number = Union[int, float]


def to_decimal(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    if not d.is_finite():
        return ZERO
    return d


def to_number(value: Decimal) -> Number:
    """JSON-friendly number: integral decimals become int, others float."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def parse_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if len(s) < 10:
        return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        return None


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parses a timestamp; naive values are taken as UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        s = str(value).strip()
        if not s:
            return None
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value)
    return s if s.strip() else None


def _opt_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# -----------------------------
# Raw records
# -----------------------------
@dataclass(frozen=True)
class BranchRecord:
    id: str
    name: str
    status: str = "active"
    gym_id: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    manager_name: Optional[str] = None
    member_capacity: Optional[int] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "BranchRecord":
        return cls(
            id=str(row.get("id")),
            name=str(row.get("name") or ""),
            status=str(row.get("status") or "active"),
            gym_id=_opt_str(row.get("gym_id")),
            address=_opt_str(row.get("address")),
            phone=_opt_str(row.get("phone")),
            manager_name=_opt_str(row.get("manager_name")),
            member_capacity=_opt_int(row.get("member_capacity")),
        )


@dataclass(frozen=True)
class MemberRecord:
    id: str
    branch_id: Optional[str] = None
    membership_start_date: Optional[date] = None
    membership_end_date: Optional[date] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "MemberRecord":
        return cls(
            id=str(row.get("id")),
            branch_id=_opt_str(row.get("branch_id")),
            membership_start_date=parse_date(row.get("membership_start_date")),
            membership_end_date=parse_date(row.get("membership_end_date")),
            created_at=parse_datetime(row.get("created_at")),
        )

    # The two rules below intentionally disagree on the start date.
    # Branch-level counts only look at expiry; tenant-wide counts also
    # exclude memberships that have not started yet. Both are relied on by
    # the dashboards as-is, do not merge them.
    def is_unexpired(self, today: date) -> bool:
        return self.membership_end_date is None or self.membership_end_date >= today

    def is_active_on(self, today: date) -> bool:
        start = self.membership_start_date
        return (start is None or start <= today) and self.is_unexpired(today)


@dataclass(frozen=True)
class PaymentRecord:
    id: str
    amount: Decimal = ZERO
    status: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "PaymentRecord":
        return cls(
            id=str(row.get("id")),
            amount=to_decimal(row.get("amount")),
            status=_opt_str(row.get("status")),
            created_at=parse_datetime(row.get("created_at")),
        )

    @property
    def is_settled(self) -> bool:
        return self.status is None or self.status == "completed"


@dataclass(frozen=True)
class PnlRow:
    day: Optional[date]
    total_income: Decimal = ZERO
    total_expense: Decimal = ZERO
    branch_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "PnlRow":
        return cls(
            day=parse_date(row.get("day")),
            total_income=to_decimal(row.get("total_income")),
            total_expense=to_decimal(row.get("total_expense")),
            branch_id=_opt_str(row.get("branch_id")),
        )


# -----------------------------
# Derived aggregates
# -----------------------------
@dataclass(frozen=True)
class BranchDashboardData:
    branch: BranchRecord
    total_income: Decimal
    total_expenses: Decimal
    member_count: int
    active_members: int

    @property
    def net_profit(self) -> Decimal:
        return self.total_income - self.total_expenses

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.branch.id,
            "name": self.branch.name,
            "address": self.branch.address,
            "phone": self.branch.phone,
            "manager_name": self.branch.manager_name,
            "status": self.branch.status,
            "total_income": to_number(self.total_income),
            "total_expenses": to_number(self.total_expenses),
            "net_profit": to_number(self.net_profit),
            "member_count": self.member_count,
            "active_members": self.active_members,
        }


@dataclass(frozen=True)
class GymDashboardSummary:
    total_branches: int = 0
    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO
    total_profit: Decimal = ZERO
    total_members: int = 0
    active_members: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_branches": self.total_branches,
            "total_income": to_number(self.total_income),
            "total_expenses": to_number(self.total_expenses),
            "total_profit": to_number(self.total_profit),
            "total_members": self.total_members,
            "active_members": self.active_members,
        }


@dataclass(frozen=True)
class GymDashboardData:
    branches: List[BranchDashboardData] = field(default_factory=list)
    summary: GymDashboardSummary = field(default_factory=GymDashboardSummary)

    @classmethod
    def empty(cls) -> "GymDashboardData":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "branches": [b.to_dict() for b in self.branches],
            "summary": self.summary.to_dict(),
        }


@dataclass(frozen=True)
class BranchFinancials:
    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO
    monthly_revenue: Decimal = ZERO
    year_revenue: Decimal = ZERO

    @property
    def net_profit(self) -> Decimal:
        return self.total_income - self.total_expenses

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_income": to_number(self.total_income),
            "total_expenses": to_number(self.total_expenses),
            "net_profit": to_number(self.net_profit),
            "monthly_revenue": to_number(self.monthly_revenue),
            "year_revenue": to_number(self.year_revenue),
        }


@dataclass(frozen=True)
class RecentActivity:
    new_members_today: int = 0
    new_members_this_week: int = 0
    todays_income: Decimal = ZERO
    todays_expenses: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "new_members_today": self.new_members_today,
            "new_members_this_week": self.new_members_this_week,
            "todays_income": to_number(self.todays_income),
            "todays_expenses": to_number(self.todays_expenses),
        }


@dataclass(frozen=True)
class BranchOverview:
    branch: BranchRecord
    financials: BranchFinancials
    total_members: int
    active_members: int
    recent_activity: RecentActivity

    @property
    def expired_members(self) -> int:
        return self.total_members - self.active_members

    def to_dict(self) -> Dict[str, Any]:
        return {
            "branch": {
                "id": self.branch.id,
                "name": self.branch.name,
                "address": self.branch.address,
                "phone": self.branch.phone,
                "manager_name": self.branch.manager_name,
                "status": self.branch.status,
                "member_capacity": self.branch.member_capacity,
            },
            "financials": self.financials.to_dict(),
            "members": {
                "total_members": self.total_members,
                "active_members": self.active_members,
                "expired_members": self.expired_members,
            },
            "recent_activity": self.recent_activity.to_dict(),
        }


@dataclass(frozen=True)
class RevenueSeries:
    labels: List[str] = field(default_factory=list)
    income: List[int] = field(default_factory=list)
    expense: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "labels": list(self.labels),
            "income": list(self.income),
            "expense": list(self.expense),
        }
