"""
Single-branch dashboard for branch admins and receptionists.

Same per-branch rules as the gym dashboard (the P&L RPC for money, the
end-date-only rule for active members), plus the "today" / "this week"
activity counters.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, tzinfo
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from gymdesk.services.core_service import InvalidInput
from gymdesk.services.dashboard.gym_dashboard import sum_pnl
from gymdesk.services.dashboard.models import (
    ZERO,
    BranchFinancials,
    BranchOverview,
    MemberRecord,
    PaymentRecord,
    PnlRow,
    RecentActivity,
)
from gymdesk.services.dashboard.repository import DashboardRepository
from gymdesk.services.dashboard.windows import local_date, resolve_now, start_of_day, start_of_week

log = logging.getLogger("gymdesk.dashboard")


def _income_between(rows: Iterable[PnlRow], first: date, last: date) -> Decimal:
    return sum((r.total_income for r in rows if r.day is not None and first <= r.day <= last), ZERO)


def branch_financials(rows: Sequence[PnlRow], today: date) -> BranchFinancials:
    income, expense = sum_pnl(rows)
    return BranchFinancials(
        total_income=income,
        total_expenses=expense,
        monthly_revenue=_income_between(rows, today.replace(day=1), today),
        year_revenue=_income_between(rows, today.replace(month=1, day=1), today),
    )


def recent_activity(
    members: Sequence[MemberRecord],
    payments: Sequence[PaymentRecord],
    pnl_rows: Sequence[PnlRow],
    today: date,
    tz: tzinfo,
    week_start: int = 0,
) -> RecentActivity:
    week_first = start_of_week(today, week_start)

    joined = [local_date(m.created_at, tz) for m in members]
    new_today = sum(1 for d in joined if d == today)
    new_this_week = sum(1 for d in joined if d is not None and week_first <= d <= today)

    todays_income = sum(
        (p.amount for p in payments if p.is_settled and local_date(p.created_at, tz) == today),
        ZERO,
    )
    todays_expenses = sum((r.total_expense for r in pnl_rows if r.day == today), ZERO)

    return RecentActivity(
        new_members_today=new_today,
        new_members_this_week=new_this_week,
        todays_income=todays_income,
        todays_expenses=todays_expenses,
    )


async def build_branch_dashboard(
    repo: DashboardRepository,
    branch_id: Optional[str],
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
    week_start: int = 0,
) -> Optional[BranchOverview]:
    """
    Returns None when the branch itself cannot be read or does not exist.
    P&L, member and payment failures degrade to zero / empty.
    """
    if not branch_id:
        raise InvalidInput("branch_id is required")

    current = resolve_now(now, tz)
    tz = current.tzinfo
    today = current.date()

    try:
        branch = await asyncio.to_thread(repo.get_branch, branch_id)
    except Exception:
        log.exception("Failed to load branch_id=%s", branch_id)
        return None
    if branch is None:
        log.warning("Branch not found: branch_id=%s", branch_id)
        return None

    pnl, members, payments = await asyncio.gather(
        asyncio.to_thread(repo.get_branch_pnl, branch_id, None, None),
        asyncio.to_thread(repo.list_branch_members, branch_id),
        asyncio.to_thread(repo.list_branch_payments, branch_id, since=start_of_day(today, tz)),
        return_exceptions=True,
    )

    pnl_rows: List[PnlRow] = [] if _failed(pnl, "P&L", branch_id) else pnl
    member_rows: List[MemberRecord] = [] if _failed(members, "members", branch_id) else members
    payment_rows: List[PaymentRecord] = [] if _failed(payments, "payments", branch_id) else payments

    return BranchOverview(
        branch=branch,
        financials=branch_financials(pnl_rows, today),
        total_members=len(member_rows),
        active_members=sum(1 for m in member_rows if m.is_unexpired(today)),
        recent_activity=recent_activity(member_rows, payment_rows, pnl_rows, today, tz, week_start),
    )


def _failed(result, what: str, branch_id: str) -> bool:
    if isinstance(result, BaseException):
        log.warning("Failed to load %s for branch_id=%s, using empty data: %s", what, branch_id, result)
        return True
    return False
