"""
Gym (tenant) dashboard aggregation.

Pipeline:
- resolve the tenant's active branches (fatal on failure)
- preload every tenant member once and group by branch (best effort)
- fan out the all-time P&L query per branch, join, aggregate each branch
- roll the branch aggregates up into the tenant summary

No HTTP here. Routes resolve the gym id from the session and pass it in.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from datetime import date, datetime, tzinfo
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from gymdesk.services.core_service import InvalidInput
from gymdesk.services.dashboard.models import (
    ZERO,
    BranchDashboardData,
    BranchRecord,
    GymDashboardData,
    GymDashboardSummary,
    MemberRecord,
    PnlRow,
)
from gymdesk.services.dashboard.repository import DashboardRepository
from gymdesk.services.dashboard.windows import resolve_now

log = logging.getLogger("gymdesk.dashboard")

UNASSIGNED = "__unassigned__"

PnlResult = Union[List[PnlRow], BaseException]


def group_members_by_branch(members: Iterable[MemberRecord]) -> Dict[str, List[MemberRecord]]:
    grouped: Dict[str, List[MemberRecord]] = defaultdict(list)
    for m in members:
        grouped[m.branch_id or UNASSIGNED].append(m)
    return dict(grouped)


def sum_pnl(rows: Iterable[PnlRow]) -> Tuple[Decimal, Decimal]:
    income = ZERO
    expense = ZERO
    for r in rows:
        income += r.total_income
        expense += r.total_expense
    return income, expense


def aggregate_branch(
    branch: BranchRecord,
    members: Sequence[MemberRecord],
    pnl_rows: Iterable[PnlRow],
    today: date,
) -> BranchDashboardData:
    """
    One branch's figures.

    active_members here counts every member whose membership has not
    expired, including memberships that start in the future.
    """
    income, expense = sum_pnl(pnl_rows)
    return BranchDashboardData(
        branch=branch,
        total_income=income,
        total_expenses=expense,
        member_count=len(members),
        active_members=sum(1 for m in members if m.is_unexpired(today)),
    )


def summarize(
    branches: Sequence[BranchDashboardData],
    members: Sequence[MemberRecord],
    today: date,
) -> GymDashboardSummary:
    """
    Tenant-wide rollup.

    Money totals are branch sums. Member totals are taken from the full
    tenant member list (so unassigned members are included) and use the
    stricter started-and-not-expired rule.
    """
    total_income = sum((b.total_income for b in branches), ZERO)
    total_expenses = sum((b.total_expenses for b in branches), ZERO)
    total_profit = sum((b.net_profit for b in branches), ZERO)
    return GymDashboardSummary(
        total_branches=len(branches),
        total_income=total_income,
        total_expenses=total_expenses,
        total_profit=total_profit,
        total_members=len(members),
        active_members=sum(1 for m in members if m.is_active_on(today)),
    )


async def fetch_branch_pnl(repo: DashboardRepository, branch_ids: Sequence[str]) -> List[PnlResult]:
    """All-time P&L per branch, fetched concurrently; failures come back as the exception."""
    return await asyncio.gather(
        *(asyncio.to_thread(repo.get_branch_pnl, bid, None, None) for bid in branch_ids),
        return_exceptions=True,
    )


async def build_gym_dashboard(
    repo: DashboardRepository,
    gym_id: Optional[str],
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> Optional[GymDashboardData]:
    """
    Returns None when the branch list cannot be read. Member and per-branch
    P&L failures are logged and degrade to empty / zero values.
    """
    if not gym_id:
        raise InvalidInput("gym_id is required")

    today = resolve_now(now, tz).date()

    try:
        branches = await asyncio.to_thread(repo.list_active_branches, gym_id)
    except Exception:
        log.exception("Failed to list branches for gym_id=%s", gym_id)
        return None

    if not branches:
        return GymDashboardData.empty()

    try:
        members = await asyncio.to_thread(repo.list_gym_members, gym_id)
    except Exception as e:
        log.warning("Failed to list members for gym_id=%s, continuing without members: %s", gym_id, e)
        members = []

    by_branch = group_members_by_branch(members)
    pnl_results = await fetch_branch_pnl(repo, [b.id for b in branches])

    aggregates: List[BranchDashboardData] = []
    for branch, result in zip(branches, pnl_results):
        if isinstance(result, BaseException):
            log.warning("P&L query failed for branch_id=%s, reporting zero financials: %s", branch.id, result)
            rows: List[PnlRow] = []
        else:
            rows = result
        aggregates.append(aggregate_branch(branch, by_branch.get(branch.id, []), rows, today))

    return GymDashboardData(branches=aggregates, summary=summarize(aggregates, members, today))
