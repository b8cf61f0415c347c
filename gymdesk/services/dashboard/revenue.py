from __future__ import annotations

import asyncio
import logging
from datetime import datetime, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Tuple

from gymdesk.services.core_service import InvalidInput
from gymdesk.services.dashboard.gym_dashboard import sum_pnl
from gymdesk.services.dashboard.models import ZERO, RevenueSeries
from gymdesk.services.dashboard.repository import DashboardRepository
from gymdesk.services.dashboard.windows import MonthWindow, last_months, resolve_now

log = logging.getLogger("gymdesk.revenue")


def _round_whole(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def branch_month_totals(repo: DashboardRepository, branch_id: str, window: MonthWindow, tz: tzinfo) -> Tuple[Decimal, Decimal]:
    """
    Income and expense of one branch for one month.

    Falls back to summing raw payments (income only) when the P&L RPC is
    unavailable for the branch.
    """
    try:
        return sum_pnl(repo.get_branch_pnl(branch_id, window.start, window.end))
    except Exception as e:
        log.info("P&L unavailable for branch_id=%s month=%s, falling back to payments: %s", branch_id, window.key, e)

    since, until = window.bounds(tz)
    try:
        payments = repo.list_branch_payments(branch_id, since=since, until=until)
    except Exception as e:
        log.warning("Payments fallback failed for branch_id=%s month=%s: %s", branch_id, window.key, e)
        return ZERO, ZERO
    return sum((p.amount for p in payments), ZERO), ZERO


async def build_revenue_series(
    repo: DashboardRepository,
    gym_id: Optional[str],
    *,
    months: int = 12,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> Optional[RevenueSeries]:
    if not gym_id:
        raise InvalidInput("gym_id is required")

    current = resolve_now(now, tz)
    tz = current.tzinfo

    try:
        branch_ids = await asyncio.to_thread(repo.list_branch_ids, gym_id)
    except Exception:
        log.exception("Failed to list branches for gym_id=%s", gym_id)
        return None

    windows = last_months(current.date(), months)
    income: List[int] = []
    expense: List[int] = []

    for window in windows:
        totals = await asyncio.gather(
            *(asyncio.to_thread(branch_month_totals, repo, bid, window, tz) for bid in branch_ids)
        )
        income.append(_round_whole(sum((t[0] for t in totals), ZERO)))
        expense.append(_round_whole(sum((t[1] for t in totals), ZERO)))

    return RevenueSeries(labels=[w.label for w in windows], income=income, expense=expense)
