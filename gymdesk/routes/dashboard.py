import logging
from typing import Any, Callable, Dict, List, Optional, Union

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel

from gymdesk.services.core_service import CoreError, require_supabase, resolve_session_user
from gymdesk.services.dashboard.branch_dashboard import build_branch_dashboard
from gymdesk.services.dashboard.gym_dashboard import build_gym_dashboard
from gymdesk.services.dashboard.repository import DashboardRepository
from gymdesk.services.dashboard.revenue import build_revenue_series
from gymdesk.utils.envelope import error
from gymdesk.utils.settings import settings

log = logging.getLogger("gymdesk.routes.dashboard")

router = APIRouter(prefix="/api", tags=["dashboard"])

Number = Union[int, float]


# ===== Pydantic models =====
class BranchSummaryOut(BaseModel):
    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    manager_name: Optional[str] = None
    status: str
    total_income: Number
    total_expenses: Number
    net_profit: Number
    member_count: int
    active_members: int


class GymSummaryOut(BaseModel):
    total_branches: int
    total_income: Number
    total_expenses: Number
    total_profit: Number
    total_members: int
    active_members: int


class GymDashboardOut(BaseModel):
    branches: List[BranchSummaryOut]
    summary: GymSummaryOut
    debug: Optional[Dict[str, Any]] = None


class RevenueOut(BaseModel):
    labels: List[str]
    income: List[int]
    expense: List[int]


# ===== Helpers =====
def _repository(supabase) -> DashboardRepository:
    return DashboardRepository(supabase)


def _debug_requested(debug: Optional[str]) -> bool:
    return debug == "1" and settings.DASHBOARD_DEBUG


def _sampled(key: str, fetch: Callable[[], Any], empty: Any = None) -> Dict[str, Any]:
    try:
        return {f"{key}_sample": fetch(), f"{key}_error": None}
    except Exception as e:
        return {f"{key}_sample": empty, f"{key}_error": str(e)}


def _members_sample(repo: DashboardRepository, **scope) -> Dict[str, Any]:
    return _sampled("members", lambda: repo.sample_members(**scope), empty=[])


def _branch_debug(repo: DashboardRepository, branch_id: str) -> Dict[str, Any]:
    return {
        **_members_sample(repo, branch_id=branch_id),
        **_sampled("payments", lambda: repo.sample_payments(branch_id), empty=[]),
    }


def _branch_diagnostics(repo: DashboardRepository, branch_id: str) -> Dict[str, Any]:
    # each source checked on its own so one failure does not hide the others
    return {
        **_sampled("branch", lambda: repo.get_branch_row(branch_id)),
        **_sampled("pnl", lambda: repo.get_branch_pnl(branch_id)),
        **_sampled("payments", lambda: repo.sample_payments(branch_id, limit=10), empty=[]),
        **_sampled("members", lambda: repo.sample_members(branch_id=branch_id, limit=10), empty=[]),
    }


# ===== Endpoints =====
@router.get("/gym/dashboard", response_model=GymDashboardOut, response_model_exclude_unset=True)
async def gym_dashboard(request: Request, debug: Optional[str] = Query(default=None)):
    try:
        supabase = require_supabase()
        user = resolve_session_user(request, supabase)
        gym_id = user.get("gym_id")
        if not gym_id:
            log.warning("No gym_id in session metadata for user_id=%s", user.get("id"))
            return error("No gym id found", 400)

        repo = _repository(supabase)
        data = await build_gym_dashboard(repo, gym_id, tz=settings.report_timezone())
        if data is None:
            return error("Failed to fetch dashboard data", 500)

        payload = data.to_dict()
        if _debug_requested(debug):
            payload["debug"] = _members_sample(repo, gym_id=gym_id)
        return payload
    except CoreError as e:
        return error(e.message, e.status_code)
    except Exception:
        log.exception("Unexpected error in /api/gym/dashboard")
        return error("Internal server error", 500)


@router.get("/branch/dashboard")
async def branch_dashboard(request: Request, debug: Optional[str] = Query(default=None)):
    try:
        supabase = require_supabase()
        user = resolve_session_user(request, supabase)
        branch_id = user.get("branch_id")
        if not branch_id:
            log.warning("No branch_id in session metadata for user_id=%s", user.get("id"))
            return error("No branch id found", 400)

        repo = _repository(supabase)
        data = await build_branch_dashboard(
            repo,
            branch_id,
            tz=settings.report_timezone(),
            week_start=settings.DASHBOARD_WEEK_START,
        )
        if data is None:
            if _debug_requested(debug):
                return error(
                    "Failed to fetch branch dashboard data",
                    500,
                    debug=_branch_debug(repo, branch_id),
                    diagnostics=_branch_diagnostics(repo, branch_id),
                )
            return error("Failed to fetch branch dashboard data", 500)

        payload = data.to_dict()
        if _debug_requested(debug):
            payload["debug"] = _branch_debug(repo, branch_id)
        return payload
    except CoreError as e:
        return error(e.message, e.status_code)
    except Exception:
        log.exception("Unexpected error in /api/branch/dashboard")
        return error("Internal server error", 500)


@router.get("/gym/revenue", response_model=RevenueOut)
async def gym_revenue(request: Request):
    try:
        supabase = require_supabase()
        user = resolve_session_user(request, supabase)
        gym_id = user.get("gym_id")
        if not gym_id:
            return error("No gym id found", 400)

        series = await build_revenue_series(_repository(supabase), gym_id, tz=settings.report_timezone())
        if series is None:
            return error("Failed to fetch revenue data", 500)
        return series.to_dict()
    except CoreError as e:
        return error(e.message, e.status_code)
    except Exception:
        log.exception("Unexpected error in /api/gym/revenue")
        return error("Internal server error", 500)
