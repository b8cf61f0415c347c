import asyncio

import pytest

from gymdesk.services.core_service import InvalidInput
from gymdesk.services.dashboard.revenue import build_revenue_series


def run(repo, now, gym_id="gym-1"):
    return asyncio.run(build_revenue_series(repo, gym_id, now=now))


@pytest.fixture
def revenue_data(sb):
    sb.add_branch("b1", "North")
    sb.add_branch("b2", "South", status="inactive")
    sb.add_branch("x1", "Elsewhere", gym_id="gym-2")
    sb.add_pnl("b1", "2026-10-05", "1000.4", "200.5")
    sb.add_pnl("b1", "2026-10-06", "0.2", 0)
    sb.add_pnl("b1", "2025-11-15", 300, 100)
    sb.add_pnl("b1", "2025-10-31", 5000, 5000)
    sb.add_pnl("x1", "2026-10-05", 9999, 9999)
    sb.failing_pnl.add("b2")
    sb.add_payment("p1", "b2", 450, "2026-09-10T10:00:00+00:00")
    sb.add_payment("p2", "b2", 50, "2026-08-31T23:00:00+00:00", status="failed")
    return sb


def test_twelve_months_oldest_first(revenue_data, repo, now):
    series = run(repo, now)
    assert len(series.labels) == 12
    assert series.labels[0] == "Nov 2025"
    assert series.labels[-1] == "Oct 2026"


def test_monthly_totals_round_to_whole_units(revenue_data, repo, now):
    series = run(repo, now)
    assert series.income[-1] == 1001
    assert series.expense[-1] == 201
    assert series.income[0] == 300
    assert series.expense[0] == 100


def test_payments_fallback_when_pnl_fails(revenue_data, repo, now):
    series = run(repo, now)
    assert series.income[10] == 450  # Sep 2026, from b2 payments
    assert series.expense[10] == 0
    assert series.income[9] == 50  # Aug 2026, fallback sums raw payments


def test_branch_contributes_zero_when_both_sources_fail(revenue_data, repo, now):
    revenue_data.failing_tables.add("payments")
    series = run(repo, now)
    assert series.income[10] == 0
    assert series.income[-1] == 1001


def test_rpc_called_with_month_bounds(revenue_data, repo, now):
    run(repo, now)
    october = [c[2] for c in revenue_data.calls if c[0] == "rpc" and c[2]["p_branch"] == "b1" and c[2]["p_start"] == "2026-10-01"]
    assert october == [{"p_branch": "b1", "p_start": "2026-10-01", "p_end": "2026-10-31"}]


def test_branch_listing_failure_returns_none(sb, repo, now):
    sb.failing_tables.add("branches")
    assert run(repo, now) is None


def test_gym_without_branches_has_zero_series(repo, now):
    series = run(repo, now)
    assert series.income == [0] * 12
    assert series.expense == [0] * 12


def test_missing_gym_id(repo, now):
    with pytest.raises(InvalidInput):
        run(repo, now, gym_id=None)
