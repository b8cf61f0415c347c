from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from gymdesk.services.dashboard.models import (
    BranchDashboardData,
    BranchRecord,
    MemberRecord,
    PaymentRecord,
    PnlRow,
    parse_date,
    parse_datetime,
    to_decimal,
    to_number,
)
from gymdesk.services.dashboard.windows import last_months, resolve_now, start_of_week


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, Decimal("0")),
        ("", Decimal("0")),
        ("abc", Decimal("0")),
        ("NaN", Decimal("0")),
        (True, Decimal("0")),
        (12, Decimal("12")),
        ("12.50", Decimal("12.50")),
        (0.1, Decimal("0.1")),
    ],
)
def test_to_decimal(raw, expected):
    assert to_decimal(raw) == expected


def test_to_number_keeps_integers_integral():
    assert to_number(Decimal("6000.00")) == 6000
    assert isinstance(to_number(Decimal("6000.00")), int)
    assert to_number(Decimal("-12.5")) == -12.5


def test_parse_dates():
    assert parse_date("2026-10-19") == date(2026, 10, 19)
    assert parse_date("2026-10-19T23:00:00+00:00") == date(2026, 10, 19)
    assert parse_date("not a date") is None
    assert parse_date(None) is None
    assert parse_datetime("2026-10-19T10:00:00Z") == datetime(2026, 10, 19, 10, tzinfo=timezone.utc)
    assert parse_datetime("2026-10-19T10:00:00").tzinfo is timezone.utc
    assert parse_datetime("") is None


def test_member_from_row_normalizes_blank_branch():
    m = MemberRecord.from_row({"id": 7, "branch_id": "", "membership_end_date": "2026-01-31"})
    assert m.id == "7"
    assert m.branch_id is None
    assert m.membership_start_date is None
    assert m.membership_end_date == date(2026, 1, 31)


def test_pnl_row_defaults_missing_numbers_to_zero():
    row = PnlRow.from_row({"day": "2026-10-01", "total_income": None})
    assert row.total_income == 0
    assert row.total_expense == 0


def test_payment_settled_statuses():
    assert PaymentRecord.from_row({"id": "p", "status": "completed"}).is_settled
    assert PaymentRecord.from_row({"id": "p"}).is_settled
    assert not PaymentRecord.from_row({"id": "p", "status": "refunded"}).is_settled


def test_active_rules_differ_on_start_date():
    today = date(2026, 10, 19)
    future = MemberRecord(id="f", membership_start_date=date(2026, 11, 1))
    assert future.is_unexpired(today)
    assert not future.is_active_on(today)


def test_negative_profit_is_not_clamped():
    b = BranchDashboardData(
        branch=BranchRecord(id="b", name="B"),
        total_income=Decimal("100"),
        total_expenses=Decimal("250"),
        member_count=0,
        active_members=0,
    )
    assert b.to_dict()["net_profit"] == -150


def test_start_of_week():
    thursday = date(2026, 10, 22)
    assert start_of_week(thursday) == date(2026, 10, 19)
    assert start_of_week(thursday, week_start=6) == date(2026, 10, 18)
    assert start_of_week(date(2026, 10, 19)) == date(2026, 10, 19)


def test_last_months_crosses_year_boundary():
    windows = last_months(date(2026, 2, 14), 3)
    assert [w.key for w in windows] == ["2025-12", "2026-01", "2026-02"]
    assert windows[1].end == date(2026, 1, 31)
    assert windows[2].end == date(2026, 2, 28)


def test_resolve_now_attaches_timezone_to_naive_values():
    assert resolve_now(datetime(2026, 1, 1, 8)).tzinfo is timezone.utc
