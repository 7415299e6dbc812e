from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from paylang import analytics
from paylang.models import Payment

NOW = datetime(2024, 6, 15, 12, 0, 0)


@pytest.fixture
def history(db):
    db.add_all([
        Payment(reference="now", amount=Decimal("10.00"), created_at=NOW),
        Payment(reference="two_days", amount=Decimal("20.00"), created_at=NOW - timedelta(days=2)),
        Payment(reference="forty_days", amount=Decimal("40.00"), created_at=NOW - timedelta(days=40)),
    ])
    db.commit()


def test_window_stats_counts_each_window(db, history):
    stats = analytics.window_stats(db, analytics.standard_windows(NOW))

    assert [stats[label]["count"] for label in ("today", "thisWeek", "thisMonth", "allTime")] == [1, 2, 2, 3]
    assert stats["today"]["total"] == Decimal("10")
    assert stats["thisWeek"]["total"] == Decimal("30")
    assert stats["allTime"]["total"] == Decimal("70")


def test_window_stats_empty_window(db):
    stats = analytics.window_stats(db, [("today", NOW)])
    assert stats == {"today": {"total": 0, "count": 0}}


def test_today_starts_at_midnight():
    label, start = analytics.standard_windows(NOW)[0]
    assert label == "today"
    assert start == datetime(2024, 6, 15)


def test_daily_series_groups_by_day_newest_first(db, history):
    db.add(Payment(reference="same_day", amount=Decimal("5.00"), created_at=NOW - timedelta(hours=1)))
    db.commit()

    series = analytics.daily_series(db, 30, now=NOW)

    assert [(row["year"], row["month"], row["day"]) for row in series] == [(2024, 6, 15), (2024, 6, 13)]
    assert series[0]["count"] == 2
    assert series[0]["total_amount"] == Decimal("15")
    assert series[1]["count"] == 1


def test_revenue_summary(db, history):
    summary = analytics.revenue_summary(db)
    assert summary["total_transactions"] == 3
    assert summary["total_revenue"] == Decimal("70")
    assert summary["average_amount"] == Decimal("23.33")


def test_revenue_summary_without_payments(db):
    assert analytics.revenue_summary(db) == {
        "total_revenue": 0, "total_transactions": 0, "average_amount": 0,
    }
