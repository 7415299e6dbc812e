"""Revenue analytics over recorded payments. Read only; all days are UTC days."""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import extract, func
from sqlalchemy.orm import Session

from paylang.models import Payment, utcnow

ZERO = Decimal("0")


def standard_windows(now: Optional[datetime] = None) -> list[tuple[str, Optional[datetime]]]:
    now = now or utcnow()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return [
        ("today", midnight),
        ("thisWeek", now - timedelta(days=7)),
        ("thisMonth", now - timedelta(days=30)),
        ("allTime", None),
    ]


def window_stats(db: Session, windows: Iterable[tuple[str, Optional[datetime]]]) -> dict:
    """Total amount and count of payments created at or after each window's start.

    A start of ``None`` means no lower bound.
    """
    result = {}
    for label, start in windows:
        query = db.query(func.sum(Payment.amount), func.count(Payment.id))
        if start is not None:
            query = query.filter(Payment.created_at >= start)
        total, count = query.one()
        result[label] = {"total": total or ZERO, "count": count or 0}
    return result


def daily_series(db: Session, lookback_days: int = 30, now: Optional[datetime] = None) -> list[dict]:
    now = now or utcnow()
    since = now - timedelta(days=lookback_days)
    year = extract("year", Payment.created_at)
    month = extract("month", Payment.created_at)
    day = extract("day", Payment.created_at)
    rows = (
        db.query(year, month, day, func.sum(Payment.amount), func.count(Payment.id))
        .filter(Payment.created_at >= since)
        .group_by(year, month, day)
        .all()
    )
    series = [
        {
            "year": int(y),
            "month": int(m),
            "day": int(d),
            "total_amount": total or ZERO,
            "count": count,
        }
        for y, m, d, total, count in rows
    ]
    series.sort(key=lambda row: (row["year"], row["month"], row["day"]), reverse=True)
    return series


def revenue_summary(db: Session) -> dict:
    total, count = db.query(func.sum(Payment.amount), func.count(Payment.id)).one()
    total = total or ZERO
    average = (Decimal(total) / count).quantize(Decimal("0.01")) if count else ZERO
    return {"total_revenue": total, "total_transactions": count, "average_amount": average}
