# This project was developed with assistance from AI tools.
"""Dashboard statistics over the caller's visible cases.

Aggregation happens in Python over one scoped query per call so the same
code runs on PostgreSQL and SQLite.
"""

import logging
from collections import Counter
from datetime import UTC, date, datetime, timedelta

from db import Case
from db.enums import CaseStatus, VisaType
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from .scope import apply_data_scope
from .status import status_label
from .workflow import as_utc

logger = logging.getLogger(__name__)

_PENDING_REVIEW = frozenset(
    {
        CaseStatus.CLIENT_SUBMITTED,
        CaseStatus.CONSULTANT_REVIEWING,
        CaseStatus.CONSULTANT_FINAL_REVIEW,
    }
)
_DONE = frozenset({CaseStatus.COMPLETED, CaseStatus.CLIENT_CONFIRMED})

INTERVALS = ("day", "week", "month")


async def _rows(session: AsyncSession, user: UserContext):
    stmt = apply_data_scope(
        select(Case.status, Case.visa_type, Case.created_at, Case.updated_at), user.data_scope
    )
    return (await session.execute(stmt)).all()


def _month_key(value: datetime) -> str:
    return f"{value:%Y-%m}"


def _recent_months(today: date, count: int) -> list[str]:
    months = []
    year, month = today.year, today.month
    for _ in range(count):
        months.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


def _percentage(count: int, total: int) -> float:
    return round(count * 100 / total, 1) if total else 0.0


async def overview(session: AsyncSession, user: UserContext, *, months: int = 6) -> dict:
    rows = await _rows(session, user)
    statuses = Counter(r.status for r in rows)
    visa_types = Counter(r.visa_type for r in rows)

    labels = _recent_months(datetime.now(UTC).date(), months)
    created = Counter(_month_key(as_utc(r.created_at)) for r in rows)
    completed = Counter(
        _month_key(as_utc(r.updated_at)) for r in rows if r.status == CaseStatus.COMPLETED
    )
    return {
        "total_cases": len(rows),
        "active_cases": sum(
            n for s, n in statuses.items() if s not in CaseStatus.terminal_statuses()
        ),
        "completed_cases": statuses[CaseStatus.COMPLETED],
        "pending_review": sum(statuses[s] for s in _PENDING_REVIEW),
        "status_distribution": {s.value: statuses[s] for s in CaseStatus if statuses[s]},
        "visa_type_distribution": {v.value: visa_types[v] for v in VisaType if visa_types[v]},
        "monthly_trend": [
            {"month": m, "created": created[m], "completed": completed[m]} for m in labels
        ],
    }


def _bucket_start(value: date, interval: str) -> date:
    if interval == "week":
        return value - timedelta(days=value.weekday())
    if interval == "month":
        return value.replace(day=1)
    return value


def _buckets(start: date, end: date, interval: str) -> list[date]:
    buckets = []
    current = _bucket_start(start, interval)
    while current <= end:
        buckets.append(current)
        if interval == "day":
            current += timedelta(days=1)
        elif interval == "week":
            current += timedelta(weeks=1)
        else:
            current = (current.replace(day=28) + timedelta(days=4)).replace(day=1)
    return buckets


async def case_trend(
    session: AsyncSession,
    user: UserContext,
    *,
    start: date | None = None,
    end: date | None = None,
    interval: str = "day",
) -> dict:
    """Created vs. completed counts per day/week/month between ``start`` and ``end``."""
    if interval not in INTERVALS:
        raise ValueError(f"interval must be one of {', '.join(INTERVALS)}")
    end = end or datetime.now(UTC).date()
    start = start or end - timedelta(days=29)
    if start > end:
        raise ValueError("start must not be after end")

    buckets = _buckets(start, end, interval)
    created = Counter()
    completed = Counter()
    for row in await _rows(session, user):
        created_on = as_utc(row.created_at).date()
        if start <= created_on <= end:
            created[_bucket_start(created_on, interval)] += 1
        if row.status in _DONE:
            done_on = as_utc(row.updated_at).date()
            if start <= done_on <= end:
                completed[_bucket_start(done_on, interval)] += 1
    return {
        "labels": [b.isoformat() for b in buckets],
        "datasets": [
            {"label": "新建案例", "data": [created[b] for b in buckets]},
            {"label": "完成案例", "data": [completed[b] for b in buckets]},
        ],
    }


async def status_distribution(session: AsyncSession, user: UserContext) -> list[dict]:
    rows = await _rows(session, user)
    counts = Counter(r.status for r in rows)
    return [
        {
            "status": status,
            "label": status_label(status),
            "count": counts[status],
            "percentage": _percentage(counts[status], len(rows)),
        }
        for status in CaseStatus
        if counts[status]
    ]


async def visa_type_distribution(session: AsyncSession, user: UserContext) -> list[dict]:
    rows = await _rows(session, user)
    counts = Counter(r.visa_type for r in rows)
    return [
        {
            "visa_type": visa_type.value,
            "count": counts[visa_type],
            "percentage": _percentage(counts[visa_type], len(rows)),
        }
        for visa_type in VisaType
        if counts[visa_type]
    ]
