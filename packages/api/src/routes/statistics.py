# This project was developed with assistance from AI tools.
"""Dashboard statistics."""

from datetime import date
from typing import Literal

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.statistics import CaseTrend, StatisticsOverview, StatusBucket, VisaTypeBucket
from ..services import statistics as stats_service

router = APIRouter()

_STAFF = (UserRole.ADMIN, UserRole.CONSULTANT)


@router.get(
    "/overview",
    response_model=StatisticsOverview,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def overview(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    months: int = Query(default=6, ge=1, le=24),
) -> StatisticsOverview:
    return StatisticsOverview(**await stats_service.overview(session, user, months=months))


@router.get(
    "/case-trend",
    response_model=CaseTrend,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def case_trend(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    start_date: date | None = None,
    end_date: date | None = None,
    interval: Literal["day", "week", "month"] = "day",
) -> CaseTrend:
    """Created and completed case counts per interval."""
    try:
        result = await stats_service.case_trend(
            session, user, start=start_date, end=end_date, interval=interval
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return CaseTrend(**result)


@router.get(
    "/status-distribution",
    response_model=list[StatusBucket],
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def status_distribution(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> list[StatusBucket]:
    return [StatusBucket(**b) for b in await stats_service.status_distribution(session, user)]


@router.get(
    "/visa-type-distribution",
    response_model=list[VisaTypeBucket],
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def visa_type_distribution(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> list[VisaTypeBucket]:
    return [
        VisaTypeBucket(**b) for b in await stats_service.visa_type_distribution(session, user)
    ]
