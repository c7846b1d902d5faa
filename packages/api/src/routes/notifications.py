# This project was developed with assistance from AI tools.
"""Consultant notification inbox."""

from db import get_db
from db.enums import NotificationStatus, NotificationType, UserRole
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.notification import (
    MarkAllReadResponse,
    NotificationCreate,
    NotificationListResponse,
    NotificationResponse,
)
from ..services import notification as notification_service

router = APIRouter()

_STAFF = (UserRole.ADMIN, UserRole.CONSULTANT)


@router.get(
    "/",
    response_model=NotificationListResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def list_notifications(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
    status_filter: NotificationStatus | None = Query(default=None, alias="status"),
    type_filter: NotificationType | None = Query(default=None, alias="type"),
) -> NotificationListResponse:
    items, total, unread = await notification_service.list_notifications(
        session,
        user,
        offset=(page - 1) * per_page,
        limit=per_page,
        filter_status=status_filter,
        filter_type=type_filter,
    )
    page_data = NotificationListResponse.build(
        [NotificationResponse.model_validate(n) for n in items], total, page, per_page
    )
    return page_data.model_copy(update={"unread_count": unread})


@router.post(
    "/",
    response_model=NotificationResponse,
    status_code=201,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def create_notification(
    body: NotificationCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> NotificationResponse:
    notification = await notification_service.send_notification(
        session, user, **body.model_dump()
    )
    return NotificationResponse.model_validate(notification)


@router.patch(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def mark_read(
    notification_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> NotificationResponse:
    notification = await notification_service.mark_read(session, user, notification_id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return NotificationResponse.model_validate(notification)


@router.post(
    "/mark-all-read",
    response_model=MarkAllReadResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def mark_all_read(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated=await notification_service.mark_all_read(session, user))
