# This project was developed with assistance from AI tools.
"""Consultant notification inbox.

A notification belongs to an organization and optionally to one user; a
null recipient is an organization-wide broadcast visible to every member.
"""

import logging

from db import Notification
from db.enums import NotificationStatus, NotificationType
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext

logger = logging.getLogger(__name__)


def _visible(stmt, user: UserContext):
    return stmt.where(
        Notification.organization_id == user.organization_id,
        or_(Notification.user_id == user.user_id, Notification.user_id.is_(None)),
    )


async def create_notification(
    session: AsyncSession,
    organization_id: int,
    *,
    title: str,
    content: str = "",
    type: NotificationType = NotificationType.SYSTEM,
    user_id: int | None = None,
    case_id: int | None = None,
    client_name: str | None = None,
    metadata: dict | None = None,
) -> Notification:
    """Add a notification. Flushes but does not commit."""
    notification = Notification(
        organization_id=organization_id,
        user_id=user_id,
        case_id=case_id,
        type=type,
        title=title,
        content=content,
        status=NotificationStatus.UNREAD,
        client_name=client_name,
        extra=metadata,
    )
    session.add(notification)
    await session.flush()
    return notification


async def list_notifications(
    session: AsyncSession,
    user: UserContext,
    *,
    offset: int = 0,
    limit: int = 20,
    filter_status: NotificationStatus | None = None,
    filter_type: NotificationType | None = None,
) -> tuple[list[Notification], int, int]:
    """Return ``(page, total, unread_count)`` for the current user."""
    count_stmt = _visible(select(func.count(Notification.id)), user)
    stmt = _visible(select(Notification), user)
    if filter_status is not None:
        count_stmt = count_stmt.where(Notification.status == filter_status)
        stmt = stmt.where(Notification.status == filter_status)
    if filter_type is not None:
        count_stmt = count_stmt.where(Notification.type == filter_type)
        stmt = stmt.where(Notification.type == filter_type)
    total = (await session.execute(count_stmt)).scalar() or 0

    unread_stmt = _visible(select(func.count(Notification.id)), user).where(
        Notification.status == NotificationStatus.UNREAD
    )
    unread = (await session.execute(unread_stmt)).scalar() or 0

    stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
    result = await session.execute(stmt.offset(offset).limit(limit))
    return list(result.scalars().all()), total, unread


async def send_notification(
    session: AsyncSession,
    user: UserContext,
    **fields,
) -> Notification:
    """Create a notification inside the caller's organization and commit."""
    notification = await create_notification(session, user.organization_id, **fields)
    await session.commit()
    await session.refresh(notification)
    return notification


async def mark_read(
    session: AsyncSession, user: UserContext, notification_id: int
) -> Notification | None:
    stmt = _visible(select(Notification).where(Notification.id == notification_id), user)
    notification = (await session.execute(stmt)).scalar_one_or_none()
    if notification is None:
        return None
    notification.status = NotificationStatus.READ
    await session.commit()
    await session.refresh(notification)
    return notification


async def mark_all_read(session: AsyncSession, user: UserContext) -> int:
    """Mark every visible unread notification read; return how many changed."""
    stmt = (
        update(Notification)
        .where(
            Notification.organization_id == user.organization_id,
            or_(Notification.user_id == user.user_id, Notification.user_id.is_(None)),
            Notification.status == NotificationStatus.UNREAD,
        )
        .values(status=NotificationStatus.READ)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    await session.commit()
    logger.info("User %s marked %s notification(s) read", user.user_id, result.rowcount)
    return result.rowcount or 0
