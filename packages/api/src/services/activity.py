# This project was developed with assistance from AI tools.
"""Case activity timeline service.

Writes append-only timeline entries. Rows are never updated; they are
removed only when their case is deleted.
"""

import logging

from db import Case, CaseActivity
from db.enums import ActorType
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


async def write_activity(
    session: AsyncSession,
    case: Case,
    *,
    event: str,
    actor_type: ActorType,
    actor_id: str | None = None,
    actor_name: str | None = None,
    description: str | None = None,
    event_data: dict | None = None,
) -> CaseActivity:
    """Append a timeline entry stamped with the case's current status.

    Flushes but does not commit; the caller owns the transaction.
    """
    activity = CaseActivity(
        case_id=case.id,
        status=case.status.value,
        event=event,
        actor_type=actor_type,
        actor_id=actor_id,
        actor_name=actor_name,
        description=description,
        event_data=event_data,
    )
    session.add(activity)
    await session.flush()
    return activity


async def list_activities(session: AsyncSession, case_id: int) -> list[CaseActivity]:
    """Return a case's timeline, oldest first."""
    stmt = (
        select(CaseActivity)
        .where(CaseActivity.case_id == case_id)
        .order_by(CaseActivity.created_at.asc(), CaseActivity.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
