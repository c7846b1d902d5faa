# This project was developed with assistance from AI tools.
"""Case service with tenant and consultant data scope filtering.

Every query goes through the caller's DataScope: admins see every case in
their organization, consultants see the cases assigned to them. Out of
scope cases are reported as None so routes answer 404 rather than 403.
"""

import logging
from datetime import UTC, datetime

from db import Applicant, Case, CaseActivity
from db.enums import ActorType, CaseStatus, CaseTrigger, VisaType
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..schemas.auth import UserContext
from ..schemas.case import CaseCreate, CaseUpdate
from . import diagnosis as diagnosis_service
from .activity import list_activities, write_activity
from .ds160 import build_progress, load_form_data
from .engine import schedule_translation
from .link import issue_link
from .scope import apply_data_scope
from .workflow import Actor, apply_transition

logger = logging.getLogger(__name__)

_SORT_COLUMNS = {
    "created_at": Case.created_at,
    "updated_at": Case.updated_at,
    "interview_date": Case.interview_date,
    "case_number": Case.case_number,
}


def consultant_actor(user: UserContext) -> Actor:
    return Actor(type=ActorType.CONSULTANT, id=str(user.user_id), name=user.username)


async def generate_case_number(session: AsyncSession, today: datetime | None = None) -> str:
    """``V{YYYYMMDD}{seq:04d}``, one past the day's highest number.

    Numbers freed by deleted cases are never reused.
    """
    prefix = f"V{(today or datetime.now(UTC)):%Y%m%d}"
    stmt = select(func.max(Case.case_number)).where(Case.case_number.like(f"{prefix}%"))
    latest = (await session.execute(stmt)).scalar()
    seq = int(latest[len(prefix):]) + 1 if latest else 1
    return f"{prefix}{seq:04d}"


def _apply_filters(stmt, filter_status, visa_type, search):
    if filter_status is not None:
        stmt = stmt.where(Case.status == filter_status)
    if visa_type is not None:
        stmt = stmt.where(Case.visa_type == visa_type)
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.outerjoin(Case.applicant).where(
            or_(
                Case.case_number.ilike(pattern),
                Applicant.name.ilike(pattern),
                Applicant.name_pinyin.ilike(pattern),
            )
        )
    return stmt


async def list_cases(
    session: AsyncSession,
    user: UserContext,
    *,
    offset: int = 0,
    limit: int = 20,
    filter_status: CaseStatus | None = None,
    visa_type: VisaType | None = None,
    search: str | None = None,
    sort_by: str | None = None,
    sort_order: str = "desc",
) -> tuple[list[Case], int]:
    """Return one page of cases visible to the current user and the total."""
    count_stmt = apply_data_scope(select(func.count(Case.id)), user.data_scope)
    count_stmt = _apply_filters(count_stmt, filter_status, visa_type, search)
    total = (await session.execute(count_stmt)).scalar() or 0

    column = _SORT_COLUMNS.get(sort_by or "", Case.created_at)
    order = column.asc() if sort_order == "asc" else column.desc()
    stmt = (
        select(Case)
        .options(selectinload(Case.applicant))
        .order_by(order, Case.id.desc())
        .offset(offset)
        .limit(limit)
    )
    stmt = apply_data_scope(stmt, user.data_scope)
    stmt = _apply_filters(stmt, filter_status, visa_type, search)
    result = await session.execute(stmt)
    return list(result.scalars().all()), total


async def get_case(session: AsyncSession, user: UserContext, case_id: int) -> Case | None:
    """Return a single case if visible to the current user."""
    stmt = (
        select(Case)
        .options(selectinload(Case.applicant))
        .where(Case.id == case_id)
        .execution_options(populate_existing=True)
    )
    stmt = apply_data_scope(stmt, user.data_scope)
    return (await session.execute(stmt)).scalar_one_or_none()


async def create_case(session: AsyncSession, user: UserContext, data: CaseCreate) -> Case:
    """Create a case and its applicant, assigned to the creating consultant.

    With ``link_validity_days`` a capability link is issued straight away,
    which moves the case to ``link_sent``.
    """
    case = Case(
        case_number=await generate_case_number(session),
        organization_id=user.organization_id,
        consultant_id=user.user_id,
        visa_type=data.visa_type,
        status=CaseStatus.CREATED,
        review_round=1,
        interview_date=data.interview_date,
        is_vip=data.is_vip,
        notes=data.notes,
    )
    case.applicant = Applicant(
        name=data.applicant_name,
        email=data.applicant_email,
        phone=data.applicant_phone,
    )
    session.add(case)
    await session.flush()
    await write_activity(
        session,
        case,
        event="case_created",
        actor_type=ActorType.CONSULTANT,
        actor_id=str(user.user_id),
        actor_name=user.username,
        description="顾问创建案例",
        event_data={"visa_type": data.visa_type.value},
    )
    if data.link_validity_days:
        await issue_link(session, user, case, expiry_hours=data.link_validity_days * 24)
    case_id = case.id
    await session.commit()
    logger.info("Case %s (%s) created by user %s", case_id, case.case_number, user.user_id)
    return await get_case(session, user, case_id)


async def update_case(
    session: AsyncSession, user: UserContext, case_id: int, data: CaseUpdate
) -> Case | None:
    case = await get_case(session, user, case_id)
    if case is None:
        return None
    fields = data.model_dump(exclude_unset=True, exclude={"applicant"})
    for name, value in fields.items():
        if name == "is_vip" and value is None:
            continue
        setattr(case, name, value)
    if data.applicant is not None and case.applicant is not None:
        for name, value in data.applicant.model_dump(exclude_unset=True).items():
            setattr(case.applicant, name, value)
    case.updated_at = datetime.now(UTC)
    await session.commit()
    return await get_case(session, user, case_id)


async def delete_case(session: AsyncSession, user: UserContext, case_id: int) -> bool:
    """Hard delete; children go with the case. False when not found."""
    case = await get_case(session, user, case_id)
    if case is None:
        return False
    await session.delete(case)
    await session.commit()
    logger.info("Case %s deleted by user %s", case_id, user.user_id)
    return True


async def transition_case(
    session: AsyncSession,
    user: UserContext,
    case_id: int,
    trigger: CaseTrigger,
    reason: str | None = None,
) -> Case | None:
    """Fire a consultant trigger on a case.

    ``send_link`` issues a fresh link, ``confirm_submission`` opens the
    next diagnosis round and ``start_translation`` hands the form to the
    translation engine. A repeated trigger that already landed is a no-op.

    Raises:
        InvalidTransitionError: illegal from the current status.
        TransitionGuardError: the trigger's precondition does not hold.
    """
    case = await get_case(session, user, case_id)
    if case is None:
        return None

    if trigger == CaseTrigger.SEND_LINK:
        await issue_link(session, user, case)
        await session.commit()
        return await get_case(session, user, case_id)

    event_data = {"reason": reason} if reason else None
    changed = await apply_transition(
        session, case, trigger, consultant_actor(user), event_data=event_data
    )
    if not changed:
        return case

    report = None
    if trigger == CaseTrigger.CONFIRM_SUBMISSION:
        report = await diagnosis_service.open_review_round(session, case)
    await session.commit()

    if report is not None:
        await diagnosis_service.dispatch(session, case, report)
    elif trigger == CaseTrigger.START_TRANSLATION:
        schedule_translation(case.id, await load_form_data(session, case.id))
    return await get_case(session, user, case_id)


async def get_timeline(
    session: AsyncSession, user: UserContext, case_id: int
) -> list[CaseActivity] | None:
    case = await get_case(session, user, case_id)
    if case is None:
        return None
    return await list_activities(session, case.id)


async def get_progress(session: AsyncSession, user: UserContext, case_id: int) -> dict | None:
    case = await get_case(session, user, case_id)
    if case is None:
        return None
    return await build_progress(session, case)
