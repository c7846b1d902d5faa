# This project was developed with assistance from AI tools.
"""Chinese/English translation comparison for the final review."""

import logging
from collections import OrderedDict

from db import Case, TranslationField
from db.enums import CaseStatus, CaseTrigger, NotificationType, TranslationFieldStatus
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from ..schemas.translation import TranslationResult
from ..wizard import STEPS
from .notification import create_notification
from .scope import apply_data_scope
from .workflow import SYSTEM_ACTOR, apply_transition, as_utc

logger = logging.getLogger(__name__)

_SECTION_LABELS = {s.key: s.label for s in STEPS}


async def _scoped_case(session: AsyncSession, user: UserContext, case_id: int) -> Case | None:
    stmt = apply_data_scope(select(Case).where(Case.id == case_id), user.data_scope)
    return (await session.execute(stmt)).scalar_one_or_none()


async def _fields(session: AsyncSession, case_id: int) -> list[TranslationField]:
    stmt = select(TranslationField).where(TranslationField.case_id == case_id).order_by(TranslationField.id)
    return list((await session.execute(stmt)).scalars().all())


def _section_status(fields: list[TranslationField]) -> str:
    statuses = {f.status for f in fields}
    if statuses & {TranslationFieldStatus.WARNING, TranslationFieldStatus.ERROR}:
        return "warning"
    if statuses == {TranslationFieldStatus.COMPLETED}:
        return "completed"
    if TranslationFieldStatus.COMPLETED in statuses:
        return "in_progress"
    return "pending"


async def get_comparison(session: AsyncSession, user: UserContext, case_id: int) -> dict | None:
    """Side-by-side view grouped by wizard section."""
    case = await _scoped_case(session, user, case_id)
    if case is None:
        return None
    fields = await _fields(session, case.id)

    grouped: OrderedDict[str, list[TranslationField]] = OrderedDict()
    for field in fields:
        grouped.setdefault(field.section, []).append(field)

    sections = [
        {
            "id": key,
            "name_cn": _SECTION_LABELS.get(key, key),
            "completed_fields": sum(f.status == TranslationFieldStatus.COMPLETED for f in items),
            "total_fields": len(items),
            "status": _section_status(items),
        }
        for key, items in grouped.items()
    ]
    completed = sum(f.status == TranslationFieldStatus.COMPLETED for f in fields)
    return {
        "case_id": case.id,
        "sections": sections,
        "fields": fields,
        "overall_completion": round(completed * 100 / len(fields)) if fields else 0,
        "total_fields": len(fields),
        "completed_fields": completed,
        "warning_fields": sum(f.status == TranslationFieldStatus.WARNING for f in fields),
        "error_fields": sum(f.status == TranslationFieldStatus.ERROR for f in fields),
        "last_updated": max((as_utc(f.updated_at) for f in fields), default=None),
    }


async def get_status(session: AsyncSession, user: UserContext, case_id: int) -> dict | None:
    case = await _scoped_case(session, user, case_id)
    if case is None:
        return None
    fields = await _fields(session, case.id)
    if case.status == CaseStatus.AI_PROCESSING:
        state = "processing"
    elif fields:
        state = "completed"
    else:
        state = "not_started"
    return {"case_id": case.id, "status": state, "total_fields": len(fields)}


async def _scoped_field(
    session: AsyncSession, user: UserContext, field_id: int
) -> TranslationField | None:
    stmt = apply_data_scope(
        select(TranslationField).where(TranslationField.id == field_id),
        user.data_scope,
        join_to_case=TranslationField.case,
    )
    return (await session.execute(stmt)).scalar_one_or_none()


async def update_field(
    session: AsyncSession, user: UserContext, field_id: int, english_value: str
) -> TranslationField | None:
    """Consultant correction of one English value."""
    field = await _scoped_field(session, user, field_id)
    if field is None:
        return None
    field.english_value = english_value
    field.is_modified = True
    field.status = TranslationFieldStatus.COMPLETED
    await session.commit()
    await session.refresh(field)
    return field


async def update_field_note(
    session: AsyncSession, user: UserContext, field_id: int, note: str
) -> TranslationField | None:
    field = await _scoped_field(session, user, field_id)
    if field is None:
        return None
    field.consultant_note = note
    await session.commit()
    await session.refresh(field)
    return field


async def record_result(
    session: AsyncSession, case_id: int, result: TranslationResult
) -> Case | None:
    """Replace the case's translated fields with the engine's output.

    A case waiting in ``ai_processing`` moves on to the final review.
    """
    stmt = select(Case).where(Case.id == case_id)
    case = (await session.execute(stmt)).scalar_one_or_none()
    if case is None:
        return None

    await session.execute(delete(TranslationField).where(TranslationField.case_id == case.id))
    for item in result.fields:
        session.add(TranslationField(case_id=case.id, is_modified=False, **item.model_dump()))
    await session.flush()

    if case.status == CaseStatus.AI_PROCESSING:
        await apply_transition(
            session, case, CaseTrigger.TRANSLATION_COMPLETED, SYSTEM_ACTOR,
            event_data={"fields": len(result.fields)},
        )
        await create_notification(
            session,
            case.organization_id,
            user_id=case.consultant_id,
            case_id=case.id,
            type=NotificationType.AI_COMPLETE,
            title="AI翻译完成",
            content=f"案例 {case.case_number} 翻译完成，请进行最终核对。",
        )
    await session.commit()
    logger.info("Translation recorded for case %s (%s fields)", case_id, len(result.fields))
    return case
