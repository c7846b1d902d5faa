# This project was developed with assistance from AI tools.
"""Token-scoped applicant wizard.

Every operation starts from a capability token rather than a user. Field
buckets are saved per step; ``continue`` saves are validated in full and
mark the step complete, ``draft`` saves are checked structurally only.
"""

import logging
from datetime import UTC, datetime

from db import Case, CaseLink, FormSection
from db.enums import ActorType, CaseStatus, CaseTrigger, LinkStatus, NotificationType
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..wizard import CONTINUE, STEPS, TOTAL_STEPS, Mode, StepInfo, get_step, validate_step
from .attachment import list_attachments, upload_step_data
from .link import record_access, resolve_token
from .notification import create_notification
from .workflow import Actor, apply_transition, as_utc

logger = logging.getLogger(__name__)

UPLOAD_STEP = "upload"

EDITABLE_STATUSES = frozenset({CaseStatus.CLIENT_FILLING, CaseStatus.NEED_SUPPLEMENT})


class StepValidationError(ValueError):
    """Raised when a step save fails validation; ``errors`` maps path -> message."""

    def __init__(self, errors: dict[str, str]):
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors


class WizardLockedError(ValueError):
    """Raised when the wizard is not accepting edits for the case's status."""

    pass


def _client_actor(case: Case) -> Actor:
    name = case.applicant.name if case.applicant else None
    return Actor(type=ActorType.CLIENT, id=None, name=name)


def can_edit(link: CaseLink, case: Case) -> bool:
    return link.status == LinkStatus.ACTIVE and case.status in EDITABLE_STATUSES


async def editable_case(session: AsyncSession, token: str) -> tuple[CaseLink, Case]:
    link = await resolve_token(session, token)
    case = link.case
    if case.status not in EDITABLE_STATUSES:
        raise WizardLockedError(f"The form cannot be edited while the case is '{case.status.value}'.")
    return link, case


# ---------------------------------------------------------------------------
# Form data
# ---------------------------------------------------------------------------


async def get_sections(session: AsyncSession, case_id: int) -> dict[str, FormSection]:
    stmt = select(FormSection).where(FormSection.case_id == case_id)
    return {s.step: s for s in (await session.execute(stmt)).scalars().all()}


async def load_form_data(session: AsyncSession, case_id: int) -> dict[str, dict]:
    """Every saved step bucket keyed by step key, in wizard order."""
    sections = await get_sections(session, case_id)
    return {s.key: dict(sections[s.key].data) for s in STEPS if s.key in sections}


async def build_progress(session: AsyncSession, case: Case) -> dict:
    """Wizard progress for a case: completed step numbers and current step."""
    sections = await get_sections(session, case.id)
    completed = [s.order for s in STEPS if s.key in sections and sections[s.key].is_complete]
    current = next((s.order for s in STEPS if s.order not in completed), TOTAL_STEPS)
    saved = [as_utc(s.last_saved_at) for s in sections.values() if s.last_saved_at]
    steps = []
    for info in STEPS:
        section = sections.get(info.key)
        if info.order in completed:
            step_status = "completed"
        elif info.order == current:
            step_status = "current"
        else:
            step_status = "pending"
        steps.append(
            {
                "step": info.order,
                "key": info.key,
                "name": info.label,
                "status": step_status,
                "completed_at": section.last_saved_at if section and section.is_complete else None,
            }
        )
    return {
        "case_id": case.id,
        "current_step": current,
        "total_steps": TOTAL_STEPS,
        "completed_steps": completed,
        "percentage": round(len(completed) * 100 / TOTAL_STEPS),
        "last_saved_at": max(saved) if saved else None,
        "steps": steps,
    }


# ---------------------------------------------------------------------------
# Token operations
# ---------------------------------------------------------------------------


async def open_link(session: AsyncSession, token: str) -> tuple[CaseLink, Case]:
    """Validate a token on wizard entry and record the visit.

    The first visit while the case is ``link_sent`` moves it to
    ``client_filling``.
    """
    link = await resolve_token(session, token, allow_used=True)
    case = link.case
    record_access(link)
    if link.status == LinkStatus.ACTIVE and case.status == CaseStatus.LINK_SENT:
        await apply_transition(
            session,
            case,
            CaseTrigger.CLIENT_ACCESS,
            _client_actor(case),
            event_data={"link_id": link.id},
        )
    await session.commit()
    return link, case


async def get_step_data(
    session: AsyncSession, token: str, step_key: str
) -> tuple[StepInfo, FormSection | None, dict] | None:
    """Saved bucket for one step. None for an unknown step key."""
    info = get_step(step_key)
    if info is None:
        return None
    link = await resolve_token(session, token, allow_used=True)
    sections = await get_sections(session, link.case_id)
    section = sections.get(step_key)
    if step_key == UPLOAD_STEP:
        data = upload_step_data(await list_attachments(session, link.case_id))
    else:
        data = dict(section.data) if section else {}
    return info, section, data


async def save_step(
    session: AsyncSession,
    token: str,
    step_key: str,
    data: dict,
    mode: Mode = CONTINUE,
) -> tuple[StepInfo, FormSection] | None:
    """Validate and persist one step bucket. None for an unknown step key.

    Raises:
        LinkAccessError: the token is unusable.
        WizardLockedError: the case is not accepting edits.
        StepValidationError: validation failed; nothing was saved.
    """
    info = get_step(step_key)
    if info is None:
        return None
    _link, case = await editable_case(session, token)

    if step_key == UPLOAD_STEP:
        data = upload_step_data(await list_attachments(session, case.id))

    result = validate_step(info.schema, data, mode)
    if not result.ok:
        raise StepValidationError(result.errors)

    sections = await get_sections(session, case.id)
    section = sections.get(step_key)
    if section is None:
        section = FormSection(case_id=case.id, step=step_key)
        session.add(section)
    section.data = result.data
    section.is_complete = mode == CONTINUE
    section.last_saved_at = datetime.now(UTC)
    await session.commit()
    await session.refresh(section)
    logger.info("Case %s step %s saved (mode=%s)", case.id, step_key, mode)
    return info, section


async def progress_for_token(session: AsyncSession, token: str) -> dict:
    link = await resolve_token(session, token, allow_used=True)
    return await build_progress(session, link.case)


def _sync_applicant(case: Case, form: dict[str, dict]) -> None:
    """Copy identity fields from the submitted form onto the applicant."""
    applicant = case.applicant
    if applicant is None:
        return
    basic = form.get("basic-info", {})
    contact = form.get("address-phone", {})
    if basic.get("full_name_native"):
        applicant.name = basic["full_name_native"]
    pinyin = " ".join(p for p in (basic.get("surname"), basic.get("given_names")) if p)
    if pinyin:
        applicant.name_pinyin = pinyin
    if basic.get("passport_number"):
        applicant.passport_number = basic["passport_number"]
    if contact.get("email_address"):
        applicant.email = contact["email_address"]
    if contact.get("primary_phone_number"):
        applicant.phone = contact["primary_phone_number"]


async def submit(session: AsyncSession, token: str) -> Case:
    """Final submission of the wizard.

    Raises:
        TransitionGuardError: some steps are not complete.
    """
    link, case = await editable_case(session, token)
    await apply_transition(
        session,
        case,
        CaseTrigger.CLIENT_SUBMIT,
        _client_actor(case),
        event_data={"link_id": link.id},
    )
    link.status = LinkStatus.USED
    _sync_applicant(case, await load_form_data(session, case.id))
    await create_notification(
        session,
        case.organization_id,
        user_id=case.consultant_id,
        case_id=case.id,
        type=NotificationType.CUSTOMER,
        title="客户已提交资料",
        content=f"案例 {case.case_number} 的客户已提交全部资料，请确认。",
        client_name=case.applicant.name if case.applicant else None,
    )
    await session.commit()
    return case


async def client_decision(
    session: AsyncSession, token: str, trigger: CaseTrigger, reason: str | None = None
) -> Case:
    """Client confirms or rejects the result sent for confirmation."""
    link = await resolve_token(session, token, allow_used=True)
    case = link.case
    changed = await apply_transition(
        session,
        case,
        trigger,
        _client_actor(case),
        event_data={"reason": reason} if reason else None,
    )
    if not changed:
        return case
    confirmed = trigger == CaseTrigger.CLIENT_CONFIRM
    await create_notification(
        session,
        case.organization_id,
        user_id=case.consultant_id,
        case_id=case.id,
        type=NotificationType.CUSTOMER if confirmed else NotificationType.URGENT,
        title="客户已确认" if confirmed else "客户要求修改",
        content=reason or f"案例 {case.case_number}",
        client_name=case.applicant.name if case.applicant else None,
    )
    await session.commit()
    return case
