# This project was developed with assistance from AI tools.
"""Case status state machine.

The transition table maps ``(status, trigger)`` to the next status and the
kind of actor allowed to fire it. ``apply_transition`` checks legality,
then the trigger's guard, then mutates the case and appends a timeline
entry. A rejected transition never mutates the case.

Re-sending a trigger whose target is already the current status (a double
click on "confirm") is answered as a no-op instead of an error.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from db import Case, CaseLink, DiagnosisIssue, DiagnosisReport, FormSection
from db.enums import (
    ActorType,
    CaseStatus,
    CaseTrigger,
    DiagnosisStatus,
    IssueSeverity,
    LinkStatus,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..wizard import STEP_KEYS
from .activity import write_activity

logger = logging.getLogger(__name__)


class InvalidTransitionError(ValueError):
    """Raised when a trigger is not legal from the case's current status."""

    pass


class TransitionGuardError(ValueError):
    """Raised when a legal trigger's precondition does not hold."""

    pass


@dataclass(frozen=True)
class Transition:
    source: CaseStatus
    trigger: CaseTrigger
    target: CaseStatus
    actor: ActorType


@dataclass(frozen=True)
class Actor:
    """Who fired a trigger, as recorded on the timeline."""

    type: ActorType
    id: str | None = None
    name: str | None = None


SYSTEM_ACTOR = Actor(type=ActorType.SYSTEM, name="system")

S = CaseStatus
T = CaseTrigger

_TABLE: tuple[Transition, ...] = (
    Transition(S.CREATED, T.SEND_LINK, S.LINK_SENT, ActorType.CONSULTANT),
    Transition(S.LINK_SENT, T.SEND_LINK, S.LINK_SENT, ActorType.CONSULTANT),
    Transition(S.CLIENT_FILLING, T.SEND_LINK, S.CLIENT_FILLING, ActorType.CONSULTANT),
    Transition(S.LINK_SENT, T.CLIENT_ACCESS, S.CLIENT_FILLING, ActorType.CLIENT),
    Transition(S.CLIENT_FILLING, T.CLIENT_SUBMIT, S.CLIENT_SUBMITTED, ActorType.CLIENT),
    Transition(S.NEED_SUPPLEMENT, T.CLIENT_SUBMIT, S.CLIENT_SUBMITTED, ActorType.CLIENT),
    Transition(S.CLIENT_SUBMITTED, T.CONFIRM_SUBMISSION, S.AI_REVIEWING, ActorType.CONSULTANT),
    Transition(S.AI_REVIEWING, T.DIAGNOSIS_COMPLETED, S.CONSULTANT_REVIEWING, ActorType.SYSTEM),
    Transition(
        S.CONSULTANT_REVIEWING, T.REQUEST_SUPPLEMENT, S.NEED_SUPPLEMENT, ActorType.CONSULTANT
    ),
    Transition(
        S.CONSULTANT_REVIEWING, T.APPROVE_MATERIALS, S.MATERIALS_APPROVED, ActorType.CONSULTANT
    ),
    Transition(S.MATERIALS_APPROVED, T.START_TRANSLATION, S.AI_PROCESSING, ActorType.CONSULTANT),
    Transition(
        S.AI_PROCESSING, T.TRANSLATION_COMPLETED, S.CONSULTANT_FINAL_REVIEW, ActorType.SYSTEM
    ),
    Transition(
        S.CONSULTANT_FINAL_REVIEW,
        T.FINAL_APPROVE,
        S.CONSULTANT_FINAL_APPROVED,
        ActorType.CONSULTANT,
    ),
    Transition(
        S.CONSULTANT_FINAL_APPROVED,
        T.REOPEN_FINAL_REVIEW,
        S.CONSULTANT_FINAL_REVIEW,
        ActorType.CONSULTANT,
    ),
    Transition(
        S.CONSULTANT_FINAL_APPROVED, T.SEND_TO_CLIENT, S.SENT_TO_CLIENT, ActorType.CONSULTANT
    ),
    Transition(S.SENT_TO_CLIENT, T.CLIENT_CONFIRM, S.CLIENT_CONFIRMED, ActorType.CLIENT),
    Transition(S.SENT_TO_CLIENT, T.CLIENT_REJECT, S.CONSULTANT_FINAL_REVIEW, ActorType.CLIENT),
    Transition(S.CLIENT_CONFIRMED, T.COMPLETE, S.COMPLETED, ActorType.CONSULTANT),
) + tuple(
    Transition(status, T.CANCEL, S.CANCELLED, ActorType.CONSULTANT)
    for status in CaseStatus
    if status not in CaseStatus.terminal_statuses()
)

TRANSITIONS: dict[tuple[CaseStatus, CaseTrigger], Transition] = {
    (t.source, t.trigger): t for t in _TABLE
}

_TARGETS: dict[CaseTrigger, frozenset[CaseStatus]] = {
    trigger: frozenset(t.target for t in _TABLE if t.trigger == trigger) for trigger in CaseTrigger
}

CONSULTANT_TRIGGERS: frozenset[CaseTrigger] = frozenset(
    t.trigger for t in _TABLE if t.actor == ActorType.CONSULTANT
)

_EVENT_DESCRIPTIONS: dict[CaseTrigger, str] = {
    T.SEND_LINK: "顾问发送填写链接",
    T.CLIENT_ACCESS: "客户打开填写链接",
    T.CLIENT_SUBMIT: "客户提交资料",
    T.CONFIRM_SUBMISSION: "顾问确认客户提交",
    T.DIAGNOSIS_COMPLETED: "AI审查完成",
    T.REQUEST_SUPPLEMENT: "顾问要求补充材料",
    T.APPROVE_MATERIALS: "顾问确认材料无误",
    T.START_TRANSLATION: "开始AI翻译",
    T.TRANSLATION_COMPLETED: "AI翻译完成",
    T.FINAL_APPROVE: "顾问最终确认",
    T.REOPEN_FINAL_REVIEW: "顾问重新核对",
    T.SEND_TO_CLIENT: "发送给客户确认",
    T.CLIENT_CONFIRM: "客户确认无误",
    T.CLIENT_REJECT: "客户要求修改",
    T.COMPLETE: "案例完成",
    T.CANCEL: "案例已取消",
}


def next_status(status: CaseStatus, trigger: CaseTrigger) -> CaseStatus | None:
    """Target of ``trigger`` from ``status``, or None when illegal."""
    transition = TRANSITIONS.get((status, trigger))
    return transition.target if transition else None


def allowed_triggers(status: CaseStatus) -> list[CaseTrigger]:
    """Triggers legal from ``status``, in table order."""
    return [t.trigger for t in _TABLE if t.source == status]


def is_noop(status: CaseStatus, trigger: CaseTrigger) -> bool:
    """True when ``trigger`` is illegal from ``status`` but already landed there."""
    return (status, trigger) not in TRANSITIONS and status in _TARGETS[trigger]


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


async def current_report(session: AsyncSession, case: Case) -> DiagnosisReport | None:
    """Diagnosis report for the case's current review round."""
    stmt = select(DiagnosisReport).where(
        DiagnosisReport.case_id == case.id,
        DiagnosisReport.review_round == case.review_round,
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def completed_step_count(session: AsyncSession, case_id: int) -> int:
    stmt = select(func.count()).select_from(FormSection).where(
        FormSection.case_id == case_id,
        FormSection.is_complete.is_(True),
        FormSection.step.in_(STEP_KEYS),
    )
    return (await session.execute(stmt)).scalar() or 0


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=UTC)


async def _require_report(session: AsyncSession, case: Case) -> DiagnosisReport:
    report = await current_report(session, case)
    if report is None or report.status != DiagnosisStatus.COMPLETED:
        raise TransitionGuardError(
            f"Diagnosis report for round {case.review_round} is not completed yet."
        )
    return report


async def _guard_approve_materials(session: AsyncSession, case: Case) -> None:
    report = await _require_report(session, case)
    stmt = select(func.count()).select_from(DiagnosisIssue).where(
        DiagnosisIssue.report_id == report.id,
        DiagnosisIssue.severity == IssueSeverity.BLOCKER,
        DiagnosisIssue.fixed.is_(False),
    )
    unfixed = (await session.execute(stmt)).scalar() or 0
    if unfixed:
        raise TransitionGuardError(f"{unfixed} blocker issue(s) are not fixed.")


async def _guard_request_supplement(session: AsyncSession, case: Case) -> None:
    await _require_report(session, case)


async def _guard_steps_complete(session: AsyncSession, case: Case) -> None:
    done = await completed_step_count(session, case.id)
    if done < len(STEP_KEYS):
        raise TransitionGuardError(
            f"Only {done} of {len(STEP_KEYS)} form steps are complete."
        )


async def _guard_client_access(session: AsyncSession, case: Case) -> None:
    stmt = select(CaseLink).where(
        CaseLink.case_id == case.id,
        CaseLink.status == LinkStatus.ACTIVE,
    )
    now = datetime.now(UTC)
    links = (await session.execute(stmt)).scalars().all()
    if not any(as_utc(link.expires_at) > now for link in links):
        raise TransitionGuardError("No active, unexpired link for this case.")


_GUARDS = {
    T.APPROVE_MATERIALS: _guard_approve_materials,
    T.REQUEST_SUPPLEMENT: _guard_request_supplement,
    T.CONFIRM_SUBMISSION: _guard_steps_complete,
    T.CLIENT_SUBMIT: _guard_steps_complete,
    T.CLIENT_ACCESS: _guard_client_access,
}


# ---------------------------------------------------------------------------
# Apply
# ---------------------------------------------------------------------------


async def apply_transition(
    session: AsyncSession,
    case: Case,
    trigger: CaseTrigger,
    actor: Actor,
    *,
    description: str | None = None,
    event_data: dict | None = None,
) -> bool:
    """Move ``case`` along ``trigger``.

    Returns True when the status changed (or a self-loop such as link
    regeneration was recorded) and False for an idempotent no-op. Flushes
    but does not commit; the caller owns the transaction.

    Raises:
        InvalidTransitionError: ``trigger`` is not legal from the current status.
        TransitionGuardError: the trigger's precondition does not hold.
    """
    current = case.status
    transition = TRANSITIONS.get((current, trigger))
    if transition is None:
        if is_noop(current, trigger):
            logger.info(
                "Case %s: %s ignored, already in '%s'", case.id, trigger.value, current.value
            )
            return False
        allowed = allowed_triggers(current)
        raise InvalidTransitionError(
            f"Cannot apply '{trigger.value}' in status '{current.value}'. "
            f"Allowed: {[t.value for t in allowed] if allowed else 'none (terminal status)'}."
        )

    guard = _GUARDS.get(trigger)
    if guard is not None:
        await guard(session, case)

    case.status = transition.target
    await write_activity(
        session,
        case,
        event=trigger.value,
        actor_type=actor.type,
        actor_id=actor.id,
        actor_name=actor.name,
        description=description or _EVENT_DESCRIPTIONS.get(trigger),
        event_data={"from": current.value, "to": transition.target.value, **(event_data or {})},
    )
    logger.info(
        "Case %s: %s -> %s via %s (actor=%s:%s)",
        case.id,
        current.value,
        transition.target.value,
        trigger.value,
        actor.type.value,
        actor.id,
    )
    return True
