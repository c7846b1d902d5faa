# This project was developed with assistance from AI tools.
"""Tests for the case status state machine."""

import pytest
from db import CaseActivity
from db.enums import ActorType, CaseStatus, CaseTrigger, DiagnosisStatus
from sqlalchemy import func, select

from src.services import diagnosis as diagnosis_service
from src.services.workflow import (
    CONSULTANT_TRIGGERS,
    SYSTEM_ACTOR,
    Actor,
    InvalidTransitionError,
    TransitionGuardError,
    allowed_triggers,
    apply_transition,
    is_noop,
    next_status,
)
from tests.factories import complete_all_steps, insert_case

S = CaseStatus
T = CaseTrigger

EXPECTED = {
    (S.CREATED, T.SEND_LINK): S.LINK_SENT,
    (S.LINK_SENT, T.SEND_LINK): S.LINK_SENT,
    (S.CLIENT_FILLING, T.SEND_LINK): S.CLIENT_FILLING,
    (S.LINK_SENT, T.CLIENT_ACCESS): S.CLIENT_FILLING,
    (S.CLIENT_FILLING, T.CLIENT_SUBMIT): S.CLIENT_SUBMITTED,
    (S.NEED_SUPPLEMENT, T.CLIENT_SUBMIT): S.CLIENT_SUBMITTED,
    (S.CLIENT_SUBMITTED, T.CONFIRM_SUBMISSION): S.AI_REVIEWING,
    (S.AI_REVIEWING, T.DIAGNOSIS_COMPLETED): S.CONSULTANT_REVIEWING,
    (S.CONSULTANT_REVIEWING, T.REQUEST_SUPPLEMENT): S.NEED_SUPPLEMENT,
    (S.CONSULTANT_REVIEWING, T.APPROVE_MATERIALS): S.MATERIALS_APPROVED,
    (S.MATERIALS_APPROVED, T.START_TRANSLATION): S.AI_PROCESSING,
    (S.AI_PROCESSING, T.TRANSLATION_COMPLETED): S.CONSULTANT_FINAL_REVIEW,
    (S.CONSULTANT_FINAL_REVIEW, T.FINAL_APPROVE): S.CONSULTANT_FINAL_APPROVED,
    (S.CONSULTANT_FINAL_APPROVED, T.REOPEN_FINAL_REVIEW): S.CONSULTANT_FINAL_REVIEW,
    (S.CONSULTANT_FINAL_APPROVED, T.SEND_TO_CLIENT): S.SENT_TO_CLIENT,
    (S.SENT_TO_CLIENT, T.CLIENT_CONFIRM): S.CLIENT_CONFIRMED,
    (S.SENT_TO_CLIENT, T.CLIENT_REJECT): S.CONSULTANT_FINAL_REVIEW,
    (S.CLIENT_CONFIRMED, T.COMPLETE): S.COMPLETED,
}
for _status in CaseStatus:
    if _status not in (S.COMPLETED, S.CANCELLED):
        EXPECTED[(_status, T.CANCEL)] = S.CANCELLED

CONSULTANT = Actor(type=ActorType.CONSULTANT, id="2", name="consultant1")


# ---------------------------------------------------------------------------
# Transition table
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("status", list(CaseStatus))
@pytest.mark.parametrize("trigger", list(CaseTrigger))
def test_transition_table(status, trigger):
    """Every (status, trigger) pair is legal exactly when listed."""
    assert next_status(status, trigger) == EXPECTED.get((status, trigger))


def test_terminal_statuses_allow_nothing():
    assert allowed_triggers(S.COMPLETED) == []
    assert allowed_triggers(S.CANCELLED) == []


def test_system_triggers_not_exposed_to_consultants():
    assert T.DIAGNOSIS_COMPLETED not in CONSULTANT_TRIGGERS
    assert T.TRANSLATION_COMPLETED not in CONSULTANT_TRIGGERS
    assert T.CLIENT_SUBMIT not in CONSULTANT_TRIGGERS
    assert T.APPROVE_MATERIALS in CONSULTANT_TRIGGERS


def test_repeat_of_landed_trigger_is_noop():
    assert is_noop(S.AI_REVIEWING, T.CONFIRM_SUBMISSION)
    assert is_noop(S.MATERIALS_APPROVED, T.APPROVE_MATERIALS)
    assert not is_noop(S.CREATED, T.APPROVE_MATERIALS)


# ---------------------------------------------------------------------------
# apply_transition
# ---------------------------------------------------------------------------


async def test_apply_legal_transition_writes_timeline(seeded):
    case = await insert_case(seeded, status=S.CREATED)

    changed = await apply_transition(seeded, case, T.CANCEL, CONSULTANT)
    await seeded.commit()

    assert changed is True
    assert case.status == S.CANCELLED
    activity = (
        await seeded.execute(select(CaseActivity).where(CaseActivity.case_id == case.id))
    ).scalar_one()
    assert activity.event == "cancel"
    assert activity.status == "cancelled"
    assert activity.event_data == {"from": "created", "to": "cancelled"}


@pytest.mark.parametrize(
    "status,trigger",
    [
        (S.CREATED, T.APPROVE_MATERIALS),
        (S.LINK_SENT, T.CLIENT_SUBMIT),
        (S.COMPLETED, T.CANCEL),
        (S.SENT_TO_CLIENT, T.COMPLETE),
    ],
)
async def test_illegal_transition_leaves_case_untouched(seeded, status, trigger):
    case = await insert_case(seeded, status=status)

    with pytest.raises(InvalidTransitionError):
        await apply_transition(seeded, case, trigger, CONSULTANT)

    assert case.status == status
    count = (
        await seeded.execute(
            select(func.count()).select_from(CaseActivity).where(CaseActivity.case_id == case.id)
        )
    ).scalar()
    assert count == 0


async def test_noop_returns_false(seeded):
    case = await insert_case(seeded, status=S.AI_REVIEWING)
    assert await apply_transition(seeded, case, T.CONFIRM_SUBMISSION, CONSULTANT) is False
    assert case.status == S.AI_REVIEWING


async def test_submit_requires_every_step(seeded):
    case = await insert_case(seeded, status=S.CLIENT_FILLING)
    with pytest.raises(TransitionGuardError, match="0 of 10"):
        await apply_transition(seeded, case, T.CLIENT_SUBMIT, CONSULTANT)
    assert case.status == S.CLIENT_FILLING

    await complete_all_steps(seeded, case)
    assert await apply_transition(seeded, case, T.CLIENT_SUBMIT, CONSULTANT)
    assert case.status == S.CLIENT_SUBMITTED


async def test_client_access_requires_live_link(seeded):
    case = await insert_case(seeded, status=S.LINK_SENT)
    with pytest.raises(TransitionGuardError, match="No active"):
        await apply_transition(seeded, case, T.CLIENT_ACCESS, CONSULTANT)


async def test_approve_requires_completed_report(seeded):
    case = await insert_case(seeded, status=S.CONSULTANT_REVIEWING)
    with pytest.raises(TransitionGuardError, match="not completed"):
        await apply_transition(seeded, case, T.APPROVE_MATERIALS, CONSULTANT)


# ---------------------------------------------------------------------------
# Review rounds
# ---------------------------------------------------------------------------


async def test_review_round_increments_with_new_report(seeded):
    """Each re-confirmation after a supplement opens a new, higher round."""
    case = await insert_case(seeded, status=S.AI_REVIEWING)

    first = await diagnosis_service.open_review_round(seeded, case)
    await seeded.commit()
    assert case.review_round == 1
    assert first.review_round == 1

    first.status = DiagnosisStatus.COMPLETED
    await seeded.commit()

    second = await diagnosis_service.open_review_round(seeded, case)
    await seeded.commit()
    assert case.review_round == 2
    assert second.review_round == 2
    assert second.id != first.id
    assert second.status == DiagnosisStatus.PENDING
    assert first.superseded is True

    third = await diagnosis_service.open_review_round(seeded, case)
    await seeded.commit()
    assert [first.review_round, second.review_round, third.review_round] == [1, 2, 3]


async def test_system_actor_completes_diagnosis(seeded):
    case = await insert_case(seeded, status=S.AI_REVIEWING)
    assert await apply_transition(seeded, case, T.DIAGNOSIS_COMPLETED, SYSTEM_ACTOR)
    assert case.status == S.CONSULTANT_REVIEWING
