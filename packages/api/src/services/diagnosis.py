# This project was developed with assistance from AI tools.
"""AI diagnosis reports and the consultant's review of them.

One report exists per review round. Opening a new round supersedes the
previous report, which from then on is read-only history. Issues on the
current report are mutated in place (notes, fixed flag, auto-fix).
"""

import logging
from datetime import UTC, datetime

from db import Case, DiagnosisIssue, DiagnosisReport, FormSection
from db.enums import (
    CaseStatus,
    CaseTrigger,
    DiagnosisStatus,
    IssueSeverity,
    NotificationType,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..schemas.auth import UserContext
from ..schemas.diagnosis import DiagnosisResult
from ..wizard import STEP_KEYS
from ..wizard.engine import split_path
from .ds160 import load_form_data
from .engine import schedule_diagnosis
from .notification import create_notification
from .scope import apply_data_scope
from .workflow import SYSTEM_ACTOR, apply_transition, current_report

logger = logging.getLogger(__name__)


class DiagnosisLockedError(ValueError):
    """Raised when mutating a superseded report or requesting at the wrong time."""

    pass


_COUNT_ATTRS = {
    IssueSeverity.BLOCKER: "blocker_issues",
    IssueSeverity.CRITICAL: "critical_issues",
    IssueSeverity.WARNING: "warning_issues",
    IssueSeverity.INFO: "info_issues",
}


def total_issues(report: DiagnosisReport) -> int:
    return sum(getattr(report, attr) or 0 for attr in _COUNT_ATTRS.values())


def sorted_issues(report: DiagnosisReport) -> list[DiagnosisIssue]:
    """Issues most severe first, then in insertion order."""
    return sorted(report.issues, key=lambda i: (i.severity.rank, i.id))


def _ensure_current(report: DiagnosisReport) -> None:
    if report.superseded:
        raise DiagnosisLockedError(
            f"Report for round {report.review_round} is superseded and read-only."
        )


# ---------------------------------------------------------------------------
# Review rounds
# ---------------------------------------------------------------------------


async def open_review_round(session: AsyncSession, case: Case) -> DiagnosisReport:
    """Create the pending report for the case's next review.

    When the current round already has a report the round number is
    incremented first and the old report superseded. Flushes, no commit.
    """
    previous = await current_report(session, case)
    if previous is not None:
        previous.superseded = True
        case.review_round += 1
    report = DiagnosisReport(
        case_id=case.id,
        review_round=case.review_round,
        status=DiagnosisStatus.PENDING,
        blocker_issues=0,
        critical_issues=0,
        warning_issues=0,
        info_issues=0,
        superseded=False,
    )
    session.add(report)
    await session.flush()
    logger.info("Case %s review round %s opened (report %s)", case.id, case.review_round, report.id)
    return report


async def dispatch(session: AsyncSession, case: Case, report: DiagnosisReport) -> None:
    """Hand the report to the engine. Call after the report is committed."""
    schedule_diagnosis(case.id, report.id, await load_form_data(session, case.id))


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def _report_query():
    return select(DiagnosisReport).options(selectinload(DiagnosisReport.issues))


async def _scoped_case(session: AsyncSession, user: UserContext, case_id: int) -> Case | None:
    stmt = apply_data_scope(select(Case).where(Case.id == case_id), user.data_scope)
    return (await session.execute(stmt)).scalar_one_or_none()


async def _scoped_report(
    session: AsyncSession, user: UserContext, report_id: int
) -> DiagnosisReport | None:
    stmt = apply_data_scope(
        _report_query().where(DiagnosisReport.id == report_id),
        user.data_scope,
        join_to_case=DiagnosisReport.case,
    )
    return (await session.execute(stmt)).scalar_one_or_none()


async def _scoped_issue(
    session: AsyncSession, user: UserContext, issue_id: int
) -> DiagnosisIssue | None:
    stmt = (
        select(DiagnosisIssue)
        .options(selectinload(DiagnosisIssue.report))
        .join(DiagnosisIssue.report)
        .where(DiagnosisIssue.id == issue_id)
    )
    stmt = apply_data_scope(stmt, user.data_scope, join_to_case=DiagnosisReport.case)
    return (await session.execute(stmt)).scalar_one_or_none()


async def get_latest_report(
    session: AsyncSession, user: UserContext, case_id: int
) -> DiagnosisReport | None:
    """Report for the case's current round, or None."""
    case = await _scoped_case(session, user, case_id)
    if case is None:
        return None
    stmt = _report_query().where(
        DiagnosisReport.case_id == case.id,
        DiagnosisReport.review_round == case.review_round,
    )
    return (await session.execute(stmt)).scalar_one_or_none()


async def list_reports(
    session: AsyncSession, user: UserContext, case_id: int
) -> list[DiagnosisReport] | None:
    """Every round's report, newest first. None when the case is out of scope."""
    case = await _scoped_case(session, user, case_id)
    if case is None:
        return None
    stmt = (
        _report_query()
        .where(DiagnosisReport.case_id == case.id)
        .order_by(DiagnosisReport.review_round.desc())
    )
    return list((await session.execute(stmt)).scalars().all())


async def get_status(session: AsyncSession, user: UserContext, case_id: int) -> dict | None:
    case = await _scoped_case(session, user, case_id)
    if case is None:
        return None
    report = await current_report(session, case)
    return {
        "case_id": case.id,
        "review_round": case.review_round,
        "report_id": report.id if report else None,
        "status": report.status.value if report else "not_started",
        "total_issues": total_issues(report) if report else 0,
    }


async def get_client_report(session: AsyncSession, case: Case) -> DiagnosisReport | None:
    """Newest report the consultant has sent to the client."""
    stmt = (
        _report_query()
        .where(
            DiagnosisReport.case_id == case.id,
            DiagnosisReport.sent_to_client_at.is_not(None),
        )
        .order_by(DiagnosisReport.review_round.desc())
        .limit(1)
    )
    return (await session.execute(stmt)).scalar_one_or_none()


# ---------------------------------------------------------------------------
# Consultant operations
# ---------------------------------------------------------------------------


async def request_diagnosis(
    session: AsyncSession, user: UserContext, case_id: int
) -> DiagnosisReport | None:
    """Re-request the engine run for the current round.

    Raises:
        DiagnosisLockedError: the case is not awaiting AI review, or the
            round's report already completed.
    """
    case = await _scoped_case(session, user, case_id)
    if case is None:
        return None
    if case.status != CaseStatus.AI_REVIEWING:
        raise DiagnosisLockedError(
            f"Diagnosis can only be requested during AI review, not '{case.status.value}'."
        )
    report = await current_report(session, case)
    if report is None:
        report = await open_review_round(session, case)
    elif report.status == DiagnosisStatus.COMPLETED:
        raise DiagnosisLockedError("The diagnosis for this round is already completed.")
    else:
        report.status = DiagnosisStatus.PENDING
    await session.commit()
    await dispatch(session, case, report)
    return await _reload(session, report.id)


async def _reload(session: AsyncSession, report_id: int) -> DiagnosisReport:
    stmt = _report_query().where(DiagnosisReport.id == report_id).execution_options(
        populate_existing=True
    )
    return (await session.execute(stmt)).scalar_one()


async def update_issue_note(
    session: AsyncSession, user: UserContext, issue_id: int, note: str
) -> DiagnosisIssue | None:
    issue = await _scoped_issue(session, user, issue_id)
    if issue is None:
        return None
    _ensure_current(issue.report)
    issue.consultant_note = note
    issue.consultant_adjusted = True
    await session.commit()
    await session.refresh(issue)
    return issue


async def update_issue_status(
    session: AsyncSession, user: UserContext, issue_id: int, fixed: bool
) -> DiagnosisIssue | None:
    issue = await _scoped_issue(session, user, issue_id)
    if issue is None:
        return None
    _ensure_current(issue.report)
    issue.fixed = fixed
    issue.consultant_adjusted = True
    await session.commit()
    await session.refresh(issue)
    logger.info("Issue %s marked fixed=%s by user %s", issue_id, fixed, user.user_id)
    return issue


async def update_consultant_notes(
    session: AsyncSession, user: UserContext, report_id: int, notes: str
) -> DiagnosisReport | None:
    report = await _scoped_report(session, user, report_id)
    if report is None:
        return None
    _ensure_current(report)
    report.consultant_notes = notes
    report.consultant_reviewed_at = datetime.now(UTC)
    await session.commit()
    return await _reload(session, report.id)


def render_report(report: DiagnosisReport, *, include_ai: bool, include_adjustments: bool) -> str:
    """Plain-text rendition of a report for the consultant's records."""
    lines = [f"诊断报告 第{report.review_round}轮"]
    if report.risk_score is not None:
        lines.append(f"风险评分: {report.risk_score}")
    summary = report.summary or {}
    if include_ai and summary.get("overall"):
        lines.append(f"总体评估: {summary['overall']}")
    for issue in sorted_issues(report):
        mark = "已修复" if issue.fixed else "待处理"
        lines.append(f"[{issue.severity.value}][{mark}] {issue.field_label or issue.field_name}: {issue.description}")
        if include_ai and issue.suggestion:
            lines.append(f"  建议: {issue.suggestion}")
        if include_adjustments and issue.consultant_note:
            lines.append(f"  顾问备注: {issue.consultant_note}")
    if report.consultant_notes:
        lines.append(f"顾问意见: {report.consultant_notes}")
    return "\n".join(lines)


async def generate_report(
    session: AsyncSession,
    user: UserContext,
    report_id: int,
    *,
    consultant_notes: str | None = None,
    include_ai_analysis: bool = True,
    include_consultant_adjustments: bool = True,
) -> tuple[DiagnosisReport, str] | None:
    """Finalize consultant notes and render the report text."""
    report = await _scoped_report(session, user, report_id)
    if report is None:
        return None
    _ensure_current(report)
    if report.status != DiagnosisStatus.COMPLETED:
        raise DiagnosisLockedError("The diagnosis has not completed yet.")
    if consultant_notes is not None:
        report.consultant_notes = consultant_notes
    report.consultant_reviewed_at = datetime.now(UTC)
    await session.commit()
    report = await _reload(session, report.id)
    content = render_report(
        report,
        include_ai=include_ai_analysis,
        include_adjustments=include_consultant_adjustments,
    )
    return report, content


async def send_to_client(
    session: AsyncSession,
    user: UserContext,
    report_id: int,
    *,
    consultant_notes: str | None = None,
) -> DiagnosisReport | None:
    """Publish the report to the applicant's link view."""
    report = await _scoped_report(session, user, report_id)
    if report is None:
        return None
    _ensure_current(report)
    if report.status != DiagnosisStatus.COMPLETED:
        raise DiagnosisLockedError("The diagnosis has not completed yet.")
    if consultant_notes is not None:
        report.consultant_notes = consultant_notes
    report.sent_to_client_at = datetime.now(UTC)
    await session.commit()
    logger.info("Report %s sent to client by user %s", report_id, user.user_id)
    return await _reload(session, report.id)


async def auto_fix(session: AsyncSession, user: UserContext, report_id: int) -> dict | None:
    """Apply every auto-fixable issue's suggested value to the form data.

    An issue's ``field_name`` is a ``step.field`` path. Issues whose path
    does not resolve to a saved step, or that carry no suggested value,
    count as failed and stay unfixed.
    """
    report = await _scoped_report(session, user, report_id)
    if report is None:
        return None
    _ensure_current(report)
    stmt = select(FormSection).where(FormSection.case_id == report.case_id)
    sections = {s.step: s for s in (await session.execute(stmt)).scalars().all()}

    fixed = failed = 0
    for issue in report.issues:
        if not issue.auto_fixable or issue.fixed:
            continue
        step, _, field_path = issue.field_name.partition(".")
        section = sections.get(step)
        if (
            issue.suggested_value is None
            or step not in STEP_KEYS
            or section is None
            or not field_path
            or not _assign(section, field_path, issue.suggested_value)
        ):
            failed += 1
            continue
        issue.fixed = True
        fixed += 1
    await session.commit()
    logger.info("Auto-fix on report %s: fixed=%s failed=%s", report_id, fixed, failed)
    return {"fixed_count": fixed, "failed_count": failed}


def _assign(section: FormSection, field_path: str, value: str) -> bool:
    """Set ``field_path`` in the section's bucket; False when the path is absent."""
    data = dict(section.data or {})
    parts = split_path(field_path)
    target = data
    for part in parts[:-1]:
        try:
            target = target[part]
        except (KeyError, IndexError, TypeError):
            return False
    last = parts[-1]
    if isinstance(target, dict):
        target[last] = value
    elif isinstance(target, list) and isinstance(last, int) and last < len(target):
        target[last] = value
    else:
        return False
    # reassign so the JSON column sees the change
    section.data = data
    return True


# ---------------------------------------------------------------------------
# Engine callback
# ---------------------------------------------------------------------------


async def record_result(
    session: AsyncSession, report_id: int, result: DiagnosisResult
) -> DiagnosisReport | None:
    """Store the engine's findings for a report.

    A completed result on the case's current round moves the case from
    ``ai_reviewing`` to ``consultant_reviewing`` and notifies the consultant.
    A repeated delivery for an already completed report changes nothing.

    Raises:
        DiagnosisLockedError: the report is superseded.
    """
    stmt = (
        _report_query()
        .options(selectinload(DiagnosisReport.case).selectinload(Case.applicant))
        .where(DiagnosisReport.id == report_id)
    )
    report = (await session.execute(stmt)).scalar_one_or_none()
    if report is None:
        return None
    _ensure_current(report)
    if report.status == DiagnosisStatus.COMPLETED:
        # redelivery; the issues already carry consultant fixes and notes
        logger.info("Ignoring repeated engine result for completed report %s", report_id)
        return await _reload(session, report.id)

    if result.status == DiagnosisStatus.FAILED:
        report.status = DiagnosisStatus.FAILED
        await session.commit()
        logger.warning("Engine reported failure for report %s: %s", report_id, result.error)
        return await _reload(session, report.id)

    report.issues.clear()
    counts = dict.fromkeys(_COUNT_ATTRS.values(), 0)
    for item in result.issues:
        report.issues.append(DiagnosisIssue(**item.model_dump()))
        counts[_COUNT_ATTRS[item.severity]] += 1
    for attr, value in counts.items():
        setattr(report, attr, value)
    report.risk_score = result.risk_score
    report.summary = result.summary.model_dump() if result.summary else None
    report.ai_provider = result.ai_provider
    report.status = result.status

    case = report.case
    if (
        report.status == DiagnosisStatus.COMPLETED
        and case.status == CaseStatus.AI_REVIEWING
        and case.review_round == report.review_round
    ):
        await apply_transition(
            session, case, CaseTrigger.DIAGNOSIS_COMPLETED, SYSTEM_ACTOR,
            event_data={"report_id": report.id, "risk_score": report.risk_score},
        )
        await create_notification(
            session,
            case.organization_id,
            user_id=case.consultant_id,
            case_id=case.id,
            type=NotificationType.AI_COMPLETE,
            title="AI审查完成",
            content=f"案例 {case.case_number} 第{report.review_round}轮诊断完成，共 {total_issues(report)} 个问题。",
            client_name=case.applicant.name if case.applicant else None,
            metadata={"report_id": report.id, "risk_score": report.risk_score},
        )
    await session.commit()
    logger.info("Diagnosis result recorded for report %s (%s issues)", report_id, total_issues(report))
    return await _reload(session, report.id)
