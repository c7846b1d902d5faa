# This project was developed with assistance from AI tools.
"""Diagnosis reports, issue review and report delivery."""

from datetime import UTC, datetime

from db import DiagnosisReport, get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.diagnosis import (
    AutoFixResponse,
    ConsultantNotesUpdate,
    DiagnosisStatusResponse,
    IssueNoteUpdate,
    IssueResponse,
    IssueStatusUpdate,
    ReportGenerateRequest,
    ReportGenerateResponse,
    ReportResponse,
    SendToClientRequest,
)
from ..services import diagnosis as diagnosis_service
from ..services.diagnosis import DiagnosisLockedError

router = APIRouter()

_STAFF = (UserRole.ADMIN, UserRole.CONSULTANT)


def build_report_response(report: DiagnosisReport) -> ReportResponse:
    """ReportResponse with issues sorted most severe first."""
    response = ReportResponse.model_validate(report)
    return response.model_copy(
        update={
            "total_issues": diagnosis_service.total_issues(report),
            "issues": [
                IssueResponse.model_validate(i) for i in diagnosis_service.sorted_issues(report)
            ],
        }
    )


def _locked(exc: DiagnosisLockedError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


@router.get(
    "/cases/{case_id}/diagnosis/latest",
    response_model=ReportResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def get_latest(
    case_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ReportResponse:
    """Report for the case's current review round."""
    report = await diagnosis_service.get_latest_report(session, user, case_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return build_report_response(report)


@router.get(
    "/cases/{case_id}/diagnosis",
    response_model=list[ReportResponse],
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def list_reports(
    case_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> list[ReportResponse]:
    reports = await diagnosis_service.list_reports(session, user, case_id)
    if reports is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Case not found")
    return [build_report_response(r) for r in reports]


@router.post(
    "/cases/{case_id}/diagnosis",
    response_model=ReportResponse,
    status_code=202,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def request_diagnosis(
    case_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ReportResponse:
    """Re-dispatch the current round to the engine."""
    try:
        report = await diagnosis_service.request_diagnosis(session, user, case_id)
    except DiagnosisLockedError as exc:
        raise _locked(exc) from exc
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Case not found")
    return build_report_response(report)


@router.get(
    "/cases/{case_id}/diagnosis/status",
    response_model=DiagnosisStatusResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def get_status(
    case_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> DiagnosisStatusResponse:
    result = await diagnosis_service.get_status(session, user, case_id)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Case not found")
    return DiagnosisStatusResponse(**result)


@router.patch(
    "/diagnosis/issues/{issue_id}/note",
    response_model=IssueResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def update_issue_note(
    issue_id: int,
    body: IssueNoteUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> IssueResponse:
    try:
        issue = await diagnosis_service.update_issue_note(
            session, user, issue_id, body.consultant_note
        )
    except DiagnosisLockedError as exc:
        raise _locked(exc) from exc
    if issue is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Issue not found")
    return IssueResponse.model_validate(issue)


@router.patch(
    "/diagnosis/issues/{issue_id}/status",
    response_model=IssueResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def update_issue_status(
    issue_id: int,
    body: IssueStatusUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> IssueResponse:
    try:
        issue = await diagnosis_service.update_issue_status(session, user, issue_id, body.fixed)
    except DiagnosisLockedError as exc:
        raise _locked(exc) from exc
    if issue is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Issue not found")
    return IssueResponse.model_validate(issue)


@router.patch(
    "/diagnosis/reports/{report_id}/consultant-notes",
    response_model=ReportResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def update_consultant_notes(
    report_id: int,
    body: ConsultantNotesUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ReportResponse:
    try:
        report = await diagnosis_service.update_consultant_notes(
            session, user, report_id, body.notes
        )
    except DiagnosisLockedError as exc:
        raise _locked(exc) from exc
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return build_report_response(report)


@router.post(
    "/diagnosis/reports/{report_id}/generate",
    response_model=ReportGenerateResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def generate_report(
    report_id: int,
    body: ReportGenerateRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ReportGenerateResponse:
    try:
        result = await diagnosis_service.generate_report(
            session,
            user,
            report_id,
            consultant_notes=body.consultant_notes,
            include_ai_analysis=body.include_ai_analysis,
            include_consultant_adjustments=body.include_consultant_adjustments,
        )
    except DiagnosisLockedError as exc:
        raise _locked(exc) from exc
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    report, content = result
    return ReportGenerateResponse(
        report_id=report.id,
        generated_at=report.consultant_reviewed_at or datetime.now(UTC),
        content=content,
    )


@router.post(
    "/diagnosis/reports/{report_id}/send-client",
    response_model=ReportResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def send_to_client(
    report_id: int,
    body: SendToClientRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ReportResponse:
    try:
        report = await diagnosis_service.send_to_client(
            session, user, report_id, consultant_notes=body.consultant_notes
        )
    except DiagnosisLockedError as exc:
        raise _locked(exc) from exc
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return build_report_response(report)


@router.post(
    "/diagnosis/reports/{report_id}/auto-fix",
    response_model=AutoFixResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def auto_fix(
    report_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> AutoFixResponse:
    """Apply suggested values of auto-fixable issues to the form data."""
    try:
        result = await diagnosis_service.auto_fix(session, user, report_id)
    except DiagnosisLockedError as exc:
        raise _locked(exc) from exc
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return AutoFixResponse(**result)
