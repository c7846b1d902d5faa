# This project was developed with assistance from AI tools.
"""Applicant wizard routes, authorized by capability token instead of bearer auth."""

import logging
from typing import Any

from db import get_db
from db.enums import CaseTrigger, DocumentType
from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.case import CaseProgressResponse
from ..schemas.diagnosis import ReportResponse
from ..schemas.wizard import (
    AttachmentListResponse,
    AttachmentResponse,
    ClientDecisionRequest,
    ClientSubmitResponse,
    LinkValidation,
    StepDataResponse,
    StepInfoResponse,
)
from ..services import attachment as attachment_service
from ..services import diagnosis as diagnosis_service
from ..services import ds160 as ds160_service
from ..services.attachment import AttachmentUploadError
from ..services.ds160 import StepValidationError, WizardLockedError
from ..services.link import LinkAccessError, resolve_token
from ..services.workflow import InvalidTransitionError, TransitionGuardError
from ..wizard import STEPS, Mode, next_step
from ..wizard.engine import split_path
from .diagnosis import build_report_response

logger = logging.getLogger(__name__)

router = APIRouter()


def _link_error(exc: LinkAccessError) -> HTTPException:
    code = status.HTTP_404_NOT_FOUND if exc.reason == "not_found" else status.HTTP_410_GONE
    return HTTPException(status_code=code, detail=str(exc))


def _conflict(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


def _step_errors(exc: StepValidationError) -> HTTPException:
    """422 whose detail lists each failing field as ``{loc, msg, type}``."""
    detail = [
        {"loc": ["body", *split_path(path)], "msg": message, "type": "value_error"}
        for path, message in exc.errors.items()
    ]
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


@router.get("/{token}", response_model=LinkValidation)
async def open_link(token: str, session: AsyncSession = Depends(get_db)) -> LinkValidation:
    """Validate the link and record the visit."""
    try:
        link, case = await ds160_service.open_link(session, token)
    except LinkAccessError as exc:
        raise _link_error(exc) from exc
    except (InvalidTransitionError, TransitionGuardError) as exc:
        raise _conflict(exc) from exc
    return LinkValidation(
        case_id=case.id,
        case_number=case.case_number,
        applicant_name=case.applicant.name if case.applicant else "",
        visa_type=case.visa_type,
        expires_at=link.expires_at,
        case_status=case.status,
        can_edit=ds160_service.can_edit(link, case),
    )


@router.get("/{token}/steps", response_model=list[StepInfoResponse])
async def list_steps(token: str, session: AsyncSession = Depends(get_db)) -> list[StepInfoResponse]:
    try:
        progress = await ds160_service.progress_for_token(session, token)
    except LinkAccessError as exc:
        raise _link_error(exc) from exc
    done = set(progress["completed_steps"])
    return [
        StepInfoResponse(step=s.order, key=s.key, label=s.label, is_complete=s.order in done)
        for s in STEPS
    ]


@router.get("/{token}/steps/{step}", response_model=StepDataResponse)
async def get_step(
    token: str, step: str, session: AsyncSession = Depends(get_db)
) -> StepDataResponse:
    try:
        result = await ds160_service.get_step_data(session, token, step)
    except LinkAccessError as exc:
        raise _link_error(exc) from exc
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown step")
    info, section, data = result
    following = next_step(info.key)
    return StepDataResponse(
        step=info.order,
        key=info.key,
        label=info.label,
        data=data,
        is_complete=bool(section and section.is_complete),
        last_saved_at=section.last_saved_at if section else None,
        next_step=following.key if following else None,
    )


@router.post("/{token}/steps/{step}", response_model=StepDataResponse)
async def save_step(
    token: str,
    step: str,
    data: dict[str, Any] | None = Body(default=None),
    mode: Mode = "continue",
    session: AsyncSession = Depends(get_db),
) -> StepDataResponse:
    """Save one step. ``mode=draft`` skips required and conditional checks."""
    try:
        result = await ds160_service.save_step(session, token, step, data or {}, mode)
    except LinkAccessError as exc:
        raise _link_error(exc) from exc
    except WizardLockedError as exc:
        raise _conflict(exc) from exc
    except StepValidationError as exc:
        raise _step_errors(exc) from exc
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown step")
    info, section = result
    following = next_step(info.key)
    return StepDataResponse(
        step=info.order,
        key=info.key,
        label=info.label,
        data=section.data,
        is_complete=section.is_complete,
        last_saved_at=section.last_saved_at,
        next_step=following.key if following else None,
    )


@router.get("/{token}/progress", response_model=CaseProgressResponse)
async def get_progress(token: str, session: AsyncSession = Depends(get_db)) -> CaseProgressResponse:
    try:
        progress = await ds160_service.progress_for_token(session, token)
    except LinkAccessError as exc:
        raise _link_error(exc) from exc
    return CaseProgressResponse(**progress)


@router.post("/{token}/submit", response_model=ClientSubmitResponse)
async def submit(token: str, session: AsyncSession = Depends(get_db)) -> ClientSubmitResponse:
    """Final submission; every step must have been saved with ``continue``."""
    try:
        case = await ds160_service.submit(session, token)
    except LinkAccessError as exc:
        raise _link_error(exc) from exc
    except (WizardLockedError, InvalidTransitionError, TransitionGuardError) as exc:
        raise _conflict(exc) from exc
    return ClientSubmitResponse(message="资料提交成功", case_status=case.status)


@router.post("/{token}/files", response_model=AttachmentResponse, status_code=201)
async def upload_file(
    token: str,
    file: UploadFile = File(...),
    document_type: DocumentType = Form(...),
    session: AsyncSession = Depends(get_db),
) -> AttachmentResponse:
    content_type = file.content_type or ""
    problem = attachment_service.check_content_type(document_type, content_type)
    if problem:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=problem)
    try:
        _link, case = await ds160_service.editable_case(session, token)
    except LinkAccessError as exc:
        raise _link_error(exc) from exc
    except WizardLockedError as exc:
        raise _conflict(exc) from exc

    file_data = await file.read()
    try:
        attachment = await attachment_service.upload_attachment(
            session,
            case,
            doc_type=document_type,
            filename=file.filename or "upload",
            content_type=content_type,
            file_data=file_data,
            uploaded_by=case.applicant.name if case.applicant else None,
        )
    except AttachmentUploadError as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    return AttachmentResponse.model_validate(attachment)


@router.get("/{token}/files", response_model=AttachmentListResponse)
async def list_files(token: str, session: AsyncSession = Depends(get_db)) -> AttachmentListResponse:
    try:
        link = await resolve_token(session, token, allow_used=True)
    except LinkAccessError as exc:
        raise _link_error(exc) from exc
    items = [
        AttachmentResponse.model_validate(a)
        for a in await attachment_service.list_attachments(session, link.case_id)
    ]
    return AttachmentListResponse(items=items, total=len(items))


@router.delete("/{token}/files/{attachment_id}", status_code=204)
async def delete_file(
    token: str, attachment_id: int, session: AsyncSession = Depends(get_db)
) -> Response:
    try:
        _link, case = await ds160_service.editable_case(session, token)
    except LinkAccessError as exc:
        raise _link_error(exc) from exc
    except WizardLockedError as exc:
        raise _conflict(exc) from exc
    if not await attachment_service.delete_attachment(session, case, attachment_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return Response(status_code=204)


@router.get("/{token}/diagnosis", response_model=ReportResponse)
async def get_client_diagnosis(
    token: str, session: AsyncSession = Depends(get_db)
) -> ReportResponse:
    """The report the consultant sent to the applicant, if any."""
    try:
        link = await resolve_token(session, token, allow_used=True)
    except LinkAccessError as exc:
        raise _link_error(exc) from exc
    report = await diagnosis_service.get_client_report(session, link.case)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return build_report_response(report)


async def _decide(
    session: AsyncSession, token: str, trigger: CaseTrigger, body: ClientDecisionRequest | None
) -> ClientSubmitResponse:
    try:
        case = await ds160_service.client_decision(
            session, token, trigger, body.reason if body else None
        )
    except LinkAccessError as exc:
        raise _link_error(exc) from exc
    except (InvalidTransitionError, TransitionGuardError) as exc:
        raise _conflict(exc) from exc
    message = "已确认" if trigger == CaseTrigger.CLIENT_CONFIRM else "已提交修改意见"
    return ClientSubmitResponse(message=message, case_status=case.status)


@router.post("/{token}/confirm", response_model=ClientSubmitResponse)
async def confirm(
    token: str,
    body: ClientDecisionRequest | None = None,
    session: AsyncSession = Depends(get_db),
) -> ClientSubmitResponse:
    """Applicant accepts the final result."""
    return await _decide(session, token, CaseTrigger.CLIENT_CONFIRM, body)


@router.post("/{token}/reject", response_model=ClientSubmitResponse)
async def reject(
    token: str,
    body: ClientDecisionRequest | None = None,
    session: AsyncSession = Depends(get_db),
) -> ClientSubmitResponse:
    """Applicant asks for changes; the case returns to final review."""
    return await _decide(session, token, CaseTrigger.CLIENT_REJECT, body)
