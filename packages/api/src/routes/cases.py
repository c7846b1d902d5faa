# This project was developed with assistance from AI tools.
"""Case CRUD, status transitions and per-case views."""

from typing import Literal

from db import Case, get_db
from db.enums import CaseStatus, UserRole, VisaType
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.case import (
    ActivityResponse,
    ApplicantResponse,
    CaseCreate,
    CaseListResponse,
    CaseProgressResponse,
    CaseResponse,
    CaseUpdate,
    TransitionRequest,
)
from ..schemas.status import StatusMeta
from ..schemas.wizard import AttachmentListResponse, AttachmentResponse
from ..services import attachment as attachment_service
from ..services import case as case_service
from ..services.status import list_status_meta, status_label
from ..services.workflow import (
    CONSULTANT_TRIGGERS,
    InvalidTransitionError,
    TransitionGuardError,
    allowed_triggers,
)

router = APIRouter()

_STAFF = (UserRole.ADMIN, UserRole.CONSULTANT)

_NOT_FOUND = "Case not found"


def build_case_response(case: Case) -> CaseResponse:
    """CaseResponse with the status label and the consultant's next triggers."""
    return CaseResponse(
        id=case.id,
        case_number=case.case_number,
        status=case.status,
        status_label=status_label(case.status),
        visa_type=case.visa_type,
        review_round=case.review_round,
        interview_date=case.interview_date,
        is_vip=case.is_vip,
        notes=case.notes,
        consultant_id=case.consultant_id,
        applicant=ApplicantResponse.model_validate(case.applicant) if case.applicant else None,
        allowed_triggers=[t for t in allowed_triggers(case.status) if t in CONSULTANT_TRIGGERS],
        created_at=case.created_at,
        updated_at=case.updated_at,
    )


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)


@router.get(
    "/",
    response_model=CaseListResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def list_cases(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
    sort_by: Literal["created_at", "updated_at", "interview_date", "case_number"] | None = None,
    sort_order: Literal["asc", "desc"] = "desc",
    status_filter: CaseStatus | None = Query(default=None, alias="status"),
    visa_type: VisaType | None = None,
    search: str | None = Query(default=None, max_length=100),
) -> CaseListResponse:
    """List cases visible to the current user."""
    cases, total = await case_service.list_cases(
        session,
        user,
        offset=(page - 1) * per_page,
        limit=per_page,
        filter_status=status_filter,
        visa_type=visa_type,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return CaseListResponse.build(
        [build_case_response(c) for c in cases], total, page, per_page
    )


@router.post(
    "/",
    response_model=CaseResponse,
    status_code=201,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def create_case(
    body: CaseCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> CaseResponse:
    case = await case_service.create_case(session, user, body)
    return build_case_response(case)


@router.get(
    "/statuses",
    response_model=list[StatusMeta],
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def list_statuses() -> list[StatusMeta]:
    """Status metadata registry: labels, colors, icons and legal triggers."""
    return list_status_meta()


@router.get(
    "/{case_id}",
    response_model=CaseResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def get_case(
    case_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> CaseResponse:
    """Get a single case. Returns 404 for out-of-scope cases."""
    case = await case_service.get_case(session, user, case_id)
    if case is None:
        raise _not_found()
    return build_case_response(case)


@router.patch(
    "/{case_id}",
    response_model=CaseResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def update_case(
    case_id: int,
    body: CaseUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> CaseResponse:
    case = await case_service.update_case(session, user, case_id, body)
    if case is None:
        raise _not_found()
    return build_case_response(case)


@router.delete(
    "/{case_id}",
    status_code=204,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def delete_case(
    case_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> Response:
    if not await case_service.delete_case(session, user, case_id):
        raise _not_found()
    return Response(status_code=204)


@router.post(
    "/{case_id}/transitions",
    response_model=CaseResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def transition_case(
    case_id: int,
    body: TransitionRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> CaseResponse:
    """Fire a consultant trigger. Client and system triggers are rejected with 422."""
    if body.trigger not in CONSULTANT_TRIGGERS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Trigger '{body.trigger.value}' cannot be fired by a consultant.",
        )
    try:
        case = await case_service.transition_case(
            session, user, case_id, body.trigger, reason=body.reason
        )
    except (InvalidTransitionError, TransitionGuardError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if case is None:
        raise _not_found()
    return build_case_response(case)


@router.get(
    "/{case_id}/timeline",
    response_model=list[ActivityResponse],
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def get_timeline(
    case_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> list[ActivityResponse]:
    """Append-only activity timeline, oldest first."""
    activities = await case_service.get_timeline(session, user, case_id)
    if activities is None:
        raise _not_found()
    return [ActivityResponse.model_validate(a) for a in activities]


@router.get(
    "/{case_id}/progress",
    response_model=CaseProgressResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def get_progress(
    case_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> CaseProgressResponse:
    progress = await case_service.get_progress(session, user, case_id)
    if progress is None:
        raise _not_found()
    return CaseProgressResponse(**progress)


@router.get(
    "/{case_id}/attachments",
    response_model=AttachmentListResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def list_attachments(
    case_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> AttachmentListResponse:
    attachments = await attachment_service.list_case_attachments(session, user, case_id)
    if attachments is None:
        raise _not_found()
    items = [AttachmentResponse.model_validate(a) for a in attachments]
    return AttachmentListResponse(items=items, total=len(items))
