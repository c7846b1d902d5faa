# This project was developed with assistance from AI tools.
"""Capability link issuance and revocation."""

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.link import LinkCreate, LinkListResponse, LinkResponse
from ..services import case as case_service
from ..services import link as link_service
from ..services.link import LinkAccessError
from ..services.workflow import InvalidTransitionError

router = APIRouter()

_STAFF = (UserRole.ADMIN, UserRole.CONSULTANT)


@router.post(
    "/cases/{case_id}/links",
    response_model=LinkResponse,
    status_code=201,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def create_link(
    case_id: int,
    body: LinkCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> LinkResponse:
    """Issue a new link, revoking the case's current one."""
    case = await case_service.get_case(session, user, case_id)
    if case is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Case not found")
    try:
        link = await link_service.issue_link(
            session, user, case, expiry_hours=body.expiry_hours, purpose=body.purpose
        )
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    await session.commit()
    await session.refresh(link)
    return LinkResponse.model_validate(link)


@router.get(
    "/cases/{case_id}/links",
    response_model=LinkListResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def list_links(
    case_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> LinkListResponse:
    links = await link_service.list_links(session, user, case_id)
    if links is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Case not found")
    return LinkListResponse(items=[LinkResponse.model_validate(x) for x in links], total=len(links))


@router.post(
    "/links/{link_id}/revoke",
    response_model=LinkResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def revoke_link(
    link_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> LinkResponse:
    try:
        link = await link_service.revoke_link(session, user, link_id)
    except LinkAccessError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if link is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Link not found")
    return LinkResponse.model_validate(link)
