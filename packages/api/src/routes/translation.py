# This project was developed with assistance from AI tools.
"""Translation comparison and consultant corrections."""

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.translation import (
    FieldNoteUpdate,
    FieldTranslationUpdate,
    TranslationComparison,
    TranslationFieldResponse,
    TranslationStatusResponse,
)
from ..services import translation as translation_service

router = APIRouter()

_STAFF = (UserRole.ADMIN, UserRole.CONSULTANT)


@router.get(
    "/cases/{case_id}/translation-comparison",
    response_model=TranslationComparison,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def get_comparison(
    case_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> TranslationComparison:
    result = await translation_service.get_comparison(session, user, case_id)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Case not found")
    fields = [TranslationFieldResponse.model_validate(f) for f in result["fields"]]
    return TranslationComparison(**{**result, "fields": fields})


@router.get(
    "/cases/{case_id}/translation/status",
    response_model=TranslationStatusResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def get_status(
    case_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> TranslationStatusResponse:
    result = await translation_service.get_status(session, user, case_id)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Case not found")
    return TranslationStatusResponse(**result)


@router.patch(
    "/translation/fields/{field_id}",
    response_model=TranslationFieldResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def update_field(
    field_id: int,
    body: FieldTranslationUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> TranslationFieldResponse:
    field = await translation_service.update_field(session, user, field_id, body.english_value)
    if field is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Field not found")
    return TranslationFieldResponse.model_validate(field)


@router.patch(
    "/translation/fields/{field_id}/note",
    response_model=TranslationFieldResponse,
    dependencies=[Depends(require_roles(*_STAFF))],
)
async def update_field_note(
    field_id: int,
    body: FieldNoteUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> TranslationFieldResponse:
    field = await translation_service.update_field_note(
        session, user, field_id, body.consultant_note
    )
    if field is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Field not found")
    return TranslationFieldResponse.model_validate(field)
