# This project was developed with assistance from AI tools.
"""Completion callbacks from the AI engine, authenticated by shared secret."""

import hmac
import logging

from db import get_db
from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..schemas.diagnosis import DiagnosisResult, ReportResponse
from ..schemas.translation import TranslationResult, TranslationStatusResponse
from ..services import diagnosis as diagnosis_service
from ..services import translation as translation_service
from ..services.diagnosis import DiagnosisLockedError
from ..services.workflow import InvalidTransitionError, TransitionGuardError
from .diagnosis import build_report_response

logger = logging.getLogger(__name__)


async def verify_engine_secret(x_engine_secret: str | None = Header(default=None)) -> None:
    if x_engine_secret is None or not hmac.compare_digest(
        x_engine_secret, settings.ENGINE_CALLBACK_SECRET
    ):
        logger.warning("Engine callback rejected: bad or missing X-Engine-Secret")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid engine secret")


router = APIRouter(dependencies=[Depends(verify_engine_secret)])


@router.post("/diagnosis/{report_id}", response_model=ReportResponse)
async def diagnosis_completed(
    report_id: int,
    body: DiagnosisResult,
    session: AsyncSession = Depends(get_db),
) -> ReportResponse:
    try:
        report = await diagnosis_service.record_result(session, report_id, body)
    except (DiagnosisLockedError, InvalidTransitionError, TransitionGuardError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return build_report_response(report)


@router.post("/translation/{case_id}", response_model=TranslationStatusResponse)
async def translation_completed(
    case_id: int,
    body: TranslationResult,
    session: AsyncSession = Depends(get_db),
) -> TranslationStatusResponse:
    try:
        case = await translation_service.record_result(session, case_id, body)
    except (InvalidTransitionError, TransitionGuardError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if case is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Case not found")
    return TranslationStatusResponse(
        case_id=case.id, status="completed", total_fields=len(body.fields)
    )
