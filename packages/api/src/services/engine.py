# This project was developed with assistance from AI tools.
"""Dispatch of diagnosis and translation work to the external AI engine.

The engine is opaque: we POST the submitted form data and it calls back
``/api/v1/engine/...`` when finished. Dispatch runs as a retained
background task so the request that triggered it is not held open.
A failed dispatch is logged and leaves the report pending, so a
consultant can re-request it.
"""

import asyncio
import logging

import httpx
from db import DiagnosisReport
from db.database import SessionLocal
from db.enums import DiagnosisStatus
from sqlalchemy import select

from ..core.config import settings

logger = logging.getLogger(__name__)

# Track background dispatch tasks so exceptions aren't silently lost
_tasks: set[asyncio.Task] = set()


class EngineClient:
    """Minimal httpx client for the engine's two entry points."""

    def __init__(self, base_url: str, secret: str, timeout: float = 10.0, transport=None):
        self._base_url = base_url.rstrip("/")
        self._secret = secret
        self._timeout = timeout
        self._transport = transport

    async def _post(self, path: str, payload: dict) -> dict:
        async with httpx.AsyncClient(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport
        ) as client:
            resp = await client.post(path, json=payload, headers={"X-Engine-Secret": self._secret})
            resp.raise_for_status()
            return resp.json() if resp.content else {}

    async def diagnose(self, case_id: int, report_id: int, form_data: dict) -> dict:
        return await self._post(
            "/diagnose", {"case_id": case_id, "report_id": report_id, "form_data": form_data}
        )

    async def translate(self, case_id: int, form_data: dict) -> dict:
        return await self._post("/translate", {"case_id": case_id, "form_data": form_data})


def get_engine_client() -> EngineClient | None:
    """Configured client, or None when no engine URL is set."""
    if not settings.ENGINE_BASE_URL:
        return None
    return EngineClient(
        settings.ENGINE_BASE_URL,
        settings.ENGINE_CALLBACK_SECRET,
        timeout=settings.ENGINE_TIMEOUT_SECONDS,
    )


async def run_diagnosis(client: EngineClient, case_id: int, report_id: int, form_data: dict) -> bool:
    """Send one diagnosis job; mark the report processing once accepted."""
    try:
        await client.diagnose(case_id, report_id, form_data)
    except httpx.HTTPError as exc:
        logger.warning(
            "Diagnosis dispatch failed for case %s report %s: %s", case_id, report_id, exc
        )
        return False

    async with SessionLocal() as session:
        stmt = select(DiagnosisReport).where(DiagnosisReport.id == report_id)
        report = (await session.execute(stmt)).scalar_one_or_none()
        if report is not None and report.status == DiagnosisStatus.PENDING:
            report.status = DiagnosisStatus.PROCESSING
            await session.commit()
    logger.info("Diagnosis dispatched for case %s report %s", case_id, report_id)
    return True


async def run_translation(client: EngineClient, case_id: int, form_data: dict) -> bool:
    try:
        await client.translate(case_id, form_data)
    except httpx.HTTPError as exc:
        logger.warning("Translation dispatch failed for case %s: %s", case_id, exc)
        return False
    logger.info("Translation dispatched for case %s", case_id)
    return True


def _spawn(coro, name: str) -> asyncio.Task:
    task = asyncio.create_task(coro, name=name)
    _tasks.add(task)
    task.add_done_callback(_tasks.discard)
    return task


def schedule_diagnosis(case_id: int, report_id: int, form_data: dict) -> asyncio.Task | None:
    """Fire-and-forget diagnosis dispatch. Call after the report is committed."""
    client = get_engine_client()
    if client is None:
        logger.info("ENGINE_BASE_URL not set, diagnosis for case %s not dispatched", case_id)
        return None
    return _spawn(run_diagnosis(client, case_id, report_id, form_data), f"diagnose-{report_id}")


def schedule_translation(case_id: int, form_data: dict) -> asyncio.Task | None:
    client = get_engine_client()
    if client is None:
        logger.info("ENGINE_BASE_URL not set, translation for case %s not dispatched", case_id)
        return None
    return _spawn(run_translation(client, case_id, form_data), f"translate-{case_id}")
