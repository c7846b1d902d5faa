# This project was developed with assistance from AI tools.
"""Wizard attachment uploads.

Limits are enforced per document type before anything reaches storage.
The upload step's field bucket is derived from the attachment rows, so
the wizard cannot claim files it never uploaded.
"""

import logging

from db import Attachment, Case
from db.enums import DocumentType
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from .scope import apply_data_scope
from .storage import get_storage_service

logger = logging.getLogger(__name__)

_MB = 1024 * 1024

MAX_SIZE_BYTES: dict[DocumentType, int] = {
    DocumentType.PASSPORT: 5 * _MB,
    DocumentType.PHOTO: 2 * _MB,
    DocumentType.EMPLOYMENT: 5 * _MB,
    DocumentType.FINANCIAL: 10 * _MB,
    DocumentType.OTHER: 10 * _MB,
}

_IMAGES = frozenset({"image/jpeg", "image/png"})
_IMAGES_AND_PDF = _IMAGES | {"application/pdf"}

ALLOWED_CONTENT_TYPES: dict[DocumentType, frozenset[str]] = {
    DocumentType.PASSPORT: _IMAGES_AND_PDF,
    DocumentType.PHOTO: _IMAGES,
    DocumentType.EMPLOYMENT: _IMAGES_AND_PDF,
    DocumentType.FINANCIAL: _IMAGES_AND_PDF,
    DocumentType.OTHER: _IMAGES_AND_PDF,
}


class AttachmentUploadError(ValueError):
    """Raised when an upload fails the per-type size limit."""

    pass


def check_content_type(doc_type: DocumentType, content_type: str) -> str | None:
    """Error message when ``content_type`` is not accepted for ``doc_type``."""
    allowed = ALLOWED_CONTENT_TYPES[doc_type]
    if content_type in allowed:
        return None
    return f"Unsupported file type: {content_type}. Allowed: {', '.join(sorted(allowed))}"


async def upload_attachment(
    session: AsyncSession,
    case: Case,
    *,
    doc_type: DocumentType,
    filename: str,
    content_type: str,
    file_data: bytes,
    uploaded_by: str | None = None,
) -> Attachment:
    """Validate, store and record one file.

    Raises:
        AttachmentUploadError: the file is larger than its type allows.
    """
    limit = MAX_SIZE_BYTES[doc_type]
    if len(file_data) > limit:
        raise AttachmentUploadError(
            f"File size {len(file_data)} exceeds maximum of {limit // _MB}MB for {doc_type.value}"
        )

    attachment = Attachment(
        case_id=case.id,
        document_type=doc_type,
        filename=filename,
        content_type=content_type,
        size=len(file_data),
        uploaded_by=uploaded_by,
    )
    session.add(attachment)
    await session.flush()

    storage = get_storage_service()
    object_key = storage.build_object_key(case.id, attachment.id, filename)
    await storage.upload_file(file_data, object_key, content_type)

    attachment.object_key = object_key
    await session.commit()
    await session.refresh(attachment)
    logger.info("Attachment %s (%s) stored for case %s", attachment.id, doc_type.value, case.id)
    return attachment


async def list_attachments(session: AsyncSession, case_id: int) -> list[Attachment]:
    stmt = select(Attachment).where(Attachment.case_id == case_id).order_by(Attachment.id)
    return list((await session.execute(stmt)).scalars().all())


async def list_case_attachments(
    session: AsyncSession, user: UserContext, case_id: int
) -> list[Attachment] | None:
    """Consultant view; None when the case is out of scope."""
    case_stmt = apply_data_scope(select(Case.id).where(Case.id == case_id), user.data_scope)
    if (await session.execute(case_stmt)).scalar_one_or_none() is None:
        return None
    return await list_attachments(session, case_id)


async def delete_attachment(session: AsyncSession, case: Case, attachment_id: int) -> bool:
    """Remove one of the case's attachments. False when it doesn't belong to the case."""
    stmt = select(Attachment).where(
        Attachment.id == attachment_id, Attachment.case_id == case.id
    )
    attachment = (await session.execute(stmt)).scalar_one_or_none()
    if attachment is None:
        return False
    if attachment.object_key:
        await get_storage_service().delete_file(attachment.object_key)
    await session.delete(attachment)
    await session.commit()
    return True


def upload_step_data(attachments: list[Attachment]) -> dict[str, list[str]]:
    """Field bucket for the upload step: attachment ids grouped by type."""
    data: dict[str, list[str]] = {t.value: [] for t in DocumentType}
    for attachment in attachments:
        data[attachment.document_type.value].append(str(attachment.id))
    return data
