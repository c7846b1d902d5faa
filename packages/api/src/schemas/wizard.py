# This project was developed with assistance from AI tools.
"""Token-scoped wizard (DS-160) schemas."""

from datetime import datetime

from db.enums import CaseStatus, DocumentType, VisaType
from pydantic import BaseModel, ConfigDict, Field


class LinkValidation(BaseModel):
    valid: bool = True
    case_id: int
    case_number: str
    applicant_name: str
    visa_type: VisaType
    expires_at: datetime
    case_status: CaseStatus
    can_edit: bool


class StepInfoResponse(BaseModel):
    step: int
    key: str
    label: str
    is_complete: bool = False


class StepDataResponse(BaseModel):
    step: int
    key: str
    label: str
    data: dict
    is_complete: bool = False
    last_saved_at: datetime | None = None
    next_step: str | None = None


class ClientSubmitResponse(BaseModel):
    success: bool = True
    message: str
    case_status: CaseStatus


class ClientDecisionRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=2000)


class AttachmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    case_id: int
    document_type: DocumentType
    filename: str
    content_type: str
    size: int
    created_at: datetime


class AttachmentListResponse(BaseModel):
    items: list[AttachmentResponse]
    total: int
