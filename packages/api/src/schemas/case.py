# This project was developed with assistance from AI tools.
"""Case request/response schemas."""

from datetime import datetime
from typing import Literal

from db.enums import ActorType, CaseStatus, CaseTrigger, VisaType
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from . import Paginated


class CaseCreate(BaseModel):
    """Create a new case together with its applicant."""

    applicant_name: str = Field(min_length=1, max_length=255)
    applicant_phone: str | None = None
    applicant_email: EmailStr | None = None
    visa_type: VisaType
    interview_date: datetime | None = None
    is_vip: bool = False
    notes: str | None = None
    link_validity_days: int | None = Field(
        default=None,
        ge=1,
        le=30,
        description="When set, a capability link is generated right away.",
    )


class ApplicantUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    name_pinyin: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    passport_number: str | None = None


class CaseUpdate(BaseModel):
    """Partial update; status changes go through transitions instead."""

    applicant: ApplicantUpdate | None = None
    notes: str | None = None
    interview_date: datetime | None = None
    is_vip: bool | None = None


class ApplicantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    name_pinyin: str | None = None
    email: str | None = None
    phone: str | None = None
    passport_number: str | None = None


class CaseResponse(BaseModel):
    """Single case response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    case_number: str
    status: CaseStatus
    status_label: str
    visa_type: VisaType
    review_round: int
    interview_date: datetime | None = None
    is_vip: bool = False
    notes: str | None = None
    consultant_id: int | None = None
    applicant: ApplicantResponse | None = None
    allowed_triggers: list[CaseTrigger] = []
    created_at: datetime
    updated_at: datetime


CaseListResponse = Paginated[CaseResponse]


class TransitionRequest(BaseModel):
    trigger: CaseTrigger
    reason: str | None = Field(default=None, max_length=2000)


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: str
    event: str
    actor_type: ActorType
    actor_id: str | None = None
    actor_name: str | None = None
    description: str | None = None
    created_at: datetime


class StepProgress(BaseModel):
    step: int
    key: str
    name: str
    status: Literal["completed", "current", "pending"]
    completed_at: datetime | None = None


class CaseProgressResponse(BaseModel):
    case_id: int
    current_step: int
    total_steps: int
    completed_steps: list[int]
    percentage: int
    last_saved_at: datetime | None = None
    steps: list[StepProgress]
