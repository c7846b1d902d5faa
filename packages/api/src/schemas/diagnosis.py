# This project was developed with assistance from AI tools.
"""Diagnosis report schemas."""

from datetime import datetime

from db.enums import DiagnosisStatus, IssueSeverity
from pydantic import BaseModel, ConfigDict, Field


class DiagnosisSummary(BaseModel):
    overall: str = ""
    key_findings: list[str] = []
    recommendations: list[str] = []


class IssueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    field_name: str
    field_label: str | None = None
    severity: IssueSeverity
    issue_type: str | None = None
    description: str
    suggestion: str | None = None
    auto_fixable: bool = False
    fixed: bool = False
    consultant_note: str | None = None
    consultant_adjusted: bool = False


class ReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    case_id: int
    review_round: int
    status: DiagnosisStatus
    risk_score: int | None = None
    total_issues: int = 0
    blocker_issues: int = 0
    critical_issues: int = 0
    warning_issues: int = 0
    info_issues: int = 0
    summary: DiagnosisSummary | None = None
    ai_provider: str | None = None
    consultant_notes: str | None = None
    consultant_reviewed_at: datetime | None = None
    sent_to_client_at: datetime | None = None
    superseded: bool = False
    issues: list[IssueResponse] = []
    created_at: datetime


class DiagnosisStatusResponse(BaseModel):
    case_id: int
    review_round: int
    report_id: int | None = None
    status: str
    total_issues: int = 0


class IssueNoteUpdate(BaseModel):
    consultant_note: str = Field(max_length=5000)


class IssueStatusUpdate(BaseModel):
    fixed: bool


class ConsultantNotesUpdate(BaseModel):
    notes: str = Field(max_length=10000)


class ReportGenerateRequest(BaseModel):
    consultant_notes: str | None = None
    include_ai_analysis: bool = True
    include_consultant_adjustments: bool = True


class ReportGenerateResponse(BaseModel):
    report_id: int
    generated_at: datetime
    content: str


class SendToClientRequest(BaseModel):
    consultant_notes: str | None = None
    include_recommendations: bool = True


class AutoFixResponse(BaseModel):
    fixed_count: int
    failed_count: int


# -- Engine callback payload --


class EngineIssue(BaseModel):
    field_name: str
    field_label: str | None = None
    severity: IssueSeverity
    issue_type: str | None = None
    description: str
    suggestion: str | None = None
    auto_fixable: bool = False
    suggested_value: str | None = None


class DiagnosisResult(BaseModel):
    """Posted by the AI engine when a diagnosis run finishes."""

    status: DiagnosisStatus = DiagnosisStatus.COMPLETED
    risk_score: int | None = Field(default=None, ge=0, le=100)
    summary: DiagnosisSummary | None = None
    ai_provider: str | None = None
    issues: list[EngineIssue] = []
    error: str | None = None
