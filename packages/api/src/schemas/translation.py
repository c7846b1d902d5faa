# This project was developed with assistance from AI tools.
"""Translation comparison schemas."""

from datetime import datetime
from typing import Literal

from db.enums import TranslationFieldStatus
from pydantic import BaseModel, ConfigDict, Field


class TranslationFieldResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    section: str
    field_name: str
    chinese_question: str | None = None
    chinese_value: str | None = None
    english_question: str | None = None
    english_value: str | None = None
    status: TranslationFieldStatus
    is_modified: bool = False
    consultant_note: str | None = None
    translation_confidence: float | None = None


class SectionSummary(BaseModel):
    id: str
    name_cn: str
    completed_fields: int
    total_fields: int
    status: Literal["completed", "in_progress", "pending", "warning"]


class TranslationComparison(BaseModel):
    case_id: int
    sections: list[SectionSummary]
    fields: list[TranslationFieldResponse]
    overall_completion: int
    total_fields: int
    completed_fields: int
    warning_fields: int
    error_fields: int
    last_updated: datetime | None = None


class TranslationStatusResponse(BaseModel):
    case_id: int
    status: Literal["not_started", "processing", "completed"]
    total_fields: int = 0


class FieldTranslationUpdate(BaseModel):
    english_value: str = Field(max_length=5000)


class FieldNoteUpdate(BaseModel):
    consultant_note: str = Field(max_length=5000)


# -- Engine callback payload --


class EngineTranslatedField(BaseModel):
    section: str
    field_name: str
    chinese_question: str | None = None
    chinese_value: str | None = None
    english_question: str | None = None
    english_value: str | None = None
    status: TranslationFieldStatus = TranslationFieldStatus.COMPLETED
    translation_confidence: float | None = Field(default=None, ge=0, le=1)


class TranslationResult(BaseModel):
    """Posted by the AI engine when a translation run finishes."""

    fields: list[EngineTranslatedField]
