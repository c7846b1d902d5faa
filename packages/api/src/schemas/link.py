# This project was developed with assistance from AI tools.
"""Capability link schemas."""

from datetime import datetime

from db.enums import LinkStatus
from pydantic import BaseModel, ConfigDict, Field


class LinkCreate(BaseModel):
    expiry_hours: int | None = Field(default=None, ge=1, le=24 * 30)
    purpose: str | None = Field(default=None, max_length=50)


class LinkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    case_id: int
    token: str
    purpose: str
    status: LinkStatus
    access_url: str
    expires_at: datetime
    first_accessed_at: datetime | None = None
    access_count: int = 0
    created_at: datetime


class LinkListResponse(BaseModel):
    items: list[LinkResponse]
    total: int
