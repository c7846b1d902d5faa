# This project was developed with assistance from AI tools.
"""Notification schemas."""

from datetime import datetime

from db.enums import NotificationStatus, NotificationType
from pydantic import BaseModel, ConfigDict, Field

from . import Paginated


class NotificationCreate(BaseModel):
    type: NotificationType = NotificationType.SYSTEM
    title: str = Field(min_length=1, max_length=255)
    content: str = ""
    case_id: int | None = None
    user_id: int | None = Field(
        default=None, description="Recipient; None broadcasts to the organization."
    )
    client_name: str | None = None
    metadata: dict | None = None


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: NotificationType
    title: str
    content: str
    status: NotificationStatus
    case_id: int | None = None
    user_id: int | None = None
    client_name: str | None = None
    metadata: dict | None = Field(default=None, validation_alias="extra")
    created_at: datetime


class NotificationListResponse(Paginated[NotificationResponse]):
    unread_count: int = 0


class MarkAllReadResponse(BaseModel):
    updated: int
