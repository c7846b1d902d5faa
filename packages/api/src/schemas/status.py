# This project was developed with assistance from AI tools.
"""Case status metadata schemas."""

from db.enums import CaseStatus, CaseTrigger
from pydantic import BaseModel


class StatusMeta(BaseModel):
    """Display metadata for one case status."""

    status: CaseStatus
    label: str
    label_en: str
    color: str
    icon: str
    is_terminal: bool = False
    allowed_triggers: list[CaseTrigger] = []
