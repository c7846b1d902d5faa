# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, get_db, get_db_service
from .enums import (
    ActorType,
    CaseStatus,
    CaseTrigger,
    DiagnosisStatus,
    DocumentType,
    IssueSeverity,
    LinkStatus,
    NotificationStatus,
    NotificationType,
    TranslationFieldStatus,
    UserRole,
    VisaType,
)
from .models import (
    Applicant,
    Attachment,
    Case,
    CaseActivity,
    CaseLink,
    DiagnosisIssue,
    DiagnosisReport,
    FormSection,
    Notification,
    Organization,
    TranslationField,
    User,
)

__all__ = [
    "Base",
    "DatabaseService",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "ActorType",
    "CaseStatus",
    "CaseTrigger",
    "DiagnosisStatus",
    "DocumentType",
    "IssueSeverity",
    "LinkStatus",
    "NotificationStatus",
    "NotificationType",
    "TranslationFieldStatus",
    "UserRole",
    "VisaType",
    # Models
    "Applicant",
    "Attachment",
    "Case",
    "CaseActivity",
    "CaseLink",
    "DiagnosisIssue",
    "DiagnosisReport",
    "FormSection",
    "Notification",
    "Organization",
    "TranslationField",
    "User",
]
