# This project was developed with assistance from AI tools.
"""
Domain enums for the visa case lifecycle.

Shared domain types used by both SQLAlchemy models (db package),
Pydantic schemas (api package) and the HTTP client (deskclient package).
"""

import enum


class CaseStatus(str, enum.Enum):
    CREATED = "created"
    LINK_SENT = "link_sent"
    CLIENT_FILLING = "client_filling"
    CLIENT_SUBMITTED = "client_submitted"
    AI_REVIEWING = "ai_reviewing"
    CONSULTANT_REVIEWING = "consultant_reviewing"
    NEED_SUPPLEMENT = "need_supplement"
    MATERIALS_APPROVED = "materials_approved"
    AI_PROCESSING = "ai_processing"
    CONSULTANT_FINAL_REVIEW = "consultant_final_review"
    CONSULTANT_FINAL_APPROVED = "consultant_final_approved"
    SENT_TO_CLIENT = "sent_to_client"
    CLIENT_CONFIRMED = "client_confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def terminal_statuses(cls) -> frozenset["CaseStatus"]:
        """Statuses where a case accepts no further transitions."""
        return frozenset({cls.COMPLETED, cls.CANCELLED})

    @classmethod
    def valid_transitions(cls) -> dict["CaseStatus", frozenset["CaseStatus"]]:
        """Allowed status edges in the case lifecycle.

        NEED_SUPPLEMENT -> CLIENT_SUBMITTED and the two edges back into
        CONSULTANT_FINAL_REVIEW are the only backward edges.
        """
        return {
            cls.CREATED: frozenset({cls.LINK_SENT, cls.CANCELLED}),
            cls.LINK_SENT: frozenset({cls.LINK_SENT, cls.CLIENT_FILLING, cls.CANCELLED}),
            cls.CLIENT_FILLING: frozenset(
                {cls.CLIENT_FILLING, cls.CLIENT_SUBMITTED, cls.CANCELLED}
            ),
            cls.CLIENT_SUBMITTED: frozenset({cls.AI_REVIEWING, cls.CANCELLED}),
            cls.AI_REVIEWING: frozenset({cls.CONSULTANT_REVIEWING, cls.CANCELLED}),
            cls.CONSULTANT_REVIEWING: frozenset(
                {cls.NEED_SUPPLEMENT, cls.MATERIALS_APPROVED, cls.CANCELLED}
            ),
            cls.NEED_SUPPLEMENT: frozenset({cls.CLIENT_SUBMITTED, cls.CANCELLED}),
            cls.MATERIALS_APPROVED: frozenset({cls.AI_PROCESSING, cls.CANCELLED}),
            cls.AI_PROCESSING: frozenset({cls.CONSULTANT_FINAL_REVIEW, cls.CANCELLED}),
            cls.CONSULTANT_FINAL_REVIEW: frozenset(
                {cls.CONSULTANT_FINAL_APPROVED, cls.CANCELLED}
            ),
            cls.CONSULTANT_FINAL_APPROVED: frozenset(
                {cls.CONSULTANT_FINAL_REVIEW, cls.SENT_TO_CLIENT, cls.CANCELLED}
            ),
            cls.SENT_TO_CLIENT: frozenset(
                {cls.CLIENT_CONFIRMED, cls.CONSULTANT_FINAL_REVIEW, cls.CANCELLED}
            ),
            cls.CLIENT_CONFIRMED: frozenset({cls.COMPLETED, cls.CANCELLED}),
            cls.COMPLETED: frozenset(),
            cls.CANCELLED: frozenset(),
        }


class CaseTrigger(str, enum.Enum):
    """Events that move a case between statuses."""

    SEND_LINK = "send_link"
    CLIENT_ACCESS = "client_access"
    CLIENT_SUBMIT = "client_submit"
    CONFIRM_SUBMISSION = "confirm_submission"
    DIAGNOSIS_COMPLETED = "diagnosis_completed"
    REQUEST_SUPPLEMENT = "request_supplement"
    APPROVE_MATERIALS = "approve_materials"
    START_TRANSLATION = "start_translation"
    TRANSLATION_COMPLETED = "translation_completed"
    FINAL_APPROVE = "final_approve"
    REOPEN_FINAL_REVIEW = "reopen_final_review"
    SEND_TO_CLIENT = "send_to_client"
    CLIENT_CONFIRM = "client_confirm"
    CLIENT_REJECT = "client_reject"
    COMPLETE = "complete"
    CANCEL = "cancel"


class ActorType(str, enum.Enum):
    CONSULTANT = "consultant"
    CLIENT = "client"
    SYSTEM = "system"


class VisaType(str, enum.Enum):
    B1_B2 = "B1/B2"
    F1 = "F1"
    H1B = "H1B"
    L1 = "L1"
    O1 = "O1"


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    CONSULTANT = "consultant"


class LinkStatus(str, enum.Enum):
    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"
    REVOKED = "revoked"


class IssueSeverity(str, enum.Enum):
    BLOCKER = "blocker"
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Lower rank is more severe (blocker=0 ... info=3)."""
        return _SEVERITY_ORDER.index(self)


_SEVERITY_ORDER = (
    IssueSeverity.BLOCKER,
    IssueSeverity.CRITICAL,
    IssueSeverity.WARNING,
    IssueSeverity.INFO,
)


class DiagnosisStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class TranslationFieldStatus(str, enum.Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    WARNING = "warning"
    ERROR = "error"


class DocumentType(str, enum.Enum):
    PASSPORT = "passport"
    PHOTO = "photo"
    EMPLOYMENT = "employment"
    FINANCIAL = "financial"
    OTHER = "other"


class NotificationType(str, enum.Enum):
    URGENT = "urgent"
    CUSTOMER = "customer"
    AI_COMPLETE = "ai_complete"
    MATERIAL = "material"
    SYSTEM = "system"


class NotificationStatus(str, enum.Enum):
    UNREAD = "unread"
    READ = "read"
