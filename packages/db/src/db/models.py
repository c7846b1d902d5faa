# This project was developed with assistance from AI tools.
"""
Visa Desk -- domain models

Visa case lifecycle models covering organizations, consultants, cases,
applicants, capability links, wizard form sections, AI diagnosis reports,
translation fields, attachments, the activity timeline and notifications.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import (
    ActorType,
    CaseStatus,
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


class Organization(Base):
    """Consulting agency (tenant)."""

    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    users = relationship("User", back_populates="organization")

    def __repr__(self):
        return f"<Organization(id={self.id}, name='{self.name}')>"


class User(Base):
    """Consultant or agency admin."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(
        Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    username = Column(String(100), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False, default="")
    role = Column(
        Enum(UserRole, name="user_role", native_enum=False),
        nullable=False,
        default=UserRole.CONSULTANT,
    )
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    organization = relationship("Organization", back_populates="users")

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"


class Case(Base):
    """One visa application handled by a consultant for one applicant."""

    __tablename__ = "cases"

    id = Column(Integer, primary_key=True, autoincrement=True)
    case_number = Column(String(32), unique=True, nullable=False, index=True)
    organization_id = Column(
        Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    consultant_id = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    visa_type = Column(
        Enum(VisaType, name="visa_type", native_enum=False),
        nullable=False,
    )
    status = Column(
        Enum(CaseStatus, name="case_status", native_enum=False),
        nullable=False,
        default=CaseStatus.CREATED,
        index=True,
    )
    review_round = Column(Integer, nullable=False, default=1)
    interview_date = Column(DateTime(timezone=True), nullable=True)
    is_vip = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    applicant = relationship(
        "Applicant", back_populates="case", uselist=False, cascade="all, delete-orphan",
    )
    consultant = relationship("User")
    links = relationship("CaseLink", back_populates="case", cascade="all, delete-orphan")
    form_sections = relationship(
        "FormSection", back_populates="case", cascade="all, delete-orphan",
    )
    diagnosis_reports = relationship(
        "DiagnosisReport", back_populates="case", cascade="all, delete-orphan",
        order_by="DiagnosisReport.review_round",
    )
    translation_fields = relationship(
        "TranslationField", back_populates="case", cascade="all, delete-orphan",
    )
    attachments = relationship("Attachment", back_populates="case", cascade="all, delete-orphan")
    activities = relationship(
        "CaseActivity", back_populates="case", cascade="all, delete-orphan",
        order_by="CaseActivity.id",
    )

    def __repr__(self):
        return f"<Case(id={self.id}, number='{self.case_number}', status='{self.status}')>"


class Applicant(Base):
    """Personal identity record owned by a case."""

    __tablename__ = "applicants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    case_id = Column(
        Integer, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, unique=True,
    )
    name = Column(String(255), nullable=False)
    name_pinyin = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    passport_number = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    case = relationship("Case", back_populates="applicant")

    def __repr__(self):
        return f"<Applicant(id={self.id}, name='{self.name}')>"


class CaseLink(Base):
    """Time-boxed capability token granting wizard access for one case."""

    __tablename__ = "case_links"

    id = Column(Integer, primary_key=True, autoincrement=True)
    case_id = Column(
        Integer, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    token = Column(String(128), unique=True, nullable=False, index=True)
    purpose = Column(String(50), nullable=False, default="form_submission")
    status = Column(
        Enum(LinkStatus, name="link_status", native_enum=False),
        nullable=False,
        default=LinkStatus.ACTIVE,
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)
    access_url = Column(String(500), nullable=False)
    first_accessed_at = Column(DateTime(timezone=True), nullable=True)
    access_count = Column(Integer, nullable=False, default=0)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    case = relationship("Case", back_populates="links")

    def __repr__(self):
        return f"<CaseLink(id={self.id}, case_id={self.case_id}, status='{self.status}')>"


class FormSection(Base):
    """One wizard step's data bucket for a case."""

    __tablename__ = "form_sections"
    __table_args__ = (
        UniqueConstraint("case_id", "step", name="uq_form_section_case_step"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    case_id = Column(
        Integer, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    step = Column(String(50), nullable=False)
    data = Column(JSON, nullable=False, default=dict)
    is_complete = Column(Boolean, nullable=False, default=False)
    last_saved_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    case = relationship("Case", back_populates="form_sections")

    def __repr__(self):
        return f"<FormSection(case_id={self.case_id}, step='{self.step}', complete={self.is_complete})>"


class DiagnosisReport(Base):
    """AI review snapshot of a case's submitted data for one review round."""

    __tablename__ = "diagnosis_reports"
    __table_args__ = (
        UniqueConstraint("case_id", "review_round", name="uq_diagnosis_case_round"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    case_id = Column(
        Integer, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    review_round = Column(Integer, nullable=False)
    status = Column(
        Enum(DiagnosisStatus, name="diagnosis_status", native_enum=False),
        nullable=False,
        default=DiagnosisStatus.PENDING,
    )
    risk_score = Column(Integer, nullable=True)
    blocker_issues = Column(Integer, nullable=False, default=0)
    critical_issues = Column(Integer, nullable=False, default=0)
    warning_issues = Column(Integer, nullable=False, default=0)
    info_issues = Column(Integer, nullable=False, default=0)
    summary = Column(JSON, nullable=True)
    ai_provider = Column(String(100), nullable=True)
    consultant_notes = Column(Text, nullable=True)
    consultant_reviewed_at = Column(DateTime(timezone=True), nullable=True)
    sent_to_client_at = Column(DateTime(timezone=True), nullable=True)
    superseded = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    case = relationship("Case", back_populates="diagnosis_reports")
    issues = relationship(
        "DiagnosisIssue", back_populates="report", cascade="all, delete-orphan",
        order_by="DiagnosisIssue.id",
    )

    def __repr__(self):
        return f"<DiagnosisReport(id={self.id}, case_id={self.case_id}, round={self.review_round})>"


class DiagnosisIssue(Base):
    """Single finding within a diagnosis report."""

    __tablename__ = "diagnosis_issues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    report_id = Column(
        Integer, ForeignKey("diagnosis_reports.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    field_name = Column(String(255), nullable=False)
    field_label = Column(String(255), nullable=True)
    severity = Column(
        Enum(IssueSeverity, name="issue_severity", native_enum=False),
        nullable=False,
    )
    issue_type = Column(String(50), nullable=True)
    description = Column(Text, nullable=False)
    suggestion = Column(Text, nullable=True)
    auto_fixable = Column(Boolean, nullable=False, default=False)
    suggested_value = Column(Text, nullable=True)
    fixed = Column(Boolean, nullable=False, default=False)
    consultant_note = Column(Text, nullable=True)
    consultant_adjusted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    report = relationship("DiagnosisReport", back_populates="issues")

    def __repr__(self):
        return f"<DiagnosisIssue(id={self.id}, severity='{self.severity}', fixed={self.fixed})>"


class TranslationField(Base):
    """Chinese/English pair for one DS-160 field produced by the translation engine."""

    __tablename__ = "translation_fields"

    id = Column(Integer, primary_key=True, autoincrement=True)
    case_id = Column(
        Integer, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    section = Column(String(50), nullable=False)
    field_name = Column(String(255), nullable=False)
    chinese_question = Column(Text, nullable=True)
    chinese_value = Column(Text, nullable=True)
    english_question = Column(Text, nullable=True)
    english_value = Column(Text, nullable=True)
    status = Column(
        Enum(TranslationFieldStatus, name="translation_field_status", native_enum=False),
        nullable=False,
        default=TranslationFieldStatus.PENDING,
    )
    is_modified = Column(Boolean, nullable=False, default=False)
    consultant_note = Column(Text, nullable=True)
    translation_confidence = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    case = relationship("Case", back_populates="translation_fields")

    def __repr__(self):
        return f"<TranslationField(id={self.id}, field='{self.field_name}')>"


class Attachment(Base):
    """File uploaded through the wizard's upload step."""

    __tablename__ = "attachments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    case_id = Column(
        Integer, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    document_type = Column(
        Enum(DocumentType, name="document_type", native_enum=False),
        nullable=False,
    )
    filename = Column(String(255), nullable=False)
    content_type = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)
    object_key = Column(String(500), nullable=True)
    uploaded_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    case = relationship("Case", back_populates="attachments")

    def __repr__(self):
        return f"<Attachment(id={self.id}, type='{self.document_type}')>"


class CaseActivity(Base):
    """Append-only activity timeline. INSERT + SELECT only -- no UPDATE or DELETE."""

    __tablename__ = "case_activities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    case_id = Column(
        Integer, ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    status = Column(String(50), nullable=False)
    event = Column(String(100), nullable=False, index=True)
    actor_type = Column(
        Enum(ActorType, name="actor_type", native_enum=False),
        nullable=False,
    )
    actor_id = Column(String(255), nullable=True)
    actor_name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    event_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    case = relationship("Case", back_populates="activities")

    def __repr__(self):
        return f"<CaseActivity(id={self.id}, case_id={self.case_id}, event='{self.event}')>"


class Notification(Base):
    """Consultant inbox entry."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(
        Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True,
    )
    case_id = Column(Integer, ForeignKey("cases.id", ondelete="SET NULL"), nullable=True)
    type = Column(
        Enum(NotificationType, name="notification_type", native_enum=False),
        nullable=False,
        default=NotificationType.SYSTEM,
    )
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False, default="")
    status = Column(
        Enum(NotificationStatus, name="notification_status", native_enum=False),
        nullable=False,
        default=NotificationStatus.UNREAD,
    )
    client_name = Column(String(255), nullable=True)
    extra = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Notification(id={self.id}, type='{self.type}', status='{self.status}')>"
