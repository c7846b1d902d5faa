# This project was developed with assistance from AI tools.
"""
SQLAdmin configuration for database administration UI

Access the admin panel at: http://localhost:8000/admin

When AUTH_DISABLED=false, requires admin credentials via login form.
When AUTH_DISABLED=true, admin panel is open (dev mode).
"""

from db import (
    Attachment,
    Case,
    CaseActivity,
    CaseLink,
    DiagnosisIssue,
    DiagnosisReport,
    Notification,
    Organization,
    User,
)
from sqladmin import Admin, ModelView
from sqladmin.authentication import AuthenticationBackend
from sqlalchemy import create_engine
from starlette.requests import Request
from starlette.responses import Response

from .core.config import settings

# SQLAdmin requires a sync engine; derive from the async DATABASE_URL
_sync_url = settings.DATABASE_URL.replace("+asyncpg", "").replace("+aiosqlite", "")
engine = create_engine(_sync_url, echo=False)


class AdminAuth(AuthenticationBackend):
    """Session-based auth gate for SQLAdmin.

    When AUTH_DISABLED=true, authenticate() always returns True (dev mode).
    Otherwise, requires login with SQLADMIN_USER / SQLADMIN_PASSWORD.
    """

    async def login(self, request: Request) -> bool:
        form = await request.form()
        if (
            form.get("username") == settings.SQLADMIN_USER
            and form.get("password") == settings.SQLADMIN_PASSWORD
        ):
            request.session.update({"admin_authenticated": True})
            return True
        return False

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> Response | bool:
        if settings.AUTH_DISABLED:
            return True
        return request.session.get("admin_authenticated", False)


class OrganizationAdmin(ModelView, model=Organization):
    column_list = [Organization.id, Organization.name, Organization.created_at]
    name = "Organization"
    name_plural = "Organizations"
    icon = "fa-solid fa-building"


class UserAdmin(ModelView, model=User):
    column_list = [User.id, User.username, User.full_name, User.role, User.is_active]
    column_searchable_list = [User.username, User.email, User.full_name]
    form_excluded_columns = [User.hashed_password]
    name = "User"
    name_plural = "Users"
    icon = "fa-solid fa-user"


class CaseAdmin(ModelView, model=Case):
    column_list = [
        Case.id,
        Case.case_number,
        Case.status,
        Case.visa_type,
        Case.review_round,
        Case.consultant_id,
        Case.created_at,
    ]
    column_searchable_list = [Case.case_number]
    column_sortable_list = [Case.id, Case.status, Case.created_at]
    column_default_sort = [(Case.created_at, True)]
    # status moves only through the workflow service
    form_excluded_columns = [Case.status, Case.review_round, Case.activities]
    name = "Case"
    name_plural = "Cases"
    icon = "fa-solid fa-passport"


class CaseLinkAdmin(ModelView, model=CaseLink):
    column_list = [
        CaseLink.id,
        CaseLink.case_id,
        CaseLink.purpose,
        CaseLink.status,
        CaseLink.expires_at,
        CaseLink.access_count,
    ]
    column_sortable_list = [CaseLink.id, CaseLink.status, CaseLink.expires_at]
    column_default_sort = [(CaseLink.created_at, True)]
    can_create = False
    name = "Link"
    name_plural = "Links"
    icon = "fa-solid fa-link"


class DiagnosisReportAdmin(ModelView, model=DiagnosisReport):
    column_list = [
        DiagnosisReport.id,
        DiagnosisReport.case_id,
        DiagnosisReport.review_round,
        DiagnosisReport.status,
        DiagnosisReport.risk_score,
        DiagnosisReport.blocker_issues,
        DiagnosisReport.superseded,
    ]
    column_default_sort = [(DiagnosisReport.created_at, True)]
    can_create = False
    name = "Diagnosis Report"
    name_plural = "Diagnosis Reports"
    icon = "fa-solid fa-stethoscope"


class DiagnosisIssueAdmin(ModelView, model=DiagnosisIssue):
    column_list = [
        DiagnosisIssue.id,
        DiagnosisIssue.report_id,
        DiagnosisIssue.field_name,
        DiagnosisIssue.severity,
        DiagnosisIssue.fixed,
    ]
    column_sortable_list = [DiagnosisIssue.id, DiagnosisIssue.severity]
    can_create = False
    name = "Issue"
    name_plural = "Issues"
    icon = "fa-solid fa-triangle-exclamation"


class AttachmentAdmin(ModelView, model=Attachment):
    column_list = [
        Attachment.id,
        Attachment.case_id,
        Attachment.document_type,
        Attachment.filename,
        Attachment.size,
        Attachment.created_at,
    ]
    can_create = False
    can_edit = False
    name = "Attachment"
    name_plural = "Attachments"
    icon = "fa-solid fa-paperclip"


class CaseActivityAdmin(ModelView, model=CaseActivity):
    column_list = [
        CaseActivity.id,
        CaseActivity.case_id,
        CaseActivity.event,
        CaseActivity.status,
        CaseActivity.actor_type,
        CaseActivity.created_at,
    ]
    column_sortable_list = [CaseActivity.id, CaseActivity.created_at, CaseActivity.event]
    column_default_sort = [(CaseActivity.id, True)]
    can_create = False
    can_edit = False
    can_delete = False
    name = "Activity"
    name_plural = "Activity Timeline"
    icon = "fa-solid fa-clock-rotate-left"


class NotificationAdmin(ModelView, model=Notification):
    column_list = [
        Notification.id,
        Notification.type,
        Notification.title,
        Notification.status,
        Notification.user_id,
        Notification.created_at,
    ]
    column_default_sort = [(Notification.created_at, True)]
    name = "Notification"
    name_plural = "Notifications"
    icon = "fa-solid fa-bell"


def setup_admin(app):
    """Set up SQLAdmin and mount it to the FastAPI app."""
    auth_backend = AdminAuth(secret_key=settings.SQLADMIN_SECRET_KEY)
    admin = Admin(app, engine, title="Visa Desk Admin", authentication_backend=auth_backend)

    for view in (
        OrganizationAdmin,
        UserAdmin,
        CaseAdmin,
        CaseLinkAdmin,
        DiagnosisReportAdmin,
        DiagnosisIssueAdmin,
        AttachmentAdmin,
        CaseActivityAdmin,
        NotificationAdmin,
    ):
        admin.add_view(view)

    return admin
