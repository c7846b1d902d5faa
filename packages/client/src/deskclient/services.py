# This project was developed with assistance from AI tools.
"""Resource wrappers over ``ApiClient``, one class per backend area."""

from __future__ import annotations

from datetime import date
from typing import Any, Literal

from .http import ApiClient

JSON = dict[str, Any]


def _drop_none(params: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None}


class _Resource:
    def __init__(self, client: ApiClient):
        self.client = client


class CaseService(_Resource):
    async def list(
        self,
        *,
        page: int = 1,
        per_page: int = 20,
        status: str | None = None,
        visa_type: str | None = None,
        search: str | None = None,
        sort_by: str | None = None,
        sort_order: Literal["asc", "desc"] | None = None,
    ) -> JSON:
        params = _drop_none(
            {
                "page": page,
                "per_page": per_page,
                "status": status,
                "visa_type": visa_type,
                "search": search,
                "sort_by": sort_by,
                "sort_order": sort_order,
            }
        )
        return await self.client.get("/cases/", params=params)

    async def create(self, payload: JSON) -> JSON:
        return await self.client.post("/cases/", json=payload)

    async def get(self, case_id: int) -> JSON:
        return await self.client.get(f"/cases/{case_id}")

    async def update(self, case_id: int, payload: JSON) -> JSON:
        return await self.client.patch(f"/cases/{case_id}", json=payload)

    async def delete(self, case_id: int) -> None:
        await self.client.delete(f"/cases/{case_id}")

    async def statuses(self) -> list[JSON]:
        return await self.client.get("/cases/statuses")

    async def transition(self, case_id: int, trigger: str, reason: str | None = None) -> JSON:
        return await self.client.post(
            f"/cases/{case_id}/transitions", json=_drop_none({"trigger": trigger, "reason": reason})
        )

    async def timeline(self, case_id: int) -> list[JSON]:
        return await self.client.get(f"/cases/{case_id}/timeline")

    async def progress(self, case_id: int) -> JSON:
        return await self.client.get(f"/cases/{case_id}/progress")

    async def attachments(self, case_id: int) -> JSON:
        return await self.client.get(f"/cases/{case_id}/attachments")


class LinkService(_Resource):
    async def create(
        self, case_id: int, *, expiry_hours: int | None = None, purpose: str | None = None
    ) -> JSON:
        body = _drop_none({"expiry_hours": expiry_hours, "purpose": purpose})
        return await self.client.post(f"/cases/{case_id}/links", json=body)

    async def list(self, case_id: int) -> JSON:
        return await self.client.get(f"/cases/{case_id}/links")

    async def revoke(self, link_id: int) -> JSON:
        return await self.client.post(f"/links/{link_id}/revoke")


class DiagnosisService(_Resource):
    async def latest(self, case_id: int) -> JSON:
        return await self.client.get(f"/cases/{case_id}/diagnosis/latest")

    async def history(self, case_id: int) -> list[JSON]:
        return await self.client.get(f"/cases/{case_id}/diagnosis")

    async def request(self, case_id: int) -> JSON:
        return await self.client.post(f"/cases/{case_id}/diagnosis")

    async def status(self, case_id: int) -> JSON:
        return await self.client.get(f"/cases/{case_id}/diagnosis/status")

    async def update_issue_note(self, issue_id: int, note: str) -> JSON:
        return await self.client.patch(
            f"/diagnosis/issues/{issue_id}/note", json={"consultant_note": note}
        )

    async def set_issue_fixed(self, issue_id: int, fixed: bool = True) -> JSON:
        return await self.client.patch(
            f"/diagnosis/issues/{issue_id}/status", json={"fixed": fixed}
        )

    async def update_consultant_notes(self, report_id: int, notes: str) -> JSON:
        return await self.client.patch(
            f"/diagnosis/reports/{report_id}/consultant-notes", json={"notes": notes}
        )

    async def generate_report(self, report_id: int, consultant_notes: str | None = None) -> JSON:
        return await self.client.post(
            f"/diagnosis/reports/{report_id}/generate",
            json=_drop_none({"consultant_notes": consultant_notes}),
        )

    async def send_to_client(self, report_id: int, consultant_notes: str | None = None) -> JSON:
        return await self.client.post(
            f"/diagnosis/reports/{report_id}/send-client",
            json=_drop_none({"consultant_notes": consultant_notes}),
        )

    async def auto_fix(self, report_id: int) -> JSON:
        return await self.client.post(f"/diagnosis/reports/{report_id}/auto-fix")


class TranslationService(_Resource):
    async def comparison(self, case_id: int) -> JSON:
        return await self.client.get(f"/cases/{case_id}/translation-comparison")

    async def status(self, case_id: int) -> JSON:
        return await self.client.get(f"/cases/{case_id}/translation/status")

    async def update_field(self, field_id: int, english_value: str) -> JSON:
        return await self.client.patch(
            f"/translation/fields/{field_id}", json={"english_value": english_value}
        )

    async def update_field_note(self, field_id: int, note: str) -> JSON:
        return await self.client.patch(
            f"/translation/fields/{field_id}/note", json={"consultant_note": note}
        )


class WizardService(_Resource):
    """Applicant-side calls; the link token is the credential."""

    async def open(self, token: str) -> JSON:
        return await self.client.get(f"/ds160/{token}", auth=False)

    async def steps(self, token: str) -> list[JSON]:
        return await self.client.get(f"/ds160/{token}/steps", auth=False)

    async def get_step(self, token: str, step: str) -> JSON:
        return await self.client.get(f"/ds160/{token}/steps/{step}", auth=False)

    async def save_step(
        self, token: str, step: str, data: JSON, *, mode: Literal["draft", "continue"] = "continue"
    ) -> JSON:
        return await self.client.post(
            f"/ds160/{token}/steps/{step}", params={"mode": mode}, json=data, auth=False
        )

    async def progress(self, token: str) -> JSON:
        return await self.client.get(f"/ds160/{token}/progress", auth=False)

    async def submit(self, token: str) -> JSON:
        return await self.client.post(f"/ds160/{token}/submit", auth=False)

    async def upload(
        self, token: str, document_type: str, filename: str, content: bytes, content_type: str
    ) -> JSON:
        return await self.client.post(
            f"/ds160/{token}/files",
            files={"file": (filename, content, content_type)},
            data={"document_type": document_type},
            auth=False,
        )

    async def files(self, token: str) -> JSON:
        return await self.client.get(f"/ds160/{token}/files", auth=False)

    async def delete_file(self, token: str, attachment_id: int) -> None:
        await self.client.delete(f"/ds160/{token}/files/{attachment_id}", auth=False)

    async def diagnosis(self, token: str) -> JSON:
        return await self.client.get(f"/ds160/{token}/diagnosis", auth=False)

    async def confirm(self, token: str) -> JSON:
        return await self.client.post(f"/ds160/{token}/confirm", auth=False)

    async def reject(self, token: str, reason: str | None = None) -> JSON:
        body = {"reason": reason} if reason else None
        return await self.client.post(f"/ds160/{token}/reject", json=body, auth=False)


class StatisticsService(_Resource):
    async def overview(self, months: int = 6) -> JSON:
        return await self.client.get("/statistics/overview", params={"months": months})

    async def case_trend(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
        interval: Literal["day", "week", "month"] = "day",
    ) -> JSON:
        params = _drop_none(
            {
                "start_date": start_date.isoformat() if start_date else None,
                "end_date": end_date.isoformat() if end_date else None,
                "interval": interval,
            }
        )
        return await self.client.get("/statistics/case-trend", params=params)

    async def status_distribution(self) -> list[JSON]:
        return await self.client.get("/statistics/status-distribution")

    async def visa_type_distribution(self) -> list[JSON]:
        return await self.client.get("/statistics/visa-type-distribution")


class NotificationService(_Resource):
    async def list(
        self,
        *,
        page: int = 1,
        per_page: int = 20,
        status: str | None = None,
        type: str | None = None,
    ) -> JSON:
        params = _drop_none({"page": page, "per_page": per_page, "status": status, "type": type})
        return await self.client.get("/notifications/", params=params)

    async def create(self, payload: JSON) -> JSON:
        return await self.client.post("/notifications/", json=payload)

    async def mark_read(self, notification_id: int) -> JSON:
        return await self.client.patch(f"/notifications/{notification_id}/read")

    async def mark_all_read(self) -> JSON:
        return await self.client.post("/notifications/mark-all-read")


class DeskClient:
    """Facade bundling every resource over one ``ApiClient``."""

    def __init__(self, api: ApiClient):
        self.api = api
        self.cases = CaseService(api)
        self.links = LinkService(api)
        self.diagnosis = DiagnosisService(api)
        self.translation = TranslationService(api)
        self.wizard = WizardService(api)
        self.statistics = StatisticsService(api)
        self.notifications = NotificationService(api)

    async def login(self, username: str, password: str, *, remember_me: bool = False) -> JSON:
        return await self.api.login(username, password, remember_me=remember_me)

    def logout(self) -> None:
        self.api.logout()

    async def me(self) -> JSON:
        return await self.api.get("/auth/me")

    async def aclose(self) -> None:
        await self.api.aclose()

    async def __aenter__(self) -> "DeskClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
