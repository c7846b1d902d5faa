# This project was developed with assistance from AI tools.
"""Diagnosis rounds, engine callbacks and the consultant's issue review."""

import pytest
from db import FormSection
from db.enums import CaseStatus
from sqlalchemy import select

from tests.factories import complete_all_steps, insert_case
from tests.personas import consultant, other_consultant

ENGINE_HEADERS = {"X-Engine-Secret": "test-engine-secret"}

ENGINE_RESULT = {
    "risk_score": 62,
    "summary": {"overall": "护照号码与证件不符", "key_findings": ["passport"]},
    "ai_provider": "test-engine",
    "issues": [
        {
            "field_name": "travel-info.address_in_us",
            "severity": "warning",
            "description": "Hotel address is vague",
        },
        {
            "field_name": "basic-info.passport_number",
            "field_label": "护照号码",
            "severity": "blocker",
            "description": "Passport number does not match the scan",
            "auto_fixable": True,
            "suggested_value": "E87654321",
        },
    ],
}


async def _confirm(client, case_id):
    resp = await client.post(
        f"/api/v1/cases/{case_id}/transitions", json={"trigger": "confirm_submission"}
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


async def _report_id(client, case_id):
    status = (await client.get(f"/api/v1/cases/{case_id}/diagnosis/status")).json()
    return status["report_id"]


async def _deliver(client, report_id, result=ENGINE_RESULT):
    return await client.post(
        f"/api/v1/engine/diagnosis/{report_id}", json=result, headers=ENGINE_HEADERS
    )


@pytest.fixture
async def reviewing(client_factory, seeded):
    """A case in ai_reviewing with a pending round-1 report."""
    case = await insert_case(seeded, status=CaseStatus.CLIENT_SUBMITTED)
    await complete_all_steps(seeded, case)
    client = client_factory(consultant())
    await _confirm(client, case.id)
    return client, case


async def test_confirm_opens_pending_round(reviewing):
    client, case = reviewing
    status = (await client.get(f"/api/v1/cases/{case.id}/diagnosis/status")).json()
    assert status["status"] == "pending"
    assert status["review_round"] == 1
    assert status["report_id"] is not None

    latest = (await client.get(f"/api/v1/cases/{case.id}/diagnosis/latest")).json()
    assert latest["status"] == "pending"
    assert latest["issues"] == []


async def test_status_before_any_round(client_factory, seeded):
    case = await insert_case(seeded)
    client = client_factory(consultant())
    status = (await client.get(f"/api/v1/cases/{case.id}/diagnosis/status")).json()
    assert status == {
        "case_id": case.id,
        "review_round": 1,
        "report_id": None,
        "status": "not_started",
        "total_issues": 0,
    }
    assert (await client.get(f"/api/v1/cases/{case.id}/diagnosis/latest")).status_code == 404


async def test_engine_callback_completes_review(reviewing):
    client, case = reviewing
    report_id = await _report_id(client, case.id)

    resp = await _deliver(client, report_id)

    assert resp.status_code == 200
    report = resp.json()
    assert report["status"] == "completed"
    assert report["risk_score"] == 62
    assert report["blocker_issues"] == 1
    assert report["warning_issues"] == 1
    assert report["total_issues"] == 2
    assert [i["severity"] for i in report["issues"]] == ["blocker", "warning"]
    assert report["summary"]["overall"] == "护照号码与证件不符"

    case_body = (await client.get(f"/api/v1/cases/{case.id}")).json()
    assert case_body["status"] == "consultant_reviewing"
    timeline = (await client.get(f"/api/v1/cases/{case.id}/timeline")).json()
    assert timeline[-1]["event"] == "diagnosis_completed"
    assert timeline[-1]["actor_type"] == "system"

    inbox = (await client.get("/api/v1/notifications/", params={"type": "ai_complete"})).json()
    assert inbox["total"] == 1


async def test_repeated_callback_keeps_consultant_fixes(reviewing):
    client, case = reviewing
    report_id = await _report_id(client, case.id)
    report = (await _deliver(client, report_id)).json()
    blocker = report["issues"][0]
    await client.patch(f"/api/v1/diagnosis/issues/{blocker['id']}/status", json={"fixed": True})

    again = await _deliver(client, report_id)

    assert again.status_code == 200
    latest = (await client.get(f"/api/v1/cases/{case.id}/diagnosis/latest")).json()
    assert [(i["id"], i["fixed"]) for i in latest["issues"]] == [
        (blocker["id"], True),
        (report["issues"][1]["id"], False),
    ]
    inbox = (await client.get("/api/v1/notifications/", params={"type": "ai_complete"})).json()
    assert inbox["total"] == 1


async def test_engine_failure_leaves_case_waiting(reviewing):
    client, case = reviewing
    report_id = await _report_id(client, case.id)

    resp = await _deliver(client, report_id, {"status": "failed", "error": "model timeout"})

    assert resp.json()["status"] == "failed"
    assert (await client.get(f"/api/v1/cases/{case.id}")).json()["status"] == "ai_reviewing"

    retry = await client.post(f"/api/v1/cases/{case.id}/diagnosis")
    assert retry.status_code == 202
    assert retry.json()["status"] == "pending"
    assert retry.json()["id"] == report_id


async def test_request_diagnosis_outside_ai_review(client_factory, seeded):
    case = await insert_case(seeded, status=CaseStatus.CLIENT_FILLING)
    resp = await client_factory(consultant()).post(f"/api/v1/cases/{case.id}/diagnosis")
    assert resp.status_code == 409


async def test_engine_secret_required(reviewing):
    client, case = reviewing
    report_id = await _report_id(client, case.id)
    resp = await client.post(f"/api/v1/engine/diagnosis/{report_id}", json=ENGINE_RESULT)
    assert resp.status_code == 401
    bad = await client.post(
        f"/api/v1/engine/diagnosis/{report_id}",
        json=ENGINE_RESULT,
        headers={"X-Engine-Secret": "wrong"},
    )
    assert bad.status_code == 401


async def test_approve_blocked_until_blockers_fixed(reviewing):
    client, case = reviewing
    report = (await _deliver(client, await _report_id(client, case.id))).json()
    blocker = report["issues"][0]

    resp = await client.post(
        f"/api/v1/cases/{case.id}/transitions", json={"trigger": "approve_materials"}
    )
    assert resp.status_code == 409
    assert "1 blocker" in resp.json()["detail"]

    fixed = await client.patch(
        f"/api/v1/diagnosis/issues/{blocker['id']}/status", json={"fixed": True}
    )
    assert fixed.json()["fixed"] is True
    assert fixed.json()["consultant_adjusted"] is True

    approved = await client.post(
        f"/api/v1/cases/{case.id}/transitions", json={"trigger": "approve_materials"}
    )
    assert approved.status_code == 200
    assert approved.json()["status"] == "materials_approved"


async def test_issue_note_and_report_notes(reviewing):
    client, case = reviewing
    report = (await _deliver(client, await _report_id(client, case.id))).json()
    issue_id = report["issues"][1]["id"]

    note = await client.patch(
        f"/api/v1/diagnosis/issues/{issue_id}/note", json={"consultant_note": "酒店已预订"}
    )
    assert note.json()["consultant_note"] == "酒店已预订"

    notes = await client.patch(
        f"/api/v1/diagnosis/reports/{report['id']}/consultant-notes", json={"notes": "整体良好"}
    )
    assert notes.json()["consultant_notes"] == "整体良好"
    assert notes.json()["consultant_reviewed_at"] is not None


async def test_generate_and_send_report(reviewing):
    client, case = reviewing
    report = (await _deliver(client, await _report_id(client, case.id))).json()

    generated = await client.post(
        f"/api/v1/diagnosis/reports/{report['id']}/generate",
        json={"consultant_notes": "请核对护照"},
    )
    assert generated.status_code == 200
    content = generated.json()["content"]
    assert "风险评分: 62" in content
    assert "顾问意见: 请核对护照" in content
    assert content.index("[blocker]") < content.index("[warning]")

    sent = await client.post(f"/api/v1/diagnosis/reports/{report['id']}/send-client", json={})
    assert sent.json()["sent_to_client_at"] is not None


async def test_auto_fix_applies_suggestions(reviewing, seeded):
    client, case = reviewing
    report = (await _deliver(client, await _report_id(client, case.id))).json()

    resp = await client.post(f"/api/v1/diagnosis/reports/{report['id']}/auto-fix")

    assert resp.json() == {"fixed_count": 1, "failed_count": 0}
    stmt = select(FormSection).where(
        FormSection.case_id == case.id, FormSection.step == "basic-info"
    ).execution_options(populate_existing=True)
    section = (await seeded.execute(stmt)).scalar_one()
    assert section.data["passport_number"] == "E87654321"

    latest = (await client.get(f"/api/v1/cases/{case.id}/diagnosis/latest")).json()
    assert latest["issues"][0]["fixed"] is True
    assert latest["issues"][1]["fixed"] is False


async def test_new_round_supersedes_previous(reviewing):
    client, case = reviewing
    first = (await _deliver(client, await _report_id(client, case.id))).json()

    supplement = await client.post(
        f"/api/v1/cases/{case.id}/transitions", json={"trigger": "request_supplement"}
    )
    assert supplement.json()["status"] == "need_supplement"
    link = (await client.post(f"/api/v1/cases/{case.id}/links", json={})).json()
    submitted = await client.post(f"/api/v1/ds160/{link['token']}/submit")
    assert submitted.json()["case_status"] == "client_submitted"

    case_body = await _confirm(client, case.id)
    assert case_body["review_round"] == 2

    history = (await client.get(f"/api/v1/cases/{case.id}/diagnosis")).json()
    assert [r["review_round"] for r in history] == [2, 1]
    assert history[1]["superseded"] is True
    assert history[0]["superseded"] is False

    locked = await client.patch(
        f"/api/v1/diagnosis/issues/{first['issues'][0]['id']}/status", json={"fixed": True}
    )
    assert locked.status_code == 409
    stale = await _deliver(client, first["id"])
    assert stale.status_code == 409


async def test_reports_hidden_from_other_consultant(reviewing, client_factory):
    client, case = reviewing
    report = (await _deliver(client, await _report_id(client, case.id))).json()

    outsider = client_factory(other_consultant())
    assert (await outsider.get(f"/api/v1/cases/{case.id}/diagnosis/latest")).status_code == 404
    resp = await outsider.patch(
        f"/api/v1/diagnosis/issues/{report['issues'][0]['id']}/status", json={"fixed": True}
    )
    assert resp.status_code == 404
