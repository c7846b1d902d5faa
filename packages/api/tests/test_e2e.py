# This project was developed with assistance from AI tools.
"""End-to-end: case creation through materials approval over HTTP."""

from tests.factories import REQUIRED_UPLOADS, VALID_STEPS
from tests.personas import consultant

ENGINE_HEADERS = {"X-Engine-Secret": "test-engine-secret"}


async def test_case_to_materials_approved(client_factory, mock_storage):
    client = client_factory(consultant())

    # consultant opens the case and sends the applicant a link
    case = (
        await client.post("/api/v1/cases/", json={"applicant_name": "张三", "visa_type": "B1/B2"})
    ).json()
    assert case["status"] == "created"
    case_id = case["id"]
    link = (await client.post(f"/api/v1/cases/{case_id}/links", json={})).json()
    token = link["token"]

    # applicant fills in the wizard
    opened = (await client.get(f"/api/v1/ds160/{token}")).json()
    assert opened["case_status"] == "client_filling"

    for key, data in VALID_STEPS.items():
        if key == "upload":
            continue
        resp = await client.post(f"/api/v1/ds160/{token}/steps/{key}", json=data)
        assert resp.status_code == 200, (key, resp.text)
        assert resp.json()["is_complete"] is True

    for doc_type in REQUIRED_UPLOADS:
        resp = await client.post(
            f"/api/v1/ds160/{token}/files",
            files={"file": (f"{doc_type}.jpg", b"\xff\xd8\xff\xe0", "image/jpeg")},
            data={"document_type": doc_type},
        )
        assert resp.status_code == 201, resp.text
    assert mock_storage.upload_file.await_count == len(REQUIRED_UPLOADS)
    resp = await client.post(f"/api/v1/ds160/{token}/steps/upload", json={})
    assert resp.status_code == 200, resp.text

    progress = (await client.get(f"/api/v1/ds160/{token}/progress")).json()
    assert progress["percentage"] == 100

    submitted = (await client.post(f"/api/v1/ds160/{token}/submit")).json()
    assert submitted["case_status"] == "client_submitted"

    # consultant confirms; the engine reports one blocker
    reviewing = (
        await client.post(
            f"/api/v1/cases/{case_id}/transitions", json={"trigger": "confirm_submission"}
        )
    ).json()
    assert reviewing["status"] == "ai_reviewing"
    report_id = (await client.get(f"/api/v1/cases/{case_id}/diagnosis/status")).json()[
        "report_id"
    ]

    report = (
        await client.post(
            f"/api/v1/engine/diagnosis/{report_id}",
            json={
                "risk_score": 35,
                "issues": [
                    {
                        "field_name": "travel-info.address_in_us",
                        "severity": "blocker",
                        "description": "No confirmed lodging",
                    }
                ],
            },
            headers=ENGINE_HEADERS,
        )
    ).json()
    assert report["status"] == "completed"
    assert report["blocker_issues"] == 1

    fixed = await client.patch(
        f"/api/v1/diagnosis/issues/{report['issues'][0]['id']}/status", json={"fixed": True}
    )
    assert fixed.status_code == 200

    approved = (
        await client.post(
            f"/api/v1/cases/{case_id}/transitions", json={"trigger": "approve_materials"}
        )
    ).json()
    assert approved["status"] == "materials_approved"
    assert approved["status_label"] == "材料确认无误"
    assert approved["review_round"] == 1

    events = [a["event"] for a in (await client.get(f"/api/v1/cases/{case_id}/timeline")).json()]
    assert events == [
        "case_created",
        "send_link",
        "client_access",
        "client_submit",
        "confirm_submission",
        "diagnosis_completed",
        "approve_materials",
    ]
