# This project was developed with assistance from AI tools.
"""Case CRUD, scoping and transition routes."""

from db.enums import CaseStatus

from tests.factories import insert_case
from tests.personas import admin, consultant, other_consultant, outsider

NEW_CASE = {
    "applicant_name": "张三",
    "applicant_email": "zhangsan@example.com",
    "visa_type": "B1/B2",
    "notes": "first trip",
}


async def test_create_case(client_factory):
    client = client_factory(consultant())
    resp = await client.post("/api/v1/cases/", json=NEW_CASE)

    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "created"
    assert body["status_label"]
    assert body["review_round"] == 1
    assert body["consultant_id"] == 2
    assert body["applicant"]["name"] == "张三"
    assert body["case_number"].startswith("V")
    assert len(body["case_number"]) == 13
    assert "send_link" in body["allowed_triggers"]
    assert "client_access" not in body["allowed_triggers"]


async def test_case_numbers_are_sequential(client_factory):
    client = client_factory(consultant())
    first = (await client.post("/api/v1/cases/", json=NEW_CASE)).json()
    second = (await client.post("/api/v1/cases/", json=NEW_CASE)).json()
    assert int(second["case_number"][-4:]) == int(first["case_number"][-4:]) + 1


async def test_case_number_not_reused_after_delete(client_factory):
    client = client_factory(consultant())
    first = (await client.post("/api/v1/cases/", json=NEW_CASE)).json()
    second = (await client.post("/api/v1/cases/", json=NEW_CASE)).json()
    assert (await client.delete(f"/api/v1/cases/{first['id']}")).status_code == 204

    resp = await client.post("/api/v1/cases/", json=NEW_CASE)
    assert resp.status_code == 201
    third = resp.json()
    assert int(third["case_number"][-4:]) == int(second["case_number"][-4:]) + 1


async def test_create_with_link_validity_sends_link(client_factory):
    client = client_factory(consultant())
    resp = await client.post("/api/v1/cases/", json={**NEW_CASE, "link_validity_days": 7})
    assert resp.status_code == 201
    case = resp.json()
    assert case["status"] == "link_sent"

    links = (await client.get(f"/api/v1/cases/{case['id']}/links")).json()
    assert links["total"] == 1
    assert links["items"][0]["status"] == "active"


async def test_create_rejects_bad_email(client_factory):
    client = client_factory(consultant())
    resp = await client.post(
        "/api/v1/cases/", json={**NEW_CASE, "applicant_email": "not-an-email"}
    )
    assert resp.status_code == 422
    body = resp.json()
    assert body["status"] == 422
    assert isinstance(body["detail"], list)
    assert body["detail"][0]["loc"] == ["body", "applicant_email"]


async def test_list_is_scoped_to_consultant(client_factory, seeded):
    await insert_case(seeded, consultant_id=2)
    await insert_case(seeded, consultant_id=2)
    await insert_case(seeded, consultant_id=3)
    await insert_case(seeded, consultant_id=4, organization_id=2)

    mine = (await client_factory(consultant()).get("/api/v1/cases/")).json()
    assert mine["total"] == 2
    assert {c["consultant_id"] for c in mine["items"]} == {2}

    agency = (await client_factory(admin()).get("/api/v1/cases/")).json()
    assert agency["total"] == 3

    foreign = (await client_factory(outsider()).get("/api/v1/cases/")).json()
    assert foreign["total"] == 1


async def test_list_filters_and_paginates(client_factory, seeded):
    for _ in range(3):
        await insert_case(seeded, status=CaseStatus.CREATED)
    await insert_case(seeded, status=CaseStatus.COMPLETED, applicant_name="李四")
    client = client_factory(admin())

    page = (await client.get("/api/v1/cases/", params={"per_page": 2, "page": 2})).json()
    assert page["total"] == 4
    assert page["page"] == 2
    assert page["pages"] == 2
    assert len(page["items"]) == 2

    done = (await client.get("/api/v1/cases/", params={"status": "completed"})).json()
    assert done["total"] == 1

    found = (await client.get("/api/v1/cases/", params={"search": "李四"})).json()
    assert found["total"] == 1
    assert found["items"][0]["applicant"]["name"] == "李四"


async def test_out_of_scope_case_is_404(client_factory, seeded):
    case = await insert_case(seeded, consultant_id=2)
    resp = await client_factory(other_consultant()).get(f"/api/v1/cases/{case.id}")
    assert resp.status_code == 404
    assert resp.json()["title"] == "Not Found"


async def test_update_case(client_factory, seeded):
    case = await insert_case(seeded)
    client = client_factory(consultant())
    resp = await client.patch(
        f"/api/v1/cases/{case.id}",
        json={"notes": "call before interview", "applicant": {"phone": "13900000000"}},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["notes"] == "call before interview"
    assert body["applicant"]["phone"] == "13900000000"
    assert body["status"] == "created"


async def test_delete_case(client_factory, seeded):
    case = await insert_case(seeded)
    client = client_factory(consultant())
    resp = await client.delete(f"/api/v1/cases/{case.id}")
    assert resp.status_code == 204
    assert resp.content == b""
    assert (await client.get(f"/api/v1/cases/{case.id}")).status_code == 404


async def test_statuses_registry(client_factory):
    resp = await client_factory(consultant()).get("/api/v1/cases/statuses")
    assert resp.status_code == 200
    statuses = {s["status"]: s for s in resp.json()}
    assert set(statuses) == {s.value for s in CaseStatus}
    assert statuses["materials_approved"]["label"] == "材料确认无误"


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


async def test_transition_cancel_and_timeline(client_factory, seeded):
    case = await insert_case(seeded, status=CaseStatus.CLIENT_FILLING)
    client = client_factory(consultant())

    resp = await client.post(
        f"/api/v1/cases/{case.id}/transitions",
        json={"trigger": "cancel", "reason": "client withdrew"},
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"
    assert resp.json()["allowed_triggers"] == []

    timeline = (await client.get(f"/api/v1/cases/{case.id}/timeline")).json()
    assert timeline[-1]["event"] == "cancel"
    assert timeline[-1]["status"] == "cancelled"
    assert timeline[-1]["actor_type"] == "consultant"


async def test_illegal_transition_is_409(client_factory, seeded):
    case = await insert_case(seeded, status=CaseStatus.CREATED)
    resp = await client_factory(consultant()).post(
        f"/api/v1/cases/{case.id}/transitions", json={"trigger": "approve_materials"}
    )
    assert resp.status_code == 409
    assert "approve_materials" in resp.json()["detail"]


async def test_guard_failure_is_409(client_factory, seeded):
    case = await insert_case(seeded, status=CaseStatus.CLIENT_SUBMITTED)
    resp = await client_factory(consultant()).post(
        f"/api/v1/cases/{case.id}/transitions", json={"trigger": "confirm_submission"}
    )
    assert resp.status_code == 409
    assert "form steps" in resp.json()["detail"]


async def test_system_trigger_rejected(client_factory, seeded):
    case = await insert_case(seeded, status=CaseStatus.AI_REVIEWING)
    resp = await client_factory(consultant()).post(
        f"/api/v1/cases/{case.id}/transitions", json={"trigger": "diagnosis_completed"}
    )
    assert resp.status_code == 422


async def test_repeated_trigger_is_noop(client_factory, seeded):
    case = await insert_case(seeded, status=CaseStatus.COMPLETED)
    client = client_factory(consultant())
    resp = await client.post(
        f"/api/v1/cases/{case.id}/transitions", json={"trigger": "complete"}
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"
    assert (await client.get(f"/api/v1/cases/{case.id}/timeline")).json() == []


async def test_unauthenticated_request_is_401(client_factory):
    resp = await client_factory().get("/api/v1/cases/")
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"
