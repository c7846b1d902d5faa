# This project was developed with assistance from AI tools.
"""Consultant notification inbox routes."""

from tests.personas import admin, consultant, other_consultant, outsider


async def _post(client, **body):
    resp = await client.post("/api/v1/notifications/", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def test_create_and_list(client_factory):
    client = client_factory(consultant())
    created = await _post(
        client, title="面签提醒", content="明天上午9点", type="urgent", user_id=2,
        metadata={"interview": "2027-02-01"},
    )
    assert created["status"] == "unread"
    assert created["metadata"] == {"interview": "2027-02-01"}

    inbox = (await client.get("/api/v1/notifications/")).json()
    assert inbox["total"] == 1
    assert inbox["unread_count"] == 1
    assert inbox["items"][0]["title"] == "面签提醒"


async def test_broadcast_visible_to_agency_only(client_factory):
    await _post(client_factory(admin()), title="系统维护")

    assert (await client_factory(other_consultant()).get("/api/v1/notifications/")).json()[
        "total"
    ] == 1
    assert (await client_factory(outsider()).get("/api/v1/notifications/")).json()["total"] == 0


async def test_personal_notification_hidden_from_colleagues(client_factory):
    await _post(client_factory(admin()), title="给顾问1", user_id=2)
    inbox = (await client_factory(other_consultant()).get("/api/v1/notifications/")).json()
    assert inbox["total"] == 0


async def test_mark_read(client_factory):
    client = client_factory(consultant())
    created = await _post(client, title="材料已上传", type="material", user_id=2)

    resp = await client.patch(f"/api/v1/notifications/{created['id']}/read")
    assert resp.json()["status"] == "read"

    unread = (await client.get("/api/v1/notifications/", params={"status": "unread"})).json()
    assert unread["total"] == 0
    assert unread["unread_count"] == 0


async def test_mark_read_unknown(client_factory):
    resp = await client_factory(consultant()).patch("/api/v1/notifications/999/read")
    assert resp.status_code == 404


async def test_mark_all_read(client_factory):
    client = client_factory(consultant())
    for title in ("一", "二", "三"):
        await _post(client, title=title, user_id=2)

    resp = await client.post("/api/v1/notifications/mark-all-read")

    assert resp.json() == {"updated": 3}
    inbox = (await client.get("/api/v1/notifications/")).json()
    assert inbox["unread_count"] == 0


async def test_filter_by_type_and_paginate(client_factory):
    client = client_factory(consultant())
    for i in range(3):
        await _post(client, title=f"客户{i}", type="customer", user_id=2)
    await _post(client, title="系统", type="system", user_id=2)

    customer = (
        await client.get("/api/v1/notifications/", params={"type": "customer", "per_page": 2})
    ).json()
    assert customer["total"] == 3
    assert customer["pages"] == 2
    assert len(customer["items"]) == 2
