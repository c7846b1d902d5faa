# This project was developed with assistance from AI tools.
"""Dashboard statistics over scoped cases."""

from datetime import UTC, date, datetime, timedelta

from db.enums import CaseStatus, VisaType

from tests.factories import insert_case
from tests.personas import admin, consultant, outsider


async def _seed_cases(session):
    await insert_case(session, status=CaseStatus.CREATED)
    await insert_case(session, status=CaseStatus.CLIENT_SUBMITTED)
    await insert_case(session, status=CaseStatus.CONSULTANT_REVIEWING, visa_type=VisaType.F1)
    await insert_case(session, status=CaseStatus.COMPLETED)
    await insert_case(session, status=CaseStatus.CANCELLED, consultant_id=3)


async def test_overview_counts(client_factory, seeded):
    await _seed_cases(seeded)
    body = (await client_factory(admin()).get("/api/v1/statistics/overview")).json()

    assert body["total_cases"] == 5
    assert body["active_cases"] == 3
    assert body["completed_cases"] == 1
    assert body["pending_review"] == 2
    assert body["status_distribution"]["cancelled"] == 1
    assert body["visa_type_distribution"] == {"B1/B2": 4, "F1": 1}
    assert len(body["monthly_trend"]) == 6
    this_month = f"{datetime.now(UTC):%Y-%m}"
    assert body["monthly_trend"][-1] == {"month": this_month, "created": 5, "completed": 1}


async def test_overview_is_scoped(client_factory, seeded):
    await _seed_cases(seeded)
    mine = (await client_factory(consultant()).get("/api/v1/statistics/overview")).json()
    assert mine["total_cases"] == 4
    other_agency = (await client_factory(outsider()).get("/api/v1/statistics/overview")).json()
    assert other_agency["total_cases"] == 0
    assert other_agency["status_distribution"] == {}


async def test_overview_months_bounds(client_factory):
    resp = await client_factory(admin()).get("/api/v1/statistics/overview", params={"months": 0})
    assert resp.status_code == 422


async def test_case_trend_by_day(client_factory, seeded):
    await _seed_cases(seeded)
    today = datetime.now(UTC).date()
    start = today - timedelta(days=2)
    body = (
        await client_factory(admin()).get(
            "/api/v1/statistics/case-trend",
            params={"start_date": start.isoformat(), "end_date": today.isoformat()},
        )
    ).json()

    assert body["labels"] == [(start + timedelta(days=i)).isoformat() for i in range(3)]
    created, completed = body["datasets"]
    assert created["data"] == [0, 0, 5]
    assert completed["data"] == [0, 0, 1]


async def test_case_trend_by_month_labels(client_factory):
    body = (
        await client_factory(admin()).get(
            "/api/v1/statistics/case-trend",
            params={"start_date": "2026-01-15", "end_date": "2026-03-02", "interval": "month"},
        )
    ).json()
    assert body["labels"] == ["2026-01-01", "2026-02-01", "2026-03-01"]


async def test_case_trend_rejects_inverted_range(client_factory):
    resp = await client_factory(admin()).get(
        "/api/v1/statistics/case-trend",
        params={"start_date": date(2026, 5, 2).isoformat(), "end_date": "2026-05-01"},
    )
    assert resp.status_code == 422


async def test_distributions(client_factory, seeded):
    await _seed_cases(seeded)
    client = client_factory(admin())

    statuses = (await client.get("/api/v1/statistics/status-distribution")).json()
    by_status = {b["status"]: b for b in statuses}
    assert by_status["completed"]["count"] == 1
    assert by_status["completed"]["percentage"] == 20.0
    assert by_status["consultant_reviewing"]["label"]

    visas = (await client.get("/api/v1/statistics/visa-type-distribution")).json()
    assert visas == [
        {"visa_type": "B1/B2", "count": 4, "percentage": 80.0},
        {"visa_type": "F1", "count": 1, "percentage": 20.0},
    ]
