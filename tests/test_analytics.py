"""Tests for reading analytics upsert, listing and summaries."""

import pytest
from conftest import bearer, register
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bookclub.models.analytics import ReadingAnalytics


def _record(user_id: str, club: str = "club-1", book: str = "book-1", **metrics) -> dict:
    return {"userId": user_id, "clubId": club, "bookId": book, **metrics}


@pytest.mark.asyncio
async def test_upsert_creates_record(async_client: AsyncClient, member: dict, member_headers: dict):
    uid = member["user"]["id"]
    resp = await async_client.post("/api/analytics", headers=member_headers, json=_record(
        uid, readingSpeed=25, avgSessionDuration=30, totalReadingTime=120, completionRate=35.5,
    ))
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Analytics updated successfully"
    data = body["data"]
    assert data["userId"] == uid
    assert data["readingSpeed"] == 25
    assert data["completionRate"] == 35.5
    assert data["sessionsCount"] == 1
    assert data["lastActivity"] is not None


@pytest.mark.asyncio
async def test_upsert_same_triple_increments_sessions(
    async_client: AsyncClient, member: dict, member_headers: dict, db_session: AsyncSession
):
    """Repeated upserts for (user, club, book) bump the counter instead of adding rows."""
    uid = member["user"]["id"]
    for rate in (10, 20, 30):
        resp = await async_client.post(
            "/api/analytics", headers=member_headers, json=_record(uid, completionRate=rate)
        )
        assert resp.status_code == 201

    data = resp.json()["data"]
    assert data["sessionsCount"] == 3
    assert data["completionRate"] == 30

    rows = await db_session.scalar(
        select(func.count(ReadingAnalytics.id)).where(ReadingAnalytics.user_id == uid)
    )
    assert rows == 1


@pytest.mark.asyncio
async def test_upsert_keeps_metrics_not_sent(async_client: AsyncClient, member: dict, member_headers: dict):
    uid = member["user"]["id"]
    await async_client.post("/api/analytics", headers=member_headers, json=_record(uid, readingSpeed=40))
    resp = await async_client.post("/api/analytics", headers=member_headers, json=_record(uid, completionRate=50))
    data = resp.json()["data"]
    assert data["readingSpeed"] == 40
    assert data["completionRate"] == 50


@pytest.mark.asyncio
async def test_different_books_are_separate_rows(async_client: AsyncClient, member: dict, member_headers: dict):
    uid = member["user"]["id"]
    await async_client.post("/api/analytics", headers=member_headers, json=_record(uid, book="b1"))
    resp = await async_client.post("/api/analytics", headers=member_headers, json=_record(uid, book="b2"))
    assert resp.json()["data"]["sessionsCount"] == 1


@pytest.mark.asyncio
async def test_sessions_count_not_client_settable(async_client: AsyncClient, member: dict, member_headers: dict):
    uid = member["user"]["id"]
    resp = await async_client.post(
        "/api/analytics", headers=member_headers, json=_record(uid, sessionsCount=99)
    )
    assert resp.json()["data"]["sessionsCount"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "metrics",
    [{"completionRate": 101}, {"completionRate": -1}, {"readingSpeed": -3}, {"totalReadingTime": -1}],
)
async def test_upsert_rejects_out_of_range(
    async_client: AsyncClient, member: dict, member_headers: dict, metrics: dict
):
    resp = await async_client.post(
        "/api/analytics", headers=member_headers, json=_record(member["user"]["id"], **metrics)
    )
    assert resp.status_code == 400
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_upsert_requires_token(async_client: AsyncClient):
    resp = await async_client.post("/api/analytics", json=_record("anyone"))
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_upsert_for_another_user_forbidden(async_client: AsyncClient, member_headers: dict):
    other = await register(async_client, username="bob_2", email="bob@x.com")
    resp = await async_client.post(
        "/api/analytics", headers=member_headers, json=_record(other["user"]["id"])
    )
    assert resp.status_code == 403
    assert resp.json()["message"] == "Access denied. You can only access your own data."


@pytest.mark.asyncio
async def test_admin_may_upsert_for_any_user(async_client: AsyncClient, member: dict, admin_headers: dict):
    resp = await async_client.post(
        "/api/analytics", headers=admin_headers, json=_record(member["user"]["id"])
    )
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_list_filters_by_club(async_client: AsyncClient, member: dict, member_headers: dict):
    uid = member["user"]["id"]
    await async_client.post("/api/analytics", headers=member_headers, json=_record(uid, club="c1", book="b1"))
    await async_client.post("/api/analytics", headers=member_headers, json=_record(uid, club="c1", book="b2"))
    await async_client.post("/api/analytics", headers=member_headers, json=_record(uid, club="c2", book="b1"))

    resp = await async_client.get(f"/api/analytics/{uid}", headers=member_headers)
    assert resp.status_code == 200
    assert resp.json()["count"] == 3

    resp = await async_client.get(f"/api/analytics/{uid}?clubId=c1", headers=member_headers)
    body = resp.json()
    assert body["count"] == 2
    assert {r["clubId"] for r in body["data"]} == {"c1"}


@pytest.mark.asyncio
async def test_list_most_recent_first(async_client: AsyncClient, member: dict, member_headers: dict):
    uid = member["user"]["id"]
    await async_client.post("/api/analytics", headers=member_headers, json=_record(uid, book="first"))
    await async_client.post("/api/analytics", headers=member_headers, json=_record(uid, book="second"))
    resp = await async_client.get(f"/api/analytics/{uid}", headers=member_headers)
    assert resp.json()["data"][0]["bookId"] == "second"


@pytest.mark.asyncio
async def test_list_other_users_analytics_forbidden(async_client: AsyncClient, member_headers: dict):
    other = await register(async_client, username="bob_2", email="bob@x.com")
    resp = await async_client.get(f"/api/analytics/{other['user']['id']}", headers=member_headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_summary_empty_is_zero(async_client: AsyncClient, member: dict, member_headers: dict):
    resp = await async_client.get(f"/api/analytics/{member['user']['id']}/summary", headers=member_headers)
    assert resp.status_code == 200
    assert resp.json()["data"] == {
        "totalBooks": 0,
        "avgReadingSpeed": 0,
        "avgCompletionRate": 0,
        "totalReadingTime": 0,
        "totalSessions": 0,
    }


@pytest.mark.asyncio
async def test_summary_aggregates(async_client: AsyncClient, member: dict, member_headers: dict):
    uid = member["user"]["id"]
    await async_client.post("/api/analytics", headers=member_headers, json=_record(
        uid, book="b1", readingSpeed=10, completionRate=20, totalReadingTime=60,
    ))
    await async_client.post("/api/analytics", headers=member_headers, json=_record(
        uid, book="b1", readingSpeed=10, completionRate=40, totalReadingTime=90,
    ))
    await async_client.post("/api/analytics", headers=member_headers, json=_record(
        uid, book="b2", readingSpeed=30, completionRate=80, totalReadingTime=30,
    ))

    resp = await async_client.get(f"/api/analytics/{uid}/summary", headers=member_headers)
    data = resp.json()["data"]
    assert data["totalBooks"] == 2
    assert data["avgReadingSpeed"] == pytest.approx(20)
    assert data["avgCompletionRate"] == pytest.approx(60)
    assert data["totalReadingTime"] == pytest.approx(120)
    assert data["totalSessions"] == 3
