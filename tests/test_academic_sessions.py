import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.models import AcademicSession


async def _current_count(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(AcademicSession.id)).where(AcademicSession.is_current.is_(True)))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_at_most_one_current_session(client, db_session: AsyncSession, admin_headers) -> None:
    for name, make_current in (("2023/2024", True), ("2024/2025", False), ("2025/2026", True), ("2026/2027", True)):
        response = await client.post(
            "/api/v1/academic-sessions",
            json={"name": name, "set_as_current": make_current},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert await _current_count(db_session) == 1

    response = await client.get("/api/v1/academic-sessions/current", headers=admin_headers)
    assert response.json()["name"] == "2026/2027"


@pytest.mark.asyncio
async def test_set_current_switches_session(client, db_session: AsyncSession, admin_headers) -> None:
    first = (await client.post("/api/v1/academic-sessions", json={"name": "A", "set_as_current": True}, headers=admin_headers)).json()
    await client.post("/api/v1/academic-sessions", json={"name": "B", "set_as_current": True}, headers=admin_headers)

    response = await client.post(f"/api/v1/academic-sessions/{first['id']}/set-current", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["is_current"] is True
    assert await _current_count(db_session) == 1


@pytest.mark.asyncio
async def test_duplicate_session_name(client, admin_headers) -> None:
    await client.post("/api/v1/academic-sessions", json={"name": "2025/2026"}, headers=admin_headers)
    response = await client.post("/api/v1/academic-sessions", json={"name": "2025/2026"}, headers=admin_headers)

    assert response.status_code == 409
    assert response.json()["detail"]["kind"] == "conflict"


@pytest.mark.asyncio
async def test_only_admin_creates_sessions(client, headers_for) -> None:
    response = await client.post(
        "/api/v1/academic-sessions",
        json={"name": "2025/2026"},
        headers=headers_for(uuid.uuid4(), "SUPERVISOR"),
    )
    assert response.status_code == 403
