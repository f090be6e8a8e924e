import os
import uuid
from datetime import date, datetime
from typing import AsyncGenerator, Callable, Dict, List

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth.security import create_access_token
from app.core.enums import SupervisorType
from app.core.models import AcademicSession, Student, Supervisor
from app.db.session import Base, get_db
from app.main import app
from app.notifications import DomainEvent, get_notification_sink


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class RecordingSink:
    """Collects emitted events instead of delivering them."""

    def __init__(self) -> None:
        self.events: List[DomainEvent] = []

    async def emit(self, event: DomainEvent) -> None:
        self.events.append(event)


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory schema per test; StaticPool keeps every session on one connection."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
async def client(db_session: AsyncSession, sink: RecordingSink) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app, sharing the test session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_sink] = lambda: sink
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth_headers(user_id: uuid.UUID, role: str) -> Dict[str, str]:
    token = create_access_token(user_id=user_id, role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers() -> Dict[str, str]:
    return auth_headers(uuid.uuid4(), "ADMIN")


@pytest.fixture()
async def current_session(db_session: AsyncSession) -> AcademicSession:
    session = AcademicSession(name="2025/2026", is_current=True)
    db_session.add(session)
    await db_session.commit()
    await db_session.refresh(session)
    return session


@pytest.fixture()
def make_supervisor(db_session: AsyncSession) -> Callable:
    counter = {"n": 0}

    async def _make(
        name: str = None,
        supervisor_type: SupervisorType = SupervisorType.SCHOOL,
        is_active: bool = True,
        with_login: bool = True,
        created_at: datetime = None,
    ) -> Supervisor:
        counter["n"] += 1
        sup = Supervisor(
            name=name or f"Supervisor {counter['n']}",
            email=f"supervisor{counter['n']}@uni.edu.ng",
            supervisor_type=supervisor_type.value,
            is_active=is_active,
            user_id=uuid.uuid4() if with_login else None,
        )
        if created_at is not None:
            sup.created_at = created_at
        db_session.add(sup)
        await db_session.commit()
        await db_session.refresh(sup)
        return sup

    return _make


@pytest.fixture()
def make_student(db_session: AsyncSession) -> Callable:
    counter = {"n": 0}

    async def _make(matric_no: str = None, placement_start_date: date = None, locked: bool = False) -> Student:
        counter["n"] += 1
        student = Student(
            full_name=f"Student {counter['n']}",
            email=f"student{counter['n']}@uni.edu.ng",
            matric_no=matric_no or f"CSC/2021/{counter['n']:03d}",
            placement_start_date=placement_start_date,
            user_id=uuid.uuid4(),
            locked=locked,
        )
        db_session.add(student)
        await db_session.commit()
        await db_session.refresh(student)
        return student

    return _make


@pytest.fixture()
def headers_for() -> Callable[[uuid.UUID, str], Dict[str, str]]:
    """Bearer headers for an arbitrary user id and role."""
    return auth_headers
