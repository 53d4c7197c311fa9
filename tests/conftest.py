import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
# payment timestamps in tests are written in UTC; unit tests pass a zone explicitly
os.environ.setdefault("TIMEZONE", "UTC")

from decimal import Decimal
from typing import AsyncGenerator, Dict, List

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from feedesk.auth.models import User
from feedesk.auth.security import create_access_token, hash_password
from feedesk.core.enums import FeeConfigType, UserRole
from feedesk.core.models import FeeConfig, Student
from feedesk.db.session import Base, get_db
from feedesk.main import app
from feedesk.notifications.dispatcher import get_notification_transport


TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_PASSWORD = "secret123"


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test; overrides the FastAPI get_db dependency."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture()
def provider_requests() -> List[httpx.Request]:
    """Every outgoing provider HTTP request made during the test."""
    return []


@pytest.fixture()
def provider_status() -> Dict[str, int]:
    """Status code the fake provider answers with; tests may change it."""
    return {"code": 200}


@pytest.fixture()
def notification_transport(provider_requests, provider_status) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        provider_requests.append(request)
        return httpx.Response(provider_status["code"], json={"sid": "SM123"})

    transport = httpx.MockTransport(handler)
    app.dependency_overrides[get_notification_transport] = lambda: transport
    yield transport
    app.dependency_overrides.pop(get_notification_transport, None)


@pytest.fixture()
async def client(db_session: AsyncSession, notification_transport) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def _create_user(db: AsyncSession, username: str, role: UserRole, class_name=None, division=None) -> User:
    user = User(
        username=username,
        password_hash=hash_password(TEST_PASSWORD),
        role=role.value,
        class_name=class_name,
        division=division,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def _headers(user: User) -> Dict[str, str]:
    token = create_access_token(subject={"sub": user.username, "user_id": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
async def admin_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "admin", UserRole.ADMIN)


@pytest.fixture()
async def teacher_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "class7a", UserRole.TEACHER, "7", "A")


@pytest.fixture()
def admin_headers(admin_user: User) -> Dict[str, str]:
    return _headers(admin_user)


@pytest.fixture()
def teacher_headers(teacher_user: User) -> Dict[str, str]:
    return _headers(teacher_user)


@pytest.fixture()
async def schedule(db_session: AsyncSession) -> None:
    """Development fee 1000 for class 7, 2000 for 11-B; Main Gate bus fee 500."""
    db_session.add_all(
        [
            FeeConfig(config_type=FeeConfigType.DEVELOPMENT_FEE.value, config_key="7", config_value=Decimal("1000")),
            FeeConfig(config_type=FeeConfigType.DEVELOPMENT_FEE.value, config_key="11-B", config_value=Decimal("2000")),
            FeeConfig(config_type=FeeConfigType.BUS_STOP.value, config_key="Main Gate", config_value=Decimal("500")),
        ]
    )
    await db_session.commit()


async def _create_student(db: AsyncSession, **overrides) -> Student:
    data = {
        "admission_no": "A100",
        "name": "Anu Joseph",
        "mobile": "9876543210",
        "class_name": "7",
        "division": "A",
        "bus_stop": "Main Gate",
        "bus_number": "KL-11-1234",
        "trip_number": "1",
    }
    data.update(overrides)
    student = Student(**data)
    db.add(student)
    await db.commit()
    await db.refresh(student)
    return student


@pytest.fixture()
async def student(db_session: AsyncSession, schedule) -> Student:
    return await _create_student(db_session)


@pytest.fixture()
async def other_class_student(db_session: AsyncSession, schedule) -> Student:
    return await _create_student(
        db_session,
        admission_no="B200",
        name="Rahul Nair",
        mobile="9123456780",
        class_name="11",
        division="B",
        bus_stop="",
        bus_number="",
        trip_number="",
    )
