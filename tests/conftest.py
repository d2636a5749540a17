from typing import AsyncGenerator, Dict

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.models import Role, User
from drivingschool.auth.security import create_access_token, hash_password
from drivingschool.core.config import Settings
from drivingschool.db.session import Base
from drivingschool.main import create_app

TEST_JWT_SECRET = "test-secret"

# Valid 18-digit id cards (check character verified)
ID_CARDS = [
    "110101199003070011",
    "11010119900307002X",
    "110101199003070038",
    "110101199003070046",
    "110101199003070054",
    "110101199003070062",
    "110101199003070070",
    "11010519491231002X",
]


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        JWT_SECRET_KEY=TEST_JWT_SECRET,
        ENVIRONMENT="development",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture()
async def app(settings: Settings):
    """Application bound to a fresh SQLite database per test."""
    application = create_app(settings)
    async with application.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield application
    await application.state.engine.dispose()


@pytest.fixture()
async def db_session(app) -> AsyncGenerator[AsyncSession, None]:
    async with app.state.sessionmaker() as session:
        yield session


@pytest.fixture()
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
async def admin_user(db_session: AsyncSession) -> User:
    db_session.add(Role(name="admin", permissions={}))
    user = User(
        username="admin",
        password_hash=hash_password("Admin@123"),
        real_name="管理员",
        role="admin",
        status="active",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def _headers(settings: Settings, user: User) -> Dict[str, str]:
    token = create_access_token(
        settings, subject={"id": user.id, "username": user.username, "role": user.role}
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers(settings: Settings, admin_user: User) -> Dict[str, str]:
    return _headers(settings, admin_user)


@pytest.fixture()
async def clerk_headers(settings: Settings, db_session: AsyncSession) -> Dict[str, str]:
    """A non-admin user who may only read payments."""
    db_session.add(Role(name="clerk", permissions={"payments": {"read": True}}))
    user = User(
        username="clerk",
        password_hash=hash_password("Clerk@123"),
        real_name="前台",
        role="clerk",
        status="active",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return _headers(settings, user)


@pytest.fixture()
def make_class_type(client: AsyncClient, admin_headers):
    async def _make(name: str = "C1普通班", contract_amount: str = "3800.00") -> dict:
        response = await client.post(
            "/api/class-types",
            json={"name": name, "contract_amount": contract_amount},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture()
def make_student(client: AsyncClient, admin_headers):
    counter = {"next": 0}

    async def _make(class_type_id=None, **fields) -> dict:
        id_card = fields.pop("id_card", None) or ID_CARDS[counter["next"]]
        counter["next"] += 1
        payload = {
            "name": fields.pop("name", f"学员{counter['next']}"),
            "id_card": id_card,
            "phone": "13800000000",
            "gender": "男",
            "class_type_id": class_type_id,
            "enrollment_status": "报名未缴费",
        }
        payload.update(fields)
        response = await client.post("/api/students", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture()
def make_schedule(client: AsyncClient, admin_headers):
    counter = {"next": 0}

    async def _make(exam_type: str = "科目一", capacity: int = 10, exam_date: str = "2025-03-15") -> dict:
        counter["next"] += 1
        venue = await client.post(
            "/api/exam-venues",
            json={"name": f"考场{counter['next']}", "capacity": capacity},
            headers=admin_headers,
        )
        assert venue.status_code == 201, venue.text
        schedule = await client.post(
            "/api/exam-schedules",
            json={
                "exam_date": exam_date,
                "exam_type": exam_type,
                "venue_id": venue.json()["data"]["id"],
                "capacity": capacity,
            },
            headers=admin_headers,
        )
        assert schedule.status_code == 201, schedule.text
        return schedule.json()["data"]

    return _make
