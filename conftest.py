import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./powdercoat-test.db")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_BACKEND", "cache+memory://")
os.environ.setdefault("TEAM_EMAIL_DOMAIN", "powdercoat.local")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from powdercoat.main import app
from powdercoat.db.session import get_db
from powdercoat.models.registry import Base, User, TeamMember
from powdercoat.core import redis as redis_module
from powdercoat.core.security import create_access_token
from powdercoat.core.enums import UserRole
from powdercoat.schemas.order import OrderCreate
from powdercoat.services.notifications import get_notifier
from powdercoat.services.orders import submit_order


class FakeRedis:
    """Just enough of redis.asyncio.Redis for rate limits, idempotency and the change feed."""

    def __init__(self):
        self.store = {}
        self.published = []

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value if isinstance(value, bytes) else str(value).encode()
        return True

    async def incr(self, key):
        value = int(self.store.get(key, b"0")) + 1
        self.store[key] = str(value).encode()
        return value

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0

    async def publish(self, channel, message):
        self.published.append((channel, message))
        return 0

    async def ping(self):
        return True

    async def close(self):
        return None


class RecordingNotifier:
    def __init__(self):
        self.calls = []

    def notify_status_change(self, user_id, order_id, order_number, new_status, user_email=None):
        self.calls.append({
            "user_id": user_id,
            "order_id": order_id,
            "order_number": order_number,
            "new_status": str(new_status),
            "user_email": user_email,
        })


@pytest.fixture
async def engine(tmp_path):
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        future=True,
        poolclass=NullPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, future=True)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_module, "redis", fake)
    return fake


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
async def test_client(session_factory, notifier):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    async def _make_user(role=UserRole.CLIENT, email=None, full_name=None):
        counter["n"] += 1
        user = User(
            email=email or f"{role.value}{counter['n']}@example.com",
            password_hash="not-a-real-hash",
            full_name=full_name,
            role=role,
        )
        db.add(user)
        await db.commit()
        return user

    return _make_user


@pytest.fixture
async def admin(make_user):
    return await make_user(UserRole.ADMIN, email="admin@example.com", full_name="Shop Admin")


@pytest.fixture
async def client_user(make_user):
    return await make_user(UserRole.CLIENT, email="client@example.com", full_name="Carla Client")


@pytest.fixture
async def other_client(make_user):
    return await make_user(UserRole.CLIENT, email="other@example.com")


@pytest.fixture
def make_member(db, make_user):
    async def _make_member(name, department, with_account=True, availability=None, role="Technician"):
        member = TeamMember(name=name, role=role, department=department)
        if availability is not None:
            member.availability = availability
        if with_account:
            user = await make_user(UserRole.TEAM_MEMBER, full_name=name)
            member.user_id = user.id
            member.email = user.email
        db.add(member)
        await db.commit()
        return member

    return _make_member


def token_for(user) -> str:
    return create_access_token(str(user.id), user.role)


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture
def valid_order_data():
    return {
        "project_name": "Motorcycle frame",
        "description": "Strip and recoat the frame and swingarm",
        "quantity": 2,
        "dimensions": "180x60x40 cm",
        "priority": "high",
        "customization": {
            "finish": "glossy",
            "texture": "smooth",
            "color": "#1A1A1A",
            "custom_notes": "Deep black",
        },
        "files": [
            {"file_name": "frame.jpg", "file_size": 204800, "file_url": "orders/frame.jpg"},
        ],
    }


@pytest.fixture
def create_order_factory(db, client_user, admin, valid_order_data):
    async def _create_order(owner=None, **overrides):
        data = dict(valid_order_data)
        data.update(overrides)
        return await submit_order(db, owner or client_user, OrderCreate(**data))

    return _create_order


@pytest.fixture
async def order(create_order_factory):
    return await create_order_factory()


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "lifecycle: marks tests of the order status state machine"
    )
    config.addinivalue_line(
        "markers", "quotes: marks tests of the quote negotiation ledger"
    )
    config.addinivalue_line(
        "markers", "assignments: marks tests of team assignment"
    )
    config.addinivalue_line(
        "markers", "api: marks tests that go through the HTTP layer"
    )
