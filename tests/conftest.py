import functools
import itertools
import os
import tempfile

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-construction-qa")
os.environ["ENVIRONMENT"] = "test"
os.environ["LOGS_DIR"] = tempfile.mkdtemp(prefix="construction-qa-logs-")
os.environ["NOTIFICATION_PURGE_INTERVAL_SECONDS"] = "0"

import fakeredis  # noqa: E402
import fakeredis.aioredis  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from authentication.infrastructure.services import JWTTokenService  # noqa: E402
from config import database  # noqa: E402
from config.base import get_settings  # noqa: E402
from core.infrastructure import factory as core_factory  # noqa: E402
from core.infrastructure.services import RedisService  # noqa: E402
from notifications.infrastructure.factory import reset_delivery_channel  # noqa: E402
from reports.domain.entities import Report, ReportStatus  # noqa: E402
from reports.infrastructure.repositories import ReportRepository  # noqa: E402
from sites.domain.entities import Site  # noqa: E402
from sites.infrastructure.repositories import SiteRepository  # noqa: E402
from users.domain.entities import User, UserRole  # noqa: E402
from users.infrastructure.repositories import UserRepository  # noqa: E402


@pytest.fixture(autouse=True)
def settings(tmp_path, monkeypatch):
    """Point every test at its own SQLite file and fresh singletons."""
    monkeypatch.setenv(
        "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'notifications.sqlite3'}"
    )
    get_settings.cache_clear()
    database._engine = None
    reset_delivery_channel()

    yield get_settings()

    get_settings.cache_clear()
    database._engine = None
    reset_delivery_channel()


@pytest.fixture(autouse=True)
def fake_redis(settings):
    redis_service = RedisService(settings)
    redis_service._redis = fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer())
    core_factory._redis_service = redis_service

    yield redis_service._redis

    core_factory._redis_service = None


@pytest.fixture
async def session():
    """Async session on a freshly created schema, for tests without the app."""
    await database.create_tables()

    async with database.database_session() as db_session:
        yield db_session

    await database.close_database_engine()


class Seeder:
    """Create directory records, each write in its own short-lived session."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)

    async def user(
        self,
        name: str = "Eve Engineer",
        role: UserRole = UserRole.ENGINEER,
        is_active: bool = True,
    ) -> User:
        email = f"user{next(self._counter)}@example.com"
        async with database.database_session() as db_session:
            return await UserRepository(db_session).create(
                User(name=name, email=email, role=role, is_active=is_active)
            )

    async def admin(self, name: str = "Ada Admin") -> User:
        return await self.user(name=name, role=UserRole.ADMIN)

    async def site(
        self,
        name: str = "Tower A",
        created_by: int | None = None,
        location: str | None = "12 Main St",
        city: str | None = "Lagos",
        country: str | None = "Nigeria",
    ) -> Site:
        async with database.database_session() as db_session:
            return await SiteRepository(db_session).create(
                Site(
                    name=name,
                    location=location,
                    city=city,
                    country=country,
                    created_by=created_by,
                )
            )

    async def report(
        self,
        inspector_id: int,
        site_id: int | None,
        title: str = "Foundation pour inspection",
        status: ReportStatus = ReportStatus.SUBMITTED,
        review_comment: str | None = None,
    ) -> Report:
        async with database.database_session() as db_session:
            return await ReportRepository(db_session).create(
                Report(
                    title=title,
                    inspector_id=inspector_id,
                    site_id=site_id,
                    status=status,
                    review_comment=review_comment,
                )
            )

    async def token(self, user: User) -> str:
        return await JWTTokenService(get_settings()).create_access_token(user)


@pytest.fixture
def seed():
    return Seeder()


@pytest.fixture
def client(settings):
    from main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def run(client):
    """Run a coroutine function on the application's event loop."""

    def _run(func, *args, **kwargs):
        return client.portal.call(functools.partial(func, *args, **kwargs))

    return _run


@pytest.fixture
def auth_headers(run, seed):
    """Build bearer headers for a user."""

    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {run(seed.token, user)}"}

    return _headers


class FakeChannel:
    """Delivery channel double recording every emitted event."""

    def __init__(self) -> None:
        self.present = set()
        self.emitted = []
        self.fail_emit = False
        self.fail_presence = False

    def is_present(self, user_id: int) -> bool:
        if self.fail_presence:
            raise RuntimeError("presence lookup failed")
        return user_id in self.present

    async def emit_to_user(self, user_id: int, event: str, payload: dict) -> int:
        if self.fail_emit:
            raise ConnectionError("socket gone")
        self.emitted.append((user_id, event, payload))
        return 1


@pytest.fixture
def fake_channel():
    return FakeChannel()
