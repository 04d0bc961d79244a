"""Test fixtures — a fresh SQLite database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Settings are pointed at SQLite and a throwaway media dir *before* the
   app is imported (the settings singleton reads env vars at import).
2. Each test gets its own database file under tmp_path with the schema
   created from the ORM models, and get_db is overridden to hand out
   sessions bound to it. Nothing leaks between tests.
3. Clients talk to the app in-process through httpx's ASGITransport and
   keep cookies in their jar, so the real session-cookie flow runs.
"""

import os
import tempfile

os.environ.setdefault("TASKTRACKER_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("TASKTRACKER_BCRYPT_ROUNDS", "4")
os.environ.setdefault("TASKTRACKER_MEDIA_DIR", tempfile.mkdtemp(prefix="tasktracker-media-"))

import uuid  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402

from tasktracker.db.engine import get_db  # noqa: E402
from tasktracker.db.models import Base  # noqa: E402
from tasktracker.main import app  # noqa: E402

PASSWORD = "correct-horse-battery"


@pytest_asyncio.fixture()
async def session_factory(tmp_path):
    """Session factory bound to a per-test SQLite file with the full schema."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """Direct DB access for assertions the API doesn't expose (e.g. hashes)."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def app_db(session_factory):
    """Override get_db so every request gets its own session on the test DB."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides.clear()


def make_client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest_asyncio.fixture()
async def anon_client(app_db):
    """HTTP client with no session cookie."""
    async with make_client() as ac:
        yield ac


async def register(client: AsyncClient, name: str = "Ada Lovelace", email: str = None) -> dict:
    """Register through the JSON API; the session cookie lands in client's jar."""
    email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
    r = await client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": PASSWORD},
    )
    assert r.status_code == 201, r.text
    return r.json()


@pytest_asyncio.fixture()
async def client(app_db):
    """HTTP client signed in as a freshly registered user (see ``client.user``)."""
    async with make_client() as ac:
        ac.user = await register(ac)
        yield ac


@pytest_asyncio.fixture()
async def other_client(app_db):
    """A second, independent signed-in user."""
    async with make_client() as ac:
        ac.user = await register(ac, name="Grace Hopper")
        yield ac
