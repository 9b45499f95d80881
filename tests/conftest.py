"""
Test infrastructure for the Conduit API.

Strategy
--------
- SQLite in-memory via aiosqlite, so the suite needs no running Postgres.
- StaticPool makes every session share the one in-memory connection;
  a second connection would see an empty database.
- ``get_db`` is overridden so requests use the test session factory.
- Tables are created before and dropped after every test.
- Redis is disabled by setting ``cache._redis = None``; the cache manager
  treats that as "always miss, never write".
- Data seeded directly through a session is committed before use, because
  an HTTP request that fails rolls back the shared connection.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from app.cache import cache
from app.database import Base, build_engine, build_sessionmaker, get_db
from app.main import app
from app.models import Article, Tag, User

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = build_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
async_session_test = build_sessionmaker(engine_test)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    cache._redis = None
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live session for seeding data and asserting stored state directly."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def register_user(async_client: AsyncClient):
    """
    Factory registering a user through the API.

    Returns the ``user`` payload, whose ``token`` is ready for an
    ``Authorization: Token ...`` header.
    """

    async def _register(username: str = "jake", email: str | None = None, password: str = "jakejake") -> dict:
        resp = await async_client.post("/users", json={
            "user": {
                "username": username,
                "email": email or f"{username}@example.com",
                "password": password,
            },
        })
        assert resp.status_code == 201, resp.text
        return resp.json()["user"]

    return _register


@pytest.fixture
def create_article():
    """Factory inserting (and committing) an article owned by *username*."""

    async def _create(username: str, slug: str = "how-to-train-your-dragon", tags: tuple[str, ...] = ()) -> str:
        async with async_session_test() as session:
            author = (
                await session.execute(select(User).where(User.username == username))
            ).scalar_one()
            article = Article(
                slug=slug,
                title=slug.replace("-", " ").title(),
                description="Ever wonder how?",
                body="You have to believe",
                user_id=author.id,
            )
            article.tags.extend(Tag(name=name) for name in tags)
            session.add(article)
            await session.commit()
            return article.id

    return _create
