"""Shared test fixtures."""

import os

# Disable slowapi before the application module is imported
os.environ.setdefault("SOWFLOW_RATE_LIMIT_ENABLED", "false")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from sowflow.db.base import Base
# Import all models to register with Base.metadata
import sowflow.db.models  # noqa: F401
from sowflow.db.models.document import DocumentRow
from sowflow.db.models.user import UserRow
from sowflow.models.enums import DocumentStatus, Role
from sowflow.services.id_generator import generate_id
from sowflow.services.security import hash_password, make_tokens

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Seed default approval stages (mirrors main.py lifespan)
    from sowflow.services.default_stages import seed_default_stages

    async with async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)() as seed_session:
        await seed_default_stages(seed_session)
        await seed_session.commit()

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def app(db_engine, session_factory):
    """Create a test application instance with in-memory DB."""
    from sowflow.main import create_app

    _app = create_app()
    _app.state.db_engine = db_engine
    _app.state.db_session_factory = session_factory
    return _app


@pytest.fixture
async def client(app):
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(session_factory):
    """Factory: persist a user and return (user_id, auth headers)."""

    async def _make(role: Role, is_admin: bool = False, email: str | None = None):
        user_id = generate_id("usr_")
        async with session_factory() as session:
            session.add(
                UserRow(
                    user_id=user_id,
                    email=email or f"{user_id}@example.com",
                    display_name=f"{role.value} user",
                    hashed_password=hash_password(TEST_PASSWORD),
                    role=role.value,
                    is_admin=is_admin,
                    is_active=True,
                )
            )
            await session.commit()
        access_token, _ = make_tokens(user_id, role.value, is_admin)
        return user_id, {"Authorization": f"Bearer {access_token}"}

    return _make


@pytest.fixture
async def admin(make_user):
    return await make_user(Role.ADMIN, is_admin=True)


@pytest.fixture
async def manager(make_user):
    return await make_user(Role.MANAGER)


@pytest.fixture
async def director(make_user):
    return await make_user(Role.DIRECTOR)


@pytest.fixture
async def vp(make_user):
    return await make_user(Role.VP)


@pytest.fixture
def make_document(session_factory):
    """Factory: persist a draft document and return its ID."""

    async def _make(amount: float | None = 50000.0, title: str = "Platform rollout SOW"):
        document_id = generate_id("doc_")
        async with session_factory() as session:
            session.add(
                DocumentRow(
                    document_id=document_id,
                    title=title,
                    amount=amount,
                    status=DocumentStatus.DRAFT.value,
                    version=1,
                    created_by="usr_author",
                )
            )
            await session.commit()
        return document_id

    return _make


@pytest.fixture
async def stage_ids(client, admin):
    """Map of seeded stage name to stage_id."""
    _, headers = admin
    r = await client.get("/api/v1/admin/approval-stages", headers=headers)
    assert r.status_code == 200
    return {s["name"]: s["stage_id"] for s in r.json()}
