"""Shared test fixtures for pytest"""
import copy
import os

# Settings are read once at import time, so the test environment goes first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./formvault-unused.db"
os.environ["TELEMETRY_ENABLED"] = "false"
os.environ["REDIS_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["UNKNOWN_FIELD_POLICY"] = "warn"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

import src.infrastructure.persistence.models  # noqa: E402,F401
from main import app  # noqa: E402
from src.application.services.record_binder import RecordBinder  # noqa: E402
from src.application.services.tenant_registry import TenantRegistry  # noqa: E402
from src.application.services.version_manager import VersionManager  # noqa: E402
from src.domain.entities.tenant import TenantEntity  # noqa: E402
from src.infrastructure.persistence.database import (  # noqa: E402
    Base,
    build_engine,
    build_session_factory,
    get_db,
    get_db_transactional,
)
from src.infrastructure.persistence.repositories import TenantRepository  # noqa: E402

# Scenario A structure: wood-co's "Plank" listing schema
PLANK_FIELDS = [
    {"kind": "primitive", "name": "species", "type": "string", "required": True},
    {"kind": "primitive", "name": "length_mm", "type": "number", "required": True},
    {"kind": "enum", "name": "grade", "values": ["A", "B", "C"], "required": True},
    {
        "kind": "nested",
        "name": "dimensions",
        "fields": [
            {"kind": "primitive", "name": "width_mm", "type": "number", "required": True},
            {"kind": "primitive", "name": "thickness_mm", "type": "number", "required": True},
        ],
    },
    {"kind": "array", "name": "tags", "item_type": "string"},
]


@pytest.fixture
def plank_fields() -> list[dict]:
    """Fresh copy of the Plank structure for each test"""
    return copy.deepcopy(PLANK_FIELDS)


@pytest.fixture
async def test_engine(tmp_path):
    """Create a file-backed SQLite engine so separate sessions really run concurrently"""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'formvault.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return build_session_factory(test_engine)


@pytest.fixture
async def test_db(session_factory):
    """Create test database session"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def run_in_transaction(session_factory):
    """
    Run one service call in its own committed transaction.

    Usage:
        version = await run_in_transaction(
            VersionManager, lambda m: m.publish_version(...)
        )
    """

    async def runner(service_cls, call):
        async with session_factory() as session, session.begin():
            return await call(service_cls.for_session(session))

    return runner


async def _register(session_factory, code: str, name: str) -> TenantEntity:
    async with session_factory() as session, session.begin():
        return await TenantRegistry(TenantRepository(session)).register_tenant(code, name)


@pytest.fixture
async def tenant(session_factory) -> TenantEntity:
    return await _register(session_factory, "wood-co", "Wood Co")


@pytest.fixture
async def other_tenant(session_factory) -> TenantEntity:
    return await _register(session_factory, "stone-co", "Stone Co")


@pytest.fixture
def version_manager(test_db) -> VersionManager:
    return VersionManager.for_session(test_db)


@pytest.fixture
def record_binder(test_db) -> RecordBinder:
    return RecordBinder.for_session(test_db)


@pytest.fixture
async def client(session_factory):
    """HTTP client for API testing"""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_db_transactional():
        async with session_factory() as session:
            async with session.begin():
                yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_db_transactional] = override_get_db_transactional

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
