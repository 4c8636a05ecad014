"""
Vitrine Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── engine: SQLite database file under tmp_path, tables created,
    │           visit counter row seeded
    ├── item_repository / stats_repository: repositories over that engine
    ├── blob_store: LocalBlobStore rooted in tmp_path
    ├── item_service: ItemService over the two, with a deterministic clock
    ├── app_state: AppState wired from the above
    ├── test_client: HTTPX AsyncClient talking to create_app(state=app_state)
    └── sample_image_bytes: Fake image content for upload tests
"""

import os
import tempfile
from itertools import count
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Override settings for testing BEFORE any vitrine imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["BLOB_BACKEND"] = "local"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="vitrine_test_")
os.environ["PUBLIC_BASE_URL"] = "http://test"
os.environ["LOG_LEVEL"] = "WARNING"

from vitrine.config import settings  # noqa: E402
from vitrine.database import build_engine, build_session_factory, create_all  # noqa: E402
from vitrine.models.item import VISIT_COUNTER_ID, Stats  # noqa: E402
from vitrine.services.blob_store import LocalBlobStore  # noqa: E402
from vitrine.services.item_service import ItemService  # noqa: E402
from vitrine.services.record_store import ItemRepository, StatsRepository  # noqa: E402
from vitrine.state import build_app_state  # noqa: E402

BUCKET = "items-images"
FIRST_TICK_MS = 1_700_000_000_000


class FakeClock:
    """Epoch-milliseconds source that advances by one on every call."""

    def __init__(self, start: int = FIRST_TICK_MS):
        self._ticks = count(start)

    def __call__(self) -> int:
        return next(self._ticks)


def mock_blob_store(bucket: str = BUCKET) -> MagicMock:
    """A BlobStore double whose I/O methods are AsyncMocks."""
    store = MagicMock()
    store.bucket = bucket
    store.put = AsyncMock()
    store.get = AsyncMock(return_value=None)
    store.delete = AsyncMock()
    store.close = AsyncMock()
    store.health_check = AsyncMock(return_value=True)
    store.public_url = MagicMock(
        side_effect=lambda path: f"https://blobs.example/storage/v1/object/public/{bucket}/{path}"
    )
    store.path_from_url = MagicMock(return_value=None)
    return store


# ══════════════════════════════════════════════════════════════════════════
# Record store
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    """
    A fresh SQLite database per test, with the visit counter row seeded
    the way the initial migration seeds it.
    """
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'vitrine.db'}")
    await create_all(engine)

    session_factory = build_session_factory(engine)
    async with session_factory() as session:
        session.add(Stats(id=VISIT_COUNTER_ID, visits=0))
        await session.commit()

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def item_repository(session_factory):
    return ItemRepository(session_factory, timeout=5.0)


@pytest.fixture
def stats_repository(session_factory):
    return StatsRepository(session_factory, timeout=5.0)


# ══════════════════════════════════════════════════════════════════════════
# Blob store & services
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(
        storage_root=str(tmp_path / "storage"),
        bucket=BUCKET,
        public_base_url="http://test",
    )


@pytest.fixture
def item_service(item_repository, blob_store):
    return ItemService(items=item_repository, blobs=blob_store, clock=FakeClock())


@pytest.fixture
def sample_image_bytes():
    """
    Minimal JPEG bytes: Start of Image (FFD8) + JFIF marker + End of Image (FFD9).
    """
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app_state(engine, blob_store):
    return build_app_state(settings, engine=engine, blob_store=blob_store)


@pytest_asyncio.fixture
async def test_client(app_state):
    """
    HTTPX AsyncClient routed straight into the app via ASGITransport.

    ASGITransport does not run the lifespan handler, so the state is
    injected through create_app(state=...).

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from vitrine.main import create_app

    app = create_app(state=app_state)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
