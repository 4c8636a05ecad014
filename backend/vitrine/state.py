"""
Vitrine Backend — Application State
====================================

What:  Process-wide container for the store clients and services.
How:   `build_app_state()` constructs the engine, blob store, repositories and
       services once at startup; route handlers receive them through
       FastAPI dependencies (`get_item_service`, `get_visit_counter`).
When:  Built in the lifespan handler (or injected by tests through
       `create_app(state=...)`), closed at shutdown.

The clients are stateless HTTP/SQL connections, so one instance is shared
by every request. Nothing else in the process holds mutable shared state.
"""

import logging
import time
from dataclasses import dataclass, field

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from vitrine.config import Settings
from vitrine.database import build_engine, build_session_factory, dispose_engine
from vitrine.services.blob_store import BlobStore, LocalBlobStore, SupabaseBlobStore
from vitrine.services.item_service import ItemService
from vitrine.services.record_store import ItemRepository, StatsRepository
from vitrine.services.visit_service import VisitCounter

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """
    Runtime application state.

    Attributes:
        engine: Async SQLAlchemy engine for the record store
        blob_store: Image blob store client
        item_service: Item coordinator
        visit_counter: Visit counter service
        start_time: Epoch seconds when the state was built
    """

    engine: AsyncEngine
    blob_store: BlobStore
    item_service: ItemService
    visit_counter: VisitCounter
    start_time: float = field(default_factory=time.time)

    @property
    def uptime_seconds(self) -> float:
        return time.time() - self.start_time

    async def close(self) -> None:
        """Release the blob store HTTP client and the connection pool."""
        await self.blob_store.close()
        await dispose_engine(self.engine)


def build_blob_store(settings: Settings) -> BlobStore:
    """Select the blob store implementation from settings.blob_backend."""
    if settings.blob_backend == "local":
        return LocalBlobStore(
            storage_root=settings.storage_root,
            bucket=settings.storage_bucket,
            public_base_url=settings.public_base_url,
        )
    return SupabaseBlobStore(
        base_url=settings.supabase_url,
        service_key=settings.supabase_service_role_key,
        bucket=settings.storage_bucket,
        timeout=settings.request_timeout_seconds,
    )


def build_app_state(
    settings: Settings,
    engine: AsyncEngine | None = None,
    blob_store: BlobStore | None = None,
) -> AppState:
    """
    Wire the services from settings.

    Args:
        settings: Application settings
        engine: Pre-built engine (tests); built from settings.database_url otherwise
        blob_store: Pre-built blob store (tests); selected from settings otherwise
    """
    engine = engine or build_engine(settings.database_url)
    blob_store = blob_store or build_blob_store(settings)
    session_factory = build_session_factory(engine)
    timeout = settings.request_timeout_seconds

    logger.info(
        "Wiring services: blob_backend=%s bucket=%s timeout=%.1fs",
        type(blob_store).__name__,
        blob_store.bucket,
        timeout,
    )

    return AppState(
        engine=engine,
        blob_store=blob_store,
        item_service=ItemService(
            items=ItemRepository(session_factory, timeout),
            blobs=blob_store,
        ),
        visit_counter=VisitCounter(StatsRepository(session_factory, timeout)),
    )


# ── FastAPI Dependencies ──────────────────────────────────────────────────

def get_app_state(request: Request) -> AppState:
    """Return the state attached to the running app."""
    state = getattr(request.app.state, "vitrine", None)
    if state is None:
        raise RuntimeError("Application state not initialized")
    return state


def get_item_service(request: Request) -> ItemService:
    return get_app_state(request).item_service


def get_visit_counter(request: Request) -> VisitCounter:
    return get_app_state(request).visit_counter
