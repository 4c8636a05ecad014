"""
Vitrine Backend — Record Store Unit Tests
==========================================

What:  Error translation and row semantics of the repositories.
How:   SQLite for row behavior; a hanging or failing session factory for
       the timeout and SQLAlchemyError paths.
"""

import asyncio
from contextlib import asynccontextmanager

import pytest
from sqlalchemy.exc import OperationalError

from vitrine.exceptions import RecordError
from vitrine.services.record_store import ItemRepository, StatsRepository


class _StubSession:
    def __init__(self, error=None, delay=0.0):
        self.error = error
        self.delay = delay

    async def get(self, *args, **kwargs):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return None


def _session_factory(session):
    @asynccontextmanager
    async def factory():
        yield session

    return factory


class TestRepositoryErrors:
    """Timeouts and driver errors surface as RecordError."""

    @pytest.mark.asyncio
    async def test_timeout_raises_record_error(self):
        repo = ItemRepository(_session_factory(_StubSession(delay=1.0)), timeout=0.01)

        with pytest.raises(RecordError, match="timed out") as exc_info:
            await repo.get(1)

        assert exc_info.value.context["operation"] == "get_item"

    @pytest.mark.asyncio
    async def test_driver_error_raises_record_error_with_upstream(self):
        error = OperationalError("SELECT", {}, Exception("connection refused"))
        repo = StatsRepository(_session_factory(_StubSession(error=error)), timeout=1.0)

        with pytest.raises(RecordError) as exc_info:
            await repo.get_visits(1)

        assert exc_info.value.context["error_type"] == "OperationalError"
        assert "connection refused" in exc_info.value.context["upstream"]

    @pytest.mark.asyncio
    async def test_unwrapped_connection_refused_raises_record_error(self):
        error = ConnectionRefusedError(111, "Connect call failed ('127.0.0.1', 1)")
        repo = ItemRepository(_session_factory(_StubSession(error=error)), timeout=1.0)

        with pytest.raises(RecordError, match="not reachable") as exc_info:
            await repo.get(1)

        context = exc_info.value.context
        assert context["operation"] == "get_item"
        assert context["error_type"] == "ConnectionRefusedError"
        assert "Connect call failed" in context["upstream"]


class TestItemRepository:
    """Row semantics against SQLite."""

    @pytest.mark.asyncio
    async def test_insert_assigns_id_and_created_at(self, item_repository):
        row = await item_repository.insert("http://test/files/b/items/1-a.png", "items/1-a.png", "a")

        assert row.id is not None
        assert row.created_at is not None

    @pytest.mark.asyncio
    async def test_delete_reports_rows_removed(self, item_repository):
        row = await item_repository.insert("http://test/files/b/items/1-a.png", "items/1-a.png", None)

        assert await item_repository.delete(row.id) == 1
        assert await item_repository.delete(row.id) == 0

    @pytest.mark.asyncio
    async def test_update_unknown_id_returns_none(self, item_repository):
        assert await item_repository.update_description(404, "x") is None
