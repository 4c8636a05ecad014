"""
Vitrine Backend — Record Store Repositories
============================================

What:  Row-level access to the `items` and `stats` tables.
How:   Each public method opens its own session from the factory, runs one
       unit of work, commits and closes. There is no transaction spanning
       two calls: every call is atomic at single-row granularity only.
Who:   ItemService (items) and VisitCounter (stats).

Timeouts:
    Every call is bounded by `asyncio.wait_for(..., timeout)`. A timeout,
    like any SQLAlchemyError or driver-level OSError (connection refused),
    is raised as RecordError.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from vitrine.exceptions import RecordError
from vitrine.models.item import VISIT_COUNTER_ID, Item, Stats

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Repository:
    """Session-per-call execution with timeout and error translation."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], timeout: float):
        self._session_factory = session_factory
        self.timeout = timeout

    async def _run(self, operation: str, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        async def _unit() -> T:
            async with self._session_factory() as session:
                return await work(session)

        try:
            return await asyncio.wait_for(_unit(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.warning("Record store %s timed out after %.1fs", operation, self.timeout)
            raise RecordError(
                message=f"Database timed out during {operation}",
                context={"operation": operation, "timeout_seconds": self.timeout},
            ) from e
        except SQLAlchemyError as e:
            logger.error("Record store %s failed: %s", operation, str(e))
            raise RecordError(
                context={
                    "operation": operation,
                    "error_type": type(e).__name__,
                    "upstream": str(getattr(e, "orig", None) or e),
                },
            ) from e
        except OSError as e:
            # asyncpg raises connection failures (refused, reset) unwrapped
            logger.error("Record store %s unreachable: %s", operation, str(e))
            raise RecordError(
                message=f"Database is not reachable ({operation})",
                context={
                    "operation": operation,
                    "error_type": type(e).__name__,
                    "upstream": str(e),
                },
            ) from e


class ItemRepository(_Repository):
    """CRUD on the `items` table."""

    async def get(self, item_id: int) -> Optional[Item]:
        """Zero-or-one fetch by primary key."""
        async def _get(session: AsyncSession) -> Optional[Item]:
            return await session.get(Item, item_id)

        return await self._run("get_item", _get)

    async def list_newest_first(self) -> List[Item]:
        """Full scan ordered by created_at DESC, then id DESC for ties."""
        async def _list(session: AsyncSession) -> List[Item]:
            result = await session.execute(
                select(Item).order_by(Item.created_at.desc(), Item.id.desc())
            )
            return list(result.scalars().all())

        return await self._run("list_items", _list)

    async def insert(
        self, image_url: str, image_path: Optional[str], description: Optional[str]
    ) -> Item:
        """Insert a row. The database assigns id; created_at is stamped at insert."""
        async def _insert(session: AsyncSession) -> Item:
            item = Item(image_url=image_url, image_path=image_path, description=description)
            session.add(item)
            await session.commit()
            return item

        return await self._run("insert_item", _insert)

    async def update_description(self, item_id: int, description: Optional[str]) -> Optional[Item]:
        """
        Set the description of one row.

        Returns:
            The updated row, or None when no row has this id.
        """
        async def _update(session: AsyncSession) -> Optional[Item]:
            item = await session.get(Item, item_id)
            if item is None:
                return None
            item.description = description
            await session.commit()
            return item

        return await self._run("update_item", _update)

    async def delete(self, item_id: int) -> int:
        """
        Delete one row by id.

        Returns:
            Number of rows deleted (0 when another request already removed it).
        """
        async def _delete(session: AsyncSession) -> int:
            result = await session.execute(delete(Item).where(Item.id == item_id))
            await session.commit()
            return result.rowcount or 0

        return await self._run("delete_item", _delete)


class StatsRepository(_Repository):
    """Access to the singleton `stats` row."""

    async def increment_visits(self, counter_id: int = VISIT_COUNTER_ID) -> Optional[int]:
        """
        Atomically add one to `visits` and return the new value.

        The arithmetic runs inside a single UPDATE ... RETURNING statement,
        so concurrent callers are serialized by the database row lock.

        Returns:
            The new count, or None when the row does not exist.
        """
        async def _increment(session: AsyncSession) -> Optional[int]:
            result = await session.execute(
                update(Stats)
                .where(Stats.id == counter_id)
                .values(visits=func.coalesce(Stats.visits, 0) + 1)
                .returning(Stats.visits)
            )
            new_count = result.scalar_one_or_none()
            await session.commit()
            return new_count

        return await self._run("increment_visits", _increment)

    async def get_visits(self, counter_id: int = VISIT_COUNTER_ID) -> Optional[Stats]:
        async def _get(session: AsyncSession) -> Optional[Stats]:
            return await session.get(Stats, counter_id)

        return await self._run("get_visits", _get)
