"""
SQLAlchemy-based storage backend for the key-value contract.

Runs against PostgreSQL (asyncpg) in production and SQLite (aiosqlite) in
tests. Each call opens its own session and transaction, so each call is
atomic on its own and nothing spans calls. Compare-and-set is a single
UPDATE whose row count decides the outcome; plain writes and counters are
INSERT ... ON CONFLICT upserts.
"""

import logging
from functools import wraps
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Set, TypeVar

from sqlalchemy import and_, delete, func, or_, select, text, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from room_design.core.exceptions import StoreFailureError
from room_design.models.base import Base
from room_design.models.kv_orm import KVCounterORM, KVEntryORM, KVSetMemberORM, KVSortedMemberORM
from room_design.storage.base_store import KeyValueStore, slice_inclusive
from room_design.utils.db_session import build_session_factory, get_async_engine

logger = logging.getLogger(__name__)

T = TypeVar("T")

UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


def wrap_store_errors(func_: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Re-raise backend exceptions as ``StoreFailureError`` without retrying."""
    @wraps(func_)
    async def wrapper(self: "SQLAlchemyKeyValueStore", *args: Any, **kwargs: Any) -> T:
        try:
            return await func_(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Store operation {func_.__name__} failed: {e}", exc_info=True)
            raise StoreFailureError(f"Storage backend failed during {func_.__name__}") from e
    return wrapper


class SQLAlchemyKeyValueStore(KeyValueStore):
    """Relational implementation of ``KeyValueStore``."""

    def __init__(self, engine: Optional[AsyncEngine] = None):
        """
        Args:
            engine: Async engine to use. Defaults to the cached engine built
                    from ``settings.DATABASE_URL``.
        """
        self._engine = engine or get_async_engine()
        self._session_factory = build_session_factory(self._engine)
        dialect = self._engine.dialect.name
        if dialect not in UPSERT_INSERTS:
            raise ValueError(f"Unsupported database dialect for the key-value store: {dialect}")
        # INSERT ... ON CONFLICT, so first writes to a key cannot race each other
        self._insert = UPSERT_INSERTS[dialect]
        logger.info(f"SQLAlchemyKeyValueStore initialized with dialect: {dialect}")

    @wrap_store_errors
    async def create_schema(self) -> None:
        """Create the backing tables if missing. Production schemas are managed by Alembic."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    # --- strings ---

    @wrap_store_errors
    async def get(self, key: str) -> Optional[str]:
        async with self._session_factory() as session:
            return await session.scalar(select(KVEntryORM.value).where(KVEntryORM.key == key))

    @wrap_store_errors
    async def set(self, key: str, value: str) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                stmt = self._insert(KVEntryORM).values(key=key, value=value)
                await session.execute(
                    stmt.on_conflict_do_update(index_elements=[KVEntryORM.key], set_={"value": stmt.excluded.value})
                )

    @wrap_store_errors
    async def delete(self, key: str) -> bool:
        removed = 0
        async with self._session_factory() as session:
            async with session.begin():
                for model in (KVEntryORM, KVSetMemberORM, KVSortedMemberORM, KVCounterORM):
                    result = await session.execute(delete(model).where(model.key == key))
                    removed += result.rowcount or 0
        return removed > 0

    @wrap_store_errors
    async def set_if_absent(self, key: str, value: str) -> bool:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(KVEntryORM(key=key, value=value))
        except IntegrityError:
            return False
        return True

    async def compare_and_set(self, key: str, expected: Optional[str], value: str) -> bool:
        if expected is None:
            return await self.set_if_absent(key, value)
        return await self._conditional_update(key, expected, value)

    @wrap_store_errors
    async def _conditional_update(self, key: str, expected: str, value: str) -> bool:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(KVEntryORM)
                    .where(and_(KVEntryORM.key == key, KVEntryORM.value == expected))
                    .values(value=value)
                )
        return result.rowcount == 1

    # --- sets ---

    @wrap_store_errors
    async def add_to_set(self, key: str, members: Iterable[str]) -> int:
        wanted = set(members)
        if not wanted:
            return 0
        async with self._session_factory() as session:
            async with session.begin():
                existing = set(
                    (await session.scalars(
                        select(KVSetMemberORM.member).where(
                            and_(KVSetMemberORM.key == key, KVSetMemberORM.member.in_(sorted(wanted)))
                        )
                    )).all()
                )
                missing = wanted - existing
                if missing:
                    await session.execute(
                        self._insert(KVSetMemberORM)
                        .values([{"key": key, "member": member} for member in sorted(missing)])
                        .on_conflict_do_nothing(index_elements=[KVSetMemberORM.key, KVSetMemberORM.member])
                    )
        return len(missing)

    @wrap_store_errors
    async def remove_from_set(self, key: str, members: Iterable[str]) -> int:
        unwanted = set(members)
        if not unwanted:
            return 0
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    delete(KVSetMemberORM).where(
                        and_(KVSetMemberORM.key == key, KVSetMemberORM.member.in_(sorted(unwanted)))
                    )
                )
        return result.rowcount or 0

    @wrap_store_errors
    async def members(self, key: str) -> Set[str]:
        async with self._session_factory() as session:
            rows = await session.scalars(select(KVSetMemberORM.member).where(KVSetMemberORM.key == key))
            return set(rows.all())

    # --- sorted sets ---

    @wrap_store_errors
    async def add_scored(self, key: str, member: str, score: float) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                stmt = self._insert(KVSortedMemberORM).values(key=key, member=member, score=float(score))
                await session.execute(
                    stmt.on_conflict_do_update(
                        index_elements=[KVSortedMemberORM.key, KVSortedMemberORM.member],
                        set_={"score": stmt.excluded.score},
                    )
                )

    @wrap_store_errors
    async def remove_scored(self, key: str, member: str) -> bool:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    delete(KVSortedMemberORM).where(
                        and_(KVSortedMemberORM.key == key, KVSortedMemberORM.member == member)
                    )
                )
        return (result.rowcount or 0) > 0

    @wrap_store_errors
    async def score(self, key: str, member: str) -> Optional[float]:
        async with self._session_factory() as session:
            return await session.scalar(
                select(KVSortedMemberORM.score).where(
                    and_(KVSortedMemberORM.key == key, KVSortedMemberORM.member == member)
                )
            )

    @wrap_store_errors
    async def range_descending(self, key: str, start: int, stop: int) -> List[str]:
        query = (
            select(KVSortedMemberORM.member)
            .where(KVSortedMemberORM.key == key)
            .order_by(KVSortedMemberORM.score.desc(), KVSortedMemberORM.member.desc())
        )
        async with self._session_factory() as session:
            if start >= 0 and stop >= 0:
                if stop < start:
                    return []
                rows = await session.scalars(query.offset(start).limit(stop - start + 1))
                return list(rows.all())
            rows = await session.scalars(query)
            return slice_inclusive(list(rows.all()), start, stop)

    @wrap_store_errors
    async def rank_descending(self, key: str, member: str) -> Optional[int]:
        async with self._session_factory() as session:
            own_score = await session.scalar(
                select(KVSortedMemberORM.score).where(
                    and_(KVSortedMemberORM.key == key, KVSortedMemberORM.member == member)
                )
            )
            if own_score is None:
                return None
            ahead = await session.scalar(
                select(func.count()).select_from(KVSortedMemberORM).where(
                    and_(
                        KVSortedMemberORM.key == key,
                        or_(
                            KVSortedMemberORM.score > own_score,
                            and_(KVSortedMemberORM.score == own_score, KVSortedMemberORM.member > member),
                        ),
                    )
                )
            )
            return int(ahead or 0)

    @wrap_store_errors
    async def increment_score(self, key: str, member: str, delta: float) -> float:
        condition = and_(KVSortedMemberORM.key == key, KVSortedMemberORM.member == member)
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(
                    self._insert(KVSortedMemberORM)
                    .values(key=key, member=member, score=float(delta))
                    .on_conflict_do_update(
                        index_elements=[KVSortedMemberORM.key, KVSortedMemberORM.member],
                        set_={"score": KVSortedMemberORM.score + delta},
                    )
                )
                return float(await session.scalar(select(KVSortedMemberORM.score).where(condition)))

    # --- counters ---

    @wrap_store_errors
    async def increment(self, key: str, delta: int) -> int:
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(
                    self._insert(KVCounterORM)
                    .values(key=key, value=delta)
                    .on_conflict_do_update(
                        index_elements=[KVCounterORM.key],
                        set_={"value": KVCounterORM.value + delta},
                    )
                )
                return int(await session.scalar(select(KVCounterORM.value).where(KVCounterORM.key == key)))

    @wrap_store_errors
    async def get_counter(self, key: str) -> int:
        async with self._session_factory() as session:
            value = await session.scalar(select(KVCounterORM.value).where(KVCounterORM.key == key))
            return int(value or 0)

    # --- lifecycle ---

    async def ping(self) -> bool:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning(f"Store ping failed: {e}")
            return False

    async def close(self) -> None:
        await self._engine.dispose()
        logger.info("SQLAlchemyKeyValueStore engine disposed")
