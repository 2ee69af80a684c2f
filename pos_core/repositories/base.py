import logging
import time
from typing import Any, Dict, Generic, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import func, or_, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pos_core.cache import CacheLayer
from pos_core.errors import CacheError, InvalidInputError, classify_db_error
from pos_core.schemas.common import ListQuery

logger = logging.getLogger(__name__)

ReadT = TypeVar("ReadT", bound=BaseModel)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class CachedRepository(Generic[ReadT]):
    """Store access for one entity with cache-aside reads and invalidate-on-write.

    Subclasses set ``model``, ``read_schema``, ``entity``, ``sort_fields`` and
    ``search_fields`` and implement ``natural_keys``.
    """

    model: Type[Any]
    read_schema: Type[ReadT]
    entity: str
    sort_fields: Sequence[str] = ("id", "created_at", "updated_at")
    search_fields: Sequence[str] = ()

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: CacheLayer[ReadT],
        lock_timeout_ms: int = 0,
    ):
        self._session_factory = session_factory
        self.cache = cache
        self.lock_timeout_ms = lock_timeout_ms

    def natural_keys(self, row: ReadT) -> List[str]:
        """Every cache key that can serve ``row``."""
        raise NotImplementedError

    def _live(self, model: Optional[Type[Any]] = None):
        return (model or self.model).deleted_at.is_(None)

    async def _read_through(self, op: str, key: str, *criteria) -> ReadT:
        start = time.perf_counter()
        try:
            cached = await self.cache.get(key)
        except CacheError as e:
            logger.warning("%s cache read failed, falling back to store: %s", op, e)
            cached = None
        if cached is not None:
            logger.debug("%s cache hit key=%s (%.2fms)", op, key, _elapsed_ms(start))
            return cached

        generation = self.cache.generation
        async with self._session_factory() as session:
            try:
                result = await session.execute(
                    select(self.model).where(self._live(), *criteria)
                )
                row = self.read_schema.model_validate(result.scalar_one())
            except SQLAlchemyError as e:
                logger.debug("%s store read failed: %s", op, e)
                raise classify_db_error(op, e) from e

        await self._populate(op, row)
        if self.cache.generation != generation:
            # A write to this entity type was invalidated while we read or
            # populated, so the cached row may predate it. Writers in other
            # processes are only bounded by the TTL.
            logger.debug("%s write overlapped read, dropping populated keys", op)
            await self._invalidate(op, self.natural_keys(row))
        logger.debug("%s loaded from store (%.2fms)", op, _elapsed_ms(start))
        return row

    async def _populate(self, op: str, row: ReadT) -> None:
        for key in self.natural_keys(row):
            try:
                await self.cache.set(key, row)
            except CacheError as e:
                logger.warning("%s cache populate failed: %s", op, e)
                return

    async def _invalidate(self, op: str, keys: Iterable[str]) -> None:
        keys = list(dict.fromkeys(keys))
        try:
            await self.cache.delete(*keys)
        except CacheError as e:
            logger.warning("%s cache invalidation failed for %s: %s", op, keys, e)

    def _order_by(self, sort: Optional[str]) -> list:
        if not sort or not sort.strip():
            return [self.model.created_at.desc(), self.model.id.desc()]

        expr = sort.strip()
        descending = expr.startswith("-")
        if descending:
            expr = expr[1:]
        parts = expr.split()
        if len(parts) == 2 and not descending and parts[1].lower() in ("asc", "desc"):
            descending = parts[1].lower() == "desc"
        elif len(parts) != 1:
            raise InvalidInputError(f"malformed sort: {sort!r}")

        field = parts[0].lower()
        if field not in self.sort_fields:
            raise InvalidInputError(f"unsupported sort field for {self.entity}: {field}")
        column = getattr(self.model, field)
        if descending:
            return [column.desc(), self.model.id.desc()]
        return [column.asc(), self.model.id.asc()]

    def _search_conditions(self, search: Optional[str]) -> list:
        term = (search or "").strip()
        if not term or not self.search_fields:
            return []
        return [or_(*[
            getattr(self.model, field).icontains(term, autoescape=True)
            for field in self.search_fields
        ])]

    async def list(self, query: ListQuery) -> Tuple[List[ReadT], int]:
        """Filtered page plus the total count for the same filter.

        Always reads the store. Rows and total come from two statements and
        may disagree under concurrent writes.
        """
        op = f"repo.{self.entity}.list"
        start = time.perf_counter()
        if query.limit < 0 or query.offset < 0:
            raise InvalidInputError("limit and offset must not be negative")
        order_by = self._order_by(query.sort)
        conditions = [self._live(), *self._search_conditions(query.search)]

        count_query = select(func.count()).select_from(self.model).where(*conditions)
        page_query = select(self.model).where(*conditions).order_by(*order_by)
        if query.offset > 0:
            page_query = page_query.offset(query.offset)
        if query.limit > 0:
            page_query = page_query.limit(query.limit)

        async with self._session_factory() as session:
            try:
                total = (await session.execute(count_query)).scalar_one()
                result = await session.execute(page_query)
                rows = [self.read_schema.model_validate(obj) for obj in result.scalars().all()]
            except SQLAlchemyError as e:
                raise classify_db_error(op, e) from e

        logger.debug("%s returned %d of %d (%.2fms)", op, len(rows), total, _elapsed_ms(start))
        return rows, total

    async def _insert(self, op: str, values: Dict[str, Any]) -> ReadT:
        async with self._session_factory() as session:
            obj = self.model(**values)
            session.add(obj)
            try:
                await session.commit()
                await session.refresh(obj)
            except SQLAlchemyError as e:
                await session.rollback()
                raise classify_db_error(op, e) from e
            row = self.read_schema.model_validate(obj)

        await self._invalidate(op, self.natural_keys(row))
        logger.info("%s ok id=%s", op, row.id)
        return row

    async def _update(self, op: str, entity_id: int, values: Dict[str, Any]) -> ReadT:
        async with self._session_factory() as session:
            try:
                result = await session.execute(
                    select(self.model).where(self.model.id == entity_id, self._live())
                )
                obj = result.scalar_one()
                before = self.read_schema.model_validate(obj)
                for key, value in values.items():
                    setattr(obj, key, value)
                await session.commit()
                await session.refresh(obj)
            except SQLAlchemyError as e:
                await session.rollback()
                raise classify_db_error(op, e) from e
            after = self.read_schema.model_validate(obj)

        # Old alternate keys must go too, or a renamed row stays reachable by its old name
        await self._invalidate(op, [*self.natural_keys(before), *self.natural_keys(after)])
        logger.info("%s ok id=%s", op, entity_id)
        return after

    async def _soft_delete(self, op: str, entity_id: int) -> ReadT:
        async with self._session_factory() as session:
            try:
                result = await session.execute(
                    select(self.model).where(self.model.id == entity_id, self._live())
                )
                obj = result.scalar_one()
                row = self.read_schema.model_validate(obj)
                obj.deleted_at = func.now()
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise classify_db_error(op, e) from e

        await self._invalidate(op, self.natural_keys(row))
        logger.info("%s ok id=%s", op, entity_id)
        return row

    async def _set_lock_timeout(self, session: AsyncSession) -> None:
        if self.lock_timeout_ms <= 0:
            return
        connection = await session.connection()
        if connection.dialect.name == "postgresql":
            await session.execute(text(f"SET LOCAL lock_timeout = '{int(self.lock_timeout_ms)}ms'"))
