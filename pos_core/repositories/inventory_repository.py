import logging
import time
from typing import List

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError

from pos_core.cache import LookupAttribute
from pos_core.errors import InsufficientStockError, InvalidInputError, classify_db_error
from pos_core.models.inventory import Inventory
from pos_core.repositories.base import CachedRepository
from pos_core.schemas.inventory import InventoryRead

logger = logging.getLogger(__name__)


class InventoryRepository(CachedRepository[InventoryRead]):
    model = Inventory
    read_schema = InventoryRead
    entity = "inventory"
    sort_fields = ("id", "product_id", "quantity", "created_at", "updated_at")

    def natural_keys(self, row: InventoryRead) -> List[str]:
        return [
            self.cache.key(LookupAttribute.ID, row.id),
            self.cache.key(LookupAttribute.PRODUCT_ID, row.product_id),
        ]

    async def get_by_id(self, inventory_id: int) -> InventoryRead:
        return await self._read_through(
            "repo.inventory.get_by_id",
            self.cache.key(LookupAttribute.ID, inventory_id),
            Inventory.id == inventory_id,
        )

    async def get_by_product_id(self, product_id: int) -> InventoryRead:
        return await self._read_through(
            "repo.inventory.get_by_product_id",
            self.cache.key(LookupAttribute.PRODUCT_ID, product_id),
            Inventory.product_id == product_id,
        )

    async def create(self, product_id: int) -> InventoryRead:
        return await self._insert(
            "repo.inventory.create", {"product_id": product_id, "quantity": 0}
        )

    async def delete_by_product_id(self, product_id: int) -> None:
        op = "repo.inventory.delete_by_product_id"
        async with self._session_factory() as session:
            try:
                async with session.begin():
                    await self._set_lock_timeout(session)
                    result = await session.execute(
                        select(Inventory)
                        .where(Inventory.product_id == product_id, self._live())
                        .with_for_update()
                    )
                    inventory = result.scalar_one()
                    row = InventoryRead.model_validate(inventory)
                    inventory.deleted_at = func.now()
            except SQLAlchemyError as e:
                raise classify_db_error(op, e) from e

        await self._invalidate(op, self.natural_keys(row))
        logger.info("%s ok product_id=%s", op, product_id)

    async def adjust_quantity(self, product_id: int, delta: int) -> InventoryRead:
        """Add ``delta`` to the product's stock under a row lock.

        The non-negative check is repeated against the locked row, so a stale
        pre-check by the caller can never drive the quantity below zero. Any
        failure, cancellation included, rolls the whole transaction back.
        """
        op = "repo.inventory.adjust_quantity"
        start = time.perf_counter()
        async with self._session_factory() as session:
            try:
                async with session.begin():
                    await self._set_lock_timeout(session)
                    result = await session.execute(
                        select(Inventory)
                        .where(Inventory.product_id == product_id, self._live())
                        .with_for_update()
                    )
                    locked = InventoryRead.model_validate(result.scalar_one())
                    if locked.quantity + delta < 0:
                        raise InsufficientStockError(
                            f"{op}: product {product_id} has {locked.quantity}, cannot apply {delta}"
                        )
                    result = await session.execute(
                        update(Inventory)
                        .where(Inventory.id == locked.id)
                        .values(quantity=Inventory.quantity + delta)
                        .returning(Inventory.quantity, Inventory.updated_at)
                        .execution_options(synchronize_session=False)
                    )
                    quantity, updated_at = result.one()
            except SQLAlchemyError as e:
                error = classify_db_error(op, e)
                if isinstance(error, InvalidInputError):
                    # CHECK (quantity >= 0) tripped
                    error = InsufficientStockError(f"{op}: quantity would become negative")
                raise error from e

        row = locked.model_copy(update={"quantity": quantity, "updated_at": updated_at})
        await self._invalidate(op, self.natural_keys(row))
        logger.info(
            "%s ok product_id=%s delta=%s quantity=%s (%.2fms)",
            op, product_id, delta, quantity, (time.perf_counter() - start) * 1000,
        )
        return row
