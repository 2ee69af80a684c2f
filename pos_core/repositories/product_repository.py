import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pos_core.cache import CacheLayer, LookupAttribute
from pos_core.errors import CacheError, classify_db_error
from pos_core.models.inventory import Inventory
from pos_core.models.product import Product
from pos_core.repositories.base import CachedRepository
from pos_core.schemas.inventory import InventoryRead
from pos_core.schemas.product import ProductCreate, ProductRead, ProductUpdate

logger = logging.getLogger(__name__)


class ProductRepository(CachedRepository[ProductRead]):
    """Products and the lifecycle of their inventory rows.

    A product and its inventory row are inserted and soft-deleted in the same
    transaction, so a product never exists without stock tracking.
    """

    model = Product
    read_schema = ProductRead
    entity = "product"
    sort_fields = ("id", "name", "sku", "price", "created_at", "updated_at")
    search_fields = ("name", "sku")

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cache: CacheLayer[ProductRead],
        inventory_cache: CacheLayer[InventoryRead],
        lock_timeout_ms: int = 0,
    ):
        super().__init__(session_factory, cache, lock_timeout_ms)
        self.inventory_cache = inventory_cache

    def natural_keys(self, row: ProductRead) -> List[str]:
        return [
            self.cache.key(LookupAttribute.ID, row.id),
            self.cache.key(LookupAttribute.SKU, row.sku),
        ]

    def _inventory_keys(self, product_id: int, inventory: Optional[InventoryRead] = None) -> List[str]:
        keys = [self.inventory_cache.key(LookupAttribute.PRODUCT_ID, product_id)]
        if inventory is not None:
            keys.append(self.inventory_cache.key(LookupAttribute.ID, inventory.id))
        return keys

    async def _invalidate_inventory(self, op: str, keys: List[str]) -> None:
        try:
            await self.inventory_cache.delete(*keys)
        except CacheError as e:
            logger.warning("%s inventory cache invalidation failed for %s: %s", op, keys, e)

    async def get_by_id(self, product_id: int) -> ProductRead:
        return await self._read_through(
            "repo.product.get_by_id",
            self.cache.key(LookupAttribute.ID, product_id),
            Product.id == product_id,
        )

    async def get_by_sku(self, sku: str) -> ProductRead:
        return await self._read_through(
            "repo.product.get_by_sku",
            self.cache.key(LookupAttribute.SKU, sku),
            Product.sku == sku,
        )

    async def exists_in_category(self, category_id: int) -> bool:
        op = "repo.product.exists_in_category"
        query = select(Product.id).where(Product.category_id == category_id, self._live()).limit(1)
        async with self._session_factory() as session:
            try:
                result = await session.execute(query)
            except SQLAlchemyError as e:
                raise classify_db_error(op, e) from e
            return result.first() is not None

    async def create(self, data: ProductCreate) -> ProductRead:
        """Insert the product and its zero-quantity inventory row together."""
        op = "repo.product.create"
        async with self._session_factory() as session:
            try:
                async with session.begin():
                    product = Product(**data.model_dump(), is_active=True)
                    session.add(product)
                    await session.flush()
                    inventory = Inventory(product_id=product.id, quantity=0)
                    session.add(inventory)
                await session.refresh(product)
                await session.refresh(inventory)
            except SQLAlchemyError as e:
                raise classify_db_error(op, e) from e
            row = ProductRead.model_validate(product)
            inventory_row = InventoryRead.model_validate(inventory)

        await self._invalidate(op, self.natural_keys(row))
        await self._invalidate_inventory(op, self._inventory_keys(row.id, inventory_row))
        logger.info("%s ok id=%s sku=%s inventory_id=%s", op, row.id, row.sku, inventory_row.id)
        return row

    async def update(self, product_id: int, data: ProductUpdate) -> ProductRead:
        return await self._update(
            "repo.product.update", product_id, data.model_dump(exclude_unset=True)
        )

    async def delete(self, product_id: int) -> None:
        """Soft-delete the product and its inventory row.

        Both rows are locked before they change, so a delete issued while a
        stock adjustment holds the inventory lock waits for it to finish.
        """
        op = "repo.product.delete"
        async with self._session_factory() as session:
            try:
                async with session.begin():
                    await self._set_lock_timeout(session)
                    product = (
                        await session.execute(
                            select(Product)
                            .where(Product.id == product_id, self._live())
                            .with_for_update()
                        )
                    ).scalar_one()
                    inventory = (
                        await session.execute(
                            select(Inventory)
                            .where(Inventory.product_id == product_id, self._live(Inventory))
                            .with_for_update()
                        )
                    ).scalar_one_or_none()

                    row = ProductRead.model_validate(product)
                    inventory_row = None
                    if inventory is not None:
                        inventory_row = InventoryRead.model_validate(inventory)
                        inventory.deleted_at = func.now()
                    else:
                        logger.warning("%s product %s had no inventory row", op, product_id)
                    product.deleted_at = func.now()
            except SQLAlchemyError as e:
                raise classify_db_error(op, e) from e

        await self._invalidate(op, self.natural_keys(row))
        await self._invalidate_inventory(op, self._inventory_keys(product_id, inventory_row))
        logger.info("%s ok id=%s", op, product_id)
