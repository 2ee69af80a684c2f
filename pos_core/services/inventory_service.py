import logging

from pos_core.errors import InsufficientStockError, InvalidInputError
from pos_core.repositories.inventory_repository import InventoryRepository
from pos_core.schemas.common import ListQuery
from pos_core.schemas.inventory import InventoryList, InventoryRead
from pos_core.utils import normalize_pagination

logger = logging.getLogger(__name__)


class InventoryService:
    """Service for stock levels."""

    def __init__(self, inventory_repo: InventoryRepository):
        self.inventory_repo = inventory_repo

    async def get_inventory(self, inventory_id: int) -> InventoryRead:
        return await self.inventory_repo.get_by_id(inventory_id)

    async def get_inventory_by_product(self, product_id: int) -> InventoryRead:
        return await self.inventory_repo.get_by_product_id(product_id)

    async def list_inventory(self, query: ListQuery) -> InventoryList:
        limit, offset = normalize_pagination(query.limit, query.offset)
        rows, total = await self.inventory_repo.list(
            query.model_copy(update={"limit": limit, "offset": offset, "search": None})
        )
        return InventoryList(items=rows, total=total)

    async def adjust_quantity(self, product_id: int, delta: int) -> InventoryRead:
        """Restock (positive delta) or consume (negative delta) a product's stock.

        The quantity check here runs against a possibly cached read and only
        rejects early; the repository repeats it under the row lock.
        """
        if delta == 0:
            raise InvalidInputError("quantity delta must not be zero")

        current = await self.inventory_repo.get_by_product_id(product_id)
        if delta < 0 and -delta > current.quantity:
            logger.info(
                "Rejected stock adjustment product_id=%s delta=%s available=%s",
                product_id, delta, current.quantity,
            )
            raise InsufficientStockError(
                f"product {product_id} has {current.quantity} in stock, cannot remove {-delta}"
            )

        inventory = await self.inventory_repo.adjust_quantity(product_id, delta)
        logger.info(
            "Inventory quantity updated product_id=%s delta=%s quantity=%s",
            product_id, delta, inventory.quantity,
        )
        return inventory
