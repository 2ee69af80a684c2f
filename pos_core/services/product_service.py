import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from pos_core.errors import ConflictError, InvalidInputError, NotFoundError
from pos_core.repositories.category_repository import CategoryRepository
from pos_core.repositories.inventory_repository import InventoryRepository
from pos_core.repositories.product_repository import ProductRepository
from pos_core.schemas.category import CategoryRead
from pos_core.schemas.common import ListQuery
from pos_core.schemas.inventory import InventoryRead
from pos_core.schemas.product import (
    ProductCreate,
    ProductDetail,
    ProductList,
    ProductRead,
    ProductSummary,
    ProductUpdate,
)
from pos_core.utils import normalize_pagination, sanitize_string, validate_and_normalize_sku

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 100


def assemble_detail(product: ProductRead, category: CategoryRead, inventory: InventoryRead) -> ProductDetail:
    return ProductDetail(
        id=product.id,
        name=product.name,
        description=product.description,
        sku=product.sku,
        price=product.price,
        is_active=product.is_active,
        category=category,
        inventory=inventory,
    )


class ProductService:
    """Service for product operations."""

    def __init__(
        self,
        product_repo: ProductRepository,
        category_repo: CategoryRepository,
        inventory_repo: InventoryRepository,
    ):
        self.product_repo = product_repo
        self.category_repo = category_repo
        self.inventory_repo = inventory_repo

    @staticmethod
    def _clean_name(raw: Optional[str]) -> str:
        name = sanitize_string(raw or "")
        if not name:
            raise InvalidInputError("product name is required")
        if len(name) > NAME_MAX_LENGTH:
            raise InvalidInputError(f"product name must be at most {NAME_MAX_LENGTH} characters")
        return name

    @staticmethod
    def _check_price(price: Decimal) -> Decimal:
        if price < 0:
            raise InvalidInputError("price must not be negative")
        return price

    async def _ensure_sku_available(self, sku: str, product_id: Optional[int] = None) -> None:
        try:
            existing = await self.product_repo.get_by_sku(sku)
        except NotFoundError:
            return
        if existing.id != product_id:
            raise ConflictError(f"product with SKU '{sku}' already exists")

    async def _require_category(self, category_id: int) -> CategoryRead:
        if category_id <= 0:
            raise InvalidInputError("category_id must be positive")
        return await self.category_repo.get_by_id(category_id)

    async def create_product(self, data: ProductCreate) -> ProductDetail:
        """Create a product with an empty inventory row."""
        name = self._clean_name(data.name)
        price = self._check_price(data.price)
        sku = validate_and_normalize_sku(data.sku)
        await self._ensure_sku_available(sku)
        category = await self._require_category(data.category_id)

        product = await self.product_repo.create(
            ProductCreate(
                name=name,
                description=sanitize_string(data.description),
                price=price,
                sku=sku,
                category_id=category.id,
            )
        )
        inventory = await self.inventory_repo.get_by_product_id(product.id)
        logger.info("Product created id=%s sku=%s category_id=%s", product.id, sku, category.id)
        return assemble_detail(product, category, inventory)

    async def get_product_detail(self, product_id: int) -> ProductDetail:
        """Product joined with its category and stock level.

        Three independent reads, each possibly served from cache, so the parts
        may reflect slightly different moments.
        """
        product = await self.product_repo.get_by_id(product_id)
        category = await self.category_repo.get_by_id(product.category_id)
        inventory = await self.inventory_repo.get_by_product_id(product.id)
        return assemble_detail(product, category, inventory)

    async def get_product_by_sku(self, sku: str) -> ProductRead:
        return await self.product_repo.get_by_sku(validate_and_normalize_sku(sku))

    async def update_product(self, product_id: int, data: ProductUpdate) -> ProductDetail:
        """Apply the fields set on ``data``; unset and null fields are left alone."""
        current = await self.product_repo.get_by_id(product_id)
        changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

        values: Dict[str, Any] = {}
        if "name" in changes:
            values["name"] = self._clean_name(changes["name"])
        if "description" in changes:
            values["description"] = sanitize_string(changes["description"])
        if "price" in changes:
            values["price"] = self._check_price(changes["price"])
        if "sku" in changes:
            sku = validate_and_normalize_sku(changes["sku"])
            if sku != current.sku:
                await self._ensure_sku_available(sku, product_id)
            values["sku"] = sku
        if "category_id" in changes:
            values["category_id"] = (await self._require_category(changes["category_id"])).id
        if "is_active" in changes:
            values["is_active"] = changes["is_active"]

        product = current
        if values:
            product = await self.product_repo.update(product_id, ProductUpdate(**values))
            logger.info("Product updated id=%s fields=%s", product_id, sorted(values))

        category = await self.category_repo.get_by_id(product.category_id)
        inventory = await self.inventory_repo.get_by_product_id(product.id)
        return assemble_detail(product, category, inventory)

    async def delete_product(self, product_id: int) -> None:
        await self.product_repo.delete(product_id)
        logger.info("Product deleted id=%s", product_id)

    async def list_products(self, query: ListQuery) -> ProductList:
        limit, offset = normalize_pagination(query.limit, query.offset)
        rows, total = await self.product_repo.list(
            query.model_copy(update={"limit": limit, "offset": offset})
        )
        return ProductList(
            items=[ProductSummary.model_validate(row, from_attributes=True) for row in rows],
            total=total,
        )
