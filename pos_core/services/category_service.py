import logging
from typing import Optional

from pos_core.errors import ConflictError, InvalidInputError, NotFoundError
from pos_core.repositories.category_repository import CategoryRepository
from pos_core.repositories.product_repository import ProductRepository
from pos_core.schemas.category import CategoryCreate, CategoryList, CategoryRead, CategoryUpdate
from pos_core.schemas.common import ListQuery
from pos_core.utils import normalize_pagination, sanitize_string

logger = logging.getLogger(__name__)

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50


class CategoryService:
    """Service for category operations."""

    def __init__(self, category_repo: CategoryRepository, product_repo: ProductRepository):
        self.category_repo = category_repo
        self.product_repo = product_repo

    @staticmethod
    def _clean_name(raw: Optional[str]) -> str:
        name = sanitize_string(raw or "")
        if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
            raise InvalidInputError(
                f"category name must be {NAME_MIN_LENGTH}-{NAME_MAX_LENGTH} characters"
            )
        return name

    async def _ensure_name_available(self, name: str, category_id: Optional[int] = None) -> None:
        try:
            existing = await self.category_repo.get_by_name(name)
        except NotFoundError:
            return
        if existing.id != category_id:
            raise ConflictError(f"category '{name}' already exists")

    async def create_category(self, data: CategoryCreate) -> CategoryRead:
        """Create a new category."""
        name = self._clean_name(data.name)
        await self._ensure_name_available(name)
        category = await self.category_repo.create(CategoryCreate(name=name))
        logger.info("Category created id=%s name=%s", category.id, category.name)
        return category

    async def get_category(self, category_id: int) -> CategoryRead:
        return await self.category_repo.get_by_id(category_id)

    async def get_category_by_name(self, name: str) -> CategoryRead:
        return await self.category_repo.get_by_name(sanitize_string(name))

    async def update_category(self, category_id: int, data: CategoryUpdate) -> CategoryRead:
        """Rename a category. Renaming to its current name is a no-op."""
        current = await self.category_repo.get_by_id(category_id)
        if data.name is None:
            return current
        name = self._clean_name(data.name)
        if name == current.name:
            return current
        await self._ensure_name_available(name, category_id)
        category = await self.category_repo.update(category_id, CategoryUpdate(name=name))
        logger.info("Category updated id=%s name=%s", category.id, category.name)
        return category

    async def delete_category(self, category_id: int) -> None:
        """Delete a category that no live product refers to."""
        await self.category_repo.get_by_id(category_id)
        if await self.product_repo.exists_in_category(category_id):
            raise ConflictError(f"category {category_id} still has products")
        await self.category_repo.delete(category_id)
        logger.info("Category deleted id=%s", category_id)

    async def list_categories(self, query: ListQuery) -> CategoryList:
        limit, offset = normalize_pagination(query.limit, query.offset)
        rows, total = await self.category_repo.list(
            query.model_copy(update={"limit": limit, "offset": offset})
        )
        return CategoryList(items=rows, total=total)
