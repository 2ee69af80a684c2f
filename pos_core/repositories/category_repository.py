from typing import List

from pos_core.cache import LookupAttribute
from pos_core.models.category import Category
from pos_core.repositories.base import CachedRepository
from pos_core.schemas.category import CategoryCreate, CategoryRead, CategoryUpdate


class CategoryRepository(CachedRepository[CategoryRead]):
    model = Category
    read_schema = CategoryRead
    entity = "category"
    sort_fields = ("id", "name", "created_at", "updated_at")
    search_fields = ("name",)

    def natural_keys(self, row: CategoryRead) -> List[str]:
        return [
            self.cache.key(LookupAttribute.ID, row.id),
            self.cache.key(LookupAttribute.NAME, row.name),
        ]

    async def get_by_id(self, category_id: int) -> CategoryRead:
        return await self._read_through(
            "repo.category.get_by_id",
            self.cache.key(LookupAttribute.ID, category_id),
            Category.id == category_id,
        )

    async def get_by_name(self, name: str) -> CategoryRead:
        return await self._read_through(
            "repo.category.get_by_name",
            self.cache.key(LookupAttribute.NAME, name),
            Category.name == name,
        )

    async def create(self, data: CategoryCreate) -> CategoryRead:
        return await self._insert("repo.category.create", data.model_dump())

    async def update(self, category_id: int, data: CategoryUpdate) -> CategoryRead:
        return await self._update(
            "repo.category.update", category_id, data.model_dump(exclude_unset=True)
        )

    async def delete(self, category_id: int) -> None:
        await self._soft_delete("repo.category.delete", category_id)
