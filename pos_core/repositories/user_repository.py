from typing import List

from pos_core.cache import LookupAttribute
from pos_core.models.user import User
from pos_core.repositories.base import CachedRepository
from pos_core.schemas.user import UserCreate, UserRecord, UserUpdate


class UserRepository(CachedRepository[UserRecord]):
    model = User
    read_schema = UserRecord
    entity = "user"
    sort_fields = ("id", "username", "email", "role", "created_at", "updated_at")
    search_fields = ("username", "email")

    def natural_keys(self, row: UserRecord) -> List[str]:
        return [
            self.cache.key(LookupAttribute.ID, row.id),
            self.cache.key(LookupAttribute.USERNAME, row.username),
            self.cache.key(LookupAttribute.EMAIL, row.email),
        ]

    async def get_by_id(self, user_id: int) -> UserRecord:
        return await self._read_through(
            "repo.user.get_by_id",
            self.cache.key(LookupAttribute.ID, user_id),
            User.id == user_id,
        )

    async def get_by_username(self, username: str) -> UserRecord:
        return await self._read_through(
            "repo.user.get_by_username",
            self.cache.key(LookupAttribute.USERNAME, username),
            User.username == username,
        )

    async def get_by_email(self, email: str) -> UserRecord:
        return await self._read_through(
            "repo.user.get_by_email",
            self.cache.key(LookupAttribute.EMAIL, email),
            User.email == email,
        )

    async def create(self, data: UserCreate) -> UserRecord:
        return await self._insert("repo.user.create", data.model_dump())

    async def update(self, user_id: int, data: UserUpdate) -> UserRecord:
        return await self._update("repo.user.update", user_id, data.model_dump(exclude_unset=True))

    async def delete(self, user_id: int) -> None:
        await self._soft_delete("repo.user.delete", user_id)
