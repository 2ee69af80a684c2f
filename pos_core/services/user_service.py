import logging

from pos_core.errors import ConflictError, InvalidInputError, NotFoundError
from pos_core.repositories.user_repository import UserRepository
from pos_core.schemas.common import ListQuery
from pos_core.schemas.user import ProfileUpdateInput, UserList, UserProfile, UserUpdate
from pos_core.services.ports import PasswordHasher
from pos_core.utils import is_valid_email, normalize_pagination, verify_password_strength

logger = logging.getLogger(__name__)


class UserService:
    """Service for account profiles."""

    def __init__(self, user_repo: UserRepository, hasher: PasswordHasher):
        self.user_repo = user_repo
        self.hasher = hasher

    async def get_profile(self, user_id: int) -> UserProfile:
        user = await self.user_repo.get_by_id(user_id)
        return UserProfile.model_validate(user, from_attributes=True)

    async def update_user(self, user_id: int, data: ProfileUpdateInput) -> UserProfile:
        """Change a user's email and/or password."""
        current = await self.user_repo.get_by_id(user_id)
        changes = UserUpdate()

        if data.email is not None:
            email = data.email.strip().lower()
            if not is_valid_email(email):
                raise InvalidInputError("email address is invalid")
            if email != current.email:
                try:
                    owner = await self.user_repo.get_by_email(email)
                except NotFoundError:
                    owner = None
                if owner is not None and owner.id != user_id:
                    raise ConflictError(f"email '{email}' is already registered")
                changes.email = email

        if data.password is not None:
            verify_password_strength(data.password)
            changes.password_hash = self.hasher.hash_password(data.password)

        if not changes.model_fields_set:
            return UserProfile.model_validate(current, from_attributes=True)

        user = await self.user_repo.update(user_id, changes)
        logger.info("User updated id=%s fields=%s", user_id, sorted(changes.model_fields_set))
        return UserProfile.model_validate(user, from_attributes=True)

    async def delete_user(self, user_id: int) -> None:
        await self.user_repo.delete(user_id)
        logger.info("User deleted id=%s", user_id)

    async def list_users(self, query: ListQuery) -> UserList:
        limit, offset = normalize_pagination(query.limit, query.offset)
        rows, total = await self.user_repo.list(
            query.model_copy(update={"limit": limit, "offset": offset})
        )
        return UserList(
            items=[UserProfile.model_validate(row, from_attributes=True) for row in rows],
            total=total,
        )
