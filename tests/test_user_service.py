# tests/test_user_service.py
from unittest.mock import MagicMock

import pytest

from pos_core.errors import ConflictError, InvalidInputError, NotFoundError
from pos_core.schemas.common import ListQuery
from pos_core.schemas.user import ProfileUpdateInput, UserCreate
from pos_core.services.ports import PasswordHasher
from pos_core.services.user_service import UserService


@pytest.fixture
def hasher():
    hasher = MagicMock(spec=PasswordHasher)
    hasher.hash_password.side_effect = lambda password: f"hashed:{password}"
    return hasher


@pytest.fixture
def user_service(user_repo, hasher):
    return UserService(user_repo, hasher)


@pytest.fixture
async def alice(user_repo):
    return await user_repo.create(
        UserCreate(username="alice", email="alice@example.com", password_hash="hashed:x")
    )


async def test_get_profile_hides_hash(user_service, alice):
    profile = await user_service.get_profile(alice.id)

    assert profile.username == "alice"
    assert "password_hash" not in profile.model_dump()


async def test_update_email(user_service, user_repo, alice):
    await user_repo.get_by_email("alice@example.com")

    profile = await user_service.update_user(alice.id, ProfileUpdateInput(email=" Alice@New.example "))

    assert profile.email == "alice@new.example"
    assert (await user_repo.get_by_email("alice@new.example")).id == alice.id
    with pytest.raises(NotFoundError):
        await user_repo.get_by_email("alice@example.com")


async def test_update_email_taken(user_service, user_repo, alice):
    await user_repo.create(UserCreate(username="bob", email="bob@example.com", password_hash="h"))
    with pytest.raises(ConflictError):
        await user_service.update_user(alice.id, ProfileUpdateInput(email="bob@example.com"))


async def test_update_password_is_hashed(user_service, user_repo, alice):
    await user_service.update_user(alice.id, ProfileUpdateInput(password="N3w!secret"))
    assert (await user_repo.get_by_id(alice.id)).password_hash == "hashed:N3w!secret"


async def test_weak_password_rejected(user_service, alice):
    with pytest.raises(InvalidInputError):
        await user_service.update_user(alice.id, ProfileUpdateInput(password="short"))


async def test_empty_update_is_a_no_op(user_service, alice, hasher):
    profile = await user_service.update_user(alice.id, ProfileUpdateInput())
    assert profile.email == "alice@example.com"
    hasher.hash_password.assert_not_called()


async def test_delete_user(user_service, user_repo, alice):
    await user_service.delete_user(alice.id)

    with pytest.raises(NotFoundError):
        await user_service.get_profile(alice.id)
    with pytest.raises(NotFoundError):
        await user_repo.get_by_username("alice")


async def test_list_users(user_service, alice):
    page = await user_service.list_users(ListQuery(search="ALICE"))
    assert page.total == 1
    assert page.items[0].username == "alice"
