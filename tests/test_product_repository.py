# tests/test_product_repository.py
import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import select

from pos_core.cache import LookupAttribute
from pos_core.errors import ConflictError, NotFoundError
from pos_core.models.inventory import Inventory
from pos_core.schemas.common import ListQuery
from pos_core.schemas.product import ProductCreate, ProductUpdate

from tests.conftest import make_repos


def new_product(category_id, sku="AF-200", **overrides):
    values = dict(
        name="Air Filter",
        description="",
        price=Decimal("12.50"),
        sku=sku,
        category_id=category_id,
    )
    values.update(overrides)
    return ProductCreate(**values)


async def test_create_also_creates_inventory(product, inventory_repo):
    inventory = await inventory_repo.get_by_product_id(product.id)

    assert inventory.product_id == product.id
    assert inventory.quantity == 0


async def test_round_trip(product_repo, product):
    by_id = await product_repo.get_by_id(product.id)
    by_sku = await product_repo.get_by_sku("BP-100")

    assert by_id == by_sku
    assert by_id.price == Decimal("19.99")
    assert by_id.is_active is True


async def test_cached_read_matches_store(product_repo, product, session_factory):
    uncached = make_repos(session_factory, None)["product"]

    first = await product_repo.get_by_id(product.id)
    cached = await product_repo.get_by_id(product.id)

    assert first == cached == await uncached.get_by_id(product.id)


async def test_duplicate_sku_is_conflict(product_repo, product, category):
    with pytest.raises(ConflictError):
        await product_repo.create(new_product(category.id, sku="BP-100"))


async def test_failed_create_leaves_no_inventory(product_repo, product, category, session_factory):
    with pytest.raises(ConflictError):
        await product_repo.create(new_product(category.id, sku="BP-100"))

    async with session_factory() as session:
        rows = (await session.execute(select(Inventory))).scalars().all()
    assert [row.product_id for row in rows] == [product.id]


async def test_update_invalidates_old_and_new_sku(product_repo, product, redis_client):
    await product_repo.get_by_sku("BP-100")

    updated = await product_repo.update(product.id, ProductUpdate(sku="BP-101", price=Decimal("21.00")))

    assert updated.sku == "BP-101"
    assert not await redis_client.exists(product_repo.cache.key(LookupAttribute.SKU, "BP-100"))
    with pytest.raises(NotFoundError):
        await product_repo.get_by_sku("BP-100")
    assert (await product_repo.get_by_id(product.id)).price == Decimal("21.00")


async def test_read_after_update_is_fresh(product_repo, product):
    await product_repo.get_by_id(product.id)
    await product_repo.update(product.id, ProductUpdate(name="Brake Pad Pro"))

    assert (await product_repo.get_by_id(product.id)).name == "Brake Pad Pro"


async def test_delete_removes_product_and_inventory(product_repo, inventory_repo, product):
    await inventory_repo.get_by_product_id(product.id)

    await product_repo.delete(product.id)

    with pytest.raises(NotFoundError):
        await product_repo.get_by_id(product.id)
    with pytest.raises(NotFoundError):
        await inventory_repo.get_by_product_id(product.id)


async def test_sku_reusable_after_delete(product_repo, product, category):
    await product_repo.delete(product.id)

    again = await product_repo.create(new_product(category.id, sku="BP-100"))
    assert again.id != product.id


async def test_exists_in_category(product_repo, product, category):
    assert await product_repo.exists_in_category(category.id)
    await product_repo.delete(product.id)
    assert not await product_repo.exists_in_category(category.id)


async def test_list_searches_name_and_sku(product_repo, product, category):
    await product_repo.create(new_product(category.id))

    rows, total = await product_repo.list(ListQuery(search="af-", sort="sku"))
    assert total == 1
    assert rows[0].sku == "AF-200"

    rows, total = await product_repo.list(ListQuery(sort="price desc"))
    assert total == 2
    assert [row.sku for row in rows] == ["BP-100", "AF-200"]


class TestFailingCache:
    """Every cache call fails; the store alone must still serve requests."""

    @pytest.fixture
    def repos(self, session_factory, failing_redis):
        return make_repos(session_factory, failing_redis)

    async def test_crud_degrades_to_store(self, repos, category):
        product_repo = repos["product"]
        created = await product_repo.create(new_product(category.id))

        assert (await product_repo.get_by_sku("AF-200")).id == created.id
        updated = await product_repo.update(created.id, ProductUpdate(name="Cabin Filter"))
        assert updated.name == "Cabin Filter"
        assert (await repos["inventory"].get_by_product_id(created.id)).quantity == 0

        await product_repo.delete(created.id)
        with pytest.raises(NotFoundError):
            await product_repo.get_by_id(created.id)

    async def test_reads_log_warning(self, repos, category, caplog):
        created = await repos["product"].create(new_product(category.id))
        await repos["product"].get_by_id(created.id)
        assert "cache read failed" in caplog.text


async def test_delete_waits_for_held_lock(product_repo, product, session_factory):
    async with session_factory() as session:
        async with session.begin():
            # The first statement of a transaction takes the write lock
            await session.execute(select(Inventory).where(Inventory.product_id == product.id))

            delete = asyncio.create_task(product_repo.delete(product.id))
            await asyncio.sleep(0.3)
            assert not delete.done()

    await asyncio.wait_for(delete, timeout=10)
    with pytest.raises(NotFoundError):
        await product_repo.get_by_id(product.id)


async def test_write_during_populate_is_not_left_in_cache(product_repo, product, monkeypatch):
    real_set = product_repo.cache.set
    renamed = []

    async def set_after_concurrent_rename(key, value):
        if not renamed:
            renamed.append(await product_repo.update(product.id, ProductUpdate(name="Brake Pad Pro")))
        await real_set(key, value)

    monkeypatch.setattr(product_repo.cache, "set", set_after_concurrent_rename)

    stale = await product_repo.get_by_id(product.id)

    assert stale.name == "Brake Pad"
    assert (await product_repo.get_by_id(product.id)).name == "Brake Pad Pro"
    assert (await product_repo.get_by_sku("BP-100")).name == "Brake Pad Pro"
