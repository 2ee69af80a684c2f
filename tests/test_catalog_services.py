# tests/test_catalog_services.py
from decimal import Decimal

import pytest

from pos_core.errors import ConflictError, InvalidInputError, InvalidSKUError, NotFoundError
from pos_core.schemas.category import CategoryCreate, CategoryUpdate
from pos_core.schemas.common import ListQuery
from pos_core.schemas.product import ProductCreate, ProductUpdate


def product_input(category_id, **overrides):
    values = dict(
        name="  Spark   Plug ",
        description=" Iridium  tip ",
        price=Decimal("7.25"),
        sku=" sp-300 ",
        category_id=category_id,
    )
    values.update(overrides)
    return ProductCreate(**values)


class TestCategoryService:

    async def test_create_normalizes_name(self, category_service):
        category = await category_service.create_category(CategoryCreate(name="  Engine   Parts "))
        assert category.name == "Engine Parts"

    async def test_create_duplicate_is_conflict(self, category_service):
        await category_service.create_category(CategoryCreate(name="Wheel"))
        with pytest.raises(ConflictError):
            await category_service.create_category(CategoryCreate(name="Wheel"))

    @pytest.mark.parametrize("name", ["", "   ", "x", "y" * 51])
    async def test_create_rejects_bad_names(self, category_service, name):
        with pytest.raises(InvalidInputError):
            await category_service.create_category(CategoryCreate(name=name))

    async def test_rename_to_own_name_is_allowed(self, category_service, category):
        renamed = await category_service.update_category(category.id, CategoryUpdate(name="Brakes"))
        assert renamed.id == category.id

    async def test_rename_to_taken_name_is_conflict(self, category_service, category):
        await category_service.create_category(CategoryCreate(name="Tyres"))
        with pytest.raises(ConflictError):
            await category_service.update_category(category.id, CategoryUpdate(name="Tyres"))

    async def test_rename(self, category_service, category):
        renamed = await category_service.update_category(category.id, CategoryUpdate(name="Braking"))

        assert renamed.name == "Braking"
        assert (await category_service.get_category_by_name(" Braking ")).id == category.id

    async def test_delete_with_products_is_conflict(self, category_service, category, product):
        with pytest.raises(ConflictError):
            await category_service.delete_category(category.id)

    async def test_delete(self, category_service, category):
        await category_service.delete_category(category.id)
        with pytest.raises(NotFoundError):
            await category_service.get_category(category.id)

    async def test_list_normalizes_paging(self, category_service, category):
        page = await category_service.list_categories(ListQuery(limit=0, offset=-4))
        assert page.total == 1
        assert page.items[0].name == "Brakes"


class TestProductService:

    async def test_create_returns_detail(self, product_service, category):
        detail = await product_service.create_product(product_input(category.id))

        assert detail.sku == "SP-300"
        assert detail.name == "Spark Plug"
        assert detail.description == "Iridium tip"
        assert detail.category.name == "Brakes"
        assert detail.inventory.quantity == 0

    async def test_sku_lookup_is_normalized(self, product_service, category):
        created = await product_service.create_product(product_input(category.id))

        assert (await product_service.get_product_by_sku("sp-300")).id == created.id

    async def test_duplicate_sku_is_conflict(self, product_service, category):
        await product_service.create_product(product_input(category.id))
        with pytest.raises(ConflictError):
            await product_service.create_product(product_input(category.id, sku="SP-300"))

    async def test_invalid_sku(self, product_service, category):
        with pytest.raises(InvalidSKUError):
            await product_service.create_product(product_input(category.id, sku="sp 300"))

    async def test_negative_price(self, product_service, category):
        with pytest.raises(InvalidInputError):
            await product_service.create_product(product_input(category.id, price=Decimal("-1")))

    async def test_unknown_category(self, product_service):
        with pytest.raises(NotFoundError):
            await product_service.create_product(product_input(999))

    async def test_detail_assembles_three_parts(self, product_service, inventory_service, product, category):
        await inventory_service.adjust_quantity(product.id, 9)

        detail = await product_service.get_product_detail(product.id)

        assert detail.id == product.id
        assert detail.category.id == category.id
        assert detail.inventory.quantity == 9

    async def test_detail_of_missing_product(self, product_service):
        with pytest.raises(NotFoundError):
            await product_service.get_product_detail(404)

    async def test_update_moves_category_and_sku(self, product_service, category_service, product):
        tools = await category_service.create_category(CategoryCreate(name="Tools"))

        detail = await product_service.update_product(
            product.id, ProductUpdate(sku="bp-200", category_id=tools.id, name=None)
        )

        assert detail.sku == "BP-200"
        assert detail.name == "Brake Pad"
        assert detail.category.name == "Tools"

    async def test_update_to_taken_sku_is_conflict(self, product_service, product, category):
        await product_service.create_product(product_input(category.id))
        with pytest.raises(ConflictError):
            await product_service.update_product(product.id, ProductUpdate(sku="SP-300"))

    async def test_update_without_changes(self, product_service, product):
        detail = await product_service.update_product(product.id, ProductUpdate())
        assert detail.sku == product.sku

    async def test_delete(self, product_service, product):
        await product_service.delete_product(product.id)
        with pytest.raises(NotFoundError):
            await product_service.get_product_detail(product.id)

    async def test_list_returns_summaries(self, product_service, product):
        page = await product_service.list_products(ListQuery(search="brake", limit=500))

        assert page.total == 1
        assert page.items[0].sku == "BP-100"
        assert page.items[0].category_id == product.category_id
