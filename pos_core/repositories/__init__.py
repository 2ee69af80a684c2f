from pos_core.repositories.category_repository import CategoryRepository
from pos_core.repositories.product_repository import ProductRepository
from pos_core.repositories.inventory_repository import InventoryRepository
from pos_core.repositories.user_repository import UserRepository

__all__ = [
    "CategoryRepository",
    "ProductRepository",
    "InventoryRepository",
    "UserRepository",
]
