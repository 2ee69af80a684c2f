from pos_core.models.category import Category
from pos_core.models.product import Product
from pos_core.models.inventory import Inventory
from pos_core.models.user import User

__all__ = [
    "Category",
    "Product",
    "Inventory",
    "User",
]
