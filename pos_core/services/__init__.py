from pos_core.services.auth_service import AuthService
from pos_core.services.category_service import CategoryService
from pos_core.services.inventory_service import InventoryService
from pos_core.services.ports import PasswordHasher, TokenClaims, TokenIssuer
from pos_core.services.product_service import ProductService
from pos_core.services.user_service import UserService

__all__ = [
    "AuthService",
    "CategoryService",
    "InventoryService",
    "PasswordHasher",
    "ProductService",
    "TokenClaims",
    "TokenIssuer",
    "UserService",
]
