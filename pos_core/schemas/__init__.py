from pos_core.schemas.common import ListQuery
from pos_core.schemas.category import CategoryCreate, CategoryUpdate, CategoryRead, CategoryList
from pos_core.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductRead,
    ProductDetail,
    ProductSummary,
    ProductList,
)
from pos_core.schemas.inventory import InventoryRead, InventoryList
from pos_core.schemas.user import (
    UserCreate,
    UserUpdate,
    UserRecord,
    UserProfile,
    UserList,
    RegisterInput,
    LoginInput,
    ProfileUpdateInput,
)

__all__ = [
    "ListQuery",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryRead",
    "CategoryList",
    "ProductCreate",
    "ProductUpdate",
    "ProductRead",
    "ProductDetail",
    "ProductSummary",
    "ProductList",
    "InventoryRead",
    "InventoryList",
    "UserCreate",
    "UserUpdate",
    "UserRecord",
    "UserProfile",
    "UserList",
    "RegisterInput",
    "LoginInput",
    "ProfileUpdateInput",
]
