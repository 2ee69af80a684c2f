from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal

from pos_core.schemas.category import CategoryRead
from pos_core.schemas.inventory import InventoryRead


class ProductCreate(BaseModel):
    name: str = Field(..., description="Product name")
    description: str = Field("", description="Product description")
    price: Decimal = Field(..., description="Unit price, must not be negative")
    sku: str = Field(..., description="Product SKU (unique, normalized to uppercase)")
    category_id: int = Field(..., description="Owning category")


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    sku: Optional[str] = None
    category_id: Optional[int] = None
    is_active: Optional[bool] = None


class ProductRead(BaseModel):
    id: int
    name: str
    description: str
    price: Decimal
    sku: str
    category_id: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProductDetail(BaseModel):
    """Product assembled with its category and stock level."""
    id: int
    name: str
    description: str
    sku: str
    price: Decimal
    is_active: bool
    category: CategoryRead
    inventory: InventoryRead


class ProductSummary(BaseModel):
    id: int
    name: str
    sku: str
    price: Decimal
    category_id: int
    is_active: bool

    model_config = {"from_attributes": True}


class ProductList(BaseModel):
    items: list[ProductSummary]
    total: int
