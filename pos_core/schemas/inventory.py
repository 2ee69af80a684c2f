from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class InventoryRead(BaseModel):
    id: int
    product_id: int
    quantity: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class InventoryList(BaseModel):
    items: list[InventoryRead]
    total: int
