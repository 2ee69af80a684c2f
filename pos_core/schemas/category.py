from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class CategoryCreate(BaseModel):
    name: str = Field(..., description="Category name (unique)")


class CategoryUpdate(BaseModel):
    name: Optional[str] = None


class CategoryRead(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CategoryList(BaseModel):
    items: list[CategoryRead]
    total: int
