from pydantic import BaseModel, Field
from typing import Optional


class ListQuery(BaseModel):
    search: Optional[str] = Field(None, description="Case-insensitive substring filter")
    limit: int = Field(0, description="Page size; 0 means no limit at the repository level")
    offset: int = Field(0, description="Rows to skip")
    sort: Optional[str] = Field(None, description='Sort spec such as "name", "-created_at" or "price desc"')
