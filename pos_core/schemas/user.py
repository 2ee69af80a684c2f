from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class UserCreate(BaseModel):
    username: str
    email: str
    password_hash: str
    role: str = "cashier"
    is_active: bool = True


class UserUpdate(BaseModel):
    email: Optional[str] = None
    password_hash: Optional[str] = None
    role: Optional[str] = None
    is_active: Optional[bool] = None


class UserRecord(BaseModel):
    """Full user row, including the password hash. Never returned to clients."""
    id: int
    username: str
    email: str
    password_hash: str = Field(repr=False)
    role: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UserProfile(BaseModel):
    id: int
    username: str
    email: str
    role: str
    is_active: bool

    model_config = {"from_attributes": True}


class UserList(BaseModel):
    items: list[UserProfile]
    total: int


class RegisterInput(BaseModel):
    username: str
    email: str
    password: str
    role: Optional[str] = None


class LoginInput(BaseModel):
    username: str
    password: str


class ProfileUpdateInput(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
