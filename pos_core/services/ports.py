"""Collaborators the auth and user services depend on but do not implement."""
from datetime import timedelta
from typing import Protocol

from pydantic import BaseModel


class TokenClaims(BaseModel):
    jwt_id: str
    user_id: int
    username: str
    role: str


class PasswordHasher(Protocol):
    def hash_password(self, password: str) -> str:
        ...

    def verify_password(self, password: str, password_hash: str) -> bool:
        ...


class TokenIssuer(Protocol):
    def generate_token(self, user_id: int, username: str, role: str) -> str:
        ...

    def validate_token(self, token: str) -> TokenClaims:
        """Raise ``InvalidTokenError`` for malformed, expired or revoked tokens."""
        ...

    def get_expiry(self, token: str) -> timedelta:
        """Time left before ``token`` expires. Raise ``InvalidTokenError`` if unparseable."""
        ...

    async def blacklist_token(self, jwt_id: str, ttl: timedelta) -> None:
        ...
