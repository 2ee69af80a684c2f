import logging
from typing import Tuple

from pos_core.errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    InvalidInputError,
    InvalidTokenError,
    NotFoundError,
    UnauthorizedError,
)
from pos_core.repositories.user_repository import UserRepository
from pos_core.schemas.user import LoginInput, RegisterInput, UserCreate, UserProfile
from pos_core.services.ports import PasswordHasher, TokenIssuer
from pos_core.utils import is_valid_email, verify_password_strength

logger = logging.getLogger(__name__)


class AuthService:
    """Registration, login and logout."""

    def __init__(
        self,
        user_repo: UserRepository,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        default_role: str = "cashier",
    ):
        self.user_repo = user_repo
        self.hasher = hasher
        self.tokens = tokens
        self.default_role = default_role or "cashier"

    async def _is_taken(self, lookup, value: str) -> bool:
        try:
            await lookup(value)
        except NotFoundError:
            return False
        return True

    async def register(self, data: RegisterInput) -> UserProfile:
        username = data.username.strip()
        email = data.email.strip().lower()
        if not username or not email or not data.password.strip():
            raise InvalidInputError("username, email and password are required")
        role = (data.role or "").strip() or self.default_role

        if not is_valid_email(email):
            raise InvalidInputError("email address is invalid")
        verify_password_strength(data.password)

        if await self._is_taken(self.user_repo.get_by_username, username):
            logger.warning("Registration rejected, username taken: %s", username)
            raise ConflictError(f"username '{username}' is already registered")
        if await self._is_taken(self.user_repo.get_by_email, email):
            logger.warning("Registration rejected, email taken: %s", email)
            raise ConflictError(f"email '{email}' is already registered")

        try:
            password_hash = self.hasher.hash_password(data.password)
        except Exception as e:
            logger.error("Password hashing failed for %s: %s", username, e)
            raise InternalError("could not hash password") from e

        user = await self.user_repo.create(
            UserCreate(
                username=username,
                email=email,
                password_hash=password_hash,
                role=role,
                is_active=True,
            )
        )
        logger.info("User registered id=%s username=%s role=%s", user.id, username, role)
        return UserProfile.model_validate(user, from_attributes=True)

    async def login(self, data: LoginInput) -> Tuple[UserProfile, str]:
        """Check credentials and issue a token.

        Unknown usernames surface as ``NotFoundError``, inactive accounts as
        ``ForbiddenError`` and wrong passwords as ``UnauthorizedError``.
        """
        username = data.username.strip()
        if not username or not data.password.strip():
            raise InvalidInputError("username and password are required")

        user = await self.user_repo.get_by_username(username)
        if not user.is_active:
            logger.warning("Login rejected, user %s is inactive", user.id)
            raise ForbiddenError(f"user '{username}' is inactive")
        if not self.hasher.verify_password(data.password, user.password_hash):
            logger.warning("Login rejected, bad password for user %s", user.id)
            raise UnauthorizedError("invalid username or password")

        try:
            token = self.tokens.generate_token(user.id, user.username, user.role)
        except Exception as e:
            logger.error("Token generation failed for user %s: %s", user.id, e)
            raise InternalError("could not issue token") from e

        logger.info("User logged in id=%s username=%s", user.id, username)
        return UserProfile.model_validate(user, from_attributes=True), token

    async def logout(self, token: str) -> None:
        """Revoke ``token`` until it would have expired anyway.

        Empty, unparseable and already-expired tokens are treated as logged
        out. A failing blacklist store is logged, not raised.
        """
        if not (token or "").strip():
            logger.warning("Logout called without a token")
            return

        try:
            ttl = self.tokens.get_expiry(token)
        except InvalidTokenError:
            return
        if ttl.total_seconds() <= 0:
            return

        claims = self.tokens.validate_token(token)

        try:
            await self.tokens.blacklist_token(claims.jwt_id, ttl)
        except Exception as e:
            logger.warning("Blacklisting token %s failed: %s", claims.jwt_id, e)

        logger.info("User logged out id=%s jwt_id=%s", claims.user_id, claims.jwt_id)
