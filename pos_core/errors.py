"""Error kinds raised by repositories and services.

Store failures are classified once, at the repository boundary, with
``classify_db_error``; everything above passes them through unchanged.
"""
from typing import Optional

from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError


class AppError(Exception):
    default_message = "application error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(AppError):
    default_message = "resource not found"


class ConflictError(AppError):
    default_message = "resource already exists"


class InvalidInputError(AppError):
    default_message = "invalid input"


class InvalidSKUError(InvalidInputError):
    default_message = "sku is invalid or contains restricted characters"


class InsufficientStockError(AppError):
    default_message = "insufficient stock"


class InternalError(AppError):
    default_message = "internal server error"


class UnauthorizedError(AppError):
    default_message = "unauthorized"


class ForbiddenError(AppError):
    default_message = "forbidden"


class InvalidTokenError(AppError):
    default_message = "invalid token"


class CacheError(Exception):
    """Cache transport or decode failure. Never leaves a repository."""


UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
CHECK_VIOLATION = "23514"


def _sqlstate(exc: SQLAlchemyError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def classify_db_error(op: str, exc: Exception) -> AppError:
    """Map a store exception onto the error taxonomy."""
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, NoResultFound):
        return NotFoundError(f"{op}: {NotFoundError.default_message}")
    if isinstance(exc, IntegrityError):
        code = _sqlstate(exc)
        detail = str(exc.orig)
        if code == UNIQUE_VIOLATION or "UNIQUE constraint failed" in detail:
            return ConflictError(f"{op}: {ConflictError.default_message}")
        if code in (FOREIGN_KEY_VIOLATION, CHECK_VIOLATION) or (
            "FOREIGN KEY constraint failed" in detail or "CHECK constraint failed" in detail
        ):
            return InvalidInputError(f"{op}: {InvalidInputError.default_message}")
    return InternalError(f"{op}: {InternalError.default_message}")
