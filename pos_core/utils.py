import re
from typing import Tuple

from pos_core.errors import InvalidInputError, InvalidSKUError

SKU_PATTERN = re.compile(r"^[A-Z0-9-]+$")
SKU_MIN_LENGTH = 3
SKU_MAX_LENGTH = 50

EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def validate_and_normalize_sku(raw_sku: str) -> str:
    """Trim and uppercase a SKU, rejecting anything outside ``[A-Z0-9-]{3,50}``."""
    sku = (raw_sku or "").strip().upper()
    if not SKU_MIN_LENGTH <= len(sku) <= SKU_MAX_LENGTH:
        raise InvalidSKUError()
    if not SKU_PATTERN.match(sku):
        raise InvalidSKUError()
    return sku


def sanitize_string(value: str) -> str:
    """Trim and collapse runs of whitespace to single spaces."""
    return " ".join((value or "").split())


def is_valid_email(email: str) -> bool:
    if not 3 <= len(email) <= 254:
        return False
    return EMAIL_PATTERN.match(email) is not None


def verify_password_strength(password: str) -> None:
    if len(password) < 8:
        raise InvalidInputError("password must be at least 8 characters long")
    if not re.search(r"[0-9]", password):
        raise InvalidInputError("password must contain at least one number")
    if not re.search(r"[A-Z]", password):
        raise InvalidInputError("password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise InvalidInputError("password must contain at least one lowercase letter")
    if not re.search(r"[^a-zA-Z0-9]", password):
        raise InvalidInputError("password must contain at least one special character")


def normalize_pagination(limit: int, offset: int) -> Tuple[int, int]:
    if limit < 1:
        limit = DEFAULT_LIMIT
    if limit > MAX_LIMIT:
        limit = MAX_LIMIT
    if offset < 0:
        offset = 0
    return limit, offset
