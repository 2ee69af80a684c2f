# tests/test_errors.py
import sqlite3

import pytest
from sqlalchemy.exc import IntegrityError, NoResultFound, OperationalError

from pos_core.errors import (
    AppError,
    ConflictError,
    InternalError,
    InvalidInputError,
    InvalidSKUError,
    NotFoundError,
    classify_db_error,
)


class FakePgError(Exception):
    def __init__(self, message, pgcode):
        super().__init__(message)
        self.pgcode = pgcode


def integrity_error(orig):
    return IntegrityError("INSERT ...", {}, orig)


def test_app_error_passes_through():
    error = ConflictError("already there")
    assert classify_db_error("op", error) is error


def test_no_result_is_not_found():
    assert isinstance(classify_db_error("repo.product.get_by_id", NoResultFound()), NotFoundError)


@pytest.mark.parametrize(
    "orig, expected",
    [
        (FakePgError("duplicate key", "23505"), ConflictError),
        (FakePgError("violates foreign key", "23503"), InvalidInputError),
        (FakePgError("violates check", "23514"), InvalidInputError),
        (sqlite3.IntegrityError("UNIQUE constraint failed: products.sku"), ConflictError),
        (sqlite3.IntegrityError("FOREIGN KEY constraint failed"), InvalidInputError),
        (sqlite3.IntegrityError("CHECK constraint failed: ck_inventories_quantity_non_negative"), InvalidInputError),
    ],
)
def test_integrity_errors_are_classified(orig, expected):
    error = classify_db_error("repo.op", integrity_error(orig))
    assert type(error) is expected
    assert error.message.startswith("repo.op: ")


def test_unknown_store_error_is_internal():
    exc = OperationalError("SELECT 1", {}, sqlite3.OperationalError("disk I/O error"))
    assert isinstance(classify_db_error("repo.op", exc), InternalError)


def test_default_messages():
    assert str(NotFoundError()) == "resource not found"
    assert InvalidSKUError().message == "sku is invalid or contains restricted characters"
    assert isinstance(InvalidSKUError(), InvalidInputError)
    assert issubclass(InternalError, AppError)
