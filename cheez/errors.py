"""
Error taxonomy shared by the handlers and the HTTP layer.
"""

import logging
import sqlite3
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class ShopError(Exception):
    """Base error; rendered as ``{"message": ...}`` with ``status_code``."""

    status_code = 500

    def __init__(self, message: str = "Something went wrong"):
        super().__init__(message)
        self.message = message


class ValidationError(ShopError):
    status_code = 400


class AuthenticationError(ShopError):
    status_code = 401


class AuthorizationError(ShopError):
    status_code = 403


class NotFoundError(ShopError):
    status_code = 404


class StoreError(ShopError):
    status_code = 500


@contextmanager
def store_guard(message: str):
    """Turn any sqlite error raised inside the block into a StoreError."""
    try:
        yield
    except sqlite3.Error as exc:
        logger.exception("Store failure: %s", message)
        raise StoreError(message) from exc
