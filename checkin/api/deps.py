"""Shared dependencies and error helpers for the API routers."""

from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache

from fastapi import HTTPException

from checkin.errors import CheckinError
from checkin.utils.config import AppConfig, load_config
from checkin.utils.logger import get_logger

logger = get_logger(__name__)


@lru_cache
def get_config() -> AppConfig:
    """Application configuration, loaded once per process."""
    return load_config()


@contextmanager
def service_errors(message: str) -> Iterator[None]:
    """Turn unexpected failures into a 500 carrying ``message``.

    Domain errors and HTTP exceptions pass through untouched.
    """
    try:
        yield
    except (CheckinError, HTTPException):
        raise
    except Exception as exc:
        logger.exception("%s: %s", message, exc)
        raise HTTPException(status_code=500, detail=message) from exc
