"""Core module - configuration-backed infrastructure shared by all modules."""

from paayo.core.database import get_db
from paayo.core.exceptions import AppException
from paayo.core.logging import get_logger

__all__ = ["get_db", "AppException", "get_logger"]
