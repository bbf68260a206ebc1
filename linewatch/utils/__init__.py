"""Utility modules."""

from linewatch.utils.cache import TTLCache
from linewatch.utils.logging import setup_logging

__all__ = [
    "TTLCache",
    "setup_logging",
]
