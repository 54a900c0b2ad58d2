"""
Utility modules for the Bookmark Aggregator.
"""

from .error_handler import AggregatorError
from .locking import ReadWriteLock
from .logging_setup import setup_logging

__all__ = ["AggregatorError", "ReadWriteLock", "setup_logging"]
