"""
Configuration for the Bookmark Aggregator.
"""

from .configuration import Configuration
from .pydantic_config import AggregatorConfig, ConfigurationManager, format_config_error

__all__ = ["AggregatorConfig", "Configuration", "ConfigurationManager", "format_config_error"]
