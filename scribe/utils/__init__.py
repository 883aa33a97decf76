"""
Utilities Module
================

Common utilities shared across the relay:
- logger: Context-aware logging with levels
- config: Centralized configuration and ConfigurationError
"""

from scribe.utils.logger import Logger, logger
from scribe.utils.config import Config, ConfigurationError, get_config

__all__ = ["Logger", "logger", "get_config", "Config", "ConfigurationError"]
