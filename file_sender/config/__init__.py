"""Configuration management for the file sender."""

from .config_manager import ConfigManager, DEFAULT_CONFIG
from .config_validator import ConfigValidator

__all__ = ["ConfigManager", "ConfigValidator", "DEFAULT_CONFIG"]
