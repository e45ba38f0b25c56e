"""
Configuration management for the content store.
"""

from .config_manager import (
    ConfigManager, AppConfig, RepositoryConfig, ContentConfig, CommitConfig,
    LoggingConfig, get_config_manager, reset_config_manager, get_config,
    DEFAULT_NAVIGATION_PATH, DEFAULT_SITE_PATH
)

__all__ = [
    "ConfigManager",
    "AppConfig",
    "RepositoryConfig",
    "ContentConfig",
    "CommitConfig",
    "LoggingConfig",
    "get_config_manager",
    "reset_config_manager",
    "get_config",
    "DEFAULT_NAVIGATION_PATH",
    "DEFAULT_SITE_PATH"
]
