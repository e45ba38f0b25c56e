"""
Configuration management for the content store.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass, field, asdict
import logging

from ..error_handling.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_NAVIGATION_PATH = "navsphere/content/navigation.json"
DEFAULT_SITE_PATH = "navsphere/content/site.json"


@dataclass
class RepositoryConfig:
    """Remote repository and contents API configuration."""
    owner: Optional[str] = None
    repo: Optional[str] = None
    branch: str = "main"
    api_base_url: str = "https://api.github.com"
    timeout: float = 30
    user_agent: Optional[str] = None


@dataclass
class ContentConfig:
    """Repository-relative locations of the content blobs."""
    navigation_path: str = DEFAULT_NAVIGATION_PATH
    site_path: str = DEFAULT_SITE_PATH


@dataclass
class CommitConfig:
    """Conditioned-write retry configuration."""
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: Optional[float] = None


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_file_size: int = 10  # MB
    backup_count: int = 5
    structured: bool = False


@dataclass
class AppConfig:
    """Complete application configuration."""
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    content: ContentConfig = field(default_factory=ContentConfig)
    commit: CommitConfig = field(default_factory=CommitConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def require_coordinates(self) -> None:
        """
        Ensure the repository owner and name are configured.

        Raises:
            ConfigurationError: If either is missing; components that need the
                store cannot start without them.
        """
        missing = [key for key in ("owner", "repo") if not getattr(self.repository, key)]
        if missing:
            raise ConfigurationError(
                f"Repository coordinates not configured: missing {', '.join(missing)} "
                f"(set GITHUB_OWNER and GITHUB_REPO)",
                config_section="repository",
                config_key=missing[0]
            )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ConfigManager:
    """
    Manages application configuration from multiple sources.

    Configuration is loaded in the following order (later sources override earlier):
    1. Default configuration
    2. Configuration file
    3. Environment variables

    The resulting AppConfig is built once at startup and handed to the store
    components explicitly; nothing below the CLI reads the environment.
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None, environ: Optional[Dict[str, str]] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Path to configuration file
            environ: Environment mapping to read overrides from (os.environ if None)
        """
        self.config_file = Path(config_file) if config_file else None
        self.environ = os.environ if environ is None else environ
        self._config: Optional[AppConfig] = None
        self._env_var_mapping = self._create_env_var_mapping()

    def _create_env_var_mapping(self) -> Dict[str, str]:
        """Create mapping of environment variables to config paths."""
        return {
            # Repository configuration
            "GITHUB_OWNER": "repository.owner",
            "GITHUB_REPO": "repository.repo",
            "GITHUB_BRANCH": "repository.branch",
            "GITHUB_API_URL": "repository.api_base_url",
            "GITHUB_TIMEOUT": "repository.timeout",
            "NAVSTORE_USER_AGENT": "repository.user_agent",

            # Content locations
            "NAVSTORE_NAVIGATION_PATH": "content.navigation_path",
            "NAVSTORE_SITE_PATH": "content.site_path",

            # Commit configuration
            "COMMIT_MAX_ATTEMPTS": "commit.max_attempts",
            "COMMIT_BASE_DELAY": "commit.base_delay",
            "COMMIT_MAX_DELAY": "commit.max_delay",

            # Logging configuration
            "LOG_LEVEL": "logging.level",
            "LOG_FILE": "logging.file",
            "LOG_FORMAT": "logging.format",
            "LOG_MAX_SIZE": "logging.max_file_size",
            "LOG_BACKUP_COUNT": "logging.backup_count",
        }

    # Settings that must stay strings even when the value looks numeric or boolean
    _string_keys = {
        "repository.owner", "repository.repo", "repository.branch",
        "repository.api_base_url", "repository.user_agent",
        "content.navigation_path", "content.site_path",
        "logging.level", "logging.file", "logging.format",
    }

    def load_config(self) -> AppConfig:
        """
        Load configuration from all sources.

        Returns:
            Complete application configuration
        """
        if self._config is not None:
            return self._config

        # Start with default configuration
        config_dict = self._get_default_config()

        # Load from configuration file
        if self.config_file and self.config_file.exists():
            file_config = self._load_config_file(self.config_file)
            config_dict = self._merge_configs(config_dict, file_config)

        # Override with environment variables
        env_config = self._load_env_config()
        config_dict = self._merge_configs(config_dict, env_config)

        # Substitute environment variables in string values
        config_dict = self._substitute_env_vars(config_dict)

        self._validate_config(config_dict)

        self._config = self._dict_to_config(config_dict)

        return self._config

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values."""
        return AppConfig().to_dict()

    def _load_config_file(self, config_path: Path) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to configuration file

        Returns:
            Configuration dictionary

        Raises:
            ConfigurationError: If the file is not valid YAML or not a mapping
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load config file {config_path}", cause=e)

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")

        logger.info(f"Loaded configuration from {config_path}")
        return config

    def _load_env_config(self) -> Dict[str, Any]:
        """
        Load configuration from environment variables.

        Returns:
            Configuration dictionary from environment variables
        """
        env_config: Dict[str, Any] = {}

        for env_var, config_path in self._env_var_mapping.items():
            value = self.environ.get(env_var)
            if value is not None:
                if config_path not in self._string_keys:
                    value = self._convert_env_value(value)
                self._set_nested_value(env_config, config_path, value)

        return env_config

    def _convert_env_value(self, value: str) -> Any:
        """
        Convert environment variable string to appropriate type.

        Args:
            value: String value from environment variable

        Returns:
            Converted value
        """
        if value.lower() in ('true', 'yes', 'on'):
            return True
        elif value.lower() in ('false', 'no', 'off'):
            return False

        try:
            if '.' in value:
                return float(value)
            else:
                return int(value)
        except ValueError:
            pass

        return value

    def _set_nested_value(self, config: Dict[str, Any], path: str, value: Any) -> None:
        """
        Set a nested configuration value using dot notation.

        Args:
            config: Configuration dictionary
            path: Dot-separated path (e.g., 'repository.owner')
            value: Value to set
        """
        keys = path.split('.')
        current = config

        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    def _substitute_env_vars(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Substitute ``${VAR}`` references in configuration values.

        Args:
            config: Configuration dictionary

        Returns:
            Configuration with environment variables substituted
        """
        def substitute_recursive(obj):
            if isinstance(obj, dict):
                return {k: substitute_recursive(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [substitute_recursive(item) for item in obj]
            elif isinstance(obj, str) and obj.startswith('${') and obj.endswith('}'):
                env_var = obj[2:-1]
                return self.environ.get(env_var, obj)
            else:
                return obj

        return substitute_recursive(config)

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge two configuration dictionaries.

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """
        Validate configuration values.

        Missing repository coordinates are not rejected here: only components
        that talk to the store require them (see AppConfig.require_coordinates).

        Args:
            config: Configuration dictionary

        Raises:
            ConfigurationError: If configuration is invalid
        """
        known_sections = set(self._get_default_config())
        for section, values in config.items():
            if section not in known_sections:
                raise ConfigurationError(f"Unknown configuration section: {section}", config_section=section)
            if not isinstance(values, dict):
                raise ConfigurationError(f"Configuration section {section} must be a mapping", config_section=section)
            known_keys = set(self._get_default_config()[section])
            for key in values:
                if key not in known_keys:
                    raise ConfigurationError(
                        f"Unknown configuration key: {section}.{key}",
                        config_section=section,
                        config_key=key
                    )

        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        log_level = str(config.get("logging", {}).get("level", "INFO")).upper()
        if log_level not in valid_levels:
            raise ConfigurationError(
                f"Invalid log level: {log_level}. Valid levels: {sorted(valid_levels)}",
                config_section="logging",
                config_key="level"
            )

        commit = config.get("commit", {})
        max_attempts = commit.get("max_attempts", 3)
        if not isinstance(max_attempts, int) or isinstance(max_attempts, bool) or max_attempts < 1:
            raise ConfigurationError(
                f"commit.max_attempts must be a positive integer, got {max_attempts!r}",
                config_section="commit",
                config_key="max_attempts"
            )

        base_delay = commit.get("base_delay", 1.0)
        if not isinstance(base_delay, (int, float)) or isinstance(base_delay, bool) or base_delay < 0:
            raise ConfigurationError(
                f"commit.base_delay must be a non-negative number, got {base_delay!r}",
                config_section="commit",
                config_key="base_delay"
            )

        max_delay = commit.get("max_delay")
        if max_delay is not None and (
            not isinstance(max_delay, (int, float)) or isinstance(max_delay, bool) or max_delay < 0
        ):
            raise ConfigurationError(
                f"commit.max_delay must be a non-negative number, got {max_delay!r}",
                config_section="commit",
                config_key="max_delay"
            )

        timeout = config.get("repository", {}).get("timeout", 30)
        if not isinstance(timeout, (int, float)) or isinstance(timeout, bool) or timeout <= 0:
            raise ConfigurationError(
                f"repository.timeout must be a positive number, got {timeout!r}",
                config_section="repository",
                config_key="timeout"
            )

        if not config.get("repository", {}).get("owner") or not config.get("repository", {}).get("repo"):
            logger.warning("Repository owner/name not configured - store operations will fail")

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> AppConfig:
        """
        Convert configuration dictionary to AppConfig object.

        Args:
            config_dict: Configuration dictionary

        Returns:
            AppConfig object
        """
        logging_section = dict(config_dict.get("logging", {}))
        logging_section["level"] = str(logging_section.get("level", "INFO")).upper()

        return AppConfig(
            repository=RepositoryConfig(**config_dict.get("repository", {})),
            content=ContentConfig(**config_dict.get("content", {})),
            commit=CommitConfig(**config_dict.get("commit", {})),
            logging=LoggingConfig(**logging_section)
        )

    def get_config(self) -> AppConfig:
        """
        Get the current configuration.

        Returns:
            Application configuration
        """
        if self._config is None:
            return self.load_config()
        return self._config

    def reload_config(self) -> AppConfig:
        """
        Reload configuration from all sources.

        Returns:
            Reloaded application configuration
        """
        self._config = None
        return self.load_config()

    def save_config(self, config_path: Optional[Path] = None) -> None:
        """
        Save current configuration to file.

        Args:
            config_path: Path to save configuration file
        """
        if config_path is None:
            config_path = self.config_file or Path("navstore.yaml")

        config_dict = self.get_config().to_dict()

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(config_dict, f, default_flow_style=False, indent=2)

        logger.info(f"Configuration saved to {config_path}")


# Global configuration manager instance, used by the CLI entry point only
_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_file: Optional[Union[str, Path]] = None) -> ConfigManager:
    """
    Get the global configuration manager instance.

    Args:
        config_file: Path to configuration file (only used on first call)

    Returns:
        ConfigManager instance
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(config_file)
    return _config_manager


def reset_config_manager() -> None:
    """Drop the global configuration manager so the next call re-reads all sources."""
    global _config_manager
    _config_manager = None


def get_config() -> AppConfig:
    """
    Get the current application configuration.

    Returns:
        Application configuration
    """
    return get_config_manager().get_config()
