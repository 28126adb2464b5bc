"""
Configuration System

Layered configuration for berth. Features:
- Built-in defaults so the tool works with no config file at all
- Optional single-file YAML override with environment resolution
- Dot-notation access to nested settings
- Cached default builder for module-level lookups

The config file is looked up in this order:
1. ``BERTH_CONFIG`` environment variable
2. ``<BERTH_HOME>/config.yml`` (``BERTH_HOME`` defaults to ``~/.berth``)
"""

import copy
import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

# Use standard logging (not get_logger) to avoid circular imports with logger.py
# The short name 'CONFIG' enables easy filtering: quiet_logger(['CONFIG'])
logger = logging.getLogger("CONFIG")

DEFAULT_HOME = "~/.berth"
CONFIG_FILENAME = "config.yml"

DEFAULT_CONFIG: dict[str, Any] = {
    "services_dir": None,  # derived from BERTH_HOME when unset
    "container_runtime": "auto",
    "cli": {"theme": "default"},
    "catalog": {
        "api_url": "https://api.github.com/repos/arjavdongaonkar/easy-containers",
        "raw_url": "https://raw.githubusercontent.com/arjavdongaonkar/easy-containers/main",
        "repo_url": "https://github.com/arjavdongaonkar/easy-containers.git",
        "branch": "main",
        "services_root": "services",
        "hidden_prefix": ".",
        "timeout": 30.0,
        "git_timeout": 300.0,
        "mirror_path": None,  # derived from BERTH_HOME when unset
    },
    "acquisition": {
        "strategies": ["sparse", "raw", "mirror", "template"],
    },
    "logging": {
        "level": "INFO",
        "rich_tracebacks": True,
        "show_traceback_locals": False,
        "show_full_paths": False,
    },
}


def get_home_dir() -> Path:
    """Return the per-user berth directory (``BERTH_HOME`` or ``~/.berth``)."""
    return Path(os.environ.get("BERTH_HOME", DEFAULT_HOME)).expanduser()


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigBuilder:
    """
    Configuration builder merging a user YAML file over built-in defaults.

    Features:
    - YAML loading with validation and error handling
    - Environment variable resolution
    - Derived paths (services directory, local mirror) anchored at BERTH_HOME
    - Dot-notation ``get`` for nested values
    """

    def __init__(self, config_path: str | Path | None = None):
        """
        Initialize configuration builder.

        Args:
            config_path: Path to a config.yml. If None, BERTH_CONFIG and then
                BERTH_HOME/config.yml are tried; a missing default file is not an error.

        Raises:
            FileNotFoundError: If an explicitly requested config file does not exist.
        """
        explicit = config_path is not None or bool(os.environ.get("BERTH_CONFIG"))
        if config_path is None:
            config_path = os.environ.get("BERTH_CONFIG") or get_home_dir() / CONFIG_FILENAME

        self.config_path = Path(config_path).expanduser()

        if not self.config_path.exists():
            if explicit:
                raise FileNotFoundError(
                    f"Configuration file not found: {self.config_path}\n\n"
                    f"Unset BERTH_CONFIG or point it to an existing YAML file."
                )
            logger.debug(f"No config file at {self.config_path}, using defaults")
            user_config: dict[str, Any] = {}
        else:
            user_config = self._resolve_env_vars(self._load_yaml_file(self.config_path))

        self.raw_config = self._apply_derived_paths(_deep_merge(DEFAULT_CONFIG, user_config))

    def _load_yaml_file(self, file_path: Path) -> dict[str, Any]:
        """Load and validate a YAML configuration file."""
        try:
            with open(file_path) as f:
                config = yaml.safe_load(f)

            if config is None:
                logger.warning(f"Configuration file is empty: {file_path}")
                return {}

            if not isinstance(config, dict):
                error_msg = f"Configuration file must contain a dictionary/mapping: {file_path}"
                logger.error(error_msg)
                raise ValueError(error_msg)

            logger.debug(f"Loaded configuration from {file_path}")
            return config
        except yaml.YAMLError as e:
            error_msg = f"Error parsing YAML configuration: {e}"
            logger.error(error_msg)
            raise yaml.YAMLError(error_msg) from e

    def _resolve_env_vars(self, data: Any) -> Any:
        """Recursively resolve environment variables in configuration data.

        Supports both simple and bash-style default value syntax:
        - ${VAR_NAME} - simple substitution
        - ${VAR_NAME:-default_value} - with default value
        - $VAR_NAME - simple substitution without braces
        """
        if isinstance(data, dict):
            return {key: self._resolve_env_vars(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [self._resolve_env_vars(item) for item in data]
        elif isinstance(data, str):

            def replace_env_var(match):
                if match.group(1):  # ${VAR_NAME:-default} or ${VAR_NAME}
                    var_name = match.group(1)
                    default_value = match.group(2) if match.group(2) is not None else None
                else:  # $VAR_NAME
                    var_name = match.group(3)
                    default_value = None

                env_value = os.environ.get(var_name)
                if env_value is None:
                    if default_value is not None:
                        return default_value
                    logger.info(f"Environment variable '{var_name}' not found, keeping original value")
                    return match.group(0)
                return env_value

            pattern = r"\$\{([^}:]+)(?::-(.*?))?\}|\$([A-Za-z_][A-Za-z0-9_]*)"
            return re.sub(pattern, replace_env_var, data)
        else:
            return data

    def _apply_derived_paths(self, config: dict[str, Any]) -> dict[str, Any]:
        home = get_home_dir()
        if not config.get("services_dir"):
            config["services_dir"] = str(home / "services")
        catalog = config.setdefault("catalog", {})
        if not catalog.get("mirror_path"):
            catalog["mirror_path"] = str(home / "mirror")
        return config

    def get(self, path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation path."""
        keys = path.split(".")
        value = self.raw_config

        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    @property
    def services_dir(self) -> Path:
        return Path(self.raw_config["services_dir"]).expanduser()


# =============================================================================
# GLOBAL CONFIGURATION
# =============================================================================

_default_config: ConfigBuilder | None = None
_config_cache: dict[str, ConfigBuilder] = {}


def get_config_builder(config_path: str | Path | None = None) -> ConfigBuilder:
    """Return a cached ConfigBuilder for the default or an explicit path.

    Examples:
        >>> config = get_config_builder()
        >>> config = get_config_builder("/path/to/config.yml")
    """
    global _default_config

    if config_path is None:
        if _default_config is None:
            _default_config = ConfigBuilder()
        return _default_config

    resolved_path = str(Path(config_path).expanduser().resolve())
    if resolved_path not in _config_cache:
        logger.info(f"Loading configuration from explicit path: {resolved_path}")
        _config_cache[resolved_path] = ConfigBuilder(resolved_path)
    return _config_cache[resolved_path]


def reset_config_cache() -> None:
    """Drop cached builders so the next lookup re-reads the environment."""
    global _default_config
    _default_config = None
    _config_cache.clear()


def get_config_value(path: str, default: Any = None, config_path: str | None = None) -> Any:
    """
    Get a specific configuration value by dot-separated path.

    Args:
        path: Dot-separated configuration path (e.g., "catalog.timeout")
        default: Default value to return if path is not found
        config_path: Optional explicit path to configuration file

    Returns:
        The configuration value at the specified path, or default if not found

    Raises:
        ValueError: If path is empty or None

    Examples:
        >>> timeout = get_config_value("catalog.timeout", 30)
    """
    if not path:
        raise ValueError("Configuration path cannot be empty or None")

    return get_config_builder(config_path).get(path, default)
