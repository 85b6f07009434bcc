"""
================================================================================
Global Configuration for the LiveShare E2E Suite
================================================================================

This module provides centralized configuration management for the suite,
including logging setup, MODE profile selection and credential lookup.

Features:
    - YAML-based configuration loading (defaults + MODE profile)
    - Environment variable overrides (SECTION__KEY)
    - Credentials resolved from the environment only
    - Centralized Loguru logging configuration

Author: Automation Team
License: MIT
================================================================================
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger

# Global configuration storage
_config: Dict[str, Any] = {}
_logger_initialized: bool = False

# Supported MODE profiles
MODES = ("dev", "staging", "production")
DEFAULT_MODE = "dev"

# Provider name -> (email env var, password env var)
CREDENTIAL_ENV_VARS: Dict[str, tuple] = {
    "google": ("GOOGLE_EMAIL", "GOOGLE_PASSWORD"),
    "email": ("LIVESHARE_EMAIL", "LIVESHARE_PASSWORD"),
}


class ConfigurationError(Exception):
    """Raised when configuration is invalid or a required value is missing."""
    pass


@dataclass(frozen=True)
class Credentials:
    """Login credentials for one provider."""
    provider: str
    email: str
    password: str

    @property
    def is_complete(self) -> bool:
        return bool(self.email and self.password)

    def __repr__(self) -> str:
        return f"Credentials(provider={self.provider!r}, email={self.email!r}, password='***')"


def init_logger(level: str = None, format_str: str = None) -> None:
    """
    Initializes the global Loguru logger with consistent configuration.

    This function should be called once at session start (see the root
    conftest and run_tests.py) so every page object logs the same way.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to config value.
        format_str: Custom log format string. Defaults to config value.
    """
    global _logger_initialized

    if _logger_initialized:
        return

    _ensure_config_loaded()

    log_level = level or get_config("logging.level", "INFO")
    log_format = format_str or get_config(
        "logging.format",
        "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
    )

    logger.remove()
    logger.add(
        sys.stderr,
        level=str(log_level).upper(),
        format=log_format,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    log_file = get_config("logging.file", None)
    if log_file:
        log_dir = Path(log_file).parent
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=str(log_level).upper(),
            format=log_format.replace("{level: <8}", "{level}"),
            rotation=get_config("logging.rotation", "10 MB"),
            retention=get_config("logging.retention", "7 days"),
            compression="zip",
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {log_level} (MODE={get_mode()})")


def get_logger():
    """
    Returns the configured Loguru logger instance.

    Ensures the logger is initialized before returning.
    """
    if not _logger_initialized:
        init_logger()
    return logger


def get_mode() -> str:
    """
    Returns the active configuration profile.

    ``MODE`` wins; ``ENVIRONMENT`` / ``ENV`` are accepted for older CI jobs.
    Unknown values fall back to ``dev`` with a warning.
    """
    mode = (
        os.getenv("MODE")
        or os.getenv("ENVIRONMENT")
        or os.getenv("ENV")
        or DEFAULT_MODE
    ).strip().lower()
    if mode not in MODES:
        logger.warning(f"⚠️ Unknown MODE '{mode}', falling back to '{DEFAULT_MODE}'")
        return DEFAULT_MODE
    return mode


def _ensure_config_loaded() -> None:
    """
    Ensures the configuration is loaded.
    """
    global _config
    if not _config:
        _load_config()


def _find_config_dir() -> Optional[Path]:
    possible_config_dirs = [
        Path(os.getenv("LIVESHARE_CONFIG_DIR", "config")),
        Path(__file__).parent.parent.parent / "config",
    ]
    for dir_path in possible_config_dirs:
        if dir_path.is_dir():
            return dir_path
    return None


def _load_config() -> None:
    """
    Loads configuration from YAML files and environment variables.

    Configuration loading order:
        1. Default configuration file (config/config.yaml)
        2. MODE profile (config/{MODE}.yaml)
        3. Environment variables (override YAML settings)
    """
    global _config

    config_dir = _find_config_dir()
    _config = _get_defaults()

    if not config_dir:
        logger.warning("No configuration directory found. Using defaults.")
        _apply_env_overrides()
        return

    default_config_path = config_dir / "config.yaml"
    if default_config_path.exists():
        _config = _deep_merge(_config, _read_yaml(default_config_path))
        logger.debug(f"Loaded configuration from {default_config_path}")

    mode = get_mode()
    env_config_path = config_dir / f"{mode}.yaml"
    if env_config_path.exists():
        _config = _deep_merge(_config, _read_yaml(env_config_path))
        logger.debug(f"Merged MODE profile: {env_config_path}")

    _apply_env_overrides()


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Top-level YAML in {path} must be a mapping")
    return data


def _get_defaults() -> Dict[str, Any]:
    """
    Returns default configuration values.
    """
    return {
        "logging": {
            "level": "INFO",
            "format": "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
        },
        "app": {
            "base_url": "https://app.livesharenow.com",
            "api_base_url": "https://api.livesharenow.com",
        },
        "browser": {
            "type": "chromium",
            "headless": True,
            "viewport": {"width": 1280, "height": 720},
        },
        "test": {
            "timeout_ms": 60000,
            "retries": 2,
            "screenshot_on_failure": True,
            "video_on_failure": True,
        },
        "artifacts": {
            "screenshots": "screenshots",
            "videos": "videos",
            "results": "test-results",
            "auth": "auth",
            "assets": "test-assets",
        },
        "credentials": {
            "env_prefix": "",
        },
    }


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """
    Deep merges two dictionaries, with override taking precedence.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _convert_type(value: str) -> Any:
    """Convert an env var string to bool/int/float where it looks like one."""
    lowered = value.strip().lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    if lowered in ("null", "none"):
        return None
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


def _apply_env_overrides() -> None:
    """
    Applies environment variable overrides to the configuration.

    Environment variable naming convention:
        - Use double underscore to separate nested keys
        - Example: LOGGING__LEVEL=DEBUG overrides logging.level
        - HEADLESS=false is accepted as a shortcut for browser.headless
    """
    global _config

    for key, value in os.environ.items():
        if "__" in key and not key.startswith("_"):
            parts = [p.lower() for p in key.split("__")]
            _set_nested(_config, parts, _convert_type(value))

    if "HEADLESS" in os.environ:
        _set_nested(_config, ["browser", "headless"], _convert_type(os.environ["HEADLESS"]))


def _set_nested(d: Dict, keys: list, value: Any) -> None:
    """
    Sets a nested dictionary value using a list of keys.
    """
    for key in keys[:-1]:
        child = d.get(key)
        if not isinstance(child, dict):
            child = {}
            d[key] = child
        d = child
    d[keys[-1]] = value


def get_config(key: str, default: Any = None) -> Any:
    """
    Retrieves a configuration value using a dot-separated key path.

    Args:
        key: Dot-separated key path (e.g., "logging.level", "app.base_url").
        default: Default value to return if key is not found.

    Returns:
        The configuration value, or the default if not found.

    Examples:
        >>> get_config("test.retries", 2)
        3
        >>> get_config("app.base_url")
        'https://staging.livesharenow.com'
    """
    _ensure_config_loaded()

    keys = key.split(".")
    value = _config

    for k in keys:
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return default

    return value


def set_config(key: str, value: Any) -> None:
    """
    Sets a configuration value at runtime.

    Args:
        key: Dot-separated key path.
        value: Value to set.
    """
    _ensure_config_loaded()
    _set_nested(_config, key.split("."), value)


def get_base_url() -> str:
    """Base URL of the application under test, without trailing slash."""
    return str(get_config("app.base_url", "https://app.livesharenow.com")).rstrip("/")


def get_credentials(provider: str = "google", required: bool = False) -> Credentials:
    """
    Resolve login credentials for a provider from the environment.

    The active profile may set ``credentials.env_prefix`` (staging uses
    ``STAGING_``); the prefixed variable wins over the plain one.

    Args:
        provider: "google" or "email"
        required: Raise ConfigurationError instead of returning blanks

    Returns:
        Credentials (possibly with empty fields)
    """
    if provider not in CREDENTIAL_ENV_VARS:
        raise ConfigurationError(f"Unknown credential provider: {provider}")

    email_var, password_var = CREDENTIAL_ENV_VARS[provider]
    prefix = get_config("credentials.env_prefix", "") or ""
    email = os.getenv(f"{prefix}{email_var}") or os.getenv(email_var, "")
    password = os.getenv(f"{prefix}{password_var}") or os.getenv(password_var, "")

    credentials = Credentials(provider=provider, email=email, password=password)
    if required and not credentials.is_complete:
        raise ConfigurationError(
            f"Missing credentials for '{provider}': set {email_var} and {password_var}"
        )
    return credentials


def reload_config() -> None:
    """
    Reloads the configuration from files.
    """
    global _config, _logger_initialized
    _config = {}
    _logger_initialized = False
    _load_config()
    init_logger()
    logger.info(f"Configuration reloaded (MODE={get_mode()}).")


def reset_config() -> None:
    """Drop the cached configuration; the next lookup reloads lazily."""
    global _config
    _config = {}
