"""
================================================================================
LiveShare Tools Common Utilities
================================================================================

Shared configuration management and logging setup for the suite.

Exports:
    - get_config / set_config / reload_config: layered YAML configuration
    - get_mode: active MODE profile (dev, staging, production)
    - get_credentials: provider credentials from the environment
    - init_logger: loguru initialisation with project defaults

Usage:
    from liveshare_tools.common import get_config, init_logger

    init_logger()
    base_url = get_config("app.base_url")

================================================================================
"""

import os

from .global_config import (
    ConfigurationError,
    Credentials,
    get_base_url,
    get_config,
    get_credentials,
    get_logger,
    get_mode,
    init_logger,
    reload_config,
    reset_config,
    set_config,
)


def ensure_directory(path: str) -> str:
    """
    Ensures a directory exists, creating it if necessary.

    Args:
        path: Directory path

    Returns:
        The path (for chaining)
    """
    os.makedirs(path, exist_ok=True)
    return path


__all__ = [
    "ConfigurationError",
    "Credentials",
    "ensure_directory",
    "get_base_url",
    "get_config",
    "get_credentials",
    "get_logger",
    "get_mode",
    "init_logger",
    "reload_config",
    "reset_config",
    "set_config",
]
