"""
Configuration module for request-control.

This module provides:
- EngineOptions: engine settings validated with Pydantic
- Configuration file loading (JSON, YAML, TOML)
- Environment variable overrides
- Options storages the engine reads the rules snapshot from

Example usage:
    from request_control.config import load_config, FileOptionsStorage

    # Load from file with environment overrides
    config = load_config("request-control.config.json")

    storage = FileOptionsStorage(config.options_file)
    options = await storage.get()

Environment variables:
    REQUEST_CONTROL_CHAIN_LOOKBACK=5
    REQUEST_CONTROL_LOG_LEVEL=DEBUG
    REQUEST_CONTROL_NOTIFIER=log
    REQUEST_CONTROL_OPTIONS_FILE=rules.json
"""

from .defaults import (
    DEFAULT_CHAIN_LOOKBACK,
    DEFAULT_CONFIG_EXTENSIONS,
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_CONFIG_SEARCH_PATHS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_NOTIFIER,
    ENV_PREFIX,
    MAX_CHAIN_LOOKBACK,
    get_default_engine_config,
)
from .env import get_env, get_env_key, load_env_config, parse_bool, parse_value
from .loader import (
    ConfigurationError,
    find_config_file,
    load_config,
    load_file,
    load_options_file,
    save_options_file,
)
from .options import EngineOptions
from .storage import FileOptionsStorage, MemoryOptionsStorage

__all__ = [
    # Defaults
    "DEFAULT_CHAIN_LOOKBACK",
    "DEFAULT_CONFIG_EXTENSIONS",
    "DEFAULT_CONFIG_FILENAME",
    "DEFAULT_CONFIG_SEARCH_PATHS",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_NOTIFIER",
    "ENV_PREFIX",
    "MAX_CHAIN_LOOKBACK",
    "get_default_engine_config",
    # Options
    "EngineOptions",
    # Loader
    "ConfigurationError",
    "find_config_file",
    "load_config",
    "load_file",
    "load_options_file",
    "save_options_file",
    # Environment
    "get_env",
    "get_env_key",
    "load_env_config",
    "parse_bool",
    "parse_value",
    # Storage
    "FileOptionsStorage",
    "MemoryOptionsStorage",
]
