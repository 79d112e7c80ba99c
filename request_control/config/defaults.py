"""
Default configuration values for request-control.
"""

from typing import Any

# Engine defaults
DEFAULT_CHAIN_LOOKBACK = 5
MAX_CHAIN_LOOKBACK = 50
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_NOTIFIER = "badge"

# File config defaults
DEFAULT_CONFIG_FILENAME = "request-control.config"
DEFAULT_CONFIG_EXTENSIONS = [".json", ".yaml", ".yml", ".toml"]
DEFAULT_CONFIG_SEARCH_PATHS = [
    ".",
    "~/.config/request-control",
    "/etc/request-control",
]

# Environment variable prefix
ENV_PREFIX = "REQUEST_CONTROL_"


def get_default_engine_config() -> dict[str, Any]:
    """Get default engine configuration as a dictionary."""
    return {
        "chain_lookback": DEFAULT_CHAIN_LOOKBACK,
        "log_level": DEFAULT_LOG_LEVEL,
        "notifier": DEFAULT_NOTIFIER,
        "options_file": None,
    }
