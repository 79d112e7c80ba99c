"""
Environment variable support for request-control configuration.

Every ``EngineOptions`` field can be set as ``REQUEST_CONTROL_<FIELD>``.
"""

import os
import types
from typing import Any, Callable, Optional, Union, get_args, get_origin

from .defaults import ENV_PREFIX
from .options import EngineOptions

TRUE_VALUES = ("true", "1", "yes", "on", "enabled")


def get_env_key(key: str, prefix: str = ENV_PREFIX) -> str:
    """Environment variable name of a configuration key.

    ``chain_lookback`` becomes ``REQUEST_CONTROL_CHAIN_LOOKBACK``.
    """
    name = key.upper().replace(".", "_").replace("-", "_")
    return f"{prefix}{name}"


def parse_bool(value: str) -> bool:
    return value.strip().lower() in TRUE_VALUES


_CONVERTERS: dict[Any, Callable[[str], Any]] = {
    bool: parse_bool,
    int: int,
    float: float,
}


def parse_value(value: str, target_type: Any) -> Any:
    """Convert a raw variable to ``target_type``.

    ``Optional[X]`` converts to ``X``; types without a converter (``str``,
    ``Literal[...]``) keep the raw string for pydantic to validate.
    """
    if get_origin(target_type) in (Union, types.UnionType):
        inner = [t for t in get_args(target_type) if t is not type(None)]
        target_type = inner[0] if inner else str

    convert = _CONVERTERS.get(target_type)
    return convert(value) if convert else value


def get_env(
    key: str,
    default: Optional[Any] = None,
    target_type: Optional[Any] = None,
    prefix: str = ENV_PREFIX,
) -> Any:
    """Read one configuration value from the environment.

    Without ``target_type`` the value is converted to the type of
    ``default``, if one is given.
    """
    raw = os.environ.get(get_env_key(key, prefix))
    if raw is None:
        return default
    if target_type is None and default is not None:
        target_type = type(default)
    return parse_value(raw, target_type) if target_type is not None else raw


def load_env_config(prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Engine options present in the environment, converted to field types."""
    return {
        name: get_env(name, target_type=info.annotation, prefix=prefix)
        for name, info in EngineOptions.model_fields.items()
        if get_env_key(name, prefix) in os.environ
    }
