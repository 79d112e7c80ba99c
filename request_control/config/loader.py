"""
Configuration file loader for request-control.

Engine options and rules snapshots are read from JSON, YAML or TOML files;
the format follows the file extension.
"""

import json
import tomllib
from pathlib import Path
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from request_control.exceptions import RequestControlError
from request_control.models import Options

from .defaults import (
    DEFAULT_CONFIG_EXTENSIONS,
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_CONFIG_SEARCH_PATHS,
)
from .env import load_env_config
from .options import EngineOptions

PathLike = Union[str, Path]


class ConfigurationError(RequestControlError):
    """Configuration loading or parsing error."""


def _read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _read_toml(path: Path) -> Any:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _read_yaml(path: Path) -> Any:
    # PyYAML is an optional extra
    try:
        import yaml
    except ImportError:
        raise ConfigurationError(
            f"Cannot read {path}: PyYAML is not installed. "
            "Install with: pip install request-control[yaml]"
        )

    with open(path, "r", encoding="utf-8") as f:
        try:
            return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse {path}: {e}") from e


_READERS: dict[str, Callable[[Path], Any]] = {
    ".json": _read_json,
    ".toml": _read_toml,
    ".yaml": _read_yaml,
    ".yml": _read_yaml,
}


def load_file(path: PathLike) -> dict[str, Any]:
    """Read a mapping from a configuration file.

    Raises:
        ConfigurationError: If the file is missing or unreadable, has an
            unknown extension, does not parse or does not hold a mapping.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        raise ConfigurationError(f"Unsupported configuration format: {path.suffix}")

    try:
        data = reader(path)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot parse {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration in {path} must be a mapping")
    return data


def find_config_file(
    filename: str = DEFAULT_CONFIG_FILENAME,
    search_paths: Optional[list[str]] = None,
    extensions: Optional[list[str]] = None,
) -> Optional[Path]:
    """First ``<dir>/<filename><ext>`` that exists, or None."""
    if search_paths is None:
        search_paths = DEFAULT_CONFIG_SEARCH_PATHS
    if extensions is None:
        extensions = DEFAULT_CONFIG_EXTENSIONS

    for directory in search_paths:
        base = Path(directory).expanduser()
        for ext in extensions:
            candidate = base / f"{filename}{ext}"
            if candidate.exists():
                return candidate
    return None


def load_config(
    config_file: Optional[PathLike] = None,
    overrides: Optional[dict[str, Any]] = None,
    load_env: bool = True,
    search_paths: Optional[list[str]] = None,
) -> EngineOptions:
    """Load engine options.

    Later sources win: defaults, then the configuration file (the given one,
    or the first found in ``search_paths``), then ``REQUEST_CONTROL_*``
    environment variables, then ``overrides``.

    Raises:
        ConfigurationError: If a source cannot be read or holds invalid values.
    """
    merged: dict[str, Any] = {}

    path = Path(config_file) if config_file else find_config_file(search_paths=search_paths)
    if path is not None:
        merged.update(load_file(path))
    if load_env:
        merged.update(load_env_config())
    if overrides:
        merged.update(overrides)

    try:
        return EngineOptions.from_dict(merged)
    except (ValidationError, ValueError) as e:
        raise ConfigurationError(f"Invalid engine options: {e}") from e


def load_options_file(path: PathLike) -> Options:
    """Read a rules snapshot (``{"disabled": ..., "rules": [...]}``).

    Raises:
        ConfigurationError: If the file cannot be read or is not a snapshot.
    """
    data = load_file(path)
    try:
        return Options.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid options in {path}: {e}") from e


def save_options_file(options: Options, path: PathLike) -> None:
    """Write a rules snapshot as JSON, using the stored field names."""
    with open(Path(path), "w", encoding="utf-8") as f:
        json.dump(options.model_dump(mode="json", by_alias=True), f, indent=2)
