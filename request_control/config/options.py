"""
Engine options for request-control.
"""

import logging
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .defaults import (
    DEFAULT_CHAIN_LOOKBACK,
    DEFAULT_LOG_LEVEL,
    DEFAULT_NOTIFIER,
    MAX_CHAIN_LOOKBACK,
)


class EngineOptions(BaseModel):
    """Settings of the engine itself (as opposed to the user's rules)."""

    chain_lookback: int = Field(
        DEFAULT_CHAIN_LOOKBACK,
        ge=1,
        le=MAX_CHAIN_LOOKBACK,
        description="Records inspected per pass when reconciling a navigation",
    )
    log_level: str = Field(DEFAULT_LOG_LEVEL, description="Logging level name")
    notifier: Literal["badge", "log"] = Field(DEFAULT_NOTIFIER, description="Notifier kind")
    options_file: Optional[str] = Field(None, description="File holding the rules snapshot")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate the logging level name."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EngineOptions":
        """Create options from a dictionary, ignoring unknown keys."""
        return cls(**{k: v for k, v in data.items() if k in cls.model_fields})

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()
