"""Application configuration helpers."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


class ConfigurationError(ValueError):
    """Raised when an environment variable holds an unusable value."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(f"Environment variable '{name}' {message}.")
        self.name = name


def _get_env(name: str, *, default: Optional[str] = None) -> Optional[str]:
    """Fetch an environment variable value.

    Parameters
    ----------
    name:
        Name of the environment variable to retrieve.
    default:
        Default value if the variable is not set or blank.
    """

    value = os.environ.get(name)
    if value is not None:
        value = value.strip()

    if value:
        return value

    return default


def _get_float(name: str, default: float, *, lower: float, upper: float) -> float:
    raw = _get_env(name, default=str(default))
    try:
        value = float(raw or default)
    except ValueError as exc:
        raise ConfigurationError(name, "must be a number") from exc
    if not lower <= value <= upper:
        raise ConfigurationError(name, f"must be between {lower} and {upper}")
    return value


def _get_int(name: str, default: int, *, lower: int, upper: int) -> int:
    raw = _get_env(name, default=str(default))
    try:
        value = int(raw or default)
    except ValueError as exc:
        raise ConfigurationError(name, "must be an integer") from exc
    if not lower <= value <= upper:
        raise ConfigurationError(name, f"must be between {lower} and {upper}")
    return value


@dataclass(frozen=True)
class Config:
    """Default valuation assumptions."""

    discount_rate: float
    terminal_multiple: float
    holding_period: int
    dcf_years: int


@lru_cache(maxsize=1)
def get_config() -> Config:
    """Load and memoize the application configuration."""

    return Config(
        discount_rate=_get_float("COMPOUNDER_DISCOUNT_RATE", 0.10, lower=0.0, upper=1.0),
        terminal_multiple=_get_float(
            "COMPOUNDER_TERMINAL_MULTIPLE", 15.0, lower=1.0, upper=100.0
        ),
        holding_period=_get_int("COMPOUNDER_HOLDING_PERIOD", 5, lower=1, upper=30),
        dcf_years=_get_int("COMPOUNDER_DCF_YEARS", 10, lower=1, upper=30),
    )


__all__ = ["Config", "ConfigurationError", "get_config"]
