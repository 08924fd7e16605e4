"""Runtime settings read from the environment."""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .exceptions import ConfigError
from .mta_client import DEFAULT_CACHE_TTL, DEFAULT_TIMEOUT
from .station_reference import MTA_STATIONS_URL


def _number(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = None
    feed_timeout: float = DEFAULT_TIMEOUT
    cache_ttl: float = DEFAULT_CACHE_TTL
    stations_csv: str = MTA_STATIONS_URL
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        When env is None, a .env file in the working directory is loaded first
        and os.environ is read.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        log_level = (env.get("SUBWAYTRACK_LOG_LEVEL") or "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(f"SUBWAYTRACK_LOG_LEVEL is not a logging level: {log_level!r}")

        timeout = _number(env, "SUBWAYTRACK_FEED_TIMEOUT", DEFAULT_TIMEOUT)
        if timeout == 0:
            raise ConfigError("SUBWAYTRACK_FEED_TIMEOUT must be greater than zero")

        return cls(
            api_key=env.get("MTA_API_KEY") or None,
            feed_timeout=timeout,
            cache_ttl=_number(env, "SUBWAYTRACK_CACHE_TTL", DEFAULT_CACHE_TTL),
            stations_csv=env.get("SUBWAYTRACK_STATIONS_CSV") or MTA_STATIONS_URL,
            log_level=log_level,
        )
