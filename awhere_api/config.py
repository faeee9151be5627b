"""Client configuration loaded from the environment."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.awhere.com/v2"
DEFAULT_TOKEN_URL = "https://api.awhere.com/oauth/token"


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


@dataclass
class Settings:
    """Service endpoints and policy bounds used by the client.

    The forecast horizon and observation lag mirror the service's current
    policy (forecasts up to today+8, observations strictly before today) and
    can be overridden when that policy changes.
    """

    base_url: str = DEFAULT_BASE_URL
    token_url: str = DEFAULT_TOKEN_URL
    timeout: int = 30
    max_auth_attempts: int = 2
    token_expiry_buffer: int = 60
    forecast_horizon_days: int = 8
    observation_lag_days: int = 1
    earliest_norm_year: int = 1994
    min_norm_years: int = 3
    observation_chunk_days: int = 120

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        if self.max_auth_attempts < 1:
            raise ValueError("max_auth_attempts must be at least 1")
        if self.observation_chunk_days < 1:
            raise ValueError("observation_chunk_days must be at least 1")

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        """Build settings from AWHERE_* environment variables.

        A ``.env`` file is loaded first when present; variables already set
        in the environment win.
        """
        load_dotenv(dotenv_path)

        settings = cls(
            base_url=os.getenv("AWHERE_BASE_URL") or DEFAULT_BASE_URL,
            token_url=os.getenv("AWHERE_TOKEN_URL") or DEFAULT_TOKEN_URL,
            timeout=_env_int("AWHERE_TIMEOUT", 30),
            max_auth_attempts=_env_int("AWHERE_MAX_AUTH_ATTEMPTS", 2),
            forecast_horizon_days=_env_int("AWHERE_FORECAST_HORIZON_DAYS", 8),
            observation_lag_days=_env_int("AWHERE_OBSERVATION_LAG_DAYS", 1),
            min_norm_years=_env_int("AWHERE_MIN_NORM_YEARS", 3),
            observation_chunk_days=_env_int("AWHERE_OBSERVATION_CHUNK_DAYS", 120),
        )

        logger.debug(
            "Settings loaded from environment",
            extra={"base_url": settings.base_url, "token_url": settings.token_url},
        )
        return settings
