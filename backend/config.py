from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final, Optional

from dotenv import dotenv_values


_DOTENV_PATH: Final[str] = ".env"

_DEFAULT_TIMEOUT_SECONDS: Final[float] = 5.0


@dataclass(frozen=True)
class Settings:
    """Application configuration loaded from environment variables.

    This wrapper keeps configuration access explicit and fully typed.
    """

    environment: str
    prediction_api_url: Optional[str]
    prediction_timeout_seconds: float
    log_level: str


def _load_from_env() -> Settings:
    """Load configuration from `.env` and OS environment variables."""
    dotenv_config = dotenv_values(_DOTENV_PATH)

    def _get(name: str, default: Optional[str] = None) -> Optional[str]:
        value = os.getenv(name)
        if value is not None:
            return value
        return dotenv_config.get(name) or default

    environment = _get("ENV", "development") or "development"

    # Without a remote prediction service every estimate is computed locally.
    prediction_api_url = (_get("PREDICTION_API_URL") or "").strip().rstrip("/") or None

    raw_timeout = _get("PREDICTION_TIMEOUT_SECONDS", str(_DEFAULT_TIMEOUT_SECONDS))
    try:
        prediction_timeout_seconds = float(raw_timeout or _DEFAULT_TIMEOUT_SECONDS)
    except ValueError as exc:
        raise RuntimeError(
            f"PREDICTION_TIMEOUT_SECONDS must be a number, got {raw_timeout!r}.",
        ) from exc
    if prediction_timeout_seconds <= 0:
        raise RuntimeError("PREDICTION_TIMEOUT_SECONDS must be positive.")

    log_level = (_get("LOG_LEVEL", "INFO") or "INFO").upper()

    return Settings(
        environment=environment,
        prediction_api_url=prediction_api_url,
        prediction_timeout_seconds=prediction_timeout_seconds,
        log_level=log_level,
    )


_SETTINGS: Optional[Settings] = None


def get_settings() -> Settings:
    """Return a cached instance of loaded application settings."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = _load_from_env()
    return _SETTINGS
