# livestats/core/config.py

import pathlib
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root is 3 levels up from this file (livestats/core/config.py).
_PROJECT_ROOT = pathlib.Path(__file__).resolve().parent.parent.parent
_ENV_PATH_FILE = _PROJECT_ROOT / ".env.path"
_DEFAULT_ENV_FILE = _PROJECT_ROOT / ".env"


def _resolve_env_file() -> pathlib.Path | None:
    """
    Returns the .env file named in .env.path, or the project-root .env.
    Falls back to plain environment variables when neither exists.
    """
    if _ENV_PATH_FILE.exists():
        env_file = pathlib.Path(_ENV_PATH_FILE.read_text().strip())
        if not env_file.exists():
            raise FileNotFoundError(
                f".env file not found at '{env_file}' (read from {_ENV_PATH_FILE}). "
                "Check that the path in .env.path is correct."
            )
        return env_file

    if _DEFAULT_ENV_FILE.exists():
        return _DEFAULT_ENV_FILE
    return None


class Settings(BaseSettings):
    """
    Manages all application settings.
    Loads variables from the resolved .env file, then the process environment.
    """

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8", extra="ignore"
    )

    # Room being watched (the number at the end of the live room URL)
    LIVE_ROOM_ID: str

    # Aggregation
    BUCKET_MINUTES: int = 10
    LOOKBACK_SESSIONS: int = 10

    # Polling cadence in seconds
    POLL_LIVE_SECONDS: float = 30.0
    POLL_OFFLINE_SECONDS: float = 15.0
    POLL_EMPTY_SECONDS: float = 10.0
    CHANNEL_RETRY_SECONDS: float = 10.0
    RETRY_BACKOFF_SECONDS: float = 5.0

    # IANA zone for bucket labels, e.g. "Asia/Shanghai" (local time if unset)
    LABEL_TIMEZONE: str | None = None

    # Observability (optional)
    LOG_LEVEL: str = "INFO"
    SENTRY_DSN: str | None = None


_env_file = _resolve_env_file()

# Create a single, importable instance of our settings.
# This instance will be created only once when the module is first imported.
settings = Settings(_env_file=str(_env_file) if _env_file else None)
