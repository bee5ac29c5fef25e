"""Runtime settings for AirSS, read from the environment."""

import os
from dataclasses import dataclass

DEFAULT_DB_PATH = "airss.db"
DEFAULT_WATERMARK = 10
DEFAULT_MIN_RELOAD_WAIT = 3600  # 1 hour
DEFAULT_FETCH_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "AirSS/0.1 (+https://github.com/airss/airss)"


@dataclass
class Settings:
    """Knobs of the model layer."""

    db_path: str = DEFAULT_DB_PATH
    # load more items when fewer than this many are unread
    watermark: int = DEFAULT_WATERMARK
    # minimal elapsed time before a feed is reloaded, in seconds
    min_reload_wait: float = DEFAULT_MIN_RELOAD_WAIT
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT


def _env_number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def load_settings() -> Settings:
    """Build Settings from AIRSS_* environment variables.

    Raises:
        ValueError: If a numeric variable cannot be parsed.
    """
    return Settings(
        db_path=os.environ.get("AIRSS_DB_PATH", DEFAULT_DB_PATH),
        watermark=_env_number("AIRSS_WATERMARK", DEFAULT_WATERMARK, int),
        min_reload_wait=_env_number(
            "AIRSS_MIN_RELOAD_WAIT", DEFAULT_MIN_RELOAD_WAIT, float
        ),
        fetch_timeout=_env_number(
            "AIRSS_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT, float
        ),
        user_agent=os.environ.get("AIRSS_USER_AGENT", DEFAULT_USER_AGENT),
    )
