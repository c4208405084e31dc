import os
from functools import lru_cache

import yaml
from dotenv import load_dotenv

from constants import (
    CACHE_TTL_SECONDS,
    COMMENT_LOOKBACK_DAYS,
    DIGEST_TIME,
    LINEAR_API_URL,
    REQUEST_TIMEOUT_SECONDS,
)

load_dotenv()

CONFIG_PATH = os.getenv("TEAM_PULSE_CONFIG", "config.yml")


@lru_cache(maxsize=1)
def load_config(path=CONFIG_PATH):
    """Load configuration data from ``path`` and cache the result.

    A missing file is treated as an empty configuration so the app can run on
    environment variables alone.
    """
    if not os.path.exists(path):
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def get_settings(path=CONFIG_PATH):
    """Return the effective settings: config file values over defaults, secrets from the environment."""
    config = load_config(path)
    return {
        "api_key": os.getenv("LINEAR_API_KEY"),
        "api_url": config.get("api_url", LINEAR_API_URL),
        "team_id": os.getenv("LINEAR_TEAM_ID") or config.get("team_id"),
        "lookback_days": int(config.get("lookback_days", COMMENT_LOOKBACK_DAYS)),
        "cache_ttl_seconds": int(config.get("cache_ttl_seconds", CACHE_TTL_SECONDS)),
        "request_timeout": int(config.get("request_timeout", REQUEST_TIMEOUT_SECONDS)),
        "digest_time": config.get("digest_time", DIGEST_TIME),
    }
