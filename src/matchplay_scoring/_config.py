# Area: Shared
"""
matchplay_scoring._config — Configuration
=========================================

Defaults, loading and validation for the scoring client configuration.

Values come from (lowest to highest precedence): built-in defaults,
an optional JSON file, a ``.env`` file, and environment variables.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

logger = logging.getLogger("matchplay_scoring")

DEFAULT_CONFIG: Dict[str, Any] = {
    "api_base_url": "",
    "api_token": "",
    "db_path": "scoring_state.db",
    "log_file": "matchplay_scoring.log",
    "request_timeout_seconds": 10,
    "poll_interval_seconds": 10,
    "lock_refresh_seconds": 30,
    "lock_stale_seconds": 120,
    "lock_watch_seconds": 1,
    "lock_scope": "match",
    "leaderboard_poll_seconds": 30,
}

# Environment variable -> (config key, converter)
ENV_MAPPINGS = {
    "SCORING_API_URL": ("api_base_url", str),
    "SCORING_API_TOKEN": ("api_token", str),
    "SCORING_DB_PATH": ("db_path", str),
    "SCORING_LOG_FILE": ("log_file", str),
    "SCORING_POLL_INTERVAL": ("poll_interval_seconds", float),
    "SCORING_LOCK_SCOPE": ("lock_scope", str),
}

REQUIRED_CONFIG_KEYS = [
    "api_base_url",
]


def load_config(config_path: Optional[str] = None,
                env_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Build a config dict from defaults, a JSON file and the environment.

    Args:
        config_path: Optional path to a JSON config file
        env_file: Optional .env file; defaults to searching from the cwd
    """
    config = dict(DEFAULT_CONFIG)

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path, encoding="utf-8") as f:
                config.update(json.load(f))
        else:
            logger.warning(f"Config file not found: {config_path}")

    load_dotenv(env_file)

    for env_key, (config_key, convert) in ENV_MAPPINGS.items():
        if env_key in os.environ:
            try:
                config[config_key] = convert(os.environ[env_key])
            except ValueError:
                raise ValueError(f"Invalid value for {env_key}: {os.environ[env_key]!r}")

    return config


def with_defaults(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Fill missing keys from DEFAULT_CONFIG without touching the caller's dict."""
    merged = dict(DEFAULT_CONFIG)
    merged.update(config or {})
    return merged


def validate_config(config: dict) -> None:
    """
    Validate required configuration keys.

    Raises:
        ValueError: If required keys are missing or values are invalid
    """
    missing = [k for k in REQUIRED_CONFIG_KEYS if not config.get(k)]
    if missing:
        raise ValueError(f"Missing required config keys: {missing}")
    if config.get("lock_scope", "match") not in ("match", "global"):
        raise ValueError(f"Invalid lock_scope: {config['lock_scope']!r}")
    refresh = config.get("lock_refresh_seconds", DEFAULT_CONFIG["lock_refresh_seconds"])
    stale = config.get("lock_stale_seconds", DEFAULT_CONFIG["lock_stale_seconds"])
    if refresh >= stale:
        raise ValueError("lock_refresh_seconds must be shorter than lock_stale_seconds")
