"""Environment-backed settings.

Values are read on every call so serverless cold starts and tests pick up
the current environment.
"""

import os
from typing import Optional

from src.utils.errors import ConfigurationError

DEFAULT_HOME_BASE = "iHaul iMove, Colorado Springs, CO"
SESSION_COOKIE_NAME = "box-drop-auth"
SESSION_MAX_AGE_SECONDS = 60 * 60 * 24 * 30  # 30 days
DEFAULT_ROUTES_TIMEOUT_SECONDS = 10.0


def _required(name: str) -> str:
    # Strip to remove trailing newlines pasted into hosted env settings
    value = os.environ.get(name, "").strip()
    if not value:
        raise ConfigurationError(f"{name} must be set")
    return value


def get_app_password() -> str:
    """Shared operator password."""
    return _required("APP_PASSWORD")


def get_session_secret() -> str:
    """HMAC key used to sign session cookies."""
    return _required("APP_SESSION_SECRET")


def get_automation_token() -> Optional[str]:
    """Bearer token accepted from the external intake process, if configured."""
    token = os.environ.get("AUTOMATION_TOKEN", "").strip()
    return token or None


def get_maps_api_key() -> Optional[str]:
    """Google Maps Platform key; routing falls back to plain links without it."""
    key = os.environ.get("GOOGLE_MAPS_API_KEY", "").strip()
    return key or None


def get_home_base_address() -> str:
    """Default start and end point for delivery routes."""
    return os.environ.get("HOME_BASE_ADDRESS", "").strip() or DEFAULT_HOME_BASE


def get_routes_timeout() -> float:
    raw = os.environ.get("ROUTES_API_TIMEOUT_SECONDS", "").strip()
    try:
        return float(raw) if raw else DEFAULT_ROUTES_TIMEOUT_SECONDS
    except ValueError:
        return DEFAULT_ROUTES_TIMEOUT_SECONDS


def is_production() -> bool:
    return os.environ.get("ENVIRONMENT", "").lower() == "production"
