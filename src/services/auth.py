"""Shared-password login and signed session cookies."""

import hmac
import hashlib
import time
from http.cookies import CookieError, SimpleCookie
from typing import Optional
from src.config import (
    SESSION_COOKIE_NAME,
    SESSION_MAX_AGE_SECONDS,
    get_app_password,
    get_automation_token,
    get_session_secret,
    is_production,
)
from src.utils.errors import AuthenticationError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


def _sign(expires_at: int, secret: str) -> str:
    return hmac.new(
        secret.encode("utf-8"),
        f"box-drop-session:{expires_at}".encode("utf-8"),
        hashlib.sha256
    ).hexdigest()


def issue_session_token(now: Optional[int] = None) -> str:
    """Token of the form <expires_epoch>.<hmac>."""
    now = int(time.time()) if now is None else now
    expires_at = now + SESSION_MAX_AGE_SECONDS
    return f"{expires_at}.{_sign(expires_at, get_session_secret())}"


def verify_session_token(token: Optional[str], now: Optional[int] = None) -> bool:
    """True when the signature matches and the token has not expired."""
    if not token or "." not in token:
        return False
    expires_raw, _, signature = token.partition(".")
    try:
        expires_at = int(expires_raw)
    except ValueError:
        return False

    now = int(time.time()) if now is None else now
    if expires_at < now:
        return False

    expected = _sign(expires_at, get_session_secret())
    return hmac.compare_digest(expected, signature)


def check_password(password: Optional[str]) -> str:
    """Return a fresh session token or raise AuthenticationError."""
    if not isinstance(password, str) or not hmac.compare_digest(
        password.encode("utf-8"), get_app_password().encode("utf-8")
    ):
        logger.warning("Login rejected")
        raise AuthenticationError("Invalid password")
    logger.info("Login accepted")
    return issue_session_token()


def session_cookie_header(token: str) -> str:
    """Set-Cookie value for a new session."""
    cookie = SimpleCookie()
    cookie[SESSION_COOKIE_NAME] = token
    morsel = cookie[SESSION_COOKIE_NAME]
    morsel["httponly"] = True
    morsel["samesite"] = "Lax"
    morsel["max-age"] = SESSION_MAX_AGE_SECONDS
    morsel["path"] = "/"
    if is_production():
        morsel["secure"] = True
    return morsel.OutputString()


def clear_cookie_header() -> str:
    cookie = SimpleCookie()
    cookie[SESSION_COOKIE_NAME] = ""
    morsel = cookie[SESSION_COOKIE_NAME]
    morsel["max-age"] = 0
    morsel["path"] = "/"
    return morsel.OutputString()


def session_from_cookie_header(cookie_header: Optional[str]) -> Optional[str]:
    if not cookie_header:
        return None
    cookie = SimpleCookie()
    try:
        cookie.load(cookie_header)
    except CookieError:
        return None
    morsel = cookie.get(SESSION_COOKIE_NAME)
    return morsel.value if morsel else None


def is_authorized(cookie_header: Optional[str], authorization: Optional[str] = None,
                  allow_automation: bool = False) -> bool:
    """Session cookie check, plus the automation bearer token where allowed."""
    if verify_session_token(session_from_cookie_header(cookie_header)):
        return True
    if allow_automation and authorization:
        token = get_automation_token()
        scheme, _, value = authorization.partition(" ")
        if token and scheme.lower() == "bearer" and hmac.compare_digest(value.strip(), token):
            return True
    return False
