"""
Session Cookie Authentication

Resolves the caller's identity from the session cookie set by the web front
end. The cookie holds URL-encoded JSON:

    {"username": "alice", "role": "owner", "signature": "<hex>", "timestamp": 1718000000000}

When Config.AUTH_SECRET is set, the signature must be the hex HMAC-SHA256 of
the username keyed by that secret; otherwise only the presence of a username
is checked.
"""

import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote

from fastapi import Request

from metafix.config import Config

logger = logging.getLogger(__name__)


class AuthRequired(Exception):
    """Raised by require_auth when no valid session cookie is present."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class AuthInfo:
    """Identity carried by the session cookie."""
    username: str
    role: Optional[str] = None
    signature: Optional[str] = None
    timestamp: Optional[int] = None


def sign_username(username: str, secret: str) -> str:
    """Hex HMAC-SHA256 of a username."""
    return hmac.new(secret.encode('utf-8'), username.encode('utf-8'), hashlib.sha256).hexdigest()


def parse_auth_cookie(value: Optional[str], secret: Optional[str] = None) -> Optional[AuthInfo]:
    """
    Decode a session cookie value.

    The front end may encode the JSON twice, so percent-decoding is applied
    until the value parses (at most twice).

    Args:
        value: Raw cookie value
        secret: Signing secret; when empty the signature is not checked

    Returns:
        AuthInfo, or None if the cookie is missing, malformed or badly signed
    """
    if not value:
        return None

    decoded = value
    data = None
    for _ in range(2):
        decoded = unquote(decoded)
        try:
            data = json.loads(decoded)
            break
        except ValueError:
            continue

    if not isinstance(data, dict):
        logger.debug("Auth cookie is not a JSON object")
        return None

    username = data.get('username')
    if not username or not isinstance(username, str):
        return None

    signature = data.get('signature')
    if secret:
        if not isinstance(signature, str) or not hmac.compare_digest(signature, sign_username(username, secret)):
            logger.warning(f"Rejected auth cookie with invalid signature for user '{username}'")
            return None

    timestamp = data.get('timestamp')
    return AuthInfo(
        username=username,
        role=data.get('role'),
        signature=signature,
        timestamp=timestamp if isinstance(timestamp, int) else None,
    )


def get_auth_info_from_cookie(request: Request) -> Optional[AuthInfo]:
    """Resolve the caller's identity from the request's session cookie."""
    return parse_auth_cookie(request.cookies.get(Config.AUTH_COOKIE_NAME), Config.AUTH_SECRET)


def require_auth(request: Request) -> AuthInfo:
    """
    FastAPI dependency requiring a valid session cookie.

    Raises:
        AuthRequired: Rendered as 401 {"error": ...} by the application
    """
    auth_info = get_auth_info_from_cookie(request)
    if auth_info is None:
        raise AuthRequired()
    return auth_info
