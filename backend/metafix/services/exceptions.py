"""
Typed Exception Hierarchy for Metafix

This module defines the exceptions raised while reading, correcting and
writing back an OpenList metainfo.json document.

Exception Hierarchy:
    MetaInfoError (base)
    ├── AuthError        (login/credential failures)
    ├── RemoteError      (non-2xx or transport failure from the storage API)
    ├── ParseError       (metainfo.json is not a valid document)
    ├── NotFoundError    (metainfo.json does not exist)
    ├── ValidationError  (missing required input fields)
    └── ConfigError      (storage service not configured)

Only the client's single 401 refresh is retried; none of these errors
triggers an automatic retry.
"""

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


class MetaInfoError(Exception):
    """
    Base exception for metadata correction errors.

    Carries the HTTP status code and raw response body of the storage API
    call that failed, when there was one.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, response_data: Any = None):
        """
        Initialize MetaInfoError.

        Args:
            message: Human-readable error description
            status_code: HTTP status code if applicable
            response_data: Raw response data (text or parsed JSON) for debugging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data

    def __str__(self) -> str:
        if self.status_code:
            return f"{self.__class__.__name__} (HTTP {self.status_code}): {self.message}"
        return f"{self.__class__.__name__}: {self.message}"


class AuthError(MetaInfoError):
    """Login against /api/auth/login failed or returned no token."""
    pass


class RemoteError(MetaInfoError):
    """
    The storage API answered with a non-success status, or could not be reached.

    status_code is None for transport-level failures (DNS, refused
    connection, timeout).
    """
    pass


class ParseError(MetaInfoError):
    """metainfo.json content is not valid JSON or has the wrong shape."""
    pass


class NotFoundError(MetaInfoError):
    """metainfo.json does not exist under the storage root."""
    pass


class ValidationError(MetaInfoError):
    """
    A required correction field is missing.

    Attributes:
        field: Name of the offending request field
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ConfigError(MetaInfoError):
    """The OpenList storage service is not configured."""
    pass


# ============================================================================
# Convenience Functions
# ============================================================================

def public_details(error: Exception) -> str:
    """
    Short description of an error that is safe to return to API callers.

    Storage API errors are reduced to their status code so that remote
    response bodies never reach the browser.

    Args:
        error: Exception raised during a correction

    Returns:
        Details string for the {"error", "details"} response body
    """
    if isinstance(error, MetaInfoError):
        if error.status_code:
            return f"HTTP {error.status_code}"
        return error.message
    return str(error)
