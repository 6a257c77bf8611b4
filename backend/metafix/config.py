"""
Configuration Management for Metafix

This module centralizes application configuration, making it easy to manage
timeouts, the OpenList storage defaults, cookie authentication and logging
through environment variables.

All configuration values have sensible defaults and can be overridden via
environment variables for production deployment. Storage-service settings
read here only seed the database Settings row on first start; after that the
database is the source of truth (see metafix.models.settings).
"""

import os
from typing import List


class Config:
    """
    Centralized configuration management using environment variables.

    All settings have sensible defaults and can be overridden via environment
    variables for production deployment.
    """

    # =============================================================================
    # APPLICATION SETTINGS
    # =============================================================================
    APP_VERSION = "1.0.0"
    APP_TITLE = "Metafix"
    APP_DESCRIPTION = "Correct TMDB mappings stored in OpenList metainfo.json files"
    APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT = int(os.getenv("APP_PORT", "8000"))

    # =============================================================================
    # DEVELOPMENT MODE
    # =============================================================================
    DEV_MODE = os.getenv("DEV_MODE", "false").lower() == "true"
    DEBUG = os.getenv("DEBUG", "false").lower() == "true"

    # =============================================================================
    # CORS CONFIGURATION
    # =============================================================================
    # Example: CORS_ORIGINS=https://app.example.com,https://api.example.com
    CORS_ORIGINS_STR = os.getenv("CORS_ORIGINS", "")
    CORS_ORIGINS: List[str] = (
        CORS_ORIGINS_STR.split(",") if CORS_ORIGINS_STR else ["http://localhost:8000"]
    )
    # Allow wildcard only in development mode
    if DEV_MODE:
        CORS_ORIGINS = ["*"]

    # =============================================================================
    # DATABASE CONFIGURATION
    # =============================================================================
    _db_path = "./data/metafix.db" if os.path.exists("./data") else "./backend/data/metafix.db"
    DATABASE_URL = os.getenv(
        "DATABASE_URL",
        f"sqlite:///{_db_path}"
    )

    # =============================================================================
    # OPENLIST STORAGE (defaults for the Settings row)
    # =============================================================================
    OPENLIST_URL = os.getenv("OPENLIST_URL", "")
    OPENLIST_TOKEN = os.getenv("OPENLIST_TOKEN", "")
    OPENLIST_USERNAME = os.getenv("OPENLIST_USERNAME", "")
    OPENLIST_PASSWORD = os.getenv("OPENLIST_PASSWORD", "")
    OPENLIST_ROOT_PATH = os.getenv("OPENLIST_ROOT_PATH", "/")

    # =============================================================================
    # REQUEST TIMEOUTS (seconds)
    # =============================================================================
    OPENLIST_TIMEOUT = float(os.getenv("OPENLIST_TIMEOUT", "30"))

    # =============================================================================
    # AUTHENTICATION
    # =============================================================================
    AUTH_COOKIE_NAME = os.getenv("AUTH_COOKIE_NAME", "auth")
    # When set, the cookie signature must be HMAC-SHA256(username) keyed by this secret
    AUTH_SECRET = os.getenv("AUTH_SECRET", "")

    # =============================================================================
    # LOGGING
    # =============================================================================
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    # "text" or "json"
    LOG_FORMAT = os.getenv("LOG_FORMAT", "text").lower()

    @classmethod
    def validate(cls) -> bool:
        """
        Validate critical configuration values.

        Returns:
            True if configuration is valid, False otherwise
        """
        if not cls.DATABASE_URL:
            return False

        if cls.APP_PORT < 1 or cls.APP_PORT > 65535:
            return False

        if cls.OPENLIST_TIMEOUT <= 0:
            return False

        if cls.LOG_FORMAT not in ("text", "json"):
            return False

        return True
