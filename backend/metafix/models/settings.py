"""
Settings Database Model for Metafix

This module defines the Settings model for database-driven runtime configuration.
The OpenList storage connection (URL, token, optional credentials, root path)
is stored here so it can be edited at runtime through the settings API.

Configuration Strategy:
    - Storage-service settings stored in database
    - Environment values (metafix.config.Config) seed the row on first creation
    - Only DATABASE_URL remains purely environment-driven

Note: This uses a singleton pattern - only one row exists in the settings table.
"""

from dataclasses import dataclass
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import Session
from typing import Optional

from .base import Base
from metafix.config import Config


@dataclass(frozen=True)
class OpenListConfig:
    """Resolved storage-service section handed to the OpenList client."""
    url: str
    token: str
    username: Optional[str] = None
    password: Optional[str] = None
    root_path: str = '/'

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)


class Settings(Base):
    """
    Database model for application runtime configuration settings.

    Singleton Pattern:
        This table should contain exactly one row with all application settings.
        The get_settings() class method ensures the singleton pattern is maintained.

    Table Structure:
        OpenList Storage:
            - openlist_url: OpenList/AList base URL
            - openlist_token: API token sent in the Authorization header (sensitive)
            - openlist_username: Optional account used to refresh an expired token
            - openlist_password: Optional password for that account (sensitive)
            - openlist_root_path: Storage root holding metainfo.json (default "/")

        Application Settings:
            - log_level: Application logging level (DEBUG, INFO, WARNING, ERROR)

    Security Note:
        Sensitive fields are stored as plain text and masked by to_dict().
    """

    __tablename__ = 'settings'

    id = Column(Integer, primary_key=True, autoincrement=True)

    # OpenList storage
    openlist_url = Column(String(500), nullable=True)
    openlist_token = Column(String(1000), nullable=True)  # Should be encrypted
    openlist_username = Column(String(255), nullable=True)
    openlist_password = Column(String(500), nullable=True)  # Should be encrypted
    openlist_root_path = Column(String(1000), nullable=True, default='/')

    # Application Settings
    log_level = Column(String(50), nullable=True, default='INFO')

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def openlist_config(self) -> Optional[OpenListConfig]:
        """
        Build the storage-service section used by the correction endpoint.

        Returns:
            OpenListConfig, or None when URL or token is not configured
        """
        if not self.openlist_url or not self.openlist_token:
            return None
        return OpenListConfig(
            url=self.openlist_url,
            token=self.openlist_token,
            username=self.openlist_username or None,
            password=self.openlist_password or None,
            root_path=self.openlist_root_path or '/',
        )

    def to_dict(self, mask_secrets: bool = True) -> dict:
        """
        Convert settings to dictionary.

        Args:
            mask_secrets: If True, mask sensitive values with asterisks

        Returns:
            Dictionary representation of settings
        """
        def mask_value(value: Optional[str]) -> Optional[str]:
            """Mask sensitive value."""
            if not value or not mask_secrets:
                return value
            if len(value) > 3:
                return value[:3] + '*' * (len(value) - 3)
            return '***'

        return {
            'id': self.id,
            'openlist_url': self.openlist_url,
            'openlist_token': mask_value(self.openlist_token),
            'openlist_username': self.openlist_username,
            'openlist_password': mask_value(self.openlist_password),
            'openlist_root_path': self.openlist_root_path or '/',
            'log_level': self.log_level,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }

    @classmethod
    def get_settings(cls, db: Session) -> 'Settings':
        """
        Get the singleton settings instance.

        If no settings exist, creates a new settings row seeded from the
        environment (Config.OPENLIST_*).

        Args:
            db: SQLAlchemy database session

        Returns:
            Settings instance (the only row in the table)
        """
        settings = db.query(cls).first()

        if not settings:
            settings = cls(
                openlist_url=Config.OPENLIST_URL or None,
                openlist_token=Config.OPENLIST_TOKEN or None,
                openlist_username=Config.OPENLIST_USERNAME or None,
                openlist_password=Config.OPENLIST_PASSWORD or None,
                openlist_root_path=Config.OPENLIST_ROOT_PATH or '/',
                log_level=Config.LOG_LEVEL,
            )
            db.add(settings)
            db.commit()
            db.refresh(settings)

        return settings

    @classmethod
    def update_settings(cls, db: Session, **kwargs) -> 'Settings':
        """
        Update settings with provided values.

        Args:
            db: SQLAlchemy database session
            **kwargs: Setting values to update

        Returns:
            Updated Settings instance

        Example:
            Settings.update_settings(
                db,
                openlist_url='https://pan.example.com',
                openlist_root_path='/media'
            )
        """
        settings = cls.get_settings(db)

        for key, value in kwargs.items():
            if hasattr(settings, key):
                setattr(settings, key, value)

        settings.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(settings)
        return settings

    def __repr__(self) -> str:
        """String representation of settings."""
        return (
            f"<Settings(id={self.id}, openlist_url='{self.openlist_url}', "
            f"openlist_root_path='{self.openlist_root_path}')>"
        )
