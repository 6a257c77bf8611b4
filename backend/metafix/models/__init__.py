"""
Database models for Metafix
"""

from .base import Base
from .settings import Settings, OpenListConfig

__all__ = ['Base', 'Settings', 'OpenListConfig']
