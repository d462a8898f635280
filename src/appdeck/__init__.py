"""
AppDeck - Application Discovery & Indexing Engine
Discovers installed applications, keeps a searchable index of them and
launches them on request
"""

from .core.app_service import AppIndexService, create_service
from .core.errors import (
    AppIndexError,
    AppNotFoundError,
    InvalidManualEntryError,
    LaunchError,
    PersistenceError,
)
from .core.models import ApplicationRecord
from .utils.config import ConfigManager

__version__ = "0.1.0"

__all__ = [
    'AppIndexService',
    'ApplicationRecord',
    'ConfigManager',
    'create_service',
    'AppIndexError',
    'AppNotFoundError',
    'InvalidManualEntryError',
    'LaunchError',
    'PersistenceError'
]
