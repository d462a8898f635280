"""
Core of the AppDeck indexing engine
Data model and errors are re-exported here; the pipeline modules are imported
directly (``appdeck.core.app_service`` etc.)
"""

from .errors import (
    AppIndexError,
    AppNotFoundError,
    InvalidManualEntryError,
    LaunchError,
    PersistenceError,
    ShortcutResolutionError,
    SourceUnavailableError,
)
from .models import ApplicationRecord, Inventory, RawCandidate

__all__ = [
    'ApplicationRecord',
    'Inventory',
    'RawCandidate',
    'AppIndexError',
    'AppNotFoundError',
    'InvalidManualEntryError',
    'LaunchError',
    'PersistenceError',
    'ShortcutResolutionError',
    'SourceUnavailableError'
]
