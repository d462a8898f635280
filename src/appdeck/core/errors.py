"""
Exceptions raised by the AppDeck indexing engine
"""


class AppIndexError(Exception):
    """Base class for every error raised by the index engine"""


class SourceUnavailableError(AppIndexError):
    """A source reader could not open its root (registry hive, directory)"""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source} unavailable: {reason}")
        self.source = source
        self.reason = reason


class InvalidManualEntryError(AppIndexError):
    """A manually added application was rejected; nothing was changed"""


class PersistenceError(AppIndexError):
    """The index could not be written to (or verified on) disk"""


class AppNotFoundError(AppIndexError):
    """No application with the requested id exists in the index"""

    def __init__(self, app_id: str):
        super().__init__(f"App not found with ID: {app_id}")
        self.app_id = app_id


class LaunchError(AppIndexError):
    """The external launcher failed to start the application"""


class ShortcutResolutionError(AppIndexError):
    """A shortcut file could not be resolved to its target"""
