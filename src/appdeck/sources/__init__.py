"""
Source readers for AppDeck
Each reader discovers application candidates from one origin
"""

from .base import SourceReader, collect_candidates
from .exclusion import ExclusionPolicy
from .filesystem_reader import FilesystemReader
from .icons import extract_icon, icon_or_default
from .registry_reader import RegistryReader
from .shortcut_reader import ShortcutReader, resolve_shortcut

__all__ = [
    'SourceReader',
    'ExclusionPolicy',
    'FilesystemReader',
    'RegistryReader',
    'ShortcutReader',
    'collect_candidates',
    'extract_icon',
    'icon_or_default',
    'resolve_shortcut'
]
