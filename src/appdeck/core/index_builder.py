"""
Rebuild pipeline: readers -> classifier -> merger -> store -> cache
"""

import logging
from typing import Callable, List, Optional, Sequence

from ..sources import ExclusionPolicy, FilesystemReader, RegistryReader, ShortcutReader, SourceReader
from ..sources import collect_candidates, icon_or_default
from ..sources.filesystem_reader import default_application_roots
from ..sources.shortcut_reader import default_shortcut_dirs
from .app_index import AppIndexStore
from .classifier import categorize
from .errors import PersistenceError
from .merger import ClassifiedCandidate
from .models import DEFAULT_CATEGORY, DEFAULT_ICON, Inventory

logger = logging.getLogger(__name__)


def default_readers(config=None, exclusion: Optional[ExclusionPolicy] = None) -> List[SourceReader]:
    """Readers in priority order: installation records, shortcuts, filesystem"""
    if exclusion is None:
        exclusion = ExclusionPolicy.from_config(config) if config else ExclusionPolicy()

    shortcut_dirs = default_shortcut_dirs()
    roots = default_application_roots()
    shortcut_depth = 5
    filesystem_depth = 3

    if config is not None:
        index_settings = config.get_index_settings()
        shortcut_dirs += config.get_extra_shortcut_dirs()
        roots += config.get_extra_roots()
        shortcut_depth = int(index_settings.get("shortcut_max_depth", shortcut_depth))
        filesystem_depth = int(index_settings.get("filesystem_max_depth", filesystem_depth))

    return [
        RegistryReader(exclusion=exclusion),
        ShortcutReader(directories=shortcut_dirs, exclusion=exclusion, max_depth=shortcut_depth),
        FilesystemReader(roots=roots, exclusion=exclusion, max_depth=filesystem_depth),
    ]


class IndexBuilder:
    def __init__(self, readers: Sequence[SourceReader], store: AppIndexStore,
                 classify: Callable[[str, str], str] = categorize,
                 icon_for: Callable[[str], str] = icon_or_default):
        self.readers = list(readers)
        self.store = store
        self.classify = classify
        self.icon_for = icon_for

    def build(self) -> Inventory:
        """Scan every source, commit the result and wait for it to be saved"""
        logger.info("Rebuilding app index...")

        candidates = collect_candidates(self.readers)
        classified = [self._classify(candidate) for candidate in candidates]

        committed = self.store.commit_rebuild(classified)

        try:
            self.store.save()
        except PersistenceError as e:
            # The in-memory index stays authoritative
            logger.error(f"Could not persist rebuilt app index: {e}")

        return committed

    def _classify(self, candidate) -> ClassifiedCandidate:
        try:
            category = self.classify(candidate.path, candidate.name)
        except Exception:
            logger.exception(f"Classifier failed for {candidate.path}")
            category = DEFAULT_CATEGORY

        try:
            icon = self.icon_for(candidate.path) or DEFAULT_ICON
        except Exception:
            logger.exception(f"Icon extraction failed for {candidate.path}")
            icon = DEFAULT_ICON

        return candidate, category, icon
