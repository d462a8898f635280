"""
Source reader contract

A reader pulls raw application candidates from one origin. Unreadable entries
are skipped; a root that cannot be opened is logged and remembered in
``unavailable_roots``; a reader that cannot run at all raises
SourceUnavailableError. None of this ever stops the other readers.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..core.errors import SourceUnavailableError
from ..core.models import RawCandidate
from .exclusion import ExclusionPolicy

logger = logging.getLogger(__name__)


class SourceReader(ABC):
    name = "source"

    def __init__(self, exclusion: Optional[ExclusionPolicy] = None):
        self.exclusion = exclusion or ExclusionPolicy()
        self.unavailable_roots: List[str] = []

    @abstractmethod
    def scan(self) -> List[RawCandidate]:
        """Return every candidate found by this reader"""

    def _candidate(self, name: str, path: str) -> Optional[RawCandidate]:
        """Apply the shared exclusion policy to a resolved entry"""
        name = (name or "").strip()
        if not name or self.exclusion.is_excluded(name, path):
            return None
        return RawCandidate(name=name, path=path, source=self.name)

    def _root_failed(self, root: str, error: Exception):
        self.unavailable_roots.append(root)
        logger.warning(f"{self.name}: cannot read {root}: {error}")

    def _list_dir(self, directory: str) -> List[os.DirEntry]:
        """List a directory below a root, swallowing per-entry errors"""
        try:
            with os.scandir(directory) as entries:
                return list(entries)
        except OSError as e:
            logger.debug(f"{self.name}: skipping {directory}: {e}")
            return []


def collect_candidates(readers: Sequence[SourceReader]) -> List[RawCandidate]:
    """Run every reader in priority order; a failing reader contributes nothing"""
    candidates: List[RawCandidate] = []

    for reader in readers:
        try:
            found = reader.scan()
        except SourceUnavailableError as e:
            logger.warning(str(e))
            continue
        except Exception:
            logger.exception(f"Source reader {reader.name} failed")
            continue

        logger.info(f"{reader.name}: {len(found)} candidates")
        candidates.extend(found)

    return candidates
