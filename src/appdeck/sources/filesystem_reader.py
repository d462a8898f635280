"""
Filesystem tree walker
Fallback source for apps that are neither registered nor linked anywhere
(portable tools, game libraries on secondary drives, /opt installs)
"""

import logging
import os
import string
import sys
from pathlib import Path
from typing import List, Optional

from ..core.models import RawCandidate
from ..utils.paths import IS_WINDOWS, is_executable_file, pretty_name
from .base import SourceReader

logger = logging.getLogger(__name__)

EXCLUDED_DIR_NAMES = {
    "node_modules",
    "__pycache__",
    ".git",
    ".venv",
    ".idea",
    "temp",
    "tmp",
    "cache",
    "logs",
    "locales",
    "redist",
    "_commonredist",
    "installer",
}

# Game launcher libraries commonly placed on non-system drives
SECONDARY_DRIVE_DIRS = (
    "Games",
    os.path.join("SteamLibrary", "steamapps", "common"),
    "Epic Games",
    "GOG Games",
)


def default_application_roots() -> List[str]:
    """Well-known application roots for the current platform"""
    if IS_WINDOWS:
        roots = [
            os.environ.get('ProgramFiles', 'C:\\Program Files'),
            os.environ.get('ProgramFiles(x86)', 'C:\\Program Files (x86)'),
            os.path.join(os.environ.get('LOCALAPPDATA', ''), 'Programs'),
        ]
        system_drive = os.environ.get('SystemDrive', 'C:').rstrip('\\').upper()
        for letter in string.ascii_uppercase[3:]:
            drive = f"{letter}:"
            if drive == system_drive:
                continue
            for sub in SECONDARY_DRIVE_DIRS:
                roots.append(os.path.join(drive + os.sep, sub))
        return roots

    home = Path.home()
    if sys.platform == "darwin":
        return [str(home / "Applications"), "/Applications", "/opt"]
    return [str(home / "Applications"), str(home / ".local" / "bin"), "/opt"]


class FilesystemReader(SourceReader):
    name = "filesystem"

    def __init__(self, roots: Optional[List[str]] = None, exclusion=None, max_depth: int = 3):
        super().__init__(exclusion)
        self.roots = list(roots) if roots is not None else default_application_roots()
        self.max_depth = max_depth

    def scan(self) -> List[RawCandidate]:
        apps: List[RawCandidate] = []

        for base_dir in self.roots:
            if not base_dir or not os.path.isdir(base_dir):
                continue
            try:
                os.scandir(base_dir).close()
            except OSError as e:
                self._root_failed(base_dir, e)
                continue

            self._scan_directory_for_apps(base_dir, apps, current_depth=0)

        return apps

    def _scan_directory_for_apps(self, directory: str, apps: List[RawCandidate], current_depth: int):
        """Recursively scan directory for executable applications"""
        if current_depth > self.max_depth:
            return

        for entry in self._list_dir(directory):
            try:
                if entry.is_dir(follow_symlinks=False):
                    if current_depth < self.max_depth and entry.name.lower() not in EXCLUDED_DIR_NAMES:
                        self._scan_directory_for_apps(entry.path, apps, current_depth + 1)
                    continue

                if not is_executable_file(entry.path):
                    continue
            except OSError as e:
                logger.debug(f"Skipping {entry.path}: {e}")
                continue

            candidate = self._candidate(pretty_name(entry.name), entry.path)
            if candidate:
                apps.append(candidate)
