"""
Installed-programs reader for Windows
Walks the Uninstall registry keys and resolves each entry to an executable
"""

import logging
import os
import re
from typing import Dict, Iterator, List, Optional, Set, Tuple

from ..core.errors import SourceUnavailableError
from ..core.models import RawCandidate
from ..utils.paths import IS_WINDOWS, is_executable_file
from .base import SourceReader

logger = logging.getLogger(__name__)

UNINSTALL_KEY = r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall"
UNINSTALL_KEY_WOW64 = r"SOFTWARE\WOW6432Node\Microsoft\Windows\CurrentVersion\Uninstall"

REGISTRY_VALUES = ("DisplayName", "DisplayIcon", "InstallLocation", "SystemComponent")

_TOKEN_RE = re.compile(r"[a-z0-9]+")


def name_tokens(text: str) -> Set[str]:
    """Word tokens long enough to be meaningful when matching file names"""
    return {token for token in _TOKEN_RE.findall(text.lower()) if len(token) >= 3}


def clean_icon_path(display_icon: str) -> str:
    """'"C:\\App\\app.exe",0' -> 'C:\\App\\app.exe'"""
    value = (display_icon or "").strip()
    if "," in value:
        head, _, tail = value.rpartition(",")
        if tail.strip().lstrip("-").isdigit():
            value = head
    return value.strip().strip('"').strip()


class RegistryReader(SourceReader):
    name = "registry"

    def __init__(self, exclusion=None, hives: Optional[List[Tuple[int, str]]] = None):
        super().__init__(exclusion)
        self.hives = hives

    def scan(self) -> List[RawCandidate]:
        apps: List[RawCandidate] = []
        seen: Set[str] = set()

        for values in self._iter_entries():
            try:
                candidate = self.resolve_entry(values)
            except OSError as e:
                logger.debug(f"Skipping registry entry {values.get('DisplayName')!r}: {e}")
                continue

            if candidate and candidate.path.lower() not in seen:
                seen.add(candidate.path.lower())
                apps.append(candidate)

        return apps

    def resolve_entry(self, values: Dict[str, object]) -> Optional[RawCandidate]:
        """Turn one Uninstall entry into a candidate, or None when it has no executable"""
        name = str(values.get("DisplayName") or "").strip()
        if not name:
            return None

        if str(values.get("SystemComponent") or "0") == "1":
            return None

        exe_path = self._resolve_executable(
            name,
            str(values.get("DisplayIcon") or ""),
            str(values.get("InstallLocation") or ""),
        )
        if not exe_path:
            return None

        return self._candidate(name, exe_path)

    def _resolve_executable(self, name: str, display_icon: str, install_location: str) -> Optional[str]:
        # (a) Declared icon / display executable
        icon_path = clean_icon_path(display_icon)
        if icon_path and is_executable_file(icon_path):
            return icon_path

        install_dir = install_location.strip().strip('"')
        if not install_dir or not os.path.isdir(install_dir):
            return None

        executables = sorted(
            entry.path for entry in self._list_dir(install_dir)
            if is_executable_file(entry.path)
            and not self.exclusion.is_excluded(os.path.splitext(entry.name)[0], entry.path)
        )
        if not executables:
            return None

        # (b) An executable sharing a token with the display name
        wanted = name_tokens(name)
        for exe in executables:
            if wanted & name_tokens(os.path.splitext(os.path.basename(exe))[0]):
                return exe

        # (c) Otherwise the first executable found
        return executables[0]

    def _iter_entries(self) -> Iterator[Dict[str, object]]:
        """Yield the values of every Uninstall subkey"""
        if not IS_WINDOWS:
            logger.debug("Registry reader skipped: not running on Windows")
            return

        import winreg

        hives = self.hives or [
            (winreg.HKEY_LOCAL_MACHINE, UNINSTALL_KEY),
            (winreg.HKEY_LOCAL_MACHINE, UNINSTALL_KEY_WOW64),
            (winreg.HKEY_CURRENT_USER, UNINSTALL_KEY),
        ]

        opened = 0
        for hkey, path in hives:
            try:
                key = winreg.OpenKey(hkey, path)
            except OSError as e:
                self._root_failed(path, e)
                continue

            opened += 1
            with key:
                i = 0
                while True:
                    try:
                        subkey_name = winreg.EnumKey(key, i)
                    except OSError:
                        break
                    i += 1

                    try:
                        with winreg.OpenKey(key, subkey_name) as subkey:
                            yield self._read_values(winreg, subkey)
                    except OSError:
                        continue

        if not opened:
            raise SourceUnavailableError(self.name, "no Uninstall key could be opened")

    @staticmethod
    def _read_values(winreg, subkey) -> Dict[str, object]:
        values: Dict[str, object] = {}
        for value_name in REGISTRY_VALUES:
            try:
                values[value_name] = winreg.QueryValueEx(subkey, value_name)[0]
            except OSError:
                pass
        return values
