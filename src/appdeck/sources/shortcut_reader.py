"""
Shortcut / link reader
Resolves desktop and start-menu shortcuts to the executables they launch
"""

import configparser
import logging
import os
import plistlib
import re
import shlex
import shutil
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from ..core.errors import ShortcutResolutionError
from ..core.models import RawCandidate
from ..utils.paths import IS_WINDOWS, executable_of, is_executable_file
from .base import SourceReader

logger = logging.getLogger(__name__)

BUNDLE_SUFFIX = ".app"

# Desktop entry Exec= field codes (%f, %U, %i, ...)
_FIELD_CODE_RE = re.compile(r"%[fFuUdDnNickvm]")


def default_shortcut_dirs() -> List[str]:
    """Desktop and start-menu style folders for the current platform"""
    home = Path.home()

    if IS_WINDOWS:
        dirs = [
            home / "Desktop",
            Path(os.environ.get("PUBLIC", r"C:\Users\Public")) / "Desktop",
            Path(os.environ.get("APPDATA", "")) / "Microsoft" / "Windows" / "Start Menu" / "Programs",
            Path(os.environ.get("PROGRAMDATA", r"C:\ProgramData")) / "Microsoft" / "Windows" / "Start Menu" / "Programs",
        ]
    elif sys.platform == "darwin":
        dirs = [home / "Desktop", home / "Applications", Path("/Applications")]
    else:
        data_home = Path(os.environ.get("XDG_DATA_HOME", home / ".local" / "share"))
        dirs = [
            home / "Desktop",
            data_home / "applications",
            Path("/usr/local/share/applications"),
            Path("/usr/share/applications"),
        ]

    return [str(d) for d in dirs]


def _resolve_lnk(link_path: str) -> str:
    """Ask the Windows shell for a .lnk target"""
    if not IS_WINDOWS:
        raise ShortcutResolutionError(f"Cannot resolve {link_path}: .lnk files need Windows")

    import pythoncom
    import pywintypes
    import win32com.client

    # COM must be initialized on every thread that uses it
    pythoncom.CoInitialize()
    try:
        shell = win32com.client.Dispatch("WScript.Shell")
        shortcut = shell.CreateShortCut(link_path)
        target = shortcut.TargetPath
    except pywintypes.com_error as e:
        raise ShortcutResolutionError(f"Failed to load shortcut file {link_path}: {e}") from e
    finally:
        pythoncom.CoUninitialize()

    if not target:
        raise ShortcutResolutionError(f"Shortcut {link_path} has no target path")
    return target


def read_desktop_entry(entry_path: str) -> Tuple[str, str]:
    """Parse a freedesktop .desktop file into (name, command)"""
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    try:
        with open(entry_path, 'r', encoding='utf-8', errors='replace') as f:
            parser.read_file(f)
    except (OSError, configparser.Error) as e:
        raise ShortcutResolutionError(f"Failed to read desktop entry {entry_path}: {e}") from e

    if not parser.has_section("Desktop Entry"):
        raise ShortcutResolutionError(f"{entry_path} has no [Desktop Entry] section")

    entry = parser["Desktop Entry"]
    if entry.get("Type", "Application") != "Application":
        raise ShortcutResolutionError(f"{entry_path} is not an application entry")
    if entry.get("NoDisplay", "false").lower() == "true" or entry.get("Hidden", "false").lower() == "true":
        raise ShortcutResolutionError(f"{entry_path} is hidden")

    name = entry.get("Name") or Path(entry_path).stem
    command = _FIELD_CODE_RE.sub("", entry.get("Exec", "")).strip()

    try:
        parts = shlex.split(command)
    except ValueError as e:
        raise ShortcutResolutionError(f"Bad Exec line in {entry_path}: {e}") from e

    # Drop "env VAR=value" prefixes
    if parts and os.path.basename(parts[0]) == "env":
        parts = parts[1:]
    while parts and "=" in parts[0] and not parts[0].startswith(("/", "-")):
        parts = parts[1:]
    if not parts:
        raise ShortcutResolutionError(f"{entry_path} has no Exec command")

    executable = parts[0] if os.path.isabs(parts[0]) else shutil.which(parts[0])
    if not executable:
        raise ShortcutResolutionError(f"{parts[0]} from {entry_path} is not on PATH")

    if len(parts) == 1:
        return name, executable
    args = " ".join(shlex.quote(arg) for arg in parts[1:])
    return name, f'"{executable}" {args}'


def read_app_bundle(bundle_path: str) -> Tuple[str, str]:
    """Resolve a macOS .app bundle to (name, executable)"""
    contents = Path(bundle_path) / "Contents"
    try:
        with open(contents / "Info.plist", 'rb') as f:
            info = plistlib.load(f)
    except (OSError, plistlib.InvalidFileException, ValueError) as e:
        raise ShortcutResolutionError(f"Failed to read bundle {bundle_path}: {e}") from e

    executable_name = info.get("CFBundleExecutable") or Path(bundle_path).stem
    name = info.get("CFBundleDisplayName") or info.get("CFBundleName") or Path(bundle_path).stem
    return str(name), str(contents / "MacOS" / executable_name)


def resolve_shortcut(link_path: str) -> str:
    """Resolve a shortcut (.lnk, .desktop or .app) to its target command"""
    suffix = os.path.splitext(link_path.rstrip("/\\"))[1].lower()

    if suffix == ".lnk":
        return _resolve_lnk(link_path)
    if suffix == ".desktop":
        return read_desktop_entry(link_path)[1]
    if suffix == BUNDLE_SUFFIX:
        return read_app_bundle(link_path)[1]

    raise ShortcutResolutionError(f"Unsupported shortcut type: {link_path}")


class ShortcutReader(SourceReader):
    name = "shortcut"

    def __init__(self, directories: Optional[List[str]] = None, exclusion=None, max_depth: int = 5):
        super().__init__(exclusion)
        self.directories = list(directories) if directories is not None else default_shortcut_dirs()
        self.max_depth = max_depth

    def scan(self) -> List[RawCandidate]:
        apps: List[RawCandidate] = []

        for directory in self.directories:
            if not directory or not os.path.isdir(directory):
                logger.debug(f"Shortcut folder not present: {directory}")
                continue
            try:
                os.scandir(directory).close()
            except OSError as e:
                self._root_failed(directory, e)
                continue

            self._scan_directory(directory, apps, current_depth=0)

        return apps

    def _scan_directory(self, directory: str, apps: List[RawCandidate], current_depth: int):
        """Recursively scan a shortcut folder, bounded by max_depth"""
        for entry in self._list_dir(directory):
            try:
                candidate = self._read_entry(entry, apps, current_depth)
            except ShortcutResolutionError as e:
                logger.debug(str(e))
                continue
            except OSError as e:
                logger.debug(f"Skipping {entry.path}: {e}")
                continue

            if candidate:
                apps.append(candidate)

    def _read_entry(self, entry: os.DirEntry, apps: List[RawCandidate], current_depth: int) -> Optional[RawCandidate]:
        suffix = os.path.splitext(entry.name)[1].lower()

        if entry.is_dir():
            if suffix == BUNDLE_SUFFIX:
                name, target = read_app_bundle(entry.path)
                return self._accept(name, target)
            if current_depth < self.max_depth:
                self._scan_directory(entry.path, apps, current_depth + 1)
            return None

        if suffix == ".desktop":
            name, target = read_desktop_entry(entry.path)
            return self._accept(name, target)

        if suffix == ".lnk":
            return self._accept(os.path.splitext(entry.name)[0], resolve_shortcut(entry.path))

        if is_executable_file(entry.path):
            return self._accept(os.path.splitext(entry.name)[0], entry.path)

        return None

    def _accept(self, name: str, target: str) -> Optional[RawCandidate]:
        if not is_executable_file(executable_of(target)):
            return None
        return self._candidate(name, target)
