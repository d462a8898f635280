"""
Path helpers shared by the readers, the merger and the launcher
"""

import os
import re
import sys
from typing import Tuple

IS_WINDOWS = sys.platform == "win32"

WINDOWS_EXECUTABLE_EXTENSIONS = {".exe"}
_NON_LAUNCHABLE_SUFFIXES = {".so", ".dylib", ".dll", ".a", ".o", ".la"}

# "C:\Program Files\App\app.exe --flag" -> executable ends at the first
# launchable suffix followed by whitespace or the end of the string
_WINDOWS_EXECUTABLE_RE = re.compile(r"^(.+?\.(?:exe|bat|cmd|com))(?=\s|$)", re.IGNORECASE)
# "/usr/bin/app --flag" or "/usr/bin/app %U"
_TRAILING_ARGS_RE = re.compile(r"\s+[-%]")


def split_command(path: str) -> Tuple[str, str]:
    """Split a stored application path into (executable, argument string)"""
    text = (path or "").strip()

    if text.startswith('"'):
        end = text.find('"', 1)
        if end == -1:
            return text.strip('"').strip(), ""
        return text[1:end].strip(), text[end + 1:].strip()

    match = _WINDOWS_EXECUTABLE_RE.match(text)
    if match:
        return match.group(1), text[match.end():].strip()

    match = _TRAILING_ARGS_RE.search(text)
    if match:
        return text[:match.start()], text[match.start():].strip()

    return text, ""


def executable_of(path: str) -> str:
    """Executable component of a path, quoting and arguments removed"""
    return split_command(path)[0]


def identity_key(path: str) -> str:
    """Deduplication key: the executable component, case-insensitive"""
    return executable_of(path).lower()


def normalized_path(path: str) -> str:
    """Lowercase path with forward slashes, used for token matching"""
    return (path or "").lower().replace("\\", "/")


def pretty_name(file_name: str) -> str:
    """Turn an executable file name into a display name"""
    stem = os.path.splitext(os.path.basename(file_name))[0]
    return stem.replace('_', ' ').replace('-', ' ').strip().title()


def is_executable_file(path: str) -> bool:
    """Check whether path is a launchable binary on this platform"""
    try:
        if not os.path.isfile(path):
            return False
    except (OSError, ValueError):
        return False

    name = os.path.basename(path).lower()
    suffix = os.path.splitext(name)[1]

    if IS_WINDOWS:
        return suffix in WINDOWS_EXECUTABLE_EXTENSIONS

    if suffix in _NON_LAUNCHABLE_SUFFIXES or ".so." in name:
        return False
    return os.access(path, os.X_OK)
