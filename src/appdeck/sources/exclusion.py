"""
Exclusion policy shared by every source reader

Decisions only look at the display name and the path, never at file contents,
so the same input always gets the same answer.
"""

import os
import re
from typing import Iterable, Optional

from ..utils.paths import normalized_path

OS_INTERNAL_DIRS = (
    "/system32/",
    "/syswow64/",
    "/windows/system/",
    "/windows kits/",
    "/driverstore/",
    "/proc/",
    "/sys/",
)

# C:\Windows\... but not ...\Microsoft\Windows\Start Menu\...
_WINDOWS_ROOT_RE = re.compile(r"^[a-z]:/windows/")

SYSTEM_TOOL_BLACKLIST = (
    "ipconfig", "disksnapshot", "cmd", "powershell", "msconfig", "eventvwr",
    "taskmgr", "chkdsk", "sfc", "diskpart", "netsh", "ping", "tracert",
)

# Substrings of the display name that mark non-applications
NAME_PATTERNS = (
    "uninstall", "remove", "redistributable", "vcredist",
    "update for", "security update", "hotfix", "runtime",
    "microsoft visual c++", "microsoft .net", "directx",
    "setup", "installer", "updater", "crash",
)

# Substrings of the path that mark non-applications
PATH_PATTERNS = ("uninstall", "/uninst", "vcredist")

ALLOW_LIST = ("steam", "visual studio code")
ALLOWED_PATH_TOKENS = ("vscode",)
ALLOWED_EXACT_NAMES = ("code",)


class ExclusionPolicy:
    def __init__(self, allow_list: Optional[Iterable[str]] = None,
                 blacklist: Optional[Iterable[str]] = None):
        self.allow_list = tuple(ALLOW_LIST) + tuple(t.lower() for t in allow_list or ())
        self.blacklist = tuple(SYSTEM_TOOL_BLACKLIST) + tuple(t.lower() for t in blacklist or ())

    @classmethod
    def from_config(cls, config) -> "ExclusionPolicy":
        settings = config.get_exclusion_settings()
        return cls(settings.get("allow_list") or (), settings.get("blacklist") or ())

    def is_allowed(self, name_lower: str, path_lower: str) -> bool:
        """Allow-list override: never excluded"""
        if any(token in name_lower for token in self.allow_list):
            return True
        if name_lower in ALLOWED_EXACT_NAMES:
            return True
        return any(token in path_lower for token in ALLOWED_PATH_TOKENS)

    def is_excluded(self, name: str, path: str) -> bool:
        """Return True when the candidate should not enter the index"""
        name_lower = (name or "").strip().lower()
        path_lower = normalized_path(path)
        stem = os.path.splitext(path_lower.rsplit("/", 1)[-1])[0]

        if self.is_allowed(name_lower, path_lower):
            return False

        if len(name_lower) <= 2:
            return True

        if _WINDOWS_ROOT_RE.match(path_lower) or any(token in path_lower for token in OS_INTERNAL_DIRS):
            return True

        if name_lower in self.blacklist or stem in self.blacklist:
            return True

        if name_lower.startswith("unins") or stem.startswith("unins"):
            return True

        if any(pattern in name_lower for pattern in NAME_PATTERNS):
            return True

        if any(pattern in stem for pattern in ("uninstall", "setup", "installer", "updater", "vcredist")):
            return True

        if any(pattern in path_lower for pattern in PATH_PATTERNS):
            return True

        # "Microsoft Visual C++ 2015-2022 ..." style redistributables
        return "visual c++" in name_lower and "20" in name_lower
