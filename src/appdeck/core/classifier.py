"""
Heuristic application categorization

Rules are evaluated in order and the first match wins. Path rules come before
name rules so that e.g. a player bundled in an office suite stays "Office".
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..utils.paths import normalized_path
from .models import DEFAULT_CATEGORY

PATH = "path"
NAME = "name"
VENDOR = "vendor"
DIRECTORY = "directory"


@dataclass(frozen=True)
class CategoryRule:
    kind: str
    tokens: Tuple[str, ...]
    category: str

    def matches(self, path_lower: str, name_lower: str, vendor: Optional[str]) -> bool:
        if self.kind == NAME:
            return any(token in name_lower for token in self.tokens)
        if self.kind == VENDOR:
            return vendor is not None and vendor in self.tokens
        # PATH and DIRECTORY both look for "/segment/" tokens
        return any(token in path_lower for token in self.tokens)


CATEGORY_RULES: List[CategoryRule] = [
    # 1. Vendor / launcher directories
    CategoryRule(PATH, ("/system32/", "/windows/system/", "/windows kits/", "/driverstore/"), "System Tools"),
    CategoryRule(PATH, ("/steam/", "/steamapps/", "/epic games/", "/ubisoft/", "/riot games/", "/gog galaxy/"), "Games"),
    CategoryRule(PATH, ("/microsoft office/", "/libreoffice/", "/openoffice/"), "Office"),
    CategoryRule(PATH, ("/spotify/", "/vlc/", "/winamp/", "/itunes/"), "Media"),
    CategoryRule(PATH, ("/discord/", "/slack/", "/whatsapp/", "/telegram/"), "Social"),
    CategoryRule(PATH, ("/adobe/", "/gimp/", "/blender/", "/corel/"), "Design"),
    CategoryRule(PATH, ("/microsoft vs code/", "/jetbrains/", "/github/", "/nodejs/"), "Development"),

    # 2. Name keywords
    CategoryRule(NAME, ("browser", "chrome", "firefox", "edge", "web"), "Browsers"),
    CategoryRule(NAME, ("word", "excel", "powerpoint"), "Office"),
    CategoryRule(NAME, ("steam", "launcher", "game"), "Games"),
    CategoryRule(NAME, ("spotify", "player", "music"), "Media"),
    CategoryRule(NAME, ("discord", "chat", "message"), "Social"),
    CategoryRule(NAME, ("code", "studio", "dev"), "Development"),
    CategoryRule(NAME, ("photo", "paint", "draw"), "Design"),
    CategoryRule(NAME, ("zip", "cleaner", "tool"), "Utilities"),

    # 3. Publisher directory under a Program Files-like root
    CategoryRule(VENDOR, ("valve", "epic games", "ubisoft"), "Games"),
    CategoryRule(VENDOR, ("microsoft office", "libreoffice"), "Office"),
    CategoryRule(VENDOR, ("adobe", "corel", "blender foundation"), "Design"),
    CategoryRule(VENDOR, ("mozilla", "google"), "Browsers"),
    CategoryRule(VENDOR, ("jetbrains", "github"), "Development"),

    # 4. Directory structure hints
    CategoryRule(DIRECTORY, ("/games/",), "Games"),
    CategoryRule(DIRECTORY, ("/development/",), "Development"),
    CategoryRule(DIRECTORY, ("/creative/",), "Design"),
]

PROGRAM_ROOTS = ("program files", "program files (x86)", "opt")


def vendor_directory(path_lower: str) -> Optional[str]:
    """Directory immediately below a Program Files-like root, if any"""
    parts = [part for part in path_lower.split("/") if part]
    for index, part in enumerate(parts[:-1]):
        if part in PROGRAM_ROOTS and index + 1 < len(parts) - 1:
            return parts[index + 1]
    return None


def categorize(path: str, name: str, rules: Optional[List[CategoryRule]] = None) -> str:
    """Assign a category to an application. Pure and total."""
    path_lower = normalized_path(path)
    name_lower = (name or "").lower()
    vendor = vendor_directory(path_lower)

    for rule in rules if rules is not None else CATEGORY_RULES:
        if rule.matches(path_lower, name_lower, vendor):
            return rule.category

    return DEFAULT_CATEGORY
