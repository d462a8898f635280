"""
Data model for the application index
"""

import time
import uuid
from dataclasses import dataclass, field, asdict, replace
from typing import Dict, Optional, Any

from ..utils.paths import identity_key

DEFAULT_CATEGORY = "Applications"
DEFAULT_ICON = "default-icon"


def now_seconds() -> int:
    return int(time.time())


def new_app_id() -> str:
    return str(uuid.uuid4())


@dataclass
class ApplicationRecord:
    id: str
    name: str
    path: str
    icon: str = DEFAULT_ICON
    category: str = DEFAULT_CATEGORY
    last_accessed: Optional[int] = None
    access_count: int = 0
    source: str = "manual"  # "registry", "shortcut", "filesystem", "manual"

    @property
    def key(self) -> str:
        return identity_key(self.path)

    def copy(self) -> "ApplicationRecord":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApplicationRecord":
        """Build a record from cached data, ignoring fields we don't know"""
        last_accessed = data.get('last_accessed')
        return cls(
            id=str(data['id']),
            name=str(data['name']),
            path=str(data['path']),
            icon=str(data.get('icon') or DEFAULT_ICON),
            category=str(data.get('category') or DEFAULT_CATEGORY),
            last_accessed=int(last_accessed) if last_accessed is not None else None,
            access_count=max(0, int(data.get('access_count', 0) or 0)),
            source=str(data.get('source') or "manual"),
        )


@dataclass
class RawCandidate:
    """An application as seen by one source reader, before merging"""
    name: str
    path: str
    source: str


@dataclass
class Inventory:
    apps: Dict[str, ApplicationRecord] = field(default_factory=dict)
    last_update: int = 0

    def copy(self) -> "Inventory":
        return Inventory(
            apps={app_id: app.copy() for app_id, app in self.apps.items()},
            last_update=self.last_update,
        )

    def is_stale(self, ttl: float, now: Optional[float] = None) -> bool:
        """A never-built inventory is always stale"""
        if self.last_update == 0:
            return True
        current = now_seconds() if now is None else now
        return current - self.last_update >= ttl

    def find_by_key(self, key: str) -> Optional[ApplicationRecord]:
        for app in self.apps.values():
            if app.key == key:
                return app
        return None

    def find_by_name(self, name: str) -> Optional[ApplicationRecord]:
        name_lower = name.strip().lower()
        for app in self.apps.values():
            if app.name.strip().lower() == name_lower:
                return app
        return None
