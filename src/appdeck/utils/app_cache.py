"""
Persistent app index cache
Mirrors the in-memory inventory to a single JSON document on disk
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict

from ..core.errors import PersistenceError
from ..core.models import ApplicationRecord, Inventory

logger = logging.getLogger(__name__)


def inventory_to_document(inventory: Inventory) -> Dict[str, Any]:
    return {
        'apps': {app_id: app.to_dict() for app_id, app in inventory.apps.items()},
        'last_update': inventory.last_update,
    }


def inventory_from_document(document: Any) -> Inventory:
    """Parse a cache document; malformed records are skipped"""
    if not isinstance(document, dict):
        raise ValueError("cache root is not an object")

    apps_data = document.get('apps') or {}
    if not isinstance(apps_data, dict):
        raise ValueError("'apps' is not an object")

    inventory = Inventory(last_update=int(document.get('last_update') or 0))
    for app_id, app_data in apps_data.items():
        try:
            if not isinstance(app_data, dict):
                raise TypeError("record is not an object")
            app = ApplicationRecord.from_dict({**app_data, 'id': app_id})
        except (KeyError, TypeError, ValueError) as e:
            logger.debug(f"Skipping cached app {app_id!r}: {e}")
            continue
        inventory.apps[app.id] = app

    return inventory


class AppCache:
    def __init__(self, cache_file: Path):
        self.cache_file = Path(cache_file)
        self._write_lock = threading.Lock()

    def load(self) -> Inventory:
        """Load the index; a missing or corrupt file yields an empty inventory"""
        if not self.cache_file.exists():
            logger.info(f"No app index cache at {self.cache_file}")
            return Inventory()

        try:
            with open(self.cache_file, 'r', encoding='utf-8') as f:
                inventory = inventory_from_document(json.load(f))
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Ignoring unreadable app index cache {self.cache_file}: {e}")
            return Inventory()

        logger.info(f"Loaded {len(inventory.apps)} applications from cache")
        return inventory

    def save(self, inventory: Inventory):
        """Write the index atomically and read it back; raises PersistenceError"""
        try:
            data = json.dumps(inventory_to_document(inventory), indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Could not serialize app index: {e}") from e

        with self._write_lock:
            written = self._write(data)

        if len(written.get('apps', {})) != len(inventory.apps):
            raise PersistenceError(f"App index verification failed for {self.cache_file}")

        logger.debug(f"Cached {len(inventory.apps)} applications")

    def _write(self, data: str) -> Dict[str, Any]:
        """Replace the cache file with data and return what reads back"""
        tmp_name = None
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile('w', delete=False, dir=self.cache_file.parent,
                                             prefix=self.cache_file.name, suffix='.tmp',
                                             encoding='utf-8') as tmp:
                tmp_name = tmp.name
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.cache_file)
            tmp_name = None

            with open(self.cache_file, 'r', encoding='utf-8') as f:
                written = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Could not write app index to {self.cache_file}: {e}") from e
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        return written
