"""
Live application index

The inventory sits behind a single lock. Every read and write holds it only
for in-memory work; disk I/O happens before taking it or after releasing it,
and saves triggered from here run on a dedicated background executor.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, Tuple

from . import query_engine
from .errors import PersistenceError
from .merger import ClassifiedCandidate, apply_manual_entry, merge
from .models import ApplicationRecord, Inventory, now_seconds

logger = logging.getLogger(__name__)


class AppIndexStore:
    def __init__(self, inventory: Optional[Inventory] = None,
                 persist: Optional[Callable[[Inventory], None]] = None):
        self._inventory = inventory if inventory is not None else Inventory()
        self._lock = threading.Lock()
        self._persist = persist
        self._save_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="appdeck-save")

    # Reads

    def snapshot(self) -> Inventory:
        """Consistent copy of the whole inventory"""
        with self._lock:
            return self._inventory.copy()

    def get(self, app_id: str) -> Optional[ApplicationRecord]:
        with self._lock:
            app = self._inventory.apps.get(app_id)
            return app.copy() if app else None

    def search(self, query: str, limit: int = query_engine.MAX_RESULTS) -> List[ApplicationRecord]:
        with self._lock:
            results = query_engine.search(self._inventory.apps.values(), query, limit)
            return [app.copy() for app in results]

    def recent(self, limit: int = query_engine.MAX_RESULTS) -> List[ApplicationRecord]:
        with self._lock:
            results = query_engine.recent(self._inventory.apps.values(), limit)
            return [app.copy() for app in results]

    def status(self) -> Tuple[int, int]:
        """(app count, last update timestamp)"""
        with self._lock:
            return len(self._inventory.apps), self._inventory.last_update

    def is_stale(self, ttl: float, now: Optional[float] = None) -> bool:
        with self._lock:
            return self._inventory.is_stale(ttl, now)

    # Writes

    def replace(self, inventory: Inventory):
        """Swap in a new inventory wholesale (used when seeding from the cache)"""
        with self._lock:
            self._inventory = inventory

    def commit_rebuild(self, fresh: Iterable[ClassifiedCandidate], now: Optional[int] = None) -> Inventory:
        """Merge scan results into the live inventory.

        The merge runs against whatever is live at commit time, so launches and
        manual entries recorded while the scan ran are kept exactly as if the
        rebuild had happened after them.
        """
        fresh = list(fresh)
        with self._lock:
            self._inventory = merge(self._inventory, fresh, now)
            committed = self._inventory.copy()

        logger.info(f"App index rebuilt: {len(committed.apps)} applications")
        return committed

    def record_access(self, app_id: str, now: Optional[int] = None) -> Optional[ApplicationRecord]:
        """Count a launch. Unknown ids are ignored (the index may have been rebuilt)."""
        with self._lock:
            app = self._inventory.apps.get(app_id)
            if app is None:
                logger.debug(f"record_access: no app with id {app_id}")
                return None

            app.access_count += 1
            app.last_accessed = now_seconds() if now is None else now
            updated = app.copy()

        self.save_async()
        return updated

    def upsert_manual(self, name: str, path: str, category: str, icon: str) -> ApplicationRecord:
        """Add or update a manually entered application"""
        with self._lock:
            return apply_manual_entry(self._inventory, name, path, category, icon)

    # Persistence
    #
    # Every save runs on the single save thread and snapshots the inventory
    # when it runs, so the last save to finish always writes the newest state.

    def save_async(self):
        if self._persist is None:
            return
        try:
            self._save_executor.submit(self._save_quietly)
        except RuntimeError:
            # Executor already shut down
            logger.warning("App index save skipped: store is closed")

    def save(self, timeout: Optional[float] = None):
        """Save now and wait for it; raises PersistenceError"""
        if self._persist is None:
            return
        try:
            future = self._save_executor.submit(self._save_latest)
        except RuntimeError:
            raise PersistenceError("App index store is closed")
        future.result(timeout=timeout)

    def _save_latest(self):
        self._persist(self.snapshot())

    def _save_quietly(self):
        try:
            self._save_latest()
        except PersistenceError as e:
            logger.error(f"Background app index save failed: {e}")
        except Exception:
            logger.exception("Unexpected error while saving the app index")

    def flush(self, timeout: Optional[float] = None):
        """Wait until every queued background save has run"""
        try:
            self._save_executor.submit(lambda: None).result(timeout=timeout)
        except RuntimeError:
            # Shut down executors have already drained
            pass

    def close(self):
        self._save_executor.shutdown(wait=True)
