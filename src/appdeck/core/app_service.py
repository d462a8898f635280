"""
AppDeck command surface
The operations the launcher UI calls: search, recents, status, launch,
refresh and manual registration
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..sources import SourceReader, icon_or_default
from ..utils.app_cache import AppCache
from .app_index import AppIndexStore
from .classifier import categorize
from .errors import AppNotFoundError, PersistenceError
from .index_builder import IndexBuilder, default_readers
from .launcher import launch_application
from .merger import validate_manual_entry
from .models import ApplicationRecord
from .refresh_scheduler import RefreshScheduler

logger = logging.getLogger(__name__)


class AppIndexService:
    def __init__(self, store: AppIndexStore, readers: Sequence[SourceReader],
                 cache: Optional[AppCache] = None,
                 launcher: Callable[[str], Any] = launch_application,
                 staleness_ttl: float = 3600, periodic_interval: float = 21600):
        self.store = store
        self.cache = cache
        self.launcher = launcher

        self.builder = IndexBuilder(readers, store)
        self.scheduler = RefreshScheduler(
            rebuild=self.builder.build,
            is_stale=store.is_stale,
            staleness_ttl=staleness_ttl,
            periodic_interval=periodic_interval,
        )

    # Lifecycle

    def start(self, initial_refresh: bool = True):
        """Start background indexing; the first rebuild runs right away"""
        self.scheduler.start(initial_refresh=initial_refresh)

    def shutdown(self, timeout: Optional[float] = None):
        """Stop the refresh worker and flush pending saves"""
        logger.info("Shutting down app index service")
        self.scheduler.stop(timeout)
        self.store.close()

    # Queries

    def search_apps(self, query: str) -> List[ApplicationRecord]:
        # Answer from the current inventory; a stale one is rebuilt behind us
        self.scheduler.request_refresh(force=False)
        return self.store.search(query)

    def get_recent_apps(self) -> List[ApplicationRecord]:
        return self.store.recent()

    def get_index_status(self) -> Dict[str, Any]:
        app_count, last_update = self.store.status()
        return {
            "building": self.scheduler.is_refreshing() or last_update == 0,
            "app_count": app_count,
            "last_update": last_update,
        }

    # Commands

    def open_app(self, app_id: str) -> ApplicationRecord:
        """Launch an application, then count the access"""
        app = self.store.get(app_id)
        if app is None:
            raise AppNotFoundError(app_id)

        logger.info(f"Opening app {app.name} ({app_id})")
        self.launcher(app.path)

        return self.store.record_access(app_id) or app

    def refresh_app_index(self, force: bool = False) -> bool:
        """Ask for a rebuild; False when one is already running or not needed"""
        return self.scheduler.request_refresh(force=force)

    def add_manual_application(self, name: str, path: str) -> ApplicationRecord:
        """Register an application by hand; raises InvalidManualEntryError"""
        name, path = validate_manual_entry(name, path)
        category = categorize(path, name)
        icon = icon_or_default(path)

        record = self.store.upsert_manual(name, path, category, icon)
        logger.info(f"Added manual application {record.name} -> {record.path}")

        self.store.save_async()
        self.scheduler.request_refresh(force=False)
        return record

    def save_index(self):
        """Write the current inventory to disk; raises PersistenceError"""
        if self.cache is None:
            raise PersistenceError("No app index cache configured")
        self.store.save()


def create_service(config, readers: Optional[Sequence[SourceReader]] = None,
                   launcher: Callable[[str], Any] = launch_application) -> AppIndexService:
    """Wire cache, store, readers and scheduler from a ConfigManager"""
    cache = AppCache(config.cache_file)
    store = AppIndexStore(cache.load(), persist=cache.save)

    index_settings = config.get_index_settings()
    return AppIndexService(
        store,
        readers if readers is not None else default_readers(config),
        cache=cache,
        launcher=launcher,
        staleness_ttl=float(index_settings.get("staleness_ttl", 3600)),
        periodic_interval=float(index_settings.get("periodic_interval", 21600)),
    )
