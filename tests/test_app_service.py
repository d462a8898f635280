import threading
import time

import pytest

from appdeck.core.app_index import AppIndexStore
from appdeck.core.app_service import AppIndexService, create_service
from appdeck.core.errors import AppNotFoundError, InvalidManualEntryError, LaunchError, PersistenceError
from appdeck.utils.app_cache import AppCache
from appdeck.utils.config import ConfigManager

from conftest import FailingReader, FakeLauncher, GatedReader, StaticReader, make_executable, make_inventory, make_record


@pytest.fixture
def build_service(tmp_path):
    services = []

    def factory(inventory=None, readers=None, launcher=None, cache=True):
        app_cache = AppCache(tmp_path / "app_index.json") if cache else None
        store = AppIndexStore(inventory, persist=app_cache.save if app_cache else None)
        service = AppIndexService(
            store,
            readers if readers is not None else [],
            cache=app_cache,
            launcher=launcher or FakeLauncher(),
        )
        services.append(service)
        return service

    yield factory
    for service in services:
        service.shutdown(timeout=5)


def chrome_and_notepad():
    return make_inventory(
        make_record("A", "Chrome", "C:\\Apps\\chrome.exe", access_count=5),
        make_record("B", "Notepad", "C:\\Apps\\notepad.exe", access_count=1),
    )


def test_search_ranking_follows_usage(build_service):
    service = build_service(chrome_and_notepad())

    assert [a.id for a in service.search_apps("chrome")] == ["A"]
    assert [a.id for a in service.search_apps("e")] == ["A", "B"]

    for _ in range(5):
        service.open_app("B")

    assert [a.id for a in service.search_apps("e")] == ["B", "A"]


def test_open_app_launches_then_records_access(build_service):
    launcher = FakeLauncher()
    service = build_service(chrome_and_notepad(), launcher=launcher)

    app = service.open_app("B")

    assert launcher.launched == ["C:\\Apps\\notepad.exe"]
    assert app.access_count == 2
    assert app.last_accessed is not None
    assert [a.id for a in service.get_recent_apps()][0] == "B"


def test_open_unknown_app(build_service):
    service = build_service(chrome_and_notepad())
    with pytest.raises(AppNotFoundError, match="App not found with ID: nope"):
        service.open_app("nope")


def test_failed_launch_does_not_count(build_service):
    service = build_service(chrome_and_notepad(), launcher=FakeLauncher(error=LaunchError("no such file")))

    with pytest.raises(LaunchError):
        service.open_app("A")

    assert service.store.get("A").access_count == 5
    assert service.store.get("A").last_accessed is None


def test_corrupt_cache_reports_building(tmp_path):
    home = tmp_path / "home"
    home.mkdir()
    (home / "app_index.json").write_text("{{{ definitely not json", encoding="utf-8")

    service = create_service(ConfigManager(config_dir=home), readers=[], launcher=FakeLauncher())
    try:
        status = service.get_index_status()
    finally:
        service.shutdown(timeout=5)

    assert status == {"building": True, "app_count": 0, "last_update": 0}


def test_status_after_rebuild(build_service):
    service = build_service(readers=[StaticReader([("Chrome", "C:\\Apps\\chrome.exe")])])

    service.start()
    assert service.scheduler.wait_idle(5)

    status = service.get_index_status()
    assert status["building"] is False
    assert status["app_count"] == 1
    assert status["last_update"] > 0


def test_rebuild_persists_and_survives_failing_readers(build_service, tmp_path):
    readers = [FailingReader(), StaticReader([("Chrome", "C:\\Apps\\chrome.exe")])]
    service = build_service(readers=readers)

    service.start()
    assert service.scheduler.wait_idle(5)

    reloaded = AppCache(tmp_path / "app_index.json").load()
    assert [a.name for a in reloaded.apps.values()] == ["Chrome"]


def test_rescan_keeps_ids_and_counters(build_service):
    reader = StaticReader([("Chrome", "C:\\Apps\\chrome.exe"), ("Notepad", "C:\\Apps\\notepad.exe")])
    service = build_service(readers=[reader])

    service.scheduler.run_refresh()
    chrome = service.search_apps("chrome")[0]
    service.open_app(chrome.id)
    first = service.store.snapshot()

    service.scheduler.run_refresh()
    service.scheduler.run_refresh()
    second = service.store.snapshot()

    assert set(first.apps) == set(second.apps)
    assert second.apps[chrome.id].access_count == 1
    assert reader.scans == 3


def test_manual_entry_survives_rebuilds(build_service, tmp_path):
    exe = make_executable(tmp_path / "portable", "tool")
    service = build_service(readers=[StaticReader([("Chrome", "C:\\Apps\\chrome.exe")])])

    record = service.add_manual_application("My Tool", exe)
    for _ in range(3):
        service.scheduler.run_refresh()

    kept = service.store.get(record.id)
    assert kept is not None
    assert kept.path == exe
    assert kept.source == "manual"
    assert service.get_index_status()["app_count"] == 2


def test_manual_entry_with_missing_path_changes_nothing(build_service):
    service = build_service(chrome_and_notepad())
    before = service.store.snapshot()

    with pytest.raises(InvalidManualEntryError):
        service.add_manual_application("Foo", "C:\\nonexistent\\foo.exe")

    assert service.store.snapshot() == before


def test_manual_entry_is_categorized(build_service, tmp_path):
    exe = make_executable(tmp_path / "tools", "zipper")
    service = build_service()

    record = service.add_manual_application("Zip Tool", exe)

    assert record.category == "Utilities"
    assert record.icon.startswith("app-icon:")
    assert service.search_apps("zip")[0].id == record.id


def test_save_index(build_service, tmp_path):
    service = build_service(chrome_and_notepad())
    service.save_index()
    assert len(AppCache(tmp_path / "app_index.json").load().apps) == 2

    no_cache = build_service(chrome_and_notepad(), cache=False)
    with pytest.raises(PersistenceError):
        no_cache.save_index()


def test_refresh_requests_are_not_queued_twice(build_service):
    service = build_service(readers=[StaticReader()])
    service.start(initial_refresh=False)

    assert service.refresh_app_index(force=True) is True
    assert service.scheduler.wait_idle(5)
    # inventory was just rebuilt, a lazy refresh is not needed
    assert service.refresh_app_index() is False


def test_queries_during_rebuild_see_previous_inventory(build_service):
    reader = GatedReader([("Chrome", "C:\\Apps\\chrome.exe"), ("Slack", "C:\\Apps\\slack.exe")])
    service = build_service(chrome_and_notepad(), readers=[reader])

    service.start()
    assert reader.started.wait(5)

    started = time.monotonic()
    results = service.search_apps("e")
    elapsed = time.monotonic() - started

    assert elapsed < 1.0
    assert [a.id for a in results] == ["A", "B"]
    assert service.get_index_status()["building"] is True
    assert service.get_index_status()["app_count"] == 2
    assert service.search_apps("slack") == []

    reader.gate.set()
    assert service.scheduler.wait_idle(5)

    assert [a.name for a in service.search_apps("slack")] == ["Slack"]
    status = service.get_index_status()
    assert status["building"] is False
    assert status["app_count"] == 3


def test_manual_move_during_rebuild_is_kept(build_service, tmp_path):
    reader = GatedReader([("Chrome", "C:\\Apps\\chrome.exe"), ("Notepad", "C:\\Apps\\notepad.exe")])
    service = build_service(chrome_and_notepad(), readers=[reader])
    portable = make_executable(tmp_path / "portable", "chrome")

    service.start()
    assert reader.started.wait(5)

    moved = service.add_manual_application("Chrome", portable)
    assert moved.id == "A"

    reader.gate.set()
    assert service.scheduler.wait_idle(5)

    kept = service.store.get("A")
    assert kept.path == portable
    assert kept.access_count == 5
    paths = sorted(a.path for a in service.store.snapshot().apps.values())
    assert paths == sorted(["C:\\Apps\\chrome.exe", "C:\\Apps\\notepad.exe", portable])


def test_rebuild_save_is_not_overwritten_by_older_save(tmp_path):
    app_cache = AppCache(tmp_path / "app_index.json")
    gate = threading.Event()
    calls = []

    def slow_first_save(inventory):
        calls.append(inventory)
        if len(calls) == 1:
            gate.wait(5)
        app_cache.save(inventory)

    store = AppIndexStore(chrome_and_notepad(), persist=slow_first_save)
    reader = StaticReader([("Chrome", "C:\\Apps\\chrome.exe"), ("Slack", "C:\\Apps\\slack.exe")])
    service = AppIndexService(store, [reader], cache=app_cache, launcher=FakeLauncher())
    try:
        service.open_app("A")
        threading.Timer(0.3, gate.set).start()
        service.scheduler.run_refresh()
        store.flush(timeout=5)

        on_disk = app_cache.load()
        assert on_disk == store.snapshot()
        assert len(on_disk.apps) == 3
        assert on_disk.apps["A"].access_count == 6
    finally:
        service.shutdown(timeout=5)
