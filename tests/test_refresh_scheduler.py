import threading
import time

import pytest

from appdeck.core.refresh_scheduler import RefreshScheduler


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class BlockingRebuild:
    """Rebuild callable that can be held open by the test"""

    def __init__(self, block=False, fail_first=False):
        self.calls = 0
        self.started = threading.Event()
        self.release = threading.Event()
        if not block:
            self.release.set()
        self.fail_first = fail_first

    def __call__(self):
        self.calls += 1
        self.started.set()
        self.release.wait(5)
        if self.fail_first and self.calls == 1:
            raise RuntimeError("scan exploded")


@pytest.fixture
def make_scheduler():
    schedulers = []

    def factory(rebuild, stale=True, **kwargs):
        scheduler = RefreshScheduler(rebuild, is_stale=lambda ttl: stale, **kwargs)
        schedulers.append(scheduler)
        return scheduler

    yield factory
    for scheduler in schedulers:
        scheduler.stop(timeout=5)


def test_start_runs_initial_rebuild(make_scheduler):
    rebuild = BlockingRebuild()
    scheduler = make_scheduler(rebuild, stale=False)

    scheduler.start()

    assert scheduler.wait_idle(5)
    assert rebuild.calls == 1
    assert scheduler.state == 'idle'


def test_requests_while_refreshing_are_dropped(make_scheduler):
    rebuild = BlockingRebuild(block=True)
    scheduler = make_scheduler(rebuild)
    scheduler.start()
    assert rebuild.started.wait(5)

    assert scheduler.state == 'refreshing'
    assert scheduler.is_refreshing()
    assert scheduler.request_refresh(force=True) is False
    assert scheduler.request_refresh(force=False) is False

    rebuild.release.set()
    assert scheduler.wait_idle(5)
    assert not scheduler.is_refreshing()
    assert rebuild.calls == 1


def test_lazy_refresh_only_when_stale(make_scheduler):
    rebuild = BlockingRebuild()
    fresh = make_scheduler(rebuild, stale=False)
    fresh.start(initial_refresh=False)
    assert fresh.request_refresh() is False

    stale = make_scheduler(rebuild, stale=True)
    stale.start(initial_refresh=False)
    assert stale.request_refresh() is True
    assert stale.wait_idle(5)
    assert rebuild.calls == 1


def test_force_ignores_staleness(make_scheduler):
    rebuild = BlockingRebuild()
    scheduler = make_scheduler(rebuild, stale=False)
    scheduler.start(initial_refresh=False)

    assert scheduler.request_refresh(force=True) is True
    assert scheduler.wait_idle(5)
    assert rebuild.calls == 1


def test_periodic_trigger_runs_without_requests(make_scheduler):
    rebuild = BlockingRebuild()
    scheduler = make_scheduler(rebuild, stale=False, periodic_interval=0.05)
    scheduler.start(initial_refresh=False)

    assert wait_for(lambda: rebuild.calls >= 2)


def test_failed_rebuild_keeps_worker_alive(make_scheduler):
    rebuild = BlockingRebuild(fail_first=True)
    scheduler = make_scheduler(rebuild)
    scheduler.start()
    assert scheduler.wait_idle(5)
    assert wait_for(lambda: scheduler.state == 'idle')

    assert scheduler.request_refresh(force=True) is True
    assert scheduler.wait_idle(5)
    assert rebuild.calls == 2


def test_requests_need_a_running_worker(make_scheduler):
    rebuild = BlockingRebuild()
    scheduler = make_scheduler(rebuild)
    assert scheduler.request_refresh(force=True) is False

    scheduler.start(initial_refresh=False)
    scheduler.stop(timeout=5)
    assert scheduler.request_refresh(force=True) is False
    assert rebuild.calls == 0


def test_run_refresh_on_caller_thread(make_scheduler):
    rebuild = BlockingRebuild()
    scheduler = make_scheduler(rebuild)

    assert scheduler.run_refresh() is True
    assert rebuild.calls == 1
    assert scheduler.state == 'idle'


def test_stop_leaves_scheduler_idle(make_scheduler):
    rebuild = BlockingRebuild()
    scheduler = make_scheduler(rebuild)

    for _ in range(20):
        scheduler.start(initial_refresh=False)
        requester = threading.Thread(target=lambda: [scheduler.request_refresh(force=True) for _ in range(50)])
        requester.start()
        scheduler.stop(timeout=5)
        requester.join(5)

        assert scheduler.wait_idle(0.5)
        assert not scheduler.is_refreshing()


def test_stop_while_rebuilding_waits_for_rebuild(make_scheduler):
    rebuild = BlockingRebuild(block=True)
    scheduler = make_scheduler(rebuild)
    scheduler.start()
    assert rebuild.started.wait(5)

    threading.Timer(0.1, rebuild.release.set).start()
    scheduler.stop(timeout=5)

    assert scheduler.state == 'idle'
    assert scheduler.wait_idle(0)
    assert rebuild.calls == 1
