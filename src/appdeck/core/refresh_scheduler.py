"""
Refresh scheduling for the app index

A single long-lived worker thread runs rebuilds. Triggers (startup, stale
index on query, periodic timer, explicit force) go through one queue, and the
idle/refreshing state lives in a PyTransitions state machine. At most one
rebuild is ever in flight; requests arriving while one runs or is already
queued are dropped.
"""

import logging
import queue
import threading
import time
from typing import Callable, Optional

from transitions import Machine

logger = logging.getLogger(__name__)

_REFRESH = "refresh"
_STOP = "stop"


class RefreshState:
    """State model driven by the scheduler's Machine (the Machine sets .state)"""


class RefreshScheduler:
    def __init__(self, rebuild: Callable[[], object], is_stale: Callable[[float], bool],
                 staleness_ttl: float = 3600, periodic_interval: float = 21600,
                 clock: Callable[[], float] = time.monotonic):
        self._rebuild = rebuild
        self._is_stale = is_stale
        self.staleness_ttl = staleness_ttl
        self.periodic_interval = periodic_interval
        self._clock = clock

        self._lock = threading.Lock()
        self._queue: "queue.Queue[str]" = queue.Queue()
        self._pending = False
        self._stopped = False
        self._worker: Optional[threading.Thread] = None
        self._next_periodic = clock() + periodic_interval

        self._idle = threading.Event()
        self._idle.set()

        self.setup_state_machine()

    def setup_state_machine(self):
        """Setup PyTransitions state machine with separate model"""
        self.state_model = RefreshState()

        states = [
            'idle',         # Serving queries from the committed inventory
            'refreshing',   # Worker is rebuilding the inventory
        ]

        transitions = [
            {'trigger': 'start_refresh', 'source': 'idle', 'dest': 'refreshing'},
            {'trigger': 'finish_refresh', 'source': 'refreshing', 'dest': 'idle'},
        ]

        self.machine = Machine(
            model=self.state_model,
            states=states,
            transitions=transitions,
            initial='idle',
            after_state_change=self._on_state_change
        )

    def _on_state_change(self):
        logger.debug(f"Refresh scheduler is now {self.state_model.state}")

    @property
    def state(self) -> str:
        return self.state_model.state

    # Lifecycle

    def start(self, initial_refresh: bool = True):
        """Start the worker thread; by default a rebuild is queued right away"""
        with self._lock:
            if self._worker is not None:
                return
            self._stopped = False
            self._next_periodic = self._clock() + self.periodic_interval
            self._worker = threading.Thread(target=self._run, name="appdeck-refresh", daemon=True)
            self._worker.start()

        if initial_refresh:
            self.request_refresh(force=True)

    def stop(self, timeout: Optional[float] = None):
        """Stop the worker after the in-flight rebuild (if any) finishes"""
        with self._lock:
            self._stopped = True
            worker = self._worker
            self._worker = None
            if worker is not None:
                self._queue.put(_STOP)

        if worker is None:
            return

        worker.join(timeout)
        if worker.is_alive():
            logger.warning("Refresh worker did not stop in time")
            return

        # Nothing will serve what is left in the queue
        with self._lock:
            while not self._queue.empty():
                self._queue.get_nowait()
            if self.state_model.state != 'idle':
                return
            self._pending = False
        self._idle.set()

    # Triggers

    def request_refresh(self, force: bool = False) -> bool:
        """Queue a rebuild. Returns False when the request was dropped."""
        with self._lock:
            if self._stopped or self._worker is None:
                logger.debug("Refresh request ignored: scheduler not running")
                return False
            if self._busy():
                logger.debug("Refresh request ignored: rebuild already in progress")
                return False
            if not force and not self._is_stale(self.staleness_ttl):
                return False
            self._mark_pending()
            self._queue.put(_REFRESH)
        return True

    def run_refresh(self) -> bool:
        """Rebuild on the calling thread, unless a rebuild is already running"""
        with self._lock:
            if self._busy():
                return False
            self._mark_pending()

        self._refresh_once()
        return True

    # State

    def is_refreshing(self) -> bool:
        """True while a rebuild runs or is queued to run"""
        with self._lock:
            return self._busy()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        return self._idle.wait(timeout)

    def _busy(self) -> bool:
        return self._pending or self.state_model.state == 'refreshing'

    def _mark_pending(self):
        self._pending = True
        self._idle.clear()

    # Worker

    def _run(self):
        while True:
            timeout = max(0.0, self._next_periodic - self._clock())
            try:
                item = self._queue.get(timeout=timeout)
            except queue.Empty:
                item = None

            if item == _STOP:
                break

            if item is None:
                with self._lock:
                    if self._busy():
                        self._next_periodic = self._clock() + self.periodic_interval
                        continue
                    logger.info("Periodic app index refresh")
                    self._mark_pending()

            self._refresh_once()

        logger.debug("Refresh worker exited")

    def _refresh_once(self):
        with self._lock:
            self._pending = False
            self.state_model.start_refresh()

        started = self._clock()
        try:
            self._rebuild()
        except Exception:
            # Keep serving the previous inventory
            logger.exception("App index rebuild failed")
        finally:
            with self._lock:
                self.state_model.finish_refresh()
                self._next_periodic = self._clock() + self.periodic_interval
            self._idle.set()

        logger.debug(f"Rebuild finished in {self._clock() - started:.2f}s")
