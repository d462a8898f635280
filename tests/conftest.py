import sys
import threading
from pathlib import Path

import pytest

from appdeck.core.app_index import AppIndexStore
from appdeck.core.models import ApplicationRecord, Inventory, RawCandidate
from appdeck.sources.base import SourceReader
from appdeck.utils.app_cache import AppCache


def make_executable(directory: Path, name: str) -> str:
    """Create a launchable file for the current platform and return its path"""
    directory.mkdir(parents=True, exist_ok=True)
    file_name = f"{name}.exe" if sys.platform == "win32" else name
    path = directory / file_name
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(0o755)
    return str(path)


def make_record(app_id, name, path, access_count=0, last_accessed=None, source="registry"):
    return ApplicationRecord(
        id=app_id,
        name=name,
        path=path,
        access_count=access_count,
        last_accessed=last_accessed,
        source=source,
    )


def make_inventory(*records, last_update=1000):
    return Inventory(apps={r.id: r for r in records}, last_update=last_update)


class StaticReader(SourceReader):
    """Reader returning a fixed list of (name, path) pairs"""

    def __init__(self, entries=None, name="static"):
        super().__init__()
        self.name = name
        self.entries = list(entries or [])
        self.scans = 0

    def scan(self):
        self.scans += 1
        return [RawCandidate(name=n, path=p, source=self.name) for n, p in self.entries]


class GatedReader(StaticReader):
    """StaticReader whose scan waits until the test opens the gate"""

    def __init__(self, entries=None, name="static"):
        super().__init__(entries, name)
        self.started = threading.Event()
        self.gate = threading.Event()

    def scan(self):
        self.started.set()
        self.gate.wait(5)
        return super().scan()


class FailingReader(SourceReader):
    name = "failing"

    def scan(self):
        raise RuntimeError("boom")


class FakeLauncher:
    def __init__(self, error=None):
        self.launched = []
        self.error = error

    def __call__(self, path, working_dir=None):
        if self.error is not None:
            raise self.error
        self.launched.append(path)
        return 4242


@pytest.fixture
def cache(tmp_path):
    return AppCache(tmp_path / "app_index.json")


@pytest.fixture
def store():
    s = AppIndexStore()
    yield s
    s.close()
