"""
Deduplication and merging of scan results into the inventory

Records are keyed by the executable path with quoting and arguments removed,
compared case-insensitively. Ids and usage counters of known records are never
lost, and records that a scan no longer sees (manual entries in particular)
are kept.
"""

import os
from dataclasses import replace
from typing import Dict, Iterable, Optional, Tuple

from ..utils.paths import executable_of, identity_key
from .errors import InvalidManualEntryError
from .models import ApplicationRecord, Inventory, RawCandidate, new_app_id, now_seconds

# (candidate, category, icon)
ClassifiedCandidate = Tuple[RawCandidate, str, str]


def _latest(a: Optional[int], b: Optional[int]) -> Optional[int]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def fold_usage(keep: ApplicationRecord, other: ApplicationRecord) -> ApplicationRecord:
    """Combine two records for the same binary, keeping the larger counters"""
    base, extra = (keep, other) if keep.access_count >= other.access_count else (other, keep)
    return replace(
        base,
        access_count=max(base.access_count, extra.access_count),
        last_accessed=_latest(base.last_accessed, extra.last_accessed),
    )


def index_by_key(inventory: Inventory) -> Dict[str, ApplicationRecord]:
    """Copy of the inventory keyed by identity key, folding any duplicates"""
    by_key: Dict[str, ApplicationRecord] = {}
    for app in inventory.apps.values():
        key = app.key
        current = by_key.get(key)
        by_key[key] = app.copy() if current is None else fold_usage(current, app)
    return by_key


SOURCE_PRIORITY = ("registry", "shortcut", "filesystem")


def _source_rank(source: str) -> int:
    return SOURCE_PRIORITY.index(source) if source in SOURCE_PRIORITY else len(SOURCE_PRIORITY)


def best_candidates(fresh: Iterable[ClassifiedCandidate]) -> Dict[str, ClassifiedCandidate]:
    """One candidate per identity key.

    Installation records beat shortcuts, which beat filesystem hits, so an
    uninstall display name wins over a name derived from the file name.
    Candidates of equal rank keep the first one seen.
    """
    best: Dict[str, ClassifiedCandidate] = {}
    for item in fresh:
        key = identity_key(item[0].path)
        if not key:
            continue
        current = best.get(key)
        if current is None or _source_rank(item[0].source) < _source_rank(current[0].source):
            best[key] = item
    return best


def merge(existing: Inventory, fresh: Iterable[ClassifiedCandidate], now: Optional[int] = None) -> Inventory:
    """Fold freshly scanned candidates into an existing inventory.

    A candidate matching an existing record refreshes its name, path, icon and
    category but keeps its id and usage counters. Existing records the scan
    did not produce are carried over unchanged. Memory-only, so the store runs
    it under its lock when a rebuild is committed.
    """
    by_key = index_by_key(existing)
    merged: Dict[str, ApplicationRecord] = {}
    candidates = best_candidates(fresh)

    for key, (candidate, category, icon) in candidates.items():
        previous = by_key.get(key)
        if previous is not None:
            record = replace(
                previous,
                name=candidate.name,
                path=candidate.path,
                icon=icon,
                category=category,
                source=candidate.source,
            )
        else:
            record = ApplicationRecord(
                id=new_app_id(),
                name=candidate.name,
                path=candidate.path,
                icon=icon,
                category=category,
                source=candidate.source,
            )
        merged[record.id] = record

    for key, app in by_key.items():
        if key not in candidates:
            merged[app.id] = app

    return Inventory(apps=merged, last_update=now_seconds() if now is None else now)


def validate_manual_entry(name: str, path: str) -> Tuple[str, str]:
    """Check a manual entry before it touches the index; does disk I/O"""
    name = (name or "").strip()
    path = (path or "").strip()

    if not name:
        raise InvalidManualEntryError("Application name is required")
    if not path:
        raise InvalidManualEntryError("Application path is required")

    executable = executable_of(path)
    if not executable or not os.path.exists(executable):
        raise InvalidManualEntryError(f"Application path does not exist: {executable or path}")

    return name, path


def apply_manual_entry(inventory: Inventory, name: str, path: str,
                       category: str, icon: str) -> ApplicationRecord:
    """Insert a manual entry, updating in place on a path or name collision"""
    existing = inventory.find_by_key(identity_key(path)) or inventory.find_by_name(name)

    if existing is not None:
        record = replace(existing, name=name, path=path, category=category, icon=icon)
    else:
        record = ApplicationRecord(
            id=new_app_id(),
            name=name,
            path=path,
            icon=icon,
            category=category,
            source="manual",
        )

    inventory.apps[record.id] = record
    return record.copy()
