"""
Query-time ranking over the application inventory
"""

from typing import Iterable, List

from .models import ApplicationRecord

MAX_RESULTS = 10
RECENT_FLOOR = 5


def search(apps: Iterable[ApplicationRecord], query: str, limit: int = MAX_RESULTS) -> List[ApplicationRecord]:
    """Substring match on the display name.

    Exact name matches come first, then the most used apps. Ties fall back
    to the name so results are stable between calls.
    """
    query_lower = (query or "").lower()

    matches = [app for app in apps if query_lower in app.name.lower()]
    matches.sort(key=lambda app: (
        app.name.lower() != query_lower,
        -app.access_count,
        app.name.lower(),
        app.id,
    ))

    return matches[:limit]


def recent(apps: Iterable[ApplicationRecord], limit: int = MAX_RESULTS,
           floor: int = RECENT_FLOOR) -> List[ApplicationRecord]:
    """Recently launched apps, topped up with popular ones when there are few"""
    apps = list(apps)

    recent_apps = sorted(
        (app for app in apps if app.last_accessed is not None),
        key=lambda app: (-app.last_accessed, app.name.lower()),
    )[:limit]

    if len(recent_apps) < floor:
        included = {app.id for app in recent_apps}
        popular = sorted(
            (app for app in apps if app.id not in included),
            key=lambda app: (-app.access_count, app.name.lower()),
        )
        for app in popular:
            if len(recent_apps) >= limit:
                break
            recent_apps.append(app)

    return recent_apps
