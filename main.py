#!/usr/bin/env python3
"""
AppDeck - Application Discovery & Indexing Engine
Console entry point for the application index
"""

import argparse
import atexit
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

# Add src directory to Python path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from appdeck.core.app_service import AppIndexService, create_service
from appdeck.core.errors import AppIndexError
from appdeck.core.models import ApplicationRecord
from appdeck.utils.config import ConfigManager

logger = logging.getLogger("appdeck")


def format_app(app: ApplicationRecord) -> str:
    used = f"{app.access_count}x" if app.access_count else "-"
    return f"{app.id[:8]}  {app.name:<32} {app.category:<20} {used:>5}  {app.path}"


def print_apps(apps: List[ApplicationRecord]):
    if not apps:
        print("No applications found")
        return
    for app in apps:
        print(format_app(app))


class AppDeckApp:
    def __init__(self, config: Optional[ConfigManager] = None):
        self.config = config or ConfigManager()
        self.service: Optional[AppIndexService] = None
        self._cleanup_called = False  # Flag to prevent multiple cleanup calls

        logging.basicConfig(
            level=getattr(logging, self.config.get_log_level(), logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        self.setup_cleanup_handlers()

    def setup_cleanup_handlers(self):
        """Setup cleanup handlers for graceful shutdown"""
        signal.signal(signal.SIGINT, self.signal_handler)
        signal.signal(signal.SIGTERM, self.signal_handler)
        atexit.register(self.cleanup)

    def signal_handler(self, signum, frame):
        """Handle system signals for cleanup"""
        logger.info(f"Received signal {signum}, shutting down...")
        self.cleanup()
        sys.exit(0)

    def cleanup(self):
        """Stop background indexing and flush the index to disk"""
        if self._cleanup_called:
            return
        self._cleanup_called = True

        if self.service is not None:
            self.service.shutdown(timeout=10)

    def run(self, args: argparse.Namespace) -> int:
        self.service = create_service(self.config)

        one_shot = any([args.query is not None, args.recent, args.status, args.add, args.open])

        never_built = self.service.get_index_status()["last_update"] == 0
        if args.refresh or (one_shot and never_built):
            self.service.scheduler.run_refresh()
            if args.refresh:
                print(self._status_line())
                if not one_shot:
                    return 0

        # One-shot commands answer from the cache; the interactive shell keeps indexing
        self.service.start(initial_refresh=not (one_shot or args.refresh))

        try:
            if args.add:
                app = self.service.add_manual_application(*args.add)
                print(f"Added: {format_app(app)}")
            if args.open:
                app = self.service.open_app(args.open)
                print(f"Opened {app.name}")
            if args.query is not None:
                print_apps(self.service.search_apps(args.query))
            if args.recent:
                print_apps(self.service.get_recent_apps())
            if args.status:
                print(self._status_line())
        except AppIndexError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        if one_shot:
            return 0
        return self.interactive()

    def _status_line(self) -> str:
        status = self.service.get_index_status()
        state = "building" if status["building"] else "ready"
        return f"Index {state}: {status['app_count']} applications (last update {status['last_update']})"

    def interactive(self) -> int:
        """Minimal prompt: type to search, ':open N' to launch a result"""
        print("AppDeck - type to search, ':recent', ':status', ':refresh', ':open N', ':quit'")
        results: List[ApplicationRecord] = []

        while True:
            try:
                line = input("appdeck> ").strip()
            except EOFError:
                return 0

            try:
                if line in (":quit", ":q"):
                    return 0
                elif line == ":recent":
                    results = self.service.get_recent_apps()
                    print_apps(results)
                elif line == ":status":
                    print(self._status_line())
                elif line == ":refresh":
                    if not self.service.refresh_app_index(force=True):
                        print("Refresh already in progress")
                elif line.startswith(":open "):
                    choice = line.split(maxsplit=1)[1]
                    if choice.isdigit() and 0 < int(choice) <= len(results):
                        app = self.service.open_app(results[int(choice) - 1].id)
                    else:
                        app = self.service.open_app(choice)
                    print(f"Opened {app.name}")
                else:
                    results = self.service.search_apps(line)
                    for number, app in enumerate(results, 1):
                        print(f"{number:>2}. {format_app(app)}")
                    if not results:
                        print("No applications found")
            except AppIndexError as e:
                print(f"Error: {e}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="AppDeck application index")
    parser.add_argument("--query", "-q", help="search the index and exit")
    parser.add_argument("--recent", action="store_true", help="list recently used applications")
    parser.add_argument("--status", action="store_true", help="show index status")
    parser.add_argument("--refresh", action="store_true", help="rebuild the index before anything else")
    parser.add_argument("--add", nargs=2, metavar=("NAME", "PATH"), help="register an application by hand")
    parser.add_argument("--open", metavar="ID", help="launch an application by id")
    return parser.parse_args(argv)


if __name__ == "__main__":
    app = AppDeckApp()
    exit_code = app.run(parse_args())
    sys.exit(exit_code)
