"""
MockSim Hot Reload Watcher

Watches the mock directory and triggers a full route reload whenever a route
file is created, modified, moved or deleted.
"""

import logging
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .registry import PYCACHE_DIR, RESERVED_DIRS

logger = logging.getLogger('mocksim.watcher')

WATCHED_EXTENSIONS = ('.py', '.yaml', '.yml', '.json')


class RouteWatcher:
    """
    Filesystem watcher for route definition files.

    ``on_change`` runs on the watchdog observer thread. Events may arrive in
    bursts and callbacks may overlap; the registry handles ordering.

    Example:
        watcher = RouteWatcher('mock', registry.reload)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(
        self,
        directory: Union[str, Path],
        on_change: Callable[[], object],
        extensions: Iterable[str] = WATCHED_EXTENSIONS
    ):
        """
        Initialize route watcher.

        Args:
            directory: Mock root directory to watch recursively
            on_change: Callback invoked after a relevant change
            extensions: File suffixes that count as route files
        """
        self.directory = Path(directory).resolve()
        self.on_change = on_change
        self.extensions = tuple(ext.lower() for ext in extensions)
        self.observer: Optional[Observer] = None

    def is_relevant(self, path: str) -> bool:
        """Check whether a changed path can affect the loaded routes."""
        file_path = Path(path)
        if file_path.suffix.lower() not in self.extensions:
            return False

        try:
            relative = file_path.resolve().relative_to(self.directory)
        except ValueError:
            return False

        parts = relative.parts
        if len(parts) > 1 and parts[0] in RESERVED_DIRS:
            return False
        return not any(part.startswith('.') for part in parts)

    def is_relevant_dir(self, path: str) -> bool:
        """Check whether a changed directory can hold loaded route files."""
        try:
            relative = Path(path).resolve().relative_to(self.directory)
        except ValueError:
            return False

        parts = relative.parts
        if not parts or parts[0] in RESERVED_DIRS:
            return False
        return not any(part.startswith('.') or part == PYCACHE_DIR for part in parts)

    def _create_event_handler(self) -> FileSystemEventHandler:
        watcher = self

        class RouteFileEventHandler(FileSystemEventHandler):
            """Forwards relevant route file events to the watcher."""

            def on_any_event(self, event: FileSystemEvent) -> None:
                if event.event_type in ('opened', 'closed', 'closed_no_write'):
                    return

                paths = [event.src_path]
                dest_path = getattr(event, 'dest_path', None)
                if dest_path:
                    paths.append(dest_path)

                if event.is_directory:
                    # a directory modified event only means its listing changed
                    if event.event_type == 'modified':
                        return
                    relevant = watcher.is_relevant_dir
                else:
                    relevant = watcher.is_relevant

                if any(relevant(str(p)) for p in paths):
                    watcher._handle_change(str(paths[-1]))

        return RouteFileEventHandler()

    def _handle_change(self, path: str):
        logger.info(f"Mock file changed: {path}, reloading")
        try:
            self.on_change()
        except Exception:
            logger.exception("Mock reload failed")

    def start(self) -> bool:
        """
        Start watching.

        Returns:
            False when the directory does not exist or watching already runs
        """
        if self.observer is not None:
            return False
        if not self.directory.is_dir():
            logger.warning(f"Mock directory does not exist, not watching: {self.directory}")
            return False

        self.observer = Observer()
        self.observer.schedule(self._create_event_handler(), str(self.directory), recursive=True)
        self.observer.start()
        logger.debug(f"Watching {self.directory}")
        return True

    def stop(self):
        """Stop watching and wait for the observer thread."""
        if self.observer is None:
            return
        self.observer.stop()
        self.observer.join(timeout=5)
        self.observer = None

    @property
    def is_running(self) -> bool:
        return self.observer is not None and self.observer.is_alive()
