"""
File system watcher that keeps a FileClassService in sync with the vault.

This module provides:
- Watchdog-based monitoring of the class folder
- Debounced change notifications (editors save in bursts)
- Rename handling (old name dropped, new name loaded)
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Literal

from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .service import FileClassService

logger = logging.getLogger(__name__)

ChangeKind = Literal["changed", "deleted"]


class PendingChange:
    """Tracks a pending change for debouncing."""

    def __init__(self, kind: ChangeKind, path: Path, timestamp: float):
        self.kind = kind
        self.path = path
        self.timestamp = timestamp


class SchemaEventHandler(FileSystemEventHandler):
    """
    Turns file system events under the class folder into service hooks.

    Notifications reach the service serialized, from `flush_pending()`.
    """

    DEBOUNCE_SECONDS = 0.5

    def __init__(
        self,
        service: FileClassService,
        on_change: Callable[[str, str], None] | None = None,
    ):
        """
        Args:
            service: Service whose registry is kept current
            on_change: Callback receiving (kind, schema name) after each applied change
        """
        super().__init__()
        self.service = service
        self.on_change = on_change
        self.pending: dict[str, PendingChange] = {}
        self._lock = threading.Lock()

    def _schema_name(self, path: str) -> str | None:
        return self.service.store.name_for(Path(path))

    def _queue(self, kind: ChangeKind, path: str) -> None:
        if self._schema_name(path) is None:
            return
        with self._lock:
            self.pending[path] = PendingChange(kind=kind, path=Path(path), timestamp=time.time())

    def flush_pending(self, force: bool = False) -> list[str]:
        """Apply changes that have passed the debounce window; returns schema names."""
        now = time.time()
        applied = []

        # Take due changes out under the lock; anything queued later stays pending
        with self._lock:
            due = [
                path_str
                for path_str, pending in self.pending.items()
                if force or now - pending.timestamp >= self.DEBOUNCE_SECONDS
            ]
            to_apply = [self.pending.pop(path_str) for path_str in due]

        for pending in to_apply:
            if pending.kind == "deleted":
                name = self.service.on_document_deleted(pending.path)
            else:
                name = self.service.on_document_changed(pending.path)

            if name is not None:
                logger.debug("Applied %s for schema %s", pending.kind, name)
                applied.append(name)
                if self.on_change:
                    self.on_change(pending.kind, name)

        return applied

    def on_created(self, event: FileCreatedEvent) -> None:
        if not event.is_directory:
            self._queue("changed", event.src_path)

    def on_modified(self, event: FileModifiedEvent) -> None:
        if not event.is_directory:
            self._queue("changed", event.src_path)

    def on_deleted(self, event: FileDeletedEvent) -> None:
        if not event.is_directory:
            self._queue("deleted", event.src_path)

    def on_moved(self, event: FileMovedEvent) -> None:
        if event.is_directory:
            return
        # Moved out of (or within) the class folder: the old name goes away
        self._queue("deleted", event.src_path)
        self._queue("changed", event.dest_path)


def watch_schemas(
    service: FileClassService,
    on_change: Callable[[str, str], None] | None = None,
) -> tuple[Observer, SchemaEventHandler]:
    """
    Start watching the service's class folder.

    Returns:
        Tuple of (observer, handler) - caller should call observer.stop() to stop watching
    """
    handler = SchemaEventHandler(service, on_change=on_change)
    observer = Observer()
    observer.schedule(handler, str(service.store.class_dir), recursive=True)
    observer.start()
    return observer, handler


def run_watch_loop(
    service: FileClassService,
    on_change: Callable[[str, str], None] | None = None,
) -> None:
    """
    Run the watch loop until interrupted.

    This is a blocking function that applies debounced changes periodically.
    """
    observer, handler = watch_schemas(service, on_change=on_change)

    try:
        while True:
            time.sleep(0.25)
            handler.flush_pending()
    except KeyboardInterrupt:
        observer.stop()

    observer.join()
    handler.flush_pending(force=True)
