"""
Fire-and-forget persistence of display orders.

Callers never wait for a write. This module provides:
- At most one pending write per schema (a newer request supersedes it)
- Coalescing of identical requests
- Serialized flushing, from a background thread or on demand
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Sequence

from .errors import SchemaError, SchemaIssue

logger = logging.getLogger(__name__)

# Writes `fieldsOrder` for one schema; raises SchemaError on failure
OrderWriter = Callable[[str, tuple[str, ...]], None]


@dataclass
class PendingWrite:
    """A fields order waiting to be written."""

    name: str
    fields_order: tuple[str, ...]
    timestamp: float


class PersistenceQueue:
    """Per-schema queue of depth one for `fieldsOrder` writes."""

    def __init__(
        self,
        writer: OrderWriter,
        on_issue: Callable[[SchemaIssue], None] | None = None,
    ):
        self.writer = writer
        self.on_issue = on_issue
        self._pending: dict[str, PendingWrite] = {}
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def request(self, name: str, fields_order: Sequence[str]) -> bool:
        """Queue a write; returns False when the same order is already pending."""
        order = tuple(fields_order)
        with self._lock:
            current = self._pending.get(name)
            if current is not None and current.fields_order == order:
                return False
            self._pending[name] = PendingWrite(name=name, fields_order=order, timestamp=time.time())
        logger.debug("Queued fieldsOrder write for %s", name)
        return True

    def pending(self, name: str) -> tuple[str, ...] | None:
        with self._lock:
            current = self._pending.get(name)
            return current.fields_order if current is not None else None

    def discard(self, name: str) -> None:
        """Drop a pending write, e.g. after the schema was rewritten another way."""
        with self._lock:
            self._pending.pop(name, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def flush_pending(self) -> list[SchemaIssue]:
        """Write every pending order, one at a time; returns failures."""
        issues = []
        with self._write_lock:
            with self._lock:
                to_write = list(self._pending.values())
                self._pending.clear()

            for pending in to_write:
                try:
                    self.writer(pending.name, pending.fields_order)
                except SchemaError as e:
                    logger.error("Failed to persist fieldsOrder for %s: %s", pending.name, e)
                    issue = SchemaIssue("error", "persistence-failure", pending.name, str(e))
                    issues.append(issue)
                    if self.on_issue:
                        self.on_issue(issue)

        return issues

    def start(self, interval: float = 1.0) -> None:
        """Flush periodically on a daemon thread until `stop()`."""
        if self._thread is not None:
            return
        self._stop.clear()

        def loop() -> None:
            while not self._stop.wait(interval):
                self.flush_pending()

        self._thread = threading.Thread(target=loop, name="fileclass-persistence", daemon=True)
        self._thread.start()

    def stop(self, flush: bool = True) -> None:
        if self._thread is not None:
            self._stop.set()
            self._thread.join()
            self._thread = None
        if flush:
            self.flush_pending()
