"""Server lifecycle state and tracking of active connection workers."""

import logging
import threading
import time
from typing import Optional

from minihttp.domain.correlation_id import CorrelationLoggerAdapter

LIFECYCLE_LOGGER = CorrelationLoggerAdapter(logging.getLogger("minihttp.lifecycle"), {})

JOIN_SLICE_SECONDS = 0.1


class ServerLifecycle:
    """Stop flag plus the set of in-flight connection worker threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._workers: set[threading.Thread] = set()

    def should_stop(self) -> bool:
        """Check if the server should stop accepting new connections."""
        return self._stop_event.is_set()

    def begin_draining(self) -> None:
        """Stop accepting; in-flight connections keep running."""
        self._stop_event.set()
        LIFECYCLE_LOGGER.info(
            "Beginning graceful shutdown", extra={"event": "draining_started"}
        )

    def register_worker(self, thread: threading.Thread) -> None:
        with self._lock:
            self._workers.add(thread)

    def cleanup_worker(self, thread: threading.Thread) -> None:
        with self._lock:
            self._workers.discard(thread)

    def has_worker(self, thread: threading.Thread) -> bool:
        with self._lock:
            return thread in self._workers

    def active_worker_count(self) -> int:
        with self._lock:
            return len(self._workers)

    def wait_for_workers(self, timeout: Optional[float] = None) -> bool:
        """Block until every tracked worker finishes.

        With ``timeout=None`` this waits indefinitely. Returns False only when
        a timeout was given and workers were still running when it expired.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._lock:
                self._workers = {
                    w for w in self._workers if w.is_alive() or w.ident is None
                }
                active_workers = list(self._workers)
            if not active_workers:
                return True
            if deadline is not None and time.monotonic() >= deadline:
                LIFECYCLE_LOGGER.warning(
                    "Shutdown timeout exceeded",
                    extra={"remaining_workers": len(active_workers)},
                )
                return False
            for worker in active_workers:
                if worker.ident is None:
                    time.sleep(JOIN_SLICE_SECONDS)
                    continue
                worker.join(timeout=JOIN_SLICE_SECONDS)
                if deadline is not None and time.monotonic() >= deadline:
                    break
