"""Connection admission control with a fixed pool of permits."""

import threading
from typing import Optional


class AdmissionPermit:
    """One occupied connection slot; releasing it more than once is a no-op."""

    def __init__(self, controller: "AdmissionController") -> None:
        self._controller = controller
        self._lock = threading.Lock()
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True
        self._controller._release_slot()  # pylint: disable=protected-access

    def __enter__(self) -> "AdmissionPermit":
        return self

    def __exit__(self, exc_type, exc, traceback) -> None:
        self.release()


class AdmissionController:
    """Bounds the number of concurrently handled connections."""

    def __init__(self, max_connections: int) -> None:
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")
        self._capacity = max_connections
        self._semaphore = threading.BoundedSemaphore(max_connections)
        self._lock = threading.Lock()
        self._in_use = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def in_use(self) -> int:
        """Return the number of permits currently held."""
        with self._lock:
            return self._in_use

    def acquire(self, timeout: Optional[float] = None) -> Optional[AdmissionPermit]:
        """Wait for a free slot; return None if ``timeout`` elapses first."""
        if not self._semaphore.acquire(timeout=timeout):
            return None
        with self._lock:
            self._in_use += 1
        return AdmissionPermit(self)

    def try_acquire(self) -> Optional[AdmissionPermit]:
        if not self._semaphore.acquire(blocking=False):
            return None
        with self._lock:
            self._in_use += 1
        return AdmissionPermit(self)

    def _release_slot(self) -> None:
        with self._lock:
            self._in_use -= 1
        self._semaphore.release()
