"""Unit tests for the admission permit pool."""

import threading
import time

import pytest

from minihttp.transport.admission import AdmissionController


def test_rejects_non_positive_capacity():
    with pytest.raises(ValueError):
        AdmissionController(0)


def test_permits_never_exceed_capacity():
    admission = AdmissionController(2)
    first = admission.try_acquire()
    second = admission.try_acquire()
    assert first is not None and second is not None
    assert admission.in_use() == 2
    assert admission.try_acquire() is None
    assert admission.acquire(timeout=0.05) is None

    first.release()
    assert admission.in_use() == 1
    third = admission.try_acquire()
    assert third is not None
    assert admission.in_use() == 2


def test_double_release_frees_only_one_slot():
    admission = AdmissionController(1)
    permit = admission.try_acquire()
    permit.release()
    permit.release()
    assert permit.released
    assert admission.in_use() == 0
    assert admission.try_acquire() is not None
    assert admission.try_acquire() is None


def test_permit_context_manager_releases_on_error():
    admission = AdmissionController(1)
    with pytest.raises(RuntimeError):
        with admission.try_acquire():
            raise RuntimeError("handler failed")
    assert admission.in_use() == 0


def test_blocked_acquire_resumes_after_release():
    admission = AdmissionController(1)
    held = admission.try_acquire()
    acquired = threading.Event()

    def waiter():
        permit = admission.acquire(timeout=5)
        if permit is not None:
            acquired.set()
            permit.release()

    thread = threading.Thread(target=waiter)
    thread.start()
    time.sleep(0.1)
    assert not acquired.is_set()

    held.release()
    thread.join(timeout=5)
    assert acquired.is_set()
    assert admission.in_use() == 0


def test_concurrent_holders_stay_within_capacity():
    admission = AdmissionController(3)
    peak = [0]
    lock = threading.Lock()

    def worker():
        with admission.acquire():
            with lock:
                peak[0] = max(peak[0], admission.in_use())
            time.sleep(0.01)

    threads = [threading.Thread(target=worker) for _ in range(12)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)
    assert peak[0] <= 3
    assert admission.in_use() == 0
