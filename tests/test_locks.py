"""Tests for keyed lock registries."""

import threading
import time

from engagement_engine.core.locks import KeyedLocks


def test_same_key_is_serialized() -> None:
    locks = KeyedLocks()
    active = 0
    peak = 0
    guard = threading.Lock()

    def worker() -> None:
        nonlocal active, peak
        with locks.hold("content-1"):
            with guard:
                active += 1
                peak = max(peak, active)
            time.sleep(0.01)
            with guard:
                active -= 1

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert peak == 1


def test_different_keys_do_not_block_each_other() -> None:
    locks = KeyedLocks()
    entered = threading.Event()

    with locks.hold("a"):
        def other() -> None:
            with locks.hold("b"):
                entered.set()

        thread = threading.Thread(target=other)
        thread.start()
        assert entered.wait(timeout=1.0)
        thread.join()


def test_hold_many_acquires_each_key_once() -> None:
    locks = KeyedLocks()

    with locks.hold_many(["b", "a", "b"]):
        assert len(locks) == 2
        assert locks._locks["a"].lock.locked()
        assert locks._locks["b"].lock.locked()

    assert len(locks) == 0


def test_released_keys_are_forgotten() -> None:
    locks = KeyedLocks()

    for i in range(100):
        with locks.hold(f"content-{i}"):
            assert len(locks) == 1

    assert len(locks) == 0


def test_lock_survives_while_a_waiter_is_queued() -> None:
    locks = KeyedLocks()
    waiting = threading.Event()
    acquired = threading.Event()

    def waiter() -> None:
        waiting.set()
        with locks.hold("content-1"):
            acquired.set()

    with locks.hold("content-1"):
        thread = threading.Thread(target=waiter)
        thread.start()
        assert waiting.wait(timeout=1.0)
        deadline = time.monotonic() + 1.0
        while locks._locks["content-1"].users < 2 and time.monotonic() < deadline:
            time.sleep(0.005)
        assert locks._locks["content-1"].users == 2
        assert not acquired.is_set()

    thread.join(timeout=1.0)
    assert acquired.is_set()
    assert len(locks) == 0
