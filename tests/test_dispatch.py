import threading
from concurrent.futures import Future

import pytest

from watchshot.services.dispatch import MainQueue, completed_future


def test_drain_runs_in_order():
    queue = MainQueue()
    calls = []
    queue.post(lambda: calls.append(1))
    queue.post(lambda: calls.append(2))
    assert queue.pending() == 2

    assert queue.drain() == 2
    assert calls == [1, 2]
    assert queue.drain() == 0


def test_on_done_waits_for_drain():
    queue = MainQueue()
    future: Future = Future()
    results = []
    queue.on_done(future, lambda done: results.append(done.result()))

    future.set_result("ready")
    assert results == []
    queue.drain()
    assert results == ["ready"]


def test_drain_blocks_for_work_from_other_threads():
    queue = MainQueue()
    calls = []
    worker = threading.Thread(target=lambda: queue.post(lambda: calls.append(threading.current_thread())))
    worker.start()

    assert queue.drain(block=True, timeout=5) == 1
    worker.join()
    assert calls == [threading.current_thread()]


def test_drain_block_times_out():
    assert MainQueue().drain(block=True, timeout=0.01) == 0


def test_completed_future_captures_exceptions():
    assert completed_future(lambda x: x * 2, 21).result() == 42

    def fail():
        raise ValueError("boom")

    future = completed_future(fail)
    assert future.done()
    with pytest.raises(ValueError, match="boom"):
        future.result()
