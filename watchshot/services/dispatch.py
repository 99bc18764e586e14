#!/usr/bin/env python3
"""
Owning-Thread Dispatch

Catalog models and preferences belong to a single owning thread. Work
finishing elsewhere (store requests, image loads) posts a callable here;
the owning thread runs it by draining the queue.
"""

import logging
import queue
from concurrent.futures import Future
from typing import Any, Callable


class MainQueue:
    """FIFO of callables run on the owning thread"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._queue: "queue.Queue[Callable[[], Any]]" = queue.Queue()

    def post(self, callback: Callable[[], Any]) -> None:
        """Schedule a callable; safe to call from any thread"""
        self._queue.put(callback)

    def on_done(self, future: Future, callback: Callable[[Future], Any]) -> None:
        """Run `callback(future)` on the owning thread once the future completes"""
        future.add_done_callback(lambda done: self.post(lambda: callback(done)))

    def drain(self, block: bool = False, timeout: float = None) -> int:
        """
        Run every queued callable

        Args:
            block: Wait for at least one callable before returning
            timeout: Maximum time to wait when blocking

        Returns:
            Number of callables run
        """
        count = 0
        if block:
            try:
                callback = self._queue.get(timeout=timeout)
            except queue.Empty:
                return 0
            callback()
            count += 1

        while True:
            try:
                callback = self._queue.get_nowait()
            except queue.Empty:
                return count
            callback()
            count += 1

    def pending(self) -> int:
        return self._queue.qsize()


def completed_future(function: Callable[..., Any], *args, **kwargs) -> Future:
    """
    Run a function now and wrap its outcome in a finished Future

    Exceptions are captured in the future rather than raised.
    """
    future: Future = Future()
    try:
        future.set_result(function(*args, **kwargs))
    except Exception as e:
        future.set_exception(e)
    return future
