"""
Module: funnel.dispatch

Purpose:
    Run the funnel's network calls. The controller hands a dispatcher a
    token and a zero-argument callable; the dispatcher reports an Outcome
    back. Completions are always applied on the owner's thread: inline
    calls complete before ``submit`` returns, threaded calls are queued
    and drained by ``Funnel.poll()``.

Key Classes:
    - Outcome: Result or error of one request
    - InlineDispatcher: Synchronous execution
    - ThreadedDispatcher: Thread pool execution with a completion queue

Dependencies:
    - concurrent.futures: Thread pool execution
    - queue: Completion hand-off to the owner thread

Used By:
    - quiz_funnel.funnel.controller: Funnel
"""

from __future__ import annotations

import logging
import queue
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)

Completion = Callable[["Outcome"], None]


@dataclass(frozen=True)
class Outcome:
    """Result of one dispatched call; exactly one of value/error is meaningful."""

    token: int
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _run(token: int, call: Callable[[], Any]) -> Outcome:
    try:
        return Outcome(token=token, value=call())
    except Exception as e:
        return Outcome(token=token, error=e)


class InlineDispatcher:
    """
    Runs each call immediately on the caller's thread.

    The default for tests and for hosts without an event loop.
    """

    def submit(self, token: int, call: Callable[[], Any], on_complete: Completion) -> None:
        on_complete(_run(token, call))

    def drain(self) -> int:
        return 0

    def shutdown(self) -> None:
        pass


class ThreadedDispatcher:
    """
    Thread pool dispatcher for hosts with a UI loop.

    Calls run in worker threads; their outcomes are queued and only
    delivered when the owner calls ``drain()`` (via ``Funnel.poll()``),
    so funnel state is never touched from a worker.

    Usage:
        dispatcher = ThreadedDispatcher(max_workers=2)
        funnel = Funnel(client, client, store, dispatcher=dispatcher)
        try:
            ...
            funnel.poll()  # from the UI timer
        finally:
            dispatcher.shutdown()

    Attributes:
        max_workers: Maximum concurrent requests
    """

    def __init__(self, max_workers: int = 2):
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="quiz-funnel")
        self._completed: "queue.Queue[tuple[Outcome, Completion]]" = queue.Queue()
        self._futures: List[Future] = []

    def submit(self, token: int, call: Callable[[], Any], on_complete: Completion) -> None:
        def work() -> Outcome:
            outcome = _run(token, call)
            self._completed.put((outcome, on_complete))
            return outcome

        self._futures = [f for f in self._futures if not f.done()]
        self._futures.append(self._executor.submit(work))

    def drain(self) -> int:
        """
        Deliver every queued completion on the calling thread.

        Returns:
            Number of completions delivered
        """
        delivered = 0
        while True:
            try:
                outcome, on_complete = self._completed.get_nowait()
            except queue.Empty:
                break
            on_complete(outcome)
            delivered += 1
        return delivered

    def wait_all(self, timeout: Optional[float] = None) -> int:
        """Block until submitted calls finish (their completions stay queued)."""
        finished = 0
        for future in list(self._futures):
            future.result(timeout=timeout)
            finished += 1
        self._futures.clear()
        return finished

    def shutdown(self) -> None:
        """Shutdown the thread pool; undelivered completions are dropped."""
        self._executor.shutdown(wait=True)
        dropped = self._completed.qsize()
        if dropped:
            logger.debug(f"Dropped {dropped} undelivered completion(s) on shutdown")

    def __enter__(self) -> "ThreadedDispatcher":
        return self

    def __exit__(self, *args) -> None:
        self.shutdown()
