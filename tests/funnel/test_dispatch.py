"""
Unit tests for the inline and threaded dispatchers.
"""

import threading

import pytest

from quiz_funnel.funnel.dispatch import InlineDispatcher, Outcome, ThreadedDispatcher


class TestInlineDispatcher:
    def test_completes_before_submit_returns(self):
        received = []

        InlineDispatcher().submit(1, lambda: "value", received.append)

        assert received == [Outcome(token=1, value="value")]

    def test_errors_become_outcomes(self):
        received = []

        def failing():
            raise ValueError("nope")

        InlineDispatcher().submit(7, failing, received.append)

        assert not received[0].ok
        assert isinstance(received[0].error, ValueError)


@pytest.mark.slow
class TestThreadedDispatcher:
    def test_completions_delivered_on_draining_thread(self):
        owner = threading.get_ident()
        delivered = []

        with ThreadedDispatcher(max_workers=2) as dispatcher:
            dispatcher.submit(1, threading.get_ident, lambda o: delivered.append((o, threading.get_ident())))
            dispatcher.submit(2, lambda: 42, lambda o: delivered.append((o, threading.get_ident())))
            dispatcher.wait_all(timeout=5)

            assert delivered == []
            assert dispatcher.drain() == 2

        assert {outcome.token for outcome, _ in delivered} == {1, 2}
        assert all(thread == owner for _, thread in delivered)
        worker_ident = next(o.value for o, _ in delivered if o.token == 1)
        assert worker_ident != owner

    def test_drain_when_nothing_queued_returns_zero(self):
        with ThreadedDispatcher() as dispatcher:
            assert dispatcher.drain() == 0
