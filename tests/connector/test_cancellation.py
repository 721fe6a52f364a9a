"""Tests for the cancellation signal."""

import threading

from tradebridge.connector.cancellation import CancellationSignal


class TestCancellationSignal:

    def test_callbacks_run_once_on_cancel(self):
        signal = CancellationSignal()
        calls = []
        signal.register(lambda: calls.append("a"))
        signal.register(lambda: calls.append("b"))

        signal.cancel()
        signal.cancel()

        assert signal.cancelled
        assert calls == ["a", "b"]

    def test_register_after_cancel_runs_immediately(self):
        signal = CancellationSignal()
        signal.cancel()
        calls = []

        signal.register(lambda: calls.append("late"))

        assert calls == ["late"]

    def test_failing_callback_does_not_block_others(self):
        signal = CancellationSignal()
        calls = []

        def broken():
            raise RuntimeError("boom")

        signal.register(broken)
        signal.register(lambda: calls.append("ok"))
        signal.cancel()

        assert calls == ["ok"]

    def test_wait_times_out_when_not_cancelled(self):
        assert CancellationSignal().wait(timeout=0.05) is False

    def test_wait_wakes_on_cancel_from_other_thread(self):
        signal = CancellationSignal()
        timer = threading.Timer(0.05, signal.cancel)
        timer.start()

        assert signal.wait(timeout=2.0) is True
        timer.join()
