"""
Tests for the port gateway: per-call timeouts, fan-out and cancellation

Run with: python -m pytest spaces/tests/test_ports.py -v
"""

import concurrent.futures
import threading
import time

import pytest

from core.exceptions import PortTimeoutError, SearchCancelled
from spaces.services.domain import CancellationToken
from spaces.services.ports import PortGateway


@pytest.fixture
def pool():
    executor = concurrent.futures.ThreadPoolExecutor(max_workers=2, thread_name_prefix="test-port")
    yield executor
    executor.shutdown(wait=True)


@pytest.fixture
def release():
    """Event blocked calls wait on; always set on teardown."""
    event = threading.Event()
    yield event
    event.set()


class TestCall:

    def test_returns_result(self, pool):
        gateway = PortGateway(timeout=1.0, executor=pool)
        assert gateway.call(lambda a, b=0: a + b, 2, b=3) == 5

    def test_slow_call_times_out(self, pool, release):
        gateway = PortGateway(timeout=0.2, executor=pool)
        with pytest.raises(PortTimeoutError) as exc_info:
            gateway.call(release.wait, 5.0, port="bookings")
        assert exc_info.value.details["port"] == "bookings"

    def test_errors_propagate_unchanged(self, pool):
        def broken():
            raise ValueError("bad row")

        with pytest.raises(ValueError, match="bad row"):
            PortGateway(timeout=1.0, executor=pool).call(broken)

    def test_cancelled_token_skips_the_call(self, pool):
        token = CancellationToken()
        token.cancel()
        called = []
        with pytest.raises(SearchCancelled):
            PortGateway(executor=pool).call(called.append, 1, token=token)
        assert called == []


class TestMap:

    def test_preserves_order(self, pool):
        gateway = PortGateway(timeout=1.0, executor=pool)
        assert gateway.map(lambda n: n * 10, [3, 1, 2]) == [30, 10, 20]

    def test_empty(self, pool):
        assert PortGateway(executor=pool).map(lambda n: n, []) == []

    def test_large_fan_out_is_not_failed_for_queueing(self, pool):
        """12 calls of 0.1s on two threads take 0.6s; each call is well inside 0.5s."""
        def lookup(n):
            time.sleep(0.1)
            return n

        gateway = PortGateway(timeout=0.5, executor=pool)
        assert gateway.map(lookup, range(12)) == list(range(12))

    def test_one_slow_call_times_out(self, pool, release):
        def lookup(n):
            if n == 1:
                release.wait(5.0)
            return n

        gateway = PortGateway(timeout=0.2, executor=pool)
        with pytest.raises(PortTimeoutError):
            gateway.map(lookup, [0, 1, 2])

    def test_first_error_wins(self, pool):
        def lookup(n):
            if n == 2:
                raise KeyError(n)
            return n

        with pytest.raises(KeyError):
            PortGateway(timeout=1.0, executor=pool).map(lookup, [1, 2, 3])

    def test_token_deadline_bounds_queued_calls(self, release):
        """With the only thread stuck, the token's deadline ends the wait."""
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        gateway = PortGateway(timeout=5.0, executor=executor)
        try:
            with pytest.raises(SearchCancelled):
                gateway.map(lambda n: release.wait(5.0), [0, 1], token=CancellationToken(timeout=0.2))
        finally:
            release.set()
            executor.shutdown(wait=True)
