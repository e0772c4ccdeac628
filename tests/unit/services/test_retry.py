"""
Tests for the tenacity-backed with_retry decorator.
"""
import pytest

from bolsync.core.circuit_breakers import with_retry


def test_sync_function_retried_until_success():
    calls = []

    @with_retry(max_attempts=3, min_wait=0, max_wait=0)
    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise ConnectionError("reset")
        return "ok"

    assert flaky() == "ok"
    assert len(calls) == 3


def test_reraises_after_last_attempt():
    @with_retry(max_attempts=2, min_wait=0, max_wait=0)
    def broken():
        raise ConnectionError("down")

    with pytest.raises(ConnectionError):
        broken()


async def test_async_function_retried():
    calls = []

    @with_retry(max_attempts=2, min_wait=0, max_wait=0)
    async def flaky():
        calls.append(1)
        if len(calls) == 1:
            raise TimeoutError("slow")
        return "ok"

    assert await flaky() == "ok"
    assert len(calls) == 2
