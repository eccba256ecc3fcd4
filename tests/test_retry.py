"""Tests for execute_with_retry."""

import asyncio

import pytest

from binrotation.collectors import execute_with_retry


class Flaky:
    """Fails a set number of times, then returns a value."""

    def __init__(self, failures: int, result: str = "ok"):
        self.failures = failures
        self.result = result
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError(f"failure {self.calls}")
        return self.result


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class TestExecuteWithRetry:
    """Test retry counts, delays and error propagation."""

    def test_first_attempt_success(self):
        """No retry when the operation succeeds immediately."""
        op = Flaky(failures=0)
        sleep = RecordingSleep()

        result = asyncio.run(execute_with_retry(op, max_retries=3, base_delay=1.0, sleep=sleep))

        assert result == "ok"
        assert op.calls == 1
        assert sleep.delays == []

    def test_exponential_delays(self):
        """Delays grow as base_delay * factor ** attempt."""
        op = Flaky(failures=3)
        sleep = RecordingSleep()

        result = asyncio.run(execute_with_retry(op, max_retries=3, base_delay=1.0, sleep=sleep))

        assert result == "ok"
        assert op.calls == 4
        assert sleep.delays == [1.0, 2.0, 4.0]

    def test_custom_backoff_factor(self):
        op = Flaky(failures=2)
        sleep = RecordingSleep()

        asyncio.run(execute_with_retry(
            op, max_retries=2, base_delay=0.5, backoff_factor=3, sleep=sleep,
        ))

        assert sleep.delays == [0.5, 1.5]

    def test_last_error_propagates_unchanged(self):
        """After max_retries + 1 attempts the final error is raised as is."""
        op = Flaky(failures=10)
        sleep = RecordingSleep()

        with pytest.raises(ConnectionError, match="failure 3"):
            asyncio.run(execute_with_retry(op, max_retries=2, base_delay=0, sleep=sleep))

        assert op.calls == 3
        assert len(sleep.delays) == 2

    def test_zero_retries(self):
        """max_retries=0 means a single attempt."""
        op = Flaky(failures=1)

        with pytest.raises(ConnectionError):
            asyncio.run(execute_with_retry(op, max_retries=0, base_delay=0, sleep=RecordingSleep()))

        assert op.calls == 1

    def test_on_retry_called_before_wait(self):
        """on_retry sees each error and the 1-based retry number before sleeping."""
        op = Flaky(failures=2)
        events: list[tuple] = []

        def on_retry(error: Exception, attempt: int) -> None:
            events.append(("retry", str(error), attempt))

        async def sleep(delay: float) -> None:
            events.append(("sleep", delay))

        asyncio.run(execute_with_retry(
            op, max_retries=3, base_delay=1.0, on_retry=on_retry, sleep=sleep,
        ))

        assert events == [
            ("retry", "failure 1", 1),
            ("sleep", 1.0),
            ("retry", "failure 2", 2),
            ("sleep", 2.0),
        ]

    def test_retry_if_rejects_error(self):
        """Errors rejected by retry_if are raised without retrying."""
        op = Flaky(failures=5)
        sleep = RecordingSleep()

        with pytest.raises(ConnectionError):
            asyncio.run(execute_with_retry(
                op, max_retries=3, base_delay=1.0,
                retry_if=lambda e: False, sleep=sleep,
            ))

        assert op.calls == 1
        assert sleep.delays == []
