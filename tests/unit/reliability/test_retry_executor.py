"""
Tests for the fixed-delay RetryExecutor.

These tests verify that:
1. The first successful attempt short-circuits
2. None results are retried like failures
3. Every failed attempt is followed by a sleep, including the last
4. Exhaustion raises or returns None depending on required
5. Non-retryable exceptions and cancellation propagate immediately
"""

import asyncio

import pytest

from hyperping.errors import RetryExhaustedError
from hyperping.reliability import RetryConfig, RetryExecutor


class NullLogger:
    def __init__(self) -> None:
        self.entries = []

    async def log(self, entry, *args, **kwargs) -> None:
        self.entries.append(entry)


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def build_executor(
    max_attempts: int = 3,
    delay: float = 1.0,
    **kwargs,
) -> tuple[RetryExecutor, SleepRecorder, NullLogger]:
    sleeper = SleepRecorder()
    logger = NullLogger()
    executor = RetryExecutor(
        RetryConfig(max_attempts=max_attempts, delay=delay, **kwargs),
        logger=logger,
        sleep=sleeper,
    )
    return executor, sleeper, logger


class TestRetryConfig:
    """Test RetryConfig validation."""

    def test_defaults(self):
        config = RetryConfig()

        assert config.max_attempts == 3
        assert config.delay == 1.0
        assert config.retryable_exceptions == (Exception,)

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryConfig(max_attempts=0)

    def test_rejects_negative_delay(self):
        with pytest.raises(ValueError):
            RetryConfig(delay=-1.0)


class TestRetryExecutorSuccess:
    """Test successful executions."""

    @pytest.mark.asyncio
    async def test_first_success_short_circuits(self):
        executor, sleeper, _ = build_executor()
        calls = 0

        async def operation():
            nonlocal calls
            calls += 1
            return ["10.0.0.1"]

        result = await executor.execute(operation)

        assert result == ["10.0.0.1"]
        assert calls == 1
        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_success_after_failures(self):
        executor, sleeper, logger = build_executor(delay=0.5)
        calls = 0

        async def operation():
            nonlocal calls
            calls += 1
            if calls < 3:
                raise ConnectionError("refused")
            return []

        result = await executor.execute(operation, operation_name="list_peers")

        assert result == []
        assert calls == 3
        assert sleeper.delays == [0.5, 0.5]
        assert len(logger.entries) == 2

    @pytest.mark.asyncio
    async def test_none_result_is_retried(self):
        executor, sleeper, _ = build_executor()
        results = iter([None, "ok"])

        async def operation():
            return next(results)

        assert await executor.execute(operation) == "ok"
        assert sleeper.delays == [1.0]


class TestRetryExecutorExhaustion:
    """Test behavior once every attempt failed."""

    @pytest.mark.asyncio
    async def test_required_raises_with_cause(self):
        executor, sleeper, _ = build_executor(max_attempts=3, delay=2.0)
        cause = ConnectionError("refused")

        async def operation():
            raise cause

        with pytest.raises(RetryExhaustedError) as error:
            await executor.execute(operation, operation_name="list_peers")

        assert error.value.__cause__ is cause
        assert error.value.attempts == 3
        assert "list_peers" in str(error.value)
        assert sleeper.delays == [2.0, 2.0, 2.0]

    @pytest.mark.asyncio
    async def test_not_required_returns_none(self):
        executor, sleeper, _ = build_executor(max_attempts=2)

        async def operation():
            raise TimeoutError()

        assert await executor.execute(operation, required=False) is None
        assert sleeper.delays == [1.0, 1.0]

    @pytest.mark.asyncio
    async def test_only_none_results_exhaust(self):
        executor, _, _ = build_executor(max_attempts=2)

        async def operation():
            return None

        with pytest.raises(RetryExhaustedError) as error:
            await executor.execute(operation)

        assert error.value.last_error is None


class TestRetryExecutorPropagation:
    """Test errors that must not be retried."""

    @pytest.mark.asyncio
    async def test_non_retryable_propagates(self):
        executor, sleeper, _ = build_executor(retryable_exceptions=(ConnectionError,))

        async def operation():
            raise KeyError("bug")

        with pytest.raises(KeyError):
            await executor.execute(operation, required=False)

        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_cancellation_during_sleep_propagates(self):
        started = asyncio.Event()

        async def blocking_sleep(delay: float) -> None:
            started.set()
            await asyncio.sleep(60)

        executor = RetryExecutor(
            RetryConfig(max_attempts=3, delay=60.0),
            logger=NullLogger(),
            sleep=blocking_sleep,
        )

        async def operation():
            raise ConnectionError("refused")

        task = asyncio.create_task(executor.execute(operation, required=False))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
