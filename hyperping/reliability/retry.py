"""
Fixed-delay retry execution for directory lookups.

Runs an operation a bounded number of times with a constant sleep after
every failed attempt. A ``None`` result counts as a failure, so lookups that
return "nothing yet" are retried the same way as lookups that raise.

Callers choose whether exhaustion is fatal:
- required=True raises RetryExhaustedError chained to the last cause
- required=False returns None, for pollers that must survive outages

Cancellation is never retried or wrapped.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from hyperping.errors import RetryExhaustedError
from hyperping.logging import Logger
from hyperping.logging.hyperping_logging_models import RetryDebug, RetryInfo

T = TypeVar("T")


@dataclass(slots=True)
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    delay: float = 1.0  # seconds, slept after each failed attempt

    # Exceptions that should trigger a retry. Anything else propagates
    # on the first attempt.
    retryable_exceptions: tuple[type[Exception], ...] = field(
        default_factory=lambda: (Exception,)
    )

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        if self.delay < 0:
            raise ValueError("delay must not be negative")


class RetryExecutor:
    """
    Retry execution with a fixed inter-attempt delay.

    Example usage:
        executor = RetryExecutor(RetryConfig(max_attempts=3, delay=1.0))

        peers = await executor.execute(
            lambda: client.list_peers(selector),
            operation_name="list_peers",
            required=False,
        )
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        logger: Logger | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ):
        self._config = config or RetryConfig()
        self._logger = logger or Logger()
        self._sleep = sleep or asyncio.sleep

    @property
    def config(self) -> RetryConfig:
        return self._config

    def _is_retryable(self, exc: Exception) -> bool:
        return isinstance(exc, self._config.retryable_exceptions)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T | None]],
        operation_name: str = "operation",
        required: bool = True,
    ) -> T | None:
        """
        Execute operation, retrying failures and ``None`` results.

        Args:
            operation: Async callable to execute
            operation_name: Name for log and error messages
            required: Raise on exhaustion instead of returning None

        Returns:
            First non-None result, or None when exhausted and not required

        Raises:
            RetryExhaustedError: All attempts failed and required is True
            asyncio.CancelledError: Cancelled while calling or sleeping
        """
        attempts = self._config.max_attempts
        last_exception: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                result = await operation()
                if result is not None:
                    return result

                last_exception = None

            except Exception as exc:
                if not self._is_retryable(exc):
                    raise

                last_exception = exc

            await self._logger.log(
                RetryDebug(
                    message=f"Attempt {attempt}/{attempts} of [{operation_name}] failed: {last_exception or 'no result'}",
                    operation=operation_name,
                    attempt=attempt,
                    attempts=attempts,
                )
            )

            # Sleeps after the final attempt too, so every failed attempt
            # costs the same.
            await self._sleep(self._config.delay)

        error = RetryExhaustedError(
            operation_name,
            attempts,
            self._config.delay,
            last_exception,
        )

        if required:
            raise error from last_exception

        await self._logger.log(
            RetryInfo(
                message=str(error),
                operation=operation_name,
                attempt=attempts,
                attempts=attempts,
            )
        )

        return None
