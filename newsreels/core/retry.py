"""
Retry policy for calls to unreliable external services.

Every outbound call made by a pipeline stage goes through RetryPolicy.execute,
an explicit bounded loop with linear-times-attempt backoff: after failed
attempt k the policy waits ``base_delay * k`` before trying again.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from .exceptions import PermanentError, RetryExhaustedError
from .result import Result

T = TypeVar('T')
logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class RetryPolicy:
    """
    Bounded retry with increasing delay.

    Example:
        policy = RetryPolicy(max_attempts=3, base_delay=2.0)
        result = await policy.execute(lambda: client.generate(prompt), name="image")
        if result.is_ok():
            data = result.unwrap()
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 2.0,
        max_delay: float = 60.0,
        sleep: Optional[Sleep] = None,
        logger_name: Optional[str] = None
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._sleep = sleep or asyncio.sleep
        self.logger = logging.getLogger(logger_name) if logger_name else logger

    def delay_for(self, attempt: int, base_delay: Optional[float] = None) -> float:
        """Delay to wait after failed attempt number ``attempt`` (1-based)."""
        base = self.base_delay if base_delay is None else base_delay
        return min(base * attempt, self.max_delay)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        name: Optional[str] = None
    ) -> Result[T, RetryExhaustedError]:
        """
        Run ``operation`` until it succeeds or the attempt budget is spent.

        Args:
            operation: Zero-argument coroutine function performing the call
            max_attempts: Override the policy's attempt budget
            base_delay: Override the policy's base delay (seconds)
            name: Operation name for logs and the error message

        Returns:
            Result.ok(value) or Result.err(RetryExhaustedError) carrying the
            attempt count and the last exception
        """
        attempts = self.max_attempts if max_attempts is None else max_attempts
        if attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        op_name = name or getattr(operation, "__name__", "operation")
        last_error: Optional[BaseException] = None

        for attempt in range(1, attempts + 1):
            try:
                return Result.ok(await operation())
            except asyncio.CancelledError:
                raise
            except PermanentError as e:
                self.logger.error(f"{op_name} failed permanently on attempt {attempt}: {e}")
                return Result.err(RetryExhaustedError(op_name, attempt, e))
            except Exception as e:
                last_error = e
                if attempt == attempts:
                    break
                delay = self.delay_for(attempt, base_delay)
                self.logger.warning(
                    f"{op_name} attempt {attempt}/{attempts} failed: {e}. "
                    f"Retrying in {delay:.1f}s..."
                )
                await self._sleep(delay)

        error = RetryExhaustedError(op_name, attempts, last_error)
        self.logger.error(str(error))
        return Result.err(error)
