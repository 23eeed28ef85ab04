"""
Retry engine using the tenacity library for bounded exponential backoff.

Runs an async operation, classifies every failure through the
``ErrorClassifier`` and retries only failures whose kind is both flagged
retryable and listed in ``RetryConfig.retryable_kinds``.

Backoff before retry ``n`` (0-indexed) is::

    min(base_delay * backoff_multiplier ** n, max_delay)

which is tenacity's ``wait_exponential(multiplier=base_delay,
exp_base=backoff_multiplier, max=max_delay)``. Sleeping goes through an
injectable coroutine (``asyncio.sleep`` by default) so the event loop is
never blocked and tests can record delays without waiting.

The engine does not talk to monitoring; callers wrap their operation when
they need per-attempt instrumentation.
"""

import asyncio
import dataclasses
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, FrozenSet, Optional

import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    stop_after_delay,
    stop_when_event_set,
    wait_exponential,
)

from src.integrations.classifier import ErrorClassifier
from src.integrations.exceptions import ErrorContext, ErrorInfo, ErrorKind, RetryExhaustedError

logger = structlog.get_logger(__name__)

SleepFunction = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryConfig:
    """
    Retry policy.

    Attributes:
        max_retries: Retries after the first attempt (total calls = max_retries + 1)
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for any single delay, in seconds
        backoff_multiplier: Growth factor between consecutive delays
        retryable_kinds: Error kinds eligible for retry
        deadline: Optional overall time budget in seconds, None for no limit
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    retryable_kinds: FrozenSet[ErrorKind] = frozenset({ErrorKind.NETWORK, ErrorKind.API})
    deadline: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'retryable_kinds', frozenset(self.retryable_kinds))
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("Retry delays must be >= 0")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")
        if self.deadline is not None and self.deadline <= 0:
            raise ValueError("deadline must be positive when set")

    def merged(self, **changes: Any) -> 'RetryConfig':
        """Copy with per-call overrides applied."""
        return dataclasses.replace(self, **changes)

    def delay_for(self, retry_index: int) -> float:
        return min(self.base_delay * self.backoff_multiplier ** retry_index, self.max_delay)

    @property
    def worst_case_total_delay(self) -> float:
        """Sum of every backoff delay when all retries are used."""
        return sum(self.delay_for(n) for n in range(self.max_retries))

    def wait_strategy(self) -> wait_exponential:
        return wait_exponential(
            multiplier=self.base_delay,
            exp_base=self.backoff_multiplier,
            max=self.max_delay,
        )


class _AttemptFailed(Exception):
    """Carries a classified attempt failure through tenacity."""

    def __init__(self, info: ErrorInfo, original: BaseException):
        super().__init__(info.message)
        self.info = info
        self.original = original


class RetryEngine:
    """
    Executes async operations with classification-driven retries.

    Args:
        classifier: Classifier used for every failed attempt
        config: Default retry policy, overridable per call
        sleep: Awaitable sleep function, ``asyncio.sleep`` by default
    """

    def __init__(
        self,
        classifier: ErrorClassifier,
        config: Optional[RetryConfig] = None,
        sleep: Optional[SleepFunction] = None,
    ):
        self.classifier = classifier
        self.config = config or RetryConfig()
        self.sleep = sleep or asyncio.sleep

    async def with_retry(
        self,
        operation: Callable[[], Awaitable[Any]],
        context: ErrorContext,
        retry_config: Optional[RetryConfig] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Any:
        """
        Run ``operation`` until it succeeds or the policy gives up.

        Args:
            operation: Zero-argument coroutine function
            context: Error context attached to every classification
            retry_config: Policy for this call, defaults to the engine policy
            cancel_event: When set, no further retries are started

        Returns:
            The operation's result

        Raises:
            RetryExhaustedError: On a non-retryable failure, when retries are
                exhausted, on cancellation or past the deadline. ``str()`` is
                the classified user message.
        """
        config = retry_config or self.config
        attempts = 0

        async def attempt() -> Any:
            nonlocal attempts
            retry_count = attempts
            attempts += 1
            try:
                return await operation()
            except Exception as e:
                info = self.classifier.classify(
                    e,
                    context.with_metadata(attempt=retry_count + 1),
                    retry_count=retry_count,
                    max_retries=config.max_retries,
                )
                raise _AttemptFailed(info, e) from e

        def should_retry(exception: BaseException) -> bool:
            if not isinstance(exception, _AttemptFailed):
                return False
            return exception.info.retryable and exception.info.kind in config.retryable_kinds

        stop = stop_after_attempt(config.max_retries + 1)
        if cancel_event is not None:
            stop = stop | stop_when_event_set(cancel_event)
        if config.deadline is not None:
            stop = stop | stop_after_delay(config.deadline)

        retrying = AsyncRetrying(
            stop=stop,
            wait=config.wait_strategy(),
            retry=retry_if_exception(should_retry),
            sleep=self.sleep,
            before_sleep=self._before_sleep_callback(context),
            reraise=True,
        )

        try:
            result = await retrying(attempt)
        except _AttemptFailed as failed:
            cancelled = cancel_event is not None and cancel_event.is_set()
            logger.error(
                "Retry attempts exhausted",
                operation=context.operation,
                attempts=attempts,
                max_retries=config.max_retries,
                kind=failed.info.kind.value,
                retryable=failed.info.retryable,
                cancelled=cancelled,
                error_id=failed.info.id,
            )
            raise RetryExhaustedError(failed.info, attempts, cancelled=cancelled) from failed.original

        if attempts > 1:
            logger.info(
                "Operation succeeded after retry",
                operation=context.operation,
                attempts=attempts,
            )
        return result

    @staticmethod
    def _before_sleep_callback(context: ErrorContext) -> Callable[[Any], None]:
        def before_sleep(retry_state: Any) -> None:
            exception = retry_state.outcome.exception()
            info = getattr(exception, 'info', None)
            logger.warning(
                "Attempt failed, backing off",
                operation=context.operation,
                attempt_number=retry_state.attempt_number,
                kind=info.kind.value if info else None,
                backoff_seconds=getattr(retry_state.next_action, 'sleep', 0),
            )
        return before_sleep
