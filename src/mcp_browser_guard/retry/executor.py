"""Strategy-driven retry loop for browser operations."""

import time
import enum
import random
import asyncio
import inspect
import logging
import dataclasses
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from selenium.common.exceptions import (
    ElementClickInterceptedException,
    ElementNotInteractableException,
    InvalidArgumentException,
    InvalidSelectorException,
    JavascriptException,
    NoSuchElementException,
    NoSuchWindowException,
    StaleElementReferenceException,
    TimeoutException,
)

from ..errors import (
    AttemptTimeoutError,
    ConfigurationError,
    DeadlineExceededError,
    RetryExhaustedError,
    StrategyNotFoundError,
    TerminalError,
    TransientError,
)
from .strategies import Strategy, StrategyRegistry

logger = logging.getLogger(__name__)


UnitOfWork = Callable[[], Union[Any, Awaitable[Any]]]

_TERMINAL_TYPES = (
    TerminalError,
    ConfigurationError,
    InvalidArgumentException,
    InvalidSelectorException,
    JavascriptException,
    PermissionError,
    ValueError,
    TypeError,
)

_TRANSIENT_TYPES = (
    TransientError,
    asyncio.TimeoutError,
    TimeoutError,
    ConnectionError,
    TimeoutException,
    StaleElementReferenceException,
    NoSuchWindowException,
    NoSuchElementException,
    ElementNotInteractableException,
    ElementClickInterceptedException,
)


class AttemptOutcome(str, enum.Enum):
    SUCCESS = "success"
    TRANSIENT_FAILURE = "transient_failure"
    TERMINAL_FAILURE = "terminal_failure"


@dataclass(frozen=True)
class AttemptRecord:
    operation: str
    strategy: str
    attempt: int
    max_attempts: int
    outcome: AttemptOutcome
    elapsed: float
    error: Optional[str] = None


def classify(exc: BaseException, strategy: Strategy) -> AttemptOutcome:
    """
    Decide whether a failure is worth another attempt.

    Known exception types decide first; anything else is transient only if its
    message contains one of the strategy's retryable markers.
    """
    if isinstance(exc, _TERMINAL_TYPES):
        return AttemptOutcome.TERMINAL_FAILURE
    if isinstance(exc, _TRANSIENT_TYPES):
        return AttemptOutcome.TRANSIENT_FAILURE
    message = str(exc).lower()
    if any(marker in message for marker in strategy.retryable_errors):
        return AttemptOutcome.TRANSIENT_FAILURE
    return AttemptOutcome.TERMINAL_FAILURE


def _attribute(exc: BaseException, operation_name: str, strategy_name: str, attempts: int) -> None:
    """Tag an error that leaves the loop unwrapped with the action it came from."""
    if getattr(exc, "action", None) is not None:
        return
    try:
        exc.action = operation_name
        exc.strategy = strategy_name
        exc.attempts = attempts
    except AttributeError:
        # Some C-level exception types reject new attributes.
        logger.debug(f"Could not attach retry context to {type(exc).__name__}")


class RetryExecutor:
    """
    Runs a unit of work under a named strategy from the registry.

    Each call owns its own attempt loop and timers, so one executor can serve
    many concurrent operations. Waits between attempts are plain
    ``asyncio.sleep`` calls: cancelling the calling task aborts the loop
    immediately instead of finishing the backoff.

    Plain callables run in a worker thread. A per-attempt timeout stops waiting
    for such a call but cannot interrupt the thread itself.
    """

    def __init__(
        self,
        registry: StrategyRegistry,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        rng: Callable[[], float] = random.random,
        on_attempt: Optional[Callable[[AttemptRecord], None]] = None,
    ):
        self._registry = registry
        self._sleep = sleep
        self._clock = clock
        self._rng = rng
        self._on_attempt = on_attempt

    @property
    def registry(self) -> StrategyRegistry:
        return self._registry

    async def run(self, strategy_name: str, operation_name: str, fn: UnitOfWork) -> None:
        await self.run_with_result(strategy_name, operation_name, fn)

    async def run_with_result(self, strategy_name: str, operation_name: str, fn: UnitOfWork) -> Any:
        try:
            strategy = self._registry.get(strategy_name)
        except StrategyNotFoundError as e:
            _attribute(e, operation_name, strategy_name, 0)
            raise
        started = self._clock()
        deadline_at = started + strategy.deadline if strategy.deadline is not None else None
        last_error: Optional[BaseException] = None
        attempt = 0

        while attempt < strategy.max_attempts:
            timeout = strategy.attempt_timeout
            if deadline_at is not None:
                remaining = deadline_at - self._clock()
                if remaining <= 0:
                    raise self._deadline_exceeded(strategy, operation_name, attempt, last_error)
                timeout = remaining if timeout is None else min(timeout, remaining)

            attempt += 1
            attempt_started = self._clock()
            try:
                result = await self._invoke(fn, timeout)
            except asyncio.CancelledError:
                logger.info(f"{operation_name} cancelled during attempt {attempt}/{strategy.max_attempts} ({strategy.name})")
                raise
            except Exception as e:
                last_error = e
                outcome = classify(e, strategy)
                self._record(strategy, operation_name, attempt, outcome, attempt_started, e)
                if outcome is AttemptOutcome.TERMINAL_FAILURE:
                    _attribute(e, operation_name, strategy.name, attempt)
                    raise
            else:
                self._record(strategy, operation_name, attempt, AttemptOutcome.SUCCESS, attempt_started)
                return result

            if attempt >= strategy.max_attempts:
                if deadline_at is not None and self._clock() >= deadline_at:
                    raise self._deadline_exceeded(strategy, operation_name, attempt, last_error)
                break

            delay = strategy.delay_for(attempt, self._rng)
            if deadline_at is not None and self._clock() + delay >= deadline_at:
                raise self._deadline_exceeded(strategy, operation_name, attempt, last_error)
            try:
                await self._sleep(delay)
            except asyncio.CancelledError:
                logger.info(f"{operation_name} cancelled while backing off after attempt {attempt} ({strategy.name})")
                raise

        logger.warning(f"{operation_name} exhausted {attempt} attempts ({strategy.name}): {last_error}")
        raise RetryExhaustedError(operation_name, strategy.name, attempt, last_error) from last_error

    async def _invoke(self, fn: UnitOfWork, timeout: Optional[float]) -> Any:
        if inspect.iscoroutinefunction(fn):
            awaitable = fn()
        else:
            awaitable = self._call_in_thread(fn)
        if timeout is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout)
        except asyncio.TimeoutError as e:
            raise AttemptTimeoutError(timeout) from e

    @staticmethod
    async def _call_in_thread(fn: UnitOfWork) -> Any:
        result = await asyncio.to_thread(fn)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _deadline_exceeded(self, strategy: Strategy, operation_name: str, attempts: int,
                           last_error: Optional[BaseException]) -> DeadlineExceededError:
        logger.warning(f"{operation_name} hit its {strategy.deadline:g}s deadline after {attempts} attempts ({strategy.name})")
        err = DeadlineExceededError(operation_name, strategy.name, attempts, strategy.deadline, last_error)
        err.__cause__ = last_error
        return err

    def _record(self, strategy: Strategy, operation_name: str, attempt: int, outcome: AttemptOutcome,
                attempt_started: float, error: Optional[BaseException] = None) -> AttemptRecord:
        record = AttemptRecord(
            operation=operation_name,
            strategy=strategy.name,
            attempt=attempt,
            max_attempts=strategy.max_attempts,
            outcome=outcome,
            elapsed=max(self._clock() - attempt_started, 0.0),
            error=f"{type(error).__name__}: {error}" if error is not None else None,
        )
        message = (
            f"{operation_name} attempt {attempt}/{strategy.max_attempts} ({strategy.name}) "
            f"{outcome.value} in {record.elapsed:.3f}s"
        )
        extra = {"attempt_record": dataclasses.asdict(record)}
        if outcome is AttemptOutcome.SUCCESS:
            logger.info(message, extra=extra)
        else:
            logger.warning(f"{message}: {record.error}", extra=extra)
        if self._on_attempt is not None:
            self._on_attempt(record)
        return record


__all__ = [
    "AttemptOutcome",
    "AttemptRecord",
    "RetryExecutor",
    "UnitOfWork",
    "classify",
]
