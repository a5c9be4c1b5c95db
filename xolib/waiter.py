"""Generic wait/poll utilities for XO backup workflows.

``wait_for_state`` turns a fire-and-forget remote command into a blocking,
timeout-bounded wait. The first refresh happens immediately on entry; after
every non-terminal refresh the loop sleeps ``min(interval, remaining)`` on a
``threading.Event`` so a caller can cancel the wait mid-sleep.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Type

from xolib.constants import (
    DEFAULT_MIN_CONFIRMATIONS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_RETRY_BUDGET,
    DEFAULT_WAIT_TIMEOUT,
)
from xolib.exceptions import (
    ConfigurationError,
    NotFoundError,
    TransientError,
    WaitCancelledError,
    WaitFailedError,
    WaitTimeoutError,
    XOError,
)
from xolib.utils import format_duration


class Outcome(Enum):
    """Result of evaluating a polled value."""

    PENDING = "pending"
    TARGET = "target"
    FAILED = "failed"


RefreshFn = Callable[[], Any]
PredicateFn = Callable[[Any], Outcome]


@dataclass(frozen=True)
class WaitConfig:
    """Per-wait polling policy. Shared by every wait mode."""

    timeout: float = DEFAULT_WAIT_TIMEOUT
    interval: float = DEFAULT_POLL_INTERVAL
    retry_budget: int = DEFAULT_RETRY_BUDGET
    min_confirmations: int = DEFAULT_MIN_CONFIRMATIONS
    failure_states: Tuple[Any, ...] = ()
    retryable: Tuple[Type[BaseException], ...] = (TransientError, NotFoundError)

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ConfigurationError(f"Poll interval must be positive, got {self.interval}")
        if self.retry_budget < 0:
            raise ConfigurationError(f"Retry budget cannot be negative, got {self.retry_budget}")
        if self.min_confirmations < 1:
            raise ConfigurationError(f"min_confirmations must be at least 1, got {self.min_confirmations}")


@dataclass
class PollState:
    """Progress of a single wait. Never shared between waits."""

    started_at: float
    attempts: int = 0
    consecutive_failures: int = 0
    confirmations: int = 0
    last_value: Any = None
    last_error: Optional[BaseException] = None

    def elapsed(self) -> float:
        return time.monotonic() - self.started_at


def wait_for_state(
    description: str,
    refresh_fn: RefreshFn,
    predicate: PredicateFn,
    *,
    config: Optional[WaitConfig] = None,
    logger: logging.Logger,
    cancel_event: Optional[threading.Event] = None,
) -> Any:
    """Poll ``refresh_fn`` until ``predicate`` reports the target.

    Args:
        description: Human readable subject used in log and error messages
        refresh_fn: Performs one remote fetch and returns the examined value
        predicate: Classifies a refreshed value as pending, target or failed
        config: Polling policy, defaults to ``WaitConfig()``
        logger: Logger for progress messages
        cancel_event: Setting this event aborts the wait

    Returns:
        The value observed by the refresh that satisfied the predicate.

    Raises:
        WaitTimeoutError: Target not reached before the timeout
        WaitFailedError: Failure state observed, or refresh errors exhausted
            the retry budget
        WaitCancelledError: ``cancel_event`` was set
    """
    config = config or WaitConfig()
    if cancel_event is None:
        cancel_event = threading.Event()

    state = PollState(started_at=time.monotonic())
    logger.info(
        "Waiting for %s (timeout: %ss, interval: %ss)...",
        description,
        config.timeout,
        config.interval,
        extra=_log_context(description, state),
    )

    while True:
        if cancel_event.is_set():
            raise _cancelled(description, state, logger)

        state.attempts += 1
        try:
            value = refresh_fn()
        except config.retryable as exc:
            state.consecutive_failures += 1
            state.confirmations = 0
            state.last_error = exc
            if state.consecutive_failures > config.retry_budget:
                elapsed = state.elapsed()
                logger.warning(
                    "%s failed: %d consecutive refresh errors (last: %s)",
                    description,
                    state.consecutive_failures,
                    exc,
                    extra=_log_context(description, state),
                )
                raise WaitFailedError(
                    f"Refreshing {description} failed {state.consecutive_failures} times in a row: {exc}",
                    description=description,
                    elapsed=elapsed,
                ) from exc
            logger.debug(
                "%s refresh failed (%d/%d): %s",
                description,
                state.consecutive_failures,
                config.retry_budget,
                exc,
            )
        except XOError as exc:
            raise WaitFailedError(
                f"Refreshing {description} failed: {exc}",
                description=description,
                elapsed=state.elapsed(),
            ) from exc
        else:
            state.consecutive_failures = 0
            state.last_value = value
            outcome = Outcome.FAILED if value in config.failure_states else predicate(value)

            if outcome is Outcome.FAILED:
                logger.warning(
                    "%s reached failure state: %s", description, value, extra=_log_context(description, state)
                )
                raise WaitFailedError(
                    f"{description} reached unexpected terminal state {value!r}",
                    description=description,
                    elapsed=state.elapsed(),
                    state=value,
                )

            if outcome is Outcome.TARGET:
                state.confirmations += 1
                if state.confirmations >= config.min_confirmations:
                    logger.info(
                        "%s complete after %d attempt(s) (%s)",
                        description,
                        state.attempts,
                        format_duration(state.elapsed()),
                        extra=_log_context(description, state),
                    )
                    return value
                logger.debug(
                    "%s confirmed %d/%d",
                    description,
                    state.confirmations,
                    config.min_confirmations,
                )
            else:
                state.confirmations = 0
                logger.debug(
                    "%s in progress: %s (elapsed: %ss)",
                    description,
                    value,
                    int(state.elapsed()),
                )

        elapsed = state.elapsed()
        if elapsed >= config.timeout:
            logger.warning(
                "%s not complete after %ss timeout",
                description,
                config.timeout,
                extra=_log_context(description, state),
            )
            raise WaitTimeoutError(
                f"Timed out waiting for {description} after {format_duration(elapsed)} "
                f"(last observed value: {state.last_value!r})",
                description=description,
                elapsed=elapsed,
                last_value=state.last_value,
            )

        if cancel_event.wait(min(config.interval, config.timeout - elapsed)):
            raise _cancelled(description, state, logger)


def _cancelled(description: str, state: PollState, logger: logging.Logger) -> WaitCancelledError:
    logger.warning(
        "Wait for %s cancelled after %d attempt(s)",
        description,
        state.attempts,
        extra=_log_context(description, state),
    )
    return WaitCancelledError(
        f"Wait for {description} was cancelled",
        description=description,
        elapsed=state.elapsed(),
    )


def _log_context(description: str, state: PollState) -> Dict[str, Any]:
    return {"wait": description, "attempt": state.attempts, "elapsed": round(state.elapsed(), 3)}
