"""
Retry Policies
==============
One reusable retry object shared by the balance query, transaction
submission and transaction confirmation call sites. Built on tenacity.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple, Type

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
    wait_none,
)


def linear_backoff(step_seconds: float = 2.0):
    """Wait ``attempt * step_seconds`` after each failed attempt."""
    return wait_incrementing(start=step_seconds, increment=step_seconds)


def no_backoff():
    return wait_none()


def retry_on(*exception_types: Type[BaseException]) -> Callable[[BaseException], bool]:
    """Predicate that retries only the given exception types."""
    def predicate(exc: BaseException) -> bool:
        return isinstance(exc, exception_types)
    return predicate


@dataclass
class RetryPolicy:
    """
    Bounded retry with a backoff and a retryable-error predicate.

    Usage:
        policy = RetryPolicy(max_attempts=3, backoff=linear_backoff(2.0))
        balance = policy.call(client.get_balance, pubkey)

    ``on_retry(attempt, exc, delay)`` is invoked before every sleep. When the
    attempts are exhausted, or the error is not retryable, the last exception
    is re-raised unchanged.
    """
    max_attempts: int = 3
    backoff: Any = field(default_factory=linear_backoff)
    retryable: Callable[[BaseException], bool] = field(default=retry_on(Exception))
    sleep: Callable[[float], None] = time.sleep

    def _retrying(self, on_retry: Optional[Callable[[int, BaseException, float], None]]) -> Retrying:
        def before_sleep(state: RetryCallState):
            if on_retry is not None:
                delay = state.next_action.sleep if state.next_action else 0
                on_retry(state.attempt_number, state.outcome.exception(), delay)

        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.backoff,
            retry=retry_if_exception(self.retryable),
            sleep=self.sleep,
            before_sleep=before_sleep,
            reraise=True,
        )

    def call(
        self,
        func: Callable,
        *args,
        on_retry: Optional[Callable[[int, BaseException, float], None]] = None,
        **kwargs,
    ):
        return self._retrying(on_retry)(func, *args, **kwargs)


def balance_policy(sleep: Callable[[float], None] = time.sleep) -> RetryPolicy:
    """Base-asset balance: 3 attempts, attempt x 2s backoff, any error."""
    return RetryPolicy(max_attempts=3, backoff=linear_backoff(2.0), sleep=sleep)


def submit_policy(sleep: Callable[[float], None] = time.sleep) -> RetryPolicy:
    """Transaction submission: 3 attempts, attempt x 2s backoff, any error."""
    return RetryPolicy(max_attempts=3, backoff=linear_backoff(2.0), sleep=sleep)


def confirm_policy(
    expired_errors: Tuple[Type[BaseException], ...],
    sleep: Callable[[float], None] = time.sleep,
) -> RetryPolicy:
    """Confirmation: 3 attempts, retried immediately and only on blockhash expiry."""
    return RetryPolicy(
        max_attempts=3,
        backoff=no_backoff(),
        retryable=retry_on(*expired_errors),
        sleep=sleep,
    )
