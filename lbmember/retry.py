"""Conflict retry for mutating pool requests.

A pool accepts one structural change at a time. While another change is in
flight the control plane answers 409, so mutating calls are retried at the
request level for as long as the operation's timeout allows:

    rc = conflict_retry_config(timeouts.create)
    result = await retry_on_conflict(rc, lambda: http.post(...))
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from lbmember.constants import CONFLICT_RETRY_INTERVAL
from lbmember.errors import CloudError, ErrorKind

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RetryConfig:
    """Attempt budget for one mutating request.

    Attributes:
        amount: Total attempts, including the first one. Always >= 1.
        interval: Seconds to wait between attempts.
    """

    amount: int
    interval: float


NO_RETRY = RetryConfig(amount=1, interval=0.0)


def conflict_retry_config(
    timeout: float,
    interval: float = CONFLICT_RETRY_INTERVAL,
) -> RetryConfig:
    """Derive the conflict retry budget from an operation timeout.

    ``amount * interval`` never exceeds ``timeout`` once more than one attempt
    fits; a budget shorter than one interval still gets a single attempt.
    """
    if interval <= 0:
        return RetryConfig(amount=1, interval=0.0)
    amount = max(1, int(timeout // interval))
    return RetryConfig(amount=amount, interval=interval)


def _is_conflict(exc: BaseException) -> bool:
    return isinstance(exc, CloudError) and exc.kind is ErrorKind.CONFLICT


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.bind(component="retry").warning(
        "Conflicting operation in progress, attempt {n} failed: {error}. Retrying...",
        n=state.attempt_number,
        error=exc,
    )


async def retry_on_conflict(
    config: RetryConfig,
    call: Callable[[], Awaitable[T]],
) -> T:
    """Run ``call``, retrying while it raises a CONFLICT ``CloudError``.

    Non-conflict errors propagate on the first occurrence. When the attempt
    budget is exhausted the last conflict is re-raised as an API error.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(config.amount),
        wait=wait_fixed(config.interval),
        retry=retry_if_exception(_is_conflict),
        before_sleep=_log_retry,
    )
    try:
        async for attempt in retrying:
            with attempt:
                return await call()
    except RetryError as e:
        last = e.last_attempt.exception()
        assert isinstance(last, CloudError)
        raise CloudError(
            kind=ErrorKind.API,
            message=f"conflict persisted after {config.amount} attempts: {last.message}",
            status=last.status,
            detail=last.detail,
        ) from last
    raise AssertionError("unreachable")
