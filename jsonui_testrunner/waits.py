# jsonui_testrunner/waits.py
"""
@file waits.py
@brief Bounded busy-poll primitives.

There is no scheduler to suspend into: every wait blocks the calling thread
with sleep-poll loops bounded by the step's timeout. Each probe is evaluated
at least once, so a zero timeout means "check now".
"""

from __future__ import annotations

import time
from typing import Any, Callable, List, Optional, Sequence, TypeVar

from .exceptions import TimeoutError
from .timinglogger import TIMING_LOGGER

T = TypeVar("T")


class _Poll:
    """Deadline bookkeeping and timing events shared by the wait helpers."""

    def __init__(self, kind: str, description: str, timeout: float, interval: float):
        self.kind = kind
        self.description = description
        self.timeout = timeout
        self.interval = interval
        self.attempts = 0
        self.started = time.monotonic()
        self._event("start", metadata={"timeout_s": timeout, "interval_s": interval})

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started

    def _event(self, phase: str, status: str = "info", description: Optional[str] = None,
               metadata: Optional[dict] = None) -> None:
        if TIMING_LOGGER.is_enabled():
            TIMING_LOGGER.log(
                event=f"{self.kind}_{phase}",
                description=description or self.description,
                status=status,
                metadata=metadata,
            )

    def succeeded(self, description: Optional[str] = None, **extra: Any) -> None:
        metadata = {"attempts": self.attempts, "elapsed_s": round(self.elapsed, 3)}
        metadata.update(extra)
        self._event("success", status="success", description=description, metadata=metadata)

    def next_round(self) -> bool:
        """Sleep one interval clamped to the deadline; False once the deadline has passed."""
        remaining = self.timeout - self.elapsed
        if remaining <= 0:
            return False
        time.sleep(min(self.interval, remaining))
        return True

    def expire(self, message: str, description: Optional[str] = None) -> TimeoutError:
        """Build the TimeoutError for an exhausted poll."""
        elapsed = self.elapsed
        self._event("timeout", status="error", metadata={
            "timeout_s": self.timeout,
            "attempts": self.attempts,
            "elapsed_s": round(elapsed, 3),
        })
        error = TimeoutError(message)
        error.description = description or self.description
        error.timeout = self.timeout
        error.attempt_count = self.attempts
        error.elapsed_time = elapsed
        return error


def wait_until(
    predicate: Callable[[], T],
    timeout: float,
    interval: float = 0.1,
    description: str = "condition",
) -> T:
    """
    Poll predicate until it returns a truthy value or timeout elapses.

    Exceptions raised by the predicate count as a miss; the last one is kept.

    @return The truthy value returned by predicate
    @throws TimeoutError carrying the last exception raised by predicate, if any
    """
    poll = _Poll("wait", description, timeout, interval)
    last_error: Optional[Exception] = None

    while True:
        poll.attempts += 1
        try:
            value = predicate()
        except Exception as e:
            last_error = e
        else:
            if value:
                poll.succeeded()
                return value
        if not poll.next_round():
            break

    message = f"Timed out waiting for {description} after {timeout}s"
    if last_error is None:
        message += " (condition kept returning falsy)"
    else:
        message += f": {type(last_error).__name__}: {last_error}"
    error = poll.expire(message)
    error.original_exception = last_error
    raise error


def wait_for_any(
    predicates: Sequence[Callable[[], Any]],
    timeout: float,
    interval: float = 0.1,
    descriptions: Optional[Sequence[str]] = None,
) -> int:
    """
    Poll predicates in order until any returns a truthy value.

    Within one round predicates are tried in the order given, so the lowest
    index wins when several match at once.

    @return Index of the first predicate that succeeded
    @throws TimeoutError with `original_exceptions` (one slot per predicate)
    """
    names = list(descriptions) if descriptions is not None else [f"predicate[{i}]" for i in range(len(predicates))]
    joined = ", ".join(names)
    poll = _Poll("wait_any", joined, timeout, interval)
    errors: List[Optional[Exception]] = [None] * len(predicates)

    while True:
        poll.attempts += 1
        for index, predicate in enumerate(predicates):
            try:
                matched = predicate()
            except Exception as e:
                errors[index] = e
                continue
            if matched:
                poll.succeeded(description=names[index], index=index)
                return index
        if not poll.next_round():
            break

    error = poll.expire(f"Timed out waiting for any of [{joined}] after {timeout}s",
                        description=f"any of [{joined}]")
    error.original_exception = next((e for e in errors if e is not None), None)
    error.original_exceptions = errors
    raise error
