"""Retry-with-backoff wrapper for single network operations.

Each attempt is a full re-invocation of the operation.  Errors are not
classified: any exception schedules another attempt until the policy
gives up, at which point the last exception propagates unchanged.

Termination is guaranteed by ``BackoffPolicy.max_elapsed`` (always
finite) and, optionally, ``BackoffPolicy.max_attempts``.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from typing import TypeVar

from bookdrop.models.config import BackoffPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Retrier:
    """Runs operations under a ``BackoffPolicy``.

    Parameters
    ----------
    policy:
        The backoff schedule and its termination bounds.
    sleep:
        Blocking sleep function.  Injected by tests.
    clock:
        Monotonic clock returning seconds.  Injected by tests.
    rng:
        Returns a float in ``[0, 1)`` for jitter.  Injected by tests.
    """

    def __init__(
        self,
        policy: BackoffPolicy,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        rng: Callable[[], float] = random.random,
    ) -> None:
        self.policy = policy
        self._sleep = sleep
        self._clock = clock
        self._rng = rng

    def call(self, operation: Callable[[], T], *, description: str = "operation") -> T:
        """Invoke *operation* until it succeeds or the policy gives up.

        Returns the operation's value.  Re-raises the last exception once
        the attempt or elapsed-time bound is reached.
        """
        started = self._clock()
        attempt = 0
        while True:
            attempt += 1
            try:
                return operation()
            except Exception as exc:
                delay = self._next_delay(attempt, started)
                if delay is None:
                    logger.warning(
                        "%s failed after %d attempt(s), giving up: %s",
                        description,
                        attempt,
                        exc,
                    )
                    raise
                logger.info(
                    "%s failed on attempt %d (%s); retrying in %.2fs",
                    description,
                    attempt,
                    exc,
                    delay,
                )
            self._sleep(delay)

    def interval_for(self, attempt: int) -> float:
        """Return the un-jittered wait after the *attempt*-th failure (1-based)."""
        policy = self.policy
        interval = policy.initial_interval
        # Stop growing at the cap so large attempt counts cannot overflow.
        for _ in range(attempt - 1):
            if interval >= policy.max_interval or policy.multiplier == 1.0:
                break
            interval *= policy.multiplier
        return min(policy.max_interval, interval)

    def _next_delay(self, attempt: int, started: float) -> float | None:
        policy = self.policy
        if policy.max_attempts is not None and attempt >= policy.max_attempts:
            return None

        interval = self.interval_for(attempt)
        delta = policy.randomization_factor * interval
        delay = interval - delta + self._rng() * 2 * delta

        if self._clock() - started + delay > policy.max_elapsed:
            return None
        return delay


def retry(operation: Callable[[], T], policy: BackoffPolicy, *, description: str = "operation") -> T:
    """Run *operation* once under *policy* with the real clock and sleep."""
    return Retrier(policy).call(operation, description=description)
