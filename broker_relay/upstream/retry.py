"""
Retry and polling policies for upstream calls
"""

import math
from dataclasses import dataclass
from typing import Optional

from broker_relay.core.enums import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_AFTER,
    MAX_RETRY_AFTER,
    DEPLOY_POLL_INTERVAL,
    DEPLOY_POLL_ATTEMPTS,
)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry for 202 Accepted responses.

    A call makes at most ``max_retries + 1`` attempts. The wait between
    attempts comes from the upstream ``retry-after`` hint, falling back to
    ``default_wait`` and never exceeding ``max_wait``.
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    default_wait: float = DEFAULT_RETRY_AFTER
    max_wait: float = MAX_RETRY_AFTER

    @property
    def max_attempts(self) -> int:
        return max(self.max_retries, 0) + 1

    def with_retries(self, max_retries: Optional[int]) -> "RetryPolicy":
        if max_retries is None or max_retries == self.max_retries:
            return self
        return RetryPolicy(max_retries, self.default_wait, self.max_wait)

    def wait_for(self, retry_after: Optional[str]) -> float:
        """Seconds to sleep for a ``retry-after`` header value"""
        wait = self.default_wait
        if retry_after is not None:
            try:
                wait = float(retry_after.strip())
            except ValueError:
                wait = self.default_wait
            if not math.isfinite(wait):
                wait = self.default_wait
        return min(max(wait, 0.0), self.max_wait)


@dataclass(frozen=True)
class PollPolicy:
    """Fixed-interval polling with an attempt ceiling"""

    interval: float = DEPLOY_POLL_INTERVAL
    max_attempts: int = DEPLOY_POLL_ATTEMPTS

    @property
    def budget(self) -> float:
        """Upper bound of time spent sleeping"""
        return self.interval * self.max_attempts
