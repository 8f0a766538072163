"""
Retry Policy — Bounded retries with exponential backoff and jitter.

One call to RetryPolicy.execute() is one logical request. The policy re-issues
the same query and variables while the failure looks transient:

  - HTTP 429 (rate limited) or any status >= 500
  - TransportError (connection refused, timeout, TLS, undecodable body)

Pagination requests are read-only, so repeating one is always safe.

Backoff before retry N (0-based):

    min(base_delay_ms * 2**N, max_delay_ms) + uniform jitter in [0, jitter_ms)

With the defaults (200 ms, 5000 ms, 100 ms) the waits are roughly 0.2s, 0.4s,
0.8s, 1.6s, 3.2s and then capped at 5s.

Outcomes:
  - 2xx                          body returned
  - other non-2xx status         HTTPStatusError, no further attempts
  - retryable on last attempt    MaxRetriesExceededError
  - any other exception          propagates unchanged
"""

import logging
import math
import random
import time
from typing import Any, Callable, Dict, Optional

from .models import HTTPStatusError, MaxRetriesExceededError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 6
DEFAULT_BASE_DELAY_MS = 200
DEFAULT_MAX_DELAY_MS = 5000
DEFAULT_JITTER_MS = 100

# Any attempt past this many doublings is at max_delay_ms.
_MAX_DOUBLINGS = 64


def is_retryable_status(status: int) -> bool:
    return status == 429 or status >= 500


def compute_backoff_ms(
    attempt: int,
    base_ms: float = DEFAULT_BASE_DELAY_MS,
    max_ms: float = DEFAULT_MAX_DELAY_MS,
    jitter_ms: float = DEFAULT_JITTER_MS,
) -> float:
    """Exponential backoff delay in milliseconds for a 0-based attempt.

    The result lies in [min(base * 2**attempt, max), that + jitter_ms).
    """
    if attempt >= _MAX_DOUBLINGS:
        backoff = float(max_ms)
    else:
        backoff = float(min(base_ms * (2 ** attempt), max_ms))
    if jitter_ms <= 0:
        return backoff

    upper = backoff + jitter_ms
    total = backoff + random.uniform(0, jitter_ms)
    if total >= upper:
        total = math.nextafter(upper, backoff)
    return total


class RetryPolicy:
    """Wraps a transport call with bounded retries.

    Attributes:
        max_attempts: Total attempts per call, including the first one.
        base_delay_ms: Backoff for attempt 0.
        max_delay_ms: Upper bound for the exponential part of the backoff.
        jitter_ms: Width of the random jitter added to every backoff.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay_ms: float = DEFAULT_BASE_DELAY_MS,
        max_delay_ms: float = DEFAULT_MAX_DELAY_MS,
        jitter_ms: float = DEFAULT_JITTER_MS,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.jitter_ms = jitter_ms

    def backoff_ms(self, attempt: int) -> float:
        return compute_backoff_ms(attempt, self.base_delay_ms, self.max_delay_ms, self.jitter_ms)

    def execute(
        self,
        operation: Callable[[str, Dict[str, Any]], Any],
        query: str,
        variables: Dict[str, Any],
        on_retry: Optional[Callable[[], None]] = None,
    ) -> Any:
        """Run operation(query, variables) until it succeeds or attempts run out.

        Args:
            operation: A transport call returning an object with status_code
                and body (GraphQLClient.execute).
            query: The GraphQL document, re-sent unchanged on every attempt.
            variables: The variables, re-sent unchanged on every attempt.
            on_retry: Called once for every re-issued request.

        Returns:
            The response body of the first 2xx response.

        Raises:
            MaxRetriesExceededError: Every attempt failed with a retryable condition.
            HTTPStatusError: A non-retryable non-2xx status was returned.
        """
        for attempt in range(self.max_attempts):
            last_attempt = attempt == self.max_attempts - 1

            try:
                response = operation(query, variables)
            except TransportError as e:
                if last_attempt:
                    raise MaxRetriesExceededError(self.max_attempts, last_error=str(e)) from e
                self._wait(attempt, f"Network error: {e}", on_retry)
                continue

            status = response.status_code
            if is_retryable_status(status):
                if last_attempt:
                    raise MaxRetriesExceededError(self.max_attempts, last_status=status)
                self._wait(attempt, f"HTTP {status}", on_retry)
                continue

            if not 200 <= status < 300:
                raise HTTPStatusError(status, response.body)

            return response.body

        # range() is never empty because max_attempts >= 1
        raise MaxRetriesExceededError(self.max_attempts)

    def _wait(self, attempt: int, reason: str, on_retry: Optional[Callable[[], None]]) -> None:
        backoff = self.backoff_ms(attempt)
        logger.warning(
            "%s - attempt %d/%d, backing off %.0f ms",
            reason,
            attempt + 1,
            self.max_attempts,
            backoff,
        )
        if on_retry is not None:
            on_retry()
        time.sleep(backoff / 1000.0)
