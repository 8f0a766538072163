"""
Throttle Controller — Keeps the client inside a leaky-bucket query-cost budget.

Shopify-style GraphQL APIs charge every query a cost and keep a per-client
bucket that drains by that cost and refills at a fixed restore rate. When the
bucket cannot cover a query the server answers 429. The controller avoids
that by reading the budget the server reports in `extensions.cost` and
sleeping before the next request when the budget looks too low.

Decision rule (maybe_sleep_before_next_request):

    needed = last requestedQueryCost + safety_margin
    if currentlyAvailable >= needed:  no sleep
    else:                             sleep ceil((needed - available) / restoreRate) seconds

The estimate is in whole seconds and deliberately conservative. The
controller never decrements the available budget on its own between
responses; the next observation re-anchors the state to the server's own
accounting.

Malformed cost data is ignored: a response that cannot be read contributes
nothing to the running averages and never raises.

Pipeline context:
    The Paginator calls maybe_sleep_before_next_request() at the top of every
    iteration and observe_response() after every response.
"""

import logging
import math
import time
from typing import Any, Dict, Optional

from .models import CostObservation

logger = logging.getLogger(__name__)

DEFAULT_SAFETY_MARGIN = 20.0

# Budget assumed before the first observation; unused until has_observed.
_INITIAL_MAXIMUM_AVAILABLE = 1000.0
_INITIAL_RESTORE_RATE = 50.0


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {type(value).__name__}")
    try:
        number = float(value)
    except OverflowError:
        raise ValueError(f"number out of range: {value!r}") from None
    if not math.isfinite(number):
        raise ValueError(f"expected a finite number, got {value!r}")
    return number


class ThrottleController:
    """Observes cost extensions and sleeps when the budget is too low.

    Attributes:
        safety_margin: Extra budget headroom required on top of the last cost.
    """

    def __init__(self, safety_margin: float = DEFAULT_SAFETY_MARGIN):
        self.safety_margin = safety_margin

        self._last_requested_cost = 0.0
        self._maximum_available = _INITIAL_MAXIMUM_AVAILABLE
        self._currently_available = _INITIAL_MAXIMUM_AVAILABLE
        self._restore_rate = _INITIAL_RESTORE_RATE

        self._total_sleep = 0.0
        self._total_cost = 0.0
        self._observation_count = 0
        self._has_observed = False

    def observe_response(self, response: Any) -> None:
        """Update the budget state from a response's extensions.cost object.

        Only the subfields present are updated. Responses without cost data,
        or with cost data of the wrong shape, are ignored.

        Args:
            response: The decoded response body.
        """
        cost = self._cost_extension(response)
        if cost is None:
            return

        try:
            updates = self._read_cost_fields(cost)
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring malformed cost data: %s", e)
            return

        self._last_requested_cost = updates.get("requested", self._last_requested_cost)
        self._maximum_available = updates.get("maximum", self._maximum_available)
        self._currently_available = updates.get("available", self._currently_available)
        self._restore_rate = updates.get("restore_rate", self._restore_rate)

        self._total_cost += self._last_requested_cost
        self._observation_count += 1
        self._has_observed = True

        logger.debug(
            "Cost observed: requested=%s available=%s/%s restoreRate=%s",
            self._last_requested_cost,
            self._currently_available,
            self._maximum_available,
            self._restore_rate,
        )

    def maybe_sleep_before_next_request(self) -> float:
        """Sleep until enough budget should be restored for the next request.

        Returns:
            The number of seconds slept (0.0 when no sleep was needed).
        """
        if not self._has_observed or self._restore_rate <= 0:
            return 0.0

        needed = self._last_requested_cost + self.safety_margin
        if self._currently_available >= needed:
            return 0.0

        deficit = needed - self._currently_available
        sleep_seconds = max(0.0, float(math.ceil(deficit / self._restore_rate)))
        if sleep_seconds <= 0:
            return 0.0

        logger.warning(
            "Rate limit approaching: sleeping %.0fs (available=%s, needed=%s, restoreRate=%s)",
            sleep_seconds,
            self._currently_available,
            needed,
            self._restore_rate,
        )
        self._total_sleep += sleep_seconds
        time.sleep(sleep_seconds)
        return sleep_seconds

    def avg_query_cost(self) -> float:
        if self._observation_count == 0:
            return 0.0
        return self._total_cost / self._observation_count

    @property
    def total_sleep_seconds(self) -> float:
        return self._total_sleep

    @property
    def total_observations(self) -> int:
        return self._observation_count

    @property
    def has_observed(self) -> bool:
        return self._has_observed

    @property
    def last_observation(self) -> Optional[CostObservation]:
        """The budget state as of the latest observation, or None."""
        if not self._has_observed:
            return None
        return CostObservation(
            requested_query_cost=self._last_requested_cost,
            maximum_available=self._maximum_available,
            currently_available=self._currently_available,
            restore_rate=self._restore_rate,
        )

    @staticmethod
    def _cost_extension(response: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(response, dict):
            return None
        extensions = response.get("extensions")
        if not isinstance(extensions, dict):
            return None
        cost = extensions.get("cost")
        if not isinstance(cost, dict):
            if cost is not None:
                logger.debug("Ignoring non-object cost extension: %r", cost)
            return None
        return cost

    @staticmethod
    def _read_cost_fields(cost: Dict[str, Any]) -> Dict[str, float]:
        """Read every present cost field, failing on the first bad value."""
        updates = {}
        if "requestedQueryCost" in cost:
            updates["requested"] = _number(cost["requestedQueryCost"])

        if "throttleStatus" in cost:
            status = cost["throttleStatus"]
            if not isinstance(status, dict):
                raise TypeError("throttleStatus is not an object")
            if "maximumAvailable" in status:
                updates["maximum"] = _number(status["maximumAvailable"])
            if "currentlyAvailable" in status:
                updates["available"] = _number(status["currentlyAvailable"])
            if "restoreRate" in status:
                updates["restore_rate"] = _number(status["restoreRate"])
        return updates
