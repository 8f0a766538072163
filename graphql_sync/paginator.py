"""
Paginator — Walks the products connection until the requested count is reached.

Each iteration of fetch_all() runs the same sequence:

  1. THROTTLE      ThrottleController.maybe_sleep_before_next_request()
  2. REQUEST       RetryPolicy.execute(client.execute, PRODUCTS_QUERY, {first, after})
  3. OBSERVE       ThrottleController.observe_response(body)
  4. ERRORS        extract_graphql_errors(body); stop only if there is no data
  5. PARSE         parse_products_page(body)
  6. ACCUMULATE    append products in edge order, adopt the last edge cursor

The loop stops when:
  - the requested total is reached                 (LIMIT_REACHED)
  - the server reports hasNextPage=false           (NO_MORE_PAGES)
  - a page comes back empty, whatever hasNextPage says (EMPTY_PAGE)
  - the request fails after retries                (REQUEST_FAILED)
  - the server returns errors without data         (GRAPHQL_ERRORS)
  - the body does not have the expected shape      (PARSE_ERROR)

None of these are raised to the caller. A degraded run returns the products
gathered so far, and RunStats.stop_reason plus the retry/sleep counters say
what happened.

Pages are fetched strictly one after another: every request needs the cursor
returned by the previous one. A Paginator instance must not be shared between
threads.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from .graphql_queries import PRODUCTS_QUERY
from .models import (
    GraphQLSyncError,
    Product,
    ResponseShapeError,
    RunStats,
    StopReason,
)
from .page_mapper import extract_graphql_errors, parse_products_page
from .retry_policy import RetryPolicy
from .throttle import ThrottleController

logger = logging.getLogger(__name__)


class Paginator:
    """Cursor pagination driver with throttling and retries.

    Attributes:
        client: Transport with an execute(query, variables) method.
        throttle: The cost-budget controller consulted before every request.
        retry_policy: Retry/backoff policy wrapped around every request.
        query: GraphQL document sent on every page.
        verbose: Log per-page progress at INFO instead of DEBUG.
    """

    def __init__(
        self,
        client,
        throttle: ThrottleController,
        retry_policy: Optional[RetryPolicy] = None,
        query: str = PRODUCTS_QUERY,
        verbose: bool = False,
    ):
        self.client = client
        self.throttle = throttle
        self.retry_policy = retry_policy or RetryPolicy()
        self.query = query
        self.verbose = verbose
        self._stats = RunStats()

    @property
    def stats(self) -> RunStats:
        return self._stats

    def fetch_all(self, total_limit: int, page_size: int) -> Tuple[List[Product], RunStats]:
        """Fetch up to total_limit products, page_size at a time.

        Both arguments must be positive; they are not validated here.

        Args:
            total_limit: Maximum number of products to return.
            page_size: Products requested per page (the last page may ask for fewer).

        Returns:
            A (products, stats) tuple. products never holds more than total_limit items.
        """
        self._stats = RunStats()
        products: List[Product] = []
        cursor: Optional[Any] = None
        stop_reason = StopReason.LIMIT_REACHED

        while len(products) < total_limit:
            self.throttle.maybe_sleep_before_next_request()

            fetch_count = min(page_size, total_limit - len(products))
            variables: Dict[str, Any] = {"first": fetch_count}
            if cursor is not None:
                variables["after"] = cursor

            self._progress("Fetching page: first=%d%s", fetch_count, f", after={cursor}" if cursor is not None else "")

            try:
                body = self.retry_policy.execute(
                    self.client.execute,
                    self.query,
                    variables,
                    on_retry=self._count_retry,
                )
            except GraphQLSyncError as e:
                logger.error("Fatal error after retries: %s", e)
                stop_reason = StopReason.REQUEST_FAILED
                break

            self._stats.total_requests += 1
            self.throttle.observe_response(body)

            errors = extract_graphql_errors(body)
            if errors:
                for message in errors:
                    logger.warning("GraphQL error: %s", message)
                if not isinstance(body, dict) or body.get("data") is None:
                    logger.error("No data returned; stopping.")
                    stop_reason = StopReason.GRAPHQL_ERRORS
                    break

            try:
                page = parse_products_page(body)
            except ResponseShapeError as e:
                logger.error("Failed to parse page: %s", e)
                stop_reason = StopReason.PARSE_ERROR
                break

            if not page.products:
                self._progress("Empty page received; stopping.")
                stop_reason = StopReason.EMPTY_PAGE
                break

            products.extend(page.products)
            self._progress("Got %d products (total so far: %d)", len(page.products), len(products))

            if not page.has_next_page:
                self._progress("No more pages.")
                stop_reason = StopReason.NO_MORE_PAGES
                break

            cursor = page.last_cursor

        self._stats.total_fetched = len(products)
        self._stats.total_sleep_seconds = self.throttle.total_sleep_seconds
        self._stats.avg_query_cost = self.throttle.avg_query_cost()
        self._stats.stop_reason = stop_reason

        return products, self._stats

    def _count_retry(self) -> None:
        self._stats.total_retries += 1

    def _progress(self, message: str, *args) -> None:
        logger.log(logging.INFO if self.verbose else logging.DEBUG, message, *args)
