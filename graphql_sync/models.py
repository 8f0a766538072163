"""
Models — Shared data and error types for the sync pipeline.

Every other module in the package speaks in these types:

  Product            One record from the products connection (id, title, updatedAt)
  PageResult         The products of one page, the last edge cursor and hasNextPage
  CostObservation    Snapshot of the server's query-cost budget (extensions.cost)
  RunStats           Counters for one pagination run, filled in by the Paginator
  StopReason         Why a pagination run ended

Error types form a small hierarchy rooted at GraphQLSyncError so callers can
branch on the failure class instead of parsing messages:

  TransportError            Connection, timeout, TLS or undecodable body (retryable)
  HTTPStatusError           A non-2xx status that is not worth retrying
  MaxRetriesExceededError   Every attempt hit a retryable failure
  ResponseShapeError        The response lacks the expected data container
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Product:
    """A product record as returned by the API. Values are opaque strings."""

    id: str
    title: str
    updated_at: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "title": self.title, "updatedAt": self.updated_at}


@dataclass
class PageResult:
    products: List[Product] = field(default_factory=list)
    last_cursor: Optional[Any] = None
    has_next_page: bool = False


@dataclass(frozen=True)
class CostObservation:
    requested_query_cost: float
    maximum_available: float
    currently_available: float
    restore_rate: float


class StopReason(Enum):
    LIMIT_REACHED = "limit_reached"
    NO_MORE_PAGES = "no_more_pages"
    EMPTY_PAGE = "empty_page"
    REQUEST_FAILED = "request_failed"
    GRAPHQL_ERRORS = "graphql_errors"
    PARSE_ERROR = "parse_error"


@dataclass
class RunStats:
    """Counters for one Paginator.fetch_all() run.

    Attributes:
        total_fetched: Products accumulated by the run.
        total_requests: Requests that returned a response (after retries).
        total_retries: Requests re-issued because of a retryable failure.
        total_sleep_seconds: Time the throttle spent waiting for budget.
        avg_query_cost: Mean requestedQueryCost over observed responses.
        stop_reason: Why the loop ended (None until a run completes).
    """

    total_fetched: int = 0
    total_requests: int = 0
    total_retries: int = 0
    total_sleep_seconds: float = 0.0
    avg_query_cost: float = 0.0
    stop_reason: Optional[StopReason] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_fetched": self.total_fetched,
            "total_requests": self.total_requests,
            "total_retries": self.total_retries,
            "total_sleep_seconds": self.total_sleep_seconds,
            "avg_query_cost": self.avg_query_cost,
            "stop_reason": self.stop_reason.value if self.stop_reason else None,
        }


class GraphQLSyncError(Exception):
    """Base class for every failure raised by the sync pipeline."""


class TransportError(GraphQLSyncError):
    """The request could not be completed or the body could not be decoded."""


class HTTPStatusError(GraphQLSyncError):
    """The server answered with a non-2xx status that should not be retried."""

    def __init__(self, status_code: int, body: Any = None):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}")


class MaxRetriesExceededError(GraphQLSyncError):
    """All attempts failed with a retryable condition.

    Carries the last HTTP status (when the last failure was a response) or
    the last transport error message (when the request itself failed).
    """

    def __init__(
        self,
        attempts: int,
        last_status: Optional[int] = None,
        last_error: Optional[str] = None,
    ):
        self.attempts = attempts
        self.last_status = last_status
        self.last_error = last_error
        if last_status is not None:
            detail = f"Last HTTP status: {last_status}"
        else:
            detail = f"Last error: {last_error}"
        super().__init__(f"Max retries exceeded after {attempts} attempts. {detail}")


class ResponseShapeError(GraphQLSyncError):
    """The response body does not contain the expected data container."""
