"""
graphql_sync — Paginated GraphQL products sync with cost-budget throttling.

This package contains the modules that implement the sync pipeline. Each
module handles one concern:

  orchestrator.py      Pipeline coordination (config, fetch, save, summary)
  paginator.py         Cursor pagination loop and run statistics
  throttle.py          Leaky-bucket cost budget tracking and proactive sleeps
  retry_policy.py      Bounded retries with exponential backoff and jitter
  graphql_client.py    HTTP communication with the GraphQL endpoint
  graphql_queries.py   GraphQL query definition
  page_mapper.py       Parse one response into products, cursor and errors
  output_manager.py    Per-run output folders, JSON files and retention pruning
  models.py            Shared data and error types
"""

from .models import (
    CostObservation,
    GraphQLSyncError,
    HTTPStatusError,
    MaxRetriesExceededError,
    PageResult,
    Product,
    ResponseShapeError,
    RunStats,
    StopReason,
    TransportError,
)
from .graphql_queries import PRODUCTS_QUERY
from .graphql_client import GraphQLClient, GraphQLResponse
from .page_mapper import extract_graphql_errors, parse_product_node, parse_products_page
from .throttle import ThrottleController
from .retry_policy import RetryPolicy, compute_backoff_ms, is_retryable_status
from .paginator import Paginator
from .output_manager import OutputManager
from .orchestrator import SyncOrchestrator

__version__ = "0.1.0"
