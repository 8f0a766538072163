"""
Settings — Default configuration values for the GraphQL sync.

This module provides the DEFAULT_SETTINGS dict that the orchestrator uses as
fallback values when environment variables are not set. The actual
configuration is loaded from .env at runtime; these defaults point at a local
mock server so the sync works out of the box during development.

Configuration precedence (highest to lowest):
  1. CLI flags (--endpoint, --total, --page-size, --timeout-ms, --token, --debug, --no-save)
  2. Environment variables (from .env file)
  3. DEFAULT_SETTINGS (this file)

Settings reference:
  GRAPHQL_ENDPOINT        Full URL of the GraphQL endpoint
  GRAPHQL_ACCESS_TOKEN    Sent as X-Shopify-Access-Token when non-empty
  TOTAL_LIMIT             Maximum number of products to fetch
  PAGE_SIZE               Products requested per page
  TIMEOUT_MS              Per-request HTTP timeout in milliseconds
  SAFETY_MARGIN           Extra cost-budget headroom before the throttle sleeps
  MAX_ATTEMPTS            Attempts per request before giving up (first try included)
  RUN_NAME                Label used in output folder naming
  OUTPUT_DIR              Where to write sync output (default: ./output)
  OUTPUT_RETENTION_DAYS   How many days to keep old output folders (0 = keep forever)
  SAVE_JSON               Whether to write the fetched products to disk
  DEBUG                   Whether to print verbose output
"""

RUN_NAME = "GraphQL_Sync"

DEFAULT_SETTINGS = {
    "GRAPHQL_ENDPOINT": "http://localhost:4000/graphql",
    "GRAPHQL_ACCESS_TOKEN": "",
    "TOTAL_LIMIT": 750,
    "PAGE_SIZE": 100,
    "TIMEOUT_MS": 5000,
    "SAFETY_MARGIN": 20.0,
    "MAX_ATTEMPTS": 6,
    "RUN_NAME": RUN_NAME,
    "OUTPUT_DIR": "./output",
    "OUTPUT_RETENTION_DAYS": 30,
    "SAVE_JSON": True,
    "DEBUG": False,
}
