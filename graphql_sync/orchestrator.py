"""
Sync Orchestrator — Pipeline coordination for the paginated products sync.

This module ties the other modules (GraphQLClient, ThrottleController,
RetryPolicy, Paginator, OutputManager) into a sequential 3-step workflow:

  Step 1: CONNECT
      Builds a GraphQLClient for GRAPHQL_ENDPOINT (with the optional access
      token and timeout), a ThrottleController with SAFETY_MARGIN headroom,
      and a RetryPolicy with MAX_ATTEMPTS attempts per request.

  Step 2: PAGINATED FETCH
      Runs Paginator.fetch_all(TOTAL_LIMIT, PAGE_SIZE). Throttle sleeps and
      retries happen inside this step. A run that stops early (retries
      exhausted, GraphQL errors without data, unparseable page) still
      returns the products fetched so far and is reported as degraded.

  Step 3: SAVE OUTPUT
      Serializes the products to products.json in a timestamped output
      directory (when SAVE_JSON is enabled) and always writes
      sync_results.json with run metadata and statistics.

Configuration:
    All settings are loaded from environment variables (typically via .env file).
    See config/settings.py for the keys and their defaults.

Typical usage:
    orchestrator = SyncOrchestrator(env_file="./.env")
    if orchestrator.validate_config():
        results = orchestrator.run()
        orchestrator.print_summary(results)
"""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .config import DEFAULT_SETTINGS
from .graphql_client import GraphQLClient, validate_endpoint
from .models import Product, StopReason
from .output_manager import OutputManager
from .paginator import Paginator
from .retry_policy import RetryPolicy
from .throttle import ThrottleController

DEGRADED_STOP_REASONS = (
    StopReason.REQUEST_FAILED,
    StopReason.GRAPHQL_ERRORS,
    StopReason.PARSE_ERROR,
)


def _env_number(key: str, cast):
    """Read a numeric setting, returning None when the value does not parse."""
    raw = os.getenv(key, str(DEFAULT_SETTINGS[key]))
    try:
        return cast(raw)
    except (TypeError, ValueError):
        return None


def _env_flag(key: str) -> bool:
    return os.getenv(key, str(DEFAULT_SETTINGS[key])).lower() == "true"


class SyncOrchestrator:
    """Orchestrates the paginated GraphQL products sync.

    Attributes:
        endpoint: Full GraphQL URL.
        access_token: Optional access token for the endpoint.
        total_limit: Maximum number of products to fetch.
        page_size: Products requested per page.
        timeout_ms: Per-request HTTP timeout in milliseconds.
        safety_margin: Cost-budget headroom for the throttle.
        max_attempts: Attempts per request before giving up.
        save_json: Whether to write products.json (default: True).
        debug: Whether to enable verbose output (default: False).
        output_manager: Owns the run folder, its JSON files and retention pruning.
        products: Products from the last run (empty before run()).
    """

    def __init__(self, env_file: str = "./.env"):
        """Initialize the orchestrator by loading configuration from environment.

        Args:
            env_file: Path to a .env file. If the file exists, it is loaded via
                      python-dotenv. Otherwise, falls back to system environment.
        """
        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path)
            print(f"Loaded configuration from: {env_file}")
        else:
            print(f"Warning: {env_file} not found, using defaults/environment")

        # Connection
        self.endpoint = os.getenv("GRAPHQL_ENDPOINT", DEFAULT_SETTINGS["GRAPHQL_ENDPOINT"])
        self.access_token = os.getenv("GRAPHQL_ACCESS_TOKEN", DEFAULT_SETTINGS["GRAPHQL_ACCESS_TOKEN"])
        self.timeout_ms = _env_number("TIMEOUT_MS", int)

        # Pagination, throttling and retries
        self.total_limit = _env_number("TOTAL_LIMIT", int)
        self.page_size = _env_number("PAGE_SIZE", int)
        self.safety_margin = _env_number("SAFETY_MARGIN", float)
        self.max_attempts = _env_number("MAX_ATTEMPTS", int)

        # Processing options
        self.run_name = os.getenv("RUN_NAME", DEFAULT_SETTINGS["RUN_NAME"])
        self.save_json = _env_flag("SAVE_JSON")
        self.debug = _env_flag("DEBUG")

        output_dir = os.getenv("OUTPUT_DIR", DEFAULT_SETTINGS["OUTPUT_DIR"])
        retention_days = _env_number("OUTPUT_RETENTION_DAYS", int)
        if retention_days is None:
            retention_days = DEFAULT_SETTINGS["OUTPUT_RETENTION_DAYS"]
        self.output_manager = OutputManager(output_dir, self.run_name, retention_days)

        self.products: List[Product] = []

    def validate_config(self) -> bool:
        """Validate the loaded configuration.

        Checks:
            - GRAPHQL_ENDPOINT is set and is an http(s) URL with a host
            - TOTAL_LIMIT, PAGE_SIZE, TIMEOUT_MS and MAX_ATTEMPTS are positive integers
            - SAFETY_MARGIN is a non-negative number

        Returns:
            True if the configuration is usable, False otherwise.
            Prints specific error messages for each problem.
        """
        errors = []
        if not self.endpoint:
            errors.append("GRAPHQL_ENDPOINT is required")
        else:
            try:
                validate_endpoint(self.endpoint)
            except ValueError as e:
                errors.append(f"GRAPHQL_ENDPOINT: {e}")

        for name, value in (
            ("TOTAL_LIMIT", self.total_limit),
            ("PAGE_SIZE", self.page_size),
            ("TIMEOUT_MS", self.timeout_ms),
            ("MAX_ATTEMPTS", self.max_attempts),
        ):
            if value is None or value <= 0:
                errors.append(f"{name} must be a positive integer")

        if self.safety_margin is None or self.safety_margin < 0:
            errors.append("SAFETY_MARGIN must be a non-negative number")

        if errors:
            print("\nConfiguration Errors:")
            for err in errors:
                print(f"  - {err}")
            return False
        return True

    def run(self) -> Dict[str, Any]:
        """Execute the 3-step sync pipeline.

        Returns:
            A dict containing:
                - started_at/completed_at: ISO timestamps
                - connector: "graphql-sync"
                - config: Endpoint and pagination settings
                - success: True if the pipeline completed without an exception
                - degraded: True if pagination stopped on a failure
                - stats: RunStats as a dict
                - json_path: Path to saved products (if save_json=True)
                - error: Error message (if success=False)
        """
        results = {
            "started_at": datetime.now(timezone.utc).isoformat(),
            "connector": "graphql-sync",
            "config": {
                "endpoint": self.endpoint,
                "total_limit": self.total_limit,
                "page_size": self.page_size,
                "timeout_ms": self.timeout_ms,
                "safety_margin": self.safety_margin,
                "max_attempts": self.max_attempts,
            },
            "success": False,
        }

        client = None
        try:
            # Step 1: Build the transport, throttle and retry policy
            print(f"\n{'='*60}")
            print("STEP 1: CONNECT")
            print("="*60)
            client = GraphQLClient(self.endpoint, self.access_token, self.timeout_ms, self.debug)
            throttle = ThrottleController(safety_margin=self.safety_margin)
            retry_policy = RetryPolicy(max_attempts=self.max_attempts)
            print(f"  Endpoint: {self.endpoint}")

            # Step 2: Walk the products connection
            print(f"\n{'='*60}")
            print("STEP 2: PAGINATED FETCH")
            print("="*60)
            paginator = Paginator(client, throttle, retry_policy, verbose=self.debug)
            self.products, stats = paginator.fetch_all(self.total_limit, self.page_size)
            print(f"  Products: {len(self.products)}")
            print(f"  Stop reason: {stats.stop_reason.value}")

            results["stats"] = stats.to_dict()
            results["degraded"] = stats.stop_reason in DEGRADED_STOP_REASONS
            if results["degraded"]:
                print("  Warning: pagination stopped early, results are partial")

            # Step 3: Save output to timestamped directory
            print(f"\n{'='*60}")
            print("STEP 3: SAVE OUTPUT")
            print("="*60)

            self.output_manager.open_run_dir()

            if self.save_json:
                json_path = self.output_manager.save_products(self.products)
                results["json_path"] = json_path
                print(f"  Saved products: {json_path}")

            results["success"] = True

        except Exception as e:
            results["error"] = str(e)
            print(f"\n  ERROR: {e}")
            if self.debug:
                import traceback
                traceback.print_exc()
        finally:
            if client is not None:
                client.close()

        results["completed_at"] = datetime.now(timezone.utc).isoformat()

        # Save run metadata alongside the products
        if self.output_manager.run_dir:
            results_path = self.output_manager.save_results(results)
            print(f"\n  Results saved to: {results_path}")

        return results

    def print_products(self, products: Optional[List[Product]] = None):
        """Print one line per product: index, id, title, updatedAt."""
        products = self.products if products is None else products
        print(f"\n--- Fetched Products ({len(products)}) ---")
        for i, p in enumerate(products, start=1):
            print(f"{i:>4}  {p.id:<36}  {p.title:<40}  {p.updated_at}")

    def print_summary(self, results: Dict):
        """Print a human-readable execution summary.

        Args:
            results: The dict returned by run().
        """
        print(f"\n{'='*60}")
        print("SYNC COMPLETE")
        print("="*60)
        if not results.get("success"):
            status = "FAILED"
        elif results.get("degraded"):
            status = "PARTIAL"
        else:
            status = "SUCCESS"
        print(f"Status: {status}")

        stats = results.get("stats", {})
        if stats:
            print(f"Total fetched:       {stats.get('total_fetched', 0)}")
            print(f"Total requests:      {stats.get('total_requests', 0)}")
            print(f"Total retries:       {stats.get('total_retries', 0)}")
            print(f"Total sleep (s):     {stats.get('total_sleep_seconds', 0.0):.2f}")
            print(f"Avg query cost:      {stats.get('avg_query_cost', 0.0):.2f}")
            print(f"Stop reason:         {stats.get('stop_reason')}")

        if results.get("error"):
            print(f"Error: {results['error']}")
