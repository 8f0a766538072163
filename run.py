#!/usr/bin/env python3
"""
GraphQL Products Sync — Entry Point.

This is the main script that users run to pull products from a
cursor-paginated GraphQL endpoint. It reads configuration from a .env file,
applies CLI overrides, runs the sync pipeline and prints a summary report.

The pipeline (managed by SyncOrchestrator) performs 3 steps:
  1. Build the HTTP client, cost-budget throttle and retry policy
  2. Walk the products connection page by page until the requested total
     is reached or the server runs out of pages
  3. Save the products and run statistics as timestamped JSON files

Usage:
    python run.py                          # Sync with .env / default settings
    python run.py --total 250 --page-size 50
    python run.py --endpoint https://shop.example.com/admin/api/graphql.json --token shpat_...
    python run.py --debug                  # Verbose logging and product table
    python run.py --no-save                # Skip writing products.json
    python run.py --version                # Show version
    python run.py --env /path              # Use alternate .env file
"""

import sys
import argparse
import logging

from graphql_sync import SyncOrchestrator, __version__

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="GraphQL Products Sync - Fetch products from a cursor-paginated GraphQL API"
    )
    parser.add_argument("--env", "-e", default="./.env", help="Path to .env file")
    parser.add_argument("--endpoint", help="GraphQL endpoint URL")
    parser.add_argument("--token", help="Access token (sent as X-Shopify-Access-Token)")
    parser.add_argument("--total", type=int, help="Total products to fetch")
    parser.add_argument("--page-size", type=int, help="Products per request page")
    parser.add_argument("--timeout-ms", type=int, help="HTTP timeout in milliseconds")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--no-save", action="store_true", help="Do not write products.json")
    parser.add_argument("--version", "-v", action="store_true", help="Show version and exit")
    return parser


def main(argv=None):
    """Parse CLI arguments and run the sync pipeline."""
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"graphql-sync {__version__}")
        sys.exit(0)

    # Initialize the orchestrator (loads .env and builds internal config)
    orchestrator = SyncOrchestrator(env_file=args.env)

    # Apply CLI overrides on top of .env values
    if args.endpoint:
        orchestrator.endpoint = args.endpoint
    if args.token:
        orchestrator.access_token = args.token
    if args.total is not None:
        orchestrator.total_limit = args.total
    if args.page_size is not None:
        orchestrator.page_size = args.page_size
    if args.timeout_ms is not None:
        orchestrator.timeout_ms = args.timeout_ms
    if args.debug:
        orchestrator.debug = True
    if args.no_save:
        orchestrator.save_json = False

    logging.basicConfig(
        level=logging.DEBUG if orchestrator.debug else logging.INFO,
        format=LOG_FORMAT,
    )
    # urllib3 connection chatter drowns out the pagination log at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    # Print header
    print(f"\n{'='*60}")
    print(f"GRAPHQL PRODUCTS SYNC v{__version__}")
    print("="*60)
    print(f"Endpoint:   {orchestrator.endpoint}")
    print(f"Total:      {orchestrator.total_limit}")
    print(f"Page size:  {orchestrator.page_size}")
    print(f"Timeout:    {orchestrator.timeout_ms} ms")

    # Validate required configuration before proceeding
    if not orchestrator.validate_config():
        sys.exit(1)

    # Cleanup old output folders based on retention policy
    if orchestrator.output_manager.retention_days > 0:
        deleted = orchestrator.output_manager.prune_expired_runs(orchestrator.debug)
        if deleted > 0:
            print(f"Pruned {deleted} expired output folder(s)")

    results = orchestrator.run()

    if orchestrator.debug:
        orchestrator.print_products()

    orchestrator.print_summary(results)

    # Exit with error code if the pipeline failed
    if not results.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
