"""
GraphQL Client — Sends one GraphQL operation over HTTP(S).

This module is the only place that talks to the network. It knows nothing
about pagination, retries or cost budgets: one call to execute() is one POST
to the endpoint, and the caller gets back the HTTP status plus the decoded
JSON body.

Request format:
    POST {endpoint}
    Content-Type: application/json
    X-Shopify-Access-Token: <token>        (only when a token is configured)
    Body: {"query": "...", "variables": {"first": 50, "after": "..."}}

Failure contract:
  - Any HTTP status (200, 429, 503, ...) is returned as GraphQLResponse; the
    RetryPolicy decides what a status means.
  - Connection, TLS and timeout failures raise TransportError.
  - A body that is not valid JSON raises TransportError.

Pipeline context:
    Wrapped by RetryPolicy.execute() inside every Paginator iteration.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests

from .models import TransportError

logger = logging.getLogger(__name__)


@dataclass
class GraphQLResponse:
    status_code: int
    body: Any


def validate_endpoint(endpoint: str) -> str:
    """Check that the endpoint is an absolute http(s) URL.

    Args:
        endpoint: Full URL, e.g. "http://localhost:4000/graphql".

    Returns:
        The endpoint unchanged.

    Raises:
        ValueError: If the scheme is missing/unsupported or the host is empty.
    """
    parts = urlparse(endpoint or "")
    if parts.scheme not in ("http", "https"):
        raise ValueError(f"Invalid URL (missing or unsupported scheme): {endpoint}")
    if not parts.hostname:
        raise ValueError(f"Invalid URL (empty host): {endpoint}")
    return endpoint


class GraphQLClient:
    """Low-level GraphQL HTTP client built on a requests.Session.

    Attributes:
        endpoint: Full GraphQL URL.
        access_token: Optional Shopify access token (sent as X-Shopify-Access-Token).
        timeout_ms: Per-request timeout in milliseconds.
        debug: If True, log request and response details.
    """

    def __init__(
        self,
        endpoint: str,
        access_token: str = "",
        timeout_ms: int = 5000,
        debug: bool = False,
    ):
        """Initialize the client.

        Args:
            endpoint: Full URL of the GraphQL endpoint.
            access_token: Access token, or "" for unauthenticated endpoints.
            timeout_ms: Timeout applied to connect and read, in milliseconds.
            debug: Enable verbose logging.

        Raises:
            ValueError: If the endpoint is not a valid http(s) URL.
        """
        self.endpoint = validate_endpoint(endpoint)
        self.access_token = access_token
        self.timeout_ms = timeout_ms
        self.debug = debug
        self._session = requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if access_token:
            self._session.headers.update({"X-Shopify-Access-Token": access_token})

    def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> GraphQLResponse:
        """Execute a GraphQL query/mutation.

        Args:
            query: The GraphQL document.
            variables: Optional dict of GraphQL variables.

        Returns:
            A GraphQLResponse with the HTTP status and the decoded JSON body.

        Raises:
            TransportError: On network, timeout or JSON decoding failures.
        """
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        if self.debug:
            logger.debug("POST %s variables=%s", self.endpoint, variables or {})

        try:
            response = self._session.post(
                self.endpoint,
                json=payload,
                timeout=self.timeout_ms / 1000.0,
            )
        except requests.RequestException as e:
            raise TransportError(f"Request to {self.endpoint} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            snippet = (response.text or "")[:200]
            raise TransportError(
                f"Failed to decode JSON (HTTP {response.status_code}): {snippet}"
            ) from e

        if self.debug:
            logger.debug("HTTP %s (%d bytes)", response.status_code, len(response.content or b""))

        return GraphQLResponse(status_code=response.status_code, body=body)

    def close(self):
        """Close the underlying HTTP session."""
        self._session.close()
