"""Shared fixtures: an in-memory products API with a leaky-bucket cost budget."""

import base64
import json
import os
from unittest.mock import patch

import pytest

from graphql_sync.graphql_client import GraphQLResponse

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")

ADJECTIVES = ["Widget", "Gadget", "Doohickey", "Thingamajig", "Gizmo"]


def load_fixture(name):
    with open(os.path.join(FIXTURES_DIR, name)) as f:
        return json.load(f)


def encode_cursor(index):
    return base64.b64encode(f"cursor:{index}".encode()).decode()


def decode_cursor(cursor):
    try:
        prefix, index = base64.b64decode(cursor).decode().split(":")
        if prefix != "cursor":
            return None
        return int(index)
    except (ValueError, UnicodeDecodeError):
        return None


class FakeClock:
    """Monotonic clock advanced only by the patched time.sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class FakeShopServer:
    """Serves the products connection the way a Shopify-style API does.

    Every request costs 2 + first points. The budget restores at restore_rate
    points per (fake) second. When the budget cannot cover a request the
    server answers 429. Scripted failures queued with fail_next() are served
    before normal processing.
    """

    def __init__(self, clock, total_products=100, maximum_available=1000.0, restore_rate=50.0):
        self.clock = clock
        self.products = [
            {
                "id": f"gid://shopify/Product/{1000 + n}",
                "title": f"Product {n} - {ADJECTIVES[(n - 1) % len(ADJECTIVES)]}",
                "updatedAt": f"2024-01-{1 + (n - 1) // 24:02d}T{(n - 1) % 24:02d}:00:00.000Z",
            }
            for n in range(1, total_products + 1)
        ]
        self.maximum_available = maximum_available
        self.currently_available = maximum_available
        self.restore_rate = restore_rate
        self._last_request_time = clock.now
        self._scripted = []
        self.calls = []

    def fail_next(self, status=None, body=None, exc=None):
        self._scripted.append((status, body, exc))

    def execute(self, query, variables=None):
        variables = dict(variables or {})
        self.calls.append(variables)

        if self._scripted:
            status, body, exc = self._scripted.pop(0)
            if exc is not None:
                raise exc
            return GraphQLResponse(status_code=status, body=body if body is not None else {})

        self._restore_budget()
        first = variables.get("first", 10)
        cost = 2 + first

        if self.currently_available < cost:
            return GraphQLResponse(
                status_code=429,
                body={
                    "errors": [{"message": "Throttled", "extensions": {"code": "THROTTLED"}}],
                    "extensions": {"cost": self._cost_info(cost)},
                },
            )

        start = 0
        if "after" in variables:
            index = decode_cursor(variables["after"])
            if index is None:
                return GraphQLResponse(
                    status_code=200,
                    body={"data": None, "errors": [{"message": "Invalid cursor"}]},
                )
            start = index + 1

        self.currently_available -= cost
        page = self.products[start:start + first]
        edges = [
            {"cursor": encode_cursor(start + i), "node": dict(node)}
            for i, node in enumerate(page)
        ]
        return GraphQLResponse(
            status_code=200,
            body={
                "data": {
                    "products": {
                        "edges": edges,
                        "pageInfo": {"hasNextPage": start + first < len(self.products)},
                    }
                },
                "extensions": {"cost": self._cost_info(cost)},
            },
        )

    def _restore_budget(self):
        elapsed = self.clock.now - self._last_request_time
        self.currently_available = min(
            self.maximum_available,
            self.currently_available + elapsed * self.restore_rate,
        )
        self._last_request_time = self.clock.now

    def _cost_info(self, cost):
        return {
            "requestedQueryCost": cost,
            "actualQueryCost": cost,
            "throttleStatus": {
                "maximumAvailable": self.maximum_available,
                "currentlyAvailable": self.currently_available,
                "restoreRate": self.restore_rate,
            },
        }


@pytest.fixture
def clock():
    fake = FakeClock()
    with patch("time.sleep", side_effect=fake.sleep):
        yield fake


@pytest.fixture
def server(clock):
    return FakeShopServer(clock)


@pytest.fixture
def products_page():
    return load_fixture("products_page.json")


@pytest.fixture
def make_server(clock):
    def factory(**kwargs):
        return FakeShopServer(clock, **kwargs)
    return factory
