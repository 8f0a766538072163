"""Tests for graphql_sync.graphql_client.GraphQLClient."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from graphql_sync.graphql_client import GraphQLClient, validate_endpoint
from graphql_sync.graphql_queries import PRODUCTS_QUERY
from graphql_sync.models import TransportError

ENDPOINT = "http://localhost:4000/graphql"


def fake_response(status_code=200, json_body=None, json_error=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.content = text.encode()
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_body
    return response


@pytest.fixture
def post():
    with patch("graphql_sync.graphql_client.requests.Session.post") as mock_post:
        yield mock_post


def test_validate_endpoint_accepts_http_and_https():
    assert validate_endpoint(ENDPOINT) == ENDPOINT
    assert validate_endpoint("https://shop.example.com/admin/api/2024-01/graphql.json")


@pytest.mark.parametrize("endpoint", ["", "localhost:4000/graphql", "ftp://host/graphql", "http:///graphql"])
def test_validate_endpoint_rejects_invalid_urls(endpoint):
    with pytest.raises(ValueError):
        validate_endpoint(endpoint)


def test_invalid_endpoint_rejected_at_construction():
    with pytest.raises(ValueError, match="scheme"):
        GraphQLClient("not-a-url")


def test_execute_posts_query_and_variables(post):
    post.return_value = fake_response(200, {"data": {"products": {}}})
    client = GraphQLClient(ENDPOINT, timeout_ms=2500)

    response = client.execute(PRODUCTS_QUERY, {"first": 10, "after": "abc"})

    assert response.status_code == 200
    assert response.body == {"data": {"products": {}}}
    args, kwargs = post.call_args
    assert args[0] == ENDPOINT
    assert kwargs["json"] == {"query": PRODUCTS_QUERY, "variables": {"first": 10, "after": "abc"}}
    assert kwargs["timeout"] == 2.5


def test_execute_omits_empty_variables(post):
    post.return_value = fake_response(200, {"data": {}})
    GraphQLClient(ENDPOINT).execute("{ shop { name } }")
    assert post.call_args.kwargs["json"] == {"query": "{ shop { name } }"}


def test_access_token_header():
    client = GraphQLClient(ENDPOINT, access_token="shpat_123")
    assert client._session.headers["X-Shopify-Access-Token"] == "shpat_123"
    assert client._session.headers["Content-Type"] == "application/json"


def test_no_access_token_header_when_empty():
    client = GraphQLClient(ENDPOINT)
    assert "X-Shopify-Access-Token" not in client._session.headers


@pytest.mark.parametrize("status", [429, 500, 503, 400])
def test_non_2xx_status_is_returned_not_raised(post, status):
    post.return_value = fake_response(status, {"errors": [{"message": "nope"}]})
    response = GraphQLClient(ENDPOINT).execute(PRODUCTS_QUERY, {"first": 1})
    assert response.status_code == status
    assert response.body == {"errors": [{"message": "nope"}]}


@pytest.mark.parametrize("exc", [
    requests.ConnectionError("connection refused"),
    requests.Timeout("read timed out"),
    requests.exceptions.SSLError("handshake failed"),
])
def test_network_failures_raise_transport_error(post, exc):
    post.side_effect = exc
    with pytest.raises(TransportError):
        GraphQLClient(ENDPOINT).execute(PRODUCTS_QUERY, {"first": 1})


def test_invalid_json_raises_transport_error(post):
    post.return_value = fake_response(502, json_error=ValueError("Expecting value"), text="<html>Bad Gateway</html>")
    with pytest.raises(TransportError, match="HTTP 502"):
        GraphQLClient(ENDPOINT).execute(PRODUCTS_QUERY, {"first": 1})
