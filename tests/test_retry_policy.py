"""Tests for graphql_sync.retry_policy."""

from unittest.mock import MagicMock, patch

import pytest

from graphql_sync.graphql_client import GraphQLResponse
from graphql_sync.models import HTTPStatusError, MaxRetriesExceededError, TransportError
from graphql_sync.retry_policy import (
    DEFAULT_MAX_ATTEMPTS,
    RetryPolicy,
    compute_backoff_ms,
    is_retryable_status,
)

QUERY = "query { products { edges { cursor } } }"
VARIABLES = {"first": 10, "after": "abc"}


@pytest.fixture
def sleep():
    with patch("graphql_sync.retry_policy.time.sleep") as mock_sleep:
        yield mock_sleep


def ok(body=None):
    return GraphQLResponse(status_code=200, body=body if body is not None else {"data": {}})


@pytest.mark.parametrize("status", [429, 500, 502, 503, 504, 599])
def test_retryable_statuses(status):
    assert is_retryable_status(status) is True


@pytest.mark.parametrize("status", [200, 201, 400, 401, 403, 404, 428])
def test_non_retryable_statuses(status):
    assert is_retryable_status(status) is False


def test_backoff_attempt_zero_range():
    for _ in range(200):
        assert 200 <= compute_backoff_ms(0) < 300


def test_backoff_attempt_one_range():
    for _ in range(200):
        assert 400 <= compute_backoff_ms(1) < 500


def test_backoff_lower_bound_is_non_decreasing():
    lower_bounds = [compute_backoff_ms(n, jitter_ms=0) for n in range(12)]
    assert lower_bounds == sorted(lower_bounds)


def test_backoff_clamps_to_max_delay():
    for attempt in (5, 10, 30, 60):
        for _ in range(50):
            assert 5000 <= compute_backoff_ms(attempt) < 5100


def test_backoff_jitter_upper_bound_is_exclusive():
    with patch("graphql_sync.retry_policy.random.uniform", return_value=100.0):
        assert 200 <= compute_backoff_ms(0) < 300
        assert 400 <= compute_backoff_ms(1) < 500
        assert 5000 <= compute_backoff_ms(40) < 5100


def test_backoff_sub_ulp_jitter_draw_stays_in_range():
    with patch("graphql_sync.retry_policy.random.uniform", return_value=99.99999999999999):
        assert 200 <= compute_backoff_ms(0) < 300


@pytest.mark.parametrize("attempt", [63, 64, 1024, 1100, 10 ** 6])
def test_backoff_float_base_clamps_at_huge_attempts(attempt):
    for _ in range(20):
        delay = compute_backoff_ms(attempt, base_ms=200.0, max_ms=5000.0)
        assert 5000 <= delay < 5100


def test_retry_policy_float_base_delay_clamps():
    policy = RetryPolicy(base_delay_ms=200.0, max_delay_ms=5000.0, jitter_ms=0)
    assert policy.backoff_ms(2000) == 5000.0
    assert policy.backoff_ms(0) == 200.0


def test_default_max_attempts():
    assert RetryPolicy().max_attempts == DEFAULT_MAX_ATTEMPTS == 6


def test_invalid_max_attempts():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)


def test_success_on_first_attempt(sleep):
    operation = MagicMock(return_value=ok({"data": {"x": 1}}))
    on_retry = MagicMock()
    body = RetryPolicy().execute(operation, QUERY, VARIABLES, on_retry=on_retry)
    assert body == {"data": {"x": 1}}
    operation.assert_called_once_with(QUERY, VARIABLES)
    on_retry.assert_not_called()
    sleep.assert_not_called()


def test_retries_on_server_errors_then_succeeds(sleep):
    operation = MagicMock(side_effect=[
        GraphQLResponse(503, {}),
        GraphQLResponse(429, {}),
        ok(),
    ])
    on_retry = MagicMock()
    RetryPolicy().execute(operation, QUERY, VARIABLES, on_retry=on_retry)
    assert operation.call_count == 3
    assert on_retry.call_count == 2
    assert sleep.call_count == 2


def test_retries_reuse_same_query_and_variables(sleep):
    operation = MagicMock(side_effect=[GraphQLResponse(500, {}), ok()])
    RetryPolicy().execute(operation, QUERY, VARIABLES)
    for call in operation.call_args_list:
        assert call.args == (QUERY, VARIABLES)


def test_backoff_grows_between_attempts(sleep):
    operation = MagicMock(side_effect=[GraphQLResponse(503, {})] * 3 + [ok()])
    RetryPolicy().execute(operation, QUERY, VARIABLES)
    delays = [c.args[0] for c in sleep.call_args_list]
    assert 0.2 <= delays[0] < 0.3
    assert 0.4 <= delays[1] < 0.5
    assert 0.8 <= delays[2] < 0.9


def test_retries_on_transport_error(sleep):
    operation = MagicMock(side_effect=[TransportError("connection refused"), ok()])
    on_retry = MagicMock()
    RetryPolicy().execute(operation, QUERY, VARIABLES, on_retry=on_retry)
    assert operation.call_count == 2
    on_retry.assert_called_once()


def test_max_retries_exceeded_carries_last_status(sleep):
    operation = MagicMock(return_value=GraphQLResponse(503, {}))
    on_retry = MagicMock()
    with pytest.raises(MaxRetriesExceededError) as excinfo:
        RetryPolicy(max_attempts=4).execute(operation, QUERY, VARIABLES, on_retry=on_retry)
    assert excinfo.value.last_status == 503
    assert excinfo.value.attempts == 4
    assert "Last HTTP status: 503" in str(excinfo.value)
    assert operation.call_count == 4
    assert on_retry.call_count == 3
    assert sleep.call_count == 3


def test_max_retries_exceeded_carries_last_error(sleep):
    operation = MagicMock(side_effect=TransportError("read timed out"))
    with pytest.raises(MaxRetriesExceededError) as excinfo:
        RetryPolicy(max_attempts=2).execute(operation, QUERY, VARIABLES)
    assert excinfo.value.last_status is None
    assert "read timed out" in excinfo.value.last_error


def test_non_retryable_status_fails_immediately(sleep):
    body = {"errors": [{"message": "Bad Request"}]}
    operation = MagicMock(return_value=GraphQLResponse(400, body))
    with pytest.raises(HTTPStatusError) as excinfo:
        RetryPolicy().execute(operation, QUERY, VARIABLES)
    assert excinfo.value.status_code == 400
    assert excinfo.value.body == body
    operation.assert_called_once()
    sleep.assert_not_called()


def test_unexpected_exception_propagates_without_retry(sleep):
    operation = MagicMock(side_effect=KeyError("boom"))
    with pytest.raises(KeyError):
        RetryPolicy().execute(operation, QUERY, VARIABLES)
    operation.assert_called_once()
    sleep.assert_not_called()
