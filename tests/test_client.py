"""Tests for the request executor and HTTP gateway."""

import logging

import pytest
import requests
from requests.adapters import HTTPAdapter

from awhere_api.auth.token import TokenManager, TokenState
from awhere_api.clients.base import RawResponse, RequestExecutor, RequestMetrics
from awhere_api.clients.http import DEFAULT_RETRY, create_session
from awhere_api.exceptions import AuthExhaustedError, HttpError, ParseError
from conftest import EXPIRED_BODY, FakeHttp, FakeResponse

URL = "https://api.awhere.com/v2/fields"


@pytest.fixture
def http():
    return FakeHttp()


@pytest.fixture
def executor(credentials, http):
    return RequestExecutor(TokenManager(credentials, http), http)


class TestRawResponse:
    """Tests for raw response helpers."""

    def test_json(self):
        raw = RawResponse("GET", URL, 200, '{"fields": []}')

        assert raw.json() == {"fields": []}

    def test_empty_body(self):
        assert RawResponse("DELETE", URL, 204, "").json() is None

    def test_invalid_json(self):
        with pytest.raises(ParseError):
            RawResponse("GET", URL, 200, "<html>").json()

    def test_raise_for_status(self):
        """Test the service's error fields end up in the message."""
        body = (
            '{"statusCode": 400, "statusName": "Bad Request", '
            '"detailedMessage": "Invalid date", "errorId": "e-42"}'
        )
        raw = RawResponse("GET", URL, 400, body)

        with pytest.raises(HttpError) as exc_info:
            raw.raise_for_status()

        error = exc_info.value
        assert error.status_code == 400
        assert "Bad Request" in str(error)
        assert "Invalid date" in str(error)
        assert "ErrorID: e-42" in str(error)
        assert error.body["errorId"] == "e-42"

    def test_raise_for_status_non_json(self):
        with pytest.raises(HttpError) as exc_info:
            RawResponse("GET", URL, 502, "Bad Gateway").raise_for_status()

        assert exc_info.value.body == "Bad Gateway"

    def test_ok_passes_through(self):
        raw = RawResponse("GET", URL, 201, "{}")

        assert raw.raise_for_status() is raw

    def test_access_expired(self):
        assert RawResponse("GET", URL, 401, EXPIRED_BODY).is_access_expired
        assert not RawResponse("GET", URL, 401, '{"statusName": "Unauthorized"}').is_access_expired


class TestRequestExecutor:
    """Tests for token attachment and expiry recovery."""

    def test_attaches_bearer_token(self, executor, http):
        http.queue(FakeResponse(200, {"fields": []}))

        raw = executor.execute("GET", URL)

        assert raw.status_code == 200
        call = http.api_calls[0]
        assert call.headers["Authorization"] == "Bearer token-1"
        assert call.headers["Content-Type"] == "application/json"
        assert call.kwargs["timeout"] == 30

    def test_logs_call_duration(self, executor, http, caplog):
        http.queue(FakeResponse(200, {"fields": []}))

        with caplog.at_level(logging.DEBUG, logger="awhere_api.clients.base"):
            executor.execute("GET", URL)

        assert f"Operation 'GET {URL}' completed" in caplog.text

    def test_sends_json_body(self, executor, http):
        http.queue(FakeResponse(201, {"id": "f1"}))

        executor.execute("POST", URL, body={"id": "f1"})

        assert http.api_calls[0].kwargs["json"] == {"id": "f1"}

    def test_accepts_endpoint_objects(self, executor, http):
        class Endpoint:
            url = URL

        http.queue(FakeResponse(200, {}))
        executor.execute("GET", Endpoint())

        assert http.api_calls[0].url == URL

    def test_non_2xx_returned_as_is(self, executor, http):
        """Test ordinary errors are left to the caller."""
        http.queue(FakeResponse(404, {"statusName": "Not Found"}))

        raw = executor.execute("GET", URL)

        assert raw.status_code == 404
        assert executor.metrics.failed_requests == 1

    def test_recovers_from_one_expiry(self, executor, http):
        """Test an expired token is refreshed exactly once and the call retried."""
        http.queue(FakeResponse(401, text=EXPIRED_BODY), FakeResponse(200, {"fields": []}))

        raw = executor.execute("GET", URL)

        assert raw.status_code == 200
        assert raw.json() == {"fields": []}
        assert executor.token_manager.refresh_count == 1
        assert executor.metrics.total_reauthentications == 1
        assert http.tokens_issued == 2
        assert [c.headers["Authorization"] for c in http.api_calls] == [
            "Bearer token-1",
            "Bearer token-2",
        ]

    def test_expiry_marker_in_success_body(self, executor, http):
        """Test the marker triggers recovery whatever the status code."""
        http.queue(FakeResponse(200, text="API Access Expired"), FakeResponse(200, {}))

        executor.execute("GET", URL)

        assert executor.token_manager.refresh_count == 1

    def test_exhausted(self, executor, http):
        """Test a token that keeps expiring raises after the allowed attempts."""
        http.queue(FakeResponse(401, text=EXPIRED_BODY), FakeResponse(401, text=EXPIRED_BODY))

        with pytest.raises(AuthExhaustedError) as exc_info:
            executor.execute("GET", URL)

        assert exc_info.value.attempts == 2
        assert exc_info.value.url == URL
        assert len(http.api_calls) == 2
        assert executor.metrics.total_reauthentications == 1
        assert executor.token_manager.state is TokenState.EXPIRED

    def test_attempts_configurable(self, credentials, http):
        executor = RequestExecutor(TokenManager(credentials, http), http, max_auth_attempts=3)
        http.queue(*[FakeResponse(401, text=EXPIRED_BODY) for _ in range(3)])

        with pytest.raises(AuthExhaustedError):
            executor.execute("GET", URL)

        assert len(http.api_calls) == 3
        assert executor.metrics.total_reauthentications == 2

    def test_invalid_attempts(self, credentials, http):
        with pytest.raises(ValueError):
            RequestExecutor(TokenManager(credentials, http), http, max_auth_attempts=0)

    def test_transport_error_propagates(self, executor, http):
        http.queue(requests.exceptions.ConnectionError("connection reset"))

        with pytest.raises(requests.exceptions.ConnectionError):
            executor.execute("GET", URL)

        assert executor.metrics.failed_requests == 1

    def test_helpers(self, executor, http):
        http.queue(
            FakeResponse(200, {"fields": []}),
            FakeResponse(201, {"id": "f1"}),
            FakeResponse(200, {"id": "f1", "name": "x"}),
            FakeResponse(204),
        )

        assert executor.get(URL) == {"fields": []}
        assert executor.post(URL, {"id": "f1"}) == {"id": "f1"}
        assert executor.patch(f"{URL}/f1", [])["name"] == "x"
        assert executor.delete(f"{URL}/f1") is None
        assert [c.method for c in http.api_calls] == ["GET", "POST", "PATCH", "DELETE"]

    def test_get_raises_http_error(self, executor, http):
        http.queue(FakeResponse(500, {"statusName": "Internal Server Error"}))

        with pytest.raises(HttpError):
            executor.get(URL)


class TestRequestMetrics:
    """Tests for request metrics."""

    def test_to_dict(self):
        metrics = RequestMetrics()
        metrics.record_request(10.0, success=True)
        metrics.record_request(30.0, success=False)
        metrics.record_reauthentication()

        assert metrics.to_dict() == {
            "total_requests": 2,
            "successful_requests": 1,
            "failed_requests": 1,
            "total_reauthentications": 1,
            "total_duration_ms": 40.0,
            "avg_duration_ms": 20.0,
        }

    def test_empty_average(self):
        assert RequestMetrics().avg_duration_ms == 0


class TestCreateSession:
    """Tests for the retrying gateway."""

    def test_retry_adapter_mounted(self):
        session = create_session()
        adapter = session.get_adapter("https://api.awhere.com/v2/fields")

        assert isinstance(adapter, HTTPAdapter)
        assert adapter.max_retries.total == DEFAULT_RETRY.total
        assert 503 in adapter.max_retries.status_forcelist

    def test_post_not_retried(self):
        assert "POST" not in DEFAULT_RETRY.allowed_methods

    def test_user_agent(self):
        assert create_session().headers["User-Agent"].startswith("awhere-api-client")
