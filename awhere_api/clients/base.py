"""Request executor with bounded recovery from token expiry."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union

import requests

from awhere_api.auth.token import TokenManager
from awhere_api.exceptions import (
    AuthExhaustedError,
    AuthExpiredError,
    HttpError,
    ParseError,
)
from awhere_api.utils.call_logger import timed_operation

logger = logging.getLogger(__name__)

# Substring the service embeds in error bodies when a bearer token has lapsed.
ACCESS_EXPIRED_MARKER = "API Access Expired"


@dataclass
class RequestMetrics:
    """Metrics for API requests."""

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_reauthentications: int = 0
    total_duration_ms: float = 0
    request_durations: list[float] = field(default_factory=list)

    def record_request(self, duration_ms: float, success: bool) -> None:
        """Record a request."""
        self.total_requests += 1
        self.total_duration_ms += duration_ms
        self.request_durations.append(duration_ms)
        if success:
            self.successful_requests += 1
        else:
            self.failed_requests += 1

    def record_reauthentication(self) -> None:
        """Record a token refresh triggered by an expiry response."""
        self.total_reauthentications += 1

    @property
    def avg_duration_ms(self) -> float:
        """Average request duration."""
        if not self.request_durations:
            return 0
        return sum(self.request_durations) / len(self.request_durations)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "total_reauthentications": self.total_reauthentications,
            "total_duration_ms": round(self.total_duration_ms, 2),
            "avg_duration_ms": round(self.avg_duration_ms, 2),
        }


@dataclass
class RawResponse:
    """Unmodified result of one gateway call."""

    method: str
    url: str
    status_code: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_access_expired(self) -> bool:
        return ACCESS_EXPIRED_MARKER in (self.text or "")

    def json(self) -> Any:
        """Parse the body. Empty bodies (e.g. 204) parse to None."""
        if not self.text or not self.text.strip():
            return None
        try:
            return json.loads(self.text)
        except ValueError as e:
            raise ParseError(
                f"Response from {self.method} {self.url} is not valid JSON: {e}"
            ) from e

    def error_message(self) -> str:
        """Build a message from the service's error payload, if any."""
        try:
            body = self.json()
        except ParseError:
            return (self.text or "").strip()[:500]
        if not isinstance(body, dict):
            return ""
        parts = [
            str(body[key])
            for key in ("statusName", "simpleMessage", "detailedMessage")
            if body.get(key)
        ]
        if body.get("errorId"):
            parts.append(f"ErrorID: {body['errorId']}")
        return " | ".join(parts)

    def raise_for_status(self) -> "RawResponse":
        """Raise HttpError for non-2xx responses."""
        if not self.ok:
            body = None
            try:
                body = self.json()
            except ParseError:
                body = self.text
            raise HttpError(self.status_code, self.error_message(), body=body)
        return self


class RequestExecutor:
    """Executes one logical API call to completion.

    Attaches the session's bearer token and retries when the service reports
    the token as expired, refreshing it in between. The number of attempts
    per call is bounded by ``max_auth_attempts``.
    """

    def __init__(
        self,
        token_manager: TokenManager,
        http: Any,
        timeout: int = 30,
        max_auth_attempts: int = 2,
    ):
        """Initialize request executor.

        Args:
            token_manager: Source of bearer tokens
            http: Gateway exposing ``request(method, url, **kwargs)``
            timeout: Request timeout in seconds
            max_auth_attempts: Attempts per call while the token keeps expiring
        """
        if max_auth_attempts < 1:
            raise ValueError("max_auth_attempts must be at least 1")
        self.token_manager = token_manager
        self.http = http
        self.timeout = timeout
        self.max_auth_attempts = max_auth_attempts
        self.metrics = RequestMetrics()

    def execute(
        self,
        method: str,
        endpoint: Union[str, Any],
        body: Optional[Any] = None,
    ) -> RawResponse:
        """Run a request, recovering from token expiry.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            endpoint: Built Endpoint or absolute URL
            body: JSON body

        Returns:
            The raw response, whatever its status code

        Raises:
            AuthExhaustedError: If the token was reported expired on every attempt
        """
        url = endpoint if isinstance(endpoint, str) else endpoint.url

        for attempt in range(1, self.max_auth_attempts + 1):
            try:
                return self._attempt(method, url, body, attempt)
            except AuthExpiredError:
                self.token_manager.mark_expired()
                if attempt == self.max_auth_attempts:
                    break
                logger.warning(
                    "Access token expired, re-authenticating",
                    extra={"url": url, "attempt": attempt},
                )
                self.token_manager.current_token()
                self.metrics.record_reauthentication()

        logger.error(
            "Access token kept expiring",
            extra={"url": url, "attempts": self.max_auth_attempts},
        )
        raise AuthExhaustedError(self.max_auth_attempts, url)

    def _attempt(
        self,
        method: str,
        url: str,
        body: Optional[Any],
        attempt: int,
    ) -> RawResponse:
        headers = {"Content-Type": "application/json"}
        headers.update(self.token_manager.get_auth_header())

        logger.debug(
            f"Making {method} request",
            extra={"url": url, "attempt": attempt},
        )

        with timed_operation(f"{method} {url}", logger) as timer:
            try:
                response = self.http.request(
                    method,
                    url,
                    json=body,
                    headers=headers,
                    timeout=self.timeout,
                )
            except requests.exceptions.RequestException as e:
                timer.stop()
                self.metrics.record_request(timer.duration_ms, success=False)
                logger.error(
                    "API request failed",
                    extra={
                        "method": method,
                        "url": url,
                        "error": str(e),
                        "duration_ms": round(timer.duration_ms, 2),
                        "attempt": attempt,
                    },
                )
                raise

        raw = RawResponse(
            method=method,
            url=url,
            status_code=response.status_code,
            text=response.text or "",
        )

        if raw.is_access_expired:
            self.metrics.record_request(timer.duration_ms, success=False)
            raise AuthExpiredError(f"Access expired for {method} {url}")

        self.metrics.record_request(timer.duration_ms, success=raw.ok)
        logger.info(
            "API request completed",
            extra={
                "method": method,
                "url": url,
                "status_code": raw.status_code,
                "duration_ms": round(timer.duration_ms, 2),
                "attempt": attempt,
                "response_size_bytes": len(raw.text),
            },
        )
        return raw

    def get(self, endpoint: Union[str, Any]) -> Any:
        """Make GET request and return the parsed JSON body."""
        return self.execute("GET", endpoint).raise_for_status().json()

    def post(self, endpoint: Union[str, Any], body: Optional[Any] = None) -> Any:
        """Make POST request and return the parsed JSON body."""
        return self.execute("POST", endpoint, body=body).raise_for_status().json()

    def patch(self, endpoint: Union[str, Any], body: Optional[Any] = None) -> Any:
        """Make PATCH request and return the parsed JSON body."""
        return self.execute("PATCH", endpoint, body=body).raise_for_status().json()

    def delete(self, endpoint: Union[str, Any]) -> None:
        """Make DELETE request."""
        self.execute("DELETE", endpoint).raise_for_status()
