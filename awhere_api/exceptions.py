"""Exceptions raised by the aWhere API client."""

from typing import Any, Optional


class AWhereError(Exception):
    """Base class for all client errors."""


class CredentialError(AWhereError):
    """Raised when the key/secret are missing or the token exchange fails."""


class ValidationError(AWhereError):
    """Raised when a parameter is rejected before any request is sent."""

    def __init__(self, message: str, parameter: Optional[str] = None):
        self.parameter = parameter
        super().__init__(message)


class AuthExpiredError(AWhereError):
    """The service reported the bearer token as expired.

    Recovered inside the request executor; callers only ever see
    AuthExhaustedError.
    """


class AuthExhaustedError(AWhereError):
    """Raised when the token kept expiring for every allowed attempt."""

    def __init__(self, attempts: int, url: str = ""):
        self.attempts = attempts
        self.url = url
        super().__init__(
            f"Access token still reported expired after {attempts} attempts: {url}"
        )


class HttpError(AWhereError):
    """Raised for a non-2xx response unrelated to token expiry."""

    def __init__(self, status_code: int, message: str = "", body: Any = None):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {message}" if message else f"HTTP {status_code}")


class ParseError(AWhereError):
    """Raised when a response body does not have the expected shape."""


class JobTimeoutError(AWhereError):
    """Raised when a batch job is still running after the allowed polls."""

    def __init__(self, job_id: Any, retries: int):
        self.job_id = job_id
        self.retries = retries
        super().__init__(f"Get job for jobId: {job_id} timed out after {retries} retries")
