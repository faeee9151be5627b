"""HTTP gateway and request execution.

Handles:
- Bearer authentication on every call
- Bounded recovery from token expiry
- Transport retries with exponential backoff
"""

from .base import ACCESS_EXPIRED_MARKER, RawResponse, RequestExecutor, RequestMetrics
from .http import DEFAULT_RETRY, create_session

__all__ = [
    "ACCESS_EXPIRED_MARKER",
    "DEFAULT_RETRY",
    "RawResponse",
    "RequestExecutor",
    "RequestMetrics",
    "create_session",
]
