"""HTTP gateway used by the client.

A ``requests.Session`` with a retry adapter mounted handles transient
transport failures (429, 5xx) on idempotent methods. Token expiry is not a
transport concern and is handled by the request executor.
"""

from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

DEFAULT_RETRY = Retry(
    total=3,
    backoff_factor=0.5,
    status_forcelist=[429, 500, 502, 503, 504],
    allowed_methods=["GET", "DELETE"],
    raise_on_status=False,
)

USER_AGENT = "awhere-api-client/0.1"


def create_session(retry: Optional[Retry] = None) -> requests.Session:
    """Build a ``requests.Session`` with the retry adapter mounted.

    Args:
        retry: Custom retry strategy (defaults to ``DEFAULT_RETRY``)
    """
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=retry or DEFAULT_RETRY)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers["User-Agent"] = USER_AGENT
    return session
