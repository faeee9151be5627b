"""Bearer token exchange with explicit expiry tracking."""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import requests
from requests.auth import HTTPBasicAuth

from awhere_api.auth.credentials import Credentials
from awhere_api.config import DEFAULT_TOKEN_URL
from awhere_api.exceptions import CredentialError

logger = logging.getLogger(__name__)

# Lifetime assumed when the token response omits expires_in
DEFAULT_EXPIRES_IN = 3600


class TokenState(Enum):
    """Lifecycle of the session's bearer token."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"


@dataclass
class TokenInfo:
    """Bearer token information."""

    access_token: str
    token_type: str
    expires_at: float


class TokenManager:
    """Owns the bearer token of one session.

    Uses the client_credentials grant: the key/secret pair is sent as HTTP
    Basic auth to the token endpoint. At most one token is held at a time;
    a failed exchange drops back to UNAUTHENTICATED.
    """

    def __init__(
        self,
        credentials: Optional[Credentials],
        http: Any,
        token_url: str = DEFAULT_TOKEN_URL,
        timeout: int = 30,
        token_expiry_buffer: int = 60,
    ):
        """Initialize token manager.

        Args:
            credentials: Key/secret pair (may be supplied later to initialize())
            http: Gateway exposing ``request(method, url, **kwargs)``
            token_url: Token endpoint URL
            timeout: Request timeout in seconds
            token_expiry_buffer: Seconds before expiry to trigger refresh
        """
        self.credentials = credentials
        self.http = http
        self.token_url = token_url
        self.timeout = timeout
        self.token_expiry_buffer = token_expiry_buffer
        self.state = TokenState.UNAUTHENTICATED
        self.refresh_count = 0
        self._token_info: Optional[TokenInfo] = None

    def initialize(self, credentials: Optional[Credentials] = None) -> str:
        """Exchange credentials for a token.

        Replaces any stored credentials when new ones are given.

        Raises:
            CredentialError: On missing credentials, rejection or network error
        """
        if credentials is not None:
            self.credentials = credentials
        return self._exchange()

    def current_token(self) -> str:
        """Return a token not known to be stale, refreshing if necessary."""
        if self.state is TokenState.AUTHENTICATED and not self._is_token_expired():
            return self._token_info.access_token
        return self._exchange()

    def mark_expired(self) -> None:
        """Flag the held token as expired."""
        if self.state is TokenState.AUTHENTICATED:
            logger.info("Access token marked expired")
            self.state = TokenState.EXPIRED

    def get_auth_header(self) -> dict:
        """Get authorization header dict for requests."""
        return {"Authorization": f"Bearer {self.current_token()}"}

    def _is_token_expired(self) -> bool:
        """Check if current token is expired or about to expire."""
        if self._token_info is None:
            return True
        return time.time() >= (self._token_info.expires_at - self.token_expiry_buffer)

    def _exchange(self) -> str:
        """Perform client_credentials grant and store the new token."""
        if self.credentials is None:
            self._reset()
            raise CredentialError(
                "No credentials loaded; initialize the session with a key and secret"
            )

        refreshing = self.state is not TokenState.UNAUTHENTICATED
        logger.info(
            "Refreshing access token" if refreshing else "Requesting new access token",
            extra={"token_url": self.token_url},
        )

        try:
            response = self.http.request(
                "POST",
                self.token_url,
                data={"grant_type": "client_credentials"},
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                auth=HTTPBasicAuth(self.credentials.key, self.credentials.secret),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            self._reset()
            logger.error("Token request failed", extra={"error": str(e)})
            raise CredentialError(f"Token request failed: {e}") from e

        if response.status_code != 200:
            self._reset()
            logger.error(
                "Token request rejected",
                extra={"status_code": response.status_code},
            )
            raise CredentialError(
                f"The key/secret combination was rejected (HTTP {response.status_code})"
            )

        try:
            token_data = response.json()
            access_token = token_data["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            self._reset()
            raise CredentialError("Token response did not contain an access_token") from e

        expires_in = token_data.get("expires_in")
        if expires_in is None:
            expires_in = DEFAULT_EXPIRES_IN
        try:
            lifetime = float(expires_in)
        except (TypeError, ValueError) as e:
            self._reset()
            raise CredentialError(f"Token response has an invalid expires_in: {expires_in!r}") from e

        self._token_info = TokenInfo(
            access_token=access_token,
            token_type=token_data.get("token_type", "Bearer") or "Bearer",
            expires_at=time.time() + lifetime,
        )
        self.state = TokenState.AUTHENTICATED
        if refreshing:
            self.refresh_count += 1

        logger.info(
            "Token obtained successfully",
            extra={
                "token_type": self._token_info.token_type,
                "expires_in": expires_in,
            },
        )
        return access_token

    def _reset(self) -> None:
        self._token_info = None
        self.state = TokenState.UNAUTHENTICATED
