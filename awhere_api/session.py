"""Session handle tying credentials, token and request execution together."""

import logging
from datetime import date
from pathlib import Path
from typing import Any, Callable, Optional, Union

from awhere_api.auth.credentials import Credentials
from awhere_api.auth.token import TokenManager, TokenState
from awhere_api.clients.base import RequestExecutor
from awhere_api.clients.http import create_session
from awhere_api.config import Settings
from awhere_api.endpoints.builder import Endpoint, build_endpoint, path_segment
from awhere_api.endpoints.descriptor import EndpointDescriptor
from awhere_api.endpoints.validation import ValidationContext
from awhere_api.exceptions import ParseError
from awhere_api.transform.normalize import Table, normalize_response

logger = logging.getLogger(__name__)


class AWhereSession:
    """One authenticated connection to the aWhere API.

    Every public operation takes a session as its first argument. Sessions
    are independent of each other; a single session is not thread-safe.

    Example:
        session = AWhereSession.from_env()
        session.initialize()
        table = forecasts_fields(session, "field123")
    """

    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        settings: Optional[Settings] = None,
        http: Optional[Any] = None,
        clock: Callable[[], date] = date.today,
    ):
        """Initialize session.

        Args:
            credentials: Key/secret pair (may be supplied later to initialize())
            settings: Endpoints and policy bounds (defaults to ``Settings()``)
            http: Gateway exposing ``request(method, url, **kwargs)``;
                a retrying ``requests.Session`` by default
            clock: Returns "today" for date validation
        """
        self.settings = settings or Settings()
        self.http = http if http is not None else create_session()
        self.clock = clock
        self.token_manager = TokenManager(
            credentials,
            self.http,
            token_url=self.settings.token_url,
            timeout=self.settings.timeout,
            token_expiry_buffer=self.settings.token_expiry_buffer,
        )
        self.executor = RequestExecutor(
            self.token_manager,
            self.http,
            timeout=self.settings.timeout,
            max_auth_attempts=self.settings.max_auth_attempts,
        )

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None, **kwargs) -> "AWhereSession":
        """Build a session from AWHERE_* environment variables (and .env)."""
        return cls(
            credentials=Credentials.from_env(dotenv_path),
            settings=Settings.from_env(dotenv_path),
            **kwargs,
        )

    @classmethod
    def from_credentials_file(cls, path: Union[str, Path], **kwargs) -> "AWhereSession":
        """Build a session from a two-line key/secret file."""
        return cls(credentials=Credentials.from_file(path), **kwargs)

    @property
    def credentials(self) -> Optional[Credentials]:
        return self.token_manager.credentials

    @property
    def state(self) -> TokenState:
        return self.token_manager.state

    def initialize(self, credentials: Optional[Credentials] = None) -> "AWhereSession":
        """Authenticate now instead of on the first request.

        Raises:
            CredentialError: If the token exchange fails
        """
        self.token_manager.initialize(credentials)
        logger.info("aWhere session initialized", extra={"token_url": self.settings.token_url})
        return self

    def today(self) -> date:
        return self.clock()

    def validation_context(self) -> ValidationContext:
        return ValidationContext(today=self.today(), settings=self.settings)

    def field_exists(self, field_id: str) -> bool:
        """Whether a field with this id belongs to the account.

        Raises:
            HttpError: For statuses other than 200 and 404
        """
        url = f"{self.settings.base_url}/fields/{path_segment(field_id)}"
        response = self.executor.execute("GET", url)
        if response.status_code == 404:
            return False
        response.raise_for_status()
        return True

    def build(self, descriptor: EndpointDescriptor, verify_field: bool = True) -> Endpoint:
        """Validate a descriptor and build it.

        With ``verify_field``, a referenced field id is looked up on the
        service after the parameter checks pass.
        """
        return build_endpoint(
            descriptor,
            base_url=self.settings.base_url,
            context=self.validation_context(),
            field_exists=self.field_exists if verify_field else None,
        )

    def request(
        self,
        method: str,
        descriptor: EndpointDescriptor,
        body: Optional[Any] = None,
        verify_field: bool = True,
    ) -> Any:
        """Build, execute and return the parsed JSON body of one call.

        Writes may answer with an empty body (e.g. 204 on DELETE), which
        comes back as None; a GET must return a document.

        Raises:
            ValidationError: If a parameter is rejected
            HttpError: For a non-2xx response
            ParseError: If the body is not JSON, or a GET body is empty
        """
        endpoint = self.build(descriptor, verify_field=verify_field)
        response = self.executor.execute(method, endpoint, body=body).raise_for_status()
        document = response.json()
        if document is None and method == "GET":
            raise ParseError(
                f"Empty response body from GET {response.url} (HTTP {response.status_code})"
            )
        return document

    def fetch_table(self, descriptor: EndpointDescriptor, verify_field: bool = True) -> Table:
        """GET a resource and normalize it into a table."""
        document = self.request("GET", descriptor, verify_field=verify_field)
        return normalize_response(document, descriptor.family)

