"""API key/secret pair used for the token exchange."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from awhere_api.exceptions import CredentialError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    """Consumer key and secret of an aWhere application."""

    key: str
    secret: str

    def __post_init__(self) -> None:
        if not self.key or not self.key.strip():
            raise CredentialError("API key is missing")
        if not self.secret or not self.secret.strip():
            raise CredentialError("API secret is missing")

    def __repr__(self) -> str:
        return f"Credentials(key={self.key!r}, secret='***')"

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Credentials":
        """Load credentials from a text file.

        Line 1 holds the key, line 2 the secret. Trailing lines are ignored.
        """
        path = Path(path)
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise CredentialError(f"Cannot read credentials file {path}: {e}") from e

        if len(lines) < 2:
            raise CredentialError(
                f"Credentials file {path} must contain the key on line 1 "
                "and the secret on line 2"
            )

        logger.debug("Loaded credentials from file", extra={"path": str(path)})
        return cls(key=lines[0].strip(), secret=lines[1].strip())

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Credentials":
        """Load credentials from AWHERE_API_KEY / AWHERE_API_SECRET.

        Falls back to the file named by AWHERE_CREDENTIALS_FILE.
        """
        load_dotenv(dotenv_path)

        key = os.getenv("AWHERE_API_KEY")
        secret = os.getenv("AWHERE_API_SECRET")
        if key and secret:
            return cls(key=key, secret=secret)

        credentials_file = os.getenv("AWHERE_CREDENTIALS_FILE")
        if credentials_file:
            return cls.from_file(credentials_file)

        raise CredentialError(
            "Set AWHERE_API_KEY and AWHERE_API_SECRET, or AWHERE_CREDENTIALS_FILE"
        )
