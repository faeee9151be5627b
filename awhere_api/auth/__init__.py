"""Authentication modules for API access.

Supports:
- Key/secret credentials from arguments, environment or a two-line file
- Bearer token exchange with expiry tracking
"""

from .credentials import Credentials
from .token import TokenInfo, TokenManager, TokenState

__all__ = ["Credentials", "TokenInfo", "TokenManager", "TokenState"]
