"""Protocol definitions for dependency injection and interface contracts."""

from typing import Protocol

from .auth import Credential


class TokenProvider(Protocol):
    """Protocol for authentication token providers."""

    async def ensure_valid(self) -> Credential:
        """Make sure a currently valid credential is held and return it.

        Raises:
            RefreshError: If a credential could not be obtained.
        """
        ...

    async def get_valid_token(self) -> str:
        """Get a valid authentication token.

        Returns:
            Valid bearer token string.

        Raises:
            RefreshError: If a credential could not be obtained.
        """
        ...
