"""
Abstract token provider interface.

Defines the contract that bearer-token providers must implement, so the
private routes can be guarded without knowing how tokens are issued.

Example:
    from common.auth import AuthProvider, JWTAuth

    def get_auth_provider(settings) -> AuthProvider:
        return JWTAuth(secret=settings.JWT_SECRET)
"""

from abc import ABC, abstractmethod
from typing import Dict, Any


class AuthProvider(ABC):
    """
    Abstract bearer-token provider.

    All methods are async to support both sync and async implementations.
    """

    @abstractmethod
    async def create_token(
        self,
        subject: str,
        **claims: Any,
    ) -> str:
        """
        Create an authentication token.

        Args:
            subject: Identity the token is issued to (service key, user ID)
            **claims: Additional claims to include in the token

        Returns:
            Authentication token string
        """
        pass

    @abstractmethod
    async def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify an authentication token and return its claims.

        Args:
            token: The token to verify

        Returns:
            Dictionary of token claims (at minimum: sub)

        Raises:
            ValueError: If token is invalid or expired
        """
        pass
