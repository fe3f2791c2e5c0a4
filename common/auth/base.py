"""
Abstract authentication provider interface.

Account management lives with the external identity provider; this service
only needs to turn a bearer token into a caller id. Providers implement
that contract so Firebase and local JWT tokens are interchangeable.

Example:
    from common.auth import AuthProvider, JWTAuth, FirebaseAuth

    def get_auth_provider(settings) -> AuthProvider:
        if settings.AUTH_PROVIDER == "firebase":
            return FirebaseAuth(settings.FIREBASE_CREDENTIALS_PATH)
        return JWTAuth(secret=settings.JWT_SECRET)
"""

from abc import ABC, abstractmethod
from typing import Dict, Any


class AuthProvider(ABC):
    """
    Abstract authentication provider.

    Methods are async to support both sync and async implementations.
    """

    @abstractmethod
    async def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify an authentication token.

        Args:
            token: The token to verify

        Returns:
            Dictionary containing decoded token claims (at minimum: sub)

        Raises:
            ValueError: If token is invalid, expired, or revoked
        """
        pass

    @staticmethod
    def user_id_from_claims(claims: Dict[str, Any]) -> str:
        """Resolve the caller id from decoded claims (empty string if absent)."""
        return claims.get("sub") or claims.get("uid") or ""
