"""
JWT authentication provider for local development and tests.

Tokens are HS256-signed with a shared secret and minted outside this
service. Production deployments use FirebaseAuth.

Example:
    auth = JWTAuth(secret="dev-secret")

    claims = await auth.verify_token(token)
    print(claims["sub"])  # user-123
"""

from typing import Dict, Any

from jose import jwt, JWTError

from common.auth.base import AuthProvider


class JWTAuth(AuthProvider):
    """HS256 JWT provider."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        """
        Initialize JWT auth provider.

        Args:
            secret: Secret key for JWT signing
            algorithm: JWT algorithm (default: HS256)
        """
        if not secret:
            raise ValueError("JWT secret is required")

        self.secret = secret
        self.algorithm = algorithm

    async def verify_token(self, token: str) -> Dict[str, Any]:
        """Verify and decode a JWT token."""
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
            )
        except JWTError as e:
            raise ValueError(f"Invalid token: {e}")
