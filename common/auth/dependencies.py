"""
FastAPI authentication dependencies.

Provides a factory that turns an AuthProvider into a dependency resolving
the caller's user id. Works with any AuthProvider implementation.

Example:
    from common.auth import JWTAuth, create_auth_dependency

    auth = JWTAuth(secret="your-secret")
    get_current_user_id = create_auth_dependency(lambda: auth)

    @app.get("/streak")
    async def get_streak(user_id: str = Depends(get_current_user_id)):
        return {"user_id": user_id}
"""

import logging
from typing import Callable, Optional

from fastapi import Header, Request

from common.auth.base import AuthProvider
from common.utils.exceptions import UnauthenticatedException

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: Optional[str], scheme: str = "Bearer") -> Optional[str]:
    """
    Extract the token from an Authorization header value.

    Returns None when the header is missing, uses another scheme or is empty.
    """
    if not authorization:
        return None

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != scheme.lower():
        return None

    return parts[1] or None


def create_auth_dependency(
    get_auth_provider: Callable[[Request], AuthProvider],
    header_name: str = "Authorization",
    scheme: str = "Bearer",
):
    """
    Factory to create FastAPI auth dependencies.

    Args:
        get_auth_provider: Callable that returns the AuthProvider for a request
        header_name: Header to extract token from (default: Authorization)
        scheme: Auth scheme prefix (default: Bearer)

    Returns:
        A FastAPI dependency function that extracts and verifies the user ID
    """

    async def get_current_user_id(
        request: Request,
        authorization: Optional[str] = Header(None, alias=header_name),
    ) -> str:
        """
        Extract and verify user ID from the authorization header.

        Raises:
            UnauthenticatedException: If token is missing, invalid, or expired
        """
        token = extract_bearer_token(authorization, scheme)
        if not token:
            raise UnauthenticatedException(
                message="Missing or malformed authorization header",
                code="UNAUTHENTICATED",
            )

        auth = get_auth_provider(request)
        try:
            claims = await auth.verify_token(token)
        except ValueError as e:
            logger.debug(f"Token rejected: {e}")
            raise UnauthenticatedException(
                message="Invalid or expired token",
                code="INVALID_TOKEN",
            )

        user_id = AuthProvider.user_id_from_claims(claims)
        if not user_id:
            raise UnauthenticatedException(
                message="Token missing user ID",
                code="INVALID_TOKEN",
            )

        request.state.user_id = user_id
        return user_id

    return get_current_user_id
