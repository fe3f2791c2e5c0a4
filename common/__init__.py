"""
Common library for reusable infrastructure components.

- database: Async MongoDB connection manager (Motor)
- auth: Pluggable token verification (Firebase, JWT)
- utils: Standard responses and the API exception taxonomy
- config: Base settings class
"""

from common.database import MongoDB
from common.auth import AuthProvider, JWTAuth, FirebaseAuth, create_auth_dependency
from common.utils import (
    success_response,
    error_response,
    APIException,
    InvalidArgumentException,
    UnauthenticatedException,
    PermissionDeniedException,
    NotFoundException,
    FailedPreconditionException,
    InternalException,
)
from common.config import BaseAppSettings

__all__ = [
    # Database
    "MongoDB",
    # Auth
    "AuthProvider",
    "JWTAuth",
    "FirebaseAuth",
    "create_auth_dependency",
    # Utils
    "success_response",
    "error_response",
    "APIException",
    "InvalidArgumentException",
    "UnauthenticatedException",
    "PermissionDeniedException",
    "NotFoundException",
    "FailedPreconditionException",
    "InternalException",
    # Config
    "BaseAppSettings",
]
