"""
API exceptions with stable error codes.

Each class is one entry of the error taxonomy shared by every endpoint.
They extend FastAPI's HTTPException so a raise anywhere below a router
becomes a response with the right status code.

Example:
    from common.utils import NotFoundException

    check_in = await collection.find_one({"_id": check_in_id})
    if not check_in:
        raise NotFoundException("Check-in not found", code="CHECKIN_NOT_FOUND")
"""

from typing import Optional, Any, Dict
from fastapi import HTTPException


class APIException(HTTPException):
    """
    Base API exception with error code support.

    Provides consistent error response format across the API.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Create an API exception.

        Args:
            status_code: HTTP status code
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error details
            headers: Optional response headers
        """
        detail: Dict[str, Any] = {"message": message}

        if code:
            detail["code"] = code

        if details is not None:
            detail["details"] = details

        super().__init__(
            status_code=status_code,
            detail=detail,
            headers=headers,
        )
        self.message = message
        self.code = code
        self.details = details


class InvalidArgumentException(APIException):
    """400 - Malformed or missing input."""

    def __init__(
        self,
        message: str = "Invalid argument",
        code: str = "INVALID_ARGUMENT",
        details: Optional[Any] = None,
    ):
        super().__init__(400, message, code, details)


class UnauthenticatedException(APIException):
    """401 - No resolved caller identity."""

    def __init__(
        self,
        message: str = "User must be authenticated",
        code: str = "UNAUTHENTICATED",
        details: Optional[Any] = None,
    ):
        super().__init__(401, message, code, details, headers={"WWW-Authenticate": "Bearer"})


class PermissionDeniedException(APIException):
    """403 - Authenticated, but an authorization rule is violated."""

    def __init__(
        self,
        message: str = "Permission denied",
        code: str = "PERMISSION_DENIED",
        details: Optional[Any] = None,
    ):
        super().__init__(403, message, code, details)


class NotFoundException(APIException):
    """404 - Referenced entity doesn't exist."""

    def __init__(
        self,
        message: str = "Not found",
        code: str = "NOT_FOUND",
        details: Optional[Any] = None,
    ):
        super().__init__(404, message, code, details)


class FailedPreconditionException(APIException):
    """409 - Valid request, but the resource is in the wrong state."""

    def __init__(
        self,
        message: str = "Failed precondition",
        code: str = "FAILED_PRECONDITION",
        details: Optional[Any] = None,
    ):
        super().__init__(409, message, code, details)


class InternalException(APIException):
    """500 - Unexpected store or infrastructure failure."""

    def __init__(
        self,
        message: str = "Internal server error",
        code: str = "INTERNAL",
    ):
        # Never carries details: internal failures must not leak to callers
        super().__init__(500, message, code)
