"""
Domain error taxonomy

Every error raised by the services derives from HotelOSError and carries a
machine-readable error_type, an HTTP status for the routers and an optional
context dict naming the resources involved. The concrete kinds also derive
from ValueError, which is what callers of the service layer have always
caught.
"""
from typing import Any, Dict, Optional

from fastapi import HTTPException


class ErrorType:
    """Error type identifiers"""

    VALIDATION_ERROR = "validation_error"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    DELIVERY_FAILED = "delivery_failed"


class HotelOSError(Exception):
    """
    Base domain error.

    Attributes:
        message: human-readable message
        context: ids and values that explain the failure
    """

    error_type: str = "error"
    status_code: int = 500

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.error_type,
            "message": self.message,
            "context": self.context,
        }


class ValidationError(HotelOSError, ValueError):
    """Malformed input; rejected before any state is touched"""

    error_type = ErrorType.VALIDATION_ERROR
    status_code = 400


class ConflictError(HotelOSError, ValueError):
    """Availability violated, mixed-guest checkout group, or wrong status for a transition"""

    error_type = ErrorType.CONFLICT
    status_code = 409


class AuthorizationError(HotelOSError, ValueError):
    """Missing or invalid caller credentials"""

    error_type = ErrorType.UNAUTHORIZED
    status_code = 401


class NotFoundError(HotelOSError, ValueError):
    """Referenced booking, room, guest or invoice does not exist"""

    error_type = ErrorType.NOT_FOUND
    status_code = 404


class DownstreamDeliveryFailure(HotelOSError):
    """Document storage or email dispatch failed after the checkout committed.

    Reported as a warning; never rolls anything back.
    """

    error_type = ErrorType.DELIVERY_FAILED
    status_code = 502


def to_http_exception(error: HotelOSError) -> HTTPException:
    """Translate a domain error for the routers"""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(error, AuthorizationError) else None
    return HTTPException(status_code=error.status_code, detail=error.message, headers=headers)
