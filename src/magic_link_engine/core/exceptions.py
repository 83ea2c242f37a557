# core/exceptions.py

from enum import Enum
from typing import Any

from fastapi import HTTPException, status


class ErrorKind(str, Enum):
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    EXPIRED = "EXPIRED"
    ALREADY_USED = "ALREADY_USED"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_MISMATCH = "USER_MISMATCH"
    MALFORMED_PAYLOAD = "MALFORMED_PAYLOAD"


class MagicLinkEngineException(Exception):
    def __init__(
        self, message: str, error_code: str | None = None, details: dict[str, Any] | None = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class MagicLinkError(MagicLinkEngineException):
    """A magic link could not be redeemed. ``kind`` is for operators only."""

    kind: ErrorKind

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, error_code=self.kind.value, details=details)


class InvalidSignatureError(MagicLinkError):
    kind = ErrorKind.INVALID_SIGNATURE

    def __init__(self, message: str = "Credential signature is invalid"):
        super().__init__(message)


class ExpiredCredentialError(MagicLinkError):
    kind = ErrorKind.EXPIRED

    def __init__(self, message: str = "Credential has expired"):
        super().__init__(message)


class AlreadyUsedError(MagicLinkError):
    kind = ErrorKind.ALREADY_USED

    def __init__(self, message: str = "Credential has already been used"):
        super().__init__(message)


class UserNotFoundError(MagicLinkError):
    kind = ErrorKind.USER_NOT_FOUND

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class UserMismatchError(MagicLinkError):
    kind = ErrorKind.USER_MISMATCH

    def __init__(self, message: str = "Session is bound to a different user"):
        super().__init__(message)


class MalformedPayloadError(MagicLinkError):
    kind = ErrorKind.MALFORMED_PAYLOAD

    def __init__(self, message: str = "Credential payload is malformed"):
        super().__init__(message)


class MagicLinkDisabledError(MagicLinkEngineException):
    def __init__(self, message: str = "Magic link login is disabled"):
        super().__init__(message, error_code="MAGIC_LINK_DISABLED")


class EmailDispatchError(MagicLinkEngineException):
    def __init__(self, message: str = "Failed to send the magic link email"):
        super().__init__(message, error_code="EMAIL_DISPATCH_FAILED")


class InvalidRequestError(MagicLinkEngineException):
    def __init__(self, message: str = "Invalid authorization request"):
        super().__init__(message, error_code="INVALID_REQUEST")


# HTTP Exception converters
def convert_to_http_exception(exc: MagicLinkEngineException) -> HTTPException:
    status_map = {
        "MAGIC_LINK_DISABLED": status.HTTP_404_NOT_FOUND,
        "EMAIL_DISPATCH_FAILED": status.HTTP_502_BAD_GATEWAY,
        "INVALID_REQUEST": status.HTTP_400_BAD_REQUEST,
    }

    status_code = status_map.get(exc.error_code or "", status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTTPException(
        status_code=status_code,
        detail={"message": exc.message, "error_code": exc.error_code, "details": exc.details},
    )
