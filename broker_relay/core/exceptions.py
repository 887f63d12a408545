"""
Custom exceptions for the broker relay
"""

from typing import Optional

from broker_relay.core.enums import ErrorKind


class RelayError(Exception):
    """Base exception for relay errors"""

    kind = ErrorKind.INTERNAL

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}


class UnauthenticatedError(RelayError):
    """Raised when the caller has no verified identity"""
    kind = ErrorKind.UNAUTHENTICATED


class InvalidArgumentError(RelayError):
    """Raised when required input fields are missing or malformed"""
    kind = ErrorKind.INVALID_ARGUMENT


class NotFoundError(RelayError):
    """Raised when the caller has no linked broker account"""
    kind = ErrorKind.NOT_FOUND


class AlreadyExistsError(RelayError):
    """Raised when the broker account is already registered upstream"""
    kind = ErrorKind.ALREADY_EXISTS


class InternalError(RelayError):
    """Raised for failures the workflow does not recover from"""
    kind = ErrorKind.INTERNAL


class APIError(RelayError):
    """Raised when an upstream API call fails"""
    pass


class UpstreamError(APIError):
    """Raised on a non-success upstream response"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class StillProcessingError(APIError):
    """Raised when the upstream keeps answering 202 past the retry budget"""
    kind = ErrorKind.UNAVAILABLE


class TransportError(APIError):
    """Raised when the upstream cannot be reached"""
    kind = ErrorKind.UNAVAILABLE


class ConfigurationError(Exception):
    """Raised when configuration is invalid"""
    pass
