"""
Core models, enums, and exceptions
"""

from .models import (
    CallerIdentity,
    UserBrokerLink,
    ProvisionedAccount,
    RetryableRequest
)

from .enums import (
    ErrorKind,
    AccountState,
    ConnectionStatus,
    Platform,
    Operation
)

from .exceptions import (
    RelayError,
    UnauthenticatedError,
    InvalidArgumentError,
    NotFoundError,
    AlreadyExistsError,
    InternalError,
    APIError,
    UpstreamError,
    StillProcessingError,
    TransportError,
    ConfigurationError
)

__all__ = [
    "CallerIdentity",
    "UserBrokerLink",
    "ProvisionedAccount",
    "RetryableRequest",
    "ErrorKind",
    "AccountState",
    "ConnectionStatus",
    "Platform",
    "Operation",
    "RelayError",
    "UnauthenticatedError",
    "InvalidArgumentError",
    "NotFoundError",
    "AlreadyExistsError",
    "InternalError",
    "APIError",
    "UpstreamError",
    "StillProcessingError",
    "TransportError",
    "ConfigurationError"
]
