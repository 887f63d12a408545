"""
Enums and constants for the broker relay
"""

from enum import Enum


class ErrorKind(Enum):
    """Machine-readable failure kinds returned to callers"""
    UNAUTHENTICATED = "unauthenticated"
    INVALID_ARGUMENT = "invalid-argument"
    NOT_FOUND = "not-found"
    ALREADY_EXISTS = "already-exists"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"


class AccountState(Enum):
    """Upstream account lifecycle states"""
    CREATED = "CREATED"
    DEPLOYING = "DEPLOYING"
    DEPLOYED = "DEPLOYED"
    DEPLOY_FAILED = "DEPLOY_FAILED"
    UNDEPLOYING = "UNDEPLOYING"
    UNDEPLOYED = "UNDEPLOYED"
    UNDEPLOY_FAILED = "UNDEPLOY_FAILED"
    DELETING = "DELETING"


class ConnectionStatus(Enum):
    """Upstream connection status of a provisioned account"""
    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"
    DISCONNECTED_FROM_BROKER = "DISCONNECTED_FROM_BROKER"


class Platform(Enum):
    """MetaTrader platforms supported upstream"""
    MT4 = "mt4"
    MT5 = "mt5"


class Operation(Enum):
    """Wire names of the user-facing operations"""
    CONNECT = "connectBroker"
    STATUS = "getUserStatus"
    ACCOUNT_INFO = "getAccountInfo"
    METRICS = "getMetrics"
    TRADES = "getTrades"
    DAILY_GROWTH = "getDailyGrowth"
    DISCONNECT = "disconnectBroker"


# Upstream retry constants
DEFAULT_MAX_RETRIES = 5
DEFAULT_RETRY_AFTER = 5.0  # seconds, used when the hint is missing
MAX_RETRY_AFTER = 15.0  # seconds, clamp for any hint

# Deploy polling
DEPLOY_POLL_INTERVAL = 2.0
DEPLOY_POLL_ATTEMPTS = 30

# Account defaults
ACCOUNT_TYPE = "cloud"
ACCOUNT_APPLICATION = "MetaApi"
RESOURCE_SLOTS = 1
TRADE_HISTORY_DAYS = 365

# Stored link fields cleared on disconnect
LINK_FIELDS = ("account_id", "broker_server", "mt_login", "platform")

# Logging
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
