"""
Upstream components - MetaApi client, endpoints and retry policies
"""

from .client import MetaApiClient
from .endpoints import Endpoints
from .retry import RetryPolicy, PollPolicy

__all__ = ["MetaApiClient", "Endpoints", "RetryPolicy", "PollPolicy"]
