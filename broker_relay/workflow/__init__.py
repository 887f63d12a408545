"""
Account workflow and its runtime context
"""

from .context import RelayContext, RelayRuntime
from .account_workflow import AccountWorkflow, require_auth
from .trade_sources import TradeSource, TRADE_SOURCES

__all__ = [
    "RelayContext",
    "RelayRuntime",
    "AccountWorkflow",
    "require_auth",
    "TradeSource",
    "TRADE_SOURCES",
]
