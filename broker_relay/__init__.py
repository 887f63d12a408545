"""
Broker Relay - links MetaTrader accounts to MetaApi behind a server-side credential
"""

__version__ = "1.0.0"
