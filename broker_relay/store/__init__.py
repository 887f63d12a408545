"""
Per-user broker link stores
"""

from .base import UserLinkStore
from .memory import InMemoryUserLinkStore
from .json_file import JsonFileUserLinkStore

__all__ = ["UserLinkStore", "InMemoryUserLinkStore", "JsonFileUserLinkStore"]
