"""
Per-user broker link store interface
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional


class UserLinkStore(ABC):
    """Abstract document store keyed by user id"""

    @abstractmethod
    async def get(self, uid: str) -> Optional[Dict[str, Any]]:
        """Return a copy of the user's document, or None"""
        pass

    @abstractmethod
    async def merge(self, uid: str, fields: Dict[str, Any]) -> None:
        """Upsert ``fields`` into the document, keeping unrelated fields"""
        pass

    @abstractmethod
    async def delete_fields(
        self,
        uid: str,
        names: Iterable[str],
        updates: Optional[Dict[str, Any]] = None
    ) -> None:
        """Remove ``names`` and apply ``updates`` in one write; no-op for a missing document"""
        pass
