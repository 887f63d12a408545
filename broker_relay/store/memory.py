"""
In-memory link store
"""

import copy
from typing import Any, Dict, Iterable, Optional

from broker_relay.store.base import UserLinkStore


class InMemoryUserLinkStore(UserLinkStore):
    """Dictionary-backed store, used for tests and embedding"""

    def __init__(self, documents: Optional[Dict[str, Dict[str, Any]]] = None):
        self.documents: Dict[str, Dict[str, Any]] = copy.deepcopy(documents or {})

    async def get(self, uid: str) -> Optional[Dict[str, Any]]:
        document = self.documents.get(uid)
        return copy.deepcopy(document) if document is not None else None

    async def merge(self, uid: str, fields: Dict[str, Any]) -> None:
        self.documents.setdefault(uid, {}).update(copy.deepcopy(fields))

    async def delete_fields(
        self,
        uid: str,
        names: Iterable[str],
        updates: Optional[Dict[str, Any]] = None
    ) -> None:
        document = self.documents.get(uid)
        if document is None:
            return
        for name in names:
            document.pop(name, None)
        document.update(copy.deepcopy(updates or {}))
