"""
JSON file link store for local and CLI use
"""

import asyncio
import json
import logging
import os
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

from broker_relay.core.exceptions import InternalError
from broker_relay.store.base import UserLinkStore

logger = logging.getLogger(__name__)


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JsonFileUserLinkStore(UserLinkStore):
    """
    Stores all user documents in one JSON object keyed by user id.

    Timestamps are written as ISO-8601 strings. Every write replaces the
    file atomically. File access runs in the default executor so the event
    loop keeps serving other work, and each read-modify-write holds a lock.
    """

    def __init__(self, filepath: str):
        self.filepath = Path(filepath)
        self._lock = threading.Lock()

    async def _run(self, func: Callable, *args) -> Any:
        return await asyncio.get_running_loop().run_in_executor(None, func, *args)

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if not self.filepath.exists():
            return {}
        try:
            with open(self.filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading link store {self.filepath}: {e}")
            raise InternalError("Link store is unreadable") from e
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Dict[str, Any]]) -> None:
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.filepath.with_suffix(self.filepath.suffix + ".tmp")
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, default=_encode)
        os.replace(tmp_path, self.filepath)

    def _get_sync(self, uid: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._load().get(uid)

    def _merge_sync(self, uid: str, fields: Dict[str, Any]) -> None:
        with self._lock:
            data = self._load()
            data.setdefault(uid, {}).update(fields)
            self._save(data)

    def _delete_fields_sync(self, uid: str, names: Iterable[str], updates: Dict[str, Any]) -> None:
        with self._lock:
            data = self._load()
            document = data.get(uid)
            if document is None:
                return
            for name in names:
                document.pop(name, None)
            document.update(updates)
            self._save(data)

    async def get(self, uid: str) -> Optional[Dict[str, Any]]:
        return await self._run(self._get_sync, uid)

    async def merge(self, uid: str, fields: Dict[str, Any]) -> None:
        await self._run(self._merge_sync, uid, dict(fields))

    async def delete_fields(
        self,
        uid: str,
        names: Iterable[str],
        updates: Optional[Dict[str, Any]] = None
    ) -> None:
        await self._run(self._delete_fields_sync, uid, list(names), dict(updates or {}))
