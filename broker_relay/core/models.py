"""
Data models for the broker relay
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from broker_relay.core.enums import (
    AccountState,
    ConnectionStatus,
    DEFAULT_MAX_RETRIES,
)
from broker_relay.utils.timeutils import parse_iso


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Stored timestamp as a datetime, None when absent or unparseable"""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return parse_iso(value)
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class CallerIdentity:
    """Verified caller supplied by the identity layer"""
    uid: str
    email: str = ""


@dataclass
class UserBrokerLink:
    """Stored mapping from an end user to their upstream broker account"""
    uid: str
    account_id: Optional[str] = None
    broker_server: Optional[str] = None
    mt_login: Optional[str] = None
    platform: Optional[str] = None
    email: str = ""
    connected_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    disconnected_at: Optional[datetime] = None

    @property
    def is_connected(self) -> bool:
        return bool(self.account_id)

    @classmethod
    def from_document(cls, uid: str, document: Optional[Dict]) -> "UserBrokerLink":
        document = document or {}
        return cls(
            uid=uid,
            account_id=document.get("account_id") or None,
            broker_server=document.get("broker_server"),
            mt_login=document.get("mt_login"),
            platform=document.get("platform"),
            email=document.get("email", ""),
            connected_at=_parse_timestamp(document.get("connected_at")),
            updated_at=_parse_timestamp(document.get("updated_at")),
            disconnected_at=_parse_timestamp(document.get("disconnected_at")),
        )

    def to_status(self) -> Dict[str, Any]:
        """Public status payload"""
        if not self.is_connected:
            return {"connected": False}
        return {
            "connected": True,
            "brokerServer": self.broker_server,
            "mtLogin": self.mt_login,
            "platform": self.platform,
        }


@dataclass
class ProvisionedAccount:
    """Broker account as reported by the provisioning API"""
    id: str
    state: Optional[str] = None
    connection_status: Optional[str] = None
    name: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_response(cls, data: Any) -> "ProvisionedAccount":
        data = data if isinstance(data, dict) else {}
        return cls(
            id=str(data.get("id") or data.get("_id") or ""),
            state=data.get("state"),
            connection_status=data.get("connectionStatus"),
            name=data.get("name"),
            raw=data,
        )

    @property
    def is_deployed(self) -> bool:
        return self.state == AccountState.DEPLOYED.value

    @property
    def is_usable(self) -> bool:
        """Deployed or already connected to the broker"""
        return self.is_deployed or self.connection_status == ConnectionStatus.CONNECTED.value


@dataclass
class RetryableRequest:
    """One outbound upstream call"""
    url: str
    method: str = "GET"
    body: Optional[Dict[str, Any]] = None
    max_retries: int = DEFAULT_MAX_RETRIES
