"""
Ordered trade-history sources with shape normalizers
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List

from broker_relay.upstream.client import MetaApiClient


def items_from(data: Any, key: str) -> List[Any]:
    """Accept either a raw list or an object carrying the list under ``key``"""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get(key), list):
        return data[key]
    return []


@dataclass(frozen=True)
class TradeSource:
    """One upstream history endpoint and the normalizer for its payload"""
    name: str
    fetch: Callable[[MetaApiClient, str, str, str], Awaitable[Any]]
    normalize: Callable[[Any], List[Any]]


async def _metastats_trades(client: MetaApiClient, account_id: str, start: str, end: str) -> Any:
    return await client.get_historical_trades(account_id, start, end)


async def _client_deals(client: MetaApiClient, account_id: str, start: str, end: str) -> Any:
    return await client.get_history_deals(account_id, start, end)


TRADE_SOURCES = (
    TradeSource("metastats", _metastats_trades, lambda data: items_from(data, "trades")),
    TradeSource("client", _client_deals, lambda data: items_from(data, "deals")),
)
