"""
MetaApi client for provisioning, trading-session and statistics calls
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import aiohttp

from config.settings import RelayConfig
from broker_relay.core.models import ProvisionedAccount, RetryableRequest
from broker_relay.core.exceptions import (
    APIError,
    StillProcessingError,
    TransportError,
    UpstreamError,
)
from broker_relay.upstream.endpoints import Endpoints
from broker_relay.upstream.retry import RetryPolicy

Sleep = Callable[[float], Awaitable[Any]]

STILL_PROCESSING_MESSAGE = "MetaApi is still processing the request. Try again in a few seconds."


class MetaApiClient:
    """MetaApi REST client with 202-Accepted retry handling"""

    def __init__(self, config: RelayConfig, sleep: Optional[Sleep] = None):
        self.config = config
        self.endpoints = Endpoints(config)
        self.retry_policy = RetryPolicy(
            max_retries=config.max_retries,
            default_wait=config.default_retry_after,
            max_wait=config.max_retry_after,
        )
        self.session: Optional[aiohttp.ClientSession] = None
        self._sleep = sleep or asyncio.sleep

    async def __aenter__(self):
        """Async context manager entry"""
        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.config.request_timeout),
            headers={
                "auth-token": self.config.metaapi_token,
                "User-Agent": "BrokerRelay/1.0",
                "Content-Type": "application/json"
            }
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        if self.session:
            await self.session.close()
            self.session = None

    async def call(
        self,
        url: str,
        method: str = "GET",
        body: Optional[Dict[str, Any]] = None,
        max_retries: Optional[int] = None
    ) -> Any:
        """
        Perform one upstream request and return its parsed JSON body.

        Args:
            url: Absolute endpoint URL
            method: HTTP method
            body: Optional JSON body
            max_retries: Extra attempts allowed while the upstream answers 202,
                defaults to the configured value

        Raises:
            StillProcessingError: the retry budget ran out on 202 responses
            UpstreamError: any other non-2xx response, with its status
            TransportError: the upstream could not be reached
        """
        request = RetryableRequest(
            url=url,
            method=method,
            body=body,
            max_retries=self.retry_policy.max_retries if max_retries is None else max_retries,
        )
        return await self.execute(request)

    async def execute(self, request: RetryableRequest) -> Any:
        """Run a request through the 202 retry loop and return the parsed body"""
        if not self.session:
            raise APIError("Client session not initialized")

        policy = self.retry_policy.with_retries(request.max_retries)

        for attempt in range(1, policy.max_attempts + 1):
            status, retry_after, raw = await self._send(request)

            if status == 202:
                if attempt < policy.max_attempts:
                    await self._sleep(policy.wait_for(retry_after))
                continue

            if not 200 <= status < 300:
                raise UpstreamError(self._error_message(status, raw), status)

            return self._parse_body(status, raw)

        raise StillProcessingError(STILL_PROCESSING_MESSAGE)

    async def _send(self, request: RetryableRequest) -> Tuple[int, Optional[str], bytes]:
        """Issue the HTTP request, mapping network failures to TransportError"""
        kwargs: Dict[str, Any] = {}
        if request.body is not None:
            kwargs["json"] = request.body

        try:
            async with self.session.request(request.method, request.url, **kwargs) as response:
                raw = await response.read()
                return response.status, response.headers.get("retry-after"), raw
        except asyncio.TimeoutError as e:
            raise TransportError("MetaApi request timed out") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Could not reach MetaApi: {e.__class__.__name__}") from e

    @staticmethod
    def _error_message(status: int, raw: bytes) -> str:
        """Upstream error message from a JSON body, or the bare status"""
        fallback = f"HTTP {status}"
        try:
            data = json.loads(raw)
        except ValueError:
            return fallback
        if isinstance(data, dict) and isinstance(data.get("message"), str) and data["message"]:
            return data["message"]
        return fallback

    @staticmethod
    def _parse_body(status: int, raw: bytes) -> Any:
        """Parse a 2xx body as JSON, None when empty"""
        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise UpstreamError(f"Invalid JSON in HTTP {status} response", status) from e

    # Provisioning

    async def get_account(self, account_id: str, max_retries: int = 0) -> ProvisionedAccount:
        """Get account state from the provisioning API"""
        data = await self.call(self.endpoints.account(account_id), max_retries=max_retries)
        return ProvisionedAccount.from_response(data)

    async def create_account(self, payload: Dict[str, Any]) -> ProvisionedAccount:
        """Create a cloud account, no 202 retries"""
        data = await self.call(self.endpoints.accounts(), "POST", payload, max_retries=0)
        return ProvisionedAccount.from_response(data)

    async def delete_account(self, account_id: str) -> None:
        """Remove an account from MetaApi"""
        await self.call(self.endpoints.account(account_id), "DELETE", max_retries=0)

    async def enable_metastats(self, account_id: str) -> None:
        """Turn on the MetaStats API for an account"""
        await self.call(self.endpoints.enable_metastats(account_id), "PUT", {}, max_retries=0)

    # Trading session

    async def get_account_information(self, account_id: str) -> Any:
        """Get live balance and equity from the trading session"""
        return await self.call(self.endpoints.account_information(account_id))

    async def get_history_deals(self, account_id: str, start: str, end: str) -> Any:
        """Get history deals for a time range"""
        return await self.call(self.endpoints.history_deals(account_id, start, end))

    # Statistics

    async def get_metrics(self, account_id: str) -> Any:
        """Get MetaStats account metrics"""
        return await self.call(self.endpoints.metrics(account_id))

    async def get_historical_trades(self, account_id: str, start: str, end: str) -> Any:
        """Get MetaStats historical trades for a time range"""
        return await self.call(self.endpoints.historical_trades(account_id, start, end))

    async def get_daily_growth(self, account_id: str) -> Any:
        """Get MetaStats daily growth series"""
        return await self.call(self.endpoints.daily_growth(account_id))
