"""
Explicitly constructed dependencies shared by the relay operations
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from config.settings import RelayConfig
from broker_relay.store.base import UserLinkStore
from broker_relay.store.json_file import JsonFileUserLinkStore
from broker_relay.upstream.client import MetaApiClient
from broker_relay.upstream.retry import PollPolicy
from broker_relay.utils.timeutils import utc_now


@dataclass
class RelayContext:
    """Config, upstream client, link store, clock and sleep for one relay instance"""

    config: RelayConfig
    client: MetaApiClient
    store: UserLinkStore
    clock: Callable[[], datetime] = utc_now
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    deploy_poll: Optional[PollPolicy] = None

    def __post_init__(self):
        if self.deploy_poll is None:
            self.deploy_poll = PollPolicy(
                interval=self.config.deploy_poll_interval,
                max_attempts=self.config.deploy_poll_attempts,
            )


class RelayRuntime:
    """
    Async context manager that opens the MetaApi session and yields a
    ready ``RelayContext``.
    """

    def __init__(self, config: RelayConfig, store: Optional[UserLinkStore] = None):
        self.config = config
        self.store = store or JsonFileUserLinkStore(config.store_path)
        self.client = MetaApiClient(config)

    async def __aenter__(self) -> RelayContext:
        await self.client.__aenter__()
        return RelayContext(config=self.config, client=self.client, store=self.store)

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.client.__aexit__(exc_type, exc_val, exc_tb)
