"""
Shared fixtures: scripted MetaApi client, in-memory store, fixed clock
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional
from urllib.parse import urlparse

import pytest

from config.settings import RelayConfig
from broker_relay.core.models import CallerIdentity
from broker_relay.store.memory import InMemoryUserLinkStore
from broker_relay.upstream.client import MetaApiClient
from broker_relay.workflow.account_workflow import AccountWorkflow
from broker_relay.workflow.context import RelayContext

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@dataclass
class RecordedCall:
    method: str
    url: str
    body: Optional[dict]
    max_retries: Optional[int]

    @property
    def path(self) -> str:
        return urlparse(self.url).path


class FakeMetaApiClient(MetaApiClient):
    """
    MetaApiClient whose ``call`` answers from scripted routes.

    Each route matches an HTTP method and a path suffix. Responses are
    consumed in order and the last one repeats. Exception instances are
    raised instead of returned.
    """

    def __init__(self, config: RelayConfig):
        super().__init__(config)
        self.calls: List[RecordedCall] = []
        self.routes: List[list] = []

    def route(self, method: str, path_suffix: str, *responses: Any) -> None:
        self.routes.append([method, path_suffix, list(responses)])

    async def call(self, url, method="GET", body=None, max_retries=None):
        recorded = RecordedCall(method, url, body, max_retries)
        self.calls.append(recorded)
        for route_method, suffix, responses in self.routes:
            if route_method == method and recorded.path.endswith(suffix):
                response = responses.pop(0) if len(responses) > 1 else responses[0]
                if isinstance(response, Exception):
                    raise response
                return response
        raise AssertionError(f"Unexpected upstream call: {method} {url}")

    def calls_to(self, method: str, path_suffix: str) -> List[RecordedCall]:
        return [c for c in self.calls if c.method == method and c.path.endswith(path_suffix)]


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def config():
    return RelayConfig(metaapi_token="test-token")


@pytest.fixture
def client(config):
    return FakeMetaApiClient(config)


@pytest.fixture
def store():
    return InMemoryUserLinkStore()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def context(config, client, store, sleep):
    return RelayContext(
        config=config,
        client=client,
        store=store,
        clock=lambda: FIXED_NOW,
        sleep=sleep,
    )


@pytest.fixture
def workflow(context):
    return AccountWorkflow(context)


@pytest.fixture
def identity():
    return CallerIdentity(uid="user-1", email="trader@example.com")


@pytest.fixture
def linked_store(store):
    store.documents["user-1"] = {
        "email": "trader@example.com",
        "account_id": "acc-1",
        "broker_server": "Xyz-Live",
        "mt_login": "12345",
        "platform": "mt5",
        "note": "keep me",
    }
    return store
