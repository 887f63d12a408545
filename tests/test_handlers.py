"""
Operation dispatch and failure shaping
"""

import pytest

from broker_relay.core.exceptions import UpstreamError
from broker_relay.core.models import CallerIdentity
from broker_relay.handlers import OPERATION_HANDLERS, invoke
from broker_relay.core.enums import Operation

CONNECT_INPUT = {"brokerServer": "Xyz-Live", "mtLogin": "12345", "mtPassword": "p", "platform": "mt5"}


def test_every_operation_has_a_handler():
    assert set(OPERATION_HANDLERS) == set(Operation)


@pytest.mark.asyncio
async def test_connect_example(context, client, store, identity):
    client.route("POST", "/users/current/accounts", {"id": "acc-new"})
    client.route("GET", "/accounts/acc-new", {"state": "DEPLOYING"})

    outcome = await invoke("connectBroker", CONNECT_INPUT, identity, context)

    result = outcome["result"]
    assert result["success"] is True
    assert isinstance(result["deployed"], bool)
    assert isinstance(result["message"], str)
    assert len(client.calls_to("POST", "/users/current/accounts")) == 1
    assert len(client.calls_to("GET", "/accounts/acc-new")) <= 30
    assert store.documents["user-1"]["account_id"] == "acc-new"


@pytest.mark.asyncio
async def test_unauthenticated_is_checked_first(context, client):
    outcome = await invoke("noSuchOperation", {"x": 1}, None, context)

    assert outcome["error"]["kind"] == "unauthenticated"
    assert client.calls == []


@pytest.mark.asyncio
async def test_unknown_operation(context, identity):
    outcome = await invoke("placeOrder", {}, identity, context)
    assert outcome["error"]["kind"] == "invalid-argument"


@pytest.mark.asyncio
async def test_payload_must_be_an_object(context, identity):
    outcome = await invoke("getTrades", ["2024-01-01"], identity, context)
    assert outcome["error"]["kind"] == "invalid-argument"


@pytest.mark.asyncio
async def test_missing_link_is_not_found(context, identity):
    outcome = await invoke("getMetrics", None, identity, context)
    assert outcome == {"error": {"kind": "not-found", "message": "No broker account is connected."}}


@pytest.mark.asyncio
async def test_missing_connect_fields(context, identity):
    outcome = await invoke("connectBroker", {"brokerServer": "Xyz-Live"}, identity, context)
    assert outcome["error"]["kind"] == "invalid-argument"


@pytest.mark.asyncio
async def test_metrics_403_example(context, client, linked_store, identity):
    client.route("GET", "/accounts/acc-1/metrics", UpstreamError("Forbidden", 403))
    client.route("PUT", "/accounts/acc-1/enable-metastats-api", None)

    outcome = await invoke("getMetrics", {}, identity, context)

    assert outcome == {"result": {"ok": False, "metrics": None, "source": "none", "reason": "metastats_enabling"}}
    assert len(client.calls_to("PUT", "/enable-metastats-api")) == 1


@pytest.mark.asyncio
async def test_daily_growth_failure_example(context, client, linked_store, identity):
    client.route("GET", "/accounts/acc-1/daily-growth", UpstreamError("HTTP 500", 500))

    assert await invoke("getDailyGrowth", {}, identity, context) == {"result": {"data": []}}


@pytest.mark.asyncio
async def test_already_exists_kind(context, client, identity):
    client.route("POST", "/users/current/accounts", UpstreamError("Account already exists", 400))

    outcome = await invoke("connectBroker", CONNECT_INPUT, identity, context)

    assert outcome["error"]["kind"] == "already-exists"


@pytest.mark.asyncio
async def test_upstream_failure_keeps_message(context, client, linked_store, identity):
    client.route("GET", "/accounts/acc-1/account-information", UpstreamError("Account is not connected to broker", 409))

    outcome = await invoke("getAccountInfo", {}, identity, context)

    assert outcome == {"error": {"kind": "internal", "message": "Account is not connected to broker"}}


@pytest.mark.asyncio
async def test_unexpected_exception_is_hidden(context, client, linked_store, identity):
    client.route("GET", "/accounts/acc-1/account-information", RuntimeError("secret internals"))

    outcome = await invoke("getAccountInfo", {}, identity, context)

    assert outcome == {"error": {"kind": "internal", "message": "Internal error"}}


@pytest.mark.asyncio
async def test_disconnect_without_link(context, client):
    outcome = await invoke("disconnectBroker", None, CallerIdentity(uid="nobody"), context)

    assert outcome == {"result": {"ok": True}}
    assert client.calls == []


@pytest.mark.asyncio
async def test_status_survives_unparseable_stored_timestamp(context, linked_store, identity):
    linked_store.documents["user-1"]["connected_at"] = "June 1st"

    outcome = await invoke("getUserStatus", {}, identity, context)

    assert outcome == {
        "result": {"connected": True, "brokerServer": "Xyz-Live", "mtLogin": "12345", "platform": "mt5"}
    }
