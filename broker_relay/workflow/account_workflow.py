"""
Account workflow - the user-facing broker operations
"""

from datetime import timedelta
from typing import Any, Dict, Optional, Sequence, Tuple

from broker_relay.core.enums import (
    ACCOUNT_APPLICATION,
    ACCOUNT_TYPE,
    LINK_FIELDS,
    RESOURCE_SLOTS,
    Platform,
)
from broker_relay.core.exceptions import (
    APIError,
    AlreadyExistsError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    StillProcessingError,
    TransportError,
    UnauthenticatedError,
    UpstreamError,
)
from broker_relay.core.models import CallerIdentity, ProvisionedAccount, UserBrokerLink
from broker_relay.utils.logger import get_logger
from broker_relay.utils.timeutils import parse_iso, to_iso
from broker_relay.workflow.context import RelayContext
from broker_relay.workflow.trade_sources import TRADE_SOURCES, TradeSource, items_from

logger = get_logger(__name__)

MSG_CONNECTED = "Account connected"
MSG_DEPLOYING = "Account created. Deploying, try again in 1-2 minutes."
MSG_ALREADY_LINKED = "Account already linked"
MSG_ALREADY_REGISTERED = "This MT5 account is already registered. Contact support."

# Lookup answers that prove the stored account no longer exists
GONE_STATUSES = frozenset({404, 410})


def require_auth(identity: Optional[CallerIdentity]) -> str:
    """Return the caller uid or fail before any other logic runs"""
    if identity is None or not identity.uid:
        raise UnauthenticatedError("Sign in first.")
    return identity.uid


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class AccountWorkflow:
    """
    Connect, inspect and disconnect a user's MetaTrader account through MetaApi.

    Every operation takes the verified caller identity and an optional input
    payload, and returns a JSON-ready dictionary.
    """

    def __init__(
        self,
        context: RelayContext,
        trade_sources: Sequence[TradeSource] = TRADE_SOURCES
    ):
        self.context = context
        self.config = context.config
        self.client = context.client
        self.store = context.store
        self.trade_sources = tuple(trade_sources)

    async def _load_link(self, uid: str) -> UserBrokerLink:
        return UserBrokerLink.from_document(uid, await self.store.get(uid))

    async def _require_account_id(self, uid: str) -> str:
        link = await self._load_link(uid)
        if not link.is_connected:
            raise NotFoundError("No broker account is connected.")
        return link.account_id

    # ------------------------------------------------------------------
    # Connect
    # ------------------------------------------------------------------

    async def connect(self, identity: Optional[CallerIdentity], data: Optional[Dict] = None) -> Dict[str, Any]:
        uid = require_auth(identity)
        data = data or {}

        server = _text(data.get("brokerServer"))
        login = _text(data.get("mtLogin"))
        password = data.get("mtPassword")
        platform = _text(data.get("platform")).lower() or self.config.default_platform

        if not server or not login or not password:
            raise InvalidArgumentError("Missing data: broker server, login or password.")
        if platform not in {p.value for p in Platform}:
            raise InvalidArgumentError(f"Unsupported platform: {platform}")

        link = await self._load_link(uid)
        if link.is_connected:
            existing = await self._lookup_existing(link.account_id)
            if existing is not None:
                logger.info(f"uid={uid} already linked to {link.account_id} ({existing.state})")
                return {
                    "success": True,
                    "deployed": existing.is_deployed,
                    "message": MSG_ALREADY_LINKED,
                    "accountId": link.account_id,
                    "state": existing.state,
                }

        account = await self._create_account(server, login, str(password), platform)

        now = self.context.clock()
        await self.store.merge(uid, {
            "email": identity.email or "",
            "account_id": account.id,
            "broker_server": server,
            "mt_login": login,
            "platform": platform,
            "connected_at": now,
            "updated_at": now,
        })
        logger.info(f"uid={uid} linked to new account {account.id}, waiting for deploy")

        deployed = await self._await_deploy(account.id)
        if not deployed:
            logger.info(f"Account {account.id} not deployed after {self.context.deploy_poll.max_attempts} polls")

        return {
            "success": True,
            "deployed": deployed,
            "message": MSG_CONNECTED if deployed else MSG_DEPLOYING,
            "accountId": account.id,
        }

    async def _lookup_existing(self, account_id: str) -> Optional[ProvisionedAccount]:
        """
        Look up the stored account without 202 retries.

        Returns None when the account is gone upstream (404 or 410) or when
        every attempt stayed inconclusive, so the caller re-creates it.
        Any other failure, rate limiting and timeouts included, is retried.
        """
        attempts = self.config.existing_lookup_attempts
        for attempt in range(1, attempts + 1):
            try:
                return await self.client.get_account(account_id, max_retries=0)
            except UpstreamError as e:
                if e.status in GONE_STATUSES:
                    logger.info(f"Stored account {account_id} unavailable upstream (HTTP {e.status})")
                    return None
                logger.warning(f"Lookup of {account_id} failed (attempt {attempt}/{attempts}): {e.message}")
            except (TransportError, StillProcessingError) as e:
                logger.warning(f"Lookup of {account_id} failed (attempt {attempt}/{attempts}): {e.message}")

            if attempt < attempts:
                await self.context.sleep(self.context.deploy_poll.interval)

        logger.warning(f"Could not confirm account {account_id}, re-creating")
        return None

    def _account_payload(self, server: str, login: str, password: str, platform: str) -> Dict[str, Any]:
        return {
            "name": f"{self.config.account_name_prefix}-{login}",
            "type": ACCOUNT_TYPE,
            "login": login,
            "password": password,
            "server": server,
            "platform": platform,
            "region": self.config.region,
            "application": ACCOUNT_APPLICATION,
            "magic": 0,
            "metastatsApiEnabled": True,
            "resourceSlots": RESOURCE_SLOTS,
            "copyFactoryRoles": [],
        }

    async def _create_account(self, server: str, login: str, password: str, platform: str) -> ProvisionedAccount:
        payload = self._account_payload(server, login, password, platform)
        try:
            account = await self.client.create_account(payload)
        except UpstreamError as e:
            if e.status == 409 or "already exists" in e.message.lower():
                raise AlreadyExistsError(MSG_ALREADY_REGISTERED) from e
            logger.error(f"Account creation failed (HTTP {e.status}): {e.message}")
            raise InternalError(f"MetaApi error: {e.message}") from e
        except APIError as e:
            logger.error(f"Account creation failed: {e.message}")
            raise InternalError(f"MetaApi error: {e.message}") from e

        if not account.id:
            raise InternalError("MetaApi error: no account id returned")
        return account

    async def _await_deploy(self, account_id: str) -> bool:
        policy = self.context.deploy_poll
        for attempt in range(1, policy.max_attempts + 1):
            await self.context.sleep(policy.interval)
            try:
                account = await self.client.get_account(account_id, max_retries=0)
            except APIError as e:
                logger.debug(f"Deploy poll {attempt} for {account_id} failed: {e.message}")
                continue
            if account.is_usable:
                logger.info(f"Account {account_id} deployed after {attempt} polls")
                return True
        return False

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def status(self, identity: Optional[CallerIdentity], data: Optional[Dict] = None) -> Dict[str, Any]:
        uid = require_auth(identity)
        return (await self._load_link(uid)).to_status()

    async def account_info(self, identity: Optional[CallerIdentity], data: Optional[Dict] = None) -> Any:
        uid = require_auth(identity)
        account_id = await self._require_account_id(uid)
        return await self.client.get_account_information(account_id)

    async def metrics(self, identity: Optional[CallerIdentity], data: Optional[Dict] = None) -> Dict[str, Any]:
        uid = require_auth(identity)
        account_id = await self._require_account_id(uid)

        try:
            result = await self.client.get_metrics(account_id)
        except UpstreamError as e:
            if e.status == 403:
                await self._enable_metastats(account_id)
                return {"ok": False, "metrics": None, "source": "none", "reason": "metastats_enabling"}
            raise InternalError(e.message) from e
        except APIError as e:
            raise InternalError(e.message) from e

        metrics = result.get("metrics") if isinstance(result, dict) else None
        return {"ok": True, "metrics": metrics or result, "source": "metastats"}

    async def _enable_metastats(self, account_id: str) -> None:
        try:
            await self.client.enable_metastats(account_id)
            logger.info(f"Requested MetaStats for {account_id}")
        except APIError as e:
            logger.warning(f"Enabling MetaStats for {account_id} failed: {e.message}")

    def _date_range(self, data: Dict) -> Tuple[str, str]:
        now = self.context.clock()
        bounds = {}
        for key, default in (
            ("startDate", now - timedelta(days=self.config.trade_history_days)),
            ("endDate", now),
        ):
            value = _text(data.get(key))
            if not value:
                bounds[key] = default
                continue
            try:
                bounds[key] = parse_iso(value)
            except ValueError as e:
                raise InvalidArgumentError(f"{key} must be an ISO-8601 date") from e

        if bounds["startDate"] > bounds["endDate"]:
            raise InvalidArgumentError("startDate must not be after endDate")
        return to_iso(bounds["startDate"]), to_iso(bounds["endDate"])

    async def trades(self, identity: Optional[CallerIdentity], data: Optional[Dict] = None) -> Dict[str, Any]:
        uid = require_auth(identity)
        account_id = await self._require_account_id(uid)
        start, end = self._date_range(data or {})

        last_error: Optional[APIError] = None
        for source in self.trade_sources:
            try:
                result = await source.fetch(self.client, account_id, start, end)
            except APIError as e:
                logger.warning(f"Trade source {source.name} failed for {account_id}: {e.message}")
                last_error = e
                continue
            return {"trades": source.normalize(result), "source": source.name}

        raise InternalError(last_error.message if last_error else "No trade history source available")

    async def daily_growth(self, identity: Optional[CallerIdentity], data: Optional[Dict] = None) -> Dict[str, Any]:
        uid = require_auth(identity)
        account_id = await self._require_account_id(uid)
        try:
            result = await self.client.get_daily_growth(account_id)
        except APIError as e:
            logger.warning(f"Daily growth for {account_id} failed: {e.message}")
            return {"data": []}
        return {"data": items_from(result, "dailyGrowth")}

    # ------------------------------------------------------------------
    # Disconnect
    # ------------------------------------------------------------------

    async def disconnect(self, identity: Optional[CallerIdentity], data: Optional[Dict] = None) -> Dict[str, Any]:
        uid = require_auth(identity)
        link = await self._load_link(uid)
        if not link.is_connected:
            return {"ok": True}

        try:
            await self.client.delete_account(link.account_id)
        except APIError as e:
            # remote cleanup is best-effort
            logger.warning(f"Deleting account {link.account_id} failed: {e.message}")

        now = self.context.clock()
        await self.store.delete_fields(uid, LINK_FIELDS, {"disconnected_at": now, "updated_at": now})
        logger.info(f"uid={uid} disconnected from {link.account_id}")
        return {"ok": True}
