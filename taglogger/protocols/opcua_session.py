"""
OPC UA Session Engine
asyncua-backed session: user/password login, per-tag data-change
subscriptions, one-shot reads and a keep-alive health probe.
"""

import asyncio
from typing import Optional

from asyncua import Client, ua

from taglogger.core.exceptions import LoginError
from taglogger.core.patterns.observer import ValueObserver, notify_safely
from taglogger.models.value import Value
from taglogger.protocols.base_session import ProtocolType, SessionEngine, SubscriptionHandle


def data_value_to_value(dv: ua.DataValue) -> Value:
    """Convert an asyncua DataValue into a Value."""
    variant = dv.Value
    typ = variant.VariantType.name if variant is not None else "Null"
    status = dv.StatusCode
    if status is not None and status.is_bad():
        return Value.error_value(status.name, typ)
    if variant is None or variant.Value is None:
        return Value.null_value(typ)
    return Value.of(typ, variant.Value)


class OPCUASession(SessionEngine):
    """
    OPC UA session engine.

    Tags are NodeId strings (``ns=2;s=Boiler.Temp``). Each subscribed tag
    gets its own asyncua subscription so it can be cancelled on its own.
    """

    protocol_type = ProtocolType.OPCUA

    def __init__(self, url: str, request_timeout: float = 10.0,
                 subscription_period: int = 500, session_timeout: int = 60000):
        super().__init__(url, request_timeout)
        self.subscription_period = subscription_period
        self.session_timeout = session_timeout
        self.client: Optional[Client] = None
        self._healthy = False
        self._probe: Optional[asyncio.Task] = None

    async def login(self, user: str, password: str) -> None:
        """Create a fresh client and connect with the configured credentials."""
        self.client = Client(url=self.url, timeout=self.request_timeout)
        self.client.session_timeout = self.session_timeout
        if user:
            self.client.set_user(user)
            self.client.set_password(password)
        try:
            await self.client.connect()
        except Exception as e:
            self.client = None
            raise LoginError(f"OPC UA login to {self.url} failed: {e}") from e
        self._healthy = True
        self.logger.info(f"Connected to OPC UA server at {self.url}")

    async def logout(self) -> None:
        self._healthy = False
        client, self.client = self.client, None
        if client is None:
            return
        try:
            await client.disconnect()
            self.logger.info("Disconnected from OPC UA server")
        except Exception as e:
            self.logger.error(f"Error during OPC UA disconnection: {e}")

    def subscribe(self, tag: str, observer: ValueObserver,
                  format_profile: Optional[str] = None) -> SubscriptionHandle:
        handle = _OPCUASubscription(self, tag, observer)
        handle.task = self._spawn(handle.open())
        return handle

    async def request(self, tag: str) -> Value:
        if self.client is None:
            raise ConnectionError("OPC UA session is not logged in")
        node = self.client.get_node(tag)
        dv = await asyncio.wait_for(node.read_data_value(), timeout=self.request_timeout)
        return data_value_to_value(dv)

    def connection_ok(self) -> bool:
        return self.client is not None and self._healthy

    def test_timeouts(self) -> None:
        """Launch a keep-alive read unless one is still outstanding."""
        if self.client is None or (self._probe and not self._probe.done()):
            return
        self._probe = self._spawn(self._keep_alive(self.client))

    async def _keep_alive(self, client: Client) -> None:
        node = client.get_node(ua.ObjectIds.Server_ServerStatus_State)
        try:
            await asyncio.wait_for(node.read_value(), timeout=self.request_timeout)
        except Exception as e:
            if client is self.client:
                self.logger.warning(f"Keep-alive failed: {e}")
                self._healthy = False

    def _connection_lost(self, reason: str) -> None:
        if self._healthy:
            self.logger.warning(f"Connection lost: {reason}")
        self._healthy = False


class _OPCUASubscription(SubscriptionHandle):
    """Handler for one tag's asyncua subscription."""

    def __init__(self, session: OPCUASession, tag: str, observer: ValueObserver):
        self.session = session
        self.tag = tag
        self.observer = observer
        self.task: Optional[asyncio.Task] = None
        self.subscription = None
        self.cancelled = False

    async def open(self) -> None:
        client = self.session.client
        if client is None or self.cancelled:
            return
        try:
            subscription = await client.create_subscription(self.session.subscription_period, self)
            await subscription.subscribe_data_change(client.get_node(self.tag))
        except Exception as e:
            self.session.logger.warning(f"Subscribe to '{self.tag}' failed: {e}")
            return
        self.subscription = subscription
        if self.cancelled:
            await self._delete()

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        if self.subscription is not None:
            self.session._spawn(self._delete())

    async def _delete(self) -> None:
        subscription, self.subscription = self.subscription, None
        if subscription is None:
            return
        try:
            await subscription.delete()
        except Exception as e:
            self.session.logger.debug(f"Deleting subscription for '{self.tag}' failed: {e}")

    # asyncua handler interface
    def datachange_notification(self, node, val, data):
        if self.cancelled:
            return
        notify_safely(self.observer, data_value_to_value(data.monitored_item.Value))

    def status_change_notification(self, status):
        self.session._connection_lost(f"subscription status {status}")
