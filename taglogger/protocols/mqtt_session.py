"""
MQTT Session Engine
paho-mqtt backed session. Tags are topics; the payload text is the value.
paho runs its network loop in its own thread, so every callback is
handed back to the asyncio loop with ``call_soon_threadsafe``.
"""

import asyncio
import time
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

import paho.mqtt.client as mqtt

from taglogger.core.exceptions import LoginError
from taglogger.core.patterns.observer import ValueObserver, notify_safely
from taglogger.models.value import Value
from taglogger.protocols.base_session import ProtocolType, SessionEngine, SubscriptionHandle


def payload_to_value(payload: bytes) -> Value:
    """Decode a message payload: empty is null, numbers are Double, else String."""
    if not payload:
        return Value.null_value("String")
    try:
        text = payload.decode("utf-8").strip()
    except UnicodeDecodeError as e:
        return Value.error_value(f"undecodable payload: {e}", "String")
    try:
        return Value(typ="Double", text=text, number=float(text))
    except ValueError:
        return Value(typ="String", text=text)


class MQTTSession(SessionEngine):
    """MQTT session engine (``mqtt://host:port`` or ``mqtts://host:port``)."""

    protocol_type = ProtocolType.MQTT

    def __init__(self, url: str, request_timeout: float = 10.0,
                 keepalive: int = 60, qos: int = 0):
        super().__init__(url, request_timeout)
        parsed = urlparse(url)
        self.use_tls = parsed.scheme == "mqtts"
        self.broker_host = parsed.hostname or "localhost"
        self.broker_port = parsed.port or (8883 if self.use_tls else 1883)
        self.keepalive = keepalive
        self.qos = qos
        self.client_id = f"taglogger_{int(datetime.now().timestamp())}"

        self.client: Optional[mqtt.Client] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._connack: Optional[asyncio.Future] = None
        self._observers: Dict[str, List[ValueObserver]] = {}
        # topic -> [(deadline, future)]
        self._pending: Dict[str, List[Tuple[float, asyncio.Future]]] = {}

    # ------------------------------------------------------------------ #
    #  Session lifecycle
    # ------------------------------------------------------------------ #
    async def login(self, user: str, password: str) -> None:
        self._loop = asyncio.get_running_loop()
        self._connack = self._loop.create_future()
        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.client_id,
            protocol=mqtt.MQTTv311,
        )
        if user:
            self.client.username_pw_set(user, password)
        if self.use_tls:
            self.client.tls_set()
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message

        try:
            await self._loop.run_in_executor(
                None, self.client.connect, self.broker_host, self.broker_port, self.keepalive
            )
            self.client.loop_start()
            reason = await asyncio.wait_for(self._connack, timeout=self.request_timeout)
        except Exception as e:
            await self._teardown()
            raise LoginError(f"MQTT connection to {self.url} failed: {e}") from e
        if reason.is_failure:
            await self._teardown()
            raise LoginError(f"MQTT broker refused login: {reason}")

        for topic in self._observers:
            self.client.subscribe(topic, self.qos)
        self.logger.info(f"Connected to MQTT broker at {self.broker_host}:{self.broker_port}")

    async def logout(self) -> None:
        if self.client is None:
            return
        await self._teardown()
        self.logger.info("Disconnected from MQTT broker")

    async def _teardown(self) -> None:
        client, self.client = self.client, None
        if client is None:
            return
        try:
            client.disconnect()
            await asyncio.get_running_loop().run_in_executor(None, client.loop_stop)
        except Exception as e:
            self.logger.error(f"Error during MQTT disconnection: {e}")
        for topic in list(self._pending):
            self._fail_pending(topic, ConnectionError("MQTT session closed"))

    # ------------------------------------------------------------------ #
    #  Values
    # ------------------------------------------------------------------ #
    def subscribe(self, tag: str, observer: ValueObserver,
                  format_profile: Optional[str] = None) -> SubscriptionHandle:
        observers = self._observers.setdefault(tag, [])
        observers.append(observer)
        if self.client is not None and len(observers) == 1 and tag not in self._pending:
            self.client.subscribe(tag, self.qos)
        return _MQTTSubscription(self, tag, observer)

    async def request(self, tag: str) -> Value:
        """Wait for the next (usually retained) message on *tag*."""
        if self.client is None or not self.client.is_connected():
            raise ConnectionError("MQTT session is not connected")
        future = asyncio.get_running_loop().create_future()
        waiting = self._pending.setdefault(tag, [])
        if not waiting and tag not in self._observers:
            self.client.subscribe(tag, self.qos)
        waiting.append((time.monotonic() + self.request_timeout, future))
        try:
            return await future
        finally:
            self._release(tag, future)

    def connection_ok(self) -> bool:
        return self.client is not None and self.client.is_connected()

    def test_timeouts(self) -> None:
        """Expire one-shot requests whose deadline has passed."""
        now = time.monotonic()
        for topic, waiting in list(self._pending.items()):
            for deadline, future in waiting:
                if deadline <= now and not future.done():
                    future.set_exception(TimeoutError(f"no message on '{topic}'"))

    # ------------------------------------------------------------------ #
    #  Internals
    # ------------------------------------------------------------------ #
    def _unsubscribe(self, tag: str, observer: ValueObserver) -> None:
        observers = self._observers.get(tag, [])
        if observer in observers:
            observers.remove(observer)
        if not observers:
            self._observers.pop(tag, None)
            if self.client is not None and tag not in self._pending:
                self.client.unsubscribe(tag)

    def _release(self, tag: str, future: asyncio.Future) -> None:
        waiting = [(d, f) for d, f in self._pending.get(tag, []) if f is not future]
        if waiting:
            self._pending[tag] = waiting
            return
        self._pending.pop(tag, None)
        if self.client is not None and tag not in self._observers:
            self.client.unsubscribe(tag)

    def _fail_pending(self, topic: str, exc: Exception) -> None:
        for _, future in self._pending.get(topic, []):
            if not future.done():
                future.set_exception(exc)

    def _dispatch(self, topic: str, payload: bytes) -> None:
        value = payload_to_value(payload)
        for _, future in self._pending.get(topic, []):
            if not future.done():
                future.set_result(value)
        for observer in list(self._observers.get(topic, [])):
            notify_safely(observer, value)

    # MQTT Event Callbacks (paho network thread)
    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if self._connack is not None:
            self._loop.call_soon_threadsafe(self._resolve_connack, reason_code)

    def _resolve_connack(self, reason_code) -> None:
        if self._connack is not None and not self._connack.done():
            self._connack.set_result(reason_code)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            self.logger.warning(f"Unexpected disconnection from MQTT broker ({reason_code})")

    def _on_message(self, client, userdata, msg):
        self._loop.call_soon_threadsafe(self._dispatch, msg.topic, msg.payload)


class _MQTTSubscription(SubscriptionHandle):

    def __init__(self, session: MQTTSession, tag: str, observer: ValueObserver):
        self.session = session
        self.tag = tag
        self.observer = observer
        self.cancelled = False

    def cancel(self) -> None:
        if not self.cancelled:
            self.cancelled = True
            self.session._unsubscribe(self.tag, self.observer)
