from urllib.parse import urlparse

from taglogger.core.exceptions import ConfigurationError
from taglogger.protocols.base_session import SessionEngine
from taglogger.protocols.mqtt_session import MQTTSession
from taglogger.protocols.opcua_session import OPCUASession


class ProtocolFactory:

    _registry = {
        "opc.tcp": OPCUASession,
        "mqtt": MQTTSession,
        "mqtts": MQTTSession,
    }

    @classmethod
    def create(cls, url: str, request_timeout: float = 10.0) -> SessionEngine:
        """
        Create the session engine for a device endpoint.

        Args:
            url (str): Device address; its scheme selects the engine.
            request_timeout (float): Seconds before a login or read gives up.

        Returns:
            SessionEngine: Unconnected engine instance
        """
        scheme = urlparse(url).scheme.lower()
        handler = cls._registry.get(scheme)
        if not handler:
            raise ConfigurationError(f"No session engine registered for scheme: {scheme!r} ({url})")
        return handler(url, request_timeout=request_timeout)

    @classmethod
    def supports(cls, url: str) -> bool:
        return urlparse(url).scheme.lower() in cls._registry
